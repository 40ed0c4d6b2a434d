"""Flask application factory for Stow Kiosk."""

import atexit
import os
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from .config import Config, is_valid_channel_id
from .api.routes import api
from .api.slack_routes import slack_api
from .api.errors import register_error_handlers
from .extensions import Services, limiter
from .realtime import BroadcastHub
from .realtime.socket import realtime_bp
from .slack import ReminderScheduler, SlackBridge, SlackClient
from .state import (
    AvailableSpaceStore,
    Database,
    SafetyMessageStore,
    StationStore,
    StationUpdateProtocol,
    UserStore,
)
from .utils.logging_config import get_logger, setup_logging


logger = get_logger('stowkiosk.app')


def _build_services(app: Flask) -> Services:
    database = Database(app.config['DATABASE_URL'], echo=app.config.get('SQL_ECHO', False))
    database.create_all()

    stations = StationStore(database)
    messages = SafetyMessageStore(database)
    hub = BroadcastHub()
    protocol = StationUpdateProtocol(stations, hub)

    client = SlackClient(
        bot_token=app.config.get('SLACK_BOT_TOKEN'),
        max_retries=app.config.get('SLACK_MAX_RETRIES', 3),
        retry_backoff_sec=app.config.get('SLACK_RETRY_BACKOFF_SEC'),
    )
    bridge = SlackBridge(stations, protocol, messages, hub, client=client)

    return Services(
        database=database,
        stations=stations,
        messages=messages,
        spaces=AvailableSpaceStore(database),
        users=UserStore(database),
        hub=hub,
        protocol=protocol,
        bridge=bridge,
        scheduler=ReminderScheduler(
            bridge, interval=app.config.get('SLACK_REMINDER_INTERVAL_SEC', 3600)
        ),
    )


def _start_reminders(app: Flask, services: Services) -> None:
    """Start hourly reminders when Slack is configured and the channel is valid."""
    channel = app.config.get('SLACK_REMINDER_CHANNEL')
    if app.config.get('TESTING') or not services.bridge.client.is_configured():
        return
    if not channel:
        logger.info('SLACK_REMINDER_CHANNEL not set; reminders disabled')
        return
    if not is_valid_channel_id(channel):
        logger.warning('Invalid SLACK_REMINDER_CHANNEL %r; reminders disabled', channel)
        return
    services.scheduler.start(channel)


def create_app(test_config: Optional[dict] = None, config: Optional[Config] = None) -> Flask:
    """Create and configure the Stow Kiosk Flask application.

    Args:
        test_config: Optional dict applied over the loaded configuration
        config: Explicit configuration (defaults to environment / YAML)

    Returns:
        Configured Flask application
    """
    load_dotenv()

    if config is None:
        config_file = os.environ.get('KIOSK_CONFIG_FILE')
        config = Config.from_yaml(config_file) if config_file else Config.from_env()

    app = Flask(__name__)

    # Default configuration
    app.config.from_mapping(
        SECRET_KEY=os.environ.get('SECRET_KEY', 'dev'),
        MAX_CONTENT_LENGTH=64 * 1024,  # 64KB max request size
        RATELIMIT_STORAGE_URI='memory://',
        **config.to_flask_config(),
    )

    # Load test config if provided
    if test_config:
        app.config.update(test_config)

    setup_logging(level=app.config.get('LOG_LEVEL'), fmt=config.logging.format)

    if not app.config.get('TESTING'):
        for problem in config.validate():
            logger.warning('Configuration problem: %s', problem)

    services = _build_services(app)
    app.extensions['stowkiosk'] = services

    limiter.init_app(app)

    app.register_blueprint(api)
    app.register_blueprint(slack_api)
    app.register_blueprint(realtime_bp)

    register_error_handlers(app)

    @app.route('/health')
    def root_health():
        return {'status': 'healthy', 'connections': len(services.hub)}, 200

    _start_reminders(app, services)

    return app


def main() -> None:
    """Run the development server."""
    config = Config.from_env()
    app = create_app(config=config)
    atexit.register(app.extensions['stowkiosk'].shutdown)

    logger.info('Stow Kiosk listening on %s:%s', config.api.host, config.api.port)
    app.run(host=config.api.host, port=config.api.port, debug=config.api.debug, threaded=True)


if __name__ == '__main__':
    main()
