"""Configuration management for Stow Kiosk.

Loads configuration from environment variables and optional YAML file.
All secrets come from environment variables only.
"""

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml


SLACK_CHANNEL_PATTERN = re.compile(r'^C[0-9A-Z]{8,}$')


def is_valid_channel_id(channel: Optional[str]) -> bool:
    """Check that a Slack channel ID looks like a public channel ID."""
    return bool(channel) and SLACK_CHANNEL_PATTERN.match(channel) is not None


@dataclass
class SlackConfig:
    """Slack integration configuration."""

    bot_token: str = ""
    signing_secret: str = ""
    reminder_channel: Optional[str] = None

    # Hourly reminders, aligned to the top of the hour
    reminder_interval_sec: int = 3600

    max_retries: int = 3
    retry_backoff_sec: list = field(default_factory=lambda: [1, 2, 4])

    @classmethod
    def from_env(cls) -> "SlackConfig":
        """Load Slack configuration from environment variables."""
        return cls(
            bot_token=os.environ.get("SLACK_BOT_TOKEN", ""),
            signing_secret=os.environ.get("SLACK_SIGNING_SECRET", ""),
            reminder_channel=os.environ.get("SLACK_REMINDER_CHANNEL"),
            reminder_interval_sec=int(
                os.environ.get("SLACK_REMINDER_INTERVAL_SEC", "3600")
            ),
        )


@dataclass
class APIConfig:
    """API server configuration."""

    host: str = "0.0.0.0"
    port: int = 3000
    debug: bool = False
    jwt_secret: str = ""
    token_ttl_hours: int = 8

    # Rate limiting
    rate_limit_default: str = "100 per minute"
    rate_limit_write: str = "60 per minute"

    @classmethod
    def from_env(cls) -> "APIConfig":
        """Load API configuration from environment variables."""
        return cls(
            host=os.environ.get("KIOSK_HOST", "0.0.0.0"),
            port=int(os.environ.get("KIOSK_PORT", os.environ.get("PORT", "3000"))),
            debug=os.environ.get("KIOSK_DEBUG", "false").lower() == "true",
            jwt_secret=os.environ.get("JWT_SECRET", ""),
        )


@dataclass
class DatabaseConfig:
    """Relational store configuration."""

    url: str = "sqlite:///data/kiosk.db"
    echo: bool = False

    @classmethod
    def from_env(cls) -> "DatabaseConfig":
        return cls(
            url=os.environ.get("DATABASE_URL", "sqlite:///data/kiosk.db"),
            echo=os.environ.get("KIOSK_SQL_ECHO", "false").lower() == "true",
        )


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "INFO"
    format: str = "json"

    @classmethod
    def from_env(cls) -> "LoggingConfig":
        """Load logging configuration from environment variables."""
        return cls(
            level=os.environ.get("KIOSK_LOG_LEVEL", "INFO"),
            format=os.environ.get("KIOSK_LOG_FORMAT", "json"),
        )


@dataclass
class Config:
    """Main configuration container."""

    api: APIConfig
    slack: SlackConfig
    database: DatabaseConfig
    logging: LoggingConfig

    # Runtime settings
    environment: str = "development"

    @classmethod
    def from_env(cls) -> "Config":
        """Load all configuration from environment variables."""
        return cls(
            api=APIConfig.from_env(),
            slack=SlackConfig.from_env(),
            database=DatabaseConfig.from_env(),
            logging=LoggingConfig.from_env(),
            environment=os.environ.get("KIOSK_ENV", "development"),
        )

    @classmethod
    def from_yaml(cls, path: str) -> "Config":
        """Load configuration from YAML file, env vars override."""
        config_path = Path(path)

        if config_path.exists():
            with open(config_path, "r") as f:
                yaml_config = yaml.safe_load(f) or {}
        else:
            yaml_config = {}

        config = cls.from_env()

        # Secrets never come from the YAML file
        if "api" in yaml_config:
            config.api.host = yaml_config["api"].get("host", config.api.host)
            config.api.port = yaml_config["api"].get("port", config.api.port)
            config.api.debug = yaml_config["api"].get("debug", config.api.debug)
            config.api.token_ttl_hours = yaml_config["api"].get(
                "token_ttl_hours", config.api.token_ttl_hours
            )

        if "slack" in yaml_config:
            config.slack.reminder_channel = (
                os.environ.get("SLACK_REMINDER_CHANNEL")
                or yaml_config["slack"].get("reminder_channel")
            )
            config.slack.reminder_interval_sec = yaml_config["slack"].get(
                "reminder_interval_sec", config.slack.reminder_interval_sec
            )

        if "database" in yaml_config and "DATABASE_URL" not in os.environ:
            config.database.url = yaml_config["database"].get("url", config.database.url)

        if "logging" in yaml_config:
            config.logging.level = yaml_config["logging"].get(
                "level", config.logging.level
            )

        return config

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def to_flask_config(self) -> Dict[str, Any]:
        """Flatten into the keys the Flask app reads."""
        return {
            "ENVIRONMENT": self.environment,
            "DATABASE_URL": self.database.url,
            "SQL_ECHO": self.database.echo,
            "JWT_SECRET": self.api.jwt_secret,
            "TOKEN_TTL_HOURS": self.api.token_ttl_hours,
            "RATELIMIT_DEFAULT": self.api.rate_limit_default,
            "RATELIMIT_WRITE": self.api.rate_limit_write,
            "SLACK_BOT_TOKEN": self.slack.bot_token,
            "SLACK_SIGNING_SECRET": self.slack.signing_secret,
            "SLACK_REMINDER_CHANNEL": self.slack.reminder_channel,
            "SLACK_REMINDER_INTERVAL_SEC": self.slack.reminder_interval_sec,
            "SLACK_MAX_RETRIES": self.slack.max_retries,
            "SLACK_RETRY_BACKOFF_SEC": self.slack.retry_backoff_sec,
            "LOG_LEVEL": self.logging.level,
        }

    def validate(self) -> list[str]:
        """Validate configuration and return list of errors."""
        errors = []

        if not self.api.jwt_secret:
            errors.append("JWT_SECRET is required")

        if self.slack.bot_token and not self.slack.signing_secret:
            errors.append("SLACK_SIGNING_SECRET is required when SLACK_BOT_TOKEN is set")

        if self.slack.reminder_channel and not is_valid_channel_id(self.slack.reminder_channel):
            errors.append(
                f"SLACK_REMINDER_CHANNEL {self.slack.reminder_channel!r} is not a valid channel ID"
            )

        return errors
