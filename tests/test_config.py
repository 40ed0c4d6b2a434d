"""Tests for configuration loading."""

import pytest

from stowkiosk.config import Config, is_valid_channel_id


class TestChannelValidation:

    @pytest.mark.parametrize('channel', ['C12345678', 'C0ABCDEF123'])
    def test_valid(self, channel):
        assert is_valid_channel_id(channel)

    @pytest.mark.parametrize('channel', ['', None, 'c12345678', 'D12345678', 'C123', '#general'])
    def test_invalid(self, channel):
        assert not is_valid_channel_id(channel)


class TestConfig:
    """Test environment and YAML loading."""

    @pytest.fixture(autouse=True)
    def clean_env(self, monkeypatch):
        for name in ('KIOSK_PORT', 'PORT', 'JWT_SECRET', 'SLACK_BOT_TOKEN', 'SLACK_SIGNING_SECRET',
                     'SLACK_REMINDER_CHANNEL', 'DATABASE_URL', 'KIOSK_ENV'):
            monkeypatch.delenv(name, raising=False)

    def test_defaults(self):
        config = Config.from_env()

        assert config.api.port == 3000
        assert config.database.url == 'sqlite:///data/kiosk.db'
        assert config.slack.reminder_interval_sec == 3600
        assert not config.is_production

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv('KIOSK_PORT', '8080')
        monkeypatch.setenv('KIOSK_ENV', 'production')
        monkeypatch.setenv('JWT_SECRET', 'shh')

        config = Config.from_env()

        assert config.api.port == 8080
        assert config.is_production
        assert config.to_flask_config()['JWT_SECRET'] == 'shh'

    def test_validate_reports_problems(self, monkeypatch):
        monkeypatch.setenv('SLACK_BOT_TOKEN', 'xoxb-test')
        monkeypatch.setenv('SLACK_REMINDER_CHANNEL', 'general')

        errors = Config.from_env().validate()

        assert 'JWT_SECRET is required' in errors
        assert 'SLACK_SIGNING_SECRET is required when SLACK_BOT_TOKEN is set' in errors
        assert any('SLACK_REMINDER_CHANNEL' in e for e in errors)

    def test_from_yaml(self, tmp_path, monkeypatch):
        monkeypatch.setenv('JWT_SECRET', 'from-env')
        path = tmp_path / 'kiosk.yaml'
        path.write_text(
            "api:\n"
            "  port: 9000\n"
            "  jwt_secret: ignored\n"
            "slack:\n"
            "  reminder_channel: C12345678\n"
            "database:\n"
            "  url: sqlite:///tmp/other.db\n"
        )

        config = Config.from_yaml(str(path))

        assert config.api.port == 9000
        assert config.api.jwt_secret == 'from-env'
        assert config.slack.reminder_channel == 'C12345678'
        assert config.database.url == 'sqlite:///tmp/other.db'

    def test_from_missing_yaml_uses_env(self, tmp_path):
        config = Config.from_yaml(str(tmp_path / 'absent.yaml'))
        assert config.api.port == 3000
