"""Tests for structured logging."""

import io
import logging
import json

from flask import Flask

from stowkiosk.utils.logging_config import get_logger, log_with_fields, setup_logging


class TestStructuredLogging:

    def _capture(self):
        stream = io.StringIO()
        setup_logging(level='DEBUG', handler=logging.StreamHandler(stream))
        return stream

    def test_get_logger_prefixes_tree(self):
        assert get_logger('stations').name == 'stowkiosk.stations'
        assert get_logger('stowkiosk.slack').name == 'stowkiosk.slack'

    def test_extra_fields_in_json(self):
        stream = self._capture()

        log_with_fields(get_logger('stations'), 'info', 'Station updated', station_id=5, status='PS')

        record = json.loads(stream.getvalue().strip())
        assert record['message'] == 'Station updated'
        assert record['logger'] == 'stowkiosk.stations'
        assert record['station_id'] == 5
        assert record['timestamp'].endswith('Z')
        assert 'request' not in record

    def test_request_context_attached(self):
        stream = self._capture()
        app = Flask(__name__)

        with app.test_request_context('/api/stations/5', method='PUT'):
            get_logger('api').warning('Rejected')

        record = json.loads(stream.getvalue().strip())
        assert record['request']['method'] == 'PUT'
        assert record['request']['path'] == '/api/stations/5'
