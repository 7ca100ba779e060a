"""Unit tests for core.utils.logging_config."""
import json
import logging
from unittest.mock import MagicMock

from flask import Flask

from manuvest.core.utils.logging_config import (
    DevelopmentFormatter, JSONFormatter, RequestContextFilter, log_with_context,
    setup_logging,
)


def _record(msg='Transferred Conveyor Belt System', **attrs):
    record = logging.LogRecord('manuvest.budget.services.transfer', logging.INFO,
                               __file__, 10, msg, (), None, func='transfer')
    for key, value in attrs.items():
        setattr(record, key, value)
    return record


class TestFormatters:

    def test_json_includes_context(self):
        line = JSONFormatter().format(_record(context={'item_id': 'bpi2', 'user': 'Admin'}))
        entry = json.loads(line)
        assert entry['level'] == 'INFO'
        assert entry['logger'] == 'manuvest.budget.services.transfer'
        assert entry['msg'] == 'Transferred Conveyor Belt System'
        assert entry['where'] == 'transfer:10'
        assert entry['context'] == {'item_id': 'bpi2', 'user': 'Admin'}
        assert 'request' not in entry

    def test_json_includes_request(self):
        line = JSONFormatter().format(_record(http_method='POST', http_path='/pr/api/requests'))
        assert json.loads(line)['request'] == 'POST /pr/api/requests'

    def test_development_line(self):
        line = DevelopmentFormatter(use_color=False).format(
            _record(context={'item_id': 'bpi2'}))
        assert 'INFO' in line
        assert 'budget.services.transfer: Transferred Conveyor Belt System' in line
        assert line.endswith('[item_id=bpi2]')


class TestRequestContextFilter:

    def test_outside_request(self):
        record = _record()
        assert RequestContextFilter().filter(record) is True
        assert record.http_path is None

    def test_inside_request(self):
        app = Flask(__name__)
        record = _record()
        with app.test_request_context('/budget/api/plans', method='GET'):
            RequestContextFilter().filter(record)
        assert record.http_method == 'GET'
        assert record.http_path == '/budget/api/plans'


class TestSetup:

    def test_repeated_setup_keeps_one_handler(self):
        setup_logging('DEBUG', json_format=True)
        root = setup_logging('WARNING', json_format=False)
        assert len(root.handlers) == 1
        assert root.level == logging.WARNING
        assert root.propagate is False
        assert isinstance(root.handlers[0].formatter, DevelopmentFormatter)

    def test_log_with_context_drops_none(self):
        logger = MagicMock()
        log_with_context(logger, logging.INFO, 'PR approved', pr_id='pr2', note=None)
        logger.log.assert_called_once_with(
            logging.INFO, 'PR approved', extra={'context': {'pr_id': 'pr2'}}, stacklevel=2)
