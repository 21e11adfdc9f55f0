"""
Unit Tests for Logging Helpers

Run with:
    pytest tests/unit/test_logging.py -v
"""

import logging

from core.logging import get_logger, log_api_request, log_api_response, logger, set_log_level


class TestLogging:

    def test_get_logger_is_child_of_app_logger(self):
        assert get_logger("exchanges.liqui").name == "coinrest.exchanges.liqui"
        assert logger.name == "coinrest"

    def test_set_log_level(self):
        original = logger.level
        root_original = logging.getLogger().level
        try:
            set_log_level("debug")
            assert logger.level == logging.DEBUG
            set_log_level("nonsense")
            assert logger.level == logging.INFO
        finally:
            logger.setLevel(original)
            logging.getLogger().setLevel(root_original)

    def test_api_request_and_response_logged_at_debug(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="coinrest"):
            log_api_request("liqui", "POST", "/tapi", {"nonce": 5})
            log_api_response("liqui", "/tapi", 200, 0.25)

        messages = [r.getMessage() for r in caplog.records]
        assert "API Request: liqui POST /tapi | Params: {'nonce': 5}" in messages
        assert "API Response: liqui /tapi | Status: 200 | Time: 0.250s" in messages
