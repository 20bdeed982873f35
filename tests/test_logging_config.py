"""Tests for logging_config.py utility functions."""

import os
import sys
import logging
from unittest.mock import patch
from images_optimizer.core.logging_config import (
    get_logger,
    set_debug_logging,
    setup_logger,
)


class TestSetupLogger:
    """Tests for setup_logger function."""

    def test_setup_logger_default_parameters(self):
        """Test setup_logger with default parameters."""
        with patch.dict(os.environ, {}, clear=False):
            os.environ.pop("LOG_LEVEL", None)
            test_logger = setup_logger()
        assert test_logger.name == "images-optimizer"
        assert test_logger.level == logging.INFO
        assert len(test_logger.handlers) == 1
        assert not test_logger.propagate

    def test_setup_logger_custom_name(self):
        """Test setup_logger with custom name."""
        custom_name = "test-custom-logger"
        test_logger = setup_logger(name=custom_name)
        assert test_logger.name == custom_name

    def test_setup_logger_custom_level_by_parameter(self):
        """Test setup_logger with custom level via parameter."""
        test_logger = setup_logger(name="test-param-level", level="DEBUG")
        assert test_logger.level == logging.DEBUG

    def test_setup_logger_custom_level_by_env_var(self):
        """Test setup_logger with custom level via environment variable."""
        with patch.dict(os.environ, {"LOG_LEVEL": "WARNING"}):
            test_logger = setup_logger(name="test-env-level")
            assert test_logger.level == logging.WARNING

    def test_setup_logger_invalid_level_defaults_to_info(self):
        """Test setup_logger with invalid level defaults to INFO."""
        test_logger = setup_logger(name="test-invalid-level", level="INVALID_LEVEL")
        assert test_logger.level == logging.INFO

    def test_setup_logger_structured_format(self):
        """Test setup_logger with structured format."""
        with patch.dict(os.environ, {}, clear=False):
            os.environ.pop("LOG_FORMAT", None)
            test_logger = setup_logger(name="test-structured", format_type="structured")
        format_string = test_logger.handlers[0].formatter._fmt
        assert "%(asctime)s" in format_string
        assert "%(name)s" in format_string
        assert "%(levelname)" in format_string
        assert "%(filename)s" in format_string
        assert "%(lineno)d" in format_string
        assert "%(funcName)s" in format_string

    def test_setup_logger_env_format_override(self):
        """Test setup_logger format override via environment variable."""
        with patch.dict(os.environ, {"LOG_FORMAT": "simple"}):
            test_logger = setup_logger(name="test-env-format", format_type="structured")
            format_string = test_logger.handlers[0].formatter._fmt
            assert "%(filename)s" not in format_string
            assert "%(message)s" in format_string

    def test_setup_logger_no_duplicate_handlers(self):
        """Test that setup_logger doesn't add duplicate handlers."""
        logger_name = "test-no-duplicates"
        test_logger1 = setup_logger(name=logger_name)
        test_logger2 = setup_logger(name=logger_name)

        assert test_logger1 is test_logger2
        assert len(test_logger1.handlers) == 1

    def test_setup_logger_handler_uses_stdout(self):
        """Test that logger handler uses stdout."""
        test_logger = setup_logger(name="test-stdout")
        assert test_logger.handlers[0].stream is sys.stdout


class TestGetLogger:
    """Tests for get_logger function."""

    def test_get_logger_default_name(self):
        test_logger = get_logger()
        assert test_logger.name == "images-optimizer"

    def test_get_logger_returns_configured_logger(self):
        test_logger = get_logger(name="test-configured")
        assert len(test_logger.handlers) == 1
        assert not test_logger.propagate


class TestSetDebugLogging:
    """Tests for set_debug_logging."""

    def test_set_debug_logging_lowers_levels(self):
        test_logger = setup_logger(name="test-debug-switch", level="INFO")
        root = logging.getLogger()
        previous_root_level = root.level
        try:
            set_debug_logging(test_logger)
            assert test_logger.level == logging.DEBUG
            assert root.level == logging.DEBUG
        finally:
            root.setLevel(previous_root_level)
