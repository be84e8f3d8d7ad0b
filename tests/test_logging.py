"""Tests for logging configuration."""

import structlog

from devrun.utils.logging import _redact_sensitive, bind_supervisor_context, setup_logging


def test_redacts_sensitive_keys():
    event = {"event": "Starting task", "NPM_TOKEN": "abc", "task": "dev:watch"}
    
    result = _redact_sensitive(None, None, event)
    
    assert result["NPM_TOKEN"] == "[REDACTED]"
    assert result["task"] == "dev:watch"


def test_bind_supervisor_context():
    bind_supervisor_context(pid=1234)
    
    assert structlog.contextvars.get_contextvars() == {"supervisorPid": 1234}


def test_setup_logging_json():
    try:
        setup_logging("DEBUG", "json")
        
        config = structlog.get_config()
        assert isinstance(config["processors"][-1], structlog.processors.JSONRenderer)
        assert _redact_sensitive in config["processors"]
    finally:
        structlog.reset_defaults()


def test_setup_logging_console():
    try:
        setup_logging("INFO", "console")
        
        config = structlog.get_config()
        assert isinstance(config["processors"][-1], structlog.dev.ConsoleRenderer)
    finally:
        structlog.reset_defaults()
