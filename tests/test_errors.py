"""Unit tests for the error taxonomy, settings and logging setup."""

import logging

import pytest
import structlog

from workitem_tracker.config import Settings, get_settings, reset_settings
from workitem_tracker.errors import (
    BadParameterError,
    BadValueError,
    InternalError,
    NotFoundError,
    WorkItemError,
    wrap_error,
)
from workitem_tracker.logging_config import configure_logging
from workitem_tracker.workitem.enums import Kind


class TestErrors:
    """Tests for error messages, status codes and wrapping."""

    def test_bad_parameter_message(self):
        err = BadParameterError("data.attributes.version", "abc")
        assert err.message == "Bad value for parameter 'data.attributes.version': 'abc'"
        assert err.status_code == 400

    def test_bad_parameter_free_form_message(self):
        err = BadParameterError.from_message("cannot update type along with other fields")
        assert str(err) == "cannot update type along with other fields"

    def test_bad_value_is_bad_parameter(self):
        err = BadValueError("system.title", Kind.STRING, 12)
        assert isinstance(err, BadParameterError)
        assert err.code == "BAD_VALUE"
        assert "system.title" in err.message

    def test_not_found_message(self):
        err = NotFoundError("space", "123")
        assert err.message == "space with id '123' not found"
        assert err.status_code == 404

    def test_to_dict(self):
        assert NotFoundError("label", "x").to_dict() == {
            "error": "not_found",
            "code": "NOT_FOUND",
            "message": "label with id 'x' not found",
        }

    def test_wrap_keeps_class_and_prefixes_message(self):
        err = NotFoundError("label", "x")
        wrapped = err.wrap("failed to retrieve label")
        assert isinstance(wrapped, NotFoundError)
        assert wrapped.message == "failed to retrieve label: label with id 'x' not found"
        assert str(wrapped) == wrapped.message
        assert err.message == "label with id 'x' not found"

    def test_wrap_error_turns_foreign_errors_into_internal(self):
        wrapped = wrap_error(RuntimeError("db down"), "failed to load")
        assert isinstance(wrapped, InternalError)
        assert wrapped.message == "failed to load: db down"

    def test_wrap_error_keeps_taxonomy_errors(self):
        wrapped = wrap_error(BadParameterError("p", 1), "context")
        assert isinstance(wrapped, BadParameterError)

    def test_all_errors_share_base(self):
        for err in (BadParameterError("p"), NotFoundError("e", 1), InternalError("x")):
            assert isinstance(err, WorkItemError)


class TestSettings:
    """Tests for environment driven settings."""

    def test_defaults(self):
        settings = Settings()
        assert settings.api_base_url == "http://localhost:8080"
        assert settings.codebase_default_type == "git"
        assert settings.codebase_default_stack_id == "java-centos"
        assert settings.csv_list_delimiter == ";"
        assert settings.page_limit_default == 20
        assert settings.page_limit_max == 100

    def test_reads_prefixed_environment(self, monkeypatch):
        monkeypatch.setenv("WIT_API_BASE_URL", "https://wit.example.com")
        monkeypatch.setenv("WIT_PAGE_LIMIT_MAX", "50")
        reset_settings()
        settings = get_settings()
        assert settings.api_base_url == "https://wit.example.com"
        assert settings.page_limit_max == 50

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()


class TestConfigureLogging:
    """Tests for logging setup."""

    @pytest.mark.parametrize("log_format", ["json", "console"])
    def test_configures_structlog(self, log_format):
        configure_logging(Settings(log_format=log_format, log_level="debug"))
        assert structlog.is_configured()
        structlog.get_logger().info("configured", log_format=log_format)
        logging.getLogger(__name__).debug("stdlib logging still works")
        structlog.reset_defaults()
