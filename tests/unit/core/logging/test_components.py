"""
Tests for LoggingConfig, formatters, filters and handlers.
"""

import io
import json
import logging
import sys
from logging.handlers import RotatingFileHandler

import pytest

from webservice.core.logging.config import LogFormat, LoggingConfig, LogLevel
from webservice.core.logging.filters import (
    CorrelationIdFilter,
    ExtraFieldsFilter,
    clear_correlation_id,
    correlation_scope,
    get_correlation_id,
    set_correlation_id,
)
from webservice.core.logging.formatters import (
    ColoredFormatter,
    JSONFormatter,
    TextFormatter,
    get_formatter,
)
from webservice.core.logging.handlers import build_handlers, create_console_handler, create_file_handler


def make_record(msg="hello", level=logging.INFO, **extra):
    record = logging.LogRecord("webservice.test", level, __file__, 10, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestLoggingConfig:

    def test_defaults(self):
        config = LoggingConfig()

        assert config.level == LogLevel.INFO
        assert config.format == LogFormat.TEXT
        assert config.enable_console is True
        assert config.enable_correlation_id is True

    def test_create_coerces_strings(self):
        config = LoggingConfig.create(level="debug", format="JSON")

        assert config.level == LogLevel.DEBUG
        assert config.format == LogFormat.JSON

    def test_plain_constructor_coerces_strings(self):
        config = LoggingConfig(level="warning", format="colored")

        assert config.level == LogLevel.WARNING
        assert config.format == LogFormat.COLORED

    def test_invalid_level(self):
        with pytest.raises(ValueError):
            LoggingConfig.create(level="LOUD")

    def test_file_requires_path(self):
        with pytest.raises(ValueError, match="file_path"):
            LoggingConfig.create(enable_file=True)

    @pytest.mark.parametrize("kwargs", [{"max_bytes": 0}, {"backup_count": -1}])
    def test_invalid_rotation(self, kwargs):
        with pytest.raises(ValueError):
            LoggingConfig.create(**kwargs)

    def test_frozen(self):
        with pytest.raises(AttributeError):
            LoggingConfig().level = LogLevel.DEBUG

    def test_extra_fields_none(self):
        assert LoggingConfig.create(extra_fields=None).extra_fields == {}

    @pytest.mark.parametrize("level,numeric", [
        (LogLevel.DEBUG, logging.DEBUG),
        (LogLevel.WARNING, logging.WARNING),
        (LogLevel.CRITICAL, logging.CRITICAL),
    ])
    def test_numeric_level(self, level, numeric):
        assert level.numeric == numeric


class TestFormatters:

    def test_json_formatter(self):
        output = JSONFormatter().format(make_record(status=200, tags=["http"]))
        data = json.loads(output)

        assert data["level"] == "INFO"
        assert data["logger"] == "webservice.test"
        assert data["message"] == "hello"
        assert data["status"] == 200
        assert data["tags"] == ["http"]
        assert data["timestamp"].endswith("Z")
        assert "lineno" not in data

    def test_json_formatter_non_serializable_values(self):
        data = json.loads(JSONFormatter().format(make_record(obj=object())))

        assert data["obj"].startswith("<object object")

    def test_json_formatter_exception(self):
        try:
            raise ValueError("bad")
        except ValueError:
            record = make_record()
            record.exc_info = sys.exc_info()

        data = json.loads(JSONFormatter().format(record))

        assert "ValueError: bad" in data["exception"]

    def test_text_formatter_appends_extras(self):
        output = TextFormatter().format(make_record(status=404))

        assert "[INFO] [webservice.test] hello" in output
        assert output.endswith("status=404")

    def test_text_formatter_lists_and_spaces(self):
        output = TextFormatter().format(make_record(tags=["http", "ALERT"], ua="curl 8.0", id=""))

        assert output.endswith('tags=http,ALERT ua="curl 8.0" id=""')

    def test_colored_formatter_restores_levelname(self):
        record = make_record(level=logging.ERROR)
        output = ColoredFormatter().format(record)

        assert "\033[31mERROR\033[0m" in output
        assert record.levelname == "ERROR"

    @pytest.mark.parametrize("name,cls", [
        ("json", JSONFormatter),
        ("TEXT", TextFormatter),
        ("colored", ColoredFormatter),
    ])
    def test_get_formatter(self, name, cls):
        assert type(get_formatter(name)) is cls

    def test_get_formatter_accepts_enum(self):
        assert type(get_formatter(LogFormat.COLORED)) is ColoredFormatter

    def test_get_formatter_unknown(self):
        with pytest.raises(ValueError, match="Unknown format type"):
            get_formatter("xml")


class TestFilters:

    def teardown_method(self):
        clear_correlation_id()

    def test_correlation_id_roundtrip(self):
        assert get_correlation_id() is None
        set_correlation_id("abc")

        assert get_correlation_id() == "abc"

    def test_correlation_filter(self):
        set_correlation_id("abc")
        record = make_record()

        assert CorrelationIdFilter().filter(record) is True
        assert record.correlation_id == "abc"

    def test_correlation_filter_keeps_explicit_value(self):
        set_correlation_id("abc")
        record = make_record(correlation_id="given")

        CorrelationIdFilter().filter(record)

        assert record.correlation_id == "given"

    def test_correlation_filter_without_id(self):
        record = make_record()
        CorrelationIdFilter().filter(record)

        assert not hasattr(record, "correlation_id")

    def test_correlation_scope_restores_previous(self):
        set_correlation_id("outer")

        with correlation_scope("inner"):
            assert get_correlation_id() == "inner"

        assert get_correlation_id() == "outer"

    def test_correlation_scope_restores_on_error(self):
        with pytest.raises(RuntimeError):
            with correlation_scope("inner"):
                raise RuntimeError("boom")

        assert get_correlation_id() is None

    def test_extra_fields_filter(self):
        record = make_record(env="given")
        ExtraFieldsFilter({"service": "billing", "env": "prod"}).filter(record)

        assert record.service == "billing"
        assert record.env == "given"


class TestHandlers:

    def test_console_handler(self):
        stream = io.StringIO()
        handler = create_console_handler(
            logging.WARNING, TextFormatter(), [ExtraFieldsFilter({"app": "x"})], stream=stream
        )
        logger = logging.getLogger("webservice.test.console")
        logger.propagate = False
        logger.setLevel(logging.DEBUG)
        logger.addHandler(handler)

        logger.info("skipped")
        logger.warning("kept")
        logger.removeHandler(handler)

        assert handler.level == logging.WARNING
        assert "skipped" not in stream.getvalue()
        assert "kept app=x" in stream.getvalue()

    def test_file_handler_creates_directory(self, tmp_path):
        path = tmp_path / "nested" / "dir" / "app.log"
        handler = create_file_handler(str(path), logging.INFO, JSONFormatter(), max_bytes=1024, backup_count=2)

        assert isinstance(handler, RotatingFileHandler)
        assert path.parent.is_dir()
        assert handler.maxBytes == 1024
        assert handler.backupCount == 2
        handler.close()

    def test_build_handlers(self, tmp_path):
        config = LoggingConfig.create(
            level="WARNING",
            format="json",
            enable_file=True,
            file_path=str(tmp_path / "app.log"),
            extra_fields={"service": "billing"},
        )

        handlers = build_handlers(config)
        try:
            console, file_handler = handlers
            assert isinstance(file_handler, RotatingFileHandler)
            assert all(h.level == logging.WARNING for h in handlers)
            assert all(isinstance(h.formatter, JSONFormatter) for h in handlers)
            assert [type(f) for f in console.filters] == [CorrelationIdFilter, ExtraFieldsFilter]
        finally:
            for handler in handlers:
                handler.close()

    def test_build_handlers_nothing_enabled(self):
        config = LoggingConfig.create(enable_console=False, enable_correlation_id=False)

        assert build_handlers(config) == []
