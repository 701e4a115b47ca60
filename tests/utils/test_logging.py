import logging

from blogstore.utils import camel_to_snake
from blogstore.utils.logging import (
    ROOT_LOGGER,
    CorrelationIdFilter,
    get_correlation_id,
    get_logger,
    set_correlation_id,
    time_call,
)


def test_correlation_id_round_trip():
    token = set_correlation_id("test-token")
    assert token == "test-token"
    assert get_correlation_id() == "test-token"


def test_generated_correlation_ids_are_unique():
    assert set_correlation_id() != set_correlation_id()


def test_loggers_live_under_package_root():
    assert get_logger("tests.logging").name == f"{ROOT_LOGGER}.tests.logging"
    root = logging.getLogger(ROOT_LOGGER)
    assert any(
        isinstance(f, CorrelationIdFilter) for handler in root.handlers for f in handler.filters
    )


def test_time_call_logs_duration(caplog):
    logger = get_logger("tests.logging")
    caplog.set_level(logging.DEBUG, logger=logger.name)
    with time_call("unit-test", logger, sql="SELECT 1", params=[1], threshold_ms=10_000) as timer:
        pass
    records = [record for record in caplog.records if record.name == logger.name]
    assert any("unit-test took" in record.message for record in records)
    assert records[-1].levelno == logging.DEBUG
    assert records[-1].sql == "SELECT 1"
    assert timer.elapsed_ms >= 0


def test_slow_calls_are_warnings(caplog):
    logger = get_logger("tests.slow")
    caplog.set_level(logging.DEBUG, logger=logger.name)
    with time_call("slow-call", logger, threshold_ms=0):
        pass
    records = [record for record in caplog.records if record.name == logger.name]
    assert records[-1].levelno == logging.WARNING


def test_camel_to_snake():
    assert camel_to_snake("BlogPost") == "blog_post"
    assert camel_to_snake("HTTPRequestLog") == "http_request_log"
