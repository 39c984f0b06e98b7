"""
Standard-library logging bridged into loguru.
"""
import logging

from sku_metrics.utils.logger import BRIDGED_LOGGERS, InterceptHandler, bridge_std_logging, log


def _capture():
    messages = []
    sink_id = log.add(lambda message: messages.append(message.record), level="DEBUG")
    return messages, sink_id


def test_server_loggers_are_bridged_on_import():
    for name in BRIDGED_LOGGERS:
        std_logger = logging.getLogger(name)
        assert any(isinstance(h, InterceptHandler) for h in std_logger.handlers)
        assert std_logger.propagate is False


def test_uvicorn_warning_reaches_loguru_sinks():
    messages, sink_id = _capture()
    try:
        logging.getLogger("uvicorn.error").warning("worker %s restarted", 3)
    finally:
        log.remove(sink_id)

    assert [(m["level"].name, m["message"]) for m in messages] == [("WARNING", "worker 3 restarted")]


def test_exception_info_is_kept():
    messages, sink_id = _capture()
    try:
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            logging.getLogger("aiohttp.client").exception("request failed")
    finally:
        log.remove(sink_id)

    assert messages[0]["level"].name == "ERROR"
    assert messages[0]["exception"].type is RuntimeError


def test_custom_level_numbers_pass_through():
    bridge_std_logging(["sku_metrics.tests.custom"])
    messages, sink_id = _capture()
    try:
        logging.getLogger("sku_metrics.tests.custom").log(25, "between info and warning")
    finally:
        log.remove(sink_id)

    assert messages[0]["message"] == "between info and warning"
    assert messages[0]["level"].no == 25
