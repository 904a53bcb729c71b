import logging

from loguru import logger

from console_bridge.log import setup_logging


def test_stdlib_logging_is_routed_through_loguru() -> None:
    setup_logging("debug")
    messages: list[str] = []
    sink_id = logger.add(lambda message: messages.append(message.record["message"]), level="DEBUG")
    try:
        logging.getLogger("console_bridge.tests").warning("routed %s", "through")
        logging.getLogger("httpx").info("suppressed")
    finally:
        logger.remove(sink_id)

    assert "routed through" in messages
    assert "suppressed" not in messages
