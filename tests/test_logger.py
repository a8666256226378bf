import logging

from emailer.logger import get_logger


def test_get_logger_reuses_existing_logger():
    logger = get_logger("emailer.test")
    handler_count = len(logger.handlers)

    same_logger = get_logger("emailer.test")
    assert logger is same_logger
    assert len(same_logger.handlers) == handler_count


def test_names_are_namespaced_under_emailer():
    assert get_logger("smtp").name == "emailer.smtp"
    assert get_logger("emailer.builder").name == "emailer.builder"
    assert get_logger().name == "emailer"


def test_library_root_only_has_null_handler():
    handlers = get_logger().handlers
    assert handlers
    assert all(isinstance(h, logging.NullHandler) for h in handlers)
