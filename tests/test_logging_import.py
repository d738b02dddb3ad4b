"""
Test that txscope_logging can be imported without circular import and logger works.
"""

from __future__ import annotations


def test_logging_import():
    """Import get_logger from txscope_logging and use the logger."""
    from txscope.txscope_logging import get_logger

    logger = get_logger("test")
    assert logger is not None
    assert hasattr(logger, "info")
    assert hasattr(logger, "debug")
    assert hasattr(logger, "warning")
    assert hasattr(logger, "error")
    # Smoke test: call info (should not raise)
    logger.info("test_message", key="value")


def test_bind_address_logger():
    from txscope.txscope_logging import bind_address

    logger = bind_address("9QCfNuQuxct1Xk9ytFYgxc5fThmTzL4pHQnSjjrVUrka")
    logger.info("traversal_started", page_size=1000)


def test_shorten_addresses_truncates_long_values():
    from txscope.txscope_logging.logger import _shorten_addresses

    out = _shorten_addresses(None, "info", {"address": "9QCfNuQuxct1Xk9ytFYgxc5fThmTzL4pHQnSjjrVUrka", "items": 3})
    assert out["address"] == "9QCfNuQuxct1Xk9y..."
    assert out["items"] == 3


def test_package_imports_without_cycles():
    import txscope.config
    import txscope.engine
    import txscope.history
    import txscope.rpc

    assert txscope.history.SignatureTraverser is not None
    assert txscope.config.Settings is not None


def test_event_renamed_to_event_type():
    from txscope.txscope_logging.logger import _event_to_event_type

    out = _event_to_event_type(None, "info", {"event": "page_fetched", "items": 2})
    assert out == {"event_type": "page_fetched", "message": "page_fetched", "items": 2}
