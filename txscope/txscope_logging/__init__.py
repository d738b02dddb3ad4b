"""
Structured logging for txscope.

JSON logs with timestamp, event_type and address context.
Use get_logger() in every module for aggregation-friendly output.
"""

from txscope.txscope_logging.logger import bind_address, configure_logging, get_logger

__all__ = ["bind_address", "configure_logging", "get_logger"]
