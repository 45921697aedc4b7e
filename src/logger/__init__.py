"""Logging helpers shared across CastSmith."""

from .logging_decorator import setup_logging, setup_all_loggers, log_function, log_with_timer

__all__ = ["setup_logging", "setup_all_loggers", "log_function", "log_with_timer"]
