"""
Logging setup and function decorators shared by every CastSmith module.

Each pipeline area logs through a named logger ("pipeline", "ingestion",
"transcript", "extraction", "storage", "publishing"). All of them write to
the same log file so a single ``logs/castsmith.log`` holds
the full story of a processing run.

Usage:
    from src.logger import setup_logging, log_function

    logger = setup_logging("pipeline", verbose=True)

    @log_function(logger_name="pipeline", log_args=True)
    def run_stage(episode_number):
        ...
"""

import functools
import logging
import time
from pathlib import Path
from typing import Any, Callable, Optional


DEFAULT_LOG_FILE = "logs/castsmith.log"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(
    logger_name: str,
    log_file: str = DEFAULT_LOG_FILE,
    verbose: bool = False,
    level: int = logging.INFO,
) -> logging.Logger:
    """
    Configure a named logger with a file handler and an optional console handler.

    Calling it twice for the same name returns the already configured logger.

    Args:
        logger_name: Logger name (e.g. "pipeline")
        log_file: Destination file, parent directories are created
        verbose: Also log DEBUG and above to the console
        level: Level for the file handler

    Returns:
        The configured logger
    """
    logger = logging.getLogger(logger_name)
    if logger.handlers:
        return logger

    logger.setLevel(logging.DEBUG if verbose else level)

    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    file_handler = logging.FileHandler(log_path, encoding="utf-8")
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(file_handler)

    if verbose:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(logging.DEBUG)
        console_handler.setFormatter(logging.Formatter("%(levelname)s [%(name)s] %(message)s"))
        logger.addHandler(console_handler)

    return logger


def setup_all_loggers(verbose: bool = False, log_file: str = DEFAULT_LOG_FILE) -> None:
    """Configure every CastSmith logger at once (used by the CLI entry point)."""
    for name in ("pipeline", "ingestion", "transcript", "extraction", "storage", "publishing"):
        setup_logging(name, log_file=log_file, verbose=verbose)


def log_function(
    logger_name: Optional[str] = None,
    level: int = logging.DEBUG,
    log_args: bool = False,
    log_result: bool = False,
    log_execution_time: bool = True,
) -> Callable:
    """
    Decorator logging entry, exit, duration and exceptions of a function.

    The decorator never configures handlers itself: messages go to whatever the
    named logger is attached to, so library code stays quiet until the CLI calls
    ``setup_logging``.

    Args:
        logger_name: Logger to use (defaults to the function's module)
        level: Level for entry/exit messages
        log_args: Include positional and keyword arguments in the entry message
        log_result: Include the return value in the exit message
        log_execution_time: Include the elapsed time in the exit message

    Example:
        @log_function(logger_name="storage", log_args=True)
        def upload_file(path, key):
            ...
    """

    def decorator(func: Callable) -> Callable:
        name = logger_name or func.__module__

        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            logger = logging.getLogger(name)
            func_name = func.__qualname__

            entry_msg = f"Calling {func_name}"
            if log_args and (args or kwargs):
                shown = [repr(a) for a in args] + [f"{k}={v!r}" for k, v in kwargs.items()]
                entry_msg += f" with args: {', '.join(shown)}"
            logger.log(level, entry_msg)

            start_time = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                elapsed = time.perf_counter() - start_time
                logger.error(
                    f"Exception in {func_name} after {elapsed:.2f}s: {type(e).__name__}: {e}"
                )
                raise

            exit_msg = f"Completed {func_name}"
            if log_execution_time:
                exit_msg += f" in {time.perf_counter() - start_time:.2f}s"
            if log_result:
                exit_msg += f" with result: {result!r}"
            logger.log(level, exit_msg)
            return result

        return wrapper

    return decorator


def log_with_timer(logger_name: Optional[str] = None) -> Callable:
    """Shortcut for ``log_function`` logging entry/exit at INFO with timing only."""
    return log_function(logger_name=logger_name, level=logging.INFO)
