"""Logging configuration for psm-reconciler.

Provides configurable logging with:
- File-based logging with rotation
- Console output
- Timing of each resource operation on the psm_reconciler.perf logger

Environment Variables:
    PSM_LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: INFO)
    PSM_LOG_FILE: Path to log file (default: ~/.psm-reconciler/psm-reconciler.log)
    PSM_LOG_MAX_SIZE: Max log file size in MB (default: 10)
    PSM_LOG_BACKUPS: Number of backup files to keep (default: 5)

Usage:
    from psm_reconciler.utils.logging_config import setup_logging, timed

    setup_logging()  # Call once at startup

    @timed("create")
    def create(self, data):
        ...

    # Or use context manager for sections:
    with timed_section("put_policy", resource="policy-1"):
        ...
"""
import functools
import logging
import os
import time
from contextlib import contextmanager
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Callable, Optional

# Child of the package logger; filter on its name to get timings only.
perf_logger = logging.getLogger("psm_reconciler.perf")

LOG_FORMAT = "%(asctime)s.%(msecs)03d | %(name)-32s | %(levelname)-7s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def get_log_level() -> int:
    """Console level from PSM_LOG_LEVEL, INFO if unset or unknown."""
    level = logging.getLevelName(os.environ.get("PSM_LOG_LEVEL", "INFO").upper())
    return level if isinstance(level, int) else logging.INFO


def get_log_file() -> Path:
    default = Path.home() / ".psm-reconciler" / "psm-reconciler.log"
    return Path(os.environ.get("PSM_LOG_FILE", default)).expanduser()


def setup_logging() -> None:
    """Attach a console handler and a rotating file handler to the package logger.

    The console honours PSM_LOG_LEVEL; the file keeps everything down to
    DEBUG. Timing records from perf_logger reach both through propagation.
    Calling this again replaces the handlers.
    """
    log_level = get_log_level()
    log_file = get_log_file()
    log_file.parent.mkdir(parents=True, exist_ok=True)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)

    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=int(os.environ.get("PSM_LOG_MAX_SIZE", "10")) * 1024 * 1024,
        backupCount=int(os.environ.get("PSM_LOG_BACKUPS", "5")),
        encoding="utf-8",
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)

    package_logger = logging.getLogger("psm_reconciler")
    package_logger.setLevel(logging.DEBUG)
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()
    package_logger.addHandler(console_handler)
    package_logger.addHandler(file_handler)

    package_logger.debug(f"Logging to {log_file} (console level {logging.getLevelName(log_level)})")


def _resource_label(args: tuple, kwargs: dict) -> str:
    """Best-effort object label: '<kind>/<name>' from (self, data)."""
    owner = args[0] if args else None
    data = args[1] if len(args) > 1 else kwargs.get("data")
    kind = getattr(owner, "kind", None)
    name = data.get("name") if hasattr(data, "get") else None
    if kind and name:
        return f"{kind}/{name}"
    return kind or name or "N/A"


def _log_timing(operation: str, label: str, start: float, error: Optional[Exception] = None,
                extra: str = "") -> None:
    elapsed = (time.perf_counter() - start) * 1000  # ms
    msg = f"{operation:12s} | {label:32s} | {elapsed:8.2f}ms | "
    msg += f"FAIL: {error}" if error else "OK"
    if extra:
        msg += f" | {extra}"
    if error:
        perf_logger.warning(msg)
    else:
        perf_logger.info(msg)


def timed(operation: str) -> Callable:
    """Decorator to log execution time of a resource operation.

    The object label is taken from ``self.kind`` and the ``name`` field of
    the ResourceData passed as first argument.

    Usage:
        @timed("read")
        def read(self, data):
            ...
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            label = _resource_label(args, kwargs)
            start = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                _log_timing(operation, label, start, error=e)
                raise
            _log_timing(operation, label, start)
            return result

        return wrapper

    return decorator


@contextmanager
def timed_section(operation: str, resource: Optional[str] = None, **extra):
    """Context manager for timing code sections.

    Args:
        operation: Name of the operation
        resource: Object label
        **extra: Additional context to log

    Usage:
        with timed_section("put_policy", resource="networksecuritypolicy/p1"):
            ...
    """
    start = time.perf_counter()
    extra_str = " | ".join(f"{k}={v}" for k, v in extra.items()) if extra else ""

    try:
        yield
    except Exception as e:
        _log_timing(operation, resource or "N/A", start, error=e, extra=extra_str)
        raise
    _log_timing(operation, resource or "N/A", start, extra=extra_str)
