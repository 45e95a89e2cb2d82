# =============================================================================
# nextup_core/logging/config.py
# Logging Configuration for NextUP
# =============================================================================

import logging
import os
import sys
import time
from typing import Optional, Union


LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Chatty SDK internals: HTTP transport, PostgREST, realtime sockets
NOISY_LOGGERS = (
    "urllib3",
    "httpx",
    "httpcore",
    "hpack",
    "supabase",
    "postgrest",
    "realtime",
    "websockets",
)


def setup_logging(level: Optional[Union[int, str]] = None) -> None:
    """
    Send NextUP logs to stdout, where Streamlit's server log picks them up.

    The level comes from `level`, else NEXTUP_LOG_LEVEL, else INFO. SDK
    loggers stay at WARNING whatever the app level is.
    """
    if level is None:
        level = os.getenv("NEXTUP_LOG_LEVEL", "INFO").upper()

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger("nextup_core").debug("Logging initialized")


def get_logger(name: str) -> logging.Logger:
    """`logging.getLogger`, kept as the one import every module uses."""
    return logging.getLogger(name)


class LogContext:
    """
    Time a store call: debug lines on start and finish, a warning with the
    elapsed time if it raises. Exceptions are never suppressed.

        with LogContext(logger, "Listing projects"):
            response = builder.execute()
    """

    def __init__(self, logger: logging.Logger, operation: str, level: int = logging.DEBUG):
        self.logger = logger
        self.operation = operation
        self.level = level
        self.started: Optional[float] = None

    def __enter__(self):
        self.started = time.perf_counter()
        self.logger.log(self.level, f"{self.operation}...")
        return self

    @property
    def elapsed(self) -> float:
        return 0.0 if self.started is None else time.perf_counter() - self.started

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            self.logger.log(self.level, f"{self.operation} took {self.elapsed:.2f}s")
        else:
            self.logger.warning(f"{self.operation} failed after {self.elapsed:.2f}s: {exc_val!r}")
        return False
