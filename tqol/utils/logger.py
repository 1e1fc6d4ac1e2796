"""
Logging infrastructure for the Transport QoL engine.

Provides:
- Structured logging with timestamps
- Different log levels (DEBUG, INFO, WARNING, ERROR)
- Console output on stderr, plus an optional log file
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(filename)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S,%f"


class MillisecondsFormatter(logging.Formatter):
    """Custom formatter that includes milliseconds and aligns log levels."""

    def formatTime(self, record, datefmt=None):  # noqa: N802 - must match parent class method name
        """Override formatTime to include milliseconds."""
        ct = datetime.fromtimestamp(record.created)
        if datefmt and "%f" in datefmt:
            s = ct.strftime(datefmt.replace(",%f", ""))
            return s + f",{int(record.msecs):03d}"
        elif datefmt:
            return ct.strftime(datefmt)
        else:
            return ct.strftime("%Y-%m-%d %H:%M:%S") + f",{int(record.msecs):03d}"


def _format_kwargs(message: str, kwargs: dict) -> str:
    if not kwargs:
        return message
    formatted_data = " ".join(f"{k}={v}" for k, v in kwargs.items())
    return f"{message} [{formatted_data}]"


class PipelineLogger:
    """
    Centralized logger for scoring runs with structured output.
    """

    def __init__(
        self,
        name: str = "tqol",
        log_level: str = "INFO",
        log_file: Optional[str] = None,
        log_dir: Optional[Path] = None,
    ):
        """
        Initialize the logger.

        Args:
            name: Logger name
            log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
            log_file: Optional log file name
            log_dir: Directory for log files (defaults to ./logs)
        """
        self.logger = logging.getLogger(name)
        # The file gets everything; the console handler filters at log_level
        self.logger.setLevel(logging.DEBUG if log_file else getattr(logging, log_level.upper()))

        # Prevent propagation to root logger to avoid duplicate logs
        self.logger.propagate = False

        if self.logger.handlers:
            self.logger.handlers.clear()

        formatter = MillisecondsFormatter(LOG_FORMAT, datefmt=DATE_FORMAT)

        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(getattr(logging, log_level.upper()))
        console_handler.setFormatter(formatter)
        self.logger.addHandler(console_handler)

        if log_file:
            if log_dir is None:
                log_dir = Path.cwd() / "logs"

            log_dir.mkdir(parents=True, exist_ok=True)
            log_path = log_dir / log_file

            file_handler = logging.FileHandler(log_path)
            file_handler.setLevel(logging.DEBUG)  # Log everything to file
            file_handler.setFormatter(formatter)
            self.logger.addHandler(file_handler)

            self.info(f"Logging to file: {log_path}")

    def debug(self, message: str, **kwargs):
        """Log debug message with optional structured data."""
        self.logger.debug(_format_kwargs(message, kwargs), stacklevel=2)

    def info(self, message: str, **kwargs):
        """Log info message with optional structured data."""
        self.logger.info(_format_kwargs(message, kwargs), stacklevel=2)

    def log_city_scored(self, city_id: str, composite: float, grade: str, confidence_tier: str):
        """Log completion of one city's scoring."""
        self.info(
            "Scored city",
            city_id=city_id,
            composite=round(composite, 4),
            grade=grade,
            confidence_tier=confidence_tier,
        )

    def close(self):
        """Close and detach file handlers."""
        for handler in list(self.logger.handlers):
            if isinstance(handler, logging.FileHandler):
                handler.close()
                self.logger.removeHandler(handler)


# ============================================================================
# Global Logging Configuration
# ============================================================================


def configure_global_logging(log_level: str = "INFO"):
    """
    Configure the root logger with the unified format.

    Call this early in application startup so library loggers
    (``logging.getLogger(__name__)``) share one format. Output goes to
    stderr so command output on stdout stays machine-readable.

    Args:
        log_level: Logging level to apply globally (DEBUG, INFO, WARNING, ERROR)
    """
    formatter = MillisecondsFormatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper()))
    root_logger.handlers.clear()

    root_handler = logging.StreamHandler(sys.stderr)
    root_handler.setLevel(getattr(logging, log_level.upper()))
    root_handler.setFormatter(formatter)
    root_logger.addHandler(root_handler)
