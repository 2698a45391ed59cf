"""
Structured JSON logging for validation runs

Every line written to the log file is a JSON document carrying the run id,
so the results of one orchestrator run can be correlated with the
validator timings and failures that produced them.
"""

import json
import logging
import sys
import uuid
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union


class JSONFormatter(logging.Formatter):
    """Formatter that outputs structured JSON logs"""

    def __init__(self, run_id: str):
        super().__init__()
        self.run_id = run_id

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "run_id": self.run_id,
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "thread": record.thread,
        }

        if record.exc_info:
            # makeRecord may receive True if misused
            exc_info = (
                record.exc_info if isinstance(record.exc_info, tuple) else sys.exc_info()
            )
            if exc_info and exc_info[0] is not None:
                log_data["exception"] = {
                    "type": exc_info[0].__name__,
                    "message": str(exc_info[1]) if exc_info[1] else None,
                    "traceback": self.formatException(exc_info),
                }

        if hasattr(record, "extra_data"):
            log_data.update(record.extra_data)

        return json.dumps(log_data, ensure_ascii=False, default=str)


class ProductionLogger:
    """
    Run-scoped logger with structured JSON output and log rotation.

    Features:
    - JSON lines to ``<log_dir>/validation.log`` for machine parsing
    - Human-readable console output
    - Run ID correlation across validators
    - Structured fields passed as keyword arguments
    """

    def __init__(
        self,
        run_id: Optional[str] = None,
        log_level: str = "INFO",
        log_dir: Union[str, Path] = "logs",
        console: bool = True,
    ):
        """
        Args:
            run_id: Unique identifier for this validation run. Generated if not provided.
            log_level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            log_dir: Directory receiving the rotating JSON log file
            console: Also emit human-readable lines to stderr
        """
        self.run_id = run_id or self._generate_run_id()
        self.log_level = getattr(logging, log_level.upper())
        self.log_dir = Path(log_dir)
        self._setup_logging(console)

    def _generate_run_id(self) -> str:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        unique_suffix = str(uuid.uuid4())[:8]
        return f"{timestamp}-{unique_suffix}"

    def _setup_logging(self, console: bool) -> None:
        self.log_dir.mkdir(parents=True, exist_ok=True)

        self.logger = logging.getLogger(f"payroll_validation.run.{self.run_id}")
        self.logger.setLevel(self.log_level)

        # Prevent duplicate handlers if logger already exists
        if self.logger.handlers:
            return

        # JSON file handler with rotation (10MB, keep 10 files)
        json_handler = RotatingFileHandler(
            self.log_dir / "validation.log",
            maxBytes=10 * 1024 * 1024,
            backupCount=10,
            encoding="utf-8",
        )
        json_handler.setFormatter(JSONFormatter(self.run_id))
        json_handler.setLevel(self.log_level)
        self.logger.addHandler(json_handler)

        if console:
            console_handler = logging.StreamHandler()
            console_handler.setFormatter(
                logging.Formatter(
                    "%(asctime)s [%(levelname)s] [%(name)s] %(message)s",
                    datefmt="%Y-%m-%d %H:%M:%S",
                )
            )
            console_handler.setLevel(self.log_level)
            self.logger.addHandler(console_handler)

        self.logger.propagate = False

    def log_event(self, level: str, message: str, **kwargs) -> None:
        """
        Log structured event with additional context

        Args:
            level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            message: Human-readable log message
            **kwargs: Additional structured data to include in JSON
        """
        record = self.logger.makeRecord(
            name=self.logger.name,
            level=getattr(logging, level.upper()),
            fn="",
            lno=0,
            msg=message,
            args=(),
            exc_info=None,
        )
        record.extra_data = kwargs
        self.logger.handle(record)

    def close(self) -> None:
        """Close all handlers and cleanup"""
        for handler in self.logger.handlers[:]:
            handler.close()
            self.logger.removeHandler(handler)


def get_logger(
    run_id: Optional[str] = None,
    log_level: str = "INFO",
    log_dir: Union[str, Path] = "logs",
) -> ProductionLogger:
    """
    Factory function to get a configured run logger

    Args:
        run_id: Optional run ID. Generated if not provided.
        log_level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_dir: Directory for the rotating JSON log

    Returns:
        Configured ProductionLogger instance
    """
    return ProductionLogger(run_id=run_id, log_level=log_level, log_dir=log_dir)
