"""
Structured logging for Dealers Plus.

Console and file output with optional keyword context, plus counters for
search traffic and dealer imports.
"""

import logging
import sys
from pathlib import Path
from typing import Optional
from datetime import datetime
import json


class StructuredLogger:
    """
    Centralized logger with support for console and file outputs.
    Tracks search and import metrics for the current process.
    """

    def __init__(
        self,
        name: str = "dealersplus",
        level: str = "INFO",
        log_dir: Optional[Path] = None,
        enable_file: bool = True,
        enable_console: bool = True,
    ):
        """
        Initialize the structured logger.

        Args:
            name: Logger name
            level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            log_dir: Directory for log files (default: logs/)
            enable_file: Write logs to file
            enable_console: Output logs to console (stderr)
        """
        self.logger = logging.getLogger(name)
        self.logger.setLevel(getattr(logging, level.upper(), logging.INFO))
        self.logger.handlers.clear()

        self.metrics = {
            "searches": 0,
            "suggestions": 0,
            "empty_results": 0,
            "imports_attempted": 0,
            "imports_successful": 0,
            "imports_failed": 0,
            "errors_by_type": {},
            "region_success_rate": {},
        }

        if enable_console:
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setLevel(getattr(logging, level.upper(), logging.INFO))
            console_handler.setFormatter(logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            ))
            self.logger.addHandler(console_handler)

        if enable_file:
            if log_dir is None:
                log_dir = Path("logs")
            log_dir.mkdir(parents=True, exist_ok=True)

            log_file = log_dir / f"dealersplus_{datetime.now().strftime('%Y%m%d')}.log"
            file_handler = logging.FileHandler(log_file, encoding='utf-8')
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            ))
            self.logger.addHandler(file_handler)

    def debug(self, message: str, **kwargs):
        self._log(logging.DEBUG, message, kwargs)

    def info(self, message: str, **kwargs):
        self._log(logging.INFO, message, kwargs)

    def warning(self, message: str, **kwargs):
        self._log(logging.WARNING, message, kwargs)

    def error(self, message: str, **kwargs):
        self._log(logging.ERROR, message, kwargs)

    def critical(self, message: str, **kwargs):
        self._log(logging.CRITICAL, message, kwargs)

    def _log(self, level: int, message: str, context: dict):
        if context:
            message = f"{message} | Context: {json.dumps(context, default=str)}"
        self.logger.log(level, message)

    # Metric tracking

    def record_search(self, result_count: int):
        self.metrics["searches"] += 1
        if result_count == 0:
            self.metrics["empty_results"] += 1

    def record_suggestion(self):
        self.metrics["suggestions"] += 1

    def record_import_attempt(self, region: str):
        self.metrics["imports_attempted"] += 1
        stats = self.metrics["region_success_rate"].setdefault(
            region, {"attempts": 0, "successes": 0}
        )
        stats["attempts"] += 1

    def record_import_success(self, region: str):
        self.metrics["imports_successful"] += 1
        if region in self.metrics["region_success_rate"]:
            self.metrics["region_success_rate"][region]["successes"] += 1

    def record_import_failure(self, region: str, error_type: str):
        self.metrics["imports_failed"] += 1
        errors = self.metrics["errors_by_type"]
        errors[error_type] = errors.get(error_type, 0) + 1

    def get_metrics(self) -> dict:
        """Return current metrics with per-region success rates filled in."""
        metrics_copy = self.metrics.copy()
        for stats in metrics_copy["region_success_rate"].values():
            if stats["attempts"] > 0:
                stats["success_rate"] = round(stats["successes"] / stats["attempts"], 3)
        return metrics_copy

    def log_metrics_summary(self):
        metrics = self.get_metrics()

        self.info("=== Session Metrics ===")
        self.info(f"Searches: {metrics['searches']} ({metrics['empty_results']} with no results)")
        self.info(f"Suggestions: {metrics['suggestions']}")

        attempts = metrics["imports_attempted"]
        if attempts:
            rate = round(metrics["imports_successful"] / attempts * 100, 1)
            self.info(f"Imports: {metrics['imports_successful']}/{attempts} ({rate}% success)")
            for region, stats in metrics["region_success_rate"].items():
                if stats["successes"] < stats["attempts"]:
                    self.info(f"  {region}: {stats['successes']}/{stats['attempts']}")

        if metrics["errors_by_type"]:
            self.info("Error Types:")
            for error_type, count in metrics["errors_by_type"].items():
                self.info(f"  {error_type}: {count}")


_global_logger: Optional[StructuredLogger] = None


def get_logger(
    name: str = "dealersplus",
    level: str = "INFO",
    **kwargs
) -> StructuredLogger:
    """
    Get or create the global logger instance.

    Arguments only take effect on the first call (or after reset_logger).
    """
    global _global_logger

    if _global_logger is None:
        _global_logger = StructuredLogger(name=name, level=level, **kwargs)

    return _global_logger


def reset_logger():
    """Reset the global logger (useful for testing)."""
    global _global_logger
    _global_logger = None
