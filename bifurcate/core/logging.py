"""
Logging System for the Bifurcate crawler

Provides logging with file rotation, console output and helpers for
structured crawl reporting.
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional, Dict, Any
import json


ROOT_LOGGER_NAME = 'bifurcate'


class LoggingManager:
    """
    Centralized logging manager with file rotation and structured logging
    """

    def __init__(self):
        self.logger: logging.Logger = logging.getLogger(ROOT_LOGGER_NAME)
        self.file_handler: Optional[logging.handlers.RotatingFileHandler] = None
        self.console_handler: Optional[logging.StreamHandler] = None
        self._setup_complete = False

    def setup_logging(self, level: str = "INFO", log_file: Optional[str] = "./logs/bifurcate.log",
                      max_size: str = "100MB", backup_count: int = 5) -> None:
        """
        Set up logging system with file rotation and console output

        Args:
            level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            log_file: Path to log file, or None to log to the console only
            max_size: Maximum size before rotation (e.g., "100MB")
            backup_count: Number of backup files to keep
        """
        self.logger.setLevel(getattr(logging, level.upper()))

        # Clear existing handlers
        self.close()
        self.logger.handlers.clear()

        detailed_formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(module)s:%(funcName)s:%(lineno)d - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

        console_formatter = logging.Formatter(
            '%(asctime)s - %(levelname)s - %(message)s',
            datefmt='%H:%M:%S'
        )

        if log_file:
            log_path = Path(log_file)
            log_path.parent.mkdir(parents=True, exist_ok=True)

            self.file_handler = logging.handlers.RotatingFileHandler(
                log_file, maxBytes=self._parse_size(max_size),
                backupCount=backup_count, encoding='utf-8'
            )
            self.file_handler.setLevel(logging.DEBUG)
            self.file_handler.setFormatter(detailed_formatter)
            self.logger.addHandler(self.file_handler)

        # Console goes to stderr so stdout stays clean for feed output
        self.console_handler = logging.StreamHandler(sys.stderr)
        self.console_handler.setLevel(getattr(logging, level.upper()))
        self.console_handler.setFormatter(console_formatter)
        self.logger.addHandler(self.console_handler)

        self._setup_complete = True
        self.logger.debug("Logging system initialized")

    def _parse_size(self, size_str: str) -> int:
        """Parse size string like '100MB' to bytes"""
        size_str = size_str.upper().strip()

        if size_str.endswith('KB'):
            return int(size_str[:-2]) * 1024
        elif size_str.endswith('MB'):
            return int(size_str[:-2]) * 1024 * 1024
        elif size_str.endswith('GB'):
            return int(size_str[:-2]) * 1024 * 1024 * 1024
        else:
            # Assume bytes
            return int(size_str)

    def get_logger(self, name: Optional[str] = None) -> logging.Logger:
        """
        Get a logger under the package root.

        Module names outside the package (e.g. tests) are nested under the
        root logger so they share its handlers.
        """
        if not name or name == ROOT_LOGGER_NAME:
            return self.logger
        if name.startswith(ROOT_LOGGER_NAME + '.'):
            return logging.getLogger(name)
        return self.logger.getChild(name)

    def is_configured(self) -> bool:
        return self._setup_complete

    def log_crawl_start(self, root_url: str, depth_limit: int) -> None:
        """Log the start of a crawl with context"""
        self.logger.info(f"Starting crawl of {root_url} (depth limit {depth_limit})")

    def log_error(self, error: Exception, context: Optional[Dict[str, Any]] = None) -> None:
        """Log an error with context information"""
        context_str = ""
        if context:
            context_str = f" | Context: {json.dumps(context, default=str)}"

        self.logger.error(f"Error: {str(error)}{context_str}", exc_info=True)

    def log_warning(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        """Log a warning with optional context"""
        context_str = ""
        if context:
            context_str = f" | Context: {json.dumps(context, default=str)}"

        self.logger.warning(f"{message}{context_str}")

    def generate_summary_report(self, stats: Dict[str, Any]) -> str:
        """Generate and log a crawl summary report"""
        report_lines = [
            "=" * 60,
            "CRAWL SESSION SUMMARY",
            "=" * 60,
            f"Site: {stats.get('site', 'Unknown')}",
            f"Generated At: {stats.get('generated_at', 'Unknown')}",
            f"Duration: {stats.get('duration', 0.0):.2f}s",
            "",
            "FRONTIER:",
            f"  URLs Visited: {stats.get('visited', 0)}",
            f"  Pages Fetched: {stats.get('fetched', 0)}",
            f"  Pages Recorded: {stats.get('recorded', 0)}",
            f"  Skipped: {stats.get('skipped', 0)}",
            "",
            "PAGE TYPES:",
        ]

        for page_type, count in stats.get('page_types', {}).items():
            report_lines.append(f"  {page_type}: {count}")

        report_lines.append("=" * 60)

        report = "\n".join(report_lines)
        self.logger.info(f"Session Summary:\n{report}")

        return report

    def close(self) -> None:
        """Close logging handlers"""
        if self.file_handler:
            self.file_handler.close()
            self.file_handler = None
        if self.console_handler:
            self.console_handler.close()
            self.console_handler = None


# Global logging manager instance
logging_manager = LoggingManager()


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a logger from the global logging manager"""
    return logging_manager.get_logger(name)


def setup_logging(level: str = "INFO", log_file: Optional[str] = "./logs/bifurcate.log",
                  max_size: str = "100MB", backup_count: int = 5) -> None:
    """Set up global logging system"""
    logging_manager.setup_logging(level, log_file, max_size, backup_count)
