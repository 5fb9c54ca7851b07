"""
Centralized logging configuration for Picking Tool.

One configuration point for every module:
- Structured JSON lines in a daily log file (easy to grep and ship)
- Size-based rotation of the daily file
- Retention cleanup of old files
- Human-readable console output for setup and troubleshooting
- Context fields (user_id, order_id, session_id) attached to every entry

Log file location: LogDirectory from config.ini, default ~/.picking_tool/logs
Log file format: YYYY-MM-DD.log

Example log entry (JSON format):
    {"timestamp": "2026-10-18T09:14:02.381", "level": "INFO", "tool": "picking_tool",
     "user_id": "12", "order_id": "5531", "session_id": null,
     "module": "order_fulfillment", "function": "complete", "line": 142,
     "message": "Order 5531 marked complete"}
"""

import logging
import json
import os
from datetime import datetime, timedelta
from pathlib import Path
from logging.handlers import RotatingFileHandler
from typing import Optional, Dict, Any
import configparser
from contextvars import ContextVar


_user_id: ContextVar[Optional[str]] = ContextVar('user_id', default=None)
_order_id: ContextVar[Optional[str]] = ContextVar('order_id', default=None)
_session_id: ContextVar[Optional[str]] = ContextVar('session_id', default=None)


class StructuredJSONFormatter(logging.Formatter):
    """
    JSON formatter for the log file.

    Fields: timestamp, level, tool, user_id, order_id, session_id, module,
    function, line, message, and exc_info when an exception is attached.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            'timestamp': datetime.fromtimestamp(record.created).isoformat(),
            'level': record.levelname,
            'tool': 'picking_tool',
            'user_id': _user_id.get(),
            'order_id': _order_id.get(),
            'session_id': _session_id.get(),
            'module': record.name,
            'function': record.funcName,
            'line': record.lineno,
            'message': record.getMessage(),
        }

        if record.exc_info:
            log_data['exc_info'] = self.formatException(record.exc_info)

        if hasattr(record, 'extra_data'):
            log_data['extra'] = record.extra_data

        return json.dumps(log_data, ensure_ascii=False)


class AppLogger:
    """
    Application logger configured lazily on first use.

    Settings come from the [Logging] section of config.ini:
    - LogLevel: DEBUG, INFO, WARNING, ERROR, CRITICAL
    - MaxLogSizeMB: size of the daily file before it is rotated
    - LogRetentionDays: days of log files to keep (0 keeps everything)
    - LogDirectory: where log files are written
    """

    _initialized: bool = False

    @classmethod
    def get_logger(cls, name: str = 'PickingTool') -> logging.Logger:
        """
        Get a logger, configuring the logging system on the first call.

        Usage in modules:
            from logger import get_logger
            logger = get_logger(__name__)

        Args:
            name: Logger name, normally the module's __name__

        Returns:
            Logger sharing the root handlers
        """
        if not cls._initialized:
            cls._setup_logging()
            cls._initialized = True

        return logging.getLogger(name)

    @classmethod
    def _setup_logging(cls):
        """Attach the file and console handlers to the root logger."""
        config = cls._load_config()

        default_dir = Path(os.path.expanduser("~")) / ".picking_tool" / "logs"
        log_dir = Path(config.get('Logging', 'LogDirectory', fallback=str(default_dir)))

        try:
            log_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            log_dir = default_dir
            log_dir.mkdir(parents=True, exist_ok=True)
            print(f"Warning: Could not create log directory. Using: {log_dir}. Error: {e}")

        log_file = log_dir / f"{datetime.now():%Y-%m-%d}.log"

        log_level_str = config.get('Logging', 'LogLevel', fallback='INFO')
        log_level = getattr(logging, log_level_str.upper(), logging.INFO)

        max_log_size = config.getint('Logging', 'MaxLogSizeMB', fallback=10) * 1024 * 1024

        console_formatter = logging.Formatter(
            fmt='%(asctime)s | %(name)s | %(levelname)s | %(funcName)s:%(lineno)d | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=max_log_size,
            backupCount=30,
            encoding='utf-8'
        )
        file_handler.setLevel(log_level)
        file_handler.setFormatter(StructuredJSONFormatter())

        console_handler = logging.StreamHandler()
        console_handler.setLevel(log_level)
        console_handler.setFormatter(console_formatter)

        root_logger = logging.getLogger()
        root_logger.setLevel(log_level)
        root_logger.addHandler(file_handler)
        root_logger.addHandler(console_handler)

        retention_days = config.getint('Logging', 'LogRetentionDays', fallback=30)
        cls._cleanup_old_logs(log_dir, retention_days)

        logger = logging.getLogger('PickingTool')
        logger.info("=" * 80)
        logger.info("Picking Tool Started")
        logger.info(f"Log Level: {log_level_str}")
        logger.info(f"Log File: {log_file}")
        logger.info("=" * 80)

    @staticmethod
    def _load_config() -> configparser.ConfigParser:
        """
        Load config.ini from the working directory.

        A missing file is not an error; every setting has a fallback.
        """
        config = configparser.ConfigParser()
        config_path = Path('config.ini')

        if config_path.exists():
            config.read(config_path, encoding='utf-8')

        return config

    @staticmethod
    def _cleanup_old_logs(log_dir: Path, retention_days: int):
        """
        Delete log files whose modification time is older than retention_days.

        Args:
            log_dir: Directory containing log files
            retention_days: Days to keep; 0 or negative disables cleanup
        """
        if retention_days <= 0:
            return

        cutoff_date = datetime.now() - timedelta(days=retention_days)

        try:
            for log_file in log_dir.glob("*.log*"):
                file_mtime = datetime.fromtimestamp(log_file.stat().st_mtime)
                if file_mtime < cutoff_date:
                    log_file.unlink()
                    logging.getLogger('PickingTool').debug(f"Deleted old log: {log_file.name}")

        except OSError as e:
            # Cleanup failure must not stop the application from starting
            logging.getLogger('PickingTool').warning(f"Failed to cleanup old logs: {e}")


def get_logger(name: str = 'PickingTool') -> logging.Logger:
    """
    Get application logger.

    Example:
        >>> from logger import get_logger
        >>> logger = get_logger(__name__)
        >>> logger.info("Scan session opened")
    """
    return AppLogger.get_logger(name)


def set_user_context(user_id: Optional[str]) -> None:
    """Set the logged-in user id included in subsequent log entries."""
    _user_id.set(user_id)


def set_order_context(order_id: Optional[str]) -> None:
    """
    Set the order id included in subsequent log entries.

    Set when an order detail is opened, cleared when the operator leaves it.
    """
    _order_id.set(order_id)


def set_session_context(session_id: Optional[str]) -> None:
    """Set the scan/assignment session id included in subsequent log entries."""
    _session_id.set(session_id)


def clear_logging_context() -> None:
    """Clear user_id, order_id and session_id (e.g. on logout)."""
    _user_id.set(None)
    _order_id.set(None)
    _session_id.set(None)
