# sqlcsv/logging_utils.py
"""
Logging helpers for export scripts.

A nightly export usually wants one log file per run, a separate error log only
when something went wrong, and old logs cleaned up after a while. The helpers
here set that up on the root logger from the ``logging`` settings section.
"""

import logging
import sys
from datetime import datetime, timedelta
from pathlib import Path
from typing import List, Optional, Tuple

logger = logging.getLogger(__name__)

# Set by setup_logging(), read by errors_logged()
_error_handler: Optional['ErrorCountHandler'] = None
_main_log_path: Optional[str] = None
_error_log_path: Optional[str] = None


class ErrorCountHandler(logging.Handler):
    """Count ERROR and CRITICAL records; open the error log file on the first one."""

    def __init__(self, error_log_path: Optional[str] = None, formatter: Optional[logging.Formatter] = None):
        super().__init__(level=logging.ERROR)
        self.error_count = 0
        self.error_log_path = error_log_path
        self.formatter = formatter
        self._error_file_handler = None

    def emit(self, record):
        if record.levelno < logging.ERROR:
            return
        self.error_count += 1
        if not self.error_log_path:
            return
        if self._error_file_handler is None:
            self._error_file_handler = logging.FileHandler(self.error_log_path, encoding='utf-8')
            if self.formatter:
                self._error_file_handler.setFormatter(self.formatter)
        self._error_file_handler.handle(record)

    def close(self):
        if self._error_file_handler is not None:
            self._error_file_handler.close()
        super().close()


def _log_paths(script_name: str, log_dir: Path, filename_format: str,
               split_errors: bool) -> Tuple[Path, Optional[Path]]:
    stem = script_name
    if filename_format:
        stem = f"{script_name}_{datetime.now().strftime(filename_format)}"
    error_file = log_dir / f"{stem}_error.log" if split_errors else None
    return log_dir / f"{stem}.log", error_file


def setup_logging(
    script_name: Optional[str] = None,
    log_dir: Optional[str] = None,
    level: Optional[str] = None,
    split_errors: Optional[bool] = None,
    console: Optional[bool] = None
) -> Tuple[str, Optional[str]]:
    """
    Configure root logging for an export script.

    Creates ``{script_name}_{timestamp}.log`` and, when split_errors is on,
    ``{script_name}_{timestamp}_error.log`` the first time an error is logged.
    Arguments left as None come from the ``logging`` settings.

    Args:
        script_name: Base name for log files (defaults to the running script's name)
        log_dir: Directory for log files
        level: DEBUG, INFO, WARNING or ERROR
        split_errors: Also write errors to a separate file
        console: Also log to stdout

    Returns:
        Tuple of (log_file_path, error_log_path or None)

    Example
    -------
    ::

        import sqlcsv

        sqlcsv.setup_logging('nightly_export')
        sqlcsv.write_file('orders.csv', cursor)
        if sqlcsv.errors_logged():
            notify_ops()
    """
    from .config import get_setting

    global _error_handler, _main_log_path, _error_log_path

    log_config = get_setting('logging', {})
    if script_name is None:
        script_name = Path(sys.argv[0]).stem or 'sqlcsv'
    log_dir = log_dir or log_config.get('directory', './logs')
    level = (level or log_config.get('level', 'INFO')).upper()
    split_errors = log_config.get('split_errors', True) if split_errors is None else split_errors
    console = log_config.get('console', True) if console is None else console

    formatter = logging.Formatter(
        log_config.get('format', '%(asctime)s [%(levelname)s] %(name)s: %(message)s'),
        datefmt=log_config.get('timestamp_format', '%Y-%m-%d %H:%M:%S')
    )

    log_dir_path = Path(log_dir)
    log_dir_path.mkdir(parents=True, exist_ok=True)
    log_file, error_file = _log_paths(script_name, log_dir_path,
                                      log_config.get('filename_format', '%Y%m%d_%H%M%S'),
                                      split_errors)

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level))
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    _error_handler = ErrorCountHandler(str(error_file) if error_file else None, formatter)
    root_logger.addHandler(_error_handler)

    file_handler = logging.FileHandler(log_file, encoding='utf-8')
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    if console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(getattr(logging, level))
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    _main_log_path = str(log_file)
    _error_log_path = str(error_file) if error_file else None

    logger.info(f"Logging initialized: {log_file}")
    return _main_log_path, _error_log_path


def errors_logged() -> Optional[str]:
    """
    Report whether any ERROR or CRITICAL message was logged since setup_logging().

    Returns:
        Path of the error log (or the main log when errors are not split) if
        errors were logged, otherwise None. Also None when setup_logging()
        was never called.
    """
    if _error_handler is None:
        logger.warning("errors_logged() called but setup_logging() was not called")
        return None
    if _error_handler.error_count == 0:
        return None
    return _error_log_path or _main_log_path


def cleanup_old_logs(
    log_dir: Optional[str] = None,
    retention_days: Optional[int] = None,
    pattern: str = "*.log",
    dry_run: bool = False
) -> List[str]:
    """
    Remove log files older than the retention period.

    Args:
        log_dir: Directory to clean (defaults to settings)
        retention_days: Keep logs modified within this many days (defaults to settings)
        pattern: Glob pattern for log files
        dry_run: Only report what would be deleted

    Returns:
        Paths deleted (or that would be deleted when dry_run)
    """
    from .config import get_setting

    log_config = get_setting('logging', {})
    log_dir_path = Path(log_dir or log_config.get('directory', './logs'))
    retention_days = retention_days or log_config.get('retention_days', 30)

    if not log_dir_path.exists():
        logger.warning(f"Log directory does not exist: {log_dir_path}")
        return []

    cutoff = datetime.now() - timedelta(days=retention_days)
    deleted = []
    for log_file in log_dir_path.glob(pattern):
        if not log_file.is_file():
            continue
        if datetime.fromtimestamp(log_file.stat().st_mtime) >= cutoff:
            continue
        if dry_run:
            logger.info(f"Would delete: {log_file}")
        else:
            try:
                log_file.unlink()
            except OSError as e:
                logger.warning(f"Failed to delete {log_file}: {e}")
                continue
            logger.info(f"Deleted old log: {log_file}")
        deleted.append(str(log_file))

    return deleted
