"""
Logging setup for the face attendance service.
"""

import logging
import logging.handlers
from pathlib import Path

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(module)s:%(lineno)d - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_INSTALLED_ATTR = "_face_attendance_handler"


def setup_logging(app, log_level="INFO", log_dir="logs", max_log_size=10 * 1024 * 1024, backup_count=5):
    """
    Configure logging for the Flask app.

    Args:
        app: Flask app instance
        log_level: DEBUG, INFO, WARNING, ERROR, CRITICAL
        log_dir: directory for the rotating log files; None logs to console only
        max_log_size: max size of one log file (bytes)
        backup_count: number of rotated files kept

    Calling it again replaces the handlers installed by a previous call.
    """

    level = getattr(logging, str(log_level).upper(), logging.INFO)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    handlers = []

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    handlers.append(console_handler)

    if log_dir:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_path / "face_attendance.log",
            maxBytes=max_log_size,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        handlers.append(file_handler)

        error_handler = logging.handlers.RotatingFileHandler(
            log_path / "errors.log",
            maxBytes=max_log_size,
            backupCount=backup_count,
            encoding="utf-8",
        )
        error_handler.setLevel(logging.ERROR)
        handlers.append(error_handler)

    package_logger = logging.getLogger("face_attendance")
    package_logger.setLevel(level)

    for handler in package_logger.handlers[:]:
        if getattr(handler, _INSTALLED_ATTR, False):
            package_logger.removeHandler(handler)
            handler.close()

    for handler in handlers:
        handler.setFormatter(formatter)
        setattr(handler, _INSTALLED_ATTR, True)
        package_logger.addHandler(handler)

    app.logger.setLevel(level)

    app.logger.info("=" * 50)
    app.logger.info("FACE ATTENDANCE STARTUP")
    app.logger.info(f"Log Level: {logging.getLevelName(level)}")
    app.logger.info(f"Log Directory: {Path(log_dir).absolute() if log_dir else '-'}")
    app.logger.info("=" * 50)
