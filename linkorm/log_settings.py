import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Dict, Optional


class LinkORMLogger:
    """
    Logging setup for applications embedding linkorm.
    """
    # 5MB per file, keep 5 backups
    MAX_BYTES: int = 5 * 1024 * 1024
    BACKUP_COUNT: int = 5
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    LEVEL_MAP: Dict[str, int] = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "ERROR": logging.ERROR,
        "CRITICAL": logging.CRITICAL
    }

    @staticmethod
    def setup_logging(level: Optional[str] = "INFO", log_file: Optional[Path] = None) -> None:
        """
        Configure root logging with a console handler and, when ``log_file``
        is given, a rotating file handler.

        Args:
            level (Optional[str]): Level name, e.g. "DEBUG", "INFO".
            log_file (Optional[Path]): Target file for the rotating handler.
        """
        handlers = [logging.StreamHandler()]

        if log_file is not None:
            log_file = Path(log_file)
            log_file.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(RotatingFileHandler(
                filename=log_file,
                mode="a",
                maxBytes=LinkORMLogger.MAX_BYTES,
                backupCount=LinkORMLogger.BACKUP_COUNT,
                encoding="utf-8"
            ))

        logging.basicConfig(
            level=LinkORMLogger.LEVEL_MAP.get((level or "INFO").upper(), logging.INFO),
            format=LinkORMLogger.LOG_FORMAT,
            datefmt="%Y-%m-%d %H:%M:%S",
            handlers=handlers,
            force=True
        )
