from __future__ import annotations

import logging
import logging.handlers
import os
from pathlib import Path
from typing import Optional

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_configured = False


def setup_logging(
    level: Optional[str] = None,
    *,
    log_file: Optional[Path] = None,
    max_file_size: int = 10 * 1024 * 1024,
    backup_count: int = 5,
    log_format: str = DEFAULT_FORMAT,
) -> None:
    """
    Configure root logging once per process.

    Level defaults to `LOG_LEVEL` (INFO). A rotating file handler is added
    when `log_file` is given.
    """
    global _configured
    if _configured:
        return

    level_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    root_level = getattr(logging, level_name, logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(root_level)
    formatter = logging.Formatter(log_format)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(root_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=max_file_size,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(root_level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    # urllib3/httpx chatter is not useful at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)

    _configured = True
