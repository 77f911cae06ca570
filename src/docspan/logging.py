from __future__ import annotations

import logging
import os
from pathlib import Path

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"
# Транспортные библиотеки слишком многословны на DEBUG
NOISY_LOGGERS = ("urllib3", "pdfminer", "httpx")


def setup_logging(level: str | None = None) -> None:
    """
    Настройка логирования для docspan и его точек входа.

    Parameters
    ----------
    level : str | None
        Явный уровень логирования; если не задан, берётся из LOG_LEVEL

    Returns
    -------
    None
        Логирование настроено; повторные вызовы не дублируют обработчики
    """
    level_str = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    resolved = getattr(logging, level_str, logging.INFO)

    root = logging.getLogger()
    root.setLevel(resolved)
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)

    has_stream = any(
        isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)
        for h in root.handlers
    )
    if not has_stream:
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(formatter)
        root.addHandler(stream_handler)

    log_file = os.getenv("LOG_FILE")
    if log_file:
        _attach_file_handler(root, Path(log_file), formatter)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(resolved, logging.WARNING))


def _attach_file_handler(root: logging.Logger, log_path: Path, formatter: logging.Formatter) -> None:
    has_file = any(
        isinstance(h, logging.FileHandler) and Path(getattr(h, "baseFilename", "")) == log_path
        for h in root.handlers
    )
    if has_file:
        return
    log_path.parent.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(log_path, encoding="utf-8")
    file_handler.setFormatter(formatter)
    root.addHandler(file_handler)
