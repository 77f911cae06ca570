import logging
from pathlib import Path

from docspan.logging import NOISY_LOGGERS, setup_logging


def test_setup_logging_idempotent_and_no_duplicate_handlers(tmp_path: Path, monkeypatch):
    log_file = tmp_path / "docspan.log"
    monkeypatch.setenv("LOG_FILE", str(log_file))
    monkeypatch.setenv("LOG_LEVEL", "INFO")

    setup_logging()
    setup_logging()

    root = logging.getLogger()
    stream_handlers = [
        h
        for h in root.handlers
        if isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)
    ]
    file_handlers = [
        h
        for h in root.handlers
        if isinstance(h, logging.FileHandler) and Path(getattr(h, "baseFilename", "")) == log_file
    ]
    assert len(stream_handlers) >= 1
    assert len(file_handlers) == 1

    logging.getLogger("docspan.test").info("архив открыт")
    for h in file_handlers:
        h.flush()
    assert "архив открыт" in log_file.read_text(encoding="utf-8")

    for h in file_handlers:
        root.removeHandler(h)
        h.close()


def test_explicit_level_wins_and_noisy_loggers_are_quieted(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "ERROR")
    monkeypatch.delenv("LOG_FILE", raising=False)

    setup_logging("debug")

    assert logging.getLogger().level == logging.DEBUG
    for name in NOISY_LOGGERS:
        assert logging.getLogger(name).level == logging.WARNING
