from __future__ import annotations

import json
import logging
from pathlib import Path

from conjunction_quiz.core import logging as core_logging


def _close(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


def test_configure_logger_writes_json(tmp_path):
    log_dir = tmp_path / "logs"
    logger, log_path = core_logging.configure_logger(
        "conjunction_quiz.test",
        log_dir=log_dir,
        level="INFO",
        verbose=False,
        filename="test.log",
    )

    logger.info("quiz loaded", extra={"theme": "Sports", "questions": 5})
    logger.debug("hidden at INFO")

    try:
        raise ValueError("boom")
    except ValueError:
        logger.exception(
            "generation failed",
            extra={"request": {"ids": [1, 2], "path": Path(log_dir)}},
        )
    for handler in logger.handlers:
        handler.flush()

    lines = log_path.read_text(encoding="utf-8").strip().splitlines()
    assert len(lines) == 2
    first = json.loads(lines[0])
    assert first["message"] == "quiz loaded"
    assert first["level"] == "INFO"
    assert first["extra"] == {"theme": "Sports", "questions": 5}

    payload = json.loads(lines[-1])
    assert "ValueError: boom" in payload["exception"]
    assert payload["extra"]["request"]["ids"] == [1, 2]
    assert payload["extra"]["request"]["path"] == str(log_dir)
    _close(logger)


def test_configure_logger_reuses_handlers_and_toggles_console(tmp_path):
    name = "conjunction_quiz.test_console"
    logger, first_path = core_logging.configure_logger(
        name, log_dir=tmp_path, verbose=True
    )
    consoles = [
        h for h in logger.handlers if getattr(h, "_conjquiz_console", False)
    ]
    assert len(consoles) == 1

    again, second_path = core_logging.configure_logger(
        name, log_dir=tmp_path, verbose=False
    )
    assert again is logger
    assert first_path == second_path
    assert first_path.name == "test_console.log"
    assert not any(
        getattr(h, "_conjquiz_console", False) for h in logger.handlers
    )
    files = [h for h in logger.handlers if getattr(h, "_conjquiz_file", False)]
    assert len(files) == 1
    _close(logger)


def test_verbose_file_level_is_debug(tmp_path):
    logger, log_path = core_logging.configure_logger(
        "conjunction_quiz.test_debug",
        log_dir=tmp_path,
        level="WARNING",
        verbose=True,
    )
    logger.debug("visible")
    for handler in logger.handlers:
        handler.flush()
    assert "visible" in log_path.read_text(encoding="utf-8")
    _close(logger)


def test_unknown_level_falls_back_to_info():
    assert core_logging._coerce_level("chatty") == logging.INFO
    assert core_logging._coerce_level("debug") == logging.DEBUG
