from __future__ import annotations

import dataclasses
import logging
from typing import Iterator

import pytest

from conjunction_quiz.config import QuizConfig, default_config
from conjunction_quiz.quiz.controller import QuizController

from fixtures import FakeOpenAI, ScriptedGenerator


@pytest.fixture
def quiz_settings() -> QuizConfig:
    return default_config().quiz


@pytest.fixture
def fake_openai() -> FakeOpenAI:
    """An injectable OpenAI client that records requests."""

    return FakeOpenAI()


@pytest.fixture
def generator() -> ScriptedGenerator:
    return ScriptedGenerator()


@pytest.fixture
def controller(
    generator: ScriptedGenerator, quiz_settings: QuizConfig
) -> QuizController:
    return QuizController(generator, quiz_settings)


@pytest.fixture
def make_controller(generator: ScriptedGenerator, quiz_settings: QuizConfig):
    """Build a controller with overridden quiz settings."""

    def _make(**overrides) -> QuizController:
        settings = dataclasses.replace(quiz_settings, **overrides)
        return QuizController(generator, settings)

    return _make


@pytest.fixture(autouse=True)
def _reset_package_logger() -> Iterator[None]:
    """Undo ``configure_logger`` side effects so caplog keeps seeing records."""

    yield
    logger = logging.getLogger("conjunction_quiz")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
