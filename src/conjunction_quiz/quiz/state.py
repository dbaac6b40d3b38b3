"""Quiz flow state machine.

A :class:`QuizSession` is an immutable snapshot of the quiz. Every user
action and every request completion is an event fed through
:func:`transition`, which returns the next snapshot. Events that are not
valid for the current snapshot are ignored and the same object is returned,
so callers can compare by identity to see whether anything changed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional, Union

from .models import Question, Quiz, find_difficulty

__all__ = [
    "Screen",
    "FlowOptions",
    "QuizSession",
    "DifficultySelected",
    "ThemeSelected",
    "QuizLoaded",
    "QuizFailed",
    "AnswerSelected",
    "NextQuestion",
    "Retry",
    "Reset",
    "QuizEvent",
    "initial_session",
    "transition",
    "view_of",
]

logger = logging.getLogger(__name__)


class Screen(str, Enum):
    SELECTING_DIFFICULTY = "selecting_difficulty"
    SELECTING_THEME = "selecting_theme"
    LOADING = "loading"
    ANSWERING = "answering"
    FAILED = "failed"
    # Derived from ANSWERING once every question is answered; never stored.
    COMPLETE = "complete"


@dataclass(frozen=True)
class FlowOptions:
    ask_difficulty: bool = True
    show_failures: bool = True


@dataclass(frozen=True)
class QuizSession:
    screen: Screen
    options: FlowOptions = field(default_factory=FlowOptions)
    difficulty: Optional[str] = None
    theme: Optional[str] = None
    passage: str = ""
    questions: tuple[Question, ...] = ()
    index: int = 0
    selected: Optional[str] = None
    feedback_visible: bool = False
    score: int = 0
    request_id: int = 0
    error: Optional[str] = None

    @property
    def total(self) -> int:
        return len(self.questions)

    @property
    def is_complete(self) -> bool:
        return self.screen is Screen.ANSWERING and self.index >= self.total

    @property
    def current_question(self) -> Optional[Question]:
        if self.screen is not Screen.ANSWERING or self.is_complete:
            return None
        return self.questions[self.index]


@dataclass(frozen=True)
class DifficultySelected:
    difficulty: str


@dataclass(frozen=True)
class ThemeSelected:
    theme: str


@dataclass(frozen=True)
class QuizLoaded:
    request_id: int
    quiz: Quiz


@dataclass(frozen=True)
class QuizFailed:
    request_id: int
    reason: str


@dataclass(frozen=True)
class AnswerSelected:
    answer: str


@dataclass(frozen=True)
class NextQuestion:
    pass


@dataclass(frozen=True)
class Retry:
    pass


@dataclass(frozen=True)
class Reset:
    pass


QuizEvent = Union[
    DifficultySelected,
    ThemeSelected,
    QuizLoaded,
    QuizFailed,
    AnswerSelected,
    NextQuestion,
    Retry,
    Reset,
]


def initial_session(
    options: Optional[FlowOptions] = None, *, request_id: int = 0
) -> QuizSession:
    opts = options or FlowOptions()
    screen = (
        Screen.SELECTING_DIFFICULTY
        if opts.ask_difficulty
        else Screen.SELECTING_THEME
    )
    return QuizSession(screen=screen, options=opts, request_id=request_id)


def view_of(session: QuizSession) -> Screen:
    """Return the screen to render, including the derived COMPLETE view."""

    if session.is_complete:
        return Screen.COMPLETE
    return session.screen


def transition(session: QuizSession, event: QuizEvent) -> QuizSession:
    handler = _HANDLERS.get(type(event))
    result = handler(session, event) if handler else None
    if result is None:
        logger.debug(
            "Ignoring event",
            extra={
                "event": type(event).__name__,
                "screen": view_of(session).value,
            },
        )
        return session
    return result


def _on_difficulty(
    session: QuizSession, event: DifficultySelected
) -> Optional[QuizSession]:
    if session.screen is not Screen.SELECTING_DIFFICULTY:
        return None
    difficulty = find_difficulty(event.difficulty)
    if difficulty is None:
        return None
    return replace(
        session, difficulty=difficulty.id, screen=Screen.SELECTING_THEME
    )


def _on_theme(
    session: QuizSession, event: ThemeSelected
) -> Optional[QuizSession]:
    if session.screen is not Screen.SELECTING_THEME or not event.theme:
        return None
    return replace(
        session,
        screen=Screen.LOADING,
        theme=event.theme,
        passage="",
        questions=(),
        index=0,
        selected=None,
        feedback_visible=False,
        score=0,
        error=None,
        request_id=session.request_id + 1,
    )


def _on_loaded(
    session: QuizSession, event: QuizLoaded
) -> Optional[QuizSession]:
    if (
        session.screen is not Screen.LOADING
        or event.request_id != session.request_id
    ):
        return None
    return replace(
        session,
        screen=Screen.ANSWERING,
        passage=event.quiz.passage,
        questions=tuple(event.quiz.questions),
        index=0,
        selected=None,
        feedback_visible=False,
        score=0,
    )


def _on_failed(
    session: QuizSession, event: QuizFailed
) -> Optional[QuizSession]:
    if (
        session.screen is not Screen.LOADING
        or event.request_id != session.request_id
        or not session.options.show_failures
    ):
        return None
    return replace(session, screen=Screen.FAILED, error=event.reason)


def _on_answer(
    session: QuizSession, event: AnswerSelected
) -> Optional[QuizSession]:
    question = session.current_question
    if question is None or session.feedback_visible:
        return None
    gained = 1 if question.is_correct(event.answer) else 0
    return replace(
        session,
        selected=event.answer,
        feedback_visible=True,
        score=session.score + gained,
    )


def _on_next(
    session: QuizSession, event: NextQuestion
) -> Optional[QuizSession]:
    if session.current_question is None or not session.feedback_visible:
        return None
    return replace(
        session,
        index=session.index + 1,
        selected=None,
        feedback_visible=False,
    )


def _on_retry(session: QuizSession, event: Retry) -> Optional[QuizSession]:
    if session.screen is not Screen.FAILED:
        return None
    return replace(
        session,
        screen=Screen.LOADING,
        error=None,
        request_id=session.request_id + 1,
    )


def _on_reset(session: QuizSession, event: Reset) -> Optional[QuizSession]:
    if not (
        session.is_complete
        or session.screen in (Screen.FAILED, Screen.LOADING)
    ):
        return None
    return initial_session(session.options, request_id=session.request_id)


_HANDLERS = {
    DifficultySelected: _on_difficulty,
    ThemeSelected: _on_theme,
    QuizLoaded: _on_loaded,
    QuizFailed: _on_failed,
    AnswerSelected: _on_answer,
    NextQuestion: _on_next,
    Retry: _on_retry,
    Reset: _on_reset,
}
