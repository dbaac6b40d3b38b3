"""Single entry point that applies quiz events and issues requests.

User actions and request completions both end in :meth:`dispatch`, so the
session is only ever replaced in one place. Network work is split out into
:meth:`QuizController.fetch`, which is safe to run off the event loop since
it touches no session state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Union

from ..config import QuizConfig
from .chat import ChatHelper
from .generation import GenerationError, TextGenerator, generate_quiz
from .models import Difficulty, find_difficulty
from .prompts import TutorContext
from .state import (
    AnswerSelected,
    DifficultySelected,
    FlowOptions,
    NextQuestion,
    QuizEvent,
    QuizFailed,
    QuizLoaded,
    QuizSession,
    Reset,
    Retry,
    Screen,
    ThemeSelected,
    initial_session,
    transition,
    view_of,
)

__all__ = ["GenerationRequest", "QuizController"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerationRequest:
    request_id: int
    theme: str
    difficulty: Optional[Difficulty]


class QuizController:
    def __init__(self, generator: TextGenerator, settings: QuizConfig) -> None:
        self.generator = generator
        self.settings = settings
        self.session: QuizSession = initial_session(
            FlowOptions(
                ask_difficulty=settings.ask_difficulty,
                show_failures=settings.show_failures,
            )
        )
        self._chat: Optional[ChatHelper] = None
        self._chat_key: Optional[tuple[int, int]] = None

    @property
    def themes(self) -> tuple[str, ...]:
        return self.settings.themes

    @property
    def view(self) -> Screen:
        return view_of(self.session)

    def dispatch(self, event: QuizEvent) -> bool:
        """Apply ``event``; return True when the session changed."""

        before = self.session
        after = transition(before, event)
        if after is before:
            return False
        self.session = after
        logger.debug(
            "Session transition",
            extra={
                "event": type(event).__name__,
                "from": view_of(before).value,
                "to": view_of(after).value,
            },
        )
        return True

    def select_difficulty(self, difficulty_id: str) -> bool:
        return self.dispatch(DifficultySelected(difficulty_id))

    def select_theme(self, theme: str) -> Optional[GenerationRequest]:
        if not self.dispatch(ThemeSelected(theme)):
            return None
        logger.info(
            "Theme selected",
            extra={"theme": theme, "difficulty": self.session.difficulty},
        )
        return self.pending_request()

    def retry(self) -> Optional[GenerationRequest]:
        if not self.dispatch(Retry()):
            return None
        return self.pending_request()

    def pending_request(self) -> Optional[GenerationRequest]:
        session = self.session
        if session.screen is not Screen.LOADING or not session.theme:
            return None
        return GenerationRequest(
            request_id=session.request_id,
            theme=session.theme,
            difficulty=find_difficulty(session.difficulty),
        )

    def fetch(
        self, request: GenerationRequest
    ) -> Union[QuizLoaded, QuizFailed]:
        """Run the generation call for ``request`` and wrap the outcome."""

        try:
            quiz = generate_quiz(
                self.generator,
                request.theme,
                request.difficulty,
                self.settings,
            )
        except GenerationError as exc:
            logger.exception(
                "Quiz generation failed",
                extra={
                    "theme": request.theme,
                    "request_id": request.request_id,
                },
            )
            return QuizFailed(request.request_id, str(exc))
        logger.info(
            "Quiz generated",
            extra={
                "theme": request.theme,
                "request_id": request.request_id,
                "questions": len(quiz.questions),
            },
        )
        return QuizLoaded(request.request_id, quiz)

    def load_quiz(self, theme: str) -> bool:
        """Select ``theme`` and fetch its quiz synchronously."""

        request = self.select_theme(theme)
        if request is None:
            return False
        return self.dispatch(self.fetch(request))

    def answer(self, option: str) -> bool:
        return self.dispatch(AnswerSelected(option))

    def next_question(self) -> bool:
        return self.dispatch(NextQuestion())

    def reset(self) -> bool:
        return self.dispatch(Reset())

    def chat(self) -> Optional[ChatHelper]:
        """Return the tutor for the displayed question once it is answered.

        A new helper, and so a new transcript, is created whenever the
        displayed question changes.
        """

        session = self.session
        question = session.current_question
        if question is None or not session.feedback_visible:
            return None
        key = (session.request_id, session.index)
        if self._chat is None or self._chat_key != key:
            context = TutorContext(
                question=question.text,
                selected_answer=session.selected or "",
                correct_answer=question.correct_answer,
                explanation=question.explanation,
                theme=session.theme or "",
            )
            self._chat = ChatHelper(
                self.generator, context, audience=self.settings.audience
            )
            self._chat_key = key
        return self._chat
