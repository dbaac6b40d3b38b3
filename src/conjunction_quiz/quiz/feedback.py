"""Pure projections of a quiz session into what the learner sees."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .state import QuizSession

CORRECT_HEADLINE = "✅ Correct!"
INCORRECT_HEADLINE = "❌ Not quite right."


class OptionState(str, Enum):
    SELECTABLE = "selectable"
    CORRECT = "correct"
    INCORRECT = "incorrect"
    DIMMED = "dimmed"


@dataclass(frozen=True)
class FeedbackView:
    correct: bool
    headline: str
    explanation: str


def option_states(session: QuizSession) -> list[tuple[str, OptionState]]:
    question = session.current_question
    if question is None:
        return []
    if not session.feedback_visible:
        return [(option, OptionState.SELECTABLE) for option in question.options]
    states = []
    for option in question.options:
        if option == question.correct_answer:
            state = OptionState.CORRECT
        elif option == session.selected:
            state = OptionState.INCORRECT
        else:
            state = OptionState.DIMMED
        states.append((option, state))
    return states


def feedback_for(session: QuizSession) -> Optional[FeedbackView]:
    question = session.current_question
    if question is None or not session.feedback_visible:
        return None
    correct = question.is_correct(session.selected or "")
    return FeedbackView(
        correct=correct,
        headline=CORRECT_HEADLINE if correct else INCORRECT_HEADLINE,
        explanation=question.explanation,
    )


def passage_paragraphs(text: str) -> list[str]:
    return [chunk.strip() for chunk in text.split("\n\n") if chunk.strip()]


def progress_label(session: QuizSession) -> str:
    return f"Question {session.index + 1} of {session.total}"


def score_summary(session: QuizSession) -> str:
    return f"You scored {session.score} out of {session.total}!"
