"""Immutable quiz data: difficulties, questions and generated quizzes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Difficulty:
    """A difficulty tier and the class of connectives it emphasizes."""

    id: str
    name: str
    emoji: str
    connectives: str

    @property
    def label(self) -> str:
        return f"{self.emoji} {self.name}"


DIFFICULTIES: tuple[Difficulty, ...] = (
    Difficulty(
        "easy",
        "Easy",
        "😊",
        "simple conjunctions like 'and', 'but', 'or', 'so'",
    ),
    Difficulty(
        "medium",
        "Medium",
        "🤔",
        "intermediate conjunctions like 'although', 'unless', 'since', "
        "'while'",
    ),
    Difficulty(
        "hard",
        "Hard",
        "🧐",
        "advanced conjunctions like 'nevertheless', 'whereas', 'moreover', "
        "'consequently'",
    ),
)


def find_difficulty(difficulty_id: Optional[str]) -> Optional[Difficulty]:
    if not difficulty_id:
        return None
    wanted = difficulty_id.strip().lower()
    for difficulty in DIFFICULTIES:
        if difficulty.id == wanted:
            return difficulty
    return None


@dataclass(frozen=True)
class Question:
    """One multiple-choice question about the passage.

    ``correct_answer`` is compared by exact string equality against the
    options; duplicates among the options are allowed.
    """

    text: str
    options: tuple[str, ...]
    correct_answer: str
    explanation: str = ""

    def is_correct(self, answer: str) -> bool:
        return answer == self.correct_answer


@dataclass(frozen=True)
class Quiz:
    passage: str
    questions: tuple[Question, ...]
