"""Instruction templates sent to the text-generation endpoint."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .models import Difficulty

__all__ = [
    "QUIZ_SCHEMA",
    "TutorContext",
    "build_passage_prompt",
    "build_tutor_prompt",
]

QUIZ_SCHEMA = """{
  "text": "the text content",
  "questions": [
    {
      "text": "question text",
      "options": ["option1", "option2", "option3", "option4"],
      "correctAnswer": "correct option",
      "explanation": "why this is correct"
    }
  ]
}"""


@dataclass(frozen=True)
class TutorContext:
    """The question a learner is asking the tutor about."""

    question: str
    selected_answer: str
    correct_answer: str
    explanation: str
    theme: str


def build_passage_prompt(
    theme: str,
    difficulty: Optional[Difficulty] = None,
    *,
    audience: str,
    paragraphs: int = 5,
    question_count: int = 5,
) -> str:
    level = f"{difficulty.id} level " if difficulty else ""
    focus = (
        difficulty.connectives
        if difficulty
        else "a varied range of conjunctions"
    )
    return (
        f"Create an engaging {level}text about {theme} for {audience}.\n"
        f"The text should be {paragraphs} paragraphs long, with paragraphs "
        f"separated by a blank line, and specifically use {focus}.\n"
        f"Then create {question_count} multiple choice questions about "
        "conjunctions used in the text. Each question has 4 options and "
        "exactly one of them, copied verbatim, is the correct answer.\n"
        "Format the response as JSON with this structure:\n"
        f"{QUIZ_SCHEMA}"
    )


def build_tutor_prompt(
    context: TutorContext, message: str, *, audience: str
) -> str:
    return (
        "You are a helpful English teacher. The student is learning about "
        "conjunctions.\n\n"
        "Context:\n"
        f"- Theme: {context.theme}\n"
        f"- Question: {context.question}\n"
        f"- Student's answer: {context.selected_answer}\n"
        f"- Correct answer: {context.correct_answer}\n"
        f"- Explanation: {context.explanation}\n\n"
        f"Student's question: {message}\n\n"
        "Please provide a helpful, encouraging response that:\n"
        "1. Addresses their specific question\n"
        "2. Explains why their answer was incorrect (if relevant)\n"
        "3. Helps them understand the correct usage of the conjunction\n"
        "4. Provides an additional example if helpful\n\n"
        f"Keep your response friendly and suitable for {audience}."
    )
