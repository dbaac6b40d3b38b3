"""Text-generation calls and parsing of generated quizzes."""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Mapping, Optional, Protocol

from ..config import AIConfig, QuizConfig
from ..core.ai import load_client
from .models import Difficulty, Question, Quiz
from .prompts import build_passage_prompt

__all__ = [
    "GenerationError",
    "ResponseFormatError",
    "TextGenerator",
    "OpenAITextGenerator",
    "strip_code_fence",
    "parse_quiz_response",
    "generate_quiz",
]

logger = logging.getLogger(__name__)

_LEADING_FENCE = re.compile(r"^```[A-Za-z]*[ \t]*\n?")
_TRAILING_FENCE = re.compile(r"\n?```$")


class GenerationError(RuntimeError):
    """Raised when the generation endpoint cannot produce a usable reply."""


class ResponseFormatError(GenerationError):
    """Raised when a reply is not the quiz JSON that was asked for."""


class TextGenerator(Protocol):
    """Anything that turns an instruction into generated text."""

    def complete(self, prompt: str) -> str:
        """Return the generated reply for ``prompt``."""


class OpenAITextGenerator:
    """Single-message chat completions against OpenAI."""

    def __init__(
        self,
        *,
        model: str,
        temperature: float,
        max_tokens: int,
        request_timeout: int,
        api_base: Optional[str] = None,
        client: Any | None = None,
    ) -> None:
        self._model = model
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._timeout = request_timeout
        self._api_base = api_base
        self._client = client

    @classmethod
    def from_config(
        cls, config: AIConfig, *, client: Any | None = None
    ) -> "OpenAITextGenerator":
        return cls(
            model=config.model,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
            request_timeout=config.request_timeout_seconds,
            api_base=config.api_base,
            client=client,
        )

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = load_client(api_base=self._api_base)
        return self._client

    def complete(self, prompt: str) -> str:
        try:
            response = self.client.chat.completions.create(
                model=self._model,
                messages=[{"role": "user", "content": prompt}],
                temperature=self._temperature,
                max_tokens=self._max_tokens,
                timeout=self._timeout,
            )
            content = response.choices[0].message.content
        except Exception as exc:
            raise GenerationError(
                f"Generation request failed: {exc}"
            ) from exc
        text = (content or "").strip()
        if not text:
            raise GenerationError("Generation endpoint returned no text.")
        return text


def strip_code_fence(text: str) -> str:
    """Remove a leading and trailing Markdown code fence if present."""

    stripped = (text or "").strip()
    stripped = _LEADING_FENCE.sub("", stripped, count=1)
    stripped = _TRAILING_FENCE.sub("", stripped, count=1)
    return stripped.strip()


def parse_quiz_response(text: str) -> Quiz:
    """Parse a generated reply into a :class:`Quiz`.

    The reply may be wrapped in a fenced code block. Anything other than a
    JSON object with ``text`` and ``questions`` raises
    :class:`ResponseFormatError`.
    """

    payload = strip_code_fence(text)
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise ResponseFormatError(f"Response is not valid JSON: {exc}") from exc
    if not isinstance(data, Mapping):
        raise ResponseFormatError("Response JSON must be an object.")
    passage = data.get("text")
    if not isinstance(passage, str):
        raise ResponseFormatError("Response is missing the 'text' passage.")
    raw_questions = data.get("questions")
    if not isinstance(raw_questions, list):
        raise ResponseFormatError("Response is missing the 'questions' list.")
    questions = tuple(
        _build_question(item, position)
        for position, item in enumerate(raw_questions, start=1)
    )
    return Quiz(passage=passage, questions=questions)


def _build_question(item: Any, position: int) -> Question:
    if not isinstance(item, Mapping):
        raise ResponseFormatError(f"Question {position} must be an object.")
    text = item.get("text")
    options = item.get("options")
    correct = item.get("correctAnswer")
    explanation = item.get("explanation") or ""
    if not isinstance(text, str):
        raise ResponseFormatError(f"Question {position} is missing 'text'.")
    if not isinstance(options, list) or not all(
        isinstance(option, str) for option in options
    ):
        raise ResponseFormatError(
            f"Question {position} 'options' must be a list of strings."
        )
    if not isinstance(correct, str):
        raise ResponseFormatError(
            f"Question {position} is missing 'correctAnswer'."
        )
    if not isinstance(explanation, str):
        raise ResponseFormatError(
            f"Question {position} 'explanation' must be a string."
        )
    if correct not in options:
        logger.warning(
            "Correct answer does not match any option",
            extra={"question": position, "correct_answer": correct},
        )
    return Question(
        text=text,
        options=tuple(options),
        correct_answer=correct,
        explanation=explanation,
    )


def generate_quiz(
    generator: TextGenerator,
    theme: str,
    difficulty: Optional[Difficulty],
    settings: QuizConfig,
) -> Quiz:
    prompt = build_passage_prompt(
        theme,
        difficulty,
        audience=settings.audience,
        paragraphs=settings.paragraphs,
        question_count=settings.question_count,
    )
    return parse_quiz_response(generator.complete(prompt))
