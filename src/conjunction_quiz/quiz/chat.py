"""Follow-up tutor chat scoped to a single question."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterator, Optional

from .generation import GenerationError, TextGenerator
from .prompts import TutorContext, build_tutor_prompt

__all__ = [
    "FALLBACK_REPLY",
    "ChatMessage",
    "ChatTranscript",
    "ChatHelper",
]

logger = logging.getLogger(__name__)

FALLBACK_REPLY = "Sorry, I couldn't get a response. Please try again!"


@dataclass(frozen=True)
class ChatMessage:
    """A single transcript entry."""

    text: str
    is_user: bool


@dataclass
class ChatTranscript:
    """Ordered messages exchanged about the current question."""

    messages: list[ChatMessage] = field(default_factory=list)

    def add(self, text: str, *, is_user: bool) -> ChatMessage:
        entry = ChatMessage(text=text, is_user=is_user)
        self.messages.append(entry)
        return entry

    def __iter__(self) -> Iterator[ChatMessage]:
        return iter(self.messages)

    def __len__(self) -> int:
        return len(self.messages)


class ChatHelper:
    """Send learner questions about one quiz question to the tutor.

    ``send`` is the blocking path. A UI that wants the learner's message on
    screen before the reply arrives calls ``begin`` on the event loop,
    ``fetch_reply`` from a worker, then ``record_reply`` back on the loop.
    """

    def __init__(
        self,
        generator: TextGenerator,
        context: TutorContext,
        *,
        audience: str,
    ) -> None:
        self._generator = generator
        self.context = context
        self._audience = audience
        self.transcript = ChatTranscript()
        self._busy = False

    @property
    def busy(self) -> bool:
        return self._busy

    def begin(self, text: str) -> Optional[str]:
        """Record the learner's message and return the prompt to send.

        Returns ``None`` for blank input or while a reply is outstanding.
        """
        message = (text or "").strip()
        if not message or self._busy:
            return None
        self.transcript.add(message, is_user=True)
        self._busy = True
        return build_tutor_prompt(
            self.context, message, audience=self._audience
        )

    def fetch_reply(self, prompt: str) -> str:
        """Call the tutor without touching the transcript.

        Safe to run from a worker thread; hand the result to
        :meth:`record_reply` on the thread that owns the transcript.
        """
        try:
            return self._generator.complete(prompt)
        except GenerationError:
            logger.exception(
                "Tutor request failed",
                extra={"question": self.context.question},
            )
            return FALLBACK_REPLY

    def record_reply(self, reply: str) -> ChatMessage:
        self._busy = False
        return self.transcript.add(reply, is_user=False)

    def finish(self, prompt: str) -> ChatMessage:
        return self.record_reply(self.fetch_reply(prompt))

    def send(self, text: str) -> Optional[ChatMessage]:
        prompt = self.begin(text)
        if prompt is None:
            return None
        return self.finish(prompt)
