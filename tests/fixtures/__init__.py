"""Shared testing fixtures for the conjunction quiz test suite."""

from .openai import FakeOpenAI, ScriptedGenerator  # noqa: F401
from .quiz import make_quiz_reply  # noqa: F401

__all__ = ["FakeOpenAI", "ScriptedGenerator", "make_quiz_reply"]
