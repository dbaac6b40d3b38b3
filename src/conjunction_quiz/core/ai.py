"""OpenAI client construction shared by the quiz and tutor flows."""

from __future__ import annotations

import os
from typing import Any, Optional

from dotenv import load_dotenv
from openai import OpenAI

__all__ = ["API_KEY_ENV", "load_client"]

API_KEY_ENV = "OPENAI_API_KEY"


def load_client(*, api_base: Optional[str] = None) -> Any:
    """Initialize an OpenAI client using environment-derived credentials.

    ``.env`` files are honoured so learners can keep the key next to their
    ``conjquiz.toml``.
    """
    load_dotenv()
    api_key = os.getenv(API_KEY_ENV)
    if not api_key:
        raise RuntimeError(
            f"{API_KEY_ENV} not found in environment. Set it or add to .env"
        )
    if api_base:
        return OpenAI(api_key=api_key, base_url=api_base)
    return OpenAI(api_key=api_key)
