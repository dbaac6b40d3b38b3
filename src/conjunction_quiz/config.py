"""Configuration for the conjunction quiz.

Settings live in a small TOML file grouped by concern. Every key has a
built-in default so the quiz runs without any file at all; a file only
overrides what it names, and unknown keys are rejected to catch typos.
"""

from __future__ import annotations

import copy
import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

CONFIG_PATH_ENV = "CONJQUIZ_CONFIG"
CONFIG_FILENAME = "conjquiz.toml"

DEFAULT_THEMES = (
    "Sports",
    "Music",
    "Technology",
    "Food",
    "Travel",
    "Movies",
    "Animals",
    "Gaming",
)


class ConfigError(RuntimeError):
    """Raised when configuration parsing or validation fails."""


@dataclass(frozen=True)
class AIConfig:
    model: str
    temperature: float
    max_tokens: int
    request_timeout_seconds: int
    api_base: Optional[str]


@dataclass(frozen=True)
class QuizConfig:
    ask_difficulty: bool
    show_failures: bool
    audience: str
    paragraphs: int
    question_count: int
    themes: tuple[str, ...]


@dataclass(frozen=True)
class LoggingConfig:
    level: str
    verbose: bool
    log_dir: Optional[Path]


@dataclass(frozen=True)
class AppConfig:
    ai: AIConfig
    quiz: QuizConfig
    logging: LoggingConfig
    source: Optional[Path] = None


_DEFAULTS: Dict[str, Any] = {
    "ai": {
        "model": "gpt-4o-mini",
        "temperature": 0.7,
        "max_tokens": 2000,
        "request_timeout_seconds": 60,
        "api_base": None,
    },
    "quiz": {
        "ask_difficulty": True,
        "show_failures": True,
        "audience": "HAVO 4 students (age 15-16)",
        "paragraphs": 5,
        "question_count": 5,
        "themes": list(DEFAULT_THEMES),
    },
    "logging": {
        "level": "INFO",
        "verbose": False,
        "log_dir": None,
    },
}

CONFIG_TEMPLATE = """\
# Conjunction quiz configuration

[ai]
model = "gpt-4o-mini"
temperature = 0.7
max_tokens = 2000
request_timeout_seconds = 60
# api_base = "https://api.openai.com/v1"

[quiz]
# Ask for a difficulty before the theme
ask_difficulty = true
# Show an error screen with retry when generation fails; when false the
# quiz keeps showing the loading indicator
show_failures = true
audience = "HAVO 4 students (age 15-16)"
paragraphs = 5
question_count = 5
themes = ["Sports", "Music", "Technology", "Food", "Travel", "Movies", "Animals", "Gaming"]

[logging]
level = "INFO"
verbose = false
# log_dir = "~/.conjquiz/logs"
"""


def default_config() -> AppConfig:
    return _build_config(copy.deepcopy(_DEFAULTS))


def resolve_config_path(
    explicit: Optional[Path] = None,
    *,
    env: Optional[Mapping[str, str]] = None,
    cwd: Optional[Path] = None,
) -> Optional[Path]:
    """Locate the config file: explicit path, then env var, then cwd."""

    if explicit is not None:
        return Path(explicit).expanduser()
    environ = os.environ if env is None else env
    from_env = environ.get(CONFIG_PATH_ENV)
    if from_env:
        return Path(from_env).expanduser()
    candidate = (cwd or Path.cwd()) / CONFIG_FILENAME
    return candidate if candidate.is_file() else None


def load_config(
    path: Optional[Path] = None,
    *,
    env: Optional[Mapping[str, str]] = None,
    cwd: Optional[Path] = None,
) -> AppConfig:
    """Load settings, falling back to defaults when no file is found."""

    resolved = resolve_config_path(path, env=env, cwd=cwd)
    data = copy.deepcopy(_DEFAULTS)
    if resolved is None:
        return _build_config(data)
    _overlay(data, _read_toml(resolved))
    return _build_config(data, source=resolved)


def write_config_template(path: Path, *, overwrite: bool = False) -> Path:
    """Write the commented starter config to ``path``."""

    if path.exists() and not overwrite:
        raise ConfigError(f"Config already exists: {path}")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(CONFIG_TEMPLATE, encoding="utf-8")
    return path


def _read_toml(path: Path) -> Dict[str, Any]:
    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise ConfigError(f"Config file not found: {path}") from exc
    except (tomllib.TOMLDecodeError, UnicodeDecodeError) as exc:
        raise ConfigError(f"{path} is not valid TOML: {exc}") from exc


def _overlay(
    settings: Dict[str, Any],
    overrides: Mapping[str, Any],
    *,
    prefix: str = "",
) -> None:
    # Sections are dicts in _DEFAULTS; everything else is a leaf value.
    for key, value in overrides.items():
        name = f"{prefix}{key}"
        if key not in settings:
            raise ConfigError(f"Unknown configuration key '{name}'.")
        current = settings[key]
        if not isinstance(current, dict):
            settings[key] = value
        elif isinstance(value, Mapping):
            _overlay(current, value, prefix=f"{name}.")
        else:
            raise ConfigError(
                f"'{name}' must be a [{name}] table, "
                f"not {type(value).__name__}."
            )


def _require_positive_int(value: Any, *, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConfigError(f"'{field}' must be a positive integer.")
    return value


def _require_bool(value: Any, *, field: str) -> bool:
    if not isinstance(value, bool):
        raise ConfigError(f"'{field}' must be a boolean.")
    return value


def _require_float_range(
    value: Any, *, field: str, min_value: float, max_value: float
) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"'{field}' must be a number.")
    number = float(value)
    if not (min_value <= number <= max_value):
        raise ConfigError(
            f"'{field}' must be between {min_value} and {max_value}."
        )
    return number


def _require_string(value: Any, *, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"'{field}' must be a non-empty string.")
    return value.strip()


def _coerce_optional_string(value: Any, *, field: str) -> Optional[str]:
    if value is None:
        return None
    return _require_string(value, field=field)


def _require_themes(value: Any) -> tuple[str, ...]:
    if not isinstance(value, list) or not value:
        raise ConfigError("'quiz.themes' must be a non-empty list of strings.")
    themes = tuple(
        _require_string(item, field="quiz.themes[]") for item in value
    )
    if len(set(themes)) != len(themes):
        raise ConfigError("'quiz.themes' must not contain duplicates.")
    return themes


def _build_ai(section: Mapping[str, Any]) -> AIConfig:
    return AIConfig(
        model=_require_string(section.get("model"), field="ai.model"),
        temperature=_require_float_range(
            section.get("temperature"),
            field="ai.temperature",
            min_value=0.0,
            max_value=2.0,
        ),
        max_tokens=_require_positive_int(
            section.get("max_tokens"), field="ai.max_tokens"
        ),
        request_timeout_seconds=_require_positive_int(
            section.get("request_timeout_seconds"),
            field="ai.request_timeout_seconds",
        ),
        api_base=_coerce_optional_string(
            section.get("api_base"), field="ai.api_base"
        ),
    )


def _build_quiz(section: Mapping[str, Any]) -> QuizConfig:
    return QuizConfig(
        ask_difficulty=_require_bool(
            section.get("ask_difficulty"), field="quiz.ask_difficulty"
        ),
        show_failures=_require_bool(
            section.get("show_failures"), field="quiz.show_failures"
        ),
        audience=_require_string(
            section.get("audience"), field="quiz.audience"
        ),
        paragraphs=_require_positive_int(
            section.get("paragraphs"), field="quiz.paragraphs"
        ),
        question_count=_require_positive_int(
            section.get("question_count"), field="quiz.question_count"
        ),
        themes=_require_themes(section.get("themes")),
    )


def _build_logging(section: Mapping[str, Any]) -> LoggingConfig:
    level = _require_string(section.get("level"), field="logging.level")
    log_dir = _coerce_optional_string(
        section.get("log_dir"), field="logging.log_dir"
    )
    return LoggingConfig(
        level=level.upper(),
        verbose=_require_bool(
            section.get("verbose"), field="logging.verbose"
        ),
        log_dir=Path(log_dir).expanduser() if log_dir else None,
    )


def _build_config(
    data: Mapping[str, Any], *, source: Optional[Path] = None
) -> AppConfig:
    return AppConfig(
        ai=_build_ai(data["ai"]),
        quiz=_build_quiz(data["quiz"]),
        logging=_build_logging(data["logging"]),
        source=source,
    )
