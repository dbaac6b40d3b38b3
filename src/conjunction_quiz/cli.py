import argparse
import logging
import sys
from importlib import metadata
from pathlib import Path
from typing import Any, Callable, Optional, Sequence

from rich.console import Console

from . import __version__
from .config import (
    CONFIG_FILENAME,
    AppConfig,
    ConfigError,
    load_config,
    write_config_template,
)
from .core import configure_logger, load_client
from .quiz.controller import QuizController
from .quiz.generation import OpenAITextGenerator
from .quiz.models import DIFFICULTIES
from .quiz.session import run_console_session
from .quiz.state import Screen

LOGGER_NAME = "conjunction_quiz"


def _cmd_init(args: argparse.Namespace) -> int:
    path = Path(args.path or CONFIG_FILENAME).resolve()
    try:
        write_config_template(path, overwrite=bool(args.force))
    except ConfigError as exc:
        print(f"{exc} (use --force to overwrite)")
        return 1
    print(f"Created template {path}")
    return 0


def _cmd_themes(args: argparse.Namespace) -> int:
    try:
        cfg = load_config(_optional_path(args.config))
    except ConfigError as exc:
        print(f"Error: {exc}")
        return 2
    print("Difficulties:")
    for difficulty in DIFFICULTIES:
        print(f"- {difficulty.id}: {difficulty.connectives}")
    print("Themes:")
    for theme in cfg.quiz.themes:
        print(f"- {theme}")
    return 0


def _cmd_version(args: argparse.Namespace) -> int:
    try:
        version = metadata.version("conjunction-quiz")
    except metadata.PackageNotFoundError:
        version = __version__
    print(version)
    return 0


def _cmd_play(
    args: argparse.Namespace,
    *,
    client_factory: Callable[..., Any] = load_client,
    input_provider: Optional[Callable[[], str]] = None,
) -> int:
    try:
        cfg = load_config(_optional_path(args.config))
    except ConfigError as exc:
        print(f"Error: {exc}")
        return 2
    logger = _configure_logging(cfg, verbose=bool(args.verbose))

    if args.theme and args.theme not in cfg.quiz.themes:
        print(f"Error: unknown theme '{args.theme}'")
        return 2

    try:
        client = client_factory(api_base=cfg.ai.api_base)
    except RuntimeError as exc:
        logger.error("OpenAI client unavailable", extra={"error": str(exc)})
        print(f"Error: {exc}")
        return 2
    generator = OpenAITextGenerator.from_config(cfg.ai, client=client)
    controller = QuizController(generator, cfg.quiz)
    logger.info(
        "Starting quiz",
        extra={
            "plain": bool(args.plain),
            "config": cfg.source,
            "model": cfg.ai.model,
        },
    )

    if args.difficulty:
        controller.select_difficulty(args.difficulty)
    if args.plain:
        console = Console()
        if args.theme and controller.view is Screen.SELECTING_THEME:
            with console.status("Creating your quiz..."):
                controller.load_quiz(args.theme)
        result = run_console_session(
            controller,
            console,
            input_provider or (lambda: console.input("> ")),
        )
        logger.info(
            "Quiz session ended",
            extra={
                "score": result.score,
                "total": result.total,
                "completed": result.completed,
                "exit_action": result.exit_action,
            },
        )
        return 0

    from .view.app import QuizApp

    request = None
    if args.theme and controller.view is Screen.SELECTING_THEME:
        request = controller.select_theme(args.theme)
    QuizApp(controller, initial_request=request).run()
    return 0


def _optional_path(value: Optional[str]) -> Optional[Path]:
    return Path(value) if value else None


def _configure_logging(cfg: AppConfig, *, verbose: bool) -> logging.Logger:
    logger, _ = configure_logger(
        LOGGER_NAME,
        log_dir=cfg.logging.log_dir,
        level=cfg.logging.level,
        verbose=verbose or cfg.logging.verbose,
        filename="conjquiz.log",
    )
    return logger


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="conjquiz",
        description="Practice English conjunctions with AI-generated texts",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    sub = p.add_subparsers(dest="command", required=True)

    sp_init = sub.add_parser("init", help="Create a conjquiz.toml template")
    sp_init.add_argument("path", nargs="?")
    sp_init.add_argument("--force", action="store_true")

    sp_themes = sub.add_parser(
        "themes", help="List difficulties and themes"
    )
    sp_themes.add_argument("--config")

    sub.add_parser("version", help="Show the installed version")

    sp_play = sub.add_parser("play", help="Start a quiz")
    sp_play.add_argument("--config", help="Path to conjquiz.toml")
    sp_play.add_argument(
        "--plain",
        action="store_true",
        help="Use the line-oriented console instead of the TUI",
    )
    sp_play.add_argument(
        "--difficulty",
        choices=[d.id for d in DIFFICULTIES],
        help="Skip the difficulty screen",
    )
    sp_play.add_argument("--theme", help="Skip the theme screen")
    sp_play.add_argument(
        "--verbose",
        action="store_true",
        help="Also log to stderr at DEBUG level",
    )
    return p


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    if args.command == "init":
        code = _cmd_init(args)
    elif args.command == "themes":
        code = _cmd_themes(args)
    elif args.command == "version":
        code = _cmd_version(args)
    elif args.command == "play":
        code = _cmd_play(args)
    else:  # pragma: no cover - fallback guard
        parser.print_help()
        code = 2
    raise SystemExit(code)


if __name__ == "__main__":  # pragma: no cover - manual invocation guard
    main(sys.argv[1:])
