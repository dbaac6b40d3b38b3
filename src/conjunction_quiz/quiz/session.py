"""Rich-powered console session for the conjunction quiz.

This is the line-oriented counterpart of the Textual app: it renders the
controller's current view with Rich, reads one command per prompt from an
injectable input provider, and returns a :class:`ConsoleSessionResult` once
the learner quits or the input runs out.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Literal, Optional

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .controller import QuizController
from .feedback import (
    OptionState,
    feedback_for,
    option_states,
    passage_paragraphs,
    progress_label,
    score_summary,
)
from .models import DIFFICULTIES, find_difficulty
from .state import Screen

InputProvider = Callable[[], str]
ExitAction = Literal["quit", "interrupted"]

_OPTION_STYLES = {
    OptionState.SELECTABLE: "",
    OptionState.CORRECT: "bold green",
    OptionState.INCORRECT: "bold red",
    OptionState.DIMMED: "dim",
}


@dataclass(frozen=True)
class ConsoleSessionResult:
    """Return value from ``run_console_session``."""

    score: int
    total: int
    completed: bool
    exit_action: ExitAction
    quizzes_completed: int = 0


@dataclass(frozen=True)
class ConsoleCommand:
    """Normalized user command parsed from console input."""

    type: Literal["choose", "next", "ask", "retry", "back", "quit"]
    value: Optional[str] = None


def parse_console_command(raw: Optional[str]) -> Optional[ConsoleCommand]:
    """Parse raw user input into a structured command."""

    if raw is None:
        return None
    text = raw.strip()
    if not text:
        return None
    lowered = text.lower()
    if lowered in {"q", "quit", "exit"}:
        return ConsoleCommand("quit")
    if lowered in {"n", "next"}:
        return ConsoleCommand("next")
    if lowered in {"r", "retry"}:
        return ConsoleCommand("retry")
    if lowered in {"b", "back", "reset"}:
        return ConsoleCommand("back", text)
    head, _, rest = text.partition(" ")
    if head.lower() in {"ask", "?"}:
        question = rest.strip()
        return ConsoleCommand("ask", question) if question else None
    return ConsoleCommand("choose", text)


def run_console_session(
    controller: QuizController,
    console: Console,
    input_provider: InputProvider,
) -> ConsoleSessionResult:
    """Run the quiz until the learner quits or input is exhausted."""

    exit_action: ExitAction = "quit"
    completed_count = 0
    shown_passage_for: Optional[int] = None
    counted_for: Optional[int] = None
    while True:
        view = controller.view
        session = controller.session
        if view is Screen.ANSWERING and shown_passage_for != session.request_id:
            _render_passage(console, controller)
            shown_passage_for = session.request_id
        if view is Screen.COMPLETE and counted_for != session.request_id:
            completed_count += 1
            counted_for = session.request_id
        _render_view(console, controller)
        try:
            raw = input_provider()
        except (EOFError, KeyboardInterrupt, StopIteration):
            console.print("\n[bold yellow]Session interrupted.[/]")
            exit_action = "interrupted"
            break
        command = parse_console_command(raw)
        if command is None:
            console.print("[red]Unrecognized command. Try again.[/]")
            continue
        if command.type == "quit":
            console.print("\n[bold yellow]Goodbye![/]")
            break
        if not _apply_command(command, controller, console):
            console.print("[red]That is not available right now.[/]")

    session = controller.session
    return ConsoleSessionResult(
        score=session.score,
        total=session.total,
        completed=session.is_complete,
        exit_action=exit_action,
        quizzes_completed=completed_count,
    )


def _apply_command(
    command: ConsoleCommand,
    controller: QuizController,
    console: Console,
) -> bool:
    view = controller.view
    if command.type == "choose" and command.value:
        return _apply_choice(command.value, controller, console)
    if command.type == "next":
        return controller.next_question()
    if command.type == "back":
        # "b" doubles as option B while a question is open.
        if view is Screen.ANSWERING and command.value:
            return _apply_choice(command.value, controller, console)
        return controller.reset()
    if command.type == "retry":
        request = controller.retry()
        if request is None:
            return False
        with console.status("Creating your quiz..."):
            controller.dispatch(controller.fetch(request))
        return True
    if command.type == "ask" and view is Screen.ANSWERING:
        helper = controller.chat()
        if helper is None:
            return False
        with console.status("Asking your tutor..."):
            reply = helper.send(command.value or "")
        if reply is None:
            return False
        console.print(
            Panel(reply.text, title="👩‍🏫 Tutor", border_style="magenta")
        )
        return True
    return False


def _apply_choice(
    value: str, controller: QuizController, console: Console
) -> bool:
    view = controller.view
    if view is Screen.SELECTING_DIFFICULTY:
        difficulty = _pick(value, [d.id for d in DIFFICULTIES])
        return bool(difficulty) and controller.select_difficulty(difficulty)
    if view is Screen.SELECTING_THEME:
        theme = _pick(value, list(controller.themes))
        if not theme:
            return False
        request = controller.select_theme(theme)
        if request is None:
            return False
        with console.status("Creating your quiz..."):
            controller.dispatch(controller.fetch(request))
        return True
    if view is Screen.ANSWERING:
        question = controller.session.current_question
        if question is None:
            return False
        option = _pick_option(value, list(question.options))
        return option is not None and controller.answer(option)
    return False


def _pick(value: str, candidates: list[str]) -> Optional[str]:
    text = value.strip()
    if text.isdigit():
        position = int(text) - 1
        if 0 <= position < len(candidates):
            return candidates[position]
        return None
    for candidate in candidates:
        if candidate.lower() == text.lower():
            return candidate
    return None


def _pick_option(value: str, options: list[str]) -> Optional[str]:
    text = value.strip()
    if len(text) == 1 and text.isalpha():
        position = ord(text.upper()) - ord("A")
        if 0 <= position < len(options):
            return options[position]
        return None
    if text.isdigit():
        position = int(text) - 1
        if 0 <= position < len(options):
            return options[position]
        return None
    return text if text in options else None


def _render_view(console: Console, controller: QuizController) -> None:
    view = controller.view
    session = controller.session
    console.print()
    if view is Screen.SELECTING_DIFFICULTY:
        _render_menu(
            console,
            "Choose Your Difficulty! 🎯",
            [d.label for d in DIFFICULTIES],
        )
    elif view is Screen.SELECTING_THEME:
        difficulty = find_difficulty(session.difficulty)
        title = "Choose Your Theme! 🎯"
        if difficulty:
            title += f"  (Difficulty: {difficulty.name})"
        _render_menu(console, title, list(controller.themes))
    elif view is Screen.LOADING:
        console.print(
            Panel(
                "Creating your quiz...",
                border_style="magenta",
                subtitle="b (back), q (quit)",
            )
        )
    elif view is Screen.FAILED:
        console.print(
            Panel(
                Text.assemble(
                    ("We couldn't create your quiz.\n", "bold red"),
                    (session.error or "", "dim"),
                ),
                title="Something went wrong",
                border_style="red",
                subtitle="r (retry), b (back), q (quit)",
            )
        )
    elif view is Screen.COMPLETE:
        _render_complete(console, controller)
    else:
        _render_question(console, controller)


def _render_menu(console: Console, title: str, entries: list[str]) -> None:
    console.rule(Text(title, style="bold magenta"))
    table = Table(show_header=False, box=box.SIMPLE, expand=False)
    table.add_column("#", justify="right", style="cyan")
    table.add_column("Choice")
    for position, entry in enumerate(entries, start=1):
        table.add_row(str(position), entry)
    console.print(table)
    console.print(Text("Enter a number or name, q to quit", style="dim"))


def _render_passage(console: Console, controller: QuizController) -> None:
    session = controller.session
    console.print()
    console.rule(Text(f"{session.theme} Text", style="bold magenta"))
    for paragraph in passage_paragraphs(session.passage):
        console.print(paragraph)
        console.print()


def _render_question(console: Console, controller: QuizController) -> None:
    session = controller.session
    question = session.current_question
    if question is None:
        return
    header = Text.assemble(
        (progress_label(session), "bold cyan"),
        (f"  Score: {session.score}", "dim"),
    )
    console.rule(header)
    console.print(Text(question.text, style="bold"))

    table = Table(show_header=False, box=box.SIMPLE, expand=True)
    table.add_column("Key", justify="center", style="cyan")
    table.add_column("Option")
    for position, (option, state) in enumerate(option_states(session)):
        table.add_row(
            chr(ord("A") + position),
            Text(option, style=_OPTION_STYLES[state]),
        )
    console.print(table)

    feedback = feedback_for(session)
    if feedback is None:
        console.print(Text("Pick an option (A, B, ...), q to quit", style="dim"))
        return
    console.print(
        Panel(
            Text.assemble(
                (feedback.headline + "\n", "bold"),
                feedback.explanation,
            ),
            border_style="green" if feedback.correct else "red",
        )
    )
    console.print(
        Text("n (next question), ask <question> (tutor), q (quit)", style="dim")
    )


def _render_complete(console: Console, controller: QuizController) -> None:
    console.print(
        Panel(
            Text(score_summary(controller.session), justify="center"),
            title="Quiz Complete! 🎉",
            border_style="magenta",
            subtitle="b (try another quiz), q (quit)",
        )
    )
