from __future__ import annotations

from rich.console import Console

from conjunction_quiz.quiz.session import (
    ConsoleCommand,
    ConsoleSessionResult,
    parse_console_command,
    run_console_session,
)

from fixtures import make_quiz_reply


def make_provider(commands: list[str]):
    iterator = iter(commands)

    def _provider() -> str:
        return next(iterator)

    return _provider


def make_console() -> Console:
    return Console(record=True, width=100, force_terminal=True)


def test_parse_console_command_variants() -> None:
    assert parse_console_command("q") == ConsoleCommand("quit")
    assert parse_console_command(" Next ") == ConsoleCommand("next")
    assert parse_console_command("r") == ConsoleCommand("retry")
    assert parse_console_command("back") == ConsoleCommand("back", "back")
    assert parse_console_command("2") == ConsoleCommand("choose", "2")
    assert parse_console_command("ask why?") == ConsoleCommand("ask", "why?")
    assert parse_console_command("ask   ") is None
    assert parse_console_command("") is None
    assert parse_console_command(None) is None


def test_console_session_full_quiz(controller, generator) -> None:
    generator.queue(make_quiz_reply())
    console = make_console()
    provider = make_provider(["1", "sports", "B", "n", "so", "n", "q"])

    result = run_console_session(controller, console, provider)

    assert isinstance(result, ConsoleSessionResult)
    assert result.exit_action == "quit"
    assert result.completed
    assert result.score == 2
    assert result.total == 2
    assert result.quizzes_completed == 1
    rendered = console.export_text()
    assert "Choose Your Difficulty" in rendered
    assert "Sports Text" in rendered
    assert "First paragraph." in rendered
    assert "Correct!" in rendered
    assert "You scored 2 out of 2!" in rendered


def test_console_session_wrong_answer_and_tutor(controller, generator) -> None:
    generator.queue(make_quiz_reply())
    generator.queue("Think about contrast.")
    console = make_console()
    provider = make_provider(
        ["easy", "2", "a", "a", "ask why not and?", "q"]
    )

    result = run_console_session(controller, console, provider)

    assert result.score == 0
    assert not result.completed
    rendered = console.export_text()
    assert "Not quite right." in rendered
    assert "'but' introduces a contrast." in rendered
    assert "Think about contrast." in rendered
    assert "not available" in rendered
    assert "Student's question: why not and?" in generator.prompts[1]


def test_console_session_failure_retry_and_back(controller, generator) -> None:
    generator.queue("no json here")
    generator.queue(make_quiz_reply())
    console = make_console()
    provider = make_provider(["3", "Food", "r", "b", "q"])

    result = run_console_session(controller, console, provider)

    rendered = console.export_text()
    assert "We couldn't create your quiz." in rendered
    assert "Question 1 of 2" in rendered
    assert result.exit_action == "quit"
    assert result.total == 2


def test_console_session_interrupted_on_eof(controller) -> None:
    console = make_console()
    result = run_console_session(controller, console, make_provider([]))
    assert result.exit_action == "interrupted"
    assert result.total == 0
    assert "Session interrupted" in console.export_text()


def test_console_session_rejects_unknown_choice(controller) -> None:
    console = make_console()
    provider = make_provider(["9", "", "q"])
    run_console_session(controller, console, provider)
    rendered = console.export_text()
    assert "not available" in rendered
    assert "Unrecognized command" in rendered
