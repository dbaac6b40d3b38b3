from __future__ import annotations

import asyncio
from typing import List, Optional

from rich.markup import escape
from textual.app import App, ComposeResult
from textual.containers import Container, Horizontal, VerticalScroll
from textual.widget import Widget
from textual.widgets import (
    Button,
    Footer,
    Header,
    Input,
    LoadingIndicator,
    Static,
)

from ..quiz.chat import ChatHelper
from ..quiz.controller import GenerationRequest, QuizController
from ..quiz.feedback import (
    OptionState,
    feedback_for,
    option_states,
    passage_paragraphs,
    progress_label,
    score_summary,
)
from ..quiz.models import DIFFICULTIES, find_difficulty
from ..quiz.state import QuizEvent, Screen


class QuizApp(App):
    TITLE = "English Conjunctions Quiz"
    SUB_TITLE = "Practice your English conjunctions with fun, themed texts!"
    CSS = """
#stage { padding: 1 2; }
.title { text-style: bold; color: $accent; margin-bottom: 1; }
.badge { color: $text-muted; margin-bottom: 1; }
#loading { height: 3; }
.choices { layout: grid; grid-size: 4; grid-gutter: 1; height: auto; }
.choices Button { width: 100%; }
.paragraph { margin-bottom: 1; }
#question { text-style: bold; margin: 1 0; }
.option { width: 100%; margin-bottom: 1; }
.option.-correct { background: $success; }
.option.-incorrect { background: $error; }
.option.-dimmed { opacity: 60%; }
.feedback { padding: 1; margin: 1 0; }
.feedback.-correct { border: round $success; }
.feedback.-incorrect { border: round $error; }
.chat { border: round $accent; padding: 0 1; height: auto; margin-top: 1; }
.message { margin-bottom: 1; }
.message.-user { color: $accent; }
#chat-row { height: auto; }
#chat-input { width: 1fr; }
"""
    BINDINGS = [
        ("escape", "back", "Back"),
        ("n", "next", "Next"),
        ("q", "quit", "Quit"),
    ]

    def __init__(
        self,
        controller: QuizController,
        *,
        initial_request: Optional[GenerationRequest] = None,
    ) -> None:
        super().__init__()
        self.controller = controller
        self._initial_request = initial_request
        self._stage_lock = asyncio.Lock()
        self._mounted_chat: Optional[ChatHelper] = None

    def compose(self) -> ComposeResult:
        yield Header()
        yield VerticalScroll(id="stage")
        yield Footer()

    async def on_mount(self) -> None:
        if self._initial_request is not None:
            self.start_generation(self._initial_request)
            self._initial_request = None
        await self.refresh_stage()

    async def refresh_stage(self) -> None:
        """Rebuild the stage from the controller's current session."""

        async with self._stage_lock:
            stage = self.query_one("#stage", VerticalScroll)
            draft, typing = "", False
            for field in self.query("#chat-input").results(Input):
                draft, typing = field.value, field.has_focus
            previous = self._mounted_chat
            await stage.remove_children()
            await stage.mount_all(stage_widgets(self.controller))
            helper = self.controller.chat()
            self._mounted_chat = helper
            if helper is None:
                return
            # A draft only carries over while the same question is shown.
            keep = helper is previous
            for field in self.query("#chat-input").results(Input):
                if keep and draft:
                    field.value = draft
                    field.cursor_position = len(draft)
                if (keep and typing) or len(helper.transcript):
                    field.focus()

    async def apply_event(self, event: QuizEvent) -> None:
        if self.controller.dispatch(event):
            await self.refresh_stage()

    def start_generation(self, request: GenerationRequest) -> None:
        controller = self.controller

        def work() -> None:
            event = controller.fetch(request)
            self.call_from_thread(self.apply_event, event)

        self.run_worker(
            work,
            name=f"quiz-{request.request_id}",
            group="generation",
            exclusive=True,
            thread=True,
        )

    def start_chat(self, helper: ChatHelper, prompt: str) -> None:
        def work() -> None:
            reply = helper.fetch_reply(prompt)
            self.call_from_thread(self.deliver_reply, helper, reply)

        self.run_worker(work, group="chat", exclusive=True, thread=True)

    async def deliver_reply(self, helper: ChatHelper, reply: str) -> None:
        helper.record_reply(reply)
        await self.refresh_stage()

    async def ask_tutor(self) -> None:
        helper = self.controller.chat()
        if helper is None:
            return
        field = self.query_one("#chat-input", Input)
        prompt = helper.begin(field.value)
        if prompt is None:
            return
        field.value = ""
        self.start_chat(helper, prompt)

    async def on_button_pressed(self, event: Button.Pressed) -> None:
        bid = event.button.id or ""
        controller = self.controller
        if bid.startswith("difficulty-"):
            controller.select_difficulty(bid.removeprefix("difficulty-"))
        elif bid.startswith("theme-"):
            themes = controller.themes
            position = int(bid.removeprefix("theme-"))
            if 0 <= position < len(themes):
                request = controller.select_theme(themes[position])
                if request is not None:
                    self.start_generation(request)
        elif bid.startswith("option-"):
            question = controller.session.current_question
            position = int(bid.removeprefix("option-"))
            if question is not None and 0 <= position < len(question.options):
                controller.answer(question.options[position])
        elif bid == "next":
            controller.next_question()
        elif bid in ("reset", "back"):
            controller.reset()
        elif bid == "retry":
            request = controller.retry()
            if request is not None:
                self.start_generation(request)
        elif bid == "ask":
            await self.ask_tutor()
        await self.refresh_stage()

    async def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id == "chat-input":
            await self.ask_tutor()
            await self.refresh_stage()

    async def action_back(self) -> None:
        if self.controller.reset():
            await self.refresh_stage()

    async def action_next(self) -> None:
        if self.controller.next_question():
            await self.refresh_stage()


def stage_widgets(controller: QuizController) -> List[Widget]:
    """Build the widgets for the controller's current view."""

    view = controller.view
    if view is Screen.SELECTING_DIFFICULTY:
        return _difficulty_widgets()
    if view is Screen.SELECTING_THEME:
        return _theme_widgets(controller)
    if view is Screen.LOADING:
        return [
            LoadingIndicator(id="loading"),
            Static("Creating your quiz...", classes="title"),
            Static("Press Esc to go back.", classes="badge"),
        ]
    if view is Screen.FAILED:
        return [
            Static("We couldn't create your quiz.", classes="title"),
            Static(
                controller.session.error or "", id="error", markup=False
            ),
            Horizontal(
                Button("Try Again", id="retry", variant="primary"),
                Button("Choose Another Theme", id="back"),
                classes="choices",
            ),
        ]
    if view is Screen.COMPLETE:
        return [
            Static("Quiz Complete! 🎉", classes="title"),
            Static(score_summary(controller.session), id="summary"),
            Button("Try Another Quiz", id="reset", variant="primary"),
        ]
    return _answering_widgets(controller)


def _difficulty_widgets() -> List[Widget]:
    buttons = [
        Button(d.label, id=f"difficulty-{d.id}") for d in DIFFICULTIES
    ]
    return [
        Static("Choose Your Difficulty! 🎯", classes="title"),
        Container(*buttons, classes="choices"),
    ]


def _theme_widgets(controller: QuizController) -> List[Widget]:
    widgets: List[Widget] = [
        Static("Choose Your Theme! 🎯", classes="title")
    ]
    badge = _difficulty_badge(controller)
    if badge:
        widgets.append(Static(badge, classes="badge", markup=False))
    buttons = [
        Button(escape(theme), id=f"theme-{position}")
        for position, theme in enumerate(controller.themes)
    ]
    widgets.append(Container(*buttons, classes="choices"))
    return widgets


def _difficulty_badge(controller: QuizController) -> Optional[str]:
    difficulty = find_difficulty(controller.session.difficulty)
    return f"Difficulty: {difficulty.name}" if difficulty else None


def _answering_widgets(controller: QuizController) -> List[Widget]:
    session = controller.session
    question = session.current_question
    if question is None:
        return []
    badge = f"Theme: {session.theme}"
    difficulty = _difficulty_badge(controller)
    if difficulty:
        badge += f"   {difficulty}"
    widgets: List[Widget] = [
        Static(badge, classes="badge", markup=False),
        Static(f"{session.theme} Text", classes="title", markup=False),
    ]
    widgets.extend(
        Static(paragraph, classes="paragraph", markup=False)
        for paragraph in passage_paragraphs(session.passage)
    )
    widgets.append(
        Static(
            f"{progress_label(session)}    Score: {session.score}",
            id="score",
        )
    )
    widgets.append(Static(question.text, id="question", markup=False))
    for position, (option, state) in enumerate(option_states(session)):
        classes = "option"
        if state is not OptionState.SELECTABLE:
            classes += f" -{state.value}"
        widgets.append(
            Button(
                escape(option),
                id=f"option-{position}",
                classes=classes,
                disabled=session.feedback_visible,
            )
        )
    feedback = feedback_for(session)
    if feedback is not None:
        tone = "-correct" if feedback.correct else "-incorrect"
        widgets.append(
            Static(
                f"{feedback.headline}\n\n{feedback.explanation}",
                id="feedback",
                classes=f"feedback {tone}",
                markup=False,
            )
        )
        widgets.append(Button("Next Question", id="next", variant="primary"))
        helper = controller.chat()
        if helper is not None:
            widgets.append(_chat_panel(helper))
    return widgets


def _chat_panel(helper: ChatHelper) -> Widget:
    children: List[Widget] = [
        Static("🤝 Need help? Chat with your AI tutor!", classes="title")
    ]
    for message in helper.transcript:
        icon = "👤" if message.is_user else "👩‍🏫"
        tone = "-user" if message.is_user else "-tutor"
        children.append(
            Static(
                f"{icon} {message.text}",
                classes=f"message {tone}",
                markup=False,
            )
        )
    if helper.busy:
        children.append(Static("• • •", id="chat-busy"))
    children.append(
        Horizontal(
            Input(
                placeholder="Ask a question about this answer...",
                id="chat-input",
            ),
            Button(
                "..." if helper.busy else "Ask",
                id="ask",
                disabled=helper.busy,
            ),
            id="chat-row",
        )
    )
    return Container(*children, classes="chat")
