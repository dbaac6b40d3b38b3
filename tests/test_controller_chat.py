from __future__ import annotations

import logging

from conjunction_quiz.quiz.chat import FALLBACK_REPLY, ChatHelper
from conjunction_quiz.quiz.generation import GenerationError, ResponseFormatError
from conjunction_quiz.quiz.prompts import TutorContext
from conjunction_quiz.quiz.state import QuizLoaded, Screen

from fixtures import ScriptedGenerator, make_quiz_reply


def test_load_quiz_end_to_end(controller, generator) -> None:
    generator.queue(make_quiz_reply())
    assert controller.view is Screen.SELECTING_DIFFICULTY
    assert controller.select_difficulty("easy")
    assert controller.load_quiz("Sports")
    assert controller.view is Screen.ANSWERING
    assert controller.session.theme == "Sports"
    assert "simple conjunctions" in generator.prompts[0]

    assert controller.answer("but")
    assert not controller.answer("and")
    assert controller.session.score == 1
    assert controller.next_question()
    assert controller.answer("although")
    assert controller.next_question()
    assert controller.view is Screen.COMPLETE
    assert controller.session.score == 1

    assert controller.reset()
    assert controller.view is Screen.SELECTING_DIFFICULTY


def test_select_theme_returns_pending_request(controller) -> None:
    controller.select_difficulty("hard")
    request = controller.select_theme("Gaming")
    assert request is not None
    assert request.theme == "Gaming"
    assert request.difficulty is not None and request.difficulty.id == "hard"
    assert request.request_id == controller.session.request_id
    assert controller.select_theme("Music") is None


def test_non_json_reply_is_logged_and_fails(controller, generator, caplog) -> None:
    generator.queue("Sorry, I cannot help with that.")
    controller.select_difficulty("easy")
    with caplog.at_level(logging.ERROR):
        controller.load_quiz("Food")
    assert controller.view is Screen.FAILED
    assert "not valid JSON" in (controller.session.error or "")
    assert "Quiz generation failed" in caplog.text

    generator.queue(make_quiz_reply())
    request = controller.retry()
    assert request is not None and request.theme == "Food"
    assert controller.dispatch(controller.fetch(request))
    assert controller.view is Screen.ANSWERING


def test_non_json_reply_keeps_loading_without_error_screen(
    make_controller, generator, caplog
) -> None:
    controller = make_controller(show_failures=False)
    generator.queue("not json at all")
    controller.select_difficulty("medium")
    with caplog.at_level(logging.ERROR):
        assert not controller.load_quiz("Movies")
    assert controller.view is Screen.LOADING
    assert "Quiz generation failed" in caplog.text
    assert controller.retry() is None
    assert controller.reset()


def test_transport_error_is_contained(controller, generator) -> None:
    generator.queue(GenerationError("timeout"))
    controller.select_difficulty("easy")
    controller.load_quiz("Travel")
    assert controller.view is Screen.FAILED
    assert controller.session.error == "timeout"


def test_stale_fetch_result_is_ignored(controller, generator) -> None:
    generator.queue(make_quiz_reply())
    controller.select_difficulty("easy")
    request = controller.select_theme("Animals")
    assert request is not None
    controller.reset()
    event = controller.fetch(request)
    assert isinstance(event, QuizLoaded)
    assert not controller.dispatch(event)
    assert controller.view is Screen.SELECTING_DIFFICULTY


def test_themes_skip_difficulty_when_disabled(make_controller, generator) -> None:
    controller = make_controller(ask_difficulty=False)
    generator.queue(make_quiz_reply())
    assert controller.view is Screen.SELECTING_THEME
    assert controller.load_quiz("Music")
    assert "level" not in generator.prompts[0].split("\n")[0]


def test_chat_available_only_after_feedback(controller, generator) -> None:
    generator.queue(make_quiz_reply())
    controller.select_difficulty("easy")
    controller.load_quiz("Sports")
    assert controller.chat() is None

    controller.answer("and")
    helper = controller.chat()
    assert helper is not None
    assert controller.chat() is helper
    assert helper.context.selected_answer == "and"
    assert helper.context.correct_answer == "but"
    assert helper.context.theme == "Sports"

    generator.queue("Because 'but' shows contrast.")
    reply = helper.send("Why is it 'but'?")
    assert reply is not None and not reply.is_user
    assert [m.is_user for m in helper.transcript] == [True, False]

    controller.next_question()
    assert controller.chat() is None
    controller.answer("so")
    fresh = controller.chat()
    assert fresh is not None and fresh is not helper
    assert len(fresh.transcript) == 0


def make_helper(*replies) -> tuple[ChatHelper, ScriptedGenerator]:
    generator = ScriptedGenerator(*replies)
    context = TutorContext(
        question="Q",
        selected_answer="and",
        correct_answer="but",
        explanation="contrast",
        theme="Food",
    )
    return ChatHelper(generator, context, audience="teens"), generator


def test_chat_helper_appends_pairs_in_order() -> None:
    helper, generator = make_helper("first reply", "second reply")
    helper.send("one")
    helper.send("two")
    assert [(m.text, m.is_user) for m in helper.transcript] == [
        ("one", True),
        ("first reply", False),
        ("two", True),
        ("second reply", False),
    ]
    assert "Student's question: two" in generator.prompts[1]


def test_chat_helper_ignores_blank_and_busy() -> None:
    helper, generator = make_helper("reply")
    assert helper.send("   ") is None
    prompt = helper.begin("hello")
    assert prompt is not None
    assert helper.busy
    assert helper.begin("again") is None
    helper.finish(prompt)
    assert not helper.busy
    assert len(helper.transcript) == 2
    assert generator.prompts == [prompt]


def test_chat_helper_falls_back_on_failure(caplog) -> None:
    helper, _ = make_helper(ResponseFormatError("garbled"))
    with caplog.at_level(logging.ERROR):
        reply = helper.send("help?")
    assert reply is not None
    assert reply.text == FALLBACK_REPLY
    assert not helper.busy
    assert "Tutor request failed" in caplog.text


def test_fetch_reply_leaves_transcript_to_record_reply() -> None:
    helper, generator = make_helper("tutor says hi")
    prompt = helper.begin("hello")
    assert prompt is not None

    reply = helper.fetch_reply(prompt)
    assert reply == "tutor says hi"
    assert helper.busy
    assert len(helper.transcript) == 1

    message = helper.record_reply(reply)
    assert not message.is_user
    assert not helper.busy
    assert [m.text for m in helper.transcript] == ["hello", "tutor says hi"]


def test_fetch_reply_falls_back_without_recording(caplog) -> None:
    helper, _ = make_helper(GenerationError("offline"))
    prompt = helper.begin("help?")
    assert prompt is not None
    with caplog.at_level(logging.ERROR):
        assert helper.fetch_reply(prompt) == FALLBACK_REPLY
    assert len(helper.transcript) == 1
    assert "Tutor request failed" in caplog.text
