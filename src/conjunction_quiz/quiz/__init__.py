from .models import DIFFICULTIES, Difficulty, Question, Quiz, find_difficulty
from .prompts import TutorContext, build_passage_prompt, build_tutor_prompt
from .generation import (
    GenerationError,
    ResponseFormatError,
    TextGenerator,
    OpenAITextGenerator,
    strip_code_fence,
    parse_quiz_response,
    generate_quiz,
)
from .state import (
    Screen,
    FlowOptions,
    QuizSession,
    DifficultySelected,
    ThemeSelected,
    QuizLoaded,
    QuizFailed,
    AnswerSelected,
    NextQuestion,
    Retry,
    Reset,
    initial_session,
    transition,
    view_of,
)
from .feedback import (
    OptionState,
    FeedbackView,
    option_states,
    feedback_for,
    passage_paragraphs,
    progress_label,
    score_summary,
)
from .chat import FALLBACK_REPLY, ChatHelper, ChatMessage, ChatTranscript
from .controller import GenerationRequest, QuizController
from .session import (
    ConsoleCommand,
    ConsoleSessionResult,
    parse_console_command,
    run_console_session,
)

__all__ = [
    "DIFFICULTIES",
    "Difficulty",
    "Question",
    "Quiz",
    "find_difficulty",
    "TutorContext",
    "build_passage_prompt",
    "build_tutor_prompt",
    "GenerationError",
    "ResponseFormatError",
    "TextGenerator",
    "OpenAITextGenerator",
    "strip_code_fence",
    "parse_quiz_response",
    "generate_quiz",
    "Screen",
    "FlowOptions",
    "QuizSession",
    "DifficultySelected",
    "ThemeSelected",
    "QuizLoaded",
    "QuizFailed",
    "AnswerSelected",
    "NextQuestion",
    "Retry",
    "Reset",
    "initial_session",
    "transition",
    "view_of",
    "OptionState",
    "FeedbackView",
    "option_states",
    "feedback_for",
    "passage_paragraphs",
    "progress_label",
    "score_summary",
    "FALLBACK_REPLY",
    "ChatHelper",
    "ChatMessage",
    "ChatTranscript",
    "GenerationRequest",
    "QuizController",
    "ConsoleCommand",
    "ConsoleSessionResult",
    "parse_console_command",
    "run_console_session",
]
