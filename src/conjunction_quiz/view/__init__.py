from .app import QuizApp, stage_widgets

__all__ = ["QuizApp", "stage_widgets"]
