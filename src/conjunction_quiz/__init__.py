"""Themed reading passages and conjunction quizzes in the terminal."""

__version__ = "0.1.0"
