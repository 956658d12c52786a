"""
Configuration for AnswerFill.
"""

from .settings import FillSettings

__all__ = ['FillSettings']
