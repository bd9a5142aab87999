"""Question generation with a static fallback set."""

from .fallback import FALLBACK_QUESTIONS
from .provider import QuestionProvider, extract_json_array, parse_questions

__all__ = ['FALLBACK_QUESTIONS', 'QuestionProvider', 'extract_json_array', 'parse_questions']
