"""Translation of missing catalog entries."""

from .adapter import TreeTranslator, needs_translation
from .provider import OpenAITranslator, Translator

__all__ = ["OpenAITranslator", "Translator", "TreeTranslator", "needs_translation"]
