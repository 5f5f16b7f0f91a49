"""Translate every text leaf of a catalog subtree."""

import asyncio
from typing import List, Optional, Tuple

import structlog

from ..catalog import Branch, Leaf, iter_leaves, join_path, set_path
from ..catalog.tree import Path
from .provider import Translator

logger = structlog.get_logger(__name__)


def needs_translation(leaf: Leaf) -> bool:
    """Every string except the empty one goes to the provider."""
    return leaf.is_text and leaf.value != ""


class TreeTranslator:
    """Maps a subtree through a :class:`Translator`, keeping its shape.

    Provider calls run concurrently, bounded by ``semaphore``. Share one
    semaphore between instances to cap in-flight calls across languages.
    """

    def __init__(self, translator: Translator, semaphore: Optional[asyncio.Semaphore] = None):
        self.translator = translator
        self.semaphore = semaphore or asyncio.Semaphore(1)
        self.calls = 0

    async def translate_tree(self, subtree: Branch, target_language: str) -> Branch:
        """Return a new tree with every text leaf translated.

        Non-string and empty-string leaves are copied unchanged. The first failing
        leaf cancels the remaining calls and its error propagates, so callers
        never see a partially translated tree.
        """
        leaves = list(iter_leaves(subtree))
        pending = [(path, leaf) for path, leaf in leaves if needs_translation(leaf)]

        translated = await self._translate_all(pending, target_language)

        result = Branch()
        for path, leaf in leaves:
            value = translated.get(path, leaf.value)
            set_path(result, path, Leaf(value))
        return result

    async def _translate_all(self, pending: List[Tuple[Path, Leaf]], target_language: str):
        if not pending:
            return {}

        tasks = [
            asyncio.ensure_future(self._translate_leaf(path, leaf.value, target_language))
            for path, leaf in pending
        ]
        try:
            results = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        return {path: text for (path, _), text in zip(pending, results)}

    async def _translate_leaf(self, path: Path, text: str, target_language: str) -> str:
        async with self.semaphore:
            self.calls += 1
            return await self.translator.translate(text, target_language, key=join_path(path))
