"""Bring every target catalog in line with the source catalog.

Per language the pipeline is::

    Load -> Diff -> Skip
                 -> Translate -> Merge -> Prune -> Persist

The source catalog is loaded once and only read afterwards. Each language
works on its own trees, so languages can run concurrently; a failure in one
of them is recorded in its :class:`LanguageResult` and the others carry on.
"""

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

import structlog

from .catalog import Branch, diff, merge, prune
from .config import Settings
from .errors import CatalogSyncError, ConfigurationError, TargetUnreadableError, describe_error
from .storage import CatalogStore
from .translation import Translator, TreeTranslator

logger = structlog.get_logger(__name__)


class LanguageStatus(str, Enum):
    """Outcome of one reconciliation pass."""
    SKIPPED = "skipped"
    UPDATED = "updated"
    OUT_OF_SYNC = "out_of_sync"
    FAILED = "failed"


@dataclass
class LanguageResult:
    """What happened to one target catalog."""
    language: str
    status: LanguageStatus = LanguageStatus.SKIPPED
    missing: List[str] = field(default_factory=list)
    obsolete: List[str] = field(default_factory=list)
    translation_calls: int = 0
    created: bool = False
    error: Optional[BaseException] = None

    @property
    def failed(self) -> bool:
        return self.status in (LanguageStatus.FAILED, LanguageStatus.OUT_OF_SYNC)


@dataclass
class RunReport:
    """Results of a whole run, in configured language order."""
    results: List[LanguageResult] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed

    @property
    def failed(self) -> List[LanguageResult]:
        return [result for result in self.results if result.failed]

    @property
    def translation_calls(self) -> int:
        return sum(result.translation_calls for result in self.results)

    def by_language(self, language: str) -> Optional[LanguageResult]:
        for result in self.results:
            if result.language == language:
                return result
        return None

    def count(self, status: LanguageStatus) -> int:
        return sum(1 for result in self.results if result.status == status)


class Reconciler:
    """Runs the reconciliation pipeline for every configured target language."""

    def __init__(
        self,
        settings: Settings,
        store: CatalogStore,
        translator: Optional[Translator] = None,
        check_only: bool = False,
    ):
        """Initialize the reconciler.

        Args:
            settings: Loaded configuration
            store: Catalog storage
            translator: Provider for missing entries; may be ``None`` when
                nothing needs translating or in check mode
            check_only: Report differences without translating or writing
        """
        self.settings = settings
        self.store = store
        self.translator = translator
        self.check_only = check_only
        self._translation_slots = asyncio.Semaphore(settings.max_concurrent_translations)
        self._language_slots = asyncio.Semaphore(settings.max_concurrent_languages)

    async def run(self) -> RunReport:
        """Reconcile all target languages.

        Raises:
            SourceMissingError: If the source catalog cannot be loaded.
        """
        source = await self.store.load_source(self.settings.source_lang)

        results = await asyncio.gather(
            *(self._run_language(source, language) for language in self.settings.target_langs)
        )
        report = RunReport(results=list(results))

        logger.info(
            "Translation process completed",
            updated=report.count(LanguageStatus.UPDATED),
            skipped=report.count(LanguageStatus.SKIPPED),
            out_of_sync=report.count(LanguageStatus.OUT_OF_SYNC),
            failed=report.count(LanguageStatus.FAILED),
            translation_calls=report.translation_calls,
        )
        return report

    async def _run_language(self, source: Branch, language: str) -> LanguageResult:
        async with self._language_slots:
            return await self.reconcile_language(source, language)

    async def reconcile_language(self, source: Branch, language: str) -> LanguageResult:
        """Run one reconciliation pass; never raises for per-language failures."""
        result = LanguageResult(language=language)
        try:
            await self._reconcile(source, language, result)
        except CatalogSyncError as e:
            result.status = LanguageStatus.FAILED
            result.error = e
            logger.error(
                "Translation process failed for language",
                language=language,
                error=describe_error(e),
                context=e.context,
            )
        except Exception as e:
            result.status = LanguageStatus.FAILED
            result.error = e
            logger.exception("Unexpected error while processing language", language=language, error=str(e))
        return result

    async def _reconcile(self, source: Branch, language: str, result: LanguageResult) -> None:
        target = await self._load_target(language, result)

        difference = diff(source, target)
        result.missing = difference.missing_paths
        result.obsolete = difference.obsolete_paths

        if difference.is_empty:
            result.status = LanguageStatus.SKIPPED
            logger.info("No changes needed, skipping", language=language)
            return

        logger.info("Processing translations", language=language)
        if result.missing:
            logger.info("Missing keys", language=language, keys=result.missing)
        if result.obsolete:
            logger.info("Obsolete keys", language=language, keys=result.obsolete)

        if self.check_only:
            result.status = LanguageStatus.OUT_OF_SYNC
            return

        updated = target
        if not difference.missing.is_empty():
            if self.translator is None:
                raise ConfigurationError(
                    f"No translator configured, cannot translate {len(result.missing)} keys",
                    config_key="openai_secret_key",
                )
            tree_translator = TreeTranslator(self.translator, self._translation_slots)
            try:
                translated = await tree_translator.translate_tree(difference.missing, language)
            finally:
                result.translation_calls = tree_translator.calls
            updated = merge(updated, translated)

        if difference.obsolete:
            updated = prune(updated, difference.obsolete)

        await self.store.save(language, updated)
        result.status = LanguageStatus.UPDATED
        logger.info("Updated translations", language=language, file=str(self.store.path_for(language)))

    async def _load_target(self, language: str, result: LanguageResult) -> Branch:
        try:
            target = await self.store.load_target(language)
        except TargetUnreadableError as e:
            if not self.settings.discard_unreadable_targets:
                raise
            logger.warning(
                "Existing translations are unreadable, starting from an empty catalog",
                language=language,
                error=describe_error(e),
            )
            return Branch()

        if target is None:
            result.created = True
            logger.info("No existing translations, creating new file", language=language)
            return Branch()
        return target
