"""
Integration tests for the reconciliation pipeline.

Catalog files live in a temporary directory and a fake translator stands in
for the provider.
"""

import pytest

from catalog_sync.catalog import flatten, parse_tree
from catalog_sync.errors import (
    ConfigurationError,
    ShapeConflictError,
    SourceMissingError,
    TargetUnreadableError,
    TranslationError,
)
from catalog_sync.reconciler import LanguageStatus, Reconciler
from catalog_sync.storage import CatalogStore


@pytest.fixture
def make_reconciler(make_config, locales_dir, fake_translator):
    def _make(translator=fake_translator, check_only=False, **overrides):
        settings = make_config(**overrides)
        store = CatalogStore(settings.locales_dir)
        return Reconciler(settings, store, translator=translator, check_only=check_only)
    return _make


class TestScenarios:
    """Worked examples of a single reconciliation pass."""

    async def test_new_target_is_fully_translated(self, make_reconciler, write_catalog, read_catalog, fake_translator):
        write_catalog("en", {"a": {"b": "hello", "c": "world"}})

        report = await make_reconciler().run()

        result = report.by_language("fr")
        assert result.status == LanguageStatus.UPDATED
        assert result.created
        assert result.missing == ["a.b", "a.c"]
        assert result.obsolete == []
        assert result.translation_calls == 2
        assert len(fake_translator.calls) == 2
        assert read_catalog("fr") == {"a": {"b": "<fr> hello", "c": "<fr> world"}}

    async def test_obsolete_key_removed_without_translation(
        self, make_reconciler, write_catalog, read_catalog, fake_translator
    ):
        write_catalog("en", {"a": {"b": "hello"}})
        write_catalog("fr", {"a": {"b": "bonjour", "x": "old"}})

        report = await make_reconciler().run()

        result = report.by_language("fr")
        assert result.status == LanguageStatus.UPDATED
        assert result.obsolete == ["a.x"]
        assert result.translation_calls == 0
        assert fake_translator.calls == []
        assert read_catalog("fr") == {"a": {"b": "bonjour"}}

    async def test_branch_is_kept_when_old_key_is_replaced(self, make_reconciler, write_catalog, read_catalog):
        write_catalog("en", {"a": {"x": "hi"}})
        write_catalog("fr", {"a": {"old": "v"}})

        report = await make_reconciler().run()

        result = report.by_language("fr")
        assert result.missing == ["a.x"]
        assert result.obsolete == ["a.old"]
        assert read_catalog("fr") == {"a": {"x": "<fr> hi"}}

    async def test_identical_catalog_is_left_alone(self, make_reconciler, write_catalog, locales_dir, fake_translator):
        write_catalog("en", {"a": {"b": "hello"}})
        target = write_catalog("fr", '{"a":{"b":"bonjour"}}')
        before = target.read_bytes()
        mtime = target.stat().st_mtime_ns

        report = await make_reconciler().run()

        assert report.by_language("fr").status == LanguageStatus.SKIPPED
        assert report.ok
        assert fake_translator.calls == []
        assert target.read_bytes() == before
        assert target.stat().st_mtime_ns == mtime


class TestProperties:
    """Invariants that hold for every pass."""

    SOURCE = {
        "app": {"title": "Catalog", "subtitle": ""},
        "menu": {"file": {"open": "Open", "save": "Save"}, "edit": {"copy": "Copy"}},
        "counts": {"items": "{count, plural, =0 {none} other {# items}}"},
        "limits": {"max": 10, "enabled": True, "tags": ["a", "b"]},
    }
    TARGET = {
        "app": {"title": "Catalogue", "legacy": "Ancien"},
        "menu": {"file": {"open": "Ouvrir", "close": "Fermer"}, "view": {"zoom": "Zoom"}},
        "removed": {"deep": {"er": "x"}},
    }

    async def test_key_sets_match_and_values_are_preserved(self, make_reconciler, write_catalog, read_catalog):
        write_catalog("en", self.SOURCE)
        write_catalog("fr", self.TARGET)

        await make_reconciler().run()

        result = read_catalog("fr")
        flat_result = flatten(parse_tree(result))
        assert set(flat_result) == set(flatten(parse_tree(self.SOURCE)))
        assert flat_result["app.title"] == "Catalogue"
        assert flat_result["menu.file.open"] == "Ouvrir"

    async def test_only_missing_text_leaves_are_translated(self, make_reconciler, write_catalog, fake_translator):
        write_catalog("en", self.SOURCE)
        write_catalog("fr", self.TARGET)

        report = await make_reconciler().run()

        # missing: app.subtitle (empty), menu.file.save, menu.edit.copy, counts.items, limits.*
        translated = sorted(call["key"] for call in fake_translator.calls)
        assert translated == ["counts.items", "menu.edit.copy", "menu.file.save"]
        assert report.translation_calls == 3

    async def test_no_empty_branches_remain(self, make_reconciler, write_catalog, read_catalog):
        write_catalog("en", self.SOURCE)
        write_catalog("fr", self.TARGET)

        await make_reconciler().run()

        def empty_branches(node, path=""):
            for key, value in node.items():
                here = f"{path}.{key}" if path else key
                if isinstance(value, dict):
                    if not value:
                        yield here
                    yield from empty_branches(value, here)

        assert list(empty_branches(read_catalog("fr"))) == []

    async def test_non_text_leaves_copied_verbatim(self, make_reconciler, write_catalog, read_catalog):
        write_catalog("en", self.SOURCE)
        write_catalog("fr", self.TARGET)

        await make_reconciler().run()

        result = read_catalog("fr")
        assert result["limits"] == {"max": 10, "enabled": True, "tags": ["a", "b"]}
        assert result["app"]["subtitle"] == ""

    async def test_second_run_is_a_no_op(self, make_reconciler, write_catalog, locales_dir, make_translator):
        write_catalog("en", self.SOURCE)
        write_catalog("fr", self.TARGET)

        await make_reconciler().run()
        after_first = (locales_dir / "fr.json").read_bytes()

        second_translator = make_translator()
        report = await make_reconciler(translator=second_translator).run()

        assert report.by_language("fr").status == LanguageStatus.SKIPPED
        assert second_translator.calls == []
        assert (locales_dir / "fr.json").read_bytes() == after_first

    async def test_source_catalog_is_not_modified(self, make_reconciler, write_catalog, locales_dir):
        source_path = write_catalog("en", self.SOURCE)
        before = source_path.read_bytes()

        await make_reconciler(target_langs=["fr", "de"]).run()

        assert source_path.read_bytes() == before


class TestFailures:
    """Per-language failures do not stop the run."""

    async def test_translation_failure_isolated_to_language(
        self, make_reconciler, write_catalog, read_catalog, locales_dir
    ):
        class PickyTranslator:
            async def translate(self, text, target_language, key=None):
                if target_language == "de":
                    raise TranslationError("provider down", language=target_language, key=key)
                return f"<{target_language}> {text}"

        write_catalog("en", {"a": "hello", "b": "world"})
        german = write_catalog("de", {"a": "hallo", "stale": "x"})
        before = german.read_bytes()

        report = await make_reconciler(translator=PickyTranslator(), target_langs=["de", "fr"]).run()

        assert not report.ok
        assert [result.language for result in report.failed] == ["de"]
        assert isinstance(report.by_language("de").error, TranslationError)
        assert report.by_language("de").missing == ["b"]
        assert german.read_bytes() == before
        assert report.by_language("fr").status == LanguageStatus.UPDATED
        assert read_catalog("fr") == {"a": "<fr> hello", "b": "<fr> world"}

    async def test_shape_conflict_fails_language(self, make_reconciler, write_catalog, read_catalog):
        write_catalog("en", {"a": {"b": "nested"}})
        write_catalog("fr", {"a": "flat"})

        report = await make_reconciler().run()

        result = report.by_language("fr")
        assert result.status == LanguageStatus.FAILED
        assert isinstance(result.error, ShapeConflictError)
        assert read_catalog("fr") == {"a": "flat"}

    async def test_unexpected_error_is_captured(self, make_reconciler, write_catalog):
        class BrokenTranslator:
            async def translate(self, text, target_language, key=None):
                raise RuntimeError("bug")

        write_catalog("en", {"a": "hello"})

        report = await make_reconciler(translator=BrokenTranslator(), target_langs=["fr", "de"]).run()

        assert [result.language for result in report.failed] == ["fr", "de"]
        assert isinstance(report.by_language("fr").error, RuntimeError)

    async def test_missing_translator(self, make_reconciler, write_catalog, read_catalog):
        write_catalog("en", {"a": "hello", "b": "world"})
        write_catalog("fr", {"a": "bonjour"})
        write_catalog("de", {"a": "hallo", "b": "welt", "old": "x"})

        report = await make_reconciler(translator=None, target_langs=["fr", "de"]).run()

        assert isinstance(report.by_language("fr").error, ConfigurationError)
        assert report.by_language("de").status == LanguageStatus.UPDATED
        assert read_catalog("de") == {"a": "hallo", "b": "welt"}

    async def test_mixed_case_source_tag_is_loaded(self, make_reconciler, write_catalog, read_catalog):
        write_catalog("pt-BR", {"a": "olá"})

        report = await make_reconciler(source_lang="pt-BR").run()

        assert report.by_language("fr").status == LanguageStatus.UPDATED
        assert read_catalog("fr") == {"a": "<fr> olá"}

    async def test_missing_source_is_fatal(self, make_reconciler, fake_translator):
        with pytest.raises(SourceMissingError):
            await make_reconciler().run()

        assert fake_translator.calls == []

    async def test_unreadable_target_is_rebuilt_by_default(self, make_reconciler, write_catalog, read_catalog):
        write_catalog("en", {"a": "hello"})
        write_catalog("fr", "{corrupted")

        report = await make_reconciler().run()

        assert report.by_language("fr").status == LanguageStatus.UPDATED
        assert read_catalog("fr") == {"a": "<fr> hello"}

    async def test_unreadable_target_kept_when_discard_disabled(self, make_reconciler, write_catalog, locales_dir):
        write_catalog("en", {"a": "hello"})
        target = write_catalog("fr", "{corrupted")

        report = await make_reconciler(discard_unreadable_targets=False).run()

        result = report.by_language("fr")
        assert result.status == LanguageStatus.FAILED
        assert isinstance(result.error, TargetUnreadableError)
        assert target.read_text(encoding="utf-8") == "{corrupted"


class TestModes:
    """Check mode and concurrency settings."""

    async def test_check_mode_reports_without_writing(
        self, make_reconciler, write_catalog, locales_dir, fake_translator
    ):
        write_catalog("en", {"a": "hello", "b": "world"})
        french = write_catalog("fr", {"a": "bonjour", "old": "x"})
        write_catalog("de", {"a": "hallo", "b": "welt"})
        before = french.read_bytes()

        report = await make_reconciler(check_only=True, target_langs=["fr", "de", "pl"]).run()

        assert report.by_language("fr").status == LanguageStatus.OUT_OF_SYNC
        assert report.by_language("fr").missing == ["b"]
        assert report.by_language("fr").obsolete == ["old"]
        assert report.by_language("de").status == LanguageStatus.SKIPPED
        assert report.by_language("pl").status == LanguageStatus.OUT_OF_SYNC
        assert not report.ok
        assert fake_translator.calls == []
        assert french.read_bytes() == before
        assert not (locales_dir / "pl.json").exists()

    async def test_concurrent_languages_and_translations(
        self, make_reconciler, write_catalog, read_catalog, make_translator
    ):
        translator = make_translator(delay=0.01)
        write_catalog("en", {f"k{i}": f"text {i}" for i in range(5)})
        languages = ["fr", "de", "es", "it"]

        report = await make_reconciler(
            translator=translator,
            target_langs=languages,
            max_concurrent_languages=4,
            max_concurrent_translations=2,
        ).run()

        assert report.ok
        assert report.translation_calls == 20
        # one translation pool shared by all languages
        assert translator.max_in_flight == 2
        for language in languages:
            assert read_catalog(language)["k4"] == f"<{language}> text 4"

    async def test_results_follow_configured_order(self, make_reconciler, write_catalog):
        write_catalog("en", {"a": "hello"})

        report = await make_reconciler(target_langs=["pl", "de", "fr"], max_concurrent_languages=3).run()

        assert [result.language for result in report.results] == ["pl", "de", "fr"]
