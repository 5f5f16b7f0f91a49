"""
Pytest configuration and fixtures for catalog-sync tests.
"""

import asyncio
import json
import tempfile
from pathlib import Path
from typing import Any, Dict, Generator, List, Optional, Set

import pytest

from catalog_sync.config import Settings
from catalog_sync.errors import TranslationError
from catalog_sync.storage import CatalogStore


class FakeTranslator:
    """In-memory translator that records every call."""

    def __init__(self, fail_on: Optional[Set[str]] = None, delay: float = 0):
        self.fail_on = fail_on or set()
        self.delay = delay
        self.calls: List[Dict[str, Any]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def translate(self, text: str, target_language: str, key: Optional[str] = None) -> str:
        self.calls.append({"text": text, "language": target_language, "key": key})
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if text in self.fail_on:
                raise TranslationError("Provider unavailable", language=target_language, key=key)
            return f"<{target_language}> {text}"
        finally:
            self.in_flight -= 1


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def locales_dir(temp_dir: Path) -> Path:
    path = temp_dir / "locales"
    path.mkdir()
    return path


@pytest.fixture
def make_config(temp_dir: Path):
    """Build settings that ignore the process environment's .env file."""
    def _make(**overrides) -> Settings:
        values = {
            "source_lang": "en",
            "target_langs": ["fr"],
            "locales_root_path": temp_dir,
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)
    return _make


@pytest.fixture
def test_config(make_config) -> Settings:
    """Create test configuration."""
    return make_config()


@pytest.fixture
def store(test_config: Settings, locales_dir: Path) -> CatalogStore:
    return CatalogStore(test_config.locales_dir)


@pytest.fixture
def fake_translator() -> FakeTranslator:
    return FakeTranslator()


@pytest.fixture
def make_translator():
    """Factory for translators that fail on given texts or respond slowly."""
    return FakeTranslator


@pytest.fixture
def write_catalog(locales_dir: Path):
    """Helper to write a catalog file."""
    def _write(language: str, content: Any) -> Path:
        path = locales_dir / f"{language}.json"
        if isinstance(content, str):
            path.write_text(content, encoding="utf-8")
        else:
            path.write_text(json.dumps(content, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
        return path
    return _write


@pytest.fixture
def read_catalog(locales_dir: Path):
    """Helper to read a catalog file back."""
    def _read(language: str) -> Any:
        return json.loads((locales_dir / f"{language}.json").read_text(encoding="utf-8"))
    return _read
