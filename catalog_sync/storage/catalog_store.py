"""JSON catalog files on disk, one ``<lang>.<ext>`` file per language."""

import json
import os
import uuid
from pathlib import Path
from typing import Any, Optional

import aiofiles
import aiofiles.os
import structlog

from ..catalog import Branch, dump_tree, parse_tree
from ..errors import CatalogFormatError, PersistError, SourceMissingError, TargetUnreadableError

logger = structlog.get_logger(__name__)


class CatalogStore:
    """Reads and writes whole catalogs keyed by language tag."""

    def __init__(self, root: Path, extension: str = "json"):
        """Initialize the store.

        Args:
            root: Directory containing the catalog files
            extension: File extension without the leading dot
        """
        self.root = Path(root)
        self.extension = extension.lstrip(".")

    def path_for(self, language: str) -> Path:
        return self.root / f"{language}.{self.extension}"

    async def load_source(self, language: str) -> Branch:
        """Load the source catalog.

        Raises:
            SourceMissingError: If the file is absent or does not parse.
        """
        path = self.path_for(language)
        try:
            raw = await self._read_json(path)
            tree = parse_tree(raw)
        except (OSError, ValueError, CatalogFormatError) as e:
            raise SourceMissingError(
                f"Cannot read source catalog {path}: {e}",
                language=language,
                path=str(path),
                previous_error=e,
            ) from e

        logger.info("Loaded source catalog", language=language, file=str(path), keys=len(tree))
        return tree

    async def load_target(self, language: str) -> Optional[Branch]:
        """Load a target catalog, or ``None`` if the file does not exist.

        Raises:
            TargetUnreadableError: If the file exists but does not parse.
        """
        path = self.path_for(language)
        if not await aiofiles.os.path.exists(path):
            return None

        try:
            raw = await self._read_json(path)
            return parse_tree(raw)
        except (OSError, ValueError, CatalogFormatError) as e:
            raise TargetUnreadableError(
                f"Cannot read target catalog {path}: {e}",
                language=language,
                path=str(path),
                previous_error=e,
            ) from e

    async def save(self, language: str, tree: Branch) -> Path:
        """Replace the catalog file for ``language`` with ``tree``.

        The content goes to a temporary file in the same directory first and
        is renamed over the destination, so readers never see a partial file.

        Raises:
            PersistError: If the file cannot be written.
        """
        path = self.path_for(language)
        content = json.dumps(dump_tree(tree), indent=2, ensure_ascii=False) + "\n"
        tmp_path = path.with_name(f".{path.name}.{uuid.uuid4().hex}.tmp")

        try:
            await aiofiles.os.makedirs(path.parent, exist_ok=True)
            async with aiofiles.open(tmp_path, "w", encoding="utf-8") as f:
                await f.write(content)
            await aiofiles.os.replace(tmp_path, path)
        except OSError as e:
            if tmp_path.exists():
                os.unlink(tmp_path)
            raise PersistError(
                f"Cannot write catalog {path}: {e}",
                language=language,
                path=str(path),
                previous_error=e,
            ) from e

        logger.debug("Catalog written", language=language, file=str(path))
        return path

    async def _read_json(self, path: Path) -> Any:
        async with aiofiles.open(path, "r", encoding="utf-8") as f:
            content = await f.read()
        return json.loads(content)
