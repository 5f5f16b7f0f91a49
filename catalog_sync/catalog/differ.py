"""Compute missing and obsolete keys between a source and a target catalog."""

import copy
from dataclasses import dataclass, field
from typing import FrozenSet, List

from .tree import Branch, Leaf, Path, iter_leaves, join_path, set_path


@dataclass(frozen=True)
class Difference:
    """Keys to add to and remove from a target catalog.

    ``missing`` keeps the nested shape of the source so it can be translated
    and merged as a unit. ``obsolete`` holds segment paths.
    """

    missing: Branch = field(default_factory=Branch)
    obsolete: FrozenSet[Path] = frozenset()

    @property
    def is_empty(self) -> bool:
        return self.missing.is_empty() and not self.obsolete

    @property
    def missing_paths(self) -> List[str]:
        """Sorted dot-paths of missing leaves."""
        return sorted(join_path(path) for path, _ in iter_leaves(self.missing))

    @property
    def obsolete_paths(self) -> List[str]:
        """Sorted dot-paths of obsolete leaves."""
        return sorted(join_path(path) for path in self.obsolete)


def diff(source: Branch, target: Branch) -> Difference:
    """Compare leaf path sets of ``source`` and ``target``."""
    source_leaves = dict(iter_leaves(source))
    target_paths = {path for path, _ in iter_leaves(target)}

    missing = Branch()
    for path, leaf in source_leaves.items():
        if path not in target_paths:
            set_path(missing, path, Leaf(copy.deepcopy(leaf.value)))

    obsolete = frozenset(path for path in target_paths if path not in source_leaves)
    return Difference(missing=missing, obsolete=obsolete)
