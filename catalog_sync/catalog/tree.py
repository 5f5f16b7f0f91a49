"""Catalog tree model and path operations.

A catalog is parsed once into ``Branch``/``Leaf`` nodes. Everything else in
the package (flattening, diffing, pruning, merging, translation) walks that
closed shape instead of inspecting raw JSON values.

Paths are carried as tuples of segments. The dot-joined form is only used for
display and for the :func:`flatten` mapping, so a key that itself contains a
dot survives a diff/prune cycle unchanged.
"""

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Sequence, Tuple, Union

from ..errors import CatalogFormatError, ShapeConflictError

PATH_SEPARATOR = "."

Path = Tuple[str, ...]
PathLike = Union[str, Sequence[str]]


@dataclass(frozen=True)
class Leaf:
    """Terminal catalog value. Only ``str`` values are ever translated."""

    value: Any

    @property
    def is_text(self) -> bool:
        return isinstance(self.value, str)


@dataclass
class Branch:
    """Internal catalog node: ordered mapping of key to child node."""

    children: Dict[str, "Node"] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.children)

    def __contains__(self, key: str) -> bool:
        return key in self.children

    def is_empty(self) -> bool:
        return not self.children


Node = Union[Leaf, Branch]


def split_path(path: PathLike, sep: str = PATH_SEPARATOR) -> Path:
    """Normalize a dot-path string or a segment sequence to a tuple."""
    if isinstance(path, str):
        return tuple(path.split(sep))
    return tuple(path)


def join_path(path: Sequence[str], sep: str = PATH_SEPARATOR) -> str:
    return sep.join(path)


def parse_tree(raw: Any) -> Branch:
    """Build a catalog tree from decoded JSON.

    Raises:
        CatalogFormatError: If the root value is not a JSON object.
    """
    if not isinstance(raw, dict):
        raise CatalogFormatError(
            "Catalog root must be an object",
            found_type=type(raw).__name__,
        )
    return _parse_branch(raw)


def _parse_branch(raw: Dict[str, Any]) -> Branch:
    branch = Branch()
    for key, value in raw.items():
        if isinstance(value, dict):
            branch.children[key] = _parse_branch(value)
        else:
            branch.children[key] = Leaf(value)
    return branch


def dump_tree(tree: Branch) -> Dict[str, Any]:
    """Convert a catalog tree back to plain JSON-serializable data."""
    result: Dict[str, Any] = {}
    for key, node in tree.children.items():
        if isinstance(node, Branch):
            result[key] = dump_tree(node)
        else:
            result[key] = copy.deepcopy(node.value)
    return result


def copy_tree(tree: Branch) -> Branch:
    """Structural copy; the result shares no branch with ``tree``."""
    result = Branch()
    for key, node in tree.children.items():
        if isinstance(node, Branch):
            result.children[key] = copy_tree(node)
        else:
            result.children[key] = Leaf(copy.deepcopy(node.value))
    return result


def iter_leaves(tree: Branch, prefix: Path = ()) -> Iterator[Tuple[Path, Leaf]]:
    """Yield ``(segments, leaf)`` for every leaf in insertion order."""
    for key, node in tree.children.items():
        path = prefix + (key,)
        if isinstance(node, Branch):
            yield from iter_leaves(node, path)
        else:
            yield path, node


def flatten(tree: Branch, sep: str = PATH_SEPARATOR) -> Dict[str, Any]:
    """Map dot-joined leaf paths to leaf values.

    Arrays are leaves and are not descended into. Empty branches contribute
    no paths.
    """
    return {join_path(path, sep): leaf.value for path, leaf in iter_leaves(tree)}


def set_path(tree: Branch, path: PathLike, node: Node) -> None:
    """Write ``node`` at ``path``, creating intermediate branches.

    Raises:
        ShapeConflictError: If an ancestor segment holds a leaf, or if the
            write would replace a node of the other kind.
    """
    segments = split_path(path)
    if not segments:
        raise ShapeConflictError("Cannot write to an empty path", path="")

    current = tree
    for index, segment in enumerate(segments[:-1]):
        child = current.children.get(segment)
        if child is None:
            child = Branch()
            current.children[segment] = child
        elif isinstance(child, Leaf):
            raise ShapeConflictError(
                f"Path '{join_path(segments)}' passes through leaf '{join_path(segments[:index + 1])}'",
                path=join_path(segments),
                segment=segment,
            )
        current = child

    last = segments[-1]
    existing = current.children.get(last)
    if existing is not None and type(existing) is not type(node):
        raise ShapeConflictError(
            f"Path '{join_path(segments)}' already holds a {type(existing).__name__.lower()}",
            path=join_path(segments),
            segment=last,
        )
    current.children[last] = node


def merge(target: Branch, delta: Branch) -> Branch:
    """Deep-merge ``delta`` into a copy of ``target``.

    Values already present in ``target`` win. Neither input is modified.

    Raises:
        ShapeConflictError: If a branch in one tree meets a leaf in the other.
    """
    result = copy_tree(target)
    _merge_into(result, delta, ())
    return result


def _merge_into(dest: Branch, delta: Branch, prefix: Path) -> None:
    for key, node in delta.children.items():
        path = prefix + (key,)
        existing = dest.children.get(key)
        if existing is None:
            dest.children[key] = copy_tree(node) if isinstance(node, Branch) else Leaf(copy.deepcopy(node.value))
        elif isinstance(existing, Branch) and isinstance(node, Branch):
            _merge_into(existing, node, path)
        elif isinstance(existing, Leaf) and isinstance(node, Leaf):
            continue
        else:
            raise ShapeConflictError(
                f"Cannot merge a {type(node).__name__.lower()} into the "
                f"{type(existing).__name__.lower()} at '{join_path(path)}'",
                path=join_path(path),
                segment=key,
            )
