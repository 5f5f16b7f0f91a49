"""Remove obsolete keys from a catalog without leaving empty branches behind."""

from typing import Iterable, List

from .tree import Branch, PathLike, copy_tree, split_path


def prune(tree: Branch, obsolete_paths: Iterable[PathLike]) -> Branch:
    """Return a copy of ``tree`` with every obsolete path removed.

    A path whose ancestor has already gone (removed by an earlier path in the
    same call) is skipped. After each removal, ancestors left empty are
    removed too, bottom-up.
    """
    result = copy_tree(tree)
    for path in obsolete_paths:
        _remove(result, split_path(path))
    return result


def _remove(root: Branch, segments) -> None:
    if not segments:
        return

    chain: List[Branch] = [root]
    for segment in segments[:-1]:
        child = chain[-1].children.get(segment)
        if not isinstance(child, Branch):
            return
        chain.append(child)

    chain[-1].children.pop(segments[-1], None)

    # chain[i] is the parent of chain[i + 1], whose key is segments[i]
    for depth in range(len(chain) - 1, 0, -1):
        if not chain[depth].is_empty():
            break
        del chain[depth - 1].children[segments[depth - 1]]
