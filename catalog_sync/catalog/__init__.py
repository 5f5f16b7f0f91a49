"""Catalog tree model, diffing and pruning."""

from .differ import Difference, diff
from .pruner import prune
from .tree import (
    Branch,
    Leaf,
    Node,
    copy_tree,
    dump_tree,
    flatten,
    iter_leaves,
    join_path,
    merge,
    parse_tree,
    set_path,
    split_path,
)

__all__ = [
    "Branch",
    "Difference",
    "Leaf",
    "Node",
    "copy_tree",
    "diff",
    "dump_tree",
    "flatten",
    "iter_leaves",
    "join_path",
    "merge",
    "parse_tree",
    "prune",
    "set_path",
    "split_path",
]
