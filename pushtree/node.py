"""Tree node variants: Leaf, Branch and the Empty sentinel.

Nodes form a strict ownership tree: a Branch owns its two children
outright, there are no parent pointers and no sharing. Positions are
addressed by paths of Side steps from the root instead.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterator, Union

from pushtree.canonical import freeze_block
from pushtree.combiners import HashCombiner


class Side(str, Enum):
    LEFT = "LEFT"
    RIGHT = "RIGHT"


Path = tuple[Side, ...]


@dataclass
class Leaf:
    hash: int
    data: Any


@dataclass
class Branch:
    hash: int
    left: Node
    right: Node


Node = Union[Leaf, Branch]


class Empty:
    """Whole-tree state before the first push. Never a child slot."""

    _instance: Empty | None = None

    def __new__(cls) -> Empty:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "EMPTY"


EMPTY = Empty()


def make_leaf(data: Any, combiner: HashCombiner) -> Leaf:
    """Leaf over a private copy of `data`; the caller keeps no handle into the tree."""
    frozen = freeze_block(data)
    return Leaf(hash=combiner.leaf_hash(frozen), data=frozen)


def make_branch(left: Node, right: Node, combiner: HashCombiner) -> Branch:
    return Branch(hash=combiner.combine(left.hash, right.hash), left=left, right=right)


def rehash(branch: Branch, combiner: HashCombiner) -> None:
    """Recompute a branch hash from its children's current hashes."""
    branch.hash = combiner.combine(branch.left.hash, branch.right.hash)


def child(branch: Branch, side: Side) -> Node:
    return branch.left if side is Side.LEFT else branch.right


def set_child(branch: Branch, side: Side, node: Node) -> None:
    if side is Side.LEFT:
        branch.left = node
    else:
        branch.right = node


def node_at(root: Node, path: Path) -> Node:
    """Follow a path of Side steps from the root."""
    node = root
    for side in path:
        if not isinstance(node, Branch):
            raise LookupError(f"Path {path!r} runs through a leaf")
        node = child(node, side)
    return node


def ancestors(root: Node, path: Path) -> list[Branch]:
    """Branches strictly above the node at `path`, root first."""
    chain: list[Branch] = []
    node = root
    for side in path:
        if not isinstance(node, Branch):
            raise LookupError(f"Path {path!r} runs through a leaf")
        chain.append(node)
        node = child(node, side)
    return chain


def replace_at(root: Node, path: Path, replacement: Node) -> Node:
    """Put `replacement` at `path` in place. Returns the (possibly new) root."""
    if not path:
        return replacement
    parent = node_at(root, path[:-1])
    if not isinstance(parent, Branch):
        raise LookupError(f"Path {path!r} runs through a leaf")
    set_child(parent, path[-1], replacement)
    return root


def iter_leaves(root: Node | Empty) -> Iterator[Leaf]:
    """Leaves in left-to-right tree order."""
    if isinstance(root, Empty):
        return
    stack: list[Node] = [root]
    while stack:
        node = stack.pop()
        if isinstance(node, Leaf):
            yield node
        else:
            stack.append(node.right)
            stack.append(node.left)


def heap_path(index: int) -> Path:
    """Path to node `index` of a heap-numbered tree (root is 1).

    The bits of `index` below the leading 1 are the steps, 0 = LEFT, 1 = RIGHT.
    """
    if index < 1:
        raise ValueError(f"Heap index must be >= 1, got {index}")
    return tuple(Side.RIGHT if bit == "1" else Side.LEFT for bit in bin(index)[3:])


def first_leaf_path(root: Node) -> Path:
    """Path to the first leaf in breadth-first, left-to-right order."""
    queue: deque[tuple[Node, Path]] = deque([(root, ())])
    while queue:
        node, path = queue.popleft()
        if isinstance(node, Leaf):
            return path
        queue.append((node.left, path + (Side.LEFT,)))
        queue.append((node.right, path + (Side.RIGHT,)))
    raise LookupError("Tree has no leaf")
