r"""Append-only Merkle tree built one block at a time.

Key behaviors:
  - push: split the shallowest, leftmost leaf (the first leaf in
    breadth-first order) into Branch(old leaf, new leaf); recompute every
    ancestor hash bottom-up
  - That rule keeps the tree heap-shaped: with nodes numbered breadth-first
    from the root as 1, the split target after n pushes is node n, so it is
    found in O(depth) without a search
  - root_hash: cached root digest, None until the first push
  - The combiner is bound at construction and never changes

Shape after pushes 0..4 (leaves named by push order):

    1 push     2 pushes     3 pushes          5 pushes
      0          *             *                 *
                / \          / \            /     \
               0   1        *   1          *       *
                           / \           /  \    / \
                          0   2          *    2   1   3
                                        / \
                                       0   4
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Iterable, Iterator, NoReturn

from pushtree.combiners import DEFAULT_COMBINER, HashCombiner, format_digest
from pushtree.errors import EmptyTreeError, InvariantViolation
from pushtree.node import (
    EMPTY,
    Branch,
    Empty,
    Leaf,
    Node,
    Path,
    Side,
    ancestors,
    first_leaf_path,
    heap_path,
    iter_leaves,
    make_branch,
    make_leaf,
    node_at,
    rehash,
    replace_at,
)

log = logging.getLogger("pushtree.tree")


class TreeState(str, Enum):
    EMPTY = "EMPTY"
    SINGLETON = "SINGLETON"
    GROWING = "GROWING"


class MerkleTree:
    """Incrementally constructed Merkle tree over an ordered block sequence.

    Not thread-safe: wrap in SynchronizedTree for concurrent producers.
    """

    def __init__(self, combiner: HashCombiner | None = None, *, strict: bool = False):
        if combiner is not None and not isinstance(combiner, HashCombiner):
            raise TypeError(f"{type(combiner).__name__} is not a HashCombiner")
        self._combiner = combiner if combiner is not None else DEFAULT_COMBINER
        self._root: Node | Empty = EMPTY
        self._size = 0
        self.strict = strict

    @property
    def combiner(self) -> HashCombiner:
        return self._combiner

    @property
    def root(self) -> Node | Empty:
        """Root node, for inspection. Mutating it bypasses hash propagation."""
        return self._root

    @property
    def state(self) -> TreeState:
        if isinstance(self._root, Empty):
            return TreeState.EMPTY
        if isinstance(self._root, Leaf):
            return TreeState.SINGLETON
        return TreeState.GROWING

    # ── Write ────────────────────────────────────────────────────────

    def push(self, data: Any) -> None:
        """Append one data block.

        The block is copied and hashed before the tree is touched, so a block
        the combiner rejects leaves the tree unchanged, and mutating the
        caller's object afterwards does not reach the stored leaf.
        """
        new_leaf = make_leaf(data, self._combiner)

        if isinstance(self._root, Empty):
            self._root = new_leaf
        else:
            path = heap_path(self._size)
            target = node_at(self._root, path)
            branch = make_branch(target, new_leaf, self._combiner)
            self._root = replace_at(self._root, path, branch)
            self._propagate(path)
            log.debug("Split leaf at depth %d (size %d -> %d)", len(path), self._size, self._size + 1)

        self._size += 1

        if self.strict:
            self.check_invariants()

    def extend(self, blocks: Iterable[Any]) -> None:
        """Push each block in iteration order."""
        for block in blocks:
            self.push(block)

    def _propagate(self, path: Path) -> None:
        """Recompute every ancestor of the node at `path`, child before parent."""
        for branch in reversed(ancestors(self._root, path)):
            rehash(branch, self._combiner)

    # ── Read ─────────────────────────────────────────────────────────

    def root_hash(self) -> int | None:
        """Root digest, or None if nothing has been pushed."""
        if isinstance(self._root, Empty):
            return None
        return self._root.hash

    def require_root_hash(self) -> int:
        """Root digest; raises EmptyTreeError instead of returning None."""
        digest = self.root_hash()
        if digest is None:
            raise EmptyTreeError("Tree is empty: no blocks pushed yet")
        return digest

    def root_hex(self) -> str | None:
        digest = self.root_hash()
        if digest is None:
            return None
        return format_digest(digest, self._combiner.digest_bits)

    def size(self) -> int:
        return self._size

    def __len__(self) -> int:
        return self._size

    def height(self) -> int:
        """Edges on the longest root-to-leaf path; -1 when empty."""
        if isinstance(self._root, Empty):
            return -1
        best = 0
        stack: list[tuple[Node, int]] = [(self._root, 0)]
        while stack:
            node, depth = stack.pop()
            if isinstance(node, Leaf):
                best = max(best, depth)
            else:
                stack.append((node.left, depth + 1))
                stack.append((node.right, depth + 1))
        return best

    def iter_leaves(self) -> Iterator[Leaf]:
        """Leaves in left-to-right tree order (not push order)."""
        return iter_leaves(self._root)

    # ── Verify ───────────────────────────────────────────────────────

    def check_invariants(self) -> None:
        """Recompute every digest and recount leaves.

        Raises InvariantViolation at the first node that disagrees.
        """
        if isinstance(self._root, Empty):
            if self._size != 0:
                self._fail(f"Empty tree reports size {self._size}")
            return

        bits = self._combiner.digest_bits
        leaves = 0
        stack: list[tuple[Node, Path]] = [(self._root, ())]
        while stack:
            node, path = stack.pop()
            if not isinstance(node, (Leaf, Branch)):
                self._fail(f"Unexpected node {node!r} at {_fmt_path(path)}")
            if not 0 <= node.hash < (1 << bits):
                self._fail(f"Digest at {_fmt_path(path)} exceeds {bits} bits")
            if isinstance(node, Leaf):
                leaves += 1
                if node.hash != self._combiner.leaf_hash(node.data):
                    self._fail(f"Stale leaf hash at {_fmt_path(path)}")
            else:
                if not isinstance(node.left, (Leaf, Branch)) or not isinstance(node.right, (Leaf, Branch)):
                    self._fail(f"Branch at {_fmt_path(path)} is missing a child")
                expected = self._combiner.combine(node.left.hash, node.right.hash)
                if node.hash != expected:
                    self._fail(f"Stale branch hash at {_fmt_path(path)}")
                stack.append((node.right, path + (Side.RIGHT,)))
                stack.append((node.left, path + (Side.LEFT,)))

        if leaves != self._size:
            self._fail(f"Leaf count {leaves} != push count {self._size}")

        if first_leaf_path(self._root) != heap_path(self._size):
            self._fail("Next split target is not the shallowest, leftmost leaf")

    @staticmethod
    def _fail(message: str) -> NoReturn:
        log.error("Invariant violation: %s", message)
        raise InvariantViolation(message)

    # ── Dunder ───────────────────────────────────────────────────────

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MerkleTree):
            return NotImplemented
        return (
            self._combiner == other._combiner
            and self._size == other._size
            and self._root == other._root
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"MerkleTree(size={self._size}, root={self.root_hex()})"


def _fmt_path(path: Path) -> str:
    if not path:
        return "root"
    return "root/" + "/".join(side.value.lower() for side in path)
