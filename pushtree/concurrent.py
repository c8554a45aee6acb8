"""Single-writer wrapper for sharing one tree between threads.

All writes go through one re-entrant lock. After every completed write a
frozen TreeSnapshot is published by reference swap; readers only ever see
published snapshots, never a tree that is mid-propagation.
"""

from __future__ import annotations

import threading
from datetime import datetime, timezone
from typing import Any, Iterable

from pydantic import BaseModel, ConfigDict

from pushtree.combiners import HashCombiner
from pushtree.tree import MerkleTree


class TreeSnapshot(BaseModel):
    """Root digest and size as of one completed write."""

    model_config = ConfigDict(frozen=True)

    size: int = 0
    root_hash: int | None = None
    digest_bits: int
    published_at: datetime


class SynchronizedTree:
    """Serializes pushes to a MerkleTree; lock-free snapshot reads.

    The wrapper builds and owns its tree. No reference to it is handed out,
    so every write goes through the lock.
    """

    def __init__(self, combiner: HashCombiner | None = None, *, strict: bool = False):
        self._tree = MerkleTree(combiner, strict=strict)
        self._lock = threading.RLock()
        with self._lock:
            self._snapshot = self._publish()

    def _publish(self) -> TreeSnapshot:
        return TreeSnapshot(
            size=self._tree.size(),
            root_hash=self._tree.root_hash(),
            digest_bits=self._tree.combiner.digest_bits,
            published_at=datetime.now(timezone.utc),
        )

    # ── Write ────────────────────────────────────────────────────────

    def push(self, data: Any) -> TreeSnapshot:
        """Append one block and return the snapshot it produced."""
        with self._lock:
            self._tree.push(data)
            self._snapshot = self._publish()
            return self._snapshot

    def extend(self, blocks: Iterable[Any]) -> TreeSnapshot:
        """Append blocks as one contiguous run; publishes once at the end.

        If a block is rejected midway, the blocks before it stay pushed and
        the snapshot is still published before the error propagates.
        """
        with self._lock:
            try:
                self._tree.extend(blocks)
            finally:
                self._snapshot = self._publish()
            return self._snapshot

    # ── Read ─────────────────────────────────────────────────────────

    def snapshot(self) -> TreeSnapshot:
        return self._snapshot

    def root_hash(self) -> int | None:
        return self._snapshot.root_hash

    def size(self) -> int:
        return self._snapshot.size

    def check_invariants(self) -> None:
        with self._lock:
            self._tree.check_invariants()
