"""Tests for the single-writer SynchronizedTree wrapper."""

from __future__ import annotations

import threading

import pytest
from pydantic import ValidationError

from pushtree.combiners import Blake2bCombiner, PolynomialCombiner
from pushtree.concurrent import SynchronizedTree, TreeSnapshot
from pushtree.errors import UnhashableBlockError
from pushtree.tree import MerkleTree


class TestSnapshots:
    def test_initial_snapshot_is_empty(self):
        shared = SynchronizedTree(combiner=Blake2bCombiner())
        snap = shared.snapshot()
        assert snap.size == 0
        assert snap.root_hash is None
        assert snap.digest_bits == 64
        assert shared.root_hash() is None

    def test_push_publishes_new_snapshot(self):
        shared = SynchronizedTree(combiner=PolynomialCombiner())
        first = shared.snapshot()
        snap = shared.push(0)
        assert snap is shared.snapshot()
        assert snap is not first
        assert first.size == 0
        assert snap.size == 1

    def test_matches_plain_tree(self):
        shared = SynchronizedTree(combiner=PolynomialCombiner())
        plain = MerkleTree(PolynomialCombiner())
        for i in range(3):
            shared.push(i)
            plain.push(i)
        assert shared.root_hash() == plain.root_hash() == 63
        assert shared.size() == 3

    def test_extend_publishes_once(self):
        shared = SynchronizedTree(combiner=PolynomialCombiner())
        snap = shared.extend([0, 1, 2])
        assert snap.size == 3
        assert snap.root_hash == 63

    def test_extend_publishes_partial_run_on_error(self):
        shared = SynchronizedTree(combiner=PolynomialCombiner())
        with pytest.raises(UnhashableBlockError):
            shared.extend([0, 1, "two"])
        assert shared.size() == 2
        assert shared.root_hash() == 1

    def test_snapshot_is_frozen(self):
        shared = SynchronizedTree(combiner=PolynomialCombiner())
        with pytest.raises(ValidationError):
            shared.snapshot().size = 10

    def test_does_not_accept_an_outside_tree(self):
        tree = MerkleTree(PolynomialCombiner())
        with pytest.raises(TypeError):
            SynchronizedTree(tree)

    def test_strict_mode_passes_through(self):
        shared = SynchronizedTree(combiner=PolynomialCombiner(), strict=True)
        snap = shared.extend([0, 1, 2])
        assert snap.root_hash == 63
        shared.check_invariants()

    def test_wide_digests_survive_snapshot(self):
        shared = SynchronizedTree(combiner=Blake2bCombiner(256))
        snap = shared.push(b"block")
        assert snap.root_hash == Blake2bCombiner(256).leaf_hash(b"block")
        assert isinstance(snap, TreeSnapshot)


class TestConcurrentProducers:
    def test_parallel_pushes_keep_invariants(self):
        shared = SynchronizedTree(combiner=Blake2bCombiner())
        workers, per_worker = 8, 50
        barrier = threading.Barrier(workers)

        def produce(worker: int) -> None:
            barrier.wait()
            for i in range(per_worker):
                shared.push(f"{worker}:{i}")

        threads = [threading.Thread(target=produce, args=(w,)) for w in range(workers)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert shared.size() == workers * per_worker
        shared.check_invariants()

    def test_readers_only_see_completed_pushes(self):
        shared = SynchronizedTree(combiner=Blake2bCombiner())
        expected = {0: None}
        reference = MerkleTree(Blake2bCombiner())
        for i in range(200):
            reference.push(i)
            expected[i + 1] = reference.root_hash()

        seen: list[TreeSnapshot] = []
        done = threading.Event()

        def read() -> None:
            while not done.is_set():
                seen.append(shared.snapshot())

        reader = threading.Thread(target=read)
        reader.start()
        for i in range(200):
            shared.push(i)
        done.set()
        reader.join()

        for snap in seen:
            assert snap.root_hash == expected[snap.size]
