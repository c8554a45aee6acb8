"""pushtree: append-only Merkle tree built one block at a time.

Every push attaches the new block at the shallowest, leftmost leaf and
recomputes the hashes on the path back to the root, so root_hash() always
commits to every block pushed so far, in push order.

Tree:       pushtree/tree.py        (push, root_hash, size, invariant checks)
Nodes:      pushtree/node.py        (Leaf / Branch / EMPTY, path helpers)
Combiners:  pushtree/combiners.py   (pluggable digest strategies)
Threads:    pushtree/concurrent.py  (single-writer wrapper, snapshots)
Config:     pushtree/config.py      (config/pushtree.yaml loader)
"""

from pushtree.canonical import canonicalize, encode_block
from pushtree.combiners import (
    COMBINERS,
    DEFAULT_COMBINER,
    Blake2bCombiner,
    Fnv1aCombiner,
    HashCombiner,
    PolynomialCombiner,
    Sha256Combiner,
    format_digest,
    get_combiner,
)
from pushtree.concurrent import SynchronizedTree, TreeSnapshot
from pushtree.config import TreeConfig, build_combiner, build_tree, load_tree_config
from pushtree.errors import (
    ConfigError,
    EmptyTreeError,
    InvariantViolation,
    PushTreeError,
    UnhashableBlockError,
)
from pushtree.node import EMPTY, Branch, Empty, Leaf, Side
from pushtree.tree import MerkleTree, TreeState

__all__ = [
    # Tree
    "MerkleTree",
    "TreeState",
    "SynchronizedTree",
    "TreeSnapshot",
    # Nodes
    "Leaf",
    "Branch",
    "Empty",
    "EMPTY",
    "Side",
    # Combiners
    "HashCombiner",
    "Blake2bCombiner",
    "Sha256Combiner",
    "Fnv1aCombiner",
    "PolynomialCombiner",
    "COMBINERS",
    "DEFAULT_COMBINER",
    "get_combiner",
    "format_digest",
    "canonicalize",
    "encode_block",
    # Config
    "TreeConfig",
    "load_tree_config",
    "build_combiner",
    "build_tree",
    # Errors
    "PushTreeError",
    "EmptyTreeError",
    "UnhashableBlockError",
    "InvariantViolation",
    "ConfigError",
]
