"""Hash combiners: pluggable digest strategies for the tree.

A combiner is injected into a MerkleTree at construction and held for the
tree's lifetime. It supplies two pure functions over fixed-width unsigned
integer digests:

  leaf_hash(data)      -> digest of one data block
  combine(left, right) -> digest of a branch, order-sensitive

Leaf and branch inputs are domain-separated (0x00 / 0x01 prefix, as in
RFC 6962) so a leaf digest can never be replayed as a branch digest.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from pushtree.canonical import encode_block
from pushtree.errors import ConfigError, UnhashableBlockError

LEAF_PREFIX = b"\x00"
BRANCH_PREFIX = b"\x01"

_MASK_64 = (1 << 64) - 1

FNV_OFFSET_BASIS = 14695981039346656037
FNV_PRIME = 1099511628211


@runtime_checkable
class HashCombiner(Protocol):
    """Capability the tree needs from a hash function."""

    digest_bits: int

    def leaf_hash(self, data: Any) -> int: ...

    def combine(self, left: int, right: int) -> int: ...


def digest_to_bytes(digest: int, bits: int) -> bytes:
    """Fixed-width big-endian encoding of a digest."""
    return digest.to_bytes(bits // 8, "big")


def format_digest(digest: int, bits: int) -> str:
    """Zero-padded hex rendering of a digest."""
    return format(digest, f"0{bits // 4}x")


# ── Concrete combiners ───────────────────────────────────────────────


@dataclass(frozen=True)
class Blake2bCombiner:
    """BLAKE2b with a configurable digest width (64 bits by default)."""

    digest_bits: int = 64

    def __post_init__(self) -> None:
        if self.digest_bits not in (64, 128, 256, 512):
            raise ConfigError(
                f"blake2b supports 64/128/256/512-bit digests, got {self.digest_bits}"
            )

    def _digest(self, payload: bytes) -> int:
        h = hashlib.blake2b(payload, digest_size=self.digest_bits // 8)
        return int.from_bytes(h.digest(), "big")

    def leaf_hash(self, data: Any) -> int:
        return self._digest(LEAF_PREFIX + encode_block(data))

    def combine(self, left: int, right: int) -> int:
        return self._digest(
            BRANCH_PREFIX
            + digest_to_bytes(left, self.digest_bits)
            + digest_to_bytes(right, self.digest_bits)
        )


@dataclass(frozen=True)
class Sha256Combiner:
    """SHA-256, 256-bit digests. Use this one for cryptographic commitments."""

    digest_bits: int = 256

    def __post_init__(self) -> None:
        if self.digest_bits != 256:
            raise ConfigError(f"sha256 only produces 256-bit digests, got {self.digest_bits}")

    def leaf_hash(self, data: Any) -> int:
        payload = LEAF_PREFIX + encode_block(data)
        return int.from_bytes(hashlib.sha256(payload).digest(), "big")

    def combine(self, left: int, right: int) -> int:
        payload = BRANCH_PREFIX + digest_to_bytes(left, 256) + digest_to_bytes(right, 256)
        return int.from_bytes(hashlib.sha256(payload).digest(), "big")


def fnv1a_64(payload: bytes) -> int:
    """64-bit FNV-1a over a byte string."""
    h = FNV_OFFSET_BASIS
    for byte in payload:
        h ^= byte
        h = (h * FNV_PRIME) & _MASK_64
    return h


@dataclass(frozen=True)
class Fnv1aCombiner:
    """FNV-1a 64. Fast, non-cryptographic; fine for accidental-corruption checks."""

    digest_bits: int = 64

    def __post_init__(self) -> None:
        if self.digest_bits != 64:
            raise ConfigError(f"fnv1a only produces 64-bit digests, got {self.digest_bits}")

    def leaf_hash(self, data: Any) -> int:
        return fnv1a_64(LEAF_PREFIX + encode_block(data))

    def combine(self, left: int, right: int) -> int:
        return fnv1a_64(BRANCH_PREFIX + digest_to_bytes(left, 64) + digest_to_bytes(right, 64))


@dataclass(frozen=True)
class PolynomialCombiner:
    """Transparent test hasher over integer blocks.

    leaf_hash(x) = x mod 2**64, combine(l, r) = (l * base + r) mod 2**64.
    Makes expected root hashes computable by hand.
    """

    base: int = 31
    digest_bits: int = 64

    def __post_init__(self) -> None:
        if self.digest_bits != 64:
            raise ConfigError(f"poly only produces 64-bit digests, got {self.digest_bits}")

    def leaf_hash(self, data: Any) -> int:
        if not isinstance(data, int) or isinstance(data, bool):
            raise UnhashableBlockError(
                f"PolynomialCombiner hashes integers only, got {type(data).__name__}"
            )
        return data & _MASK_64

    def combine(self, left: int, right: int) -> int:
        return (left * self.base + right) & _MASK_64


# ── Registry ─────────────────────────────────────────────────────────

COMBINERS: dict[str, type] = {
    "blake2b": Blake2bCombiner,
    "sha256": Sha256Combiner,
    "fnv1a": Fnv1aCombiner,
    "poly": PolynomialCombiner,
}

DEFAULT_COMBINER = Blake2bCombiner()


def get_combiner(name: str, digest_bits: int | None = None) -> HashCombiner:
    """Instantiate a registered combiner by name.

    Raises ConfigError for unknown names or unsupported digest widths.
    """
    try:
        cls = COMBINERS[name]
    except KeyError:
        known = ", ".join(sorted(COMBINERS))
        raise ConfigError(f"Unknown combiner {name!r} (known: {known})") from None
    if digest_bits is None:
        return cls()
    return cls(digest_bits=digest_bits)
