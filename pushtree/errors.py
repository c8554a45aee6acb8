"""Exception hierarchy for pushtree.

The tree operations are infallible by construction; these exist for the
edges around them: empty-tree misuse, blocks a combiner cannot hash,
broken invariants (defects) and bad configuration.
"""

from __future__ import annotations


class PushTreeError(Exception):
    """Base class for every pushtree error."""


class EmptyTreeError(PushTreeError, LookupError):
    """A digest was required but nothing has been pushed yet."""


class UnhashableBlockError(PushTreeError, TypeError):
    """A data block falls outside the combiner's data domain."""


class InvariantViolation(PushTreeError, AssertionError):
    """A tree invariant no longer holds. Always a defect."""


class ConfigError(PushTreeError, ValueError):
    """Invalid configuration file or combiner selection."""
