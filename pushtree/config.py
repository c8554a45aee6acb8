"""Configuration loader for pushtree.

Loads the tree configuration from config/pushtree.yaml, or from the file
named by the PUSHTREE_CONFIG environment variable.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError, model_validator

from pushtree.combiners import COMBINERS, HashCombiner, get_combiner
from pushtree.errors import ConfigError
from pushtree.tree import MerkleTree

WORKSPACE = Path(__file__).resolve().parent.parent
CONFIG_DIR = WORKSPACE / "config"
DEFAULT_CONFIG_PATH = CONFIG_DIR / "pushtree.yaml"
CONFIG_ENV_VAR = "PUSHTREE_CONFIG"

log = logging.getLogger("pushtree.config")


class TreeConfig(BaseModel):
    """Validated contents of pushtree.yaml."""

    model_config = ConfigDict(extra="forbid")

    combiner: str = "blake2b"
    digest_bits: int | None = None  # combiner default when omitted
    strict: bool = False

    @model_validator(mode="after")
    def _validate_combiner(self) -> "TreeConfig":
        if self.combiner not in COMBINERS:
            known = ", ".join(sorted(COMBINERS))
            raise ValueError(f"Unknown combiner {self.combiner!r} (known: {known})")
        return self


def resolve_config_path(path: str | Path | None = None) -> Path:
    if path is not None:
        return Path(path)
    env_path = os.environ.get(CONFIG_ENV_VAR, "")
    if env_path:
        return Path(env_path)
    return DEFAULT_CONFIG_PATH


def load_tree_config(path: str | Path | None = None) -> TreeConfig:
    """Load and validate the tree config. A missing file yields defaults."""
    config_path = resolve_config_path(path)
    if not config_path.exists():
        log.info("No config at %s, using defaults", config_path)
        return TreeConfig()

    try:
        raw = yaml.safe_load(config_path.read_text()) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Malformed YAML in {config_path}: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigError(f"{config_path} must contain a mapping, got {type(raw).__name__}")

    try:
        config = TreeConfig(**raw)
    except ValidationError as e:
        raise ConfigError(f"Invalid config in {config_path}: {e}") from e

    log.info("Loaded config %s (combiner=%s)", config_path, config.combiner)
    return config


def build_combiner(config: TreeConfig) -> HashCombiner:
    return get_combiner(config.combiner, config.digest_bits)


def build_tree(config: TreeConfig | None = None) -> MerkleTree:
    """Construct an empty tree from config (loaded from disk when omitted)."""
    config = config if config is not None else load_tree_config()
    return MerkleTree(build_combiner(config), strict=config.strict)
