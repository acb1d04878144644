"""Interpreter configuration with YAML file and environment override support.

Limits that keep the interpreter safe against adversarial input are
collected in :class:`InterpreterConfig`. They can be loaded from a YAML
file so hosts can tune them without code changes.

Search order for :func:`load_config`:
    1. An explicit path passed by the caller (must exist)
    2. The file named by the BOBA_CONFIG environment variable
    3. The user config file (~/.config/boba/config.yaml)
    4. Built-in defaults

Example config.yaml:
    interpreter:
      max_call_depth: 200
      max_steps: 1000000
      max_nesting: 64
"""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

__all__ = [
    "BOBA_CONFIG",
    "InterpreterConfig",
    "load_config",
    "config_search_paths",
]

logger = logging.getLogger(__name__)

# Environment variable naming a config file
BOBA_CONFIG = "BOBA_CONFIG"


@dataclass(frozen=True)
class InterpreterConfig:
    """Resource limits for parsing and evaluation.

    A limit of None means "no language-level limit"; the host's own
    resources (call stack, memory) still apply.
    """
    max_call_depth: Optional[int] = None
    max_steps: Optional[int] = None
    max_nesting: int = 64
    max_int_bits: Optional[int] = 1_000_000
    max_string_length: Optional[int] = 10_000_000

    def __post_init__(self):
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None and f.name != "max_nesting":
                continue
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ValueError(f"{f.name} must be a positive integer, got {value!r}")

    @classmethod
    def from_mapping(cls, data: Dict[str, Any]) -> "InterpreterConfig":
        """Build a config from a mapping, rejecting unknown keys."""
        if "interpreter" in data and isinstance(data["interpreter"], dict):
            data = data["interpreter"]
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(
                f"Unknown interpreter config key(s): {unknown}. "
                f"Known keys: {sorted(known)}"
            )
        return cls(**data)


def config_search_paths() -> List[Path]:
    """Return candidate config files in priority order (explicit path excluded)."""
    paths: List[Path] = []

    env_path = os.environ.get(BOBA_CONFIG)
    if env_path:
        paths.append(Path(env_path).expanduser())

    if sys.platform == "win32":
        config_base = Path(os.environ.get("APPDATA", "~")).expanduser()
    else:
        config_base = Path.home() / ".config"
    paths.append(config_base / "boba" / "config.yaml")

    return paths


def _load_yaml(path: Path) -> Dict[str, Any]:
    """Load a YAML config file; an empty file is an empty mapping."""
    with open(path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f)

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid config format in {path}: expected mapping at root")
    return data


def load_config(path: Optional[Union[str, Path]] = None) -> InterpreterConfig:
    """Load interpreter configuration.

    Args:
        path: Optional explicit config file. Raises FileNotFoundError if
            given and missing.

    Returns:
        InterpreterConfig from the first file found, or defaults.
    """
    if path is not None:
        path = Path(path).expanduser()
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        logger.debug("loading config from %s", path)
        return InterpreterConfig.from_mapping(_load_yaml(path))

    for candidate in config_search_paths():
        if candidate.is_file():
            logger.debug("loading config from %s", candidate)
            return InterpreterConfig.from_mapping(_load_yaml(candidate))

    return InterpreterConfig()
