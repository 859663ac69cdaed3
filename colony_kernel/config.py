"""
Kernel Configuration
====================

Tunable constants for recruitment and businesses, loadable from YAML.

    cloner:
      min_clone_energy: 100
      max_workers: 8
    business:
      ideal_clone_energy: 1000
    kernel:
      snapshot_dir: ~/.colony/state
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict

import yaml

logger = logging.getLogger(__name__)


class ConfigError(ValueError):
    """Malformed configuration or identity string."""


@dataclass
class ClonerConfig:
    """Recruitment limits."""
    min_clone_energy: int = 100
    max_worker_energy: int = 1500
    max_workers: int = 8
    max_heavy_workers: int = 4


@dataclass
class BusinessConfig:
    """Business tuning."""
    ideal_clone_energy: int = 1000
    max_clone_energy: int = 2000
    hostile_radius: int = 5
    mine_vacancy_threshold: int = 900
    max_unload_jobs: int = 5
    extension_radius: int = 10
    # follows cloner.max_workers unless set explicitly
    healthy_population: int = 8


@dataclass
class RuntimeConfig:
    """Where the kernel keeps its state."""
    snapshot_dir: Path = field(default_factory=lambda: Path.home() / ".colony" / "state")


def _section(cls, data: Dict[str, Any], name: str):
    if not isinstance(data, dict):
        raise ConfigError(f"Section '{name}' must be a mapping, got {type(data).__name__}")

    known = {f.name for f in fields(cls)}
    unknown = set(data) - known
    if unknown:
        logger.warning(f"Ignoring unknown keys in '{name}': {sorted(unknown)}")

    try:
        return cls(**{k: v for k, v in data.items() if k in known})
    except TypeError as e:
        raise ConfigError(f"Invalid '{name}' section: {e}") from e


@dataclass
class KernelConfig:
    """Complete kernel configuration."""
    cloner: ClonerConfig = field(default_factory=ClonerConfig)
    business: BusinessConfig = field(default_factory=BusinessConfig)
    kernel: RuntimeConfig = field(default_factory=RuntimeConfig)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> KernelConfig:
        config = cls()

        for name in set(data) - {"cloner", "business", "kernel"}:
            logger.warning(f"Ignoring unknown config section '{name}'")

        if "cloner" in data:
            config.cloner = _section(ClonerConfig, data["cloner"], "cloner")
        if "business" in data:
            config.business = _section(BusinessConfig, data["business"], "business")
        if "kernel" in data:
            config.kernel = _section(RuntimeConfig, data["kernel"], "kernel")
            config.kernel.snapshot_dir = Path(config.kernel.snapshot_dir).expanduser()

        if "healthy_population" not in data.get("business", {}):
            config.business.healthy_population = config.cloner.max_workers

        return config

    @classmethod
    def from_yaml(cls, path: Path) -> KernelConfig:
        """Load config from YAML file."""
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ConfigError(f"{path}: top level must be a mapping")
        return cls.from_dict(data)
