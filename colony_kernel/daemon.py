"""
Kernel Daemon
=============

Main entry point for the colony kernel.

`Kernel.tick()` runs one cycle for every domain the world reports:
load snapshot, orchestrate, execute operations, persist. A domain that
fails is logged and keeps its previous snapshot; the others proceed.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from colony_kernel.config import ConfigError, KernelConfig
from colony_kernel.operations import execute_operations
from colony_kernel.orchestrator import CycleResult, Orchestrator
from colony_kernel.registry import Registry, default_registry
from colony_kernel.sim import SimWorld
from colony_kernel.snapshot import SnapshotStore
from colony_kernel.world import World

logger = logging.getLogger(__name__)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


class Kernel:
    """
    Drives one scheduling cycle per domain per tick.

    Nothing survives between ticks except what the snapshot store holds,
    so a fresh Kernel resumes exactly where a previous one stopped.
    """

    def __init__(
        self,
        world: World,
        config: Optional[KernelConfig] = None,
        registry: Optional[Registry] = None,
        store: Optional[SnapshotStore] = None,
    ):
        self.world = world
        self.config = config or KernelConfig()
        self.registry = registry or default_registry()
        self.store = store or SnapshotStore(self.config.kernel.snapshot_dir)

        self._tick_count = 0
        self._failed_domains = 0
        self._last_results: List[CycleResult] = []

    def tick(self) -> List[CycleResult]:
        """Run one cycle for every domain."""
        results: List[CycleResult] = []

        for domain in self.world.domains():
            try:
                results.append(self._run_domain(domain))
            except Exception as e:
                self._failed_domains += 1
                logger.exception(f"{domain}: cycle failed, keeping previous snapshot: {e}")

        self._tick_count += 1
        self._last_results = results
        return results

    def _run_domain(self, domain: str) -> CycleResult:
        snapshot = self.store.load(domain)
        orchestrator = Orchestrator(domain, self.world, self.registry, self.config, snapshot)

        result = orchestrator.run_cycle()
        succeeded, failed = execute_operations(orchestrator.emit_operations())
        logger.debug(f"{domain}: {succeeded} operations ok, {failed} failed")

        self.store.save(orchestrator.persist())
        return result

    def get_stats(self) -> Dict[str, Any]:
        """Get kernel statistics."""
        return {
            "tick_count": self._tick_count,
            "domains": self.world.domains(),
            "failed_domains": self._failed_domains,
            "snapshot_dir": str(self.store.state_dir),
            "last_cycle": [r.to_dict() for r in self._last_results],
        }


# ─────────────────────────────────────────────────────────────────────
# Command line
# ─────────────────────────────────────────────────────────────────────

def _load_config(args: argparse.Namespace) -> KernelConfig:
    config = KernelConfig.from_yaml(args.config) if args.config else KernelConfig()
    if args.state_dir:
        config.kernel.snapshot_dir = args.state_dir
    return config


def cmd_run(args: argparse.Namespace) -> int:
    """Run a scenario for a number of ticks."""
    try:
        config = _load_config(args)
        world = SimWorld.from_yaml(args.world)
    except (OSError, ConfigError, ValueError, KeyError) as e:
        print(f"Error loading scenario: {e}", file=sys.stderr)
        return 1

    registry = default_registry()
    store = SnapshotStore(config.kernel.snapshot_dir)

    for _ in range(args.cycles):
        # A fresh kernel per tick: state only flows through the snapshot.
        kernel = Kernel(world, config, registry, store)
        results = kernel.tick()
        world.tick()
        print(json.dumps({
            "tick": world.tick_count,
            "cycles": [r.to_dict() for r in results],
        }))

    return 0


def cmd_show(args: argparse.Namespace) -> int:
    """Print the stored snapshot of a domain."""
    try:
        config = _load_config(args)
        snapshot = SnapshotStore(config.kernel.snapshot_dir).load(args.domain)
    except (OSError, ConfigError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(snapshot.model_dump_json(indent=2))
    return 0


def main():
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Colony kernel")
    parser.add_argument(
        "--log-level",
        choices=LOG_LEVELS,
        default="WARNING",
        help="Log level",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # run
    p = subparsers.add_parser("run", help="Run a scenario")
    p.add_argument("--world", type=Path, required=True, help="Scenario YAML file")
    p.add_argument("--config", type=Path, help="Kernel config YAML file")
    p.add_argument("--state-dir", type=Path, help="Snapshot directory")
    p.add_argument("--cycles", type=int, default=1, help="Number of ticks to run")
    p.add_argument("--log-level", choices=LOG_LEVELS, default=argparse.SUPPRESS, help="Log level")
    p.set_defaults(func=cmd_run)

    # show
    p = subparsers.add_parser("show", help="Show a domain snapshot")
    p.add_argument("domain", help="Domain name")
    p.add_argument("--config", type=Path, help="Kernel config YAML file")
    p.add_argument("--state-dir", type=Path, help="Snapshot directory")
    p.set_defaults(func=cmd_show)

    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    if not args.command:
        parser.print_help()
        return 1

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
