"""
Snapshots
=========

The durable contract between cycles: per domain, the ledgers
(job identity plus bound worker identities) and the clone counter.
Everything else is recomputed from the world each cycle.

Snapshots are written atomically. A cycle that dies half way leaves the
previous snapshot in place.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import List

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from colony_kernel.config import ConfigError

logger = logging.getLogger(__name__)


class LedgerSnapshot(BaseModel):
    """Persisted form of one assignment ledger."""

    job: str
    workers: List[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")


class DomainSnapshot(BaseModel):
    """Everything persisted for one domain."""

    domain: str
    ledgers: List[LedgerSnapshot] = Field(default_factory=list)
    clone_count: int = 0

    model_config = ConfigDict(extra="ignore")


class SnapshotStore:
    """One JSON file per domain under a state directory."""

    def __init__(self, state_dir: Path):
        self.state_dir = Path(state_dir)

    def path_for(self, domain: str) -> Path:
        if not domain or os.sep in domain or domain.startswith("."):
            raise ConfigError(f"Invalid domain name for snapshot: {domain!r}")
        return self.state_dir / f"{domain}.json"

    def load(self, domain: str) -> DomainSnapshot:
        """Load a domain snapshot; empty if missing or unreadable."""
        path = self.path_for(domain)
        if not path.exists():
            logger.debug(f"{domain}: no snapshot at {path}")
            return DomainSnapshot(domain=domain)

        try:
            snapshot = DomainSnapshot.model_validate_json(path.read_text())
        except (OSError, ValidationError) as e:
            logger.warning(f"{domain}: discarding unreadable snapshot {path}: {e}")
            return DomainSnapshot(domain=domain)

        if snapshot.domain != domain:
            logger.warning(f"{path}: snapshot belongs to '{snapshot.domain}', expected '{domain}'")
            return DomainSnapshot(domain=domain)

        logger.debug(f"{domain}: restored {len(snapshot.ledgers)} ledgers")
        return snapshot

    def save(self, snapshot: DomainSnapshot) -> Path:
        """Write a snapshot via temp file and rename."""
        path = self.path_for(snapshot.domain)
        self.state_dir.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(
            dir=self.state_dir, prefix=f".{snapshot.domain}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w") as f:
                f.write(snapshot.model_dump_json(indent=2))
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

        logger.debug(f"{snapshot.domain}: persisted {len(snapshot.ledgers)} ledgers to {path}")
        return path
