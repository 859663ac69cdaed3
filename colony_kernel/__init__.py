"""
Colony Kernel
=============

A recurring scheduler that matches a pool of worker agents to
prioritized jobs under a shared, depleting budget.

Architecture:
    Business     - Produces jobs from the site it is anchored to
    Boss         - Binds one job to the workers serving it
    Cloner       - Decides when and what to manufacture
    Orchestrator - Runs one cycle for one domain
    Kernel       - Runs every domain and persists snapshots

Nothing is kept in memory between cycles; the snapshot store holds
the ledgers and the clone counter, everything else is recomputed from
the world.
"""

from colony_kernel.models import (
    BodyPart, Business, BuildingWork, Executive, Job, Prerequisite, generate_body,
)
from colony_kernel.world import Position, ResultCode, Site, SiteKind, Worker, World
from colony_kernel.config import ConfigError, KernelConfig
from colony_kernel.jobs import JobDrop, JobHarvest, JobPickup, JobUnload
from colony_kernel.businesses import BusinessBanking, BusinessCloning, BusinessStripMining
from colony_kernel.registry import Registry, default_registry
from colony_kernel.boss import Boss
from colony_kernel.cloner import Cloner, CloningWork
from colony_kernel.orchestrator import CycleResult, Orchestrator, match_workers
from colony_kernel.snapshot import DomainSnapshot, LedgerSnapshot, SnapshotStore
from colony_kernel.sim import SimWorld
from colony_kernel.daemon import Kernel

__all__ = [
    # Models
    "BodyPart", "Business", "BuildingWork", "Executive", "Job", "Prerequisite",
    "generate_body",
    "Position", "ResultCode", "Site", "SiteKind", "Worker", "World",
    "ConfigError", "KernelConfig",
    # Variants
    "JobDrop", "JobHarvest", "JobPickup", "JobUnload",
    "BusinessBanking", "BusinessCloning", "BusinessStripMining",
    # Core
    "Registry", "default_registry",
    "Boss",
    "Cloner", "CloningWork",
    "CycleResult", "Orchestrator", "match_workers",
    "DomainSnapshot", "LedgerSnapshot", "SnapshotStore",
    "SimWorld",
    "Kernel",
]

__version__ = "0.1.0"
