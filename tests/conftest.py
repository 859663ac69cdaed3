"""
Colony Kernel Test Configuration
================================

Shared fixtures: a small simulated domain and factories for sites,
workers and hostiles.
"""

import logging

import pytest

from colony_kernel.config import KernelConfig
from colony_kernel.models.body import BodyPart
from colony_kernel.registry import default_registry
from colony_kernel.sim import SimWorld
from colony_kernel.snapshot import SnapshotStore
from colony_kernel.world import Hostile, Position, Site, SiteKind, Worker

logger = logging.getLogger(__name__)

DOMAIN = "W1N1"

M, W, C = BodyPart.MOVE, BodyPart.WORK, BodyPart.CARRY


# =============================================================================
# World
# =============================================================================

@pytest.fixture
def world():
    """Empty domain with room for five extensions and one link."""
    sim = SimWorld()
    sim.add_domain(DOMAIN, quotas={SiteKind.EXTENSION: 5, SiteKind.LINK: 1})
    return sim


@pytest.fixture
def add_site(world):
    """Factory: add a site to the world."""
    def _add(site_id, kind, pos, amount=0, capacity=0, domain=DOMAIN, **kwargs):
        return world.add_site(Site(
            id=site_id,
            kind=kind,
            domain=domain,
            pos=Position(*pos),
            amount=amount,
            capacity=capacity,
            **kwargs,
        ))
    return _add


@pytest.fixture
def add_worker(world):
    """Factory: add a worker to the world."""
    def _add(worker_id, pos, body=None, carried=0, domain=DOMAIN, **kwargs):
        kwargs.setdefault("resource", "energy" if carried else None)
        return world.add_worker(Worker(
            id=worker_id,
            domain=domain,
            pos=Position(*pos),
            body=list(body) if body is not None else [W, C, M],
            carried=carried,
            **kwargs,
        ))
    return _add


@pytest.fixture
def add_hostile(world):
    """Factory: add a hostile agent to the world."""
    def _add(hostile_id, pos, body=None, domain=DOMAIN):
        return world.add_hostile(Hostile(
            id=hostile_id,
            domain=domain,
            pos=Position(*pos),
            body=list(body) if body is not None else [BodyPart.ATTACK, M],
        ))
    return _add


# =============================================================================
# Kernel plumbing
# =============================================================================

@pytest.fixture
def registry():
    return default_registry()


@pytest.fixture
def config(tmp_path):
    cfg = KernelConfig()
    cfg.kernel.snapshot_dir = tmp_path / "state"
    return cfg


@pytest.fixture
def store(tmp_path):
    return SnapshotStore(tmp_path / "state")
