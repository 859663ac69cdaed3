"""
Business Variants
=================

    mine   - a resource node worked by a dedicated harvester
    bank   - a storage vault and its adjacent link
    clone  - the spawning facilities of a domain and their extensions
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from colony_kernel.config import BusinessConfig
from colony_kernel.jobs import JobDrop, JobHarvest, JobPickup, JobUnload
from colony_kernel.models.body import BodyPart, body_cost, generate_body
from colony_kernel.models.business import Business, BuildingWork
from colony_kernel.models.job import Job
from colony_kernel.world import (
    RESOURCE_ALL,
    RESOURCE_ENERGY,
    Position,
    Site,
    SiteKind,
    Worker,
    World,
)

logger = logging.getLogger(__name__)

M, W, C = BodyPart.MOVE, BodyPart.WORK, BodyPart.CARRY

MINER_BODY: List[BodyPart] = [W] * 10 + [C] * 12 + [M] * 6
MINER_TEMPLATE: List[BodyPart] = [W, C, M] * 5

BANK_BODY_BASE: List[BodyPart] = [M, C] * 3
CLONE_BODY_BASE: List[BodyPart] = [M, C] * 5
TRANSPORT_TEMPLATE: List[BodyPart] = [M, C]

NEARLY_DEAD_TICKS = 200


class BusinessStripMining(Business):
    """Keeps one harvester on a resource node and clears its containers."""

    TYPE = "mine"
    ROLE = "harvester"

    @classmethod
    def discover(cls, domain: str, world: World, config: BusinessConfig) -> List[Business]:
        nodes = world.find_sites(domain, [SiteKind.SOURCE, SiteKind.MINERAL, SiteKind.DEPOSIT])
        return [cls(node, world, config) for node in sorted(nodes, key=lambda s: s.id)]

    def needs_employee(self, employees: Sequence[Worker]) -> bool:
        logger.debug(f"{self}: {self._site} has {self._site.available()}")
        return not employees and self._site.available() >= self._config.mine_vacancy_threshold

    def employee_body(self, available: int, maximum: int) -> List[BodyPart]:
        cost = body_cost(MINER_BODY)
        if available >= cost:
            return list(MINER_BODY)
        if maximum >= cost:
            return []
        # Domain can never afford a full miner; settle for what it has now.
        base = JobHarvest(self._site, self._world).base_worker_body()
        return generate_body(base, MINER_TEMPLATE, available)

    def stockpiles(self) -> bool:
        """Non-energy output is dropped into adjacent containers, not hauled."""
        return self._site.resource != RESOURCE_ENERGY

    def containers(self) -> List[Site]:
        return sorted(
            (s for s in self._world.find_sites(self.domain(), [SiteKind.CONTAINER])
             if s.pos.in_range(self._site.pos, 1)),
            key=lambda s: s.id,
        )

    def permanent_jobs(self) -> List[Job]:
        if self._site.available() <= 0:
            return []
        if self.stockpiles() and not self.containers():
            logger.debug(f"{self}: no container to stockpile {self._site.resource} into")
            return []
        return [JobHarvest(self._site, self._world, self._priority, self.id())]

    def _contract_jobs(self, employees: Sequence[Worker]) -> List[Job]:
        containers = self.containers()
        if self.stockpiles():
            return [
                JobDrop(c, self._world, 1, self.id(), self._site.resource)
                for c in containers
            ]
        return [
            JobPickup(c, self._world, c.available() / max(1, c.capacity) * 9, self.id(), RESOURCE_ALL)
            for c in containers if c.available() > 0
        ]


class BusinessBanking(Business):
    """Moves resource in and out of a storage vault."""

    TYPE = "bank"
    ROLE = "logistics"

    def __init__(
        self,
        site: Site,
        world: World,
        config: Optional[BusinessConfig] = None,
        priority: float = 5.0,
    ):
        super().__init__(site, world, config, priority)
        self._link: Optional[Site] = None

    @classmethod
    def discover(cls, domain: str, world: World, config: BusinessConfig) -> List[Business]:
        vaults = world.find_sites(domain, [SiteKind.STORAGE])
        return [cls(vault, world, config) for vault in sorted(vaults, key=lambda s: s.id)]

    def survey(self) -> None:
        if self._link is not None and self._world.get_site(self._link.id) is not None:
            return
        self._link = None
        for site in self._world.find_sites(self.domain(), [SiteKind.LINK]):
            if site.pos.in_range(self._site.pos, 1):
                self._link = site
                logger.info(f"{self}: updated link to {site}")
                break

    def link(self) -> Optional[Site]:
        return self._link

    def needs_employee(self, employees: Sequence[Worker]) -> bool:
        return not employees

    def employee_body(self, available: int, maximum: int) -> List[BodyPart]:
        return self.budgeted_body(BANK_BODY_BASE, TRANSPORT_TEMPLATE, available, maximum)

    def permanent_jobs(self) -> List[Job]:
        return []

    def _contract_jobs(self, employees: Sequence[Worker]) -> List[Job]:
        vault = self._site
        jobs: List[Job] = []

        if vault.available() > 0:
            jobs.append(JobPickup(vault, self._world, 1, self.id(), RESOURCE_ALL))
        if vault.free_space() > 0:
            jobs.append(JobUnload(vault, self._world, 1, self.id(), RESOURCE_ENERGY))

        link = self._link
        if link is not None and link.available() > 0:
            jobs.append(JobPickup(link, self._world, self._priority, self.id(), RESOURCE_ALL))

        logger.debug(f"{self}: contracts {[str(j) for j in jobs]}")
        return jobs

    def buildings(self) -> List[BuildingWork]:
        if self._link is not None or not self._can_build_link():
            return []
        pos = self.link_position()
        if pos is None:
            return []
        return [BuildingWork(self.domain(), pos, SiteKind.LINK)]

    def _can_build_link(self) -> bool:
        domain = self.domain()
        links = len(self._world.find_sites(domain, [SiteKind.LINK]))
        links += len(self._world.construction_sites(domain, SiteKind.LINK))
        return self._world.structure_quota(domain, SiteKind.LINK) - links > 0

    def link_position(self) -> Optional[Position]:
        """
        Best cell for a link next to the vault.

        Any link (built or under construction) already adjacent to the
        vault rules out every candidate. Remaining buildable cells are
        ranked by how many empty neighbours they keep, then by distance
        to the vault.
        """
        world = self._world
        domain = self.domain()
        vault_pos = self._site.pos
        pending = {cs.pos for cs in world.construction_sites(domain, SiteKind.LINK)}

        candidates = []
        for pos in vault_pos.surrounding(1):
            if pos in pending or any(s.kind == SiteKind.LINK for s in world.structures_at(domain, pos)):
                return None
            if world.is_buildable(domain, pos):
                candidates.append(pos)

        if not candidates:
            return None

        logger.info(f"{self}: found {len(candidates)} viable link sites")
        ranked = sorted(
            candidates,
            key=lambda p: (-len(world.empty_surrounding(domain, p)), p.range_to(vault_pos), p),
        )
        return ranked[0]


class BusinessCloning(Business):
    """Keeps the spawning facilities of a domain fed."""

    TYPE = "clone"
    ROLE = "logistics"

    def __init__(
        self,
        site: Site,
        world: World,
        config: Optional[BusinessConfig] = None,
        priority: float = 5.0,
    ):
        super().__init__(site, world, config, priority)
        self._spawns: List[Site] = []
        self._extensions: List[Site] = []
        self._unload_jobs: Optional[List[Job]] = None

    @classmethod
    def discover(cls, domain: str, world: World, config: BusinessConfig) -> List[Business]:
        spawns = sorted(world.find_sites(domain, [SiteKind.SPAWN]), key=lambda s: s.id)
        if not spawns:
            return []
        return [cls(spawns[0], world, config)]

    def survey(self) -> None:
        domain = self.domain()
        self._spawns = sorted(
            (s for s in self._world.find_sites(domain, [SiteKind.SPAWN]) if s.active),
            key=lambda s: s.id,
        )
        self._extensions = [
            s for s in self._world.find_sites(domain, [SiteKind.EXTENSION]) if s.active
        ]
        self._unload_jobs = self._build_unload_jobs()

    def health(self) -> float:
        """How well the domain is staffed and stocked, in [0, 1]."""
        domain = self.domain()
        workers = self._world.find_workers(domain)
        nearly_dead = sum(
            1 for w in workers
            if w.ticks_to_live is not None and w.ticks_to_live < NEARLY_DEAD_TICKS
        )
        worker_health = (len(workers) - nearly_dead) / max(1, self._config.healthy_population)

        capacity = self._world.energy_capacity(domain)
        budget_health = self._world.energy_available(domain) / capacity if capacity else 0.0

        return max(0.0, min(1.0, worker_health, budget_health))

    def needs_employee(self, employees: Sequence[Worker]) -> bool:
        return not employees

    def employee_body(self, available: int, maximum: int) -> List[BodyPart]:
        return self.budgeted_body(CLONE_BODY_BASE, TRANSPORT_TEMPLATE, available, maximum)

    def permanent_jobs(self) -> List[Job]:
        if self._unload_jobs is None:
            self.survey()
        return list(self._unload_jobs)

    def _contract_jobs(self, employees: Sequence[Worker]) -> List[Job]:
        if self._unload_jobs is None:
            self.survey()
        jobs: List[Job] = []
        for recycler in self._recyclers():
            if recycler.available() > 0:
                jobs.append(JobPickup(recycler, self._world, self._priority, self.id(), RESOURCE_ALL))
        logger.debug(f"{self}: {len(jobs)} contracts")
        return jobs

    def buildings(self) -> List[BuildingWork]:
        if self._unload_jobs is None:
            self.survey()
        domain = self.domain()
        positions = self.extension_positions()
        for pos in positions:
            logger.info(f"{self}: creating new building work {domain} @ {pos}")
        return [BuildingWork(domain, pos, SiteKind.EXTENSION) for pos in positions]

    def extension_positions(self) -> List[Position]:
        """Checkerboard cells around the main spawn, nearest first, up to quota."""
        if not self._spawns:
            return []

        world = self._world
        domain = self.domain()
        main_spawn = self._spawns[0]

        existing = len(world.find_sites(domain, [SiteKind.EXTENSION]))
        existing += len(world.construction_sites(domain, SiteKind.EXTENSION))
        wanted = world.structure_quota(domain, SiteKind.EXTENSION) - existing
        if wanted <= 0:
            return []

        viable = [
            p for p in main_spawn.pos.surrounding(self._config.extension_radius)
            if p.x % 2 == p.y % 2 and world.is_buildable(domain, p)
        ]
        viable.sort(key=lambda p: (p.range_to(main_spawn.pos), p))
        return viable[:wanted]

    def _recyclers(self) -> List[Site]:
        containers = self._world.find_sites(self.domain(), [SiteKind.CONTAINER])
        return [
            c for c in containers
            if any(c.pos.in_range(s.pos, 1) for s in self._spawns)
        ]

    def _build_unload_jobs(self) -> List[Job]:
        health = self.health()
        logger.debug(f"{self}: health={health:.2f}")

        limit = self._config.max_unload_jobs
        anchor = self._site.pos
        ext_priority = 6 + (1.0 - health) * self._priority
        extensions = sorted(
            (e for e in self._extensions if e.free_space() > 0),
            key=lambda e: (e.pos.range_to(anchor), -e.free_space(), e.id),
        )[:limit]
        jobs: List[Job] = [
            JobUnload(e, self._world, ext_priority, self.id(), RESOURCE_ENERGY)
            for e in extensions
        ]

        if len(jobs) < limit:
            spawn_priority = 5 + (1.0 - health) * self._priority
            jobs.extend(
                JobUnload(s, self._world, spawn_priority, self.id(), RESOURCE_ENERGY)
                for s in self._spawns if s.free_space() > 0
            )
        return jobs


BUSINESS_TYPES = (BusinessStripMining, BusinessBanking, BusinessCloning)
