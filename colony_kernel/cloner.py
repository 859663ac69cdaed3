"""
Recruiter
=========

Decides, once per cycle and domain, whether to manufacture a worker.

Decision order (first match wins):
    1. No idle spawn, or budget below the floor      -> nothing
    2. Highest-priority business with a vacancy      -> its employee body
    3. Idle workers already exist                    -> nothing
    4. Generic workforce under its ceiling           -> generic body

Failures are never retried within a cycle; the next cycle recomputes
everything from scratch.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from colony_kernel.config import ClonerConfig
from colony_kernel.models.body import BodyPart, body_cost, generate_body
from colony_kernel.models.business import Business, Executive
from colony_kernel.operations import Operation
from colony_kernel.world import ResultCode, Site, SiteKind, Worker, World

logger = logging.getLogger(__name__)

M, W, C = BodyPart.MOVE, BodyPart.WORK, BodyPart.CARRY

EMPLOYEE_BODY_BASE: List[BodyPart] = [M, M, C, W]
EMPLOYEE_BODY_TEMPLATE: List[BodyPart] = [W, C, M, M]

GENERIC_ROLE = "generic"
BOOTSTRAP_HARVESTERS = 2
BOOTSTRAP_WORKERS = 2


@dataclass
class CloningWork:
    """A one-shot request to manufacture a worker."""
    site: Site
    name: str
    body: List[BodyPart]
    employer: Optional[str] = None

    def id(self) -> str:
        return f"clone:{self.site.id}"

    def __str__(self) -> str:
        return self.id()

    def to_dict(self) -> dict:
        return {
            "site": self.site.id,
            "name": self.name,
            "body": [p.value for p in self.body],
            "cost": body_cost(self.body),
            "employer": self.employer,
        }

    def operation(self, world: World) -> Operation:
        def clone_a_worker() -> None:
            memory = {"employer": self.employer} if self.employer else None
            res = world.spawn(self.site, self.body, self.name, memory)
            if res == ResultCode.OK:
                logger.info(f"{self}: started to clone {self.name} ({len(self.body)} parts)")
                if self.employer:
                    logger.info(f"{self}: {self.name} hired by {self.employer}")
            else:
                logger.warning(
                    f"{self}: failed to clone {self.name} "
                    f"(cost={body_cost(self.body)}, "
                    f"available={world.energy_available(self.site.domain)}) ({res.value})"
                )

        return clone_a_worker


class Cloner:
    """Per-domain recruiter."""

    def __init__(
        self,
        domain: str,
        world: World,
        config: Optional[ClonerConfig] = None,
        clone_count: int = 0,
    ):
        self.domain = domain
        self._world = world
        self.config = config or ClonerConfig()
        self._clone_count = clone_count

    def id(self) -> str:
        return f"cloner:{self.domain}"

    def __str__(self) -> str:
        return self.id()

    def clone_count(self) -> int:
        return self._clone_count

    def _unique_name(self, business: Optional[Business] = None) -> str:
        prefix = business.id() if business is not None else self.domain
        name = f"{prefix}-{self._clone_count}"
        self._clone_count += 1
        return name

    def idle_spawns(self) -> List[Site]:
        spawns = self._world.find_sites(self.domain, [SiteKind.SPAWN])
        return sorted(
            (s for s in spawns if s.active and not s.spawning),
            key=lambda s: s.id,
        )

    def evaluate(
        self,
        executives: Sequence[Executive],
        idle_workers: Sequence[Worker],
        all_workers: Sequence[Worker],
    ) -> List[CloningWork]:
        """At most one directive per cycle."""
        spawns = self.idle_spawns()
        if not spawns:
            logger.debug(f"{self}: no spawns for cloning")
            return []

        available = self._world.energy_available(self.domain)
        capacity = self._world.energy_capacity(self.domain)
        if available < self.config.min_clone_energy:
            logger.debug(f"{self}: not enough energy ({available}) for cloning")
            return []

        vacant = [e for e in executives if e.needs_employee()]
        if vacant:
            ceo = sorted(vacant, key=lambda e: (-e.priority(), e.id()))[0]
            logger.info(f"{self}: {len(vacant)} businesses with vacancies, top is {ceo}")
            body = ceo.employee_body(available, capacity)
            if body:
                return [CloningWork(spawns[0], self._unique_name(ceo.business), body, ceo.business.id())]

        if idle_workers:
            logger.debug(f"{self}: not cloning, {len(idle_workers)} idle workers present")
            return []

        return self._generic(spawns[0], executives, all_workers, available, capacity)

    def _generic(
        self,
        spawn: Site,
        executives: Sequence[Executive],
        all_workers: Sequence[Worker],
        available: int,
        capacity: int,
    ) -> List[CloningWork]:
        specialized = {}
        for ceo in executives:
            if ceo.role() != GENERIC_ROLE:
                specialized[ceo.role()] = specialized.get(ceo.role(), 0) + len(ceo.employees())

        num_workers = len(all_workers) - sum(specialized.values())
        if num_workers < 0:
            logger.warning(
                f"{self}: specialized workers {specialized} exceed total {len(all_workers)}, "
                f"skipping generic recruitment"
            )
            return []

        heavy = capacity > self.config.max_worker_energy
        max_workers = self.config.max_heavy_workers if heavy else self.config.max_workers
        if num_workers >= max_workers:
            logger.info(
                f"{self}: not cloning, {num_workers} >= {max_workers} workers "
                f"(total {len(all_workers)}, specialized {specialized})"
            )
            return []

        harvesters = specialized.get("harvester", 0)
        bootstrapping = harvesters < BOOTSTRAP_HARVESTERS and num_workers < BOOTSTRAP_WORKERS
        funds = min(self.config.max_worker_energy, available if bootstrapping else capacity)
        body = generate_body(EMPLOYEE_BODY_BASE, EMPLOYEE_BODY_TEMPLATE, funds)
        if not body:
            logger.debug(f"{self}: not enough energy ({funds}) to clone a worker")
            return []

        return [CloningWork(spawn, self._unique_name(), body)]
