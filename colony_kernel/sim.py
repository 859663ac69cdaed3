"""
Simulated World
===============

An in-memory `World` with just enough physics to exercise the
scheduler: one-step movement, bounded resource exchange, instant
manufacturing and construction placement.

Scenarios can be described in YAML:

    domains:
      - name: W1N1
        walls: [[10, 10], [10, 11]]
        quotas: {extension: 5, link: 1}
    sites:
      - {id: spawn1, kind: spawn, domain: W1N1, pos: [25, 25], amount: 300, capacity: 300}
      - {id: src1, kind: source, domain: W1N1, pos: [5, 5], amount: 3000}
    workers:
      - {id: w1, domain: W1N1, pos: [20, 20], body: [work, carry, move, move]}
    hostiles: []
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set

import yaml

from colony_kernel.models.body import BodyPart, HARVEST_POWER, MAX_BODY_SIZE, body_cost, parse_body
from colony_kernel.world import (
    ConstructionSite,
    Hostile,
    Position,
    RESOURCE_ALL,
    ResultCode,
    Site,
    SiteKind,
    Worker,
    World,
    DOMAIN_SIZE,
)

logger = logging.getLogger(__name__)

BUDGET_SITES = (SiteKind.SPAWN, SiteKind.EXTENSION)
WORKER_LIFETIME = 1500


def _sign(v: int) -> int:
    return (v > 0) - (v < 0)


class SimWorld(World):
    """In-memory world."""

    def __init__(self):
        self._domains: List[str] = []
        self._walls: Dict[str, Set[Position]] = {}
        self._quotas: Dict[str, Dict[SiteKind, int]] = {}

        self._sites: Dict[str, Site] = {}
        self._workers: Dict[str, Worker] = {}
        self._hostiles: Dict[str, Hostile] = {}
        self._construction: Dict[str, ConstructionSite] = {}

        self._construction_seq = 0
        self.tick_count = 0

    # ─────────────────────────────────────────────────────────────────
    # Scenario setup
    # ─────────────────────────────────────────────────────────────────

    def add_domain(
        self,
        name: str,
        walls: Iterable[Position] = (),
        quotas: Optional[Dict[SiteKind, int]] = None,
    ) -> None:
        if name not in self._domains:
            self._domains.append(name)
        self._walls[name] = {Position(*w) for w in walls}
        self._quotas[name] = dict(quotas or {})

    def add_site(self, site: Site) -> Site:
        self._sites[site.id] = site
        return site

    def remove_site(self, site_id: str) -> None:
        self._sites.pop(site_id, None)

    def add_worker(self, worker: Worker) -> Worker:
        self._workers[worker.id] = worker
        return worker

    def remove_worker(self, worker_id: str) -> None:
        self._workers.pop(worker_id, None)

    def add_hostile(self, hostile: Hostile) -> Hostile:
        self._hostiles[hostile.id] = hostile
        return hostile

    def remove_hostile(self, hostile_id: str) -> None:
        self._hostiles.pop(hostile_id, None)

    def tick(self) -> None:
        """Advance time: spawns finish manufacturing, workers age."""
        for site in self._sites.values():
            site.spawning = False
        for worker in list(self._workers.values()):
            if worker.ticks_to_live is None:
                continue
            worker.ticks_to_live -= 1
            if worker.ticks_to_live <= 0:
                logger.info(f"{worker} expired")
                del self._workers[worker.id]
        self.tick_count += 1

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> SimWorld:
        world = cls()
        for d in data.get("domains", []):
            quotas = {SiteKind(k): int(v) for k, v in (d.get("quotas") or {}).items()}
            world.add_domain(d["name"], walls=d.get("walls", []), quotas=quotas)

        for s in data.get("sites", []):
            world.add_site(Site(
                id=s["id"],
                kind=SiteKind(s["kind"]),
                domain=s["domain"],
                pos=Position(*s["pos"]),
                resource=s.get("resource", "energy"),
                amount=s.get("amount", 0),
                capacity=s.get("capacity", 0),
                active=s.get("active", True),
            ))

        for w in data.get("workers", []):
            world.add_worker(Worker(
                id=w["id"],
                domain=w["domain"],
                pos=Position(*w["pos"]),
                body=parse_body(w.get("body", [])),
                carried=w.get("carried", 0),
                resource=w.get("resource"),
                ticks_to_live=w.get("ticks_to_live"),
                employer=w.get("employer"),
            ))

        for h in data.get("hostiles", []):
            world.add_hostile(Hostile(
                id=h["id"],
                domain=h["domain"],
                pos=Position(*h["pos"]),
                body=parse_body(h.get("body", ["attack"])),
            ))

        return world

    @classmethod
    def from_yaml(cls, path: Path) -> SimWorld:
        """Load a scenario from a YAML file."""
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        return cls.from_dict(data)

    # ─────────────────────────────────────────────────────────────────
    # Queries
    # ─────────────────────────────────────────────────────────────────

    def domains(self) -> List[str]:
        return list(self._domains)

    def get_site(self, site_id: str) -> Optional[Site]:
        return self._sites.get(site_id)

    def get_worker(self, worker_id: str) -> Optional[Worker]:
        return self._workers.get(worker_id)

    def find_sites(self, domain: str, kinds: Iterable[SiteKind]) -> List[Site]:
        wanted = set(kinds)
        return [s for s in self._sites.values() if s.domain == domain and s.kind in wanted]

    def find_workers(self, domain: str) -> List[Worker]:
        return [w for w in self._workers.values() if w.domain == domain]

    def find_hostiles(self, domain: str, pos: Position, radius: int) -> List[Hostile]:
        return [
            h for h in self._hostiles.values()
            if h.domain == domain and h.pos.in_range(pos, radius)
        ]

    def is_wall(self, domain: str, pos: Position) -> bool:
        return pos in self._walls.get(domain, set())

    def structures_at(self, domain: str, pos: Position) -> List[Site]:
        return [s for s in self._sites.values() if s.domain == domain and s.pos == pos]

    def construction_sites(
        self, domain: str, kind: Optional[SiteKind] = None
    ) -> List[ConstructionSite]:
        return [
            cs for cs in self._construction.values()
            if cs.domain == domain and (kind is None or cs.kind == kind)
        ]

    def structure_quota(self, domain: str, kind: SiteKind) -> int:
        return self._quotas.get(domain, {}).get(kind, 0)

    def energy_available(self, domain: str) -> int:
        return sum(s.amount for s in self.find_sites(domain, BUDGET_SITES) if s.active)

    def energy_capacity(self, domain: str) -> int:
        return sum(s.capacity for s in self.find_sites(domain, BUDGET_SITES) if s.active)

    # ─────────────────────────────────────────────────────────────────
    # Primitives
    # ─────────────────────────────────────────────────────────────────

    def _passable(self, domain: str, pos: Position) -> bool:
        if not (0 <= pos.x < DOMAIN_SIZE and 0 <= pos.y < DOMAIN_SIZE):
            return False
        if self.is_wall(domain, pos):
            return False
        return all(
            s.kind in (SiteKind.ROAD, SiteKind.CONTAINER)
            for s in self.structures_at(domain, pos)
        )

    def move_toward(self, worker: Worker, site: Site, distance: int = 1) -> ResultCode:
        if worker.pos.in_range(site.pos, distance):
            return ResultCode.ARRIVED
        if worker.parts(BodyPart.MOVE) == 0:
            return ResultCode.INVALID_ARGS

        dx = _sign(site.pos.x - worker.pos.x)
        dy = _sign(site.pos.y - worker.pos.y)
        for step in ((dx, dy), (dx, 0), (0, dy)):
            if step == (0, 0):
                continue
            nxt = Position(worker.pos.x + step[0], worker.pos.y + step[1])
            if self._passable(worker.domain, nxt):
                worker.pos = nxt
                return ResultCode.OK
        return ResultCode.BLOCKED

    def harvest(self, worker: Worker, site: Site) -> ResultCode:
        if not worker.pos.in_range(site.pos, 1):
            return ResultCode.NOT_IN_RANGE
        power = worker.parts(BodyPart.WORK) * HARVEST_POWER
        if power == 0:
            return ResultCode.INVALID_ARGS
        if site.amount <= 0:
            return ResultCode.EMPTY
        if worker.free_capacity() <= 0:
            return ResultCode.FULL
        if worker.carried > 0 and worker.resource not in (None, site.resource):
            return ResultCode.INVALID_TARGET

        amount = min(power, site.amount, worker.free_capacity())
        site.amount -= amount
        worker.carried += amount
        worker.resource = site.resource
        return ResultCode.OK

    def withdraw(self, worker: Worker, site: Site, resource: str) -> ResultCode:
        if not worker.pos.in_range(site.pos, 1):
            return ResultCode.NOT_IN_RANGE
        if resource != RESOURCE_ALL and site.resource != resource:
            return ResultCode.INVALID_ARGS
        if site.amount <= 0:
            return ResultCode.EMPTY
        if worker.free_capacity() <= 0:
            return ResultCode.FULL
        if worker.carried > 0 and worker.resource != site.resource:
            return ResultCode.INVALID_TARGET

        amount = min(site.amount, worker.free_capacity())
        site.amount -= amount
        worker.carried += amount
        worker.resource = site.resource
        return ResultCode.OK

    def transfer(self, worker: Worker, site: Site, resource: str) -> ResultCode:
        if not worker.pos.in_range(site.pos, 1):
            return ResultCode.NOT_IN_RANGE
        if worker.carried <= 0:
            return ResultCode.EMPTY
        if resource != RESOURCE_ALL and worker.resource != resource:
            return ResultCode.INVALID_ARGS
        if site.free_space() <= 0:
            return ResultCode.FULL
        if site.amount > 0 and site.resource != worker.resource:
            return ResultCode.INVALID_TARGET

        amount = min(worker.carried, site.free_space())
        site.amount += amount
        site.resource = worker.resource or site.resource
        worker.carried -= amount
        if worker.carried == 0:
            worker.resource = None
        return ResultCode.OK

    def drop(self, worker: Worker, resource: str) -> ResultCode:
        if worker.carried <= 0:
            return ResultCode.EMPTY
        if resource != RESOURCE_ALL and worker.resource != resource:
            return ResultCode.INVALID_ARGS

        for site in self.structures_at(worker.domain, worker.pos):
            if site.kind == SiteKind.CONTAINER and (site.amount == 0 or site.resource == worker.resource):
                poured = min(worker.carried, site.free_space())
                site.amount += poured
                site.resource = worker.resource or site.resource
                break

        worker.carried = 0
        worker.resource = None
        return ResultCode.OK

    def spawn(
        self,
        site: Site,
        body: Sequence[BodyPart],
        name: str,
        memory: Optional[Dict[str, str]] = None,
    ) -> ResultCode:
        if site.kind != SiteKind.SPAWN:
            return ResultCode.INVALID_TARGET
        if not site.active:
            return ResultCode.NOT_OWNER
        if site.spawning:
            return ResultCode.BUSY
        if not body or len(body) > MAX_BODY_SIZE or name in self._workers:
            return ResultCode.INVALID_ARGS

        cost = body_cost(body)
        if cost > self.energy_available(site.domain):
            return ResultCode.NOT_ENOUGH_RESOURCES

        # Spend from the spawn first, then extensions.
        stores = sorted(
            (s for s in self.find_sites(site.domain, BUDGET_SITES) if s.active),
            key=lambda s: (s.id != site.id, s.kind != SiteKind.SPAWN, s.id),
        )
        remaining = cost
        for store in stores:
            spent = min(store.amount, remaining)
            store.amount -= spent
            remaining -= spent
            if remaining == 0:
                break

        memory = memory or {}
        self._workers[name] = Worker(
            id=name,
            domain=site.domain,
            pos=site.pos,
            body=list(body),
            ticks_to_live=WORKER_LIFETIME,
            employer=memory.get("employer"),
        )
        site.spawning = True
        return ResultCode.OK

    def build(self, domain: str, pos: Position, kind: SiteKind) -> ResultCode:
        if not self.is_buildable(domain, pos):
            return ResultCode.INVALID_TARGET

        built = len(self.find_sites(domain, [kind])) + len(self.construction_sites(domain, kind))
        if built >= self.structure_quota(domain, kind):
            return ResultCode.FULL

        self._construction_seq += 1
        cs_id = f"cs{self._construction_seq}"
        self._construction[cs_id] = ConstructionSite(id=cs_id, domain=domain, pos=pos, kind=kind)
        return ResultCode.OK
