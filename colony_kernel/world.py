"""
World Interface
===============

The boundary between the scheduler and the world it runs in.

Everything the kernel knows about sites, workers and hostiles comes
through a `World`: queries return live objects (or None once an object
has been destroyed), primitives return a `ResultCode` and never raise.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, NamedTuple, Optional, Sequence

from colony_kernel.models.body import BodyPart, CARRY_CAPACITY

RESOURCE_ENERGY = "energy"
RESOURCE_ALL = "all"

DOMAIN_SIZE = 50


class Position(NamedTuple):
    """A cell inside a domain grid."""
    x: int
    y: int

    def range_to(self, other: Position) -> int:
        """Chebyshev distance (diagonal steps cost one)."""
        return max(abs(self.x - other.x), abs(self.y - other.y))

    def in_range(self, other: Position, distance: int) -> bool:
        return self.range_to(other) <= distance

    def surrounding(self, radius: int = 1) -> List[Position]:
        """Cells within `radius`, excluding this one and anything off-grid."""
        cells = []
        for dy in range(-radius, radius + 1):
            for dx in range(-radius, radius + 1):
                if dx == 0 and dy == 0:
                    continue
                x, y = self.x + dx, self.y + dy
                if 0 <= x < DOMAIN_SIZE and 0 <= y < DOMAIN_SIZE:
                    cells.append(Position(x, y))
        return cells

    def __str__(self) -> str:
        return f"({self.x},{self.y})"


class SiteKind(str, Enum):
    """Kinds of fixed world objects."""
    SOURCE = "source"
    MINERAL = "mineral"
    DEPOSIT = "deposit"
    STORAGE = "storage"
    LINK = "link"
    CONTAINER = "container"
    SPAWN = "spawn"
    EXTENSION = "extension"
    ROAD = "road"


class ResultCode(str, Enum):
    """Outcome of a world primitive."""
    OK = "ok"
    ARRIVED = "arrived"
    BLOCKED = "blocked"
    NOT_IN_RANGE = "not_in_range"
    NOT_ENOUGH_RESOURCES = "not_enough_resources"
    INVALID_ARGS = "invalid_args"
    INVALID_TARGET = "invalid_target"
    BUSY = "busy"
    NOT_OWNER = "not_owner"
    FULL = "full"
    EMPTY = "empty"


@dataclass
class Site:
    """A fixed world object a job or business can be anchored to."""
    id: str
    kind: SiteKind
    domain: str
    pos: Position
    resource: str = RESOURCE_ENERGY
    amount: int = 0
    capacity: int = 0
    active: bool = True
    spawning: bool = False

    def available(self) -> int:
        return self.amount

    def free_space(self) -> int:
        return max(0, self.capacity - self.amount)

    def __str__(self) -> str:
        return f"{self.kind.value}:{self.id}"


@dataclass
class Worker:
    """
    A mobile agent.

    `job`, `last_job_site` and `employer` are the worker's own cross-cycle
    memory; they live with the worker, not with the scheduler.
    """
    id: str
    domain: str
    pos: Position
    body: List[BodyPart] = field(default_factory=list)
    carried: int = 0
    resource: Optional[str] = None
    ticks_to_live: Optional[int] = None

    job: Optional[str] = None
    last_job_site: Optional[str] = None
    employer: Optional[str] = None

    def parts(self, part: BodyPart) -> int:
        return sum(1 for p in self.body if p == part)

    def capacity(self) -> int:
        return self.parts(BodyPart.CARRY) * CARRY_CAPACITY

    def available(self) -> int:
        return self.carried

    def free_capacity(self) -> int:
        return max(0, self.capacity() - self.carried)

    def set_job(self, job_id: Optional[str]) -> None:
        self.job = job_id

    def set_last_job_site(self, site_id: Optional[str]) -> None:
        self.last_job_site = site_id

    def __str__(self) -> str:
        return f"worker:{self.id}"


@dataclass
class Hostile:
    """A foreign agent."""
    id: str
    domain: str
    pos: Position
    body: List[BodyPart] = field(default_factory=list)

    def is_armed(self) -> bool:
        return any(p in (BodyPart.ATTACK, BodyPart.RANGED_ATTACK) for p in self.body)


@dataclass
class ConstructionSite:
    """A requested structure that has not been built yet."""
    id: str
    domain: str
    pos: Position
    kind: SiteKind


class World(ABC):
    """World query service and action primitives."""

    # ─────────────────────────────────────────────────────────────────
    # Queries
    # ─────────────────────────────────────────────────────────────────

    @abstractmethod
    def domains(self) -> List[str]:
        """Names of every managed domain."""

    @abstractmethod
    def get_site(self, site_id: str) -> Optional[Site]:
        """Resolve a site; None if destroyed or out of visibility."""

    @abstractmethod
    def get_worker(self, worker_id: str) -> Optional[Worker]:
        """Resolve a worker; None once it has expired."""

    @abstractmethod
    def find_sites(self, domain: str, kinds: Iterable[SiteKind]) -> List[Site]:
        """Sites of the given kinds in a domain."""

    @abstractmethod
    def find_workers(self, domain: str) -> List[Worker]:
        """Every live worker in a domain."""

    @abstractmethod
    def find_hostiles(self, domain: str, pos: Position, radius: int) -> List[Hostile]:
        """Hostile agents within `radius` of `pos`."""

    @abstractmethod
    def is_wall(self, domain: str, pos: Position) -> bool:
        """True for impassable terrain."""

    @abstractmethod
    def structures_at(self, domain: str, pos: Position) -> List[Site]:
        """Built structures occupying a cell."""

    @abstractmethod
    def construction_sites(
        self, domain: str, kind: Optional[SiteKind] = None
    ) -> List[ConstructionSite]:
        """Pending construction, optionally filtered by structure kind."""

    @abstractmethod
    def structure_quota(self, domain: str, kind: SiteKind) -> int:
        """How many structures of a kind the domain may hold."""

    @abstractmethod
    def energy_available(self, domain: str) -> int:
        """Manufacturing budget available right now."""

    @abstractmethod
    def energy_capacity(self, domain: str) -> int:
        """Manufacturing budget when every store is full."""

    # ─────────────────────────────────────────────────────────────────
    # Primitives
    # ─────────────────────────────────────────────────────────────────

    @abstractmethod
    def move_toward(self, worker: Worker, site: Site, distance: int = 1) -> ResultCode:
        """Advance one step until within `distance` of the site."""

    @abstractmethod
    def harvest(self, worker: Worker, site: Site) -> ResultCode:
        """Extract resource from a node into the worker."""

    @abstractmethod
    def withdraw(self, worker: Worker, site: Site, resource: str) -> ResultCode:
        """Move resource from a site into the worker."""

    @abstractmethod
    def transfer(self, worker: Worker, site: Site, resource: str) -> ResultCode:
        """Move resource from the worker into a site."""

    @abstractmethod
    def drop(self, worker: Worker, resource: str) -> ResultCode:
        """Release carried resource where the worker stands."""

    @abstractmethod
    def spawn(
        self,
        site: Site,
        body: Sequence[BodyPart],
        name: str,
        memory: Optional[Dict[str, str]] = None,
    ) -> ResultCode:
        """Begin manufacturing a worker at a spawning site."""

    @abstractmethod
    def build(self, domain: str, pos: Position, kind: SiteKind) -> ResultCode:
        """Place a construction site."""

    # ─────────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────────

    def resolve_workers(self, worker_ids: Iterable[str]) -> List[Worker]:
        """Resolve ids, silently dropping workers that no longer exist."""
        workers = []
        for worker_id in worker_ids:
            worker = self.get_worker(worker_id)
            if worker is not None:
                workers.append(worker)
        return workers

    def find_attackers(self, site: Site, radius: int = 5) -> List[Hostile]:
        """Armed hostiles near a site."""
        return [
            h for h in self.find_hostiles(site.domain, site.pos, radius)
            if h.is_armed()
        ]

    def is_buildable(self, domain: str, pos: Position) -> bool:
        """A cell with no wall, no non-road structure and no construction."""
        if self.is_wall(domain, pos):
            return False
        if any(s.kind != SiteKind.ROAD for s in self.structures_at(domain, pos)):
            return False
        return not any(cs.pos == pos for cs in self.construction_sites(domain))

    def empty_surrounding(self, domain: str, pos: Position) -> List[Position]:
        """Buildable cells adjacent to `pos`."""
        return [p for p in pos.surrounding(1) if self.is_buildable(domain, p)]
