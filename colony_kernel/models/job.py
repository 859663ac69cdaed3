"""
Job Models
==========

Jobs represent discrete units of work tied to a site.

A job is rebuilt from live world state every cycle. Only its identity
string is ever persisted; `Registry.build_job` turns that string back
into a job, or into None once the site is gone.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from colony_kernel.config import ConfigError
from colony_kernel.models.body import BodyPart
from colony_kernel.operations import Operation
from colony_kernel.world import ResultCode, Site, Worker, World

logger = logging.getLogger(__name__)

JOB_PREFIX = "job"
ID_SEPARATOR = ":"


class Prerequisite(str, Enum):
    """Something a worker must have done before it can take a job."""
    NONE = "none"
    COLLECT_ENERGY = "collect_energy"


def job_id(kind: str, site_id: str, *params: str) -> str:
    """Stable identity: job:<kind>:<site>[:<param>...]."""
    parts = [JOB_PREFIX, kind, site_id, *params]
    for part in parts[1:]:
        if not part or ID_SEPARATOR in part:
            raise ConfigError(f"Invalid job identity component: {part!r}")
    return ID_SEPARATOR.join(parts)


def parse_job_id(identity: str) -> Optional[Tuple[str, str, List[str]]]:
    """Split an identity into (kind, site_id, params); None if malformed."""
    frags = identity.split(ID_SEPARATOR)
    if len(frags) < 3 or frags[0] != JOB_PREFIX or not frags[1] or not frags[2]:
        return None
    return frags[1], frags[2], frags[3:]


class Job(ABC):
    """
    A schedulable unit of work.

    Priority, completion and efficiency depend only on the job's own site
    and the worker(s) passed in. A job whose site no longer resolves is
    permanently unsatisfiable: completion 1.0, efficiency 0.
    """

    TYPE: str = ""

    def __init__(
        self,
        site: Site,
        world: World,
        priority: float = 1.0,
        business_id: Optional[str] = None,
    ):
        self._site = site
        self._world = world
        self._priority = priority
        self.business_id = business_id

    @classmethod
    def rebuild(cls, site_id: str, params: List[str], world: World) -> Optional[Job]:
        """Reconstruct from identity fragments; None if the site is gone."""
        site = world.get_site(site_id)
        if site is None:
            return None
        return cls.from_params(site, params, world)

    @classmethod
    def from_params(cls, site: Site, params: List[str], world: World) -> Job:
        return cls(site, world)

    # ─────────────────────────────────────────────────────────────────
    # Identity
    # ─────────────────────────────────────────────────────────────────

    def params(self) -> List[str]:
        """Extra identity components beyond kind and site."""
        return []

    def id(self) -> str:
        return job_id(self.TYPE, self._site.id, *self.params())

    def type(self) -> str:
        return self.TYPE

    def site(self) -> Site:
        return self._site

    def site_id(self) -> str:
        return self._site.id

    def __str__(self) -> str:
        return self.id()

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.id()}>"

    # ─────────────────────────────────────────────────────────────────
    # Contract
    # ─────────────────────────────────────────────────────────────────

    def site_exists(self) -> bool:
        return self._world.get_site(self._site.id) is not None

    def priority(self, workers: Optional[Sequence[Worker]] = None) -> float:
        """Higher is more urgent."""
        return self._priority

    def completion(self, worker: Optional[Worker] = None) -> float:
        """Progress in [0, 1]: aggregate without a worker, personal with one."""
        if not self.site_exists():
            return 1.0
        return min(1.0, max(0.0, self._completion(worker)))

    def efficiency(self, worker: Worker) -> float:
        """Expected throughput per cycle if `worker` took this job."""
        if not self.site_exists():
            return 0.0
        if self.prerequisite(worker) != Prerequisite.NONE:
            return 0.0
        return max(0.0, self._efficiency(worker))

    @abstractmethod
    def is_satisfied(self, workers: Sequence[Worker]) -> bool:
        """True when no more workers are needed."""

    @abstractmethod
    def work(self, worker: Worker) -> List[Operation]:
        """Operations to run this cycle for a worker bound to this job."""

    @abstractmethod
    def _completion(self, worker: Optional[Worker]) -> float:
        ...

    @abstractmethod
    def _efficiency(self, worker: Worker) -> float:
        ...

    def prerequisite(self, worker: Worker) -> Prerequisite:
        """What `worker` still has to do before this job makes sense."""
        return Prerequisite.NONE

    def base_worker_body(self) -> List[BodyPart]:
        """Smallest viable body for this kind of job."""
        return [BodyPart.CARRY, BodyPart.MOVE]

    # ─────────────────────────────────────────────────────────────────
    # Helpers for variants
    # ─────────────────────────────────────────────────────────────────

    def distance_to(self, worker: Worker) -> int:
        return worker.pos.range_to(self._site.pos)

    def move_operation(self, worker: Worker, distance: int = 1) -> Operation:
        """Step `worker` toward the site."""
        site = self._site

        def move_to_site() -> None:
            res = self._world.move_toward(worker, site, distance)
            if res in (ResultCode.OK, ResultCode.ARRIVED):
                logger.debug(f"{self}: {worker} moved towards {site} ({worker.pos.range_to(site.pos)} sq)")
            else:
                logger.warning(f"{self}: {worker} failed moving to {site} ({res.value})")

        return move_to_site
