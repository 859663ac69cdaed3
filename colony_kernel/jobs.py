"""
Job Variants
============

The closed set of job kinds the kernel knows how to schedule.

    harvest  - extract resource from a node
    pickup   - withdraw resource from a store
    unload   - deliver carried resource into a store
    drop     - release carried resource onto a container
"""

from __future__ import annotations

import logging
import math
from typing import List, Optional, Sequence

from colony_kernel.models.body import HARVEST_POWER, MIN_BODY, BodyPart
from colony_kernel.models.job import Job, Prerequisite
from colony_kernel.operations import Operation
from colony_kernel.world import (
    RESOURCE_ALL,
    RESOURCE_ENERGY,
    ResultCode,
    Site,
    SiteKind,
    Worker,
    World,
)

logger = logging.getLogger(__name__)


def _carry_ratio(worker: Worker) -> float:
    capacity = worker.capacity()
    if capacity <= 0:
        return 1.0
    return worker.available() / capacity


class JobHarvest(Job):
    """Fill a worker from a resource node."""

    TYPE = "harvest"

    def _slots(self) -> int:
        site = self._site
        return sum(
            1 for p in site.pos.surrounding(1)
            if not self._world.is_wall(site.domain, p)
        )

    def _completion(self, worker: Optional[Worker]) -> float:
        if self._site.available() <= 0:
            return 1.0
        if worker is None:
            return 0.0
        return _carry_ratio(worker)

    def is_satisfied(self, workers: Sequence[Worker]) -> bool:
        if self._site.available() <= 0:
            return True
        return len(workers) >= self._slots()

    def _efficiency(self, worker: Worker) -> float:
        power = worker.parts(BodyPart.WORK) * HARVEST_POWER
        free = worker.free_capacity()
        if power == 0 or free == 0:
            return 0.0
        if worker.carried > 0 and worker.resource != self._site.resource:
            return 0.0
        amount = min(free, self._site.available())
        fill_time = math.ceil(amount / power)
        return amount / (self.distance_to(worker) + fill_time)

    def base_worker_body(self) -> List[BodyPart]:
        return list(MIN_BODY)

    def work(self, worker: Worker) -> List[Operation]:
        logger.debug(f"{self}: work operations for {worker}")
        if not worker.pos.in_range(self._site.pos, 1):
            return [self.move_operation(worker)]

        site = self._site

        def harvest_site() -> None:
            res = self._world.harvest(worker, site)
            if res == ResultCode.OK:
                logger.info(f"{self}: {worker} harvested {site} ({worker.carried}/{worker.capacity()})")
            else:
                logger.warning(f"{self}: {worker} failed to harvest {site} ({res.value})")

        return [harvest_site]


class JobPickup(Job):
    """Withdraw resource from a store into a worker."""

    TYPE = "pickup"

    def __init__(
        self,
        site: Site,
        world: World,
        priority: float = 1.0,
        business_id: Optional[str] = None,
        resource: str = RESOURCE_ALL,
    ):
        super().__init__(site, world, priority, business_id)
        self.resource = resource

    @classmethod
    def from_params(cls, site: Site, params: List[str], world: World) -> Job:
        return cls(site, world, resource=params[0] if params else RESOURCE_ALL)

    def params(self) -> List[str]:
        return [self.resource]

    def _matches(self, resource: Optional[str]) -> bool:
        return self.resource == RESOURCE_ALL or resource == self.resource

    def _completion(self, worker: Optional[Worker]) -> float:
        if self._site.available() <= 0:
            return 1.0
        if worker is None:
            return 0.0
        return _carry_ratio(worker)

    def is_satisfied(self, workers: Sequence[Worker]) -> bool:
        return sum(w.free_capacity() for w in workers) >= self._site.available()

    def _efficiency(self, worker: Worker) -> float:
        if not self._matches(self._site.resource):
            return 0.0
        if worker.carried > 0 and worker.resource != self._site.resource:
            return 0.0
        amount = min(worker.free_capacity(), self._site.available())
        return amount / (self.distance_to(worker) + 1)

    def work(self, worker: Worker) -> List[Operation]:
        logger.debug(f"{self}: work operations for {worker}")
        if not worker.pos.in_range(self._site.pos, 1):
            return [self.move_operation(worker)]

        site = self._site

        def withdraw_from_site() -> None:
            res = self._world.withdraw(worker, site, self.resource)
            if res == ResultCode.OK:
                logger.info(f"{self}: {worker} picked up {worker.resource} from {site}")
            else:
                logger.warning(f"{self}: {worker} failed to pick up from {site} ({res.value})")

        return [withdraw_from_site]


class JobUnload(Job):
    """Deliver carried resource into a store."""

    TYPE = "unload"

    def __init__(
        self,
        site: Site,
        world: World,
        priority: float = 1.0,
        business_id: Optional[str] = None,
        resource: str = RESOURCE_ENERGY,
    ):
        super().__init__(site, world, priority, business_id)
        self.resource = resource

    @classmethod
    def from_params(cls, site: Site, params: List[str], world: World) -> Job:
        return cls(site, world, resource=params[0] if params else RESOURCE_ENERGY)

    def params(self) -> List[str]:
        return [self.resource]

    def priority(self, workers: Optional[Sequence[Worker]] = None) -> float:
        # Fades as the bound workers cover the free space.
        free = self._site.free_space()
        if not workers or free <= 0:
            return self._priority
        covered = min(1.0, sum(w.available() for w in workers) / free)
        return self._priority * (1.0 - covered)

    def _completion(self, worker: Optional[Worker]) -> float:
        if self._site.free_space() <= 0:
            return 1.0
        if worker is None:
            return 0.0
        return 1.0 - _carry_ratio(worker)

    def is_satisfied(self, workers: Sequence[Worker]) -> bool:
        return sum(w.available() for w in workers) >= self._site.free_space()

    def prerequisite(self, worker: Worker) -> Prerequisite:
        if worker.carried <= 0:
            return Prerequisite.COLLECT_ENERGY
        if self.resource != RESOURCE_ALL and worker.resource != self.resource:
            return Prerequisite.COLLECT_ENERGY
        return Prerequisite.NONE

    def _efficiency(self, worker: Worker) -> float:
        amount = min(worker.available(), self._site.free_space())
        return amount / (self.distance_to(worker) + 1)

    def work(self, worker: Worker) -> List[Operation]:
        logger.debug(f"{self}: work operations for {worker}")
        if not worker.pos.in_range(self._site.pos, 1):
            return [self.move_operation(worker)]

        site = self._site

        def transfer_to_site() -> None:
            res = self._world.transfer(worker, site, self.resource)
            if res == ResultCode.OK:
                logger.info(f"{self}: {worker} unloaded into {site} ({site.amount}/{site.capacity})")
            else:
                logger.warning(f"{self}: {worker} failed to unload into {site} ({res.value})")

        return [transfer_to_site]


class JobDrop(Job):
    """Release carried resource onto a container."""

    TYPE = "drop"

    def __init__(
        self,
        site: Site,
        world: World,
        priority: float = 1.0,
        business_id: Optional[str] = None,
        resource: str = RESOURCE_ALL,
    ):
        super().__init__(site, world, priority, business_id)
        self.resource = resource

    @classmethod
    def from_params(cls, site: Site, params: List[str], world: World) -> Job:
        return cls(site, world, resource=params[0] if params else RESOURCE_ALL)

    def params(self) -> List[str]:
        return [self.resource]

    def _completion(self, worker: Optional[Worker]) -> float:
        if worker is None:
            return 0.0
        return 1.0 - _carry_ratio(worker)

    def is_satisfied(self, workers: Sequence[Worker]) -> bool:
        return len(workers) > 0

    def _efficiency(self, worker: Worker) -> float:
        if worker.carried <= 0:
            return 0.0
        if self.resource != RESOURCE_ALL and worker.resource != self.resource:
            return 0.0
        last_site = worker.last_job_site
        if last_site == self._site.id:
            return 0.0
        previous = self._world.get_site(last_site) if last_site else None
        if previous is not None and previous.kind == SiteKind.CONTAINER:
            return 0.0
        return 0.1

    def work(self, worker: Worker) -> List[Operation]:
        logger.debug(f"{self}: work operations for {worker}")
        if worker.pos != self._site.pos:
            return [self.move_operation(worker, distance=0)]

        site = self._site

        def drop_at_site() -> None:
            carried = worker.carried
            res = self._world.drop(worker, self.resource)
            if res == ResultCode.OK:
                logger.info(f"{self}: {worker} dropped {carried} at {site}")
            else:
                logger.warning(f"{self}: {worker} failed to drop at {site} ({res.value})")

        return [drop_at_site]


JOB_TYPES = (JobHarvest, JobPickup, JobUnload, JobDrop)
