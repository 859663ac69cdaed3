"""
Orchestrator
============

Runs one scheduling cycle for one domain:

    1. Rehydrate ledgers from the snapshot (evicting finished workers)
    2. Survey businesses and collect their jobs
    3. Greedily match free workers into understaffed ledgers
    4. Ask the recruiter whether to manufacture a worker
    5. Collect operations and the snapshot for the next cycle

The orchestrator never executes operations itself; the caller runs
`emit_operations()` and stores `persist()`.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from colony_kernel.boss import Boss
from colony_kernel.cloner import Cloner, CloningWork
from colony_kernel.config import KernelConfig
from colony_kernel.models.business import BuildingWork, Executive
from colony_kernel.models.job import Job
from colony_kernel.operations import Operation
from colony_kernel.registry import Registry
from colony_kernel.snapshot import DomainSnapshot, LedgerSnapshot
from colony_kernel.world import Worker, World

logger = logging.getLogger(__name__)


@dataclass
class CycleResult:
    """Result of one domain cycle."""
    domain: str
    timestamp: float

    ledgers: int = 0
    bindings: int = 0
    evictions: int = 0
    dropped_ledgers: int = 0
    idle_workers: int = 0
    operations: int = 0
    buildings: int = 0
    directives: List[CloningWork] = field(default_factory=list)
    business_failures: int = 0
    work_failures: int = 0

    cycle_time_ms: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "domain": self.domain,
            "timestamp": self.timestamp,
            "ledgers": self.ledgers,
            "bindings": self.bindings,
            "evictions": self.evictions,
            "dropped_ledgers": self.dropped_ledgers,
            "idle_workers": self.idle_workers,
            "operations": self.operations,
            "buildings": self.buildings,
            "directives": [d.to_dict() for d in self.directives],
            "business_failures": self.business_failures,
            "work_failures": self.work_failures,
            "cycle_time_ms": round(self.cycle_time_ms, 3),
        }


def _match_key(job: Job, worker: Worker, efficiency: float) -> Tuple[bool, float, bool]:
    employee = worker.employer is not None and worker.employer == job.business_id
    fresh_site = worker.last_job_site != job.site_id()
    return employee, efficiency, fresh_site


def match_workers(bosses: Iterable[Boss], pool: List[Worker]) -> List[Tuple[Boss, Worker]]:
    """
    Greedy matching pass.

    Repeatedly takes the highest-priority ledger that still needs workers
    and binds the free worker scoring best against its job: employees of
    the job's business first, then efficiency, then workers that did not
    just leave the same site. A ledger nobody can usefully serve is
    skipped for the rest of the pass. Bound workers are removed from
    `pool`.
    """
    candidates = list(bosses)
    exhausted: Set[str] = set()
    bindings: List[Tuple[Boss, Worker]] = []

    while pool:
        understaffed = [
            b for b in candidates
            if b.id() not in exhausted and b.needs_workers()
        ]
        if not understaffed:
            break

        boss = min(understaffed, key=lambda b: (-b.priority(), b.id()))

        best: Optional[Worker] = None
        best_key: Optional[Tuple[bool, float, bool]] = None
        for worker in pool:
            efficiency = boss.job.efficiency(worker)
            if efficiency <= 0:
                continue
            key = _match_key(boss.job, worker, efficiency)
            if best_key is None or key > best_key:
                best, best_key = worker, key

        if best is None:
            logger.debug(f"{boss}: no useful worker in pool of {len(pool)}")
            exhausted.add(boss.id())
            continue

        logger.debug(f"{boss}: best {best} scored {best_key}")
        boss.assign_worker(best)
        pool.remove(best)
        bindings.append((boss, best))

    return bindings


class Orchestrator:
    """One domain, one cycle."""

    def __init__(
        self,
        domain: str,
        world: World,
        registry: Registry,
        config: Optional[KernelConfig] = None,
        snapshot: Optional[DomainSnapshot] = None,
    ):
        self.domain = domain
        self.world = world
        self.registry = registry
        self.config = config or KernelConfig()
        self.snapshot = snapshot or DomainSnapshot(domain=domain)

        self._bosses: Dict[str, Boss] = {}
        self._restored: Set[str] = set()
        self._operations: List[Operation] = []
        self._clone_count = self.snapshot.clone_count

    # ─────────────────────────────────────────────────────────────────
    # Cycle
    # ─────────────────────────────────────────────────────────────────

    def run_cycle(self) -> CycleResult:
        start = time.time()
        result = CycleResult(domain=self.domain, timestamp=start)

        bound = self._rehydrate(result)

        workers = sorted(self.world.find_workers(self.domain), key=lambda w: w.id)
        executives, offered, buildings = self._survey(workers, result)

        pool = [w for w in workers if w.id not in bound]
        for worker in pool:
            if worker.job is not None:
                logger.debug(f"{self.domain}: clearing stale job {worker.job} on {worker}")
                worker.set_job(None)

        matchable = [self._bosses[job_id] for job_id in sorted(offered)]
        result.bindings = len(match_workers(matchable, pool))
        result.idle_workers = len(pool)

        cloner = Cloner(self.domain, self.world, self.config.cloner, self._clone_count)
        result.directives = cloner.evaluate(executives, pool, workers)
        self._clone_count = cloner.clone_count()

        operations: List[Operation] = []
        for job_id in sorted(self._bosses):
            boss = self._bosses[job_id]
            operations.extend(boss.work())
            result.work_failures += boss.work_failures
        operations.extend(d.operation(self.world) for d in result.directives)
        operations.extend(b.operation(self.world) for b in buildings)
        self._operations = operations

        self.snapshot = self._build_snapshot(result)

        result.operations = len(operations)
        result.buildings = len(buildings)
        result.cycle_time_ms = (time.time() - start) * 1000

        logger.info(
            f"{self.domain}: cycle complete - {result.ledgers} ledgers, "
            f"{result.bindings} bound, {result.evictions} evicted, "
            f"{result.idle_workers} idle, {len(result.directives)} clone directive(s) "
            f"({result.cycle_time_ms:.1f}ms)"
        )
        return result

    def emit_operations(self) -> List[Operation]:
        return list(self._operations)

    def persist(self) -> DomainSnapshot:
        return self.snapshot

    def bosses(self) -> List[Boss]:
        return [self._bosses[k] for k in sorted(self._bosses)]

    # ─────────────────────────────────────────────────────────────────
    # Steps
    # ─────────────────────────────────────────────────────────────────

    def _rehydrate(self, result: CycleResult) -> Set[str]:
        bound: Set[str] = set()

        for ledger in self.snapshot.ledgers:
            if ledger.job in self._bosses:
                logger.error(f"{self.domain}: duplicate ledger for {ledger.job}, ignoring")
                continue

            workers = []
            for worker_id in ledger.workers:
                if worker_id in workers:
                    logger.error(f"{self.domain}: {worker_id} listed twice in {ledger.job}, ignoring duplicate")
                    continue
                if worker_id in bound:
                    logger.error(f"{self.domain}: {worker_id} bound to more than one ledger")
                    continue
                workers.append(worker_id)

            boss, freed = Boss.from_snapshot(
                LedgerSnapshot(job=ledger.job, workers=workers), self.registry, self.world
            )
            result.evictions += len(freed)
            if boss is None:
                result.dropped_ledgers += 1
                continue

            self._bosses[boss.job.id()] = boss
            self._restored.add(boss.job.id())
            bound.update(w.id for w in boss.workers())

        return bound

    def _survey(
        self,
        workers: List[Worker],
        result: CycleResult,
    ) -> Tuple[List[Executive], Set[str], List[BuildingWork]]:
        executives: List[Executive] = []
        offered: Set[str] = set()
        buildings: List[BuildingWork] = []

        businesses = []
        for kind in self.registry.business_kinds():
            try:
                businesses.extend(self.registry.discover(
                    kind, self.domain, self.world, self.config.business
                ))
            except Exception as e:
                result.business_failures += 1
                logger.error(f"{self.domain}: discovery of '{kind}' businesses failed: {e}")

        for business in businesses:
            try:
                business.survey()
                employees = [w for w in workers if w.employer == business.id()]
                ceo = Executive(business, employees)
                jobs = ceo.permanent_jobs() + ceo.contract_jobs()
                requested = business.buildings()
            except Exception as e:
                result.business_failures += 1
                logger.error(f"{business}: failed to produce jobs: {e}")
                continue

            executives.append(ceo)
            buildings.extend(requested)
            for job in jobs:
                self._offer(job)
                offered.add(job.id())

        logger.debug(f"{self.domain}: {len(executives)} businesses offered {len(offered)} jobs")
        return executives, offered, buildings

    def _offer(self, job: Job) -> None:
        existing = self._bosses.get(job.id())
        if existing is None:
            self._bosses[job.id()] = Boss(job)
        else:
            existing.refresh_job(job)

    def _build_snapshot(self, result: CycleResult) -> DomainSnapshot:
        ledgers: List[LedgerSnapshot] = []
        for job_id in sorted(self._bosses):
            boss = self._bosses[job_id]
            if boss.has_workers():
                ledgers.append(boss.to_snapshot())
            elif job_id in self._restored:
                if boss.has_demand():
                    ledgers.append(boss.to_snapshot())
                else:
                    logger.debug(f"{boss}: no workers and no demand, dropping")
                    result.dropped_ledgers += 1

        result.ledgers = len(ledgers)
        return DomainSnapshot(domain=self.domain, ledgers=ledgers, clone_count=self._clone_count)

    def get_stats(self) -> Dict[str, Any]:
        """Get orchestrator statistics."""
        staffed = [b for b in self._bosses.values() if b.has_workers()]
        return {
            "domain": self.domain,
            "ledgers": len(self._bosses),
            "staffed_ledgers": len(staffed),
            "bound_workers": sum(b.num_workers() for b in staffed),
            "pending_operations": len(self._operations),
            "clone_count": self._clone_count,
        }
