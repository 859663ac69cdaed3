"""
Assignment Ledger
=================

A Boss binds exactly one job to the workers currently serving it.

Lifecycle per cycle:
    1. Rehydrated from its snapshot; workers that already completed the
       job are evicted and handed back as free.
    2. Possibly given more workers by the matching pass.
    3. Emits the job's operations for every bound worker.
    4. Persisted back, or dropped when idle with nothing left to do.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Tuple

from colony_kernel.models.job import Job
from colony_kernel.operations import Operation
from colony_kernel.registry import Registry
from colony_kernel.snapshot import LedgerSnapshot
from colony_kernel.world import Worker, World

logger = logging.getLogger(__name__)


class Boss:
    """The persisted binding between one job and its workers."""

    def __init__(self, job: Job, workers: Optional[Sequence[Worker]] = None):
        self.job = job
        self._workers: List[Worker] = []
        self.work_failures = 0
        for worker in workers or []:
            if any(w.id == worker.id for w in self._workers):
                continue
            worker.set_job(job.id())
            self._workers.append(worker)

    @classmethod
    def from_snapshot(
        cls,
        snapshot: LedgerSnapshot,
        registry: Registry,
        world: World,
    ) -> Tuple[Optional[Boss], List[Worker]]:
        """
        Rebuild a ledger.

        Returns (boss, freed). `boss` is None when the job no longer
        resolves, in which case every live worker is freed. Workers that
        no longer exist are dropped without notice.
        """
        workers = world.resolve_workers(snapshot.workers)
        expired = len(snapshot.workers) - len(workers)
        if expired:
            logger.debug(f"{snapshot.job}: {expired} worker(s) expired")

        job = registry.build_job(snapshot.job, world)
        if job is None:
            for worker in workers:
                worker.set_job(None)
            if workers:
                logger.info(f"{snapshot.job}: job gone, freeing {[w.id for w in workers]}")
            return None, workers

        kept: List[Worker] = []
        freed: List[Worker] = []
        for worker in workers:
            if job.completion(worker) < 1.0:
                logger.debug(f"{job}: not complete {worker}")
                kept.append(worker)
            else:
                logger.info(f"{job}: complete for {worker}, evicting")
                worker.set_last_job_site(job.site_id())
                worker.set_job(None)
                freed.append(worker)

        return cls(job, kept), freed

    def to_snapshot(self) -> LedgerSnapshot:
        return LedgerSnapshot(job=self.job.id(), workers=[w.id for w in self._workers])

    def id(self) -> str:
        return f"boss:{self.job.id()}"

    def __str__(self) -> str:
        return self.id()

    def __repr__(self) -> str:
        return f"<Boss {self.job.id()} workers={[w.id for w in self._workers]}>"

    # ─────────────────────────────────────────────────────────────────
    # Queries
    # ─────────────────────────────────────────────────────────────────

    def workers(self) -> List[Worker]:
        return list(self._workers)

    def has_workers(self) -> bool:
        return len(self._workers) > 0

    def num_workers(self) -> int:
        return len(self._workers)

    def priority(self) -> float:
        return self.job.priority(self._workers)

    def job_complete(self) -> bool:
        return self.job.completion() >= 1.0

    def needs_workers(self) -> bool:
        return not self.job.is_satisfied(self._workers)

    def has_demand(self) -> bool:
        """False once the job neither progresses nor wants anyone."""
        return not self.job_complete() and not self.job.is_satisfied([])

    # ─────────────────────────────────────────────────────────────────
    # Mutation
    # ─────────────────────────────────────────────────────────────────

    def assign_worker(self, worker: Worker) -> bool:
        """Bind a worker. Binding one that is already bound is a no-op."""
        if any(w.id == worker.id for w in self._workers):
            logger.error(f"{self}: {worker} already assigned")
            return False

        logger.info(f"{self}: assigning {worker}")
        worker.set_job(self.job.id())
        self._workers.append(worker)
        return True

    def refresh_job(self, job: Job) -> None:
        """Swap in a freshly produced job with the same identity."""
        if job.id() != self.job.id():
            logger.error(f"{self}: refusing to refresh with different job {job}")
            return
        self.job = job

    def work(self) -> List[Operation]:
        """
        Operations for every bound worker, in binding order.

        A worker whose job fails to produce operations stays bound and is
        retried next cycle.
        """
        operations: List[Operation] = []
        for worker in self._workers:
            try:
                operations.extend(self.job.work(worker))
            except Exception as e:
                self.work_failures += 1
                logger.error(f"{self}: work for {worker} failed: {e}")
        return operations
