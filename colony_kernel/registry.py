"""
Registry
========

Maps job and business kinds to their implementations.

A registry is built once at process start (`default_registry()`) and
handed to every orchestrator; nothing registers itself at import time.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Type

from colony_kernel.businesses import BUSINESS_TYPES
from colony_kernel.config import BusinessConfig
from colony_kernel.jobs import JOB_TYPES
from colony_kernel.models.business import Business
from colony_kernel.models.job import Job, parse_job_id
from colony_kernel.world import World

logger = logging.getLogger(__name__)


class Registry:
    """Kind → implementation lookup for jobs and businesses."""

    def __init__(self):
        self._jobs: Dict[str, Type[Job]] = {}
        self._businesses: Dict[str, Type[Business]] = {}

    def register_job(self, job_cls: Type[Job]) -> None:
        if not job_cls.TYPE:
            raise ValueError(f"{job_cls.__name__} has no TYPE")
        if job_cls.TYPE in self._jobs:
            raise ValueError(f"Job kind '{job_cls.TYPE}' already registered")
        self._jobs[job_cls.TYPE] = job_cls

    def register_business(self, business_cls: Type[Business]) -> None:
        if not business_cls.TYPE:
            raise ValueError(f"{business_cls.__name__} has no TYPE")
        if business_cls.TYPE in self._businesses:
            raise ValueError(f"Business kind '{business_cls.TYPE}' already registered")
        self._businesses[business_cls.TYPE] = business_cls

    def job_kinds(self) -> List[str]:
        return sorted(self._jobs)

    def business_kinds(self) -> List[str]:
        return sorted(self._businesses)

    def build_job(self, identity: str, world: World) -> Optional[Job]:
        """
        Rebuild a job from its persisted identity.

        Returns None when the identity is malformed, names an unknown
        kind, or refers to a site that no longer exists.
        """
        parsed = parse_job_id(identity)
        if parsed is None:
            logger.warning(f"Malformed job identity '{identity}'")
            return None

        kind, site_id, params = parsed
        job_cls = self._jobs.get(kind)
        if job_cls is None:
            logger.warning(f"No builder for job kind '{kind}' ({identity})")
            return None

        job = job_cls.rebuild(site_id, params, world)
        if job is None:
            logger.debug(f"Job {identity} no longer resolves")
        return job

    def discover(
        self,
        kind: str,
        domain: str,
        world: World,
        config: BusinessConfig,
    ) -> List[Business]:
        """Businesses of one kind in a domain. Errors propagate."""
        return self._businesses[kind].discover(domain, world, config)

    def discover_businesses(
        self,
        domain: str,
        world: World,
        config: BusinessConfig,
    ) -> List[Business]:
        """Every business of every registered kind in a domain, skipping kinds that fail."""
        found: List[Business] = []
        for kind in self.business_kinds():
            try:
                found.extend(self.discover(kind, domain, world, config))
            except Exception as e:
                logger.error(f"{domain}: discovery of '{kind}' businesses failed: {e}")
        logger.debug(f"{domain}: discovered {len(found)} businesses")
        return found


def default_registry() -> Registry:
    """Registry with every built-in job and business kind."""
    registry = Registry()
    for job_cls in JOB_TYPES:
        registry.register_job(job_cls)
    for business_cls in BUSINESS_TYPES:
        registry.register_business(business_cls)
    return registry
