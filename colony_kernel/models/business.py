"""
Business Models
===============

A business is an economic producer of jobs anchored to one site.

Businesses own no workers and are never persisted: each cycle they are
rediscovered by enumerating the sites of their kind. The workers a
business "employs" are simply the workers tagged with its identity.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from colony_kernel.config import BusinessConfig, ConfigError
from colony_kernel.models.body import BodyPart, generate_body
from colony_kernel.models.job import Job
from colony_kernel.operations import Operation
from colony_kernel.world import Position, ResultCode, Site, SiteKind, Worker, World

logger = logging.getLogger(__name__)

BUSINESS_PREFIX = "biz"
ID_SEPARATOR = ":"


def business_id(kind: str, anchor_id: str) -> str:
    """Stable identity: biz:<kind>:<anchor>."""
    for part in (kind, anchor_id):
        if not part or ID_SEPARATOR in part:
            raise ConfigError(f"Invalid business identity component: {part!r}")
    return ID_SEPARATOR.join([BUSINESS_PREFIX, kind, anchor_id])


def parse_business_id(identity: str) -> Optional[Tuple[str, str]]:
    """Split an identity into (kind, anchor_id); None if malformed."""
    frags = identity.split(ID_SEPARATOR)
    if len(frags) != 3 or frags[0] != BUSINESS_PREFIX or not frags[1] or not frags[2]:
        return None
    return frags[1], frags[2]


@dataclass
class BuildingWork:
    """A request to place one construction site."""
    domain: str
    pos: Position
    kind: SiteKind

    def __str__(self) -> str:
        return f"build:{self.kind.value}@{self.domain}{self.pos}"

    def operation(self, world: World) -> Operation:
        def place_construction() -> None:
            res = world.build(self.domain, self.pos, self.kind)
            if res == ResultCode.OK:
                logger.info(f"{self}: construction placed")
            else:
                logger.warning(f"{self}: failed to place construction ({res.value})")

        return place_construction


class Business(ABC):
    """
    A producer of jobs.

    Subclasses provide the permanent job stream, the opportunistic
    contract stream, a body template for new employees and optional
    construction requests. Contract jobs are withheld while armed
    hostiles are near the anchor site.
    """

    TYPE: str = ""
    ROLE: str = "generic"

    def __init__(
        self,
        site: Site,
        world: World,
        config: Optional[BusinessConfig] = None,
        priority: float = 5.0,
    ):
        self._site = site
        self._world = world
        self._config = config or BusinessConfig()
        self._priority = priority

    @classmethod
    @abstractmethod
    def discover(cls, domain: str, world: World, config: BusinessConfig) -> List[Business]:
        """Every business of this kind in a domain."""

    def id(self) -> str:
        return business_id(self.TYPE, self._site.id)

    def __str__(self) -> str:
        return self.id()

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.id()}>"

    def site(self) -> Site:
        return self._site

    def domain(self) -> str:
        return self._site.domain

    def priority(self) -> float:
        return self._priority

    def survey(self) -> None:
        """Refresh cached state about the site. Called once per cycle."""

    @abstractmethod
    def needs_employee(self, employees: Sequence[Worker]) -> bool:
        """True while the business has an unmet worker vacancy."""

    @abstractmethod
    def employee_body(self, available: int, maximum: int) -> List[BodyPart]:
        """Body for a new employee; empty means wait for more budget."""

    @abstractmethod
    def permanent_jobs(self) -> List[Job]:
        """Jobs that exist while the site is structurally valid."""

    def contract_jobs(self, employees: Sequence[Worker]) -> List[Job]:
        """Opportunistic jobs, suppressed entirely under threat."""
        attackers = self._world.find_attackers(self._site, self._config.hostile_radius)
        if attackers:
            logger.warning(
                f"{self}: {len(attackers)} attacker(s) near {self._site} - no contract jobs"
            )
            return []
        return self._contract_jobs(employees)

    @abstractmethod
    def _contract_jobs(self, employees: Sequence[Worker]) -> List[Job]:
        ...

    def buildings(self) -> List[BuildingWork]:
        """Construction requests; none by default."""
        return []

    # ─────────────────────────────────────────────────────────────────
    # Helpers for variants
    # ─────────────────────────────────────────────────────────────────

    def budgeted_body(
        self,
        base: Sequence[BodyPart],
        template: Sequence[BodyPart],
        available: int,
        maximum: int,
    ) -> List[BodyPart]:
        """Wait while below the ideal budget and more is attainable."""
        ideal = self._config.ideal_clone_energy
        if available < ideal and maximum > ideal:
            logger.debug(f"{self}: waiting for budget ({available}/{ideal}, max {maximum})")
            return []
        return generate_body(base, template, min(available, self._config.max_clone_energy))


class Executive:
    """A business together with the workers tagged as its employees."""

    def __init__(self, business: Business, employees: Optional[Sequence[Worker]] = None):
        self.business = business
        self._employees: List[Worker] = list(employees or [])

    def id(self) -> str:
        return f"ceo:{self.business.id()}"

    def __str__(self) -> str:
        return self.id()

    def employees(self) -> List[Worker]:
        return list(self._employees)

    def role(self) -> str:
        return self.business.ROLE

    def priority(self) -> float:
        return self.business.priority()

    def needs_employee(self) -> bool:
        return self.business.needs_employee(self._employees)

    def employee_body(self, available: int, maximum: int) -> List[BodyPart]:
        return self.business.employee_body(available, maximum)

    def permanent_jobs(self) -> List[Job]:
        return self.business.permanent_jobs()

    def contract_jobs(self) -> List[Job]:
        return self.business.contract_jobs(self._employees)
