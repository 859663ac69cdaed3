"""
Body Models
===========

Worker body composition and the budget arithmetic used when sizing
new workers.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Dict, List, Sequence

logger = logging.getLogger(__name__)


class BodyPart(str, Enum):
    """Parts a worker body can be assembled from."""
    MOVE = "move"
    WORK = "work"
    CARRY = "carry"
    ATTACK = "attack"
    RANGED_ATTACK = "ranged_attack"
    HEAL = "heal"
    CLAIM = "claim"
    TOUGH = "tough"


PART_COST: Dict[BodyPart, int] = {
    BodyPart.MOVE: 50,
    BodyPart.WORK: 100,
    BodyPart.CARRY: 50,
    BodyPart.ATTACK: 80,
    BodyPart.RANGED_ATTACK: 150,
    BodyPart.HEAL: 250,
    BodyPart.CLAIM: 600,
    BodyPart.TOUGH: 10,
}

CARRY_CAPACITY = 50     # resource units per CARRY part
HARVEST_POWER = 2       # resource units per WORK part per cycle
MAX_BODY_SIZE = 50

MIN_BODY: List[BodyPart] = [BodyPart.WORK, BodyPart.CARRY, BodyPart.MOVE]


def body_cost(parts: Sequence[BodyPart]) -> int:
    """Total manufacturing cost of a body."""
    return sum(PART_COST[p] for p in parts)


def generate_body(
    base: Sequence[BodyPart],
    template: Sequence[BodyPart],
    funds: int,
) -> List[BodyPart]:
    """
    Build the largest body affordable with `funds`.

    The base is mandatory; template parts are appended in order until the
    next one no longer fits. Returns an empty body if the base itself is
    unaffordable.
    """
    min_cost = body_cost(base)
    if funds < min_cost:
        logger.debug(f"generate_body: funds={funds} below base cost {min_cost}")
        return []

    body = list(base)
    remaining = funds - min_cost

    for part in template:
        cost = PART_COST[part]
        if cost > remaining or len(body) >= MAX_BODY_SIZE:
            break
        body.append(part)
        remaining -= cost

    logger.debug(
        f"generate_body: {len(body)} parts costing {body_cost(body)} "
        f"(funds={funds}, remaining={remaining})"
    )
    return body


def parse_body(parts: Sequence[str]) -> List[BodyPart]:
    """Parse a list of part names ("work", "carry", ...) into a body."""
    return [BodyPart(p.lower()) for p in parts]
