"""
Operations
==========

An operation is a zero-argument callable that performs one side effect
in the world for the current cycle. Operations are executed immediately
and independently: one failing must not stop the rest.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Tuple

logger = logging.getLogger(__name__)

Operation = Callable[[], None]


def execute_operations(operations: List[Operation]) -> Tuple[int, int]:
    """
    Run every operation in order.

    Returns (succeeded, failed) counts. An operation that raises is logged
    and skipped; it will be recomputed from scratch next cycle.
    """
    succeeded = 0
    failed = 0

    for op in operations:
        try:
            op()
            succeeded += 1
        except Exception as e:
            failed += 1
            logger.error(f"Operation {getattr(op, '__name__', op)} failed: {e}")

    if failed:
        logger.warning(f"{failed}/{len(operations)} operations failed this cycle")

    return succeeded, failed
