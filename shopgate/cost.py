"""
Advisory GraphQL cost estimation.

Shopify throttles GraphQL by calculated query cost. This module scores a
document locally before it is sent so that oversized queries show up in the
logs; it never blocks a send, since the upstream cost calculation remains
authoritative.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

logger = logging.getLogger(__name__)

COST_WARNING_THRESHOLD = 1000

_SELECTION_PATTERN = re.compile(r"\w+\s*{")
_CONNECTION_PATTERN = re.compile(r"edges|nodes")


@dataclass(frozen=True)
class CostEstimate:
    """Structural complexity of a GraphQL document."""

    field_count: int
    connection_count: int

    @property
    def score(self) -> int:
        return self.field_count + 2 * self.connection_count


def estimate_query_cost(query: str) -> CostEstimate:
    """Count selection sets and connection fields in ``query``."""
    return CostEstimate(
        field_count=len(_SELECTION_PATTERN.findall(query)),
        connection_count=len(_CONNECTION_PATTERN.findall(query)),
    )


def warn_if_expensive(query: str, threshold: int = COST_WARNING_THRESHOLD) -> CostEstimate:
    """Estimate ``query`` and log a warning when the score exceeds ``threshold``."""
    estimate = estimate_query_cost(query)
    if estimate.score > threshold:
        logger.warning(
            f"GraphQL query may exceed cost limits (estimated score {estimate.score} > "
            f"{threshold}), consider breaking it down"
        )
    return estimate
