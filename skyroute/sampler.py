# ABOUTME: Deterministic waypoint sampling along a decoded route.
# ABOUTME: Maps the connection category to a resource budget and picks evenly spaced points.

import logging
from collections.abc import Sequence

from skyroute.models import Coordinate, ResourceBudget, Waypoint

logger = logging.getLogger(__name__)

SLOW_CONNECTIONS = frozenset({"slow-2g", "2g"})
SLOW_BUDGET = 3
DEFAULT_BUDGET = 6


def budget_for_connection(effective_type: str | None) -> ResourceBudget:
    """Map an effective connection type to the number of waypoints worth probing."""
    if effective_type and effective_type.lower() in SLOW_CONNECTIONS:
        return ResourceBudget(max_waypoints=SLOW_BUDGET)
    return ResourceBudget(max_waypoints=DEFAULT_BUDGET)


def sample(coordinates: Sequence[Coordinate], budget: ResourceBudget) -> list[Waypoint]:
    """Select up to ``budget.max_waypoints`` evenly spaced waypoints, endpoints included.

    Source index for output position i is floor(i * (N - 1) / (K - 1)) with
    K = min(budget, N). Waypoint.index is the output position, not the source index.
    An empty path yields an empty list.

    Because K is clamped to N, a path shorter than the budget uses every point
    exactly once: source indices never repeat and the last point is always
    included. Dividing by the unclamped budget instead would repeat early indices
    (3 points, budget 6 gives [0, 0, 0]) and drop the destination.
    """
    total = len(coordinates)
    count = min(budget.max_waypoints, total)
    if count == 0:
        return []
    if count == 1:
        return [Waypoint(index=0, coordinate=coordinates[0])]

    waypoints = [
        Waypoint(index=i, coordinate=coordinates[(i * (total - 1)) // (count - 1)]) for i in range(count)
    ]
    logger.info(f"Sampled {count} waypoints from {total} route points")
    return waypoints
