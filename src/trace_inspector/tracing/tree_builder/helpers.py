"""
Helper functions for tree building.

Pure utility functions shared by the filtering and construction phases.
"""

from decimal import Decimal
from typing import Iterable, Optional

from ...models import ASCENDING_LEVELS, Observation, ObservationLevel
from ...utils.datetime import to_epoch_ms


def get_observation_levels(
    min_level: Optional[ObservationLevel],
) -> list[ObservationLevel]:
    """Return the levels at or above min_level (all levels when None)."""
    if min_level is None:
        return list(ASCENDING_LEVELS)
    return ASCENDING_LEVELS[ASCENDING_LEVELS.index(ObservationLevel(min_level)) :]


def chronological_key(obs: Observation) -> tuple[float, str]:
    """Sort key by start time, ties broken by id."""
    return (to_epoch_ms(obs.start_time), obs.id)


def own_cost(obs: Observation) -> Optional[Decimal]:
    """Cost contributed by the observation itself.

    total_cost wins when present and non-zero, else input + output when
    non-zero, else None.
    """
    if obs.total_cost is not None:
        cost = Decimal(obs.total_cost)
        if not cost.is_zero():
            return cost

    if obs.input_cost is not None or obs.output_cost is not None:
        combined = Decimal(obs.input_cost or 0) + Decimal(obs.output_cost or 0)
        if not combined.is_zero():
            return combined

    return None


def sum_costs(costs: Iterable[Optional[Decimal]]) -> Optional[Decimal]:
    """Sum the costs that are set; None when none are."""
    total: Optional[Decimal] = None
    for cost in costs:
        if cost is None:
            continue
        total = cost if total is None else total + cost
    return total
