"""
Allocation distribution: Includes the algorithms that distribute an organ-level allocation of dry matter or nitrogen across its cohorts.

Every function takes and returns sequences aligned 1:1 with the organ's cohorts (oldest first).
"""

import logging
import numpy as np
from leafcohorts.utils import ConservationError, InvalidInputError, ALLOCATION_TOLERANCE

logger = logging.getLogger(__name__)


def _tolerance(amount):
    return ALLOCATION_TOLERANCE * max(1.0, abs(amount))


def distribute_proportional_capped(supply, demands, label, allow_remainder=False):
    """
    Distributes supply in proportion to each cohort's share of total demand, never giving a cohort more than its own demand.

    Parameters
    ----------
    supply : float
        Amount to distribute (g m-2)
    demands : array_like
        Demand of each cohort (g m-2)
    label : str
        Organ, substance and category, used in error messages e.g. "Leaf dry matter structural"
    allow_remainder : bool
        If False, supply that cannot be placed within the cohort demands raises ConservationError

    Returns
    -------
    allocations : np.ndarray
    """
    demands = np.asarray(demands, dtype=float)
    allocations = np.zeros_like(demands)
    if supply <= 0:
        return allocations
    total_demand = demands.sum()
    if total_demand <= 0:
        if supply > _tolerance(supply):
            raise ConservationError(f"{label}: allocation of {supply} received but there is no demand")
        return allocations
    allocations = np.minimum(demands, supply * demands / total_demand)
    remainder = supply - allocations.sum()
    if not allow_remainder and remainder > _tolerance(supply):
        raise ConservationError(f"{label}: {remainder} left over after allocation to cohorts (allocated {supply}, total demand {total_demand})")
    return allocations


def distribute_proportional(supply, demands, label):
    """
    Distributes supply in proportion to each cohort's share of total demand without a per-cohort cap.

    Demand is treated as elastic sink capacity: supply in excess of total demand is distributed anyway
    and flagged with a warning. Supply with no sink capacity at all cannot be placed and raises ConservationError.

    Returns
    -------
    allocations : np.ndarray
    """
    demands = np.asarray(demands, dtype=float)
    allocations = np.zeros_like(demands)
    if supply <= 0:
        return allocations
    total_demand = demands.sum()
    if total_demand <= 0:
        if supply > _tolerance(supply):
            raise ConservationError(f"{label}: allocation of {supply} received but there is no sink capacity")
        return allocations
    if supply - total_demand > _tolerance(supply):
        logger.warning("%s: allocation of %g exceeds total sink capacity of %g", label, supply, total_demand)
    return supply * demands / total_demand


def distribute_in_rank_order(request, capacities, label):
    """
    Satisfies a request by taking from each cohort in rank order, up to its individual capacity, until nothing remains.

    Parameters
    ----------
    request : float
        Amount the arbitrator requests from the organ (g m-2)
    capacities : array_like
        Supply capacity of each cohort, ordered by rank (g m-2)
    label : str
        Organ, substance and category, used in error messages

    Returns
    -------
    amounts : np.ndarray
        Amount taken from each cohort
    """
    capacities = np.asarray(capacities, dtype=float)
    amounts = np.zeros_like(capacities)
    if request < -ALLOCATION_TOLERANCE:
        raise InvalidInputError(f"{label}: received negative request of {request}")
    if request <= 0:
        return amounts
    remainder = request
    for i, capacity in enumerate(capacities):
        take = min(remainder, capacity)
        amounts[i] = take
        remainder = max(0.0, remainder - take)
        if remainder <= 0:
            break
    if remainder > _tolerance(request):
        raise ConservationError(f"{label}: {remainder} left over after taking from all cohorts (requested {request}, total supply {capacities.sum()})")
    return amounts
