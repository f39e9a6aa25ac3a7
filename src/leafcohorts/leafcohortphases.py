"""
Leaf cohort phases: Includes the ordered phenological phases of a leaf cohort, the mapping from cohort age to phase, and the phase categories used to count cohorts
"""

from enum import Enum, IntEnum

class CohortPhase(IntEnum):
    """
    Ordered phases of a leaf cohort. Transitions only ever move forward.
    """
    INITIALISED = 0     ## primordium exists, tip has not appeared
    APPEARED = 1        ## tip has appeared, no thermal time accumulated yet
    EXPANDING = 2       ## area increasing towards the maximum
    FULLY_EXPANDED = 3  ## lag phase at maximum area
    SENESCING = 4       ## live area declining
    DEAD = 5            ## fully senesced, dead material still attached
    DETACHED = 6        ## all dead material has detached


def phase_thresholds(growth_duration, lag_duration, senescence_duration, detachment_lag_duration, detachment_duration):
    """
    Cumulative thermal time (deg C d) at the end of each age-driven phase.

    Returns
    -------
    tuple of (end of expansion, end of lag, end of senescence, start of detachment, end of detachment)
    """
    end_expansion = growth_duration
    end_lag = end_expansion + lag_duration
    end_senescence = end_lag + senescence_duration
    start_detachment = end_senescence + detachment_lag_duration
    end_detachment = start_detachment + detachment_duration
    return end_expansion, end_lag, end_senescence, start_detachment, end_detachment


def classify_phase(is_appeared, age, growth_duration, lag_duration, senescence_duration, detachment_lag_duration, detachment_duration):
    """
    Determines the phase of a cohort from its age and its phase durations.

    Parameters
    ----------
    is_appeared : bool
        Whether the cohort tip has appeared
    age : float
        Thermal time accumulated since appearance (deg C d)
    growth_duration, lag_duration, senescence_duration, detachment_lag_duration, detachment_duration : float
        Phase durations (deg C d)

    Returns
    -------
    CohortPhase
    """
    if not is_appeared:
        return CohortPhase.INITIALISED
    if age <= 0:
        return CohortPhase.APPEARED
    end_expansion, end_lag, end_senescence, start_detachment, end_detachment = phase_thresholds(
        growth_duration, lag_duration, senescence_duration, detachment_lag_duration, detachment_duration)
    if age < end_expansion:
        return CohortPhase.EXPANDING
    elif age < end_lag:
        return CohortPhase.FULLY_EXPANDED
    elif age < end_senescence:
        return CohortPhase.SENESCING
    elif age < end_detachment:
        return CohortPhase.DEAD
    else:
        return CohortPhase.DETACHED


class CohortCount(Enum):
    """
    Categories by which cohorts are counted. Each category is the set of phases that belong to it.
    """
    INITIALISED = frozenset(CohortPhase)
    APPEARED = frozenset(p for p in CohortPhase if p >= CohortPhase.APPEARED)
    EXPANDING = frozenset({CohortPhase.APPEARED, CohortPhase.EXPANDING})
    EXPANDED = frozenset(p for p in CohortPhase if p >= CohortPhase.FULLY_EXPANDED)
    GREEN = frozenset({CohortPhase.APPEARED, CohortPhase.EXPANDING, CohortPhase.FULLY_EXPANDED, CohortPhase.SENESCING})
    SENESCING = frozenset({CohortPhase.SENESCING})
    DEAD = frozenset({CohortPhase.DEAD, CohortPhase.DETACHED})

    def includes(self, phase):
        return phase in self.value


def count_cohorts(phases, category):
    """
    Counts the phases that fall within a cohort count category.

    Parameters
    ----------
    phases : iterable of CohortPhase
    category : CohortCount

    Returns
    -------
    int
    """
    return sum(1 for phase in phases if category.includes(phase))
