import pytest

from leafcohorts.biomass import BiomassAllocationType, BiomassPoolType
from leafcohorts.leaf import Leaf, LeafTipAppearance
from leafcohorts.leafcohort import LeafCohort
from leafcohorts.leafcohortparameters import LeafCohortParameters


@pytest.fixture
def parameters():
    return LeafCohortParameters()


def make_leaf(parameters=None, n_emerged=2, population=250.0, area=200.0, **kwargs):
    """
    Leaf organ with n_emerged cohorts that already have area at emergence, initialised and appeared.
    """
    if parameters is None:
        parameters = LeafCohortParameters()
    templates = [LeafCohort(rank=i + 1, area=area) for i in range(n_emerged)]
    leaf = Leaf(CohortParameters=parameters, initial_leaves=templates, **kwargs)
    leaf.initialise_cohorts()
    for rank in range(1, n_emerged + 1):
        leaf.cohort_appeared(LeafTipAppearance(cohort_to_appear=rank, cohort_population=population))
    return leaf


@pytest.fixture
def leaf():
    return make_leaf()


def dry_matter_pool_meeting_demand(leaf, retranslocation_fraction=0.5):
    """Arbitrated dry matter allocation that meets the organ's demand and takes part of its supply."""
    supply = leaf.calculate_dry_matter_supply()
    return BiomassAllocationType(
        structural=leaf.dm_demand.structural,
        metabolic=leaf.dm_demand.metabolic,
        storage=leaf.dm_demand.storage,
        retranslocation=supply.retranslocation * retranslocation_fraction,
        reallocation=supply.reallocation,
        respired=leaf.maintenance_respiration,
    )


def nitrogen_pool_meeting_demand(leaf, retranslocation_fraction=0.5):
    supply = leaf.calculate_nitrogen_supply()
    return BiomassAllocationType(
        structural=leaf.n_demand.structural,
        metabolic=leaf.n_demand.metabolic,
        storage=leaf.n_demand.storage,
        retranslocation=supply.retranslocation * retranslocation_fraction,
        reallocation=supply.reallocation,
    )


def run_day(leaf, thermal_time=20.0, new_cohort=None, checks=None, **growth_kwargs):
    """
    Runs one daily step of the leaf organ with an arbitrator that meets every demand.

    Parameters
    ----------
    new_cohort : LeafTipAppearance or None
        Appearance event applied before potential growth
    checks : callable or None
        Called as checks(leaf, dm_pool, n_pool, start_wt, start_n) after allocation, before actual growth
    """
    leaf.do_daily_initialisation()
    if new_cohort is not None:
        leaf.cohort_appeared(new_cohort)
    leaf.do_potential_growth(thermal_time, **growth_kwargs)

    dm_demand = leaf.calculate_dry_matter_demand()
    leaf.set_dry_matter_potential_allocation(BiomassPoolType(structural=dm_demand.structural, metabolic=dm_demand.metabolic))
    leaf.calculate_nitrogen_demand()

    start_wt = leaf.live.wt
    start_n = leaf.live.n
    dm_pool = dry_matter_pool_meeting_demand(leaf)
    n_pool = nitrogen_pool_meeting_demand(leaf)
    leaf.set_dry_matter_allocation(dm_pool)
    leaf.set_nitrogen_allocation(n_pool)
    if checks is not None:
        checks(leaf, dm_pool, n_pool, start_wt, start_n)

    leaf.do_actual_growth()
    return dm_pool, n_pool
