# ---
# jupyter:
#   jupytext:
#     text_representation:
#       extension: .py
#       format_name: percent
#       format_version: '1.3'
#       jupytext_version: 1.15.2
#   kernelspec:
#     display_name: Python 3 (ipykernel)
#     language: python
#     name: python3
# ---

# %%
import numpy as np
import matplotlib.pyplot as plt

# %%
from leafcohorts.biomass import BiomassAllocationType, BiomassPoolType
from leafcohorts.functions import LinearInterpolation
from leafcohorts.leaf import Leaf, CohortInitParams, LeafTipAppearance
from leafcohorts.leafcohort import LeafCohort
from leafcohorts.leafcohortparameters import LeafCohortParameters

# %% [markdown]
# ### Create instances of each module

# %%
cohortparams = LeafCohortParameters(
    maxArea=2500,
    growthDuration=120,
    lagDuration=200,
    senescenceDuration=150,
    dmReallocationFactor=0.1,
    maintenanceRespirationRate=0.005,
    shadeInducedSenescenceRate=LinearInterpolation(x=[0.0, 0.8, 1.0], y=[0.0, 0.0, 0.03]),
)
initial_leaves = [LeafCohort(rank=1, area=150.0), LeafCohort(rank=2, area=100.0)]

## Module with upstream module dependencies
leaf = Leaf(CohortParameters=cohortparams, initial_leaves=initial_leaves, dmConversionEfficiency=0.75, maximumMainStemLeafNumber=16)

# %%
leaf.initialise_cohorts()
for rank in (1, 2):
    leaf.cohort_appeared(LeafTipAppearance(cohort_to_appear=rank, cohort_population=300.0))

print("Cohorts at initialisation:", leaf.cohorts_at_initialisation)
print("Tips at emergence:", leaf.tips_at_emergence)
print("LAI = %1.3f, green cover = %1.3f" % (leaf.lai, leaf.cover_green))

# %% [markdown]
# ### Example of a season of leaf cohort dynamics
#
# A simple stand-in for the arbitrator: it meets each day's demand for structural and metabolic dry matter when
# the fixation supply allows, allocates any surplus to storage, and takes all reallocation and maintenance respiration
# supply.

# %%
ndays = 150
thermal_time = 12.0  ## degree days per day
phyllochron = 90.0  ## degree days between successive leaf tips
fixation = 2.0  ## g d.wt m-2 d-1

_lai = np.zeros(ndays)
_lai_dead = np.zeros(ndays)
_live_wt = np.zeros(ndays)
_dead_wt = np.zeros(ndays)
_live_nconc = np.zeros(ndays)
_cohort_area = np.zeros((ndays, leaf.maximumMainStemLeafNumber))

tt_since_last_tip = 0.0
for iday in range(ndays):
    leaf.do_daily_initialisation()

    ## New tips appear at a fixed phyllochron until the final leaf number is reached
    tt_since_last_tip += thermal_time
    if tt_since_last_tip >= phyllochron and len(leaf.leaves) < leaf.maximumMainStemLeafNumber:
        tt_since_last_tip = 0.0
        rank = len(leaf.leaves) + 1
        leaf.add_cohort(CohortInitParams(rank=rank))
        leaf.cohort_appeared(LeafTipAppearance(cohort_to_appear=rank, cohort_population=300.0))

    leaf.do_potential_growth(thermal_time, expansion_stress=0.9)

    dm_demand = leaf.calculate_dry_matter_demand()
    dm_supply = leaf.calculate_dry_matter_supply(fixation=fixation)
    available = dm_supply.fixation + dm_supply.reallocation
    f_met = min(1.0, available / max(dm_demand.structural + dm_demand.metabolic, 1e-12))
    structural, metabolic = f_met * dm_demand.structural, f_met * dm_demand.metabolic
    storage = min(dm_demand.storage, max(0.0, available - structural - metabolic))

    leaf.set_dry_matter_potential_allocation(BiomassPoolType(structural=structural, metabolic=metabolic))
    n_demand = leaf.calculate_nitrogen_demand()
    n_supply = leaf.calculate_nitrogen_supply()

    leaf.set_dry_matter_allocation(BiomassAllocationType(
        structural=structural, metabolic=metabolic, storage=storage,
        reallocation=dm_supply.reallocation, respired=leaf.maintenance_respiration))
    leaf.set_nitrogen_allocation(BiomassAllocationType(
        structural=n_demand.structural, metabolic=n_demand.metabolic, storage=n_demand.storage,
        reallocation=n_supply.reallocation))

    leaf.do_actual_growth()

    _lai[iday] = leaf.lai
    _lai_dead[iday] = leaf.lai_dead
    _live_wt[iday] = leaf.live.wt
    _dead_wt[iday] = leaf.dead.wt
    _live_nconc[iday] = leaf.live_n_conc
    _cohort_area[iday, :] = leaf.cohort_area[:leaf.maximumMainStemLeafNumber]

# %%
fig, axes = plt.subplots(2, 2, figsize=(10, 7))

axes[0, 0].plot(_lai, label="Green")
axes[0, 0].plot(_lai_dead, label="Dead")
axes[0, 0].set_ylabel("LAI (m2 m-2)")
axes[0, 0].legend()

axes[0, 1].plot(_live_wt, label="Live")
axes[0, 1].plot(_dead_wt, label="Dead")
axes[0, 1].set_ylabel("Leaf biomass (g d.wt m-2)")
axes[0, 1].legend()

axes[1, 0].plot(_live_nconc)
axes[1, 0].hlines(y=[cohortparams.criticalNConc, cohortparams.maximumNConc], xmin=0, xmax=ndays, color='0.5', linestyle=':')
axes[1, 0].set_ylabel("Live N concentration (g N g d.wt-1)")
axes[1, 0].set_xlabel("Day")

for icohort in range(leaf.maximumMainStemLeafNumber):
    axes[1, 1].plot(_cohort_area[:, icohort] / 1e6, c=plt.cm.viridis(icohort / leaf.maximumMainStemLeafNumber))
axes[1, 1].set_ylabel("Cohort leaf area (m2 m-2)")
axes[1, 1].set_xlabel("Day")

plt.tight_layout()
