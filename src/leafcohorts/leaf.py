"""
Leaf organ class: Includes the collection of leaf cohorts, their lifecycle, the organ-level demand and supply summaries given to the arbitrator, and the distribution of arbitrated allocations back to cohorts
"""

import logging
import numpy as np
from attrs import define, field
from leafcohorts.biomass import Biomass, BiomassPoolType, BiomassSupplyType, BiomassAllocationType
from leafcohorts.biomassremoval import BiomassRemoval
from leafcohorts.leafcohort import LeafCohort
from leafcohorts.leafcohortparameters import LeafCohortParameters
from leafcohorts.leafcohortphases import CohortCount, count_cohorts
from leafcohorts.allocation import distribute_proportional_capped, distribute_proportional, distribute_in_rank_order
from leafcohorts.utils import (
    ConservationError, InvalidInputError, NumericalDegeneracyError, SequencingError,
    ALLOCATION_TOLERANCE, check_fraction, divide, mass_balance_closes,
)

logger = logging.getLogger(__name__)

MM2_TO_M2 = 1e6  ## Conversion of mm2 to m2


@define
class CohortInitParams:
    """
    Initiation of a new leaf cohort (primordium) by the plant structure model
    """
    rank: int = field(default=1)  ## 1-based main-stem node position of the new cohort


@define
class LeafTipAppearance:
    """
    Appearance of a leaf tip, signalled by the plant structure model
    """
    cohort_to_appear: int = field(default=1)  ## 1-based rank of the cohort whose tip appears
    cohort_population: float = field(default=0.0)  ## Number of leaves in the cohort per unit ground area (m-2)
    cohort_age: float = field(default=0.0)  ## Thermal time since tip appearance at the time of the event (deg C d)
    final_fraction: float = field(default=1.0)  ## Fraction of a full leaf this cohort represents (0-1]
    apex_group_ages: tuple = field(default=(1.0,))  ## Age of each apex group contributing leaves to the cohort
    apex_group_sizes: tuple = field(default=(1.0,))  ## Number of apices in each apex group


def default_initial_leaves():
    """Two initial cohorts with no area at emergence."""
    return [LeafCohort(rank=1), LeafCohort(rank=2)]


@define
class Leaf:
    """
    Calculator of leaf organ dynamics as a set of leaf cohorts, whose properties are summed to give the
    overall values for the organ.

    Live and dead biomass totals are cached. Any operation that mutates a cohort must call
    invalidate_live_dead() before the totals are next read; every public method of this class that mutates
    cohorts does so. Callers that mutate cohorts in self.leaves directly are responsible for calling it.
    """

    ## Module dependencies
    CohortParameters: LeafCohortParameters = field(factory=LeafCohortParameters)  ## Parameters shared by all cohorts
    BiomassRemoval: BiomassRemoval = field(factory=BiomassRemoval)  ## Removal fractions for management events
    initial_leaves: list = field(factory=default_initial_leaves)  ## Cohort templates cloned at initialisation; the first is also the template for new cohorts

    ## Class parameters
    name: str = field(default="Leaf")  ## Organ name used in messages
    extinctionCoeff: float = field(default=0.5)  ## Extinction coefficient of green leaf area (-)
    kDead: float = field(default=0.3)  ## Extinction coefficient of dead leaf area (-)
    maxCover: float = field(default=1.0)  ## Maximum green cover of the canopy (-)
    dmConversionEfficiency: float = field(default=1.0)  ## Fraction of allocated dry matter converted to leaf tissue, the rest is lost as growth respiration (-)
    maximumMainStemLeafNumber: int = field(default=20)  ## Maximum number of main-stem leaves, the length of per-cohort output arrays

    ## State variables
    leaves: list = field(factory=list)  ## Cohorts, ordered by rank (oldest first)
    cohorts_at_initialisation: int = field(default=0)
    tips_at_emergence: int = field(default=0)
    current_expanding_leaf: int = field(default=0)  ## Rank of the oldest cohort that is not yet fully expanded
    start_fraction_expanded: float = field(default=0.0)
    fraction_next_leaf_expanded: float = field(default=0.0)
    dead_nodes_yesterday: float = field(default=0.0)
    fraction_died: float = field(default=0.0)  ## Proportion of green cohorts that died today

    ## Daily summaries and outputs
    dm_demand: BiomassPoolType = field(factory=BiomassPoolType)
    n_demand: BiomassPoolType = field(factory=BiomassPoolType)
    dm_supply: BiomassSupplyType = field(factory=BiomassSupplyType)
    n_supply: BiomassSupplyType = field(factory=BiomassSupplyType)
    allocated: Biomass = field(factory=Biomass)
    senesced: Biomass = field(factory=Biomass)
    detached: Biomass = field(factory=Biomass)
    removed: Biomass = field(factory=Biomass)
    growth_respiration: float = field(default=0.0)  ## Dry matter lost in converting today's allocation to tissue (g m-2 d-1)

    ## Cached aggregates
    _live_biomass: Biomass = field(init=False, factory=Biomass)
    _dead_biomass: Biomass = field(init=False, factory=Biomass)
    _need_to_recalculate_live_dead: bool = field(init=False, default=True)
    _arbitration_open: bool = field(init=False, default=False)  ## True between the start-of-day snapshot and actual growth

    def __attrs_post_init__(self):
        if not (0 < self.dmConversionEfficiency <= 1):
            raise ValueError(f"dmConversionEfficiency must be within (0, 1], got {self.dmConversionEfficiency}")
        for name, value in (("extinctionCoeff", self.extinctionCoeff), ("kDead", self.kDead)):
            if not (np.isfinite(value) and value >= 0):
                raise ValueError(f"{name} cannot be negative, got {value}")
        if not (0 < self.maxCover <= 1):
            raise ValueError(f"maxCover must be within (0, 1], got {self.maxCover}")
        if self.maximumMainStemLeafNumber < 1:
            raise ValueError(f"maximumMainStemLeafNumber must be at least 1, got {self.maximumMainStemLeafNumber}")

    ## Live and dead biomass

    def invalidate_live_dead(self):
        """Marks the cached live and dead biomass totals as stale. Must follow every cohort mutation."""
        self._need_to_recalculate_live_dead = True

    def _recalculate_live_dead(self):
        if self._need_to_recalculate_live_dead:
            self._need_to_recalculate_live_dead = False
            self._live_biomass.clear()
            self._dead_biomass.clear()
            for L in self.leaves:
                self._live_biomass.add(L.live)
                self._dead_biomass.add(L.dead)

    @property
    def live(self):
        """Live biomass of all cohorts (g m-2). The returned object is the cache itself and must not be modified."""
        self._recalculate_live_dead()
        return self._live_biomass

    @property
    def dead(self):
        self._recalculate_live_dead()
        return self._dead_biomass

    @property
    def total(self):
        return self.live + self.dead

    @property
    def wt(self):
        return self.total.wt

    @property
    def n(self):
        return self.total.n

    ## Canopy aggregates

    @property
    def cohorts_initialised(self):
        return len(self.leaves) > 0

    @property
    def lai(self):
        """Leaf area index (m2 m-2)"""
        for L in self.leaves:
            if not np.isfinite(L.live_area):
                raise NumericalDegeneracyError(f"Live area of {self.name} cohort {L.rank} is not a finite number (value={L.live_area})")
        return sum(L.live_area for L in self.leaves) / MM2_TO_M2

    @property
    def lai_dead(self):
        return sum(L.dead_area for L in self.leaves) / MM2_TO_M2

    @property
    def lai_total(self):
        return self.lai + self.lai_dead

    @property
    def cover_green(self):
        return min(self.maxCover * (1.0 - np.exp(-self.extinctionCoeff * self.lai / self.maxCover)), 0.999999999)

    @property
    def cover_dead(self):
        return 1.0 - np.exp(-self.kDead * self.lai_dead)

    @property
    def cover_total(self):
        return 1.0 - (1 - self.cover_green) * (1 - self.cover_dead)

    @property
    def specific_area(self):
        """Specific leaf area of the live canopy (mm2 g d.wt-1)"""
        return divide(self.lai * MM2_TO_M2, self.live.wt, 0.0)

    @property
    def specific_nitrogen(self):
        """Live nitrogen per unit leaf area (g N m-2 leaf)"""
        lai = self.lai
        if abs(lai) < np.finfo(float).eps:
            return 0.0
        return self.live.n / lai

    @property
    def live_n_conc(self):
        return self.live.n_conc

    @property
    def fn(self):
        """
        Nitrogen stress factor, the live nitrogen concentration relative to the range between the minimum and critical concentrations (0-1)
        """
        p = self.CohortParameters
        functional_range = p.criticalNConc - p.minimumNConc
        if functional_range <= 0:
            return 1.0
        return float(np.clip((self.live_n_conc - p.minimumNConc) / functional_range, 0.0, 1.0))

    @property
    def area_largest_leaf(self):
        return max((L.max_area for L in self.leaves), default=0.0)

    @property
    def live_stem_number(self):
        """
        Number of stems carrying a green leaf, where a leaf counts as green until it is half senesced (m-2)
        """
        sn = 0.0
        for L in self.leaves:
            if L.age < L.growth_duration + L.lag_duration + L.senescence_duration / 2:
                sn = max(sn, L.cohort_population)
        return sn

    @property
    def delta_potential_area(self):
        return sum(L.delta_potential_area for L in self.leaves if L.is_growing)

    @property
    def delta_stress_constrained_area(self):
        return sum(L.delta_stress_constrained_area for L in self.leaves if L.is_growing)

    @property
    def delta_carbon_constrained_area(self):
        return sum(L.delta_carbon_constrained_area for L in self.leaves if L.is_growing)

    @property
    def maintenance_respiration(self):
        return sum(L.maintenance_respiration for L in self.leaves)

    def cover_above_cohort(self, cohortno):
        """
        Fractional interception of the cohorts above a given node position (0-1)
        """
        lai_above = sum(L.live_area for L in self.leaves[int(cohortno):]) / MM2_TO_M2
        return 1 - np.exp(-self.extinctionCoeff * lai_above)

    ## Cohort counts

    def cohort_count(self, category):
        return count_cohorts((L.phase for L in self.leaves), category)

    @property
    def initialised_cohort_no(self):
        return self.cohort_count(CohortCount.INITIALISED)

    @property
    def appeared_cohort_no(self):
        return self.cohort_count(CohortCount.APPEARED)

    @property
    def expanding_cohort_no(self):
        return self.cohort_count(CohortCount.EXPANDING)

    @property
    def expanded_cohort_no(self):
        return self.cohort_count(CohortCount.EXPANDED)

    @property
    def green_cohort_no(self):
        return self.cohort_count(CohortCount.GREEN)

    @property
    def senescing_cohort_no(self):
        return self.cohort_count(CohortCount.SENESCING)

    @property
    def dead_cohort_no(self):
        return min(self.cohort_count(CohortCount.DEAD), self.maximumMainStemLeafNumber)

    ## Per-cohort outputs, padded to the maximum main-stem leaf number

    def _cohort_array(self, func):
        values = np.zeros(max(self.maximumMainStemLeafNumber, len(self.leaves)))
        for i, L in enumerate(self.leaves):
            values[i] = func(L)
        return values

    @property
    def cohort_population(self):
        return self._cohort_array(lambda L: L.cohort_population if L.is_appeared else 0.0)

    @property
    def cohort_size(self):
        return self._cohort_array(lambda L: L.size if L.is_appeared else 0.0)

    @property
    def cohort_area(self):
        return self._cohort_array(lambda L: L.live_area)

    @property
    def cohort_max_size(self):
        return self._cohort_array(lambda L: L.max_size)

    @property
    def cohort_max_area(self):
        return self._cohort_array(lambda L: L.max_area)

    @property
    def cohort_lag_duration(self):
        return self._cohort_array(lambda L: L.lag_duration)

    @property
    def cohort_senesced_frac(self):
        return self._cohort_array(lambda L: L.senesced_frac)

    @property
    def cohort_sla(self):
        return self._cohort_array(lambda L: L.specific_area)

    ## Lifecycle

    def _require_arbitration_closed(self, action):
        if self._arbitration_open:
            raise SequencingError(f"{self.name}: cannot {action} between potential growth and actual growth")

    def clear(self):
        self.leaves = []
        self.cohorts_at_initialisation = 0
        self.tips_at_emergence = 0
        self.current_expanding_leaf = 0
        self.start_fraction_expanded = 0.0
        self.fraction_next_leaf_expanded = 0.0
        self.dm_demand.clear()
        self.n_demand.clear()
        self.dm_supply.clear()
        self.n_supply.clear()
        self._arbitration_open = False
        self.invalidate_live_dead()

    def initialise_cohorts(self):
        """
        Sets up the initial cohorts (e.g. at germination) by cloning the cohort templates.
        """
        self._require_arbitration_closed("initialise cohorts")
        self.leaves = [template.clone() for template in self.initial_leaves]
        self.cohorts_at_initialisation = 0
        self.tips_at_emergence = 0
        for L in self.leaves:
            self.cohorts_at_initialisation += 1
            if L.area > 0:
                self.tips_at_emergence += 1
            L.do_initialisation(self.CohortParameters)
        self.invalidate_live_dead()

    def add_cohort(self, init_params):
        """
        Initialises a new cohort when the plant structure model initiates a new primordium.
        """
        self._require_arbitration_closed("add a cohort")
        if not self.cohorts_initialised:
            raise SequencingError(f"{self.name}: trying to initialise a new cohort (rank {init_params.rank}) before the initial cohorts have been initialised. Check the parameterisation of the node initiation rate.")
        new_leaf = self.initial_leaves[0].clone()
        new_leaf.cohort_population = 0.0
        new_leaf.age = 0.0
        new_leaf.rank = init_params.rank
        new_leaf.area = 0.0
        new_leaf.do_initialisation(self.CohortParameters)
        self.leaves.append(new_leaf)
        self.invalidate_live_dead()

    def cohort_appeared(self, appearance):
        """
        Makes a cohort's tip appear and starts its expansion.
        """
        self._require_arbitration_closed("make a cohort appear")
        if not self.cohorts_initialised:
            raise SequencingError(f"{self.name}: leaf tip appearance before the initial cohorts have been initialised. Check the parameterisation of the node appearance rate.")
        if appearance.cohort_to_appear > self.initialised_cohort_no:
            raise SequencingError(f"{self.name}: cohort to appear ({appearance.cohort_to_appear}) exceeds the number of cohorts initialised ({self.initialised_cohort_no}). Check that primordia are initiated fast enough and for long enough.")
        if appearance.cohort_to_appear < 1:
            raise InvalidInputError(f"{self.name}: cohort to appear must be a 1-based rank, got {appearance.cohort_to_appear}")
        if not (np.isfinite(appearance.cohort_population) and appearance.cohort_population >= 0):
            raise InvalidInputError(f"{self.name}: cohort population must be non-negative, got {appearance.cohort_population}")
        if not (np.isfinite(appearance.cohort_age) and appearance.cohort_age >= 0):
            raise InvalidInputError(f"{self.name}: cohort age must be non-negative, got {appearance.cohort_age}")

        L = self.leaves[appearance.cohort_to_appear - 1]
        if L.is_appeared:
            raise SequencingError(f"{self.name}: cohort {L.rank} has already appeared and cannot appear again")
        L.cohort_population = appearance.cohort_population
        L.age = appearance.cohort_age
        L.do_appearance(appearance.final_fraction, appearance.apex_group_ages, appearance.apex_group_sizes)
        self.invalidate_live_dead()

    def kill_fraction(self, fraction):
        """Kills a fraction of the live area and biomass of every cohort."""
        self._require_arbitration_closed("kill leaves")
        check_fraction(fraction, "Kill fraction")
        logger.info("%s: killing %g of leaves on plant", self.name, fraction)
        for L in self.leaves:
            L.do_kill(fraction)
            L.check_finite(self.name)
        self.invalidate_live_dead()

    def remove_lowest_cohort(self):
        self._require_arbitration_closed("remove the lowest cohort")
        if not self.leaves:
            raise SequencingError(f"{self.name}: there is no cohort to remove")
        logger.info("%s: removing lowest leaf", self.name)
        self.leaves.pop(0)
        self.invalidate_live_dead()

    def zero_leaves(self):
        """Removes all cohorts from the organ."""
        logger.info("%s: removing leaves from plant", self.name)
        self.leaves.clear()
        self._arbitration_open = False
        self.invalidate_live_dead()

    def prune(self):
        self.clear()

    def plant_sowing(self, max_cover):
        self.clear()
        if max_cover <= 0.0:
            raise InvalidInputError("MaxCover must exceed zero in a sow event.")
        self.maxCover = max_cover

    def plant_ending(self):
        """Ends the crop: all live and dead material is detached and the cohorts are cleared."""
        if self.total.wt > 0.0:
            self.detached.add(self.live)
            self.detached.add(self.dead)
        self.clear()

    def thin(self, proportion_removed):
        """Reduces the population of every cohort by the proportion of stems removed by thinning."""
        self._require_arbitration_closed("thin")
        check_fraction(proportion_removed, "Thinning proportion")
        logger.info("%s: thinning removes %g of the population", self.name, proportion_removed)
        for L in self.leaves:
            L.cohort_population *= 1 - proportion_removed
            L.check_finite(self.name)
        self.invalidate_live_dead()

    def remove_biomass(self, biomassRemoveType, amount=None):
        """
        Removes biomass from every initialised cohort for a management event.

        Parameters
        ----------
        biomassRemoveType : str
            Name of the event e.g. "harvest", "cut", "prune", "graze"
        amount : OrganBiomassRemovalType or None
            Removal fractions, if None the defaults for the event are used
        """
        self._require_arbitration_closed("remove biomass")
        self.BiomassRemoval.removal_fractions(biomassRemoveType, amount)
        write_to_summary = True
        for L in self.leaves:
            if L.is_initialised:
                removed_now = Biomass()
                detached_now = Biomass()
                live_fraction, dead_fraction = self.BiomassRemoval.remove_biomass(
                    biomassRemoveType, amount, L.live, L.dead, removed_now, detached_now,
                    organ_name=self.name, write_to_summary=write_to_summary)
                L.live_area *= live_fraction
                L.dead_area *= dead_fraction
                L.removed.add(removed_now)
                L.detached.add(detached_now)
                L.check_finite(self.name)
                self.removed.add(removed_now)
                self.detached.add(detached_now)
                write_to_summary = False
        self.invalidate_live_dead()

    ## Daily update

    def do_daily_initialisation(self):
        """Clears the daily organ outputs. Called at the start of every day, before management events."""
        self.allocated.clear()
        self.senesced.clear()
        self.detached.clear()
        self.removed.clear()
        self.growth_respiration = 0.0

    def do_potential_growth(self, thermal_time, frost_fraction=0.0, expansion_stress=1.0, lag_acceleration=1.0, senescence_acceleration=1.0):
        """
        Applies frost damage then runs the start-of-day calculations of every cohort. Supplies are fixed from the
        start-of-day state, so this opens the arbitration window: no cohort may be mutated until do_actual_growth.

        Parameters
        ----------
        thermal_time : float
            Thermal time increment for the day (deg C d)
        frost_fraction : float
            Fraction of live area and biomass killed by frost today (0-1)
        expansion_stress : float
            Reduction of area expansion due to water or nitrogen limitation (0-1)
        lag_acceleration : float
            Drought induced acceleration of thermal time accumulation during the lag phase (-)
        senescence_acceleration : float
            Drought induced acceleration of thermal time accumulation during the senescence phase (-)

        Returns
        -------
        N/A
        """
        self._require_arbitration_closed("run potential growth")
        if not (np.isfinite(thermal_time) and thermal_time >= 0):
            raise InvalidInputError(f"{self.name}: thermal time must be non-negative, got {thermal_time}")
        check_fraction(frost_fraction, "Frost fraction")
        check_fraction(expansion_stress, "Expansion stress")
        for name, value in (("Lag acceleration", lag_acceleration), ("Senescence acceleration", senescence_acceleration)):
            if not (np.isfinite(value) and value >= 0):
                raise InvalidInputError(f"{name} must be non-negative, got {value}")

        if frost_fraction > 0:
            for L in self.leaves:
                L.do_frost(frost_fraction)

        next_expanding_leaf = False
        for i, L in enumerate(self.leaves):
            L.do_potential_growth(thermal_time, expansion_stress, lag_acceleration, senescence_acceleration,
                                  cover_above=self.cover_above_cohort(i + 1))
            if not L.is_fully_expanded and not next_expanding_leaf:
                next_expanding_leaf = True
                if self.current_expanding_leaf != L.rank:
                    self.current_expanding_leaf = L.rank
                    self.start_fraction_expanded = L.fraction_expanded
                self.fraction_next_leaf_expanded = divide(L.fraction_expanded - self.start_fraction_expanded, 1 - self.start_fraction_expanded, 0.0)
        self.invalidate_live_dead()
        self._arbitration_open = True

    def do_actual_growth(self):
        """
        Realises today's growth, senescence and detachment in every cohort and closes the arbitration window.
        """
        for L in self.leaves:
            self.detached.add(L.do_actual_growth(organ_name=self.name))
            self.senesced.add(L.senesced)
        self.invalidate_live_dead()
        self._arbitration_open = False

        # Proportion of the canopy that died today, used by organs that senesce at the same rate as the leaves.
        # dead_nodes_yesterday is only updated here.
        self.fraction_died = 0.0
        dead_cohort_no = self.dead_cohort_no
        green_cohort_no = self.green_cohort_no
        if dead_cohort_no > 0 and green_cohort_no > 0:
            delta_dead_leaves = dead_cohort_no - self.dead_nodes_yesterday
            self.fraction_died = delta_dead_leaves / green_cohort_no
            self.dead_nodes_yesterday = dead_cohort_no

    ## Arbitration interface

    def _require_cohorts(self, request):
        if not self.cohorts_initialised:
            raise InvalidInputError(f"{self.name}: {request} requested before cohorts were initialised")

    def calculate_dry_matter_demand(self):
        """
        Sums cohort dry matter demands into the organ demand (g m-2 d-1).

        Returns
        -------
        BiomassPoolType
        """
        self._require_cohorts("dry matter demand")
        self._arbitration_open = True
        demand = BiomassPoolType()
        for L in self.leaves:
            demand.add(L.calculate_dry_matter_demand())
        efficiency = self.dmConversionEfficiency
        self.dm_demand = BiomassPoolType(
            structural=demand.structural / efficiency,
            metabolic=demand.metabolic / efficiency,
            storage=demand.storage / efficiency,
        )
        return self.dm_demand

    def calculate_nitrogen_demand(self):
        """
        Sums cohort nitrogen demands into the organ demand (g N m-2 d-1). Structural and metabolic nitrogen demand
        follow today's potential dry matter allocation.
        """
        self._require_cohorts("nitrogen demand")
        self._arbitration_open = True
        demand = BiomassPoolType()
        for L in self.leaves:
            demand.add(L.calculate_nitrogen_demand())
        self.n_demand = demand
        return self.n_demand

    def calculate_dry_matter_supply(self, fixation=0.0):
        """
        Dry matter supply of the organ (g m-2 d-1) from cohort start-of-day reallocation and retranslocation supply, plus fixation.

        Parameters
        ----------
        fixation : float
            Photosynthetic dry matter fixation of the canopy today (g m-2 d-1)
        """
        self._require_cohorts("dry matter supply")
        if not (np.isfinite(fixation) and fixation >= 0):
            raise InvalidInputError(f"{self.name}: fixation must be non-negative, got {fixation}")
        self.dm_supply = BiomassSupplyType(
            fixation=fixation,
            reallocation=sum(L.dm_reallocation_supply for L in self.leaves),
            retranslocation=sum(L.dm_retranslocation_supply for L in self.leaves),
        )
        return self.dm_supply

    def calculate_nitrogen_supply(self):
        self._require_cohorts("nitrogen supply")
        self.n_supply = BiomassSupplyType(
            reallocation=sum(L.n_reallocation_supply for L in self.leaves),
            retranslocation=sum(max(0.0, L.n_retranslocation_supply) for L in self.leaves),
        )
        return self.n_supply

    def _validate_allocation(self, value, substance):
        for category in ("structural", "metabolic", "storage", "reallocation", "retranslocation", "respired"):
            amount = getattr(value, category)
            if not np.isfinite(amount):
                raise InvalidInputError(f"{self.name} received non-finite {substance} {category} allocation ({amount})")
            if amount < -ALLOCATION_TOLERANCE:
                raise InvalidInputError(f"{self.name} received negative {substance} {category} allocation ({amount})")

    def _check_supply_capacity(self, request, capacity, label):
        if request - capacity > ALLOCATION_TOLERANCE * max(1.0, capacity):
            raise ConservationError(f"{label}: cannot supply {request}, only {capacity} is available")

    def set_dry_matter_potential_allocation(self, dryMatter):
        """
        Distributes the potential structural and metabolic dry matter allocation across cohorts, capped at each cohort's
        demand. Nitrogen demand is then derived from the potential allocation.

        Parameters
        ----------
        dryMatter : BiomassPoolType
        """
        self._require_cohorts("potential dry matter allocation")
        for category in ("structural", "metabolic"):
            amount = getattr(dryMatter, category)
            if not np.isfinite(amount) or amount < -ALLOCATION_TOLERANCE:
                raise InvalidInputError(f"{self.name} received invalid potential dry matter {category} allocation ({amount})")
        efficiency = self.dmConversionEfficiency
        label = f"{self.name} potential dry matter"
        structural = distribute_proportional_capped(dryMatter.structural * efficiency, [L.dm_demand.structural for L in self.leaves], f"{label} structural", allow_remainder=True)
        metabolic = distribute_proportional_capped(dryMatter.metabolic * efficiency, [L.dm_demand.metabolic for L in self.leaves], f"{label} metabolic", allow_remainder=True)
        for L, s, m in zip(self.leaves, structural, metabolic):
            L.set_potential_dry_matter_allocation(s, m)

    def set_dry_matter_allocation(self, value):
        """
        Distributes the arbitrated dry matter allocation across cohorts and checks the organ mass balance.

        Structural and metabolic allocation is shared in proportion to cohort demand, capped at each cohort's demand.
        Storage allocation is shared in proportion to cohort storage demand. Retranslocation and reallocation are taken
        from cohorts in rank order up to each cohort's start-of-day supply. Respiration is taken in proportion to
        each cohort's maintenance respiration.

        Parameters
        ----------
        value : BiomassAllocationType

        Returns
        -------
        N/A
        """
        self._require_cohorts("dry matter allocation")
        self._validate_allocation(value, "dry matter")
        efficiency = self.dmConversionEfficiency if value.conversion_efficiency is None else value.conversion_efficiency
        if not (0 < efficiency <= 1):
            raise InvalidInputError(f"{self.name}: dry matter conversion efficiency must be within (0, 1], got {efficiency}")

        label = f"{self.name} dry matter"
        start_wt = self.live.wt
        self.growth_respiration = value.total_growth * (1.0 - efficiency)

        structural = distribute_proportional_capped(value.structural * efficiency, [L.dm_demand.structural for L in self.leaves], f"{label} structural")
        metabolic = distribute_proportional_capped(value.metabolic * efficiency, [L.dm_demand.metabolic for L in self.leaves], f"{label} metabolic")
        storage = distribute_proportional(value.storage * efficiency, [L.dm_demand.storage for L in self.leaves], f"{label} storage")

        retranslocation_supply = [L.dm_retranslocation_supply for L in self.leaves]
        self._check_supply_capacity(value.retranslocation, sum(retranslocation_supply), f"{label} retranslocation")
        retranslocation = distribute_in_rank_order(value.retranslocation, retranslocation_supply, f"{label} retranslocation")

        reallocation_supply = [L.dm_reallocation_supply for L in self.leaves]
        self._check_supply_capacity(value.reallocation, sum(reallocation_supply), f"{label} reallocation")
        reallocation = distribute_in_rank_order(value.reallocation, reallocation_supply, f"{label} reallocation")

        respiration_supply = [L.maintenance_respiration for L in self.leaves]
        self._check_supply_capacity(value.respired, sum(respiration_supply), f"{label} respiration")
        respired = distribute_proportional_capped(value.respired, respiration_supply, f"{label} respiration")

        for i, L in enumerate(self.leaves):
            L.allocate_dry_matter(BiomassAllocationType(
                structural=structural[i],
                metabolic=metabolic[i],
                storage=storage[i],
                retranslocation=retranslocation[i],
                reallocation=reallocation[i],
                respired=respired[i],
            ))
        self.allocated.structural_wt += structural.sum()
        self.allocated.metabolic_wt += metabolic.sum()
        self.allocated.storage_wt += storage.sum()
        self.invalidate_live_dead()

        end_wt = self.live.wt
        expected_wt = start_wt + value.total_growth * efficiency - value.reallocation - value.retranslocation - value.respired
        if not mass_balance_closes(end_wt, expected_wt):
            raise ConservationError(f"{self.name}: not all dry matter allocation was used, mass balance does not close (start={start_wt}, end={end_wt}, expected={expected_wt})")

    def set_nitrogen_allocation(self, nitrogen):
        """
        Distributes the arbitrated nitrogen allocation across cohorts and checks the organ nitrogen balance.
        Follows the same pattern as set_dry_matter_allocation, without a conversion efficiency.

        Parameters
        ----------
        nitrogen : BiomassAllocationType

        Returns
        -------
        N/A
        """
        self._require_cohorts("nitrogen allocation")
        self._validate_allocation(nitrogen, "nitrogen")
        if nitrogen.conversion_efficiency not in (None, 1, 1.0):
            raise InvalidInputError(f"{self.name}: nitrogen allocation cannot have a conversion efficiency ({nitrogen.conversion_efficiency})")
        if nitrogen.respired > ALLOCATION_TOLERANCE:
            raise InvalidInputError(f"{self.name}: nitrogen cannot be respired ({nitrogen.respired})")

        label = f"{self.name} nitrogen"
        start_n = self.live.n

        structural = distribute_proportional_capped(nitrogen.structural, [L.n_demand.structural for L in self.leaves], f"{label} structural")
        metabolic = distribute_proportional_capped(nitrogen.metabolic, [L.n_demand.metabolic for L in self.leaves], f"{label} metabolic")
        storage = distribute_proportional(nitrogen.storage, [L.n_demand.storage for L in self.leaves], f"{label} storage")

        retranslocation_supply = [L.n_retranslocation_supply for L in self.leaves]
        self._check_supply_capacity(nitrogen.retranslocation, sum(retranslocation_supply), f"{label} retranslocation")
        retranslocation = distribute_in_rank_order(nitrogen.retranslocation, retranslocation_supply, f"{label} retranslocation")

        reallocation_supply = [L.n_reallocation_supply for L in self.leaves]
        self._check_supply_capacity(nitrogen.reallocation, sum(reallocation_supply), f"{label} reallocation")
        reallocation = distribute_in_rank_order(nitrogen.reallocation, reallocation_supply, f"{label} reallocation")

        for i, L in enumerate(self.leaves):
            L.allocate_nitrogen(BiomassAllocationType(
                structural=structural[i],
                metabolic=metabolic[i],
                storage=storage[i],
                retranslocation=retranslocation[i],
                reallocation=reallocation[i],
            ))
        self.allocated.structural_n += structural.sum()
        self.allocated.metabolic_n += metabolic.sum()
        self.allocated.storage_n += storage.sum()
        self.invalidate_live_dead()

        end_n = self.live.n
        expected_n = start_n + nitrogen.total_growth - nitrogen.reallocation - nitrogen.retranslocation
        if not mass_balance_closes(end_n, expected_n):
            raise ConservationError(f"{self.name}: some nitrogen was not allocated, nitrogen balance does not close (start={start_n}, end={end_n}, expected={expected_n})")
