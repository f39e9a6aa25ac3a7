"""
Leaf cohort class: Includes the daily area, biomass and nitrogen dynamics of a cohort of leaves that appeared at the same main-stem node position
"""

import numpy as np
from attrs import define, field, evolve
from leafcohorts.biomass import Biomass, BiomassPoolType, BiomassAllocationType
from leafcohorts.leafcohortparameters import LeafCohortParameters
from leafcohorts.leafcohortphases import CohortPhase, CohortCount, classify_phase, phase_thresholds
from leafcohorts.utils import NumericalDegeneracyError, InvalidInputError, check_finite

@define
class LeafCohort:
    """
    Calculator of leaf cohort growth, senescence and detachment, and of the cohort's dry matter and nitrogen demand and supply.

    A cohort represents all leaves at a given main-stem node position, including the branch leaves that appear
    at the same time. All leaves in a cohort are assumed to have the same size and biomass properties, so areas
    and biomass pools are held per unit ground area (area in mm2 m-2, biomass in g m-2).
    """

    ## Identity
    rank: int = field(default=0)  ## 1-based position of the cohort along the main stem
    cohort_population: float = field(default=0.0)  ## Number of leaves in the cohort per unit ground area (m-2)
    age: float = field(default=0.0)  ## Thermal time accumulated since tip appearance (deg C d)
    area: float = field(default=0.0)  ## Initial area per leaf for cohorts that already have area when they appear (mm2 leaf-1)

    ## Module dependencies
    parameters: LeafCohortParameters = field(default=None)  ## Assigned when the cohort is initialised by its organ

    ## Phase state
    is_initialised: bool = field(default=False)
    is_appeared: bool = field(default=False)
    phase: CohortPhase = field(default=CohortPhase.INITIALISED)  ## Cached phase, updated whenever age or appearance changes

    ## Properties fixed at appearance
    max_cohort_population: float = field(default=0.0)  ## Cohort population at appearance (m-2)
    max_area: float = field(default=0.0)  ## Maximum area of an individual leaf (mm2 leaf-1)
    growth_duration: float = field(default=0.0)  ## (deg C d)
    lag_duration: float = field(default=0.0)  ## (deg C d)
    senescence_duration: float = field(default=0.0)  ## (deg C d)
    detachment_lag_duration: float = field(default=0.0)  ## (deg C d)
    detachment_duration: float = field(default=0.0)  ## (deg C d)

    ## Area state (mm2 m-2)
    live_area: float = field(default=0.0)
    dead_area: float = field(default=0.0)
    max_live_area: float = field(default=0.0)  ## Largest live area reached by the cohort

    ## Biomass state (g m-2)
    live: Biomass = field(factory=Biomass)
    dead: Biomass = field(factory=Biomass)
    start_live: Biomass = field(factory=Biomass)  ## Snapshot of live biomass at the start of the day
    senesced: Biomass = field(factory=Biomass)  ## Material moved from live to dead today
    detached: Biomass = field(factory=Biomass)  ## Material detached from the cohort since appearance
    removed: Biomass = field(factory=Biomass)  ## Material removed from the cohort by management events since appearance

    ## Daily rates, computed by do_potential_growth
    thermal_time_today: float = field(default=0.0)  ## Thermal time accumulated today, after stress acceleration (deg C d)
    cover_above: float = field(default=0.0)  ## Fractional cover of the younger cohorts above this cohort (0-1)
    senesced_frac: float = field(default=0.0)  ## Fraction of live area and biomass senescing today (-)
    detached_frac: float = field(default=0.0)  ## Fraction of dead area and biomass detaching today (-)
    delta_potential_area: float = field(default=0.0)  ## Unstressed area increment (mm2 m-2 d-1)
    delta_stress_constrained_area: float = field(default=0.0)  ## Area increment after expansion stress (mm2 m-2 d-1)
    delta_carbon_constrained_area: float = field(default=0.0)  ## Area increment supported by today's dry matter allocation (mm2 m-2 d-1)

    ## Start-of-day supplies (g m-2 d-1)
    dm_reallocation_supply: float = field(default=0.0)
    dm_retranslocation_supply: float = field(default=0.0)
    n_reallocation_supply: float = field(default=0.0)
    n_retranslocation_supply: float = field(default=0.0)
    maintenance_respiration: float = field(default=0.0)

    ## Demand snapshots and allocations (g m-2 d-1)
    dm_demand: BiomassPoolType = field(factory=BiomassPoolType)
    n_demand: BiomassPoolType = field(factory=BiomassPoolType)
    potential_structural_dm_allocation: float = field(default=0.0)
    potential_metabolic_dm_allocation: float = field(default=0.0)
    dm_allocation: BiomassAllocationType = field(factory=BiomassAllocationType)
    n_allocation: BiomassAllocationType = field(factory=BiomassAllocationType)

    def clone(self):
        """Returns an independent copy of this cohort, sharing only the parameters."""
        return evolve(
            self,
            live=self.live.copy(),
            dead=self.dead.copy(),
            start_live=self.start_live.copy(),
            senesced=self.senesced.copy(),
            detached=self.detached.copy(),
            removed=self.removed.copy(),
            dm_demand=evolve(self.dm_demand),
            n_demand=evolve(self.n_demand),
            dm_allocation=evolve(self.dm_allocation),
            n_allocation=evolve(self.n_allocation),
        )

    ## Phase predicates

    def update_phase(self):
        """
        Reclassifies the cohort phase from its current age. Phases never move backwards.
        """
        new_phase = classify_phase(
            self.is_appeared, self.age, self.growth_duration, self.lag_duration,
            self.senescence_duration, self.detachment_lag_duration, self.detachment_duration,
        )
        self.phase = max(self.phase, new_phase)
        return self.phase

    @property
    def is_growing(self):
        return CohortCount.EXPANDING.includes(self.phase)

    @property
    def is_fully_expanded(self):
        return CohortCount.EXPANDED.includes(self.phase)

    @property
    def is_green(self):
        return CohortCount.GREEN.includes(self.phase)

    @property
    def is_senescing(self):
        return CohortCount.SENESCING.includes(self.phase)

    @property
    def is_dead(self):
        return CohortCount.DEAD.includes(self.phase)

    @property
    def fraction_expanded(self):
        if not self.is_appeared:
            return 0.0
        return min(1.0, self.age / self.growth_duration)

    @property
    def size(self):
        """Live area of an individual leaf (mm2 leaf-1)"""
        if self.cohort_population <= 0:
            return 0.0
        return self.live_area / self.cohort_population

    @property
    def max_size(self):
        if self.max_cohort_population <= 0:
            return 0.0
        return self.max_live_area / self.max_cohort_population

    @property
    def specific_area(self):
        """Specific leaf area of the live cohort (mm2 g d.wt-1)"""
        if self.live.wt <= 0:
            return 0.0
        return self.live_area / self.live.wt

    ## Lifecycle

    def do_initialisation(self, parameters):
        self.parameters = parameters
        self.is_initialised = True
        self.update_phase()

    def do_appearance(self, final_fraction, apex_group_ages=(1.0,), apex_group_sizes=(1.0,)):
        """
        Makes the cohort tip appear and fixes its size and phase durations.

        Parameters
        ----------
        final_fraction : float
            Fraction of a full leaf that this cohort represents, less than 1 for the final leaf on the stem (0-1]
        apex_group_ages : sequence of float
            Age of each apex group contributing leaves to this cohort
        apex_group_sizes : sequence of float
            Number of apices in each apex group, used to weight the age multipliers

        Returns
        -------
        N/A
        """
        if not self.is_initialised:
            raise InvalidInputError(f"Leaf cohort {self.rank} must be initialised before it can appear")
        if not (0 < final_fraction <= 1):
            raise InvalidInputError(f"Final fraction of leaf cohort {self.rank} must be within (0, 1], got {final_fraction}")
        if len(apex_group_ages) != len(apex_group_sizes):
            raise InvalidInputError(f"Apex group ages and sizes must have the same length, got {len(apex_group_ages)} and {len(apex_group_sizes)}")

        p = self.parameters
        self.is_appeared = True
        self.max_cohort_population = self.cohort_population

        size_multiplier = self._apex_weighted(p.leafSizeAgeMultiplier, apex_group_ages, apex_group_sizes)
        lag_multiplier = self._apex_weighted(p.lagDurationAgeMultiplier, apex_group_ages, apex_group_sizes)
        senescence_multiplier = self._apex_weighted(p.senescenceDurationAgeMultiplier, apex_group_ages, apex_group_sizes)

        self.max_area = p.maxArea * p.cellDivisionStress * final_fraction * size_multiplier
        self.growth_duration = p.growthDuration * final_fraction
        self.lag_duration = p.lagDuration * lag_multiplier
        self.senescence_duration = p.senescenceDuration * senescence_multiplier
        self.detachment_lag_duration = p.detachmentLagDuration
        self.detachment_duration = p.detachmentDuration

        if self.area > 0:
            # Leaves present at emergence start with area and the biomass to support it
            self.live_area = self.area * self.cohort_population
            non_storage_wt = self.live_area / p.meanSpecificLeafArea
            self.live.structural_wt = non_storage_wt * p.structuralFraction
            self.live.metabolic_wt = non_storage_wt * (1 - p.structuralFraction)
            self.live.structural_n = self.live.structural_wt * p.minimumNConc
            self.live.metabolic_n = self.live.metabolic_wt * p.metabolicNConc
            self.max_live_area = self.live_area

        self.update_phase()
        self.check_finite()

    @staticmethod
    def _apex_weighted(func, ages, sizes):
        values = np.array([func(age) for age in ages], dtype=float)
        sizes = np.asarray(sizes, dtype=float)
        if sizes.sum() <= 0:
            return float(np.mean(values))
        return float(np.average(values, weights=sizes))

    ## Area dynamics

    def effective_thermal_time(self, thermal_time, lag_acceleration=1.0, senescence_acceleration=1.0):
        """
        Thermal time accumulated today. Drought accelerates accumulation during the lag and senescence phases.
        """
        if self.phase == CohortPhase.FULLY_EXPANDED:
            return thermal_time * lag_acceleration
        elif self.phase == CohortPhase.SENESCING:
            return thermal_time * senescence_acceleration
        return thermal_time

    def size_function(self, tt):
        """
        Area of an individual leaf (mm2 leaf-1) after tt degree days of expansion.

        Follows a logistic curve over the growth duration, normalised so that size is zero at appearance
        and equals the maximum leaf area at the end of the growth duration.
        """
        shape = self.parameters.leafSizeShapeParameter
        k = (1 - shape) / shape
        alpha = 2 * np.log(k) / self.growth_duration
        t = np.clip(tt, 0, self.growth_duration)
        logistic = 1 / (1 + k * np.exp(-alpha * t))
        return self.max_area * (logistic - shape) / (1 - 2 * shape)

    def potential_area_growth(self, tt):
        """Unstressed area increment of the cohort over tt degree days (mm2 m-2)"""
        leaf_size_delta = self.size_function(self.age + tt) - self.size_function(self.age)
        return leaf_size_delta * self.cohort_population

    def fraction_senescing(self, tt):
        """
        Fraction of live area senescing over tt degree days, the larger of age-driven senescence and
        shade-induced senescence.
        """
        if not self.is_appeared:
            return 0.0
        _, end_lag, end_senescence, _, _ = phase_thresholds(
            self.growth_duration, self.lag_duration, self.senescence_duration,
            self.detachment_lag_duration, self.detachment_duration,
        )
        frac_sen_age = 0.0
        tt_in_sen_phase = self.age + tt - end_lag
        if tt_in_sen_phase > 0:
            remaining_tt = end_senescence - max(self.age, end_lag)
            if remaining_tt <= 0:
                frac_sen_age = 1.0
            else:
                frac_sen_age = min(1.0, min(tt, tt_in_sen_phase) / remaining_tt)

        frac_sen_shade = 0.0
        if self.live_area > 0:
            shade_rate = self.parameters.shadeInducedSenescenceRate(self.cover_above)
            frac_sen_shade = min(self.max_live_area * shade_rate, self.live_area) / self.live_area

        return max(frac_sen_age, frac_sen_shade)

    def fraction_detaching(self, tt):
        """Fraction of dead area and biomass detaching over tt degree days"""
        if not self.is_appeared:
            return 0.0
        _, _, _, start_detachment, end_detachment = phase_thresholds(
            self.growth_duration, self.lag_duration, self.senescence_duration,
            self.detachment_lag_duration, self.detachment_duration,
        )
        tt_in_detachment = self.age + tt - start_detachment
        if tt_in_detachment <= 0:
            return 0.0
        remaining_tt = end_detachment - max(self.age, start_detachment)
        if remaining_tt <= 0:
            return 1.0
        return min(1.0, min(tt, tt_in_detachment) / remaining_tt)

    ## Daily update

    def do_potential_growth(self, thermal_time, expansion_stress=1.0, lag_acceleration=1.0, senescence_acceleration=1.0, cover_above=0.0):
        """
        Start-of-day calculations: snapshots live biomass, determines today's potential area increment and
        senescence fraction, and the reallocation, retranslocation and respiration supplies.

        Parameters
        ----------
        thermal_time : float
            Thermal time increment for the day (deg C d)
        expansion_stress : float
            Reduction of area expansion due to water or nitrogen limitation (0-1)
        lag_acceleration : float
            Drought induced acceleration of thermal time in the lag phase (-)
        senescence_acceleration : float
            Drought induced acceleration of thermal time in the senescence phase (-)
        cover_above : float
            Fractional cover of younger cohorts above this cohort (0-1)

        Returns
        -------
        N/A
        """
        self.start_live = self.live.copy()
        self.senesced.clear()
        self.dm_demand.clear()
        self.n_demand.clear()
        self.potential_structural_dm_allocation = 0.0
        self.potential_metabolic_dm_allocation = 0.0
        self.dm_allocation = BiomassAllocationType()
        self.n_allocation = BiomassAllocationType()
        self.cover_above = cover_above
        self.delta_potential_area = 0.0
        self.delta_stress_constrained_area = 0.0
        self.delta_carbon_constrained_area = 0.0

        if not self.is_appeared:
            self.thermal_time_today = 0.0
            self.senesced_frac = 0.0
            self.dm_reallocation_supply = 0.0
            self.dm_retranslocation_supply = 0.0
            self.n_reallocation_supply = 0.0
            self.n_retranslocation_supply = 0.0
            self.maintenance_respiration = 0.0
            return

        p = self.parameters
        tt = self.effective_thermal_time(thermal_time, lag_acceleration, senescence_acceleration)
        self.thermal_time_today = tt
        self.senesced_frac = self.fraction_senescing(tt)

        if self.is_growing:
            self.delta_potential_area = check_finite(self.potential_area_growth(tt), f"Potential area increment of leaf cohort {self.rank}")
            self.delta_stress_constrained_area = self.delta_potential_area * expansion_stress

        self.dm_reallocation_supply = self.senesced_frac * self.start_live.nonstructural_wt * p.dmReallocationFactor
        self.dm_retranslocation_supply = self.start_live.storage_wt * p.dmRetranslocationFactor
        self.n_reallocation_supply = self.senesced_frac * self.start_live.nonstructural_n * p.nReallocationFactor
        self.n_retranslocation_supply = max(0.0, self.start_live.storage_n * p.nRetranslocationFactor)
        self.maintenance_respiration = self.start_live.nonstructural_wt * p.maintenanceRespirationRate

    def calculate_dry_matter_demand(self):
        """
        Structural and metabolic dry matter demand from today's area increment and the specific leaf area bounds,
        and storage demand from the dry matter the cohort will hold after today's growth.

        Returns
        -------
        BiomassPoolType
        """
        p = self.parameters
        demand = BiomassPoolType()
        if self.is_growing:
            total_dm_demand = min(self.delta_potential_area / p.meanSpecificLeafArea,
                                  self.delta_stress_constrained_area / p.specificLeafAreaMin)
            demand.structural = total_dm_demand * p.structuralFraction
            demand.metabolic = total_dm_demand * (1 - p.structuralFraction)
        if self.is_green:
            max_storage_wt = (self.live.structural_wt + self.live.metabolic_wt + demand.structural + demand.metabolic) * p.storageFraction
            demand.storage = max(0.0, max_storage_wt - self.live.storage_wt)
        self.dm_demand = demand
        return demand

    def calculate_nitrogen_demand(self):
        """
        Structural and metabolic nitrogen demand from today's potential dry matter allocation, and storage
        nitrogen demand up to the maximum nitrogen concentration.

        Returns
        -------
        BiomassPoolType
        """
        p = self.parameters
        demand = BiomassPoolType()
        if self.is_growing:
            demand.structural = self.potential_structural_dm_allocation * p.minimumNConc
            demand.metabolic = self.potential_metabolic_dm_allocation * p.metabolicNConc
        if self.is_green:
            non_storage_wt = self.live.structural_wt + self.live.metabolic_wt + self.potential_structural_dm_allocation + self.potential_metabolic_dm_allocation
            demand.storage = max(0.0, non_storage_wt * p.luxuryNConc - self.live.storage_n)
        self.n_demand = demand
        return demand

    def set_potential_dry_matter_allocation(self, structural, metabolic):
        self.potential_structural_dm_allocation = structural
        self.potential_metabolic_dm_allocation = metabolic

    def allocate_dry_matter(self, allocation):
        """
        Adds today's dry matter allocation to the live pools and withdraws retranslocation from storage and
        reallocation and respiration from the metabolic and storage pools.
        """
        self.live.structural_wt += allocation.structural
        self.live.metabolic_wt += allocation.metabolic
        self.live.storage_wt += allocation.storage
        self.live.storage_wt = max(0.0, self.live.storage_wt - allocation.retranslocation)
        self._withdraw_nonstructural_wt(allocation.reallocation + allocation.respired)
        self.dm_allocation = allocation

    def allocate_nitrogen(self, allocation):
        """Nitrogen counterpart of allocate_dry_matter."""
        self.live.structural_n += allocation.structural
        self.live.metabolic_n += allocation.metabolic
        self.live.storage_n += allocation.storage
        self.live.storage_n = max(0.0, self.live.storage_n - allocation.retranslocation)
        self._withdraw_nonstructural_n(allocation.reallocation)
        self.n_allocation = allocation

    def _withdraw_nonstructural_wt(self, amount):
        # Withdrawn in proportion to the start-of-day metabolic and storage pools
        if amount <= 0:
            return
        total = self.start_live.nonstructural_wt
        metabolic_share = self.start_live.metabolic_wt / total if total > 0 else 0.0
        self.live.metabolic_wt = max(0.0, self.live.metabolic_wt - amount * metabolic_share)
        self.live.storage_wt = max(0.0, self.live.storage_wt - amount * (1 - metabolic_share))

    def _withdraw_nonstructural_n(self, amount):
        if amount <= 0:
            return
        total = self.start_live.nonstructural_n
        metabolic_share = self.start_live.metabolic_n / total if total > 0 else 0.0
        self.live.metabolic_n = max(0.0, self.live.metabolic_n - amount * metabolic_share)
        self.live.storage_n = max(0.0, self.live.storage_n - amount * (1 - metabolic_share))

    def do_actual_growth(self, organ_name="Leaf"):
        """
        End-of-day update: realises area growth supported by today's allocation, senesces live area and
        biomass, detaches dead material and advances the cohort age and phase.

        Returns
        -------
        Biomass
            Material detached from the cohort today
        """
        detached = Biomass()
        if not self.is_appeared:
            return detached
        p = self.parameters
        tt = self.thermal_time_today

        self.delta_carbon_constrained_area = (self.dm_allocation.structural + self.dm_allocation.metabolic) * p.specificLeafAreaMax
        delta_actual_area = 0.0
        if self.is_growing:
            delta_actual_area = min(self.delta_stress_constrained_area, self.delta_carbon_constrained_area)

        area_senescing = self.live_area * self.senesced_frac
        self.live_area = max(0.0, self.live_area + delta_actual_area - area_senescing)
        self.dead_area += area_senescing
        self.max_live_area = max(self.max_live_area, self.live_area)

        senesced = self.live.scaled(self.senesced_frac)
        self.live.subtract(senesced)
        self.dead.add(senesced)
        self.senesced = senesced

        self.detached_frac = self.fraction_detaching(tt)
        if self.detached_frac > 0:
            detached = self.dead.scaled(self.detached_frac)
            self.dead.subtract(detached)
            self.detached.add(detached)
            self.dead_area -= self.dead_area * self.detached_frac

        self.age += tt
        self.update_phase()
        self.check_finite(organ_name)
        return detached

    def do_kill(self, fraction):
        """Moves a fraction of live area and biomass to dead, independent of the phase clock."""
        if not self.is_initialised or fraction <= 0:
            return
        killed_area = self.live_area * fraction
        self.live_area -= killed_area
        self.dead_area += killed_area
        killed = self.live.scaled(fraction)
        self.live.subtract(killed)
        self.dead.add(killed)

    def do_frost(self, fraction):
        self.do_kill(fraction)

    def check_finite(self, organ_name="Leaf"):
        """
        Raises NumericalDegeneracyError if any area or biomass value of the cohort is not finite.
        """
        for name, value in (("live area", self.live_area), ("dead area", self.dead_area)):
            if not np.isfinite(value):
                raise NumericalDegeneracyError(f"{name.capitalize()} of {organ_name} cohort {self.rank} is not a finite number (value={value})")
        if not (self.live.is_finite() and self.dead.is_finite()):
            raise NumericalDegeneracyError(f"Biomass of {organ_name} cohort {self.rank} is not finite: live={self.live}, dead={self.dead}")
