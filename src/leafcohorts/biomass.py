"""
Biomass class: Includes the dry matter and nitrogen pools of an organ or cohort, and the demand, supply and allocation records exchanged with the arbitrator
"""

import numpy as np
from attrs import define, field, evolve

@define
class Biomass:
    """
    Dry matter and nitrogen held in the structural, metabolic and storage pools (g m-2)
    """
    structural_wt: float = field(default=0.0)  ## structural dry matter (g m-2)
    metabolic_wt: float = field(default=0.0)   ## metabolic dry matter (g m-2)
    storage_wt: float = field(default=0.0)     ## storage (non-structural) dry matter (g m-2)
    structural_n: float = field(default=0.0)   ## structural nitrogen (g N m-2)
    metabolic_n: float = field(default=0.0)    ## metabolic nitrogen (g N m-2)
    storage_n: float = field(default=0.0)      ## storage nitrogen (g N m-2)

    @property
    def wt(self):
        return self.structural_wt + self.metabolic_wt + self.storage_wt

    @property
    def n(self):
        return self.structural_n + self.metabolic_n + self.storage_n

    @property
    def nonstructural_wt(self):
        return self.metabolic_wt + self.storage_wt

    @property
    def nonstructural_n(self):
        return self.metabolic_n + self.storage_n

    @property
    def n_conc(self):
        """Nitrogen concentration of the total dry matter (g N g d.wt-1)"""
        if self.wt == 0:
            return 0.0
        return self.n / self.wt

    @property
    def metabolic_n_conc(self):
        if self.metabolic_wt == 0:
            return 0.0
        return self.metabolic_n / self.metabolic_wt

    def as_array(self):
        return np.array([self.structural_wt, self.metabolic_wt, self.storage_wt,
                         self.structural_n, self.metabolic_n, self.storage_n])

    def is_finite(self):
        return bool(np.all(np.isfinite(self.as_array())))

    def copy(self):
        return evolve(self)

    def clear(self):
        self.structural_wt = 0.0
        self.metabolic_wt = 0.0
        self.storage_wt = 0.0
        self.structural_n = 0.0
        self.metabolic_n = 0.0
        self.storage_n = 0.0

    def add(self, other):
        """Adds the pools of other to this instance in place."""
        self.structural_wt += other.structural_wt
        self.metabolic_wt += other.metabolic_wt
        self.storage_wt += other.storage_wt
        self.structural_n += other.structural_n
        self.metabolic_n += other.metabolic_n
        self.storage_n += other.storage_n
        return self

    def subtract(self, other):
        """Subtracts the pools of other from this instance in place."""
        self.structural_wt -= other.structural_wt
        self.metabolic_wt -= other.metabolic_wt
        self.storage_wt -= other.storage_wt
        self.structural_n -= other.structural_n
        self.metabolic_n -= other.metabolic_n
        self.storage_n -= other.storage_n
        return self

    def scaled(self, fraction):
        """Returns a new Biomass with every pool multiplied by fraction."""
        return Biomass(
            structural_wt=self.structural_wt * fraction,
            metabolic_wt=self.metabolic_wt * fraction,
            storage_wt=self.storage_wt * fraction,
            structural_n=self.structural_n * fraction,
            metabolic_n=self.metabolic_n * fraction,
            storage_n=self.storage_n * fraction,
        )

    def __add__(self, other):
        return self.copy().add(other)


@define
class BiomassPoolType:
    """
    Demand (or potential allocation) of dry matter or nitrogen per pool category (g m-2 d-1)
    """
    structural: float = field(default=0.0)
    metabolic: float = field(default=0.0)
    storage: float = field(default=0.0)

    @property
    def total(self):
        return self.structural + self.metabolic + self.storage

    def add(self, other):
        self.structural += other.structural
        self.metabolic += other.metabolic
        self.storage += other.storage
        return self

    def clear(self):
        self.structural = 0.0
        self.metabolic = 0.0
        self.storage = 0.0


@define
class BiomassSupplyType:
    """
    Supply of dry matter or nitrogen offered to the arbitrator (g m-2 d-1)
    """
    fixation: float = field(default=0.0)         ## organ-level input e.g. photosynthesis, not from cohorts
    reallocation: float = field(default=0.0)     ## salvage from tissue senescing today
    retranslocation: float = field(default=0.0)  ## mobile reserves from existing storage

    @property
    def total(self):
        return self.fixation + self.reallocation + self.retranslocation

    def clear(self):
        self.fixation = 0.0
        self.reallocation = 0.0
        self.retranslocation = 0.0


@define
class BiomassAllocationType:
    """
    Allocation decided by the arbitrator for an organ, or distributed to a single cohort (g m-2 d-1)
    """
    structural: float = field(default=0.0)
    metabolic: float = field(default=0.0)
    storage: float = field(default=0.0)
    reallocation: float = field(default=0.0)     ## amount withdrawn from senescing tissue
    retranslocation: float = field(default=0.0)  ## amount withdrawn from storage
    respired: float = field(default=0.0)         ## maintenance respiration withdrawn from non-structural pools
    conversion_efficiency: float = field(default=None)  ## fraction of inbound dry matter converted to tissue, the rest is growth respiration. If None, the organ's own efficiency is used. Must be None or 1 for nitrogen.

    @property
    def total_growth(self):
        return self.structural + self.metabolic + self.storage
