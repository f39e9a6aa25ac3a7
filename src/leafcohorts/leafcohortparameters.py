"""
Leaf cohort parameters class: Includes the crop parameters that define the area, biomass and nitrogen dynamics of every leaf cohort
"""

from typing import Callable
from attrs import define, field
from leafcohorts.functions import Constant, LinearInterpolation

@define
class LeafCohortParameters:
    """
    Parameters shared by all leaf cohorts of a leaf organ. Defaults are broadly representative of a temperate cereal (wheat).
    """

    ## Leaf size and phase durations
    maxArea: float = field(default=3000.0)  ## Maximum potential area of an individual leaf (mm2 leaf-1)
    growthDuration: float = field(default=150.0)  ## Thermal time from tip appearance to full expansion (deg C d)
    lagDuration: float = field(default=250.0)  ## Thermal time a fully expanded leaf remains at its maximum area before senescence starts (deg C d)
    senescenceDuration: float = field(default=200.0)  ## Thermal time over which a leaf senesces to zero live area (deg C d)
    detachmentLagDuration: float = field(default=100.0)  ## Thermal time between full senescence and the start of detachment of dead material (deg C d)
    detachmentDuration: float = field(default=200.0)  ## Thermal time over which dead material detaches (deg C d)
    leafSizeShapeParameter: float = field(default=0.01)  ## Shape of the sigmoidal leaf area increase; relative size of the leaf at the start of expansion on the underlying logistic curve (-)
    cellDivisionStress: float = field(default=1.0)  ## Reduction of maximum leaf size due to stress prior to appearance (0-1)

    ## Age multipliers, functions of apex group age (number of cohorts initialised since the apex group formed)
    leafSizeAgeMultiplier: Callable = field(default=Constant(1.0))  ## Modifies leaf size by apex age (-)
    lagDurationAgeMultiplier: Callable = field(default=Constant(1.0))  ## Modifies lag duration by apex age (-)
    senescenceDurationAgeMultiplier: Callable = field(default=Constant(1.0))  ## Modifies senescence duration by apex age (-)

    ## Shade induced senescence, function of the fractional cover above a cohort
    shadeInducedSenescenceRate: Callable = field(default=LinearInterpolation(x=[0.0, 0.95, 1.0], y=[0.0, 0.0, 0.02]))  ## Proportion of maximum live area lost each day to mutual shading (d-1)

    ## Specific leaf area and dry matter partitioning
    specificLeafAreaMax: float = field(default=25000.0)  ## Maximum specific leaf area, thinnest leaves (mm2 g d.wt-1)
    specificLeafAreaMin: float = field(default=15000.0)  ## Minimum specific leaf area, thickest leaves (mm2 g d.wt-1)
    structuralFraction: float = field(default=0.7)  ## Fraction of non-storage dry matter demand that is structural (-)
    storageFraction: float = field(default=0.2)  ## Storage dry matter capacity relative to structural plus metabolic dry matter (-)

    ## Nitrogen concentrations
    maximumNConc: float = field(default=0.06)  ## Maximum nitrogen concentration, reached when the storage (luxury) pool is full (g N g d.wt-1)
    criticalNConc: float = field(default=0.045)  ## Critical nitrogen concentration, below which growth is N limited (g N g d.wt-1)
    minimumNConc: float = field(default=0.005)  ## Minimum (structural) nitrogen concentration (g N g d.wt-1)

    ## Reallocation, retranslocation and maintenance respiration
    dmReallocationFactor: float = field(default=0.0)  ## Fraction of senescing non-structural dry matter available for reallocation (-)
    dmRetranslocationFactor: float = field(default=0.2)  ## Fraction of storage dry matter available for retranslocation each day (-)
    nReallocationFactor: float = field(default=0.5)  ## Fraction of senescing non-structural nitrogen available for reallocation (-)
    nRetranslocationFactor: float = field(default=0.05)  ## Fraction of storage nitrogen available for retranslocation each day (-)
    maintenanceRespirationRate: float = field(default=0.0)  ## Fraction of non-structural dry matter respired each day (d-1)

    def __attrs_post_init__(self):
        durations = {
            "lagDuration": self.lagDuration,
            "senescenceDuration": self.senescenceDuration,
            "detachmentLagDuration": self.detachmentLagDuration,
            "detachmentDuration": self.detachmentDuration,
        }
        for name, value in durations.items():
            if value < 0:
                raise ValueError(f"{name} cannot be negative, got {value}")
        if self.growthDuration <= 0:
            raise ValueError(f"growthDuration must be greater than zero, got {self.growthDuration}")
        if self.maxArea < 0:
            raise ValueError(f"maxArea cannot be negative, got {self.maxArea}")
        if not (0 < self.specificLeafAreaMin <= self.specificLeafAreaMax):
            raise ValueError(f"Specific leaf area bounds must satisfy 0 < specificLeafAreaMin <= specificLeafAreaMax, got min={self.specificLeafAreaMin}, max={self.specificLeafAreaMax}")
        if not (0 < self.structuralFraction < 1):
            raise ValueError(f"structuralFraction must be between 0 and 1 (exclusive), got {self.structuralFraction}")
        if self.storageFraction < 0:
            raise ValueError(f"storageFraction cannot be negative, got {self.storageFraction}")
        if not (0 <= self.minimumNConc <= self.criticalNConc <= self.maximumNConc):
            raise ValueError(f"Nitrogen concentrations must satisfy 0 <= minimumNConc <= criticalNConc <= maximumNConc, got {self.minimumNConc}, {self.criticalNConc}, {self.maximumNConc}")
        if not (0 < self.leafSizeShapeParameter < 0.5):
            raise ValueError(f"leafSizeShapeParameter must be between 0 and 0.5 (exclusive), got {self.leafSizeShapeParameter}")
        fractions = {
            "cellDivisionStress": self.cellDivisionStress,
            "dmReallocationFactor": self.dmReallocationFactor,
            "dmRetranslocationFactor": self.dmRetranslocationFactor,
            "nReallocationFactor": self.nReallocationFactor,
            "nRetranslocationFactor": self.nRetranslocationFactor,
            "maintenanceRespirationRate": self.maintenanceRespirationRate,
        }
        for name, value in fractions.items():
            if not (0 <= value <= 1):
                raise ValueError(f"{name} must be between 0 and 1, got {value}")
        # Daily withdrawals from a pool must never exceed what is in it
        if self.dmRetranslocationFactor + self.dmReallocationFactor + self.maintenanceRespirationRate > 1:
            raise ValueError("The sum of dmRetranslocationFactor, dmReallocationFactor and maintenanceRespirationRate cannot exceed 1.")
        if self.nRetranslocationFactor + self.nReallocationFactor > 1:
            raise ValueError("The sum of nRetranslocationFactor and nReallocationFactor cannot exceed 1.")

    @property
    def meanSpecificLeafArea(self):
        return (self.specificLeafAreaMax + self.specificLeafAreaMin) / 2

    @property
    def luxuryNConc(self):
        """Nitrogen concentration range available for storage (g N g d.wt-1)"""
        return self.maximumNConc - self.criticalNConc

    @property
    def metabolicNConc(self):
        """Nitrogen concentration increment of metabolic dry matter above the structural minimum (g N g d.wt-1)"""
        return self.criticalNConc - self.minimumNConc
