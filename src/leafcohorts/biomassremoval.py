"""
Biomass removal model class: Includes the fractions of live and dead biomass removed from the system or returned to the surface residue by management events (harvest, cut, prune, graze)
"""

import logging
from attrs import define, field
from leafcohorts.biomass import Biomass
from leafcohorts.utils import InvalidInputError

logger = logging.getLogger(__name__)

@define
class OrganBiomassRemovalType:
    """
    Fractions of an organ's biomass affected by a single removal event
    """
    fractionLiveToRemove: float = field(default=0.0)  ## fraction of live biomass removed from the system (e.g. exported as harvested product or eaten)
    fractionDeadToRemove: float = field(default=0.0)  ## fraction of dead biomass removed from the system
    fractionLiveToResidue: float = field(default=0.0)  ## fraction of live biomass moved to the surface residue
    fractionDeadToResidue: float = field(default=0.0)  ## fraction of dead biomass moved to the surface residue

    def __attrs_post_init__(self):
        for name in ("fractionLiveToRemove", "fractionDeadToRemove", "fractionLiveToResidue", "fractionDeadToResidue"):
            value = getattr(self, name)
            if not (0 <= value <= 1):
                raise InvalidInputError(f"{name} must be between 0 and 1, got {value}")
        if self.fractionLiveToRemove + self.fractionLiveToResidue > 1:
            raise InvalidInputError("The sum of fractionLiveToRemove and fractionLiveToResidue cannot exceed 1.")
        if self.fractionDeadToRemove + self.fractionDeadToResidue > 1:
            raise InvalidInputError("The sum of fractionDeadToRemove and fractionDeadToResidue cannot exceed 1.")


def _default_removal_types():
    return {
        "harvest": OrganBiomassRemovalType(fractionLiveToRemove=0.9, fractionLiveToResidue=0.1, fractionDeadToResidue=1.0),
        "cut": OrganBiomassRemovalType(fractionLiveToRemove=0.8, fractionDeadToRemove=0.5),
        "prune": OrganBiomassRemovalType(fractionLiveToResidue=0.5, fractionDeadToResidue=0.5),
        "graze": OrganBiomassRemovalType(fractionLiveToRemove=0.5, fractionDeadToRemove=0.3, fractionLiveToResidue=0.05, fractionDeadToResidue=0.05),
    }


@define
class BiomassRemoval:
    """
    Calculator of biomass removal from an organ's live and dead pools
    """
    removalTypes: dict = field(factory=_default_removal_types)  ## default removal fractions keyed by event name

    def removal_fractions(self, biomassRemoveType, amount=None):
        """
        Returns the removal fractions for an event, using the given amount in preference to the event defaults.
        """
        if amount is not None:
            return amount
        try:
            return self.removalTypes[biomassRemoveType]
        except KeyError:
            raise InvalidInputError(f"Biomass removal type '{biomassRemoveType}' not recognised. Available types: {list(self.removalTypes)}")

    def remove_biomass(self, biomassRemoveType, amount, live, dead, removed, detached, organ_name="Leaf", write_to_summary=True):
        """
        Removes biomass from the live and dead pools in place, adding it to the removed and detached pools.

        Parameters
        ----------
        biomassRemoveType : str
            Name of the event that triggered the removal (e.g. "harvest", "cut", "prune", "graze")
        amount : OrganBiomassRemovalType or None
            Removal fractions. If None, the defaults for biomassRemoveType are used.
        live, dead : Biomass
            Pools to remove biomass from
        removed, detached : Biomass
            Pools receiving biomass removed from the system and biomass moved to the surface residue

        Returns
        -------
        remaining_live_fraction : float
            Fraction of the live pool remaining after removal
        remaining_dead_fraction : float
            Fraction of the dead pool remaining after removal
        """
        fractions = self.removal_fractions(biomassRemoveType, amount)

        removed.add(live.scaled(fractions.fractionLiveToRemove))
        removed.add(dead.scaled(fractions.fractionDeadToRemove))
        detached.add(live.scaled(fractions.fractionLiveToResidue))
        detached.add(dead.scaled(fractions.fractionDeadToResidue))

        remaining_live_fraction = 1 - (fractions.fractionLiveToRemove + fractions.fractionLiveToResidue)
        remaining_dead_fraction = 1 - (fractions.fractionDeadToRemove + fractions.fractionDeadToResidue)
        _scale_in_place(live, remaining_live_fraction)
        _scale_in_place(dead, remaining_dead_fraction)

        if write_to_summary:
            logger.info(
                "%s: %s removes %.0f%% of live biomass (%.0f%% to residue) and %.0f%% of dead biomass (%.0f%% to residue)",
                organ_name, biomassRemoveType,
                100 * (fractions.fractionLiveToRemove + fractions.fractionLiveToResidue), 100 * fractions.fractionLiveToResidue,
                100 * (fractions.fractionDeadToRemove + fractions.fractionDeadToResidue), 100 * fractions.fractionDeadToResidue,
            )
        return remaining_live_fraction, remaining_dead_fraction


def _scale_in_place(biomass: Biomass, fraction):
    scaled = biomass.scaled(fraction)
    biomass.clear()
    biomass.add(scaled)
