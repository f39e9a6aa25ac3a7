import pytest

from leafcohorts.biomass import Biomass
from leafcohorts.biomassremoval import BiomassRemoval, OrganBiomassRemovalType
from leafcohorts.utils import InvalidInputError


def test_removal_fractions_are_validated():
    with pytest.raises(InvalidInputError, match="between 0 and 1"):
        OrganBiomassRemovalType(fractionLiveToRemove=1.2)
    with pytest.raises(InvalidInputError, match="cannot exceed 1"):
        OrganBiomassRemovalType(fractionLiveToRemove=0.6, fractionLiveToResidue=0.6)
    with pytest.raises(InvalidInputError, match="cannot exceed 1"):
        OrganBiomassRemovalType(fractionDeadToRemove=0.6, fractionDeadToResidue=0.6)


def test_harvest_defaults():
    removal = BiomassRemoval()
    live = Biomass(structural_wt=10.0, metabolic_n=1.0)
    dead = Biomass(structural_wt=4.0)
    removed, detached = Biomass(), Biomass()
    live_fraction, dead_fraction = removal.remove_biomass("harvest", None, live, dead, removed, detached)
    assert live_fraction == pytest.approx(0.0)
    assert dead_fraction == pytest.approx(0.0)
    assert removed.structural_wt == pytest.approx(9.0)
    assert removed.metabolic_n == pytest.approx(0.9)
    assert detached.structural_wt == pytest.approx(1.0 + 4.0)
    assert live.wt == pytest.approx(0.0)
    assert dead.wt == pytest.approx(0.0)


def test_given_amount_overrides_defaults():
    removal = BiomassRemoval()
    amount = OrganBiomassRemovalType(fractionLiveToRemove=0.25)
    assert removal.removal_fractions("harvest", amount) is amount
    live = Biomass(storage_wt=8.0)
    removed, detached = Biomass(), Biomass()
    live_fraction, dead_fraction = removal.remove_biomass("harvest", amount, live, Biomass(), removed, detached)
    assert live_fraction == pytest.approx(0.75)
    assert dead_fraction == pytest.approx(1.0)
    assert live.storage_wt == pytest.approx(6.0)
    assert removed.storage_wt == pytest.approx(2.0)
    assert detached.wt == 0.0


def test_custom_removal_types():
    removal = BiomassRemoval(removalTypes={"defoliate": OrganBiomassRemovalType(fractionLiveToResidue=1.0)})
    with pytest.raises(InvalidInputError, match="not recognised"):
        removal.removal_fractions("harvest")
    assert removal.removal_fractions("defoliate").fractionLiveToResidue == 1.0
