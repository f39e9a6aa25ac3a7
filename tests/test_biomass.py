import numpy as np
import pytest

from leafcohorts.biomass import Biomass, BiomassPoolType, BiomassSupplyType, BiomassAllocationType


def test_biomass_totals():
    b = Biomass(structural_wt=2.0, metabolic_wt=1.0, storage_wt=0.5, structural_n=0.02, metabolic_n=0.04, storage_n=0.01)
    assert b.wt == pytest.approx(3.5)
    assert b.n == pytest.approx(0.07)
    assert b.nonstructural_wt == pytest.approx(1.5)
    assert b.nonstructural_n == pytest.approx(0.05)
    assert b.n_conc == pytest.approx(0.07 / 3.5)
    assert b.metabolic_n_conc == pytest.approx(0.04)


def test_empty_biomass_concentrations_are_zero():
    b = Biomass()
    assert b.n_conc == 0.0
    assert b.metabolic_n_conc == 0.0


def test_add_and_subtract_in_place():
    a = Biomass(structural_wt=1.0, storage_n=0.1)
    b = Biomass(structural_wt=0.5, metabolic_wt=2.0, storage_n=0.05)
    a.add(b)
    assert a.structural_wt == pytest.approx(1.5)
    assert a.metabolic_wt == pytest.approx(2.0)
    a.subtract(b)
    assert a.structural_wt == pytest.approx(1.0)
    assert a.metabolic_wt == pytest.approx(0.0)
    assert a.storage_n == pytest.approx(0.1)


def test_scaled_returns_new_instance():
    a = Biomass(structural_wt=4.0, metabolic_n=0.2)
    half = a.scaled(0.5)
    assert half.structural_wt == pytest.approx(2.0)
    assert half.metabolic_n == pytest.approx(0.1)
    assert a.structural_wt == 4.0


def test_sum_does_not_modify_operands():
    a = Biomass(structural_wt=1.0)
    b = Biomass(structural_wt=2.0)
    c = a + b
    assert c.structural_wt == pytest.approx(3.0)
    assert a.structural_wt == 1.0
    assert b.structural_wt == 2.0


def test_copy_is_independent():
    a = Biomass(storage_wt=1.0)
    b = a.copy()
    b.storage_wt = 5.0
    assert a.storage_wt == 1.0


def test_clear():
    a = Biomass(1, 2, 3, 4, 5, 6)
    a.clear()
    assert np.all(a.as_array() == 0)


def test_is_finite():
    assert Biomass(1.0, 2.0).is_finite()
    assert not Biomass(np.nan).is_finite()
    assert not Biomass(metabolic_n=np.inf).is_finite()


def test_pool_supply_and_allocation_records():
    pool = BiomassPoolType(structural=1.0, metabolic=2.0, storage=3.0)
    pool.add(BiomassPoolType(structural=1.0))
    assert pool.total == pytest.approx(7.0)
    pool.clear()
    assert pool.total == 0.0

    supply = BiomassSupplyType(fixation=5.0, reallocation=1.0, retranslocation=0.5)
    assert supply.total == pytest.approx(6.5)

    allocation = BiomassAllocationType(structural=1.0, metabolic=0.5, storage=0.25, retranslocation=2.0, respired=0.1)
    assert allocation.total_growth == pytest.approx(1.75)
    assert allocation.conversion_efficiency is None
