import logging

import numpy as np
import pytest

from leafcohorts.allocation import distribute_proportional_capped, distribute_proportional, distribute_in_rank_order
from leafcohorts.utils import ConservationError, InvalidInputError


def test_two_cohorts_equal_demand():
    allocations = distribute_proportional_capped(15.0, [10.0, 10.0], "Leaf dry matter structural")
    assert allocations == pytest.approx([7.5, 7.5])
    assert allocations.sum() == pytest.approx(15.0)


def test_unequal_demand_capped():
    allocations = distribute_proportional_capped(10.0, [2.0, 18.0], "Leaf dry matter structural")
    assert allocations == pytest.approx([1.0, 9.0])
    assert allocations.sum() == pytest.approx(10.0)


def test_capped_allocation_never_exceeds_demand():
    demands = np.array([0.3, 5.0, 1e-6, 2.2])
    allocations = distribute_proportional_capped(demands.sum(), demands, "Leaf dry matter metabolic")
    assert np.all(allocations <= demands)
    assert allocations.sum() == pytest.approx(demands.sum())


def test_capped_over_allocation_raises_naming_category():
    with pytest.raises(ConservationError, match="Leaf dry matter structural"):
        distribute_proportional_capped(25.0, [10.0, 10.0], "Leaf dry matter structural")


def test_capped_over_allocation_can_leave_remainder():
    allocations = distribute_proportional_capped(25.0, [10.0, 10.0], "Leaf potential dry matter structural", allow_remainder=True)
    assert allocations == pytest.approx([10.0, 10.0])


def test_capped_allocation_without_demand_raises():
    with pytest.raises(ConservationError, match="no demand"):
        distribute_proportional_capped(1.0, [0.0, 0.0], "Leaf nitrogen metabolic")


def test_zero_supply_allocates_nothing():
    assert np.all(distribute_proportional_capped(0.0, [1.0, 2.0], "Leaf") == 0)
    assert np.all(distribute_proportional(0.0, [0.0, 0.0], "Leaf") == 0)
    assert np.all(distribute_in_rank_order(0.0, [1.0, 2.0], "Leaf") == 0)


def test_storage_allocation_is_proportional():
    allocations = distribute_proportional(3.0, [1.0, 2.0], "Leaf dry matter storage")
    assert allocations == pytest.approx([1.0, 2.0])


def test_storage_allocation_above_capacity_is_flagged(caplog):
    with caplog.at_level(logging.WARNING, logger="leafcohorts.allocation"):
        allocations = distribute_proportional(6.0, [1.0, 2.0], "Leaf dry matter storage")
    assert allocations == pytest.approx([2.0, 4.0])
    assert "exceeds total sink capacity" in caplog.text


def test_storage_allocation_without_sink_raises():
    with pytest.raises(ConservationError, match="no sink capacity"):
        distribute_proportional(1.0, [0.0, 0.0], "Leaf nitrogen storage")


def test_retranslocation_exhaustion():
    amounts = distribute_in_rank_order(2.0, [1.0, 1.0, 1.0], "Leaf dry matter retranslocation")
    assert amounts == pytest.approx([1.0, 1.0, 0.0])


def test_retranslocation_over_request_raises_with_remainder():
    with pytest.raises(ConservationError, match="Leaf dry matter retranslocation: 2.0 left over"):
        distribute_in_rank_order(5.0, [1.0, 1.0, 1.0], "Leaf dry matter retranslocation")


def test_rank_order_takes_from_oldest_first():
    amounts = distribute_in_rank_order(1.5, [0.5, 2.0, 2.0], "Leaf nitrogen reallocation")
    assert amounts == pytest.approx([0.5, 1.0, 0.0])


def test_negative_request_is_invalid():
    with pytest.raises(InvalidInputError):
        distribute_in_rank_order(-1.0, [1.0], "Leaf nitrogen reallocation")
