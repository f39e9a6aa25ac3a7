import numpy as np
import pytest

from leafcohorts.utils import (
    ConservationError, InvalidInputError, LeafModelError, NumericalDegeneracyError, SequencingError,
    check_finite, check_fraction, divide, mass_balance_closes,
)


def test_error_taxonomy():
    for error in (ConservationError, InvalidInputError, NumericalDegeneracyError, SequencingError):
        assert issubclass(error, LeafModelError)
    assert issubclass(InvalidInputError, ValueError)
    assert issubclass(NumericalDegeneracyError, ArithmeticError)


def test_divide():
    assert divide(1.0, 4.0) == 0.25
    assert divide(1.0, 0.0) == 0.0
    assert divide(1.0, 0.0, default=-1.0) == -1.0


def test_check_finite():
    assert check_finite(2.0, "value") == 2.0
    with pytest.raises(NumericalDegeneracyError, match="Leaf area"):
        check_finite(np.nan, "Leaf area")


def test_check_fraction():
    assert check_fraction(0.5, "Frost fraction") == 0.5
    with pytest.raises(InvalidInputError, match="Frost fraction"):
        check_fraction(-0.1, "Frost fraction")
    with pytest.raises(InvalidInputError):
        check_fraction(np.nan, "Frost fraction")


def test_mass_balance_tolerance():
    assert mass_balance_closes(100.0 + 1e-7, 100.0)
    assert not mass_balance_closes(100.0 + 1e-5, 100.0)
    assert mass_balance_closes(1e-9, 0.0)
    assert not mass_balance_closes(1e-7, 0.0)
