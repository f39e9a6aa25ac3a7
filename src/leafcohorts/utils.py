"""
Utilities: Includes the exception taxonomy and small numeric helper functions shared by the leaf cohort model code
"""

import numpy as np

ALLOCATION_TOLERANCE = 1e-9    ## Absolute tolerance on leftover/over-allocated amounts during distribution (g m-2)
MASS_BALANCE_RTOL = 1e-8    ## Relative tolerance on the organ mass balance check after allocation (-)


class LeafModelError(Exception):
    """Base class for all unrecoverable leaf model errors."""
    pass


class ConservationError(LeafModelError):
    """Allocated mass or nitrogen could not be fully distributed, or the organ mass balance does not close."""
    pass


class InvalidInputError(LeafModelError, ValueError):
    """An input at the organ or cohort call boundary is out of range."""
    pass


class NumericalDegeneracyError(LeafModelError, ArithmeticError):
    """A computed area or biomass value is not a finite number."""
    pass


class SequencingError(LeafModelError):
    """A cohort event or mutation arrived out of the required order."""
    pass


def divide(numerator, denominator, default=0.0):
    """
    Divides two numbers, returning a default value when the denominator is zero.
    """
    if denominator == 0:
        return default
    return numerator / denominator



def check_finite(value, description):
    """
    Raises NumericalDegeneracyError if value is not a finite number.

    Parameters
    ----------
    value : float
        Value to check
    description : str
        Human readable description of what value is, used in the error message

    Returns
    -------
    value : float
    """
    if not np.isfinite(value):
        raise NumericalDegeneracyError(f"{description} is not a finite number (value={value})")
    return value


def check_fraction(value, name, upper=1.0):
    """Raises InvalidInputError unless 0 <= value <= upper."""
    if not np.isfinite(value) or value < 0 or value > upper:
        raise InvalidInputError(f"{name} must be within [0, {upper}], got {value}")
    return value


def mass_balance_closes(end, expected, rtol=MASS_BALANCE_RTOL):
    """
    Returns True if the ending mass equals the expected mass within a relative tolerance.
    The tolerance is relative to the larger of the expected mass and 1.
    """
    return abs(end - expected) <= rtol * max(1.0, abs(expected))
