"""
Parameter response functions: Includes simple callables used where a cohort parameter depends on another model variable (e.g. apex age, cover above a cohort)
"""

import numpy as np
from attrs import define, field
from scipy.interpolate import interp1d

@define
class Constant:
    """
    Returns the same value regardless of the input
    """
    value: float = field(default=1.0)

    def __call__(self, x=None):
        return self.value


@define
class PowerFunction:
    """
    Raises the input to the power of the exponent, scaled by a coefficient i.e. y = coefficient * x**exponent
    """
    coefficient: float = field(default=1.0)
    exponent: float = field(default=1.0)

    def __call__(self, x):
        return self.coefficient * np.power(x, self.exponent)


@define
class LinearInterpolation:
    """
    Piecewise linear response defined by x,y pairs. Values outside the x range are held at the end values.
    """
    x: list = field(default=[0.0, 1.0])
    y: list = field(default=[0.0, 1.0])
    _interpolator: object = field(init=False, default=None)

    def __attrs_post_init__(self):
        if len(self.x) != len(self.y):
            raise ValueError(f"x and y must have the same length, but x has length {len(self.x)} while y has length {len(self.y)}")
        if len(self.x) < 2:
            raise ValueError("At least two x,y pairs are required for linear interpolation")
        if np.any(np.diff(self.x) <= 0):
            raise ValueError("x values must be strictly increasing")
        self._interpolator = interp1d(self.x, self.y, kind="linear", bounds_error=False, fill_value=(self.y[0], self.y[-1]))

    def __call__(self, x):
        return float(self._interpolator(x))
