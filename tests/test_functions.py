import pytest

from leafcohorts.functions import Constant, PowerFunction, LinearInterpolation


def test_constant():
    f = Constant(2.5)
    assert f() == 2.5
    assert f(100.0) == 2.5


def test_power_function():
    f = PowerFunction(coefficient=2.0, exponent=0.5)
    assert f(4.0) == pytest.approx(4.0)
    assert PowerFunction()(3.0) == pytest.approx(3.0)


def test_linear_interpolation_within_range():
    f = LinearInterpolation(x=[0.0, 10.0, 20.0], y=[0.0, 1.0, 3.0])
    assert f(5.0) == pytest.approx(0.5)
    assert f(15.0) == pytest.approx(2.0)
    assert isinstance(f(15.0), float)


def test_linear_interpolation_holds_end_values():
    f = LinearInterpolation(x=[0.0, 0.95, 1.0], y=[0.0, 0.0, 0.02])
    assert f(-1.0) == 0.0
    assert f(2.0) == pytest.approx(0.02)
    assert f(0.975) == pytest.approx(0.01)


def test_linear_interpolation_validation():
    with pytest.raises(ValueError, match="same length"):
        LinearInterpolation(x=[0.0, 1.0], y=[0.0])
    with pytest.raises(ValueError, match="At least two"):
        LinearInterpolation(x=[0.0], y=[0.0])
    with pytest.raises(ValueError, match="strictly increasing"):
        LinearInterpolation(x=[0.0, 0.0], y=[0.0, 1.0])
