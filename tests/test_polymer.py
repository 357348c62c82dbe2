import pytest

from polyflood.polymer import (
    LangmuirIsotherm,
    PolymerProperties,
    PolynomialViscosityMultiplier,
    TabulatedCurve,
)


def test_tabulated_curve_interpolates_and_clamps():
    curve = TabulatedCurve(concentrations=[0.0, 1.0, 3.0], values=[1.0, 3.0, 4.0])

    assert curve(0.5) == pytest.approx(2.0)
    assert curve(2.0) == pytest.approx(3.5)
    assert curve(5.0) == pytest.approx(4.0)
    assert curve.with_derivative(0.5) == pytest.approx((2.0, 2.0))
    assert curve.with_derivative(2.0) == pytest.approx((3.5, 0.5))
    assert curve.with_derivative(5.0) == pytest.approx((4.0, 0.0))


@pytest.mark.parametrize(
    "concentrations, values",
    [
        ([0.0, 1.0], [1.0]),
        ([0.0], [1.0]),
        ([0.0, 1.0, 1.0], [1.0, 2.0, 3.0]),
    ],
)
def test_tabulated_curve_rejects_malformed_tables(concentrations, values):
    with pytest.raises(ValueError):
        TabulatedCurve(concentrations=concentrations, values=values)


def test_polynomial_viscosity_multiplier():
    multiplier = PolynomialViscosityMultiplier(a1=2.0, a2=1.0, a3=0.5)

    assert multiplier(0.0) == 1.0
    assert multiplier(2.0) == pytest.approx(1.0 + 4.0 + 4.0 + 4.0)
    assert multiplier.with_derivative(2.0)[1] == pytest.approx(2.0 + 4.0 + 6.0)


def test_langmuir_isotherm_saturates():
    isotherm = LangmuirIsotherm(a=0.02, b=5.0)

    assert isotherm(0.0) == 0.0
    assert isotherm(1.0) == pytest.approx(0.02 / 6.0)
    assert isotherm.with_derivative(0.0) == pytest.approx((0.0, 0.02))
    assert isotherm(1000.0) == pytest.approx(0.02 / 5.0, rel=1e-3)


@pytest.mark.parametrize(
    "overrides",
    [
        {"c_max_limit": 0.0},
        {"omega": 1.5},
        {"omega": -0.1},
        {"rhor": -1.0},
        {"dps": 1.0},
    ],
)
def test_polymer_properties_validation(overrides):
    values = dict(
        c_max_limit=1.0,
        omega=0.5,
        rhor=0.0,
        dps=0.0,
        viscosity_multiplier_curve=PolynomialViscosityMultiplier(a1=1.0),
        adsorption_curve=LangmuirIsotherm(a=0.01),
    )
    values.update(overrides)

    with pytest.raises(ValueError):
        PolymerProperties(**values)


def test_polymer_properties_delegate_to_curves(polymer):
    assert polymer.viscosity_multiplier(0.5) == pytest.approx(2.25)
    assert polymer.viscosity_multiplier_with_derivative(0.5) == pytest.approx((2.25, 3.0))
    assert polymer.adsorption(0.2) == pytest.approx(0.004 / 2.0)
