import attrs
import pytest

from polyflood.errors import ComputationError
from polyflood.physics import PolymerFlowPhysics
from polyflood.polymer import LangmuirIsotherm, PolymerProperties, TabulatedCurve
from polyflood.properties import build_fluid_rock_properties
from polyflood.relperm import TwoPhaseRelPermTable

STEP = 1e-6


def central_difference(func, x):
    return (func(x + STEP) - func(x - STEP)) / (2.0 * STEP)


@pytest.mark.parametrize("saturation", [0.1, 0.4, 0.85])
@pytest.mark.parametrize("concentration", [0.05, 0.3, 0.9])
def test_fractional_flow_derivatives_match_central_differences(
    physics, saturation, concentration
):
    value, dfds, dfdc = physics.fractional_flow_with_derivatives(
        saturation, concentration, 0
    )

    assert value == pytest.approx(physics.fractional_flow(saturation, concentration, 0))
    assert dfds == pytest.approx(
        central_difference(lambda s: physics.fractional_flow(s, concentration, 0), saturation),
        rel=1e-5,
    )
    assert dfdc == pytest.approx(
        central_difference(lambda c: physics.fractional_flow(saturation, c, 0), concentration),
        rel=1e-5,
    )


@pytest.mark.parametrize("concentration", [0.05, 0.3, 0.9])
def test_polymer_retention_factor_derivative_matches_central_difference(
    physics, concentration
):
    value, derivative = physics.polymer_retention_factor_with_derivative(concentration)

    assert value == pytest.approx(physics.polymer_retention_factor(concentration))
    assert derivative == pytest.approx(
        central_difference(physics.polymer_retention_factor, concentration), rel=1e-5
    )


def test_polymer_slows_down_water(physics):
    without_polymer = physics.fractional_flow(0.5, 0.0, 0)
    with_polymer = physics.fractional_flow(0.5, 0.8, 0)

    assert 0.0 < with_polymer < without_polymer < 1.0
    assert physics.fractional_flow(0.0, 0.5, 0) == 0.0
    assert physics.fractional_flow(1.0, 0.5, 0) == 1.0


def test_polymer_retention_factor_limits(physics, polymer):
    assert physics.polymer_retention_factor(0.0) == 0.0
    # Fully loaded solution is transported at its own concentration.
    assert physics.polymer_retention_factor(polymer.c_max_limit) == pytest.approx(
        polymer.c_max_limit
    )


def test_adsorption_is_irreversible(physics, polymer):
    historical_maximum = 0.6

    assert physics.adsorption(0.2, historical_maximum) == pytest.approx(
        polymer.adsorption(historical_maximum)
    )
    assert physics.adsorption(0.8, historical_maximum) == pytest.approx(
        polymer.adsorption(0.8)
    )
    assert physics.adsorption_with_derivative(0.2, historical_maximum)[1] == 0.0
    assert physics.adsorption_with_derivative(0.8, historical_maximum)[1] > 0.0


def test_full_mixing_uses_mixture_viscosity(make_properties, polymer):
    mixed = PolymerFlowPhysics(
        properties=make_properties(1), polymer=attrs.evolve(polymer, omega=1.0)
    )
    concentration = 0.4
    mixture_viscosity = polymer.viscosity_multiplier(concentration) * 1.0
    krw, kro = mixed.properties.relperm(0.5, 0)
    expected = (krw / mixture_viscosity) / (krw / mixture_viscosity + kro / 5.0)

    assert mixed.fractional_flow(0.5, concentration, 0) == pytest.approx(expected)


def test_vanishing_total_mobility_raises():
    table = TwoPhaseRelPermTable(
        water_saturation=[0.0, 0.2, 0.8, 1.0],
        water_relative_permeability=[0.0, 0.0, 0.0, 1.0],
        oil_relative_permeability=[1.0, 0.0, 0.0, 0.0],
    )
    physics = PolymerFlowPhysics(
        properties=build_fluid_rock_properties(1, 1.0, 5.0, table),
        polymer=PolymerProperties(
            c_max_limit=1.0,
            omega=0.5,
            rhor=0.0,
            dps=0.0,
            viscosity_multiplier_curve=TabulatedCurve([0.0, 1.0], [1.0, 3.0]),
            adsorption_curve=LangmuirIsotherm(a=0.0),
        ),
    )

    with pytest.raises(ComputationError):
        physics.fractional_flow(0.5, 0.2, 0)
    with pytest.raises(ComputationError):
        physics.fractional_flow_with_derivatives(0.5, 0.2, 0)
