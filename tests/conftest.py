import typing

import numpy as np
import pytest

from polyflood.config import Config
from polyflood.grids import Grid, build_cartesian_grid, build_grid
from polyflood.model import PolymerTransportModel
from polyflood.physics import PolymerFlowPhysics
from polyflood.polymer import (
    LangmuirIsotherm,
    PolymerProperties,
    PolynomialViscosityMultiplier,
)
from polyflood.properties import FluidRockProperties, build_fluid_rock_properties
from polyflood.relperm import BrooksCoreyTwoPhaseRelPermModel
from polyflood.transport.flux import FluxContext


@pytest.fixture
def polymer() -> PolymerProperties:
    return PolymerProperties(
        c_max_limit=1.0,
        omega=0.7,
        rhor=0.05,
        dps=0.05,
        viscosity_multiplier_curve=PolynomialViscosityMultiplier(a1=2.0, a2=1.0),
        adsorption_curve=LangmuirIsotherm(a=0.02, b=5.0),
    )


@pytest.fixture
def make_properties() -> typing.Callable[[int], FluidRockProperties]:
    def factory(number_of_cells: int) -> FluidRockProperties:
        return build_fluid_rock_properties(
            number_of_cells,
            water_viscosity=1.0,
            oil_viscosity=5.0,
            relative_permeability_model=BrooksCoreyTwoPhaseRelPermModel(),
        )

    return factory


@pytest.fixture
def physics(make_properties, polymer) -> PolymerFlowPhysics:
    return PolymerFlowPhysics(properties=make_properties(1), polymer=polymer)


@pytest.fixture
def make_context() -> typing.Callable[..., FluxContext]:
    def factory(**overrides: typing.Any) -> FluxContext:
        values = dict(
            cell=0,
            s0=0.3,
            c0=0.0,
            cmax0=0.0,
            influx=0.0,
            influx_polymer=0.0,
            outflux=0.0,
            dtpv=1.0,
            porosity=0.25,
        )
        values.update(overrides)
        return FluxContext(**values)

    return factory


@pytest.fixture
def injection_context(make_context, physics) -> FluxContext:
    """Cell receiving polymer solution at concentration 0.5 through one face."""
    flux = 0.4
    inflow_mc = physics.polymer_retention_factor(0.5)
    return make_context(
        s0=0.3,
        c0=0.1,
        cmax0=0.1,
        influx=-flux,
        influx_polymer=-flux * inflow_mc,
        outflux=flux,
    )


@pytest.fixture
def ring_grid() -> Grid:
    """Three cells connected in a closed loop, no boundary faces."""
    return build_grid(3, [(0, 1), (1, 2), (2, 0)])


@pytest.fixture
def chain_grid() -> Grid:
    return build_cartesian_grid(5)


@pytest.fixture
def make_model(make_properties, polymer) -> typing.Callable[..., PolymerTransportModel]:
    def factory(grid: Grid, config: typing.Optional[Config] = None) -> PolymerTransportModel:
        number_of_cells = grid.number_of_cells
        return PolymerTransportModel(
            grid,
            porosity=np.full(number_of_cells, 0.25),
            porevolume=np.full(number_of_cells, 2.0),
            properties=make_properties(number_of_cells),
            polymer=polymer,
            config=config,
        )

    return factory
