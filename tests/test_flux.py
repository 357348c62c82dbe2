import numpy as np
import pytest

from polyflood.grids import build_cartesian_grid
from polyflood.transport.flux import build_flux_context


@pytest.fixture
def state():
    return dict(
        porevolume=np.array([2.0, 4.0, 2.0]),
        porosity=np.array([0.2, 0.25, 0.3]),
        saturation=np.array([0.8, 0.5, 0.2]),
        concentration=np.array([0.6, 0.3, 0.0]),
        cmax=np.array([0.7, 0.3, 0.1]),
        fractional_flow=np.array([0.9, 0.5, 0.1]),
        mc=np.array([0.4, 0.2, 0.0]),
    )


def test_interior_cell_is_upwinded(state):
    grid = build_cartesian_grid(3)
    darcyflux = np.array([0.0, 1.5, 1.0, 0.0])

    context = build_flux_context(
        1,
        grid,
        darcyflux=darcyflux,
        source=np.array([0.0, -0.5, 0.0]),
        dt=2.0,
        inflow_mc=0.0,
        **state,
    )

    assert context.cell == 1
    assert (context.s0, context.c0, context.cmax0) == (0.5, 0.3, 0.3)
    assert context.influx == pytest.approx(-1.5 * 0.9)
    assert context.influx_polymer == pytest.approx(-1.5 * 0.9 * 0.4)
    # Production from the cell adds to the flux leaving it.
    assert context.outflux == pytest.approx(1.0 + 0.5)
    assert context.dtpv == pytest.approx(0.5)
    assert context.porosity == 0.25


def test_injection_source_carries_polymer(state):
    grid = build_cartesian_grid(3)

    context = build_flux_context(
        0,
        grid,
        darcyflux=np.array([0.0, 1.0, 1.0, 0.0]),
        source=np.array([1.0, 0.0, -1.0]),
        dt=1.0,
        inflow_mc=0.35,
        **state,
    )

    assert context.influx == pytest.approx(-1.0)
    assert context.influx_polymer == pytest.approx(-0.35)
    assert context.outflux == pytest.approx(1.0)


def test_boundary_faces_are_ignored(state):
    grid = build_cartesian_grid(3)

    context = build_flux_context(
        0,
        grid,
        darcyflux=np.array([5.0, -2.0, 0.0, 0.0]),
        source=np.zeros(3),
        dt=1.0,
        inflow_mc=0.0,
        **state,
    )

    assert context.influx == pytest.approx(-2.0 * 0.5)
    assert context.influx_polymer == pytest.approx(-2.0 * 0.5 * 0.2)
    assert context.outflux == 0.0
    assert context.influx <= 0.0 <= context.outflux
