"""Aggregation of face fluxes into per-cell influx/outflux terms."""

import attrs
import numpy as np
import numpy.typing as npt

from polyflood.grids import BOUNDARY, Grid


__all__ = ["FluxContext", "build_flux_context"]


@attrs.frozen(slots=True)
class FluxContext:
    """
    Everything the single-cell residuals need besides the unknowns `(s, c)`.

    Influxes are negative, outfluxes positive.
    """

    cell: int
    """Cell index."""
    s0: float
    """Water saturation at the start of the time step."""
    c0: float
    """Polymer concentration at the start of the time step."""
    cmax0: float
    """Historical maximum concentration at the start of the time step."""
    influx: float
    """sum_j min(v_ij, 0) * f(s_j, c_j), plus injected water."""
    influx_polymer: float
    """sum_j min(v_ij, 0) * f(s_j, c_j) * mc(c_j), plus injected polymer."""
    outflux: float
    """sum_j max(v_ij, 0), plus produced fluid."""
    dtpv: float
    """Time step size divided by the pore volume of the cell."""
    porosity: float
    """Porosity of the cell."""


def build_flux_context(
    cell: int,
    grid: Grid,
    darcyflux: npt.NDArray[np.floating],
    source: npt.NDArray[np.floating],
    dt: float,
    inflow_mc: float,
    porevolume: npt.NDArray[np.floating],
    porosity: npt.NDArray[np.floating],
    saturation: npt.NDArray[np.floating],
    concentration: npt.NDArray[np.floating],
    cmax: npt.NDArray[np.floating],
    fractional_flow: npt.NDArray[np.floating],
    mc: npt.NDArray[np.floating],
) -> FluxContext:
    """
    Builds the flux context of a cell by explicit upwinding.

    Fluxes leaving the cell over interior faces add to the outflux. Fluxes entering
    it add to the water and polymer influxes weighted by the upstream neighbour's
    current `fractional_flow` and `mc`. Boundary faces carry no transport.
    A positive source injects polymer solution at the inflow concentration, a
    negative source produces fluid from the cell.

    :param cell: Cell index.
    :param grid: Grid topology.
    :param darcyflux: Total Darcy flux per face, positive from `face_cells[f, 0]` to `face_cells[f, 1]`.
    :param source: Volumetric source per cell, positive for injection.
    :param dt: Time step size.
    :param inflow_mc: Polymer transport factor `mc` of the injected solution.
    :param porevolume: Pore volume per cell.
    :param porosity: Porosity per cell.
    :param saturation: Current water saturation per cell.
    :param concentration: Current polymer concentration per cell.
    :param cmax: Current historical maximum concentration per cell.
    :param fractional_flow: Latest water fractional flow per cell.
    :param mc: Latest polymer transport factor per cell.
    :return: `FluxContext` of the cell.
    """
    net_source = -float(source[cell])
    source_is_inflow = net_source < 0.0
    influx = net_source if source_is_inflow else 0.0
    influx_polymer = net_source * inflow_mc if source_is_inflow else 0.0
    outflux = 0.0 if source_is_inflow else net_source

    for face in grid.faces_of(cell):
        other, orientation = grid.neighbour_across(cell, face)
        if other == BOUNDARY:
            continue
        flux = orientation * float(darcyflux[face])
        if flux < 0.0:
            influx += flux * fractional_flow[other]
            influx_polymer += flux * fractional_flow[other] * mc[other]
        else:
            outflux += flux

    return FluxContext(
        cell=cell,
        s0=float(saturation[cell]),
        c0=float(concentration[cell]),
        cmax0=float(cmax[cell]),
        influx=float(influx),
        influx_polymer=float(influx_polymer),
        outflux=float(outflux),
        dtpv=float(dt / porevolume[cell]),
        porosity=float(porosity[cell]),
    )
