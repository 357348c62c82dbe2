"""
Reordering transport of water saturation and polymer concentration.

For a fixed total Darcy flux field, every time step solves the implicit
Euler discretization of

    phi * dS/dt + div(v * f(S, c)) = q_w
    phi * d((S - dps) * c)/dt + rhor * (1 - phi) * d(ads(cmax))/dt
        + div(v * f(S, c) * mc(c)) = q_w * mc(c_in)

one cell (or one cyclic group of cells) at a time, in upwind order.
"""

import functools
import logging
import typing

import attrs
import numpy as np
import numpy.typing as npt

from polyflood.config import Config
from polyflood.errors import ConvergenceError, PolyfloodError, ValidationError
from polyflood.grids import Grid
from polyflood.physics import PolymerFlowPhysics
from polyflood.polymer import PolymerProperties
from polyflood.properties import FluidRockProperties
from polyflood.reorder import reorder_and_transport
from polyflood.transport.bracketing import CellSolution
from polyflood.transport.cells import solve_cell
from polyflood.transport.flux import FluxContext, build_flux_context
from polyflood.types import CellIndices


logger = logging.getLogger(__name__)

__all__ = [
    "TransportStep",
    "TransportReport",
    "PolymerTransportModel",
    "compute_polymer_mass",
    "compute_water_volume",
]


@attrs.define
class TransportStep:
    """Inputs and working state of one transport step."""

    darcyflux: npt.NDArray[np.floating]
    source: npt.NDArray[np.floating]
    dt: float
    inflow_mc: float
    """Polymer transport factor of the injected solution."""
    saturation: npt.NDArray[np.floating]
    concentration: npt.NDArray[np.floating]
    cmax: npt.NDArray[np.floating]
    fractional_flow: npt.NDArray[np.floating]
    """Latest water fractional flow of every cell, read as upstream value by its neighbours."""
    mc: npt.NDArray[np.floating]
    """Latest polymer transport factor of every cell, read as upstream value by its neighbours."""
    single_cell_solves: int = 0
    group_passes: int = 0
    splitting_fallbacks: int = 0


@attrs.frozen(slots=True)
class TransportReport:
    """Summary of a transport step."""

    single_cell_solves: int
    """Number of cells solved on their own."""
    cell_groups: int
    """Number of cyclic groups of cells solved together."""
    largest_group: int
    """Size of the largest cyclic group, 0 if there were none."""
    group_passes: int
    """Total number of Gauss-Seidel passes over cyclic groups."""
    splitting_fallbacks: int
    """Number of cell solves where splitting failed and bracketing was used instead."""


def _check_cell_array(name: str, array: typing.Any, number_of_cells: int) -> None:
    if not isinstance(array, np.ndarray) or not np.issubdtype(
        array.dtype, np.floating
    ):
        raise ValidationError(f"{name} must be a floating point numpy array.")
    if array.shape != (number_of_cells,):
        raise ValidationError(
            f"{name} must have shape ({number_of_cells},), got {array.shape}."
        )


class PolymerTransportModel:
    """
    Implicit transport of water saturation and polymer concentration
    for a two-phase (water, oil) system, solved cell by cell in upwind order.
    """

    def __init__(
        self,
        grid: Grid,
        porosity: npt.ArrayLike,
        porevolume: npt.ArrayLike,
        properties: FluidRockProperties,
        polymer: PolymerProperties,
        config: typing.Optional[Config] = None,
    ) -> None:
        """
        :param grid: Grid topology.
        :param porosity: Porosity of every cell, in (0, 1].
        :param porevolume: Pore volume of every cell, positive.
        :param properties: Fluid and rock-fluid properties. Must describe exactly two phases.
        :param polymer: Polymer properties.
        :param config: Solver configuration. Defaults to `Config()`.
        """
        if properties.num_phases != 2:
            raise ValidationError(
                f"Polymer transport requires a two-phase system, got {properties.num_phases} phases."
            )
        number_of_cells = grid.number_of_cells
        if properties.number_of_cells != number_of_cells:
            raise ValidationError(
                f"Properties describe {properties.number_of_cells} cells, the grid has {number_of_cells}."
            )
        porosity = np.asarray(porosity, dtype=np.float64)
        porevolume = np.asarray(porevolume, dtype=np.float64)
        _check_cell_array("porosity", porosity, number_of_cells)
        _check_cell_array("porevolume", porevolume, number_of_cells)
        if np.any(porosity <= 0.0) or np.any(porosity > 1.0):
            raise ValidationError("Porosity must lie in (0, 1].")
        if np.any(porevolume <= 0.0):
            raise ValidationError("Pore volumes must be positive.")

        self.grid = grid
        self.porosity = porosity
        self.porevolume = porevolume
        self.physics = PolymerFlowPhysics(properties=properties, polymer=polymer)
        self.config = config or Config()

    def solve(
        self,
        darcyflux: npt.ArrayLike,
        source: npt.ArrayLike,
        dt: float,
        inflow_c: float,
        saturation: npt.NDArray[np.floating],
        concentration: npt.NDArray[np.floating],
        cmax: npt.NDArray[np.floating],
    ) -> TransportReport:
        """
        Advances saturation and polymer concentration over one time step.

        `saturation`, `concentration` and `cmax` hold the state at the start of the
        step and are overwritten with the state at its end.

        :param darcyflux: Total Darcy flux per face, positive from `face_cells[f, 0]` to `face_cells[f, 1]`.
        :param source: Volumetric source per cell, positive for injection, negative for production.
        :param dt: Time step size.
        :param inflow_c: Polymer concentration of injected water.
        :param saturation: Water saturation per cell, updated in place.
        :param concentration: Polymer concentration per cell, updated in place.
        :param cmax: Historical maximum concentration per cell, updated in place.
        :return: `TransportReport`
        :raises SolverError: If a cyclic group of cells or a cell solve fails.
        :raises ComputationError: If a cell solve reaches a degenerate state.
            In both cases `saturation`, `concentration` and `cmax` are restored to their state at
            the start of the step before the error propagates.
        """
        grid = self.grid
        number_of_cells = grid.number_of_cells
        darcyflux = np.asarray(darcyflux, dtype=np.float64)
        source = np.asarray(source, dtype=np.float64)
        if darcyflux.shape != (grid.number_of_faces,):
            raise ValidationError(
                f"darcyflux must have shape ({grid.number_of_faces},), got {darcyflux.shape}."
            )
        _check_cell_array("source", source, number_of_cells)
        _check_cell_array("saturation", saturation, number_of_cells)
        _check_cell_array("concentration", concentration, number_of_cells)
        _check_cell_array("cmax", cmax, number_of_cells)
        if dt <= 0.0:
            raise ValidationError(f"Time step size must be positive, got {dt}.")
        if inflow_c < 0.0:
            raise ValidationError(
                f"Inflow concentration cannot be negative, got {inflow_c}."
            )

        physics = self.physics
        step = TransportStep(
            darcyflux=darcyflux,
            source=source,
            dt=float(dt),
            inflow_mc=physics.polymer_retention_factor(float(inflow_c)),
            saturation=saturation,
            concentration=concentration,
            cmax=cmax,
            fractional_flow=np.empty(number_of_cells, dtype=np.float64),
            mc=np.empty(number_of_cells, dtype=np.float64),
        )
        for cell in range(number_of_cells):
            self._refresh_cell_caches(cell, step)

        initial_state = saturation.copy(), concentration.copy(), cmax.copy()
        try:
            order = reorder_and_transport(
                grid,
                darcyflux,
                functools.partial(self.solve_single_cell, step=step),
                functools.partial(self.solve_multi_cell, step=step),
            )
        except PolyfloodError:
            saturation[...], concentration[...], cmax[...] = initial_state
            logger.error(
                f"Transport step of {dt} failed, state restored to the start of the step"
            )
            raise
        group_sizes = [component.size for component in order if component.size > 1]
        report = TransportReport(
            single_cell_solves=step.single_cell_solves,
            cell_groups=len(group_sizes),
            largest_group=max(group_sizes, default=0),
            group_passes=step.group_passes,
            splitting_fallbacks=step.splitting_fallbacks,
        )
        logger.info(
            f"Transport step of {dt} solved over {number_of_cells} cells: "
            f"{report.single_cell_solves} single cells, {report.cell_groups} cyclic groups "
            f"(largest {report.largest_group}), {report.splitting_fallbacks} splitting fallbacks"
        )
        return report

    def build_flux_context(self, cell: int, step: TransportStep) -> FluxContext:
        """Flux context of a cell from the current state of the step."""
        return build_flux_context(
            cell,
            self.grid,
            darcyflux=step.darcyflux,
            source=step.source,
            dt=step.dt,
            inflow_mc=step.inflow_mc,
            porevolume=self.porevolume,
            porosity=self.porosity,
            saturation=step.saturation,
            concentration=step.concentration,
            cmax=step.cmax,
            fractional_flow=step.fractional_flow,
            mc=step.mc,
        )

    def _refresh_cell_caches(self, cell: int, step: TransportStep) -> None:
        saturation = float(step.saturation[cell])
        concentration = float(step.concentration[cell])
        step.fractional_flow[cell] = self.physics.fractional_flow(
            saturation, concentration, cell
        )
        step.mc[cell] = self.physics.polymer_retention_factor(concentration)

    def _solve_cell(self, cell: int, step: TransportStep) -> CellSolution:
        context = self.build_flux_context(cell, step)
        solution = solve_cell(context, self.physics, self.config)
        if solution.fell_back:
            step.splitting_fallbacks += 1

        step.saturation[cell] = solution.saturation
        step.concentration[cell] = solution.concentration
        step.cmax[cell] = max(float(step.cmax[cell]), solution.concentration)
        self._refresh_cell_caches(cell, step)
        return solution

    def solve_single_cell(self, cell: int, step: TransportStep) -> None:
        """
        Solves one cell whose upstream neighbours are final for this step.

        :param cell: Cell index.
        :param step: Working state of the step.
        """
        self._solve_cell(cell, step)
        step.single_cell_solves += 1

    def solve_multi_cell(self, cells: CellIndices, step: TransportStep) -> None:
        """
        Solves a cyclic group of cells by Gauss-Seidel passes.

        Every pass solves each cell of the group again from its start-of-step state,
        using the latest values of the other cells. Passes stop when no saturation or
        concentration in the group changes by more than `config.tolerance`.

        :param cells: Cells of the group, in solve order.
        :param step: Working state of the step.
        :raises ConvergenceError: If the group has not converged after
            `config.max_iterations` passes. The group is restored first.
        """
        cells = [int(cell) for cell in cells]
        snapshot = {
            cell: (
                float(step.saturation[cell]),
                float(step.concentration[cell]),
                float(step.cmax[cell]),
            )
            for cell in cells
        }
        tolerance = self.config.tolerance
        max_passes = self.config.max_iterations

        try:
            for passes in range(1, max_passes + 1):
                max_saturation_change = 0.0
                max_concentration_change = 0.0
                for cell in cells:
                    previous_saturation = float(step.saturation[cell])
                    previous_concentration = float(step.concentration[cell])
                    (
                        step.saturation[cell],
                        step.concentration[cell],
                        step.cmax[cell],
                    ) = snapshot[cell]
                    solution = self._solve_cell(cell, step)
                    max_saturation_change = max(
                        max_saturation_change,
                        abs(solution.saturation - previous_saturation),
                    )
                    max_concentration_change = max(
                        max_concentration_change,
                        abs(solution.concentration - previous_concentration),
                    )
                step.group_passes += 1
                logger.debug(
                    f"Pass {passes} over {len(cells)}-cell group: max |ds|={max_saturation_change:.3e}, "
                    f"max |dc|={max_concentration_change:.3e}"
                )
                if (
                    max_saturation_change <= tolerance
                    and max_concentration_change <= tolerance
                ):
                    logger.info(f"Solved {len(cells)}-cell group in {passes} passes")
                    return
        except PolyfloodError:
            self._restore_group(snapshot, step)
            raise

        self._restore_group(snapshot, step)
        logger.error(
            f"Cyclic group of {len(cells)} cells (first cell {cells[0]}) did not converge "
            f"in {max_passes} passes"
        )
        raise ConvergenceError(
            f"Cyclic group of {len(cells)} cells did not converge in {max_passes} passes: "
            f"max |ds|={max_saturation_change:.3e}, max |dc|={max_concentration_change:.3e}"
        )

    def _restore_group(
        self,
        snapshot: typing.Dict[int, typing.Tuple[float, float, float]],
        step: TransportStep,
    ) -> None:
        for cell, (saturation, concentration, cmax) in snapshot.items():
            step.saturation[cell] = saturation
            step.concentration[cell] = concentration
            step.cmax[cell] = cmax
            self._refresh_cell_caches(cell, step)


def compute_polymer_mass(
    saturation: npt.ArrayLike,
    concentration: npt.ArrayLike,
    cmax: npt.ArrayLike,
    porevolume: npt.ArrayLike,
    porosity: npt.ArrayLike,
    polymer: PolymerProperties,
) -> float:
    """
    Total polymer in place, dissolved in the accessible water plus adsorbed on the rock.

    :return: `sum(pv * ((s - dps) * c + rhor * (1 - phi) / phi * ads(cmax)))`
    """
    saturation = np.asarray(saturation, dtype=np.float64)
    concentration = np.asarray(concentration, dtype=np.float64)
    porevolume = np.asarray(porevolume, dtype=np.float64)
    porosity = np.asarray(porosity, dtype=np.float64)
    adsorbed = np.array(
        [polymer.adsorption(float(value)) for value in np.asarray(cmax).ravel()],
        dtype=np.float64,
    )
    dissolved = (saturation - polymer.dps) * concentration
    retained = polymer.rhor * (1.0 - porosity) / porosity * adsorbed
    return float(np.sum(porevolume * (dissolved + retained)))


def compute_water_volume(
    saturation: npt.ArrayLike, porevolume: npt.ArrayLike
) -> float:
    """Total water volume in place."""
    return float(
        np.sum(
            np.asarray(saturation, dtype=np.float64)
            * np.asarray(porevolume, dtype=np.float64)
        )
    )
