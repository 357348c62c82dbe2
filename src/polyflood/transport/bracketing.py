"""
Nested bracketing strategy for the single-cell polymer transport problem.

The saturation residual is solved for `s` in the cell's saturation range at fixed
`c`, which turns the concentration residual into a scalar function of `c` alone.
That function is solved on `[0, c_max_limit]`. Both solves are derivative free.
"""

import logging

import attrs

from polyflood.config import Config
from polyflood.errors import ConvergenceError
from polyflood.physics import PolymerFlowPhysics
from polyflood.transport.flux import FluxContext
from polyflood.transport.residuals import (
    compute_concentration_residual,
    compute_saturation_residual,
)
from polyflood.transport.roots import RootResult, find_root


logger = logging.getLogger(__name__)

__all__ = ["CellSolution", "solve_saturation", "solve_cell_bracketing"]


@attrs.frozen(slots=True)
class CellSolution:
    """Solution of the single-cell transport problem."""

    saturation: float
    concentration: float
    iterations: int
    """Outer iterations of the strategy that produced the solution."""
    method: str
    """Strategy that produced the solution."""
    fell_back: bool = False
    """Whether the splitting strategy failed and bracketing produced the solution."""


def _require_convergence(result: RootResult, what: str, context: FluxContext) -> float:
    if not result.converged:
        raise ConvergenceError(
            f"Root solve for {what} in cell {context.cell} did not converge "
            f"after {result.iterations} iterations."
        )
    return result.root


def solve_saturation(
    concentration: float,
    context: FluxContext,
    physics: PolymerFlowPhysics,
    config: Config,
) -> float:
    """
    Solves `R_s(s; c) = 0` for `s` over the saturation range of the cell.

    :param concentration: Fixed polymer concentration.
    :return: Water saturation.
    """
    smin, smax = physics.properties.saturation_range(context.cell)
    result = find_root(
        lambda s: compute_saturation_residual(s, concentration, context, physics),
        smin,
        smax,
        tolerance=config.tolerance,
        max_iterations=config.max_iterations,
    )
    return _require_convergence(result, "saturation", context)


def solve_cell_bracketing(
    context: FluxContext,
    physics: PolymerFlowPhysics,
    config: Config,
) -> CellSolution:
    """
    Solves a cell with nested bracketing root solves.

    Each evaluation of the outer concentration residual performs one full inner
    saturation solve.

    :param context: Flux context of the cell.
    :param physics: Cell physics.
    :param config: Solver configuration.
    :return: `CellSolution`
    :raises BracketingError: If a residual does not change sign over its interval.
    :raises ConvergenceError: If a root solve exhausts `config.max_iterations`.
    """

    def concentration_residual(concentration: float) -> float:
        saturation = solve_saturation(concentration, context, physics, config)
        return compute_concentration_residual(
            saturation, concentration, context, physics
        )

    result = find_root(
        concentration_residual,
        0.0,
        physics.polymer.c_max_limit,
        tolerance=config.tolerance,
        max_iterations=config.max_iterations,
    )
    concentration = _require_convergence(result, "concentration", context)
    saturation = solve_saturation(concentration, context, physics, config)
    logger.debug(
        f"Cell {context.cell} solved by bracketing in {result.iterations} iterations: "
        f"s={saturation:.10g}, c={concentration:.10g}"
    )
    return CellSolution(
        saturation=saturation,
        concentration=concentration,
        iterations=result.iterations,
        method="bracketing",
    )
