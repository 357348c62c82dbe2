"""
Splitting strategy for the single-cell polymer transport problem.

The two residuals are zeroed alternately, each by a robust 1D solve along a
piecewise linear path in the (s, c) plane:

1. The smaller residual is solved first, along the straight line toward a box
   corner chosen from the sign of the residual.
2. The other residual is then solved along the level set direction of the one
   just solved (orthogonal to its gradient), which keeps the solved equation
   approximately satisfied.
3. Step 2 repeats with the roles swapped. Each concentration solve shrinks the
   bounding box, using the sign of the concentration residual to rule out a corner.

If the residuals are not below tolerance after `max_splitting_iterations` solves,
or a path fails to bracket a root, the cell is solved again from scratch with
the bracketing strategy. A cap of 0 always solves with bracketing.
"""

import logging
import math
import typing

import attrs

from polyflood.config import Config
from polyflood.errors import BracketingError
from polyflood.physics import PolymerFlowPhysics
from polyflood.transport.bracketing import CellSolution, solve_cell_bracketing
from polyflood.transport.flux import FluxContext
from polyflood.transport.paths import (
    BoundingBox,
    SearchPath,
    corner_direction,
    level_set_direction,
)
from polyflood.transport.residuals import (
    Residual,
    compute_concentration_residual,
    compute_residual_gradient,
    compute_residuals,
    compute_saturation_residual,
    residual_norm,
)
from polyflood.transport.roots import find_root
from polyflood.types import Point


logger = logging.getLogger(__name__)

__all__ = ["solve_cell_splitting"]


@attrs.define
class _SplittingState:
    """Iterate of the splitting strategy."""

    point: Point
    residuals: typing.Tuple[float, float]
    gradient: Point
    """Gradient of the residual in `solved`, at `point`."""
    solved: Residual
    """Residual zeroed by the latest 1D solve."""
    box: BoundingBox
    iterations: int = 0


def _target_corner(residual: Residual, value: float, box: BoundingBox) -> Point:
    # R_s grows with s, R_c grows with both s and c.
    if residual is Residual.SATURATION:
        if value < 0.0:
            return box.corner(high_saturation=True, high_concentration=False)
        return box.corner(high_saturation=False, high_concentration=True)
    if value < 0.0:
        return box.corner(high_saturation=True, high_concentration=True)
    return box.corner(high_saturation=False, high_concentration=False)


def _solve_along(
    path: SearchPath,
    residual: Residual,
    start_value: float,
    context: FluxContext,
    physics: PolymerFlowPhysics,
    config: Config,
) -> Point:
    """Moves along a path to a zero of one residual."""
    if residual is Residual.SATURATION:
        evaluate_residual = compute_saturation_residual
    else:
        evaluate_residual = compute_concentration_residual

    def along_path(t: float) -> float:
        saturation, concentration = path.point_at(t)
        return evaluate_residual(saturation, concentration, context, physics)

    t_max = path.t_max
    exit_value = along_path(path.t_out)
    if (start_value < 0.0 and exit_value >= 0.0) or (
        start_value > 0.0 and exit_value <= 0.0
    ):
        t_max = path.t_out

    # Root located well below the residual tolerance, measured in (s, c) units.
    scale = max(math.hypot(*path.direction), 1.0)
    result = find_root(
        along_path,
        0.0,
        t_max,
        tolerance=config.splitting_tolerance,
        max_iterations=config.max_line_search_iterations,
        xtol=1e-3 * config.splitting_tolerance / scale,
    )
    if not result.converged:
        logger.debug(
            f"Line solve of {residual.name.lower()} residual in cell {context.cell} "
            f"did not reach tolerance in {result.iterations} iterations"
        )
    return path.point_at(result.root)


def _gradient_at(
    point: Point,
    residual: Residual,
    context: FluxContext,
    physics: PolymerFlowPhysics,
    config: Config,
) -> typing.Tuple[typing.Tuple[float, float], Point]:
    return compute_residual_gradient(
        point[0],
        point[1],
        context,
        physics,
        residual=residual,
        method=config.gradient_method,
        step=config.finite_difference_step,
    )


def _start(
    point: Point,
    residuals: typing.Tuple[float, float],
    box: BoundingBox,
    context: FluxContext,
    physics: PolymerFlowPhysics,
    config: Config,
) -> _SplittingState:
    """Solves the smaller residual along the line toward its corner."""
    first = (
        Residual.SATURATION
        if abs(residuals[0]) <= abs(residuals[1])
        else Residual.CONCENTRATION
    )
    value = residuals[first]
    if abs(value) > config.splitting_tolerance:
        corner = _target_corner(first, value, box)
        path = SearchPath.through(point, corner_direction(point, corner), corner, box)
        point = _solve_along(path, first, value, context, physics, config)

    residuals, gradient = _gradient_at(point, first, context, physics, config)
    return _SplittingState(
        point=point, residuals=residuals, gradient=gradient, solved=first, box=box
    )


def _advance(
    state: _SplittingState,
    context: FluxContext,
    physics: PolymerFlowPhysics,
    config: Config,
) -> None:
    """Solves the residual not solved last, along the level set of the one that was."""
    target = state.solved.other
    value = state.residuals[target]
    tolerance = config.splitting_tolerance
    if target is Residual.CONCENTRATION:
        # Assumes the curve R_s(s, c) = 0 is increasing.
        if value < -tolerance:
            state.box = state.box.with_lower(state.point)
        elif value > tolerance:
            state.box = state.box.with_upper(state.point)

    corner = _target_corner(target, value, state.box)
    path = SearchPath.through(
        state.point, level_set_direction(state.gradient), corner, state.box
    )
    state.point = _solve_along(path, target, value, context, physics, config)
    state.residuals, state.gradient = _gradient_at(
        state.point, target, context, physics, config
    )
    state.solved = target
    state.iterations += 1


def solve_cell_splitting(
    context: FluxContext,
    physics: PolymerFlowPhysics,
    config: Config,
) -> CellSolution:
    """
    Solves a cell with the splitting strategy, falling back to bracketing.

    :param context: Flux context of the cell.
    :param physics: Cell physics.
    :param config: Solver configuration.
    :return: `CellSolution`
    """
    if config.max_splitting_iterations == 0:
        logger.warning(
            f"Splitting is disabled for cell {context.cell} (iteration cap of 0), "
            "solving with bracketing instead"
        )
        solution = solve_cell_bracketing(context, physics, config)
        return attrs.evolve(solution, fell_back=True)

    smin, smax = physics.properties.saturation_range(context.cell)
    box = BoundingBox(lower=(smin, 0.0), upper=(smax, physics.polymer.c_max_limit))
    point = (context.s0, context.c0)
    residuals = compute_residuals(point[0], point[1], context, physics)
    tolerance = config.splitting_tolerance
    if residual_norm(residuals) <= tolerance:
        return CellSolution(
            saturation=point[0],
            concentration=point[1],
            iterations=0,
            method="splitting",
        )

    try:
        state = _start(point, residuals, box, context, physics, config)
        while (
            residual_norm(state.residuals) > tolerance
            and state.iterations < config.max_splitting_iterations
        ):
            _advance(state, context, physics, config)
    except BracketingError as exc:
        logger.warning(
            f"Splitting lost its bracket in cell {context.cell} ({exc}), "
            "solving with bracketing instead"
        )
    else:
        if residual_norm(state.residuals) <= tolerance:
            logger.debug(
                f"Cell {context.cell} solved by splitting in {state.iterations} iterations: "
                f"s={state.point[0]:.10g}, c={state.point[1]:.10g}"
            )
            return CellSolution(
                saturation=state.point[0],
                concentration=state.point[1],
                iterations=state.iterations,
                method="splitting",
            )
        logger.warning(
            f"Splitting did not converge in cell {context.cell} after "
            f"{state.iterations} iterations (residual {residual_norm(state.residuals):.3e}), "
            "solving with bracketing instead"
        )

    solution = solve_cell_bracketing(context, physics, config)
    return attrs.evolve(solution, fell_back=True)
