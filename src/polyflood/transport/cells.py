from polyflood.config import Config
from polyflood.errors import ValidationError
from polyflood.physics import PolymerFlowPhysics
from polyflood.transport.bracketing import CellSolution, solve_cell_bracketing
from polyflood.transport.flux import FluxContext
from polyflood.transport.splitting import solve_cell_splitting


__all__ = ["solve_cell"]


def solve_cell(
    context: FluxContext,
    physics: PolymerFlowPhysics,
    config: Config,
) -> CellSolution:
    """
    Solves the coupled single-cell problem with the configured strategy.

    :param context: Flux context of the cell.
    :param physics: Cell physics.
    :param config: Solver configuration. `config.method` selects the strategy.
    :return: `CellSolution`
    """
    if config.method == "splitting":
        return solve_cell_splitting(context, physics, config)
    if config.method == "bracketing":
        return solve_cell_bracketing(context, physics, config)
    raise ValidationError(f"Unknown transport method {config.method!r}")
