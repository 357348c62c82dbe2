import attrs

from polyflood.types import GradientMethod, TransportMethod

__all__ = ["Config"]


@attrs.frozen
class Config:
    """Transport solver configuration and parameters."""

    tolerance: float = attrs.field(
        default=1e-9,
        validator=attrs.validators.and_(
            attrs.validators.gt(0.0), attrs.validators.le(1e-2)
        ),
    )
    """
    Convergence tolerance (default is 1e-9).

    Used as the root-finder tolerance of the bracketing strategy and as the
    bound on the largest saturation/concentration change between two passes
    over a cyclic group of cells.
    """
    max_iterations: int = attrs.field(default=100, validator=attrs.validators.ge(1))
    """
    Maximum number of iterations for bracketing root solves, and maximum
    number of passes over a cyclic group of cells.

    A cyclic group that has not converged after this many passes fails the
    transport step.
    """
    method: TransportMethod = attrs.field(
        default="splitting",
        validator=attrs.validators.in_(("bracketing", "splitting")),
    )
    """Single-cell strategy ('bracketing', 'splitting')."""
    gradient_method: GradientMethod = attrs.field(
        default="analytic",
        validator=attrs.validators.in_(("analytic", "finite_difference")),
    )
    """
    How the splitting strategy computes residual gradients.

    'analytic' differentiates through the viscosity mixing rule exactly.
    'finite_difference' uses one-sided differences with `finite_difference_step`,
    which is cheaper to write but less accurate.
    """
    finite_difference_step: float = attrs.field(
        default=1e-5, validator=attrs.validators.gt(0.0)
    )
    """Step used by one-sided finite difference gradients."""
    max_splitting_iterations: int = attrs.field(
        default=20, validator=attrs.validators.ge(0)
    )
    """
    Maximum number of alternating solves in the splitting strategy.

    When exhausted, the cell is re-solved from scratch with the bracketing strategy.
    A cap of 0 skips splitting and always solves with bracketing.
    """
    splitting_tolerance: float = attrs.field(
        default=1e-7, validator=attrs.validators.gt(0.0)
    )
    """Residual tolerance of the splitting strategy."""
    max_line_search_iterations: int = attrs.field(
        default=20, validator=attrs.validators.ge(1)
    )
    """Iteration cap of each 1D solve along a splitting search path."""
