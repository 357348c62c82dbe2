import logging
import typing

import attrs
from scipy.optimize import brentq

from polyflood.errors import BracketingError


logger = logging.getLogger(__name__)

__all__ = ["RootResult", "find_root"]


@attrs.frozen(slots=True)
class RootResult:
    """Result of a 1D root solve."""

    root: float
    """Root estimate."""
    iterations: int
    """Number of iterations used by the root-finder."""
    converged: bool
    """Whether the root-finder met its tolerance within the iteration cap."""


def find_root(
    func: typing.Callable[[float], float],
    lower: float,
    upper: float,
    tolerance: float,
    max_iterations: int,
    xtol: typing.Optional[float] = None,
) -> RootResult:
    """
    Finds a root of a continuous function on a bracketing interval.

    An endpoint is accepted directly if its function value is within `tolerance`
    of zero. Otherwise the interval must bracket a sign change and the root is
    located with Brent's method (no derivatives needed).

    :param func: Scalar function of one variable.
    :param lower: Lower end of the interval.
    :param upper: Upper end of the interval.
    :param tolerance: Absolute tolerance, on the function value at the endpoints
        and on the root location inside the interval.
    :param max_iterations: Iteration cap of the root-finder.
    :param xtol: Absolute tolerance on the root location, if it should differ
        from `tolerance`.
    :return: `RootResult`
    :raises BracketingError: If `func(lower)` and `func(upper)` have the same sign.
    """
    lower_value = func(lower)
    if abs(lower_value) <= tolerance:
        return RootResult(root=lower, iterations=0, converged=True)
    upper_value = func(upper)
    if abs(upper_value) <= tolerance:
        return RootResult(root=upper, iterations=0, converged=True)
    if lower_value * upper_value > 0.0:
        raise BracketingError(
            f"Interval [{lower}, {upper}] does not bracket a root: "
            f"f(lower)={lower_value:.6e}, f(upper)={upper_value:.6e}"
        )

    root, result = brentq(
        func,
        lower,
        upper,
        xtol=tolerance if xtol is None else xtol,
        maxiter=max_iterations,
        full_output=True,
        disp=False,
    )
    logger.debug(
        f"Root {root:.10g} on [{lower:.6g}, {upper:.6g}] in {result.iterations} iterations"
    )
    return RootResult(
        root=float(root), iterations=int(result.iterations), converged=bool(result.converged)
    )
