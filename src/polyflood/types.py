import typing

import numpy as np
from typing_extensions import TypeAlias


__all__ = [
    "CellIndices",
    "TransportMethod",
    "GradientMethod",
    "Point",
    "SolveSingleCell",
    "SolveMultiCell",
    "Curve",
    "TwoPhaseRelPermModel",
]

CellIndices = typing.Union[typing.Sequence[int], np.typing.NDArray[np.integer]]

Point: TypeAlias = typing.Tuple[float, float]
"""A point `(saturation, concentration)` in the transport solution plane."""

TransportMethod = typing.Literal["bracketing", "splitting"]
"""
Single-cell transport strategies

- "bracketing": Nested 1D root-finding, concentration outside, saturation inside
- "splitting": Alternating 1D solves along piecewise linear paths in the (s, c) plane
"""

GradientMethod = typing.Literal["analytic", "finite_difference"]
"""How residual gradients are obtained by the splitting strategy."""

SolveSingleCell = typing.Callable[[int], None]
SolveMultiCell = typing.Callable[[np.typing.NDArray[np.integer]], None]


@typing.runtime_checkable
class Curve(typing.Protocol):
    """
    Protocol for a scalar property curve of polymer concentration,
    e.g. a viscosity multiplier or an adsorption isotherm.
    """

    def __call__(self, concentration: float) -> float:
        """
        Evaluates the curve.

        :param concentration: Polymer concentration.
        :return: Curve value at the concentration.
        """
        ...

    def with_derivative(self, concentration: float) -> typing.Tuple[float, float]:
        """
        Evaluates the curve and its derivative.

        :param concentration: Polymer concentration.
        :return: Tuple of (value, derivative with respect to concentration).
        """
        ...


@typing.runtime_checkable
class TwoPhaseRelPermModel(typing.Protocol):
    """
    Protocol for a water-oil relative permeability model
    evaluated at the water saturation.
    """

    def get_relative_permeabilities(
        self, water_saturation: float
    ) -> typing.Tuple[float, float]:
        """
        :param water_saturation: Water saturation (fraction).
        :return: Tuple of (water relative permeability, oil relative permeability).
        """
        ...

    def get_relative_permeabilities_with_derivatives(
        self, water_saturation: float
    ) -> typing.Tuple[float, float, float, float]:
        """
        :param water_saturation: Water saturation (fraction).
        :return: Tuple of (krw, kro, dkrw/dSw, dkro/dSw).
        """
        ...
