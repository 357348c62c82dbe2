"""Polymer property curves: viscosity multipliers and adsorption isotherms."""

import typing

import attrs
import numpy as np
import numpy.typing as npt

from polyflood.errors import ValidationError
from polyflood.types import Curve


__all__ = [
    "TabulatedCurve",
    "PolynomialViscosityMultiplier",
    "LangmuirIsotherm",
    "PolymerProperties",
]


@attrs.frozen
class TabulatedCurve:
    """
    Piecewise linear curve of polymer concentration.

    Interpolates with `np.interp`, held constant outside the table.
    The derivative is the slope of the table segment containing the concentration.
    """

    concentrations: npt.NDArray[np.floating] = attrs.field(converter=np.asarray)
    """Tabulated concentrations, strictly increasing."""
    values: npt.NDArray[np.floating] = attrs.field(converter=np.asarray)
    """Curve values at the tabulated concentrations."""

    def __attrs_post_init__(self) -> None:
        if len(self.concentrations) != len(self.values):
            raise ValidationError(
                f"Concentration and value arrays must have same length. "
                f"Got {len(self.concentrations)} vs {len(self.values)}"
            )
        if len(self.concentrations) < 2:
            raise ValidationError("At least 2 points required for interpolation")
        if not np.all(np.diff(self.concentrations) > 0):
            raise ValidationError("Concentrations must be strictly increasing")

    def __call__(self, concentration: float) -> float:
        return float(np.interp(concentration, self.concentrations, self.values))

    def with_derivative(self, concentration: float) -> typing.Tuple[float, float]:
        value = self(concentration)
        concentrations = self.concentrations
        if concentration < concentrations[0] or concentration > concentrations[-1]:
            return value, 0.0

        index = int(np.searchsorted(concentrations, concentration, side="right")) - 1
        index = min(max(index, 0), len(concentrations) - 2)
        slope = (self.values[index + 1] - self.values[index]) / (
            concentrations[index + 1] - concentrations[index]
        )
        return value, float(slope)


@attrs.frozen
class PolynomialViscosityMultiplier:
    """
    Flory-Huggins type viscosity multiplier.

    mu_p / mu_w = 1 + a1 * c + a2 * c^2 + a3 * c^3
    """

    a1: float = 0.0
    a2: float = 0.0
    a3: float = 0.0

    def __call__(self, concentration: float) -> float:
        c = concentration
        return 1.0 + c * (self.a1 + c * (self.a2 + c * self.a3))

    def with_derivative(self, concentration: float) -> typing.Tuple[float, float]:
        c = concentration
        return self(c), self.a1 + c * (2.0 * self.a2 + 3.0 * c * self.a3)


@attrs.frozen
class LangmuirIsotherm:
    """
    Langmuir adsorption isotherm.

    adsorption = a * c / (1 + b * c)
    """

    a: float = attrs.field(validator=attrs.validators.ge(0))
    """Adsorption capacity coefficient."""
    b: float = attrs.field(default=0.0, validator=attrs.validators.ge(0))
    """Adsorption saturation coefficient."""

    def __call__(self, concentration: float) -> float:
        return self.a * concentration / (1.0 + self.b * concentration)

    def with_derivative(self, concentration: float) -> typing.Tuple[float, float]:
        denominator = 1.0 + self.b * concentration
        return self.a * concentration / denominator, self.a / (denominator * denominator)


@attrs.frozen
class PolymerProperties:
    """
    Properties of a polymer dissolved in the water phase.
    """

    c_max_limit: float = attrs.field(validator=attrs.validators.gt(0))
    """Highest attainable polymer concentration, the upper bound of every concentration solve."""
    omega: float = attrs.field(
        validator=attrs.validators.and_(attrs.validators.ge(0), attrs.validators.le(1))
    )
    """Todd-Longstaff mixing parameter, 0 is fully segregated and 1 fully mixed."""
    rhor: float = attrs.field(validator=attrs.validators.ge(0))
    """Rock density, scales the adsorbed polymer mass."""
    dps: float = attrs.field(
        validator=attrs.validators.and_(attrs.validators.ge(0), attrs.validators.lt(1))
    )
    """Dead pore space saturation, water saturation not accessible to polymer."""
    viscosity_multiplier_curve: Curve
    """Polymer solution viscosity relative to water viscosity, as a function of concentration."""
    adsorption_curve: Curve
    """Adsorbed polymer per unit rock mass, as a function of concentration."""

    def viscosity_multiplier(self, concentration: float) -> float:
        return self.viscosity_multiplier_curve(concentration)

    def viscosity_multiplier_with_derivative(
        self, concentration: float
    ) -> typing.Tuple[float, float]:
        return self.viscosity_multiplier_curve.with_derivative(concentration)

    def adsorption(self, concentration: float) -> float:
        return self.adsorption_curve(concentration)

    def adsorption_with_derivative(
        self, concentration: float
    ) -> typing.Tuple[float, float]:
        return self.adsorption_curve.with_derivative(concentration)
