"""Water-oil relative permeability models with saturation derivatives."""

import typing

import attrs
import numba
import numpy as np
import numpy.typing as npt

from polyflood.errors import ValidationError


__all__ = [
    "compute_corey_two_phase_relative_permeabilities",
    "BrooksCoreyTwoPhaseRelPermModel",
    "TwoPhaseRelPermTable",
]


@numba.njit(cache=True)
def compute_corey_two_phase_relative_permeabilities(
    water_saturation: float,
    irreducible_water_saturation: float,
    residual_oil_saturation: float,
    water_exponent: float,
    oil_exponent: float,
    water_endpoint: float,
    oil_endpoint: float,
) -> typing.Tuple[float, float, float, float]:
    """
    Corey-type water-oil relative permeabilities and their derivatives
    with respect to water saturation.

    krw = krw_end * Se^nw
    kro = kro_end * (1 - Se)^no
    Se = (Sw - Swc) / (1 - Swc - Sorw), clipped to [0, 1]

    Derivatives vanish outside the mobile saturation range.

    :return: (krw, kro, dkrw/dSw, dkro/dSw)
    """
    movable_range = 1.0 - irreducible_water_saturation - residual_oil_saturation
    if movable_range <= 1e-12:
        return 0.0, 0.0, 0.0, 0.0

    effective_saturation = (
        water_saturation - irreducible_water_saturation
    ) / movable_range
    if effective_saturation <= 0.0:
        return 0.0, oil_endpoint, 0.0, 0.0
    if effective_saturation >= 1.0:
        return water_endpoint, 0.0, 0.0, 0.0

    krw = water_endpoint * effective_saturation**water_exponent
    kro = oil_endpoint * (1.0 - effective_saturation) ** oil_exponent
    dkrw = (
        water_endpoint
        * water_exponent
        * effective_saturation ** (water_exponent - 1.0)
        / movable_range
    )
    dkro = (
        -oil_endpoint
        * oil_exponent
        * (1.0 - effective_saturation) ** (oil_exponent - 1.0)
        / movable_range
    )
    return krw, kro, dkrw, dkro


@attrs.frozen
class BrooksCoreyTwoPhaseRelPermModel:
    """
    Brooks-Corey-type water-oil relative permeability model (water-wet).
    """

    irreducible_water_saturation: float = attrs.field(
        default=0.0,
        validator=attrs.validators.and_(attrs.validators.ge(0), attrs.validators.lt(1)),
    )
    """Irreducible water saturation (Swc)."""
    residual_oil_saturation: float = attrs.field(
        default=0.0,
        validator=attrs.validators.and_(attrs.validators.ge(0), attrs.validators.lt(1)),
    )
    """Residual oil saturation after water flood (Sorw)."""
    water_exponent: float = attrs.field(default=2.0, validator=attrs.validators.ge(1))
    """Corey exponent for water relative permeability."""
    oil_exponent: float = attrs.field(default=2.0, validator=attrs.validators.ge(1))
    """Corey exponent for oil relative permeability."""
    water_endpoint: float = attrs.field(default=1.0, validator=attrs.validators.gt(0))
    """Water relative permeability at residual oil saturation."""
    oil_endpoint: float = attrs.field(default=1.0, validator=attrs.validators.gt(0))
    """Oil relative permeability at irreducible water saturation."""

    def __attrs_post_init__(self) -> None:
        if self.irreducible_water_saturation + self.residual_oil_saturation >= 1.0:
            raise ValidationError(
                "Irreducible water and residual oil saturations must leave a mobile range. "
                f"Got Swc={self.irreducible_water_saturation}, Sorw={self.residual_oil_saturation}"
            )

    def get_relative_permeabilities_with_derivatives(
        self, water_saturation: float
    ) -> typing.Tuple[float, float, float, float]:
        """
        Relative permeabilities and their water saturation derivatives.

        :param water_saturation: Water saturation (fraction).
        :return: (krw, kro, dkrw/dSw, dkro/dSw)
        """
        return compute_corey_two_phase_relative_permeabilities(
            float(water_saturation),
            self.irreducible_water_saturation,
            self.residual_oil_saturation,
            self.water_exponent,
            self.oil_exponent,
            self.water_endpoint,
            self.oil_endpoint,
        )

    def get_relative_permeabilities(
        self, water_saturation: float
    ) -> typing.Tuple[float, float]:
        krw, kro, _, _ = self.get_relative_permeabilities_with_derivatives(
            water_saturation
        )
        return krw, kro


@attrs.frozen
class TwoPhaseRelPermTable:
    """
    Water-oil relative permeability lookup table.

    Interpolates linearly with `np.interp` and differentiates with the slope
    of the table segment containing the saturation. Values are held constant
    (zero slope) outside the tabulated range.
    """

    water_saturation: npt.NDArray[np.floating] = attrs.field(converter=np.asarray)
    """The water saturation values, ranging from 0 to 1."""
    water_relative_permeability: npt.NDArray[np.floating] = attrs.field(
        converter=np.asarray
    )
    """Water relative permeability values corresponding to the saturation values."""
    oil_relative_permeability: npt.NDArray[np.floating] = attrs.field(
        converter=np.asarray
    )
    """Oil relative permeability values corresponding to the saturation values."""

    def __attrs_post_init__(self) -> None:
        """Validate table data."""
        if len(self.water_saturation) != len(self.water_relative_permeability):
            raise ValidationError(
                f"Saturation and water kr arrays must have same length. "
                f"Got {len(self.water_saturation)} vs {len(self.water_relative_permeability)}"
            )
        if len(self.water_saturation) != len(self.oil_relative_permeability):
            raise ValidationError(
                f"Saturation and oil kr arrays must have same length. "
                f"Got {len(self.water_saturation)} vs {len(self.oil_relative_permeability)}"
            )
        if len(self.water_saturation) < 2:
            raise ValidationError("At least 2 points required for interpolation")
        if not np.all(np.diff(self.water_saturation) > 0):
            raise ValidationError("Water saturation must be strictly increasing")

    def _segment(self, water_saturation: float) -> int:
        index = int(np.searchsorted(self.water_saturation, water_saturation, side="right")) - 1
        return min(max(index, 0), len(self.water_saturation) - 2)

    def get_relative_permeabilities(
        self, water_saturation: float
    ) -> typing.Tuple[float, float]:
        krw = np.interp(
            water_saturation, self.water_saturation, self.water_relative_permeability
        )
        kro = np.interp(
            water_saturation, self.water_saturation, self.oil_relative_permeability
        )
        return float(krw), float(kro)

    def get_relative_permeabilities_with_derivatives(
        self, water_saturation: float
    ) -> typing.Tuple[float, float, float, float]:
        """
        Relative permeabilities and their water saturation derivatives.

        :param water_saturation: Water saturation (fraction).
        :return: (krw, kro, dkrw/dSw, dkro/dSw)
        """
        krw, kro = self.get_relative_permeabilities(water_saturation)
        saturations = self.water_saturation
        if water_saturation < saturations[0] or water_saturation > saturations[-1]:
            return krw, kro, 0.0, 0.0

        index = self._segment(water_saturation)
        width = saturations[index + 1] - saturations[index]
        dkrw = (
            self.water_relative_permeability[index + 1]
            - self.water_relative_permeability[index]
        ) / width
        dkro = (
            self.oil_relative_permeability[index + 1]
            - self.oil_relative_permeability[index]
        ) / width
        return krw, kro, float(dkrw), float(dkro)
