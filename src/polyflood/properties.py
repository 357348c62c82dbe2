"""Incompressible water-oil fluid and rock-fluid properties."""

import typing

import attrs
import numpy as np
import numpy.typing as npt

from polyflood.errors import ValidationError
from polyflood.types import TwoPhaseRelPermModel


__all__ = ["FluidRockProperties", "build_fluid_rock_properties"]


def _as_float_array(value: typing.Any) -> npt.NDArray[np.floating]:
    return np.asarray(value, dtype=np.float64)


def _as_index_array(value: typing.Any) -> npt.NDArray[np.integer]:
    return np.asarray(value, dtype=np.int64)


@attrs.frozen
class FluidRockProperties:
    """
    Fluid and rock-fluid properties of an incompressible multiphase system.

    Phases are ordered (water, oil). The transport model only supports two phases,
    `num_phases` is checked when the model is built.
    """

    viscosities: npt.NDArray[np.floating] = attrs.field(converter=_as_float_array)
    """Phase viscosities, ordered (water, oil, ...) (cP)."""
    relative_permeability_models: typing.Tuple[TwoPhaseRelPermModel, ...] = attrs.field(
        converter=tuple
    )
    """Relative permeability models, one per saturation region."""
    saturation_regions: npt.NDArray[np.integer] = attrs.field(converter=_as_index_array)
    """Saturation region (index into `relative_permeability_models`) of every cell."""
    minimum_saturations: npt.NDArray[np.floating] = attrs.field(
        converter=_as_float_array
    )
    """Lowest admissible water saturation of every cell."""
    maximum_saturations: npt.NDArray[np.floating] = attrs.field(
        converter=_as_float_array
    )
    """Highest admissible water saturation of every cell."""

    def __attrs_post_init__(self) -> None:
        if np.any(self.viscosities <= 0.0):
            raise ValidationError("Phase viscosities must be positive.")
        if not self.relative_permeability_models:
            raise ValidationError("At least one relative permeability model is required.")
        number_of_cells = len(self.saturation_regions)
        if (
            len(self.minimum_saturations) != number_of_cells
            or len(self.maximum_saturations) != number_of_cells
        ):
            raise ValidationError(
                "Saturation regions and saturation bounds must have one entry per cell. "
                f"Got {number_of_cells}, {len(self.minimum_saturations)} and {len(self.maximum_saturations)}"
            )
        if np.any(self.saturation_regions < 0) or np.any(
            self.saturation_regions >= len(self.relative_permeability_models)
        ):
            raise ValidationError("Saturation region index out of range.")
        if np.any(self.minimum_saturations < 0.0) or np.any(
            self.maximum_saturations > 1.0
        ):
            raise ValidationError("Saturation bounds must lie in [0, 1].")
        if np.any(self.minimum_saturations > self.maximum_saturations):
            raise ValidationError("Minimum saturation cannot exceed maximum saturation.")

    @property
    def num_phases(self) -> int:
        return len(self.viscosities)

    @property
    def number_of_cells(self) -> int:
        return len(self.saturation_regions)

    @property
    def water_viscosity(self) -> float:
        return float(self.viscosities[0])

    @property
    def oil_viscosity(self) -> float:
        return float(self.viscosities[1])

    def relperm(self, water_saturation: float, cell: int) -> typing.Tuple[float, float]:
        """
        Relative permeabilities of a cell at saturations `(Sw, 1 - Sw)`.

        :param water_saturation: Water saturation.
        :param cell: Cell index, selects the saturation region.
        :return: (krw, kro)
        """
        model = self.relative_permeability_models[self.saturation_regions[cell]]
        return model.get_relative_permeabilities(water_saturation)

    def relperm_with_derivatives(
        self, water_saturation: float, cell: int
    ) -> typing.Tuple[float, float, float, float]:
        """
        Relative permeabilities of a cell and their water saturation derivatives.

        :return: (krw, kro, dkrw/dSw, dkro/dSw)
        """
        model = self.relative_permeability_models[self.saturation_regions[cell]]
        return model.get_relative_permeabilities_with_derivatives(water_saturation)

    def saturation_range(self, cell: int) -> typing.Tuple[float, float]:
        """Admissible water saturation interval `(smin, smax)` of a cell."""
        return float(self.minimum_saturations[cell]), float(
            self.maximum_saturations[cell]
        )


def build_fluid_rock_properties(
    number_of_cells: int,
    water_viscosity: float,
    oil_viscosity: float,
    relative_permeability_model: TwoPhaseRelPermModel,
    saturation_range: typing.Tuple[float, float] = (0.0, 1.0),
) -> FluidRockProperties:
    """
    Builds single-region water-oil properties with uniform saturation bounds.

    :param number_of_cells: Number of cells in the grid.
    :param water_viscosity: Water viscosity (cP).
    :param oil_viscosity: Oil viscosity (cP).
    :param relative_permeability_model: Relative permeability model for all cells.
    :param saturation_range: Admissible `(smin, smax)` water saturation of every cell.
    :return: `FluidRockProperties`
    """
    smin, smax = saturation_range
    return FluidRockProperties(
        viscosities=(water_viscosity, oil_viscosity),
        relative_permeability_models=(relative_permeability_model,),
        saturation_regions=np.zeros(number_of_cells, dtype=np.int64),
        minimum_saturations=np.full(number_of_cells, smin),
        maximum_saturations=np.full(number_of_cells, smax),
    )
