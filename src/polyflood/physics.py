"""
Fluid/rock physics of polymer-laden water displacing oil.

The aqueous phase is a blend of water and polymer solution. Its effective viscosity
follows a Todd-Longstaff type power-law mixing rule with parameter omega:

    mu_m        = viscMult(c) * mu_w                 (mixture viscosity)
    mu_p        = viscMult(c_max_limit) * mu_w       (fully loaded solution viscosity)
    mu_w_e      = mu_m^omega * mu_w^(1 - omega)      (effective water viscosity)
    mu_p_eff    = mu_m^omega * mu_p^(1 - omega)      (effective polymer viscosity)
    1/mu_w_eff  = (1 - cbar)/mu_w_e + cbar/mu_p_eff, cbar = c / c_max_limit

Water mobility uses mu_w_eff, polymer is transported at the rate `mc = c * mu_w_eff / mu_p_eff`.
"""

import typing

import attrs
import numba

from polyflood.errors import ComputationError
from polyflood.polymer import PolymerProperties
from polyflood.properties import FluidRockProperties


__all__ = [
    "compute_todd_longstaff_viscosities",
    "compute_fractional_flow_from_mobilities",
    "PolymerFlowPhysics",
]


@numba.njit(cache=True)
def compute_todd_longstaff_viscosities(
    water_viscosity: float,
    mixture_viscosity: float,
    mixture_viscosity_derivative: float,
    polymer_viscosity: float,
    omega: float,
    normalized_concentration: float,
    normalized_concentration_derivative: float,
) -> typing.Tuple[float, float, float, float]:
    """
    Effective aqueous viscosities of the power-law mixing rule and their
    concentration derivatives.

    :param water_viscosity: Pure water viscosity, mu_w.
    :param mixture_viscosity: Mixture viscosity at the current concentration, mu_m.
    :param mixture_viscosity_derivative: d(mu_m)/dc.
    :param polymer_viscosity: Viscosity of fully loaded polymer solution, mu_p.
    :param omega: Mixing parameter.
    :param normalized_concentration: cbar = c / c_max_limit.
    :param normalized_concentration_derivative: d(cbar)/dc = 1 / c_max_limit.
    :return: (1/mu_w_eff, d(1/mu_w_eff)/dc, mu_p_eff, d(mu_p_eff)/dc)
    """
    mixture_power = mixture_viscosity**omega
    mixture_power_derivative = (
        omega * mixture_viscosity ** (omega - 1.0) * mixture_viscosity_derivative
    )
    water_power = water_viscosity ** (1.0 - omega)
    polymer_power = polymer_viscosity ** (1.0 - omega)

    effective_water_viscosity = mixture_power * water_power
    effective_water_viscosity_derivative = mixture_power_derivative * water_power
    effective_polymer_viscosity = mixture_power * polymer_power
    effective_polymer_viscosity_derivative = mixture_power_derivative * polymer_power

    cbar = normalized_concentration
    inverse_viscosity = (1.0 - cbar) / effective_water_viscosity + (
        cbar / effective_polymer_viscosity
    )
    inverse_viscosity_derivative = (
        -(1.0 - cbar)
        * effective_water_viscosity_derivative
        / (effective_water_viscosity * effective_water_viscosity)
        - cbar
        * effective_polymer_viscosity_derivative
        / (effective_polymer_viscosity * effective_polymer_viscosity)
        + normalized_concentration_derivative
        * (1.0 / effective_polymer_viscosity - 1.0 / effective_water_viscosity)
    )
    return (
        inverse_viscosity,
        inverse_viscosity_derivative,
        effective_polymer_viscosity,
        effective_polymer_viscosity_derivative,
    )


@numba.njit(cache=True)
def compute_fractional_flow_from_mobilities(
    water_mobility: float,
    oil_mobility: float,
    water_mobility_ds: float,
    oil_mobility_ds: float,
    water_mobility_dc: float,
) -> typing.Tuple[float, float, float]:
    """
    Water fractional flow `f = lw / (lw + lo)` and its partial derivatives.

    The oil mobility does not depend on concentration.

    :return: (f, df/ds, df/dc)
    """
    total_mobility = water_mobility + oil_mobility
    total_squared = total_mobility * total_mobility
    fractional_flow = water_mobility / total_mobility
    dfds = (
        water_mobility_ds * oil_mobility - oil_mobility_ds * water_mobility
    ) / total_squared
    dfdc = water_mobility_dc * oil_mobility / total_squared
    return fractional_flow, dfds, dfdc


@attrs.frozen
class PolymerFlowPhysics:
    """
    Local physics of the water-oil-polymer system: fractional flow, polymer
    transport factor and irreversible adsorption.
    """

    properties: FluidRockProperties
    """Fluid and rock-fluid properties (viscosities, relative permeabilities)."""
    polymer: PolymerProperties
    """Polymer properties."""

    def _mixing_viscosities(
        self, concentration: float, with_derivative: bool = False
    ) -> typing.Tuple[float, float, float, float]:
        polymer = self.polymer
        water_viscosity = self.properties.water_viscosity
        if with_derivative:
            multiplier, multiplier_derivative = (
                polymer.viscosity_multiplier_with_derivative(concentration)
            )
        else:
            multiplier = polymer.viscosity_multiplier(concentration)
            multiplier_derivative = 0.0

        polymer_viscosity = (
            polymer.viscosity_multiplier(polymer.c_max_limit) * water_viscosity
        )
        return compute_todd_longstaff_viscosities(
            water_viscosity,
            float(multiplier * water_viscosity),
            float(multiplier_derivative * water_viscosity),
            float(polymer_viscosity),
            float(polymer.omega),
            float(concentration / polymer.c_max_limit),
            float(1.0 / polymer.c_max_limit),
        )

    def fractional_flow(self, saturation: float, concentration: float, cell: int) -> float:
        """
        Effective water fractional flow.

        :param saturation: Water saturation.
        :param concentration: Polymer concentration.
        :param cell: Cell index (selects relative permeability region).
        :return: Fractional flow in [0, 1].
        """
        inverse_viscosity, _, _, _ = self._mixing_viscosities(concentration)
        krw, kro = self.properties.relperm(saturation, cell)
        water_mobility = krw * inverse_viscosity
        oil_mobility = kro / self.properties.oil_viscosity
        total_mobility = water_mobility + oil_mobility
        if total_mobility <= 0.0:
            raise ComputationError(
                f"Total mobility vanishes in cell {cell} at saturation {saturation}."
            )
        return water_mobility / total_mobility

    def fractional_flow_with_derivatives(
        self, saturation: float, concentration: float, cell: int
    ) -> typing.Tuple[float, float, float]:
        """
        Effective water fractional flow and its exact partial derivatives.

        :return: (f, df/ds, df/dc)
        """
        inverse_viscosity, inverse_viscosity_dc, _, _ = self._mixing_viscosities(
            concentration, with_derivative=True
        )
        krw, kro, dkrw, dkro = self.properties.relperm_with_derivatives(
            saturation, cell
        )
        oil_viscosity = self.properties.oil_viscosity
        water_mobility = krw * inverse_viscosity
        oil_mobility = kro / oil_viscosity
        if water_mobility + oil_mobility <= 0.0:
            raise ComputationError(
                f"Total mobility vanishes in cell {cell} at saturation {saturation}."
            )
        return compute_fractional_flow_from_mobilities(
            float(water_mobility),
            float(oil_mobility),
            float(dkrw * inverse_viscosity),
            float(dkro / oil_viscosity),
            float(krw * inverse_viscosity_dc),
        )

    def polymer_retention_factor(self, concentration: float) -> float:
        """
        Rate at which polymer is carried with the water phase, `c * mu_w_eff / mu_p_eff`.
        """
        inverse_viscosity, _, polymer_viscosity, _ = self._mixing_viscosities(
            concentration
        )
        return concentration / (inverse_viscosity * polymer_viscosity)

    def polymer_retention_factor_with_derivative(
        self, concentration: float
    ) -> typing.Tuple[float, float]:
        """
        :return: (mc, d(mc)/dc)
        """
        (
            inverse_viscosity,
            inverse_viscosity_dc,
            polymer_viscosity,
            polymer_viscosity_dc,
        ) = self._mixing_viscosities(concentration, with_derivative=True)
        denominator = inverse_viscosity * polymer_viscosity
        denominator_dc = (
            inverse_viscosity_dc * polymer_viscosity
            + inverse_viscosity * polymer_viscosity_dc
        )
        mc = concentration / denominator
        dmc = 1.0 / denominator - concentration * denominator_dc / (
            denominator * denominator
        )
        return mc, dmc

    def adsorption(self, concentration: float, historical_maximum: float) -> float:
        """
        Irreversible adsorption: the isotherm evaluated at the highest
        concentration the cell has seen.

        :param concentration: Current polymer concentration.
        :param historical_maximum: Highest concentration reached before, cmax.
        """
        return self.polymer.adsorption(max(concentration, historical_maximum))

    def adsorption_with_derivative(
        self, concentration: float, historical_maximum: float
    ) -> typing.Tuple[float, float]:
        """
        Irreversible adsorption and its concentration derivative, which is zero
        below the historical maximum.
        """
        if concentration < historical_maximum:
            return self.polymer.adsorption(historical_maximum), 0.0
        return self.polymer.adsorption_with_derivative(concentration)
