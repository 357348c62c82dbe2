"""
Single-cell implicit Euler residuals of the water and polymer balances.

    R_s(s, c) = s - s0 + dt/pv * (outflux * f(s, c) + influx)
    R_c(s, c) = (s - dps) * c - (s0 - dps) * c0
                + rhor * (1 - phi)/phi * (ads(max(c, cmax0)) - ads(max(c0, cmax0)))
                + dt/pv * (outflux * f(s, c) * mc(c) + influx_polymer)
"""

import enum
import typing

import numpy as np
import numpy.typing as npt

from polyflood.errors import ValidationError
from polyflood.physics import PolymerFlowPhysics
from polyflood.transport.flux import FluxContext
from polyflood.types import GradientMethod


__all__ = [
    "Residual",
    "compute_saturation_residual",
    "compute_concentration_residual",
    "compute_residuals",
    "compute_residual_jacobian",
    "compute_residual_gradient",
    "residual_norm",
]


class Residual(enum.IntEnum):
    """Index of a residual in the residual vector `(R_s, R_c)`."""

    SATURATION = 0
    CONCENTRATION = 1

    @property
    def other(self) -> "Residual":
        return Residual(1 - self.value)


def _rock_factor(context: FluxContext, physics: PolymerFlowPhysics) -> float:
    return physics.polymer.rhor * (1.0 - context.porosity) / context.porosity


def compute_saturation_residual(
    saturation: float,
    concentration: float,
    context: FluxContext,
    physics: PolymerFlowPhysics,
) -> float:
    fractional_flow = physics.fractional_flow(saturation, concentration, context.cell)
    return (
        saturation
        - context.s0
        + context.dtpv * (context.outflux * fractional_flow + context.influx)
    )


def compute_concentration_residual(
    saturation: float,
    concentration: float,
    context: FluxContext,
    physics: PolymerFlowPhysics,
    fractional_flow: typing.Optional[float] = None,
) -> float:
    if fractional_flow is None:
        fractional_flow = physics.fractional_flow(
            saturation, concentration, context.cell
        )
    mc = physics.polymer_retention_factor(concentration)
    dps = physics.polymer.dps
    adsorption = physics.adsorption(concentration, context.cmax0)
    initial_adsorption = physics.adsorption(context.c0, context.cmax0)
    return (
        (saturation - dps) * concentration
        - (context.s0 - dps) * context.c0
        + _rock_factor(context, physics) * (adsorption - initial_adsorption)
        + context.dtpv
        * (context.outflux * fractional_flow * mc + context.influx_polymer)
    )


def compute_residuals(
    saturation: float,
    concentration: float,
    context: FluxContext,
    physics: PolymerFlowPhysics,
) -> typing.Tuple[float, float]:
    """
    Both residuals at a point.

    :return: (R_s, R_c)
    """
    fractional_flow = physics.fractional_flow(saturation, concentration, context.cell)
    saturation_residual = (
        saturation
        - context.s0
        + context.dtpv * (context.outflux * fractional_flow + context.influx)
    )
    concentration_residual = compute_concentration_residual(
        saturation, concentration, context, physics, fractional_flow=fractional_flow
    )
    return saturation_residual, concentration_residual


def residual_norm(residuals: typing.Sequence[float]) -> float:
    """Max-norm of a residual vector."""
    return max(abs(residuals[0]), abs(residuals[1]))


def _compute_analytic_jacobian(
    saturation: float,
    concentration: float,
    context: FluxContext,
    physics: PolymerFlowPhysics,
) -> npt.NDArray[np.floating]:
    fractional_flow, dfds, dfdc = physics.fractional_flow_with_derivatives(
        saturation, concentration, context.cell
    )
    mc, dmc = physics.polymer_retention_factor_with_derivative(concentration)
    _, dadsorption = physics.adsorption_with_derivative(concentration, context.cmax0)
    dtpv_outflux = context.dtpv * context.outflux

    jacobian = np.empty((2, 2), dtype=np.float64)
    jacobian[0, 0] = 1.0 + dtpv_outflux * dfds
    jacobian[0, 1] = dtpv_outflux * dfdc
    jacobian[1, 0] = concentration + dtpv_outflux * dfds * mc
    jacobian[1, 1] = (
        saturation
        - physics.polymer.dps
        + _rock_factor(context, physics) * dadsorption
        + dtpv_outflux * (dfdc * mc + fractional_flow * dmc)
    )
    return jacobian


def _compute_finite_difference_jacobian(
    saturation: float,
    concentration: float,
    context: FluxContext,
    physics: PolymerFlowPhysics,
    step: float,
) -> npt.NDArray[np.floating]:
    base = np.asarray(compute_residuals(saturation, concentration, context, physics))
    shifted_s = np.asarray(
        compute_residuals(saturation + step, concentration, context, physics)
    )
    shifted_c = np.asarray(
        compute_residuals(saturation, concentration + step, context, physics)
    )
    jacobian = np.empty((2, 2), dtype=np.float64)
    jacobian[:, 0] = (shifted_s - base) / step
    jacobian[:, 1] = (shifted_c - base) / step
    return jacobian


def compute_residual_jacobian(
    saturation: float,
    concentration: float,
    context: FluxContext,
    physics: PolymerFlowPhysics,
    method: GradientMethod = "analytic",
    step: float = 1e-5,
) -> npt.NDArray[np.floating]:
    """
    Jacobian of `(R_s, R_c)` with respect to `(s, c)`.

    Row 0 is the gradient of R_s, row 1 the gradient of R_c.

    :param method: 'analytic' (exact chain rule through the mixing rule) or
        'finite_difference' (one-sided differences).
    :param step: Finite difference step.
    :return: 2x2 array
    """
    if method == "analytic":
        return _compute_analytic_jacobian(saturation, concentration, context, physics)
    if method == "finite_difference":
        return _compute_finite_difference_jacobian(
            saturation, concentration, context, physics, step
        )
    raise ValidationError(f"Unknown gradient method {method!r}")


def compute_residual_gradient(
    saturation: float,
    concentration: float,
    context: FluxContext,
    physics: PolymerFlowPhysics,
    residual: Residual,
    method: GradientMethod = "analytic",
    step: float = 1e-5,
) -> typing.Tuple[typing.Tuple[float, float], typing.Tuple[float, float]]:
    """
    Both residuals at a point, and the gradient of one of them.

    :param residual: Which residual to differentiate.
    :return: ((R_s, R_c), (dR/ds, dR/dc))
    """
    residuals = compute_residuals(saturation, concentration, context, physics)
    if method == "analytic":
        jacobian = _compute_analytic_jacobian(
            saturation, concentration, context, physics
        )
        row = jacobian[residual]
        return residuals, (float(row[0]), float(row[1]))
    if method == "finite_difference":
        base = residuals[residual]
        ds = (
            compute_residuals(saturation + step, concentration, context, physics)[
                residual
            ]
            - base
        ) / step
        dc = (
            compute_residuals(saturation, concentration + step, context, physics)[
                residual
            ]
            - base
        ) / step
        return residuals, (ds, dc)
    raise ValidationError(f"Unknown gradient method {method!r}")
