import numpy as np
import pytest

from polyflood.errors import ValidationError
from polyflood.properties import FluidRockProperties, build_fluid_rock_properties
from polyflood.relperm import BrooksCoreyTwoPhaseRelPermModel, TwoPhaseRelPermTable


def test_quadratic_corey_curves():
    model = BrooksCoreyTwoPhaseRelPermModel()

    krw, kro, dkrw, dkro = model.get_relative_permeabilities_with_derivatives(0.3)

    assert (krw, kro) == pytest.approx((0.09, 0.49))
    assert (dkrw, dkro) == pytest.approx((0.6, -1.4))
    assert model.get_relative_permeabilities(0.3) == pytest.approx((0.09, 0.49))


def test_corey_curves_are_flat_outside_mobile_range():
    model = BrooksCoreyTwoPhaseRelPermModel(
        irreducible_water_saturation=0.2, residual_oil_saturation=0.2
    )

    assert model.get_relative_permeabilities_with_derivatives(0.1) == pytest.approx(
        (0.0, 1.0, 0.0, 0.0)
    )
    assert model.get_relative_permeabilities_with_derivatives(0.9) == pytest.approx(
        (1.0, 0.0, 0.0, 0.0)
    )
    krw, kro = model.get_relative_permeabilities(0.5)
    assert krw == pytest.approx(0.25)
    assert kro == pytest.approx(0.25)


def test_corey_rejects_immobile_system():
    with pytest.raises(ValidationError):
        BrooksCoreyTwoPhaseRelPermModel(
            irreducible_water_saturation=0.6, residual_oil_saturation=0.4
        )


def test_table_interpolates_with_segment_slopes():
    table = TwoPhaseRelPermTable(
        water_saturation=[0.0, 0.5, 1.0],
        water_relative_permeability=[0.0, 0.2, 1.0],
        oil_relative_permeability=[1.0, 0.3, 0.0],
    )

    assert table.get_relative_permeabilities(0.25) == pytest.approx((0.1, 0.65))
    assert table.get_relative_permeabilities_with_derivatives(0.75) == pytest.approx(
        (0.6, 0.15, 1.6, -0.6)
    )


def test_table_rejects_mismatched_columns():
    with pytest.raises(ValidationError):
        TwoPhaseRelPermTable(
            water_saturation=[0.0, 1.0],
            water_relative_permeability=[0.0, 0.5, 1.0],
            oil_relative_permeability=[1.0, 0.0],
        )


def test_fluid_rock_properties_select_region_per_cell():
    linear = TwoPhaseRelPermTable(
        water_saturation=[0.0, 1.0],
        water_relative_permeability=[0.0, 1.0],
        oil_relative_permeability=[1.0, 0.0],
    )
    properties = FluidRockProperties(
        viscosities=(1.0, 5.0),
        relative_permeability_models=(BrooksCoreyTwoPhaseRelPermModel(), linear),
        saturation_regions=[0, 1],
        minimum_saturations=[0.0, 0.1],
        maximum_saturations=[1.0, 0.9],
    )

    assert properties.num_phases == 2
    assert properties.number_of_cells == 2
    assert properties.relperm(0.5, 0) == pytest.approx((0.25, 0.25))
    assert properties.relperm(0.5, 1) == pytest.approx((0.5, 0.5))
    assert properties.saturation_range(1) == (0.1, 0.9)


def test_fluid_rock_properties_validation():
    with pytest.raises(ValidationError):
        FluidRockProperties(
            viscosities=(1.0, 5.0),
            relative_permeability_models=(BrooksCoreyTwoPhaseRelPermModel(),),
            saturation_regions=[0, 1],
            minimum_saturations=[0.0, 0.0],
            maximum_saturations=[1.0, 1.0],
        )
    with pytest.raises(ValidationError):
        build_fluid_rock_properties(
            2, 1.0, 5.0, BrooksCoreyTwoPhaseRelPermModel(), saturation_range=(0.8, 0.2)
        )


def test_build_fluid_rock_properties_is_uniform():
    properties = build_fluid_rock_properties(
        4, 0.5, 2.0, BrooksCoreyTwoPhaseRelPermModel(), saturation_range=(0.1, 0.9)
    )

    assert properties.water_viscosity == 0.5
    assert properties.oil_viscosity == 2.0
    np.testing.assert_array_equal(properties.saturation_regions, np.zeros(4))
    assert all(properties.saturation_range(cell) == (0.1, 0.9) for cell in range(4))
