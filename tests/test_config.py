import pytest

from polyflood.config import Config


def test_defaults():
    config = Config()

    assert config.tolerance == 1e-9
    assert config.max_iterations == 100
    assert config.method == "splitting"
    assert config.gradient_method == "analytic"
    assert config.max_splitting_iterations == 20


@pytest.mark.parametrize(
    "overrides",
    [
        {"tolerance": 0.0},
        {"tolerance": 0.1},
        {"max_iterations": 0},
        {"method": "newton"},
        {"gradient_method": "complex_step"},
        {"finite_difference_step": 0.0},
        {"max_splitting_iterations": -1},
        {"splitting_tolerance": -1e-7},
        {"max_line_search_iterations": 0},
    ],
)
def test_invalid_values_are_rejected(overrides):
    with pytest.raises(ValueError):
        Config(**overrides)


def test_zero_splitting_cap_is_allowed():
    assert Config(max_splitting_iterations=0).max_splitting_iterations == 0
