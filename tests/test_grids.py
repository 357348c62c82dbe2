import numpy as np
import pytest

from polyflood.errors import ValidationError
from polyflood.grids import BOUNDARY, build_cartesian_grid, build_grid


def test_one_dimensional_cartesian_grid():
    grid = build_cartesian_grid(3)

    assert grid.number_of_cells == 3
    assert grid.number_of_faces == 4
    np.testing.assert_array_equal(
        grid.face_cells, [[BOUNDARY, 0], [0, 1], [1, 2], [2, BOUNDARY]]
    )
    np.testing.assert_array_equal(grid.faces_of(1), [1, 2])
    assert grid.neighbour_across(1, 1) == (0, -1.0)
    assert grid.neighbour_across(1, 2) == (2, 1.0)
    assert grid.neighbour_across(0, 0) == (BOUNDARY, -1.0)


def test_two_dimensional_cartesian_grid():
    grid = build_cartesian_grid(2, 2)

    assert grid.number_of_cells == 4
    assert grid.number_of_faces == 12
    # Every cell of a 2x2 block touches four faces.
    assert all(len(grid.faces_of(cell)) == 4 for cell in range(4))
    interior = [
        tuple(cells)
        for cells in grid.face_cells.tolist()
        if BOUNDARY not in cells
    ]
    assert sorted(interior) == [(0, 1), (0, 2), (1, 3), (2, 3)]


def test_build_grid_computes_incidence():
    grid = build_grid(3, [(0, 1), (1, 2), (2, 0)])

    np.testing.assert_array_equal(grid.cell_facepos, [0, 2, 4, 6])
    np.testing.assert_array_equal(grid.faces_of(0), [0, 2])
    np.testing.assert_array_equal(grid.faces_of(2), [1, 2])


@pytest.mark.parametrize(
    "number_of_cells, face_cells",
    [
        (0, []),
        (2, [(0, 2)]),
        (2, [(-2, 0)]),
        (2, [(1, 1)]),
    ],
)
def test_build_grid_validation(number_of_cells, face_cells):
    with pytest.raises(ValidationError):
        build_grid(number_of_cells, face_cells)


def test_cartesian_grid_needs_cells():
    with pytest.raises(ValidationError):
        build_cartesian_grid(0)
