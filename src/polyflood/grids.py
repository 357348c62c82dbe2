"""Cell/face incidence for transport on unstructured grids."""

import typing

import attrs
import numpy as np
import numpy.typing as npt

from polyflood.errors import ValidationError


__all__ = ["Grid", "build_grid", "build_cartesian_grid", "BOUNDARY"]

BOUNDARY = -1
"""Marker for the outside of the domain in `Grid.face_cells`."""


@attrs.frozen
class Grid:
    """
    Face/cell incidence of a grid.

    Faces are oriented: a positive flux over face `f` runs from
    `face_cells[f, 0]` to `face_cells[f, 1]`. Either side may be `BOUNDARY`.
    """

    number_of_cells: int
    """Number of cells in the grid."""
    face_cells: npt.NDArray[np.integer]
    """(number_of_faces, 2) array of the cells on either side of each face."""
    cell_facepos: npt.NDArray[np.integer]
    """Offsets into `cell_faces`, faces of cell `i` are `cell_faces[cell_facepos[i]:cell_facepos[i + 1]]`."""
    cell_faces: npt.NDArray[np.integer]
    """Concatenated face indices of all cells."""

    @property
    def number_of_faces(self) -> int:
        return int(self.face_cells.shape[0])

    def faces_of(self, cell: int) -> npt.NDArray[np.integer]:
        """
        Faces incident to a cell.

        :param cell: Cell index.
        :return: Array of face indices.
        """
        return self.cell_faces[self.cell_facepos[cell] : self.cell_facepos[cell + 1]]

    def neighbour_across(self, cell: int, face: int) -> typing.Tuple[int, float]:
        """
        The cell on the other side of `face` and the orientation of the face
        relative to `cell` (+1.0 if the face points out of `cell`, -1.0 otherwise).
        """
        first, second = self.face_cells[face]
        if cell == first:
            return int(second), 1.0
        return int(first), -1.0


def build_grid(
    number_of_cells: int, face_cells: npt.ArrayLike
) -> Grid:
    """
    Builds a grid from its face-to-cell map.

    :param number_of_cells: Number of cells in the grid.
    :param face_cells: (number_of_faces, 2) cells on either side of each face,
        `BOUNDARY` (-1) for the outside of the domain.
    :return: `Grid` with the cell-to-face incidence computed.
    """
    face_cells = np.asarray(face_cells, dtype=np.int64).reshape(-1, 2)
    if number_of_cells < 1:
        raise ValidationError("A grid needs at least one cell.")
    if np.any(face_cells < BOUNDARY) or np.any(face_cells >= number_of_cells):
        raise ValidationError(
            f"Face cells must lie in [{BOUNDARY}, {number_of_cells - 1}]."
        )
    if np.any(face_cells[:, 0] == face_cells[:, 1]):
        raise ValidationError("A face cannot connect a cell to itself.")

    incident: typing.List[typing.List[int]] = [[] for _ in range(number_of_cells)]
    for face, (first, second) in enumerate(face_cells):
        if first != BOUNDARY:
            incident[first].append(face)
        if second != BOUNDARY:
            incident[second].append(face)

    cell_facepos = np.zeros(number_of_cells + 1, dtype=np.int64)
    cell_facepos[1:] = np.cumsum([len(faces) for faces in incident])
    cell_faces = np.fromiter(
        (face for faces in incident for face in faces),
        dtype=np.int64,
        count=int(cell_facepos[-1]),
    )
    return Grid(
        number_of_cells=number_of_cells,
        face_cells=face_cells,
        cell_facepos=cell_facepos,
        cell_faces=cell_faces,
    )


def build_cartesian_grid(cell_count_x: int, cell_count_y: int = 1) -> Grid:
    """
    Builds a logically Cartesian 1D/2D grid, including boundary faces.

    Cells are numbered x-fastest, `cell = i + j * cell_count_x`.
    All x-faces come first (oriented in +x), followed by the y-faces (oriented in +y).

    :param cell_count_x: Number of cells in the x direction.
    :param cell_count_y: Number of cells in the y direction.
    :return: `Grid` for the Cartesian block.
    """
    if cell_count_x < 1 or cell_count_y < 1:
        raise ValidationError("Cell counts must be positive.")

    def cell_index(i: int, j: int) -> int:
        if 0 <= i < cell_count_x and 0 <= j < cell_count_y:
            return i + j * cell_count_x
        return BOUNDARY

    face_cells = []
    for j in range(cell_count_y):
        for i in range(cell_count_x + 1):
            face_cells.append((cell_index(i - 1, j), cell_index(i, j)))
    if cell_count_y > 1:
        for j in range(cell_count_y + 1):
            for i in range(cell_count_x):
                face_cells.append((cell_index(i, j - 1), cell_index(i, j)))
    return build_grid(cell_count_x * cell_count_y, face_cells)
