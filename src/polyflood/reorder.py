"""
Upwind ordering of cells for sequential transport.

Each interior face with a non-zero flux makes its downstream cell depend on its
upstream cell. Cells on a cycle of that dependency graph must be solved
together; all other cells can be solved one at a time, upstream first.
"""

import heapq
import logging
import typing

import numpy as np
import numpy.typing as npt
from scipy.sparse import csr_matrix
from scipy.sparse.csgraph import connected_components

from polyflood.errors import ValidationError
from polyflood.grids import BOUNDARY, Grid
from polyflood.types import SolveMultiCell, SolveSingleCell


logger = logging.getLogger(__name__)

__all__ = ["compute_transport_order", "reorder_and_transport"]


def _build_upwind_graph(
    grid: Grid, darcyflux: npt.NDArray[np.floating]
) -> csr_matrix:
    first = grid.face_cells[:, 0]
    second = grid.face_cells[:, 1]
    interior = (first != BOUNDARY) & (second != BOUNDARY) & (darcyflux != 0.0)
    positive = darcyflux > 0.0
    upstream = np.where(positive, first, second)[interior]
    downstream = np.where(positive, second, first)[interior]
    n = grid.number_of_cells
    return csr_matrix(
        (np.ones(upstream.size, dtype=np.int8), (upstream, downstream)), shape=(n, n)
    )


def compute_transport_order(
    grid: Grid, darcyflux: npt.ArrayLike
) -> typing.List[npt.NDArray[np.integer]]:
    """
    Computes the order in which cells can be solved.

    :param grid: Grid topology.
    :param darcyflux: Total Darcy flux per face.
    :return: Strongly connected components of the upwind graph, upstream first.
        Each component lists its cells in ascending order. Among components that
        are ready at the same time, the one holding the smallest cell comes first.
    """
    darcyflux = np.asarray(darcyflux, dtype=np.float64)
    if darcyflux.shape != (grid.number_of_faces,):
        raise ValidationError(
            f"Expected {grid.number_of_faces} face fluxes, got shape {darcyflux.shape}."
        )

    graph = _build_upwind_graph(grid, darcyflux)
    number_of_components, labels = connected_components(
        graph, directed=True, connection="strong"
    )
    members: typing.List[typing.List[int]] = [[] for _ in range(number_of_components)]
    for cell, label in enumerate(labels):
        members[label].append(cell)

    coo = graph.tocoo()
    successors: typing.List[typing.Set[int]] = [
        set() for _ in range(number_of_components)
    ]
    for upstream, downstream in zip(labels[coo.row], labels[coo.col]):
        if upstream != downstream:
            successors[upstream].add(int(downstream))
    in_degree = np.zeros(number_of_components, dtype=np.int64)
    for targets in successors:
        for target in targets:
            in_degree[target] += 1

    ready = [
        (members[label][0], label)
        for label in range(number_of_components)
        if in_degree[label] == 0
    ]
    heapq.heapify(ready)
    order = []
    while ready:
        _, label = heapq.heappop(ready)
        order.append(np.asarray(members[label], dtype=np.int64))
        for target in successors[label]:
            in_degree[target] -= 1
            if in_degree[target] == 0:
                heapq.heappush(ready, (members[target][0], target))

    logger.debug(
        f"Transport order: {len(order)} components over {grid.number_of_cells} cells"
    )
    return order


def reorder_and_transport(
    grid: Grid,
    darcyflux: npt.ArrayLike,
    solve_single_cell: SolveSingleCell,
    solve_multi_cell: SolveMultiCell,
) -> typing.List[npt.NDArray[np.integer]]:
    """
    Solves all cells in upwind order.

    :param grid: Grid topology.
    :param darcyflux: Total Darcy flux per face.
    :param solve_single_cell: Called with the index of every cell not on a flow cycle.
    :param solve_multi_cell: Called with the cells of every flow cycle.
    :return: The transport order that was used.
    """
    order = compute_transport_order(grid, darcyflux)
    for component in order:
        if component.size == 1:
            solve_single_cell(int(component[0]))
        else:
            solve_multi_cell(component)
    return order
