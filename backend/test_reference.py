"""Cross-check the solver against scipy's Dijkstra on the explicit state graph."""

import numpy as np
import pytest
from scipy.sparse import csr_matrix
from scipy.sparse.csgraph import dijkstra

from crucible.grid import Direction, Grid, Point
from crucible.search import SearchState, minimum_heat_loss, neighbors


def reference_cost(grid: Grid, max_run: int) -> int:
    """
    Build every (point, direction, run) state as a graph node, plus node 0
    for the origin, and let scipy find the cheapest state on the destination.

    Grid values must be positive: scipy drops zero-weight edges.
    """
    states = [
        SearchState(Point(row, col), direction, run)
        for row in range(grid.size)
        for col in range(grid.size)
        for direction in Direction
        for run in range(1, max_run + 1)
    ]
    index = {state: i + 1 for i, state in enumerate(states)}

    rows, cols, weights = [], [], []
    for direction in (Direction.RIGHT, Direction.DOWN):
        point = grid.move(grid.origin, direction)
        rows.append(0)
        cols.append(index[SearchState(point, direction, 1)])
        weights.append(grid.get(point))
    for state in states:
        for neighbor in neighbors(state, grid, max_run):
            rows.append(index[state])
            cols.append(index[neighbor.state])
            weights.append(neighbor.cost)

    n = len(states) + 1
    graph = csr_matrix((weights, (rows, cols)), shape=(n, n))
    distances = dijkstra(graph, directed=True, indices=0)

    targets = [index[s] for s in states if s.point == grid.destination]
    return int(round(distances[targets].min()))


@pytest.mark.parametrize("seed", range(6))
@pytest.mark.parametrize("max_run", [1, 2, 3, 4])
def test_matches_reference_on_random_grids(seed, max_run):
    rng = np.random.default_rng(seed)
    size = int(rng.integers(2, 9))
    grid = Grid(rng.integers(1, 10, size=(size, size)))

    assert minimum_heat_loss(grid, max_run=max_run) == reference_cost(grid, max_run)


def test_reference_agrees_on_sample(sample_grid):
    assert reference_cost(sample_grid, 3) == 102
