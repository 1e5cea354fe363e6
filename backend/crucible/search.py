"""
Run-Length Constrained Dijkstra for Crucible Routes

Shortest path over an augmented state space:
- State = (point, direction of arrival, run length in that direction)
- At most `max_run` consecutive steps in one direction
- No immediate reversal
- Entering a cell costs the grid value at that cell

Visited bookkeeping is per state, not per position: two states on the same
cell with different direction/run are distinct and carry their own costs.
"""

import os
import time
import threading
from dataclasses import dataclass
from typing import Optional, List, Dict, Any, Set, Callable
from enum import IntEnum

from .frontier import BucketFrontier
from .grid import Direction, Grid, Point


# =============================================================================
# ENUMS & ERRORS
# =============================================================================

class SearchStatus(IntEnum):
    """How a search terminated"""
    FOUND = 0
    NO_PATH = 1
    CANCELLED = 2
    ITERATION_LIMIT = 3
    TIMEOUT = 4


class CrucibleError(RuntimeError):
    """Base class for search-time failures."""


class NoPathFoundError(CrucibleError):
    """Frontier exhausted before the destination was reached."""

    def __init__(self, message: str, result: Optional['SearchResult'] = None):
        super().__init__(message)
        self.result = result


class SearchAbortedError(CrucibleError):
    """Search stopped early by cancellation, timeout or iteration cap."""

    def __init__(self, message: str, result: Optional['SearchResult'] = None):
        super().__init__(message)
        self.result = result

    @property
    def status(self) -> Optional[SearchStatus]:
        return self.result.status if self.result is not None else None


# =============================================================================
# CONFIGURATION
# =============================================================================

@dataclass
class CrucibleConfig:
    """
    Configuration for the crucible route solver.

    Origin and destination default to the grid corners and are chosen per
    search, not here.
    """

    # Consecutive steps allowed in one direction before a turn is forced
    max_run: int = 3

    # === Search Limits ===
    # Checked once per extract-min iteration. None = unlimited.
    max_iterations: Optional[int] = None
    timeout_s: Optional[float] = None

    # === Logging ===
    progress_interval: int = 100_000
    verbose: bool = True

    def __post_init__(self):
        if self.max_run < 1:
            raise ValueError(f"max_run must be at least 1, got {self.max_run}")
        if self.progress_interval < 1:
            raise ValueError(f"progress_interval must be positive, got {self.progress_interval}")
        if self.max_iterations is not None and self.max_iterations < 0:
            raise ValueError(f"max_iterations must be non-negative, got {self.max_iterations}")
        if self.timeout_s is not None and self.timeout_s < 0:
            raise ValueError(f"timeout_s must be non-negative, got {self.timeout_s}")

    @classmethod
    def from_env(cls) -> 'CrucibleConfig':
        """Build a config from CRUCIBLE_* environment variables."""
        max_iterations = os.getenv("CRUCIBLE_MAX_ITERATIONS")
        timeout_s = os.getenv("CRUCIBLE_TIMEOUT_S")
        return cls(
            max_run=int(os.getenv("CRUCIBLE_MAX_RUN", "3")),
            max_iterations=int(max_iterations) if max_iterations else None,
            timeout_s=float(timeout_s) if timeout_s else None,
            progress_interval=int(os.getenv("CRUCIBLE_PROGRESS_INTERVAL", "100000")),
            verbose=os.getenv("CRUCIBLE_VERBOSE", "true").lower() == "true",
        )


# =============================================================================
# STATE REPRESENTATION
# =============================================================================

@dataclass(frozen=True, order=True)
class SearchState:
    """
    Augmented search node.

    - point: cell the state sits on
    - direction: direction of the step that entered `point`
    - run: consecutive steps taken in `direction`, 1..max_run
    """
    point: Point
    direction: Direction
    run: int


@dataclass
class Neighbor:
    """A successor state and the cost of the step into it."""
    state: SearchState
    cost: int


def neighbors(state: SearchState, grid: Grid, max_run: int = 3) -> List[Neighbor]:
    """
    Legal successors of `state`.

    Turning resets the run to 1; continuing straight is allowed only while
    run < max_run; reversing is never allowed. Pure: reads `grid` only.
    """
    out: List[Neighbor] = []
    reverse = state.direction.opposite

    for direction in Direction:
        if direction == reverse:
            continue

        if direction == state.direction:
            if state.run >= max_run:
                continue
            run = state.run + 1
        else:
            run = 1

        point = grid.move(state.point, direction)
        if point is None:
            continue

        out.append(Neighbor(
            state=SearchState(point=point, direction=direction, run=run),
            cost=grid.cost_of(point)
        ))

    return out


# =============================================================================
# RESULTS
# =============================================================================

@dataclass
class PathStep:
    """One cell of a reconstructed path."""
    point: Point
    direction: Optional[Direction]  # None for the origin
    run: int  # 0 for the origin
    cost: int  # Cumulative cost on arrival

    def to_dict(self) -> Dict[str, Any]:
        return {
            'row': self.point.row,
            'col': self.point.col,
            'direction': self.direction.name.lower() if self.direction is not None else None,
            'run': self.run,
            'cost': self.cost
        }


@dataclass
class SearchResult:
    """Result of a crucible search."""
    success: bool
    status: SearchStatus
    total_cost: Optional[int]
    path: List[PathStep]
    iterations: int
    nodes_expanded: int
    elapsed_time: float
    message: str

    def to_dict(self, include_path: bool = True) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result = {
            'success': self.success,
            'status': self.status.name.lower(),
            'total_cost': self.total_cost,
            'iterations': self.iterations,
            'nodes_expanded': self.nodes_expanded,
            'elapsed_time': self.elapsed_time,
            'message': self.message
        }
        if include_path:
            result['path'] = [step.to_dict() for step in self.path]
        return result


# =============================================================================
# SOLVER
# =============================================================================

FinalizeHook = Callable[[SearchState, int], None]


class CrucibleSolver:
    """
    Dijkstra over (point, direction, run) states.

    The grid is only read, so one grid may back any number of solvers.
    Each find_path call owns its own frontier and finalized set.
    """

    def __init__(self, grid: Grid, config: Optional[CrucibleConfig] = None):
        self.grid = grid
        self.config = config or CrucibleConfig()

    def _log(self, message: str) -> None:
        if self.config.verbose:
            print(f"[Crucible] {message}")

    def seed_states(self, origin: Point) -> List[Neighbor]:
        """
        One state per legal first step out of `origin`, each with run = 1.

        From the top-left corner that is exactly one RIGHT and one DOWN
        state.
        """
        seeds: List[Neighbor] = []
        for direction in Direction:
            point = self.grid.move(origin, direction)
            if point is None:
                continue
            seeds.append(Neighbor(
                state=SearchState(point=point, direction=direction, run=1),
                cost=self.grid.cost_of(point)
            ))
        return seeds

    def find_path(
        self,
        origin: Optional[Point] = None,
        destination: Optional[Point] = None,
        cancel_event: Optional[threading.Event] = None,
        on_finalize: Optional[FinalizeHook] = None
    ) -> SearchResult:
        """
        Find the cheapest route from origin to destination.

        Args:
            origin, destination: Grid points; default to the top-left and
                                 bottom-right corners.
            cancel_event: Optional external cancellation, polled once per
                          extract-min iteration.
            on_finalize: Called with (state, cost) each time a state is
                         finalized, in finalize order.

        Returns:
            SearchResult; on failure `success` is False and `status` says why.
        """
        origin = Point(*origin) if origin is not None else self.grid.origin
        destination = Point(*destination) if destination is not None else self.grid.destination
        for name, point in (("origin", origin), ("destination", destination)):
            if not self.grid.in_bounds(point):
                raise ValueError(f"{name} {tuple(point)} is outside the {self.grid.size}x{self.grid.size} grid")

        max_run = self.config.max_run
        start_time = time.time()

        if origin == destination:
            return SearchResult(
                success=True,
                status=SearchStatus.FOUND,
                total_cost=0,
                path=[PathStep(point=origin, direction=None, run=0, cost=0)],
                iterations=0,
                nodes_expanded=0,
                elapsed_time=time.time() - start_time,
                message="Origin is the destination"
            )

        frontier = BucketFrontier()
        finalized: Set[SearchState] = set()
        came_from: Dict[SearchState, Optional[SearchState]] = {}
        g_score: Dict[SearchState, int] = {}

        for seed in self.seed_states(origin):
            frontier.insert_or_improve(seed.state, seed.cost)
            came_from[seed.state] = None
            g_score[seed.state] = seed.cost

        self._log(f"Grid {self.grid.size}x{self.grid.size}, {origin} -> {destination}, "
                  f"max run {max_run}, {len(frontier)} seed states")

        iterations = 0
        nodes_expanded = 0

        while True:
            abort_status = self._check_abort(iterations, start_time, cancel_event)
            if abort_status is not None:
                return self._aborted(abort_status, iterations, nodes_expanded, start_time)

            entry = frontier.extract_min()
            if entry is None:
                break
            current, current_cost = entry
            iterations += 1

            if current.point == destination:
                path = self._reconstruct_path(origin, current, came_from, g_score)
                elapsed = time.time() - start_time
                self._log(f"Path found: cost {current_cost}, {len(path)} cells, "
                          f"{iterations:,} iterations, {elapsed:.3f}s")
                return SearchResult(
                    success=True,
                    status=SearchStatus.FOUND,
                    total_cost=current_cost,
                    path=path,
                    iterations=iterations,
                    nodes_expanded=nodes_expanded,
                    elapsed_time=elapsed,
                    message=f"Path found in {iterations} iterations"
                )

            for neighbor in neighbors(current, self.grid, max_run):
                if neighbor.state in finalized:
                    continue
                assert neighbor.state.run <= max_run, (
                    f"Transition produced run {neighbor.state.run} > max_run {max_run}"
                )
                new_cost = current_cost + neighbor.cost
                if frontier.insert_or_improve(neighbor.state, new_cost):
                    came_from[neighbor.state] = current
                    g_score[neighbor.state] = new_cost

            finalized.add(current)
            nodes_expanded += 1
            if on_finalize is not None:
                on_finalize(current, current_cost)

            if iterations % self.config.progress_interval == 0:
                elapsed = time.time() - start_time
                self._log(f"{iterations:,} iterations, {nodes_expanded:,} finalized, "
                          f"{len(frontier):,} queued in {frontier.bucket_count} buckets, "
                          f"cost {current_cost}, {elapsed:.1f}s")

        elapsed = time.time() - start_time
        self._log(f"No path found after {iterations:,} iterations ({nodes_expanded:,} states finalized)")
        return SearchResult(
            success=False,
            status=SearchStatus.NO_PATH,
            total_cost=None,
            path=[],
            iterations=iterations,
            nodes_expanded=nodes_expanded,
            elapsed_time=elapsed,
            message="Search terminated: no path exists"
        )

    def solve(
        self,
        origin: Optional[Point] = None,
        destination: Optional[Point] = None,
        cancel_event: Optional[threading.Event] = None
    ) -> int:
        """Minimum route cost, raising NoPathFoundError / SearchAbortedError."""
        result = self.find_path(origin=origin, destination=destination, cancel_event=cancel_event)
        if result.success:
            return result.total_cost
        if result.status == SearchStatus.NO_PATH:
            raise NoPathFoundError(result.message, result)
        raise SearchAbortedError(result.message, result)

    def _check_abort(
        self,
        iterations: int,
        start_time: float,
        cancel_event: Optional[threading.Event]
    ) -> Optional[SearchStatus]:
        if cancel_event is not None and cancel_event.is_set():
            return SearchStatus.CANCELLED
        if self.config.max_iterations is not None and iterations >= self.config.max_iterations:
            return SearchStatus.ITERATION_LIMIT
        if self.config.timeout_s is not None and time.time() - start_time > self.config.timeout_s:
            return SearchStatus.TIMEOUT
        return None

    def _aborted(
        self,
        status: SearchStatus,
        iterations: int,
        nodes_expanded: int,
        start_time: float
    ) -> SearchResult:
        if status == SearchStatus.CANCELLED:
            message = "Search terminated: cancelled"
        elif status == SearchStatus.ITERATION_LIMIT:
            message = f"Search terminated: max iterations ({self.config.max_iterations}) reached"
        else:
            message = f"Search terminated: timeout ({self.config.timeout_s}s) reached"
        self._log(message)

        return SearchResult(
            success=False,
            status=status,
            total_cost=None,
            path=[],
            iterations=iterations,
            nodes_expanded=nodes_expanded,
            elapsed_time=time.time() - start_time,
            message=message
        )

    def _reconstruct_path(
        self,
        origin: Point,
        goal: SearchState,
        came_from: Dict[SearchState, Optional[SearchState]],
        g_score: Dict[SearchState, int]
    ) -> List[PathStep]:
        """Walk parent links from `goal` back to a seed state, then prepend the origin."""
        steps: List[PathStep] = []
        current: Optional[SearchState] = goal
        while current is not None:
            steps.append(PathStep(
                point=current.point,
                direction=current.direction,
                run=current.run,
                cost=g_score[current]
            ))
            current = came_from[current]

        steps.append(PathStep(point=origin, direction=None, run=0, cost=0))
        steps.reverse()
        return steps


def minimum_heat_loss(grid: Grid, max_run: int = 3) -> int:
    """Cheapest top-left to bottom-right route cost on `grid`."""
    solver = CrucibleSolver(grid, CrucibleConfig(max_run=max_run, verbose=False))
    return solver.solve()
