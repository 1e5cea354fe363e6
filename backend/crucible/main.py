"""
Crucible Route Finder - Backend API
Minimum heat-loss routing with run-length constraints
"""

from pathlib import Path

# Load .env file from backend folder
from dotenv import load_dotenv
env_path = Path(__file__).parent.parent / ".env"
load_dotenv(env_path)

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
from typing import Optional, List
from dataclasses import replace

from .grid import Grid, Point
from .search import CrucibleConfig, CrucibleSolver, SearchResult

app = FastAPI(
    title="Crucible Route Finder",
    description="Minimum heat-loss routing on a cost grid with a consecutive-step limit",
    version="0.1.0"
)

# CORS for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://localhost:3000", "http://localhost:3001"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Defaults for every request, overridable per request
base_config = CrucibleConfig.from_env()


class GridPoint(BaseModel):
    row: int
    col: int


class SolveRequest(BaseModel):
    grid: List[List[int]]  # Rows of non-negative cell costs
    max_run: Optional[int] = None  # Consecutive-step limit. None = server default
    origin: Optional[GridPoint] = None  # None = top-left corner
    destination: Optional[GridPoint] = None  # None = bottom-right corner
    include_path: bool = True
    timeout_s: Optional[float] = None  # None = server default


class SolveTextRequest(BaseModel):
    text: str  # One row of digits per line
    max_run: Optional[int] = None
    include_path: bool = True
    timeout_s: Optional[float] = None


class SolveResponse(BaseModel):
    success: bool
    message: str
    total_cost: Optional[int] = None
    path: Optional[List[dict]] = None
    stats: Optional[dict] = None


def build_config(max_run: Optional[int], timeout_s: Optional[float]) -> CrucibleConfig:
    """Apply per-request overrides on top of the environment defaults."""
    overrides = {}
    if max_run is not None:
        overrides["max_run"] = max_run
    if timeout_s is not None:
        overrides["timeout_s"] = timeout_s
    return replace(base_config, **overrides)


def run_search(
    grid: Grid,
    config: CrucibleConfig,
    origin: Optional[Point] = None,
    destination: Optional[Point] = None
) -> SearchResult:
    solver = CrucibleSolver(grid, config)
    return solver.find_path(origin=origin, destination=destination)


def to_response(result: SearchResult, include_path: bool) -> SolveResponse:
    stats = result.to_dict(include_path=False)
    stats.pop("success")
    stats.pop("message")
    stats.pop("total_cost")

    if not result.success:
        return SolveResponse(
            success=False,
            message=f"No route found: {result.message}",
            stats=stats
        )

    return SolveResponse(
        success=True,
        message=f"Route found with cost {result.total_cost} in {result.elapsed_time:.3f}s",
        total_cost=result.total_cost,
        path=[step.to_dict() for step in result.path] if include_path else None,
        stats=stats
    )


@app.get("/health")
def health_check():
    return {"status": "healthy"}


@app.post("/api/solve", response_model=SolveResponse)
def solve_grid(request: SolveRequest):
    """Find the minimum-cost route through a grid of integer costs."""
    try:
        grid = Grid.from_rows(request.grid)
        config = build_config(request.max_run, request.timeout_s)
        origin = Point(request.origin.row, request.origin.col) if request.origin else None
        destination = Point(request.destination.row, request.destination.col) if request.destination else None
        print(f"[API] Solving {grid.size}x{grid.size} grid, max run {config.max_run}")
        result = run_search(grid, config, origin, destination)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return to_response(result, request.include_path)


@app.post("/api/solve/text", response_model=SolveResponse)
def solve_text(request: SolveTextRequest):
    """Same as /api/solve, with the grid given as digit rows."""
    try:
        grid = Grid.parse(request.text)
        config = build_config(request.max_run, request.timeout_s)
        print(f"[API] Solving {grid.size}x{grid.size} text grid, max run {config.max_run}")
        result = run_search(grid, config)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return to_response(result, request.include_path)
