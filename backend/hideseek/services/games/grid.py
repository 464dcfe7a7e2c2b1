import random
from typing import Optional, Tuple

FLOOR = 0
WALL = 1

# Cells with x <= 2 and y <= 2 are always open so joins never land in a wall
SPAWN_CLEARANCE = 2

Grid = Tuple[Tuple[int, ...], ...]


def generate_grid(size: int, wall_probability: float, spawn: Tuple[int, int],
                  rng: Optional[random.Random] = None) -> Grid:
    """Build the shared N x N map, row-major (grid[y][x]).

    Each cell is independently WALL with probability ``wall_probability``.
    The spawn neighborhood is then cleared, and the spawn cell itself is
    forced to FLOOR last so a spawn outside the neighborhood is still open.
    """
    rng = rng or random.Random()
    rows = []
    for y in range(size):
        row = []
        for x in range(size):
            if x <= SPAWN_CLEARANCE and y <= SPAWN_CLEARANCE:
                row.append(FLOOR)
            else:
                row.append(WALL if rng.random() < wall_probability else FLOOR)
        rows.append(row)
    spawn_x, spawn_y = spawn
    rows[spawn_y][spawn_x] = FLOOR
    return tuple(tuple(row) for row in rows)


def in_bounds(grid: Grid, x: int, y: int) -> bool:
    size = len(grid)
    return 0 <= x < size and 0 <= y < size


def is_floor(grid: Grid, x: int, y: int) -> bool:
    return in_bounds(grid, x, y) and grid[y][x] == FLOOR


def grid_to_list(grid: Grid):
    return [list(row) for row in grid]
