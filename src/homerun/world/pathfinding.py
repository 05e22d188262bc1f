from collections import deque
from typing import Optional, Set, Tuple

from .grid import TileGrid

Cell = Tuple[int, int]


def flood_fill(grid: TileGrid, start: Cell) -> Set[Cell]:
    """All walkable cells 4-connected to start (empty if start is not walkable)."""
    if not grid.is_walkable(*start):
        return set()
    seen = {start}
    q = deque([start])
    while q:
        x, y = q.popleft()
        for nx, ny in grid.neighbors4(x, y):
            if (nx, ny) not in seen and grid.is_walkable(nx, ny):
                seen.add((nx, ny))
                q.append((nx, ny))
    return seen


def path_length(grid: TileGrid, start: Cell, goal: Cell) -> Optional[int]:
    """Breadth-first shortest path length over walkable tiles; None when unreachable."""
    if not grid.is_walkable(*start) or not grid.is_walkable(*goal):
        return None
    q = deque([(start, 0)])
    seen = {start}
    while q:
        (x, y), d = q.popleft()
        if (x, y) == goal:
            return d
        for nxt in grid.neighbors4(x, y):
            if nxt not in seen and grid.is_walkable(*nxt):
                seen.add(nxt)
                q.append((nxt, d + 1))
    return None


def is_reachable(grid: TileGrid, start: Cell, goal: Cell) -> bool:
    return path_length(grid, start, goal) is not None
