"""Coarse walkable-point graphs for exterior cells."""

import logging
from dataclasses import dataclass

from ..hosts import TerrainQueries
from ..terrain_types import REAL_SIZE, cell_origin

logger = logging.getLogger(__name__)

GRID_SIZE = 8
MAX_WALKABLE_SLOPE = 0.6
MAX_STEP_HEIGHT = 200


@dataclass
class Pathgrid:
    """Walkable points in cell-local integer coordinates plus their edges."""

    cell_x: int
    cell_y: int
    points: list[tuple[int, int, int]]
    edges: list[tuple[int, int]]


def build_pathgrid(terrain: TerrainQueries, cell_x: int, cell_y: int) -> Pathgrid:
    """Sample an 8x8 grid and link walkable neighbours.

    A point is walkable when it is dry and no steeper than 0.6. Points are
    linked to their eight grid neighbours when the height step is under 200.
    """
    x0, y0 = cell_origin(cell_x, cell_y)
    spacing = REAL_SIZE / GRID_SIZE
    water_level = terrain.water_level()

    points: list[tuple[int, int, int]] = []
    grid_pos: list[tuple[int, int]] = []
    for gy in range(GRID_SIZE):
        for gx in range(GRID_SIZE):
            lx = (gx + 0.5) * spacing
            ly = (gy + 0.5) * spacing
            h = terrain.height(x0 + lx, y0 + ly)
            if terrain.slope(x0 + lx, y0 + ly) > MAX_WALKABLE_SLOPE or h < water_level:
                continue
            points.append((int(lx), int(ly), int(h)))
            grid_pos.append((gx, gy))

    edges = []
    for i in range(len(points)):
        for j in range(i + 1, len(points)):
            dgx = abs(grid_pos[i][0] - grid_pos[j][0])
            dgy = abs(grid_pos[i][1] - grid_pos[j][1])
            if dgx <= 1 and dgy <= 1 and abs(points[i][2] - points[j][2]) < MAX_STEP_HEIGHT:
                edges.append((i, j))

    logger.debug(f"Pathgrid ({cell_x}, {cell_y}): {len(points)} points, {len(edges)} edges")
    return Pathgrid(cell_x, cell_y, points, edges)
