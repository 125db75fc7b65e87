"""Terrain texture classes and exterior cell geometry."""

import math
from enum import IntEnum

# World units along one side of an exterior cell
REAL_SIZE = 8192
# Height vertices along one side of a cell's land record
LAND_SIZE = 65
# Texture tiles along one side of a cell's land record
LAND_TEXTURE_SIZE = 16


class TextureClass(IntEnum):
    """Land texture slots chosen by height and slope."""

    SAND = 0
    GRASS = 1
    ROCK = 2
    DIRT = 3
    SNOW = 4

    @property
    def steep(self) -> bool:
        """Whether this class marks ground too steep for most placement."""
        return self is TextureClass.ROCK


def cell_coords(x: float, y: float) -> tuple[int, int]:
    """Exterior cell containing a world position."""
    return math.floor(x / REAL_SIZE), math.floor(y / REAL_SIZE)


def cell_id(x: float, y: float) -> str:
    """Exterior cell id ``"#cx, cy"`` for a world position."""
    cx, cy = cell_coords(x, y)
    return format_cell_id(cx, cy)


def format_cell_id(cell_x: int, cell_y: int) -> str:
    return f"#{cell_x}, {cell_y}"


def cell_origin(cell_x: int, cell_y: int) -> tuple[float, float]:
    """World position of a cell's south-west corner."""
    return float(cell_x * REAL_SIZE), float(cell_y * REAL_SIZE)


def cell_center(cell_x: int, cell_y: int) -> tuple[float, float]:
    return cell_x * REAL_SIZE + REAL_SIZE / 2.0, cell_y * REAL_SIZE + REAL_SIZE / 2.0
