"""Interior layouts by binary space partitioning.

The partition tree is an arena: nodes live in one list and refer to their
children by index. Splitting is breadth first so shallow, even rooms are
produced before deep slivers.
"""

import math
from collections import deque
from dataclasses import dataclass

import structlog

from .assets import AssetCategory
from .config import InteriorParams
from .hosts import GenerationContext, require_accepted
from .rng import RandomGenerator

logger = structlog.get_logger()

# Aspect ratio beyond which the long side is always split
FORCE_SPLIT_RATIO = 1.25
MAX_PADDING_FRACTION = 0.25
LIGHT_HEIGHT_FRACTION = 0.8

LIGHT_FALLBACK = "light_com_candle_01"
CONTAINER_FALLBACKS = ["contain_barrel_01", "contain_crate_01", "chest_small_01"]


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    width: float
    height: float

    @property
    def center(self) -> tuple[float, float]:
        return self.x + self.width / 2.0, self.y + self.height / 2.0

    def overlaps(self, other: "Rect") -> bool:
        """Whether the interiors intersect (shared edges do not count)."""
        return (
            self.x < other.x + other.width
            and other.x < self.x + self.width
            and self.y < other.y + other.height
            and other.y < self.y + self.height
        )


@dataclass
class BSPNode:
    """A rectangle in the partition; leaves carry a padded room."""

    bounds: Rect
    left: int | None = None
    right: int | None = None
    room: Rect | None = None

    @property
    def is_leaf(self) -> bool:
        return self.left is None and self.right is None


class BSPTree:
    """Arena-backed partition of a square footprint into rooms."""

    def __init__(self, side: float):
        half = side / 2.0
        self.nodes: list[BSPNode] = [BSPNode(Rect(-half, -half, side, side))]

    @property
    def root(self) -> BSPNode:
        return self.nodes[0]

    def _add(self, bounds: Rect) -> int:
        self.nodes.append(BSPNode(bounds))
        return len(self.nodes) - 1

    def split(self, index: int, horizontal: bool, fraction: float) -> tuple[int, int]:
        """Split a node into two children and return their indices."""
        b = self.nodes[index].bounds
        if horizontal:
            cut = b.height * fraction
            first = Rect(b.x, b.y, b.width, cut)
            second = Rect(b.x, b.y + cut, b.width, b.height - cut)
        else:
            cut = b.width * fraction
            first = Rect(b.x, b.y, cut, b.height)
            second = Rect(b.x + cut, b.y, b.width - cut, b.height)
        left = self._add(first)
        right = self._add(second)
        node = self.nodes[index]
        node.left, node.right = left, right
        return left, right

    def rooms(self) -> list[Rect]:
        """Leaf rooms in breadth-first order."""
        rooms = []
        queue = deque([0])
        while queue:
            node = self.nodes[queue.popleft()]
            if node.room is not None:
                rooms.append(node.room)
            for child in (node.left, node.right):
                if child is not None:
                    queue.append(child)
        return rooms


def padded_room(bounds: Rect, padding: float) -> Rect:
    """Room inset inside its leaf; padding never exceeds a quarter of the short side."""
    pad = min(padding, MAX_PADDING_FRACTION * min(bounds.width, bounds.height))
    return Rect(
        bounds.x + pad,
        bounds.y + pad,
        bounds.width - 2.0 * pad,
        bounds.height - 2.0 * pad,
    )


def generate_layout(
    rng: RandomGenerator,
    room_count: int,
    room_size_min: float,
    room_size_max: float,
    corridor_width: float,
) -> BSPTree:
    """Partition a square of side ``room_size_max * sqrt(room_count)``.

    A queue of open nodes is processed until ``room_count`` rooms exist.
    Each node either splits along a random axis (the long side when the
    aspect ratio exceeds 1.25) at a fraction in [0.4, 0.6], or becomes a
    room when the chosen side is under twice the minimum size. Nodes still
    queued when the target is reached stay empty.
    """
    tree = BSPTree(room_size_max * math.sqrt(max(room_count, 1)))
    min_size = room_size_min * 1.5
    queue = deque([0])
    room_total = 0

    while queue and room_total < room_count:
        index = queue.popleft()
        b = tree.nodes[index].bounds

        horizontal = rng.next_bool(0.5)
        if b.width > b.height * FORCE_SPLIT_RATIO:
            horizontal = False
        elif b.height > b.width * FORCE_SPLIT_RATIO:
            horizontal = True

        span = b.height if horizontal else b.width
        if span > min_size * 2.0:
            left, right = tree.split(index, horizontal, rng.next_float_range(0.4, 0.6))
            queue.append(left)
            queue.append(right)
        else:
            tree.nodes[index].room = padded_room(b, corridor_width)
            room_total += 1

    return tree


def populate_interior(
    ctx: GenerationContext,
    interior_id: str,
    rooms: list[Rect],
    params: InteriorParams,
) -> list[str]:
    """A light per room and sometimes a container. Returns object ids placed.

    Interior references carry the interior name as their cell id and an
    explicit z, since there is no terrain inside.
    """
    rng = ctx.rng
    use_library = ctx.use_asset_library and params.use_asset_library
    placed = []
    for room in rooms:
        cx, cy = room.center
        if params.generate_lighting:
            light = LIGHT_FALLBACK
            if use_library:
                lights = ctx.catalog.get_asset_ids(AssetCategory.LIGHT)
                if lights:
                    light = rng.choice(lights)
            ctx.host.create_reference(
                light, interior_id, cx, cy, params.ceiling_height * LIGHT_HEIGHT_FRACTION, 0.0, 1.0
            )
            placed.append(light)

        if params.generate_containers and rng.next_bool(params.clutter):
            x = room.x + room.width * rng.next_float_range(0.2, 0.8)
            y = room.y + room.height * rng.next_float_range(0.2, 0.8)
            container = None
            if use_library:
                containers = ctx.catalog.get_asset_ids(AssetCategory.CONTAINER)
                if containers:
                    container = rng.choice(containers)
            if container is None:
                container = rng.choice(CONTAINER_FALLBACKS)
            ctx.host.create_reference(
                container, interior_id, x, y, 0.0, rng.next_float_range(0.0, 6.28), 1.0
            )
            placed.append(container)
    return placed


def build_interior(
    ctx: GenerationContext,
    interior_id: str,
    room_count: int,
    params: InteriorParams,
    room_size_min: float | None = None,
    room_size_max: float | None = None,
) -> list[Rect]:
    """Create an interior cell, lay out its rooms and dress them.

    Room sizes default to the interior parameters; caves and dungeons pass
    their own.
    """
    require_accepted(ctx.host.create_interior(interior_id), f"interior {interior_id}")
    tree = generate_layout(
        ctx.rng,
        room_count,
        room_size_min if room_size_min is not None else params.room_size_min,
        room_size_max if room_size_max is not None else params.room_size_max,
        params.corridor_width,
    )
    rooms = tree.rooms()
    populate_interior(ctx, interior_id, rooms, params)
    logger.debug("interior_built", interior=interior_id, requested=room_count, rooms=len(rooms))
    return rooms
