"""Wall rings with gates and towers around a settlement."""

import math

from ..assets import AssetCategory
from ..hosts import GenerationContext
from .location import SettlementLocation

WALL_SEGMENT_LENGTH = 80.0
TOWER_EVERY = 8
DEFAULT_WALL_FRACTION = 0.95


def place_walls(ctx: GenerationContext, settlement: SettlementLocation) -> list[str]:
    """Place a closed ring of wall pieces and return their reference ids.

    Gates sit at evenly spaced indices, towers on every eighth piece.
    Nothing is placed when the catalog has no wall segments.
    """
    sp = ctx.config.settlement
    walls = ctx.catalog.get_asset_ids(AssetCategory.WALL)
    if not walls:
        return []
    gates = ctx.catalog.get_asset_ids(AssetCategory.WALL_GATE)
    towers = ctx.catalog.get_asset_ids(AssetCategory.WALL_TOWER)

    radius = sp.wall_radius if sp.wall_radius > 0 else settlement.radius * DEFAULT_WALL_FRACTION
    count = int(2.0 * math.pi * radius / WALL_SEGMENT_LENGTH)
    gate_interval = count / max(1, sp.wall_gate_count)

    refs = []
    for i in range(count):
        angle = i * 2.0 * math.pi / count
        x = settlement.center_x + math.cos(angle) * radius
        y = settlement.center_y + math.sin(angle) * radius

        is_gate = any(
            abs(i - g * gate_interval) < 1.0 for g in range(sp.wall_gate_count)
        )
        if is_gate and gates:
            object_id = ctx.rng.choice(gates)
        elif i % TOWER_EVERY == 0 and towers:
            object_id = ctx.rng.choice(towers)
        else:
            object_id = ctx.rng.choice(walls)

        refs.append(ctx.place(object_id, x, y, rotation=angle + math.pi / 2.0))
    return refs
