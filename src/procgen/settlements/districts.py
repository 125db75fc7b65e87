"""District planning: weighted circular zones inside a settlement."""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Sequence

from ..config import SettlementType
from ..rng import RandomGenerator


class DistrictType(str, Enum):
    CENTER = "center"
    MARKET = "market"
    RESIDENTIAL = "residential"
    NOBLE = "noble"
    SLUMS = "slums"
    INDUSTRIAL = "industrial"
    TEMPLE = "temple"
    MILITARY = "military"
    DOCK = "dock"
    GARDEN = "garden"
    CASTLE = "castle"


# Wealth used for residential class and fallback building tiers
DISTRICT_WEALTH: dict[DistrictType, float] = {
    DistrictType.NOBLE: 0.9,
    DistrictType.CASTLE: 0.9,
    DistrictType.CENTER: 0.7,
    DistrictType.TEMPLE: 0.6,
    DistrictType.MARKET: 0.6,
    DistrictType.RESIDENTIAL: 0.5,
    DistrictType.INDUSTRIAL: 0.4,
    DistrictType.SLUMS: 0.15,
}


@dataclass(frozen=True)
class District:
    type: DistrictType
    center_x: float
    center_y: float
    radius: float
    importance: float


@dataclass(frozen=True)
class DistrictSpec:
    """One entry of a settlement template.

    Offsets and radii are fractions of the settlement radius. ``bearing`` is
    added to the template's random base angle unless ``absolute`` is set;
    a bearing of None puts the district at the settlement centre.
    """

    type: DistrictType
    radius: float
    importance: float
    bearing: float | None = None
    offset: float = 0.0
    absolute: bool = False


def _ring(count: int, start: float, step: float, offset: float, radius: float,
          importance: float, importance_step: float = 0.0,
          absolute: bool = False) -> list[DistrictSpec]:
    return [
        DistrictSpec(
            DistrictType.RESIDENTIAL,
            radius=radius,
            importance=importance - i * importance_step,
            bearing=start + i * step,
            offset=offset,
            absolute=absolute,
        )
        for i in range(count)
    ]


_VILLAGE = [
    DistrictSpec(DistrictType.CENTER, radius=0.3, importance=0.8),
    DistrictSpec(DistrictType.RESIDENTIAL, radius=1.0, importance=0.4),
]

_CITY = [
    DistrictSpec(DistrictType.CENTER, radius=0.15, importance=1.0),
    DistrictSpec(DistrictType.NOBLE, radius=0.2, importance=0.9, bearing=0.0, offset=0.25),
    DistrictSpec(DistrictType.MARKET, radius=0.2, importance=0.75, bearing=1.5, offset=0.3),
    DistrictSpec(DistrictType.TEMPLE, radius=0.15, importance=0.7, bearing=3.0, offset=0.25),
    DistrictSpec(DistrictType.INDUSTRIAL, radius=0.2, importance=0.3, bearing=4.5, offset=0.7),
    *_ring(4, 0.0, 1.57, 0.5, 0.2, 0.5, absolute=True),
]

DISTRICT_TEMPLATES: dict[SettlementType, list[DistrictSpec]] = {
    SettlementType.FARM: [DistrictSpec(DistrictType.RESIDENTIAL, radius=1.0, importance=0.3)],
    SettlementType.HAMLET: _VILLAGE,
    SettlementType.VILLAGE: _VILLAGE,
    SettlementType.TOWN: [
        DistrictSpec(DistrictType.CENTER, radius=0.2, importance=0.9),
        DistrictSpec(DistrictType.MARKET, radius=0.25, importance=0.7, bearing=0.0, offset=0.35),
        DistrictSpec(DistrictType.TEMPLE, radius=0.2, importance=0.6, bearing=3.14, offset=0.3),
        *_ring(3, 1.5, 1.5, 0.6, 0.3, 0.4, importance_step=0.1),
    ],
    SettlementType.CITY: _CITY,
    SettlementType.METROPOLIS: [
        *_CITY,
        DistrictSpec(DistrictType.SLUMS, radius=0.25, importance=0.1, bearing=3.14, offset=0.8),
    ],
    SettlementType.FORTRESS: [
        DistrictSpec(DistrictType.MILITARY, radius=0.6, importance=0.9),
        DistrictSpec(DistrictType.INDUSTRIAL, radius=1.0, importance=0.4),
    ],
    SettlementType.CASTLE: [
        DistrictSpec(DistrictType.CASTLE, radius=0.5, importance=1.0),
        DistrictSpec(DistrictType.GARDEN, radius=0.3, importance=0.6, bearing=0.0, offset=0.5),
    ],
}


def plan_districts(
    center_x: float,
    center_y: float,
    radius: float,
    settlement_type: SettlementType,
    rng: RandomGenerator,
    enabled: bool = True,
) -> list[District]:
    """Lay out the type's district template around the centre.

    One base angle is drawn when the template has any off-centre district
    with a relative bearing. With districts disabled the whole settlement is
    a single residential district.
    """
    if not enabled:
        return [District(DistrictType.RESIDENTIAL, center_x, center_y, radius, 0.5)]

    template = DISTRICT_TEMPLATES.get(settlement_type, [])
    needs_angle = any(s.bearing is not None and not s.absolute for s in template)
    base_angle = rng.next_float_range(0.0, 6.28) if needs_angle else 0.0

    districts = []
    for entry in template:
        x, y = center_x, center_y
        if entry.bearing is not None:
            angle = entry.bearing if entry.absolute else base_angle + entry.bearing
            x += math.cos(angle) * radius * entry.offset
            y += math.sin(angle) * radius * entry.offset
        districts.append(District(entry.type, x, y, radius * entry.radius, entry.importance))
    return districts


def district_at(districts: Sequence[District], x: float, y: float) -> DistrictType:
    """Type of the district whose centre is nearest among those covering the point."""
    best = DistrictType.RESIDENTIAL
    best_dist = math.inf
    for d in districts:
        dist = math.hypot(x - d.center_x, y - d.center_y)
        if dist < d.radius and dist < best_dist:
            best_dist = dist
            best = d.type
    return best


def wealth_of(district: DistrictType) -> float:
    return DISTRICT_WEALTH.get(district, 0.5)
