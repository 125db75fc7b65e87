"""Building roles: required counts, lot scoring and object selection."""

from dataclasses import dataclass
from enum import Enum
from typing import Sequence

from ..assets import AssetCatalog, AssetCategory
from ..config import SettlementType
from ..rng import RandomGenerator
from .districts import DistrictType, wealth_of
from .lots import BuildingLot


class BuildingRole(str, Enum):
    """What a building is for. Declaration order breaks count ties."""

    TOWN_HALL = "town_hall"
    GUILDHALL = "guildhall"
    COURTHOUSE = "courthouse"
    GENERAL_STORE = "general_store"
    BLACKSMITH = "blacksmith"
    ALCHEMIST = "alchemist"
    CLOTHIER = "clothier"
    JEWELER = "jeweler"
    BOOK_STORE = "book_store"
    BAKERY = "bakery"
    BUTCHER = "butcher"
    TAVERN = "tavern"
    INN = "inn"
    BANK = "bank"
    POOR_HOUSE = "poor_house"
    COMMON_HOUSE = "common_house"
    RICH_HOUSE = "rich_house"
    MANOR = "manor"
    PALACE = "palace"
    TEMPLE = "temple"
    CHAPEL = "chapel"
    SHRINE = "shrine"
    GRAVEYARD = "graveyard"
    BARRACKS = "barracks"
    ARMORY = "armory"
    GUARD_TOWER = "guard_tower"
    PRISON = "prison"
    WORKSHOP = "workshop"
    WAREHOUSE = "warehouse"
    MILL = "mill"
    STABLE = "stable"
    FOUNTAIN = "fountain"
    WELL = "well"
    STATUE = "statue"
    MARKET_STALL = "market_stall"


R = BuildingRole

RESIDENTIAL_ROLES = frozenset({R.POOR_HOUSE, R.COMMON_HOUSE, R.RICH_HOUSE})

# Open structures that never get an interior cell
NO_INTERIOR_ROLES = frozenset(
    {R.WELL, R.FOUNTAIN, R.STATUE, R.MARKET_STALL, R.GUARD_TOWER, R.GRAVEYARD}
)

BUILDING_SIZES: dict[BuildingRole, tuple[float, float]] = {
    R.PALACE: (200.0, 250.0),
    R.TEMPLE: (200.0, 250.0),
    R.TOWN_HALL: (200.0, 250.0),
    R.MANOR: (150.0, 180.0),
    R.BARRACKS: (150.0, 180.0),
    R.WAREHOUSE: (150.0, 180.0),
    R.INN: (120.0, 150.0),
    R.TAVERN: (120.0, 150.0),
    R.GUILDHALL: (120.0, 150.0),
    R.COMMON_HOUSE: (80.0, 100.0),
    R.GENERAL_STORE: (80.0, 100.0),
    R.BLACKSMITH: (80.0, 100.0),
    R.POOR_HOUSE: (50.0, 60.0),
    R.WELL: (30.0, 30.0),
    R.FOUNTAIN: (30.0, 30.0),
    R.STATUE: (30.0, 30.0),
}
DEFAULT_BUILDING_SIZE = (80.0, 100.0)

# Lowercase id substring preferred for each role
ROLE_PATTERNS: dict[BuildingRole, str] = {
    R.TOWN_HALL: "hall",
    R.TEMPLE: "temple",
    R.INN: "tavern",
    R.TAVERN: "tavern",
    R.BLACKSMITH: "smith",
    R.MANOR: "manor",
    R.PALACE: "manor",
    R.BARRACKS: "barrack",
    R.WAREHOUSE: "warehouse",
}
DEFAULT_ROLE_PATTERN = "house"

RICH_FALLBACKS = ["ex_hlaalu_manor_01", "ex_hlaalu_manor_02", "ex_redoran_manor_01"]
COMMON_FALLBACKS = [
    "ex_common_house_01",
    "ex_common_house_02",
    "ex_common_house_03",
    "ex_hlaalu_house_01",
    "ex_hlaalu_house_02",
]
POOR_FALLBACKS = ["ex_common_shack_01", "ex_common_shack_02", "ex_common_hut_01"]

ROLE_JITTER = 0.2


def building_size(role: BuildingRole) -> tuple[float, float]:
    return BUILDING_SIZES.get(role, DEFAULT_BUILDING_SIZE)


def needs_interior(role: BuildingRole) -> bool:
    return role not in NO_INTERIOR_ROLES


def _city_requirements(scale: int, total: int) -> dict[BuildingRole, int]:
    return {
        R.TOWN_HALL: 1,
        R.PALACE: scale,
        R.TEMPLE: 2 * scale,
        R.GUILDHALL: 3 * scale,
        R.COURTHOUSE: scale,
        R.INN: 4 * scale,
        R.TAVERN: 6 * scale,
        R.BLACKSMITH: 3 * scale,
        R.GENERAL_STORE: 4 * scale,
        R.ALCHEMIST: 2 * scale,
        R.CLOTHIER: 2 * scale,
        R.JEWELER: scale,
        R.BOOK_STORE: scale,
        R.BAKERY: 3 * scale,
        R.BUTCHER: 2 * scale,
        R.BANK: scale,
        R.BARRACKS: 2 * scale,
        R.ARMORY: scale,
        R.PRISON: scale,
        R.WAREHOUSE: 4 * scale,
        R.WORKSHOP: 3 * scale,
        R.STABLE: 3 * scale,
        R.WELL: 5 * scale,
        R.FOUNTAIN: 3 * scale,
        R.MANOR: 5 * scale,
        R.RICH_HOUSE: total // 10,
        R.POOR_HOUSE: total // 8,
    }


def _by_priority(counts: dict[BuildingRole, int]) -> list[BuildingRole]:
    """Roles by descending count, ties in declaration order."""
    order = list(BuildingRole)
    return sorted(counts, key=lambda role: (-counts[role], order.index(role)))


def required_buildings(
    settlement_type: SettlementType, total: int, rng: RandomGenerator
) -> dict[BuildingRole, int]:
    """Role counts for a settlement of ``total`` buildings.

    Common houses absorb the remainder. When the fixed roles alone exceed
    ``total`` (small fortresses and castles) the lowest-priority roles are
    cut first, so the counts always sum to ``total``.
    """
    t = SettlementType
    if settlement_type is t.FARM:
        counts = {R.STABLE: 1, R.WAREHOUSE: 1}
    elif settlement_type is t.HAMLET:
        counts = {R.WELL: 1, R.CHAPEL: 1 if rng.next_bool(0.5) else 0}
    elif settlement_type is t.VILLAGE:
        counts = {
            R.INN: 1,
            R.BLACKSMITH: 1,
            R.GENERAL_STORE: 1,
            R.CHAPEL: 1,
            R.WELL: 2,
            R.MILL: 1 if rng.next_bool(0.5) else 0,
            R.STABLE: 1,
        }
    elif settlement_type is t.TOWN:
        counts = {
            R.TOWN_HALL: 1,
            R.TEMPLE: 1,
            R.INN: 2,
            R.TAVERN: 2,
            R.BLACKSMITH: 2,
            R.GENERAL_STORE: 2,
            R.ALCHEMIST: 1,
            R.GUILDHALL: 1,
            R.BARRACKS: 1,
            R.WAREHOUSE: 2,
            R.STABLE: 2,
            R.WELL: 3,
            R.FOUNTAIN: 1,
            R.MANOR: 2,
        }
    elif settlement_type in (t.CITY, t.METROPOLIS):
        counts = _city_requirements(2 if settlement_type is t.METROPOLIS else 1, total)
    elif settlement_type is t.FORTRESS:
        counts = {
            R.BARRACKS: 3,
            R.ARMORY: 2,
            R.GUARD_TOWER: 4,
            R.WAREHOUSE: 2,
            R.STABLE: 2,
            R.WELL: 2,
        }
    elif settlement_type is t.CASTLE:
        counts = {R.PALACE: 1, R.GUARD_TOWER: 4, R.BARRACKS: 1, R.STABLE: 1, R.CHAPEL: 1}
    else:
        counts = {}

    counts = {role: n for role, n in counts.items() if n > 0}
    excess = sum(counts.values()) - total
    for role in reversed(_by_priority(counts)):
        if excess <= 0:
            break
        cut = min(excess, counts[role])
        counts[role] -= cut
        excess -= cut
    counts = {role: n for role, n in counts.items() if n > 0}
    counts[R.COMMON_HOUSE] = max(0, total - sum(counts.values()))
    return counts


def role_score(role: BuildingRole, lot: BuildingLot) -> float:
    """Affinity of a lot for a role, before random jitter."""
    d = lot.district
    score = 0.0
    if role in (R.TOWN_HALL, R.TEMPLE, R.GUILDHALL):
        if lot.faces_main_road:
            score += 0.3
        if lot.is_corner:
            score += 0.2
        if d is DistrictType.CENTER:
            score += 0.5
    elif role in (R.TAVERN, R.INN):
        if lot.faces_main_road:
            score += 0.4
        if d in (DistrictType.MARKET, DistrictType.CENTER):
            score += 0.3
    elif role in (R.GENERAL_STORE, R.BLACKSMITH, R.BAKERY):
        if d is DistrictType.MARKET:
            score += 0.5
        if lot.faces_main_road:
            score += 0.2
    elif role in (R.MANOR, R.PALACE):
        if d in (DistrictType.NOBLE, DistrictType.CENTER):
            score += 0.5
        score += lot.width * 0.001
    elif role in (R.BARRACKS, R.ARMORY):
        if d is DistrictType.MILITARY:
            score += 0.5
    elif role in (R.WAREHOUSE, R.WORKSHOP):
        if d is DistrictType.INDUSTRIAL:
            score += 0.5
    else:
        score = 0.5
    return score


def residential_role(lot: BuildingLot) -> BuildingRole:
    wealth = wealth_of(lot.district)
    if lot.district is DistrictType.NOBLE or wealth > 0.8:
        return R.RICH_HOUSE
    if lot.district is DistrictType.SLUMS or wealth < 0.2:
        return R.POOR_HOUSE
    return R.COMMON_HOUSE


def assign_roles(
    lots: Sequence[BuildingLot],
    required: dict[BuildingRole, int],
    rng: RandomGenerator,
) -> list[BuildingLot]:
    """Claim lots for required roles, then fill the rest with housing.

    Pass 1 visits non-residential roles by descending count and, for each
    required copy, claims the best-scoring free lot. Pass 2 gives every
    remaining lot a residential role from its district's wealth.

    Returns:
        The lots in claim order (pass 1 claims first, then pass 2 in lot
        order), each with ``role`` set and ``occupied`` true.
    """
    specials = [role for role in _by_priority(required) if role not in RESIDENTIAL_ROLES]

    claimed: list[BuildingLot] = []
    for role in specials:
        for _ in range(required[role]):
            best = None
            best_score = -1.0
            for lot in lots:
                if lot.occupied:
                    continue
                score = role_score(role, lot) + rng.next_float_range(0.0, ROLE_JITTER)
                if score > best_score:
                    best_score = score
                    best = lot
            if best is None:
                break
            best.occupied = True
            best.role = role
            claimed.append(best)

    for lot in lots:
        if not lot.occupied:
            lot.occupied = True
            lot.role = residential_role(lot)
            claimed.append(lot)
    return claimed


def select_building_for_role(
    role: BuildingRole,
    wealth: float,
    catalog: AssetCatalog,
    rng: RandomGenerator,
    use_asset_library: bool = True,
) -> str:
    """Concrete object id for a role.

    Prefers catalog buildings whose id contains the role's pattern, then any
    catalog building, then a built-in list chosen by wealth tier.
    """
    if use_asset_library:
        buildings = catalog.get_asset_ids(AssetCategory.BUILDING)
        if buildings:
            pattern = ROLE_PATTERNS.get(role, DEFAULT_ROLE_PATTERN)
            matches = [b for b in buildings if pattern in b.lower()]
            return rng.choice(matches or buildings)

    if wealth > 0.7:
        return rng.choice(RICH_FALLBACKS)
    if wealth > 0.3:
        return rng.choice(COMMON_FALLBACKS)
    return rng.choice(POOR_FALLBACKS)


@dataclass(frozen=True)
class PlacedBuilding:
    """A building emitted through the host."""

    ref_id: str
    object_id: str
    role: BuildingRole
    district: DistrictType
    x: float
    y: float
    z: float
    rotation: float
    width: float
    depth: float
    interior_id: str = ""
