"""Inter-settlement road network: MST backbone, greedy paths, smoothing."""

import math
from dataclasses import dataclass, field
from typing import Sequence

from ..config import PathScoringConfig
from ..hosts import TerrainQueries

Point = tuple[float, float]

# Straight-line cost sampling between settlements
COST_SAMPLE_SPACING = 200.0
MIN_COST_SAMPLES = 5
COST_SLOPE_WEIGHT = 500.0
COST_WATER_PENALTY = 1000.0

MAIN_ROAD_WIDTH = 120.0
SECONDARY_ROAD_WIDTH = 80.0


@dataclass
class WorldRoad:
    """A road polyline between two named endpoints."""

    waypoints: list[Point]
    width: float = 100.0
    is_main: bool = False
    start_location: str = ""
    end_location: str = ""
    placed_objects: list[str] = field(default_factory=list)

    @property
    def length(self) -> float:
        return road_length(self.waypoints)

    def point_at_distance(self, distance: float) -> tuple[float, float, float] | None:
        """Position and segment heading at an arc length along the road.

        Returns None when ``distance`` is beyond the end of the road.
        """
        travelled = 0.0
        for (x1, y1), (x2, y2) in zip(self.waypoints, self.waypoints[1:]):
            dx = x2 - x1
            dy = y2 - y1
            seg_len = math.hypot(dx, dy)
            if travelled + seg_len >= distance and seg_len > 0.0:
                t = (distance - travelled) / seg_len
                return x1 + dx * t, y1 + dy * t, math.atan2(dy, dx)
            travelled += seg_len
        return None


@dataclass(frozen=True)
class RoadConnection:
    """Candidate edge between two settlements, by index."""

    from_index: int
    to_index: int
    distance: float
    cost: float


def road_length(waypoints: Sequence[Point]) -> float:
    return sum(math.dist(a, b) for a, b in zip(waypoints, waypoints[1:]))


def connection_cost(terrain: TerrainQueries, start: Point, end: Point) -> float:
    """Euclidean length plus slope and water penalties along the segment."""
    dx = end[0] - start[0]
    dy = end[1] - start[1]
    dist = math.hypot(dx, dy)
    cost = dist
    samples = max(MIN_COST_SAMPLES, int(dist / COST_SAMPLE_SPACING))
    water_level = terrain.water_level()
    for s in range(1, samples):
        t = s / samples
        x = start[0] + dx * t
        y = start[1] + dy * t
        cost += terrain.slope(x, y) * COST_SLOPE_WEIGHT
        if terrain.height(x, y) < water_level:
            cost += COST_WATER_PENALTY
    return cost


def build_connections(terrain: TerrainQueries, centers: Sequence[Point]) -> list[RoadConnection]:
    """Every settlement pair, sorted by terrain cost."""
    connections = []
    for i in range(len(centers)):
        for j in range(i + 1, len(centers)):
            connections.append(
                RoadConnection(
                    from_index=i,
                    to_index=j,
                    distance=math.dist(centers[i], centers[j]),
                    cost=connection_cost(terrain, centers[i], centers[j]),
                )
            )
    # Stable sort keeps pair order for equal costs
    connections.sort(key=lambda c: c.cost)
    return connections


class UnionFind:
    """Disjoint sets over ``0..n-1`` with path compression."""

    def __init__(self, n: int):
        self.parent = list(range(n))

    def find(self, x: int) -> int:
        root = x
        while self.parent[root] != root:
            root = self.parent[root]
        while self.parent[x] != root:
            self.parent[x], x = root, self.parent[x]
        return root

    def union(self, a: int, b: int) -> bool:
        """Join the sets of ``a`` and ``b``; False if already joined."""
        root_a = self.find(a)
        root_b = self.find(b)
        if root_a == root_b:
            return False
        self.parent[root_a] = root_b
        return True


def minimum_spanning_tree(n: int, connections: Sequence[RoadConnection]) -> list[RoadConnection]:
    """Kruskal's algorithm over connections already sorted by cost."""
    sets = UnionFind(n)
    return [c for c in connections if sets.union(c.from_index, c.to_index)]


def _wrap_angle(angle: float) -> float:
    while angle > math.pi:
        angle -= 2.0 * math.pi
    while angle < -math.pi:
        angle += 2.0 * math.pi
    return angle


def find_path(
    terrain: TerrainQueries,
    start: Point,
    end: Point,
    max_slope: float,
    scoring: PathScoringConfig | None = None,
) -> list[Point]:
    """Greedy terrain-aware path from ``start`` to ``end``.

    Each step tries ``bearing_count`` headings fanned around the direct
    bearing and commits to the best score. Scores reward closeness to the
    goal and penalise slope, water and heading changes.

    Args:
        terrain: Terrain queries.
        start: Start point.
        end: Goal point.
        max_slope: Slope above which a step takes the heavy penalty.
        scoring: Path weights; defaults used when None.

    Returns:
        Polyline starting at ``start``. It ends at ``end`` unless the step
        budget ran out first.
    """
    sc = scoring or PathScoringConfig()
    path = [start]
    total = math.dist(start, end)
    if total < sc.direct_threshold:
        path.append(end)
        return path

    step = sc.step_size
    max_steps = int(int(total / step) * sc.step_budget_factor)
    water_level = terrain.water_level()
    half = sc.bearing_count // 2
    cx, cy = start

    for _ in range(max_steps):
        dx = end[0] - cx
        dy = end[1] - cy
        remaining = math.hypot(dx, dy)
        if remaining < step:
            path.append(end)
            break

        direct = math.atan2(dy, dx)
        heading = None
        if len(path) >= 2:
            px, py = path[-2]
            heading = math.atan2(cy - py, cx - px)

        best_score = -math.inf
        best = (cx + dx / remaining * step, cy + dy / remaining * step)
        for k in range(-half, half + 1):
            angle = direct + k * sc.bearing_spread
            tx = cx + math.cos(angle) * step
            ty = cy + math.sin(angle) * step

            score = -math.hypot(end[0] - tx, end[1] - ty) * sc.progress_weight
            slope = terrain.slope(tx, ty)
            if slope > max_slope:
                score -= sc.over_slope_penalty
            else:
                score -= slope * sc.slope_weight
            if terrain.height(tx, ty) < water_level:
                score -= sc.water_penalty
            if heading is not None:
                score -= abs(_wrap_angle(angle - heading)) * sc.turn_weight

            if score > best_score:
                best_score = score
                best = (tx, ty)

        cx, cy = best
        path.append(best)

    return path


def smooth_path(path: Sequence[Point], iterations: int = 2) -> list[Point]:
    """Chaikin corner cutting; the first and last points are kept.

    Paths with fewer than three points are returned unchanged.
    """
    points = list(path)
    if len(points) < 3:
        return points
    for _ in range(iterations):
        smoothed = [points[0]]
        for (x1, y1), (x2, y2) in zip(points, points[1:]):
            smoothed.append((x1 * 0.75 + x2 * 0.25, y1 * 0.75 + y2 * 0.25))
            smoothed.append((x1 * 0.25 + x2 * 0.75, y1 * 0.25 + y2 * 0.75))
        smoothed.append(points[-1])
        points = smoothed
    return points
