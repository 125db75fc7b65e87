"""Host seam: the callbacks through which generation emits its results.

The engine never writes storage itself. Every cell, land record, placed
reference, interior and pathgrid goes through a ``WorldHost``; terrain
queries go through ``TerrainQueries`` so a host can cache or override them.
"""

import threading
from dataclasses import dataclass, field
from typing import Protocol, Sequence

import numpy as np
import structlog
from numpy.typing import NDArray

from .assets import AssetCatalog, AssetCategory
from .config import GenerationConfig
from .exceptions import CallbackError
from .rng import RandomGenerator
from .terrain_types import cell_id

logger = structlog.get_logger()


class TerrainQueries(Protocol):
    """Height, slope and water level lookups."""

    def height(self, x: float, y: float) -> float: ...

    def slope(self, x: float, y: float) -> float: ...

    def water_level(self) -> float: ...


class WorldHost(Protocol):
    """Storage and progress callbacks owned by the embedding application.

    Any exception raised by a callback aborts the run.
    """

    def create_cell(self, cell_x: int, cell_y: int) -> bool: ...

    def create_land(
        self,
        cell_x: int,
        cell_y: int,
        heights: NDArray[np.float32],
        normals: NDArray[np.int8],
        textures: NDArray[np.uint16],
    ) -> bool: ...

    def create_reference(
        self,
        object_id: str,
        cell_id: str,
        x: float,
        y: float,
        z: float,
        rotation: float,
        scale: float,
    ) -> str: ...

    def create_interior(self, name: str) -> bool: ...

    def create_pathgrid(
        self,
        cell_id: str,
        points: Sequence[tuple[float, float, float]],
        edges: Sequence[tuple[int, int]],
    ) -> bool: ...

    def progress(self, current: int, total: int, message: str) -> None: ...


def require_accepted(accepted: bool, what: str) -> None:
    """Raise CallbackError when a host callback returned False."""
    if accepted is False:
        raise CallbackError(f"Host rejected {what}")


@dataclass(frozen=True)
class CellRecord:
    cell_x: int
    cell_y: int


@dataclass(frozen=True)
class LandRecord:
    cell_x: int
    cell_y: int
    heights: NDArray[np.float32] = field(compare=False, repr=False)
    normals: NDArray[np.int8] = field(compare=False, repr=False)
    textures: NDArray[np.uint16] = field(compare=False, repr=False)


@dataclass(frozen=True)
class ReferenceRecord:
    ref_id: str
    object_id: str
    cell_id: str
    x: float
    y: float
    z: float
    rotation: float
    scale: float


@dataclass(frozen=True)
class InteriorRecord:
    name: str


@dataclass(frozen=True)
class PathgridRecord:
    cell_id: str
    points: tuple[tuple[float, float, float], ...]
    edges: tuple[tuple[int, int], ...]


@dataclass(frozen=True)
class ProgressRecord:
    current: int
    total: int
    message: str


HostEvent = (
    CellRecord | LandRecord | ReferenceRecord | InteriorRecord | PathgridRecord | ProgressRecord
)


class RecordingHost:
    """In-memory host that keeps every callback as an immutable record.

    Records are kept in call order in ``events``; typed views are available
    through the properties. Reference ids are sequential: ``ref_000001``,
    ``ref_000002``, ...
    """

    def __init__(self) -> None:
        self.events: list[HostEvent] = []
        self._next_ref = 1

    def create_cell(self, cell_x: int, cell_y: int) -> bool:
        self.events.append(CellRecord(cell_x, cell_y))
        return True

    def create_land(
        self,
        cell_x: int,
        cell_y: int,
        heights: NDArray[np.float32],
        normals: NDArray[np.int8],
        textures: NDArray[np.uint16],
    ) -> bool:
        self.events.append(LandRecord(cell_x, cell_y, heights, normals, textures))
        return True

    def create_reference(
        self,
        object_id: str,
        cell_id: str,
        x: float,
        y: float,
        z: float,
        rotation: float,
        scale: float,
    ) -> str:
        ref_id = f"ref_{self._next_ref:06d}"
        self._next_ref += 1
        self.events.append(
            ReferenceRecord(ref_id, object_id, cell_id, x, y, z, rotation, scale)
        )
        return ref_id

    def create_interior(self, name: str) -> bool:
        self.events.append(InteriorRecord(name))
        return True

    def create_pathgrid(
        self,
        cell_id: str,
        points: Sequence[tuple[float, float, float]],
        edges: Sequence[tuple[int, int]],
    ) -> bool:
        self.events.append(PathgridRecord(cell_id, tuple(points), tuple(edges)))
        return True

    def progress(self, current: int, total: int, message: str) -> None:
        self.events.append(ProgressRecord(current, total, message))
        logger.debug("progress", current=current, total=total, message=message)

    @property
    def cells(self) -> list[CellRecord]:
        return [e for e in self.events if isinstance(e, CellRecord)]

    @property
    def lands(self) -> list[LandRecord]:
        return [e for e in self.events if isinstance(e, LandRecord)]

    @property
    def references(self) -> list[ReferenceRecord]:
        return [e for e in self.events if isinstance(e, ReferenceRecord)]

    @property
    def interiors(self) -> list[InteriorRecord]:
        return [e for e in self.events if isinstance(e, InteriorRecord)]

    @property
    def pathgrids(self) -> list[PathgridRecord]:
        return [e for e in self.events if isinstance(e, PathgridRecord)]

    @property
    def progress_messages(self) -> list[ProgressRecord]:
        return [e for e in self.events if isinstance(e, ProgressRecord)]


@dataclass
class GenerationContext:
    """Everything one run needs, passed explicitly to every engine.

    Attributes:
        config: Parameter bundle for the run (seed already resolved).
        terrain: Height/slope/water queries.
        catalog: Asset catalog, read-only during the run.
        host: Storage and progress callbacks.
        rng: Decision stream shared by the engines, in phase order.
        cancel_event: Cooperative cancellation flag.
    """

    config: GenerationConfig
    terrain: TerrainQueries
    catalog: AssetCatalog
    host: WorldHost
    rng: RandomGenerator
    cancel_event: threading.Event = field(default_factory=threading.Event)

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    @property
    def use_asset_library(self) -> bool:
        return self.config.objects.use_asset_library

    def is_underwater(self, x: float, y: float) -> bool:
        return self.terrain.height(x, y) < self.terrain.water_level()

    def place(
        self,
        object_id: str,
        x: float,
        y: float,
        rotation: float = 0.0,
        scale: float = 1.0,
        z_offset: float = 0.0,
    ) -> str:
        """Emit a reference at a world position, resting on the terrain."""
        z = self.terrain.height(x, y) + z_offset
        return self.host.create_reference(object_id, cell_id(x, y), x, y, z, rotation, scale)

    def select(
        self,
        category: AssetCategory,
        fallbacks: Sequence[str] = (),
        rng: RandomGenerator | None = None,
    ) -> str | None:
        """Pick an object id from the catalog, else from the fallbacks.

        Returns None when neither has candidates.
        """
        rng = rng or self.rng
        if self.use_asset_library:
            ids = self.catalog.get_asset_ids(category)
            if ids:
                return rng.choice(ids)
        if fallbacks:
            return rng.choice(fallbacks)
        return None

    def catalog_pick(self, category: AssetCategory) -> str | None:
        """Pick from the catalog only; None when the category is empty."""
        ids = self.catalog.get_asset_ids(category)
        if not ids:
            return None
        return self.rng.choice(ids)
