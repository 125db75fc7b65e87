"""Parquet run log: what a generation run emitted, for inspection and replay."""

import json
from datetime import datetime, timezone
from pathlib import Path

import numpy as np
import pyarrow as pa
import pyarrow.parquet as pq
import structlog

from .config import GenerationConfig
from .hosts import RecordingHost

logger = structlog.get_logger()

SCHEMA_VERSION = 1

REFERENCE_SCHEMA = pa.schema([
    ("ref_id", pa.string()),
    ("object_id", pa.string()),
    ("cell_id", pa.string()),
    ("x", pa.float64()),
    ("y", pa.float64()),
    ("z", pa.float64()),
    ("rotation", pa.float64()),
    ("scale", pa.float64()),
])

INTERIOR_SCHEMA = pa.schema([
    ("name", pa.string()),
])

PATHGRID_SCHEMA = pa.schema([
    ("cell_id", pa.string()),
    ("point_count", pa.int32()),
    ("edge_count", pa.int32()),
    ("points_json", pa.string()),  # [[x, y, z], ...]
    ("edges_json", pa.string()),  # [[a, b], ...]
])


class RunLogWriter:
    """Writes the records kept by a RecordingHost to a run directory.

    Layout::

        run_dir/
            meta.json
            references.parquet
            interiors.parquet
            pathgrids.parquet
            land.npz            (heights and textures per cell)
    """

    def __init__(self, run_dir: Path):
        self.run_dir = run_dir
        self.started_at = datetime.now(timezone.utc)

    def write(self, host: RecordingHost, config: GenerationConfig, outcome: str) -> None:
        """Write every table plus the run metadata.

        Args:
            host: Host that recorded the run.
            config: Config the run used, with its seed resolved.
            outcome: Final outcome name.
        """
        self.run_dir.mkdir(parents=True, exist_ok=True)

        references = [
            {
                "ref_id": r.ref_id,
                "object_id": r.object_id,
                "cell_id": r.cell_id,
                "x": r.x,
                "y": r.y,
                "z": r.z,
                "rotation": r.rotation,
                "scale": r.scale,
            }
            for r in host.references
        ]
        interiors = [{"name": i.name} for i in host.interiors]
        pathgrids = [
            {
                "cell_id": p.cell_id,
                "point_count": len(p.points),
                "edge_count": len(p.edges),
                "points_json": json.dumps([list(pt) for pt in p.points]),
                "edges_json": json.dumps([list(e) for e in p.edges]),
            }
            for p in host.pathgrids
        ]

        self._write_parquet("references.parquet", REFERENCE_SCHEMA, references)
        self._write_parquet("interiors.parquet", INTERIOR_SCHEMA, interiors)
        self._write_parquet("pathgrids.parquet", PATHGRID_SCHEMA, pathgrids)
        self._write_land(host)
        self._write_meta(config, outcome, len(host.cells))

        logger.info(
            "run_log_written",
            run_dir=str(self.run_dir),
            references=len(references),
            interiors=len(interiors),
            pathgrids=len(pathgrids),
        )

    def _write_parquet(self, filename: str, schema: pa.Schema, data: list[dict]) -> None:
        table = pa.Table.from_pylist(data, schema=schema)
        pq.write_table(table, self.run_dir / filename)

    def _write_land(self, host: RecordingHost) -> None:
        lands = host.lands
        if not lands:
            return
        arrays = {}
        for land in lands:
            arrays[f"heights_{land.cell_x}_{land.cell_y}"] = land.heights
            arrays[f"textures_{land.cell_x}_{land.cell_y}"] = land.textures
        np.savez_compressed(self.run_dir / "land.npz", **arrays)

    def _write_meta(self, config: GenerationConfig, outcome: str, cell_count: int) -> None:
        meta = {
            "schema_version": SCHEMA_VERSION,
            "seed": config.seed,
            "world_size_x": config.world_size_x,
            "world_size_y": config.world_size_y,
            "origin_x": config.origin_x,
            "origin_y": config.origin_y,
            "cells": cell_count,
            "outcome": outcome,
            "started_at": self.started_at.isoformat(),
            "finished_at": datetime.now(timezone.utc).isoformat(),
            "config": config.model_dump(mode="json"),
        }
        with open(self.run_dir / "meta.json", "w") as f:
            json.dump(meta, f, indent=2)


def read_meta(run_dir: Path) -> dict:
    with open(run_dir / "meta.json") as f:
        return json.load(f)


def read_references(run_dir: Path) -> list[dict]:
    """Reference rows in emission order."""
    return pq.read_table(run_dir / "references.parquet").to_pylist()


def read_interiors(run_dir: Path) -> list[str]:
    return [row["name"] for row in pq.read_table(run_dir / "interiors.parquet").to_pylist()]


def read_pathgrids(run_dir: Path) -> list[dict]:
    """Pathgrid rows with ``points`` and ``edges`` decoded back to tuples."""
    rows = pq.read_table(run_dir / "pathgrids.parquet").to_pylist()
    for row in rows:
        row["points"] = [tuple(p) for p in json.loads(row.pop("points_json"))]
        row["edges"] = [tuple(e) for e in json.loads(row.pop("edges_json"))]
    return rows


def read_land(run_dir: Path) -> dict[tuple[int, int], tuple[np.ndarray, np.ndarray]]:
    """(heights, textures) keyed by (cell_x, cell_y); empty when no land was written."""
    path = run_dir / "land.npz"
    if not path.exists():
        return {}
    result = {}
    with np.load(path) as data:
        for key in data.files:
            kind, x, y = key.split("_")
            if kind != "heights":
                continue
            result[(int(x), int(y))] = (data[key], data[f"textures_{x}_{y}"])
    return result
