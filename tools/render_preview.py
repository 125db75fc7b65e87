#!/usr/bin/env python3
"""Render a run log's texture map with its exterior references overlaid.

Usage:
    python tools/render_preview.py [RUN_DIR] [OUTPUT_PATH]

Arguments:
    RUN_DIR: Run log directory written by ``procgen`` (default: runs/latest)
    OUTPUT_PATH: Path for output image (default: world_preview.png)
"""

import sys
from pathlib import Path

from procgen.render import overlay_references, texture_image
from procgen.runlog import read_land, read_meta, read_references

PIXELS_PER_TILE = 4


def print_stats(meta: dict, cells: int, counts: dict) -> None:
    """Print formatted statistics."""
    print(f"\n{'='*60}")
    print("RUN LOG PREVIEW")
    print(f"{'='*60}")
    print(f"\n  Seed:     {meta.get('seed', 'unknown')}")
    print(f"  Outcome:  {meta.get('outcome', 'unknown')}")
    print(f"  Finished: {meta.get('finished_at', 'unknown')}")
    print(f"  Cells:    {cells}")

    if counts:
        print(f"\nExterior references ({sum(counts.values()):,} total):")
        for category, count in sorted(counts.items()):
            print(f"  {category:20} {count:>10,}")
    print(f"\n{'='*60}\n")


def main() -> None:
    run_dir = Path(sys.argv[1]) if len(sys.argv) > 1 else Path("runs/latest")
    output_path = Path(sys.argv[2]) if len(sys.argv) > 2 else Path("world_preview.png")

    print(f"Loading run log from: {run_dir}")
    try:
        meta = read_meta(run_dir)
    except FileNotFoundError as e:
        print(f"Error: {e}")
        print("\nHint: write a run log first:")
        print("  procgen --size 4 4 --output runs/latest")
        sys.exit(1)

    lands = read_land(run_dir)
    if not lands:
        print("Error: run log has no land records (exteriors disabled?)")
        sys.exit(1)

    textures = {cell: pair[1] for cell, pair in lands.items()}
    img, origin = texture_image(textures, PIXELS_PER_TILE)
    terrain_only = img.copy()
    counts = overlay_references(img, read_references(run_dir), origin, PIXELS_PER_TILE)

    print_stats(meta, len(lands), dict(counts))

    img.save(output_path)
    print(f"Saved preview image to: {output_path}")
    no_obj_path = output_path.with_stem(output_path.stem + "_terrain_only")
    terrain_only.save(no_obj_path)
    print(f"Saved terrain-only image to: {no_obj_path}")


if __name__ == "__main__":
    main()
