"""Command-line interface for world generation."""

import argparse
import logging
import sys
import time
from pathlib import Path


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate a procedural world and write a run log"
    )
    parser.add_argument(
        "--seed", type=int, default=None, help="Random seed (0 = from clock)"
    )
    parser.add_argument(
        "--size",
        type=int,
        nargs=2,
        metavar=("X", "Y"),
        default=None,
        help="World size in cells (default: from config, else 10 10)",
    )
    parser.add_argument(
        "--config", type=str, default=None, help="Path to a TOML generation config"
    )
    parser.add_argument(
        "--catalog",
        type=str,
        default=None,
        help="Path to a TOML asset catalog (default: built-in object ids)",
    )
    parser.add_argument(
        "--settlements",
        type=int,
        default=None,
        metavar="N",
        help="Generate N settlements with their road network",
    )
    parser.add_argument(
        "--caves", action="store_true", help="Generate caves and dungeons"
    )
    parser.add_argument(
        "--output",
        "-o",
        type=str,
        default="runs/latest",
        help="Run log directory (default: runs/latest)",
    )
    parser.add_argument(
        "--preview",
        type=int,
        nargs=2,
        metavar=("X", "Y"),
        default=None,
        help="Generate a single cell and save a relief image instead of a full run",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Verbose logging"
    )
    return parser


def configure_logging(verbose: bool) -> None:
    import structlog

    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
    )


def resolve_config(args: argparse.Namespace):
    """Config file (if any) with command-line overrides applied."""
    from .config import GenerationConfig, load_config

    config = load_config(Path(args.config)) if args.config else GenerationConfig()
    update: dict = {}
    if args.seed is not None:
        update["seed"] = args.seed
    if args.size is not None:
        update["world_size_x"], update["world_size_y"] = args.size
    if args.settlements is not None:
        update["generate_settlements"] = args.settlements > 0
        update["settlement"] = {
            **config.settlement.model_dump(),
            "settlement_count": args.settlements,
        }
    if args.caves:
        update["generate_caves_and_dungeons"] = True
    # Round-trip through validation so overrides are range-checked
    return GenerationConfig.model_validate({**config.model_dump(), **update})


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for world generation."""
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)

    # Import here to avoid slow startup for --help
    import structlog

    from pydantic import ValidationError

    from .assets import AssetCatalog, load_catalog
    from .exceptions import GenerationError
    from .generator import GenerationOutcome, ProceduralGenerator
    from .hosts import RecordingHost
    from .render import height_image
    from .runlog import RunLogWriter
    from .terrain.land import terrain_stats

    logger = structlog.get_logger()

    try:
        config = resolve_config(args).with_resolved_seed()
        catalog = load_catalog(Path(args.catalog)) if args.catalog else AssetCatalog()
    except (GenerationError, ValidationError) as e:
        logger.error("startup_failed", error=str(e))
        return 1

    output_dir = Path(args.output)
    host = RecordingHost()
    generator = ProceduralGenerator(config, host, catalog)

    if args.preview is not None:
        cell_x, cell_y = args.preview
        heights = generator.preview_cell(cell_x, cell_y)
        water = config.terrain.water_level if config.terrain.generate_water else float("-inf")
        stats = terrain_stats(heights, water)
        output_dir.mkdir(parents=True, exist_ok=True)
        image_path = output_dir / f"preview_{cell_x}_{cell_y}.png"
        height_image(heights, water).save(image_path)
        print(f"Cell ({cell_x}, {cell_y}) with seed {config.seed}")
        for key, value in stats.items():
            print(f"  {key:20} {value:>12.2f}")
        print(f"  {'objects':20} {len(host.references):>12}")
        print(f"Saved relief image to {image_path}")
        return 0

    print(
        f"Generating {config.world_size_x}x{config.world_size_y} cells "
        f"with seed {config.seed}"
    )
    print(f"Output: {output_dir}")
    print()

    start_time = time.time()
    outcome = generator.run()
    gen_time = time.time() - start_time

    RunLogWriter(output_dir).write(host, config, outcome.value)

    print()
    print(f"Generation {outcome.value} in {gen_time:.1f}s")
    print(f"  References: {len(host.references)}")
    print(f"  Interiors:  {len(host.interiors)}")
    print(f"  Pathgrids:  {len(host.pathgrids)}")
    return 0 if outcome is GenerationOutcome.SUCCEEDED else 1


if __name__ == "__main__":
    sys.exit(main())
