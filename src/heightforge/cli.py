"""Command-line interface for terrain generation."""

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .config import TerrainConfig


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        description="Generate procedural terrain meshes and heightmaps"
    )
    parser.add_argument(
        "--config", "-c", type=str, default=None, help="TOML config file (optional)"
    )
    parser.add_argument("--width", type=int, default=None, help="Samples along x")
    parser.add_argument("--height", type=int, default=None, help="Samples along z")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument(
        "--noise-scale", type=float, default=None, help="Noise periods across the field"
    )
    parser.add_argument("--octaves", type=int, default=None, help="Noise octaves")
    parser.add_argument(
        "--persistence", type=float, default=None, help="Amplitude decay per octave"
    )
    parser.add_argument(
        "--scale", type=float, default=None, help="World units between samples"
    )
    parser.add_argument(
        "--height-scale", type=float, default=None, help="Vertical scale factor"
    )
    parser.add_argument(
        "--smoothing", type=int, default=None, help="Number of smoothing passes"
    )
    parser.add_argument(
        "--no-river", action="store_true", help="Skip carving the river channel"
    )
    parser.add_argument(
        "--output",
        "-o",
        type=str,
        default="terrain.obj",
        help="Mesh output path (default: terrain.obj)",
    )
    parser.add_argument(
        "--format",
        choices=["obj", "fbx"],
        default=None,
        help="Mesh format (default: from output suffix)",
    )
    parser.add_argument(
        "--texture",
        type=str,
        default=None,
        help="Diffuse texture path to reference from the .mtl file",
    )
    parser.add_argument(
        "--heightmap",
        type=str,
        default=None,
        help="Also save a grayscale PNG heightmap to this path",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Verbose logging"
    )
    return parser


def _apply_overrides(
    config: "TerrainConfig", args: argparse.Namespace
) -> "TerrainConfig":
    """Return a copy of config with any CLI values applied on top."""
    from .config import TerrainConfig

    data = config.model_dump()
    top_level = {
        "seed": args.seed,
        "width": args.width,
        "height": args.height,
        "scale": args.scale,
        "height_scale": args.height_scale,
    }
    noise = {
        "noise_scale": args.noise_scale,
        "octaves": args.octaves,
        "persistence": args.persistence,
    }

    data.update({k: v for k, v in top_level.items() if v is not None})
    data["noise"].update({k: v for k, v in noise.items() if v is not None})
    if args.smoothing is not None:
        data["smoothing"]["iterations"] = args.smoothing
    if args.no_river:
        data["river"]["enabled"] = False

    return TerrainConfig.model_validate(data)


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for terrain generation."""
    args = build_parser().parse_args(argv)

    # Configure logging
    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    # Import here to avoid slow startup for --help
    from .config import TerrainConfig, load_config
    from .exceptions import HeightForgeError
    from .export import export_mesh
    from .heightfield import HeightField
    from .validation import validate_mesh
    from .visualize import save_heightmap_png

    try:
        base = load_config(Path(args.config)) if args.config else TerrainConfig()
        config = _apply_overrides(base, args)
    except (OSError, ValueError) as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 1

    output_path = Path(args.output)

    print(
        f"Generating {config.width}x{config.height} terrain with seed {config.seed}"
    )
    print(f"Output: {output_path}")
    print()

    try:
        start_time = time.time()
        field = HeightField.generate_from_config(config)
        gen_time = time.time() - start_time

        mesh = field.require_mesh()
        result = validate_mesh(mesh, field.width, field.height)
        if not result.passed:
            for error in result.errors:
                print(f"Validation error: {error}", file=sys.stderr)
            return 1

        print()
        print(f"Generation complete in {gen_time:.2f}s")

        output_path.parent.mkdir(parents=True, exist_ok=True)
        written = export_mesh(mesh, output_path, args.format, texture=args.texture)
        for path in written:
            print(f"Saved {path}")

        if args.heightmap:
            heightmap_path = Path(args.heightmap)
            heightmap_path.parent.mkdir(parents=True, exist_ok=True)
            save_heightmap_png(field.elevations, heightmap_path)
            print(f"Saved {heightmap_path}")
    except (HeightForgeError, OSError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
