"""Command-line interface: render a scene to an image file.

Usage:
    pathtracer [output] [options]
    python -m pathtracer [output] [options]

Options:
    --width WIDTH        Image width in pixels (default: 400)
    --height HEIGHT      Image height in pixels (default: width / (16/9))
    --spp SPP            Samples per pixel (default: 100)
    --depth DEPTH        Maximum bounces per path (default: 50)
    --seed SEED          Random seed (default: 0)
    --scene NAME         Built-in scene: spheres or simple (default: spheres)
    --scene-file PATH    Load the spheres from a JSON scene file instead
    --window             Show the result in a window after saving
    --viewer VIEWER      Window type: ggui or matplotlib (default: ggui)
    --arch ARCH          Taichi backend: cpu or gpu (default: gpu)
    --quiet              Only log warnings and suppress progress output

Example:
    pathtracer spheres.png --width 800 --spp 200 --window
"""

from __future__ import annotations

import argparse
import sys
import time
from dataclasses import dataclass
from pathlib import Path

import taichi as ti
from loguru import logger

DEFAULT_WIDTH = 400
DEFAULT_ASPECT_RATIO = 16.0 / 9.0
DEFAULT_SPP = 100
DEFAULT_DEPTH = 50

LOG_FORMAT = "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {message}"


@dataclass
class RenderSettings:
    """Options of one CLI render, resolved from the command line.

    Attributes:
        output: Path of the image to write.
        width: Image width in pixels.
        height: Image height in pixels.
        samples_per_pixel: Samples averaged per pixel.
        max_depth: Maximum bounces per path.
        seed: Base random seed.
        scene: Name of the built-in scene (also supplies the camera when a
            scene file is given).
        scene_file: Optional JSON scene file replacing the built-in spheres.
        window: Whether to show the image after saving.
        viewer: "ggui" or "matplotlib".
        arch: "cpu" or "gpu".
        quiet: Log warnings only and skip the progress line.
    """

    output: Path
    width: int = DEFAULT_WIDTH
    height: int = int(DEFAULT_WIDTH / DEFAULT_ASPECT_RATIO)
    samples_per_pixel: int = DEFAULT_SPP
    max_depth: int = DEFAULT_DEPTH
    seed: int = 0
    scene: str = "spheres"
    scene_file: Path | None = None
    window: bool = False
    viewer: str = "ggui"
    arch: str = "gpu"
    quiet: bool = False

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> RenderSettings:
        """Build settings from parsed arguments.

        Raises:
            ValueError: If the width or height is not positive.
        """
        if args.width < 1:
            raise ValueError(f"width must be positive, got {args.width}")
        height = args.height
        if height is None:
            height = int(args.width / DEFAULT_ASPECT_RATIO)
        if height < 1:
            raise ValueError(f"height must be positive, got {height}")

        return cls(
            output=Path(args.output),
            width=args.width,
            height=height,
            samples_per_pixel=args.spp,
            max_depth=args.depth,
            seed=args.seed,
            scene=args.scene,
            scene_file=Path(args.scene_file) if args.scene_file else None,
            window=args.window,
            viewer=args.viewer,
            arch=args.arch,
            quiet=args.quiet,
        )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pathtracer",
        description="Render a scene of spheres with a Monte Carlo path tracer.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "output",
        nargs="?",
        default="out.png",
        help="Output image path (default: out.png)",
    )
    parser.add_argument(
        "--width",
        type=int,
        default=DEFAULT_WIDTH,
        help=f"Image width in pixels (default: {DEFAULT_WIDTH})",
    )
    parser.add_argument(
        "--height",
        type=int,
        default=None,
        help="Image height in pixels (default: width / (16/9))",
    )
    parser.add_argument(
        "--spp",
        type=int,
        default=DEFAULT_SPP,
        help=f"Samples per pixel (default: {DEFAULT_SPP})",
    )
    parser.add_argument(
        "--depth",
        type=int,
        default=DEFAULT_DEPTH,
        help=f"Maximum bounces per path (default: {DEFAULT_DEPTH})",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=0,
        help="Random seed (default: 0)",
    )
    parser.add_argument(
        "--scene",
        choices=["spheres", "simple"],
        default="spheres",
        help="Built-in scene (default: spheres)",
    )
    parser.add_argument(
        "--scene-file",
        default=None,
        help="JSON scene file; the camera of --scene is used",
    )
    parser.add_argument(
        "--window",
        action="store_true",
        help="Show the rendered image in a window",
    )
    parser.add_argument(
        "--viewer",
        choices=["ggui", "matplotlib"],
        default="ggui",
        help="Window type for --window (default: ggui)",
    )
    parser.add_argument(
        "--arch",
        choices=["cpu", "gpu"],
        default="gpu",
        help="Taichi backend (default: gpu, falls back to cpu)",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Only log warnings and suppress progress output",
    )
    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    return build_parser().parse_args(argv)


def configure_logging(quiet: bool) -> None:
    """Send log records to stderr at INFO, or WARNING when quiet."""
    logger.remove()
    logger.add(sys.stderr, level="WARNING" if quiet else "INFO", format=LOG_FORMAT)


def init_taichi(arch: str) -> None:
    """Initialize Taichi on the requested backend, falling back to CPU."""
    if arch == "cpu":
        ti.init(arch=ti.cpu)
        logger.info("Using CPU backend")
        return
    try:
        ti.init(arch=ti.gpu)
        logger.info("Using GPU backend")
    except Exception as exc:
        logger.warning("GPU backend unavailable ({}), using CPU", exc)
        ti.init(arch=ti.cpu)


def show_window(pixels, settings: RenderSettings) -> None:
    """Display the rendered image with the configured viewer."""
    from pathtracer.preview.display import show_preview
    from pathtracer.preview.interactive import InteractivePreview, is_display_available

    if not is_display_available():
        logger.warning("No display available, not opening a window")
        return

    logger.info("Opening {} window...", settings.viewer)
    if settings.viewer == "matplotlib":
        show_preview(pixels, title=str(settings.output))
    else:
        preview = InteractivePreview(settings.width, settings.height, title=str(settings.output))
        preview.update_image(pixels)
        preview.run()


def run(settings: RenderSettings) -> Path:
    """Render according to the settings and save the image.

    Taichi must already be initialized.

    Returns:
        The path the image was written to.
    """
    # Lazy imports: these modules allocate Taichi fields on import
    from pathtracer.core.renderer import render
    from pathtracer.core.rng import RngFactory
    from pathtracer.preview.export import save_image
    from pathtracer.scene.manager import load_scene_file
    from pathtracer.scene.presets import create_scene

    rng_factory = RngFactory(settings.seed)
    scene, camera = create_scene(settings.scene, settings.aspect_ratio)
    if settings.scene_file is not None:
        scene = load_scene_file(settings.scene_file)

    logger.info("Generating image ({}x{})...", settings.width, settings.height)
    start_time = time.time()

    def progress_callback(rows_done: int, total_rows: int) -> None:
        if not settings.quiet:
            print(
                f"\r> Scanlines remaining: {total_rows - rows_done:<6}",
                end="",
                flush=True,
            )

    pixels = render(
        scene,
        camera,
        settings.width,
        settings.height,
        settings.samples_per_pixel,
        settings.max_depth,
        rng_factory,
        callback=progress_callback,
    )
    if not settings.quiet:
        print()  # Newline after progress

    logger.info("Took {:.0f}ms", (time.time() - start_time) * 1000.0)
    save_image(pixels, settings.output)

    if settings.window:
        show_window(pixels, settings)

    return settings.output


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    configure_logging(args.quiet)

    try:
        settings = RenderSettings.from_args(args)
        init_taichi(settings.arch)
        run(settings)
        return 0
    except (ValueError, RuntimeError, OSError) as e:
        logger.error("Error: {}", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
