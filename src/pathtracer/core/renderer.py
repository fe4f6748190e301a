"""Image renderer: per-pixel sampling, encoding and progress reporting.

The renderer turns a scene and a camera into an 8-bit image. Every pixel
averages ``samples_per_pixel`` jittered primary rays, then the mean color is
gamma corrected (gamma 2, i.e. a square root), clamped to [0, 0.999] and
quantized to ``floor(256 * c)``.

Rows are rendered top to bottom in batches by a single parallel kernel; the
Python-side loop between batches reports progress. Each pixel seeds its own
random state from the render seed and its index, so the image does not depend
on batch size or on how Taichi schedules the work.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.core.renderer import render
    >>> from pathtracer.core.rng import RngFactory
    >>> from pathtracer.scene.presets import create_spheres_scene
    >>> scene, camera = create_spheres_scene(aspect_ratio=2.0)
    >>> pixels = render(scene, camera, 64, 32, 4, 10, RngFactory(seed=1))
    >>> pixels.shape
    (32, 64, 3)
"""

import time
from collections.abc import Callable

import numpy as np
import taichi as ti
import taichi.math as tm
from loguru import logger

from pathtracer.camera.thin_lens import Camera, cast_ray, setup_camera
from pathtracer.core.integrator import estimate_radiance
from pathtracer.core.rng import RngFactory, pixel_rng_state, random_float
from pathtracer.scene.manager import SceneManager

# Type alias for 3D vectors
vec3 = tm.vec3

# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

# Smallest size for which (width - 1) and (height - 1) are non-zero
MIN_IMAGE_SIZE = 2

# Output buffer indexed [row, column, channel], top row first, RGBA
_pixels = ti.field(dtype=ti.u8, shape=(MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH, 4))

# Largest value strictly below 1.0 used before quantization
_CLAMP_MAX = 0.999

ProgressCallback = Callable[[int, int], None]


# =============================================================================
# Pixel Sampling and Encoding
# =============================================================================


@ti.func
def encode_channel(value: ti.f32) -> ti.i32:
    """Map a linear color channel to an 8-bit value.

    NaN and infinite values become 0. Otherwise the channel is gamma
    corrected with a square root, clamped to [0, 0.999] and scaled by 256.
    """
    result = 0
    if not (tm.isnan(value) or tm.isinf(value)):
        corrected = ti.sqrt(ti.max(value, 0.0))
        corrected = tm.clamp(corrected, 0.0, _CLAMP_MAX)
        result = ti.cast(256.0 * corrected, ti.i32)
    return result


@ti.func
def sample_pixel(
    i: ti.i32,
    j: ti.i32,
    width: ti.i32,
    height: ti.i32,
    samples_per_pixel: ti.i32,
    max_depth: ti.i32,
    state: ti.u32,
):
    """Average the radiance of jittered rays through one pixel.

    Args:
        i: Column, 0 at the left.
        j: Scene row, 0 at the bottom.
        width: Image width in pixels.
        height: Image height in pixels.
        samples_per_pixel: Number of rays to average.
        max_depth: Bounce budget per ray.
        state: The pixel's random state.

    Returns:
        A tuple of (mean_color, new_state).
    """
    s = state
    total = vec3(0.0, 0.0, 0.0)
    fw = ti.cast(width - 1, ti.f32)
    fh = ti.cast(height - 1, ti.f32)

    for _ in range(samples_per_pixel):
        du, s = random_float(s)
        dv, s = random_float(s)
        u = (ti.cast(i, ti.f32) + du) / fw
        v = (ti.cast(j, ti.f32) + dv) / fh
        ray, s = cast_ray(u, v, s)
        color, s = estimate_radiance(ray, max_depth, s)
        total += color

    return total / ti.cast(samples_per_pixel, ti.f32), s


@ti.kernel
def _render_rows(
    row_start: ti.i32,
    row_end: ti.i32,
    width: ti.i32,
    height: ti.i32,
    samples_per_pixel: ti.i32,
    max_depth: ti.i32,
    seed: ti.u32,
):
    """Render image rows [row_start, row_end) into the output buffer."""
    for row, i in ti.ndrange((row_start, row_end), width):
        j = height - 1 - row
        pixel_index = ti.cast(row * width + i, ti.u32)
        state = pixel_rng_state(seed, pixel_index)

        color, _ = sample_pixel(i, j, width, height, samples_per_pixel, max_depth, state)

        for c in ti.static(range(3)):
            _pixels[row, i, c] = ti.cast(encode_channel(color[c]), ti.u8)
        _pixels[row, i, 3] = ti.cast(255, ti.u8)


# =============================================================================
# Public Rendering API
# =============================================================================


def _validate_render_args(
    width: int,
    height: int,
    samples_per_pixel: int,
    max_depth: int,
    channels: int,
    rows_per_batch: int,
) -> None:
    """Raise ValueError for render parameters outside their supported range."""
    if not MIN_IMAGE_SIZE <= width <= MAX_IMAGE_WIDTH:
        raise ValueError(
            f"width must be in [{MIN_IMAGE_SIZE}, {MAX_IMAGE_WIDTH}], got {width}"
        )
    if not MIN_IMAGE_SIZE <= height <= MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"height must be in [{MIN_IMAGE_SIZE}, {MAX_IMAGE_HEIGHT}], got {height}"
        )
    if samples_per_pixel < 1:
        raise ValueError(f"samples_per_pixel must be at least 1, got {samples_per_pixel}")
    if max_depth < 0:
        raise ValueError(f"max_depth must be non-negative, got {max_depth}")
    if channels not in (3, 4):
        raise ValueError(f"channels must be 3 (RGB) or 4 (RGBA), got {channels}")
    if rows_per_batch < 1:
        raise ValueError(f"rows_per_batch must be at least 1, got {rows_per_batch}")


def render(
    scene: SceneManager,
    camera: Camera,
    width: int,
    height: int,
    samples_per_pixel: int,
    max_depth: int,
    rng_factory: RngFactory,
    *,
    channels: int = 3,
    callback: ProgressCallback | None = None,
    rows_per_batch: int = 16,
) -> np.ndarray:
    """Render a scene to an 8-bit image.

    Args:
        scene: The scene to render. It is uploaded to the scene fields.
        camera: The camera to render from. Its aspect ratio is used as given.
        width: Image width in pixels, in [2, 2048].
        height: Image height in pixels, in [2, 2048].
        samples_per_pixel: Rays averaged per pixel (at least 1).
        max_depth: Surface interactions allowed per path (0 renders black).
        rng_factory: Source of the per-pixel random states.
        channels: 3 for RGB output, 4 to add an opaque alpha channel.
        callback: Called as ``callback(rows_done, height)`` after each batch
            of rows.
        rows_per_batch: Number of rows rendered per kernel launch.

    Returns:
        A uint8 array of shape (height, width, channels), top row first.

    Raises:
        ValueError: If any parameter is outside its supported range.
    """
    _validate_render_args(width, height, samples_per_pixel, max_depth, channels, rows_per_batch)

    scene.upload()
    setup_camera(camera)

    logger.info(
        "Rendering {}x{} at {} spp, depth {}, seed {}",
        width,
        height,
        samples_per_pixel,
        max_depth,
        rng_factory.seed,
    )
    start = time.perf_counter()

    rows_done = 0
    while rows_done < height:
        row_end = min(rows_done + rows_per_batch, height)
        batch_start = time.perf_counter()
        _render_rows(
            rows_done, row_end, width, height, samples_per_pixel, max_depth, rng_factory.seed
        )
        ti.sync()
        logger.debug(
            "Rows {}-{} done in {:.3f}s", rows_done, row_end - 1, time.perf_counter() - batch_start
        )
        rows_done = row_end
        if callback is not None:
            callback(rows_done, height)

    elapsed = time.perf_counter() - start
    logger.info("Render finished in {:.2f}s", elapsed)

    return np.ascontiguousarray(_pixels.to_numpy()[:height, :width, :channels])
