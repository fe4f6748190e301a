"""Image export utilities for rendered images.

The renderer already produces gamma-corrected 8-bit pixels, so exporting is a
matter of handing the buffer to Pillow. The file format follows the file
extension (PNG is the usual choice).

Example:
    >>> from pathtracer.preview.export import save_image
    >>> pixels = render(scene, camera, 400, 225, 100, 50, RngFactory())
    >>> save_image(pixels, "out.png")
"""

from __future__ import annotations

from pathlib import Path

import numpy as np
import numpy.typing as npt
from loguru import logger
from PIL import Image as PILImage

# Pillow image mode per channel count
_MODES = {3: "RGB", 4: "RGBA"}


def _check_pixels(pixels: npt.NDArray[np.uint8]) -> None:
    """Raise ValueError unless pixels is a (H, W, 3|4) uint8 array."""
    if pixels.dtype != np.uint8:
        raise ValueError(f"Pixel buffer must be uint8, got {pixels.dtype}")
    if pixels.ndim != 3 or pixels.shape[2] not in _MODES:
        raise ValueError(
            f"Pixel buffer must have shape (height, width, 3 or 4), got {pixels.shape}"
        )


def save_image(pixels: npt.NDArray[np.uint8], filepath: str | Path) -> None:
    """Write a pixel buffer to an image file.

    Args:
        pixels: uint8 array of shape (height, width, 3) for RGB or
            (height, width, 4) for RGBA, top row first.
        filepath: Output path. The extension selects the format.

    Raises:
        ValueError: If the buffer has the wrong dtype or shape, or the
            extension is not a format Pillow can write.
        OSError: If the file cannot be written.
    """
    _check_pixels(pixels)
    mode = _MODES[pixels.shape[2]]
    pil_image = PILImage.fromarray(np.ascontiguousarray(pixels), mode=mode)
    pil_image.save(filepath)
    logger.info("Saved {}x{} {} image to {}", pixels.shape[1], pixels.shape[0], mode, filepath)


def pixels_to_float(pixels: npt.NDArray[np.uint8]) -> npt.NDArray[np.float32]:
    """Convert 8-bit RGB(A) pixels to float32 RGB in [0, 1] for display.

    The alpha channel, if present, is dropped.
    """
    _check_pixels(pixels)
    return (pixels[:, :, :3].astype(np.float32) / 255.0).astype(np.float32)


def compute_rmse(
    image_a: npt.NDArray[np.generic],
    image_b: npt.NDArray[np.generic],
) -> float:
    """Compute root mean squared error between two images.

    Args:
        image_a: First image array.
        image_b: Second image array (must have same shape as image_a).

    Returns:
        RMSE value (lower is more similar).

    Raises:
        ValueError: If image shapes don't match.
    """
    if image_a.shape != image_b.shape:
        raise ValueError(
            f"Image shapes must match: {image_a.shape} vs {image_b.shape}"
        )

    diff = image_a.astype(np.float64) - image_b.astype(np.float64)
    return float(np.sqrt(np.mean(diff**2)))
