"""Matplotlib-based preview display for rendered images.

Shows a finished pixel buffer in a Matplotlib figure. This is the fallback
viewer when a Taichi GGUI window cannot be opened.

Example:
    >>> from pathtracer.preview.display import show_preview
    >>> show_preview(pixels, title="spheres - 100 spp")
"""

from __future__ import annotations

import numpy as np
import numpy.typing as npt

from pathtracer.preview.export import pixels_to_float


def show_preview(
    pixels: npt.NDArray[np.uint8],
    *,
    title: str | None = None,
    figsize: tuple[float, float] = (8, 4.5),
    block: bool = True,
) -> None:
    """Display a rendered image as a Matplotlib figure.

    Args:
        pixels: uint8 array of shape (height, width, 3 or 4), top row first.
        title: Figure title (default shows the image size).
        figsize: Figure size in inches (width, height).
        block: Whether to block execution until the figure is closed.
    """
    import matplotlib.pyplot as plt

    display_image = pixels_to_float(pixels)

    fig, ax = plt.subplots(1, 1, figsize=figsize)
    ax.imshow(display_image)
    ax.axis("off")

    if title is None:
        title = f"Render Preview - {pixels.shape[1]}x{pixels.shape[0]}"
    ax.set_title(title)

    plt.tight_layout()
    plt.show(block=block)
