"""Preview module for output and visualization.

Components:
    export: Pillow image export
    display: Matplotlib-based static preview
    interactive: Taichi GGUI viewer window

Example:
    >>> from pathtracer.preview import save_image, show_preview
    >>> save_image(pixels, "out.png")
    >>> show_preview(pixels)
"""

from pathtracer.preview.display import show_preview
from pathtracer.preview.export import compute_rmse, pixels_to_float, save_image
from pathtracer.preview.interactive import InteractivePreview, is_display_available

__all__ = [
    "InteractivePreview",
    "is_display_available",
    "show_preview",
    "save_image",
    "pixels_to_float",
    "compute_rmse",
]
