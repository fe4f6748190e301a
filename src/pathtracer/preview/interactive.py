"""Image viewer window using Taichi GGUI.

Opens a window showing a finished render until the user closes it.

Example:
    >>> from pathtracer.preview.interactive import InteractivePreview
    >>> preview = InteractivePreview(400, 225)
    >>> preview.update_image(pixels)
    >>> preview.run()
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

import numpy as np
import taichi as ti

from pathtracer.preview.export import pixels_to_float

if TYPE_CHECKING:
    import numpy.typing as npt


def is_display_available() -> bool:
    """Check if a display is available for GUI rendering.

    Returns:
        True if a display is available, False for headless environments.
    """
    display = os.environ.get("DISPLAY")
    wayland = os.environ.get("WAYLAND_DISPLAY")

    if os.name == "nt":
        return True

    if os.uname().sysname == "Darwin":
        # SSH sessions without X forwarding have no display
        return not (os.environ.get("SSH_CONNECTION") and not display)

    return bool(display or wayland)


class InteractivePreview:
    """Viewer window for a rendered image.

    The window is created lazily on first use, so constructing a preview and
    loading an image works in headless environments.

    Attributes:
        width: Window width in pixels.
        height: Window height in pixels.
        display_image: Taichi field holding the displayed RGB image.
    """

    def __init__(
        self,
        width: int,
        height: int,
        *,
        title: str = "pathtracer",
    ) -> None:
        self.width = width
        self.height = height
        self._title = title

        self._window: ti.ui.Window | None = None
        self._canvas: ti.ui.Canvas | None = None

        # Indexed (x, y) with y = 0 at the bottom, as GGUI expects
        self.display_image: ti.MatrixField = ti.Vector.field(
            3, dtype=ti.f32, shape=(width, height)
        )

    def _initialize_window(self) -> None:
        if self._window is not None:
            return
        self._window = ti.ui.Window(
            name=self._title,
            res=(self.width, self.height),
            vsync=True,
        )
        self._canvas = self._window.get_canvas()

    @property
    def window(self) -> ti.ui.Window:
        """Get the Taichi GGUI window, initializing if needed."""
        self._initialize_window()
        assert self._window is not None
        return self._window

    @property
    def canvas(self) -> ti.ui.Canvas:
        """Get the canvas for rendering."""
        self._initialize_window()
        assert self._canvas is not None
        return self._canvas

    def update_image(self, pixels: npt.NDArray[np.uint8]) -> None:
        """Load a rendered pixel buffer into the display field.

        Args:
            pixels: uint8 array of shape (height, width, 3 or 4), top row
                first. Alpha is ignored.

        Raises:
            ValueError: If the image size does not match the window.
        """
        if pixels.shape[:2] != (self.height, self.width):
            raise ValueError(
                f"Image shape {pixels.shape} doesn't match window "
                f"({self.height}, {self.width})"
            )
        image = pixels_to_float(pixels)

        # NumPy rows run top to bottom; the field is (x, y) with y up
        image_transposed = np.ascontiguousarray(np.transpose(np.flipud(image), (1, 0, 2)))
        self.display_image.from_numpy(image_transposed)

    def is_running(self) -> bool:
        return self.window.running

    def show_frame(self) -> None:
        """Present the display image once."""
        self.canvas.set_image(self.display_image)
        self.window.show()

    def run(self) -> None:
        """Show the image until the window is closed."""
        while self.is_running():
            self.show_frame()

    def close(self) -> None:
        if self._window is not None:
            self._window.running = False

    @staticmethod
    def is_display_available() -> bool:
        return is_display_available()
