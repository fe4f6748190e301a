"""Unit tests for image export and preview utilities.

Tests cover:
- Saving RGB and RGBA images with Pillow
- Pixel buffer validation
- Float conversion and RMSE
- Matplotlib preview (non-blocking, Agg backend)
- GGUI preview image loading and display detection
"""

import os
import sys

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pytest
from PIL import Image


def _gradient(height=4, width=6, channels=3):
    pixels = np.zeros((height, width, channels), dtype=np.uint8)
    pixels[:, :, 0] = np.arange(width, dtype=np.uint8)[None, :] * 40
    pixels[:, :, 1] = np.arange(height, dtype=np.uint8)[:, None] * 60
    if channels == 4:
        pixels[:, :, 3] = 255
    return pixels


class TestSaveImage:
    """Tests for writing pixel buffers to disk."""

    def test_png_round_trip(self, tmp_path):
        from pathtracer.preview.export import save_image

        pixels = _gradient()
        path = tmp_path / "out.png"
        save_image(pixels, path)

        with Image.open(path) as loaded:
            assert loaded.mode == "RGB"
            assert loaded.size == (6, 4)
            assert np.array_equal(np.asarray(loaded), pixels)

    def test_rgba(self, tmp_path):
        from pathtracer.preview.export import save_image

        path = tmp_path / "out.png"
        save_image(_gradient(channels=4), path)

        with Image.open(path) as loaded:
            assert loaded.mode == "RGBA"

    def test_wrong_dtype_raises(self, tmp_path):
        from pathtracer.preview.export import save_image

        with pytest.raises(ValueError, match="uint8"):
            save_image(np.zeros((4, 6, 3), dtype=np.float32), tmp_path / "out.png")

    def test_wrong_shape_raises(self, tmp_path):
        from pathtracer.preview.export import save_image

        with pytest.raises(ValueError, match="shape"):
            save_image(np.zeros((4, 6), dtype=np.uint8), tmp_path / "out.png")


class TestConversions:
    """Tests for float conversion and RMSE."""

    def test_pixels_to_float_drops_alpha(self):
        from pathtracer.preview.export import pixels_to_float

        result = pixels_to_float(_gradient(channels=4))
        assert result.shape == (4, 6, 3)
        assert result.dtype == np.float32
        assert result.max() <= 1.0
        assert abs(result[0, 1, 0] - 40.0 / 255.0) < 1e-6

    def test_rmse(self):
        from pathtracer.preview.export import compute_rmse

        a = np.zeros((2, 2, 3), dtype=np.uint8)
        b = np.full((2, 2, 3), 3, dtype=np.uint8)
        assert compute_rmse(a, a) == 0.0
        assert compute_rmse(a, b) == pytest.approx(3.0)

    def test_rmse_shape_mismatch_raises(self):
        from pathtracer.preview.export import compute_rmse

        with pytest.raises(ValueError, match="shapes must match"):
            compute_rmse(np.zeros((2, 2, 3)), np.zeros((2, 3, 3)))


class TestMatplotlibPreview:
    """Tests for the Matplotlib viewer."""

    def test_show_preview_non_blocking(self):
        import matplotlib.pyplot as plt

        from pathtracer.preview.display import show_preview

        show_preview(_gradient(), title="test", block=False)
        fig = plt.gcf()
        assert fig.axes[0].get_title() == "test"
        plt.close("all")

    def test_default_title_shows_size(self):
        import matplotlib.pyplot as plt

        from pathtracer.preview.display import show_preview

        show_preview(_gradient(), block=False)
        assert plt.gcf().axes[0].get_title() == "Render Preview - 6x4"
        plt.close("all")


class TestInteractivePreview:
    """Tests for the GGUI viewer that do not open a window."""

    def test_update_image_flips_rows(self):
        from pathtracer.preview.interactive import InteractivePreview

        pixels = _gradient()
        preview = InteractivePreview(6, 4)
        preview.update_image(pixels)

        field = preview.display_image.to_numpy()
        assert field.shape == (6, 4, 3)
        # Field y = 0 is the bottom row of the image
        assert abs(field[2, 0, 1] - pixels[3, 2, 1] / 255.0) < 1e-6
        assert abs(field[2, 3, 1] - pixels[0, 2, 1] / 255.0) < 1e-6

    def test_size_mismatch_raises(self):
        from pathtracer.preview.interactive import InteractivePreview

        preview = InteractivePreview(6, 4)
        with pytest.raises(ValueError, match="doesn't match"):
            preview.update_image(_gradient(height=5))

    def test_close_without_window(self):
        from pathtracer.preview.interactive import InteractivePreview

        InteractivePreview(6, 4).close()

    @pytest.mark.skipif(
        os.name == "nt" or sys.platform == "darwin",
        reason="display detection differs on Windows and macOS",
    )
    def test_display_detection(self, monkeypatch):
        from pathtracer.preview.interactive import InteractivePreview, is_display_available

        monkeypatch.delenv("DISPLAY", raising=False)
        monkeypatch.delenv("WAYLAND_DISPLAY", raising=False)
        assert is_display_available() is False

        monkeypatch.setenv("DISPLAY", ":0")
        assert is_display_available() is True
        assert InteractivePreview.is_display_available() is True
