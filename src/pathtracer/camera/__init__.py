"""Camera module for view and ray generation.

Components:
    thin_lens: Look-at perspective camera with optional depth of field

Ray generation uses viewport coordinates:
    s in [0, 1]: left to right across the image
    t in [0, 1]: bottom to top across the image
"""

from .thin_lens import Camera, cast_ray, get_camera_info, setup_camera

__all__ = [
    "Camera",
    "setup_camera",
    "cast_ray",
    "get_camera_info",
]
