"""Geometry module for shape primitives.

Components:
    sphere: Sphere primitive, hit records and ray-sphere intersection

Intersection routines are Taichi functions (@ti.func) called from the
rendering kernel:
    rec = hit_sphere(ray_origin, ray_direction, sphere, t_min, t_max)
"""

from .sphere import HitRecord, Sphere, hit_sphere, make_hit_record, make_miss_record

__all__ = [
    "Sphere",
    "HitRecord",
    "hit_sphere",
    "make_hit_record",
    "make_miss_record",
]
