"""Sphere primitive and ray-sphere intersection.

The ray-sphere intersection solves

    |origin + t * direction - center|^2 = radius^2

as a quadratic in t using the half-b formulation. The smaller root is tested
first, so the nearest valid intersection inside the open interval
(t_min, t_max) wins without comparing both roots.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.geometry.sphere import Sphere, hit_sphere
    >>> sphere = Sphere(center=ti.math.vec3(0, 0, -1), radius=0.5, material_id=0)
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class Sphere:
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere (positive float).
        material_id: Unified ID of the material the sphere owns.
    """

    center: vec3
    radius: ti.f32
    material_id: ti.i32


@ti.dataclass
class HitRecord:
    """Record of a ray-primitive intersection.

    Attributes:
        hit: 1 if the ray intersected the primitive, 0 on a miss. The other
            fields are only meaningful when hit == 1.
        t: The ray parameter of the intersection.
        point: The intersection point.
        normal: Unit surface normal, always oriented against the incoming ray.
        front_face: 1 if the ray arrived from the outside of the surface.
        material_id: The material of the primitive that was hit. This is a
            lookup key into the material tables, not an owned copy.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32
    material_id: ti.i32


@ti.func
def make_miss_record() -> HitRecord:
    """Create a HitRecord indicating no intersection."""
    return HitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
        material_id=-1,
    )


@ti.func
def make_hit_record(
    ray_direction: vec3,
    t: ti.f32,
    point: vec3,
    outward_normal: vec3,
    material_id: ti.i32,
) -> HitRecord:
    """Build a hit record with the normal facing against the ray.

    Args:
        ray_direction: Direction of the incoming ray.
        t: Ray parameter of the intersection.
        point: Intersection point.
        outward_normal: Unit normal pointing out of the surface.
        material_id: Material of the hit primitive.

    Returns:
        A HitRecord with front_face set and the normal flipped for back faces.
    """
    front_face = 1
    normal = outward_normal
    if tm.dot(ray_direction, outward_normal) >= 0.0:
        front_face = 0
        normal = -outward_normal
    return HitRecord(
        hit=1,
        t=t,
        point=point,
        normal=normal,
        front_face=front_face,
        material_id=material_id,
    )


@ti.func
def hit_sphere(
    ray_origin: vec3,
    ray_direction: vec3,
    sphere: Sphere,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Test for ray-sphere intersection within the open interval (t_min, t_max).

    With oc = origin - center the quadratic coefficients are:
        a = dot(direction, direction)
        half_b = dot(oc, direction)
        c = dot(oc, oc) - radius^2
        discriminant = half_b^2 - a*c

    A discriminant of zero or less is a miss (tangent rays do not count).
    Otherwise t- = (-half_b - sqrt(d)) / a is tested before
    t+ = (-half_b + sqrt(d)) / a. Hits exactly on either bound are rejected,
    which keeps scattered rays from re-hitting the surface they left.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray (need not be normalized).
        sphere: The sphere to test intersection against.
        t_min: Exclusive lower bound of accepted t values.
        t_max: Exclusive upper bound of accepted t values.

    Returns:
        A HitRecord; check the hit field to determine if an intersection
        occurred.
    """
    oc = ray_origin - sphere.center
    a = tm.dot(ray_direction, ray_direction)
    half_b = tm.dot(oc, ray_direction)
    c = tm.dot(oc, oc) - sphere.radius * sphere.radius
    discriminant = half_b * half_b - a * c

    result = make_miss_record()

    if discriminant > 0.0:
        root = ti.sqrt(discriminant)

        t = (-half_b - root) / a
        valid = (t > t_min) and (t < t_max)

        if not valid:
            t = (-half_b + root) / a
            valid = (t > t_min) and (t < t_max)

        if valid:
            point = ray_origin + t * ray_direction
            outward_normal = (point - sphere.center) / sphere.radius
            result = make_hit_record(
                ray_direction, t, point, outward_normal, sphere.material_id
            )

    return result
