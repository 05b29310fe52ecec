from __future__ import annotations

import math
from typing import Tuple

Vector3 = Tuple[float, float, float]


def rot3(angle_rad: float, v: Vector3) -> Vector3:
    c = math.cos(angle_rad)
    s = math.sin(angle_rad)
    x, y, z = v
    return (c * x - s * y, s * x + c * y, z)


def rot1(angle_rad: float, v: Vector3) -> Vector3:
    c = math.cos(angle_rad)
    s = math.sin(angle_rad)
    x, y, z = v
    return (x, c * y - s * z, s * y + c * z)


def dot(a: Vector3, b: Vector3) -> float:
    return a[0]*b[0] + a[1]*b[1] + a[2]*b[2]


def add(a: Vector3, b: Vector3) -> Vector3:
    return (a[0]+b[0], a[1]+b[1], a[2]+b[2])


def sub(a: Vector3, b: Vector3) -> Vector3:
    return (a[0]-b[0], a[1]-b[1], a[2]-b[2])


def scale(k: float, a: Vector3) -> Vector3:
    return (k*a[0], k*a[1], k*a[2])


def norm(a: Vector3) -> float:
    return math.sqrt(dot(a, a))


def normalize(a: Vector3) -> Vector3:
    """
    Unit vector along a. Raises ValueError for a zero vector.
    """
    n = norm(a)
    if n == 0.0:
        raise ValueError("Cannot normalize a zero vector.")
    return (a[0]/n, a[1]/n, a[2]/n)


def perifocal_to_inertial(r_pqw: Vector3, v_pqw: Vector3, raan_rad: float, inc_rad: float, argp_rad: float) -> Tuple[Vector3, Vector3]:
    """
    Convert position and velocity from the perifocal (PQW) frame to the
    parent body's inertial frame.

    Args:
        r_pqw: Position vector in PQW frame (km)
        v_pqw: Velocity vector in PQW frame (km/s)
        raan_rad: Longitude of ascending node (radians)
        inc_rad: Inclination (radians)
        argp_rad: Argument of periapsis (radians)

    Returns:
        (r, v): Position and velocity in the inertial frame
    """
    # R3(-raan) * R1(-inc) * R3(-argp), applied in this order
    r_temp = rot3(-raan_rad, r_pqw)
    v_temp = rot3(-raan_rad, v_pqw)

    r_temp = rot1(-inc_rad, r_temp)
    v_temp = rot1(-inc_rad, v_temp)

    r = rot3(-argp_rad, r_temp)
    v = rot3(-argp_rad, v_temp)

    return r, v
