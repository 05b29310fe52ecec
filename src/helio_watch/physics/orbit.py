from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Tuple

from helio_watch.core.frames import perifocal_to_inertial, Vector3


@dataclass(frozen=True)
class OrbitalElements:
    """
    Classical orbital elements of an elliptic orbit around a parent body.

    Units:
        a_km: semi-major axis in km
        e: eccentricity (0<=e<1)
        inc_rad: inclination in radians
        raan_rad: longitude of ascending node in radians
        argp_rad: argument of periapsis in radians
        M0_rad: mean anomaly at epoch (t=0) in radians
    """
    a_km: float
    e: float
    inc_rad: float
    raan_rad: float
    argp_rad: float
    M0_rad: float

    def __post_init__(self):
        if self.a_km <= 0:
            raise ValueError("Semi-major axis must be positive.")
        if not (0.0 <= self.e < 1.0):
            raise ValueError("Only elliptic orbits are supported (0 <= e < 1).")
        if not (0.0 <= self.inc_rad <= math.pi):
            raise ValueError(f"Inclination must be in range [0, π] radians. Got: {self.inc_rad}")
        for name in ("raan_rad", "argp_rad", "M0_rad"):
            if not math.isfinite(getattr(self, name)):
                raise ValueError(f"{name} must be finite. Got: {getattr(self, name)}")


def wrap_to_2pi(angle_rad: float) -> float:
    return angle_rad % (2.0 * math.pi)


def solve_keplers_equation(M_rad: float, e: float, tol: float = 1e-12, max_iter: int = 50) -> float:
    """
    Newton-Raphson solution of M = E - e sin(E) for the eccentric anomaly E.
    """
    if not (0.0 <= e < 1.0):
        raise ValueError("Elliptic Kepler solver requires 0 <= e < 1.")

    M = wrap_to_2pi(M_rad)
    # starting near pi converges faster for high eccentricity
    E = M if e < 0.8 else math.pi

    for _ in range(max_iter):
        fp = 1.0 - e * math.cos(E)
        if abs(fp) < 1e-15:
            break
        dE = -(E - e * math.sin(E) - M) / fp
        E += dE
        if abs(dE) < tol:
            return wrap_to_2pi(E)

    raise RuntimeError("Kepler solver did not converge within max_iter.")


def mean_motion_rad_s(a_km: float, mu_km3_s2: float) -> float:
    """n = sqrt(mu / a^3)."""
    return math.sqrt(mu_km3_s2 / (a_km ** 3))


def orbital_period_s(a_km: float, mu_km3_s2: float) -> float:
    return 2.0 * math.pi / mean_motion_rad_s(a_km, mu_km3_s2)


def relative_position_km(elements: OrbitalElements, t_s: float, mu_km3_s2: float) -> Vector3:
    """
    Position relative to the parent body at epoch + t, two-body propagation.
    """
    r, _v = relative_state(elements, t_s, mu_km3_s2)
    return r


def relative_state(elements: OrbitalElements, t_s: float, mu_km3_s2: float) -> Tuple[Vector3, Vector3]:
    """
    Position (km) and velocity (km/s) relative to the parent body at epoch + t.
    """
    a = elements.a_km
    e = elements.e

    n = mean_motion_rad_s(a, mu_km3_s2)
    E = solve_keplers_equation(elements.M0_rad + n * t_s, e)

    # true anomaly from eccentric anomaly
    denom = 1.0 - e * math.cos(E)
    nu = math.atan2(math.sqrt(1.0 - e * e) * math.sin(E) / denom, (math.cos(E) - e) / denom)

    r_km = a * denom
    r_pqw: Vector3 = (r_km * math.cos(nu), r_km * math.sin(nu), 0.0)

    h = math.sqrt(mu_km3_s2 * a * (1.0 - e * e))
    v_pqw: Vector3 = (
        -mu_km3_s2 / h * math.sin(nu),
        mu_km3_s2 / h * (e + math.cos(nu)),
        0.0,
    )

    return perifocal_to_inertial(r_pqw, v_pqw, elements.raan_rad, elements.inc_rad, elements.argp_rad)
