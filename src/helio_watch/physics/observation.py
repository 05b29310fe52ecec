from __future__ import annotations

import logging
import math
from typing import Sequence, Set

from helio_watch.core.constants import DEGENERATE_DISTANCE_KM
from helio_watch.core.errors import GeometryError
from helio_watch.core.frames import Vector3, dot, norm, normalize, sub

logger = logging.getLogger(__name__)


def observer_direction(star_position: Vector3, observer_position: Vector3) -> Vector3:
    """
    Unit vector from the star centre towards the observer, i.e. the
    outward normal of the observer's sub-point on the star surface.
    """
    d = sub(observer_position, star_position)
    n = norm(d)
    if not math.isfinite(n) or n < DEGENERATE_DISTANCE_KM:
        raise GeometryError(f"Observer at {observer_position} has no direction from star at {star_position}.")
    return normalize(d)


def visible_patch_indices(
    direction: Vector3,
    patches: Sequence[Vector3],
    min_angle_rad: float,
) -> Set[int]:
    """
    Indices of patches inside the cap of half angle `min_angle_rad`
    centred on `direction`.
    """
    if min_angle_rad <= 0.0:
        return set()
    if min_angle_rad >= math.pi:
        return set(range(len(patches)))

    cos_limit = math.cos(min_angle_rad)
    return {i for i, n in enumerate(patches) if dot(n, direction) >= cos_limit}


def observed_patches(
    star_position: Vector3,
    observer_positions: Sequence[Vector3],
    min_angle_rad: float,
    patches: Sequence[Vector3],
) -> Set[int]:
    """
    Union of the patches seen by each observer. Observers sitting on the
    star centre are skipped; if every observer is degenerate a
    GeometryError is raised.
    """
    if not patches:
        raise GeometryError("Surface patch set is empty.")

    seen: Set[int] = set()
    usable = 0
    for pos in observer_positions:
        try:
            direction = observer_direction(star_position, pos)
        except GeometryError as exc:
            logger.warning("Skipping observer: %s", exc)
            continue
        usable += 1
        seen |= visible_patch_indices(direction, patches, min_angle_rad)

    if observer_positions and usable == 0:
        raise GeometryError("No observer has a usable direction to the star.")
    return seen


def visible_surface(
    star_position: Vector3,
    observer_positions: Sequence[Vector3],
    min_angle_rad: float,
    patches: Sequence[Vector3],
) -> float:
    """
    Fraction in [0, 1] of the star surface seen by at least one observer.
    """
    seen = observed_patches(star_position, observer_positions, min_angle_rad, patches)
    return len(seen) / len(patches)
