from __future__ import annotations

import logging
import math
import threading
from typing import ClassVar, Optional, Tuple

from helio_watch.core.constants import DEFAULT_SURFACE_PATCH_COUNT
from helio_watch.core.errors import ConfigurationError
from helio_watch.core.frames import Vector3

logger = logging.getLogger(__name__)

GOLDEN_ANGLE_RAD: float = math.pi * (3.0 - math.sqrt(5.0))


def build_surface_patches(count: int = DEFAULT_SURFACE_PATCH_COUNT) -> Tuple[Vector3, ...]:
    """
    Discretize the unit sphere into `count` patches of roughly equal area
    (golden spiral lattice). Each patch is its outward unit normal.

    Deterministic: the same count always yields the same ordered normals.
    """
    if not isinstance(count, int) or isinstance(count, bool) or count <= 0:
        raise ConfigurationError(f"Surface patch count must be a positive integer. Got: {count!r}")

    patches = []
    for i in range(count):
        # z spaced at band centres so no patch lands exactly on a pole
        z = 1.0 - (2.0 * i + 1.0) / count
        r = math.sqrt(max(0.0, 1.0 - z * z))
        phi = i * GOLDEN_ANGLE_RAD
        patches.append((r * math.cos(phi), r * math.sin(phi), z))
    return tuple(patches)


class SurfacePatchSet:
    """
    Process-wide star surface discretization, built on first use.

    The discretization must stay fixed for the whole session, so a later
    request for a different density gets the set that already exists.
    """
    _lock: ClassVar[threading.Lock] = threading.Lock()
    _patches: ClassVar[Optional[Tuple[Vector3, ...]]] = None

    @classmethod
    def shared(cls, count: int = DEFAULT_SURFACE_PATCH_COUNT) -> Tuple[Vector3, ...]:
        patches = cls._patches
        if patches is None:
            with cls._lock:
                if cls._patches is None:
                    cls._patches = build_surface_patches(count)
                    logger.debug("Built star surface discretization with %d patches", count)
                patches = cls._patches
        if len(patches) != count:
            logger.warning(
                "Surface discretization already built with %d patches, ignoring request for %d",
                len(patches), count,
            )
        return patches

    @classmethod
    def is_built(cls) -> bool:
        return cls._patches is not None
