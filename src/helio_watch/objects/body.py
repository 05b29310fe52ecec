from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from helio_watch.core.constants import DEFAULT_MU_KM3_S2
from helio_watch.core.frames import Vector3
from helio_watch.physics.orbit import OrbitalElements


@dataclass(eq=False)
class CelestialBody:
    """
    A star, planet or moon. Identity is the stable `index`; two instances
    with the same index are the same body.

    A body without a parent is a star and sits at `position_km`.
    A body with a parent follows `elements` around it.
    """
    index: int
    name: str
    parent: Optional["CelestialBody"] = None
    elements: Optional[OrbitalElements] = None
    mu_km3_s2: float = DEFAULT_MU_KM3_S2
    radius_km: float = 600.0
    position_km: Vector3 = (0.0, 0.0, 0.0)

    def __post_init__(self):
        if self.index < 0:
            raise ValueError(f"Body index must be non-negative. Got: {self.index}")
        if not self.name.strip():
            raise ValueError("Body name cannot be empty or whitespace.")
        if self.parent is not None and self.elements is None:
            raise ValueError(f"Body '{self.name}' has a parent but no orbital elements.")
        if self.mu_km3_s2 <= 0:
            raise ValueError(f"Gravitational parameter must be positive. Got: {self.mu_km3_s2}")

    @property
    def is_star(self) -> bool:
        return self.parent is None

    def parent_star(self) -> "CelestialBody":
        body = self
        while body.parent is not None:
            body = body.parent
        return body

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CelestialBody):
            return NotImplemented
        return self.index == other.index

    def __hash__(self) -> int:
        return hash(("body", self.index))

    def __repr__(self) -> str:
        return f"CelestialBody({self.index}, {self.name!r})"
