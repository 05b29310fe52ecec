from __future__ import annotations

from dataclasses import dataclass

from helio_watch.objects.body import CelestialBody
from helio_watch.physics.orbit import OrbitalElements


@dataclass
class Vessel:
    """
    An observer platform orbiting `main_body`.
    """
    vessel_id: str
    name: str
    main_body: CelestialBody
    elements: OrbitalElements

    def __post_init__(self):
        if not self.vessel_id.strip():
            raise ValueError("Vessel ID cannot be empty or whitespace.")

    def parent_star(self) -> CelestialBody:
        return self.main_body.parent_star()
