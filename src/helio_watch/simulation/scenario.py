from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from helio_watch.objects.body import CelestialBody
from helio_watch.objects.vessel import Vessel


@dataclass
class Scenario:
    """
    The host universe: every celestial body and vessel in a run.
    Keep this pure: just data + lookup, no stepping logic.
    """
    name: str
    bodies: Dict[int, CelestialBody] = field(default_factory=dict)
    vessels: Dict[str, Vessel] = field(default_factory=dict)

    def add_body(self, body: CelestialBody) -> CelestialBody:
        if body.index in self.bodies:
            raise ValueError(f"Duplicate body index: {body.index}")
        if body.parent is not None and body.parent.index not in self.bodies:
            raise ValueError(f"Parent of '{body.name}' must be added first.")
        self.bodies[body.index] = body
        return body

    def add_vessel(self, vessel: Vessel) -> Vessel:
        if vessel.vessel_id in self.vessels:
            raise ValueError(f"Duplicate vessel ID: {vessel.vessel_id}")
        if vessel.main_body.index not in self.bodies:
            raise ValueError(f"Main body of '{vessel.name}' is not part of the scenario.")
        self.vessels[vessel.vessel_id] = vessel
        return vessel

    def remove_vessel(self, vessel_id: str) -> None:
        self.vessels.pop(vessel_id, None)

    def find_vessel(self, vessel_id: str) -> Optional[Vessel]:
        return self.vessels.get(vessel_id)

    def body_by_index(self, index: int) -> Optional[CelestialBody]:
        return self.bodies.get(index)

    def body_list(self) -> List[CelestialBody]:
        return [self.bodies[i] for i in sorted(self.bodies)]

    def star_list(self) -> List[CelestialBody]:
        return [b for b in self.body_list() if b.is_star]
