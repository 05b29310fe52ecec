from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Protocol, Set, Tuple

from helio_watch.objects.body import CelestialBody


class RadiationApi(Protocol):
    """
    Host-side radiation model the core reports to.
    """

    def set_storm_observation_quality(self, star: CelestialBody, quality: float) -> None:
        ...

    def set_inner_belt_visible(self, body: CelestialBody, visible: bool) -> None:
        ...

    def set_outer_belt_visible(self, body: CelestialBody, visible: bool) -> None:
        ...

    def set_magnetopause_visible(self, body: CelestialBody, visible: bool) -> None:
        ...

    def has_inner_belt(self, body: CelestialBody) -> bool:
        ...

    def has_outer_belt(self, body: CelestialBody) -> bool:
        ...

    def has_magnetopause(self, body: CelestialBody) -> bool:
        ...

    def message(self, text: str) -> None:
        ...


@dataclass
class RecordingApi:
    """
    In-memory RadiationApi. Keeps the latest value per body and every
    message, so a scenario run can be inspected afterwards.
    """
    storm_observation_quality: Dict[int, float] = field(default_factory=dict)
    quality_updates: List[Tuple[int, float]] = field(default_factory=list)
    belt_visibility: Dict[Tuple[int, str], bool] = field(default_factory=dict)
    bodies_with_inner: Set[int] = field(default_factory=set)
    bodies_with_outer: Set[int] = field(default_factory=set)
    bodies_with_pause: Set[int] = field(default_factory=set)
    messages: List[str] = field(default_factory=list)

    def set_storm_observation_quality(self, star: CelestialBody, quality: float) -> None:
        self.storm_observation_quality[star.index] = quality
        self.quality_updates.append((star.index, quality))

    def set_inner_belt_visible(self, body: CelestialBody, visible: bool) -> None:
        self.belt_visibility[(body.index, "inner")] = visible

    def set_outer_belt_visible(self, body: CelestialBody, visible: bool) -> None:
        self.belt_visibility[(body.index, "outer")] = visible

    def set_magnetopause_visible(self, body: CelestialBody, visible: bool) -> None:
        self.belt_visibility[(body.index, "pause")] = visible

    def has_inner_belt(self, body: CelestialBody) -> bool:
        return body.index in self.bodies_with_inner

    def has_outer_belt(self, body: CelestialBody) -> bool:
        return body.index in self.bodies_with_outer

    def has_magnetopause(self, body: CelestialBody) -> bool:
        return body.index in self.bodies_with_pause

    def message(self, text: str) -> None:
        self.messages.append(text)
