from __future__ import annotations

from typing import Dict, Optional

from helio_watch.core.frames import Vector3
from helio_watch.objects.body import CelestialBody
from helio_watch.objects.vessel import Vessel
from helio_watch.physics.evaluator import UniverseEvaluator


class EvaluationContext:
    """
    Position queries pinned to one instant.

    Build a new context for every observation pass; positions are memoized
    for the lifetime of the context only, so a stale instant can never leak
    into a later pass.
    """

    def __init__(
        self,
        evaluator: UniverseEvaluator,
        reference_body: Optional[CelestialBody] = None,
        t_s: Optional[float] = None,
    ) -> None:
        self.evaluator = evaluator
        self.reference_body = reference_body
        self._t_s = t_s
        self._body_cache: Dict[int, Vector3] = {}

    @property
    def t_s(self) -> float:
        if self._t_s is None:
            raise RuntimeError("EvaluationContext time has not been set.")
        return self._t_s

    def set_time(self, t_s: float) -> None:
        if t_s != self._t_s:
            self._body_cache.clear()
        self._t_s = t_s

    def body_position(self, body: CelestialBody) -> Vector3:
        r = self._body_cache.get(body.index)
        if r is None:
            r = self.evaluator.body_position(body, self.t_s)
            self._body_cache[body.index] = r
        return r

    def vessel_position(self, vessel: Vessel) -> Vector3:
        return self.evaluator.vessel_position(vessel, self.t_s)
