from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from helio_watch.core.config import Configuration
from helio_watch.core.errors import GeometryError
from helio_watch.host import RadiationApi
from helio_watch.objects.body import CelestialBody
from helio_watch.objects.equipment import EquipmentStateTracker, qualifies_as_observer
from helio_watch.objects.vessel import Vessel
from helio_watch.physics.context import EvaluationContext
from helio_watch.physics.evaluator import EvaluatorSelector
from helio_watch.physics.observation import visible_surface
from helio_watch.physics.surface import SurfacePatchSet
from helio_watch.simulation.engine import SimulationLog
from helio_watch.simulation.scenario import Scenario

logger = logging.getLogger(__name__)


@dataclass
class SunObservationSystem:
    """
    Periodically works out how much of each star's surface is watched by
    vessels whose sun observation equipment is nominal, and reports it to
    the radiation API as storm observation quality.

    Ticks closer together than the configured interval are no-ops. A star
    without observers gets no update, so the host keeps its last value.
    Without a configuration the system stays disabled.
    """
    config: Optional[Configuration]
    equipment: EquipmentStateTracker
    api: RadiationApi
    evaluators: EvaluatorSelector = field(default_factory=EvaluatorSelector)
    name: str = "sun_observation"
    last_run_s: float = 0.0
    pass_count: int = 0
    _disabled_reported: bool = field(default=False, repr=False)

    @property
    def enabled(self) -> bool:
        return self.config is not None

    def reset(self) -> None:
        self.last_run_s = 0.0

    def on_step(self, t_s: float, scenario: Scenario, log: SimulationLog) -> None:
        if self.config is None:
            if not self._disabled_reported:
                logger.error("Sun observation disabled: no valid configuration")
                self._disabled_reported = True
            return

        if t_s - self.last_run_s < self.config.observation_interval_s:
            return

        self.last_run_s = t_s
        self.pass_count += 1
        log.record_pass(t_s)
        self.run_pass(t_s, scenario, log)

    def observers_by_star(self, scenario: Scenario) -> Dict[CelestialBody, List[Vessel]]:
        """
        Group the vessels currently doing sun observation by the star
        their main body ultimately orbits.
        """
        if self.config is None:
            return {}

        groups: Dict[CelestialBody, List[Vessel]] = {}
        for vessel_id, entries in self.equipment.snapshot().items():
            if not qualifies_as_observer(entries, self.config.sun_observation_equipment):
                continue
            vessel = scenario.find_vessel(vessel_id)
            if vessel is None:
                logger.debug("Observer %s is not loaded, ignoring", vessel_id)
                continue
            groups.setdefault(vessel.parent_star(), []).append(vessel)
        return groups

    def run_pass(self, t_s: float, scenario: Scenario, log: SimulationLog) -> Dict[int, float]:
        """
        One full observation pass. Returns the reported fraction per star index.
        """
        if self.config is None:
            return {}
        patches = SurfacePatchSet.shared(self.config.surface_patch_count)
        evaluator = self.evaluators.get()
        reported: Dict[int, float] = {}

        for star, vessels in self.observers_by_star(scenario).items():
            context = EvaluationContext(evaluator, star)
            context.set_time(t_s)
            try:
                star_position = context.body_position(star)
                observer_positions = [context.vessel_position(v) for v in vessels]
            except Exception as exc:
                logger.exception("Position evaluation failed for %s, skipping star", star.name)
                log.record_event("star_skipped", t_s, star_index=star.index, reason=f"evaluator: {exc}")
                continue

            try:
                fraction = visible_surface(
                    star_position,
                    observer_positions,
                    self.config.min_sun_observation_angle_rad,
                    patches,
                )
            except GeometryError as exc:
                logger.warning("Skipping sun observation for %s: %s", star.name, exc)
                log.record_event("star_skipped", t_s, star_index=star.index, reason=str(exc))
                continue

            self.api.set_storm_observation_quality(star, fraction)
            log.record_observation_quality(star.index, t_s, fraction)
            reported[star.index] = fraction
            logger.debug("Solar surface observation for %s: %.2f%%", star.name, fraction * 100.0)

        return reported
