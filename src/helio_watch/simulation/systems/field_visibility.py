from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from helio_watch.core.constants import FIELD_VISIBILITY_INIT_DELAY_S
from helio_watch.simulation.engine import SimulationLog
from helio_watch.simulation.scenario import Scenario
from helio_watch.state.radiation_fields import RadiationFieldStatusStore


@dataclass
class FieldVisibilityInitSystem:
    """
    Pushes saved belt visibility to the host once it has settled after a
    load. The host is not ready on the first tick, so the push waits
    `delay_s` after the first tick seen.
    """
    store: RadiationFieldStatusStore
    sandbox: bool = False
    hide_radiation_belts: bool = True
    delay_s: float = FIELD_VISIBILITY_INIT_DELAY_S
    name: str = "field_visibility_init"
    first_tick_s: Optional[float] = None
    initialized: bool = False

    def reset(self) -> None:
        self.first_tick_s = None
        self.initialized = False

    def on_step(self, t_s: float, scenario: Scenario, log: SimulationLog) -> None:
        if self.initialized:
            return
        if self.first_tick_s is None:
            self.first_tick_s = t_s
        if t_s - self.first_tick_s < self.delay_s:
            return

        self.store.initialize_field_visibility(scenario.body_list(), self.sandbox, self.hide_radiation_belts)
        self.initialized = True
        log.record_event("field_visibility_initialized", t_s, bodies=len(scenario.bodies))
