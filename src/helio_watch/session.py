from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from helio_watch.core.config import Configuration, load_config
from helio_watch.core.errors import ConfigurationError
from helio_watch.host import RadiationApi
from helio_watch.objects.body import CelestialBody
from helio_watch.objects.equipment import EquipmentStateTracker
from helio_watch.physics.evaluator import EvaluatorSelector
from helio_watch.simulation.engine import SimulationLog, System
from helio_watch.simulation.scenario import Scenario
from helio_watch.simulation.systems.field_visibility import FieldVisibilityInitSystem
from helio_watch.simulation.systems.sun_observation import SunObservationSystem
from helio_watch.state.radiation_fields import (
    FieldResearched,
    RadiationFieldStatusStore,
    RadiationFieldType,
    read_json,
    write_json_atomic,
)

logger = logging.getLogger(__name__)

EQUIPMENT_STATES_KEY = "EquipmentStates"


class ObservationSession:
    """
    Everything that lives for one loaded game: the radiation field store,
    the equipment tracker, the evaluator choice and the systems the host
    clock drives.

    `load` is the only way to reset this state; it replaces the store,
    forgets the evaluator choice and re-arms the deferred belt visibility push.
    """

    def __init__(
        self,
        config: Optional[Configuration],
        api: RadiationApi,
        scenario: Scenario,
        provider: Any = None,
        sandbox: bool = False,
    ) -> None:
        self.config = config
        self.api = api
        self.scenario = scenario
        self.log = SimulationLog()

        self.evaluators = EvaluatorSelector(provider, config.evaluator_provider if config else None)
        self.equipment = EquipmentStateTracker()
        self.radiation_fields = RadiationFieldStatusStore(api, scenario.body_by_index)
        self.radiation_fields.subscribe(self._record_research)

        self.sun_observation = SunObservationSystem(config, self.equipment, api, self.evaluators)
        self.field_visibility = FieldVisibilityInitSystem(
            self.radiation_fields,
            sandbox=sandbox,
            hide_radiation_belts=config.hide_radiation_belts if config else True,
        )

    @classmethod
    def from_config_file(
        cls,
        path: Union[str, Path],
        api: RadiationApi,
        scenario: Scenario,
        **kwargs: Any,
    ) -> "ObservationSession":
        """
        Build a session from a YAML file. A bad configuration is reported
        once and leaves sun observation disabled instead of failing the host.
        """
        try:
            config: Optional[Configuration] = load_config(path)
        except ConfigurationError as exc:
            logger.error("Sun observation configuration rejected: %s", exc)
            config = None
        return cls(config, api, scenario, **kwargs)

    def systems(self) -> List[System]:
        return [self.field_visibility, self.sun_observation]

    def _record_research(self, event: FieldResearched) -> None:
        self.log.record_event(
            "field_researched",
            None,
            body_index=event.body_index,
            field=event.field_type.value,
        )

    def set_field_visible(self, body: CelestialBody, field_type: RadiationFieldType, visible: bool = True) -> bool:
        return self.radiation_fields.set_visible(body.index, field_type, visible)

    def load(self, tree: Any) -> None:
        self.evaluators.reset()
        self.field_visibility.reset()
        self.sun_observation.reset()
        self.radiation_fields.load(tree)
        self.equipment.load(tree.get(EQUIPMENT_STATES_KEY) if isinstance(tree, dict) else None)
        logger.info("Loaded radiation field state for %d bodies", len(self.radiation_fields))

    def save(self) -> Dict[str, Any]:
        tree = self.radiation_fields.save()
        tree[EQUIPMENT_STATES_KEY] = self.equipment.save()
        return tree

    def save_json(self, path: Union[str, Path]) -> str:
        return write_json_atomic(self.save(), path)

    def load_json(self, path: Union[str, Path]) -> None:
        self.load(read_json(path))
