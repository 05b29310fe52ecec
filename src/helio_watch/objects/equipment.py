from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Mapping, Sequence

logger = logging.getLogger(__name__)


class EquipmentState(Enum):
    NONE = "none"
    NOMINAL = "nominal"
    OFF = "off"
    WARNING = "warning"
    FAILURE = "failure"


@dataclass(frozen=True)
class EquipmentStateEntry:
    equipment_id: str
    state: EquipmentState


class EquipmentStateTracker:
    """
    Latest known equipment states per vessel.

    The experiment layer pushes updates through `update`; the sun observation
    pass only reads `snapshot()`.
    """

    def __init__(self) -> None:
        self.states: Dict[str, List[EquipmentStateEntry]] = {}

    def update(self, vessel_id: str, equipment_id: str, state: EquipmentState) -> None:
        entries = self.states.setdefault(vessel_id, [])
        for i, entry in enumerate(entries):
            if entry.equipment_id == equipment_id:
                entries[i] = EquipmentStateEntry(equipment_id, state)
                return
        entries.append(EquipmentStateEntry(equipment_id, state))

    def remove(self, vessel_id: str) -> None:
        self.states.pop(vessel_id, None)

    def clear(self) -> None:
        self.states.clear()

    def snapshot(self) -> Dict[str, List[EquipmentStateEntry]]:
        return {vid: list(entries) for vid, entries in self.states.items()}

    def save(self) -> Dict[str, List[Dict[str, str]]]:
        return {
            vid: [{"id": e.equipment_id, "state": e.state.value} for e in entries]
            for vid, entries in self.states.items()
        }

    def load(self, tree: Any) -> None:
        self.states.clear()
        if not isinstance(tree, Mapping):
            return
        for vid, raw_entries in tree.items():
            if not isinstance(raw_entries, Sequence) or isinstance(raw_entries, str):
                logger.warning("Ignoring malformed equipment states for vessel %s", vid)
                continue
            for raw in raw_entries:
                try:
                    self.update(str(vid), str(raw["id"]), EquipmentState(raw["state"]))
                except (KeyError, TypeError, ValueError):
                    logger.warning("Ignoring malformed equipment entry %r for vessel %s", raw, vid)


def qualifies_as_observer(entries: Sequence[EquipmentStateEntry], equipment_id: str) -> bool:
    return any(e.equipment_id == equipment_id and e.state is EquipmentState.NOMINAL for e in entries)
