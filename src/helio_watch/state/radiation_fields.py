from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Union

from helio_watch.core.errors import PersistenceFormatError
from helio_watch.host import RadiationApi
from helio_watch.objects.body import CelestialBody

logger = logging.getLogger(__name__)

BODY_DATA_KEY = "BodyData"


class RadiationFieldType(Enum):
    INNER_BELT = "inner_belt"
    OUTER_BELT = "outer_belt"
    MAGNETOPAUSE = "magnetopause"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]


_DISPLAY_NAMES = {
    RadiationFieldType.INNER_BELT: "inner belt",
    RadiationFieldType.OUTER_BELT: "outer belt",
    RadiationFieldType.MAGNETOPAUSE: "magnetosphere",
}

_VISIBLE_ATTR = {
    RadiationFieldType.INNER_BELT: "inner_visible",
    RadiationFieldType.OUTER_BELT: "outer_visible",
    RadiationFieldType.MAGNETOPAUSE: "pause_visible",
}

_CROSSINGS_ATTR = {
    RadiationFieldType.INNER_BELT: "inner_crossings",
    RadiationFieldType.OUTER_BELT: "outer_crossings",
    RadiationFieldType.MAGNETOPAUSE: "magneto_crossings",
}


def _node_bool(node: Mapping[str, Any], key: str) -> bool:
    value = node.get(key, False)
    if isinstance(value, bool):
        return value
    # key/value trees written by hand store booleans as text
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    raise PersistenceFormatError(f"{key} must be a boolean, got {value!r}")


def _node_int(node: Mapping[str, Any], key: str, default: int) -> int:
    value = node.get(key, default)
    if isinstance(value, bool):
        raise PersistenceFormatError(f"{key} must be an integer, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
    raise PersistenceFormatError(f"{key} must be an integer, got {value!r}")


@dataclass
class GlobalRadiationFieldStatus:
    """
    What the player has found out about the radiation fields of one body.

    `index` cannot change once set. Crossing counters only go up and a
    revealed field never goes back to hidden.
    The has_* flags mirror the host's radiation model and are not saved.
    """
    index: int
    inner_visible: bool = False
    outer_visible: bool = False
    pause_visible: bool = False
    inner_crossings: int = 0
    outer_crossings: int = 0
    magneto_crossings: int = 0
    has_inner: bool = field(default=False, compare=False)
    has_outer: bool = field(default=False, compare=False)
    has_pause: bool = field(default=False, compare=False)

    def __setattr__(self, name: str, value: Any) -> None:
        if name in self.__dict__:
            current = self.__dict__[name]
            if name == "index":
                raise AttributeError("GlobalRadiationFieldStatus.index is immutable")
            if name in _VISIBLE_ATTR.values() and current and not value:
                raise AttributeError(f"{name} cannot go back to hidden once revealed")
            if name in _CROSSINGS_ATTR.values() and value < current:
                raise AttributeError(f"{name} cannot decrease ({current} -> {value})")
        super().__setattr__(name, value)

    def is_visible(self, field_type: RadiationFieldType) -> bool:
        return getattr(self, _VISIBLE_ATTR[field_type])

    def crossings(self, field_type: RadiationFieldType) -> int:
        return getattr(self, _CROSSINGS_ATTR[field_type])

    def to_node(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "inner_visible": self.inner_visible,
            "outer_visible": self.outer_visible,
            "pause_visible": self.pause_visible,
            "inner_crossings": self.inner_crossings,
            "outer_crossings": self.outer_crossings,
            "magneto_crossings": self.magneto_crossings,
        }

    @classmethod
    def from_node(cls, node: Mapping[str, Any]) -> "GlobalRadiationFieldStatus":
        """
        Rebuild a status from a saved node. A malformed field falls back to
        its default; unknown keys are ignored. A missing or malformed index
        yields -1, which the store treats as unusable.
        """
        try:
            index = _node_int(node, "index", -1)
        except PersistenceFormatError as exc:
            logger.warning("Body node has a malformed index: %s", exc)
            index = -1

        status = cls(index)
        for attr in _VISIBLE_ATTR.values():
            try:
                setattr(status, attr, _node_bool(node, attr))
            except PersistenceFormatError as exc:
                logger.warning("Body %d: %s, using default", index, exc)
        for attr in _CROSSINGS_ATTR.values():
            try:
                count = _node_int(node, attr, 0)
                if count < 0:
                    raise PersistenceFormatError(f"{attr} must be >= 0, got {count}")
                setattr(status, attr, count)
            except PersistenceFormatError as exc:
                logger.warning("Body %d: %s, using default", index, exc)
        return status


@dataclass(frozen=True)
class FieldResearched:
    """One-time notification: a radiation field of a body has been revealed."""
    body_index: int
    field_type: RadiationFieldType
    body_name: Optional[str] = None

    def message(self) -> str:
        name = self.body_name or f"Body {self.body_index}"
        return (
            f"{name}: {self.field_type.display_name} researched\n\n"
            f"Our scientists now understand the {self.field_type.display_name} of {name}."
        )


Listener = Callable[[FieldResearched], None]


class RadiationFieldStatusStore:
    """
    Owns every GlobalRadiationFieldStatus, keyed by body index.

    Visibility only ever goes hidden -> visible at runtime, through
    `set_visible`; each such transition notifies the subscribers once.
    `load` replaces the whole store and never notifies.
    """

    def __init__(
        self,
        api: Optional[RadiationApi] = None,
        body_lookup: Optional[Callable[[int], Optional[CelestialBody]]] = None,
    ) -> None:
        self.api = api
        self.body_lookup = body_lookup
        self._bodies: Dict[int, GlobalRadiationFieldStatus] = {}
        self._listeners: List[Listener] = []

    def __len__(self) -> int:
        return len(self._bodies)

    def __contains__(self, index: object) -> bool:
        return index in self._bodies

    def indices(self) -> List[int]:
        return sorted(self._bodies)

    def get(self, index: int) -> Optional[GlobalRadiationFieldStatus]:
        return self._bodies.get(index)

    def get_or_create(self, index: int) -> GlobalRadiationFieldStatus:
        status = self._bodies.get(index)
        if status is None:
            status = GlobalRadiationFieldStatus(index)
            self._bodies[index] = status
        return status

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _body(self, index: int) -> Optional[CelestialBody]:
        return self.body_lookup(index) if self.body_lookup is not None else None

    def set_visible(self, index: int, field_type: RadiationFieldType, visible: bool = True) -> bool:
        """
        Reveal a radiation field. Returns True when the call changed state.
        Hiding an already revealed field is refused.
        """
        status = self.get_or_create(index)
        was_visible = status.is_visible(field_type)
        logger.debug("Setting visibility for %s of body %d to %s", field_type.display_name, index, visible)

        if was_visible == visible:
            return False
        if not visible:
            logger.warning(
                "Refusing to hide %s of body %d: revealed fields only reset on reload",
                field_type.display_name, index,
            )
            return False

        setattr(status, _VISIBLE_ATTR[field_type], True)

        body = self._body(index)
        if self.api is not None and body is not None:
            _push_visibility(self.api, body, field_type, True)

        event = FieldResearched(index, field_type, body.name if body is not None else None)
        if self.api is not None:
            try:
                self.api.message(event.message())
            except Exception:
                logger.exception("Could not show research message for body %d", index)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Listener %r failed on %s", listener, event)
        return True

    def record_crossing(self, index: int, field_type: RadiationFieldType) -> int:
        status = self.get_or_create(index)
        attr = _CROSSINGS_ATTR[field_type]
        count = getattr(status, attr) + 1
        setattr(status, attr, count)
        return count

    def initialize_field_visibility(
        self,
        bodies: Iterable[CelestialBody],
        sandbox: bool = False,
        hide_radiation_belts: bool = True,
    ) -> None:
        """
        Push the effective visibility of every body's fields to the host and
        refresh which fields the host actually models. No notifications.
        """
        if self.api is None:
            logger.debug("No radiation API attached, skipping field visibility init")
            return

        for body in bodies:
            status = self.get_or_create(body.index)
            for field_type in RadiationFieldType:
                shown = sandbox or status.is_visible(field_type) or not hide_radiation_belts
                _push_visibility(self.api, body, field_type, shown)

            status.has_inner = self.api.has_inner_belt(body)
            status.has_outer = self.api.has_outer_belt(body)
            status.has_pause = self.api.has_magnetopause(body)

    def clear(self) -> None:
        self._bodies.clear()

    def save(self) -> Dict[str, Any]:
        return {BODY_DATA_KEY: [self._bodies[i].to_node() for i in sorted(self._bodies)]}

    def load(self, tree: Any) -> None:
        """
        Replace the whole store with the bodies found in `tree`.
        """
        self._bodies.clear()
        if not isinstance(tree, Mapping):
            if tree is not None:
                logger.warning("Saved radiation field state is not a mapping, starting empty")
            return

        nodes = tree.get(BODY_DATA_KEY, [])
        if isinstance(nodes, Mapping):
            nodes = list(nodes.values())
        if not isinstance(nodes, list):
            logger.warning("Saved %s is not a list, starting empty", BODY_DATA_KEY)
            return

        for node in nodes:
            if not isinstance(node, Mapping):
                logger.warning("Ignoring malformed body node %r", node)
                continue
            status = GlobalRadiationFieldStatus.from_node(node)
            if status.index < 0:
                logger.warning("Ignoring body node without a usable index: %r", node)
                continue
            self._bodies[status.index] = status

    def save_json(self, path: Union[str, Path]) -> str:
        return write_json_atomic(self.save(), path)

    def load_json(self, path: Union[str, Path]) -> None:
        self.load(read_json(path))


def _push_visibility(api: RadiationApi, body: CelestialBody, field_type: RadiationFieldType, visible: bool) -> None:
    if field_type is RadiationFieldType.INNER_BELT:
        api.set_inner_belt_visible(body, visible)
    elif field_type is RadiationFieldType.OUTER_BELT:
        api.set_outer_belt_visible(body, visible)
    else:
        api.set_magnetopause_visible(body, visible)


def write_json_atomic(data: Any, path: Union[str, Path]) -> str:
    """
    Write `data` as indented JSON. The file is replaced in one step so a
    crash mid-write leaves the previous save intact.
    """
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=str(out.parent), prefix=out.name, suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, sort_keys=True)
        os.replace(tmp, out)
    except BaseException:
        if os.path.exists(tmp):
            os.remove(tmp)
        raise
    return str(out)


def read_json(path: Union[str, Path]) -> Any:
    """
    Read a saved JSON tree. Unreadable or corrupt files yield None so the
    caller starts from an empty state.
    """
    p = Path(path)
    try:
        with open(p, "r", encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError:
        logger.info("No saved state at %s", p)
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Could not read saved state %s: %s", p, exc)
    return None
