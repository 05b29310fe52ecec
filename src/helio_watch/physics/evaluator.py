from __future__ import annotations

import importlib
import logging
from typing import Any, Optional, Protocol

from helio_watch.core.errors import EvaluatorUnavailable
from helio_watch.core.frames import Vector3, add
from helio_watch.objects.body import CelestialBody
from helio_watch.objects.vessel import Vessel
from helio_watch.physics.orbit import relative_position_km

logger = logging.getLogger(__name__)


class UniverseEvaluator(Protocol):
    """
    Answers "where is this body / vessel at time t" in one common inertial frame.
    """
    name: str

    def body_position(self, body: CelestialBody, t_s: float) -> Vector3:
        ...

    def vessel_position(self, vessel: Vessel, t_s: float) -> Vector3:
        ...


class EvaluatorProvider(Protocol):
    def get_universe_evaluator(self) -> Optional[UniverseEvaluator]:
        ...


class StockUniverseEvaluator:
    """
    Built-in backend: patched two-body conics. A body's position is its
    Keplerian offset around the parent plus the parent's own position.
    """
    name = "stock"

    def body_position(self, body: CelestialBody, t_s: float) -> Vector3:
        if body.parent is None or body.elements is None:
            return body.position_km
        offset = relative_position_km(body.elements, t_s, body.parent.mu_km3_s2)
        return add(self.body_position(body.parent, t_s), offset)

    def vessel_position(self, vessel: Vessel, t_s: float) -> Vector3:
        offset = relative_position_km(vessel.elements, t_s, vessel.main_body.mu_km3_s2)
        return add(self.body_position(vessel.main_body, t_s), offset)


def import_provider(module_path: str) -> EvaluatorProvider:
    """
    Import an external provider module. The module itself (or its
    `provider` attribute, when present) must expose get_universe_evaluator().
    """
    try:
        module = importlib.import_module(module_path)
    except ImportError as exc:
        raise EvaluatorUnavailable(f"Evaluator provider '{module_path}' is not installed") from exc
    return getattr(module, "provider", module)


def probe_external_evaluator(provider: Any) -> UniverseEvaluator:
    if provider is None:
        raise EvaluatorUnavailable("No external evaluator provider configured")
    probe = getattr(provider, "get_universe_evaluator", None)
    if not callable(probe):
        raise EvaluatorUnavailable(f"{provider!r} does not expose get_universe_evaluator()")
    try:
        evaluator = probe()
    except Exception as exc:
        raise EvaluatorUnavailable(f"External evaluator probe failed: {exc}") from exc
    if evaluator is None:
        raise EvaluatorUnavailable("External provider returned no evaluator")
    return evaluator


class EvaluatorSelector:
    """
    Picks the evaluator once and keeps it until `reset()`.

    The external provider wins when it yields an evaluator. Otherwise the
    stock backend is selected and the external probe is not retried.
    """

    def __init__(self, provider: Any = None, provider_module: Optional[str] = None) -> None:
        self.provider = provider
        self.provider_module = provider_module
        self._evaluator: Optional[UniverseEvaluator] = None
        self.probe_count = 0

    def get(self) -> UniverseEvaluator:
        if self._evaluator is not None:
            return self._evaluator

        self.probe_count += 1
        try:
            provider = self.provider
            if provider is None and self.provider_module:
                provider = import_provider(self.provider_module)
            self._evaluator = probe_external_evaluator(provider)
            logger.info("Using external universe evaluator '%s'", getattr(self._evaluator, "name", "external"))
        except EvaluatorUnavailable as exc:
            logger.debug("External evaluator unavailable (%s), using stock evaluator", exc)
            self._evaluator = StockUniverseEvaluator()

        return self._evaluator

    def reset(self) -> None:
        self._evaluator = None
