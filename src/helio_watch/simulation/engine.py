from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Tuple

from helio_watch.simulation.scenario import Scenario


class System(Protocol):
    """
    Plugin interface for simulation systems.
    Each system runs per tick and can write to the log.
    """
    name: str

    def on_step(self, t_s: float, scenario: Scenario, log: "SimulationLog") -> None:
        ...


@dataclass
class SimulationLog:
    """
    Stores outputs from a simulation run.
    Keep it simple and serializable.
    """
    # Observation quality: star index -> list of (t, fraction)
    observation_quality: Dict[int, List[Tuple[float, float]]] = field(default_factory=dict)

    # Times at which a sun observation pass actually ran
    observation_passes: List[float] = field(default_factory=list)

    # Free-form events (field research notifications, skipped stars, ...)
    events: List[Dict[str, Any]] = field(default_factory=list)

    def record_observation_quality(self, star_index: int, t_s: float, fraction: float) -> None:
        self.observation_quality.setdefault(star_index, []).append((t_s, fraction))

    def record_pass(self, t_s: float) -> None:
        self.observation_passes.append(t_s)

    def record_event(self, kind: str, t_s: Optional[float], **data: Any) -> None:
        self.events.append({"kind": kind, "t_s": t_s, **data})

    def latest_quality(self, star_index: int) -> float:
        samples = self.observation_quality.get(star_index)
        if not samples:
            raise KeyError(f"No observation quality recorded for star {star_index}")
        return samples[-1][1]


@dataclass
class Engine:
    """
    Fixed-step host clock.
    Deterministic replay: given same scenario + dt + start/end => same output.
    """
    dt_s: float
    systems: List[System] = field(default_factory=list)

    def run(self, scenario: Scenario, t_start_s: float, t_end_s: float, log: Optional[SimulationLog] = None) -> SimulationLog:
        if self.dt_s <= 0:
            raise ValueError("dt_s must be positive.")
        if t_end_s < t_start_s:
            raise ValueError("t_end_s must be >= t_start_s.")

        log = log if log is not None else SimulationLog()
        # integer step count avoids drift from repeated float addition
        n_steps = int((t_end_s - t_start_s) / self.dt_s + 1e-9)

        for k in range(n_steps + 1):
            t = t_start_s + k * self.dt_s
            for sys in self.systems:
                sys.on_step(t, scenario, log)

        return log
