from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterable, Sequence

import plotly.graph_objects as go

from helio_watch.core.frames import Vector3, scale
from helio_watch.simulation.engine import SimulationLog


def surface_observation_figure(
    star_name: str,
    patches: Sequence[Vector3],
    observed: Iterable[int],
    observer_directions: Sequence[Vector3] = (),
) -> go.Figure:
    """
    Unit-sphere view of a star's surface patches:
      - observed patches in orange, the rest in grey
      - one marker per observer direction, just outside the sphere
    """
    seen = set(observed)
    fig = go.Figure()

    for label, color, members in (
        ("observed", "orange", [p for i, p in enumerate(patches) if i in seen]),
        ("unobserved", "lightgrey", [p for i, p in enumerate(patches) if i not in seen]),
    ):
        fig.add_trace(go.Scatter3d(
            x=[p[0] for p in members],
            y=[p[1] for p in members],
            z=[p[2] for p in members],
            mode="markers",
            name=f"{label} ({len(members)})",
            marker=dict(size=4, color=color),
        ))

    if observer_directions:
        markers = [scale(1.3, d) for d in observer_directions]
        fig.add_trace(go.Scatter3d(
            x=[m[0] for m in markers],
            y=[m[1] for m in markers],
            z=[m[2] for m in markers],
            mode="markers",
            name="observers",
            marker=dict(size=7, symbol="diamond", color="royalblue"),
        ))

    fraction = len(seen) / len(patches) if patches else 0.0
    fig.update_layout(
        title=f"{star_name}: {fraction * 100.0:.1f}% of surface observed",
        scene=dict(xaxis_title="X", yaxis_title="Y", zaxis_title="Z", aspectmode="data"),
        margin=dict(l=0, r=0, t=40, b=0),
        legend=dict(orientation="h"),
    )
    return fig


def render_surface_observation(
    star_name: str,
    patches: Sequence[Vector3],
    observed: Iterable[int],
    observer_directions: Sequence[Vector3] = (),
    out_html: str = "out/surface_observation.html",
) -> str:
    fig = surface_observation_figure(star_name, patches, observed, observer_directions)
    Path(out_html).parent.mkdir(parents=True, exist_ok=True)
    fig.write_html(out_html, auto_open=False)
    return out_html


def render_quality_history(
    log: SimulationLog,
    star_names: Dict[int, str],
    out_html: str = "out/observation_quality.html",
) -> str:
    """
    Observation quality per star over the passes of a run.
    """
    if not log.observation_quality:
        raise ValueError("No observation quality recorded in log.")

    fig = go.Figure()
    for star_index, samples in sorted(log.observation_quality.items()):
        fig.add_trace(go.Scatter(
            x=[t for (t, _q) in samples],
            y=[q for (_t, q) in samples],
            mode="lines+markers",
            name=star_names.get(star_index, f"star {star_index}"),
        ))

    fig.update_layout(
        title="Storm observation quality",
        xaxis_title="t (s)",
        yaxis_title="observed fraction",
        yaxis=dict(range=[0.0, 1.0]),
        margin=dict(l=40, r=10, t=40, b=40),
    )

    Path(out_html).parent.mkdir(parents=True, exist_ok=True)
    fig.write_html(out_html, auto_open=False)
    return out_html
