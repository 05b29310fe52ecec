import logging
import math
from pathlib import Path

from helio_watch.host import RecordingApi
from helio_watch.objects.body import CelestialBody
from helio_watch.objects.equipment import EquipmentState
from helio_watch.objects.vessel import Vessel
from helio_watch.physics.observation import observed_patches, observer_direction
from helio_watch.physics.orbit import OrbitalElements
from helio_watch.physics.surface import SurfacePatchSet
from helio_watch.session import ObservationSession
from helio_watch.simulation.engine import Engine
from helio_watch.simulation.scenario import Scenario
from helio_watch.state.radiation_fields import RadiationFieldType
from helio_watch.visualization.plotly_viewer import render_quality_history, render_surface_observation


def deg(x): return x * math.pi / 180.0


logging.basicConfig(level=logging.DEBUG, format="[%(levelname)s] %(name)s: %(message)s")

scenario = Scenario(name="Sun observation demo")
sun = scenario.add_body(CelestialBody(index=0, name="Sun", mu_km3_s2=1.1723328e9, radius_km=261600.0))
home = scenario.add_body(CelestialBody(
    index=1,
    name="Kerbin",
    parent=sun,
    elements=OrbitalElements(a_km=13599840.0, e=0.0, inc_rad=0.0, raan_rad=0.0, argp_rad=0.0, M0_rad=deg(180.0)),
    mu_km3_s2=3531.6,
    radius_km=600.0,
))

# Three solar observatories in heliocentric orbits, spread in phase
for i, phase in enumerate([0.0, 120.0, 240.0]):
    scenario.add_vessel(Vessel(
        vessel_id=f"OBS-00{i + 1}",
        name=f"Helios {i + 1}",
        main_body=sun,
        elements=OrbitalElements(a_km=9.0e6, e=0.01, inc_rad=deg(5.0 * i), raan_rad=0.0, argp_rad=0.0, M0_rad=deg(phase)),
    ))

config_path = Path(__file__).resolve().parents[3] / "configs" / "default.yaml"
api = RecordingApi(bodies_with_inner={1}, bodies_with_outer={1}, bodies_with_pause={1})
session = ObservationSession.from_config_file(config_path, api, scenario)

session.equipment.update("OBS-001", "SolarObservatory", EquipmentState.NOMINAL)
session.equipment.update("OBS-002", "SolarObservatory", EquipmentState.NOMINAL)
session.equipment.update("OBS-003", "SolarObservatory", EquipmentState.FAILURE)

engine = Engine(dt_s=1.0, systems=session.systems())
log = engine.run(scenario, t_start_s=0.0, t_end_s=120.0, log=session.log)

session.set_field_visible(home, RadiationFieldType.INNER_BELT)
print("Messages:", api.messages)
print("Latest quality:", log.latest_quality(sun.index))

saved = session.save_json("out/helio_watch_save.json")
print("Saved:", saved)

if session.config is not None:
    evaluator = session.evaluators.get()
    patches = SurfacePatchSet.shared(session.config.surface_patch_count)
    sun_pos = evaluator.body_position(sun, 120.0)
    observers = [evaluator.vessel_position(scenario.vessels[v], 120.0) for v in ("OBS-001", "OBS-002")]
    seen = observed_patches(sun_pos, observers, session.config.min_sun_observation_angle_rad, patches)
    path = render_surface_observation(
        sun.name,
        patches,
        seen,
        [observer_direction(sun_pos, o) for o in observers],
        out_html="out/surface_observation.html",
    )
    print("Wrote:", path)

print("Wrote:", render_quality_history(log, {sun.index: sun.name}, out_html="out/observation_quality.html"))
