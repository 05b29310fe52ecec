"""
Tests for simulation engine and scenario components.
"""
import math
import pytest

from helio_watch.objects.body import CelestialBody
from helio_watch.objects.vessel import Vessel
from helio_watch.physics.orbit import OrbitalElements
from helio_watch.simulation.scenario import Scenario
from helio_watch.simulation.engine import Engine, SimulationLog


def deg(x):
    return x * math.pi / 180.0


@pytest.fixture
def sun():
    return CelestialBody(index=0, name="Sun")


@pytest.fixture
def planet(sun):
    return CelestialBody(
        index=1,
        name="Planet",
        parent=sun,
        elements=OrbitalElements(a_km=1.0e7, e=0.0, inc_rad=0.0, raan_rad=0.0, argp_rad=0.0, M0_rad=0.0),
    )


@pytest.fixture
def sample_vessel(planet):
    return Vessel(
        vessel_id="OBS-TEST",
        name="TestObserver",
        main_body=planet,
        elements=OrbitalElements(
            a_km=7000.0,
            e=0.001,
            inc_rad=deg(51.6),
            raan_rad=deg(30.0),
            argp_rad=deg(40.0),
            M0_rad=0.0,
        ),
    )


class TestCelestialBody:
    def test_parent_star(self, sun, planet):
        moon = CelestialBody(
            index=2,
            name="Moon",
            parent=planet,
            elements=OrbitalElements(a_km=12000.0, e=0.0, inc_rad=0.0, raan_rad=0.0, argp_rad=0.0, M0_rad=0.0),
        )
        assert moon.parent_star() is sun
        assert sun.parent_star() is sun
        assert sun.is_star and not moon.is_star

    def test_identity_by_index(self, sun):
        same = CelestialBody(index=0, name="Sun again")
        assert same == sun
        assert hash(same) == hash(sun)

    def test_parent_requires_orbit(self, sun):
        with pytest.raises(ValueError, match="no orbital elements"):
            CelestialBody(index=4, name="Rogue", parent=sun)

    def test_negative_index_rejected(self):
        with pytest.raises(ValueError):
            CelestialBody(index=-1, name="Nowhere")


class TestScenario:
    def test_scenario_creation(self):
        scenario = Scenario(name="Test Scenario")
        assert scenario.name == "Test Scenario"
        assert len(scenario.bodies) == 0
        assert len(scenario.vessels) == 0

    def test_add_body_and_vessel(self, sun, planet, sample_vessel):
        scenario = Scenario(name="Test")
        scenario.add_body(sun)
        scenario.add_body(planet)
        scenario.add_vessel(sample_vessel)

        assert scenario.find_vessel("OBS-TEST") is sample_vessel
        assert scenario.body_by_index(1) is planet
        assert scenario.star_list() == [sun]
        assert scenario.body_list() == [sun, planet]

    def test_duplicate_body_rejected(self, sun):
        scenario = Scenario(name="Test")
        scenario.add_body(sun)
        with pytest.raises(ValueError, match="Duplicate body index"):
            scenario.add_body(CelestialBody(index=0, name="Sun twin"))

    def test_parent_must_exist(self, planet):
        scenario = Scenario(name="Test")
        with pytest.raises(ValueError, match="must be added first"):
            scenario.add_body(planet)

    def test_vessel_main_body_must_exist(self, sample_vessel):
        scenario = Scenario(name="Test")
        with pytest.raises(ValueError):
            scenario.add_vessel(sample_vessel)

    def test_unknown_lookups(self):
        scenario = Scenario(name="Test")
        assert scenario.find_vessel("nope") is None
        assert scenario.body_by_index(42) is None

    def test_remove_vessel(self, sun, planet, sample_vessel):
        scenario = Scenario(name="Test")
        scenario.add_body(sun)
        scenario.add_body(planet)
        scenario.add_vessel(sample_vessel)
        scenario.remove_vessel("OBS-TEST")
        assert scenario.find_vessel("OBS-TEST") is None


class TestSimulationLog:
    def test_log_creation(self):
        log = SimulationLog()
        assert len(log.observation_quality) == 0
        assert len(log.observation_passes) == 0
        assert len(log.events) == 0

    def test_record_observation_quality(self):
        log = SimulationLog()
        log.record_observation_quality(0, 10.0, 0.25)
        log.record_observation_quality(0, 20.0, 0.5)

        assert log.observation_quality[0] == [(10.0, 0.25), (20.0, 0.5)]
        assert log.latest_quality(0) == 0.5

    def test_latest_quality_unknown_star(self):
        with pytest.raises(KeyError):
            SimulationLog().latest_quality(3)

    def test_record_event(self):
        log = SimulationLog()
        log.record_event("star_skipped", 10.0, star_index=5)
        assert log.events == [{"kind": "star_skipped", "t_s": 10.0, "star_index": 5}]


class TestEngine:
    def test_engine_creation(self):
        engine = Engine(dt_s=10.0)
        assert engine.dt_s == 10.0
        assert len(engine.systems) == 0

    def test_engine_validation_negative_dt(self):
        engine = Engine(dt_s=-1.0)
        scenario = Scenario(name="Test")

        with pytest.raises(ValueError, match="dt_s must be positive"):
            engine.run(scenario, t_start_s=0.0, t_end_s=100.0)

    def test_engine_validation_end_before_start(self):
        engine = Engine(dt_s=10.0)
        scenario = Scenario(name="Test")

        with pytest.raises(ValueError, match="t_end_s must be >= t_start_s"):
            engine.run(scenario, t_start_s=100.0, t_end_s=0.0)

    def test_engine_run_empty_scenario(self):
        log = Engine(dt_s=10.0).run(Scenario(name="Test"), t_start_s=0.0, t_end_s=50.0)
        assert isinstance(log, SimulationLog)

    def test_engine_reuses_given_log(self):
        log = SimulationLog()
        assert Engine(dt_s=1.0).run(Scenario(name="Test"), 0.0, 1.0, log=log) is log

    def test_engine_with_mock_system(self):
        """Test that engine calls system on_step method at each timestep."""
        from dataclasses import dataclass, field
        from typing import List

        @dataclass
        class MockSystem:
            name: str = "mock"
            call_times: List[float] = field(default_factory=list)

            def on_step(self, t_s: float, scenario, log):
                self.call_times.append(t_s)

        mock_system = MockSystem()
        engine = Engine(dt_s=10.0, systems=[mock_system])

        engine.run(Scenario(name="Test"), t_start_s=0.0, t_end_s=30.0)

        assert mock_system.call_times == [0.0, 10.0, 20.0, 30.0]

    def test_fractional_step_count_has_no_drift(self):
        seen = []

        class Recorder:
            name = "recorder"

            def on_step(self, t_s, scenario, log):
                seen.append(t_s)

        Engine(dt_s=0.1, systems=[Recorder()]).run(Scenario(name="Test"), 0.0, 1.0)
        assert len(seen) == 11
        assert seen[-1] == pytest.approx(1.0)
