"""
Tests for the per-body radiation field status store.
"""
import json
import pytest

from helio_watch.host import RecordingApi
from helio_watch.objects.body import CelestialBody
from helio_watch.physics.orbit import OrbitalElements
from helio_watch.state.radiation_fields import (
    FieldResearched,
    GlobalRadiationFieldStatus,
    RadiationFieldStatusStore,
    RadiationFieldType,
)

INNER = RadiationFieldType.INNER_BELT
OUTER = RadiationFieldType.OUTER_BELT
PAUSE = RadiationFieldType.MAGNETOPAUSE


@pytest.fixture
def events():
    return []


@pytest.fixture
def store(events):
    s = RadiationFieldStatusStore()
    s.subscribe(events.append)
    return s


@pytest.fixture
def bodies():
    sun = CelestialBody(index=0, name="Sun")
    home = CelestialBody(
        index=3,
        name="Kerbin",
        parent=sun,
        elements=OrbitalElements(a_km=1.0e7, e=0.0, inc_rad=0.0, raan_rad=0.0, argp_rad=0.0, M0_rad=0.0),
    )
    return {0: sun, 3: home}


class TestGlobalRadiationFieldStatus:
    def test_defaults(self):
        status = GlobalRadiationFieldStatus(4)
        assert status.index == 4
        assert not status.inner_visible and not status.outer_visible and not status.pause_visible
        assert status.inner_crossings == status.outer_crossings == status.magneto_crossings == 0

    def test_index_immutable(self):
        status = GlobalRadiationFieldStatus(4)
        with pytest.raises(AttributeError):
            status.index = 5

    def test_crossings_never_decrease(self):
        status = GlobalRadiationFieldStatus(4, inner_crossings=3)
        status.inner_crossings = 4
        with pytest.raises(AttributeError):
            status.inner_crossings = 0
        assert status.inner_crossings == 4

    def test_revealed_field_cannot_be_hidden_directly(self):
        status = GlobalRadiationFieldStatus(4)
        status.outer_visible = True
        with pytest.raises(AttributeError):
            status.outer_visible = False
        assert status.outer_visible is True

    def test_store_status_guarded(self, store):
        store.record_crossing(3, INNER)
        store.set_visible(3, OUTER)
        status = store.get_or_create(3)
        with pytest.raises(AttributeError):
            status.inner_crossings = 0
        with pytest.raises(AttributeError):
            status.outer_visible = False
        assert (status.inner_crossings, status.outer_visible) == (1, True)

    def test_from_node_defaults_missing_fields(self):
        status = GlobalRadiationFieldStatus.from_node({"index": 2, "outer_visible": True})
        assert status == GlobalRadiationFieldStatus(2, outer_visible=True)

    def test_from_node_ignores_unknown_fields(self):
        status = GlobalRadiationFieldStatus.from_node({"index": 2, "future_field": [1, 2, 3]})
        assert status == GlobalRadiationFieldStatus(2)

    def test_from_node_defaults_malformed_fields(self):
        node = {
            "index": 2,
            "inner_visible": "maybe",
            "outer_visible": True,
            "inner_crossings": "lots",
            "outer_crossings": -3,
            "magneto_crossings": 4,
        }
        status = GlobalRadiationFieldStatus.from_node(node)
        assert status == GlobalRadiationFieldStatus(2, outer_visible=True, magneto_crossings=4)

    def test_from_node_accepts_text_values(self):
        node = {"index": "6", "pause_visible": "True", "inner_crossings": "12"}
        status = GlobalRadiationFieldStatus.from_node(node)
        assert status == GlobalRadiationFieldStatus(6, pause_visible=True, inner_crossings=12)

    def test_from_node_without_index(self):
        assert GlobalRadiationFieldStatus.from_node({"inner_visible": True}).index == -1


class TestStoreAccess:
    def test_get_or_create_creates_defaults(self, store):
        status = store.get_or_create(7)
        assert status == GlobalRadiationFieldStatus(7)
        assert 7 in store
        assert len(store) == 1

    def test_get_or_create_memoized(self, store):
        assert store.get_or_create(7) is store.get_or_create(7)

    def test_get_unknown_is_none(self, store):
        assert store.get(9) is None
        assert 9 not in store

    def test_record_crossing_increments(self, store):
        assert store.record_crossing(1, OUTER) == 1
        assert store.record_crossing(1, OUTER) == 2
        assert store.record_crossing(1, PAUSE) == 1
        status = store.get(1)
        assert status.outer_crossings == 2
        assert status.magneto_crossings == 1
        assert status.inner_crossings == 0


class TestVisibilityTransitions:
    def test_first_reveal_notifies_once(self, store, events):
        assert store.set_visible(3, INNER, True) is True
        assert store.get(3).inner_visible is True
        assert events == [FieldResearched(3, INNER)]

    def test_repeated_reveal_is_silent(self, store, events):
        store.set_visible(3, INNER, True)
        assert store.set_visible(3, INNER, True) is False
        assert len(events) == 1

    def test_hide_on_hidden_field_is_noop(self, store, events):
        assert store.set_visible(3, OUTER, False) is False
        assert store.get(3).outer_visible is False
        assert events == []

    def test_hide_revealed_field_refused(self, store, events):
        store.set_visible(3, PAUSE, True)
        assert store.set_visible(3, PAUSE, False) is False
        assert store.get(3).pause_visible is True
        assert len(events) == 1

    def test_each_field_notifies_separately(self, store, events):
        for field in RadiationFieldType:
            store.set_visible(5, field)
        assert [e.field_type for e in events] == [INNER, OUTER, PAUSE]

    def test_load_is_silent(self, store, events):
        store.load({"BodyData": [{"index": 3, "inner_visible": True, "pause_visible": True}]})
        assert store.get(3).inner_visible is True
        assert events == []

    def test_unsubscribe(self, store, events):
        store.unsubscribe(events.append)
        store.set_visible(3, INNER)
        assert events == []

    def test_failing_listener_does_not_starve_others(self, caplog):
        store = RadiationFieldStatusStore()
        received = []

        def broken(event):
            raise RuntimeError("ui down")

        store.subscribe(broken)
        store.subscribe(received.append)

        assert store.set_visible(3, INNER) is True
        assert received == [FieldResearched(3, INNER)]
        assert "ui down" in caplog.text
        assert store.set_visible(3, INNER) is False
        assert len(received) == 1

    def test_failing_message_still_notifies(self, bodies, events):
        class MutedApi(RecordingApi):
            def message(self, text):
                raise RuntimeError("no screen")

        store = RadiationFieldStatusStore(MutedApi(), bodies.get)
        store.subscribe(events.append)

        store.set_visible(3, PAUSE)

        assert events == [FieldResearched(3, PAUSE, "Kerbin")]
        assert store.api.belt_visibility == {(3, "pause"): True}

    def test_reveal_reports_to_host(self, bodies):
        api = RecordingApi()
        store = RadiationFieldStatusStore(api, bodies.get)
        received = []
        store.subscribe(received.append)

        store.set_visible(3, OUTER)

        assert api.belt_visibility == {(3, "outer"): True}
        assert len(api.messages) == 1
        assert api.messages[0].startswith("Kerbin: outer belt researched")
        assert received == [FieldResearched(3, OUTER, "Kerbin")]


class TestPersistence:
    def test_save_layout(self, store):
        store.set_visible(3, INNER)
        store.record_crossing(3, OUTER)
        assert store.save() == {
            "BodyData": [{
                "index": 3,
                "inner_visible": True,
                "outer_visible": False,
                "pause_visible": False,
                "inner_crossings": 0,
                "outer_crossings": 1,
                "magneto_crossings": 0,
            }]
        }

    def test_save_includes_every_body_sorted(self, store):
        for index in [9, 2, 5]:
            store.get_or_create(index)
        assert [node["index"] for node in store.save()["BodyData"]] == [2, 5, 9]

    def test_round_trip(self, store):
        store.set_visible(1, OUTER)
        store.set_visible(4, PAUSE)
        store.record_crossing(4, INNER)
        store.record_crossing(4, INNER)
        store.get_or_create(8)

        fresh = RadiationFieldStatusStore()
        fresh.load(store.save())

        assert fresh.indices() == store.indices()
        for index in store.indices():
            assert fresh.get(index) == store.get(index)

    def test_load_replaces_everything(self, store):
        store.set_visible(1, INNER)
        store.load({"BodyData": [{"index": 2}]})
        assert store.indices() == [2]
        assert store.get(2).inner_visible is False

    def test_load_drops_nodes_without_index(self, store):
        store.load({"BodyData": [{"inner_visible": True}, {"index": -4}, "junk", {"index": 1}]})
        assert store.indices() == [1]

    def test_load_non_mapping_gives_empty_store(self, store):
        store.get_or_create(1)
        store.load(["not", "a", "tree"])
        assert len(store) == 0

    def test_load_none_gives_empty_store(self, store):
        store.get_or_create(1)
        store.load(None)
        assert len(store) == 0

    def test_json_round_trip(self, store, tmp_path):
        store.set_visible(3, INNER)
        store.record_crossing(3, PAUSE)
        path = store.save_json(tmp_path / "state" / "radiation.json")

        with open(path, "r", encoding="utf-8") as f:
            assert json.load(f) == store.save()

        fresh = RadiationFieldStatusStore()
        fresh.load_json(path)
        assert fresh.get(3) == store.get(3)

    def test_corrupt_json_gives_empty_store(self, store, tmp_path):
        path = tmp_path / "radiation.json"
        path.write_text("{ not json", encoding="utf-8")
        store.get_or_create(1)
        store.load_json(path)
        assert len(store) == 0

    def test_missing_json_gives_empty_store(self, store, tmp_path):
        store.load_json(tmp_path / "absent.json")
        assert len(store) == 0


class TestEndToEnd:
    def test_reveal_save_and_reload(self, store, events):
        assert store.get_or_create(3) == GlobalRadiationFieldStatus(3)

        store.set_visible(3, INNER, True)
        assert store.get(3).inner_visible is True
        assert events == [FieldResearched(3, INNER)]

        store.set_visible(3, INNER, True)
        assert len(events) == 1

        fresh_events = []
        fresh = RadiationFieldStatusStore()
        fresh.subscribe(fresh_events.append)
        fresh.load(store.save())

        assert fresh.get(3) == store.get(3)
        assert fresh_events == []


class TestFieldVisibilityInit:
    def test_hidden_fields_stay_hidden(self, bodies):
        api = RecordingApi(bodies_with_inner={3})
        store = RadiationFieldStatusStore(api, bodies.get)
        store.load({"BodyData": [{"index": 3, "outer_visible": True}]})

        store.initialize_field_visibility(bodies.values(), sandbox=False, hide_radiation_belts=True)

        assert api.belt_visibility[(3, "inner")] is False
        assert api.belt_visibility[(3, "outer")] is True
        assert api.belt_visibility[(0, "pause")] is False
        assert store.get(3).has_inner is True
        assert store.get(3).has_outer is False
        assert api.messages == []

    def test_sandbox_reveals_everything(self, bodies):
        api = RecordingApi()
        store = RadiationFieldStatusStore(api, bodies.get)
        events = []
        store.subscribe(events.append)

        store.initialize_field_visibility(bodies.values(), sandbox=True)

        assert all(api.belt_visibility.values())
        assert len(api.belt_visibility) == 6
        assert events == []
        assert store.get(3).inner_visible is False

    def test_belts_not_hidden_by_config(self, bodies):
        api = RecordingApi()
        store = RadiationFieldStatusStore(api, bodies.get)
        store.initialize_field_visibility(bodies.values(), hide_radiation_belts=False)
        assert all(api.belt_visibility.values())
