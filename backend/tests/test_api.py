"""End-to-end tests for the HTTP API against a temporary snapshot file."""

import pytest
from fastapi.testclient import TestClient

from main import app
from models.trial_config import TrialConfig
from services.snapshot_store import SnapshotStore
from services.trial_session import TrialSession, init_session


@pytest.fixture
def store(tmp_path):
    return SnapshotStore(tmp_path / "trial.json")


@pytest.fixture
def client(store):
    init_session(TrialSession(store, TrialConfig()))
    # Lifespan is not entered: the session above stays in place
    return TestClient(app)


def _register(client, tag="A001", group="A", weight=20.0):
    resp = client.post("/api/animals", json={
        "tag": tag, "group": group, "initial_weight": weight, "entry_date": "2025-12-24",
    })
    assert resp.status_code == 201, resp.text
    return resp.json()


# ──────────────────────────────────────────────────────────────
# Animals
# ──────────────────────────────────────────────────────────────

class TestAnimalsApi:
    def test_register_and_list(self, client, store):
        animal = _register(client, tag="a001")
        assert animal["tag"] == "A001"
        assert [a["tag"] for a in client.get("/api/animals").json()] == ["A001"]
        assert [a.tag for a in store.load().animals] == ["A001"]

    def test_duplicate_is_conflict(self, client):
        _register(client)
        resp = client.post("/api/animals", json={
            "tag": "A001", "group": "B", "initial_weight": 20.0, "entry_date": "2025-12-24",
        })
        assert resp.status_code == 409

    def test_weight_out_of_range(self, client):
        resp = client.post("/api/animals", json={
            "tag": "A001", "group": "A", "initial_weight": 150.0, "entry_date": "2025-12-24",
        })
        assert resp.status_code == 400

    def test_unknown_group_rejected_by_schema(self, client):
        resp = client.post("/api/animals", json={
            "tag": "A001", "group": "C", "initial_weight": 20.0, "entry_date": "2025-12-24",
        })
        assert resp.status_code == 422

    def test_toggle_and_filter(self, client):
        animal = _register(client)
        _register(client, tag="B001", group="B")
        resp = client.post(f"/api/animals/{animal['id']}/toggle-active")
        assert resp.json()["active"] is False
        active = client.get("/api/animals", params={"active": True}).json()
        assert [a["tag"] for a in active] == ["B001"]

    def test_delete_cascades(self, client):
        animal = _register(client)
        client.post("/api/weighings", json={"tag": "A001", "date": "2026-01-07", "weight": 24.0})
        assert client.delete(f"/api/animals/{animal['id']}").status_code == 200
        assert client.get("/api/weighings").json() == []

    def test_missing_animal(self, client):
        assert client.put("/api/animals/nope", json={
            "tag": "A001", "group": "A", "initial_weight": 20.0, "entry_date": "2025-12-24",
        }).status_code == 404


# ──────────────────────────────────────────────────────────────
# Weighings, feed, incidents
# ──────────────────────────────────────────────────────────────

class TestWeighingsApi:
    def test_week_assigned(self, client):
        _register(client)
        resp = client.post("/api/weighings", json={"tag": "A001", "date": "2026-01-07", "weight": 24.0})
        assert resp.status_code == 201
        body = resp.json()
        assert body["weighing"]["week"] == 2
        assert body["abnormal_loss"] is False

    def test_abnormal_loss_needs_confirmation(self, client):
        _register(client)
        client.post("/api/weighings", json={"tag": "A001", "date": "2026-01-07", "weight": 30.0})
        payload = {"tag": "A001", "date": "2026-01-14", "weight": 26.0}

        resp = client.post("/api/weighings", json=payload)
        assert resp.status_code == 409
        assert resp.json()["detail"]["loss_pct"] == pytest.approx(13.3)
        assert len(client.get("/api/weighings").json()) == 1

        resp = client.post("/api/weighings", params={"confirm": True}, json=payload)
        assert resp.status_code == 201
        assert resp.json()["abnormal_loss"] is True
        assert len(client.get("/api/weighings").json()) == 2

    def test_unknown_tag(self, client):
        resp = client.post("/api/weighings", json={"tag": "X1", "date": "2026-01-07", "weight": 24.0})
        assert resp.status_code == 400


class TestFeedApi:
    def test_upsert(self, client):
        body = {"group": "A", "date": "2026-01-05", "feed_offered": 5.0, "feed_refused": 0.8}
        assert client.post("/api/feed", json=body).json()["replaced"] is False
        body["feed_offered"] = 6.0
        assert client.post("/api/feed", json=body).json()["replaced"] is True
        records = client.get("/api/feed").json()
        assert len(records) == 1
        assert records[0]["feed_offered"] == 6.0

    def test_refused_above_offered(self, client):
        resp = client.post("/api/feed", json={
            "group": "A", "date": "2026-01-05", "feed_offered": 1.0, "feed_refused": 2.0,
        })
        assert resp.status_code == 400

    def test_delete_missing(self, client):
        assert client.delete("/api/feed/nope").status_code == 404


class TestIncidentsApi:
    def test_death_deactivates(self, client):
        _register(client)
        resp = client.post("/api/incidents", json={
            "tag": "A001", "date": "2026-01-09", "kind": "death", "description": "bloat",
        })
        assert resp.status_code == 201
        assert len(resp.json()["patches"]) == 1
        animal = client.get("/api/animals").json()[0]
        assert animal["active"] is False
        assert animal["exit_reason"] == "Death: bloat"

    def test_group_treatment(self, client):
        _register(client)
        _register(client, tag="A002")
        resp = client.post("/api/incidents", json={
            "scope": "group", "group": "A", "date": "2026-01-05", "kind": "treatment",
            "medication": {"name": "Ivermectin", "duration_days": 3},
        })
        assert len(resp.json()["incidents"]) == 2
        day = client.get("/api/calendar/day/2026-01-06").json()
        assert {t["tag"] for t in day["active_treatments"]} == {"A001", "A002"}

    def test_treatment_without_medication(self, client):
        _register(client)
        resp = client.post("/api/incidents", json={"tag": "A001", "date": "2026-01-05", "kind": "treatment"})
        assert resp.status_code == 400


# ──────────────────────────────────────────────────────────────
# Reports and calendar
# ──────────────────────────────────────────────────────────────

class TestReportsApi:
    @pytest.fixture
    def seeded(self, client):
        _register(client, "A001", "A", 20.0)
        _register(client, "B001", "B", 21.0)
        client.post("/api/weighings", json={"tag": "A001", "date": "2026-01-21", "weight": 30.0})
        client.post("/api/weighings", json={"tag": "B001", "date": "2026-01-21", "weight": 26.0})
        client.post("/api/feed", json={"group": "A", "date": "2026-01-05", "feed_offered": 5.0})
        client.post("/api/feed", json={"group": "B", "date": "2026-01-05", "feed_offered": 4.0})
        return client

    def test_overview(self, seeded):
        ov = seeded.get("/api/reports/overview").json()
        assert ov["total_animals"] == 2
        assert ov["total_weighings"] == 2

    def test_growth(self, seeded):
        rows = seeded.get("/api/reports/growth", params={"as_of": "2026-01-23"}).json()
        a001 = [r for r in rows if r["tag"] == "A001"][0]
        assert a001["adg"] == 333
        assert a001["days"] == 30

    def test_group_summary(self, seeded):
        s = seeded.get("/api/reports/groups/a", params={"as_of": "2026-01-23"}).json()
        assert s["available"] is True
        assert s["count"] == 1
        assert s["total_net_feed"] == pytest.approx(5.0)

    def test_unknown_group(self, seeded):
        assert seeded.get("/api/reports/groups/Z").status_code == 404

    def test_conversion(self, seeded):
        rows = {r["group"]: r for r in seeded.get("/api/reports/conversion").json()}
        assert rows["A"]["conversion_index"] == pytest.approx(0.5)
        assert rows["B"]["conversion_index"] == pytest.approx(0.8)

    def test_weighing_log_paged(self, seeded):
        body = seeded.get("/api/reports/weighings", params={"page_size": 1}).json()
        assert body["total_rows"] == 2
        assert body["total_pages"] == 2
        assert len(body["rows"]) == 1

    def test_weighing_log_week_filter(self, seeded):
        body = seeded.get("/api/reports/weighings", params={"week": 4}).json()
        assert body["total_rows"] == 2
        assert seeded.get("/api/reports/weighings", params={"week": 1}).json()["total_rows"] == 0

    def test_calendar(self, seeded):
        assert seeded.get("/api/calendar/week/2026-01-07").json()["week"] == 2
        assert seeded.get("/api/calendar/week/2025-12-20").json()["week"] is None
        assert len(seeded.get("/api/calendar/month/2026/1").json()) == 31
        assert seeded.get("/api/calendar/month/2026/13").status_code == 400
