"""Tests for the /api/venues endpoints and feed snapshots."""

from datetime import date, timedelta

SOON = date.today() + timedelta(days=2)
LATER = date.today() + timedelta(days=30)


class TestVenues:

    def test_list(self, client):
        resp = client.get("/api/venues")
        assert resp.status_code == 200
        assert [v["id"] for v in resp.json()] == ["riverside", "parkside", "central", "westend"]

    def test_get(self, client):
        data = client.get("/api/venues/riverside").json()
        assert data["num_courts"] == 4
        assert data["timezone"] == "Europe/London"

    def test_unknown(self, client):
        assert client.get("/api/venues/nowhere").status_code == 404
        assert client.get("/api/venues/nowhere/slots", params={"date": SOON.isoformat()}).status_code == 404


class TestDaySchedule:

    def test_window_not_open(self, client):
        data = client.get("/api/venues/riverside/slots", params={"date": LATER.isoformat()}).json()
        assert len(data["slots"]) == 24
        assert {s["state"] for s in data["slots"]} == {"not_open"}

    def test_past_day(self, client):
        yesterday = date.today() - timedelta(days=2)
        data = client.get("/api/venues/riverside/slots", params={"date": yesterday.isoformat()}).json()
        assert {s["state"] for s in data["slots"]} == {"past"}

    def test_slot_states_follow_availability(self, client):
        resp = client.put(
            "/api/venues/riverside/availability",
            json={
                "date": SOON.isoformat(),
                "slots": [
                    {"time_slot": "10:00", "courts": [3, 1]},
                    {"time_slot": "10:30", "courts": []},
                ],
            },
        )
        assert resp.status_code == 200
        slots = {s["time_slot"]: s for s in resp.json()["slots"]}

        assert slots["10:00"]["state"] == "available"
        assert slots["10:00"]["free_courts"] == [1, 3]
        assert slots["10:30"]["state"] == "fully_booked"
        assert slots["11:00"]["state"] == "unknown"
        assert slots["10:00"]["price"] == 1000
        assert slots["18:00"]["price"] == 1500

    def test_availability_is_per_venue(self, client):
        client.put(
            "/api/venues/riverside/availability",
            json={"date": SOON.isoformat(), "slots": [{"time_slot": "10:00", "courts": [1]}]},
        )
        data = client.get("/api/venues/parkside/slots", params={"date": SOON.isoformat()}).json()
        slots = {s["time_slot"]: s for s in data["slots"]}
        assert slots["10:00"]["state"] == "unknown"

    def test_weather_shown_on_slot(self, client):
        resp = client.put(
            "/api/venues/riverside/weather",
            json={
                "date": SOON.isoformat(),
                "slots": [{"time_slot": "10:00", "observation": {"temperature": 4, "wind_speed": 12}}],
            },
        )
        assert resp.status_code == 200
        slots = {s["time_slot"]: s for s in resp.json()["slots"]}
        assert slots["10:00"]["weather"]["temperature"] == 4
        assert slots["10:30"]["weather"] is None

    def test_rejects_unknown_court(self, client):
        resp = client.put(
            "/api/venues/riverside/availability",
            json={"date": SOON.isoformat(), "slots": [{"time_slot": "10:00", "courts": [5]}]},
        )
        assert resp.status_code == 422

    def test_rejects_off_grid_slot(self, client):
        resp = client.put(
            "/api/venues/riverside/weather",
            json={"date": SOON.isoformat(), "slots": [{"time_slot": "21:00", "observation": {}}]},
        )
        assert resp.status_code == 422
