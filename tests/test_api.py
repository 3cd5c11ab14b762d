"""API contract tests: sessions, calendar, analytics ranges, goals, schedule."""

from datetime import datetime, timedelta

from studyflow.date_range import to_millis


def session_payload(hours_ago: float = 1, duration: int = 45, focus: float = 82, tag: str = "Math"):
    started = datetime.now() - timedelta(hours=hours_ago)
    return {
        "start_timestamp": to_millis(started),
        "duration_minutes": duration,
        "focus_score": focus,
        "tag_title": tag,
    }


def test_health(client):
    r = client.get("/api/health")
    assert r.status_code == 200
    data = r.json()
    assert data["status"] == "healthy"
    assert data["session_count"] == 0


def test_post_session_assigns_id(client):
    r = client.post("/api/sessions", json=session_payload())
    assert r.status_code == 200
    data = r.json()
    assert data["id"] == 1
    assert data["duration_minutes"] == 45


def test_post_session_rejects_invalid_duration(client):
    r = client.post("/api/sessions", json=session_payload(duration=0))
    assert r.status_code == 422


def test_list_sessions_all_time(client):
    client.post("/api/sessions", json=session_payload(hours_ago=1))
    client.post("/api/sessions", json=session_payload(hours_ago=24 * 60))

    assert len(client.get("/api/sessions", params={"range": "all_time"}).json()) == 2
    assert len(client.get("/api/sessions", params={"range": "last_n_days", "days": 7}).json()) == 1


def test_weekly_and_hourly(client):
    client.post("/api/sessions", json=session_payload())

    weekly = client.get("/api/analytics/weekly", params={"range": "last_n_days", "days": 7}).json()
    assert weekly["total_sessions"] == 1
    assert len(weekly["days"]) == 7

    hourly = client.get("/api/analytics/hourly").json()
    assert len(hourly) == 24
    assert sum(b["session_count"] for b in hourly) == 1


def test_tags_top_n(client):
    for tag in ("A", "A", "B", "C"):
        client.post("/api/sessions", json=session_payload(tag=tag))

    tags = client.get("/api/analytics/tags", params={"top_n": 1}).json()
    assert [t["tag_title"] for t in tags] == ["A", "Other"]


def test_recommendation_without_data(client):
    data = client.get("/api/analytics/recommendation").json()
    assert data["kind"] == "time_slots"
    assert data["confidence_score"] == 0


def test_snapshot(client):
    client.post("/api/sessions", json=session_payload())
    r = client.get("/api/analytics/snapshot", params={"range": "last_n_days", "days": 30})

    assert r.status_code == 200
    data = r.json()
    assert data["range_name"] == "Last 30 Days"
    assert data["session_count"] == 1
    assert len(data["goal_rings"]) == 3


def test_month_range_and_navigation(client):
    r = client.get("/api/analytics/heatmap", params={"range": "month", "year": 2025, "month": 1, "step": -1})
    assert r.status_code == 200
    assert r.json() == []


def test_invalid_ranges_return_400(client):
    bad = [
        {"range": "month", "year": 2025, "month": 13},
        {"range": "month", "year": 2025},
        {"range": "last_n_days", "days": 0},
        {"range": "custom", "start": 10, "end": 5},
        {"range": "fortnight"},
        {"range": "last_n_days", "days": 7, "step": 1},
    ]
    for params in bad:
        r = client.get("/api/analytics/weekly", params=params)
        assert r.status_code == 400, params


def test_streak(client):
    r = client.get("/api/analytics/streak", params={"year": 2024, "month": 2})
    assert r.status_code == 200
    assert len(r.json()) == 29

    assert client.get("/api/analytics/streak", params={"year": 2024, "month": 13}).status_code == 400


def test_goal_rings_and_history(client):
    client.post("/api/sessions", json=session_payload(hours_ago=0.5, tag="Physics"))

    rings = client.get("/api/goals/rings").json()
    assert [r["title"] for r in rings][1:] == ["Focus Quality", "Sessions"]
    assert "progress" in rings[0]

    history = client.get("/api/goals/history", params={"range": "last_n_days", "days": 7}).json()
    assert history[0]["day"] == datetime.now().date().isoformat()


def test_calendar_event_validation(client):
    now = to_millis(datetime.now())
    r = client.post("/api/calendar/events", json={"start_time": now, "end_time": now - 1000})
    assert r.status_code == 400

    r = client.post("/api/calendar/events", json={"start_time": now, "end_time": now + 3600_000, "title": "Lab"})
    assert r.status_code == 200
    assert r.json()["title"] == "Lab"


def test_schedule(client):
    r = client.get("/api/schedule", params={"date": "2025-06-18", "target_hours": 3})
    assert r.status_code == 200
    data = r.json()

    assert data["kind"] == "adaptive_schedule"
    assert sum(b["duration_hours"] for b in data["activity_blocks"]) == 24
    assert data["available_hours"] == 17
    assert "Target: 3h." in data["summary"]


def test_schedule_energy_advisory(client):
    r = client.get("/api/schedule", params=[("date", "2025-06-18"), ("energy", 40), ("energy", 50)])
    assert r.json()["summary"].endswith("High energy, maximize focus.")
