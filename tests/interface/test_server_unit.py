from concurrent.futures import ThreadPoolExecutor

import pytest
from fastapi.testclient import TestClient

from mnemo.consts import VERSION
from mnemo.server import app, get_engine


@pytest.fixture
def client(engine):
    app.dependency_overrides[get_engine] = lambda: engine
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health_check(client):
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["version"] == VERSION


def test_get_version(client):
    response = client.get("/version")
    assert response.status_code == 200
    assert response.json() == {"version": VERSION}


def test_create_and_get_card(client):
    response = client.post("/cards", json={"id": "q1", "question": "2 + 2?", "type": "math"})
    assert response.status_code == 200
    assert response.json()["state"] == "new"

    response = client.get("/cards/q1")
    assert response.status_code == 200
    data = response.json()
    assert data["questionText"] == "2 + 2?"
    assert data["questionType"] == "math"
    assert data["easeFactor"] == 2.5


def test_create_is_idempotent(client):
    client.post("/cards", json={"id": "q1", "question": "first"})
    response = client.post("/cards", json={"id": "q1", "question": "second"})
    assert response.json()["questionText"] == "first"


def test_unknown_card_is_404(client):
    response = client.get("/cards/ghost")
    assert response.status_code == 404
    assert "ghost" in response.json()["detail"]


def test_delete_card(client):
    client.post("/cards", json={"id": "q1"})
    assert client.delete("/cards/q1").json() == {"removed": "q1"}
    assert client.get("/cards/q1").status_code == 404


def test_review(client):
    client.post("/cards", json={"id": "q1"})

    response = client.post("/cards/q1/review", json={"quality": 4})

    assert response.status_code == 200
    data = response.json()
    assert data["state"] == "learning"
    assert data["interval"] == 1
    assert data["nextReviewDate"] == "2024-01-02T12:00:00Z"


@pytest.mark.parametrize("quality", [6, -1, 3.5, "good", None])
def test_review_invalid_quality(client, engine, quality):
    client.post("/cards", json={"id": "q1"})

    response = client.post("/cards/q1/review", json={"quality": quality})

    assert response.status_code == 422
    assert engine.get_card("q1").review_history == []


def test_review_unknown_card(client):
    response = client.post("/cards/ghost/review", json={"quality": 4})
    assert response.status_code == 404


def test_retention_and_curve(client):
    client.post("/cards", json={"id": "q1"})
    client.post("/cards/q1/review", json={"quality": 4})

    response = client.get("/cards/q1/retention", params={"hours": 24})
    assert response.status_code == 200
    assert response.json()["retention"] == pytest.approx(0.367879, abs=1e-6)

    response = client.get("/cards/q1/curve", params={"days": 2})
    points = response.json()
    assert len(points) == 51
    assert points[0]["retention"] == pytest.approx(1.0)


def test_due_and_limit(client):
    for item in ("b", "a", "c"):
        client.post("/cards", json={"id": item})

    assert [c["id"] for c in client.get("/due").json()] == ["a", "b", "c"]
    assert [c["id"] for c in client.get("/due", params={"limit": 1}).json()] == ["a"]
    assert client.get("/due", params={"limit": 0}).status_code == 422


def test_upcoming(client):
    client.post("/cards", json={"id": "q1"})
    client.post("/cards/q1/review", json={"quality": 5})

    response = client.get("/upcoming", params={"days": 2})

    assert response.json() == {"2024-01-02": ["q1"]}


def test_stats(client):
    client.post("/cards", json={"id": "a"})
    client.post("/cards", json={"id": "b"})
    client.post("/cards/b/review", json={"quality": 1})

    data = client.get("/stats").json()

    assert data["total_cards"] == 2
    assert data["total_reviews"] == 1
    assert data["recent_accuracy"] == 0.0
    assert data["cards_by_state"] == {"new": 1, "learning": 1, "review": 0, "relearning": 0}


def test_export_then_import(client, engine):
    client.post("/cards", json={"id": "a"})
    exported = client.get("/export").json()
    assert exported["version"] == 1
    assert list(exported["cards"]) == ["a"]

    engine.reset()
    response = client.post("/import", json=exported)

    assert response.json() == {"imported": 1}
    assert "a" in engine.store


def test_import_malformed_is_400(client, engine):
    client.post("/cards", json={"id": "keep"})

    response = client.post("/import", json={"version": 1, "cards": {"x": {}}})

    assert response.status_code == 400
    assert "keep" in engine.store


def test_activity(client):
    client.post("/cards", json={"id": "a"})
    client.post("/cards/a/review", json={"quality": 5})

    data = client.get("/activity", params={"days": 2}).json()

    assert data["heatmap"] == [
        {"day": "2023-12-31", "count": 0},
        {"day": "2024-01-01", "count": 1},
    ]
    assert data["success_rate"][-1] == {"day": "2024-01-01", "total": 1, "passed": 1, "rate": 1.0}
    assert client.get("/activity", params={"days": 0}).status_code == 422


def test_concurrent_reviews_are_all_recorded(client, engine):
    client.post("/cards", json={"id": "q1"})

    def review(_):
        return client.post("/cards/q1/review", json={"quality": 2}).status_code

    with ThreadPoolExecutor(max_workers=16) as pool:
        statuses = list(pool.map(review, range(200)))

    assert statuses == [200] * 200
    card = engine.get_card("q1")
    assert len(card.review_history) == 200
    assert card.lapses == 200
