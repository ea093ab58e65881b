"""Tests for the FastAPI application endpoints.

This module contains integration tests for the BlendRec API endpoints,
including health checks, recommendation generation and feedback.
"""

from fastapi.testclient import TestClient

from blendrec.api.main import app
from blendrec.api.routes import recommend as recommend_module
from blendrec.config import get_settings
from blendrec.recommender.models import Recommendation, RecommendationType

# Create test client
client = TestClient(app)


def test_ping_endpoint():
    """Test that the /ping endpoint returns correct status and JSON."""
    response = client.get("/ping")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_status_before_data_is_loaded(api_state):
    """Status never triggers a data load."""
    response = client.get("/status")

    assert response.status_code == 200
    data = response.json()
    assert data["data_loaded"] is False
    assert data["timestamp_last_loaded"] is None
    assert data["num_products"] == 0


def test_recommend_for_user(loaded_data):
    """Alice gets content, collaborative and trending results blended."""
    response = client.get("/recommend?user_id=1&limit=10")

    assert response.status_code == 200
    data = response.json()
    assert data["user_id"] == 1
    assert data["session_id"] is None

    items = data["recommendations"]
    assert [item["product_id"] for item in items] == [3, 4, 5, 7, 1, 2]
    assert items[1]["recommendation_type"] == "collaborative"
    assert items[1]["reasoning"] == ["Similar users also liked this product"]
    scores = [item["score"] for item in items]
    assert scores == sorted(scores, reverse=True)


def test_recommend_for_session(loaded_data):
    response = client.get("/recommend?session_id=sess-guest&limit=3")

    assert response.status_code == 200
    data = response.json()
    assert data["session_id"] == "sess-guest"
    assert data["user_id"] is None
    assert len(data["recommendations"]) <= 3
    assert 5 not in {item["product_id"] for item in data["recommendations"]
                     if item["recommendation_type"] != "trending"}


def test_unknown_actor_gets_trending(loaded_data):
    response = client.get("/recommend?user_id=404&limit=10")

    assert response.status_code == 200
    items = response.json()["recommendations"]
    assert [item["product_id"] for item in items] == [1, 2, 5, 4]
    assert {item["recommendation_type"] for item in items} == {"trending"}


def test_status_after_load(loaded_data):
    client.get("/recommend?user_id=1&limit=3")

    data = client.get("/status").json()

    assert data["data_loaded"] is True
    assert isinstance(data["timestamp_last_loaded"], str)
    assert data["num_products"] == 7
    assert data["num_interactions"] == 7
    assert data["num_recommendations"] == 3


def test_trending_endpoint(loaded_data):
    response = client.get("/recommend/trending?limit=2")

    assert response.status_code == 200
    items = response.json()["recommendations"]
    assert [item["product_id"] for item in items] == [1, 2]
    assert items[0]["score"] == 0.02


def test_similar_endpoint(loaded_data):
    response = client.get("/recommend/similar/1")

    assert response.status_code == 200
    data = response.json()
    assert data["product_id"] == 1
    assert [item["product_id"] for item in data["similar"]] == [2, 3]
    assert data["similar"][0]["recommendation_type"] == "similar"


def test_similar_for_unknown_product_is_empty(loaded_data):
    response = client.get("/recommend/similar/9999")

    assert response.status_code == 200
    assert response.json()["similar"] == []


def test_history_lists_stored_batch(loaded_data):
    client.get("/recommend?user_id=1&limit=10")

    response = client.get("/recommend/history?user_id=1&min_score=0.05")

    assert response.status_code == 200
    rows = response.json()["recommendations"]
    assert [row["product_id"] for row in rows] == [3, 4]
    assert all(row["was_clicked"] is False for row in rows)

    collaborative = client.get(
        "/recommend/history?user_id=1&recommendation_type=collaborative"
    ).json()["recommendations"]
    assert [row["product_id"] for row in collaborative] == [4]


def test_click_and_purchase_feedback(loaded_data):
    client.get("/recommend?user_id=1&limit=10")
    rows = client.get("/recommend/history?user_id=1").json()["recommendations"]
    target = next(row for row in rows if row["product_id"] == 4)

    click = client.post(f"/recommend/{target['id']}/click")
    assert click.status_code == 200
    assert click.json() == {"recommendation_id": target["id"], "updated": True}

    purchase = client.post("/recommend/purchase", json={"product_id": 4, "user_id": 1})
    assert purchase.status_code == 200
    assert purchase.json() == {"product_id": 4, "rows_updated": 1}

    rows = client.get("/recommend/history?user_id=1").json()["recommendations"]
    updated = next(row for row in rows if row["id"] == target["id"])
    assert updated["was_clicked"] is True
    assert updated["was_purchased"] is True


def test_click_on_unknown_recommendation(loaded_data):
    response = client.post("/recommend/424242/click")

    assert response.status_code == 200
    assert response.json() == {"recommendation_id": 424242, "updated": False}


def test_purchase_without_recommendation(loaded_data):
    response = client.post(
        "/recommend/purchase", json={"product_id": 7, "session_id": "nobody"}
    )

    assert response.status_code == 200
    assert response.json()["rows_updated"] == 0


def test_metrics_track_generation_and_feedback(loaded_data):
    client.get("/recommend?user_id=1&limit=5")
    client.get("/recommend?user_id=2&limit=5")
    client.post("/recommend/1/click")
    client.post("/recommend/999/click")

    data = client.get("/metrics").json()

    assert data["generation_count"] == 2
    assert data["recommendations_served"] > 0
    assert data["average_latency_ms"] >= 0
    assert data["clicks_recorded"] == 2
    assert data["clicks_matched"] == 1


def test_reload_data(loaded_data):
    client.get("/recommend?user_id=1&limit=3")

    response = client.post("/recommend/reload-data")

    assert response.status_code == 200
    assert response.json() == {"status": "Data reloaded successfully"}
    assert client.get("/status").json()["num_recommendations"] == 0


def test_history_high_score_filter(loaded_data, alice, now):
    client.get("/recommend?user_id=1&limit=10")
    state = recommend_module.load_engine_if_needed()
    state["recommendations"].insert_many([
        Recommendation(actor=alice, product_id=5, score=0.9, created_at=now,
                       recommendation_type=RecommendationType.AI_GENERATED),
    ])

    rows = client.get("/recommend/history?user_id=1&high_score_only=true").json()["recommendations"]

    assert [(row["product_id"], row["score"]) for row in rows] == [(5, 0.9)]


def test_responses_carry_request_id():
    response = client.get("/ping")

    assert len(response.headers["X-Request-ID"]) == 36


def test_data_dir_setting_read_at_load_time(loaded_data, monkeypatch):
    monkeypatch.setattr(recommend_module, "DEFAULT_DATA_DIR", None)
    monkeypatch.setenv("BLENDREC_DATA_DIR", str(loaded_data))
    get_settings.cache_clear()
    try:
        response = client.get("/recommend/trending?limit=2")
    finally:
        get_settings.cache_clear()

    assert response.status_code == 200
    assert [item["product_id"] for item in response.json()["recommendations"]] == [1, 2]
