"""Tests for error handling in the BlendRec API.

Tests various error scenarios including missing data, invalid actor
identities, validation failures and internal errors.
"""

import logging

import pytest
from fastapi.testclient import TestClient

from blendrec.api.main import app
from blendrec.api.routes import recommend as recommend_module

# Create test client
client = TestClient(app)


def test_data_not_found_error(api_state):
    """Test that missing data files return 503 Service Unavailable."""
    response = client.get("/recommend?user_id=1")

    assert response.status_code == 503
    data = response.json()
    assert data["error"] == "DataNotFoundError"
    assert "Data not found" in data["message"]
    assert data["details"]["data_dir"] == str(api_state)


def test_unparseable_data_returns_500(api_state):
    api_state.mkdir(parents=True)
    (api_state / "products.csv").write_text("id,name\n1,Broken\n")
    (api_state / "interactions.csv").write_text("product_id\n1\n")

    response = client.get("/recommend/trending")

    assert response.status_code == 500
    data = response.json()
    assert data["error"] == "DataLoadError"
    assert data["details"]["error_type"] == "ValueError"


@pytest.mark.parametrize(
    "query",
    ["", "?user_id=1&session_id=abc", "?session_id="],
)
def test_actor_must_be_exactly_one_identity(loaded_data, query):
    """Both or neither identity is a 400, checked before any data is read."""
    response = client.get(f"/recommend{query}")

    assert response.status_code == 400
    data = response.json()
    assert data["error"] == "InvalidActorError"
    assert "exactly one" in data["message"]


def test_invalid_actor_reported_even_without_data(api_state):
    response = client.get("/recommend?user_id=1&session_id=abc")

    assert response.status_code == 400


def test_purchase_with_both_identities(loaded_data):
    response = client.post(
        "/recommend/purchase",
        json={"product_id": 1, "user_id": 1, "session_id": "abc"},
    )

    assert response.status_code == 400


def test_invalid_user_id_type(loaded_data):
    """Test that invalid user_id type returns 422 validation error."""
    response = client.get("/recommend?user_id=not_a_number")

    assert response.status_code == 422
    assert "detail" in response.json()


@pytest.mark.parametrize("limit", ["0", "-5", "101", "invalid"])
def test_invalid_limit_parameter(loaded_data, limit):
    response = client.get(f"/recommend?user_id=1&limit={limit}")

    assert response.status_code == 422


def test_invalid_recommendation_type_filter(loaded_data):
    response = client.get("/recommend/history?user_id=1&recommendation_type=magic")

    assert response.status_code == 422


def test_generation_failure_returns_500(loaded_data, monkeypatch, caplog):
    """Store failures surface as a RecommendationError and are logged."""
    state = recommend_module.load_engine_if_needed()

    def failing_generate(actor, limit):
        raise ConnectionError("interaction store unavailable")

    monkeypatch.setattr(state["engine"], "generate_recommendations", failing_generate)

    with caplog.at_level(logging.ERROR, logger="blendrec.api.routes.recommend"):
        response = client.get("/recommend?user_id=1")

    assert response.status_code == 500
    data = response.json()
    assert data["error"] == "RecommendationError"
    assert data["details"]["actor"] == "user:1"
    assert data["details"]["error_type"] == "ConnectionError"
    assert any("user:1" in record.getMessage() for record in caplog.records)


def test_failed_generation_is_not_counted(loaded_data, monkeypatch):
    state = recommend_module.load_engine_if_needed()

    def failing_generate(actor, limit):
        raise RuntimeError("boom")

    monkeypatch.setattr(state["engine"], "generate_recommendations", failing_generate)

    client.get("/recommend?user_id=1")

    assert client.get("/metrics").json()["generation_count"] == 0


def test_multiple_errors_consistency(api_state):
    """Test that repeated errors of the same type return consistent responses."""
    responses = [client.get(f"/recommend?user_id={user_id}") for user_id in (1, 2, 3)]

    assert {r.status_code for r in responses} == {503}
    for response in responses:
        assert set(response.json()) == {"error", "message", "details"}


def test_health_check_not_affected_by_missing_data(api_state):
    """Test that /ping works even if data is missing."""
    response = client.get("/ping")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_status_endpoint_with_missing_data(api_state):
    response = client.get("/status")

    assert response.status_code == 200
    assert response.json()["data_loaded"] is False
