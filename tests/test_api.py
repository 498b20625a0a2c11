import logging

import pytest
from fastapi.testclient import TestClient

from conftest import FakeInteractionRepo, FakeProductRepo, FakeTelemetryRepo
from reco_engine.api.deps import get_engine, interaction_repo as interaction_repo_dep, telemetry_repo as telemetry_repo_dep
from reco_engine.domain.services.engine_svc import RecommendationEngine
from reco_engine.main import app


@pytest.fixture
def fakes(catalog, events, counters):
    return FakeProductRepo(catalog), FakeInteractionRepo(events, counters), FakeTelemetryRepo()


@pytest.fixture
def client(fakes, settings):
    products, interactions, telemetry = fakes
    # telemetry left out of the engine: background writes would outlive the request loop
    app.dependency_overrides[get_engine] = lambda: RecommendationEngine(products, interactions, settings=settings)
    app.dependency_overrides[interaction_repo_dep] = lambda: interactions
    app.dependency_overrides[telemetry_repo_dep] = lambda: telemetry
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_post_with_camel_case_context(client):
    resp = client.post("/api/recommendations", json={"context": {"userId": "u1", "currentProductId": "fert-1"}})
    assert resp.status_code == 200
    body = resp.json()
    assert [r["product_id"] for r in body["recommendations"]][:2] == ["seed-2", "fert-2"]
    assert [p["product_id"] for p in body["products"]] == [r["product_id"] for r in body["recommendations"]]
    assert body["metadata"]["algorithm"] == "hybrid_content_collaborative_trending_personalized"


def test_post_requires_context(client):
    assert client.post("/api/recommendations", json={}).status_code == 422


def test_get_with_query_filters(client):
    resp = client.get("/api/recommendations", params={"category": "seeds", "limit": 5})
    assert resp.status_code == 200
    body = resp.json()
    assert body["metadata"]["total_analyzed"] == 2
    assert [r["product_id"] for r in body["recommendations"]] == ["seed-2"]


def test_get_rejects_inverted_price_range(client):
    resp = client.get("/api/recommendations", params={"min_price": 10, "max_price": 5})
    assert resp.status_code == 422


def test_product_page_recommendations(client):
    resp = client.get("/api/products/fert-1/recommendations", params={"limit": 3})
    assert resp.status_code == 200
    recs = resp.json()["recommendations"]
    assert len(recs) == 3
    assert all(r["product_id"] != "fert-1" for r in recs)


def test_track_interaction_then_history(client, fakes):
    _, interactions, telemetry = fakes
    resp = client.post(
        "/api/interactions",
        json={"user_id": "u7", "product_id": "seed-2", "interaction_type": "purchase", "rating": 5},
    )
    assert resp.status_code == 201
    assert resp.json()["success"] is True
    assert interactions.events[-1].user_id == "u7"
    assert interactions.events[-1].event_type == "purchase"

    history = client.get("/api/users/u7/history").json()
    assert [e["product_id"] for e in history["interaction_history"]] == ["seed-2"]
    assert history["recommendation_history"] == []


def test_track_interaction_rejects_unknown_kind(client):
    resp = client.post(
        "/api/interactions",
        json={"user_id": "u7", "product_id": "seed-2", "interaction_type": "wishlist"},
    )
    assert resp.status_code == 422


def test_get_with_only_a_lower_price_bound(client):
    resp = client.get("/api/recommendations", params={"min_price": 1000})
    assert resp.status_code == 200
    assert resp.json()["metadata"]["total_analyzed"] == 2


def test_history_request_is_logged_with_lazy_args(client, caplog):
    with caplog.at_level(logging.INFO, logger="reco_engine.api.v1.routers.users"):
        client.get("/api/users/u7/history", params={"limit": 5})
    (record,) = [r for r in caplog.records if r.msg.startswith("Request: user_history")]
    assert record.args == ("u7", 5)
    assert record.getMessage() == "Request: user_history user_id=u7 limit=5"
