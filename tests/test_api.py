"""
HTTP API tests
"""

import json

import pytest
from fastapi.testclient import TestClient

from api.app import create_app
from config import Settings
from mealgen.errors import ErrorKind, GenerationError

from conftest import FakeAdapter, VALID_RECIPE, meal_plan_payload


@pytest.fixture
def settings():
    return Settings(environment="testing", quota_window_seconds=60)


@pytest.fixture
def make_client(settings, make_orchestrator):
    def _make(*adapters, **kwargs):
        orchestrator = make_orchestrator(*adapters, **kwargs)
        return TestClient(create_app(settings=settings, orchestrator=orchestrator)), orchestrator

    return _make


class TestGenerate:
    """POST /api/v1/generate"""

    def test_envelope_uses_camel_case(self, make_client):
        client, _ = make_client(FakeAdapter("deepseek", ["hello"]))

        response = client.post("/api/v1/generate", json={"prompt": "say hello", "maxTokens": 500})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"] == "hello"
        assert body["metadata"]["provider"] == "deepseek"
        assert body["metadata"]["model"] == "deepseek-model"
        assert body["metadata"]["tokensUsed"] == 30
        assert body["metadata"]["cost"] == 0.00005
        assert body["metadata"]["requestId"].startswith("req_")
        assert body["metadata"]["degraded"] is False

    def test_parameters_reach_the_provider(self, make_client):
        adapter = FakeAdapter("deepseek", ["ok"])
        client, _ = make_client(adapter)

        client.post("/api/v1/generate", json={"prompt": "hi", "maxTokens": 500, "temperature": 0.2, "userId": "u1"})

        sent = adapter.requests[0]
        assert sent.max_tokens == 500
        assert sent.temperature == 0.2
        assert sent.user_id == "u1"

    def test_kind_validation_fails_over(self, make_client):
        primary = FakeAdapter("deepseek", ["{ not json"])
        secondary = FakeAdapter("gemini", [json.dumps(VALID_RECIPE)])
        client, _ = make_client(primary, secondary)

        response = client.post(
            "/api/v1/generate",
            json={"prompt": "quick vegan dinner", "maxTokens": 500, "kind": "recipe"},
        )

        assert response.status_code == 200
        assert response.json()["metadata"]["provider"] == "gemini"

    def test_total_failure_is_degraded_success(self, make_client):
        down = GenerationError("down", ErrorKind.INVALID_API_KEY, provider="deepseek", status_code=401)
        client, _ = make_client(FakeAdapter("deepseek", [down]))

        response = client.post("/api/v1/generate", json={"prompt": "anything"})

        body = response.json()
        assert response.status_code == 200
        assert body["success"] is True
        assert body["metadata"]["provider"] == "fallback"
        assert body["metadata"]["cost"] == 0
        assert body["metadata"]["degraded"] is True

    def test_quota_denial_is_429(self, make_client):
        adapter = FakeAdapter("deepseek", ["ok"])
        client, _ = make_client(adapter, quota_limit=0)

        anonymous = client.post("/api/v1/generate", json={"prompt": "one"})
        assert anonymous.status_code == 200

        response = client.post("/api/v1/generate", json={"prompt": "two", "userId": "u1"})

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "60"
        body = response.json()
        assert body["success"] is False
        assert body["code"] == "RATE_LIMIT_EXCEEDED"
        assert adapter.calls == 1

    @pytest.mark.parametrize("payload", [
        {"prompt": ""},
        {"prompt": "   "},
        {"prompt": "ok", "temperature": 3},
        {"prompt": "ok", "maxTokens": 0},
        {"prompt": "ok", "kind": "dessert"},
    ])
    def test_invalid_input_is_422(self, make_client, payload):
        adapter = FakeAdapter("deepseek")
        client, _ = make_client(adapter)

        response = client.post("/api/v1/generate", json=payload)

        assert response.status_code == 422
        body = response.json()
        assert body["code"] == "INVALID_REQUEST"
        assert body["errors"]
        assert adapter.calls == 0


class TestMealRoutes:
    """Recipe, meal plan, quick meal and substitution routes"""

    def test_recipe_route_returns_parsed_recipe(self, make_client):
        client, _ = make_client(FakeAdapter("deepseek", [json.dumps(VALID_RECIPE)]))

        response = client.post("/api/v1/recipes/generate", json={"cuisineType": "indian", "servings": 2})

        body = response.json()
        assert response.status_code == 200
        assert body["data"]["title"] == VALID_RECIPE["title"]
        assert body["metadata"]["degraded"] is False

    def test_meal_plan_route(self, make_client):
        client, _ = make_client(FakeAdapter("deepseek", [json.dumps(meal_plan_payload(3))]))

        response = client.post("/api/v1/meal-plans/generate", json={"days": 3})

        assert response.status_code == 200
        assert len(response.json()["data"]["days"]) == 3

    def test_meal_plan_days_bounds(self, make_client):
        client, _ = make_client(FakeAdapter("deepseek"))

        response = client.post("/api/v1/meal-plans/generate", json={"days": 15})

        assert response.status_code == 422

    def test_substitution_requires_ingredient(self, make_client):
        client, _ = make_client(FakeAdapter("deepseek"))

        response = client.post("/api/v1/substitutions/suggest", json={})

        assert response.status_code == 422


class TestHealth:
    """Health and ping"""

    def test_ping(self, make_client):
        client, _ = make_client(FakeAdapter("deepseek"))

        response = client.get("/ping")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_health_all_providers_up(self, make_client):
        client, _ = make_client(FakeAdapter("deepseek"), FakeAdapter("gemini"))

        response = client.get("/health")

        body = response.json()
        assert response.status_code == 200
        assert body["status"] == "healthy"
        assert body["checks"] == {"deepseek": True, "gemini": True}
        assert body["version"] == "1.0.0"
        assert "size" in body["cache"]
        assert "totalRequests" not in body

    def test_health_degraded(self, make_client):
        down = GenerationError("down", ErrorKind.SERVICE_UNAVAILABLE, provider="gemini", status_code=503)
        client, _ = make_client(FakeAdapter("deepseek"), FakeAdapter("gemini", [down]))

        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "degraded"

    def test_health_without_providers_is_unhealthy(self, make_client):
        client, _ = make_client()

        response = client.get("/health")

        assert response.status_code == 503
        assert response.json()["status"] == "unhealthy"


class TestTracing:
    """Request tracing headers"""

    def test_request_id_is_echoed(self, make_client):
        client, _ = make_client(FakeAdapter("deepseek"))

        response = client.get("/ping", headers={"X-Request-ID": "trace-123"})

        assert response.headers["X-Request-ID"] == "trace-123"
        assert response.headers["X-Service"] == "mealgen-ai-service"
        assert "X-Process-Time" in response.headers

    def test_request_id_is_generated(self, make_client):
        client, _ = make_client(FakeAdapter("deepseek"))

        response = client.get("/ping")

        assert response.headers["X-Request-ID"]

    def test_error_body_carries_request_id(self, make_client):
        client, _ = make_client(FakeAdapter("deepseek"))

        response = client.post("/api/v1/generate", json={"prompt": ""}, headers={"X-Request-ID": "trace-422"})

        assert response.json()["requestId"] == "trace-422"
