"""Integration tests for the HTTP API."""

import pytest
from httpx import ASGITransport, AsyncClient

from proficiency.api.dependencies import get_progression_service
from proficiency.api.main import create_app
from proficiency.shared.models import CEFRLevel


@pytest.fixture
def app(progression_service):
    """App with the progression service swapped for in-memory stores."""
    app = create_app()
    app.dependency_overrides[get_progression_service] = lambda: progression_service
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


@pytest.fixture
def headers(sample_user_id):
    return {"X-User-Id": str(sample_user_id)}


class TestHealth:
    """Tests for health endpoints."""

    async def test_health(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    async def test_live(self, client):
        response = await client.get("/health/live")
        assert response.json() == {"status": "alive"}

    async def test_ready_without_database(self, client):
        response = await client.get("/health/ready")

        body = response.json()
        assert response.status_code == 200
        assert body["status"] == "ready"
        assert body["database"] == "disabled"
        assert body["services"]["levels"] == "LevelStore"

    async def test_request_id_echoed(self, client):
        response = await client.get("/health", headers={"X-Request-ID": "abc-123"})
        assert response.headers["X-Request-ID"] == "abc-123"

    async def test_malformed_request_id_replaced(self, client):
        response = await client.get("/health", headers={"X-Request-ID": "bad id!"})

        request_id = response.headers["X-Request-ID"]
        assert request_id != "bad id!"
        assert len(request_id) == 36


class TestLevelsApi:
    """Tests for /levels."""

    async def test_requires_user_header(self, client):
        response = await client.get("/levels")

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "UNAUTHORIZED"

    async def test_rejects_malformed_user_header(self, client):
        response = await client.get("/levels", headers={"X-User-Id": "not-a-uuid"})
        assert response.status_code == 401

    async def test_overview_for_new_learner(self, client, headers):
        response = await client.get("/levels", headers=headers)

        body = response.json()
        assert response.status_code == 200
        assert {entry["skill_area"] for entry in body} == {"speaking", "writing", "listening", "reading"}
        assert all(entry["display"] == "A2 (0%)" for entry in body)

    async def test_update_level(self, client, headers):
        response = await client.post(
            "/levels/update",
            json={"skill_area": "reading", "question_type": "read_and_select", "score": 90},
            headers=headers,
        )

        body = response.json()
        assert response.status_code == 200
        assert body["numeric_level"] == 2.15
        assert body["cefr_level"] == "A2"
        assert body["attempts_at_level"] == 1
        assert body["correct_streak"] == 1

    async def test_update_rejects_out_of_range_score(self, client, headers):
        response = await client.post(
            "/levels/update",
            json={"skill_area": "reading", "question_type": "read_and_select", "score": 140},
            headers=headers,
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    async def test_update_rejects_mismatched_question_type(self, client, headers):
        response = await client.post(
            "/levels/update",
            json={"skill_area": "speaking", "question_type": "read_and_select", "score": 80},
            headers=headers,
        )
        assert response.status_code == 400

    async def test_update_unknown_item(self, client, headers):
        response = await client.post(
            "/levels/update",
            json={
                "skill_area": "reading",
                "question_type": "read_and_select",
                "score": 80,
                "item_id": "00000000-0000-0000-0000-000000000001",
            },
            headers=headers,
        )
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"

    async def test_unknown_skill_area_is_422(self, client, headers):
        response = await client.post(
            "/levels/update",
            json={"skill_area": "cooking", "question_type": "read_and_select", "score": 80},
            headers=headers,
        )
        assert response.status_code == 422

    async def test_level_detail(self, client, headers):
        await client.post(
            "/levels/update",
            json={"skill_area": "reading", "question_type": "read_and_select", "score": 30},
            headers=headers,
        )

        response = await client.get("/levels/reading/read_and_select", headers=headers)

        body = response.json()
        assert response.status_code == 200
        assert body["level"]["numeric_level"] == 1.85
        assert body["display"] == "A1 (85%)"
        assert body["should_level_up"] is False


class TestPromptsApi:
    """Tests for /prompts."""

    async def test_select_when_nothing_available(self, client, headers):
        response = await client.get(
            "/prompts/select",
            params={"skill_area": "reading", "question_type": "read_and_select"},
            headers=headers,
        )

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NO_ITEM_AVAILABLE"

    async def test_select_returns_item(self, client, headers, progression_service, make_item):
        item = await progression_service.add_item(make_item(CEFRLevel.A2))

        response = await client.get(
            "/prompts/select",
            params={"skill_area": "reading", "question_type": "read_and_select"},
            headers=headers,
        )

        body = response.json()
        assert response.status_code == 200
        assert body["item"]["id"] == str(item.id)
        assert body["item"]["times_used"] == 1
        assert body["source"] == "generated"
        assert body["fallback_reason"] is None
        assert body["user_level"]["cefr_level"] == "A2"

    async def test_select_requires_question_type(self, client, headers):
        response = await client.get("/prompts/select", params={"skill_area": "reading"}, headers=headers)
        assert response.status_code == 422

    async def test_inventory(self, client, progression_service, make_item):
        await progression_service.add_item(make_item(CEFRLevel.A2))
        await progression_service.add_item(make_item(None))

        response = await client.get("/prompts/inventory")

        body = response.json()
        assert body["total"] == 2
        assert {entry["cefr_level"] for entry in body["entries"]} == {"A2", "static"}


class TestProgressApi:
    """Tests for /progress."""

    async def test_record_activity(self, client, headers):
        response = await client.post(
            "/progress/activity",
            json={"occurred_at": "2024-03-14T23:30:00Z", "timezone": "Asia/Tokyo"},
            headers=headers,
        )

        assert response.status_code == 201
        assert response.json() == {"date": "2024-03-15", "count": 1}

    async def test_summary(self, client, headers):
        await client.post("/progress/activity", json={}, headers=headers)

        response = await client.get("/progress", params={"weeks": 2}, headers=headers)

        body = response.json()
        assert response.status_code == 200
        assert len(body["days"]) == 14
        assert body["current_streak_days"] == 1
        assert body["total_attempts"] == 1
        assert body["window_weeks"] == 2
        assert body["timezone"] == "UTC"

    @pytest.mark.parametrize("params", [{"weeks": 0}, {"tz": "Nowhere/Land"}])
    async def test_summary_rejects_bad_params(self, client, headers, params):
        response = await client.get("/progress", params=params, headers=headers)

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"
