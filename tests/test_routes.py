"""HTTP tests for the dashboard, progress and community routes."""

from unittest.mock import AsyncMock

import httpx
import pytest

from careeros.dependencies import get_sessions, get_stores
from careeros.exceptions import StoreTimeoutError
from careeros.main import app
from careeros.routes import community, progress
from careeros.services import cache


@pytest.fixture
async def client(stores, sessions, fake_redis):
    progress.limiter.reset()
    community.limiter.reset()
    app.dependency_overrides[get_stores] = lambda: stores
    app.dependency_overrides[get_sessions] = lambda: sessions
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "redis": True}


async def test_empty_overview(client):
    response = await client.get("/api/users/1/overview")

    assert response.status_code == 200
    data = response.json()
    assert data["stats"]["overallProgress"] == 0
    assert data["recentActivities"] == []
    assert data["recommendations"] == []
    assert "X-Correlation-ID" in response.headers


async def test_enroll_complete_and_read_overview(client):
    response = await client.post("/api/users/1/enrollments", json={"courseId": 3})
    assert response.status_code == 201
    enrollment_id = response.json()["enrollment"]["id"]

    response = await client.post(
        "/api/users/1/complete", json={"kind": "course", "entityId": enrollment_id}
    )
    assert response.status_code == 200
    record = response.json()["record"]
    assert record["isCompleted"] is True
    assert record["progress"] == 100

    overview = (await client.get("/api/users/1/overview")).json()
    assert overview["stats"]["completedCourses"] == 1
    assert overview["recentActivities"][0]["title"] == "Course #3"
    assert [r["type"] for r in overview["recommendations"]] == ["project", "community"]

    notifications = (await client.get("/api/users/1/notifications")).json()
    assert notifications["notificationCount"] == 1
    assert notifications["hasNotifications"] is True


async def test_complete_unowned_entity_is_404(client):
    response = await client.post("/api/users/1/user-projects", json={"projectId": 77})
    project_id = response.json()["userProject"]["id"]

    response = await client.post(
        "/api/users/5/complete", json={"kind": "project", "entityId": project_id}
    )

    assert response.status_code == 404
    assert (await client.get("/api/users/5/notifications")).json()["notifications"] == []


async def test_unknown_kind_is_400(client):
    response = await client.post("/api/users/1/complete", json={"kind": "webinar", "entityId": 1})
    assert response.status_code == 400


async def test_duplicate_enrollment_is_400(client):
    await client.post("/api/users/1/enrollments", json={"courseId": 3})
    response = await client.post("/api/users/1/enrollments", json={"courseId": 3})
    assert response.status_code == 400


async def test_progress_update(client):
    response = await client.post("/api/users/1/user-skills", json={"softSkillId": 2})
    skill_id = response.json()["userSoftSkill"]["id"]

    response = await client.patch(
        "/api/users/1/progress", json={"kind": "skill", "entityId": skill_id, "progress": 45}
    )

    assert response.status_code == 200
    assert response.json()["record"]["progress"] == 45
    skills = (await client.get("/api/users/1/user-skills")).json()["userSoftSkills"]
    assert skills[0]["progress"] == 45


async def test_list_is_cached_until_invalidated(client, fake_redis):
    await client.post("/api/users/1/achievements", json={"achievementId": 1})
    first = (await client.get("/api/users/1/achievements")).json()["achievements"]
    assert await fake_redis.exists("careeros:user:1:achievements") == 1

    await client.post("/api/users/1/achievements", json={"achievementId": 2})
    second = (await client.get("/api/users/1/achievements")).json()["achievements"]

    assert len(first) == 1
    assert len(second) == 2


async def test_quiz_results(client):
    response = await client.post("/api/users/1/quiz-results", json={"quizType": "career"})
    assert response.status_code == 400
    assert response.json()["errors"]

    response = await client.post("/api/users/1/quiz-results", json={
        "quizType": "career", "result": {"score": 9}, "recommendedCareer": "SRE",
    })
    assert response.status_code == 201

    results = (await client.get("/api/users/1/quiz-results")).json()["quizResults"]
    assert results[0]["recommendedCareer"] == "SRE"
    overview = (await client.get("/api/users/1/overview")).json()
    assert overview["stats"]["hasCareerPath"] is True


async def test_notifications_read(client):
    response = await client.post("/api/users/1/enrollments", json={"courseId": 3})
    enrollment_id = response.json()["enrollment"]["id"]
    await client.patch("/api/users/1/progress", json={"kind": "course", "entityId": enrollment_id, "progress": 20})
    await client.patch("/api/users/1/progress", json={"kind": "course", "entityId": enrollment_id, "progress": 40})

    notifications = (await client.get("/api/users/1/notifications")).json()["notifications"]
    response = await client.post(f"/api/users/1/notifications/{notifications[0]['id']}/read")
    assert response.json()["notification"]["isRead"] is True

    response = await client.post("/api/users/1/notifications/read-all")
    assert response.json()["updated"] == 1
    assert (await client.get("/api/users/1/notifications")).json()["hasNotifications"] is False

    response = await client.post("/api/users/1/notifications/missing/read")
    assert response.status_code == 404


async def test_community_posts(client):
    response = await client.post(
        "/api/communities/4/posts", json={"userId": 2, "title": "Hi all", "content": "Intro"}
    )
    assert response.status_code == 201
    assert response.json()["post"]["communityId"] == 4

    posts = (await client.get("/api/communities/4/posts")).json()["posts"]
    assert [p["title"] for p in posts] == ["Hi all"]


async def test_overview_store_failure_is_503(client, stores):
    stores.skills.get = AsyncMock(side_effect=StoreTimeoutError("user_soft_skills", "get", 0.1))

    response = await client.get("/api/users/1/overview")

    assert response.status_code == 503
    assert response.json()["detail"] == "Could not load your progress"


async def test_store_timeout_on_mutation_is_503(client, stores):
    stores.enrollments.create = AsyncMock(side_effect=StoreTimeoutError("enrollments", "create", 0.1))

    response = await client.post("/api/users/1/enrollments", json={"courseId": 3})

    assert response.status_code == 503


async def test_metrics(client):
    await client.get("/api/users/1/overview")
    data = (await client.get("/metrics")).json()
    assert data["counters"]["overview.recomputed"] == 1
    assert "store.enrollments.get.duration_ms" in data["histograms"]


async def test_recommendations_follow_completion(client):
    assert (await client.get("/api/users/3/recommendations")).json()["recommendations"] == []

    response = await client.post("/api/users/3/user-projects", json={"projectId": 6})
    project_id = response.json()["userProject"]["id"]
    await client.post("/api/users/3/complete", json={"kind": "project", "entityId": project_id})

    recs = (await client.get("/api/users/3/recommendations")).json()["recommendations"]
    assert [r["title"] for r in recs] == ["Leadership", "Tech Innovators"]


async def test_post_creation_is_rate_limited(client):
    body = {"userId": 2, "title": "Hi", "content": "Hello"}
    for _ in range(20):
        assert (await client.post("/api/communities/6/posts", json=body)).status_code == 201

    response = await client.post("/api/communities/6/posts", json=body)

    assert response.status_code == 429


async def test_post_body_accepts_snake_case_and_validates_author(client):
    response = await client.post(
        "/api/communities/4/posts", json={"user_id": 2, "title": "Hi", "content": "Intro"}
    )
    assert response.status_code == 201
    assert response.json()["post"]["userId"] == 2

    response = await client.post("/api/communities/4/posts", json={"title": "Hi", "content": "Intro"})
    assert response.status_code == 422


async def test_failed_invalidation_is_503(client, monkeypatch):
    response = await client.post("/api/users/1/enrollments", json={"courseId": 3})
    enrollment_id = response.json()["enrollment"]["id"]

    async def broken(r, keys):
        raise ConnectionError("connection reset")

    monkeypatch.setattr(cache, "_mark_stale", broken)
    monkeypatch.setattr(cache, "_drop_values", broken)

    response = await client.post(
        "/api/users/1/complete", json={"kind": "course", "entityId": enrollment_id}
    )
    assert response.status_code == 503
