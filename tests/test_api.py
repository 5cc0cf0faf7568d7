"""
Nexus Forum Backend — API Endpoint Tests
=========================================

What:  End-to-end tests of the HTTP surface.
How:   HTTPX AsyncClient over ASGITransport; `test_client` is parametrized so
       each test runs against the in-memory store and the SQL store.

What we test:
    ✅ Health check and request id header
    ✅ Register / login status codes and payloads
    ✅ Topic → view → post → like → unlike walkthrough
    ✅ Validation (400), auth (401) and not-found (404) error bodies
    ✅ Acting user from the body or from the bearer token
    ✅ Unhealthy store, error-detail gating, startup failures
"""

import logging

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.exc import OperationalError

from nexus_forum.config import settings
from nexus_forum.exceptions import DatabaseError


async def _register(client, username="alice", password="s3cret!"):
    response = await client.post(
        "/api/register",
        json={"username": username, "email": f"{username}@example.com", "password": password},
    )
    assert response.status_code == 200, response.text
    return response.json()


async def _topic(client, user_id, title="Welcome", category_id=1):
    response = await client.post(
        "/api/topics",
        json={"title": title, "content": "Say hi", "category_id": category_id, "user_id": user_id},
    )
    assert response.status_code == 200, response.text
    return response.json()


class TestHealth:

    @pytest.mark.asyncio
    async def test_health_reports_categories(self, test_client):
        response = await test_client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "database": "connected", "categories": 4}

    @pytest.mark.asyncio
    async def test_health_alias_under_api(self, test_client):
        response = await test_client.get("/api/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    @pytest.mark.asyncio
    async def test_request_id_header(self, test_client):
        generated = await test_client.get("/api/categories")
        echoed = await test_client.get("/api/categories", headers={"X-Request-ID": "trace-42"})

        assert len(generated.headers["X-Request-ID"]) == 8
        assert echoed.headers["X-Request-ID"] == "trace-42"


class TestAuthEndpoints:

    @pytest.mark.asyncio
    async def test_register_returns_user_and_token(self, test_client):
        body = await _register(test_client)

        assert body["user"]["username"] == "alice"
        assert body["user"]["email"] == "alice@example.com"
        assert "password_hash" not in body["user"]
        assert body["token"]

    @pytest.mark.asyncio
    async def test_duplicate_registration_is_400(self, test_client):
        await _register(test_client)

        response = await test_client.post(
            "/api/register",
            json={"username": "alice", "email": "new@example.com", "password": "s3cret!"},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"
        assert response.json()["details"] == {"field": "username"}

    @pytest.mark.asyncio
    async def test_register_missing_fields_is_400(self, test_client):
        response = await test_client.post("/api/register", json={"username": "alice"})

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    @pytest.mark.asyncio
    async def test_login_by_username_and_email(self, test_client):
        await _register(test_client)

        by_name = await test_client.post(
            "/api/login", json={"username_or_email": "alice", "password": "s3cret!"}
        )
        by_email = await test_client.post(
            "/api/login", json={"email": "alice@example.com", "password": "s3cret!"}
        )

        assert by_name.status_code == by_email.status_code == 200
        assert by_name.json()["user"]["id"] == by_email.json()["user"]["id"]

    @pytest.mark.asyncio
    async def test_seeded_admin_can_log_in(self, test_client):
        response = await test_client.post(
            "/api/login", json={"username": "admin", "password": "admin123"}
        )

        assert response.status_code == 200
        assert response.json()["user"]["bio"] == "Forum Administrator"

    @pytest.mark.asyncio
    async def test_bad_credentials_are_401(self, test_client):
        await _register(test_client)

        wrong_password = await test_client.post(
            "/api/login", json={"username_or_email": "alice", "password": "nope"}
        )
        unknown_user = await test_client.post(
            "/api/login", json={"username_or_email": "ghost", "password": "nope"}
        )

        assert wrong_password.status_code == unknown_user.status_code == 401
        assert wrong_password.json()["message"] == unknown_user.json()["message"]


class TestForumWalkthrough:

    @pytest.mark.asyncio
    async def test_topic_view_post_like_unlike(self, test_client):
        user_id = (await _register(test_client))["user"]["id"]

        topic = await _topic(test_client, user_id)
        assert topic["id"] == 1
        assert topic["views"] == 0
        assert topic["is_pinned"] is False

        fetched = await test_client.get("/api/topics/1")
        assert fetched.status_code == 200
        assert fetched.json()["views"] == 1
        assert fetched.headers["Cache-Control"] == "no-store"

        post = await test_client.post(
            "/api/posts", json={"content": "Hi!", "topic_id": 1, "user_id": user_id}
        )
        assert post.status_code == 200

        posts = (await test_client.get("/api/topics/1/posts")).json()
        assert len(posts) == 1
        assert posts[0]["like_count"] == 0
        assert posts[0]["username"] == "alice"

        post_id = post.json()["id"]
        like = await test_client.post(f"/api/posts/{post_id}/like", json={"user_id": user_id})
        assert like.json() == {"liked": True}
        unlike = await test_client.post(f"/api/posts/{post_id}/like", json={"user_id": user_id})
        assert unlike.json() == {"liked": False}

    @pytest.mark.asyncio
    async def test_listing_and_counts(self, test_client):
        user_id = (await _register(test_client))["user"]["id"]
        topic = await _topic(test_client, user_id, category_id=3)
        await test_client.post(
            "/api/posts", json={"content": "Reply", "topic_id": topic["id"], "user_id": user_id}
        )

        [row] = (await test_client.get("/api/topics", params={"category": 3})).json()
        categories = (await test_client.get("/api/categories")).json()
        stats = (await test_client.get("/api/stats")).json()

        assert row["post_count"] == 1
        assert row["category_name"] == "Help & Support"
        assert row["last_post_at"] is not None
        assert [c["topic_count"] for c in categories] == [0, 0, 1, 0]
        assert stats == {"user_count": 2, "topic_count": 1, "post_count": 1, "active_users": 2}

    @pytest.mark.asyncio
    async def test_repeated_fetches_add_views(self, test_client):
        user_id = (await _register(test_client))["user"]["id"]
        topic = await _topic(test_client, user_id)

        for _ in range(3):
            await test_client.get(f"/api/topics/{topic['id']}")

        [row] = (await test_client.get("/api/topics")).json()
        assert row["views"] == 3


class TestActingUser:

    @pytest.mark.asyncio
    async def test_bearer_token_supplies_author(self, test_client):
        body = await _register(test_client)

        response = await test_client.post(
            "/api/topics",
            json={"title": "Token topic", "content": "Body", "category_id": 1},
            headers={"Authorization": f"Bearer {body['token']}"},
        )

        assert response.status_code == 200
        assert response.json()["user_id"] == body["user"]["id"]

    @pytest.mark.asyncio
    async def test_invalid_bearer_token_is_401(self, test_client):
        response = await test_client.post(
            "/api/topics",
            json={"title": "Token topic", "content": "Body", "category_id": 1},
            headers={"Authorization": "Bearer not-a-token"},
        )

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_missing_user_is_400(self, test_client):
        response = await test_client.post(
            "/api/topics", json={"title": "Anonymous", "content": "Body", "category_id": 1}
        )

        assert response.status_code == 400
        assert response.json()["details"] == {"field": "user_id"}


class TestErrors:

    @pytest.mark.asyncio
    async def test_unknown_topic_is_404(self, test_client):
        response = await test_client.get("/api/topics/999")

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"
        assert response.json()["request_id"] == response.headers["X-Request-ID"]

    @pytest.mark.asyncio
    async def test_like_unknown_post_is_404(self, test_client):
        response = await test_client.post("/api/posts/999/like", json={"user_id": 1})

        assert response.status_code == 404

    @pytest.mark.asyncio
    @pytest.mark.parametrize("params", [{"limit": 101}, {"limit": 0}, {"page": 0}])
    async def test_bad_paging_is_400(self, test_client, params):
        response = await test_client.get("/api/topics", params=params)

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_unknown_category_is_400(self, test_client):
        response = await test_client.post(
            "/api/topics",
            json={"title": "Lost", "content": "Body", "category_id": 999, "user_id": 1},
        )

        assert response.status_code == 400
        assert "original_error" not in (response.json().get("details") or {})

    @pytest.mark.asyncio
    async def test_parent_from_other_topic_is_400(self, test_client):
        user_id = (await _register(test_client))["user"]["id"]
        first = await _topic(test_client, user_id, title="First")
        second = await _topic(test_client, user_id, title="Second")
        parent = await test_client.post(
            "/api/posts", json={"content": "Root", "topic_id": first["id"], "user_id": user_id}
        )

        response = await test_client.post(
            "/api/posts",
            json={
                "content": "Misplaced",
                "topic_id": second["id"],
                "user_id": user_id,
                "parent_id": parent.json()["id"],
            },
        )

        assert response.status_code == 400
        assert response.json()["details"] == {"field": "parent_id"}

    @pytest.mark.asyncio
    async def test_blank_category_lists_everything(self, test_client):
        user_id = (await _register(test_client))["user"]["id"]
        await _topic(test_client, user_id, title="General", category_id=1)
        await _topic(test_client, user_id, title="Help", category_id=3)

        response = await test_client.get(
            "/api/topics", params={"category": "", "page": 1, "limit": 20}
        )

        assert response.status_code == 200
        assert sorted(row["title"] for row in response.json()) == ["General", "Help"]

    @pytest.mark.asyncio
    async def test_non_numeric_category_is_400(self, test_client):
        response = await test_client.get("/api/topics", params={"category": "news"})

        assert response.status_code == 400
        assert response.json()["details"] == {"field": "category"}


# ══════════════════════════════════════════════════════════════════════════
# Failing store
# ══════════════════════════════════════════════════════════════════════════

def _connection_refused():
    return OperationalError("SELECT 1", {}, Exception("connection refused"))


@pytest_asyncio.fixture
async def failing_client(mock_store):
    """Client over an app whose store is an AsyncMock scripted per test."""
    from nexus_forum.main import create_app

    transport = ASGITransport(app=create_app(store=mock_store))
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


class TestUnhealthyStore:

    @pytest.mark.asyncio
    async def test_unreachable_store_reports_unhealthy(
        self, failing_client, mock_store, monkeypatch
    ):
        monkeypatch.setattr(settings, "expose_error_details", False)
        mock_store.health_check.side_effect = _connection_refused()

        response = await failing_client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "unhealthy", "database": "error"}

    @pytest.mark.asyncio
    async def test_error_text_shown_when_details_enabled(
        self, failing_client, mock_store, monkeypatch
    ):
        monkeypatch.setattr(settings, "expose_error_details", True)
        mock_store.health_check.side_effect = _connection_refused()

        body = (await failing_client.get("/health")).json()

        assert body["status"] == "unhealthy"
        assert "connection refused" in body["error"]


class TestErrorDetails:

    async def _create_topic(self, client):
        return await client.post(
            "/api/topics",
            json={"title": "Hello", "content": "Body", "category_id": 1, "user_id": 1},
        )

    @pytest.mark.asyncio
    async def test_driver_text_hidden_by_default(self, failing_client, mock_store, monkeypatch):
        monkeypatch.setattr(settings, "expose_error_details", False)
        mock_store.create_topic.side_effect = DatabaseError(
            context={"operation": "create topic", "original_error": "connection refused"}
        )

        response = await self._create_topic(failing_client)

        assert response.status_code == 500
        assert response.json()["details"] == {"operation": "create topic"}

    @pytest.mark.asyncio
    async def test_driver_text_shown_when_enabled(self, failing_client, mock_store, monkeypatch):
        monkeypatch.setattr(settings, "expose_error_details", True)
        mock_store.create_topic.side_effect = DatabaseError(
            context={"operation": "create topic", "original_error": "connection refused"}
        )

        response = await self._create_topic(failing_client)

        assert response.status_code == 500
        assert response.json()["details"]["original_error"] == "connection refused"


class TestStartup:

    @pytest.mark.asyncio
    async def test_initialization_failure_is_logged_not_raised(self, mock_store, caplog):
        from nexus_forum.main import initialize_store

        mock_store.initialize.side_effect = _connection_refused()

        with caplog.at_level(logging.ERROR, logger="nexus_forum.main"):
            await initialize_store(mock_store)

        mock_store.initialize.assert_awaited_once()
        assert "Database initialization error" in caplog.text
