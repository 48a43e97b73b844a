"""
Integration Tests for the HTTP API

Drives the full application (routing, auth dependency, services,
SQLite database, error rendering) through the FastAPI test client with
an in-process model provider.
"""

import pytest
from fastapi.testclient import TestClient

from mindsync.main import create_application


def register(client: TestClient, email: str = "ana@x.com", password: str = "secret1") -> dict:
    response = client.post(
        "/api/auth/register",
        json={"name": "Ana", "email": email, "password": password},
    )
    assert response.status_code == 201, response.text
    return response.json()


def auth_headers(client: TestClient, email: str = "ana@x.com") -> dict:
    body = register(client, email=email)
    return {"Authorization": f"Bearer {body['tokens']['accessToken']}"}


@pytest.fixture
def provider(provider_factory):
    return provider_factory(reply="Gracias por compartirlo. ¿Qué notas en tu cuerpo ahora?")


@pytest.fixture
def client(test_settings, provider):
    app = create_application(settings=test_settings, llm_provider=provider)
    with TestClient(app) as test_client:
        yield test_client


class TestAuthFlow:
    """Registration, login and account endpoints."""

    def test_register_login_and_chat(self, client: TestClient, provider) -> None:
        body = register(client)
        user = body["user"]

        assert user["email"] == "ana@x.com"
        assert "password" not in user
        assert "passwordHash" not in user
        assert user["stats"]["totalSessions"] == 0
        assert body["tokens"]["tokenType"] == "Bearer"

        login = client.post("/api/auth/login", json={"email": "ANA@x.com", "password": "secret1"})
        assert login.status_code == 200
        token = login.json()["tokens"]["accessToken"]

        chat = client.post(
            "/api/chat",
            json={"message": "me siento ansioso"},
            headers={"Authorization": f"Bearer {token}"},
        )

        assert chat.status_code == 200
        data = chat.json()
        assert data["type"] == "normal"
        assert data["isEmergency"] is False
        assert data["response"] == provider.reply
        assert "Técnicas de relajación" in data["suggestions"]

    def test_duplicate_email_rejected(self, client: TestClient) -> None:
        register(client)

        response = client.post(
            "/api/auth/register",
            json={"name": "Ana Dos", "email": "ANA@X.COM", "password": "secret2"},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "duplicate_email"

    def test_invalid_email_rejected(self, client: TestClient) -> None:
        response = client.post(
            "/api/auth/register",
            json={"name": "Ana", "email": "not-an-email", "password": "secret1"},
        )

        assert response.status_code == 400
        assert response.json()["details"][0]["field"] == "email"

    def test_wrong_password_then_locked(self, client: TestClient) -> None:
        register(client)

        for _ in range(5):
            response = client.post("/api/auth/login", json={"email": "ana@x.com", "password": "nope"})
            assert response.status_code == 401

        response = client.post("/api/auth/login", json={"email": "ana@x.com", "password": "secret1"})

        assert response.status_code == 423
        assert "lock_until" in response.json()

    def test_missing_token(self, client: TestClient) -> None:
        response = client.get("/api/auth/me")

        assert response.status_code == 401
        assert response.json()["error"] == "authentication_error"

    def test_me_and_refresh(self, client: TestClient) -> None:
        body = register(client)
        headers = {"Authorization": f"Bearer {body['tokens']['accessToken']}"}

        me = client.get("/api/auth/me", headers=headers)
        refreshed = client.post(
            "/api/auth/refresh",
            json={"refreshToken": body["tokens"]["refreshToken"]},
        )

        assert me.status_code == 200
        assert me.json()["user"]["id"] == body["user"]["id"]
        assert refreshed.status_code == 200
        assert refreshed.json()["accessToken"]

    def test_profile_update(self, client: TestClient) -> None:
        headers = auth_headers(client)

        response = client.patch(
            "/api/auth/profile",
            json={"name": "ana lucía", "preferences": {"language": "en"}},
            headers=headers,
        )

        assert response.status_code == 200
        user = response.json()["user"]
        assert user["name"] == "Ana Lucía"
        assert user["preferences"]["language"] == "en"
        assert user["preferences"]["therapyStyle"] == "cognitive"

    def test_profile_unknown_field_rejected(self, client: TestClient) -> None:
        headers = auth_headers(client)

        response = client.patch("/api/auth/profile", json={"favoriteColor": "azul"}, headers=headers)

        assert response.status_code == 400

    def test_deactivated_token_rejected(self, client: TestClient) -> None:
        headers = auth_headers(client)

        assert client.delete("/api/auth/account", headers=headers).status_code == 200
        assert client.get("/api/auth/me", headers=headers).status_code == 401


class TestChatFlow:
    """Chat endpoints."""

    def test_crisis_message(self, client: TestClient, provider) -> None:
        headers = auth_headers(client)

        response = client.post("/api/chat", json={"message": "Ya no quiero vivir"}, headers=headers)

        assert response.status_code == 200
        data = response.json()
        assert data["type"] == "crisis"
        assert data["isEmergency"] is True
        assert data["resources"]["resources"]
        assert provider.calls == 0

    def test_empty_message_rejected(self, client: TestClient) -> None:
        headers = auth_headers(client)

        response = client.post("/api/chat", json={"message": "   "}, headers=headers)

        assert response.status_code == 400

    def test_session_lifecycle(self, client: TestClient) -> None:
        headers = auth_headers(client)

        started = client.post("/api/chat/session/start", headers=headers)
        assert started.status_code == 200
        conversation_id = started.json()["conversationId"]
        assert started.json()["sessionsThisWeek"] == 1

        sent = client.post(
            "/api/chat/message",
            json={"conversationId": conversation_id, "message": "hola"},
            headers=headers,
        )
        assert sent.status_code == 200
        assert sent.json()["message"]["role"] == "assistant"

        history = client.get(f"/api/chat/conversation/{conversation_id}", headers=headers)
        assert history.status_code == 200
        assert history.json()["messageCount"] == 3

        ended = client.post(
            "/api/chat/session/end",
            json={"conversationId": conversation_id},
            headers=headers,
        )
        assert ended.status_code == 200
        assert client.get(f"/api/chat/conversation/{conversation_id}", headers=headers).status_code == 404

    def test_weekly_quota(self, client: TestClient) -> None:
        headers = auth_headers(client)

        for _ in range(5):
            assert client.post("/api/chat/session/start", headers=headers).status_code == 200

        response = client.post("/api/chat/session/start", headers=headers)

        assert response.status_code == 429
        assert response.json()["limit"] == 5

    def test_unknown_conversation(self, client: TestClient) -> None:
        headers = auth_headers(client)

        response = client.post(
            "/api/chat/message",
            json={"conversationId": "conv_missing", "message": "hola"},
            headers=headers,
        )

        assert response.status_code == 404

    def test_other_users_conversation(self, client: TestClient) -> None:
        owner = auth_headers(client, email="ana@x.com")
        other = auth_headers(client, email="eva@x.com")
        conversation_id = client.post("/api/chat/session/start", headers=owner).json()["conversationId"]

        response = client.get(f"/api/chat/conversation/{conversation_id}", headers=other)

        assert response.status_code == 403


class TestProviderOutage:
    """Completion failures degrade to fallback replies."""

    @pytest.fixture
    def provider(self, provider_factory):
        return provider_factory(fail=True)

    def test_fallback_reply(self, client: TestClient) -> None:
        headers = auth_headers(client)

        response = client.post("/api/chat", json={"message": "me siento ansioso"}, headers=headers)

        assert response.status_code == 200
        data = response.json()
        assert data["type"] == "fallback"
        assert data["response"]
        assert "Técnicas de relajación" in data["suggestions"]


class TestProgressFlow:
    """Mood and progress endpoints."""

    @pytest.mark.parametrize("mood", [0, 11])
    def test_out_of_range_mood(self, client: TestClient, mood: int) -> None:
        headers = auth_headers(client)

        response = client.post("/api/progress", json={"mood": mood}, headers=headers)

        assert response.status_code == 400

    def test_mood_recorded_in_history(self, client: TestClient) -> None:
        headers = auth_headers(client)

        recorded = client.post("/api/progress", json={"mood": 7, "note": "buen día"}, headers=headers)
        history = client.get("/api/progress/mood-history", headers=headers)

        assert recorded.status_code == 200
        assert recorded.json()["moodAverage"] == 7.0
        assert history.status_code == 200
        assert [e["mood"] for e in history.json()["history"]] == [7]
        assert history.json()["history"][0]["note"] == "buen día"

    def test_overview(self, client: TestClient) -> None:
        headers = auth_headers(client)

        response = client.get("/api/progress/overview", headers=headers)

        assert response.status_code == 200
        overview = response.json()["overview"]
        assert overview["weeklyQuota"] == 5
        assert overview["goals"]


class TestHealth:
    """Health endpoints."""

    def test_health(self, client: TestClient) -> None:
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_ready(self, client: TestClient) -> None:
        response = client.get("/health/ready")

        assert response.status_code == 200
        assert response.json()["components"]["llm_configured"] is True

    def test_ready_fails_without_database(self, client: TestClient, monkeypatch) -> None:
        async def unreachable() -> bool:
            return False

        monkeypatch.setattr(client.app.state.container.db, "health_check", unreachable)

        response = client.get("/health/ready")

        assert response.status_code == 503
        assert response.json()["ready"] is False
        assert response.json()["components"]["database"] is False

    def test_correlation_id_echoed(self, client: TestClient) -> None:
        response = client.get("/health", headers={"X-Correlation-ID": "abc-123"})

        assert response.headers["X-Correlation-ID"] == "abc-123"
