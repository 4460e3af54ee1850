"""Tests for login, session resolution and revocation over HTTP."""

import json
from datetime import datetime, timedelta

from sqlalchemy import select, update

from educrm.models import AuditLog, Role, User, UserSession
from educrm.models.base import utcnow
from educrm.utils.security import hash_token
from tests.helpers import API, bearer, login, seed_user


async def _sessions(container) -> list[UserSession]:
    async with container.database.session() as db:
        result = await db.execute(select(UserSession))
        return list(result.scalars().all())


async def _audit_rows(container, **criteria) -> list[AuditLog]:
    async with container.database.session() as db:
        query = select(AuditLog).order_by(AuditLog.seq)
        for key, value in criteria.items():
            query = query.where(getattr(AuditLog, key) == value)
        result = await db.execute(query)
        return list(result.scalars().all())


class TestLogin:
    """Tests for credential checks."""

    async def test_session_lifecycle(self, client, container):
        """Test login, listing the session, logout and rejection of the old token."""
        await seed_user(container, "ada@x.io", "hunter2", Role.STAFF, first_name="Ada")

        data = await login(client, "ada@x.io", "hunter2")
        token = data["token"]
        assert len(token) >= 22
        assert data["token_type"] == "bearer"
        assert data["user"]["email"] == "ada@x.io"

        response = await client.get(f"{API}/auth/sessions", headers=bearer(token))
        assert response.status_code == 200
        sessions = response.json()["data"]
        assert len(sessions) == 1
        assert sessions[0]["id"] == data["session_id"]
        assert sessions[0]["is_current"] is True

        response = await client.post(f"{API}/auth/logout", headers=bearer(token))
        assert response.status_code == 200

        response = await client.get(f"{API}/auth/sessions", headers=bearer(token))
        assert response.status_code == 401
        body = response.json()
        assert body["success"] is False
        assert body["code"] == "INVALID_TOKEN"

    async def test_email_is_case_insensitive(self, client, container):
        await seed_user(container, "ada@x.io", "hunter2", Role.STAFF)
        data = await login(client, "  ADA@X.io ", "hunter2")
        assert data["user"]["email"] == "ada@x.io"

    async def test_wrong_password_and_unknown_email_look_the_same(self, client, container):
        """Test that both failures return the same body and are audited."""
        await seed_user(container, "ada@x.io", "hunter2", Role.STAFF)

        wrong = await client.post(f"{API}/auth/login", json={"email": "ada@x.io", "password": "nope"})
        unknown = await client.post(f"{API}/auth/login", json={"email": "bob@x.io", "password": "nope"})

        assert wrong.status_code == unknown.status_code == 401
        assert wrong.json() == unknown.json()
        assert wrong.json()["code"] == "UNAUTHORIZED"
        assert wrong.json()["details"]["reason"] == "invalid_credentials"

        failures = await _audit_rows(container, action="login", success=False)
        assert [row.new_value["email"] for row in failures] == ["ada@x.io", "bob@x.io"]
        assert all("nope" not in json.dumps(row.new_value) for row in failures)

    async def test_inactive_user_cannot_log_in(self, client, container):
        await seed_user(container, "ada@x.io", "hunter2", Role.STAFF, is_active=False)
        response = await client.post(f"{API}/auth/login", json={"email": "ada@x.io", "password": "hunter2"})
        assert response.status_code == 401
        assert response.json()["details"]["reason"] == "invalid_credentials"

    async def test_only_the_token_digest_is_stored(self, client, container):
        await seed_user(container, "ada@x.io", "hunter2", Role.STAFF)
        data = await login(client, "ada@x.io", "hunter2")
        token = data["token"]

        stored = await _sessions(container)
        assert len(stored) == 1
        assert stored[0].token_hash == hash_token(token)
        assert stored[0].token_hash != token

        for row in await _audit_rows(container):
            assert token not in json.dumps(row.new_value or {})

    async def test_successful_login_is_audited(self, client, container):
        user = await seed_user(container, "ada@x.io", "hunter2", Role.STAFF)
        data = await login(client, "ada@x.io", "hunter2")

        rows = await _audit_rows(container, action="login", success=True)
        assert len(rows) == 1
        assert rows[0].user_id == user.id
        assert rows[0].resource_id == data["session_id"]


class TestTokenResolution:
    """Tests for the bearer token middleware."""

    async def test_missing_token(self, client):
        response = await client.get(f"{API}/auth/me")
        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"
        body = response.json()
        assert body["code"] == "UNAUTHORIZED"
        assert body["details"]["reason"] == "token_missing"

    async def test_malformed_header_counts_as_missing(self, client):
        response = await client.get(f"{API}/auth/me", headers={"Authorization": "Basic abc"})
        assert response.status_code == 401
        assert response.json()["details"]["reason"] == "token_missing"

    async def test_unknown_token(self, client):
        response = await client.get(f"{API}/auth/me", headers=bearer("x" * 43))
        assert response.status_code == 401
        assert response.json()["code"] == "INVALID_TOKEN"

    async def test_scheme_is_case_insensitive(self, client, container):
        await seed_user(container, "ada@x.io", "hunter2", Role.STAFF)
        data = await login(client, "ada@x.io", "hunter2")
        response = await client.get(f"{API}/auth/me", headers={"Authorization": f"bearer {data['token']}"})
        assert response.status_code == 200
        assert response.json()["data"]["email"] == "ada@x.io"

    async def test_expired_token(self, client, container):
        await seed_user(container, "ada@x.io", "hunter2", Role.STAFF)
        data = await login(client, "ada@x.io", "hunter2")

        async with container.database.session() as db:
            await db.execute(update(UserSession).values(expires_at=utcnow() - timedelta(minutes=1)))

        response = await client.get(f"{API}/auth/me", headers=bearer(data["token"]))
        assert response.status_code == 401
        assert response.json()["code"] == "TOKEN_EXPIRED"

    async def test_deactivated_user_is_rejected(self, client, container):
        await seed_user(container, "ada@x.io", "hunter2", Role.STAFF)
        data = await login(client, "ada@x.io", "hunter2")

        async with container.database.session() as db:
            await db.execute(update(User).values(is_active=False))

        response = await client.get(f"{API}/auth/me", headers=bearer(data["token"]))
        assert response.status_code == 401
        assert response.json()["details"]["reason"] == "user_inactive"

    async def test_resolution_does_not_extend_expiry(self, client, container):
        await seed_user(container, "ada@x.io", "hunter2", Role.STAFF)
        data = await login(client, "ada@x.io", "hunter2")
        before = (await _sessions(container))[0].expires_at

        for _ in range(3):
            assert (await client.get(f"{API}/auth/me", headers=bearer(data["token"]))).status_code == 200

        assert (await _sessions(container))[0].expires_at == before

    async def test_last_seen_is_coalesced(self, client, container):
        """Test that last_seen_at is written at most once per touch interval."""
        await seed_user(container, "ada@x.io", "hunter2", Role.STAFF)
        data = await login(client, "ada@x.io", "hunter2")
        issued = (await _sessions(container))[0]

        for _ in range(2):
            assert (await client.get(f"{API}/auth/me", headers=bearer(data["token"]))).status_code == 200
        assert (await _sessions(container))[0].last_seen_at == issued.last_seen_at

        stale = utcnow() - container.settings.session_touch_interval - timedelta(seconds=5)
        async with container.database.session() as db:
            await db.execute(update(UserSession).values(last_seen_at=stale))

        assert (await client.get(f"{API}/auth/me", headers=bearer(data["token"]))).status_code == 200
        touched = (await _sessions(container))[0]
        assert touched.last_seen_at > stale + container.settings.session_touch_interval
        assert touched.expires_at == issued.expires_at

    async def test_request_id_is_echoed(self, client):
        response = await client.get("/health", headers={"X-Request-ID": "abc-123"})
        assert response.headers["x-request-id"] == "abc-123"

        response = await client.get("/health", headers={"X-Request-ID": "bad id with spaces"})
        assert response.headers["x-request-id"] != "bad id with spaces"


class TestSessionManagement:
    """Tests for revoking and refreshing sessions."""

    async def test_revoke_other_session(self, client, container):
        await seed_user(container, "ada@x.io", "hunter2", Role.STAFF)
        first = await login(client, "ada@x.io", "hunter2")
        second = await login(client, "ada@x.io", "hunter2")

        listed = await client.get(f"{API}/auth/sessions", headers=bearer(first["token"]))
        assert len(listed.json()["data"]) == 2

        response = await client.delete(
            f"{API}/auth/sessions/{second['session_id']}", headers=bearer(first["token"])
        )
        assert response.status_code == 200

        assert (await client.get(f"{API}/auth/me", headers=bearer(second["token"]))).status_code == 401
        assert (await client.get(f"{API}/auth/me", headers=bearer(first["token"]))).status_code == 200

    async def test_cannot_revoke_another_users_session(self, client, container):
        await seed_user(container, "ada@x.io", "hunter2", Role.STAFF)
        await seed_user(container, "bob@x.io", "hunter2", Role.STAFF)
        ada = await login(client, "ada@x.io", "hunter2")
        bob = await login(client, "bob@x.io", "hunter2")

        response = await client.delete(f"{API}/auth/sessions/{bob['session_id']}", headers=bearer(ada["token"]))
        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"
        assert (await client.get(f"{API}/auth/me", headers=bearer(bob["token"]))).status_code == 200

    async def test_revoke_all(self, client, container):
        await seed_user(container, "ada@x.io", "hunter2", Role.STAFF)
        first = await login(client, "ada@x.io", "hunter2")
        second = await login(client, "ada@x.io", "hunter2")

        response = await client.post(f"{API}/auth/sessions/revoke-all", headers=bearer(first["token"]))
        assert response.status_code == 200
        assert response.json()["data"]["revoked"] == 2

        for token in (first["token"], second["token"]):
            response = await client.get(f"{API}/auth/me", headers=bearer(token))
            assert response.json()["code"] == "INVALID_TOKEN"

    async def test_refresh_extends_expiry(self, client, container):
        await seed_user(container, "ada@x.io", "hunter2", Role.STAFF)
        data = await login(client, "ada@x.io", "hunter2")
        soon = utcnow() + timedelta(minutes=5)

        async with container.database.session() as db:
            await db.execute(update(UserSession).values(expires_at=soon))

        response = await client.post(f"{API}/auth/refresh", headers=bearer(data["token"]))
        assert response.status_code == 200
        refreshed = datetime.fromisoformat(response.json()["data"]["expires_at"])
        assert refreshed > soon + timedelta(hours=23)
