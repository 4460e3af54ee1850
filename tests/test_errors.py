"""Tests for the response envelopes and request validation."""

from sqlalchemy.engine import make_url

from educrm.config import Settings
from educrm.exceptions import ERROR_STATUS, ErrorCode
from tests.helpers import API


class TestEnvelope:
    """Tests for success and error envelopes."""

    async def test_health_is_public(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    async def test_unknown_route(self, client, admin_headers):
        response = await client.get(f"{API}/nope", headers=admin_headers)
        assert response.status_code == 404
        assert response.json() == {"success": False, "code": "NOT_FOUND", "message": "Not Found"}

    async def test_missing_resource(self, client, admin_headers):
        response = await client.get(f"{API}/courses/00000000-0000-0000-0000-000000000000", headers=admin_headers)
        assert response.status_code == 404
        assert response.json()["message"] == "Course not found"

    async def test_malformed_id_is_a_validation_error(self, client, admin_headers):
        response = await client.get(f"{API}/courses/not-a-uuid", headers=admin_headers)
        assert response.status_code == 422
        body = response.json()
        assert body["code"] == "VALIDATION_ERROR"
        assert body["details"]["errors"][0]["field"] == "path.course_id"

    async def test_success_envelope_with_pagination(self, client, admin_headers, course):
        response = await client.get(f"{API}/courses", headers=admin_headers)
        body = response.json()
        assert body["success"] is True
        assert body["data"][0]["code"] == course["code"]
        assert body["pagination"] == {"page": 1, "page_size": 10, "total": 1, "total_pages": 1}


class TestPagination:
    """Tests for list query bounds."""

    async def test_page_size_over_limit(self, client, admin_headers):
        response = await client.get(f"{API}/courses", params={"page_size": 101}, headers=admin_headers)
        assert response.status_code == 422
        assert response.json()["details"]["errors"][0]["field"] == "page_size"

    async def test_unknown_sort_field(self, client, admin_headers):
        response = await client.get(f"{API}/courses", params={"sort": "password"}, headers=admin_headers)
        assert response.status_code == 422

    async def test_search_and_paging(self, client, admin_headers):
        for code in ("PY101", "PY102", "JS101"):
            await client.post(f"{API}/courses", json={"name": f"Course {code}", "code": code}, headers=admin_headers)

        response = await client.get(
            f"{API}/courses",
            params={"search": "py", "page_size": 1, "page": 2, "sort": "code", "order": "asc"},
            headers=admin_headers,
        )
        body = response.json()
        assert [c["code"] for c in body["data"]] == ["PY102"]
        assert body["pagination"]["total"] == 2
        assert body["pagination"]["total_pages"] == 2

    async def test_search_treats_wildcards_literally(self, client, admin_headers):
        """Test that % and _ in the search text match only themselves."""
        for name, code in (("Alpha", "A_B"), ("Beta", "AXB")):
            await client.post(f"{API}/courses", json={"name": name, "code": code}, headers=admin_headers)

        underscore = await client.get(f"{API}/courses", params={"search": "_"}, headers=admin_headers)
        assert [c["code"] for c in underscore.json()["data"]] == ["A_B"]

        percent = await client.get(f"{API}/courses", params={"search": "%"}, headers=admin_headers)
        assert percent.json()["data"] == []


class TestConfiguration:
    """Tests for settings parsing and the status table."""

    def test_every_code_has_a_status(self):
        assert set(ERROR_STATUS) == set(ErrorCode)
        assert ERROR_STATUS[ErrorCode.CAPACITY_EXCEEDED] == 409
        assert ERROR_STATUS[ErrorCode.TOKEN_EXPIRED] == 401

    def test_listen_addr(self):
        settings = Settings(_env_file=None, listen_addr="127.0.0.1:9000")
        assert settings.listen_host == "127.0.0.1"
        assert settings.listen_port == 9000

    def test_database_url_is_made_async(self):
        settings = Settings(_env_file=None, database_url="postgres://u:p@db:5432/educrm")
        assert settings.async_database_url == "postgresql+asyncpg://u:p@db:5432/educrm"
        assert settings.sync_database_url == "postgresql://u:p@db:5432/educrm"

    def test_url_from_parts(self):
        settings = Settings(_env_file=None, db_host="db", db_password="s3cret", db_name="crm")
        assert settings.async_database_url == "postgresql+asyncpg://educrm:s3cret@db:5432/crm"
        assert "s3cret" not in repr(settings)

    def test_url_escapes_credentials(self):
        settings = Settings(_env_file=None, db_user="ed@min", db_password="p@ss/w:rd", db_host="db.internal")
        url = make_url(settings.async_database_url)
        assert url.host == "db.internal"
        assert url.username == "ed@min"
        assert url.password == "p@ss/w:rd"
        assert url.port == 5432

    def test_url_without_password(self):
        settings = Settings(_env_file=None, db_host="db")
        assert settings.async_database_url == "postgresql+asyncpg://educrm@db:5432/educrm"
