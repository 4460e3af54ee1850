"""Shared helpers for API tests."""

from typing import Any

from httpx import AsyncClient

from educrm.container import Container
from educrm.models import Role, User

API = "/api/v1"


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


async def seed_user(
    container: Container,
    email: str,
    password: str,
    role: Role = Role.ADMIN,
    **fields: Any,
) -> User:
    """Insert a user directly, bypassing the password length rule of the API."""
    user = User(
        email=email.lower(),
        password_hash=container.hasher.hash(password),
        role=role.value,
        first_name=fields.pop("first_name", "Test"),
        last_name=fields.pop("last_name", role.value.title()),
        is_active=fields.pop("is_active", True),
        **fields,
    )
    async with container.database.session() as db:
        db.add(user)
    return user


async def login(client: AsyncClient, email: str, password: str) -> dict[str, Any]:
    response = await client.post(f"{API}/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return response.json()["data"]


async def create_course(client: AsyncClient, headers: dict, code: str = "PY101") -> dict[str, Any]:
    response = await client.post(
        f"{API}/courses", json={"name": f"Course {code}", "code": code}, headers=headers
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


async def create_group(
    client: AsyncClient,
    headers: dict,
    course_id: str,
    capacity: int = 2,
    **fields: Any,
) -> dict[str, Any]:
    payload = {"name": fields.pop("name", "Morning"), "course_id": course_id, "capacity": capacity, **fields}
    response = await client.post(f"{API}/groups", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


async def create_student(client: AsyncClient, headers: dict, first_name: str, last_name: str = "Student") -> dict[str, Any]:
    response = await client.post(
        f"{API}/students",
        json={"first_name": first_name, "last_name": last_name},
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


async def enroll(client: AsyncClient, headers: dict, group_id: str, student_id: str):
    return await client.post(
        f"{API}/groups/{group_id}/enrollments", json={"student_id": student_id}, headers=headers
    )
