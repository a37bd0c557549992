from __future__ import annotations

from typing import Any, Callable, Iterator, Mapping

import pytest
from fastapi.testclient import TestClient

from jobly.core.auth import UnauthorizedError
from jobly.core.config import get_settings
from jobly.core.tokens import create_token
from jobly.main import app
from jobly.services.repository import (
    RepositoryConflictError,
    RepositoryNotFoundError,
    RepositoryValidationError,
    get_repository,
)
from jobly.services.sql import (
    CompanyFilter,
    JobFilter,
    build_company_filter_fragment,
    build_job_filter_fragment,
    build_update_fragment,
)

_COMPANY_FIELDS = {"name": "name", "description": "description", "numEmployees": "num_employees", "logoUrl": "logo_url"}
_JOB_FIELDS = {"title": "title", "salary": "salary", "equity": "equity"}
_USER_FIELDS = {"password": "password", "firstName": "first_name", "lastName": "last_name", "email": "email"}


class FakeJoblyRepository:
    """In-memory stand-in that mirrors the repository's filter and error semantics."""

    def __init__(self) -> None:
        self.companies: dict[str, dict[str, Any]] = {
            "c1": {"handle": "c1", "name": "C1", "description": "Desc1", "num_employees": 1, "logo_url": None},
            "c2": {"handle": "c2", "name": "C2", "description": "Desc2", "num_employees": 2, "logo_url": None},
            "c3": {"handle": "c3", "name": "C3", "description": "Desc3", "num_employees": 3, "logo_url": None},
        }
        self.jobs: dict[int, dict[str, Any]] = {
            1: {"id": 1, "title": "j1", "salary": 10, "equity": "0", "company_handle": "c1"},
            2: {"id": 2, "title": "j2", "salary": 20, "equity": "0.5", "company_handle": "c2"},
        }
        self.users: dict[str, dict[str, Any]] = {
            "u1": {
                "username": "u1",
                "first_name": "U1F",
                "last_name": "U1L",
                "email": "user1@user.com",
                "is_admin": False,
                "password": "password1",
            },
            "u2": {
                "username": "u2",
                "first_name": "U2F",
                "last_name": "U2L",
                "email": "user2@user.com",
                "is_admin": False,
                "password": "password2",
            },
        }
        self.applications: set[tuple[str, int]] = set()
        self.last_update: Mapping[str, Any] | None = None

    async def create_company(self, **company: Any) -> dict[str, Any]:
        if company["handle"] in self.companies:
            raise RepositoryConflictError(f"Duplicate company: {company['handle']}")
        self.companies[company["handle"]] = dict(company)
        return dict(company)

    async def list_companies(self, filters: CompanyFilter | None = None) -> list[dict[str, Any]]:
        filters = filters or CompanyFilter()
        build_company_filter_fragment(filters)
        rows = sorted(self.companies.values(), key=lambda row: row["name"])
        if filters.name_like:
            rows = [row for row in rows if filters.name_like.lower() in row["name"].lower()]
        if filters.min_employees is not None:
            rows = [row for row in rows if (row["num_employees"] or 0) >= filters.min_employees]
        if filters.max_employees is not None:
            rows = [row for row in rows if (row["num_employees"] or 0) <= filters.max_employees]
        return [dict(row) for row in rows]

    async def get_company(self, handle: str) -> dict[str, Any]:
        if handle not in self.companies:
            raise RepositoryNotFoundError(f"No company: {handle}")
        company = dict(self.companies[handle])
        company["jobs"] = [
            {key: job[key] for key in ("id", "title", "salary", "equity")}
            for job in self.jobs.values()
            if job["company_handle"] == handle
        ]
        return company

    async def update_company(self, handle: str, data: Mapping[str, Any]) -> dict[str, Any]:
        build_update_fragment(data, {})
        self.last_update = dict(data)
        if handle not in self.companies:
            raise RepositoryNotFoundError(f"No company: {handle}")
        for field, value in data.items():
            self.companies[handle][_COMPANY_FIELDS[field]] = value
        return dict(self.companies[handle])

    async def remove_company(self, handle: str) -> None:
        if self.companies.pop(handle, None) is None:
            raise RepositoryNotFoundError(f"No company: {handle}")

    async def create_job(self, **job: Any) -> dict[str, Any]:
        if job["company_handle"] not in self.companies:
            raise RepositoryValidationError(f"Nonexistent company: {job['company_handle']}")
        job_id = max(self.jobs, default=0) + 1
        self.jobs[job_id] = {"id": job_id, **job}
        return dict(self.jobs[job_id])

    async def list_jobs(self, filters: JobFilter | None = None) -> list[dict[str, Any]]:
        filters = filters or JobFilter()
        build_job_filter_fragment(filters)
        rows = sorted(self.jobs.values(), key=lambda row: row["title"])
        if filters.title:
            rows = [row for row in rows if filters.title.lower() in row["title"].lower()]
        if filters.min_salary is not None:
            rows = [row for row in rows if (row["salary"] or 0) >= filters.min_salary]
        if filters.has_equity:
            rows = [row for row in rows if float(row["equity"] or 0) > 0]
        return [dict(row) for row in rows]

    async def get_job(self, job_id: int) -> dict[str, Any]:
        if job_id not in self.jobs:
            raise RepositoryNotFoundError(f"No job: {job_id}")
        return dict(self.jobs[job_id])

    async def update_job(self, job_id: int, data: Mapping[str, Any]) -> dict[str, Any]:
        build_update_fragment(data, {})
        self.last_update = dict(data)
        if job_id not in self.jobs:
            raise RepositoryNotFoundError(f"No job: {job_id}")
        for field, value in data.items():
            self.jobs[job_id][_JOB_FIELDS[field]] = value
        return dict(self.jobs[job_id])

    async def remove_job(self, job_id: int) -> None:
        if self.jobs.pop(job_id, None) is None:
            raise RepositoryNotFoundError(f"No job: {job_id}")

    async def authenticate(self, *, username: str, password: str) -> dict[str, Any]:
        user = self.users.get(username)
        if user and user["password"] == password:
            return self._public_user(user)
        raise UnauthorizedError("Invalid username/password")

    async def register_user(self, **user: Any) -> dict[str, Any]:
        if user["username"] in self.users:
            raise RepositoryConflictError(f"Duplicate username: {user['username']}")
        self.users[user["username"]] = dict(user)
        return self._public_user(user)

    async def list_users(self) -> list[dict[str, Any]]:
        return [self._public_user(user) for _, user in sorted(self.users.items())]

    async def get_user(self, username: str) -> dict[str, Any]:
        if username not in self.users:
            raise RepositoryNotFoundError(f"No user: {username}")
        user = self._public_user(self.users[username])
        user["jobs"] = sorted(job_id for applicant, job_id in self.applications if applicant == username)
        return user

    async def update_user(self, username: str, data: Mapping[str, Any]) -> dict[str, Any]:
        build_update_fragment(data, {})
        self.last_update = dict(data)
        if username not in self.users:
            raise RepositoryNotFoundError(f"No user: {username}")
        for field, value in data.items():
            self.users[username][_USER_FIELDS[field]] = value
        return self._public_user(self.users[username])

    async def remove_user(self, username: str) -> None:
        if self.users.pop(username, None) is None:
            raise RepositoryNotFoundError(f"No user: {username}")

    async def apply_to_job(self, *, username: str, job_id: int) -> None:
        if job_id not in self.jobs:
            raise RepositoryNotFoundError(f"No job: {job_id}")
        if username not in self.users:
            raise RepositoryNotFoundError(f"No username: {username}")
        if (username, job_id) in self.applications:
            raise RepositoryConflictError(f"Already applied: {username} -> {job_id}")
        self.applications.add((username, job_id))

    @staticmethod
    def _public_user(user: Mapping[str, Any]) -> dict[str, Any]:
        return {key: user[key] for key in ("username", "first_name", "last_name", "email")} | {
            "is_admin": bool(user.get("is_admin", False))
        }


@pytest.fixture
def fake_repo() -> FakeJoblyRepository:
    return FakeJoblyRepository()


@pytest.fixture
def client(fake_repo: FakeJoblyRepository) -> Iterator[TestClient]:
    app.dependency_overrides[get_repository] = lambda: fake_repo
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def auth_header(username: str, *, is_admin: bool = False) -> dict[str, str]:
    token = create_token(username=username, is_admin=is_admin, settings=get_settings())
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def token_headers() -> Callable[..., dict[str, str]]:
    return auth_header


@pytest.fixture
def u1_headers() -> dict[str, str]:
    return auth_header("u1")


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return auth_header("admin", is_admin=True)
