from __future__ import annotations

from decimal import Decimal, InvalidOperation
from functools import lru_cache
import logging
from typing import Any, Mapping

import asyncpg  # type: ignore[import-untyped]
from asyncpg import exceptions as pg_exc

from jobly.core.auth import UnauthorizedError
from jobly.core.config import get_settings
from jobly.core.passwords import hash_password, verify_password
from jobly.services.sql import (
    CompanyFilter,
    JobFilter,
    SqlFragment,
    build_company_filter_fragment,
    build_job_filter_fragment,
    build_update_fragment,
)

logger = logging.getLogger(__name__)


class RepositoryError(Exception):
    """Base repository error."""


class RepositoryUnavailableError(RepositoryError):
    """Raised when the database is unavailable or not configured."""


class RepositoryNotFoundError(RepositoryError):
    """Raised when the requested entity does not exist."""


class RepositoryConflictError(RepositoryError):
    """Raised when a row with the same key already exists."""


class RepositoryValidationError(RepositoryError):
    """Raised when payload validation fails before persistence."""


COMPANY_COLUMN_ALIASES = {
    "numEmployees": "num_employees",
    "logoUrl": "logo_url",
}
JOB_COLUMN_ALIASES = {
    "companyHandle": "company_handle",
}
USER_COLUMN_ALIASES = {
    "firstName": "first_name",
    "lastName": "last_name",
    "isAdmin": "is_admin",
}

COMPANY_COLUMNS_SQL = "handle, name, description, num_employees, logo_url"
JOB_COLUMNS_SQL = "id, title, salary, equity, company_handle"
USER_COLUMNS_SQL = "username, first_name, last_name, email, is_admin"


def _where_sql(fragment: SqlFragment) -> str:
    return f"WHERE {fragment.clause}" if fragment.clause else ""


class PostgresRepository:
    def __init__(
        self,
        database_url: str | None,
        min_pool_size: int,
        max_pool_size: int,
        command_timeout_seconds: float = 15.0,
        bcrypt_work_factor: int = 12,
    ) -> None:
        self.database_url = database_url
        self.min_pool_size = min_pool_size
        self.max_pool_size = max_pool_size
        self.command_timeout_seconds = command_timeout_seconds
        self.bcrypt_work_factor = max(4, bcrypt_work_factor)
        self._pool: asyncpg.Pool | None = None

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            self._pool = None

    # Companies

    async def create_company(
        self,
        *,
        handle: str,
        name: str,
        description: str | None,
        num_employees: int | None,
        logo_url: str | None,
    ) -> dict[str, Any]:
        pool = await self._get_pool()
        duplicate = await pool.fetchrow("SELECT handle FROM companies WHERE handle = $1", handle)
        if duplicate:
            raise RepositoryConflictError(f"Duplicate company: {handle}")

        try:
            row = await pool.fetchrow(
                f"""
                INSERT INTO companies (handle, name, description, num_employees, logo_url)
                VALUES ($1, $2, $3, $4, $5)
                RETURNING {COMPANY_COLUMNS_SQL}
                """,
                handle,
                name,
                description,
                num_employees,
                logo_url,
            )
        except pg_exc.UniqueViolationError as exc:
            raise RepositoryConflictError(f"Duplicate company: {handle}") from exc

        logger.info("company created handle=%s", handle)
        return self._company_row_to_dict(row)

    async def list_companies(self, filters: CompanyFilter | None = None) -> list[dict[str, Any]]:
        fragment = build_company_filter_fragment(filters or CompanyFilter())
        pool = await self._get_pool()
        rows = await pool.fetch(
            f"""
            SELECT {COMPANY_COLUMNS_SQL}
            FROM companies
            {_where_sql(fragment)}
            ORDER BY name
            """,
            *fragment.values,
        )
        return [self._company_row_to_dict(row) for row in rows]

    async def get_company(self, handle: str) -> dict[str, Any]:
        pool = await self._get_pool()
        row = await pool.fetchrow(
            f"""
            SELECT {COMPANY_COLUMNS_SQL}
            FROM companies
            WHERE handle = $1
            """,
            handle,
        )
        if not row:
            raise RepositoryNotFoundError(f"No company: {handle}")

        job_rows = await pool.fetch(
            """
            SELECT id, title, salary, equity
            FROM jobs
            WHERE company_handle = $1
            ORDER BY id
            """,
            handle,
        )
        company = self._company_row_to_dict(row)
        company["jobs"] = [
            {
                "id": job_row["id"],
                "title": job_row["title"],
                "salary": job_row["salary"],
                "equity": self._equity_to_text(job_row["equity"]),
            }
            for job_row in job_rows
        ]
        return company

    async def update_company(self, handle: str, data: Mapping[str, Any]) -> dict[str, Any]:
        fragment = build_update_fragment(data, COMPANY_COLUMN_ALIASES)
        pool = await self._get_pool()
        row = await pool.fetchrow(
            f"""
            UPDATE companies
            SET {fragment.clause}
            WHERE handle = ${fragment.next_index}
            RETURNING {COMPANY_COLUMNS_SQL}
            """,
            *fragment.values,
            handle,
        )
        if not row:
            raise RepositoryNotFoundError(f"No company: {handle}")
        return self._company_row_to_dict(row)

    async def remove_company(self, handle: str) -> None:
        pool = await self._get_pool()
        row = await pool.fetchrow("DELETE FROM companies WHERE handle = $1 RETURNING handle", handle)
        if not row:
            raise RepositoryNotFoundError(f"No company: {handle}")
        logger.info("company removed handle=%s", handle)

    # Jobs

    async def create_job(
        self,
        *,
        title: str,
        salary: int | None,
        equity: str | None,
        company_handle: str,
    ) -> dict[str, Any]:
        pool = await self._get_pool()
        company = await pool.fetchrow("SELECT handle FROM companies WHERE handle = $1", company_handle)
        if not company:
            raise RepositoryValidationError(f"Nonexistent company: {company_handle}")

        row = await pool.fetchrow(
            f"""
            INSERT INTO jobs (title, salary, equity, company_handle)
            VALUES ($1, $2, $3, $4)
            RETURNING {JOB_COLUMNS_SQL}
            """,
            title,
            salary,
            self._coerce_equity(equity),
            company_handle,
        )
        logger.info("job created id=%s company_handle=%s", row["id"], company_handle)
        return self._job_row_to_dict(row)

    async def list_jobs(self, filters: JobFilter | None = None) -> list[dict[str, Any]]:
        fragment = build_job_filter_fragment(filters or JobFilter())
        pool = await self._get_pool()
        rows = await pool.fetch(
            f"""
            SELECT {JOB_COLUMNS_SQL}
            FROM jobs
            {_where_sql(fragment)}
            ORDER BY title
            """,
            *fragment.values,
        )
        return [self._job_row_to_dict(row) for row in rows]

    async def get_job(self, job_id: int) -> dict[str, Any]:
        pool = await self._get_pool()
        row = await pool.fetchrow(
            f"""
            SELECT {JOB_COLUMNS_SQL}
            FROM jobs
            WHERE id = $1
            """,
            job_id,
        )
        if not row:
            raise RepositoryNotFoundError(f"No job: {job_id}")
        return self._job_row_to_dict(row)

    async def update_job(self, job_id: int, data: Mapping[str, Any]) -> dict[str, Any]:
        normalized = dict(data)
        if "equity" in normalized:
            normalized["equity"] = self._coerce_equity(normalized["equity"])

        fragment = build_update_fragment(normalized, JOB_COLUMN_ALIASES)
        pool = await self._get_pool()
        row = await pool.fetchrow(
            f"""
            UPDATE jobs
            SET {fragment.clause}
            WHERE id = ${fragment.next_index}
            RETURNING {JOB_COLUMNS_SQL}
            """,
            *fragment.values,
            job_id,
        )
        if not row:
            raise RepositoryNotFoundError(f"No job: {job_id}")
        return self._job_row_to_dict(row)

    async def remove_job(self, job_id: int) -> None:
        pool = await self._get_pool()
        row = await pool.fetchrow("DELETE FROM jobs WHERE id = $1 RETURNING id", job_id)
        if not row:
            raise RepositoryNotFoundError(f"No job: {job_id}")
        logger.info("job removed id=%s", job_id)

    # Users

    async def authenticate(self, *, username: str, password: str) -> dict[str, Any]:
        pool = await self._get_pool()
        row = await pool.fetchrow(
            f"""
            SELECT {USER_COLUMNS_SQL}, password
            FROM users
            WHERE username = $1
            """,
            username,
        )
        if row and verify_password(password, row["password"]):
            return self._user_row_to_dict(row)
        raise UnauthorizedError("Invalid username/password")

    async def register_user(
        self,
        *,
        username: str,
        password: str,
        first_name: str,
        last_name: str,
        email: str,
        is_admin: bool = False,
    ) -> dict[str, Any]:
        pool = await self._get_pool()
        duplicate = await pool.fetchrow("SELECT username FROM users WHERE username = $1", username)
        if duplicate:
            raise RepositoryConflictError(f"Duplicate username: {username}")

        hashed_password = hash_password(password, rounds=self.bcrypt_work_factor)
        try:
            row = await pool.fetchrow(
                f"""
                INSERT INTO users (username, password, first_name, last_name, email, is_admin)
                VALUES ($1, $2, $3, $4, $5, $6)
                RETURNING {USER_COLUMNS_SQL}
                """,
                username,
                hashed_password,
                first_name,
                last_name,
                email,
                bool(is_admin),
            )
        except pg_exc.UniqueViolationError as exc:
            raise RepositoryConflictError(f"Duplicate username: {username}") from exc

        logger.info("user registered username=%s is_admin=%s", username, bool(is_admin))
        return self._user_row_to_dict(row)

    async def list_users(self) -> list[dict[str, Any]]:
        pool = await self._get_pool()
        rows = await pool.fetch(
            f"""
            SELECT {USER_COLUMNS_SQL}
            FROM users
            ORDER BY username
            """
        )
        return [self._user_row_to_dict(row) for row in rows]

    async def get_user(self, username: str) -> dict[str, Any]:
        pool = await self._get_pool()
        row = await pool.fetchrow(
            f"""
            SELECT {USER_COLUMNS_SQL}
            FROM users
            WHERE username = $1
            """,
            username,
        )
        if not row:
            raise RepositoryNotFoundError(f"No user: {username}")

        application_rows = await pool.fetch(
            """
            SELECT job_id
            FROM applications
            WHERE username = $1
            ORDER BY job_id
            """,
            username,
        )
        user = self._user_row_to_dict(row)
        user["jobs"] = [application_row["job_id"] for application_row in application_rows]
        return user

    async def update_user(self, username: str, data: Mapping[str, Any]) -> dict[str, Any]:
        normalized = dict(data)
        if normalized.get("password") is not None:
            normalized["password"] = hash_password(normalized["password"], rounds=self.bcrypt_work_factor)

        fragment = build_update_fragment(normalized, USER_COLUMN_ALIASES)
        pool = await self._get_pool()
        row = await pool.fetchrow(
            f"""
            UPDATE users
            SET {fragment.clause}
            WHERE username = ${fragment.next_index}
            RETURNING {USER_COLUMNS_SQL}
            """,
            *fragment.values,
            username,
        )
        if not row:
            raise RepositoryNotFoundError(f"No user: {username}")
        return self._user_row_to_dict(row)

    async def remove_user(self, username: str) -> None:
        pool = await self._get_pool()
        row = await pool.fetchrow("DELETE FROM users WHERE username = $1 RETURNING username", username)
        if not row:
            raise RepositoryNotFoundError(f"No user: {username}")
        logger.info("user removed username=%s", username)

    async def apply_to_job(self, *, username: str, job_id: int) -> None:
        pool = await self._get_pool()
        job = await pool.fetchrow("SELECT id FROM jobs WHERE id = $1", job_id)
        if not job:
            raise RepositoryNotFoundError(f"No job: {job_id}")

        user = await pool.fetchrow("SELECT username FROM users WHERE username = $1", username)
        if not user:
            raise RepositoryNotFoundError(f"No username: {username}")

        try:
            await pool.execute(
                "INSERT INTO applications (job_id, username) VALUES ($1, $2)",
                job_id,
                username,
            )
        except pg_exc.UniqueViolationError as exc:
            raise RepositoryConflictError(f"Already applied: {username} -> {job_id}") from exc
        logger.info("application recorded username=%s job_id=%s", username, job_id)

    async def _get_pool(self) -> asyncpg.Pool:
        if not self.database_url:
            raise RepositoryUnavailableError("JOBLY_DATABASE_URL is required")

        if self._pool is not None:
            return self._pool

        try:
            self._pool = await asyncpg.create_pool(
                dsn=self.database_url,
                min_size=self.min_pool_size,
                max_size=self.max_pool_size,
                command_timeout=self.command_timeout_seconds,
            )
            return self._pool
        except Exception as exc:  # pragma: no cover - depends on environment
            raise RepositoryUnavailableError("database unavailable") from exc

    @staticmethod
    def _company_row_to_dict(row: Mapping[str, Any]) -> dict[str, Any]:
        return {
            "handle": row["handle"],
            "name": row["name"],
            "description": row["description"],
            "num_employees": row["num_employees"],
            "logo_url": row["logo_url"],
        }

    @classmethod
    def _job_row_to_dict(cls, row: Mapping[str, Any]) -> dict[str, Any]:
        return {
            "id": row["id"],
            "title": row["title"],
            "salary": row["salary"],
            "equity": cls._equity_to_text(row["equity"]),
            "company_handle": row["company_handle"],
        }

    @staticmethod
    def _user_row_to_dict(row: Mapping[str, Any]) -> dict[str, Any]:
        return {
            "username": row["username"],
            "first_name": row["first_name"],
            "last_name": row["last_name"],
            "email": row["email"],
            "is_admin": bool(row["is_admin"]),
        }

    @staticmethod
    def _equity_to_text(value: Any) -> str | None:
        if value is None:
            return None
        return str(value)

    @staticmethod
    def _coerce_equity(value: Any) -> Decimal | None:
        if value is None:
            return None
        try:
            return Decimal(str(value))
        except InvalidOperation as exc:
            raise RepositoryValidationError(f"invalid equity: {value}") from exc


@lru_cache
def get_repository() -> PostgresRepository:
    settings = get_settings()
    return PostgresRepository(
        database_url=settings.database_url,
        min_pool_size=settings.database_pool_min_size,
        max_pool_size=settings.database_pool_max_size,
        command_timeout_seconds=settings.database_command_timeout_seconds,
        bcrypt_work_factor=settings.bcrypt_work_factor,
    )
