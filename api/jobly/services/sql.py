"""Parameterized SQL fragments for partial updates and list filters.

Every builder returns a :class:`SqlFragment` whose ``$n`` placeholders line up
one-to-one with ``values``. Builders never prefix ``SET`` or ``WHERE``; the
repository glues fragments into full statements and owns any trailing
parameters.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping


class SqlFragmentError(ValueError):
    """Base error for fragment builders."""


class EmptyUpdateError(SqlFragmentError):
    """Raised when a partial update carries no fields."""


class InvalidRangeError(SqlFragmentError):
    """Raised when a filter's lower bound exceeds its upper bound."""


@dataclass(frozen=True, slots=True)
class SqlFragment:
    clause: str
    values: tuple[Any, ...]

    @property
    def next_index(self) -> int:
        """Placeholder number the caller should use for its next parameter."""
        return len(self.values) + 1


@dataclass(frozen=True, slots=True)
class CompanyFilter:
    name_like: str | None = None
    min_employees: int | None = None
    max_employees: int | None = None


@dataclass(frozen=True, slots=True)
class JobFilter:
    title: str | None = None
    min_salary: int | None = None
    has_equity: bool | None = None


def quote_identifier(name: str) -> str:
    escaped = name.replace('"', '""')
    return f'"{escaped}"'


def build_update_fragment(data: Mapping[str, Any], column_aliases: Mapping[str, str]) -> SqlFragment:
    """Build the body of a ``SET`` clause from a field map.

    ``build_update_fragment({"firstName": "Aliya", "age": 32}, {"firstName": "first_name"})``
    gives ``'"first_name"=$1, "age"=$2'`` with values ``("Aliya", 32)``.
    Values pass through untouched, ``None`` included.
    """
    if not data:
        raise EmptyUpdateError("no data to update")

    assignments: list[str] = []
    values: list[Any] = []
    for index, (field, value) in enumerate(data.items(), start=1):
        column = column_aliases.get(field, field)
        assignments.append(f"{quote_identifier(column)}=${index}")
        values.append(value)

    return SqlFragment(clause=", ".join(assignments), values=tuple(values))


def build_company_filter_fragment(criteria: CompanyFilter) -> SqlFragment:
    """Build the body of a ``WHERE`` clause for the company list.

    Predicates come in a fixed order: name substring, minimum employees,
    maximum employees. A bound of ``0`` is a real bound; an empty name is
    ignored.
    """
    min_employees = criteria.min_employees
    max_employees = criteria.max_employees
    if min_employees is not None and max_employees is not None and min_employees > max_employees:
        raise InvalidRangeError("minEmployees cannot be greater than maxEmployees")

    conditions: list[str] = []
    params: list[Any] = []

    def bind(value: Any) -> str:
        params.append(value)
        return f"${len(params)}"

    if criteria.name_like:
        conditions.append(f"name ILIKE '%' || {bind(criteria.name_like)} || '%'")
    if min_employees is not None:
        conditions.append(f"num_employees >= {bind(min_employees)}")
    if max_employees is not None:
        conditions.append(f"num_employees <= {bind(max_employees)}")

    return SqlFragment(clause=" AND ".join(conditions), values=tuple(params))


def build_job_filter_fragment(criteria: JobFilter) -> SqlFragment:
    """Build the body of a ``WHERE`` clause for the job list.

    ``has_equity=True`` adds the literal ``equity > 0`` and binds nothing.
    ``False`` and ``None`` both mean "any equity", so no predicate is added.
    """
    conditions: list[str] = []
    params: list[Any] = []

    def bind(value: Any) -> str:
        params.append(value)
        return f"${len(params)}"

    if criteria.title:
        conditions.append(f"title ILIKE '%' || {bind(criteria.title)} || '%'")
    if criteria.min_salary is not None:
        conditions.append(f"salary >= {bind(criteria.min_salary)}")
    if criteria.has_equity:
        conditions.append("equity > 0")

    return SqlFragment(clause=" AND ".join(conditions), values=tuple(params))
