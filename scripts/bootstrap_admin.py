#!/usr/bin/env python3
"""Emit deterministic SQL that grants or revokes Jobly admin rights."""

from __future__ import annotations

import argparse


def _quote_sql(value: str) -> str:
    escaped = value.replace("'", "''")
    return f"'{escaped}'"


def render_sql(*, username: str | None, email: str | None, revoke: bool) -> str:
    is_admin = "false" if revoke else "true"
    action = "revoke" if revoke else "grant"

    if username:
        target_where = f"username = {_quote_sql(username)}"
    else:
        assert email is not None
        target_where = f"email = {_quote_sql(email)}"

    return f"""-- Jobly admin {action} SQL
-- Run this in a privileged psql session against the Jobly database.

update users
set is_admin = {is_admin}
where {target_where};

select username, is_admin
from users
where {target_where};
"""


def main() -> None:
    parser = argparse.ArgumentParser(description="Emit SQL to grant or revoke Jobly admin rights.")
    identity_group = parser.add_mutually_exclusive_group(required=True)
    identity_group.add_argument("--username", help="Jobly username")
    identity_group.add_argument("--email", help="Email address of the Jobly user")
    parser.add_argument(
        "--revoke",
        action="store_true",
        help="Remove admin rights instead of granting them",
    )
    args = parser.parse_args()

    print(render_sql(username=args.username, email=args.email, revoke=args.revoke))


if __name__ == "__main__":
    main()
