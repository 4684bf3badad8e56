#!/usr/bin/env python3
"""Emit deterministic SQL that promotes a user to admin in the document store."""

from __future__ import annotations

import argparse


def _quote_sql(value: str) -> str:
    escaped = value.replace("'", "''")
    return f"'{escaped}'"


def render_sql(*, user_id: str | None, email: str | None, name: str | None = None) -> str:
    patch = "jsonb_build_object('role', 'admin', 'leader_status', null)"

    if user_id:
        document = (
            f"jsonb_build_object('id', {_quote_sql(user_id)}, 'name', {_quote_sql(name or '')}, "
            f"'role', 'admin', 'leader_status', null, 'stake', '', 'ward', '', 'phone', '')"
        )
        return f"""-- Admin bootstrap SQL
-- Run this in a privileged Postgres session against the API database.

insert into documents (collection, id, data)
values ('users', {_quote_sql(user_id)}, {document})
on conflict (collection, id) do update
set data = documents.data || {patch};
"""

    assert email is not None
    return f"""-- Admin bootstrap SQL
-- Run this in a privileged Postgres session against the API database.

update documents
set data = data || {patch}
where collection = 'users'
  and lower(data->>'email') = {_quote_sql(email.strip().lower())};
"""


def main() -> None:
    parser = argparse.ArgumentParser(description="Emit SQL to promote a user to admin.")
    identity_group = parser.add_mutually_exclusive_group(required=True)
    identity_group.add_argument("--user-id", help="Auth provider user id")
    identity_group.add_argument("--email", help="Email of an already provisioned user")
    parser.add_argument("--name", default=None, help="Display name used when the user document is created")
    args = parser.parse_args()

    print(render_sql(user_id=args.user_id, email=args.email, name=args.name))


if __name__ == "__main__":
    main()
