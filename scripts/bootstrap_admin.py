#!/usr/bin/env python3
"""Emit SQL that sets a marketplace user's role or subscription tier."""

from __future__ import annotations

import argparse


def _quote_sql(value: str) -> str:
    escaped = value.replace("'", "''")
    return f"'{escaped}'"


def render_sql(*, role: str | None, tier: str | None, user_id: str | None, email: str | None) -> str:
    assignments = []
    if role:
        assignments.append(f"role = {_quote_sql(role)}")
    if tier:
        assignments.append(f"subscription_status = {_quote_sql(tier)}")
    assignments.append("updated_at = now()")

    if user_id:
        target_where = f"id = {_quote_sql(user_id)}::uuid"
    else:
        assert email is not None
        target_where = f"email = {_quote_sql(email)}"

    return f"""-- Marketplace user bootstrap SQL
-- Run this in the Supabase SQL editor (or equivalent privileged Postgres session).

update public.users
set {", ".join(assignments)}
where {target_where};
"""


def main() -> None:
    parser = argparse.ArgumentParser(description="Emit SQL to set a marketplace user's role or tier.")
    parser.add_argument(
        "--role",
        choices=["boutique", "tailor", "admin"],
        default=None,
        help="Role to store in public.users.role",
    )
    parser.add_argument(
        "--tier",
        choices=["free", "basic", "premium"],
        default=None,
        help="Tier to store in public.users.subscription_status",
    )
    identity_group = parser.add_mutually_exclusive_group(required=True)
    identity_group.add_argument("--user-id", help="users.id (UUID)")
    identity_group.add_argument("--email", help="users.email")
    args = parser.parse_args()

    role = args.role if args.role or args.tier else "admin"
    print(render_sql(role=role, tier=args.tier, user_id=args.user_id, email=args.email))


if __name__ == "__main__":
    main()
