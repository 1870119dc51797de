#!/usr/bin/env python3
"""Local stand-in for the Supabase auth and REST endpoints used by the client."""

from __future__ import annotations

import argparse
import json
from datetime import datetime, timezone
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any
from urllib.parse import parse_qsl, urlsplit
from uuid import uuid4

TABLES: dict[str, list[dict[str, Any]]] = {
    "users": [],
    "jobs": [],
    "job_applications": [],
    "user_profiles": [],
    "portfolio_items": [],
    "messages": [],
}
ACCOUNTS: dict[str, dict[str, Any]] = {}
TOKENS: dict[str, str] = {}


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _user_payload(account: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": account["id"],
        "email": account["email"],
        "user_metadata": account["metadata"],
        "app_metadata": {},
    }


def _matches(row: dict[str, Any], filters: list[tuple[str, str]]) -> bool:
    for column, expression in filters:
        operator, _, value = expression.partition(".")
        current = "" if row.get(column) is None else str(row.get(column))
        if operator == "eq" and current != value:
            return False
        if operator == "ilike" and value.strip("%").lower() not in current.lower():
            return False
        if operator == "in" and current not in value.strip("()").split(","):
            return False
    return True


class MockSupabaseHandler(BaseHTTPRequestHandler):
    server_version = "MockSupabase/1.0"

    def do_GET(self) -> None:  # noqa: N802 - stdlib handler signature
        path, params = self._split()
        if path == "/healthz":
            self._write_json(HTTPStatus.OK, {"status": "ok"})
            return
        if path == "/auth/v1/user":
            account = self._account_for_bearer()
            if account is None:
                self._write_json(HTTPStatus.UNAUTHORIZED, {"msg": "invalid token"})
                return
            self._write_json(HTTPStatus.OK, _user_payload(account))
            return
        table = self._table(path)
        if table is None:
            return
        filters = [(key, value) for key, value in params if key not in {"select", "order", "limit"}]
        rows = [row for row in TABLES[table] if _matches(row, filters)]
        limit = dict(params).get("limit")
        self._write_json(HTTPStatus.OK, rows[: int(limit)] if limit else rows)

    def do_POST(self) -> None:  # noqa: N802
        path, params = self._split()
        body = self._read_json()
        if path == "/auth/v1/signup":
            if any(account["email"] == body.get("email") for account in ACCOUNTS.values()):
                self._write_json(HTTPStatus.UNPROCESSABLE_ENTITY, {"msg": "User already registered"})
                return
            account = {
                "id": str(uuid4()),
                "email": body.get("email"),
                "password": body.get("password"),
                "metadata": body.get("data") or {},
            }
            ACCOUNTS[account["id"]] = account
            self._write_json(HTTPStatus.OK, self._issue_session(account))
            return
        if path == "/auth/v1/token":
            account = next(
                (
                    item
                    for item in ACCOUNTS.values()
                    if item["email"] == body.get("email") and item["password"] == body.get("password")
                ),
                None,
            )
            if account is None:
                self._write_json(
                    HTTPStatus.BAD_REQUEST,
                    {"error": "invalid_grant", "error_description": "Invalid login credentials"},
                )
                return
            self._write_json(HTTPStatus.OK, self._issue_session(account))
            return
        if path == "/auth/v1/logout":
            TOKENS.pop(self._bearer(), None)
            self._write_empty(HTTPStatus.NO_CONTENT)
            return
        table = self._table(path)
        if table is None:
            return
        created = []
        for payload in body if isinstance(body, list) else [body]:
            row = {"id": str(uuid4()), "created_at": _now(), **payload}
            if "on_conflict" in dict(params):
                key = dict(params)["on_conflict"]
                TABLES[table] = [item for item in TABLES[table] if item.get(key) != row.get(key)]
            TABLES[table].append(row)
            created.append(row)
        self._write_json(HTTPStatus.CREATED, created)

    def do_PATCH(self) -> None:  # noqa: N802
        path, params = self._split()
        table = self._table(path)
        if table is None:
            return
        values = self._read_json()
        updated = []
        for row in TABLES[table]:
            if _matches(row, params):
                row.update(values)
                row["updated_at"] = _now()
                updated.append(row)
        self._write_json(HTTPStatus.OK, updated)

    def do_DELETE(self) -> None:  # noqa: N802
        path, params = self._split()
        table = self._table(path)
        if table is None:
            return
        removed = [row for row in TABLES[table] if _matches(row, params)]
        TABLES[table] = [row for row in TABLES[table] if not _matches(row, params)]
        self._write_json(HTTPStatus.OK, removed)

    def log_message(self, _: str, *args: object) -> None:
        if args:
            print("mock-supabase:", *args)

    def _issue_session(self, account: dict[str, Any]) -> dict[str, Any]:
        token = f"token-{uuid4()}"
        TOKENS[token] = account["id"]
        return {"access_token": token, "refresh_token": f"refresh-{uuid4()}", "user": _user_payload(account)}

    def _bearer(self) -> str:
        authorization = self.headers.get("Authorization", "")
        if not authorization.lower().startswith("bearer "):
            return ""
        return authorization.split(" ", maxsplit=1)[1].strip()

    def _account_for_bearer(self) -> dict[str, Any] | None:
        user_id = TOKENS.get(self._bearer())
        return ACCOUNTS.get(user_id) if user_id else None

    def _split(self) -> tuple[str, list[tuple[str, str]]]:
        parts = urlsplit(self.path)
        return parts.path, parse_qsl(parts.query, keep_blank_values=True)

    def _table(self, path: str) -> str | None:
        prefix = "/rest/v1/"
        name = path[len(prefix) :] if path.startswith(prefix) else ""
        if name not in TABLES:
            self._write_json(HTTPStatus.NOT_FOUND, {"message": f"relation {name} does not exist", "code": "42P01"})
            return None
        return name

    def _read_json(self) -> Any:
        length = int(self.headers.get("Content-Length") or 0)
        return json.loads(self.rfile.read(length) or b"{}")

    def _write_json(self, status: HTTPStatus, payload: Any) -> None:
        raw = json.dumps(payload).encode("utf-8")
        self.send_response(status.value)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(raw)))
        self.end_headers()
        self.wfile.write(raw)

    def _write_empty(self, status: HTTPStatus) -> None:
        self.send_response(status.value)
        self.send_header("Content-Length", "0")
        self.end_headers()


def main() -> None:
    parser = argparse.ArgumentParser(description="Mock Supabase auth and REST endpoints.")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=54321)
    args = parser.parse_args()

    server = ThreadingHTTPServer((args.host, args.port), MockSupabaseHandler)
    print(f"mock-supabase listening on http://{args.host}:{args.port}", flush=True)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    finally:
        server.server_close()


if __name__ == "__main__":
    main()
