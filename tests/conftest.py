from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
import json
from typing import Any

import httpx
import pytest

from tailorboard.context import MarketplaceContext, build_context
from tailorboard.core.config import Settings

ANON_KEY = "anon-key"
BASE_URL = "https://example.supabase.co"
TABLES = ("users", "jobs", "job_applications", "user_profiles", "portfolio_items", "messages")


class InMemorySupabase:
    """Just enough PostgREST and GoTrue behaviour to drive the client end to end."""

    def __init__(self) -> None:
        self.tables: dict[str, list[dict[str, Any]]] = {name: [] for name in TABLES}
        self.accounts: dict[str, dict[str, Any]] = {}
        self.tokens: dict[str, str] = {}
        self.calls: list[tuple[str, str]] = []
        self.auto_confirm = True
        self.users_trigger = False
        self.fail_logout = False
        self.failing: set[tuple[str, str]] = set()
        self._clock = datetime(2026, 1, 1, tzinfo=timezone.utc)
        self._ids = 0

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def yielding_transport(self) -> httpx.MockTransport:
        """Let other tasks run before each response, so overlapping calls interleave."""

        async def handler(request: httpx.Request) -> httpx.Response:
            await asyncio.sleep(0)
            return self.handler(request)

        return httpx.MockTransport(handler)

    # seeding

    def add_user(
        self,
        email: str,
        *,
        role: str,
        tier: str = "free",
        password: str = "secret123",
        with_row: bool = True,
    ) -> str:
        user_id = self._next_id("user")
        self.accounts[email] = {"id": user_id, "email": email, "password": password, "metadata": {"role": role}}
        if with_row:
            self.tables["users"].append(
                {
                    "id": user_id,
                    "email": email,
                    "role": role,
                    "subscription_status": tier,
                    "created_at": self._tick(),
                    "updated_at": self._tick(),
                }
            )
        return user_id

    def add_row(self, table: str, **values: Any) -> dict[str, Any]:
        row = {"id": self._next_id(table), "created_at": self._tick(), **values}
        self.tables[table].append(row)
        return row

    def add_job(self, posted_by: str, **overrides: Any) -> dict[str, Any]:
        values = {
            "title": "Bridal lehenga alterations",
            "description": "Hand embroidery touch-ups on two lehengas",
            "budget_min": 15000,
            "budget_max": 25000,
            "location": "Mumbai",
            "deadline": "2027-03-01T00:00:00+00:00",
            "requirements": "",
            "status": "open",
            "job_type": "contract",
            "boutique_id": posted_by,
        }
        values.update(overrides)
        return self.add_row("jobs", **values)

    def revoke_tokens(self) -> None:
        self.tokens.clear()

    # transport

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.calls.append((request.method, path))
        if path.startswith("/auth/v1/"):
            return self._auth(request, path.removeprefix("/auth/v1/"))
        if path.startswith("/rest/v1/"):
            table = path.removeprefix("/rest/v1/")
            if not self._authorized(request):
                return httpx.Response(401, json={"message": "JWT expired", "code": "PGRST301"})
            if (request.method, table) in self.failing:
                return httpx.Response(500, json={"message": "internal server error", "code": "XX000"})
            return self._rest(request, table)
        return httpx.Response(404, json={"message": "not found"})

    def _auth(self, request: httpx.Request, endpoint: str) -> httpx.Response:
        if endpoint == "signup":
            body = json.loads(request.content)
            if body["email"] in self.accounts:
                return httpx.Response(
                    422,
                    json={"code": 422, "error_code": "user_already_exists", "msg": "User already registered"},
                )
            if len(body["password"]) < 6:
                return httpx.Response(
                    422,
                    json={"code": 422, "error_code": "weak_password", "msg": "Password should be at least 6 characters"},
                )
            user_id = self._next_id("user")
            account = {"id": user_id, "email": body["email"], "password": body["password"], "metadata": body["data"]}
            self.accounts[body["email"]] = account
            if self.users_trigger:
                self.tables["users"].append(
                    {
                        "id": user_id,
                        "email": body["email"],
                        "role": body["data"]["role"],
                        "subscription_status": body["data"]["subscription_status"],
                        "created_at": self._tick(),
                    }
                )
            if not self.auto_confirm:
                return httpx.Response(200, json=self._user_payload(account))
            return httpx.Response(200, json=self._session(account))
        if endpoint == "token":
            body = json.loads(request.content)
            account = self.accounts.get(body["email"])
            if account is None or account["password"] != body["password"]:
                return httpx.Response(
                    400,
                    json={"error": "invalid_grant", "error_description": "Invalid login credentials"},
                )
            return httpx.Response(200, json=self._session(account))
        if endpoint == "logout":
            if self.fail_logout:
                return httpx.Response(500, json={"msg": "logout failed"})
            self.tokens.pop(self._bearer(request), None)
            return httpx.Response(204)
        if endpoint == "user":
            user_id = self.tokens.get(self._bearer(request))
            account = next((item for item in self.accounts.values() if item["id"] == user_id), None)
            if account is None:
                return httpx.Response(401, json={"msg": "invalid JWT"})
            return httpx.Response(200, json=self._user_payload(account))
        return httpx.Response(404, json={"msg": "not found"})

    def _rest(self, request: httpx.Request, table: str) -> httpx.Response:
        params = list(request.url.params.multi_items())
        filters = [(key, value) for key, value in params if key not in {"select", "order", "limit", "on_conflict"}]
        options = dict(params)
        rows = self.tables[table]

        if request.method == "GET":
            matched = [self._embed(table, row, options.get("select", "*")) for row in rows]
            matched = [row for row in matched if self._matches(row, filters)]
            if "order" in options:
                column, _, direction = options["order"].partition(".")
                matched.sort(key=lambda row: row.get(column) or "", reverse=direction == "desc")
            if "limit" in options:
                matched = matched[: int(options["limit"])]
            return httpx.Response(200, json=[self._project(row, options.get("select", "*")) for row in matched])

        if request.method == "POST":
            created = []
            for payload in json.loads(request.content):
                if "on_conflict" in options:
                    key = options["on_conflict"]
                    existing = next((row for row in rows if row.get(key) == payload.get(key)), None)
                    if existing is not None:
                        existing.update(payload)
                        created.append(existing)
                        continue
                row = {"id": self._next_id(table), "created_at": self._tick(), **payload}
                rows.append(row)
                created.append(row)
            return httpx.Response(201, json=created)

        if request.method == "PATCH":
            values = json.loads(request.content)
            updated = []
            for row in rows:
                if self._matches(row, filters):
                    row.update(values)
                    row["updated_at"] = self._tick()
                    updated.append(dict(row))
            return httpx.Response(200, json=updated)

        if request.method == "DELETE":
            removed = [row for row in rows if self._matches(row, filters)]
            self.tables[table] = [row for row in rows if not self._matches(row, filters)]
            return httpx.Response(200, json=removed)

        return httpx.Response(405, json={"message": "method not allowed"})

    def _embed(self, table: str, row: dict[str, Any], select: str) -> dict[str, Any]:
        row = dict(row)
        if table == "job_applications" and "job:jobs" in select:
            job = next((item for item in self.tables["jobs"] if item["id"] == row["job_id"]), None)
            if job is not None:
                job = dict(job)
                job["boutique"] = self._user_embed(job["boutique_id"])
            row["job"] = job
        if table == "job_applications" and "tailor:users" in select:
            row["tailor"] = self._user_embed(row["tailor_id"])
        if table == "jobs" and "applications:job_applications(count)" in select:
            count = sum(1 for item in self.tables["job_applications"] if item["job_id"] == row["id"])
            row["applications"] = [{"count": count}]
        return row

    def _user_embed(self, user_id: str) -> dict[str, Any] | None:
        user = next((item for item in self.tables["users"] if item["id"] == user_id), None)
        if user is None:
            return None
        profiles = [item for item in self.tables["user_profiles"] if item["user_id"] == user_id]
        return {"email": user["email"], "profile": profiles}

    @staticmethod
    def _project(row: dict[str, Any], select: str) -> dict[str, Any]:
        if select.startswith("*"):
            return row
        columns = select.split(",")
        return {column: row.get(column) for column in columns}

    @staticmethod
    def _matches(row: dict[str, Any], filters: list[tuple[str, str]]) -> bool:
        for column, expression in filters:
            if column == "or":
                continue
            current: Any = row
            for part in column.split("."):
                current = current.get(part) if isinstance(current, dict) else None
            operator, _, value = expression.partition(".")
            rendered = "" if current is None else str(current)
            if operator == "eq" and rendered != value:
                return False
            if operator == "ilike" and value.strip("%").lower() not in rendered.lower():
                return False
            if operator == "in" and rendered not in value.strip("()").split(","):
                return False
        return True

    def _authorized(self, request: httpx.Request) -> bool:
        token = self._bearer(request)
        return token == ANON_KEY or token in self.tokens

    @staticmethod
    def _bearer(request: httpx.Request) -> str:
        return request.headers.get("Authorization", "").removeprefix("Bearer ").strip()

    def _session(self, account: dict[str, Any]) -> dict[str, Any]:
        token = f"token-{self._next_id('token')}"
        self.tokens[token] = account["id"]
        return {"access_token": token, "refresh_token": "refresh", "user": self._user_payload(account)}

    @staticmethod
    def _user_payload(account: dict[str, Any]) -> dict[str, Any]:
        return {"id": account["id"], "email": account["email"], "user_metadata": account["metadata"], "app_metadata": {}}

    def _next_id(self, prefix: str) -> str:
        self._ids += 1
        return f"{prefix}-{self._ids}"

    def _tick(self) -> str:
        self._clock += timedelta(seconds=1)
        return self._clock.isoformat()


@pytest.fixture
def backend() -> InMemorySupabase:
    return InMemorySupabase()


@pytest.fixture
def settings() -> Settings:
    return Settings(supabase_url=BASE_URL, supabase_anon_key=ANON_KEY, otel_enabled=False)


@pytest.fixture
def context(backend: InMemorySupabase, settings: Settings) -> MarketplaceContext:
    return build_context(settings, transport=backend.transport())
