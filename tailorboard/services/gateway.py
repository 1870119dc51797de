"""HTTP gateway to the managed backend (PostgREST collections and GoTrue auth)."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import Enum
import logging
from typing import Any

import httpx
from opentelemetry import trace

from tailorboard.core.auth import AuthPrincipal, AuthSession
from tailorboard.core.errors import AuthError, GatewayError, GatewayNotFoundError, SessionExpiredError

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

NO_ROWS_CODE = "PGRST116"


@dataclass(frozen=True, slots=True)
class Filter:
    column: str
    operator: str
    value: str

    def as_param(self) -> tuple[str, str]:
        if not self.operator:
            return self.column, self.value
        return self.column, f"{self.operator}.{self.value}"


def eq(column: str, value: Any) -> Filter:
    return Filter(column, "eq", _render_value(value))


def ilike(column: str, pattern: str) -> Filter:
    return Filter(column, "ilike", pattern)


def in_(column: str, values: Iterable[Any]) -> Filter:
    rendered = ",".join(_render_value(value) for value in values)
    return Filter(column, "in", f"({rendered})")


def or_(*conditions: Filter) -> Filter:
    rendered = ",".join(f"{item.column}.{item.operator}.{item.value}" for item in conditions)
    return Filter("or", "", f"({rendered})")


def _render_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


class SupabaseGateway:
    def __init__(
        self,
        base_url: str,
        anon_key: str,
        *,
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.anon_key = anon_key
        self._client = httpx.AsyncClient(base_url=self.base_url, timeout=timeout_seconds, transport=transport)
        self._session: AuthSession | None = None
        self.auth = SupabaseAuth(self)

    @property
    def session(self) -> AuthSession | None:
        return self._session

    async def aclose(self) -> None:
        await self._client.aclose()

    async def select(
        self,
        table: str,
        *,
        columns: str = "*",
        filters: Sequence[Filter] = (),
        order: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        params: list[tuple[str, str]] = [("select", columns)]
        params.extend(item.as_param() for item in filters)
        if order:
            params.append(("order", f"{order}.{'desc' if descending else 'asc'}"))
        if limit is not None:
            params.append(("limit", str(limit)))
        return await self._request("select", table, "GET", params=params)

    async def select_one(
        self,
        table: str,
        *,
        columns: str = "*",
        filters: Sequence[Filter] = (),
    ) -> dict[str, Any]:
        rows = await self.select(table, columns=columns, filters=filters, limit=1)
        if not rows:
            raise GatewayNotFoundError(f"{table} record not found", status_code=406, code=NO_ROWS_CODE)
        return rows[0]

    async def insert(self, table: str, payload: dict[str, Any]) -> dict[str, Any]:
        rows = await self._request("insert", table, "POST", json=[payload], prefer="return=representation")
        if not rows:
            raise GatewayError(f"{table} insert returned no record")
        return rows[0]

    async def upsert(self, table: str, payload: dict[str, Any], *, on_conflict: str) -> dict[str, Any]:
        rows = await self._request(
            "upsert",
            table,
            "POST",
            params=[("on_conflict", on_conflict)],
            json=[payload],
            prefer="resolution=merge-duplicates,return=representation",
        )
        if not rows:
            raise GatewayError(f"{table} upsert returned no record")
        return rows[0]

    async def update(
        self,
        table: str,
        values: dict[str, Any],
        *,
        filters: Sequence[Filter],
    ) -> list[dict[str, Any]]:
        if not filters:
            raise ValueError("update requires at least one filter")
        return await self._request(
            "update",
            table,
            "PATCH",
            params=[item.as_param() for item in filters],
            json=values,
            prefer="return=representation",
        )

    async def delete(self, table: str, *, filters: Sequence[Filter]) -> list[dict[str, Any]]:
        if not filters:
            raise ValueError("delete requires at least one filter")
        return await self._request(
            "delete",
            table,
            "DELETE",
            params=[item.as_param() for item in filters],
            prefer="return=representation",
        )

    def _headers(self, prefer: str | None = None) -> dict[str, str]:
        token = self._session.access_token if self._session else self.anon_key
        headers = {"apikey": self.anon_key, "Authorization": f"Bearer {token}"}
        if prefer:
            headers["Prefer"] = prefer
        return headers

    async def _request(
        self,
        operation: str,
        table: str,
        method: str,
        *,
        params: list[tuple[str, str]] | None = None,
        json: Any = None,
        prefer: str | None = None,
    ) -> list[dict[str, Any]]:
        with tracer.start_as_current_span(f"gateway.{operation}") as span:
            span.set_attribute("gateway.table", table)
            try:
                response = await self._client.request(
                    method,
                    f"/rest/v1/{table}",
                    params=params,
                    json=json,
                    headers=self._headers(prefer),
                )
            except httpx.HTTPError as exc:
                logger.warning("gateway request failed operation=%s table=%s error=%s", operation, table, exc)
                raise GatewayError(f"backend unavailable during {operation} on {table}") from exc

            span.set_attribute("http.status_code", response.status_code)
            if response.status_code >= 400:
                raise _gateway_error(response, operation=operation, table=table, had_session=self._session is not None)
            if response.status_code == 204 or not response.content:
                return []

            payload = response.json()
            return payload if isinstance(payload, list) else [payload]


class SupabaseAuth:
    """Auth sub-interface; owns the access token used by the data calls."""

    def __init__(self, gateway: SupabaseGateway) -> None:
        self._gateway = gateway

    async def sign_up(self, email: str, password: str, metadata: dict[str, Any]) -> AuthPrincipal:
        payload = await self._post("/auth/v1/signup", {"email": email, "password": password, "data": metadata})
        # With email confirmation enabled the user object is returned bare, without a session.
        user_payload = payload.get("user") if isinstance(payload.get("user"), dict) else payload
        principal = AuthPrincipal.from_payload(user_payload)
        if principal is None:
            raise AuthError("sign-up response did not include a user")
        self._store_session(payload, principal)
        return principal

    async def sign_in_with_password(self, email: str, password: str) -> AuthPrincipal:
        payload = await self._post(
            "/auth/v1/token",
            {"email": email, "password": password},
            params={"grant_type": "password"},
        )
        principal = AuthPrincipal.from_payload(payload.get("user") or {})
        if principal is None or not payload.get("access_token"):
            raise AuthError("sign-in response did not include a session")
        self._store_session(payload, principal)
        return principal

    async def sign_out(self) -> None:
        session = self._gateway._session
        self._gateway._session = None
        if session is None:
            return
        headers = {"apikey": self._gateway.anon_key, "Authorization": f"Bearer {session.access_token}"}
        try:
            response = await self._gateway._client.post("/auth/v1/logout", headers=headers)
        except httpx.HTTPError as exc:
            raise AuthError("auth service unavailable during sign-out") from exc
        if response.status_code >= 400 and response.status_code not in {401, 403}:
            raise _auth_error(response)

    def discard_session(self) -> None:
        """Forget the local session without contacting the auth service."""
        self._gateway._session = None

    async def get_current_principal(self) -> AuthPrincipal | None:
        session = self._gateway._session
        if session is None:
            return None
        headers = {"apikey": self._gateway.anon_key, "Authorization": f"Bearer {session.access_token}"}
        with tracer.start_as_current_span("gateway.auth.get_user"):
            try:
                response = await self._gateway._client.get("/auth/v1/user", headers=headers)
            except httpx.HTTPError as exc:
                raise AuthError("auth service unavailable") from exc

        if response.status_code in {401, 403}:
            logger.info("auth session rejected by backend; clearing local session")
            self._gateway._session = None
            return None
        if response.status_code != 200:
            raise _auth_error(response)
        return AuthPrincipal.from_payload(response.json())

    async def _post(
        self,
        path: str,
        body: dict[str, Any],
        *,
        params: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        with tracer.start_as_current_span(f"gateway.auth.{path.rsplit('/', 1)[-1]}"):
            try:
                response = await self._gateway._client.post(
                    path,
                    params=params,
                    json=body,
                    headers={"apikey": self._gateway.anon_key},
                )
            except httpx.HTTPError as exc:
                raise AuthError("auth service unavailable") from exc
        if response.status_code >= 400:
            raise _auth_error(response)
        payload = response.json()
        if not isinstance(payload, dict):
            raise AuthError("unexpected auth response")
        return payload

    def _store_session(self, payload: dict[str, Any], principal: AuthPrincipal) -> None:
        access_token = payload.get("access_token")
        if isinstance(access_token, str) and access_token:
            self._gateway._session = AuthSession(
                access_token=access_token,
                principal=principal,
                refresh_token=payload.get("refresh_token"),
            )


def _error_body(response: httpx.Response) -> dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def _gateway_error(response: httpx.Response, *, operation: str, table: str, had_session: bool) -> GatewayError:
    body = _error_body(response)
    code = body.get("code") if isinstance(body.get("code"), str) else None
    message = body.get("message") or f"{operation} on {table} failed with status {response.status_code}"
    logger.warning(
        "gateway error operation=%s table=%s status=%s code=%s message=%s",
        operation,
        table,
        response.status_code,
        code,
        message,
    )
    if response.status_code == 401 and had_session:
        return SessionExpiredError(str(message), status_code=401, code=code)
    if code == NO_ROWS_CODE:
        return GatewayNotFoundError(str(message), status_code=response.status_code, code=code)
    return GatewayError(str(message), status_code=response.status_code, code=code)


def _auth_error(response: httpx.Response) -> AuthError:
    body = _error_body(response)
    message = (
        body.get("msg")
        or body.get("error_description")
        or body.get("message")
        or body.get("error")
        or f"auth request failed with status {response.status_code}"
    )
    code = body.get("error_code") or body.get("error")
    return AuthError(str(message), code=code if isinstance(code, str) else None)
