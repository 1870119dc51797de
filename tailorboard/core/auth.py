from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class SessionState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"


@dataclass(slots=True)
class AuthPrincipal:
    """Raw principal as reported by the auth service, before the users row is read."""

    id: str
    email: str | None = None
    user_metadata: dict[str, Any] = field(default_factory=dict)
    app_metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> AuthPrincipal | None:
        user_id = payload.get("id")
        if not isinstance(user_id, str) or not user_id:
            return None
        email = payload.get("email")
        return cls(
            id=user_id,
            email=email if isinstance(email, str) else None,
            user_metadata=_as_dict(payload.get("user_metadata")),
            app_metadata=_as_dict(payload.get("app_metadata")),
        )


@dataclass(slots=True)
class AuthSession:
    access_token: str
    principal: AuthPrincipal
    refresh_token: str | None = None


def _as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}
