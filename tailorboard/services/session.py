from __future__ import annotations

import logging

from tailorboard.core.auth import AuthPrincipal, SessionState
from tailorboard.core.errors import (
    AuthError,
    GatewayError,
    GatewayNotFoundError,
    IdentityLookupError,
    SessionExpiredError,
)
from tailorboard.schemas.identity import SIGNUP_ROLES, Identity, Role, SubscriptionTier, UserRow
from tailorboard.services.repository import MarketplaceRepository

logger = logging.getLogger(__name__)


class SessionManager:
    """Resolves the signed-in principal into a domain identity.

    Nothing is persisted locally; the identity is re-resolved from the
    backend on every start and after each auth transition.
    """

    def __init__(self, repository: MarketplaceRepository) -> None:
        self.repository = repository
        self.auth = repository.gateway.auth
        self.state = SessionState.UNAUTHENTICATED
        self.identity: Identity | None = None

    async def resolve_current_identity(self) -> Identity | None:
        try:
            principal = await self.auth.get_current_principal()
        except AuthError as exc:
            logger.warning("current principal lookup failed: %s", exc)
            return self._clear()
        if principal is None:
            return self._clear()

        try:
            identity = await self._lookup_identity(principal)
        except IdentityLookupError as exc:
            logger.error("identity lookup failed user_id=%s: %s", principal.id, exc)
            return self._clear()
        except GatewayError as exc:
            logger.warning("identity fetch failed user_id=%s: %s", principal.id, exc)
            return self._clear()

        self.identity = identity
        self.state = SessionState.AUTHENTICATED
        return identity

    async def sign_up(self, email: str, password: str, role: Role) -> Identity:
        if role not in SIGNUP_ROLES:
            raise AuthError(f"role {role.value} cannot be chosen at sign-up", code="invalid_role")

        self.state = SessionState.AUTHENTICATING
        try:
            principal = await self.auth.sign_up(
                email,
                password,
                metadata={"role": role.value, "subscription_status": SubscriptionTier.FREE.value},
            )
        except AuthError:
            self._clear()
            raise

        identity = Identity(id=principal.id, email=principal.email or email, role=role)
        if self.repository.gateway.session is None:
            logger.info("sign-up awaiting email confirmation user_id=%s", principal.id)
            self._clear()
            return identity

        try:
            # The users row is normally created by a database trigger.
            await self.repository.ensure_user(
                UserRow(id=identity.id, email=identity.email, role=role, subscription_status=SubscriptionTier.FREE)
            )
        except GatewayError as exc:
            logger.warning("could not provision users row user_id=%s: %s", principal.id, exc)

        resolved = await self.resolve_current_identity()
        if resolved is None:
            await self._discard_remote_session()
            raise AuthError("account created but profile could not be loaded", code="identity_lookup_failed")
        logger.info("signed up user_id=%s role=%s", resolved.id, resolved.role.value)
        return resolved

    async def sign_in(self, email: str, password: str) -> Identity:
        self.state = SessionState.AUTHENTICATING
        try:
            await self.auth.sign_in_with_password(email, password)
        except AuthError:
            self._clear()
            raise

        identity = await self.resolve_current_identity()
        if identity is None:
            await self._discard_remote_session()
            raise AuthError("no marketplace account is linked to these credentials", code="identity_lookup_failed")
        logger.info("signed in user_id=%s role=%s", identity.id, identity.role.value)
        return identity

    async def sign_out(self) -> None:
        user_id = self.identity.id if self.identity else None
        self._clear()
        await self._discard_remote_session()
        logger.info("signed out user_id=%s", user_id)

    def expire(self) -> None:
        if self.state is SessionState.AUTHENTICATED:
            logger.info("session expired user_id=%s", self.identity.id if self.identity else None)
        self.auth.discard_session()
        self._clear()

    async def refresh_identity(self) -> Identity | None:
        """Re-read the users row after a role or tier change.

        A failed re-read keeps the identity already held; only an expired
        session propagates.
        """
        if self.identity is None:
            return await self.resolve_current_identity()
        try:
            refreshed = await self.repository.get_user(self.identity.id)
        except SessionExpiredError:
            raise
        except GatewayError as exc:
            logger.warning("identity refresh failed user_id=%s: %s", self.identity.id, exc)
            return self.identity
        self.identity = refreshed
        return refreshed

    async def _lookup_identity(self, principal: AuthPrincipal) -> Identity:
        try:
            return await self.repository.get_user(principal.id)
        except GatewayNotFoundError as exc:
            raise IdentityLookupError(f"no users row for principal {principal.id}") from exc

    async def _discard_remote_session(self) -> None:
        try:
            await self.auth.sign_out()
        except AuthError as exc:
            logger.warning("remote sign-out failed; local session cleared anyway: %s", exc)

    def _clear(self) -> None:
        self.identity = None
        self.state = SessionState.UNAUTHENTICATED
        return None
