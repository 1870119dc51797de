from __future__ import annotations

import asyncio

import pytest

from tailorboard.context import MarketplaceContext
from tailorboard.core.auth import SessionState
from tailorboard.core.errors import AuthError
from tailorboard.schemas.identity import Identity, Role, SubscriptionTier
from tests.conftest import InMemorySupabase


def test_sign_up_as_provider_resolves_free_provider(context: MarketplaceContext, backend: InMemorySupabase) -> None:
    async def scenario() -> Identity:
        try:
            return await context.session.sign_up("ravi@example.in", "secret123", Role.PROVIDER)
        finally:
            await context.aclose()

    identity = asyncio.run(scenario())

    assert identity.role == Role.PROVIDER
    assert identity.subscription_tier == SubscriptionTier.FREE
    assert context.session.state is SessionState.AUTHENTICATED
    assert context.session.identity == identity
    assert backend.tables["users"][0]["role"] == "tailor"
    assert backend.tables["users"][0]["subscription_status"] == "free"


def test_sign_up_reuses_row_created_by_trigger(context: MarketplaceContext, backend: InMemorySupabase) -> None:
    backend.users_trigger = True

    async def scenario() -> Identity:
        try:
            return await context.session.sign_up("meera@example.in", "secret123", Role.POSTER)
        finally:
            await context.aclose()

    identity = asyncio.run(scenario())

    assert identity.role == Role.POSTER
    assert len(backend.tables["users"]) == 1


def test_sign_up_rejects_admin_role(context: MarketplaceContext, backend: InMemorySupabase) -> None:
    async def scenario() -> None:
        try:
            with pytest.raises(AuthError) as exc_info:
                await context.session.sign_up("root@example.in", "secret123", Role.ADMIN)
            assert exc_info.value.code == "invalid_role"
        finally:
            await context.aclose()

    asyncio.run(scenario())

    assert backend.calls == []


def test_duplicate_email_sign_up_fails(context: MarketplaceContext, backend: InMemorySupabase) -> None:
    backend.add_user("ravi@example.in", role="tailor")

    async def scenario() -> None:
        try:
            with pytest.raises(AuthError) as exc_info:
                await context.session.sign_up("ravi@example.in", "secret123", Role.PROVIDER)
            assert exc_info.value.code == "user_already_exists"
        finally:
            await context.aclose()

    asyncio.run(scenario())

    assert context.session.state is SessionState.UNAUTHENTICATED
    assert context.session.identity is None


def test_sign_up_pending_confirmation_stays_signed_out(context: MarketplaceContext, backend: InMemorySupabase) -> None:
    backend.auto_confirm = False

    async def scenario() -> Identity:
        try:
            return await context.session.sign_up("meera@example.in", "secret123", Role.POSTER)
        finally:
            await context.aclose()

    identity = asyncio.run(scenario())

    assert identity.email == "meera@example.in"
    assert identity.role == Role.POSTER
    assert context.session.state is SessionState.UNAUTHENTICATED
    assert context.gateway.session is None
    assert backend.tables["users"] == []


def test_sign_in_loads_identity_from_users_row(context: MarketplaceContext, backend: InMemorySupabase) -> None:
    user_id = backend.add_user("meera@example.in", role="boutique", tier="premium")

    async def scenario() -> Identity:
        try:
            return await context.session.sign_in("meera@example.in", "secret123")
        finally:
            await context.aclose()

    identity = asyncio.run(scenario())

    assert identity.id == user_id
    assert identity.subscription_tier == SubscriptionTier.PREMIUM
    assert context.session.state is SessionState.AUTHENTICATED


def test_wrong_password_is_auth_error(context: MarketplaceContext, backend: InMemorySupabase) -> None:
    backend.add_user("meera@example.in", role="boutique")

    async def scenario() -> None:
        try:
            with pytest.raises(AuthError, match="Invalid login credentials"):
                await context.session.sign_in("meera@example.in", "not-it")
        finally:
            await context.aclose()

    asyncio.run(scenario())

    assert context.session.state is SessionState.UNAUTHENTICATED


def test_principal_without_users_row_resolves_to_none(context: MarketplaceContext, backend: InMemorySupabase) -> None:
    backend.add_user("ghost@example.in", role="tailor", with_row=False)

    async def scenario() -> None:
        try:
            await context.gateway.auth.sign_in_with_password("ghost@example.in", "secret123")
            assert await context.session.resolve_current_identity() is None
        finally:
            await context.aclose()

    asyncio.run(scenario())

    assert context.session.state is SessionState.UNAUTHENTICATED


def test_sign_in_without_users_row_discards_remote_session(
    context: MarketplaceContext,
    backend: InMemorySupabase,
) -> None:
    backend.add_user("ghost@example.in", role="tailor", with_row=False)

    async def scenario() -> None:
        try:
            with pytest.raises(AuthError) as exc_info:
                await context.session.sign_in("ghost@example.in", "secret123")
            assert exc_info.value.code == "identity_lookup_failed"
        finally:
            await context.aclose()

    asyncio.run(scenario())

    assert context.gateway.session is None
    assert ("POST", "/auth/v1/logout") in backend.calls


def test_resolve_without_session_is_none(context: MarketplaceContext, backend: InMemorySupabase) -> None:
    async def scenario() -> Identity | None:
        try:
            return await context.session.resolve_current_identity()
        finally:
            await context.aclose()

    assert asyncio.run(scenario()) is None
    assert backend.calls == []


def test_sign_out_clears_locally_even_if_backend_fails(context: MarketplaceContext, backend: InMemorySupabase) -> None:
    backend.add_user("meera@example.in", role="boutique")
    backend.fail_logout = True

    async def scenario() -> None:
        try:
            await context.session.sign_in("meera@example.in", "secret123")
            await context.session.sign_out()
        finally:
            await context.aclose()

    asyncio.run(scenario())

    assert context.session.identity is None
    assert context.session.state is SessionState.UNAUTHENTICATED
    assert context.gateway.session is None


def test_sign_up_without_provisioned_row_drops_the_session(
    context: MarketplaceContext,
    backend: InMemorySupabase,
) -> None:
    backend.failing.add(("POST", "users"))

    async def scenario() -> None:
        try:
            with pytest.raises(AuthError) as exc_info:
                await context.session.sign_up("ravi@example.in", "secret123", Role.PROVIDER)
            assert exc_info.value.code == "identity_lookup_failed"
        finally:
            await context.aclose()

    asyncio.run(scenario())

    assert context.gateway.session is None
    assert context.session.state is SessionState.UNAUTHENTICATED
    assert ("POST", "/auth/v1/logout") in backend.calls


def test_refresh_keeps_identity_on_transient_failure(context: MarketplaceContext, backend: InMemorySupabase) -> None:
    backend.add_user("meera@example.in", role="boutique")

    async def scenario() -> tuple[Identity, Identity | None]:
        try:
            signed_in = await context.session.sign_in("meera@example.in", "secret123")
            backend.failing.add(("GET", "users"))
            return signed_in, await context.session.refresh_identity()
        finally:
            await context.aclose()

    signed_in, refreshed = asyncio.run(scenario())

    assert refreshed == signed_in
    assert context.session.state is SessionState.AUTHENTICATED
