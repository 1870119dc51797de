from __future__ import annotations

from dataclasses import dataclass

import httpx

from tailorboard.core.config import Settings
from tailorboard.services.gateway import SupabaseGateway
from tailorboard.services.repository import MarketplaceRepository
from tailorboard.services.session import SessionManager
from tailorboard.services.store import AppStore
from tailorboard.services.subscriptions import StubPaymentGateway


@dataclass(slots=True)
class MarketplaceContext:
    """Everything a controller needs, passed explicitly instead of via globals."""

    settings: Settings
    gateway: SupabaseGateway
    repository: MarketplaceRepository
    session: SessionManager
    store: AppStore
    payments: StubPaymentGateway

    async def aclose(self) -> None:
        await self.gateway.aclose()


def build_context(settings: Settings, *, transport: httpx.AsyncBaseTransport | None = None) -> MarketplaceContext:
    supabase_url, anon_key = settings.require_backend()
    gateway = SupabaseGateway(
        supabase_url,
        anon_key,
        timeout_seconds=settings.gateway_timeout_seconds,
        transport=transport,
    )
    repository = MarketplaceRepository(gateway)
    return MarketplaceContext(
        settings=settings,
        gateway=gateway,
        repository=repository,
        session=SessionManager(repository),
        store=AppStore(),
        payments=StubPaymentGateway(settings.razorpay_key_id),
    )
