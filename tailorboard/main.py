from __future__ import annotations

import asyncio
import logging

from opentelemetry import trace

from tailorboard.context import build_context
from tailorboard.controllers.auth import AuthController
from tailorboard.controllers.home import menu_for
from tailorboard.core.config import get_settings
from tailorboard.core.telemetry import configure_client_logging, setup_client_telemetry, tag_identity

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


async def run_client() -> None:
    settings = get_settings()
    configure_client_logging(settings)
    telemetry = setup_client_telemetry(settings)
    context = build_context(settings)

    try:
        with tracer.start_as_current_span("client.bootstrap"):
            identity = await AuthController(context).bootstrap()
            tag_identity(identity)
        if identity is None:
            logger.info("no active session; showing sign-in")
            return
        logger.info(
            "session restored user_id=%s role=%s tier=%s menu=%s",
            identity.id,
            identity.role.value,
            identity.subscription_tier.value,
            ",".join(item.key for item in menu_for(identity)),
        )
    finally:
        await context.aclose()
        telemetry.shutdown()


if __name__ == "__main__":
    asyncio.run(run_client())
