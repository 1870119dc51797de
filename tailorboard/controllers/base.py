from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
import logging
from typing import Generic, TypeVar

from tailorboard.context import MarketplaceContext
from tailorboard.core.errors import (
    AccessDeniedError,
    AuthError,
    GatewayError,
    SessionExpiredError,
    TailorboardError,
    ValidationError,
)
from tailorboard.schemas.identity import Identity

logger = logging.getLogger(__name__)

T = TypeVar("T")

SESSION_EXPIRED_MESSAGE = "Your session has expired. Please sign in again."


@dataclass(slots=True)
class ActionResult(Generic[T]):
    ok: bool
    message: str | None = None
    value: T | None = None
    error: TailorboardError | None = None


class ScreenController:
    def __init__(self, context: MarketplaceContext) -> None:
        self.context = context
        self.store = context.store
        self.repository = context.repository
        self.session = context.session

    @property
    def identity(self) -> Identity | None:
        return self.store.state.identity

    def show_paywall(self) -> None:
        self.store.set_paywall_visible(True)

    async def _run(
        self,
        action: str,
        operation: Callable[[], Awaitable[T]],
        *,
        failure_message: str,
        success_message: str | None = None,
    ) -> ActionResult[T]:
        """Run one user action; failures become a result and never leave the store loading."""
        self.store.set_loading(True)
        try:
            value = await operation()
        except ValidationError as exc:
            return ActionResult(ok=False, message=str(exc), error=exc)
        except AccessDeniedError as exc:
            logger.info("%s denied user_id=%s: %s", action, self.identity.id if self.identity else None, exc)
            return ActionResult(ok=False, message=str(exc), error=exc)
        except SessionExpiredError as exc:
            self.session.expire()
            self.store.reset()
            return ActionResult(ok=False, message=SESSION_EXPIRED_MESSAGE, error=exc)
        except AuthError as exc:
            logger.warning("%s failed code=%s: %s", action, exc.code, exc)
            return ActionResult(ok=False, message=str(exc) or failure_message, error=exc)
        except GatewayError as exc:
            logger.warning("%s failed status=%s code=%s: %s", action, exc.status_code, exc.code, exc)
            return ActionResult(ok=False, message=failure_message, error=exc)
        finally:
            self.store.set_loading(False)
        return ActionResult(ok=True, message=success_message, value=value)
