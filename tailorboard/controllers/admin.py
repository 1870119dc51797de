from __future__ import annotations

import logging

from tailorboard.controllers.base import ActionResult, ScreenController
from tailorboard.core import policy
from tailorboard.schemas.identity import Identity, Role, SubscriptionTier

logger = logging.getLogger(__name__)


class AdminController(ScreenController):
    async def change_role(self, user_id: str, role: Role) -> ActionResult[Identity]:
        async def operation() -> Identity:
            policy.require(policy.is_admin(self.identity), "change user roles")
            updated = await self.repository.update_user_role(user_id, role)
            logger.info("role changed user_id=%s role=%s", user_id, role.value)
            await self._refresh_if_self(user_id)
            return updated

        return await self._run("change role", operation, failure_message="Failed to update role")

    async def change_subscription_tier(self, user_id: str, tier: SubscriptionTier) -> ActionResult[Identity]:
        async def operation() -> Identity:
            policy.require(policy.is_admin(self.identity), "change subscription tiers")
            updated = await self.repository.update_subscription_tier(user_id, tier)
            logger.info("subscription tier changed user_id=%s tier=%s", user_id, tier.value)
            await self._refresh_if_self(user_id)
            return updated

        return await self._run("change subscription tier", operation, failure_message="Failed to update subscription")

    async def _refresh_if_self(self, user_id: str) -> None:
        if self.identity is not None and self.identity.id == user_id:
            refreshed = await self.session.refresh_identity()
            if refreshed is not None:
                self.store.set_identity(refreshed)
