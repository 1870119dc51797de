from __future__ import annotations

from tailorboard.controllers.base import ActionResult, ScreenController
from tailorboard.core import policy
from tailorboard.core.errors import ValidationError
from tailorboard.services.subscriptions import PLANS, CheckoutOutcome, SubscriptionPlan, get_plan, plan_for_tier


class SubscriptionController(ScreenController):
    def plans(self) -> tuple[SubscriptionPlan, ...]:
        return PLANS

    def current_plan(self) -> SubscriptionPlan | None:
        identity = self.identity
        return plan_for_tier(identity.subscription_tier) if identity is not None else None

    def dismiss_paywall(self) -> None:
        self.store.set_paywall_visible(False)

    async def upgrade(self, plan_id: str) -> ActionResult[CheckoutOutcome]:
        identity = self.identity

        async def operation() -> CheckoutOutcome:
            subscriber = policy.require_identity(identity, "subscribe")
            plan = get_plan(plan_id)
            if plan is None:
                raise ValidationError(f"Unknown plan {plan_id}")
            if plan.tier == subscriber.subscription_tier:
                raise ValidationError(f"You are already on the {plan.name}")
            return await self.context.payments.start_checkout(plan, user_id=subscriber.id)

        result = await self._run("upgrade subscription", operation, failure_message="Checkout failed")
        if result.ok and result.value is not None and not result.value.completed:
            result.ok = False
            result.message = result.value.message
        return result
