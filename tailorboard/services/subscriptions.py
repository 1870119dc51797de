from __future__ import annotations

from dataclasses import dataclass
import logging

from tailorboard.schemas.identity import SubscriptionTier

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SubscriptionPlan:
    id: str
    name: str
    tier: SubscriptionTier
    price: int
    currency: str
    features: tuple[str, ...]


PLANS: tuple[SubscriptionPlan, ...] = (
    SubscriptionPlan(
        id="basic_monthly",
        name="Basic Plan",
        tier=SubscriptionTier.BASIC,
        price=500,
        currency="INR",
        features=("Access to job details", "Apply to jobs", "Basic messaging", "Profile visibility"),
    ),
    SubscriptionPlan(
        id="premium_monthly",
        name="Premium Plan",
        tier=SubscriptionTier.PREMIUM,
        price=1500,
        currency="INR",
        features=(
            "All Basic features",
            "Priority job listings",
            "Advanced messaging",
            "Portfolio showcase",
            "Analytics dashboard",
        ),
    ),
)


def get_plan(plan_id: str) -> SubscriptionPlan | None:
    return next((plan for plan in PLANS if plan.id == plan_id), None)


def plan_for_tier(tier: SubscriptionTier) -> SubscriptionPlan | None:
    return next((plan for plan in PLANS if plan.tier == tier), None)


@dataclass(frozen=True, slots=True)
class CheckoutOutcome:
    plan_id: str
    completed: bool
    message: str


class StubPaymentGateway:
    """Stand-in for the Razorpay checkout; never charges and never upgrades."""

    def __init__(self, key_id: str | None) -> None:
        self.key_id = key_id

    async def start_checkout(self, plan: SubscriptionPlan, *, user_id: str) -> CheckoutOutcome:
        logger.info(
            "checkout requested plan=%s user_id=%s configured=%s",
            plan.id,
            user_id,
            bool(self.key_id),
        )
        return CheckoutOutcome(
            plan_id=plan.id,
            completed=False,
            message=f"Razorpay integration for {plan.id} coming soon!",
        )
