from datetime import datetime
from enum import Enum

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class Role(str, Enum):
    POSTER = "boutique"
    PROVIDER = "tailor"
    ADMIN = "admin"


class SubscriptionTier(str, Enum):
    FREE = "free"
    BASIC = "basic"
    PREMIUM = "premium"


SIGNUP_ROLES = {Role.POSTER, Role.PROVIDER}


class Identity(BaseModel):
    """Domain user record read from the users collection."""

    id: str
    email: str
    role: Role
    subscription_tier: SubscriptionTier = Field(
        default=SubscriptionTier.FREE,
        validation_alias=AliasChoices("subscription_tier", "subscription_status"),
    )
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = ConfigDict(frozen=True)


class UserRow(BaseModel):
    """Insert payload used to provision a users row after sign-up."""

    id: str
    email: str
    role: Role
    subscription_status: SubscriptionTier = SubscriptionTier.FREE
