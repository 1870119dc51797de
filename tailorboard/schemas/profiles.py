from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator

PROFILE_FIELDS = (
    "full_name",
    "phone",
    "experience_years",
    "specializations",
    "bio",
    "location",
    "hourly_rate",
)


class Profile(BaseModel):
    user_id: str
    full_name: str | None = None
    phone: str | None = None
    experience_years: int | None = None
    specializations: list[str] = Field(default_factory=list)
    bio: str | None = None
    location: str | None = None
    hourly_rate: float | None = None

    @field_validator("specializations", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return [] if value is None else value


class ProfileUpdate(BaseModel):
    full_name: str | None = None
    phone: str | None = None
    experience_years: int | None = Field(default=None, ge=0)
    specializations: list[str] | None = None
    bio: str | None = None
    location: str | None = None
    hourly_rate: float | None = Field(default=None, ge=0)


class PortfolioItem(BaseModel):
    id: str
    tailor_id: str
    title: str
    description: str | None = None
    image_url: str | None = None
    category: str
    created_at: datetime


class PortfolioItemCreate(BaseModel):
    title: str
    description: str | None = None
    image_url: str | None = None
    category: str
