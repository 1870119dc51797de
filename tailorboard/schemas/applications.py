from datetime import datetime
from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, Field, field_validator

from tailorboard.schemas.jobs import JobStatus, JobType

ApplicationStatus = Literal["pending", "accepted", "rejected"]

APPLICATION_TABLE = "job_applications"
APPLICANT_COLUMN = "tailor_id"


def _first_embedded(value: Any) -> Any:
    # One-to-one embeds come back as an object or a single-element list
    # depending on how the foreign key is declared.
    if isinstance(value, list):
        return value[0] if value else None
    return value


class Application(BaseModel):
    id: str
    job_id: str
    applicant_id: str = Field(validation_alias=AliasChoices("tailor_id", "applicant_id"))
    cover_letter: str | None = None
    proposed_budget: int | None = None
    status: ApplicationStatus = "pending"
    created_at: datetime


class ApplicationCreate(BaseModel):
    job_id: str
    tailor_id: str
    cover_letter: str | None = None
    proposed_budget: int | None = Field(default=None, ge=0)
    status: ApplicationStatus = "pending"


class EmbeddedProfile(BaseModel):
    full_name: str | None = None
    phone: str | None = None
    experience_years: int | None = None
    specializations: list[str] = Field(default_factory=list)

    @field_validator("specializations", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return [] if value is None else value


class EmbeddedUser(BaseModel):
    email: str
    profile: EmbeddedProfile | None = None

    @field_validator("profile", mode="before")
    @classmethod
    def _unwrap_profile(cls, value: Any) -> Any:
        return _first_embedded(value)


class AppliedJob(BaseModel):
    """Job fields shown to the applicant alongside their application."""

    title: str
    description: str | None = None
    budget_min: int | None = None
    budget_max: int | None = None
    location: str | None = None
    deadline: datetime | None = None
    job_type: JobType | None = None
    status: JobStatus | None = None
    poster: EmbeddedUser | None = Field(default=None, validation_alias=AliasChoices("boutique", "poster"))


class ReviewedJob(BaseModel):
    title: str
    budget_min: int | None = None
    budget_max: int | None = None


class ApplicationWithJob(Application):
    job: AppliedJob


class ApplicationWithApplicant(Application):
    job: ReviewedJob
    applicant: EmbeddedUser = Field(validation_alias=AliasChoices("tailor", "applicant"))


APPLICANT_VIEW_SELECT = (
    "*,job:jobs(title,description,budget_min,budget_max,location,deadline,job_type,status,"
    "boutique:users!jobs_boutique_id_fkey(email,profile:user_profiles(*)))"
)
REVIEW_VIEW_SELECT = (
    "*,job:jobs!inner(title,budget_min,budget_max,boutique_id),"
    "tailor:users!job_applications_tailor_id_fkey(email,profile:user_profiles(*))"
)
