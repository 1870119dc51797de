from datetime import datetime
from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, Field, model_validator

JobStatus = Literal["open", "in_progress", "completed", "cancelled"]
JobType = Literal["full_time", "part_time", "contract"]

JOB_TYPES: tuple[str, ...] = ("full_time", "part_time", "contract")
JOB_SUMMARY_COLUMNS = "id,title,budget_min,budget_max,status,job_type,created_at"
JOB_OWNER_COLUMN = "boutique_id"


class JobSummary(BaseModel):
    """Fields every viewer may see; detail fields are deliberately absent."""

    id: str
    title: str
    budget_min: int
    budget_max: int
    status: JobStatus = "open"
    job_type: JobType = "full_time"
    created_at: datetime

    @model_validator(mode="before")
    @classmethod
    def _migrate_single_budget(cls, data: Any) -> Any:
        # Older rows carry one `budget` column instead of a range.
        if isinstance(data, dict) and data.get("budget") is not None:
            if data.get("budget_min") is None and data.get("budget_max") is None:
                return {**data, "budget_min": data["budget"], "budget_max": data["budget"]}
        return data

    @model_validator(mode="after")
    def _check_budget_range(self) -> "JobSummary":
        if self.budget_min > self.budget_max:
            raise ValueError("budget_min must not exceed budget_max")
        return self


class Job(JobSummary):
    description: str
    location: str
    deadline: datetime
    requirements: str | None = None
    posted_by: str = Field(validation_alias=AliasChoices("boutique_id", "posted_by"))
    updated_at: datetime | None = None

    def summary(self) -> JobSummary:
        return JobSummary.model_validate(self.model_dump(include=set(JobSummary.model_fields)))


class JobWithApplicationCount(Job):
    application_count: int = 0

    @model_validator(mode="before")
    @classmethod
    def _flatten_count(cls, data: Any) -> Any:
        if isinstance(data, dict) and "applications" in data:
            embedded = data.get("applications") or []
            count = embedded[0].get("count", 0) if embedded and isinstance(embedded[0], dict) else 0
            return {**data, "application_count": count}
        return data


class JobCreate(BaseModel):
    title: str
    description: str
    budget_min: int
    budget_max: int
    location: str
    deadline: datetime
    requirements: str = ""
    job_type: JobType = "full_time"
    status: JobStatus = "open"
    boutique_id: str
