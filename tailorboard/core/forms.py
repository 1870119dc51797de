"""Client-side form checks. These run before any gateway call."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

from tailorboard.core.errors import ValidationError
from tailorboard.schemas.jobs import JOB_TYPES, JobCreate

MIN_PASSWORD_LENGTH = 6


@dataclass(slots=True)
class JobDraft:
    title: str = ""
    description: str = ""
    budget_min: str | int = ""
    budget_max: str | int = ""
    location: str = ""
    deadline: str | datetime = ""
    requirements: str = ""
    job_type: str = "full_time"


def validate_login(email: str, password: str) -> None:
    if not email.strip() or not password:
        raise ValidationError("Please fill in all fields")


def validate_signup(email: str, password: str, confirm_password: str) -> None:
    if not email.strip() or not password or not confirm_password:
        raise ValidationError("Please fill in all fields")
    if password != confirm_password:
        raise ValidationError("Passwords do not match")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")


def validate_job_draft(draft: JobDraft, *, posted_by: str, now: datetime | None = None) -> JobCreate:
    if not draft.title.strip():
        raise ValidationError("Job title is required")
    if not draft.description.strip():
        raise ValidationError("Job description is required")
    if draft.budget_min in ("", None) or draft.budget_max in ("", None):
        raise ValidationError("Budget range is required")
    budget_min = _parse_budget(draft.budget_min)
    budget_max = _parse_budget(draft.budget_max)
    if budget_min > budget_max:
        raise ValidationError("Minimum budget cannot be greater than maximum budget")
    if not draft.location.strip():
        raise ValidationError("Location is required")
    if not draft.deadline:
        raise ValidationError("Application deadline is required")
    deadline = _parse_deadline(draft.deadline)
    if deadline <= (now or datetime.now(timezone.utc)):
        raise ValidationError("Application deadline must be in the future")
    if draft.job_type not in JOB_TYPES:
        raise ValidationError(f"Job type must be one of: {', '.join(JOB_TYPES)}")

    return JobCreate(
        title=draft.title.strip(),
        description=draft.description.strip(),
        budget_min=budget_min,
        budget_max=budget_max,
        location=draft.location.strip(),
        deadline=deadline,
        requirements=draft.requirements.strip(),
        job_type=draft.job_type,
        boutique_id=posted_by,
    )


def validate_proposed_budget(raw: str | int | None) -> int | None:
    if raw is None or raw == "":
        return None
    return _parse_budget(raw)


def _parse_budget(raw: str | int) -> int:
    try:
        value = int(str(raw).strip())
    except ValueError as exc:
        raise ValidationError("Budget must be a whole number") from exc
    if value < 0:
        raise ValidationError("Budget cannot be negative")
    return value


def _parse_deadline(raw: str | datetime) -> datetime:
    if isinstance(raw, datetime):
        parsed = raw
    else:
        try:
            parsed = datetime.fromisoformat(raw.strip())
        except ValueError as exc:
            raise ValidationError("Application deadline must be a valid date") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
