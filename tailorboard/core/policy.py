"""Access policy for the marketplace.

Every tier comparison and ownership check lives here. Controllers and the
store call these predicates instead of inspecting roles or tiers inline.
All functions are pure and accept ``identity=None`` for signed-out viewers.
"""

from __future__ import annotations

from collections.abc import Iterable

from tailorboard.core.errors import AccessDeniedError
from tailorboard.schemas.applications import Application, ApplicationStatus
from tailorboard.schemas.identity import Identity, Role, SubscriptionTier
from tailorboard.schemas.jobs import Job, JobStatus, JobSummary
from tailorboard.schemas.profiles import PortfolioItem

SUBSCRIBED_TIERS = {SubscriptionTier.BASIC, SubscriptionTier.PREMIUM}

JOB_STATUS_TRANSITIONS: dict[str, set[str]] = {
    "open": {"in_progress", "cancelled"},
    "in_progress": {"completed"},
    "completed": set(),
    "cancelled": set(),
}
APPLICATION_STATUS_TRANSITIONS: dict[str, set[str]] = {
    "pending": {"accepted", "rejected"},
    "accepted": set(),
    "rejected": set(),
}


def is_subscribed(identity: Identity | None) -> bool:
    return identity is not None and identity.subscription_tier in SUBSCRIBED_TIERS


def is_admin(identity: Identity | None) -> bool:
    return identity is not None and identity.role == Role.ADMIN


def can_view_job_details(identity: Identity | None) -> bool:
    return is_subscribed(identity)


def can_message(identity: Identity | None) -> bool:
    return is_subscribed(identity)


def can_apply_to_job(
    identity: Identity | None,
    job: JobSummary,
    existing_applications: Iterable[Application] = (),
) -> bool:
    """Providers with a paid tier may apply once to an open job.

    ``existing_applications`` is whatever the caller knows about prior
    applications; any non-rejected one by this identity for this job blocks
    a new application.
    """
    if identity is None or identity.role != Role.PROVIDER:
        return False
    if job.status != "open" or not can_view_job_details(identity):
        return False
    return not any(
        application.job_id == job.id
        and application.applicant_id == identity.id
        and application.status != "rejected"
        for application in existing_applications
    )


def can_post_job(identity: Identity | None) -> bool:
    return identity is not None and identity.role == Role.POSTER


def can_manage_job(identity: Identity | None, job: Job) -> bool:
    return identity is not None and identity.role == Role.POSTER and identity.id == job.posted_by


def can_review_application(identity: Identity | None, job: Job) -> bool:
    return can_manage_job(identity, job)


def can_transition_job(identity: Identity | None, job: Job, target: JobStatus) -> bool:
    return can_manage_job(identity, job) and target in JOB_STATUS_TRANSITIONS.get(job.status, set())


def can_delete_job(identity: Identity | None, job: Job) -> bool:
    return can_manage_job(identity, job) and job.status == "open"


def can_set_application_status(
    identity: Identity | None,
    job: Job,
    application: Application,
    target: ApplicationStatus,
) -> bool:
    if application.job_id != job.id or not can_review_application(identity, job):
        return False
    return target in APPLICATION_STATUS_TRANSITIONS.get(application.status, set())


def can_withdraw_application(identity: Identity | None, application: Application) -> bool:
    return identity is not None and identity.id == application.applicant_id and application.status == "pending"


def can_edit_profile(identity: Identity | None, user_id: str) -> bool:
    return identity is not None and identity.id == user_id


def can_create_portfolio_item(identity: Identity | None) -> bool:
    return identity is not None and identity.role == Role.PROVIDER


def can_manage_portfolio_item(identity: Identity | None, item: PortfolioItem) -> bool:
    return can_create_portfolio_item(identity) and identity.id == item.tailor_id


def visible_job(identity: Identity | None, job: JobSummary) -> JobSummary:
    """Return the view of ``job`` this identity may render."""
    if isinstance(job, Job) and not can_view_job_details(identity):
        return job.summary()
    return job


def require(allowed: bool, action: str) -> None:
    if not allowed:
        raise AccessDeniedError(f"not permitted to {action}")


def require_identity(identity: Identity | None, action: str) -> Identity:
    if identity is None:
        raise AccessDeniedError(f"sign in to {action}")
    return identity
