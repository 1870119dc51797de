from __future__ import annotations

import logging

from tailorboard.controllers.base import ActionResult, ScreenController
from tailorboard.core import policy
from tailorboard.core.errors import AccessDeniedError
from tailorboard.core.forms import validate_proposed_budget
from tailorboard.schemas.applications import (
    Application,
    ApplicationCreate,
    ApplicationStatus,
    ApplicationWithApplicant,
    ApplicationWithJob,
)
from tailorboard.services.store import filter_applications

logger = logging.getLogger(__name__)

APPLICATIONS_REQUEST_KEY = "applications"


class MyApplicationsController(ScreenController):
    """Provider side: apply, track and withdraw."""

    async def apply(
        self,
        job_id: str,
        *,
        cover_letter: str | None = None,
        proposed_budget: int | None = None,
    ) -> ActionResult[Application]:
        identity = self.identity

        async def operation() -> Application:
            if not policy.can_view_job_details(identity):
                self.show_paywall()
                raise AccessDeniedError("a Basic or Premium subscription is required to apply to jobs")
            applicant = policy.require_identity(identity, "apply to jobs")
            budget = validate_proposed_budget(proposed_budget)
            claim_key = f"apply:{job_id}:{applicant.id}"
            if not self.store.claim(claim_key):
                raise AccessDeniedError("an application for this job is already being submitted")
            try:
                job = await self.repository.get_job(job_id)
                existing = await self.repository.find_applications(job_id=job_id, applicant_id=applicant.id)
                policy.require(policy.can_apply_to_job(applicant, job, existing), "apply to this job")
                application = await self.repository.create_application(
                    ApplicationCreate(
                        job_id=job_id,
                        tailor_id=applicant.id,
                        cover_letter=(cover_letter or "").strip() or None,
                        proposed_budget=budget,
                    )
                )
            finally:
                self.store.release(claim_key)
            logger.info("application submitted application_id=%s job_id=%s", application.id, job_id)
            self.store.upsert_application(application)
            return application

        return await self._run(
            "apply to job",
            operation,
            failure_message="Failed to apply to job",
            success_message="Application submitted successfully!",
        )

    async def fetch(self) -> ActionResult[list[ApplicationWithJob]]:
        token = self.store.begin_request(APPLICATIONS_REQUEST_KEY)
        identity = self.identity

        async def operation() -> list[ApplicationWithJob]:
            applicant = policy.require_identity(identity, "view applications")
            applications = await self.repository.list_applications_by_applicant(applicant.id)
            self.store.replace_applications(applications, request_token=token)
            return applications

        return await self._run("fetch my applications", operation, failure_message="Failed to load your applications")

    async def withdraw(self, application_id: str) -> ActionResult[None]:
        identity = self.identity

        async def operation() -> None:
            application = next(
                (item for item in self.store.state.applications if item.id == application_id),
                None,
            )
            if application is None:
                application = await self.repository.get_application(application_id)
            policy.require(policy.can_withdraw_application(identity, application), "withdraw this application")
            await self.repository.delete_application(application_id)
            self.store.remove_application(application_id)

        return await self._run(
            "withdraw application",
            operation,
            failure_message="Failed to withdraw application",
            success_message="Application withdrawn successfully",
        )

    def unmount(self) -> None:
        self.store.cancel_requests(APPLICATIONS_REQUEST_KEY)


class ReviewApplicationsController(ScreenController):
    """Poster side: review applications received for their jobs."""

    async def fetch(self, job_id: str | None = None) -> ActionResult[list[ApplicationWithApplicant]]:
        token = self.store.begin_request(APPLICATIONS_REQUEST_KEY)
        identity = self.identity

        async def operation() -> list[ApplicationWithApplicant]:
            poster = policy.require_identity(identity, "review applications")
            policy.require(policy.can_post_job(poster), "review applications")
            if job_id is not None:
                job = await self.repository.get_job(job_id)
                policy.require(policy.can_review_application(poster, job), "review applications for this job")
            applications = await self.repository.list_applications_for_poster(poster.id, job_id=job_id)
            self.store.replace_applications(applications, request_token=token)
            return applications

        return await self._run("fetch received applications", operation, failure_message="Failed to load applications")

    def visible(self, status: ApplicationStatus | None = None) -> tuple[Application, ...]:
        return filter_applications(self.store.state, status)

    async def set_status(self, application_id: str, target: ApplicationStatus) -> ActionResult[Application]:
        identity = self.identity

        async def operation() -> Application:
            application = await self.repository.get_application(application_id)
            job = await self.repository.get_job(application.job_id)
            if not policy.can_set_application_status(identity, job, application, target):
                raise AccessDeniedError(f"cannot move application from {application.status} to {target}")
            updated = await self.repository.update_application_status(application_id, target)
            cached = next((item for item in self.store.state.applications if item.id == application_id), None)
            if cached is not None:
                updated = cached.model_copy(update={"status": updated.status})
            self.store.upsert_application(updated)
            return updated

        return await self._run(
            "review application",
            operation,
            failure_message="Failed to update application status",
            success_message=f"Application {target}",
        )

    def unmount(self) -> None:
        self.store.cancel_requests(APPLICATIONS_REQUEST_KEY)
