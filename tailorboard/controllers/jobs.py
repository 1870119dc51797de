from __future__ import annotations

from dataclasses import dataclass
import logging

from tailorboard.controllers.base import ActionResult, ScreenController
from tailorboard.core import policy
from tailorboard.core.errors import AccessDeniedError
from tailorboard.core.forms import JobDraft, validate_job_draft
from tailorboard.schemas.applications import Application
from tailorboard.schemas.jobs import Job, JobStatus, JobSummary, JobWithApplicationCount

logger = logging.getLogger(__name__)

JOBS_REQUEST_KEY = "jobs"


@dataclass(frozen=True, slots=True)
class JobDetailsView:
    job: JobSummary
    has_applied: bool = False
    can_apply: bool = False
    can_manage: bool = False


class JobBoardController(ScreenController):
    async def fetch(self, location: str | None = None) -> ActionResult[list[JobSummary]]:
        token = self.store.begin_request(JOBS_REQUEST_KEY)
        identity = self.identity
        location_filter = (location or "").strip() or None

        async def operation() -> list[JobSummary]:
            jobs = await self.repository.list_open_jobs(
                location=location_filter,
                with_details=policy.can_view_job_details(identity),
            )
            self.store.replace_jobs(jobs, request_token=token)
            return list(self.store.state.jobs)

        return await self._run("fetch jobs", operation, failure_message="Failed to load jobs")

    async def open_details(self, job_id: str) -> ActionResult[JobDetailsView]:
        identity = self.identity

        async def operation() -> JobDetailsView:
            if not policy.can_view_job_details(identity):
                summary = await self.repository.get_job_summary(job_id)
                self.show_paywall()
                self.store.select_job(summary)
                return JobDetailsView(job=summary)

            job = await self.repository.get_job(job_id)
            existing: list[Application] = []
            if identity is not None:
                existing = await self.repository.find_applications(job_id=job.id, applicant_id=identity.id)
            view = JobDetailsView(
                job=policy.visible_job(identity, job),
                has_applied=any(application.status != "rejected" for application in existing),
                can_apply=policy.can_apply_to_job(identity, job, existing),
                can_manage=policy.can_manage_job(identity, job),
            )
            self.store.select_job(view.job)
            return view

        return await self._run("open job details", operation, failure_message="Failed to load job details")

    def unmount(self) -> None:
        self.store.cancel_requests(JOBS_REQUEST_KEY)


class PostJobController(ScreenController):
    async def submit(self, draft: JobDraft) -> ActionResult[Job]:
        identity = self.identity

        async def operation() -> Job:
            poster = policy.require_identity(identity, "post jobs")
            policy.require(policy.can_post_job(poster), "post jobs")
            payload = validate_job_draft(draft, posted_by=poster.id)
            job = await self.repository.create_job(payload)
            logger.info("job posted job_id=%s poster_id=%s", job.id, poster.id)
            self.store.upsert_job(policy.visible_job(poster, job))
            return job

        return await self._run(
            "post job",
            operation,
            failure_message="Failed to post job. Please try again.",
            success_message="Job posted successfully!",
        )


class MyJobsController(ScreenController):
    async def fetch(self) -> ActionResult[list[JobWithApplicationCount]]:
        token = self.store.begin_request(JOBS_REQUEST_KEY)
        identity = self.identity

        async def operation() -> list[JobWithApplicationCount]:
            poster = policy.require_identity(identity, "manage posted jobs")
            policy.require(policy.can_post_job(poster), "manage posted jobs")
            jobs = await self.repository.list_jobs_posted_by(poster.id)
            self.store.replace_jobs(jobs, request_token=token)
            return jobs

        return await self._run("fetch my jobs", operation, failure_message="Failed to load your jobs")

    async def change_status(self, job_id: str, target: JobStatus) -> ActionResult[Job]:
        identity = self.identity

        async def operation() -> Job:
            current = await self.repository.get_job(job_id)
            if not policy.can_transition_job(identity, current, target):
                raise AccessDeniedError(f"cannot move job from {current.status} to {target}")
            updated: Job = await self.repository.update_job_status(job_id, target)
            cached = next((job for job in self.store.state.jobs if job.id == job_id), None)
            if isinstance(cached, JobWithApplicationCount):
                updated = JobWithApplicationCount.model_validate(
                    {**updated.model_dump(), "application_count": cached.application_count}
                )
            self.store.upsert_job(updated)
            return updated

        return await self._run(
            "change job status",
            operation,
            failure_message="Failed to update job status",
            success_message=f"Job marked as {target.replace('_', ' ')}",
        )

    async def delete(self, job_id: str) -> ActionResult[None]:
        identity = self.identity

        async def operation() -> None:
            current = await self.repository.get_job(job_id)
            policy.require(policy.can_delete_job(identity, current), "delete this job")
            await self.repository.delete_job(job_id)
            self.store.remove_job(job_id)

        return await self._run(
            "delete job",
            operation,
            failure_message="Failed to delete job",
            success_message="Job deleted successfully",
        )
