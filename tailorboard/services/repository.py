"""Typed queries over the gateway.

Each method maps one logical query to an explicit result type. Rows that do
not parse (missing joins, unknown enum values) raise MalformedResponseError
here instead of leaking loosely shaped dicts into the controllers.
"""

from __future__ import annotations

from typing import Any, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as SchemaValidationError

from tailorboard.core.errors import GatewayNotFoundError, MalformedResponseError
from tailorboard.schemas.applications import (
    APPLICANT_COLUMN,
    APPLICANT_VIEW_SELECT,
    APPLICATION_TABLE,
    REVIEW_VIEW_SELECT,
    Application,
    ApplicationCreate,
    ApplicationStatus,
    ApplicationWithApplicant,
    ApplicationWithJob,
)
from tailorboard.schemas.identity import Identity, Role, SubscriptionTier, UserRow
from tailorboard.schemas.jobs import (
    JOB_OWNER_COLUMN,
    JOB_SUMMARY_COLUMNS,
    Job,
    JobCreate,
    JobStatus,
    JobSummary,
    JobWithApplicationCount,
)
from tailorboard.schemas.messages import Message
from tailorboard.schemas.profiles import PortfolioItem, PortfolioItemCreate, Profile, ProfileUpdate
from tailorboard.services.gateway import Filter, SupabaseGateway, eq, ilike, or_

ModelT = TypeVar("ModelT", bound=BaseModel)


class MarketplaceRepository:
    def __init__(self, gateway: SupabaseGateway) -> None:
        self.gateway = gateway

    # users

    async def get_user(self, user_id: str) -> Identity:
        row = await self.gateway.select_one("users", filters=[eq("id", user_id)])
        return self._parse(Identity, row)

    async def ensure_user(self, row: UserRow) -> None:
        existing = await self.gateway.select("users", columns="id", filters=[eq("id", row.id)], limit=1)
        if existing:
            return
        await self.gateway.insert("users", row.model_dump(mode="json"))

    async def update_user_role(self, user_id: str, role: Role) -> Identity:
        rows = await self.gateway.update("users", {"role": role.value}, filters=[eq("id", user_id)])
        return self._parse(Identity, self._single(rows, "users"))

    async def update_subscription_tier(self, user_id: str, tier: SubscriptionTier) -> Identity:
        rows = await self.gateway.update("users", {"subscription_status": tier.value}, filters=[eq("id", user_id)])
        return self._parse(Identity, self._single(rows, "users"))

    # jobs

    async def list_open_jobs(self, *, location: str | None = None, with_details: bool) -> list[JobSummary]:
        filters: list[Filter] = [eq("status", "open")]
        if location:
            filters.append(ilike("location", f"%{location}%"))
        model: type[JobSummary] = Job if with_details else JobSummary
        rows = await self.gateway.select(
            "jobs",
            columns="*" if with_details else JOB_SUMMARY_COLUMNS,
            filters=filters,
            order="created_at",
            descending=True,
        )
        return self._parse_rows(model, rows)

    async def get_job(self, job_id: str) -> Job:
        row = await self.gateway.select_one("jobs", filters=[eq("id", job_id)])
        return self._parse(Job, row)

    async def get_job_summary(self, job_id: str) -> JobSummary:
        row = await self.gateway.select_one("jobs", columns=JOB_SUMMARY_COLUMNS, filters=[eq("id", job_id)])
        return self._parse(JobSummary, row)

    async def list_jobs_posted_by(self, poster_id: str) -> list[JobWithApplicationCount]:
        rows = await self.gateway.select(
            "jobs",
            columns="*,applications:job_applications(count)",
            filters=[eq(JOB_OWNER_COLUMN, poster_id)],
            order="created_at",
            descending=True,
        )
        return self._parse_rows(JobWithApplicationCount, rows)

    async def create_job(self, job: JobCreate) -> Job:
        row = await self.gateway.insert("jobs", job.model_dump(mode="json"))
        return self._parse(Job, row)

    async def update_job_status(self, job_id: str, status: JobStatus) -> Job:
        rows = await self.gateway.update("jobs", {"status": status}, filters=[eq("id", job_id)])
        return self._parse(Job, self._single(rows, "jobs"))

    async def delete_job(self, job_id: str) -> None:
        rows = await self.gateway.delete("jobs", filters=[eq("id", job_id)])
        self._single(rows, "jobs")

    # applications

    async def find_applications(self, *, job_id: str, applicant_id: str) -> list[Application]:
        rows = await self.gateway.select(
            APPLICATION_TABLE,
            filters=[eq("job_id", job_id), eq(APPLICANT_COLUMN, applicant_id)],
        )
        return self._parse_rows(Application, rows)

    async def create_application(self, application: ApplicationCreate) -> Application:
        row = await self.gateway.insert(APPLICATION_TABLE, application.model_dump(mode="json"))
        return self._parse(Application, row)

    async def get_application(self, application_id: str) -> Application:
        row = await self.gateway.select_one(APPLICATION_TABLE, filters=[eq("id", application_id)])
        return self._parse(Application, row)

    async def list_applications_by_applicant(self, applicant_id: str) -> list[ApplicationWithJob]:
        rows = await self.gateway.select(
            APPLICATION_TABLE,
            columns=APPLICANT_VIEW_SELECT,
            filters=[eq(APPLICANT_COLUMN, applicant_id)],
            order="created_at",
            descending=True,
        )
        return self._parse_rows(ApplicationWithJob, rows)

    async def list_applications_for_poster(
        self,
        poster_id: str,
        *,
        job_id: str | None = None,
    ) -> list[ApplicationWithApplicant]:
        filters = [eq(f"job.{JOB_OWNER_COLUMN}", poster_id)]
        if job_id:
            filters.append(eq("job_id", job_id))
        rows = await self.gateway.select(
            APPLICATION_TABLE,
            columns=REVIEW_VIEW_SELECT,
            filters=filters,
            order="created_at",
            descending=True,
        )
        return self._parse_rows(ApplicationWithApplicant, rows)

    async def update_application_status(self, application_id: str, status: ApplicationStatus) -> Application:
        rows = await self.gateway.update(APPLICATION_TABLE, {"status": status}, filters=[eq("id", application_id)])
        return self._parse(Application, self._single(rows, APPLICATION_TABLE))

    async def delete_application(self, application_id: str) -> None:
        rows = await self.gateway.delete(APPLICATION_TABLE, filters=[eq("id", application_id)])
        self._single(rows, APPLICATION_TABLE)

    # profiles and portfolio

    async def get_profile(self, user_id: str) -> Profile | None:
        rows = await self.gateway.select("user_profiles", filters=[eq("user_id", user_id)], limit=1)
        return self._parse(Profile, rows[0]) if rows else None

    async def upsert_profile(self, user_id: str, update: ProfileUpdate) -> Profile:
        payload = {"user_id": user_id, **update.model_dump(mode="json", exclude_unset=True)}
        row = await self.gateway.upsert("user_profiles", payload, on_conflict="user_id")
        return self._parse(Profile, row)

    async def list_portfolio_items(self, tailor_id: str) -> list[PortfolioItem]:
        rows = await self.gateway.select(
            "portfolio_items",
            filters=[eq("tailor_id", tailor_id)],
            order="created_at",
            descending=True,
        )
        return self._parse_rows(PortfolioItem, rows)

    async def create_portfolio_item(self, tailor_id: str, item: PortfolioItemCreate) -> PortfolioItem:
        row = await self.gateway.insert("portfolio_items", {"tailor_id": tailor_id, **item.model_dump(mode="json")})
        return self._parse(PortfolioItem, row)

    async def delete_portfolio_item(self, item_id: str) -> None:
        rows = await self.gateway.delete("portfolio_items", filters=[eq("id", item_id)])
        self._single(rows, "portfolio_items")

    # messages

    async def list_messages(self, user_id: str) -> list[Message]:
        rows = await self.gateway.select(
            "messages",
            filters=[or_(eq("sender_id", user_id), eq("receiver_id", user_id))],
            order="created_at",
        )
        return self._parse_rows(Message, rows)

    @staticmethod
    def _single(rows: list[dict[str, Any]], table: str) -> dict[str, Any]:
        if not rows:
            raise GatewayNotFoundError(f"{table} record not found", status_code=404)
        return rows[0]

    @staticmethod
    def _parse(model: type[ModelT], row: dict[str, Any]) -> ModelT:
        try:
            return model.model_validate(row)
        except SchemaValidationError as exc:
            raise MalformedResponseError(f"malformed {model.__name__} record: {exc.error_count()} invalid fields") from exc

    @classmethod
    def _parse_rows(cls, model: type[ModelT], rows: list[dict[str, Any]]) -> list[ModelT]:
        return [cls._parse(model, row) for row in rows]
