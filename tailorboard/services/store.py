"""Process-wide client state.

``AppStore`` is an explicit container: build one per running client (or per
test) and hand it to the controllers. Every mutator swaps in a new
``AppState`` snapshot, so a reader holding a snapshot never observes a
half-applied change.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field, replace
import logging
from typing import TypeVar

from tailorboard.core import policy
from tailorboard.schemas.applications import Application, ApplicationStatus
from tailorboard.schemas.identity import Identity
from tailorboard.schemas.jobs import JobSummary
from tailorboard.schemas.messages import Message

logger = logging.getLogger(__name__)

Listener = Callable[["AppState"], None]
ItemT = TypeVar("ItemT", JobSummary, Application)


@dataclass(frozen=True, slots=True)
class AppState:
    identity: Identity | None = None
    jobs: tuple[JobSummary, ...] = ()
    selected_job: JobSummary | None = None
    applications: tuple[Application, ...] = ()
    messages: tuple[Message, ...] = ()
    is_paywall_visible: bool = False
    is_loading: bool = False


def is_subscribed(state: AppState) -> bool:
    return policy.is_subscribed(state.identity)


def can_access_job_details(state: AppState) -> bool:
    return policy.can_view_job_details(state.identity)


def can_send_messages(state: AppState) -> bool:
    return policy.can_message(state.identity)


def filter_applications(state: AppState, status: ApplicationStatus | None = None) -> tuple[Application, ...]:
    if status is None:
        return state.applications
    return tuple(application for application in state.applications if application.status == status)


@dataclass(slots=True)
class _RequestCounter:
    issued: dict[str, int] = field(default_factory=dict)
    cancelled_below: dict[str, int] = field(default_factory=dict)


class AppStore:
    def __init__(self) -> None:
        self._state = AppState()
        self._requests = _RequestCounter()
        self._listeners: list[Listener] = []
        self._claims: set[str] = set()

    @property
    def state(self) -> AppState:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # request sequencing

    def begin_request(self, key: str) -> int:
        token = self._requests.issued.get(key, 0) + 1
        self._requests.issued[key] = token
        return token

    def is_current(self, key: str, token: int) -> bool:
        return token == self._requests.issued.get(key, 0) and token > self._requests.cancelled_below.get(key, 0)

    def cancel_requests(self, key: str) -> None:
        """Discard results of every request for ``key`` issued so far."""
        self._requests.cancelled_below[key] = self._requests.issued.get(key, 0)

    # in-flight guards

    def claim(self, key: str) -> bool:
        """Mark ``key`` as in flight; False when another action already holds it."""
        if key in self._claims:
            return False
        self._claims.add(key)
        return True

    def release(self, key: str) -> None:
        self._claims.discard(key)

    # mutators

    def set_identity(self, identity: Identity | None) -> None:
        self._commit(identity=identity)

    def set_loading(self, loading: bool) -> None:
        self._commit(is_loading=loading)

    def set_paywall_visible(self, visible: bool) -> None:
        self._commit(is_paywall_visible=visible)

    def replace_jobs(self, jobs: Iterable[JobSummary], *, request_token: int | None = None) -> bool:
        if request_token is not None and not self.is_current("jobs", request_token):
            logger.debug("discarding stale jobs response token=%s", request_token)
            return False
        self._commit(jobs=tuple(jobs))
        return True

    def upsert_job(self, job: JobSummary) -> None:
        selected = self._state.selected_job
        self._commit(
            jobs=_upsert_by_id(self._state.jobs, job),
            selected_job=job if selected is not None and selected.id == job.id else selected,
        )

    def remove_job(self, job_id: str) -> None:
        selected = self._state.selected_job
        self._commit(
            jobs=tuple(job for job in self._state.jobs if job.id != job_id),
            selected_job=None if selected is not None and selected.id == job_id else selected,
        )

    def select_job(self, job: JobSummary | None) -> None:
        self._commit(selected_job=job)

    def replace_applications(
        self,
        applications: Iterable[Application],
        *,
        request_token: int | None = None,
    ) -> bool:
        if request_token is not None and not self.is_current("applications", request_token):
            logger.debug("discarding stale applications response token=%s", request_token)
            return False
        self._commit(applications=tuple(applications))
        return True

    def upsert_application(self, application: Application) -> None:
        self._commit(applications=_upsert_by_id(self._state.applications, application))

    def remove_application(self, application_id: str) -> None:
        self._commit(
            applications=tuple(item for item in self._state.applications if item.id != application_id),
        )

    def replace_messages(self, messages: Iterable[Message]) -> None:
        self._commit(messages=tuple(messages))

    def reset(self) -> None:
        """Drop identity and cached collections, e.g. after sign-out."""
        for key in list(self._requests.issued):
            self.cancel_requests(key)
        self._state = AppState()
        self._notify()

    # derived

    def is_subscribed(self) -> bool:
        return is_subscribed(self._state)

    def can_access_job_details(self) -> bool:
        return can_access_job_details(self._state)

    def can_send_messages(self) -> bool:
        return can_send_messages(self._state)

    def _commit(self, **changes: object) -> None:
        self._state = replace(self._state, **changes)
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self._state)


def _upsert_by_id(items: tuple[ItemT, ...], item: ItemT) -> tuple[ItemT, ...]:
    for index, existing in enumerate(items):
        if existing.id == item.id:
            return items[:index] + (item,) + items[index + 1 :]
    return items + (item,)
