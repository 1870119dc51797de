from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from tailorboard.controllers.base import ActionResult, ScreenController
from tailorboard.core import policy
from tailorboard.core.errors import AccessDeniedError
from tailorboard.schemas.identity import Identity, Role


@dataclass(frozen=True, slots=True)
class MenuItem:
    key: str
    title: str
    description: str


POSTER_ITEMS = (
    MenuItem("post_job", "Post Job", "Create a new job posting"),
    MenuItem("my_jobs", "My Jobs", "Manage your posted jobs"),
    MenuItem("applications", "Applications", "Review job applications"),
)
PROVIDER_ITEMS = (
    MenuItem("job_board", "Find Jobs", "Browse and search for jobs"),
    MenuItem("my_applications", "My Applications", "Track your job applications"),
    MenuItem("portfolio", "Portfolio", "Showcase your work"),
)
FALLBACK_ITEMS = (MenuItem("job_board", "Job Board", "Browse and apply to jobs"),)
COMMON_ITEMS = (
    MenuItem("profile", "Profile", "Manage your profile and settings"),
    MenuItem("subscription", "Subscription", "Upgrade your plan for more features"),
    MenuItem("chat", "Chat", "Message with other users"),
)
ADMIN_ITEM = MenuItem("admin_dashboard", "Admin Dashboard", "Manage users and monitor system")

# Destinations behind a gate; the paywall is shown when a tier gate fails.
DESTINATION_GATES: dict[str, tuple[Callable[[Identity | None], bool], bool]] = {
    "chat": (policy.can_message, True),
    "admin_dashboard": (policy.is_admin, False),
    "post_job": (policy.can_post_job, False),
    "my_jobs": (policy.can_post_job, False),
    "applications": (policy.can_post_job, False),
    "portfolio": (policy.can_create_portfolio_item, False),
}


def menu_for(identity: Identity | None) -> list[MenuItem]:
    if identity is None:
        return []
    if identity.role == Role.POSTER:
        items = [*POSTER_ITEMS, *COMMON_ITEMS]
    elif identity.role == Role.PROVIDER:
        items = [*PROVIDER_ITEMS, *COMMON_ITEMS]
    else:
        items = [*FALLBACK_ITEMS, *COMMON_ITEMS]
    if policy.is_admin(identity):
        items.append(ADMIN_ITEM)
    return items


class HomeController(ScreenController):
    def menu(self) -> list[MenuItem]:
        return menu_for(self.identity)

    async def open(self, destination: str) -> ActionResult[str]:
        async def operation() -> str:
            gate = DESTINATION_GATES.get(destination)
            if gate is not None:
                check, paywalled = gate
                if not check(self.identity):
                    if paywalled:
                        self.show_paywall()
                    raise AccessDeniedError(f"not permitted to open {destination}")
            return destination

        return await self._run(f"open {destination}", operation, failure_message="Navigation failed")
