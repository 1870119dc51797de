from __future__ import annotations

import logging

from tailorboard.controllers.base import ActionResult, ScreenController
from tailorboard.core.forms import validate_login, validate_signup
from tailorboard.schemas.identity import Identity, Role

logger = logging.getLogger(__name__)


class AuthController(ScreenController):
    async def bootstrap(self) -> Identity | None:
        """Resolve the session on app start; the logged-out flow is the fallback."""
        self.store.set_loading(True)
        try:
            identity = await self.session.resolve_current_identity()
            self.store.set_identity(identity)
            return identity
        finally:
            self.store.set_loading(False)

    async def login(self, email: str, password: str) -> ActionResult[Identity]:
        async def operation() -> Identity:
            validate_login(email, password)
            identity = await self.session.sign_in(email.strip(), password)
            self.store.set_identity(identity)
            return identity

        return await self._run("login", operation, failure_message="Login failed")

    async def signup(self, email: str, password: str, confirm_password: str, role: Role) -> ActionResult[Identity]:
        async def operation() -> Identity:
            validate_signup(email, password, confirm_password)
            identity = await self.session.sign_up(email.strip(), password, role)
            self.store.set_identity(self.session.identity)
            return identity

        return await self._run(
            "signup",
            operation,
            failure_message="Signup failed",
            success_message="Account created successfully! Please check your email for verification.",
        )

    async def logout(self) -> ActionResult[None]:
        async def operation() -> None:
            try:
                await self.session.sign_out()
            finally:
                self.store.reset()

        return await self._run("logout", operation, failure_message="Logout failed")
