from __future__ import annotations

from tailorboard.controllers.base import ActionResult, ScreenController
from tailorboard.core import policy
from tailorboard.core.errors import AccessDeniedError
from tailorboard.schemas.messages import Message


class ChatController(ScreenController):
    """Message history only; live delivery is not wired up yet."""

    async def fetch(self) -> ActionResult[list[Message]]:
        identity = self.identity

        async def operation() -> list[Message]:
            if not policy.can_message(identity):
                self.show_paywall()
                raise AccessDeniedError("a Basic or Premium subscription is required for messaging")
            user = policy.require_identity(identity, "read messages")
            messages = await self.repository.list_messages(user.id)
            self.store.replace_messages(messages)
            return messages

        return await self._run("fetch messages", operation, failure_message="Failed to load messages")
