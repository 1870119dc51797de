from __future__ import annotations

from tailorboard.context import MarketplaceContext
from tailorboard.controllers.base import ActionResult, ScreenController
from tailorboard.core import policy
from tailorboard.core.errors import AccessDeniedError, ValidationError
from tailorboard.schemas.profiles import PortfolioItem, PortfolioItemCreate, Profile, ProfileUpdate


class PortfolioController(ScreenController):
    def __init__(self, context: MarketplaceContext) -> None:
        super().__init__(context)
        self.profile: Profile | None = None
        self.items: list[PortfolioItem] = []

    async def load(self) -> ActionResult[list[PortfolioItem]]:
        identity = self.identity

        async def operation() -> list[PortfolioItem]:
            owner = policy.require_identity(identity, "view a portfolio")
            profile = await self.repository.get_profile(owner.id)
            items = await self.repository.list_portfolio_items(owner.id)
            self.profile, self.items = profile, items
            return items

        return await self._run("load portfolio", operation, failure_message="Failed to load portfolio items")

    async def save_profile(self, update: ProfileUpdate) -> ActionResult[Profile]:
        identity = self.identity

        async def operation() -> Profile:
            if identity is None or not policy.can_edit_profile(identity, identity.id):
                raise AccessDeniedError("not permitted to edit this profile")
            profile = await self.repository.upsert_profile(identity.id, update)
            self.profile = profile
            return profile

        return await self._run(
            "save profile",
            operation,
            failure_message="Failed to update profile",
            success_message="Profile updated successfully",
        )

    async def add_item(self, item: PortfolioItemCreate) -> ActionResult[PortfolioItem]:
        identity = self.identity

        async def operation() -> PortfolioItem:
            owner = policy.require_identity(identity, "add portfolio items")
            policy.require(policy.can_create_portfolio_item(owner), "add portfolio items")
            if not item.title.strip() or not item.category.strip():
                raise ValidationError("Title and category are required")
            created = await self.repository.create_portfolio_item(owner.id, item)
            self.items = [created, *self.items]
            return created

        return await self._run("add portfolio item", operation, failure_message="Failed to add portfolio item")

    async def delete_item(self, item_id: str) -> ActionResult[None]:
        identity = self.identity

        async def operation() -> None:
            item = next((entry for entry in self.items if entry.id == item_id), None)
            if item is None:
                raise ValidationError("Portfolio item is not loaded")
            policy.require(policy.can_manage_portfolio_item(identity, item), "delete this portfolio item")
            await self.repository.delete_portfolio_item(item_id)
            self.items = [entry for entry in self.items if entry.id != item_id]

        return await self._run(
            "delete portfolio item",
            operation,
            failure_message="Failed to delete portfolio item",
            success_message="Portfolio item deleted successfully",
        )
