"""Profile service — read, rename, and delete the caller's account."""

import structlog
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from gameshelf.auth.identity import Identity
from gameshelf.auth.ownership import ensure_owner
from gameshelf.db.models import (
    CollectionEntry,
    Label,
    Review,
    RevokedToken,
    User,
    collection_entry_labels,
)
from gameshelf.services.review_service import UserNotFoundError

logger = structlog.get_logger()


class UserService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_profile(self, identity: Identity) -> User:
        user = await self.db.get(User, identity.subject)
        if not user:
            raise UserNotFoundError(f"User {identity.subject} not found")
        return user

    async def update_profile(self, identity: Identity, *, name: str) -> User:
        user = await self.get_profile(identity)
        ensure_owner(identity, user.id, "profile")

        user.name = name
        await self.db.commit()
        await self.db.refresh(user)
        logger.info("user.profile_updated", user_id=user.id)
        return user

    async def delete_account(self, identity: Identity) -> None:
        """Delete the user and everything they own.

        Learn: Bulk deletes in dependency order instead of relying on
        ON DELETE CASCADE, which SQLite only honours with a pragma.
        """
        user = await self.get_profile(identity)
        ensure_owner(identity, user.id, "account")

        owned_entries = select(CollectionEntry.id).where(
            CollectionEntry.user_id == user.id
        )
        await self.db.execute(
            delete(collection_entry_labels).where(
                collection_entry_labels.c.user_board_game_id.in_(owned_entries)
            )
        )
        for model in (Review, CollectionEntry, Label, RevokedToken):
            await self.db.execute(delete(model).where(model.user_id == user.id))
        await self.db.delete(user)
        await self.db.commit()
        logger.info("user.account_deleted", user_id=identity.subject)
