"""Collection service — the games a user owns, with notes and labels.

Learn: Entries are addressed by (user, game_id), so a lookup only ever
finds the caller's own row. The ownership guard still runs before every
mutation so the rule lives in one place, not in how queries happen to
be written.

Label names go through LabelReconciler before the entry is touched.
Passing labels=None on update leaves the current labels alone; passing
an empty list clears them.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, Optional

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from gameshelf.auth.identity import Identity
from gameshelf.auth.ownership import ensure_owner
from gameshelf.db.models import CollectionEntry, Label, User
from gameshelf.services.errors import ConflictError, NotFoundError
from gameshelf.services.label_service import LabelReconciler
from gameshelf.services.review_service import ReviewService, UserNotFoundError

logger = structlog.get_logger()


class GameNotInCollectionError(NotFoundError):
    """Raised when the game isn't in the caller's collection."""


class GameAlreadyInCollectionError(ConflictError):
    """Raised when adding a game the caller already has."""


@dataclass
class CollectionItem:
    """An entry plus the owner's rating for that game, if any."""
    entry: CollectionEntry
    user_rating: Optional[int] = None


class CollectionService:
    """Add, update, remove, and list games in a user's collection."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.labels = LabelReconciler(db)
        self.reviews = ReviewService(db)

    async def get_collection(self, identity: Identity) -> list[CollectionItem]:
        await self._require_user(identity)
        result = await self.db.execute(
            select(CollectionEntry)
            .where(CollectionEntry.user_id == identity.subject)
            .order_by(CollectionEntry.modified_at.desc(), CollectionEntry.id.desc())
        )
        ratings = await self.reviews.ratings_by_game(identity.subject)
        return [
            CollectionItem(entry=entry, user_rating=ratings.get(entry.game_id))
            for entry in result.scalars().all()
        ]

    async def list_labels(self, identity: Identity) -> list[Label]:
        """Every label the caller has made, including ones no game uses any more."""
        await self._require_user(identity)
        return await self.labels.list_labels(identity.subject)

    async def add_game(
        self,
        identity: Identity,
        *,
        game_id: int,
        notes: Optional[str] = None,
        label_names: Optional[Iterable[str]] = None,
    ) -> CollectionItem:
        await self._require_user(identity)
        if await self._find_entry(identity.subject, game_id):
            raise GameAlreadyInCollectionError(
                f"Game {game_id} is already in your collection"
            )

        labels = await self.labels.reconcile(identity.subject, label_names or [])
        entry = CollectionEntry(
            user_id=identity.subject,
            game_id=game_id,
            notes=notes,
            modified_at=datetime.now(timezone.utc),
            labels=labels,
        )
        self.db.add(entry)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise GameAlreadyInCollectionError(
                f"Game {game_id} is already in your collection"
            )

        logger.info("collection.game_added", game_id=game_id, labels=len(labels))
        return await self._item(identity.subject, game_id)

    async def update_game(
        self,
        identity: Identity,
        game_id: int,
        *,
        notes: Optional[str] = None,
        label_names: Optional[Iterable[str]] = None,
    ) -> CollectionItem:
        await self._require_user(identity)
        entry = await self._get_entry(identity.subject, game_id)
        ensure_owner(identity, entry.user_id, "collection entry")

        entry.notes = notes
        entry.modified_at = datetime.now(timezone.utc)
        if label_names is not None:
            entry.labels = await self.labels.reconcile(identity.subject, label_names)
        await self.db.commit()

        logger.info("collection.game_updated", game_id=game_id)
        return await self._item(identity.subject, game_id)

    async def remove_game(self, identity: Identity, game_id: int) -> None:
        await self._require_user(identity)
        entry = await self._get_entry(identity.subject, game_id)
        ensure_owner(identity, entry.user_id, "collection entry")

        await self.db.delete(entry)
        await self.db.commit()
        logger.info("collection.game_removed", game_id=game_id)

    # ─── Helpers ──────────────────────────────────────────

    async def _require_user(self, identity: Identity) -> None:
        if not await self.db.get(User, identity.subject):
            raise UserNotFoundError(f"User {identity.subject} not found")

    async def _find_entry(self, user_id: int, game_id: int) -> CollectionEntry | None:
        result = await self.db.execute(
            select(CollectionEntry)
            .where(CollectionEntry.user_id == user_id, CollectionEntry.game_id == game_id)
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    async def _get_entry(self, user_id: int, game_id: int) -> CollectionEntry:
        entry = await self._find_entry(user_id, game_id)
        if not entry:
            raise GameNotInCollectionError(
                f"Game {game_id} is not in your collection"
            )
        return entry

    async def _item(self, user_id: int, game_id: int) -> CollectionItem:
        entry = await self._get_entry(user_id, game_id)
        ratings = await self.reviews.ratings_by_game(user_id)
        return CollectionItem(entry=entry, user_rating=ratings.get(game_id))
