"""Review service — one rating + write-up per user per game.

Learn: Reads are public; writes are owner-only. Update and delete load
the review first (NotFound if missing), then run the ownership guard
(Forbidden if it belongs to someone else), then change it.
"""

from dataclasses import dataclass
from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from gameshelf.auth.identity import Identity
from gameshelf.auth.ownership import ensure_owner
from gameshelf.db.models import Review, User
from gameshelf.services.errors import ConflictError, NotFoundError

logger = structlog.get_logger()


class ReviewNotFoundError(NotFoundError):
    """Raised when a review is not found."""


class ReviewAlreadyExistsError(ConflictError):
    """Raised when a user reviews the same game twice."""


class UserNotFoundError(NotFoundError):
    """Raised when the caller's user row no longer exists."""


@dataclass
class GameReviews:
    reviews: list[Review]
    total_count: int
    average_rating: Optional[float]


class ReviewService:
    """Create, read, update, and delete game reviews."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ─── Create ───────────────────────────────────────────

    async def create_review(
        self,
        identity: Identity,
        *,
        game_id: int,
        rating: int,
        review_text: Optional[str] = None,
    ) -> Review:
        if not await self.db.get(User, identity.subject):
            raise UserNotFoundError(f"User {identity.subject} not found")

        if await self._find_by_user_and_game(identity.subject, game_id):
            raise ReviewAlreadyExistsError(
                f"User {identity.subject} has already reviewed game {game_id}"
            )

        review = Review(
            user_id=identity.subject,
            game_id=game_id,
            rating=rating,
            review_text=review_text,
        )
        self.db.add(review)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ReviewAlreadyExistsError(
                f"User {identity.subject} has already reviewed game {game_id}"
            )

        logger.info("review.created", review_id=review.id, game_id=game_id)
        return await self.get_review(review.id)

    # ─── Read ─────────────────────────────────────────────

    async def get_review(self, review_id: int) -> Review:
        result = await self.db.execute(
            select(Review)
            .where(Review.id == review_id)
            .execution_options(populate_existing=True)
        )
        review = result.scalars().first()
        if not review:
            raise ReviewNotFoundError(f"Review {review_id} not found")
        return review

    async def list_for_user(self, user_id: int) -> list[Review]:
        result = await self.db.execute(
            select(Review)
            .where(Review.user_id == user_id)
            .order_by(Review.created_at.desc(), Review.id.desc())
        )
        return list(result.scalars().all())

    async def list_for_game(self, game_id: int) -> GameReviews:
        result = await self.db.execute(
            select(Review)
            .where(Review.game_id == game_id)
            .order_by(Review.created_at.desc(), Review.id.desc())
        )
        reviews = list(result.scalars().all())
        average = (
            sum(r.rating for r in reviews) / len(reviews) if reviews else None
        )
        return GameReviews(
            reviews=reviews, total_count=len(reviews), average_rating=average
        )

    # ─── Update / delete (owner only) ─────────────────────

    async def update_review(
        self,
        identity: Identity,
        review_id: int,
        *,
        rating: int,
        review_text: Optional[str] = None,
    ) -> Review:
        review = await self.get_review(review_id)
        ensure_owner(identity, review.user_id, "review")

        review.rating = rating
        review.review_text = review_text
        await self.db.commit()

        logger.info("review.updated", review_id=review_id)
        return await self.get_review(review_id)

    async def delete_review(self, identity: Identity, review_id: int) -> None:
        review = await self.get_review(review_id)
        ensure_owner(identity, review.user_id, "review")

        await self.db.delete(review)
        await self.db.commit()
        logger.info("review.deleted", review_id=review_id)

    # ─── Helpers ──────────────────────────────────────────

    async def _find_by_user_and_game(self, user_id: int, game_id: int) -> Review | None:
        result = await self.db.execute(
            select(Review).where(Review.user_id == user_id, Review.game_id == game_id)
        )
        return result.scalars().first()

    async def ratings_by_game(self, user_id: int) -> dict[int, int]:
        """game_id → rating for every game the user has reviewed."""
        result = await self.db.execute(
            select(Review.game_id, Review.rating).where(Review.user_id == user_id)
        )
        return {game_id: rating for game_id, rating in result.all()}
