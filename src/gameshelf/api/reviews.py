"""Review API.

Learn: Routes for game reviews:
- POST /reviews → review a game (one per user per game)
- GET /reviews/me → the caller's reviews
- GET /reviews/games/:game_id → a game's reviews + count + average (public)
- GET /reviews/:id → one review (public)
- PUT /reviews/:id → edit (owner only)
- DELETE /reviews/:id → delete (owner only)

/reviews/me is declared before /reviews/{review_id} so "me" never gets
parsed as an id.
"""

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.ext.asyncio import AsyncSession

from gameshelf.auth.dependencies import get_current_identity
from gameshelf.auth.identity import Identity
from gameshelf.db.engine import get_db
from gameshelf.schemas.review import (
    GameReviewsRead,
    ReviewCreate,
    ReviewRead,
    ReviewUpdate,
)
from gameshelf.services.errors import ConflictError, ForbiddenError, NotFoundError
from gameshelf.services.review_service import ReviewService

router = APIRouter(prefix="/reviews")


def _svc(db: AsyncSession = Depends(get_db)) -> ReviewService:
    return ReviewService(db)


# ─── Create ──────────────────────────────────────────────


@router.post("", response_model=ReviewRead, status_code=201)
async def create_review(
    body: ReviewCreate,
    identity: Identity = Depends(get_current_identity),
    svc: ReviewService = Depends(_svc),
):
    try:
        return await svc.create_review(
            identity,
            game_id=body.game_id,
            rating=body.rating,
            review_text=body.review_text,
        )
    except ConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except NotFoundError:
        raise HTTPException(status_code=404, detail="User not found")


# ─── Read ────────────────────────────────────────────────


@router.get("/me", response_model=list[ReviewRead])
async def list_my_reviews(
    identity: Identity = Depends(get_current_identity),
    svc: ReviewService = Depends(_svc),
):
    return await svc.list_for_user(identity.subject)


@router.get("/games/{game_id}", response_model=GameReviewsRead)
async def list_game_reviews(game_id: int, svc: ReviewService = Depends(_svc)):
    result = await svc.list_for_game(game_id)
    return GameReviewsRead(
        reviews=[ReviewRead.model_validate(r) for r in result.reviews],
        total_count=result.total_count,
        average_rating=result.average_rating,
    )


@router.get("/{review_id}", response_model=ReviewRead)
async def get_review(review_id: int, svc: ReviewService = Depends(_svc)):
    try:
        return await svc.get_review(review_id)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Review not found")


# ─── Update / delete ─────────────────────────────────────


@router.put("/{review_id}", response_model=ReviewRead)
async def update_review(
    review_id: int,
    body: ReviewUpdate,
    identity: Identity = Depends(get_current_identity),
    svc: ReviewService = Depends(_svc),
):
    try:
        return await svc.update_review(
            identity,
            review_id,
            rating=body.rating,
            review_text=body.review_text,
        )
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Review not found")
    except ForbiddenError as e:
        raise HTTPException(status_code=403, detail=str(e))


@router.delete("/{review_id}", status_code=204)
async def delete_review(
    review_id: int,
    identity: Identity = Depends(get_current_identity),
    svc: ReviewService = Depends(_svc),
):
    try:
        await svc.delete_review(identity, review_id)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Review not found")
    except ForbiddenError as e:
        raise HTTPException(status_code=403, detail=str(e))
    return Response(status_code=204)
