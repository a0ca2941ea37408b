"""Pydantic schemas for game reviews.

Learn: The "Create" schema carries the game id; the "Update" schema
doesn't, because a review never moves to another game.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class ReviewCreate(BaseModel):
    game_id: int = Field(..., gt=0, description="Board game id")
    rating: int = Field(..., ge=1, le=5)
    review_text: Optional[str] = Field(None, max_length=2000)


class ReviewUpdate(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    review_text: Optional[str] = Field(None, max_length=2000)


class ReviewRead(BaseModel):
    id: int
    user_id: int
    user_name: Optional[str] = None
    game_id: int
    rating: int
    review_text: Optional[str]
    created_at: datetime
    updated_at: Optional[datetime]

    model_config = {"from_attributes": True}


class GameReviewsRead(BaseModel):
    """All reviews for one game, with count and average rating."""
    reviews: list[ReviewRead]
    total_count: int
    average_rating: Optional[float]

    model_config = {"from_attributes": True}
