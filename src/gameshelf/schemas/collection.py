"""Pydantic schemas for a user's board-game collection.

Learn: Label names arrive as a plain list and are deduplicated here,
so the service always sees a set of distinct names. Names must be
non-empty once trimmed; the stored name is exactly what was sent.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

MAX_LABELS = 10


def check_label_names(names: Optional[list[str]]) -> Optional[list[str]]:
    if names is None:
        return None
    for name in names:
        if not name.strip():
            raise ValueError("Label names cannot be blank")
        if len(name) > 50:
            raise ValueError("Label names cannot exceed 50 characters")
    unique = list(dict.fromkeys(names))
    if len(unique) > MAX_LABELS:
        raise ValueError(f"Cannot have more than {MAX_LABELS} labels")
    return unique


class CollectionGameCreate(BaseModel):
    game_id: int = Field(..., gt=0)
    notes: Optional[str] = Field(None, max_length=1000)
    label_names: Optional[list[str]] = None

    @field_validator("label_names")
    @classmethod
    def validate_label_names(cls, value):
        return check_label_names(value)


class CollectionGameUpdate(BaseModel):
    notes: Optional[str] = Field(None, max_length=1000)
    label_names: Optional[list[str]] = Field(
        None, description="Replace labels; omit to keep the current ones"
    )

    @field_validator("label_names")
    @classmethod
    def validate_label_names(cls, value):
        return check_label_names(value)


class LabelRead(BaseModel):
    id: int
    name: str

    model_config = {"from_attributes": True}


class CollectionItemRead(BaseModel):
    game_id: int
    notes: Optional[str]
    user_rating: Optional[int] = None
    modified_at: datetime
    labels: list[LabelRead] = []


class CollectionRead(BaseModel):
    games: list[CollectionItemRead]
    total_count: int
