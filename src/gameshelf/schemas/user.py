"""Pydantic schemas for the caller's profile."""

from pydantic import BaseModel, Field, field_validator


class ProfileUpdate(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Name is required")
        return value
