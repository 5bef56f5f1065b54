"""Pydantic models for API request payloads."""

from pydantic import BaseModel, Field


class RegisterRequest(BaseModel):
    """Payload for registering a user under a company invitation."""

    email: str = Field(min_length=3, pattern=r"^[^@\s]+@[^@\s]+$")
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    invitation: str = Field(min_length=1)


class FavoritesUpdate(BaseModel):
    """Full replacement of a user's favorite restaurants."""

    restaurant_ids: list[str]
