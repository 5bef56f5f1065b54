"""Domain models for per-user restaurant rotations."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from bizmunch.domain.restaurants import RestaurantRef

ROTATION_SIZE = 10


@dataclass(frozen=True)
class RotationEntry:
    """One slot in a user's rotation."""

    restaurant: RestaurantRef
    from_favorites: bool


@dataclass(frozen=True)
class UserRotationState:
    """Favorites and the current rotation owned by a single user."""

    user_id: UUID
    favorites: frozenset[str]
    rotation: tuple[RotationEntry, ...]
    updated_at: datetime | None = None

    @property
    def rotation_ids(self) -> list[str]:
        """Return restaurant ids in rotation order."""
        return [entry.restaurant.id for entry in self.rotation]
