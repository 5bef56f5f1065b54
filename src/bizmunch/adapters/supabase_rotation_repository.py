"""Supabase repository for per-user favorites and rotations."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from supabase import Client

from bizmunch.adapters.supabase_errors import collaborator_errors
from bizmunch.adapters.supabase_restaurant_repository import parse_restaurant
from bizmunch.domain.rotation import RotationEntry, UserRotationState
from bizmunch.services.rotation import RotationRepository


@dataclass
class SupabaseRotationRepository(RotationRepository):
    """Stores each user's rotation as a single JSON column.

    Replacing the column in one update keeps the rotation atomic for readers.
    """

    client: Client

    def get_state(self, user_id: UUID) -> UserRotationState | None:
        """Return the stored state for a user, if present."""
        with collaborator_errors("get rotation"):
            response = (
                self.client.table("user_rotations")
                .select("user_id, favorites, rotation, updated_at")
                .eq("user_id", str(user_id))
                .limit(1)
                .execute()
            )
        if not response.data:
            return None
        return _parse_state(response.data[0])

    def create_state(
        self, user_id: UUID, rotation: tuple[RotationEntry, ...]
    ) -> UserRotationState:
        """Create the rotation row for a new user."""
        with collaborator_errors("create rotation"):
            response = (
                self.client.table("user_rotations")
                .insert(
                    {
                        "user_id": str(user_id),
                        "favorites": [],
                        "rotation": [_serialize_entry(entry) for entry in rotation],
                        "updated_at": datetime.now(tz=UTC).isoformat(),
                    }
                )
                .execute()
            )
        if not response.data:
            raise RuntimeError("Failed to create rotation state")
        return _parse_state(response.data[0])

    def replace_rotation(
        self, user_id: UUID, rotation: tuple[RotationEntry, ...]
    ) -> bool:
        """Overwrite the stored rotation in a single update."""
        with collaborator_errors("replace rotation"):
            response = (
                self.client.table("user_rotations")
                .update(
                    {
                        "rotation": [_serialize_entry(entry) for entry in rotation],
                        "updated_at": datetime.now(tz=UTC).isoformat(),
                    }
                )
                .eq("user_id", str(user_id))
                .execute()
            )
        return bool(response.data)

    def replace_favorites(
        self,
        user_id: UUID,
        favorites: frozenset[str],
        rotation: tuple[RotationEntry, ...],
    ) -> bool:
        """Overwrite favorites and rotation together in a single update."""
        with collaborator_errors("replace favorites"):
            response = (
                self.client.table("user_rotations")
                .update(
                    {
                        "favorites": sorted(favorites),
                        "rotation": [_serialize_entry(entry) for entry in rotation],
                        "updated_at": datetime.now(tz=UTC).isoformat(),
                    }
                )
                .eq("user_id", str(user_id))
                .execute()
            )
        return bool(response.data)

    def list_user_ids(self) -> list[UUID]:
        """Return ids of every user with rotation state."""
        with collaborator_errors("list rotation users"):
            response = self.client.table("user_rotations").select("user_id").execute()
        return [UUID(row["user_id"]) for row in response.data or []]


def _serialize_entry(entry: RotationEntry) -> dict[str, object]:
    restaurant = entry.restaurant
    return {
        "id": restaurant.id,
        "name": restaurant.name,
        "category": restaurant.category,
        "location": restaurant.location,
        "logo_asset_id": restaurant.logo_asset_id,
        "barcode_asset_id": restaurant.barcode_asset_id,
        "from_favorites": entry.from_favorites,
    }


def _parse_state(row: dict[str, object]) -> UserRotationState:
    updated_raw = row.get("updated_at")
    updated_at = (
        datetime.fromisoformat(updated_raw)
        if isinstance(updated_raw, str) and updated_raw
        else None
    )
    return UserRotationState(
        user_id=UUID(str(row["user_id"])),
        favorites=frozenset(str(value) for value in row.get("favorites") or []),
        rotation=tuple(
            RotationEntry(
                restaurant=parse_restaurant(item),
                from_favorites=bool(item.get("from_favorites", False)),
            )
            for item in row.get("rotation") or []
        ),
        updated_at=updated_at,
    )
