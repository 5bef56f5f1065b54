"""Supabase-backed user repository."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from bizmunch.adapters.supabase_errors import collaborator_errors
from bizmunch.domain.models import UserRecord
from bizmunch.services.users import UserRepository

_USER_COLUMNS = "id, email, first_name, last_name, company_id, verified"


@dataclass
class SupabaseUserRepository(UserRepository):
    """Supabase implementation for user persistence."""

    client: Client

    def get_by_email(self, email: str) -> UserRecord | None:
        """Return the user registered with an email, if present."""
        with collaborator_errors("get user"):
            response = (
                self.client.table("users")
                .select(_USER_COLUMNS)
                .eq("email", email)
                .limit(1)
                .execute()
            )
        if response.data:
            return _parse_user(response.data[0])
        return None

    def get_by_id(self, user_id: UUID) -> UserRecord | None:
        """Return the user for an id, if present."""
        with collaborator_errors("get user"):
            response = (
                self.client.table("users")
                .select(_USER_COLUMNS)
                .eq("id", str(user_id))
                .limit(1)
                .execute()
            )
        if response.data:
            return _parse_user(response.data[0])
        return None

    def create_user(
        self, email: str, first_name: str, last_name: str, company_id: UUID
    ) -> UserRecord:
        """Create a new user row and return it."""
        with collaborator_errors("create user"):
            response = (
                self.client.table("users")
                .insert(
                    {
                        "email": email,
                        "first_name": first_name,
                        "last_name": last_name,
                        "company_id": str(company_id),
                    }
                )
                .execute()
            )
        if not response.data:
            raise RuntimeError("Failed to create user in Supabase")
        return _parse_user(response.data[0])


def _parse_user(row: dict[str, object]) -> UserRecord:
    return UserRecord(
        id=UUID(str(row["id"])),
        email=str(row["email"]),
        first_name=str(row.get("first_name", "")),
        last_name=str(row.get("last_name", "")),
        company_id=UUID(str(row["company_id"])),
        verified=bool(row.get("verified", False)),
    )
