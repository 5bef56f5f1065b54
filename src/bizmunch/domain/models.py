"""Domain models for users and companies."""

from dataclasses import dataclass
from uuid import UUID


@dataclass(frozen=True)
class UserRecord:
    """Represents a user stored in the database."""

    id: UUID
    email: str
    first_name: str
    last_name: str
    company_id: UUID
    verified: bool = False

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


@dataclass(frozen=True)
class Company:
    """Company that issues invitation codes to its employees."""

    id: UUID
    name: str
    location: str
    invitation_code: str
    domain: str | None = None
    status: str = "active"

    @property
    def is_active(self) -> bool:
        return self.status == "active"
