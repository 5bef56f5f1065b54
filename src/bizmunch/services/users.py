"""User-related business logic."""

from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from bizmunch.domain.errors import ConflictError, NotFoundError
from bizmunch.domain.models import UserRecord
from bizmunch.domain.rotation import UserRotationState
from bizmunch.services.companies import CompanyService
from bizmunch.services.rotation import RotationService


class UserRepository(Protocol):
    """Persistence interface for user data."""

    def get_by_email(self, email: str) -> UserRecord | None:
        """Return the user registered with an email, if present."""

    def get_by_id(self, user_id: UUID) -> UserRecord | None:
        """Return the user for an id, if present."""

    def create_user(
        self, email: str, first_name: str, last_name: str, company_id: UUID
    ) -> UserRecord:
        """Create and return a new user record."""


@dataclass
class UserService:
    """Application service for user lifecycle actions."""

    repository: UserRepository
    company_service: CompanyService
    rotation_service: RotationService

    def register(
        self, email: str, first_name: str, last_name: str, invitation: str
    ) -> tuple[UserRecord, UserRotationState]:
        """Register a user under an invitation code and seed their rotation."""
        normalized_email = email.strip().lower()
        if self.repository.get_by_email(normalized_email):
            raise ConflictError("User with this email already exists")

        company = self.company_service.validate_invitation(invitation)
        user = self.repository.create_user(
            email=normalized_email,
            first_name=_normalize_name(first_name),
            last_name=_normalize_name(last_name),
            company_id=company.id,
        )
        state = self.rotation_service.seed_rotation(user.id)
        return user, state

    def get_user(self, user_id: UUID) -> UserRecord:
        """Return a user or raise NotFoundError."""
        user = self.repository.get_by_id(user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found")
        return user


def _normalize_name(value: str) -> str:
    cleaned = value.strip()
    return cleaned[:1].upper() + cleaned[1:].lower()
