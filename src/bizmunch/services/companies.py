"""Company lookups and invitation code validation."""

from dataclasses import dataclass
from typing import Protocol

from bizmunch.domain.errors import NotFoundError
from bizmunch.domain.models import Company


class CompanyRepository(Protocol):
    """Persistence interface for companies."""

    def list_companies(self) -> list[Company]:
        """Return all companies."""

    def get_by_invitation_code(self, invitation_code: str) -> Company | None:
        """Return the company owning an invitation code, if present."""


@dataclass
class CompanyService:
    """Application service for company data."""

    repository: CompanyRepository

    def list_names(self) -> list[str]:
        """Return company names in alphabetical order."""
        return sorted(company.name for company in self.repository.list_companies())

    def validate_invitation(self, invitation_code: str) -> Company:
        """Return the active company for a code or raise NotFoundError."""
        company = self.repository.get_by_invitation_code(invitation_code.strip())
        if company is None or not company.is_active:
            raise NotFoundError("Invalid invitation code")
        return company
