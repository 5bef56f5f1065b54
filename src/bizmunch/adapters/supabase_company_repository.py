"""Supabase-backed company repository."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from bizmunch.adapters.supabase_errors import collaborator_errors
from bizmunch.domain.models import Company
from bizmunch.services.companies import CompanyRepository

_COMPANY_COLUMNS = "id, name, domain, location, invitation_code, status"


@dataclass
class SupabaseCompanyRepository(CompanyRepository):
    """Supabase implementation for company lookups."""

    client: Client

    def list_companies(self) -> list[Company]:
        """Return all companies."""
        with collaborator_errors("list companies"):
            response = self.client.table("companies").select(_COMPANY_COLUMNS).execute()
        return [_parse_company(row) for row in response.data or []]

    def get_by_invitation_code(self, invitation_code: str) -> Company | None:
        """Return the company owning an invitation code."""
        with collaborator_errors("get company"):
            response = (
                self.client.table("companies")
                .select(_COMPANY_COLUMNS)
                .eq("invitation_code", invitation_code)
                .limit(1)
                .execute()
            )
        if not response.data:
            return None
        return _parse_company(response.data[0])


def _parse_company(row: dict[str, object]) -> Company:
    return Company(
        id=UUID(str(row["id"])),
        name=str(row.get("name", "")),
        location=str(row.get("location", "")),
        invitation_code=str(row.get("invitation_code", "")),
        domain=row.get("domain"),
        status=str(row.get("status") or "active"),
    )
