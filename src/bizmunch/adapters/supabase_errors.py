"""Translation of Supabase transport failures into domain errors."""

from collections.abc import Iterator
from contextlib import contextmanager

import httpx
from postgrest.exceptions import APIError

from bizmunch.domain.errors import CollaboratorUnavailableError

# PostgREST codes for a database it cannot reach or a connection pool timeout.
_UNAVAILABLE_API_CODES = frozenset({"PGRST000", "PGRST001", "PGRST002", "PGRST003"})


@contextmanager
def collaborator_errors(action: str) -> Iterator[None]:
    """Re-raise transport failures and upstream 5xx responses as unavailability.

    Other PostgREST errors, such as constraint violations, propagate unchanged.
    """
    try:
        yield
    except httpx.HTTPError as exc:
        raise CollaboratorUnavailableError(f"Supabase {action} failed: {exc}") from exc
    except APIError as exc:
        if not _is_unavailable(exc):
            raise
        raise CollaboratorUnavailableError(
            f"Supabase {action} failed: {exc.code} {exc.message}"
        ) from exc


def _is_unavailable(exc: APIError) -> bool:
    """Return True when a PostgREST error reports an upstream outage."""
    code = str(exc.code or "")
    if code in _UNAVAILABLE_API_CODES:
        return True
    return len(code) == 3 and code.isdigit() and code.startswith("5")
