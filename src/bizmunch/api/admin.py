"""Admin API endpoints with simple token auth."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

if TYPE_CHECKING:
    from bizmunch.containers import AppContainer

router = APIRouter(prefix="/admin", tags=["admin"])


def _get_admin_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.admin_token


async def require_admin(
    x_admin_token: str | None = Header(default=None),
    admin_token: str = Depends(_get_admin_token),
) -> None:
    """Ensure requests include a valid admin token."""
    if not x_admin_token or x_admin_token != admin_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


@router.get("/health", dependencies=[Depends(require_admin)])
async def admin_health() -> dict[str, str]:
    """Admin health check endpoint."""
    return {"status": "ok"}


@router.post("/rotation/run", dependencies=[Depends(require_admin)])
async def run_rotation_pass(request: Request) -> dict[str, object]:
    """Run a recomputation pass over every user immediately."""
    container: AppContainer = request.app.state.container
    report = await container.rotation_scheduler.run_pass()
    return report.as_dict()


@router.post("/users/{user_id}/rotation", dependencies=[Depends(require_admin)])
async def refresh_user_rotation(user_id: UUID, request: Request) -> dict[str, object]:
    """Recompute a single user's rotation."""
    container: AppContainer = request.app.state.container
    state = await container.rotation_service.refresh_user(user_id)
    return {
        "user_id": str(state.user_id),
        "rotation": state.rotation_ids,
    }
