"""FastAPI application factory."""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager, suppress
from uuid import UUID

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from bizmunch.api.admin import router as admin_router
from bizmunch.api.models import FavoritesUpdate, RegisterRequest
from bizmunch.app_logging import configure_logging
from bizmunch.containers import AppContainer
from bizmunch.domain.errors import (
    CollaboratorUnavailableError,
    ConflictError,
    NotFoundError,
)
from bizmunch.domain.models import Company, UserRecord
from bizmunch.domain.restaurants import Menu, RestaurantRef
from bizmunch.domain.rotation import RotationEntry, UserRotationState


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        state_container: AppContainer = app.state.container
        scheduler_task = None
        if state_container.settings.scheduler_enabled:
            scheduler_task = asyncio.create_task(
                state_container.rotation_scheduler.run_forever()
            )
        yield
        if scheduler_task is not None:
            scheduler_task.cancel()
            with suppress(asyncio.CancelledError):
                await scheduler_task

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(admin_router)

    @app.exception_handler(NotFoundError)
    async def not_found(_: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND, content={"message": str(exc)}
        )

    @app.exception_handler(ConflictError)
    async def conflict(_: Request, exc: ConflictError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT, content={"message": str(exc)}
        )

    @app.exception_handler(CollaboratorUnavailableError)
    async def unavailable(
        _: Request, exc: CollaboratorUnavailableError
    ) -> JSONResponse:
        logger.warning("Collaborator unavailable: %s", exc)
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"message": "Service temporarily unavailable"},
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    # Handlers that reach the blocking repositories are plain functions so
    # FastAPI runs them in its threadpool.
    @app.get("/restaurants")
    def list_restaurants(request: Request) -> dict[str, object]:
        """Return the restaurant catalog."""
        state_container: AppContainer = request.app.state.container
        restaurants = state_container.restaurant_service.list_restaurants()
        return {"restaurants": [_serialize_restaurant(item) for item in restaurants]}

    @app.get("/restaurants/{restaurant_id}/menu")
    def restaurant_menu(restaurant_id: str, request: Request) -> dict[str, object]:
        """Return the menu for a restaurant."""
        state_container: AppContainer = request.app.state.container
        menu = state_container.restaurant_service.get_menu(restaurant_id)
        return _serialize_menu(menu)

    @app.get("/companies")
    def list_companies(request: Request) -> dict[str, object]:
        """Return company names."""
        state_container: AppContainer = request.app.state.container
        return {"companies": state_container.company_service.list_names()}

    @app.get("/companies/invitations/{invitation_code}")
    def validate_invitation(
        invitation_code: str, request: Request
    ) -> dict[str, object]:
        """Validate an invitation code against active companies."""
        state_container: AppContainer = request.app.state.container
        company = state_container.company_service.validate_invitation(invitation_code)
        return {"valid": True, **_serialize_company(company)}

    @app.post("/users/register", status_code=status.HTTP_201_CREATED)
    def register_user(
        payload: RegisterRequest, request: Request
    ) -> dict[str, object]:
        """Register a user and seed their first rotation."""
        state_container: AppContainer = request.app.state.container
        user, state = state_container.user_service.register(
            email=payload.email,
            first_name=payload.first_name,
            last_name=payload.last_name,
            invitation=payload.invitation,
        )
        return {"user": _serialize_user(user), **_serialize_state(state)}

    @app.get("/users/{user_id}")
    def user_detail(user_id: UUID, request: Request) -> dict[str, object]:
        """Return a registered user."""
        state_container: AppContainer = request.app.state.container
        user = state_container.user_service.get_user(user_id)
        return {"user": _serialize_user(user)}

    @app.get("/users/{user_id}/rotation")
    def user_rotation(user_id: UUID, request: Request) -> dict[str, object]:
        """Return the user's last persisted rotation."""
        state_container: AppContainer = request.app.state.container
        rotation = state_container.rotation_service.get_rotation(user_id)
        return {"rotation": [_serialize_entry(entry) for entry in rotation]}

    @app.get("/users/{user_id}/favorites")
    def user_favorites(user_id: UUID, request: Request) -> dict[str, object]:
        """Return the user's favorite restaurant ids."""
        state_container: AppContainer = request.app.state.container
        return {"favorites": state_container.rotation_service.get_favorites(user_id)}

    @app.put("/users/{user_id}/favorites")
    async def update_favorites(
        user_id: UUID, payload: FavoritesUpdate, request: Request
    ) -> dict[str, object]:
        """Replace favorites and return the recomputed rotation."""
        state_container: AppContainer = request.app.state.container
        state = await state_container.rotation_service.update_favorites(
            user_id, payload.restaurant_ids
        )
        return _serialize_state(state)

    return app


def _serialize_restaurant(restaurant: RestaurantRef) -> dict[str, object]:
    return {
        "id": restaurant.id,
        "name": restaurant.name,
        "category": restaurant.category,
        "location": restaurant.location,
        "logo_asset_id": restaurant.logo_asset_id,
        "barcode_asset_id": restaurant.barcode_asset_id,
    }


def _serialize_entry(entry: RotationEntry) -> dict[str, object]:
    return {
        **_serialize_restaurant(entry.restaurant),
        "from_favorites": entry.from_favorites,
    }


def _serialize_state(state: UserRotationState) -> dict[str, object]:
    return {
        "favorites": sorted(state.favorites),
        "rotation": [_serialize_entry(entry) for entry in state.rotation],
    }


def _serialize_user(user: UserRecord) -> dict[str, object]:
    return {
        "id": str(user.id),
        "name": user.full_name,
        "email": user.email,
        "company_id": str(user.company_id),
        "verified": user.verified,
    }


def _serialize_company(company: Company) -> dict[str, object]:
    return {
        "name": company.name,
        "domain": company.domain,
        "location": company.location,
    }


def _serialize_menu(menu: Menu) -> dict[str, object]:
    return {
        "id": menu.id,
        "restaurant_id": menu.restaurant_id,
        "restaurant_name": menu.restaurant_name,
        "menu": {
            section: [
                {
                    "name": item.name,
                    "price": item.price,
                    "calories": item.calories,
                    "description": item.description,
                    "discount": item.discount,
                    "image_asset_id": item.image_asset_id,
                    "barcode_asset_id": item.barcode_asset_id,
                }
                for item in items
            ]
            for section, items in menu.sections.items()
        },
    }
