"""Dependency container wiring for the application."""

from dataclasses import dataclass

from supabase import create_client

from bizmunch.adapters.supabase_company_repository import SupabaseCompanyRepository
from bizmunch.adapters.supabase_restaurant_repository import (
    SupabaseRestaurantRepository,
)
from bizmunch.adapters.supabase_rotation_repository import SupabaseRotationRepository
from bizmunch.adapters.supabase_user_repository import SupabaseUserRepository
from bizmunch.config import Settings
from bizmunch.services.companies import CompanyService
from bizmunch.services.restaurants import RestaurantService
from bizmunch.services.rotation import RotationService
from bizmunch.services.scheduler import RotationScheduler, SystemClock
from bizmunch.services.users import UserService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    restaurant_service: RestaurantService
    company_service: CompanyService
    rotation_service: RotationService
    user_service: UserService
    rotation_scheduler: RotationScheduler


def build_scheduler(
    settings: Settings, rotation_service: RotationService
) -> RotationScheduler:
    """Create a scheduler configured from settings."""
    return RotationScheduler(
        rotation_service=rotation_service,
        clock=SystemClock(),
        weekday=settings.rotation_weekday,
        hour=settings.rotation_hour,
        timezone_name=settings.rotation_timezone,
        max_workers=settings.scheduler_max_workers,
        user_timeout_seconds=settings.scheduler_user_timeout_seconds,
        retry_attempts=settings.scheduler_retry_attempts,
        retry_delay_seconds=settings.scheduler_retry_delay_seconds,
    )


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    restaurant_repository = SupabaseRestaurantRepository(supabase_client)
    company_repository = SupabaseCompanyRepository(supabase_client)
    rotation_repository = SupabaseRotationRepository(supabase_client)
    user_repository = SupabaseUserRepository(supabase_client)

    restaurant_service = RestaurantService(restaurant_repository)
    company_service = CompanyService(company_repository)
    rotation_service = RotationService(
        repository=rotation_repository,
        catalog=restaurant_repository,
        rotation_size=resolved_settings.rotation_size,
    )
    user_service = UserService(
        repository=user_repository,
        company_service=company_service,
        rotation_service=rotation_service,
    )
    rotation_scheduler = build_scheduler(resolved_settings, rotation_service)

    return AppContainer(
        settings=resolved_settings,
        restaurant_service=restaurant_service,
        company_service=company_service,
        rotation_service=rotation_service,
        user_service=user_service,
        rotation_scheduler=rotation_scheduler,
    )
