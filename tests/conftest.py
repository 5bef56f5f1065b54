"""Shared test fixtures."""

import asyncio
import random
from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import UUID, uuid4

import pytest

from bizmunch.config import Settings
from bizmunch.containers import AppContainer
from bizmunch.domain.errors import CollaboratorUnavailableError
from bizmunch.domain.models import Company, UserRecord
from bizmunch.domain.restaurants import Menu, RestaurantRef
from bizmunch.domain.rotation import RotationEntry, UserRotationState
from bizmunch.services.companies import CompanyRepository, CompanyService
from bizmunch.services.restaurants import RestaurantRepository, RestaurantService
from bizmunch.services.rotation import RotationRepository, RotationService
from bizmunch.services.scheduler import RotationScheduler
from bizmunch.services.users import UserRepository, UserService

INVITATION_CODE = "ACME-2024"


def make_restaurant(index: int) -> RestaurantRef:
    return RestaurantRef(
        id=f"r{index:03d}",
        name=f"Restaurant {index}",
        category="Lunch",
        location="Downtown",
        logo_asset_id=f"logo-{index}",
        barcode_asset_id=None,
    )


def make_catalog(count: int) -> list[RestaurantRef]:
    return [make_restaurant(index) for index in range(count)]


def on_event_loop() -> bool:
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return False
    return True


@dataclass
class InMemoryRestaurantRepository(RestaurantRepository):
    """In-memory restaurant catalog for tests."""

    restaurants: list[RestaurantRef] = field(default_factory=list)
    menus: dict[str, Menu] = field(default_factory=dict)
    failures_remaining: int = 0
    calls: int = 0
    reads_on_loop: list[bool] = field(default_factory=list)

    def list_all(self) -> list[RestaurantRef]:
        self.calls += 1
        self.reads_on_loop.append(on_event_loop())
        if self.failures_remaining > 0:
            self.failures_remaining -= 1
            raise CollaboratorUnavailableError("catalog offline")
        return list(self.restaurants)

    def get_restaurant(self, restaurant_id: str) -> RestaurantRef | None:
        for restaurant in self.restaurants:
            if restaurant.id == restaurant_id:
                return restaurant
        return None

    def get_menu(self, restaurant_id: str) -> Menu | None:
        return self.menus.get(restaurant_id)


@dataclass
class InMemoryRotationRepository(RotationRepository):
    """In-memory rotation store for tests."""

    states: dict[UUID, UserRotationState] = field(default_factory=dict)
    rotation_writes: list[UUID] = field(default_factory=list)

    def get_state(self, user_id: UUID) -> UserRotationState | None:
        return self.states.get(user_id)

    def create_state(
        self, user_id: UUID, rotation: tuple[RotationEntry, ...]
    ) -> UserRotationState:
        state = UserRotationState(
            user_id=user_id,
            favorites=frozenset(),
            rotation=rotation,
            updated_at=datetime.now(tz=UTC),
        )
        self.states[user_id] = state
        return state

    def replace_rotation(
        self, user_id: UUID, rotation: tuple[RotationEntry, ...]
    ) -> bool:
        current = self.states.get(user_id)
        if current is None:
            return False
        self.states[user_id] = UserRotationState(
            user_id=user_id,
            favorites=current.favorites,
            rotation=rotation,
            updated_at=datetime.now(tz=UTC),
        )
        self.rotation_writes.append(user_id)
        return True

    def replace_favorites(
        self,
        user_id: UUID,
        favorites: frozenset[str],
        rotation: tuple[RotationEntry, ...],
    ) -> bool:
        if user_id not in self.states:
            return False
        self.states[user_id] = UserRotationState(
            user_id=user_id,
            favorites=favorites,
            rotation=rotation,
            updated_at=datetime.now(tz=UTC),
        )
        return True

    def list_user_ids(self) -> list[UUID]:
        return list(self.states)

    def add_user(self, favorites: set[str] | None = None) -> UUID:
        user_id = uuid4()
        self.states[user_id] = UserRotationState(
            user_id=user_id,
            favorites=frozenset(favorites or set()),
            rotation=(),
        )
        return user_id


@dataclass
class InMemoryCompanyRepository(CompanyRepository):
    """In-memory company repository for tests."""

    companies: list[Company] = field(default_factory=list)

    def list_companies(self) -> list[Company]:
        return list(self.companies)

    def get_by_invitation_code(self, invitation_code: str) -> Company | None:
        for company in self.companies:
            if company.invitation_code == invitation_code:
                return company
        return None


@dataclass
class InMemoryUserRepository(UserRepository):
    """In-memory user repository for tests."""

    users: dict[UUID, UserRecord] = field(default_factory=dict)

    def get_by_email(self, email: str) -> UserRecord | None:
        for user in self.users.values():
            if user.email == email:
                return user
        return None

    def get_by_id(self, user_id: UUID) -> UserRecord | None:
        return self.users.get(user_id)

    def create_user(
        self, email: str, first_name: str, last_name: str, company_id: UUID
    ) -> UserRecord:
        user = UserRecord(
            id=uuid4(),
            email=email,
            first_name=first_name,
            last_name=last_name,
            company_id=company_id,
        )
        self.users[user.id] = user
        return user


@dataclass
class FakeClock:
    """Clock with manually controlled time that records sleeps."""

    current: datetime = field(
        default_factory=lambda: datetime(2024, 5, 1, 12, 0, tzinfo=UTC)
    )
    sleeps: list[float] = field(default_factory=list)

    def now(self) -> datetime:
        return self.current

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        await asyncio.sleep(0)


def seeded_rng(seed: int = 7):
    return lambda: random.Random(seed)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key=(
            "eyJhbGciOiJIUzI1NiJ9.eyJyb2xlIjoic2VydmljZV9yb2xlIn0.signature"
        ),
        admin_token="admin-token",
        scheduler_enabled=False,
    )


@pytest.fixture
def restaurant_repository() -> InMemoryRestaurantRepository:
    return InMemoryRestaurantRepository(restaurants=make_catalog(15))


@pytest.fixture
def rotation_repository() -> InMemoryRotationRepository:
    return InMemoryRotationRepository()


@pytest.fixture
def company_repository() -> InMemoryCompanyRepository:
    return InMemoryCompanyRepository(
        companies=[
            Company(
                id=uuid4(),
                name="Acme",
                location="Austin",
                invitation_code=INVITATION_CODE,
                domain="acme.test",
            ),
            Company(
                id=uuid4(),
                name="Globex",
                location="Dallas",
                invitation_code="GLOBEX-OLD",
                status="inactive",
            ),
        ]
    )


@pytest.fixture
def rotation_service(
    rotation_repository: InMemoryRotationRepository,
    restaurant_repository: InMemoryRestaurantRepository,
) -> RotationService:
    return RotationService(
        repository=rotation_repository,
        catalog=restaurant_repository,
        rng_factory=seeded_rng(),
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def container(
    settings: Settings,
    restaurant_repository: InMemoryRestaurantRepository,
    company_repository: InMemoryCompanyRepository,
    rotation_service: RotationService,
    clock: FakeClock,
) -> AppContainer:
    company_service = CompanyService(company_repository)
    user_service = UserService(
        repository=InMemoryUserRepository(),
        company_service=company_service,
        rotation_service=rotation_service,
    )
    return AppContainer(
        settings=settings,
        restaurant_service=RestaurantService(restaurant_repository),
        company_service=company_service,
        rotation_service=rotation_service,
        user_service=user_service,
        rotation_scheduler=RotationScheduler(
            rotation_service=rotation_service,
            clock=clock,
            retry_delay_seconds=0,
        ),
    )
