"""Tests for the rotation store service."""

import asyncio
from uuid import uuid4

import pytest

from bizmunch.domain.errors import CollaboratorUnavailableError, NotFoundError
from bizmunch.services.rotation import RotationService
from tests.conftest import (
    InMemoryRestaurantRepository,
    InMemoryRotationRepository,
    make_catalog,
)


def test_seed_rotation_draws_full_rotation(
    rotation_service: RotationService,
    rotation_repository: InMemoryRotationRepository,
) -> None:
    user_id = uuid4()

    state = rotation_service.seed_rotation(user_id)

    assert state.favorites == frozenset()
    assert len(state.rotation) == 10
    assert rotation_repository.get_state(user_id) == state


def test_get_state_unknown_user_raises(rotation_service: RotationService) -> None:
    with pytest.raises(NotFoundError):
        rotation_service.get_rotation(uuid4())


def test_update_favorites_is_visible_on_next_read(
    rotation_service: RotationService,
) -> None:
    user_id = uuid4()
    rotation_service.seed_rotation(user_id)
    current = set(rotation_service.get_state(user_id).rotation_ids)
    new_favorites = {
        restaurant.id
        for restaurant in make_catalog(15)
        if restaurant.id not in current
    }

    asyncio.run(rotation_service.update_favorites(user_id, new_favorites))

    rotation = rotation_service.get_rotation(user_id)
    favored = {entry.restaurant.id for entry in rotation if entry.from_favorites}
    assert favored == new_favorites
    assert rotation_service.get_favorites(user_id) == sorted(new_favorites)


def test_update_favorites_replaces_instead_of_merging(
    rotation_service: RotationService,
) -> None:
    user_id = uuid4()
    rotation_service.seed_rotation(user_id)

    asyncio.run(rotation_service.update_favorites(user_id, ["r001", "r002"]))
    state = asyncio.run(rotation_service.update_favorites(user_id, ["r009"]))

    assert state.favorites == frozenset({"r009"})
    assert [e.restaurant.id for e in state.rotation if e.from_favorites] == ["r009"]


def test_update_favorites_unknown_user_raises(
    rotation_service: RotationService,
) -> None:
    with pytest.raises(NotFoundError):
        asyncio.run(rotation_service.update_favorites(uuid4(), ["r001"]))


def test_refresh_user_replaces_whole_rotation(
    rotation_service: RotationService,
    rotation_repository: InMemoryRotationRepository,
) -> None:
    user_id = rotation_repository.add_user(favorites={"r004"})

    state = asyncio.run(rotation_service.refresh_user(user_id))

    assert len(state.rotation) == 10
    assert state.rotation[0].restaurant.id == "r004"
    assert rotation_repository.rotation_writes == [user_id]


def test_catalog_failure_keeps_previous_rotation(
    rotation_repository: InMemoryRotationRepository,
) -> None:
    catalog = InMemoryRestaurantRepository(restaurants=make_catalog(12))
    service = RotationService(repository=rotation_repository, catalog=catalog)
    user_id = uuid4()
    service.seed_rotation(user_id)
    before = service.get_rotation(user_id)
    catalog.failures_remaining = 1

    with pytest.raises(CollaboratorUnavailableError):
        asyncio.run(service.refresh_user(user_id))

    assert service.get_rotation(user_id) == before


def test_concurrent_updates_for_one_user_serialize(
    rotation_service: RotationService,
    rotation_repository: InMemoryRotationRepository,
) -> None:
    user_id = rotation_repository.add_user()

    async def run() -> None:
        await asyncio.gather(
            rotation_service.update_favorites(user_id, ["r001"]),
            rotation_service.refresh_user(user_id),
            rotation_service.update_favorites(user_id, ["r002"]),
        )

    asyncio.run(run())

    state = rotation_service.get_state(user_id)
    assert state.favorites == frozenset({"r002"})
    assert [e.restaurant.id for e in state.rotation if e.from_favorites] == ["r002"]
    assert len(state.rotation) == 10


def test_catalog_failure_leaves_favorites_untouched(
    rotation_repository: InMemoryRotationRepository,
) -> None:
    catalog = InMemoryRestaurantRepository(restaurants=make_catalog(15))
    service = RotationService(repository=rotation_repository, catalog=catalog)
    user_id = uuid4()
    service.seed_rotation(user_id)
    before = service.get_state(user_id)
    catalog.failures_remaining = 1

    with pytest.raises(CollaboratorUnavailableError):
        asyncio.run(service.update_favorites(user_id, ["r014"]))

    after = service.get_state(user_id)
    assert after.favorites == frozenset()
    assert after.rotation == before.rotation


def test_update_favorites_writes_favorites_and_rotation_together(
    rotation_service: RotationService,
    rotation_repository: InMemoryRotationRepository,
) -> None:
    user_id = rotation_repository.add_user()

    state = asyncio.run(rotation_service.update_favorites(user_id, ["r014"]))

    assert rotation_repository.rotation_writes == []
    assert state.favorites == frozenset({"r014"})
    assert state.rotation[0].restaurant.id == "r014"


def test_user_locks_are_released_after_use(
    rotation_service: RotationService,
    rotation_repository: InMemoryRotationRepository,
) -> None:
    user_ids = [rotation_repository.add_user() for _ in range(3)]

    async def run() -> None:
        await asyncio.gather(
            *(rotation_service.refresh_user(user_id) for user_id in user_ids)
        )

    asyncio.run(run())

    assert len(rotation_service._locks) == 0
