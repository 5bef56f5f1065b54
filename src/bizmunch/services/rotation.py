"""Rotation store service: favorites, rotations and their recomputation."""

import asyncio
import logging
import random
import weakref
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Protocol, TypeVar
from uuid import UUID

from bizmunch.domain.errors import NotFoundError
from bizmunch.domain.rotation import ROTATION_SIZE, RotationEntry, UserRotationState
from bizmunch.services.restaurants import RestaurantRepository
from bizmunch.services.selector import ensure_rotation_bounds, select_rotation

_logger = logging.getLogger(__name__)

T = TypeVar("T")


class RotationRepository(Protocol):
    """Persistence interface for per-user rotation state."""

    def get_state(self, user_id: UUID) -> UserRotationState | None:
        """Return the stored state for a user, if present."""

    def create_state(
        self, user_id: UUID, rotation: tuple[RotationEntry, ...]
    ) -> UserRotationState:
        """Create state with empty favorites and the given rotation."""

    def replace_rotation(
        self, user_id: UUID, rotation: tuple[RotationEntry, ...]
    ) -> bool:
        """Overwrite the stored rotation. Return False if the user is unknown."""

    def replace_favorites(
        self,
        user_id: UUID,
        favorites: frozenset[str],
        rotation: tuple[RotationEntry, ...],
    ) -> bool:
        """Overwrite favorites and the rotation built from them in one write.

        Return False if the user is unknown.
        """

    def list_user_ids(self) -> list[UUID]:
        """Return ids of every user with rotation state."""


@dataclass
class RotationService:
    """Application service owning each user's favorites and rotation.

    Writes for one user are serialized by a per-user ``asyncio.Lock``. The
    blocking repository work runs in a worker thread, and the lock stays held
    until that thread finishes even if the awaiting caller is cancelled, so
    an abandoned refresh can never land after a newer write.
    """

    repository: RotationRepository
    catalog: RestaurantRepository
    rotation_size: int = ROTATION_SIZE
    rng_factory: Callable[[], random.Random] = random.SystemRandom
    _locks: weakref.WeakValueDictionary[UUID, asyncio.Lock] = field(
        default_factory=weakref.WeakValueDictionary, repr=False
    )
    _abandoned: set[asyncio.Task] = field(default_factory=set, repr=False)

    def get_state(self, user_id: UUID) -> UserRotationState:
        """Return the last persisted state for a user."""
        state = self.repository.get_state(user_id)
        if state is None:
            raise NotFoundError(f"User {user_id} not found")
        return state

    def get_rotation(self, user_id: UUID) -> tuple[RotationEntry, ...]:
        """Return the current rotation without waiting on recomputation."""
        return self.get_state(user_id).rotation

    def get_favorites(self, user_id: UUID) -> list[str]:
        """Return the user's favorite restaurant ids."""
        return sorted(self.get_state(user_id).favorites)

    def seed_rotation(self, user_id: UUID) -> UserRotationState:
        """Create initial state for a new user from a full random draw."""
        rotation = self._select(frozenset())
        state = self.repository.create_state(user_id, rotation)
        _logger.info("Seeded rotation: user_id=%s size=%s", user_id, len(rotation))
        return state

    async def update_favorites(
        self, user_id: UUID, favorites: Iterable[str]
    ) -> UserRotationState:
        """Replace favorites and recompute the rotation before returning.

        Nothing is written unless the new rotation could be computed, so a
        catalog outage leaves both favorites and rotation untouched.
        """
        new_favorites = frozenset(favorites)
        return await self._serialized(
            user_id, self._apply_favorites, user_id, new_favorites
        )

    async def refresh_user(self, user_id: UUID) -> UserRotationState:
        """Recompute and persist a fresh rotation for one user."""
        return await self._serialized(user_id, self._recompute, user_id)

    def _apply_favorites(
        self, user_id: UUID, favorites: frozenset[str]
    ) -> UserRotationState:
        self.get_state(user_id)
        rotation = self._select(favorites)
        if not self.repository.replace_favorites(user_id, favorites, rotation):
            raise NotFoundError(f"User {user_id} not found")
        _logger.info(
            "Favorites updated: user_id=%s favorites=%s size=%s",
            user_id,
            len(favorites),
            len(rotation),
        )
        return self.get_state(user_id)

    def _recompute(self, user_id: UUID) -> UserRotationState:
        state = self.get_state(user_id)
        rotation = self._select(state.favorites)
        if not self.repository.replace_rotation(user_id, rotation):
            raise NotFoundError(f"User {user_id} not found")
        _logger.info(
            "Rotation updated: user_id=%s favorites=%s size=%s",
            user_id,
            sum(1 for entry in rotation if entry.from_favorites),
            len(rotation),
        )
        return self.get_state(user_id)

    def _select(self, favorites: frozenset[str]) -> tuple[RotationEntry, ...]:
        catalog = self.catalog.list_all()
        rotation = select_rotation(
            favorites, catalog, rng=self.rng_factory(), size=self.rotation_size
        )
        ensure_rotation_bounds(rotation, self.rotation_size)
        return rotation

    async def _serialized(
        self, user_id: UUID, work: Callable[..., T], *args: object
    ) -> T:
        task = asyncio.ensure_future(self._run_locked(user_id, work, *args))
        try:
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            self._abandoned.add(task)
            task.add_done_callback(self._finish_abandoned)
            raise

    async def _run_locked(
        self, user_id: UUID, work: Callable[..., T], *args: object
    ) -> T:
        async with self._lock_for(user_id):
            return await asyncio.to_thread(work, *args)

    def _finish_abandoned(self, task: asyncio.Task) -> None:
        self._abandoned.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            _logger.warning("Abandoned rotation work failed: %s", exc)

    def _lock_for(self, user_id: UUID) -> asyncio.Lock:
        lock = self._locks.get(user_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[user_id] = lock
        return lock
