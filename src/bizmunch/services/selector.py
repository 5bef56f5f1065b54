"""Selection of a user's restaurant rotation."""

import logging
import random
from collections.abc import Iterable, Sequence

from bizmunch.domain.errors import InvariantViolationError
from bizmunch.domain.restaurants import RestaurantRef
from bizmunch.domain.rotation import ROTATION_SIZE, RotationEntry

_logger = logging.getLogger(__name__)


def select_rotation(
    favorites: Iterable[str],
    catalog: Sequence[RestaurantRef],
    rng: random.Random | None = None,
    size: int = ROTATION_SIZE,
) -> tuple[RotationEntry, ...]:
    """Pick a bounded, favorites-first rotation from the catalog.

    Favorites present in the catalog are always included, ordered by
    restaurant id. When they exceed ``size`` the lowest ids are kept so the
    same favorites survive every run. Remaining slots are filled by sampling
    non-favorites uniformly without replacement. Favorites missing from the
    catalog are ignored.
    """
    favorite_ids = set(favorites)
    generator = rng or random.SystemRandom()

    favored: list[RestaurantRef] = []
    unfavored: list[RestaurantRef] = []
    seen: set[str] = set()
    for restaurant in catalog:
        if restaurant.id in seen:
            continue
        seen.add(restaurant.id)
        if restaurant.id in favorite_ids:
            favored.append(restaurant)
        else:
            unfavored.append(restaurant)

    favored.sort(key=lambda restaurant: restaurant.id)
    if len(favored) > size:
        _logger.warning(
            "Favorites exceed rotation size: kept=%s dropped=%s",
            size,
            len(favored) - size,
        )
    entries = [
        RotationEntry(restaurant=restaurant, from_favorites=True)
        for restaurant in favored[:size]
    ]

    open_slots = size - len(entries)
    if open_slots > 0 and unfavored:
        drawn = generator.sample(unfavored, min(open_slots, len(unfavored)))
        entries.extend(
            RotationEntry(restaurant=restaurant, from_favorites=False)
            for restaurant in drawn
        )

    return tuple(entries)


def ensure_rotation_bounds(
    rotation: Sequence[RotationEntry], size: int = ROTATION_SIZE
) -> None:
    """Raise when a rotation is oversized or repeats a restaurant."""
    if len(rotation) > size:
        raise InvariantViolationError(
            f"Rotation has {len(rotation)} entries, limit is {size}"
        )
    ids = [entry.restaurant.id for entry in rotation]
    if len(set(ids)) != len(ids):
        raise InvariantViolationError("Rotation contains duplicate restaurants")
