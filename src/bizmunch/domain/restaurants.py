"""Domain models for the restaurant catalog."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class RestaurantRef:
    """Snapshot of a restaurant taken at selection time."""

    id: str
    name: str
    category: str
    location: str
    logo_asset_id: str | None = None
    barcode_asset_id: str | None = None


@dataclass(frozen=True)
class MenuItem:
    """Single item on a restaurant menu."""

    name: str
    price: str
    calories: str | None = None
    description: str | None = None
    discount: bool = False
    image_asset_id: str | None = None
    barcode_asset_id: str | None = None


@dataclass(frozen=True)
class Menu:
    """Restaurant menu grouped by section name."""

    id: str
    restaurant_id: str
    restaurant_name: str
    sections: dict[str, list[MenuItem]] = field(default_factory=dict)
