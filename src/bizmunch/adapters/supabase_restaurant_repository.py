"""Supabase-backed restaurant catalog."""

from dataclasses import dataclass

from supabase import Client

from bizmunch.adapters.supabase_errors import collaborator_errors
from bizmunch.domain.restaurants import Menu, MenuItem, RestaurantRef
from bizmunch.services.restaurants import RestaurantRepository

_RESTAURANT_COLUMNS = "id, name, category, location, logo_asset_id, barcode_asset_id"


@dataclass
class SupabaseRestaurantRepository(RestaurantRepository):
    """Supabase implementation for catalog reads."""

    client: Client

    def list_all(self) -> list[RestaurantRef]:
        """Return every restaurant in the catalog."""
        with collaborator_errors("list restaurants"):
            response = (
                self.client.table("restaurants").select(_RESTAURANT_COLUMNS).execute()
            )
        return [parse_restaurant(row) for row in response.data or []]

    def get_restaurant(self, restaurant_id: str) -> RestaurantRef | None:
        """Return a restaurant by id, if present."""
        with collaborator_errors("get restaurant"):
            response = (
                self.client.table("restaurants")
                .select(_RESTAURANT_COLUMNS)
                .eq("id", restaurant_id)
                .limit(1)
                .execute()
            )
        if not response.data:
            return None
        return parse_restaurant(response.data[0])

    def get_menu(self, restaurant_id: str) -> Menu | None:
        """Return the menu stored for a restaurant."""
        with collaborator_errors("get menu"):
            response = (
                self.client.table("menus")
                .select("id, restaurant_id, restaurant_name, menu")
                .eq("restaurant_id", restaurant_id)
                .limit(1)
                .execute()
            )
        if not response.data:
            return None
        return _parse_menu(response.data[0])


def parse_restaurant(row: dict[str, object]) -> RestaurantRef:
    """Parse a restaurant row or stored snapshot into a domain model."""
    return RestaurantRef(
        id=str(row["id"]),
        name=str(row.get("name", "")),
        category=str(row.get("category", "")),
        location=str(row.get("location", "")),
        logo_asset_id=row.get("logo_asset_id"),
        barcode_asset_id=row.get("barcode_asset_id"),
    )


def _parse_menu(row: dict[str, object]) -> Menu:
    raw_sections = row.get("menu") or {}
    sections: dict[str, list[MenuItem]] = {}
    if isinstance(raw_sections, dict):
        for section, items in raw_sections.items():
            values = items.values() if isinstance(items, dict) else items or []
            sections[str(section)] = [
                MenuItem(
                    name=str(item.get("name", "")),
                    price=str(item.get("price", "")),
                    calories=item.get("calories"),
                    description=item.get("description"),
                    discount=bool(item.get("discount", False)),
                    image_asset_id=item.get("image"),
                    barcode_asset_id=item.get("barcode"),
                )
                for item in values
                if isinstance(item, dict)
            ]
    return Menu(
        id=str(row["id"]),
        restaurant_id=str(row.get("restaurant_id", "")),
        restaurant_name=str(row.get("restaurant_name", "")),
        sections=sections,
    )
