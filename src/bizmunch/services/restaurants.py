"""Services for the read-only restaurant catalog."""

from dataclasses import dataclass
from typing import Protocol

from bizmunch.domain.errors import NotFoundError
from bizmunch.domain.restaurants import Menu, RestaurantRef


class RestaurantRepository(Protocol):
    """Read interface for restaurant records."""

    def list_all(self) -> list[RestaurantRef]:
        """Return every restaurant in the catalog."""

    def get_restaurant(self, restaurant_id: str) -> RestaurantRef | None:
        """Return a restaurant by id, if present."""

    def get_menu(self, restaurant_id: str) -> Menu | None:
        """Return the menu for a restaurant, if one exists."""


@dataclass
class RestaurantService:
    """Application service for catalog reads."""

    repository: RestaurantRepository

    def list_restaurants(self) -> list[RestaurantRef]:
        """Return the catalog sorted by name."""
        return sorted(self.repository.list_all(), key=lambda item: item.name.lower())

    def get_menu(self, restaurant_id: str) -> Menu:
        """Return a restaurant's menu or raise NotFoundError."""
        if self.repository.get_restaurant(restaurant_id) is None:
            raise NotFoundError(f"Restaurant {restaurant_id} not found")
        menu = self.repository.get_menu(restaurant_id)
        if menu is None:
            raise NotFoundError(f"Menu for restaurant {restaurant_id} not found")
        return menu
