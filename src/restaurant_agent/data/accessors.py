"""The six read-only data operations the agent can dispatch to."""

from __future__ import annotations

from collections.abc import Callable
from datetime import date, datetime
from typing import Any

from pydantic import BaseModel

from restaurant_agent.agent.registry import AccessorRegistry, AccessorSpec
from restaurant_agent.data.store import RestaurantStore, Row
from restaurant_agent.types import IntentType, MenuItem, PendingOrders, TodayRevenue


class NoArgs(BaseModel):
    pass


class CategoryArgs(BaseModel):
    category: str | None = None


class QueryAccessors:
    """Named accessor operations over a `RestaurantStore`.

    Each method raises on store or data errors; `AccessorRegistry.execute`
    converts those into failed `QueryResult` values.
    """

    def __init__(
        self,
        store: RestaurantStore,
        *,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.store = store
        self._today = today

    async def cheapest_item(self) -> MenuItem:
        items = await self._available_items()
        if not items:
            raise LookupError("No menu items available")
        return min(items, key=lambda item: item.price)

    async def expensive_item(self) -> MenuItem:
        items = await self._available_items()
        if not items:
            raise LookupError("No menu items available")
        return max(items, key=lambda item: item.price)

    async def category_items(self, category: str | None) -> list[MenuItem]:
        wanted = (category or "").strip()
        if not wanted:
            return []
        items = await self._available_items()
        matches = [item for item in items if _category_matches(item.category, wanted)]
        return sorted(matches, key=lambda item: (item.price, item.name))

    async def pending_orders(self) -> PendingOrders:
        rows = await self.store.fetch_orders(status="pending")
        return PendingOrders(count=len(rows))

    async def revenue(self) -> TodayRevenue:
        rows = await self.store.fetch_orders(status="completed")
        today = self._today()
        todays = [row for row in rows if _row_date(row) == today]
        total = sum(_as_float(row, "total") for row in todays)
        return TodayRevenue(revenue=round(total, 2), order_count=len(todays))

    async def categories(self) -> list[str]:
        items = await self._available_items()
        return sorted({item.category for item in items})

    async def _available_items(self) -> list[MenuItem]:
        rows = await self.store.fetch_menu_items()
        return [_to_menu_item(row) for row in rows if row.get("available", True)]


def build_accessor_registry(accessors: QueryAccessors) -> AccessorRegistry:
    """Register the accessor set under the intent names that dispatch to it."""

    registry = AccessorRegistry()

    async def _cheapest(_: BaseModel) -> MenuItem:
        return await accessors.cheapest_item()

    async def _expensive(_: BaseModel) -> MenuItem:
        return await accessors.expensive_item()

    async def _category(args: CategoryArgs) -> list[MenuItem]:
        return await accessors.category_items(args.category)

    async def _pending(_: BaseModel) -> PendingOrders:
        return await accessors.pending_orders()

    async def _revenue(_: BaseModel) -> TodayRevenue:
        return await accessors.revenue()

    async def _categories(_: BaseModel) -> list[str]:
        return await accessors.categories()

    registry.register(
        AccessorSpec(
            name=IntentType.CHEAPEST_ITEM.value,
            description="Lowest priced available menu item.",
            args_schema=NoArgs,
            handler=_cheapest,
            tags=["menu"],
        )
    )
    registry.register(
        AccessorSpec(
            name=IntentType.EXPENSIVE_ITEM.value,
            description="Highest priced available menu item.",
            args_schema=NoArgs,
            handler=_expensive,
            tags=["menu"],
        )
    )
    registry.register(
        AccessorSpec(
            name=IntentType.CATEGORY_ITEMS.value,
            description="Available menu items in one category.",
            args_schema=CategoryArgs,
            handler=_category,
            tags=["menu"],
        )
    )
    registry.register(
        AccessorSpec(
            name=IntentType.PENDING_ORDERS.value,
            description="Number of orders waiting to be prepared.",
            args_schema=NoArgs,
            handler=_pending,
            tags=["orders"],
        )
    )
    registry.register(
        AccessorSpec(
            name=IntentType.REVENUE.value,
            description="Revenue and completed order count for today.",
            args_schema=NoArgs,
            handler=_revenue,
            tags=["orders"],
        )
    )
    registry.register(
        AccessorSpec(
            name=IntentType.CATEGORIES.value,
            description="Distinct menu categories.",
            args_schema=NoArgs,
            handler=_categories,
            tags=["menu"],
        )
    )
    return registry


def _to_menu_item(row: Row) -> MenuItem:
    name = row.get("name")
    category = row.get("category")
    if not name or not category:
        raise ValueError(f"Malformed menu item row: {dict(row)!r}")
    return MenuItem(name=str(name), price=_as_float(row, "price"), category=str(category))


def _as_float(row: Row, key: str) -> float:
    value: Any = row.get(key)
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Malformed {key!r} value: {value!r}") from exc


def _row_date(row: Row) -> date | None:
    created = row.get("created_at")
    if isinstance(created, str) and created:
        created = datetime.fromisoformat(created.replace("Z", "+00:00"))
    if isinstance(created, datetime):
        # Aware timestamps are compared against the local calendar day.
        if created.tzinfo is not None:
            created = created.astimezone()
        return created.date()
    if isinstance(created, date):
        return created
    return None


def _category_matches(category: str, wanted: str) -> bool:
    a = category.strip().lower()
    b = wanted.strip().lower()
    # "dessert" should find "Desserts" and vice versa.
    return a == b or a.rstrip("s") == b.rstrip("s")
