from datetime import date, datetime, timedelta

import pytest

from restaurant_agent.data.accessors import QueryAccessors, build_accessor_registry
from restaurant_agent.data.store import SqliteRestaurantStore


@pytest.mark.asyncio
async def test_sqlite_store_backs_all_accessors(tmp_path) -> None:
    store = SqliteRestaurantStore(tmp_path / "restaurant.db")
    store.insert_menu_item(name="Lemonade", price=3.5, category="Drinks")
    store.insert_menu_item(name="Iced Tea", price=3.0, category="Drinks")
    store.insert_menu_item(name="Steak Frites", price=24.0, category="Mains")
    store.insert_menu_item(name="Truffle Pasta", price=31.0, category="Mains", available=False)

    now = datetime.now()
    store.insert_order(customer_name="A", status="pending", total=10.0)
    store.insert_order(customer_name="B", status="completed", total=20.25, created_at=now)
    store.insert_order(
        customer_name="C", status="completed", total=50.0, created_at=now - timedelta(days=2)
    )

    registry = build_accessor_registry(QueryAccessors(store, today=date.today))

    cheapest = await registry.execute("cheapest_item", {})
    expensive = await registry.execute("expensive_item", {})
    drinks = await registry.execute("category_items", {"category": "drink"})
    pending = await registry.execute("pending_orders", {})
    revenue = await registry.execute("revenue", {})
    categories = await registry.execute("categories", {})

    assert cheapest.data.name == "Iced Tea"
    assert expensive.data.name == "Steak Frites"
    assert [item.name for item in drinks.data] == ["Iced Tea", "Lemonade"]
    assert pending.data.count == 1
    assert revenue.data.revenue == pytest.approx(20.25)
    assert revenue.data.order_count == 1
    assert categories.data == ["Drinks", "Mains"]


@pytest.mark.asyncio
async def test_sqlite_store_filters_orders_by_status(tmp_path) -> None:
    store = SqliteRestaurantStore(tmp_path / "orders.db")
    store.insert_order(customer_name="A", status="pending", total=1.0, table_number=3)
    store.insert_order(customer_name="B", status="ready", total=2.0)

    assert len(await store.fetch_orders()) == 2
    pending = await store.fetch_orders(status="pending")
    assert [row["table_number"] for row in pending] == [3]
