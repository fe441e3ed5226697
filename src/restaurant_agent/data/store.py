"""Row-oriented restaurant store interfaces and concrete adapters."""

from __future__ import annotations

import asyncio
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Any, Mapping, Protocol

Row = Mapping[str, Any]


class RestaurantStore(Protocol):
    """Minimal read contract the query accessors depend on."""

    async def fetch_menu_items(self) -> list[Row]:
        """Return menu item rows (name, price, category, available, ...)."""

    async def fetch_orders(self, *, status: str | None = None) -> list[Row]:
        """Return order rows, optionally filtered by status."""


class InMemoryRestaurantStore:
    """Deterministic store used for tests and the demo mode of the API."""

    def __init__(
        self,
        menu_items: list[dict[str, Any]] | None = None,
        orders: list[dict[str, Any]] | None = None,
    ) -> None:
        self._menu_items = list(menu_items or [])
        self._orders = list(orders or [])

    async def fetch_menu_items(self) -> list[Row]:
        return [dict(row) for row in self._menu_items]

    async def fetch_orders(self, *, status: str | None = None) -> list[Row]:
        return [
            dict(row)
            for row in self._orders
            if status is None or row.get("status") == status
        ]


class SqliteRestaurantStore:
    """SQLite-backed store; blocking queries run in a worker thread."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        _ensure_schema(self.path)

    async def fetch_menu_items(self) -> list[Row]:
        return await asyncio.to_thread(
            self._query,
            "SELECT id, name, description, price, category, available, created_at "
            "FROM menu_items",
            (),
        )

    async def fetch_orders(self, *, status: str | None = None) -> list[Row]:
        if status is None:
            return await asyncio.to_thread(
                self._query,
                "SELECT id, customer_name, table_number, status, total, created_at FROM orders",
                (),
            )
        return await asyncio.to_thread(
            self._query,
            "SELECT id, customer_name, table_number, status, total, created_at "
            "FROM orders WHERE status = ?",
            (status,),
        )

    def insert_menu_item(
        self,
        *,
        name: str,
        price: float,
        category: str,
        description: str = "",
        available: bool = True,
    ) -> None:
        with sqlite3.connect(self.path) as conn:
            conn.execute(
                "INSERT INTO menu_items(name, description, price, category, available, created_at) "
                "VALUES(?, ?, ?, ?, ?, ?)",
                (name, description, price, category, int(available), datetime.now().isoformat()),
            )
            conn.commit()

    def insert_order(
        self,
        *,
        customer_name: str,
        status: str,
        total: float,
        created_at: datetime | None = None,
        table_number: int | None = None,
    ) -> None:
        created = (created_at or datetime.now()).isoformat()
        with sqlite3.connect(self.path) as conn:
            conn.execute(
                "INSERT INTO orders(customer_name, table_number, status, total, created_at) "
                "VALUES(?, ?, ?, ?, ?)",
                (customer_name, table_number, status, total, created),
            )
            conn.commit()

    def _query(self, sql: str, params: tuple[Any, ...]) -> list[Row]:
        with sqlite3.connect(self.path) as conn:
            conn.row_factory = sqlite3.Row
            rows = conn.execute(sql, params).fetchall()
        return [dict(row) for row in rows]


def demo_store(now: datetime | None = None) -> InMemoryRestaurantStore:
    """Seed a small store so the agent is usable without a configured database."""

    created = (now or datetime.now()).isoformat()
    return InMemoryRestaurantStore(
        menu_items=[
            {"name": "Garden Salad", "price": 7.5, "category": "Appetizers", "available": True},
            {"name": "Garlic Bread", "price": 4.25, "category": "Appetizers", "available": True},
            {"name": "Margherita Pizza", "price": 13.0, "category": "Mains", "available": True},
            {"name": "Ribeye Steak", "price": 29.95, "category": "Mains", "available": True},
            {"name": "Tiramisu", "price": 6.75, "category": "Desserts", "available": True},
            {"name": "Lemonade", "price": 3.5, "category": "Drinks", "available": True},
            {"name": "Espresso", "price": 2.95, "category": "Drinks", "available": True},
        ],
        orders=[
            {"customer_name": "Table 4", "status": "pending", "total": 27.5, "created_at": created},
            {"customer_name": "Table 7", "status": "preparing", "total": 41.2, "created_at": created},
            {"customer_name": "Table 2", "status": "completed", "total": 56.45, "created_at": created},
        ],
    )


def _ensure_schema(db_path: Path) -> None:
    with sqlite3.connect(db_path) as conn:
        conn.execute(
            "CREATE TABLE IF NOT EXISTS menu_items ("
            "id INTEGER PRIMARY KEY AUTOINCREMENT, "
            "name TEXT NOT NULL, "
            "description TEXT NOT NULL DEFAULT '', "
            "price REAL NOT NULL, "
            "category TEXT NOT NULL, "
            "available INTEGER NOT NULL DEFAULT 1, "
            "created_at TEXT NOT NULL)"
        )
        conn.execute(
            "CREATE TABLE IF NOT EXISTS orders ("
            "id INTEGER PRIMARY KEY AUTOINCREMENT, "
            "customer_name TEXT NOT NULL, "
            "table_number INTEGER, "
            "status TEXT NOT NULL, "
            "total REAL NOT NULL, "
            "created_at TEXT NOT NULL)"
        )
        conn.commit()
