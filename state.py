"""
Application state: in-memory mirrors of the persisted collections plus the
session, hydrated from storage at startup.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import ValidationError

from database import Storage
from schemas import CART, ORDERS, PRODUCTS, USERS, CartLine, Order, OrderItem, Product, Shipping, User, dump_all

logger = logging.getLogger(__name__)

USERS_KEY = "users"
PRODUCTS_KEY = "products"
ORDERS_KEY = "orders"
SESSION_KEY = "currentUser"
LAST_ORDER_KEY = "lastOrder"
GUEST_CART_KEY = "cart_guest"

DEFAULT_SORT = "price-asc"


def cart_key_for(user: Optional[User]) -> str:
    return f"cart_{user.username}" if user else GUEST_CART_KEY


def today() -> str:
    return datetime.now(timezone.utc).date().isoformat()


# ----------------------------------------------------------------------------
# Seed data
# ----------------------------------------------------------------------------

SAMPLE_USERS = [
    {"username": "admin@example.com", "password": "admin123", "isAdmin": True},
    {"username": "testuser@example.com", "password": "test1234", "isAdmin": False},
]

SAMPLE_PRODUCTS = [
    {
        "id": 1,
        "name": "Rainbow Dress",
        "category": "Dress",
        "price": 90,
        "image": "images/rainbow-dress.webp",
        "isNew": True,
        "description": "A colorful rainbow-patterned dress, perfect for summer.",
    },
    {
        "id": 2,
        "name": "Peach Dress",
        "category": "Dress",
        "price": 120,
        "image": "images/peach-dress.webp",
        "isNew": True,
        "description": "Elegant peach-toned formal dress for special occasions.",
    },
    {
        "id": 3,
        "name": "Glitter Sandals",
        "category": "Shoes",
        "price": 80,
        "image": "images/glitter-sandals.webp",
        "isNew": False,
        "description": "Shiny glitter sandals to add sparkle to any outfit.",
    },
    {
        "id": 4,
        "name": "Multi Marble Sandals",
        "category": "Shoes",
        "price": 60,
        "image": "images/multi-marble-sandals.webp",
        "isNew": False,
        "description": "Trendy multi-color marble design sandals for casual wear.",
    },
]


def sample_orders() -> List[Order]:
    items = [
        OrderItem(product_id=1, name="Rainbow Dress", category="Dress", price=90, quantity=1),
        OrderItem(product_id=3, name="Glitter Sandals", category="Shoes", price=80, quantity=2),
    ]
    return [
        Order(
            id=1,
            user="testuser@example.com",
            date=today(),
            items=items,
            total=sum(i.line_total for i in items),
            shipping=Shipping(name="Jane Doe", address="123 Main St, Anytown"),
        )
    ]


# ----------------------------------------------------------------------------
# State
# ----------------------------------------------------------------------------

class AppState:
    """
    Everything a render function or operation needs.

    Collections are mutated in place and written back through
    ``save_users``/``save_products``/``save_orders``; nothing else writes
    those keys.
    """

    def __init__(self, storage: Storage, users: List[User], products: List[Product], orders: List[Order]):
        self.storage = storage
        self.users = users
        self.products = products
        self.orders = orders

        self.current_user: Optional[User] = None
        self.current_category: Optional[str] = None
        self.current_sort: str = DEFAULT_SORT
        self.show_new_only: bool = False

    @classmethod
    def bootstrap(cls, storage: Storage) -> "AppState":
        stored = [
            _hydrate(storage, USERS_KEY, USERS),
            _hydrate(storage, PRODUCTS_KEY, PRODUCTS),
            _hydrate(storage, ORDERS_KEY, ORDERS),
        ]
        if all(s is not None for s in stored):
            state = cls(storage, *stored)
        else:
            logger.info("No stored catalog found, seeding sample data")
            state = cls(
                storage,
                USERS.validate_python(SAMPLE_USERS),
                PRODUCTS.validate_python(SAMPLE_PRODUCTS),
                sample_orders(),
            )
            state.save_users()
            state.save_products()
            state.save_orders()

        session_user = storage.load(SESSION_KEY)
        if session_user:
            state.current_user = state.find_user(session_user)
        return state

    # -- persistence ------------------------------------------------------

    def save_users(self) -> bool:
        return self.storage.save(USERS_KEY, dump_all(self.users))

    def save_products(self) -> bool:
        return self.storage.save(PRODUCTS_KEY, dump_all(self.products))

    def save_orders(self) -> bool:
        return self.storage.save(ORDERS_KEY, dump_all(self.orders))

    # -- lookups ----------------------------------------------------------

    def find_user(self, username: str) -> Optional[User]:
        return next((u for u in self.users if u.username == username), None)

    def find_product(self, product_id: int) -> Optional[Product]:
        return next((p for p in self.products if p.id == product_id), None)

    def find_order(self, order_id: int) -> Optional[Order]:
        return next((o for o in self.orders if o.id == order_id), None)

    def next_product_id(self) -> int:
        return max(p.id for p in self.products) + 1 if self.products else 1

    def next_order_id(self) -> int:
        return max(o.id for o in self.orders) + 1 if self.orders else 1

    def categories(self) -> List[str]:
        return sorted({p.category for p in self.products})

    @property
    def is_admin(self) -> bool:
        return bool(self.current_user and self.current_user.is_admin)

    def can_view_order(self, order: Order) -> bool:
        if self.current_user is None:
            return False
        return self.current_user.is_admin or self.current_user.username == order.user

    # -- cart -------------------------------------------------------------

    def cart_key(self) -> str:
        return cart_key_for(self.current_user)

    def get_cart(self, key: Optional[str] = None) -> List[CartLine]:
        key = key or self.cart_key()
        raw = self.storage.load(key)
        if not raw:
            return []
        try:
            return CART.validate_python(raw)
        except ValidationError as e:
            logger.warning("Ignoring malformed cart under %r: %s", key, e)
            return []

    def save_cart(self, lines: List[CartLine], key: Optional[str] = None) -> bool:
        return self.storage.save(key or self.cart_key(), dump_all(lines))


def _hydrate(storage: Storage, key: str, adapter):
    raw = storage.load(key)
    if raw is None:
        return None
    try:
        return adapter.validate_python(raw)
    except ValidationError as e:
        logger.warning("Stored %r does not match its schema, ignoring it: %s", key, e)
        return None
