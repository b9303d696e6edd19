"""
Storefront operations over ``AppState``.

Each operation checks its input first and raises ``ValidationFailed`` with a
message meant for the user before anything is changed. Operations that fail
without telling the user return False.
"""

import logging
import math
import re
from typing import Any, Dict, Optional

from config import PLACEHOLDER_IMAGE
from errors import ValidationFailed
from schemas import CartLine, Order, OrderItem, Product, Shipping, User
from state import GUEST_CART_KEY, LAST_ORDER_KEY, SESSION_KEY, AppState, cart_key_for, today

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"\S+@\S+\.\S+")
MIN_CARD_LENGTH = 12
SORT_OPTIONS = ("price-asc", "price-desc", "name-asc", "name-desc")


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_RE.search(email))


def parse_price(value: Any) -> Optional[float]:
    """Return the price as a float, or None if it is not a finite non-negative number."""
    try:
        price = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(price) or math.isinf(price) or price < 0:
        return None
    return price


# ----------------------------------------------------------------------------
# Accounts
# ----------------------------------------------------------------------------

def register(state: AppState, email: str, password: str) -> bool:
    if not email or not password:
        raise ValidationFailed("Please enter both email and password to register.")
    if not is_valid_email(email):
        raise ValidationFailed("Please enter a valid email address.")
    if state.find_user(email):
        raise ValidationFailed("An account with that email already exists.")

    user = User(username=email, password=password, is_admin=False)
    state.users.append(user)
    state.save_users()
    # Registration signs the user in but leaves the guest cart alone.
    state.current_user = user
    state.storage.save(SESSION_KEY, user.username)
    logger.info("Registered %s", email)
    return True


def login(state: AppState, email: str, password: str) -> bool:
    if not email or not password:
        raise ValidationFailed("Please enter email and password.")
    user = state.find_user(email)
    if not user:
        raise ValidationFailed("No account found with that email.")
    if user.password != password:
        raise ValidationFailed("Incorrect password. Please try again.")

    state.current_user = user
    state.storage.save(SESSION_KEY, user.username)

    guest_cart = state.storage.load(GUEST_CART_KEY)
    if guest_cart:
        user_key = cart_key_for(user)
        if not state.storage.load(user_key):
            state.storage.save(user_key, guest_cart)
            logger.info("Moved guest cart to %s", user_key)
    state.storage.remove(GUEST_CART_KEY)
    logger.info("Logged in %s", email)
    return True


def logout(state: AppState) -> bool:
    if state.current_user is None:
        return False
    logger.info("Logged out %s", state.current_user.username)
    state.current_user = None
    state.storage.remove(SESSION_KEY)
    return True


# ----------------------------------------------------------------------------
# Catalog (admin)
# ----------------------------------------------------------------------------

def add_product(state: AppState, data: Dict[str, Any]) -> Product:
    if not data.get("name") or not data.get("category") or data.get("price") is None or data.get("image") is None:
        raise ValidationFailed("Please fill out all product fields.")
    price = parse_price(data["price"])
    if price is None:
        raise ValidationFailed("Please enter a valid price.")

    product = Product(
        id=state.next_product_id(),
        name=data["name"],
        category=data["category"],
        price=price,
        image=data["image"] or PLACEHOLDER_IMAGE,
        is_new=bool(data.get("isNew")),
        description=data.get("description") or "",
    )
    state.products.append(product)
    state.save_products()
    return product


def update_product(state: AppState, product_id: int, data: Dict[str, Any]) -> bool:
    product = state.find_product(product_id)
    if not product:
        return False

    price = None
    if data.get("price") is not None:
        price = parse_price(data["price"])
        if price is None:
            raise ValidationFailed("Invalid price value.")

    if data.get("name"):
        product.name = data["name"]
    if data.get("category"):
        product.category = data["category"]
    if price is not None:
        product.price = price
    if data.get("image"):
        product.image = data["image"]
    # isNew is overwritten on every update, absent means False.
    product.is_new = bool(data.get("isNew"))
    if data.get("description"):
        product.description = data["description"]
    state.save_products()
    return True


def delete_product(state: AppState, product_id: int) -> bool:
    state.products = [p for p in state.products if p.id != product_id]
    state.save_products()
    return True


# ----------------------------------------------------------------------------
# Cart
# ----------------------------------------------------------------------------

def add_to_cart(state: AppState, product_id: int, quantity: int = 1) -> bool:
    if not state.find_product(product_id):
        raise ValidationFailed("Product not found.")
    if quantity < 1:
        raise ValidationFailed("Please choose a quantity of at least 1.")
    cart = state.get_cart()
    line = next((c for c in cart if c.product_id == product_id), None)
    if line:
        line.quantity += quantity
    else:
        cart.append(CartLine(product_id=product_id, quantity=quantity))
    state.save_cart(cart)
    return True


def update_cart_quantity(state: AppState, product_id: int, quantity: int) -> bool:
    cart = state.get_cart()
    line = next((c for c in cart if c.product_id == product_id), None)
    if not line:
        return False
    if quantity <= 0:
        cart = [c for c in cart if c.product_id != product_id]
    else:
        line.quantity = quantity
    state.save_cart(cart)
    return True


def remove_from_cart(state: AppState, product_id: int) -> bool:
    return update_cart_quantity(state, product_id, 0)


# ----------------------------------------------------------------------------
# Checkout
# ----------------------------------------------------------------------------

def place_order(state: AppState, shipping_info: Dict[str, str], payment_info: Dict[str, str]) -> Order:
    if state.current_user is None:
        raise ValidationFailed("You must be logged in to place an order.")
    card_number = payment_info.get("cardNumber")
    required = [shipping_info.get(f) for f in ("name", "address", "city", "zip")] + [card_number]
    if not all(required):
        raise ValidationFailed("Please fill in all shipping and payment details.")
    if len(card_number) < MIN_CARD_LENGTH:
        raise ValidationFailed("Please enter a valid credit card number.")
    cart = state.get_cart()
    if not cart:
        raise ValidationFailed("Your cart is empty.")

    items = []
    for line in cart:
        product = state.find_product(line.product_id)
        items.append(OrderItem(
            product_id=line.product_id,
            name=product.name if product else "Unknown Product",
            category=product.category if product else "",
            price=product.price if product else 0,
            quantity=line.quantity,
        ))

    order = Order(
        id=state.next_order_id(),
        user=state.current_user.username,
        date=today(),
        items=items,
        total=sum(i.line_total for i in items),
        shipping=Shipping(
            name=shipping_info["name"],
            address=f"{shipping_info['address']}, {shipping_info['city']}, {shipping_info['zip']}",
        ),
    )
    state.orders.append(order)
    state.save_orders()
    state.storage.remove(state.cart_key())
    state.storage.save(LAST_ORDER_KEY, order.id)
    logger.info("Order #%d placed by %s, total %.2f", order.id, order.user, order.total)
    return order


# ----------------------------------------------------------------------------
# Listing preferences
# ----------------------------------------------------------------------------

def set_sort(state: AppState, sort: str) -> bool:
    if sort not in SORT_OPTIONS:
        raise ValidationFailed(f"Unknown sort order: {sort}")
    state.current_sort = sort
    return True
