"""
Render functions: ``AppState`` in, ``(title, body)`` out.

Bodies are plain dicts for whatever presentation layer mounts them. Apart
from the collection page remembering its filter, nothing here changes state.
"""

from typing import Any, Dict, List, Optional, Tuple

from config import CURRENCY
from schemas import Order, Product
from state import LAST_ORDER_KEY, AppState

SITE = "E-Commerce"
QUANTITY_CHOICES = list(range(1, 6))

Rendered = Tuple[str, Dict[str, Any]]


def format_price(amount: float) -> str:
    return f"{CURRENCY} {amount:.2f}"


def page_title(name: str) -> str:
    return f"{name} - {SITE}"


def product_card(product: Product) -> Dict[str, Any]:
    return {
        "id": product.id,
        "name": product.name,
        "image": product.image,
        "is_new": product.is_new,
        "price": format_price(product.price),
        "link": f"#product-{product.id}",
    }


def order_summary(order: Order) -> Dict[str, Any]:
    return {
        "id": order.id,
        "user": order.user,
        "date": order.date,
        "total": format_price(order.total),
        "link": f"#order-{order.id}",
    }


def order_detail(order: Order) -> Dict[str, Any]:
    return {
        **order_summary(order),
        "shipping": f"{order.shipping.name}, {order.shipping.address}",
        "items": [
            {
                "name": item.name,
                "quantity": item.quantity,
                "price": format_price(item.price),
                "subtotal": format_price(item.line_total),
            }
            for item in order.items
        ],
    }


def message(text: str) -> Dict[str, Any]:
    return {"message": text}


# ----------------------------------------------------------------------------
# Browsing
# ----------------------------------------------------------------------------

def render_home(state: AppState) -> Rendered:
    state.current_category = None
    state.show_new_only = False
    new_products = [p for p in state.products if p.is_new]
    body: Dict[str, Any] = {"heading": "New This Week", "products": [product_card(p) for p in new_products]}
    if not new_products:
        body["message"] = "No new arrivals this week. Check back later!"
    return page_title("Home"), body


SORT_KEYS = {
    "price-asc": (lambda p: p.price, False),
    "price-desc": (lambda p: p.price, True),
    "name-asc": (lambda p: p.name.lower(), False),
    "name-desc": (lambda p: p.name.lower(), True),
}


def sort_products(products: List[Product], sort: str) -> List[Product]:
    if sort not in SORT_KEYS:
        return list(products)
    key, reverse = SORT_KEYS[sort]
    return sorted(products, key=key, reverse=reverse)


def render_collection(state: AppState, category: Optional[str] = None, new_only: bool = False) -> Rendered:
    state.current_category = category
    state.show_new_only = new_only

    heading = "All Products"
    if new_only:
        heading = "New Arrivals"
    elif category:
        heading = f"{category} Collection"

    filtered = state.products
    if category:
        filtered = [p for p in filtered if p.category == category]
    if new_only:
        filtered = [p for p in filtered if p.is_new]
    filtered = sort_products(filtered, state.current_sort)

    body: Dict[str, Any] = {
        "heading": heading,
        "sort": state.current_sort,
        "products": [product_card(p) for p in filtered],
    }
    if not filtered:
        body["message"] = "No products found."
    return page_title("Collection"), body


def render_product_detail(state: AppState, product_id: int) -> Rendered:
    product = state.find_product(product_id)
    if not product:
        return page_title("Product"), message("Product not found.")
    body = product_card(product)
    body["description"] = product.description or ""
    body["category"] = product.category
    body["quantities"] = QUANTITY_CHOICES
    # Guests may fill a cart but must log in at checkout.
    body["guest_notice"] = state.current_user is None
    return page_title(product.name), body


# ----------------------------------------------------------------------------
# Cart & checkout
# ----------------------------------------------------------------------------

def render_cart(state: AppState) -> Rendered:
    cart = state.get_cart()
    if not cart:
        return page_title("Your Cart"), {"heading": "Your Cart", "lines": [], "message": "Your shopping cart is empty."}

    lines = []
    total = 0.0
    for line in cart:
        product = state.find_product(line.product_id)
        price = product.price if product else 0
        subtotal = price * line.quantity
        total += subtotal
        lines.append({
            "product_id": line.product_id,
            "name": product.name if product else f"Product {line.product_id}",
            "price": format_price(price),
            "quantity": line.quantity,
            "subtotal": format_price(subtotal),
        })
    return page_title("Your Cart"), {
        "heading": "Your Cart",
        "lines": lines,
        "total": format_price(total),
        "checkout": "#checkout" if state.current_user else "#login",
    }


def render_checkout(state: AppState) -> Rendered:
    return page_title("Checkout"), {
        "heading": "Checkout",
        "form": {
            "action": "/orders/checkout",
            "shipping": ["name", "address", "city", "zip"],
            "payment": ["cardNumber"],
        },
    }


def render_confirmation(state: AppState) -> Rendered:
    title = page_title("Order Confirmation")
    last_order_id = state.storage.load(LAST_ORDER_KEY)
    if not last_order_id:
        return title, message("No recent order to confirm.")
    order = state.find_order(last_order_id)
    if not order:
        return title, message("Order not found.")
    if not state.can_view_order(order):
        return title, message("You are not authorized to view this order.")
    return title, {
        "heading": "Thank you for your order!",
        "order": order_detail(order),
        "message": "Your order will be processed shortly. An email confirmation has been sent.",
    }


# ----------------------------------------------------------------------------
# Orders
# ----------------------------------------------------------------------------

def render_user_orders(state: AppState) -> Rendered:
    user_orders = [o for o in state.orders if o.user == state.current_user.username]
    body: Dict[str, Any] = {
        "heading": "My Orders",
        "orders": [{**order_summary(o), "status": "Confirmed"} for o in user_orders],
    }
    if not user_orders:
        body["message"] = "You have not placed any orders yet."
    return page_title("My Orders"), body


def render_order_details(state: AppState, order_id: int) -> Rendered:
    order = state.find_order(order_id)
    if not order:
        return page_title("Order"), message("Order not found.")
    if not state.can_view_order(order):
        return page_title("Order"), message("You are not authorized to view this order.")
    return page_title(f"Order {order.id} Details"), {
        "heading": f"Order #{order.id} Details",
        "order": order_detail(order),
    }


# ----------------------------------------------------------------------------
# Admin
# ----------------------------------------------------------------------------

def sales_by_category(state: AppState) -> Dict[str, float]:
    """Revenue per current product category, summed over all order lines."""
    sales = {category: 0.0 for category in state.categories()}
    for order in state.orders:
        for item in order.items:
            if item.category in sales:
                sales[item.category] += item.line_total
    return sales


def render_admin_dashboard(state: AppState) -> Rendered:
    if not state.is_admin:
        return page_title("Admin"), message("You must be an admin to view this page.")
    return page_title("Admin Dashboard"), {
        "heading": "Admin Dashboard",
        "metrics": {
            "products": len(state.products),
            "orders": len(state.orders),
            "sales": format_price(sum(o.total for o in state.orders)),
            "users": len(state.users),
        },
        "sales_by_category": sales_by_category(state),
        "products": [
            {
                "id": p.id,
                "name": p.name,
                "category": p.category,
                "price": format_price(p.price),
                "is_new": p.is_new,
            }
            for p in state.products
        ],
        "orders": [order_summary(o) for o in state.orders],
    }


# ----------------------------------------------------------------------------
# Auth forms
# ----------------------------------------------------------------------------

def render_login(state: AppState) -> Rendered:
    return page_title("Login"), {
        "heading": "Login",
        "form": {"action": "/auth/login", "fields": ["email", "password"]},
        "alternate": "#register",
    }


def render_register(state: AppState) -> Rendered:
    return page_title("Register"), {
        "heading": "Register",
        "form": {"action": "/auth/register", "fields": ["email", "password"]},
        "alternate": "#login",
    }
