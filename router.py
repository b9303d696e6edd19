"""
Fragment router: ``#cart``, ``#product-3``, ... to a view description.

``parse_fragment`` never fails; anything it does not recognise becomes an
``INVALID`` route, which ``dispatch`` answers with a redirect to ``#home``.
"""

import enum
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union
from urllib.parse import unquote

import views
from state import LAST_ORDER_KEY, AppState


class RouteKind(str, enum.Enum):
    HOME = "home"
    COLLECTION = "collection"
    NEW = "new"
    PRODUCT = "product"
    CART = "cart"
    CHECKOUT = "checkout"
    CONFIRMATION = "confirmation"
    ORDERS = "orders"
    ORDER = "order"
    ADMIN = "admin"
    LOGIN = "login"
    REGISTER = "register"
    INVALID = "invalid"


BROWSE_ROUTES = {RouteKind.HOME, RouteKind.COLLECTION, RouteKind.NEW}

HOME_FRAGMENT = "#home"
LOGIN_FRAGMENT = "#login"

_EXACT = {
    "": RouteKind.HOME,
    "#": RouteKind.HOME,
    "#home": RouteKind.HOME,
    "#collection": RouteKind.COLLECTION,
    "#new": RouteKind.NEW,
    "#cart": RouteKind.CART,
    "#checkout": RouteKind.CHECKOUT,
    "#confirmation": RouteKind.CONFIRMATION,
    "#orders": RouteKind.ORDERS,
    "#admin": RouteKind.ADMIN,
    "#login": RouteKind.LOGIN,
    "#register": RouteKind.REGISTER,
}


@dataclass(frozen=True)
class Route:
    kind: RouteKind
    arg: Union[int, str, None] = None
    fragment: str = ""

    @property
    def shows_sidebar(self) -> bool:
        return self.kind in BROWSE_ROUTES


@dataclass
class View:
    route: Route
    title: str = ""
    body: Dict[str, Any] = None
    redirect: Optional[str] = None
    sidebar: bool = False
    categories: Any = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "route": self.route.kind.value,
            "fragment": self.route.fragment,
            "title": self.title,
            "sidebar": self.sidebar,
            "categories": self.categories or [],
            "redirect": self.redirect,
            "body": self.body or {},
        }


def _parse_id(text: str) -> Optional[int]:
    if not text.isdigit():
        return None
    return int(text)


def parse_fragment(fragment: Optional[str]) -> Route:
    fragment = (fragment or "").strip()
    kind = _EXACT.get(fragment)
    if kind is not None:
        return Route(kind, fragment=fragment)

    if fragment.startswith("#collection-"):
        category = unquote(fragment[len("#collection-"):])
        if category:
            return Route(RouteKind.COLLECTION, category, fragment)
    elif fragment.startswith("#product-"):
        product_id = _parse_id(fragment[len("#product-"):])
        if product_id is not None:
            return Route(RouteKind.PRODUCT, product_id, fragment)
    elif fragment.startswith("#order-"):
        order_id = _parse_id(fragment[len("#order-"):])
        if order_id is not None:
            return Route(RouteKind.ORDER, order_id, fragment)

    return Route(RouteKind.INVALID, fragment=fragment)


def category_menu(state: AppState):
    """Sidebar entries: "All" followed by every product category, sorted."""
    return [{"label": "All", "fragment": "#collection"}] + [
        {"label": c, "fragment": f"#collection-{c}"} for c in state.categories()
    ]


def dispatch(state: AppState, route: Route) -> View:
    view = View(route=route, sidebar=route.shows_sidebar, categories=category_menu(state))
    kind = route.kind

    if kind == RouteKind.INVALID:
        view.redirect = HOME_FRAGMENT
        return view
    if kind in (RouteKind.CHECKOUT, RouteKind.ORDERS) and state.current_user is None:
        view.redirect = LOGIN_FRAGMENT
        return view

    if kind == RouteKind.HOME:
        title, body = views.render_home(state)
    elif kind == RouteKind.COLLECTION:
        title, body = views.render_collection(state, route.arg)
    elif kind == RouteKind.NEW:
        title, body = views.render_collection(state, None, new_only=True)
    elif kind == RouteKind.PRODUCT:
        title, body = views.render_product_detail(state, route.arg)
    elif kind == RouteKind.CART:
        title, body = views.render_cart(state)
    elif kind == RouteKind.CHECKOUT:
        title, body = views.render_checkout(state)
    elif kind == RouteKind.CONFIRMATION:
        title, body = views.render_confirmation(state)
        # A confirmation is shown once.
        if body.get("order"):
            state.storage.remove(LAST_ORDER_KEY)
    elif kind == RouteKind.ORDERS:
        title, body = views.render_user_orders(state)
    elif kind == RouteKind.ORDER:
        title, body = views.render_order_details(state, route.arg)
    elif kind == RouteKind.ADMIN:
        title, body = views.render_admin_dashboard(state)
    elif kind == RouteKind.LOGIN:
        title, body = views.render_login(state)
    else:
        title, body = views.render_register(state)

    view.title = title
    view.body = body
    return view


def navigate(state: AppState, fragment: Optional[str]) -> View:
    return dispatch(state, parse_fragment(fragment))
