import asyncio
import logging
from typing import Any, Dict, Optional, Union

from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

import operations
from config import LOG_LEVEL, PORT
from database import Storage, create_store
from errors import ValidationFailed
from router import navigate
from state import AppState

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

# ----------------------------------------------------------------------------
# App and State Setup
# ----------------------------------------------------------------------------

app = FastAPI(title="Storefront API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# One client, one state: requests take turns on it. Waiters queue on the
# event loop, so a request holding the lock always gets a worker thread.
_state: Optional[AppState] = None
_state_lock = asyncio.Lock()


async def get_state():
    global _state
    async with _state_lock:
        if _state is None:
            _state = AppState.bootstrap(Storage(create_store()))
        yield _state


def get_current_user(state: AppState = Depends(get_state)) -> AppState:
    if state.current_user is None:
        raise HTTPException(status_code=401, detail="You must be logged in")
    return state


def get_current_admin(state: AppState = Depends(get_current_user)) -> AppState:
    if not state.current_user.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    return state


@app.exception_handler(ValidationFailed)
def validation_failed_handler(request, exc: ValidationFailed):
    return JSONResponse(status_code=400, content={"detail": exc.message})


# ----------------------------------------------------------------------------
# Models (request bodies)
# ----------------------------------------------------------------------------

class AuthRequest(BaseModel):
    email: str = ""
    password: str = ""


class ProductRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: Optional[str] = None
    category: Optional[str] = None
    price: Union[float, str, None] = None
    image: Optional[str] = None
    is_new: bool = False
    description: Optional[str] = None

    def to_data(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "category": self.category,
            "price": self.price,
            "image": self.image,
            "isNew": self.is_new,
            "description": self.description,
        }


class AddCartRequest(BaseModel):
    product_id: int
    quantity: int = Field(1, ge=1)


class UpdateCartRequest(BaseModel):
    quantity: int


class CheckoutRequest(BaseModel):
    name: str = ""
    address: str = ""
    city: str = ""
    zip: str = ""
    card_number: str = ""


class SortRequest(BaseModel):
    sort: str


# ----------------------------------------------------------------------------
# Navigation
# ----------------------------------------------------------------------------

@app.get("/view")
def view(fragment: str = Query("", description="URL fragment such as #cart or product-3"), state=Depends(get_state)):
    if fragment and not fragment.startswith("#"):
        fragment = "#" + fragment
    return navigate(state, fragment).to_dict()


@app.post("/view/sort")
def set_sort(body: SortRequest, state=Depends(get_state)):
    operations.set_sort(state, body.sort)
    return {"sort": state.current_sort}


# ----------------------------------------------------------------------------
# Auth Endpoints
# ----------------------------------------------------------------------------

def session_info(state: AppState) -> Dict[str, Any]:
    user = state.current_user
    if user is None:
        return {"username": None, "is_admin": False}
    return {"username": user.username, "is_admin": user.is_admin}


@app.post("/auth/register")
def register(body: AuthRequest, state=Depends(get_state)):
    operations.register(state, body.email, body.password)
    return {**session_info(state), "redirect": "#admin" if state.is_admin else "#home"}


@app.post("/auth/login")
def login(body: AuthRequest, state=Depends(get_state)):
    operations.login(state, body.email, body.password)
    return {**session_info(state), "redirect": "#admin" if state.is_admin else "#home"}


@app.post("/auth/logout")
def logout(state=Depends(get_state)):
    operations.logout(state)
    return {**session_info(state), "redirect": "#home"}


@app.get("/me")
def me(state=Depends(get_state)):
    return session_info(state)


# ----------------------------------------------------------------------------
# Product Endpoints
# ----------------------------------------------------------------------------

@app.get("/products")
def list_products(category: Optional[str] = Query(None), state=Depends(get_state)):
    items = [p.to_storage() for p in state.products if not category or p.category == category]
    return {"items": items, "categories": state.categories()}


@app.post("/admin/products")
def admin_create_product(body: ProductRequest, state=Depends(get_current_admin)):
    product = operations.add_product(state, body.to_data())
    return {"id": product.id}


@app.put("/admin/products/{product_id}")
def admin_update_product(product_id: int, body: ProductRequest, state=Depends(get_current_admin)):
    if not operations.update_product(state, product_id, body.to_data()):
        raise HTTPException(status_code=404, detail="Product not found")
    return {"updated": True}


@app.delete("/admin/products/{product_id}")
def admin_delete_product(product_id: int, state=Depends(get_current_admin)):
    operations.delete_product(state, product_id)
    return {"deleted": True}


# ----------------------------------------------------------------------------
# Cart
# ----------------------------------------------------------------------------

def cart_payload(state: AppState) -> Dict[str, Any]:
    return {"key": state.cart_key(), "cart": [line.to_storage() for line in state.get_cart()]}


@app.get("/cart")
def get_cart(state=Depends(get_state)):
    return cart_payload(state)


@app.post("/cart")
def add_to_cart(body: AddCartRequest, state=Depends(get_state)):
    operations.add_to_cart(state, body.product_id, body.quantity)
    return {"ok": True, **cart_payload(state)}


@app.put("/cart/{product_id}")
def update_cart(product_id: int, body: UpdateCartRequest, state=Depends(get_state)):
    if not operations.update_cart_quantity(state, product_id, body.quantity):
        raise HTTPException(status_code=404, detail="Product not in cart")
    return {"ok": True, **cart_payload(state)}


@app.delete("/cart/{product_id}")
def remove_from_cart(product_id: int, state=Depends(get_state)):
    if not operations.remove_from_cart(state, product_id):
        raise HTTPException(status_code=404, detail="Product not in cart")
    return {"ok": True, **cart_payload(state)}


# ----------------------------------------------------------------------------
# Orders (Checkout)
# ----------------------------------------------------------------------------

@app.post("/orders/checkout")
def checkout(body: CheckoutRequest, state=Depends(get_state)):
    shipping = {"name": body.name, "address": body.address, "city": body.city, "zip": body.zip}
    order = operations.place_order(state, shipping, {"cardNumber": body.card_number})
    return {"id": order.id, "total": order.total, "redirect": "#confirmation"}


# ----------------------------------------------------------------------------
# Health
# ----------------------------------------------------------------------------

@app.get("/")
def root():
    return {"message": "Storefront API running"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=PORT)
