"""
Record schemas for the storefront.

Each model is one element of a persisted collection. Records are stored with
camelCase keys (``isAdmin``, ``isNew``, ``productId``) and read back through
the same models, so ``model_dump(by_alias=True)`` is the stored shape.
"""
from typing import List

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel


class Record(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_storage(self) -> dict:
        return self.model_dump(by_alias=True)


class User(Record):
    username: str = Field(..., description="Email address, unique")
    password: str = Field(..., description="Plain text, demo only")
    is_admin: bool = Field(False)


class Product(Record):
    id: int = Field(..., ge=1)
    name: str
    category: str
    price: float = Field(..., ge=0)
    image: str
    is_new: bool = Field(False)
    description: str = Field("")


class OrderItem(Record):
    """Product fields copied at purchase time; ``product_id`` may no longer exist."""
    product_id: int
    name: str
    category: str = ""
    price: float = Field(0, ge=0)
    quantity: int = Field(..., ge=1)

    @property
    def line_total(self) -> float:
        return self.price * self.quantity


class Shipping(Record):
    name: str
    address: str = Field(..., description="Street, city and zip joined with ', '")


class Order(Record):
    id: int = Field(..., ge=1)
    user: str = Field(..., description="Owner username")
    date: str = Field(..., description="YYYY-MM-DD")
    items: List[OrderItem]
    total: float
    shipping: Shipping


class CartLine(Record):
    product_id: int
    quantity: int


USERS = TypeAdapter(List[User])
PRODUCTS = TypeAdapter(List[Product])
ORDERS = TypeAdapter(List[Order])
CART = TypeAdapter(List[CartLine])


def dump_all(records) -> list:
    return [r.to_storage() for r in records]
