"""
Record Models

Read-only input records for the analytics engine and the polars schemas
the snapshot stores them under.
"""

from dataclasses import dataclass
from datetime import date
from typing import Optional

import polars as pl


@dataclass(frozen=True)
class Customer:
    """Customer dimension record"""
    customer_id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    gender: Optional[str] = None
    marital_status: Optional[str] = None
    email: Optional[str] = None
    country: Optional[str] = None
    join_date: Optional[date] = None
    birth_date: Optional[date] = None


@dataclass(frozen=True)
class Product:
    """Product dimension record"""
    product_id: str
    product_name: Optional[str] = None
    category: Optional[str] = None
    price: float = 0.0
    cost: float = 0.0
    stock: int = 0


@dataclass(frozen=True)
class Sale:
    """Sales fact record; amount is the recorded monetary amount, if any"""
    sale_id: str
    customer_id: Optional[str]
    product_id: Optional[str]
    order_date: date
    quantity: int
    amount: Optional[float] = None


CUSTOMER_SCHEMA = {
    "customer_id": pl.Utf8,
    "first_name": pl.Utf8,
    "last_name": pl.Utf8,
    "gender": pl.Utf8,
    "marital_status": pl.Utf8,
    "email": pl.Utf8,
    "country": pl.Utf8,
    "join_date": pl.Date,
    "birth_date": pl.Date,
}

PRODUCT_SCHEMA = {
    "product_id": pl.Utf8,
    "product_name": pl.Utf8,
    "category": pl.Utf8,
    "price": pl.Float64,
    "cost": pl.Float64,
    "stock": pl.Int64,
}

SALE_SCHEMA = {
    "sale_id": pl.Utf8,
    "customer_id": pl.Utf8,
    "product_id": pl.Utf8,
    "order_date": pl.Date,
    "quantity": pl.Int64,
    "amount": pl.Float64,
}
