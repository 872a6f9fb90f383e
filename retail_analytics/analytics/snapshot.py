"""
Analytics Snapshot

Immutable view over the customer, product and sales collections that every
report reads. The sale-to-product-to-customer join is built once on
construction and shared by all reports.
"""

from typing import Dict, Iterable

import polars as pl
import structlog

from .models import (
    CUSTOMER_SCHEMA,
    PRODUCT_SCHEMA,
    SALE_SCHEMA,
    Customer,
    Product,
    Sale,
)

logger = structlog.get_logger(__name__)


def _frame_from_records(records: Iterable, schema: Dict[str, pl.DataType]) -> pl.DataFrame:
    """Build a column-oriented frame from dataclass records"""
    records = list(records)
    data = {name: [getattr(r, name) for r in records] for name in schema}
    return pl.DataFrame(data, schema=schema)


def _conform(df: pl.DataFrame, schema: Dict[str, pl.DataType]) -> pl.DataFrame:
    """Select and cast the snapshot columns; optional columns missing from df become null"""
    exprs = []
    for name, dtype in schema.items():
        if name not in df.columns:
            exprs.append(pl.lit(None, dtype=dtype).alias(name))
        elif dtype == pl.Date and df.schema[name] == pl.Utf8:
            exprs.append(pl.col(name).str.to_date("%Y-%m-%d").alias(name))
        else:
            exprs.append(pl.col(name).cast(dtype).alias(name))
    return df.select(exprs)


class Snapshot:
    """
    Consistent, read-only snapshot of the three input collections.

    Example:
        snapshot = Snapshot.from_records(customers, products, sales)
        sales = snapshot.sales_enriched
    """

    def __init__(
        self,
        customers: pl.DataFrame,
        products: pl.DataFrame,
        sales: pl.DataFrame,
    ):
        self._customers = _conform(customers, CUSTOMER_SCHEMA).sort("customer_id")
        self._products = _conform(products, PRODUCT_SCHEMA).sort("product_id")
        self._sales = _conform(sales, SALE_SCHEMA).sort("sale_id")
        self._sales_enriched = self._build_enriched()

        logger.debug(
            "Snapshot built",
            customers=self._customers.height,
            products=self._products.height,
            sales=self._sales.height,
        )

    @classmethod
    def from_records(
        cls,
        customers: Iterable[Customer],
        products: Iterable[Product],
        sales: Iterable[Sale],
    ) -> "Snapshot":
        """Build a snapshot from record dataclasses"""
        return cls(
            _frame_from_records(customers, CUSTOMER_SCHEMA),
            _frame_from_records(products, PRODUCT_SCHEMA),
            _frame_from_records(sales, SALE_SCHEMA),
        )

    @classmethod
    def from_frames(
        cls,
        customers: pl.DataFrame,
        products: pl.DataFrame,
        sales: pl.DataFrame,
    ) -> "Snapshot":
        """Build a snapshot from polars frames using the record field names"""
        return cls(customers, products, sales)

    def _build_enriched(self) -> pl.DataFrame:
        products = self._products.with_columns(pl.lit(True).alias("product_found"))
        customers = self._customers.with_columns(pl.lit(True).alias("customer_found"))

        enriched = (
            self._sales
            .join(products, on="product_id", how="left")
            .join(customers, on="customer_id", how="left")
            .with_columns([
                pl.col("product_found").fill_null(False),
                pl.col("customer_found").fill_null(False),
                (pl.col("price") * pl.col("quantity")).alias("line_amount"),
                (pl.col("cost") * pl.col("quantity")).alias("line_cost"),
            ])
            .with_columns(
                pl.coalesce(["amount", "line_amount"]).alias("sale_amount")
            )
            .sort("sale_id")
        )

        orphans = enriched.filter(~pl.col("product_found") | ~pl.col("customer_found")).height
        if orphans:
            logger.warning("Sales with unresolved references", count=orphans)

        return enriched

    @property
    def customers(self) -> pl.DataFrame:
        return self._customers

    @property
    def products(self) -> pl.DataFrame:
        return self._products

    @property
    def sales(self) -> pl.DataFrame:
        return self._sales

    @property
    def sales_enriched(self) -> pl.DataFrame:
        """Every sale left-joined with its product and customer"""
        return self._sales_enriched

    @property
    def product_sales(self) -> pl.DataFrame:
        """Sales whose product reference resolves"""
        return self._sales_enriched.filter(pl.col("product_found"))

    @property
    def customer_sales(self) -> pl.DataFrame:
        """Sales whose customer reference resolves"""
        return self._sales_enriched.filter(pl.col("customer_found"))

    @property
    def resolved_sales(self) -> pl.DataFrame:
        """Sales whose customer and product references both resolve"""
        return self._sales_enriched.filter(pl.col("product_found") & pl.col("customer_found"))

    def validated(self, strict: bool = False) -> "Snapshot":
        """
        Run ingestion checks and return self.

        Raises:
            SnapshotValidationError: if any ERROR-level check fails
        """
        from retail_analytics.quality.validators import validate_snapshot

        validate_snapshot(self, strict=strict, raise_on_failure=True)
        return self

    def __repr__(self) -> str:
        return (
            f"Snapshot(customers={self._customers.height}, "
            f"products={self._products.height}, sales={self._sales.height})"
        )
