"""
Product Reports

Best sellers, Pareto contribution and profitability by product and category.
"""

from typing import Optional

import polars as pl
import structlog

from retail_analytics.config import get_settings
from .snapshot import Snapshot
from .windows import ROUNDING, ranked

logger = structlog.get_logger(__name__)


def _profit_columns() -> list:
    margin = (
        pl.when(pl.col("sales_amount") != 0)
        .then((pl.col("sales_amount") - pl.col("cost_amount")) / pl.col("sales_amount"))
        .otherwise(None)
    )
    return [
        (pl.col("sales_amount") - pl.col("cost_amount")).round(2, mode=ROUNDING).alias("profit"),
        margin.round(4, mode=ROUNDING).alias("profit_margin"),
        pl.col("sales_amount").round(2, mode=ROUNDING),
        pl.col("cost_amount").round(2, mode=ROUNDING),
    ]


def top_selling_products(snapshot: Snapshot, limit: Optional[int] = None) -> pl.DataFrame:
    """Products with the most units sold"""
    limit = get_settings().segmentation.top_n if limit is None else limit

    df = snapshot.product_sales.group_by(["product_id", "product_name"]).agg(
        pl.col("quantity").sum().alias("total_quantity")
    )
    return ranked(df, "total_quantity", descending=True, tie_break="product_id").head(limit)


def average_order_value_by_category(snapshot: Snapshot) -> pl.DataFrame:
    """Mean price x quantity of a sale line, per category"""
    df = snapshot.product_sales.group_by("category").agg([
        pl.len().alias("order_count"),
        pl.col("line_amount").mean().round(2, mode=ROUNDING).alias("avg_order_value"),
    ])
    return ranked(df, "avg_order_value", descending=True, tie_break="category")


def pareto_products(snapshot: Snapshot, threshold: Optional[float] = None) -> pl.DataFrame:
    """
    Products that together make up the leading share of sales.

    Products are consumed in descending sales order (product_id breaks ties)
    and kept while their cumulative share of total sales stays within the
    threshold.

    Args:
        snapshot: Input snapshot
        threshold: Cumulative share cutoff, defaults to the configured 0.8

    Returns:
        DataFrame with sales_amount, cumulative_sales and cumulative_share
    """
    threshold = get_settings().segmentation.pareto_threshold if threshold is None else threshold

    per_product = snapshot.product_sales.group_by(["product_id", "product_name"]).agg(
        pl.col("line_amount").sum().alias("sales_amount")
    )
    per_product = ranked(per_product, "sales_amount", descending=True, tie_break="product_id")

    total = pl.col("sales_amount").sum()
    df = per_product.with_columns(
        pl.col("sales_amount").cum_sum().alias("cumulative_sales"),
    ).with_columns(
        pl.when(total > 0)
        .then(pl.col("cumulative_sales") / total)
        .otherwise(None)
        .alias("cumulative_share")
    )

    result = df.filter(pl.col("cumulative_share") <= threshold).with_columns([
        pl.col("sales_amount").round(2, mode=ROUNDING),
        pl.col("cumulative_sales").round(2, mode=ROUNDING),
        pl.col("cumulative_share").round(4, mode=ROUNDING),
    ])
    logger.debug(
        "Pareto analysis computed",
        products=per_product.height,
        included=result.height,
        threshold=threshold,
    )
    return result


def category_profitability(snapshot: Snapshot) -> pl.DataFrame:
    """Sales, units, cost, profit and margin per category"""
    df = (
        snapshot.product_sales
        .group_by("category")
        .agg([
            pl.col("line_amount").sum().alias("sales_amount"),
            pl.col("quantity").sum().alias("quantity_sold"),
            pl.col("line_cost").sum().alias("cost_amount"),
        ])
        .with_columns(_profit_columns())
        .select([
            "category",
            "sales_amount",
            "quantity_sold",
            "cost_amount",
            "profit",
            "profit_margin",
        ])
    )
    return ranked(df, "profit", descending=True, tie_break="category")


def product_profit_margins(snapshot: Snapshot) -> pl.DataFrame:
    """Profit and margin per product, best margin first"""
    df = (
        snapshot.product_sales
        .group_by(["product_id", "product_name", "category"])
        .agg([
            pl.col("line_amount").sum().alias("sales_amount"),
            pl.col("line_cost").sum().alias("cost_amount"),
        ])
        .with_columns(_profit_columns())
        .select([
            "product_id",
            "product_name",
            "category",
            "sales_amount",
            "cost_amount",
            "profit",
            "profit_margin",
        ])
    )
    return ranked(df, "profit_margin", descending=True, tie_break="product_id")
