"""
Additive startup migrations.

Safe to run on every boot: each step checks the live schema first and only
adds what is missing. Nothing is ever dropped.
"""

from sqlalchemy import inspect, text
from sqlalchemy.engine import Engine

from storefront.database import Base
from storefront.logger import get_logger

# Register every model on Base.metadata
from storefront import models  # noqa: F401

logger = get_logger("migrations")

# (table, column, DDL type clause) added to databases created before the column existed
ADDED_COLUMNS = [
    ("products", "sort_order", "INTEGER DEFAULT 0"),
    ("products", "thumbnail", "VARCHAR(500)"),
]


def _add_missing_columns(engine: Engine) -> list:
    added = []
    inspector = inspect(engine)
    tables = set(inspector.get_table_names())
    for table, column, ddl in ADDED_COLUMNS:
        if table not in tables:
            continue
        existing = {c["name"] for c in inspector.get_columns(table)}
        if column in existing:
            continue
        with engine.begin() as conn:
            conn.execute(text(f"ALTER TABLE {table} ADD COLUMN {column} {ddl}"))
        logger.info(f"Added column {table}.{column}")
        added.append(f"{table}.{column}")
    return added


def _widen_payment_method(engine: Engine) -> bool:
    """Legacy MySQL schemas used a native ENUM that rejected bank_transfer."""
    if engine.dialect.name != "mysql":
        return False
    inspector = inspect(engine)
    if "orders" not in inspector.get_table_names():
        return False
    for column in inspector.get_columns("orders"):
        if column["name"] == "payment_method" and "ENUM" in str(column["type"]).upper():
            with engine.begin() as conn:
                conn.execute(text(
                    "ALTER TABLE `orders` MODIFY COLUMN `payment_method` VARCHAR(50) NOT NULL DEFAULT 'cash'"
                ))
            logger.info("Widened orders.payment_method to VARCHAR(50)")
            return True
    return False


def run_migrations(engine: Engine) -> dict:
    """Create missing tables, then apply column-level upgrades."""
    Base.metadata.create_all(bind=engine)
    added = _add_missing_columns(engine)
    widened = _widen_payment_method(engine)
    logger.info("Migrations complete")
    return {"addedColumns": added, "widenedPaymentMethod": widened}
