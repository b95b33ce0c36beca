"""
Schema Migrations

Versioned, idempotent column migrations applied once at startup.
Each migration lists the columns it guarantees; a column that already
exists is skipped, and the version is recorded in schema_migrations.
"""

import logging
from typing import Dict, List, NamedTuple

from sqlalchemy import inspect, select, text
from sqlalchemy.ext.asyncio import AsyncEngine

from .models.schema_migration import SchemaMigration

logger = logging.getLogger(__name__)


class Migration(NamedTuple):
    version: int
    name: str
    table: str
    columns: Dict[str, str]  # column name -> DDL type


MIGRATIONS: List[Migration] = [
    Migration(1, "add_stock_memo", "stocks", {
        "memo": "VARCHAR(100) DEFAULT NULL",
    }),
    Migration(2, "add_stock_dividend_amount", "stocks", {
        "dividend_amount": "FLOAT DEFAULT NULL",
    }),
    Migration(3, "add_stock_industry_payout", "stocks", {
        "industry": "VARCHAR DEFAULT NULL",
        "payout_ratio": "FLOAT DEFAULT NULL",
    }),
]


def _existing_columns(sync_conn, table: str) -> set:
    return {column["name"] for column in inspect(sync_conn).get_columns(table)}


async def run_migrations(engine: AsyncEngine) -> List[int]:
    """
    Apply every migration that is not yet recorded

    Args:
        engine: Engine whose schema should be brought up to date

    Returns:
        Versions applied by this call (empty when already current)
    """
    applied_now = []

    async with engine.begin() as conn:
        result = await conn.execute(select(SchemaMigration.version))
        applied = {row[0] for row in result}

        for migration in MIGRATIONS:
            if migration.version in applied:
                continue

            existing = await conn.run_sync(_existing_columns, migration.table)
            for column_name, column_type in migration.columns.items():
                if column_name in existing:
                    logger.debug(f"Column {migration.table}.{column_name} already exists")
                    continue
                logger.info(f"➕ Adding column: {migration.table}.{column_name}")
                await conn.execute(text(
                    f"ALTER TABLE {migration.table} ADD COLUMN {column_name} {column_type}"
                ))

            await conn.execute(
                SchemaMigration.__table__.insert().values(version=migration.version, name=migration.name)
            )
            applied_now.append(migration.version)
            logger.info(f"✓ Migration {migration.version} ({migration.name}) applied")

    if not applied_now:
        logger.info("Schema is up to date, no migrations applied")
    return applied_now
