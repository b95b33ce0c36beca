"""Tests for startup schema migrations."""

from sqlalchemy import inspect, select, text

from kabu_tracker.database import build_engine, init_db
from kabu_tracker.migrations import MIGRATIONS, run_migrations
from kabu_tracker.models import SchemaMigration


async def ledger(engine):
    async with engine.connect() as conn:
        result = await conn.execute(select(SchemaMigration.version).order_by(SchemaMigration.version))
        return [row[0] for row in result]


async def stock_columns(engine):
    async with engine.connect() as conn:
        return await conn.run_sync(lambda sync_conn: {c["name"] for c in inspect(sync_conn).get_columns("stocks")})


class TestMigrations:
    async def test_fresh_database_records_every_version(self, engine):
        assert await ledger(engine) == [migration.version for migration in MIGRATIONS]

    async def test_running_again_is_a_no_op(self, engine):
        assert await run_migrations(engine) == []
        await init_db(engine)
        assert await ledger(engine) == [migration.version for migration in MIGRATIONS]

    async def test_legacy_table_gets_missing_columns(self):
        legacy = build_engine("sqlite+aiosqlite:///:memory:")
        async with legacy.begin() as conn:
            await conn.execute(text(
                "CREATE TABLE stocks ("
                "id INTEGER PRIMARY KEY AUTOINCREMENT, code VARCHAR(4) NOT NULL UNIQUE, name VARCHAR NOT NULL, "
                "purchase_price FLOAT NOT NULL, shares INTEGER NOT NULL, purchase_amount FLOAT NOT NULL, "
                "created_at DATETIME, updated_at DATETIME)"
            ))
            await conn.execute(text(
                "INSERT INTO stocks (code, name, purchase_price, shares, purchase_amount) "
                "VALUES ('7203', 'トヨタ自動車', 2500, 100, 250000)"
            ))

        try:
            await init_db(legacy)

            columns = await stock_columns(legacy)
            assert {"memo", "dividend_amount", "industry", "payout_ratio"} <= columns
            assert await ledger(legacy) == [1, 2, 3]

            async with legacy.connect() as conn:
                row = (await conn.execute(text("SELECT code, memo FROM stocks"))).one()
            assert tuple(row) == ("7203", None)
        finally:
            await legacy.dispose()
