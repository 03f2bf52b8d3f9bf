"""
Tests for the Alembic migration chain against a throwaway SQLite file.
"""

from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect

from medprice.models.database import Base
import medprice.models.tables  # noqa: F401

ROOT = Path(__file__).resolve().parent.parent


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "migrations.db"


@pytest.fixture
def alembic_cfg(db_path):
    cfg = Config()
    cfg.set_main_option("script_location", str(ROOT / "alembic"))
    cfg.set_main_option("sqlalchemy.url", f"sqlite+aiosqlite:///{db_path}")
    return cfg


@pytest.fixture
def upgraded(alembic_cfg, db_path):
    command.upgrade(alembic_cfg, "head")
    engine = create_engine(f"sqlite:///{db_path}")
    yield inspect(engine)
    engine.dispose()


class TestMigrations:

    def test_upgrade_creates_every_model_table(self, upgraded):
        tables = set(upgraded.get_table_names()) - {"alembic_version"}
        assert tables == set(Base.metadata.tables)

    def test_columns_match_models(self, upgraded):
        for name, table in Base.metadata.tables.items():
            reflected = {c["name"]: c["nullable"] for c in upgraded.get_columns(name)}
            expected = {c.name: c.nullable for c in table.columns}
            assert reflected == expected, name

    def test_indexes_match_models(self, upgraded):
        for name, table in Base.metadata.tables.items():
            reflected = {i["name"]: i["column_names"] for i in upgraded.get_indexes(name)}
            expected = {i.name: [c.name for c in i.columns] for i in table.indexes}
            assert reflected == expected, name

    def test_price_rows_cascade_with_provider(self, upgraded):
        fks = upgraded.get_foreign_keys("prices")
        provider_fk = next(fk for fk in fks if fk["referred_table"] == "providers")
        assert provider_fk["options"].get("ondelete") == "CASCADE"

    def test_downgrade_drops_everything(self, alembic_cfg, db_path):
        command.upgrade(alembic_cfg, "head")
        command.downgrade(alembic_cfg, "base")

        engine = create_engine(f"sqlite:///{db_path}")
        try:
            assert set(inspect(engine).get_table_names()) <= {"alembic_version"}
        finally:
            engine.dispose()
