"""Tests that the Alembic migrations build the same schema as the models."""
from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect

import billpay.models  # noqa: F401
from billpay.database import Base

BACKEND_DIR = Path(__file__).resolve().parents[2]


@pytest.fixture(scope="function")
def alembic_config(tmp_path: Path) -> tuple[Config, str]:
    """Alembic config pointed at a throwaway SQLite file."""
    db_path = tmp_path / "migrations.db"
    config = Config(str(BACKEND_DIR / "alembic.ini"))
    config.set_main_option("sqlalchemy.url", f"sqlite+aiosqlite:///{db_path}")
    config.attributes["configure_logger"] = False
    return config, f"sqlite:///{db_path}"


def _schema(sync_url: str) -> dict[str, set[str]]:
    engine = create_engine(sync_url)
    try:
        inspector = inspect(engine)
        return {
            table: {column["name"] for column in inspector.get_columns(table)}
            for table in inspector.get_table_names()
            if table != "alembic_version"
        }
    finally:
        engine.dispose()


def _indexes(sync_url: str) -> set[tuple[str, bool]]:
    engine = create_engine(sync_url)
    try:
        inspector = inspect(engine)
        return {
            (index["name"], bool(index["unique"]))
            for table in inspector.get_table_names()
            for index in inspector.get_indexes(table)
        }
    finally:
        engine.dispose()


def test_upgrade_matches_models(alembic_config: tuple[Config, str]) -> None:
    """Test that upgrading to head creates every model table and column."""
    config, sync_url = alembic_config

    command.upgrade(config, "head")

    expected = {table.name: {column.name for column in table.columns} for table in Base.metadata.sorted_tables}
    assert _schema(sync_url) == expected

    expected_indexes = {
        (index.name, bool(index.unique)) for table in Base.metadata.sorted_tables for index in table.indexes
    }
    assert _indexes(sync_url) == expected_indexes


def test_downgrade_to_base(alembic_config: tuple[Config, str]) -> None:
    """Test that the initial revision can be fully reverted."""
    config, sync_url = alembic_config

    command.upgrade(config, "head")
    command.downgrade(config, "base")

    assert _schema(sync_url) == {}
