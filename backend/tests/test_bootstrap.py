import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from app.db import bootstrap
from app.db.base import Base


def _raise_error(message: str):
    raise RuntimeError(message)


def test_runtime_schema_bootstrap_raises_on_validation_failure(monkeypatch):
    monkeypatch.setattr(bootstrap.Base.metadata, "create_all", lambda bind: None)
    monkeypatch.setattr(
        bootstrap,
        "_assert_required_columns",
        lambda: _raise_error("missing required schema"),
    )

    with pytest.raises(RuntimeError, match="Runtime schema bootstrap failed"):
        bootstrap.ensure_runtime_schema_compatibility()


def test_find_schema_gaps_reports_missing_tables():
    engine = create_engine("sqlite+pysqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)

    with engine.connect() as connection:
        missing_tables, missing_columns = bootstrap.find_schema_gaps(connection)
    assert missing_tables == sorted(bootstrap.REQUIRED_COLUMNS)
    assert missing_columns == {}

    Base.metadata.create_all(bind=engine)
    with engine.connect() as connection:
        assert bootstrap.find_schema_gaps(connection) == ([], {})
