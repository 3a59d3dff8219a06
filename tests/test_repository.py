import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.exc import NoSuchTableError

from dashboard_engine.config import RepositoryConfig
from dashboard_engine.repository import SQLRecordRepository, build_repository_from_env


@pytest.fixture()
def engine(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'records.db'}")
    with engine.begin() as connection:
        connection.execute(
            text("CREATE TABLE inventory (sku TEXT PRIMARY KEY, warehouse TEXT, quantity INTEGER, attributes TEXT)")
        )
        connection.execute(
            text("INSERT INTO inventory VALUES (:sku, :warehouse, :quantity, :attributes)"),
            [
                {"sku": "A-1", "warehouse": "BER", "quantity": 12, "attributes": '{"brand": {"name": "Acme"}}'},
                {"sku": "B-2", "warehouse": "HAM", "quantity": 0, "attributes": '{"brand": {"name": "Cupco"}}'},
                {"sku": "C-3", "warehouse": "BER", "quantity": 5, "attributes": "not json"},
            ],
        )
    yield engine
    engine.dispose()


def test_load_returns_plain_dicts(engine):
    records = SQLRecordRepository(engine).load("inventory")

    assert [record["sku"] for record in records] == ["A-1", "B-2", "C-3"]
    assert records[0] == {
        "sku": "A-1",
        "warehouse": "BER",
        "quantity": 12,
        "attributes": '{"brand": {"name": "Acme"}}',
    }


def test_json_columns_are_decoded(engine):
    records = SQLRecordRepository(engine, json_columns=["attributes"]).load("inventory")

    assert records[0]["attributes"] == {"brand": {"name": "Acme"}}
    assert records[2]["attributes"] == "not json"


def test_load_honours_limit(engine):
    assert len(SQLRecordRepository(engine).load("inventory", limit=2)) == 2


def test_unknown_table_raises(engine):
    with pytest.raises(NoSuchTableError):
        SQLRecordRepository(engine).load("missing_table")


def test_build_repository_from_env(tmp_path):
    assert build_repository_from_env(RepositoryConfig()) is None

    repository = build_repository_from_env(RepositoryConfig(database_url=f"sqlite:///{tmp_path / 'x.db'}"))
    assert isinstance(repository, SQLRecordRepository)
    repository.engine.dispose()


def test_build_repository_from_env_decodes_configured_json_columns(engine):
    repository = build_repository_from_env(
        RepositoryConfig(database_url=str(engine.url), json_columns=["attributes"])
    )

    records = repository.load("inventory")
    assert records[1]["attributes"] == {"brand": {"name": "Cupco"}}
    repository.engine.dispose()
