from decimal import Decimal

import pytest

from rentbot.integrations.catalog import SQLiteCatalogGateway, match_entry, upsert_machines
from rentbot.quoting.models import CatalogEntry


@pytest.mark.parametrize(
    "query, expected",
    [
        ("Loader X", "Loader X"),
        ("loader x", "Loader X"),
        ("  LOADER   X ", "Loader X"),
        ("bobcat", "Bobcat S70 Skid Steer"),
        ("CAT 416", "Backhoe CAT 416"),
    ],
)
def test_name_matching(catalog_entries, query, expected):
    assert match_entry(query, catalog_entries).model_name == expected


def test_subset_prefers_shortest_name():
    entries = [
        CatalogEntry("Loader X Heavy Duty", "", Decimal("1500")),
        CatalogEntry("Loader X", "", Decimal("1000")),
    ]

    assert match_entry("X", entries).model_name == "Loader X"


def test_description_similarity_resolves_loose_queries(catalog_entries):
    assert match_entry("excavation backhoe", catalog_entries).model_name == "Backhoe CAT 416"


@pytest.mark.parametrize("query", ["", "   ", "Crane 9000", "!!!"])
def test_unknown_queries_miss(catalog_entries, query):
    assert match_entry(query, catalog_entries) is None


def test_empty_catalog_never_matches():
    assert match_entry("Loader X", []) is None


@pytest.mark.asyncio
async def test_sqlite_gateway_reads_upserted_rows(tmp_path, catalog_entries):
    database = tmp_path / "catalog.db"
    assert upsert_machines(database, catalog_entries) == 3
    upsert_machines(database, [CatalogEntry("Loader X", "Updated", Decimal("1100.00"))])

    gateway = SQLiteCatalogGateway(database)
    entries = await gateway.list_all()

    assert [entry.model_name for entry in entries] == ["Backhoe CAT 416", "Bobcat S70 Skid Steer", "Loader X"]
    loader = await gateway.find_by_name("loader x")
    assert loader.weekly_price == Decimal("1100.00")
    assert loader.description == "Updated"


@pytest.mark.asyncio
async def test_sqlite_gateway_missing_database_is_empty(tmp_path):
    gateway = SQLiteCatalogGateway(tmp_path / "absent.db")

    assert await gateway.list_all() == []
    assert await gateway.find_by_name("Loader X") is None
