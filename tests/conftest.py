from __future__ import annotations

from decimal import Decimal

import pytest

from fakes import RecordingChannel
from rentbot.integrations.catalog import StaticCatalogGateway
from rentbot.quoting.models import CatalogEntry


@pytest.fixture
def catalog_entries() -> list[CatalogEntry]:
    return [
        CatalogEntry("Loader X", "Compact wheel loader, 1.2 m3 bucket", Decimal("1000.00")),
        CatalogEntry("Backhoe CAT 416", "Backhoe loader for excavation", Decimal("2450.50")),
        CatalogEntry("Bobcat S70 Skid Steer", "Mini skid steer loader", Decimal("899.99")),
    ]


@pytest.fixture
def catalog(catalog_entries) -> StaticCatalogGateway:
    return StaticCatalogGateway(catalog_entries)


@pytest.fixture
def channel() -> RecordingChannel:
    return RecordingChannel()
