"""Pytest unit test fixtures."""

import pytest

from fakes import FakeCalendar, FakeDocuments
from rentbot.memory.store import InMemoryConversationStore
from rentbot.quoting.pipeline import FulfillmentPipeline


@pytest.fixture()
def memory_store():
    return InMemoryConversationStore(max_conversations=50, max_idle_seconds=3600)


@pytest.fixture()
def documents():
    return FakeDocuments()


@pytest.fixture()
def calendar():
    return FakeCalendar()


@pytest.fixture()
def make_pipeline(catalog, channel, documents, calendar):
    def _make(**overrides):
        options = {
            "catalog": catalog,
            "documents": documents,
            "calendar": calendar,
            "channel": channel,
            "collaborator_timeout": 1.0,
            "delivery_timeout": 1.0,
        }
        options.update(overrides)
        return FulfillmentPipeline(**options)

    return _make
