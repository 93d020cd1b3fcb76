"""
Pytest configuration and fixtures.

Shared fixtures: the three-item sample catalog, a fixed clock, and a
stub catalog loader that never touches the network.
"""

from datetime import datetime, timezone

import pytest

from catalog_loader import CatalogLoadResult, sample_catalog
from data_models import ContentItem


@pytest.fixture
def sample_items():
    """The built-in fallback catalog, normalized."""
    return sample_catalog()


@pytest.fixture
def fixed_now():
    """A clock a few months after the sample items were released."""
    return datetime(2026, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def make_item():
    """Factory for catalog items with sensible defaults."""
    def _make(**overrides):
        record = {
            "id": overrides.pop("id", "item"),
            "title": "Untitled",
            "summary": "",
            "content_type": "whitepaper",
            "file_url": "https://example.com/item.pdf",
            "release_date": "2025-01-01",
        }
        record.update(overrides)
        return ContentItem.from_dict(record)
    return _make


class StubLoader:
    """Catalog loader returning a canned result and counting calls."""

    def __init__(self, result):
        self.result = result
        self.calls = 0
        self.closed = False

    def load(self, source=None):
        self.calls += 1
        return self.result

    def close(self):
        self.closed = True


@pytest.fixture
def make_stub_loader():
    return StubLoader


@pytest.fixture
def stub_loader(sample_items):
    return StubLoader(CatalogLoadResult(items=sample_items, source="stub"))
