"""Test fixtures and utilities."""

import tempfile

import pytest
from fixtures import load_json_fixture

from nuxeo_client.marshaller import EntityTypeRegistry, ResponseConverter


@pytest.fixture(autouse=True)
def blob_dir(tmp_path, monkeypatch):
    """Keep materialized blobs inside the test's tmp_path."""
    directory = tmp_path / "blobs"
    directory.mkdir()
    monkeypatch.setattr(tempfile, "tempdir", str(directory))
    return directory


@pytest.fixture
def registry() -> EntityTypeRegistry:
    """Fresh registry seeded with the built-in entities."""
    return EntityTypeRegistry()


@pytest.fixture
def converter(registry) -> ResponseConverter:
    return ResponseConverter(registry)


@pytest.fixture
def sample_document() -> dict:
    """Sample ``document`` entity."""
    return load_json_fixture("document.json")


@pytest.fixture
def sample_user() -> dict:
    """Sample ``user`` entity."""
    return load_json_fixture("user.json")


@pytest.fixture
def sample_record_set() -> dict:
    """Sample ``recordSet`` entity."""
    return load_json_fixture("record_set.json")


@pytest.fixture
def sample_documents(sample_document) -> dict:
    """Sample ``documents`` entity with one entry."""
    return {
        "entity-type": "documents",
        "isPaginable": True,
        "resultsCount": 1,
        "pageSize": 50,
        "currentPageIndex": 0,
        "isNextPageAvailable": False,
        "entries": [sample_document],
    }
