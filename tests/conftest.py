"""Shared fixtures."""
import shutil
import tempfile
from pathlib import Path

import pytest

from openslots.services.document_store import JsonFileStore
from openslots.services.reference_resolver import SPORTS

SEED_SPORTS = ["バドミントン", "卓球", "バスケットボール", "バレーボール"]


@pytest.fixture
def temp_storage_dir():
    """Create a temporary storage directory for testing."""
    temp_dir = Path(tempfile.mkdtemp())
    yield temp_dir
    # Cleanup after test
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def store(temp_storage_dir):
    """Create an empty document store in the temp directory."""
    return JsonFileStore(base_path=temp_storage_dir)


@pytest.fixture
def seeded_store(store):
    """Document store with the sports vocabulary loaded."""
    for name in SEED_SPORTS:
        store.add(SPORTS, {"name": name})
    return store
