"""
Pytest configuration and shared fixtures for hash tree tests.
"""

from collections.abc import Generator
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from merkle_explorer.crypto.merkle import HashTree
from merkle_explorer.metrics import TreeMetrics
from merkle_explorer.services.tree_service import TreeService


@pytest.fixture
def sample_items() -> list[str]:
    """Items used by the explorer's default view."""
    return ["apple", "banana", "cherry", "date", "elderberry", "fig", "grape"]


@pytest.fixture
def sample_tree(sample_items: list[str]) -> HashTree:
    """Seven-leaf tree (padded leaf level)."""
    return HashTree.build(sample_items)


@pytest.fixture
def mock_metrics() -> MagicMock:
    """Create a mock metrics sink."""
    return MagicMock(spec=TreeMetrics)


@pytest.fixture
def tree_service(mock_metrics: MagicMock) -> TreeService:
    """Create a tree service with a small item limit."""
    return TreeService(max_items=16, hash_workers=1, metrics=mock_metrics)


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    """Create an API client with the application lifespan running."""
    from merkle_explorer.main import app

    with TestClient(app) as test_client:
        yield test_client
