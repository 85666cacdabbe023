# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Shared pytest fixtures and configuration for Datasync client tests.

This module provides common test fixtures, mock objects, and configuration
that can be used across all test modules.
"""

import pytest
from unittest.mock import Mock
from Datasync.Client.core.config import DatasyncConfig


@pytest.fixture
def dummy_auth():
    """Mock authentication object for testing."""

    class DummyAuth:
        def _acquire_token(self, scope):
            class Token:
                access_token = "test_token_12345"

            return Token()

    return DummyAuth()


@pytest.fixture
def test_config():
    """Test configuration with safe defaults."""
    return DatasyncConfig(http_retries=1, http_backoff=0.1, http_timeout=5)


@pytest.fixture
def mock_http_client():
    """Mock HTTP client for unit tests."""
    mock = Mock()
    mock._request.return_value = Mock()
    return mock


@pytest.fixture
def sample_endpoint():
    """Standard test service endpoint."""
    return "https://datasync.example.com"


@pytest.fixture
def movie_items():
    """Ten wire-format movie items."""
    return [
        {"id": f"id-{i:03d}", "title": f"Movie {i}", "year": 1990 + i, "releaseDate": f"{1990 + i}-01-01"}
        for i in range(10)
    ]
