"""Shared test fixtures for all test modules."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from karpx.compat import CompatibilityResolver
from karpx.config import EngineConfig
from karpx.models import ReleaseTag


@pytest.fixture
def engine_config() -> EngineConfig:
    """Engine settings with short timeouts for tests."""
    return EngineConfig(
        max_concurrency=2,
        cluster_version_timeout=0.5,
        release_timeout=1.0,
        helm_timeout=1.0,
        releases_url="https://example.invalid/releases",
    )


@pytest.fixture
def release_client() -> AsyncMock:
    """A release index client that returns a fixed set of stable releases."""
    client = AsyncMock()
    client.fetch_releases.return_value = [
        ReleaseTag(version=v) for v in ("1.5.0", "1.4.1", "1.3.3", "1.1.2", "1.0.8", "0.37.7", "0.36.2", "0.34.9")
    ]
    return client


@pytest.fixture
def resolver(release_client: AsyncMock) -> CompatibilityResolver:
    return CompatibilityResolver(release_client=release_client)
