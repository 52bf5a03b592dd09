"""Tests for config.py: engine settings, environment variable overrides, fleet file loading."""

from __future__ import annotations

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from karpx.config import DEFAULT_RELEASES_URL, EngineConfig, _load_fleet, get_engine_config, load_fleet_contexts


class TestEngineConfig:
    def test_defaults(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            config = get_engine_config()
        assert config.max_concurrency == 8
        assert config.cluster_version_timeout == 5.0
        assert config.release_timeout == 10.0
        assert config.helm_timeout == 30.0
        assert config.releases_url == DEFAULT_RELEASES_URL

    def test_env_overrides(self) -> None:
        env = {
            "KARPX_MAX_CONCURRENCY": "3",
            "KARPX_CLUSTER_VERSION_TIMEOUT": "2.5",
            "KARPX_RELEASE_TIMEOUT": "4",
            "KARPX_HELM_TIMEOUT": "12",
            "KARPX_RELEASES_URL": "https://mirror.internal/releases",
        }
        with patch.dict(os.environ, env, clear=True):
            config = get_engine_config()
        assert config.max_concurrency == 3
        assert config.cluster_version_timeout == 2.5
        assert config.release_timeout == 4.0
        assert config.helm_timeout == 12.0
        assert config.releases_url == "https://mirror.internal/releases"

    def test_zero_concurrency_rejected(self) -> None:
        with pytest.raises(ValueError, match="KARPX_MAX_CONCURRENCY"):
            EngineConfig(max_concurrency=0)

    def test_non_positive_timeout_rejected(self) -> None:
        with pytest.raises(ValueError, match="Timeouts"):
            EngineConfig(cluster_version_timeout=0)

    def test_non_numeric_env_rejected(self) -> None:
        with patch.dict(os.environ, {"KARPX_MAX_CONCURRENCY": "many"}, clear=True), pytest.raises(ValueError):
            get_engine_config()

    def test_frozen(self) -> None:
        config = EngineConfig()
        with pytest.raises(AttributeError):
            config.max_concurrency = 1  # type: ignore[misc]


class TestFleetFile:
    def test_loads_contexts_in_order(self, tmp_path: Path) -> None:
        path = tmp_path / "clusters.yaml"
        path.write_text("contexts:\n  - prod-use1\n  - dev-euw1\n  - prod-use1\n")
        assert _load_fleet(path) == ["prod-use1", "dev-euw1", "prod-use1"]

    def test_missing_key(self, tmp_path: Path) -> None:
        path = tmp_path / "clusters.yaml"
        path.write_text("clusters: []\n")
        with pytest.raises(ValueError, match="top-level 'contexts'"):
            _load_fleet(path)

    def test_empty_list(self, tmp_path: Path) -> None:
        path = tmp_path / "clusters.yaml"
        path.write_text("contexts: []\n")
        with pytest.raises(ValueError, match="empty or invalid"):
            _load_fleet(path)

    def test_invalid_entry(self, tmp_path: Path) -> None:
        path = tmp_path / "clusters.yaml"
        path.write_text("contexts:\n  - prod\n  - {name: dev}\n")
        with pytest.raises(ValueError, match="invalid context entry"):
            _load_fleet(path)

    def test_env_path(self, tmp_path: Path) -> None:
        path = tmp_path / "fleet.yaml"
        path.write_text("contexts: [a, b]\n")
        with patch.dict(os.environ, {"KARPX_CLUSTERS": str(path)}):
            assert load_fleet_contexts() == ["a", "b"]

    def test_missing_file_returns_none(self, tmp_path: Path) -> None:
        with patch.dict(os.environ, {"KARPX_CLUSTERS": str(tmp_path / "absent.yaml")}):
            assert load_fleet_contexts() is None
