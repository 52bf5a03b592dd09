"""Tests for provider detection and provider metadata."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest

from karpx.tools.provider import (
    PROVIDER_META,
    cluster_identity,
    detect_provider,
    parse_provider,
    provider_from_provider_id,
    provider_from_server_url,
)


class TestParseProvider:
    @pytest.mark.parametrize(
        "flag,expected",
        [
            ("aws", "aws"),
            ("EKS", "aws"),
            ("azure", "azure"),
            ("aks", "azure"),
            ("gcp", "gcp"),
            ("gke", "gcp"),
            ("google", "gcp"),
            ("openstack", "unknown"),
            ("", "unknown"),
            (None, "unknown"),
        ],
    )
    def test_aliases(self, flag: str | None, expected: str) -> None:
        assert parse_provider(flag) == expected


class TestServerUrl:
    @pytest.mark.parametrize(
        "url,expected",
        [
            ("https://ABC123.gr7.us-east-1.eks.amazonaws.com", "aws"),
            ("https://internal-k8s-123.us-west-2.elb.amazonaws.com", "aws"),
            ("https://prod-dns-1a2b.hcp.eastus.azmk8s.io:443", "azure"),
            ("https://container.googleapis.com/v1/projects/p/locations/l/clusters/c", "gcp"),
            ("https://cluster.gke.io", "gcp"),
            ("https://127.0.0.1:6443", "unknown"),
            (None, "unknown"),
        ],
    )
    def test_markers(self, url: str | None, expected: str) -> None:
        assert provider_from_server_url(url) == expected


class TestProviderId:
    @pytest.mark.parametrize(
        "provider_id,expected",
        [
            ("aws:///us-east-1a/i-0123456789abcdef0", "aws"),
            ("azure:///subscriptions/x/resourceGroups/y/providers/Microsoft.Compute/virtualMachines/z", "azure"),
            ("gce://my-project/us-central1-a/gke-node-1", "gcp"),
            ("kind://docker/kind/kind-control-plane", "unknown"),
            ("", "unknown"),
        ],
    )
    def test_markers(self, provider_id: str, expected: str) -> None:
        assert provider_from_provider_id(provider_id) == expected


class TestDetectProvider:
    async def test_server_url_wins(self) -> None:
        mock_core = AsyncMock()
        with (
            patch("karpx.tools.provider.server_url_for_context", return_value="https://x.eks.amazonaws.com"),
            patch("karpx.tools.provider.K8sCoreClient", return_value=mock_core),
        ):
            assert await detect_provider("prod") == "aws"
        mock_core.get_nodes.assert_not_called()

    async def test_falls_back_to_node_provider_id(self) -> None:
        mock_core = AsyncMock()
        mock_core.get_nodes.return_value = [{"name": "n1", "provider_id": "gce://p/z/n1", "labels": {}}]
        with (
            patch("karpx.tools.provider.server_url_for_context", return_value="https://10.0.0.1"),
            patch("karpx.tools.provider.K8sCoreClient", return_value=mock_core),
        ):
            assert await detect_provider("gke-ctx") == "gcp"
        mock_core.get_nodes.assert_awaited_once_with(limit=1)

    async def test_no_nodes_is_unknown(self) -> None:
        mock_core = AsyncMock()
        mock_core.get_nodes.return_value = []
        with (
            patch("karpx.tools.provider.server_url_for_context", return_value=None),
            patch("karpx.tools.provider.K8sCoreClient", return_value=mock_core),
        ):
            assert await detect_provider("kind") == "unknown"

    async def test_failures_never_raise(self) -> None:
        mock_core = AsyncMock()
        mock_core.get_nodes.side_effect = Exception("Connection refused")
        with (
            patch("karpx.tools.provider.server_url_for_context", side_effect=ValueError("bad yaml")),
            patch("karpx.tools.provider.K8sCoreClient", return_value=mock_core),
        ):
            assert await detect_provider("broken") == "unknown"


class TestProviderMeta:
    def test_every_provider_has_meta(self) -> None:
        assert set(PROVIDER_META) == {"aws", "azure", "gcp", "unknown"}

    @pytest.mark.parametrize(
        "provider,level",
        [("aws", "full"), ("azure", "preview"), ("gcp", "experimental"), ("unknown", "unsupported")],
    )
    def test_support_levels(self, provider: str, level: str) -> None:
        assert cluster_identity("ctx", provider).support_level == level  # type: ignore[arg-type]

    def test_supported_providers_have_chart_repo(self) -> None:
        for provider in ("aws", "azure", "gcp"):
            assert PROVIDER_META[provider].chart_repo  # type: ignore[index]
