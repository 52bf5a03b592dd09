"""Tests for kubeconfig lookups: context listing and API server URLs."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
from kubernetes.config.config_exception import ConfigException

from karpx.clients.kubeconfig import list_contexts, server_url_for_context

_MODULE = "karpx.clients.kubeconfig"


def _context(name: str, cluster: str) -> dict:
    return {"name": name, "context": {"cluster": cluster, "user": "admin"}}


class TestListContexts:
    def test_names_in_kubeconfig_order(self) -> None:
        contexts = [_context("prod", "prod-cluster"), _context("dev", "dev-cluster"), _context("kind", "kind")]
        with patch(
            f"{_MODULE}.k8s_config.list_kube_config_contexts", return_value=(contexts, contexts[0])
        ) as mock_list:
            assert list_contexts() == ["prod", "dev", "kind"]

        mock_list.assert_called_once_with()

    def test_missing_kubeconfig_yields_no_contexts(self) -> None:
        error = ConfigException("Invalid kube-config file. No configuration found.")
        with patch(f"{_MODULE}.k8s_config.list_kube_config_contexts", side_effect=error):
            assert list_contexts() == []


class TestServerUrlForContext:
    def test_host_of_context_client(self) -> None:
        api_client = MagicMock()
        api_client.configuration.host = "https://ABC.gr7.us-east-1.eks.amazonaws.com"
        with patch(f"{_MODULE}.load_k8s_api_client", return_value=api_client) as mock_load:
            assert server_url_for_context("prod") == "https://ABC.gr7.us-east-1.eks.amazonaws.com"

        mock_load.assert_called_once_with("prod")

    def test_empty_host_is_none(self) -> None:
        api_client = MagicMock()
        api_client.configuration.host = ""
        with patch(f"{_MODULE}.load_k8s_api_client", return_value=api_client):
            assert server_url_for_context("prod") is None

    def test_unknown_context_is_none(self) -> None:
        error = ConfigException("Expected object with name nope in kube-config/contexts list")
        with patch(f"{_MODULE}.load_k8s_api_client", side_effect=error):
            assert server_url_for_context("nope") is None

    def test_other_errors_propagate(self) -> None:
        with (
            patch(f"{_MODULE}.load_k8s_api_client", side_effect=OSError("permission denied")),
            pytest.raises(OSError, match="permission denied"),
        ):
            server_url_for_context("prod")
