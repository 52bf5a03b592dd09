"""Tests for K8sBatchClient: Job and CronJob presence checks."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from karpx.clients.k8s_batch import K8sBatchClient


@pytest.fixture
def client() -> K8sBatchClient:
    return K8sBatchClient("prod")


class TestHasBatchWorkloads:
    async def test_job_present(self, client: K8sBatchClient) -> None:
        mock_api = MagicMock()
        mock_api.list_job_for_all_namespaces.return_value = MagicMock(items=[MagicMock()])

        with patch.object(client, "_get_api", return_value=mock_api):
            assert await client.has_batch_workloads() is True

        mock_api.list_job_for_all_namespaces.assert_called_once_with(limit=1)
        mock_api.list_cron_job_for_all_namespaces.assert_not_called()

    async def test_cron_job_only(self, client: K8sBatchClient) -> None:
        mock_api = MagicMock()
        mock_api.list_job_for_all_namespaces.return_value = MagicMock(items=[])
        mock_api.list_cron_job_for_all_namespaces.return_value = MagicMock(items=[MagicMock()])

        with patch.object(client, "_get_api", return_value=mock_api):
            assert await client.has_batch_workloads() is True

        mock_api.list_cron_job_for_all_namespaces.assert_called_once_with(limit=1)

    async def test_none(self, client: K8sBatchClient) -> None:
        mock_api = MagicMock()
        mock_api.list_job_for_all_namespaces.return_value = MagicMock(items=[])
        mock_api.list_cron_job_for_all_namespaces.return_value = MagicMock(items=[])

        with patch.object(client, "_get_api", return_value=mock_api):
            assert await client.has_batch_workloads() is False

    async def test_error_propagates(self, client: K8sBatchClient) -> None:
        mock_api = MagicMock()
        mock_api.list_job_for_all_namespaces.side_effect = Exception("Forbidden")

        with patch.object(client, "_get_api", return_value=mock_api), pytest.raises(Exception, match="Forbidden"):
            await client.has_batch_workloads()
