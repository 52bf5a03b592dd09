"""Kubernetes Batch API wrapper: Jobs and CronJobs."""

from __future__ import annotations

import asyncio
import threading

import structlog
from kubernetes import client as k8s_client

from karpx.clients import load_k8s_api_client

log = structlog.get_logger()


class K8sBatchClient:
    """Wrapper around the Kubernetes Batch V1 API for one context."""

    def __init__(self, context: str) -> None:
        self._context = context
        self._api: k8s_client.BatchV1Api | None = None
        self._lock = threading.Lock()

    def _get_api(self) -> k8s_client.BatchV1Api:
        with self._lock:
            if self._api is None:
                api_client = load_k8s_api_client(self._context)
                self._api = k8s_client.BatchV1Api(api_client)
            return self._api

    async def has_batch_workloads(self) -> bool:
        """True when any Job or CronJob exists in any namespace.

        Only one item per kind is requested.
        """
        api = self._get_api()
        try:
            jobs = await asyncio.to_thread(api.list_job_for_all_namespaces, limit=1)
            if jobs.items:
                return True
            cron_jobs = await asyncio.to_thread(api.list_cron_job_for_all_namespaces, limit=1)
        except Exception:
            log.error("failed_to_list_batch_workloads", context=self._context)
            raise
        return bool(cron_jobs.items)
