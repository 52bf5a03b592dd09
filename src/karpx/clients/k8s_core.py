"""Kubernetes Core API wrapper: server version, nodes, running pods."""

from __future__ import annotations

import asyncio
import threading
from typing import Any

import structlog
import urllib3
from kubernetes import client as k8s_client

from karpx.clients import load_k8s_api_client
from karpx.errors import ClusterTimeoutError, ClusterUnreachableError

log = structlog.get_logger()


def _is_timeout(exc: BaseException) -> bool:
    if isinstance(exc, TimeoutError | urllib3.exceptions.TimeoutError):
        return True
    return isinstance(exc, urllib3.exceptions.MaxRetryError) and isinstance(
        exc.reason, urllib3.exceptions.TimeoutError
    )


class K8sCoreClient:
    """Wrapper around the Kubernetes Core V1 and Version APIs for one context."""

    def __init__(self, context: str) -> None:
        self._context = context
        self._api_client: k8s_client.ApiClient | None = None
        self._api: k8s_client.CoreV1Api | None = None
        self._lock = threading.Lock()

    def _get_api_client(self) -> k8s_client.ApiClient:
        with self._lock:
            if self._api_client is None:
                self._api_client = load_k8s_api_client(self._context)
            return self._api_client

    def _get_api(self) -> k8s_client.CoreV1Api:
        api_client = self._get_api_client()
        with self._lock:
            if self._api is None:
                self._api = k8s_client.CoreV1Api(api_client)
            return self._api

    async def get_server_version(self, timeout: float) -> str:
        """Return the raw server git version (e.g. ``v1.30.2-eks-a1b2``).

        The request carries ``timeout`` as its socket timeout and the await is
        bounded by the same deadline.

        Raises:
            ClusterTimeoutError: If the deadline passes.
            ClusterUnreachableError: If kubeconfig loading or the request fails.
        """

        def _fetch() -> str:
            api = k8s_client.VersionApi(self._get_api_client())
            info = api.get_code(_request_timeout=timeout)
            return str(info.git_version)

        try:
            return await asyncio.wait_for(asyncio.to_thread(_fetch), timeout=timeout)
        except Exception as e:
            if _is_timeout(e):
                log.warning("server_version_timeout", context=self._context, timeout_s=timeout)
                raise ClusterTimeoutError(timeout) from None
            log.error("failed_to_get_server_version", context=self._context)
            raise ClusterUnreachableError(f"get server version: {e}") from e

    async def get_nodes(self, limit: int | None = None) -> list[dict[str, Any]]:
        """List nodes with provider-identifying metadata.

        Returns a list of dicts with keys: name, provider_id, labels.
        """
        api = self._get_api()
        try:
            kwargs: dict[str, Any] = {}
            if limit:
                kwargs["limit"] = limit
            node_list = await asyncio.to_thread(api.list_node, **kwargs)
        except Exception:
            log.error("failed_to_list_nodes", context=self._context)
            raise

        return [
            {
                "name": node.metadata.name,
                "provider_id": (node.spec.provider_id if node.spec else None) or "",
                "labels": node.metadata.labels or {},
            }
            for node in node_list.items
        ]

    async def get_running_pods(self) -> list[dict[str, Any]]:
        """List running pods across all namespaces with per-container resource requests.

        Returns a list of dicts with keys: name, namespace, containers; each
        container is a dict with keys: name, requests (resource name -> quantity string).
        """
        api = self._get_api()
        try:
            pod_list = await asyncio.to_thread(
                api.list_pod_for_all_namespaces,
                field_selector="status.phase=Running",
            )
        except Exception:
            log.error("failed_to_list_pods", context=self._context)
            raise

        results: list[dict[str, Any]] = []
        for pod in pod_list.items:
            containers = []
            for container in pod.spec.containers or []:
                resources = container.resources
                requests = (resources.requests if resources else None) or {}
                containers.append({"name": container.name, "requests": dict(requests)})
            results.append(
                {
                    "name": pod.metadata.name,
                    "namespace": pod.metadata.namespace,
                    "containers": containers,
                }
            )
        return results
