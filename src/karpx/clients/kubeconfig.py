"""Kubeconfig lookups: context names and API server URLs, no cluster calls.

File resolution and merging ($KUBECONFIG path lists, ~/.kube/config, first
definition wins) are done by the kubernetes client, the same way as for
load_k8s_api_client.
"""

from __future__ import annotations

import structlog
from kubernetes import config as k8s_config
from kubernetes.config.config_exception import ConfigException

from karpx.clients import load_k8s_api_client

log = structlog.get_logger()


def list_contexts() -> list[str]:
    """Every context name in kubeconfig order; a missing kubeconfig yields none."""
    try:
        contexts, _ = k8s_config.list_kube_config_contexts()
    except ConfigException as e:
        log.warning("kubeconfig_unavailable", error=str(e))
        return []
    return [entry["name"] for entry in contexts]


def server_url_for_context(context: str) -> str | None:
    """The API server URL of the cluster a context points at, or None.

    An empty context resolves to the current context.
    """
    try:
        return load_k8s_api_client(context).configuration.host or None
    except ConfigException as e:
        log.warning("kubeconfig_context_unresolved", context=context, error=str(e))
        return None
