"""Client wrappers for Kubernetes, kubeconfig, helm, and the release index."""

from __future__ import annotations

from kubernetes import client as k8s_client
from kubernetes.config import new_client_from_config


def load_k8s_api_client(context: str) -> k8s_client.ApiClient:
    """Create an isolated Kubernetes API client for the given kubeconfig context.

    Uses new_client_from_config so concurrent inspections of different contexts
    never share the global SDK configuration. An empty context selects the
    kubeconfig's current context.
    """
    return new_client_from_config(context=context or None)
