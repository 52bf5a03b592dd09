"""Cloud provider detection and provider metadata."""

from __future__ import annotations

import asyncio

import structlog

from karpx.clients.k8s_core import K8sCoreClient
from karpx.clients.kubeconfig import server_url_for_context
from karpx.models import ClusterIdentity, Provider, ProviderMeta

log = structlog.get_logger()

PROVIDER_META: dict[Provider, ProviderMeta] = {
    "aws": ProviderMeta(
        label="AWS EKS",
        support_level="full",
        chart_repo="oci://public.ecr.aws/karpenter/karpenter",
        docs_url="https://karpenter.sh/docs/getting-started/getting-started-with-karpenter/",
        provider_repo="https://github.com/aws/karpenter-provider-aws",
    ),
    "azure": ProviderMeta(
        label="Azure AKS",
        support_level="preview",
        chart_repo="oci://mcr.microsoft.com/aks/karpenter/karpenter",
        docs_url="https://learn.microsoft.com/en-us/azure/aks/karpenter-overview",
        provider_repo="https://github.com/Azure/karpenter-provider-azure-aks",
    ),
    "gcp": ProviderMeta(
        label="GCP GKE",
        support_level="experimental",
        chart_repo="oci://us-east1-docker.pkg.dev/k8s-staging-karpenter/karpenter/karpenter",
        docs_url="https://github.com/kubernetes-sigs/karpenter-provider-gcp",
        provider_repo="https://github.com/kubernetes-sigs/karpenter-provider-gcp",
    ),
    "unknown": ProviderMeta(label="On-prem / Other", support_level="unsupported"),
}

_PROVIDER_ALIASES: dict[str, Provider] = {
    "aws": "aws",
    "eks": "aws",
    "azure": "azure",
    "aks": "azure",
    "gcp": "gcp",
    "gke": "gcp",
    "google": "gcp",
}

_SERVER_URL_MARKERS: tuple[tuple[Provider, tuple[str, ...]], ...] = (
    ("aws", ("eks.amazonaws.com", ".elb.amazonaws.com")),
    ("azure", ("azmk8s.io", ".azure.com")),
    ("gcp", ("googleapis.com", ".gke.io")),
)

_PROVIDER_ID_MARKERS: tuple[tuple[Provider, tuple[str, ...]], ...] = (
    ("aws", ("aws://", "amazonaws.com")),
    ("azure", ("azure://", "microsoft.compute")),
    ("gcp", ("gce://", "gcp://")),
)


def parse_provider(flag: str | None) -> Provider:
    """Map a user-supplied provider name or alias to a Provider."""
    return _PROVIDER_ALIASES.get((flag or "").strip().lower(), "unknown")


def provider_from_server_url(url: str | None) -> Provider:
    lowered = (url or "").lower()
    for provider, markers in _SERVER_URL_MARKERS:
        if any(m in lowered for m in markers):
            return provider
    return "unknown"


def provider_from_provider_id(provider_id: str | None) -> Provider:
    lowered = (provider_id or "").lower()
    for provider, markers in _PROVIDER_ID_MARKERS:
        if any(m in lowered for m in markers):
            return provider
    return "unknown"


async def detect_provider(context: str) -> Provider:
    """Work out which cloud a context runs on.

    The API server URL in kubeconfig is checked first. When it is not
    conclusive, the providerID of the first node decides. Any failure along
    the way yields "unknown"; this function never raises.
    """
    try:
        url = await asyncio.to_thread(server_url_for_context, context)
    except Exception as e:
        log.warning("kubeconfig_lookup_failed", context=context, error=str(e))
        url = None

    provider = provider_from_server_url(url)
    if provider != "unknown":
        return provider

    try:
        nodes = await K8sCoreClient(context).get_nodes(limit=1)
    except Exception as e:
        log.warning("provider_detection_failed", context=context, error=str(e))
        return "unknown"
    if not nodes:
        return "unknown"
    return provider_from_provider_id(nodes[0]["provider_id"])


def cluster_identity(context: str, provider: Provider) -> ClusterIdentity:
    return ClusterIdentity(
        context=context,
        provider=provider,
        support_level=PROVIDER_META[provider].support_level,
    )
