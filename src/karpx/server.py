"""MCP server entry point and tool registration."""

from __future__ import annotations

import sys
import time

import structlog
from mcp.server.fastmcp import FastMCP
from pydantic import TypeAdapter

from karpx.models import ClusterStatus, RecommendationInput, scrub_sensitive_values
from karpx.tools.cluster_status import get_cluster_status_all, get_cluster_status_handler
from karpx.tools.compatibility import check_compatibility_handler, get_compatible_versions_handler
from karpx.tools.provider import parse_provider
from karpx.tools.recommendation import recommend_for_context
from karpx.validation import validate_mode, validate_provider

structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.dev.ConsoleRenderer() if sys.stderr.isatty() else structlog.processors.JSONRenderer(),
    ],
    logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
)

log = structlog.get_logger()

mcp = FastMCP("Karpx")

_STATUS_LIST = TypeAdapter(list[ClusterStatus])


@mcp.tool()
async def get_cluster_status(context: str) -> str:
    """Inspect a cluster's provider, Kubernetes version and controller installation.

    Returns provider and support level, the cluster version, whether the
    controller is installed and at which version, its compatibility with the
    cluster, the minimum and latest compatible controller versions, and
    whether an upgrade is available. Unreachable clusters report an error
    instead of failing the whole call.

    Args:
        context: Kubeconfig context name, or 'all' for every configured cluster.
    """
    start = time.monotonic()
    try:
        if context == "all":
            results = await get_cluster_status_all()
            output = scrub_sensitive_values(_STATUS_LIST.dump_json(results, indent=2).decode())
        else:
            result = await get_cluster_status_handler(context)
            output = scrub_sensitive_values(result.model_dump_json(indent=2))
        log.info("tool_completed", tool="get_cluster_status", context=context, latency_ms=_elapsed_ms(start))
        return output
    except Exception as e:
        sanitised = scrub_sensitive_values(str(e))
        log.error("tool_failed", tool="get_cluster_status", context=context, error=sanitised)
        raise RuntimeError(sanitised) from None


@mcp.tool()
async def check_compatibility(controller_version: str, cluster_version: str) -> str:
    """Check whether a controller version supports a Kubernetes version.

    Answers offline from the embedded compatibility matrix. Unrecognised
    versions are reported as incompatible.

    Args:
        controller_version: Controller version, e.g. '1.0.5' or 'v1.0.5'.
        cluster_version: Kubernetes version, e.g. '1.31' or 'v1.30.2-eks-a1b2'.
    """
    start = time.monotonic()
    try:
        result = check_compatibility_handler(controller_version, cluster_version)
        output = result.model_dump_json(indent=2)
        log.info("tool_completed", tool="check_compatibility", latency_ms=_elapsed_ms(start))
        return output
    except Exception as e:
        sanitised = scrub_sensitive_values(str(e))
        log.error("tool_failed", tool="check_compatibility", error=sanitised)
        raise RuntimeError(sanitised) from None


@mcp.tool()
async def get_compatible_versions(cluster_version: str) -> str:
    """List released controller versions that support a Kubernetes version.

    Fetches the live release index. The minimum compatible version comes from
    the embedded matrix and is returned even when the index is unavailable.

    Args:
        cluster_version: Kubernetes version, e.g. '1.31'.
    """
    start = time.monotonic()
    try:
        result = await get_compatible_versions_handler(cluster_version)
        output = result.model_dump_json(indent=2)
        log.info("tool_completed", tool="get_compatible_versions", latency_ms=_elapsed_ms(start))
        return output
    except Exception as e:
        sanitised = scrub_sensitive_values(str(e))
        log.error("tool_failed", tool="get_compatible_versions", error=sanitised)
        raise RuntimeError(sanitised) from None


@mcp.tool()
async def recommend_node_pool(context: str, mode: str = "balanced", provider: str | None = None) -> str:
    """Recommend node pool instance families and sizes from a cluster's running workloads.

    Profiles running pod requests, classifies the workload (general, memory,
    cpu, gpu, batch) and returns instance families, capacity types,
    architectures and minimum node sizes with reasoning.

    Args:
        context: Kubeconfig context name.
        mode: 'cost', 'balanced' or 'performance'. Default 'balanced'.
        provider: Override provider detection: 'aws', 'azure' or 'gcp' (aliases eks/aks/gke accepted).
    """
    start = time.monotonic()
    try:
        validate_mode(mode)
        validate_provider(provider)
        params = RecommendationInput(
            context=context,
            mode=mode,  # type: ignore[arg-type]
            provider=parse_provider(provider) if provider is not None else None,
        )
        result = await recommend_for_context(params.context, params.mode, params.provider)
        output = scrub_sensitive_values(result.model_dump_json(indent=2))
        log.info("tool_completed", tool="recommend_node_pool", context=context, latency_ms=_elapsed_ms(start))
        return output
    except Exception as e:
        sanitised = scrub_sensitive_values(str(e))
        log.error("tool_failed", tool="recommend_node_pool", context=context, error=sanitised)
        raise RuntimeError(sanitised) from None


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


def main() -> None:
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
