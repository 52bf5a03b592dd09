"""check_compatibility and get_compatible_versions handlers."""

from __future__ import annotations

from datetime import UTC, datetime

import structlog

from karpx.compat import CompatibilityResolver
from karpx.errors import ReleaseIndexError
from karpx.models import CompatibilityOutput, CompatibleVersionsOutput, ToolError
from karpx.validation import validate_version
from karpx.versions import normalize_version

log = structlog.get_logger()


def check_compatibility_handler(
    controller_version: str,
    cluster_version: str,
    resolver: CompatibilityResolver | None = None,
) -> CompatibilityOutput:
    """Offline verdict for one controller/cluster version pair."""
    resolver = resolver or CompatibilityResolver()
    compatible = resolver.is_compatible(controller_version, cluster_version)
    minimum = resolver.min_compatible_controller(cluster_version) or None

    controller = normalize_version(controller_version) or controller_version
    cluster = normalize_version(cluster_version) or cluster_version
    if compatible:
        summary = f"Controller {controller} supports Kubernetes {cluster}"
    elif minimum:
        summary = f"Controller {controller} does not support Kubernetes {cluster}; minimum supported is {minimum}"
    else:
        summary = f"Controller {controller} does not support Kubernetes {cluster}"

    return CompatibilityOutput(
        controller_version=controller,
        cluster_version=cluster,
        compatible=compatible,
        min_compatible=minimum,
        summary=summary,
    )


async def get_compatible_versions_handler(
    cluster_version: str,
    resolver: CompatibilityResolver | None = None,
) -> CompatibleVersionsOutput:
    """Every released controller version that supports ``cluster_version``, newest first.

    The offline minimum is always filled in. If the release index is
    unavailable the version list is empty and the failure is reported as a
    ToolError.
    """
    validate_version(cluster_version, "cluster_version")
    resolver = resolver or CompatibilityResolver()
    cluster = normalize_version(cluster_version) or cluster_version
    minimum = resolver.min_compatible_controller(cluster_version) or None

    errors: list[ToolError] = []
    latest = ""
    versions: list[str] = []
    try:
        latest, versions = await resolver.latest_compatible(cluster_version)
    except ReleaseIndexError as e:
        log.warning("compatible_versions_degraded", cluster_version=cluster, error=str(e))
        errors.append(ToolError(error=str(e), source="release-index", context=cluster, partial_data=True))

    if versions:
        summary = f"{len(versions)} controller release(s) support Kubernetes {cluster}; latest is {latest}"
    elif errors:
        summary = f"Release index unavailable; minimum controller for Kubernetes {cluster} is {minimum or 'unknown'}"
    else:
        summary = f"No released controller version supports Kubernetes {cluster}"

    return CompatibleVersionsOutput(
        cluster_version=cluster,
        latest_compatible=latest or None,
        min_compatible=minimum,
        compatible_versions=versions,
        summary=summary,
        timestamp=datetime.now(UTC).isoformat(),
        errors=errors,
    )
