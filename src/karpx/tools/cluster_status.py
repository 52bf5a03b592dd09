"""get_cluster_status: inspect kubeconfig contexts concurrently, one ClusterStatus each."""

from __future__ import annotations

import asyncio

import structlog

from karpx.clients.helm import HelmClient
from karpx.clients.k8s_core import K8sCoreClient
from karpx.clients.kubeconfig import list_contexts
from karpx.clients.releases import ReleaseIndexClient
from karpx.compat import CompatibilityResolver
from karpx.config import EngineConfig, get_engine_config, load_fleet_contexts
from karpx.errors import ClusterUnreachableError, HelmError, ReleaseIndexError
from karpx.models import ClusterStatus, InspectionState
from karpx.tools.provider import cluster_identity, detect_provider
from karpx.validation import validate_context
from karpx.versions import normalize_version, parse_version

log = structlog.get_logger()


class _InspectionFailed(Exception):
    pass


def _is_newer(candidate: str, installed: str) -> bool:
    new = parse_version(candidate)
    old = parse_version(installed)
    return new is not None and old is not None and new > old


async def _run_pipeline(
    status: ClusterStatus,
    resolver: CompatibilityResolver,
    config: EngineConfig,
) -> None:
    context = status.context
    bound = log.bind(context=context)

    def advance(state: InspectionState) -> None:
        status.state = state
        bound.debug("inspection_state_changed", state=state)

    advance("detecting_provider")
    identity = cluster_identity(context, await detect_provider(context))
    provider = identity.provider
    status.provider = provider
    status.support_level = identity.support_level

    advance("fetching_version")
    try:
        raw_version = await K8sCoreClient(context).get_server_version(config.cluster_version_timeout)
    except ClusterUnreachableError as e:
        raise _InspectionFailed(f"cluster unreachable: {e}") from e
    cluster_version = normalize_version(raw_version)
    if cluster_version is None:
        raise _InspectionFailed(f"unrecognised server version: {raw_version!r}")
    status.cluster_version = cluster_version

    advance("detecting_controller")
    try:
        controller = await HelmClient(context, config.helm_timeout).detect_controller()
    except HelmError as e:
        raise _InspectionFailed(f"helm error: {e}") from e
    status.controller_installed = controller.installed
    status.controller_version = controller.version

    advance("checking_compatibility")
    if provider != "aws":
        bound.debug("compatibility_check_skipped", provider=provider)
        return

    status.min_compatible = resolver.min_compatible_controller(cluster_version) or None
    if controller.installed and controller.version:
        status.compatible = resolver.is_compatible(controller.version, cluster_version)

    try:
        latest, _ = await resolver.latest_compatible(cluster_version)
    except ReleaseIndexError as e:
        raise _InspectionFailed(f"release index: {e}") from e
    status.latest_compatible = latest or None
    if controller.installed and controller.version and latest:
        status.upgrade_available = _is_newer(latest, controller.version)


async def inspect_context(
    context: str,
    resolver: CompatibilityResolver,
    config: EngineConfig,
    status: ClusterStatus | None = None,
) -> ClusterStatus:
    """Run the inspection pipeline for one context.

    ``status`` is the pending entry to fill in; a fresh one is created when
    omitted. Never raises for cluster-side failures: the first failing step
    writes ``error``, sets ``state`` to "error" and stops the pipeline.
    """
    if status is None:
        status = ClusterStatus(context=context)
    try:
        await _run_pipeline(status, resolver, config)
    except _InspectionFailed as e:
        status.error = str(e)
        status.state = "error"
        log.warning("cluster_inspection_failed", context=context, error=status.error)
        return status

    status.state = "done"
    log.info(
        "cluster_inspected",
        context=context,
        provider=status.provider,
        cluster_version=status.cluster_version,
        controller_installed=status.controller_installed,
        compatible=status.compatible,
        upgrade_available=status.upgrade_available,
    )
    return status


async def inspect_contexts(
    contexts: list[str],
    resolver: CompatibilityResolver | None = None,
    config: EngineConfig | None = None,
) -> list[ClusterStatus]:
    """Inspect every context concurrently, at most ``max_concurrency`` at a time.

    The result has one entry per input context in input order, duplicates
    and unreachable clusters included.
    """
    config = config or get_engine_config()
    resolver = resolver or CompatibilityResolver(release_client=ReleaseIndexClient(config))
    semaphore = asyncio.Semaphore(config.max_concurrency)
    results = [ClusterStatus(context=context) for context in contexts]

    async def _inspect_slot(status: ClusterStatus) -> None:
        async with semaphore:
            try:
                await inspect_context(status.context, resolver, config, status)
            except Exception as e:
                log.error("cluster_inspection_crashed", context=status.context, error=str(e))
                status.state = "error"
                status.error = str(e)

    await asyncio.gather(*(_inspect_slot(status) for status in results))
    return results


async def get_cluster_status_handler(context: str) -> ClusterStatus:
    """Core handler for get_cluster_status on a single context."""
    validate_context(context)
    statuses = await inspect_contexts([context])
    return statuses[0]


async def get_cluster_status_all() -> list[ClusterStatus]:
    """Inspect the fleet file's contexts, or every kubeconfig context when there is none."""
    contexts = load_fleet_contexts()
    if contexts is None:
        contexts = list_contexts()
    log.info("fleet_inspection_started", clusters=len(contexts))
    return await inspect_contexts(contexts)
