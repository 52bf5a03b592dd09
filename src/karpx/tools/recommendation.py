"""recommend_node_pool: pick instance families, capacity types and node sizes for a cluster."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from types import MappingProxyType
from typing import get_args

import structlog

from karpx.models import (
    OptimizationMode,
    Provider,
    Recommendation,
    RecommendationOutput,
    ToolError,
    WorkloadArchetype,
    WorkloadProfile,
)
from karpx.tools.provider import PROVIDER_META, detect_provider
from karpx.tools.workload import analyze_workloads, classify_workload
from karpx.validation import validate_context, validate_mode

log = structlog.get_logger()

CPU_HEADROOM = 1.2
MEMORY_HEADROOM = 1.25
CPU_BUCKETS = (2, 4, 8, 16, 32, 48, 64)
MEMORY_BUCKETS_MIB = (2048, 4096, 8192, 16384, 32768, 65536, 131072, 262144)

UNKNOWN_PROVIDER_REASON = "Provider unknown - showing generic guidance only"

SUPPORTED_PROVIDERS: tuple[Provider, ...] = ("aws", "azure", "gcp")
MODES: tuple[OptimizationMode, ...] = get_args(OptimizationMode)
ARCHETYPES: tuple[WorkloadArchetype, ...] = get_args(WorkloadArchetype)


@dataclass(frozen=True)
class Selection:
    """One cell of the recommendation table."""

    families: tuple[str, ...]
    architectures: tuple[str, ...]
    capacity_types: tuple[str, ...]
    reasoning: tuple[str, ...]


def _snap_up(needed: float, buckets: tuple[int, ...]) -> int:
    for bucket in buckets:
        if bucket >= needed:
            return bucket
    return buckets[-1]


def min_node_cpu(max_pod_cpu_millicores: int) -> int:
    """Smallest vCPU bucket that fits the largest pod plus 20% headroom."""
    return _snap_up(max_pod_cpu_millicores * CPU_HEADROOM / 1000, CPU_BUCKETS)


def min_node_memory_mib(max_pod_memory_mib: int) -> int:
    """Smallest memory bucket that fits the largest pod plus 25% headroom."""
    return _snap_up(max_pod_memory_mib * MEMORY_HEADROOM, MEMORY_BUCKETS_MIB)


def cpu_sizes(minimum: int) -> list[str]:
    return [str(size) for size in CPU_BUCKETS if size >= minimum]


SPOT_AND_ON_DEMAND = ("spot", "on-demand")
ON_DEMAND = ("on-demand",)
ARM_AND_AMD = ("arm64", "amd64")
AMD_ONLY = ("amd64",)


def _sel(families: tuple[str, ...], archs: tuple[str, ...], caps: tuple[str, ...], *reasons: str) -> Selection:
    return Selection(families, archs, caps, reasons)


# Per provider and mode: explicit archetype cells plus a "default" cell for the rest.
_AWS: dict[OptimizationMode, dict[str, Selection]] = {
    "cost": {
        "gpu": _sel(
            ("g5g", "g4dn", "g5"),
            ARM_AND_AMD,
            SPOT_AND_ON_DEMAND,
            "GPU workloads detected - spot-eligible GPU families, Graviton g5g first",
            "Spot GPU saves around 70% over on-demand; GPU pods must tolerate interruption",
        ),
        "memory": _sel(
            ("r7g", "r6g", "r7i", "r6i"),
            ARM_AND_AMD,
            SPOT_AND_ON_DEMAND,
            "Memory-intensive workloads (over 4 GiB per core) - memory-optimised r-series",
            "Graviton r7g/r6g first for the best price per GiB on Spot",
        ),
        "cpu": _sel(
            ("c7g", "c6g", "c7i", "c6i", "c6a"),
            ARM_AND_AMD,
            SPOT_AND_ON_DEMAND,
            "Compute-intensive workloads (under 2 GiB per core) - compute-optimised c-series",
            "Graviton c7g/c6g give the best price per vCPU on Spot",
        ),
        "batch": _sel(
            ("m7g", "m6g", "c7g", "c6g", "m7i", "m6i"),
            ARM_AND_AMD,
            SPOT_AND_ON_DEMAND,
            "Batch workloads - mixed general and compute families on Spot for the lowest cost",
            "Consolidation removes idle nodes between job runs",
        ),
        "default": _sel(
            ("m7g", "m6g", "m7i", "m6i", "m6a"),
            ARM_AND_AMD,
            SPOT_AND_ON_DEMAND,
            "General-purpose workloads - latest Graviton and Intel m-series",
            "arm64 included for roughly 20% better price/performance on Spot",
        ),
    },
    "performance": {
        "gpu": _sel(
            ("p4d", "p3", "g5", "g4dn"),
            AMD_ONLY,
            ON_DEMAND,
            "GPU workloads detected - high-performance NVIDIA families (p4d/p3/g5)",
            "On-demand only to guarantee availability",
        ),
        "memory": _sel(
            ("r7i", "r6i", "r5n", "x2idn"),
            AMD_ONLY,
            ON_DEMAND,
            "Memory-intensive workloads - Intel memory-optimised r7i/r6i/x2idn",
            "On-demand keeps stateful and memory-heavy services available",
        ),
        "cpu": _sel(
            ("c7i", "c6i", "c5n", "hpc7g"),
            AMD_ONLY,
            ON_DEMAND,
            "Compute-intensive workloads - latest Intel c7i/c6i",
            "c5n/hpc7g cover network-bound and HPC workloads",
        ),
        "default": _sel(
            ("m7i", "c7i", "m6i", "c6i"),
            AMD_ONLY,
            ON_DEMAND,
            "High-performance general: latest-generation Intel m7i/c7i on-demand",
            "No Spot, so latency-sensitive services are never interrupted",
        ),
    },
    "balanced": {
        "gpu": _sel(
            ("g5", "g5g", "g4dn", "p3"),
            ARM_AND_AMD,
            SPOT_AND_ON_DEMAND,
            "GPU workloads - balanced mix of GPU families on Spot and on-demand",
        ),
        "memory": _sel(
            ("r7g", "r7i", "r6g", "r6i", "m7g", "m7i"),
            ARM_AND_AMD,
            SPOT_AND_ON_DEMAND,
            "Memory workloads - balanced mix of memory-optimised families",
        ),
        "cpu": _sel(
            ("c7g", "c7i", "m7g", "m7i", "c6g", "c6i"),
            ARM_AND_AMD,
            SPOT_AND_ON_DEMAND,
            "Compute workloads - balanced compute and general families",
        ),
        "default": _sel(
            ("m7g", "m7i", "c7g", "c7i", "m6g", "m6i"),
            ARM_AND_AMD,
            SPOT_AND_ON_DEMAND,
            "Balanced: Graviton and Intel latest generation, Spot and on-demand",
        ),
    },
}

_AZURE: dict[OptimizationMode, dict[str, Selection]] = {
    "cost": {
        "gpu": _sel(
            ("NC", "ND"),
            AMD_ONLY,
            SPOT_AND_ON_DEMAND,
            "GPU workloads - NC/ND series GPU VMs with Spot pricing",
        ),
        "memory": _sel(
            ("E", "M"),
            AMD_ONLY,
            SPOT_AND_ON_DEMAND,
            "Memory workloads - memory-optimised E-series on Spot",
        ),
        "cpu": _sel(
            ("F", "FX"),
            AMD_ONLY,
            SPOT_AND_ON_DEMAND,
            "Compute workloads - compute-optimised F-series on Spot",
        ),
        "default": _sel(
            ("D", "Das", "Dads"),
            AMD_ONLY,
            SPOT_AND_ON_DEMAND,
            "General: Dadsv5/Dasv5 (AMD) for the best price per vCPU on Spot",
        ),
    },
    "performance": {
        "gpu": _sel(
            ("NC", "NCv3", "ND", "NDv2"),
            AMD_ONLY,
            ON_DEMAND,
            "GPU: high-end NC/ND series (V100/A100) on-demand",
        ),
        "memory": _sel(
            ("E", "M", "MediumMemory"),
            AMD_ONLY,
            ON_DEMAND,
            "Memory: E-series and M-series (up to 4 TiB RAM) on-demand",
        ),
        "cpu": _sel(
            ("Fx", "FX", "Fs"),
            AMD_ONLY,
            ON_DEMAND,
            "Compute: Fx-series (Intel Sapphire Rapids) on-demand",
        ),
        "default": _sel(
            ("D", "Ds", "Dls"),
            AMD_ONLY,
            ON_DEMAND,
            "High-performance general: Dv5-series (Intel) on-demand",
        ),
    },
    "balanced": {
        "default": _sel(
            ("D", "Das", "E", "F"),
            AMD_ONLY,
            SPOT_AND_ON_DEMAND,
            "Balanced: D/E/F families, Spot and on-demand",
        ),
    },
}

_GCP: dict[OptimizationMode, dict[str, Selection]] = {
    "cost": {
        "gpu": _sel(
            ("a2", "g2"),
            AMD_ONLY,
            SPOT_AND_ON_DEMAND,
            "GPU: a2 (A100) and g2 (L4) with Spot pricing",
        ),
        "memory": _sel(
            ("n2d", "m3"),
            AMD_ONLY,
            SPOT_AND_ON_DEMAND,
            "Memory: n2d (AMD, cheapest) plus m3 for large memory needs",
        ),
        "cpu": _sel(
            ("c2d", "n2d"),
            AMD_ONLY,
            SPOT_AND_ON_DEMAND,
            "Compute: c2d (AMD EPYC) for the best price per vCPU on Spot",
        ),
        "default": _sel(
            ("n2d", "n2", "t2d"),
            AMD_ONLY,
            SPOT_AND_ON_DEMAND,
            "General: n2d (AMD) and t2d for the lowest cost on Spot",
        ),
    },
    "performance": {
        "gpu": _sel(
            ("a3", "a2"),
            AMD_ONLY,
            ON_DEMAND,
            "GPU: a3 (H100) and a2 (A100) on-demand for peak throughput",
        ),
        "memory": _sel(
            ("m3", "m2"),
            AMD_ONLY,
            ON_DEMAND,
            "Memory: m3 (Intel Sapphire Rapids) up to 30 TiB RAM",
        ),
        "cpu": _sel(
            ("c3", "c2"),
            AMD_ONLY,
            ON_DEMAND,
            "Compute: c3 (Intel Sapphire Rapids) on-demand",
        ),
        "default": _sel(
            ("n2", "c3", "n4"),
            AMD_ONLY,
            ON_DEMAND,
            "High-performance general: n2/c3 Intel on-demand",
        ),
    },
    "balanced": {
        "default": _sel(
            ("n2", "n2d", "c2d"),
            AMD_ONLY,
            SPOT_AND_ON_DEMAND,
            "Balanced: n2 (Intel), n2d (AMD) and c2d, Spot and on-demand",
        ),
    },
}

_BY_PROVIDER: dict[Provider, dict[OptimizationMode, dict[str, Selection]]] = {
    "aws": _AWS,
    "azure": _AZURE,
    "gcp": _GCP,
}


def _materialize() -> MappingProxyType[tuple[Provider, OptimizationMode, WorkloadArchetype], Selection]:
    table: dict[tuple[Provider, OptimizationMode, WorkloadArchetype], Selection] = {}
    for provider in SUPPORTED_PROVIDERS:
        for mode in MODES:
            cells = _BY_PROVIDER[provider][mode]
            for archetype in ARCHETYPES:
                table[(provider, mode, archetype)] = cells.get(archetype, cells["default"])
    return MappingProxyType(table)


RECOMMENDATION_TABLE = _materialize()


def build_recommendation(
    profile: WorkloadProfile,
    mode: OptimizationMode,
    provider: Provider,
) -> Recommendation:
    """Build a recommendation from a workload profile. Total and deterministic."""
    archetype = classify_workload(profile)
    min_cpu = min_node_cpu(profile.max_pod_cpu_millicores)

    selection = RECOMMENDATION_TABLE.get((provider, mode, archetype))
    if selection is None:
        families: list[str] = []
        architectures: list[str] = []
        capacity_types: list[str] = []
        reasoning = [UNKNOWN_PROVIDER_REASON]
    else:
        families = list(selection.families)
        architectures = list(selection.architectures)
        capacity_types = list(selection.capacity_types)
        reasoning = list(selection.reasoning)

    return Recommendation(
        mode=mode,
        archetype=archetype,
        provider=provider,
        instance_families=families,
        capacity_types=capacity_types,
        architectures=architectures,
        cpu_sizes=cpu_sizes(min_cpu),
        min_node_cpu=min_cpu,
        min_node_memory_mib=min_node_memory_mib(profile.max_pod_memory_mib),
        reasoning=reasoning,
    )


async def recommend_for_context(
    context: str,
    mode: OptimizationMode = "balanced",
    provider: Provider | None = None,
) -> RecommendationOutput:
    """Core handler for recommend_node_pool on one context.

    The provider is detected unless given. When workload analysis fails the
    recommendation is built from an empty profile and the failure is
    reported as a ToolError with partial_data set.
    """
    validate_context(context)
    validate_mode(mode)
    if provider is None:
        provider = await detect_provider(context)

    errors: list[ToolError] = []
    try:
        profile = await analyze_workloads(context)
    except Exception as e:
        log.warning("workload_analysis_failed", context=context, error=str(e))
        profile = WorkloadProfile()
        errors.append(
            ToolError(
                error=f"Workload analysis failed: {e}",
                source="k8s-api",
                context=context,
                partial_data=True,
            )
        )

    rec = build_recommendation(profile, mode, provider)
    label = PROVIDER_META[provider].label
    if rec.instance_families:
        summary = (
            f"{label} {mode} node pool for {rec.archetype} workloads: "
            f"{', '.join(rec.instance_families)} ({', '.join(rec.capacity_types)}), "
            f"at least {rec.min_node_cpu} vCPU / {rec.min_node_memory_mib} MiB per node"
        )
    else:
        summary = f"No instance families for {label}; sizing only: at least {rec.min_node_cpu} vCPU per node"

    return RecommendationOutput(
        context=context,
        recommendation=rec,
        profile=profile,
        summary=summary,
        timestamp=datetime.now(UTC).isoformat(),
        errors=errors,
    )
