"""Pydantic v2 models for engine inputs, outputs, and errors."""

from __future__ import annotations

import re
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field

Provider = Literal["aws", "azure", "gcp", "unknown"]
SupportLevel = Literal["full", "preview", "experimental", "unsupported"]
OptimizationMode = Literal["cost", "balanced", "performance"]
WorkloadArchetype = Literal["general", "memory", "cpu", "gpu", "batch", "unknown"]
InspectionState = Literal[
    "pending",
    "detecting_provider",
    "fetching_version",
    "detecting_controller",
    "checking_compatibility",
    "done",
    "error",
]


# --- Shared error model ---


class ToolError(BaseModel):
    """Structured error returned alongside partial tool output."""

    error: str
    source: str
    context: str
    partial_data: bool = False


# --- Output scrubbing ---

_IP_PATTERN = re.compile(r"\b\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3}\b")
_ACCOUNT_ARN_PATTERN = re.compile(r"arn:aws:([a-z0-9-]+):([a-z0-9-]*):\d{12}:")
_EKS_ENDPOINT_PATTERN = re.compile(r"\b[\w.-]+\.eks\.amazonaws\.com\b", re.IGNORECASE)
_AKS_ENDPOINT_PATTERN = re.compile(r"\b[\w.-]+\.azmk8s\.io\b", re.IGNORECASE)
_SUBSCRIPTION_PATTERN = re.compile(r"/subscriptions/[a-f0-9-]+", re.IGNORECASE)


def scrub_sensitive_values(text: str) -> str:
    """Remove IPs, AWS account IDs, subscription IDs, and API server hostnames from text.

    Context names are preserved except for the account ID inside an ARN.
    """
    if not text:
        return text
    result = _IP_PATTERN.sub("[REDACTED_IP]", text)
    result = _ACCOUNT_ARN_PATTERN.sub(r"arn:aws:\1:\2:[REDACTED]:", result)
    result = _EKS_ENDPOINT_PATTERN.sub("[REDACTED_ENDPOINT]", result)
    result = _AKS_ENDPOINT_PATTERN.sub("[REDACTED_ENDPOINT]", result)
    result = _SUBSCRIPTION_PATTERN.sub("/subscriptions/[REDACTED]", result)
    return result


# --- Release index models ---


class ReleaseTag(BaseModel):
    """A usable controller release from the upstream index."""

    model_config = ConfigDict(frozen=True)

    version: str
    prerelease: bool = False
    draft: bool = False


# --- Cluster identity and controller models ---


class ProviderMeta(BaseModel):
    """Display and support information for a provider."""

    model_config = ConfigDict(frozen=True)

    label: str
    support_level: SupportLevel
    chart_repo: str | None = None
    docs_url: str | None = None
    provider_repo: str | None = None


class ClusterIdentity(BaseModel):
    """Where a context runs and how well the controller supports it."""

    model_config = ConfigDict(frozen=True)

    context: str
    provider: Provider
    support_level: SupportLevel


class ControllerInfo(BaseModel):
    """The controller installation found (or not) on a cluster."""

    installed: bool = False
    release_name: str | None = None
    version: str | None = None
    namespace: str | None = None
    chart: str | None = None


# --- Workload models ---


class WorkloadProfile(BaseModel):
    """Aggregate resource requests of all running workloads in a cluster."""

    model_config = ConfigDict(frozen=True)

    total_pods: int = 0
    total_cpu_millicores: int = 0
    total_memory_mib: int = 0
    max_pod_cpu_millicores: int = 0
    max_pod_memory_mib: int = 0
    has_gpu: bool = False
    has_batch_jobs: bool = False
    namespaces: int = 0

    @computed_field  # type: ignore[prop-decorator]
    @property
    def memory_per_cpu_gib(self) -> float:
        """Average GiB of memory requested per requested CPU core."""
        if self.total_cpu_millicores <= 0:
            return 0.0
        return (self.total_memory_mib / 1024.0) / (self.total_cpu_millicores / 1000.0)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def no_requests(self) -> bool:
        return self.total_cpu_millicores == 0 and self.total_memory_mib == 0


# --- Recommendation models ---


class Recommendation(BaseModel):
    """Everything needed to render a node pool for one cluster."""

    mode: OptimizationMode
    archetype: WorkloadArchetype
    provider: Provider
    instance_families: list[str] = Field(default_factory=list)
    capacity_types: list[str] = Field(default_factory=list)
    architectures: list[str] = Field(default_factory=list)
    cpu_sizes: list[str] = Field(default_factory=list)
    min_node_cpu: int
    min_node_memory_mib: int
    reasoning: list[str] = Field(default_factory=list)


class RecommendationInput(BaseModel):
    """Input parameters for recommend_node_pool."""

    context: str
    mode: OptimizationMode = "balanced"
    provider: Provider | None = None


class RecommendationOutput(BaseModel):
    """Output for recommend_node_pool."""

    context: str
    recommendation: Recommendation
    profile: WorkloadProfile
    summary: str
    timestamp: str
    errors: list[ToolError] = Field(default_factory=list)


# --- Cluster status models ---


class ClusterStatus(BaseModel):
    """Inspection result for one kubeconfig context."""

    context: str
    provider: Provider = "unknown"
    support_level: SupportLevel = "unsupported"
    state: InspectionState = "pending"
    cluster_version: str = ""
    controller_installed: bool = False
    controller_version: str | None = None
    compatible: bool | None = None
    upgrade_available: bool = False
    latest_compatible: str | None = None
    min_compatible: str | None = None
    error: str | None = None


class CompatibilityOutput(BaseModel):
    """Output for check_compatibility."""

    controller_version: str
    cluster_version: str
    compatible: bool
    min_compatible: str | None = None
    summary: str


class CompatibleVersionsOutput(BaseModel):
    """Output for get_compatible_versions."""

    cluster_version: str
    latest_compatible: str | None = None
    min_compatible: str | None = None
    compatible_versions: list[str] = Field(default_factory=list)
    summary: str
    timestamp: str
    errors: list[ToolError] = Field(default_factory=list)
