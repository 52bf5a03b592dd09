"""Workload analysis: aggregate running pod requests into a WorkloadProfile."""

from __future__ import annotations

import structlog

from karpx.clients.k8s_batch import K8sBatchClient
from karpx.clients.k8s_core import K8sCoreClient
from karpx.models import WorkloadArchetype, WorkloadProfile

log = structlog.get_logger()

GPU_RESOURCES = ("nvidia.com/gpu", "amd.com/gpu", "accelerator.google.com/gpu")

MEMORY_HEAVY_GIB_PER_CPU = 4.0
CPU_HEAVY_GIB_PER_CPU = 2.0

_BINARY_UNITS = {"Ki": 1024, "Mi": 1024**2, "Gi": 1024**3, "Ti": 1024**4, "Pi": 1024**5, "Ei": 1024**6}
_DECIMAL_UNITS = {"m": 1e-3, "k": 1000, "M": 1000**2, "G": 1000**3, "T": 1000**4, "P": 1000**5, "E": 1000**6}


def parse_cpu_millicores(value: str) -> int:
    """Parse a Kubernetes CPU quantity ("500m", "2", "0.25") to millicores."""
    try:
        value = str(value).strip()
        if value.endswith("m"):
            return int(float(value[:-1]))
        return int(float(value) * 1000)
    except (ValueError, TypeError):
        log.warning("cpu_parse_failed", value=value)
        return 0


def parse_memory_mib(value: str) -> int:
    """Parse a Kubernetes memory quantity ("512Mi", "1G", "1048576") to MiB."""
    try:
        value = str(value).strip()
        for suffix, multiplier in _BINARY_UNITS.items():
            if value.endswith(suffix):
                return int(float(value[: -len(suffix)]) * multiplier / 1024**2)
        for suffix, multiplier in _DECIMAL_UNITS.items():
            if value.endswith(suffix):
                return int(float(value[: -len(suffix)]) * multiplier / 1024**2)
        return int(float(value) / 1024**2)
    except (ValueError, TypeError):
        log.warning("memory_parse_failed", value=value)
        return 0


def _requests_gpu(requests: dict[str, str]) -> bool:
    for resource in GPU_RESOURCES:
        quantity = requests.get(resource)
        if quantity is not None and str(quantity).strip() not in ("", "0"):
            return True
    return False


def build_profile(pods: list[dict], has_batch_jobs: bool = False) -> WorkloadProfile:
    """Fold pod dicts (as returned by K8sCoreClient.get_running_pods) into a profile."""
    total_cpu = total_mem = max_cpu = max_mem = 0
    has_gpu = False
    namespaces: set[str] = set()

    for pod in pods:
        namespaces.add(pod["namespace"])
        pod_cpu = pod_mem = 0
        for container in pod["containers"]:
            requests = container["requests"]
            if "cpu" in requests:
                pod_cpu += parse_cpu_millicores(requests["cpu"])
            if "memory" in requests:
                pod_mem += parse_memory_mib(requests["memory"])
            if _requests_gpu(requests):
                has_gpu = True
        total_cpu += pod_cpu
        total_mem += pod_mem
        max_cpu = max(max_cpu, pod_cpu)
        max_mem = max(max_mem, pod_mem)

    return WorkloadProfile(
        total_pods=len(pods),
        total_cpu_millicores=total_cpu,
        total_memory_mib=total_mem,
        max_pod_cpu_millicores=max_cpu,
        max_pod_memory_mib=max_mem,
        has_gpu=has_gpu,
        has_batch_jobs=has_batch_jobs,
        namespaces=len(namespaces),
    )


async def analyze_workloads(context: str) -> WorkloadProfile:
    """Profile every running pod in the cluster behind ``context``.

    Pod listing failures propagate. Failing to list Jobs or CronJobs is
    logged and treated as "no batch workloads".
    """
    pods = await K8sCoreClient(context).get_running_pods()

    try:
        has_batch = await K8sBatchClient(context).has_batch_workloads()
    except Exception as e:
        log.warning("batch_detection_failed", context=context, error=str(e))
        has_batch = False

    profile = build_profile(pods, has_batch_jobs=has_batch)
    log.info(
        "workloads_analyzed",
        context=context,
        pods=profile.total_pods,
        namespaces=profile.namespaces,
        gpu=profile.has_gpu,
        batch=profile.has_batch_jobs,
    )
    return profile


def classify_workload(profile: WorkloadProfile) -> WorkloadArchetype:
    """Pick the dominant archetype; GPU wins over everything else."""
    if profile.has_gpu:
        return "gpu"
    if profile.no_requests or profile.total_pods == 0:
        return "unknown"
    ratio = profile.memory_per_cpu_gib
    if ratio > MEMORY_HEAVY_GIB_PER_CPU:
        return "memory"
    if 0 < ratio < CPU_HEAVY_GIB_PER_CPU:
        return "cpu"
    if profile.has_batch_jobs:
        return "batch"
    return "general"
