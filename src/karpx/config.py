"""Engine settings, fleet file loading, and environment variable overrides."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

DEFAULT_RELEASES_URL = "https://api.github.com/repos/aws/karpenter-provider-aws/releases?per_page=50"


@dataclass(frozen=True)
class EngineConfig:
    """Concurrency and timeout settings with environment variable overrides."""

    max_concurrency: int = field(default_factory=lambda: int(os.environ.get("KARPX_MAX_CONCURRENCY", "8")))
    cluster_version_timeout: float = field(
        default_factory=lambda: float(os.environ.get("KARPX_CLUSTER_VERSION_TIMEOUT", "5"))
    )
    release_timeout: float = field(default_factory=lambda: float(os.environ.get("KARPX_RELEASE_TIMEOUT", "10")))
    helm_timeout: float = field(default_factory=lambda: float(os.environ.get("KARPX_HELM_TIMEOUT", "30")))
    releases_url: str = field(default_factory=lambda: os.environ.get("KARPX_RELEASES_URL", DEFAULT_RELEASES_URL))

    def __post_init__(self) -> None:
        if self.max_concurrency < 1:
            msg = f"KARPX_MAX_CONCURRENCY must be at least 1, got {self.max_concurrency}."
            raise ValueError(msg)
        if self.cluster_version_timeout <= 0 or self.release_timeout <= 0 or self.helm_timeout <= 0:
            msg = "Timeouts must be positive numbers of seconds."
            raise ValueError(msg)


def get_engine_config() -> EngineConfig:
    """Return engine configuration with environment variable overrides applied."""
    return EngineConfig()


def _load_fleet(path: Path) -> list[str]:
    """Parse a YAML fleet file and return its context names in file order.

    Args:
        path: Path to the YAML fleet file.

    Returns:
        The list of kubeconfig context names.

    Raises:
        ValueError: If the file content is malformed.
    """
    raw = yaml.safe_load(path.read_text())

    if not isinstance(raw, dict) or "contexts" not in raw:
        msg = f"Fleet file {path} must contain a top-level 'contexts' key."
        raise ValueError(msg)

    contexts_raw: Any = raw["contexts"]
    if not isinstance(contexts_raw, list) or len(contexts_raw) == 0:
        msg = f"Fleet file {path} has an empty or invalid 'contexts' section."
        raise ValueError(msg)

    contexts: list[str] = []
    for entry in contexts_raw:
        if not isinstance(entry, str) or not entry.strip():
            msg = f"Fleet file {path} contains an invalid context entry: {entry!r}."
            raise ValueError(msg)
        contexts.append(entry.strip())
    return contexts


def load_fleet_contexts() -> list[str] | None:
    """Load the optional fleet file.

    Reads the path from the ``KARPX_CLUSTERS`` environment variable, defaulting
    to ``clusters.yaml`` in the current working directory. Returns None when the
    file does not exist so callers can fall back to every kubeconfig context.
    """
    path = Path(os.environ.get("KARPX_CLUSTERS", "clusters.yaml"))
    if not path.exists():
        return None
    return _load_fleet(path)
