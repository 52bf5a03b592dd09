"""Input validation helpers for MCP tool parameters."""

from __future__ import annotations

import re

from karpx.versions import parse_version

# Kubeconfig context names are free-form, but EKS ARNs, GKE ids and AKS names
# only ever use these characters.
_CONTEXT_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.:@/\-]{0,252}$")

_VALID_MODES = {"cost", "balanced", "performance"}

_VALID_PROVIDERS = {"aws", "eks", "azure", "aks", "gcp", "gke", "google"}


def validate_mode(mode: str) -> None:
    """Validate the optimization mode parameter."""
    if mode not in _VALID_MODES:
        valid = ", ".join(sorted(_VALID_MODES))
        msg = f"Invalid mode: {mode!r}. Must be one of: {valid}"
        raise ValueError(msg)


def validate_provider(provider: str | None) -> None:
    """Validate an optional provider override; aliases such as "eks" are accepted."""
    if provider is None:
        return
    if provider.strip().lower() not in _VALID_PROVIDERS:
        valid = ", ".join(sorted(_VALID_PROVIDERS))
        msg = f"Invalid provider: {provider!r}. Must be one of: {valid}"
        raise ValueError(msg)


def validate_context(context: str) -> None:
    """Validate a kubeconfig context name. "all" passes as a plain name."""
    if not _CONTEXT_RE.match(context):
        msg = f"Invalid context name: {context!r}."
        raise ValueError(msg)


def validate_version(version: str, field: str = "version") -> None:
    """Validate a version string such as "1.31", "v1.0.5" or "1.30.2-eks-a1b2"."""
    if parse_version(version) is None:
        msg = f"Invalid {field}: {version!r}. Expected a version like 1.31.0."
        raise ValueError(msg)
