"""Exception types raised by the cluster and release-index clients."""

from __future__ import annotations


class KarpxError(Exception):
    """Base class for all karpx errors."""


class ClusterUnreachableError(KarpxError):
    """The Kubernetes API server for a context could not be reached."""


class ClusterTimeoutError(ClusterUnreachableError):
    """A cluster call exceeded its deadline."""

    def __init__(self, timeout_seconds: float) -> None:
        self.timeout_ms = int(timeout_seconds * 1000)
        super().__init__(f"timeout after {self.timeout_ms}ms")


class ReleaseIndexError(KarpxError):
    """The upstream release index could not be fetched or parsed."""


class HelmError(KarpxError):
    """Listing helm releases failed in a way that is not 'not installed'."""
