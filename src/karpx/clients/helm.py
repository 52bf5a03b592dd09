"""Helm CLI wrapper: detects the controller's helm release on a cluster.

Shells out to ``helm list`` so the cluster credentials kubectl already uses
apply unchanged.
"""

from __future__ import annotations

import asyncio
import json
import subprocess
from typing import Any

import structlog

from karpx.errors import HelmError
from karpx.models import ControllerInfo

log = structlog.get_logger()

CONTROLLER_NAME = "karpenter"


def is_controller_release(release: dict[str, Any]) -> bool:
    """True when the release name or chart name looks like the controller."""
    name = str(release.get("name") or "").lower()
    chart = str(release.get("chart") or "").lower()
    return CONTROLLER_NAME in name or CONTROLLER_NAME in chart


class HelmClient:
    """Runs helm against a single kubeconfig context."""

    def __init__(self, context: str, timeout: float, helm_binary: str = "helm") -> None:
        self._context = context
        self._timeout = timeout
        self._helm = helm_binary

    def _list_releases(self) -> list[dict[str, Any]] | None:
        args = [self._helm, "list", "--all-namespaces", "--output", "json"]
        if self._context:
            args += ["--kube-context", self._context]
        try:
            result = subprocess.run(args, capture_output=True, text=True, check=True, timeout=self._timeout)
        except FileNotFoundError:
            log.warning("helm_not_available", binary=self._helm)
            return None
        except subprocess.TimeoutExpired as e:
            msg = f"helm list: timeout after {int(self._timeout * 1000)}ms"
            raise HelmError(msg) from e
        except subprocess.CalledProcessError as e:
            log.warning("helm_list_failed", context=self._context, stderr=(e.stderr or "").strip())
            return None

        try:
            data = json.loads(result.stdout or "[]")
        except json.JSONDecodeError:
            log.warning("helm_output_unparseable", context=self._context)
            return None
        return data if isinstance(data, list) else None

    async def detect_controller(self) -> ControllerInfo:
        """Return the first release that looks like the controller.

        A missing helm binary, a failing ``helm list`` or unparseable output
        all mean "not installed". Only a helm timeout raises HelmError.
        """
        releases = await asyncio.to_thread(self._list_releases)
        for release in releases or []:
            if not isinstance(release, dict) or not is_controller_release(release):
                continue
            version = str(release.get("app_version") or "").removeprefix("v") or None
            return ControllerInfo(
                installed=True,
                release_name=release.get("name"),
                version=version,
                namespace=release.get("namespace"),
                chart=release.get("chart"),
            )
        return ControllerInfo(installed=False)
