"""GitHub Releases wrapper: the controller's upstream release index."""

from __future__ import annotations

import asyncio
from typing import Any

import requests
import structlog

from karpx.config import EngineConfig
from karpx.errors import ReleaseIndexError
from karpx.models import ReleaseTag
from karpx.versions import is_release_tag, normalize_version

log = structlog.get_logger()

_HEADERS = {
    "Accept": "application/vnd.github.v3+json",
    "User-Agent": "karpx-cli",
}


class ReleaseIndexClient:
    """Fetches stable controller releases from the GitHub Releases API."""

    def __init__(self, engine_config: EngineConfig) -> None:
        self._url = engine_config.releases_url
        self._timeout = engine_config.release_timeout

    def _get(self) -> list[dict[str, Any]]:
        try:
            response = requests.get(self._url, headers=_HEADERS, timeout=self._timeout)
        except requests.Timeout as e:
            msg = f"fetch controller releases: timeout after {int(self._timeout * 1000)}ms"
            raise ReleaseIndexError(msg) from e
        except requests.RequestException as e:
            msg = f"fetch controller releases: {e}"
            raise ReleaseIndexError(msg) from e

        if response.status_code != 200:
            msg = f"release index returned status {response.status_code}"
            raise ReleaseIndexError(msg)

        try:
            payload = response.json()
        except ValueError as e:
            msg = f"parse releases response: {e}"
            raise ReleaseIndexError(msg) from e
        if not isinstance(payload, list):
            msg = "parse releases response: expected a JSON array"
            raise ReleaseIndexError(msg)
        return payload

    async def fetch_releases(self) -> list[ReleaseTag]:
        """Return stable, semver-tagged releases in index order.

        Drafts, prereleases and non-semver tags (e.g. chart-only tags) are
        skipped. Raises ReleaseIndexError on any transport or parse failure.
        """
        try:
            records = await asyncio.to_thread(self._get)
        except ReleaseIndexError as e:
            log.error("release_index_unavailable", url=self._url, error=str(e))
            raise

        tags: list[ReleaseTag] = []
        for record in records:
            if not isinstance(record, dict):
                continue
            if record.get("prerelease") or record.get("draft"):
                continue
            tag_name = str(record.get("tag_name") or "")
            if not is_release_tag(tag_name):
                continue
            version = normalize_version(tag_name)
            if version is None:
                continue
            tags.append(ReleaseTag(version=version))
        log.debug("release_index_fetched", total=len(records), usable=len(tags))
        return tags
