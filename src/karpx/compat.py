"""Controller ↔ Kubernetes version compatibility.

The supported Kubernetes range for each controller line is encoded in
COMPAT_MATRIX and mirrors https://karpenter.sh/docs/upgrading/compatibility/.
Keep the table in sync with upstream when a new controller minor line ships.
Available releases are fetched live; the matrix answers everything else offline.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from karpx.clients.releases import ReleaseIndexClient
from karpx.config import get_engine_config
from karpx.models import ReleaseTag
from karpx.versions import Version, VersionConstraint, format_version, parse_version


@dataclass(frozen=True)
class CompatibilityRule:
    """Controller versions in ``controller_range`` support clusters in [cluster_min, cluster_max]."""

    controller_range: str
    cluster_min: str
    cluster_max: str
    _constraint: VersionConstraint = field(init=False, repr=False, compare=False)
    _cluster_bounds: tuple[Version, Version] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        """Parse the rule once.

        Raises:
            ValueError: If the controller range or either cluster bound is not valid.
        """
        low = parse_version(self.cluster_min)
        high = parse_version(self.cluster_max)
        if low is None or high is None:
            msg = f"Invalid cluster range in compatibility rule: {self.cluster_min!r}..{self.cluster_max!r}"
            raise ValueError(msg)
        object.__setattr__(self, "_constraint", VersionConstraint.parse(self.controller_range))
        object.__setattr__(self, "_cluster_bounds", (low, high))

    def covers_controller(self, version: Version) -> bool:
        return self._constraint.contains(version)

    def covers_cluster(self, version: Version) -> bool:
        low, high = self._cluster_bounds
        return low <= version <= high

    def controller_floor(self) -> Version | None:
        return self._constraint.lower_bound()


# Order matters: the first rule covering a controller version decides.
COMPAT_MATRIX: tuple[CompatibilityRule, ...] = (
    CompatibilityRule(">= 1.4.0, < 2.0.0", "1.29.0", "1.33.99"),
    CompatibilityRule(">= 1.2.0, < 1.4.0", "1.29.0", "1.32.99"),
    CompatibilityRule(">= 1.0.0, < 1.2.0", "1.28.0", "1.31.99"),
    CompatibilityRule(">= 0.37.0, < 1.0.0", "1.27.0", "1.30.99"),
    CompatibilityRule(">= 0.35.0, < 0.37.0", "1.27.0", "1.29.99"),
    CompatibilityRule(">= 0.33.0, < 0.35.0", "1.26.0", "1.28.99"),
)


class CompatibilityResolver:
    """Answers compatibility questions from a rule table and the live release index."""

    def __init__(
        self,
        rules: tuple[CompatibilityRule, ...] = COMPAT_MATRIX,
        release_client: ReleaseIndexClient | None = None,
    ) -> None:
        self._rules = rules
        self._release_client = release_client

    def _get_release_client(self) -> ReleaseIndexClient:
        if self._release_client is None:
            self._release_client = ReleaseIndexClient(get_engine_config())
        return self._release_client

    def _rule_for(self, controller: Version) -> CompatibilityRule | None:
        for rule in self._rules:
            if rule.covers_controller(controller):
                return rule
        return None

    def is_compatible(self, controller_version: str, cluster_version: str) -> bool:
        """Report whether a controller version supports a cluster version.

        Unparseable input on either side and controller versions no rule
        covers both answer False.
        """
        controller = parse_version(controller_version)
        cluster = parse_version(cluster_version)
        if controller is None or cluster is None:
            return False
        rule = self._rule_for(controller)
        if rule is None:
            return False
        return rule.covers_cluster(cluster)

    def filter_compatible(self, cluster_version: str, candidates: Iterable[str]) -> list[str]:
        """Return the compatible candidates, normalized, de-duplicated, newest first."""
        compatible: set[Version] = set()
        for candidate in candidates:
            parsed = parse_version(candidate)
            if parsed is None:
                continue
            if self.is_compatible(candidate, cluster_version):
                compatible.add(parsed)
        return [format_version(v) for v in sorted(compatible, reverse=True)]

    def min_compatible_controller(self, cluster_version: str) -> str:
        """Smallest controller floor among rules covering ``cluster_version``; "" if none.

        Uses only the embedded matrix, no network.
        """
        cluster = parse_version(cluster_version)
        if cluster is None:
            return ""
        floors = [
            floor
            for rule in self._rules
            if rule.covers_cluster(cluster) and (floor := rule.controller_floor()) is not None
        ]
        if not floors:
            return ""
        return format_version(min(floors))

    async def fetch_latest_releases(self) -> list[ReleaseTag]:
        """Fetch usable releases from the upstream index. Raises ReleaseIndexError."""
        return await self._get_release_client().fetch_releases()

    async def available_versions(self) -> list[str]:
        """Usable release versions, newest first."""
        releases = await self.fetch_latest_releases()
        parsed = {v for r in releases if (v := parse_version(r.version)) is not None}
        return [format_version(v) for v in sorted(parsed, reverse=True)]

    async def latest_compatible(self, cluster_version: str) -> tuple[str, list[str]]:
        """Return the newest compatible release and every compatible release, newest first.

        Returns ("", []) when the index was fetched but nothing is compatible.
        Network and parse failures propagate as ReleaseIndexError.
        """
        releases = await self.fetch_latest_releases()
        compatible = self.filter_compatible(cluster_version, (r.version for r in releases))
        if not compatible:
            return "", []
        return compatible[0], compatible
