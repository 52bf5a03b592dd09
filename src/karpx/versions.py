"""Version normalization and range constraints shared by every comparison path."""

from __future__ import annotations

import re
from dataclasses import dataclass

Version = tuple[int, int, int]

_SUFFIX_RE = re.compile(r"[-+]")
_COMPONENT_RE = re.compile(r"\d+", re.ASCII)
_TAG_RE = re.compile(r"^v?\d+(\.\d+){0,2}(\+[0-9A-Za-z.-]+)?$", re.ASCII)
_CLAUSE_RE = re.compile(r"^(>=|<=|>|<|=)?\s*(\S+)$")


def parse_version(raw: str | None) -> Version | None:
    """Coerce a version string into a (major, minor, patch) tuple.

    A leading ``v`` and anything after the first ``-`` or ``+`` are dropped,
    missing components are zero-filled and components past the third are
    ignored, so ``v1.30.2-eks-a1b2`` and ``1.30.2`` compare equal. Returns None
    when the string is not a version.
    """
    if not raw:
        return None
    text = raw.strip()
    if text.startswith("v"):
        text = text[1:]
    text = _SUFFIX_RE.split(text, maxsplit=1)[0]
    parts = text.split(".")
    if not parts or any(_COMPONENT_RE.fullmatch(p) is None for p in parts):
        return None
    numbers = [int(p) for p in parts[:3]]
    while len(numbers) < 3:
        numbers.append(0)
    return numbers[0], numbers[1], numbers[2]


def format_version(version: Version) -> str:
    return ".".join(str(n) for n in version)


def normalize_version(raw: str | None) -> str | None:
    """Return the canonical ``X.Y.Z`` form of ``raw`` or None if unparseable."""
    parsed = parse_version(raw)
    return format_version(parsed) if parsed is not None else None


def is_release_tag(tag: str) -> bool:
    """True for plain semver release tags; prerelease suffixes like ``-rc.1`` are rejected."""
    return bool(_TAG_RE.match(tag.strip()))


@dataclass(frozen=True)
class VersionConstraint:
    """A comma-separated conjunction of comparisons, e.g. ``>= 1.4.0, < 2.0.0``."""

    clauses: tuple[tuple[str, Version], ...]

    @classmethod
    def parse(cls, text: str) -> VersionConstraint:
        """Parse a constraint string.

        Raises:
            ValueError: If any clause has an unknown operator or an unparseable version.
        """
        clauses: list[tuple[str, Version]] = []
        for part in text.split(","):
            match = _CLAUSE_RE.match(part.strip())
            if match is None:
                msg = f"Invalid version constraint clause: {part.strip()!r}"
                raise ValueError(msg)
            op = match.group(1) or "="
            version = parse_version(match.group(2))
            if version is None:
                msg = f"Invalid version in constraint: {match.group(2)!r}"
                raise ValueError(msg)
            clauses.append((op, version))
        return cls(clauses=tuple(clauses))

    def contains(self, version: Version) -> bool:
        for op, bound in self.clauses:
            if op == ">=" and not version >= bound:
                return False
            if op == ">" and not version > bound:
                return False
            if op == "<=" and not version <= bound:
                return False
            if op == "<" and not version < bound:
                return False
            if op == "=" and version != bound:
                return False
        return True

    def lower_bound(self) -> Version | None:
        """The inclusive ``>=`` bound, if the constraint has one."""
        for op, bound in self.clauses:
            if op == ">=":
                return bound
        return None
