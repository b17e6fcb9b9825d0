"""Releases, dependencies and queries that the dependency tally works on."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from functools import total_ordering

from .feature import CrateFeature, DependencyKind, FeatureNames
from .version import Version, VersionReq

__all__ = ["Release", "Dependency", "Predicate", "Query", "DbDump"]


@total_ordering
class _IdentifiedById:
    """Equality, ordering and hashing by the ``id`` attribute alone."""

    __slots__ = ()

    id: int

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self.id == other.id

    def __lt__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self.id < other.id

    def __hash__(self) -> int:
        return hash(self.id)


@dataclass(eq=False)
class Release(_IdentifiedById):
    """One published, non-yanked version of a crate.

    ``features`` maps each feature id of the release to the crate features it
    enables, as a tuple of ``(feature_id, tuple[CrateFeature, ...])`` pairs.
    """

    id: int
    crate_id: int
    num: Version
    created_at: datetime
    features: tuple[tuple[int, tuple[CrateFeature, ...]], ...] = ()


@dataclass(eq=False)
class Dependency(_IdentifiedById):
    """A dependency declared by one release on some crate."""

    id: int
    version_id: int
    crate_id: int
    req: VersionReq
    feature_id: int
    default_features: bool
    features: tuple[int, ...]
    kind: DependencyKind


@dataclass(frozen=True)
class Predicate:
    """Matches the releases of one crate, optionally within a requirement."""

    crate_id: int
    req: VersionReq | None = None


@dataclass(eq=False)
class Query(_IdentifiedById):
    """A numbered query: a union of predicates."""

    id: int
    predicates: tuple[Predicate, ...] = ()


@dataclass
class DbDump:
    """Everything loaded from the registry database dump."""

    releases: list[Release] = field(default_factory=list)
    dependencies: list[Dependency] = field(default_factory=list)
    features: FeatureNames = field(default_factory=FeatureNames)