"""Counting, over time, the crates that depend on the crates a query selects."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Iterator, Sequence
from itertools import groupby
from operator import attrgetter

from .feature import (
    FEATURE_CRATE,
    FEATURE_DEFAULT,
    DependencyKind,
    VersionFeature,
    iter_features,
)
from .matrix import Matrix
from .model import DbDump, Dependency, Query, Release
from .version import Version, VersionReq

__all__ = ["run"]

_Edge = tuple[VersionFeature, VersionFeature]


def _recency(release: Release) -> tuple:
    # Stable releases win over prereleases, then the latest published.
    return (not release.num.is_prerelease(), release.created_at, release.id)


class _Registry:
    """The state of the registry as releases are published one after another."""

    def __init__(self, dependencies: Sequence[Dependency], queries: Sequence[Query]) -> None:
        self._width = len(queries)
        self._dependencies = list(dependencies)
        self._deps_by_version: dict[int, list[Dependency]] = defaultdict(list)
        self._deps_by_version_crate: dict[tuple[int, int], list[Dependency]] = defaultdict(list)
        self._reqs_by_crate: dict[int, set[VersionReq]] = defaultdict(set)
        for dep in self._dependencies:
            self._deps_by_version[dep.version_id].append(dep)
            self._deps_by_version_crate[(dep.version_id, dep.crate_id)].append(dep)
            self._reqs_by_crate[dep.crate_id].add(dep.req)

        self._predicates_by_crate: dict[int, list[tuple[int, VersionReq | None]]] = defaultdict(list)
        for query in queries:
            for predicate in query.predicates:
                self._predicates_by_crate[predicate.crate_id].append((query.id, predicate.req))

        self._releases: list[Release] = []
        self._most_recent: dict[int, Release] = {}
        self._resolved: dict[tuple[int, VersionReq], tuple[Version, int]] = {}
        self._matched: dict[int, set[int]] = defaultdict(set)

    def publish(self, release: Release) -> None:
        crate_id = release.crate_id
        self._releases.append(release)

        current = self._most_recent.get(crate_id)
        if current is None or _recency(release) > _recency(current):
            self._most_recent[crate_id] = release

        candidate = (release.num, release.id)
        for req in self._reqs_by_crate.get(crate_id, ()):
            if req.matches(release.num):
                key = (crate_id, req)
                best = self._resolved.get(key)
                if best is None or candidate > best:
                    self._resolved[key] = candidate

        for query_id, req in self._predicates_by_crate.get(crate_id, ()):
            if req is None or req.matches(release.num):
                self._matched[release.id].add(query_id)

    def counts(self, transitive: bool) -> tuple[int, ...]:
        results = set(self._direct_results())
        if transitive:
            results.update(self._transitive_results())
        counts = [0] * self._width
        for _version_id, query_id in results:
            counts[query_id] += 1
        return tuple(counts)

    def _resolve(self, crate_id: int, req: VersionReq) -> int | None:
        resolved = self._resolved.get((crate_id, req))
        return None if resolved is None else resolved[1]

    def _direct_results(self) -> Iterator[tuple[int, int]]:
        for latest in self._most_recent.values():
            for dep in self._deps_by_version.get(latest.id, ()):
                target = self._resolve(dep.crate_id, dep.req)
                if target is None:
                    continue
                for query_id in self._matched.get(target, ()):
                    yield latest.id, query_id

    def _edges(self) -> Iterator[_Edge]:
        for dep in self._dependencies:
            if dep.kind is DependencyKind.DEV:
                continue
            target = self._resolve(dep.crate_id, dep.req)
            if target is None:
                continue
            source = VersionFeature(dep.version_id, dep.feature_id)
            for feature_id in iter_features(dep.default_features, dep.features):
                yield source, VersionFeature(target, feature_id)

        for release in self._releases:
            version_id = release.id
            for feature_id, enables in release.features:
                source = VersionFeature(version_id, feature_id)
                for crate_feature in enables:
                    if crate_feature.crate_id == release.crate_id:
                        yield source, VersionFeature(version_id, crate_feature.feature_id)
                        continue
                    key = (version_id, crate_feature.crate_id)
                    for dep in self._deps_by_version_crate.get(key, ()):
                        target = self._resolve(crate_feature.crate_id, dep.req)
                        if target is not None:
                            yield source, VersionFeature(target, crate_feature.feature_id)
                if feature_id != FEATURE_DEFAULT:
                    yield source, VersionFeature(version_id, FEATURE_CRATE)
            yield (
                VersionFeature(version_id, FEATURE_DEFAULT),
                VersionFeature(version_id, FEATURE_CRATE),
            )

    def _transitive_results(self) -> set[tuple[int, int]]:
        incoming: dict[VersionFeature, set[VersionFeature]] = defaultdict(set)
        for source, target in self._edges():
            incoming[target].add(source)

        frontier = [
            (VersionFeature(version_id, FEATURE_CRATE), query_id)
            for version_id, query_ids in self._matched.items()
            for query_id in query_ids
        ]
        reached = set(frontier)
        while frontier:
            node, query_id = frontier.pop()
            for source in incoming.get(node, ()):
                item = (source, query_id)
                if item not in reached:
                    reached.add(item)
                    frontier.append(item)

        latest = {release.id for release in self._most_recent.values()}
        return {
            (node.version_id, query_id)
            for node, query_id in reached
            if node.version_id in latest
        }


def run(db_dump: DbDump, transitive: bool, queries: Iterable[Query]) -> Matrix:
    """Count, at each publication time, how many crates depend on each query.

    A crate counts when its most recent release depends on a release matching
    the query; with ``transitive`` the dependency may be indirect (through
    normal and build dependencies and enabled features), and a matching
    release counts itself. A row is produced whenever any count changes.
    """
    queries = list(queries)
    registry = _Registry(db_dump.dependencies, queries)
    matrix = Matrix(len(queries))
    previous = (0,) * len(queries)
    by_time = attrgetter("created_at")
    for time, batch in groupby(sorted(db_dump.releases, key=by_time), key=by_time):
        for release in batch:
            registry.publish(release)
        counts = registry.counts(transitive)
        if counts != previous:
            matrix.push(time, counts)
            previous = counts
    return matrix