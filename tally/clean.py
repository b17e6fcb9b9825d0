"""Pruning releases and tightening over-permissive dependency requirements."""

from __future__ import annotations

import sys
from collections import defaultdict
from collections.abc import Sequence
from re import Pattern

from .cratemap import CrateMap
from .model import DbDump, Dependency
from .version import Comparator, Op, Version, VersionReq

__all__ = ["VERBOSE", "clean", "filter_releases"]

VERBOSE = False


def _crate_name(crates: CrateMap, crate_id: int) -> str:
    name = crates.name(crate_id)
    if name is None:
        raise LookupError(f"no crate with id {crate_id}")
    return name


def _incompatible_successor(max_version: Version) -> Version:
    """A synthetic version that is semver incompatible with ``max_version``."""
    if max_version.major > 0:
        return Version(max_version.major + 1, 0, 0)
    if max_version.minor > 0:
        return Version(0, max_version.minor + 1, 0)
    return Version(0, 0, max_version.patch + 1)


def clean(db_dump: DbDump, crates: CrateMap) -> None:
    """Constrain requirements that would accept an incompatible future release.

    Releases must be sorted by creation time. For each release, a dependency
    whose requirement also matches a release semver incompatible with the
    highest version of the target published so far (such as ``0.*``) is
    narrowed to a caret requirement on that highest version. Dependencies on
    crates without any release yet are left alone.
    """
    by_version: dict[int, list[Dependency]] = defaultdict(list)
    for dep in db_dump.dependencies:
        by_version[dep.version_id].append(dep)

    max_versions: dict[int, Version] = {}
    for rel in db_dump.releases:
        current = max_versions.get(rel.crate_id)
        if current is None or rel.num >= current:
            max_versions[rel.crate_id] = rel.num

        for dep in by_version.get(rel.id, ()):
            max_version = max_versions.get(dep.crate_id)
            if max_version is None:
                # Every published version may be a prerelease, or the crate
                # went missing from the registry.
                if VERBOSE:
                    print(
                        f"unresolved dep {_crate_name(crates, rel.crate_id)} {rel.num} "
                        f"on {_crate_name(crates, dep.crate_id)} {dep.req}",
                        file=sys.stderr,
                    )
                continue
            if dep.req.matches(_incompatible_successor(max_version)):
                dep.req = VersionReq(
                    (
                        Comparator(
                            Op.CARET,
                            max_version.major,
                            max_version.minor,
                            max_version.patch,
                        ),
                    )
                )


def filter_releases(db_dump: DbDump, crates: CrateMap, exclude: Sequence[Pattern[str]]) -> None:
    """Drop releases of crates whose name matches any of the exclude patterns."""
    if not exclude:
        return
    db_dump.releases = [
        rel
        for rel in db_dump.releases
        if not any(pattern.search(_crate_name(crates, rel.crate_id)) for pattern in exclude)
    ]