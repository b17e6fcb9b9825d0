"""Feature identifiers, feature name interning and dependency kinds."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from enum import Enum

__all__ = [
    "FEATURE_CRATE",
    "FEATURE_DEFAULT",
    "FEATURE_TBD",
    "DependencyKind",
    "CrateFeature",
    "VersionFeature",
    "FeatureNames",
    "iter_features",
]

FEATURE_CRATE = 0
FEATURE_DEFAULT = 1
FEATURE_TBD = 0xFFFFFFFF

_MAX_FEATURE_ID = 0xFFFFFFFF


class DependencyKind(Enum):
    """Which section of the manifest a dependency was declared in."""

    NORMAL = 0
    BUILD = 1
    DEV = 2


@dataclass(frozen=True)
class CrateFeature:
    """A feature of a particular crate."""

    crate_id: int
    feature_id: int


@dataclass(frozen=True, order=True)
class VersionFeature:
    """A feature of a particular published version."""

    version_id: int
    feature_id: int


class FeatureNames:
    """Interns feature names into dense integer ids.

    The empty name is always id 0 (the crate itself) and ``default`` is id 1.
    """

    def __init__(self) -> None:
        self._names: list[str] = []
        self._ids: dict[str, int] = {}
        self.id("")
        self.id("default")

    def id(self, name: str) -> int:
        existing = self._ids.get(name)
        if existing is not None:
            return existing
        new_id = len(self._names)
        if new_id >= _MAX_FEATURE_ID:
            raise OverflowError("too many distinct feature names")
        self._names.append(name)
        self._ids[name] = new_id
        return new_id

    def name(self, feature_id: int) -> str:
        if feature_id < 0:
            raise IndexError(feature_id)
        return self._names[feature_id]

    def __len__(self) -> int:
        return len(self._names)


def iter_features(default_features: bool, features: Iterable[int]) -> Iterator[int]:
    """Feature ids enabled on a dependency.

    Yields the crate itself when nothing else is enabled, then the default
    feature if requested, then the explicitly listed features.
    """
    features = tuple(features)
    if not default_features and not features:
        yield FEATURE_CRATE
    if default_features:
        yield FEATURE_DEFAULT
    yield from features