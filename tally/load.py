"""Reading the registry's database dump: a tarball of CSV tables."""

from __future__ import annotations

import csv
import io
import json
import re
import sys
import tarfile
from collections.abc import Callable, Hashable, Iterator
from contextlib import contextmanager
from datetime import datetime, timedelta
from os import PathLike
from pathlib import PurePosixPath

from .cratemap import CrateMap
from .feature import (
    FEATURE_CRATE,
    FEATURE_DEFAULT,
    FEATURE_TBD,
    CrateFeature,
    DependencyKind,
    FeatureNames,
)
from .model import DbDump, Dependency, Release
from .names import UserName
from .version import parse_req, parse_version

__all__ = ["load"]

_TIMESTAMP = re.compile(
    r"(\d{4})-(\d{2})-(\d{2})[ T](\d{2}):(\d{2}):(\d{2})(?:\.(\d+))?"
    r"(?:(Z)|([+-])(\d{2})(?::?(\d{2}))?)?"
)

_Row = dict[str, str]
# A feature enabled by another feature, before crate names are resolved:
# (interned id of the crate name, or FEATURE_CRATE for the same crate; feature id).
_PendingEnable = tuple[int, int]


def _parse_bool(text: str) -> bool:
    value = text.strip().lower()
    if value in ("t", "true"):
        return True
    if value in ("f", "false"):
        return False
    raise ValueError(f"invalid boolean {text!r}")


def _parse_timestamp(text: str) -> datetime:
    match = _TIMESTAMP.fullmatch(text.strip())
    if match is None:
        raise ValueError(f"invalid timestamp {text!r}")
    year, month, day, hour, minute, second, fraction, _zulu, sign, off_h, off_m = match.groups()
    micros = int((fraction or "0")[:6].ljust(6, "0"))
    moment = datetime(
        int(year), int(month), int(day), int(hour), int(minute), int(second), micros
    )
    if sign is not None:
        offset = timedelta(hours=int(off_h), minutes=int(off_m or 0))
        moment = moment - offset if sign == "+" else moment + offset
    return moment


def _parse_text_array(text: str) -> list[str]:
    """Elements of a database text array such as ``{a,"b c"}``."""
    text = text.strip()
    if not (text.startswith("{") and text.endswith("}")):
        raise ValueError(f"invalid array {text!r}")
    body = text[1:-1]
    if not body:
        return []
    reader = csv.reader([body], quotechar='"', escapechar="\\", doublequote=False)
    return next(reader)


@contextmanager
def _unlimited_csv_fields() -> Iterator[None]:
    previous = csv.field_size_limit()
    csv.field_size_limit(sys.maxsize)
    try:
        yield
    finally:
        csv.field_size_limit(previous)


class _Loader:
    """Accumulates rows of the dump tables and assembles the result."""

    def __init__(self) -> None:
        self.crates = CrateMap()
        self.users: dict[UserName, Hashable] = {}
        self.teams: dict[UserName, Hashable] = {}
        self.owners: dict[Hashable, list[int]] = {}
        self.releases: list[Release] = []
        self.dependencies: list[Dependency] = []
        self.release_features: list[list[tuple[int, list[_PendingEnable]]]] = []
        self.feature_names = FeatureNames()

    @property
    def handlers(self) -> dict[str, Callable[[_Row], None]]:
        return {
            "crates.csv": self.crate,
            "users.csv": self.user,
            "teams.csv": self.team,
            "crate_owners.csv": self.crate_owner,
            "versions.csv": self.version,
            "dependencies.csv": self.dependency,
        }

    def crate(self, row: _Row) -> None:
        self.crates.insert(int(row["id"]), row["name"])

    def user(self, row: _Row) -> None:
        self.users[UserName(row["gh_login"])] = ("user", int(row["id"]))

    def team(self, row: _Row) -> None:
        login = row["login"]
        if not login.startswith("github:"):
            return
        team = login[len("github:"):]
        if ":" in team:
            self.teams[UserName(team.replace(":", "/"))] = ("team", int(row["id"]))

    def crate_owner(self, row: _Row) -> None:
        kind = "team" if row["owner_kind"].strip() == "1" else "user"
        owner_id = (kind, int(row["owner_id"]))
        self.owners.setdefault(owner_id, []).append(int(row["crate_id"]))

    def version(self, row: _Row) -> None:
        if _parse_bool(row["yanked"]):
            return
        raw_features = row.get("features", "").strip()
        declared = json.loads(raw_features) if raw_features else {}
        features: list[tuple[int, list[_PendingEnable]]] = []
        for feature, enables in sorted(declared.items()):
            feature_id = self.feature_names.id(feature)
            pending: list[_PendingEnable] = []
            for enabled in enables:
                crate_name, slash, name = enabled.partition("/")
                if slash:
                    crate_part = self.feature_names.id(crate_name)
                else:
                    crate_part, name = FEATURE_CRATE, enabled
                pending.append((crate_part, self.feature_names.id(name)))
            features.append((feature_id, pending))
        self.release_features.append(features)
        self.releases.append(
            Release(
                id=int(row["id"]),
                crate_id=int(row["crate_id"]),
                num=parse_version(row["num"]),
                created_at=_parse_timestamp(row["created_at"]),
            )
        )

    def dependency(self, row: _Row) -> None:
        feature_id = FEATURE_TBD if _parse_bool(row["optional"]) else FEATURE_CRATE
        default_features = _parse_bool(row["default_features"])
        features: set[int] = set()
        for name in _parse_text_array(row.get("features") or "{}"):
            enabled = self.feature_names.id(name)
            if enabled == FEATURE_DEFAULT:
                default_features = True
            else:
                features.add(enabled)
        self.dependencies.append(
            Dependency(
                id=int(row["id"]),
                version_id=int(row["version_id"]),
                crate_id=int(row["crate_id"]),
                req=parse_req(row["req"]),
                feature_id=feature_id,
                default_features=default_features,
                features=tuple(sorted(features)),
                kind=DependencyKind(int(row["kind"])),
            )
        )

    def finish(self) -> tuple[DbDump, CrateMap]:
        names = self.feature_names
        for release, features in zip(self.releases, self.release_features):
            resolved = []
            for feature_id, pending in features:
                enables = []
                for crate_part, enabled in pending:
                    if crate_part == FEATURE_CRATE:
                        crate_id = release.crate_id
                    else:
                        crate_id = self.crates.id(names.name(crate_part))
                        if crate_id is None:
                            # The registry does not record which names are
                            # crates, so references it cannot resolve are dropped.
                            continue
                    enables.append(CrateFeature(crate_id, enabled))
                resolved.append((feature_id, tuple(enables)))
            release.features = tuple(resolved)

        for dep in self.dependencies:
            if dep.feature_id == FEATURE_TBD:
                crate_name = self.crates.name(dep.crate_id)
                if crate_name is None:
                    raise ValueError(
                        f"dependency {dep.id} refers to unknown crate id {dep.crate_id}"
                    )
                dep.feature_id = names.id(crate_name)

        self.crates.owners = self.owners
        self.crates.users = {**self.users}
        self.crates.users.update(self.teams)
        db_dump = DbDump(self.releases, self.dependencies, names)
        return db_dump, self.crates


def load(path: str | PathLike[str]) -> tuple[DbDump, CrateMap]:
    """Load releases, dependencies, crate names and owners from a dump tarball."""
    loader = _Loader()
    handlers = loader.handlers
    with tarfile.open(path, "r:*") as archive, _unlimited_csv_fields():
        for member in archive:
            member_path = PurePosixPath(member.name)
            handler = handlers.get(member_path.name)
            if handler is None or not member.isfile() or member_path.parent.name != "data":
                continue
            stream = archive.extractfile(member)
            if stream is None:
                continue
            with io.TextIOWrapper(stream, encoding="utf-8", newline="") as text:
                for row in csv.DictReader(text):
                    handler(row)
    return loader.finish()