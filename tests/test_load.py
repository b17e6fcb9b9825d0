import csv
import io
import tarfile
from datetime import datetime

import pytest

from tally.feature import FEATURE_CRATE, CrateFeature, DependencyKind
from tally.load import load
from tally.version import parse_req, parse_version


def _write_dump(path, tables):
    with tarfile.open(path, "w:gz") as tar:
        for name, rows in tables.items():
            buf = io.StringIO()
            writer = csv.DictWriter(buf, fieldnames=list(rows[0]))
            writer.writeheader()
            writer.writerows(rows)
            data = buf.getvalue().encode()
            info = tarfile.TarInfo(f"2022-01-01-000000/data/{name}")
            info.size = len(data)
            tar.addfile(info, io.BytesIO(data))


def _tables(dependencies=None):
    return {
        "crates.csv": [
            {"id": "1", "name": "serde"},
            {"id": "2", "name": "serde_derive"},
            {"id": "3", "name": "anyhow"},
        ],
        "users.csv": [{"id": "10", "gh_login": "alice"}],
        "teams.csv": [
            {"id": "20", "login": "github:acme:core"},
            {"id": "21", "login": "github:solo"},
        ],
        "crate_owners.csv": [
            {"crate_id": "1", "owner_id": "10", "owner_kind": "0"},
            {"crate_id": "3", "owner_id": "10", "owner_kind": "0"},
            {"crate_id": "2", "owner_id": "20", "owner_kind": "1"},
        ],
        "versions.csv": [
            {
                "id": "100",
                "crate_id": "1",
                "num": "1.0.0",
                "created_at": "2017-05-01 12:00:00.5",
                "yanked": "f",
                "features": '{"derive": ["serde_derive"], "std": [], '
                '"rc": ["missing/feat"], "full": ["serde-derive/extra"]}',
            },
            {
                "id": "101",
                "crate_id": "1",
                "num": "1.0.1",
                "created_at": "2017-05-02 12:00:00",
                "yanked": "t",
                "features": "{}",
            },
            {
                "id": "200",
                "crate_id": "2",
                "num": "1.0.0",
                "created_at": "2017-05-03 08:30:00+00",
                "yanked": "f",
                "features": "",
            },
        ],
        "dependencies.csv": dependencies
        or [
            {
                "id": "1",
                "version_id": "100",
                "crate_id": "2",
                "req": "^1.0",
                "optional": "t",
                "default_features": "f",
                "features": "{default,extra}",
                "kind": "0",
            },
            {
                "id": "2",
                "version_id": "200",
                "crate_id": "3",
                "req": "=1.0.3",
                "optional": "f",
                "default_features": "t",
                "features": "{}",
                "kind": "2",
            },
        ],
    }


@pytest.fixture
def loaded(tmp_path):
    path = tmp_path / "db-dump.tar.gz"
    _write_dump(path, _tables())
    return load(path)


def test_crate_names(loaded):
    _db, crates = loaded
    assert crates.id("serde") == 1
    assert crates.id("serde-derive") == 2
    assert crates.name(3) == "anyhow"


def test_yanked_versions_skipped(loaded):
    db, _crates = loaded
    assert sorted(rel.id for rel in db.releases) == [100, 200]


def test_release_fields(loaded):
    db, _crates = loaded
    release = next(rel for rel in db.releases if rel.id == 100)
    assert release.crate_id == 1
    assert release.num == parse_version("1.0.0")
    assert release.created_at == datetime(2017, 5, 1, 12, 0, 0, 500000)
    other = next(rel for rel in db.releases if rel.id == 200)
    assert other.created_at == datetime(2017, 5, 3, 8, 30, 0)
    assert other.features == ()


def test_release_features_resolved(loaded):
    db, _crates = loaded
    names = db.features
    release = next(rel for rel in db.releases if rel.id == 100)
    by_name = {names.name(fid): enables for fid, enables in release.features}
    assert set(by_name) == {"derive", "std", "rc", "full"}
    assert by_name["derive"] == (CrateFeature(1, names.id("serde_derive")),)
    assert by_name["std"] == ()
    assert by_name["rc"] == ()
    assert by_name["full"] == (CrateFeature(2, names.id("extra")),)


def test_reserved_feature_names(loaded):
    db, _crates = loaded
    assert db.features.name(0) == ""
    assert db.features.name(1) == "default"


def test_optional_dependency(loaded):
    db, _crates = loaded
    dep = next(d for d in db.dependencies if d.id == 1)
    assert dep.feature_id == db.features.id("serde_derive")
    assert dep.default_features is True
    assert dep.features == (db.features.id("extra"),)
    assert dep.req == parse_req("^1.0")
    assert dep.kind is DependencyKind.NORMAL


def test_plain_dependency(loaded):
    db, _crates = loaded
    dep = next(d for d in db.dependencies if d.id == 2)
    assert dep.feature_id == FEATURE_CRATE
    assert dep.default_features is True
    assert dep.features == ()
    assert dep.kind is DependencyKind.DEV
    assert dep.version_id == 200


def test_users_and_owners(loaded):
    _db, crates = loaded
    found = crates.lookup_user("ALICE")
    assert found is not None
    stored, owner = found
    assert str(stored) == "alice"
    assert crates.owners[owner] == [1, 3]


def test_teams(loaded):
    _db, crates = loaded
    found = crates.lookup_user("ACME/core")
    assert found is not None
    stored, owner = found
    assert str(stored) == "acme/core"
    assert crates.owners[owner] == [2]
    assert crates.lookup_user("solo") is None


def test_optional_dependency_on_unknown_crate(tmp_path):
    path = tmp_path / "db-dump.tar.gz"
    bad = [
        {
            "id": "1",
            "version_id": "100",
            "crate_id": "99",
            "req": "^1.0",
            "optional": "t",
            "default_features": "t",
            "features": "{}",
            "kind": "0",
        }
    ]
    _write_dump(path, _tables(bad))
    with pytest.raises(ValueError):
        load(path)


def test_not_a_tarball(tmp_path):
    path = tmp_path / "db-dump.tar.gz"
    path.write_bytes(b"not an archive")
    with pytest.raises(tarfile.ReadError):
        load(path)