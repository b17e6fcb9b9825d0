import pytest

from tally.cratemap import CrateMap
from tally.names import UserName


@pytest.fixture
def crates():
    crate_map = CrateMap()
    crate_map.insert(1, "serde")
    crate_map.insert(2, "serde_json")
    crate_map.insert(3, "lazy-static")
    return crate_map


def test_name_by_id(crates):
    assert crates.name(1) == "serde"
    assert crates.name(2) == "serde_json"
    assert crates.name(99) is None


def test_id_by_name(crates):
    assert crates.id("serde") == 1
    assert crates.id("missing") is None


def test_id_lookup_ignores_separator_kind(crates):
    assert crates.id("serde-json") == 2
    assert crates.id("lazy_static") == 3


def test_id_lookup_is_case_sensitive(crates):
    assert crates.id("Serde") is None


def test_duplicate_name_rejected(crates):
    with pytest.raises(ValueError):
        crates.insert(4, "serde-json")
    assert crates.id("serde_json") == 2


def test_duplicate_id_rejected(crates):
    with pytest.raises(ValueError):
        crates.insert(1, "anyhow")
    assert crates.id("anyhow") is None
    assert crates.name(1) == "serde"


def test_len_and_contains(crates):
    assert len(crates) == 3
    assert "lazy_static" in crates
    assert "tokio" not in crates


def test_round_trip_names(crates):
    for crate_id in (1, 2, 3):
        assert crates.id(crates.name(crate_id)) == crate_id


def test_lookup_user_case_insensitive(crates):
    crates.users[UserName("dtolnay")] = ("user", 7)
    crates.owners[("user", 7)] = [1, 2]
    found = crates.lookup_user("DTolnay")
    assert found is not None
    stored, owner_id = found
    assert str(stored) == "dtolnay"
    assert crates.owners[owner_id] == [1, 2]


def test_lookup_user_missing(crates):
    assert crates.lookup_user("nobody") is None