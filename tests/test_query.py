import pytest

from tally.cratemap import CrateMap
from tally.model import Predicate
from tally.names import UserName
from tally.query import QueryError, format_query, parse
from tally.version import parse_req

SERDE, ANYHOW, THISERROR, SERDE_JSON = 1, 2, 3, 4
USER_OWNER = ("user", 7)
TEAM_OWNER = ("team", 8)


@pytest.fixture
def crates():
    crate_map = CrateMap()
    crate_map.insert(SERDE, "serde")
    crate_map.insert(ANYHOW, "anyhow")
    crate_map.insert(THISERROR, "thiserror")
    crate_map.insert(SERDE_JSON, "serde_json")
    crate_map.users[UserName("Alice")] = USER_OWNER
    crate_map.users[UserName("example-org/core")] = TEAM_OWNER
    crate_map.owners[USER_OWNER] = [ANYHOW, THISERROR]
    crate_map.owners[TEAM_OWNER] = [SERDE]
    return crate_map


def test_parse_example_queries(crates):
    queries = parse(["serde:1.0", "anyhow:^1.0 + thiserror"], crates)
    assert [q.id for q in queries] == [0, 1]
    assert queries[0].predicates == (Predicate(SERDE, parse_req("1.0")),)
    assert queries[1].predicates == (
        Predicate(ANYHOW, parse_req("^1.0")),
        Predicate(THISERROR, None),
    )


def test_crate_names_ignore_separator(crates):
    (query,) = parse(["serde-json"], crates)
    assert query.predicates == (Predicate(SERDE_JSON, None),)


def test_user_expands_to_owned_crates(crates):
    (query,) = parse(["@ALICE"], crates)
    assert query.predicates == (Predicate(ANYHOW), Predicate(THISERROR))


def test_team_expands_to_owned_crates(crates):
    (query,) = parse(["@Example-Org/Core + anyhow"], crates)
    assert query.predicates == (Predicate(SERDE), Predicate(ANYHOW))


def test_unknown_crate(crates):
    with pytest.raises(QueryError, match="no crate named nope"):
        parse(["nope"], crates)


def test_unknown_user_and_team(crates):
    with pytest.raises(QueryError, match="no crates owned by user @bob"):
        parse(["@bob"], crates)
    with pytest.raises(QueryError, match="no crates owned by team @example-org/other"):
        parse(["@example-org/other"], crates)


def test_bad_requirement_names_the_query(crates):
    with pytest.raises(QueryError) as info:
        parse(["serde:>>1"], crates)
    assert str(info.value).startswith('failed to parse query "serde:>>1": ')


def test_too_many_queries(crates):
    assert len(parse(["serde"] * 256, crates)) == 256
    with pytest.raises(QueryError):
        parse(["serde"] * 257, crates)


def test_format_uses_canonical_names(crates):
    assert format_query("serde-json:1.0 + @alice", crates) == "serde_json:^1.0 or @Alice"


def test_format_single_crate_roundtrips_name(crates):
    assert format_query("anyhow", crates) == "anyhow"


def test_format_unknown_crate_raises(crates):
    with pytest.raises(QueryError):
        format_query("nope", crates)