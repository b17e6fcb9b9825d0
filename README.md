# tally

A Python library that counts how many crates on crates.io depend on a given
crate, or on a group of crates, at every point in time.

The data comes from the crates.io database dump, a `db-dump.tar.gz` archive of
CSV tables published by crates.io.

## Installation

```
pip install .
```

## Queries

Each query is one or more predicates joined with `+`. A predicate is a crate
name, a crate name with a version requirement after a colon, or an owner's
login after `@` (a user, or a team written as `org/team`):

```
serde:1.0
anyhow:^1.0 + thiserror
@some-user
```

A query counts every crate whose most recent release depends on a release
that matches one of its predicates.

## Usage

```python
import re

from tally.clean import clean, filter_releases
from tally.engine import run
from tally.load import load
from tally.matrix import format_relative_row, format_row
from tally.query import format_query, parse
from tally.total import Total

db_dump, crates = load("db-dump.tar.gz")
filter_releases(db_dump, crates, [re.compile(r"^my-internal-")])
db_dump.releases.sort(key=lambda release: release.created_at)
clean(db_dump, crates)

texts = ["serde:1.0", "anyhow:^1.0 + thiserror"]
queries = parse(texts, crates)
labels = [format_query(text, crates) for text in texts]

matrix = run(db_dump, False, queries)
for timestamp, counts in matrix:
    print(timestamp, format_row(counts))

total = Total(db_dump.releases)
for timestamp, counts in matrix:
    print(timestamp, format_relative_row(counts, total.eval(timestamp)))
```

The modules:

- `tally.version`: `parse_version`, `parse_req`, `Version`, `VersionReq` and
  `Comparator`, with Cargo's requirement matching rules, including how
  prereleases match. Parse errors raise `SemverError`.
- `tally.names`: `valid_crate_name`, `valid_username`, and `CrateName` and
  `UserName`, which compare crate names treating `_` and `-` alike and logins
  without regard to ASCII case.
- `tally.load`: `load(path)` reads crates, users, teams, owners, non-yanked
  versions and dependencies from the dump and returns a `DbDump` and a
  `CrateMap`.
- `tally.clean`: `filter_releases` drops releases of crates whose name matches
  any of the given patterns; `clean` narrows requirements such as `0.*` that
  would accept a release incompatible with the highest version published so
  far.
- `tally.query`: `parse` turns query strings into `Query` values and
  `format_query` gives a readable label; unknown crates or owners and bad
  requirements raise `QueryError`.
- `tally.engine`: `run(db_dump, transitive, queries)` publishes the releases
  in time order and returns a `tally.matrix.Matrix` with a row whenever any
  count changes. With `transitive=True`, indirect dependencies through normal
  and build dependencies and enabled features are counted as well.
- `tally.total`: `Total` counts how many crates existed at a given time, for
  relative figures.
- `tally.render`: `graph_title`, `format_fraction`, `format_point` and
  `graph_data`, which build the series of every query as a JavaScript array
  literal for a chart.
- `tally.timestamp`: epoch arithmetic and formatting for naive UTC
  `datetime` values.

## What it does not do

- There is no command-line program; everything is used from Python.
- No HTML page is written or opened. `graph_data` produces the chart data
  only.
- Releases of crates that have been removed from the registry are not filled
  back in, so dependencies on them stay unresolved.

## Running the tests

```
pip install .[test]
pytest
```