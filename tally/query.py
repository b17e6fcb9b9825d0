"""Parsing and displaying dependency queries such as ``anyhow:^1.0 + thiserror``."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from .cratemap import CrateMap
from .model import Predicate, Query
from .names import UserName
from .version import SemverError, parse_req

__all__ = ["QueryError", "parse", "format_query"]

_MAX_QUERIES = 256

_DEBUG_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\0": "\\0",
}


class QueryError(ValueError):
    """Raised when a query names an unknown crate or owner, or a bad requirement."""


@dataclass(frozen=True)
class _UserPredicate:
    login: str


def _quoted(text: str) -> str:
    escaped = "".join(
        _DEBUG_ESCAPES.get(ch) or (ch if ch.isprintable() else f"\\u{{{ord(ch):x}}}")
        for ch in text
    )
    return f'"{escaped}"'


def _raw_predicates(query: str, crates: CrateMap) -> Iterator[Predicate | _UserPredicate]:
    for part in query.split("+"):
        part = part.strip()
        if part.startswith("@"):
            yield _UserPredicate(part[1:])
            continue
        name, separator, req_text = part.partition(":")
        req = None
        if separator:
            try:
                req = parse_req(req_text)
            except SemverError as err:
                raise QueryError(str(err)) from err
        crate_id = crates.id(name)
        if crate_id is None:
            raise QueryError(f"no crate named {name}")
        yield Predicate(crate_id, req)


def _parse_predicates(query: str, crates: CrateMap) -> tuple[Predicate, ...]:
    predicates: list[Predicate] = []
    for raw in _raw_predicates(query, crates):
        if isinstance(raw, Predicate):
            predicates.append(raw)
            continue
        found = crates.lookup_user(raw.login)
        if found is None:
            kind = "team" if UserName(raw.login).is_team() else "user"
            raise QueryError(f"no crates owned by {kind} @{raw.login}")
        _stored, owner_id = found
        predicates.extend(Predicate(crate_id) for crate_id in crates.owners.get(owner_id, ()))
    return tuple(predicates)


def parse(queries: Iterable[str], crates: CrateMap) -> list[Query]:
    """Parse query strings into numbered queries, in order."""
    parsed: list[Query] = []
    for index, text in enumerate(queries):
        if index >= _MAX_QUERIES:
            raise QueryError(f"too many queries, at most {_MAX_QUERIES} are supported")
        try:
            predicates = _parse_predicates(text, crates)
        except QueryError as err:
            raise QueryError(f"failed to parse query {_quoted(text)}: {err}") from err
        parsed.append(Query(index, predicates))
    return parsed


def format_query(query: str, crates: CrateMap) -> str:
    """Human readable label: canonical crate and owner names joined by ``or``."""
    parts: list[str] = []
    for raw in _raw_predicates(query, crates):
        if isinstance(raw, Predicate):
            text = crates.name(raw.crate_id)
            if text is None:
                raise QueryError(f"no crate with id {raw.crate_id}")
            if raw.req is not None:
                text += f":{raw.req}"
            parts.append(text)
        else:
            found = crates.lookup_user(raw.login)
            if found is None:
                raise QueryError(f"no owner named @{raw.login}")
            stored, _owner_id = found
            parts.append(f"@{stored}")
    return " or ".join(parts)