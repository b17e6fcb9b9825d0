"""Semantic versions and version requirements with Cargo's matching rules."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from functools import total_ordering

__all__ = [
    "SemverError",
    "Op",
    "Comparator",
    "Version",
    "VersionReq",
    "parse_version",
    "parse_req",
]

_MAX_COMPARATORS = 32
_MAX_U64 = 2**64 - 1
_WILDCARDS = "*xX"
_DIGITS = re.compile(r"[0-9]*")
_IDENTIFIER_CHARS = re.compile(r"[0-9A-Za-z.\-]*")
_NUMERIC = re.compile(r"[0-9]+")


class SemverError(ValueError):
    """Raised when a version or a version requirement cannot be parsed."""


class Op(Enum):
    """Comparison operator of a requirement comparator, in precedence order."""

    EXACT = 0
    GREATER = 1
    GREATER_EQ = 2
    LESS = 3
    LESS_EQ = 4
    TILDE = 5
    CARET = 6
    WILDCARD = 7

    @property
    def symbol(self) -> str:
        return _OP_SYMBOLS[self]


_OP_SYMBOLS = {
    Op.EXACT: "=",
    Op.GREATER: ">",
    Op.GREATER_EQ: ">=",
    Op.LESS: "<",
    Op.LESS_EQ: "<=",
    Op.TILDE: "~",
    Op.CARET: "^",
    Op.WILDCARD: "",
}

# Longer operators first so that ">=" is not read as ">".
_OP_PREFIXES = (
    (">=", Op.GREATER_EQ),
    ("<=", Op.LESS_EQ),
    ("=", Op.EXACT),
    (">", Op.GREATER),
    ("<", Op.LESS),
    ("~", Op.TILDE),
    ("^", Op.CARET),
)


def _is_numeric(identifier: str) -> bool:
    return _NUMERIC.fullmatch(identifier) is not None


def _pre_key(pre: tuple[str, ...]) -> tuple:
    # A release without prerelease sorts after every prerelease.
    if not pre:
        return (1,)
    return (
        0,
        tuple((0, int(part), "") if _is_numeric(part) else (1, 0, part) for part in pre),
    )


def _build_key(build: tuple[str, ...]) -> tuple:
    return tuple(
        (0, int(part), part) if _is_numeric(part) else (1, 0, part) for part in build
    )


def _optional_key(value: int | None) -> tuple:
    return (0,) if value is None else (1, value)


@total_ordering
@dataclass(frozen=True, repr=False)
class Version:
    """A semantic version number."""

    major: int
    minor: int
    patch: int
    pre: tuple[str, ...] = ()
    build: tuple[str, ...] = ()

    def _key(self) -> tuple:
        return (
            self.major,
            self.minor,
            self.patch,
            _pre_key(self.pre),
            _build_key(self.build),
        )

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._key() < other._key()

    def is_prerelease(self) -> bool:
        return bool(self.pre)

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.pre:
            text += "-" + ".".join(self.pre)
        if self.build:
            text += "+" + ".".join(self.build)
        return text

    def __repr__(self) -> str:
        return f"Version({self})"


def _pre_greater(left: tuple[str, ...], right: tuple[str, ...]) -> bool:
    return _pre_key(left) > _pre_key(right)


def _pre_less(left: tuple[str, ...], right: tuple[str, ...]) -> bool:
    return _pre_key(left) < _pre_key(right)


def _pre_greater_eq(left: tuple[str, ...], right: tuple[str, ...]) -> bool:
    return _pre_key(left) >= _pre_key(right)


@total_ordering
@dataclass(frozen=True)
class Comparator:
    """One operator with a possibly partial version, such as ``^1.2``."""

    op: Op
    major: int
    minor: int | None = None
    patch: int | None = None
    pre: tuple[str, ...] = ()

    def _key(self) -> tuple:
        return (
            self.op.value,
            self.major,
            _optional_key(self.minor),
            _optional_key(self.patch),
            _pre_key(self.pre),
        )

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Comparator):
            return NotImplemented
        return self._key() < other._key()

    def matches(self, version: Version) -> bool:
        """Whether the version satisfies this comparator, ignoring prerelease rules."""
        if self.op in (Op.EXACT, Op.WILDCARD):
            return self._matches_exact(version)
        if self.op is Op.GREATER:
            return self._matches_greater(version)
        if self.op is Op.GREATER_EQ:
            return self._matches_exact(version) or self._matches_greater(version)
        if self.op is Op.LESS:
            return self._matches_less(version)
        if self.op is Op.LESS_EQ:
            return self._matches_exact(version) or self._matches_less(version)
        if self.op is Op.TILDE:
            return self._matches_tilde(version)
        return self._matches_caret(version)

    def pre_is_compatible(self, version: Version) -> bool:
        return (
            self.major == version.major
            and self.minor == version.minor
            and self.patch == version.patch
            and bool(self.pre)
        )

    def _matches_exact(self, ver: Version) -> bool:
        if ver.major != self.major:
            return False
        if self.minor is not None and ver.minor != self.minor:
            return False
        if self.patch is not None and ver.patch != self.patch:
            return False
        return ver.pre == self.pre

    def _matches_greater(self, ver: Version) -> bool:
        if ver.major != self.major:
            return ver.major > self.major
        if self.minor is None:
            return False
        if ver.minor != self.minor:
            return ver.minor > self.minor
        if self.patch is None:
            return False
        if ver.patch != self.patch:
            return ver.patch > self.patch
        return _pre_greater(ver.pre, self.pre)

    def _matches_less(self, ver: Version) -> bool:
        if ver.major != self.major:
            return ver.major < self.major
        if self.minor is None:
            return False
        if ver.minor != self.minor:
            return ver.minor < self.minor
        if self.patch is None:
            return False
        if ver.patch != self.patch:
            return ver.patch < self.patch
        return _pre_less(ver.pre, self.pre)

    def _matches_tilde(self, ver: Version) -> bool:
        if ver.major != self.major:
            return False
        if self.minor is not None and ver.minor != self.minor:
            return False
        if self.patch is not None and ver.patch != self.patch:
            return ver.patch > self.patch
        return _pre_greater_eq(ver.pre, self.pre)

    def _matches_caret(self, ver: Version) -> bool:
        if ver.major != self.major:
            return False
        minor = self.minor
        if minor is None:
            return True
        patch = self.patch
        if patch is None:
            if self.major > 0:
                return ver.minor >= minor
            return ver.minor == minor
        if self.major > 0:
            if ver.minor != minor:
                return ver.minor > minor
            if ver.patch != patch:
                return ver.patch > patch
        elif minor > 0:
            if ver.minor != minor:
                return False
            if ver.patch != patch:
                return ver.patch > patch
        elif ver.minor != minor or ver.patch != patch:
            return False
        return _pre_greater_eq(ver.pre, self.pre)

    def __str__(self) -> str:
        text = f"{self.op.symbol}{self.major}"
        if self.minor is not None:
            text += f".{self.minor}"
            if self.patch is not None:
                text += f".{self.patch}"
                if self.pre:
                    text += "-" + ".".join(self.pre)
            elif self.op is Op.WILDCARD:
                text += ".*"
        elif self.op is Op.WILDCARD:
            text += ".*"
        return text


@total_ordering
@dataclass(frozen=True, repr=False)
class VersionReq:
    """A comma separated list of comparators; empty means any version."""

    comparators: tuple[Comparator, ...] = ()

    def _key(self) -> tuple:
        return tuple(comparator._key() for comparator in self.comparators)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, VersionReq):
            return NotImplemented
        return self._key() < other._key()

    def matches(self, version: Version) -> bool:
        if not all(comparator.matches(version) for comparator in self.comparators):
            return False
        if not version.pre:
            return True
        # A prerelease only satisfies a requirement that names a prerelease
        # of the same major.minor.patch.
        return any(c.pre_is_compatible(version) for c in self.comparators)

    def __str__(self) -> str:
        if not self.comparators:
            return "*"
        return ", ".join(str(comparator) for comparator in self.comparators)

    def __repr__(self) -> str:
        return f"VersionReq({self})"


def _numeric_identifier(text: str, position: str) -> tuple[int, str]:
    digits = _DIGITS.match(text).group()
    if not digits:
        if text:
            raise SemverError(f"unexpected character {text[0]!r} while parsing {position}")
        raise SemverError(f"unexpected end of input while parsing {position}")
    if len(digits) > 1 and digits[0] == "0":
        raise SemverError(f"invalid leading zero in {position} version number")
    value = int(digits)
    if value > _MAX_U64:
        raise SemverError(f"value of {position} version number exceeds u64::MAX")
    return value, text[len(digits):]


def _identifiers(text: str, position: str, allow_leading_zero: bool) -> tuple[tuple[str, ...], str]:
    raw = _IDENTIFIER_CHARS.match(text).group()
    rest = text[len(raw):]
    if not raw:
        raise SemverError(f"empty identifier segment in {position}")
    segments = tuple(raw.split("."))
    for segment in segments:
        if not segment:
            raise SemverError(f"empty identifier segment in {position}")
        if not allow_leading_zero and _is_numeric(segment) and len(segment) > 1 and segment[0] == "0":
            raise SemverError(f"invalid leading zero in {position} identifier")
    return segments, rest


def _expect_dot(text: str, position: str) -> str:
    if text.startswith("."):
        return text[1:]
    if text:
        raise SemverError(f"unexpected character {text[0]!r} after {position} version number, expected '.'")
    raise SemverError(f"unexpected end of input while parsing {position} version number")


def parse_version(text: str) -> Version:
    """Parse a complete version such as ``1.2.3-alpha.1+build``."""
    if not text:
        raise SemverError("empty string, expected a semver version")
    major, rest = _numeric_identifier(text, "major")
    rest = _expect_dot(rest, "major")
    minor, rest = _numeric_identifier(rest, "minor")
    rest = _expect_dot(rest, "minor")
    patch, rest = _numeric_identifier(rest, "patch")
    position = "patch"
    pre: tuple[str, ...] = ()
    build: tuple[str, ...] = ()
    if rest.startswith("-"):
        position = "pre-release"
        pre, rest = _identifiers(rest[1:], position, allow_leading_zero=False)
    if rest.startswith("+"):
        position = "build metadata"
        build, rest = _identifiers(rest[1:], position, allow_leading_zero=True)
    if rest:
        raise SemverError(f"unexpected character {rest[0]!r} after {position}")
    return Version(major, minor, patch, pre, build)


def _split_wildcard(text: str) -> tuple[str, str] | None:
    if text and text[0] in _WILDCARDS:
        return text[0], text[1:]
    return None


def _split_op(text: str) -> tuple[Op | None, str]:
    for prefix, op in _OP_PREFIXES:
        if text.startswith(prefix):
            return op, text[len(prefix):]
    return None, text


def _parse_comparator(text: str) -> tuple[Comparator, str, str]:
    op, rest = _split_op(text)
    if op is None:
        op = Op.CARET
    rest = rest.lstrip(" ")

    position = "major"
    major, rest = _numeric_identifier(rest, position)
    has_wildcard = False

    minor: int | None = None
    if rest.startswith("."):
        rest = rest[1:]
        position = "minor"
        wildcard = _split_wildcard(rest)
        if wildcard is not None:
            has_wildcard = True
            if op is Op.CARET:
                op = Op.WILDCARD
            rest = wildcard[1]
        else:
            minor, rest = _numeric_identifier(rest, position)

    patch: int | None = None
    if rest.startswith("."):
        rest = rest[1:]
        position = "patch"
        wildcard = _split_wildcard(rest)
        if wildcard is not None:
            if op is Op.CARET:
                op = Op.WILDCARD
            rest = wildcard[1]
        elif has_wildcard:
            raise SemverError("unexpected character after wildcard in version req")
        else:
            patch, rest = _numeric_identifier(rest, position)

    pre: tuple[str, ...] = ()
    if patch is not None and rest.startswith("-"):
        position = "pre-release"
        pre, rest = _identifiers(rest[1:], position, allow_leading_zero=False)

    if patch is not None and rest.startswith("+"):
        position = "build metadata"
        _build, rest = _identifiers(rest[1:], position, allow_leading_zero=True)

    rest = rest.lstrip(" ")
    return Comparator(op, major, minor, patch, pre), position, rest


def parse_req(text: str) -> VersionReq:
    """Parse a requirement such as ``^1.2``, ``>=1.0, <2`` or ``*``."""
    text = text.lstrip(" ")
    wildcard = _split_wildcard(text)
    if wildcard is not None:
        char, rest = wildcard
        rest = rest.lstrip(" ")
        if not rest:
            return VersionReq()
        if rest.startswith(","):
            raise SemverError(f"wildcard req ({char}) must be the only comparator in the version req")
        raise SemverError("unexpected character after wildcard in version req")

    comparators: list[Comparator] = []
    while True:
        try:
            comparator, position, rest = _parse_comparator(text)
        except SemverError:
            wildcard = _split_wildcard(text)
            if wildcard is not None:
                char, after = wildcard
                after = after.lstrip(" ")
                if not after or after.startswith(","):
                    raise SemverError(
                        f"wildcard req ({char}) must be the only comparator in the version req"
                    ) from None
            raise
        comparators.append(comparator)
        if not rest:
            return VersionReq(tuple(comparators))
        if not rest.startswith(","):
            raise SemverError(f"expected comma after {position}, found {rest[0]!r}")
        if len(comparators) == _MAX_COMPARATORS:
            raise SemverError("excessive number of version comparators")
        text = rest[1:].lstrip(" ")