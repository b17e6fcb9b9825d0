"""Crate and user names with the comparison rules crates.io applies to them."""

from __future__ import annotations

from functools import total_ordering

__all__ = ["CrateName", "UserName", "valid_crate_name", "valid_username"]

MAX_NAME_LENGTH = 64
MAX_USERNAME_LENGTH = 39

_ASCII_ALNUM = frozenset("0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz")
_CRATE_CHARS = _ASCII_ALNUM | {"_", "-"}
_USER_CHARS = _ASCII_ALNUM | {"-"}
_ASCII_LOWER = str.maketrans(
    "ABCDEFGHIJKLMNOPQRSTUVWXYZ", "abcdefghijklmnopqrstuvwxyz"
)


def valid_crate_name(name: str) -> bool:
    """Whether crates.io would accept this as a crate name."""
    return (
        bool(name)
        and all(ch in _CRATE_CHARS for ch in name)
        and name[0].isalpha()
        and len(name) <= MAX_NAME_LENGTH
    )


def valid_username(name: str) -> bool:
    """Whether this is a well-formed GitHub login."""
    return (
        bool(name)
        and all(ch in _USER_CHARS for ch in name)
        and "--" not in name
        and not name.startswith("-")
        and not name.endswith("-")
        and len(name.encode()) <= MAX_USERNAME_LENGTH
    )


@total_ordering
class CrateName:
    """A crate name that treats '_' and '-' as the same character."""

    __slots__ = ("name",)

    def __init__(self, name: str) -> None:
        self.name = name

    def _key(self) -> str:
        return self.name.replace("_", "-")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CrateName):
            return NotImplemented
        return self._key() == other._key()

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, CrateName):
            return NotImplemented
        return self._key() < other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"CrateName({self.name!r})"


@total_ordering
class UserName:
    """A user or team login compared without regard to ASCII case."""

    __slots__ = ("name",)

    def __init__(self, name: str) -> None:
        self.name = name

    def _key(self) -> str:
        return self.name.translate(_ASCII_LOWER)

    def is_team(self) -> bool:
        return "/" in self.name

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, UserName):
            return NotImplemented
        return self._key() == other._key()

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, UserName):
            return NotImplemented
        return self._key() < other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"UserName({self.name!r})"