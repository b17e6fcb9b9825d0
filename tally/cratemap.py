"""Bidirectional mapping between crate ids and crate names, plus owners."""

from __future__ import annotations

from collections.abc import Hashable

from .names import CrateName, UserName

__all__ = ["CrateMap"]


class CrateMap:
    """Crate names by id and ids by name, with crates.io's name equivalence.

    ``users`` maps a login (user or ``org/team``) to an owner id, and
    ``owners`` maps an owner id to the crates it owns. Owner ids are any
    hashable value that distinguishes users from teams.
    """

    def __init__(self) -> None:
        self._names: dict[int, str] = {}
        self._ids: dict[CrateName, int] = {}
        self.users: dict[UserName, Hashable] = {}
        self.owners: dict[Hashable, list[int]] = {}

    def insert(self, crate_id: int, name: str) -> None:
        key = CrateName(name)
        if key in self._ids:
            raise ValueError(f"duplicate crate name {name!r}")
        if crate_id in self._names:
            raise ValueError(f"duplicate crate id {crate_id}")
        self._ids[key] = crate_id
        self._names[crate_id] = name

    def name(self, crate_id: int) -> str | None:
        return self._names.get(crate_id)

    def id(self, name: str) -> int | None:
        return self._ids.get(CrateName(name))

    def lookup_user(self, login: str) -> tuple[UserName, Hashable] | None:
        """The stored login spelling and owner id matching ``login``, ignoring case."""
        query = UserName(login)
        for stored, owner_id in self.users.items():
            if stored == query:
                return stored, owner_id
        return None

    def __len__(self) -> int:
        return len(self._names)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and CrateName(name) in self._ids