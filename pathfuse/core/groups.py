"""Entity groups, size filtering and the statistical background."""

from __future__ import annotations

import math
from collections.abc import Iterator, Mapping
from typing import Iterable

from pathfuse.core.types import Group
from pathfuse.exceptions import InputValidationError


class GroupSet(Mapping):
    """Ordered, read-only collection of groups keyed by id.

    Every transformation (`filter_by_size`, `restrict`) returns a new
    GroupSet; the source is never modified.
    """

    def __init__(self, groups: Iterable[Group] = ()):
        items: dict[str, Group] = {}
        for group in groups:
            if not isinstance(group, Group):
                raise InputValidationError(
                    f"GroupSet entries must be Group records, got {type(group).__name__}."
                )
            if group.id in items:
                raise InputValidationError(f"Duplicate group id '{group.id}'.")
            items[group.id] = group
        self._groups = items

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, tuple[str, Iterable[str]]]) -> GroupSet:
        """Build from ``{id: (name, members)}``."""
        return cls(Group.create(gid, name, members) for gid, (name, members) in mapping.items())

    def __getitem__(self, group_id: str) -> Group:
        return self._groups[group_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._groups)

    def __len__(self) -> int:
        return len(self._groups)

    def __repr__(self) -> str:
        return f"GroupSet(n_groups={len(self)})"

    def groups(self) -> list[Group]:
        return list(self._groups.values())

    def background(self) -> frozenset[str]:
        """Union of all group members."""
        out: set[str] = set()
        for group in self._groups.values():
            out.update(group.members)
        return frozenset(out)

    def filter_by_size(self, min_size: int = 1, max_size: float = math.inf) -> GroupSet:
        """Keep groups with ``min_size <= size <= max_size``, order preserved."""
        if max_size is None:
            max_size = math.inf
        if min_size < 0 or max_size < min_size:
            raise InputValidationError(
                "Group size bounds must satisfy 0 <= min <= max.",
                {"min_size": min_size, "max_size": max_size},
            )
        return GroupSet(g for g in self._groups.values() if min_size <= g.size <= max_size)

    def restrict(self, background: Iterable[str]) -> GroupSet:
        """Intersect every group's members with `background`.

        Groups left empty are kept; size filtering decides their fate.
        """
        bg = background if isinstance(background, (set, frozenset)) else frozenset(background)
        return GroupSet(
            Group(id=g.id, name=g.name, members=frozenset(g.members & bg))
            for g in self._groups.values()
        )


def resolve_background(
    groups: GroupSet,
    override: Iterable[str] | None = None,
) -> frozenset[str]:
    """Return the statistical universe: `override` if given, else all group members."""
    if override is None:
        background = groups.background()
    else:
        if isinstance(override, str):
            raise InputValidationError("background must be a collection of entity ids, not a string.")
        background = frozenset(str(x) for x in override)
    if not background:
        raise InputValidationError("Background is empty.")
    return background
