"""Stub registry and resolution rules.

Resolution order for a call against one member:

1. the one-shot queue, oldest declaration first; the winning entry is
   removed so it fires exactly once
2. the persistent entries, newest declaration first
3. ``NoMatch``

One-shot entries therefore temporarily override persistent ones, and a
later persistent declaration narrows or replaces an earlier one without
disturbing it.
"""

import logging
from collections import deque
from collections.abc import Mapping
from typing import Any, TYPE_CHECKING

from .models import NoMatch, StubEntry

if TYPE_CHECKING:
    from .ports import Action

logger = logging.getLogger(__name__)


class MemberStubs:
    """Declared behaviors for a single member."""

    def __init__(self) -> None:
        self.persistent: list[StubEntry] = []
        self.one_shot: deque[StubEntry] = deque()

    def add(self, entry: StubEntry, once: bool = False) -> None:
        if once:
            self.one_shot.append(entry)
        else:
            self.persistent.append(entry)

    def resolve(
        self, args: tuple[Any, ...], kwargs: Mapping[str, Any]
    ) -> "Action | NoMatch":
        for entry in self.one_shot:
            if entry.matcher.matches(args, kwargs):
                self.one_shot.remove(entry)
                return entry.action

        for entry in reversed(self.persistent):
            if entry.matcher.matches(args, kwargs):
                return entry.action

        return NoMatch.NO_MATCH

    def __len__(self) -> int:
        return len(self.persistent) + len(self.one_shot)


class StubRegistry:
    """Member name -> ``MemberStubs`` for one double."""

    def __init__(self, owner: str = "double"):
        self.owner = owner
        self._members: dict[str, MemberStubs] = {}

    def add(self, member: str, entry: StubEntry, once: bool = False) -> None:
        """Append a stub entry for ``member``."""
        self._members.setdefault(member, MemberStubs()).add(entry, once=once)
        logger.debug(
            f"Stubbed {self.owner}.{member}({entry.matcher.describe()}) -> "
            f"{entry.action.describe()}{' once' if once else ''}"
        )

    def resolve(
        self, member: str, args: tuple[Any, ...], kwargs: Mapping[str, Any]
    ) -> "Action | NoMatch":
        """Select the action for a call, consuming one-shot entries."""
        stubs = self._members.get(member)
        if stubs is None:
            return NoMatch.NO_MATCH
        return stubs.resolve(args, kwargs)

    def has_stubs(self, member: str) -> bool:
        stubs = self._members.get(member)
        return stubs is not None and len(stubs) > 0

    def clear(self) -> None:
        """Forget every declared behavior."""
        logger.debug(f"Clearing stubs for {self.owner}")
        self._members.clear()
