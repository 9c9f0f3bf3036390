"""Abstract seams of the understudy engine.

These abstract base classes define the boundaries between the pieces of
the engine:

1. **Action**: what a stub does once it has been selected for a call
   (return, raise, settle an awaitable, delegate to a function).

2. **Double**: a stand-in for a real instance. It owns one call ledger and
   one stub registry and knows how to fall back when no stub matches.
   - SyntheticDouble: no real backing, every member is fabricated
   - WrappingDouble: wraps a real object, members pass through by default
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from typing import Any

from .ledger import CallLedger
from .models import MemberDescriptor, MemberKind, NoMatch, format_arguments
from .stubs import StubRegistry

logger = logging.getLogger(__name__)


# ============================================================================
# ACTIONS
# ============================================================================


class Action(ABC):
    """Behavior attached to a stub entry."""

    @abstractmethod
    def execute(self, args: tuple[Any, ...], kwargs: Mapping[str, Any]) -> Any:
        """Run the behavior for one matching call.

        Args:
            args: Positional arguments of the intercepted call.
            kwargs: Keyword arguments of the intercepted call.

        Returns:
            The value handed back to the code under test.

        Raises:
            Whatever the behavior was declared to raise. Actions never
            raise on their own behalf.
        """

    @abstractmethod
    def describe(self) -> str:
        """Short description used in log messages."""


# ============================================================================
# DOUBLES
# ============================================================================


class Double(ABC):
    """A test double: ledger + stubs + member table + fallback policy.

    Subclasses decide what happens on ``NoMatch`` and how the object that
    the code under test talks to is obtained.
    """

    def __init__(self, name: str):
        self.name = name
        self.ledger = CallLedger(owner=name)
        self.stubs = StubRegistry(owner=name)
        self.members: dict[str, MemberDescriptor] = {}

    def invoke(
        self,
        member: str,
        args: tuple[Any, ...],
        kwargs: Mapping[str, Any],
        passthrough: Callable[[], Any] | None = None,
    ) -> Any:
        """Record a call, then run the matching action or fall back.

        The record is appended before any behavior runs, so calls that
        raise are still visible to verification.
        """
        self.ledger.record(member, args, kwargs)
        action = self.stubs.resolve(member, args, kwargs)
        if action is NoMatch.NO_MATCH:
            if self.stubs.has_stubs(member):
                logger.debug(
                    f"No stub matched {self.name}.{member}"
                    f"({format_arguments(args, kwargs)}), falling back"
                )
            return self.fallback(member, args, kwargs, passthrough)
        return action.execute(args, kwargs)

    def is_property(self, member: str) -> bool:
        descriptor = self.members.get(member)
        return descriptor is not None and descriptor.kind is MemberKind.PROPERTY

    def reset_stubs(self) -> None:
        """Forget declared behaviors; recorded calls stay queryable."""
        self.stubs.clear()

    def reset_calls(self) -> None:
        """Forget recorded calls; declared behaviors stay active."""
        self.ledger.clear()

    def reset(self) -> None:
        """Forget calls and behaviors."""
        self.ledger.clear()
        self.stubs.clear()

    @abstractmethod
    def fallback(
        self,
        member: str,
        args: tuple[Any, ...],
        kwargs: Mapping[str, Any],
        passthrough: Callable[[], Any] | None,
    ) -> Any:
        """Produce the result of a call that no stub matched."""

    @abstractmethod
    def instance(self) -> Any:
        """The object handed to the code under test."""

    @abstractmethod
    def resolve_member(self, member: str) -> MemberDescriptor:
        """Descriptor used when a call expression names ``member``.

        Raises:
            UnknownMemberError: If the double cannot stand in for ``member``.
        """
