"""Value types for the understudy test-double engine.

All models in this module use only Python standard library types,
ensuring zero external dependencies in the core domain.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType, ModuleType
from typing import Any, TYPE_CHECKING

if TYPE_CHECKING:
    from .matchers import ArgumentListMatcher
    from .ports import Action


class MemberKind(Enum):
    """How a member of a double is reached by the code under test."""

    METHOD = "method"
    PROPERTY = "property"


class NoMatch(Enum):
    """Signal returned by stub resolution when no entry accepts a call.

    Never raised and never returned to user code: interception turns it
    into a default value (mocks) or a passthrough (spies).
    """

    NO_MATCH = "no-match"


class _Missing(Enum):
    """Marker for a member that did not exist before it was overridden."""

    MISSING = "missing"


MISSING = _Missing.MISSING


@dataclass(frozen=True)
class MemberDescriptor:
    """One entry of a double's member table."""

    name: str
    kind: MemberKind
    is_async: bool = False

    def __post_init__(self) -> None:
        """Validate descriptor invariants on creation."""
        if not self.name or not self.name.strip():
            raise ValueError("name must be a non-empty string")


def format_arguments(args: tuple[Any, ...], kwargs: Mapping[str, Any]) -> str:
    """Render an argument list the way it would be written in a call."""
    parts = [repr(arg) for arg in args]
    parts.extend(f"{key}={value!r}" for key, value in kwargs.items())
    return ", ".join(parts)


@dataclass(frozen=True)
class CallRecord:
    """A single invocation recorded in a call ledger.

    The sequence number is unique and strictly increasing across every
    ledger in the process, so records of different doubles can be ordered.
    """

    member: str
    args: tuple[Any, ...]
    kwargs: dict[str, Any] | MappingProxyType[str, Any]  # converted to proxy in __post_init__
    sequence: int

    def __post_init__(self) -> None:
        """Freeze the argument containers."""
        if not isinstance(self.args, tuple):
            object.__setattr__(self, "args", tuple(self.args))
        if isinstance(self.kwargs, dict):
            object.__setattr__(
                self, "kwargs", MappingProxyType(dict(self.kwargs))
            )
        if self.sequence < 1:
            raise ValueError(f"sequence must be >= 1, got {self.sequence}")

    def describe(self) -> str:
        """Human-readable form, e.g. ``foo(10, flag=True)``."""
        return f"{self.member}({format_arguments(self.args, self.kwargs)})"


@dataclass(eq=False)
class StubEntry:
    """A declared behavior guarded by an argument matcher."""

    matcher: "ArgumentListMatcher"
    action: "Action"


@dataclass
class MemberOverride:
    """One monkey-patch performed while wrapping a real object.

    ``original`` is the raw attribute found in the owner's own namespace
    before patching, or ``MISSING`` when the owner did not define it (the
    member was inherited or reached through the class). Restoring a
    ``MISSING`` override deletes the member instead of reassigning it.
    """

    owner: Any
    name: str
    original: Any
    replacement: Any
    applied: bool = field(default=False)

    def apply(self) -> None:
        """Install the replacement on the owner."""
        _assign(self.owner, self.name, self.replacement)
        self.applied = True

    def restore(self) -> None:
        """Put the owner back exactly as it was before ``apply``."""
        if not self.applied:
            return
        if self.original is MISSING:
            _remove(self.owner, self.name)
        else:
            _assign(self.owner, self.name, self.original)
        self.applied = False


def _plain_setattr(owner: Any) -> bool:
    return isinstance(owner, (type, ModuleType))


def _assign(owner: Any, name: str, value: Any) -> None:
    # object.__setattr__ skips frozen dataclass guards and custom __setattr__.
    if _plain_setattr(owner):
        setattr(owner, name, value)
    else:
        object.__setattr__(owner, name, value)


def _remove(owner: Any, name: str) -> None:
    if _plain_setattr(owner):
        delattr(owner, name)
    else:
        object.__delattr__(owner, name)
