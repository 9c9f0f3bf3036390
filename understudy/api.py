"""Declaration surface of the understudy test-double library.

This module is the only place that wires the core pieces together for
test authors: it builds doubles, turns call expressions into stub
entries, and hands verifications the configured report limit.

Typical use::

    foo = mock(Foo)
    when(foo.convert(10)).then_return("ten")
    code_under_test(instance(foo))
    verify(foo.convert(10)).once()

    real = Real()
    spied = spy(real)
    when(spied.bar()).then_return(42)
    assert real.bar() == 42
    reset(spied)
"""

import logging
from collections.abc import Callable
from typing import Any

from understudy.config import get_settings
from understudy.core.actions import (
    InvokeFunction,
    RejectWith,
    ResolveWith,
    ReturnValue,
    ThrowError,
)
from understudy.core.capture import ArgCaptor
from understudy.core.errors import ArgumentError
from understudy.core.interception import (
    CallExpression,
    DoubleHandle,
    MemberReference,
    SyntheticDouble,
    WrappingDouble,
    double_of,
    double_registry,
)
from understudy.core.models import StubEntry
from understudy.core.ports import Action, Double
from understudy.core.verification import Verification

logger = logging.getLogger(__name__)


def _expression(candidate: Any, caller: str) -> CallExpression:
    if isinstance(candidate, CallExpression):
        return candidate
    if isinstance(candidate, MemberReference):
        raise ArgumentError(
            f"{caller}() needs a call, not a method reference: "
            f"use {caller}(double.{candidate.member}(...))"
        )
    raise ArgumentError(
        f"{caller}() needs a call on a mock or spy handle, got {candidate!r}"
    )


# ============================================================================
# Construction
# ============================================================================


def mock(spec: Any = None) -> DoubleHandle:
    """Create a synthetic double.

    Args:
        spec: Class to imitate, or an exemplar instance whose class and own
            attributes define the members. Without a spec every member
            name is accepted.

    Returns:
        Handle used with ``when``/``verify``; pass ``instance(handle)`` to
        the code under test.
    """
    return DoubleHandle(SyntheticDouble(spec))


def spy(target: Any) -> DoubleHandle:
    """Wrap a real object, class, module or function.

    The real object keeps its behavior until stubbed. Spying twice on the
    same target returns a handle on the same double.

    Raises:
        DoubleConstructionError: If a member that must be overridden is
            read-only.
    """
    existing = double_registry.spy_for(target)
    if existing is not None:
        existing.attach()
        return DoubleHandle(existing)
    return DoubleHandle(WrappingDouble(target))


def instance(double: Any) -> Any:
    """The object to hand to the code under test."""
    return double_of(double).instance()


# ============================================================================
# Stubbing
# ============================================================================


class StubBuilder:
    """Appends stub entries for the member and arguments of one expression."""

    def __init__(self, expression: CallExpression):
        self.expression = expression

    def _add(self, action: Action, once: bool = False) -> "StubBuilder":
        expression = self.expression
        expression.double.stubs.add(
            expression.member,
            StubEntry(matcher=expression.matcher, action=action),
            once=once,
        )
        return self

    def _add_each_once(self, factory: Callable[[Any], Action], values: tuple[Any, ...]) -> "StubBuilder":
        for value in values:
            self._add(factory(value), once=True)
        return self

    def then_return(self, *values: Any) -> "StubBuilder":
        """Return the values on successive calls, repeating the last one."""
        return self._add(ReturnValue(*values))

    def then_return_once(self, *values: Any) -> "StubBuilder":
        return self._add_each_once(ReturnValue, values or (None,))

    def then_throw(self, *errors: BaseException | type[BaseException]) -> "StubBuilder":
        if not errors:
            raise ArgumentError("then_throw() needs at least one exception")
        return self._add(ThrowError(*errors))

    def then_throw_once(self, *errors: BaseException | type[BaseException]) -> "StubBuilder":
        if not errors:
            raise ArgumentError("then_throw_once() needs at least one exception")
        return self._add_each_once(ThrowError, errors)

    def then_resolve(self, *values: Any) -> "StubBuilder":
        """Return awaitables resolving to the values on successive calls."""
        return self._add(ResolveWith(*values))

    def then_resolve_once(self, *values: Any) -> "StubBuilder":
        return self._add_each_once(ResolveWith, values or (None,))

    def then_reject(self, *errors: BaseException | type[BaseException]) -> "StubBuilder":
        if not errors:
            raise ArgumentError("then_reject() needs at least one exception")
        return self._add(RejectWith(*errors))

    def then_reject_once(self, *errors: BaseException | type[BaseException]) -> "StubBuilder":
        if not errors:
            raise ArgumentError("then_reject_once() needs at least one exception")
        return self._add_each_once(RejectWith, errors)

    def then_call(self, function: Callable[..., Any]) -> "StubBuilder":
        """Delegate matching calls to ``function`` with the actual arguments."""
        return self._add(InvokeFunction(function))

    def then_call_once(self, function: Callable[..., Any]) -> "StubBuilder":
        return self._add(InvokeFunction(function), once=True)


def when(expression: Any) -> StubBuilder:
    """Start stubbing the member and arguments of ``expression``.

    A spy that has been reset is attached to its target again.
    """
    expression = _expression(expression, "when")
    if isinstance(expression.double, WrappingDouble):
        expression.double.attach()
    return StubBuilder(expression)


# ============================================================================
# Verification and capture
# ============================================================================


def verify(expression: Any) -> Verification:
    """Assertions over the recorded calls matching ``expression``."""
    return Verification(
        _expression(expression, "verify"),
        report_limit=get_settings().max_reported_calls,
    )


def capture(member: Any) -> ArgCaptor:
    """Arguments recorded for a member: ``capture(double.foo).last()``.

    Accepts a method reference, a property expression, or the handle of a
    spied function.
    """
    if isinstance(member, (MemberReference, CallExpression)):
        return ArgCaptor(member.double, member.member)
    if isinstance(member, DoubleHandle):
        double = double_of(member)
        double.resolve_member("__call__")
        return ArgCaptor(double, "__call__")
    raise ArgumentError(f"capture() needs a member of a mock or spy, got {member!r}")


# ============================================================================
# Reset
# ============================================================================


def _doubles(candidates: tuple[Any, ...]) -> list[Double]:
    if not candidates:
        raise ArgumentError("Pass at least one mock or spy to reset")
    return [double_of(candidate) for candidate in candidates]


def reset(*doubles: Any) -> None:
    """Clear calls and stubs; spies also get their original members back."""
    for double in _doubles(doubles):
        logger.debug(f"Resetting {double.name}")
        double.reset()


def reset_stubs(*doubles: Any) -> None:
    """Clear stubs only; recorded calls stay queryable."""
    for double in _doubles(doubles):
        double.reset_stubs()


def reset_calls(*doubles: Any) -> None:
    """Clear recorded calls only; stubs stay active."""
    for double in _doubles(doubles):
        double.reset_calls()


def reset_all() -> int:
    """Reset every live double and return how many there were."""
    return double_registry.reset_all()


__all__ = [
    "StubBuilder",
    "capture",
    "instance",
    "mock",
    "reset",
    "reset_all",
    "reset_calls",
    "reset_stubs",
    "spy",
    "verify",
    "when",
]
