"""Stub actions.

Return and throw actions are synchronous. Resolve and reject actions hand
back an awaitable whose outcome is fixed at call time but only surfaces
once the event loop has had a turn, the way a settled future would.

Every action holding several values consumes one value per call and keeps
repeating the last one once the sequence is exhausted.
"""

import asyncio
from collections.abc import Callable, Mapping
from typing import Any

from .ports import Action


class SettledAwaitable:
    """Awaitable carrying a value or an exception decided in advance.

    Unlike a coroutine object it can be dropped without being awaited
    and awaited more than once.
    """

    __slots__ = ("_value", "_error")

    def __init__(self, value: Any = None, error: BaseException | type[BaseException] | None = None):
        self._value = value
        self._error = error

    def __await__(self):
        yield from asyncio.sleep(0).__await__()
        if self._error is not None:
            raise self._error
        return self._value

    def __repr__(self) -> str:
        if self._error is not None:
            return f"<SettledAwaitable rejected with {self._error!r}>"
        return f"<SettledAwaitable resolved with {self._value!r}>"


class _SequencedAction(Action):
    """Action that walks through its values, clamping at the last one."""

    verb = "sequence"

    def __init__(self, values: tuple[Any, ...]):
        if not values:
            raise ValueError(f"{type(self).__name__} needs at least one value")
        self.values = values
        self._position = 0

    def next_value(self) -> Any:
        value = self.values[self._position]
        if self._position < len(self.values) - 1:
            self._position += 1
        return value

    def describe(self) -> str:
        rendered = ", ".join(repr(value) for value in self.values)
        return f"{self.verb}({rendered})"


class ReturnValue(_SequencedAction):
    verb = "return"

    def __init__(self, *values: Any):
        super().__init__(values or (None,))

    def execute(self, args: tuple[Any, ...], kwargs: Mapping[str, Any]) -> Any:
        return self.next_value()


class ThrowError(_SequencedAction):
    verb = "throw"

    def __init__(self, *errors: BaseException | type[BaseException]):
        super().__init__(errors)

    def execute(self, args: tuple[Any, ...], kwargs: Mapping[str, Any]) -> Any:
        raise self.next_value()


class ResolveWith(_SequencedAction):
    verb = "resolve"

    def __init__(self, *values: Any):
        super().__init__(values or (None,))

    def execute(self, args: tuple[Any, ...], kwargs: Mapping[str, Any]) -> SettledAwaitable:
        return SettledAwaitable(value=self.next_value())


class RejectWith(_SequencedAction):
    verb = "reject"

    def __init__(self, *errors: BaseException | type[BaseException]):
        super().__init__(errors)

    def execute(self, args: tuple[Any, ...], kwargs: Mapping[str, Any]) -> SettledAwaitable:
        return SettledAwaitable(error=self.next_value())


class InvokeFunction(Action):
    """Delegates the call to a user function with the actual arguments."""

    def __init__(self, function: Callable[..., Any]):
        if not callable(function):
            raise TypeError(f"then_call() needs a callable, got {function!r}")
        self.function = function

    def execute(self, args: tuple[Any, ...], kwargs: Mapping[str, Any]) -> Any:
        return self.function(*args, **kwargs)

    def describe(self) -> str:
        return f"call({getattr(self.function, '__name__', repr(self.function))})"


__all__ = [
    "InvokeFunction",
    "RejectWith",
    "ResolveWith",
    "ReturnValue",
    "SettledAwaitable",
    "ThrowError",
]
