"""Argument matchers.

A declaring call such as ``double.foo(10, anything())`` is turned into an
``ArgumentListMatcher``: one matcher per positional argument and one per
keyword argument. Plain values are wrapped in ``Equals``; matcher objects
are used as they are.

Matching is strict about shape: a call must supply exactly as many
positional arguments, and exactly the same keyword names, as the
declaration did.
"""

import re
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from typing import Any


class Matcher(ABC):
    """Predicate over a single argument value."""

    @abstractmethod
    def matches(self, value: Any) -> bool:
        """Does ``value`` satisfy this matcher?"""

    @abstractmethod
    def describe(self) -> str:
        """Short description used in failure messages."""

    def __repr__(self) -> str:
        return self.describe()


class Anything(Matcher):
    """Accepts every value, ``None`` included."""

    def matches(self, value: Any) -> bool:
        return True

    def describe(self) -> str:
        return "anything()"


class Equals(Matcher):
    """Literal matcher using ``==`` (deep for containers and dataclasses)."""

    def __init__(self, expected: Any):
        self.expected = expected

    def matches(self, value: Any) -> bool:
        try:
            return bool(value == self.expected)
        except Exception:
            # Types whose __eq__ refuses foreign operands simply don't match.
            return False

    def describe(self) -> str:
        return repr(self.expected)


class StrictEqual(Matcher):
    """Identity matcher."""

    def __init__(self, expected: Any):
        self.expected = expected

    def matches(self, value: Any) -> bool:
        return value is self.expected

    def describe(self) -> str:
        return f"strict_equal({self.expected!r})"


class Predicate(Matcher):
    """Calls a user function on the candidate value."""

    def __init__(self, predicate: Callable[[Any], bool], description: str | None = None):
        if not callable(predicate):
            raise TypeError(f"predicate must be callable, got {predicate!r}")
        self.predicate = predicate
        self.description = description or getattr(predicate, "__name__", "predicate")

    def matches(self, value: Any) -> bool:
        return bool(self.predicate(value))

    def describe(self) -> str:
        return f"arg_that({self.description})"


class InstanceOf(Matcher):
    def __init__(self, *classes: type):
        if not classes:
            raise TypeError("instance_of() needs at least one class")
        self.classes = classes

    def matches(self, value: Any) -> bool:
        return isinstance(value, self.classes)

    def describe(self) -> str:
        names = ", ".join(cls.__name__ for cls in self.classes)
        return f"instance_of({names})"


class AnyNumber(Matcher):
    def matches(self, value: Any) -> bool:
        # bool is an int subclass but is never meant as a number here
        return isinstance(value, (int, float, complex)) and not isinstance(value, bool)

    def describe(self) -> str:
        return "any_number()"


class AnyString(Matcher):
    def matches(self, value: Any) -> bool:
        return isinstance(value, str)

    def describe(self) -> str:
        return "any_string()"


class AnyFunction(Matcher):
    def matches(self, value: Any) -> bool:
        return callable(value) and not isinstance(value, type)

    def describe(self) -> str:
        return "any_function()"


class NotNone(Matcher):
    def matches(self, value: Any) -> bool:
        return value is not None

    def describe(self) -> str:
        return "not_none()"


class Between(Matcher):
    """Inclusive range check."""

    def __init__(self, low: Any, high: Any):
        if high < low:
            raise ValueError(f"between() needs low <= high, got {low!r} > {high!r}")
        self.low = low
        self.high = high

    def matches(self, value: Any) -> bool:
        try:
            return bool(self.low <= value <= self.high)
        except TypeError:
            return False

    def describe(self) -> str:
        return f"between({self.low!r}, {self.high!r})"


class MatchesRegex(Matcher):
    def __init__(self, pattern: str | re.Pattern[str]):
        self.pattern = re.compile(pattern) if isinstance(pattern, str) else pattern

    def matches(self, value: Any) -> bool:
        return isinstance(value, str) and self.pattern.search(value) is not None

    def describe(self) -> str:
        return f"matches_regex({self.pattern.pattern!r})"


class ObjectContaining(Matcher):
    """Accepts mappings (or objects) that contain the expected items.

    Expected values may themselves be matchers.
    """

    def __init__(self, expected: Mapping[str, Any]):
        self.expected = {key: as_matcher(value) for key, value in expected.items()}

    def matches(self, value: Any) -> bool:
        for key, matcher in self.expected.items():
            if isinstance(value, Mapping):
                if key not in value:
                    return False
                candidate = value[key]
            else:
                if not hasattr(value, key):
                    return False
                candidate = getattr(value, key)
            if not matcher.matches(candidate):
                return False
        return True

    def describe(self) -> str:
        items = ", ".join(f"{key!r}: {m.describe()}" for key, m in self.expected.items())
        return f"object_containing({{{items}}})"


def as_matcher(value: Any) -> Matcher:
    """Use matchers as they are, wrap everything else in ``Equals``."""
    if isinstance(value, Matcher):
        return value
    return Equals(value)


class ArgumentListMatcher:
    """Matches a whole call: positional and keyword arguments."""

    def __init__(self, args: tuple[Any, ...] = (), kwargs: Mapping[str, Any] | None = None):
        self.args: tuple[Matcher, ...] = tuple(as_matcher(arg) for arg in args)
        self.kwargs: dict[str, Matcher] = {
            key: as_matcher(value) for key, value in (kwargs or {}).items()
        }

    def matches(self, args: tuple[Any, ...], kwargs: Mapping[str, Any] | None = None) -> bool:
        kwargs = kwargs or {}
        if len(args) != len(self.args):
            return False
        if set(kwargs) != set(self.kwargs):
            return False
        for matcher, value in zip(self.args, args):
            if not matcher.matches(value):
                return False
        for key, matcher in self.kwargs.items():
            if not matcher.matches(kwargs[key]):
                return False
        return True

    def describe(self) -> str:
        parts = [matcher.describe() for matcher in self.args]
        parts.extend(f"{key}={matcher.describe()}" for key, matcher in self.kwargs.items())
        return ", ".join(parts)

    def __repr__(self) -> str:
        return f"ArgumentListMatcher({self.describe()})"


# ============================================================================
# Factories
# ============================================================================


def anything() -> Matcher:
    """Wildcard for one argument position."""
    return Anything()


ANY = Anything()
_ = ANY


def arg_that(predicate: Callable[[Any], bool], description: str | None = None) -> Matcher:
    """Custom predicate matcher."""
    return Predicate(predicate, description)


def strict_equal(expected: Any) -> Matcher:
    return StrictEqual(expected)


def instance_of(*classes: type) -> Matcher:
    return InstanceOf(*classes)


def any_number() -> Matcher:
    return AnyNumber()


def any_string() -> Matcher:
    return AnyString()


def any_function() -> Matcher:
    return AnyFunction()


def not_none() -> Matcher:
    return NotNone()


def between(low: Any, high: Any) -> Matcher:
    return Between(low, high)


def matches_regex(pattern: str | re.Pattern[str]) -> Matcher:
    return MatchesRegex(pattern)


def object_containing(expected: Mapping[str, Any]) -> Matcher:
    return ObjectContaining(expected)


__all__ = [
    "ANY",
    "ArgumentListMatcher",
    "Matcher",
    "any_function",
    "any_number",
    "any_string",
    "anything",
    "arg_that",
    "as_matcher",
    "between",
    "instance_of",
    "matches_regex",
    "not_none",
    "object_containing",
    "strict_equal",
]
