"""Verification engine.

Counts and orders the records of a call ledger. Only sequence numbers
are compared, never timestamps.

Ordering policy: ``a.called_before(b)`` holds when at least one record
matching ``a`` has a lower sequence number than at least one record
matching ``b``; ``called_after`` is the mirror image. Either side having
no matching records is a failure.
"""

import logging

from .errors import CallCountError, CallOrderError, NoCallsError
from .interception import CallExpression
from .models import CallRecord

logger = logging.getLogger(__name__)


def _plural(count: int) -> str:
    return f"{count} time" if count == 1 else f"{count} times"


class Verification:
    """Assertions over the calls matching one call expression."""

    def __init__(self, expression: CallExpression, report_limit: int = 10):
        self.expression = expression
        self.report_limit = report_limit

    def matching_calls(self) -> list[CallRecord]:
        expression = self.expression
        return expression.double.ledger.matching(expression.member, expression.matcher)

    def _recorded_calls(self) -> str:
        """Other calls to the same member, to explain a mismatch."""
        records = self.expression.double.ledger.all_for(self.expression.member)
        if not records:
            return f"{self.expression.member} was never called."
        shown = records[: self.report_limit]
        lines = [f"Recorded calls to {self.expression.member}:"]
        lines.extend(f"  #{record.sequence} {record.describe()}" for record in shown)
        if len(records) > len(shown):
            lines.append(f"  ... and {len(records) - len(shown)} more")
        return "\n".join(lines)

    def _check(self, accepted: bool, expected: str) -> "Verification":
        actual = len(self.matching_calls())
        if accepted:
            return self
        description = self.expression.describe()
        message = (
            f"Expected {description} to be called {expected}, "
            f"but was called {_plural(actual)}.\n{self._recorded_calls()}"
        )
        logger.debug(message)
        if actual == 0:
            raise NoCallsError(message, member=self.expression.member)
        raise CallCountError(
            message, member=self.expression.member, expected=expected, actual=actual
        )

    # ========================================================================
    # Counts
    # ========================================================================

    def times(self, expected: int) -> "Verification":
        if expected < 0:
            raise ValueError(f"times() needs a non-negative count, got {expected}")
        return self._check(len(self.matching_calls()) == expected, _plural(expected))

    def once(self) -> "Verification":
        return self.times(1)

    def twice(self) -> "Verification":
        return self.times(2)

    def thrice(self) -> "Verification":
        return self.times(3)

    def never(self) -> "Verification":
        return self.times(0)

    def at_least(self, minimum: int) -> "Verification":
        if minimum < 0:
            raise ValueError(f"at_least() needs a non-negative count, got {minimum}")
        return self._check(
            len(self.matching_calls()) >= minimum, f"at least {_plural(minimum)}"
        )

    def at_most(self, maximum: int) -> "Verification":
        if maximum < 0:
            raise ValueError(f"at_most() needs a non-negative count, got {maximum}")
        return self._check(
            len(self.matching_calls()) <= maximum, f"at most {_plural(maximum)}"
        )

    def called(self) -> "Verification":
        return self.at_least(1)

    # ========================================================================
    # Ordering
    # ========================================================================

    def _both_sides(self, other: CallExpression) -> tuple[list[CallRecord], list[CallRecord]]:
        mine = self.matching_calls()
        theirs = other.double.ledger.matching(other.member, other.matcher)
        for expression, records in ((self.expression, mine), (other, theirs)):
            if not records:
                message = (
                    f"Cannot compare the order of {self.expression.describe()} and "
                    f"{other.describe()}: {expression.describe()} was never called."
                )
                logger.debug(message)
                raise NoCallsError(message, member=expression.member)
        return mine, theirs

    def called_before(self, other: CallExpression) -> "Verification":
        mine, theirs = self._both_sides(other)
        if min(r.sequence for r in mine) < max(r.sequence for r in theirs):
            return self
        raise CallOrderError(
            f"Expected {self.expression.describe()} to be called before "
            f"{other.describe()}, but every call to it came later.",
            first=self.expression.describe(),
            second=other.describe(),
        )

    def called_after(self, other: CallExpression) -> "Verification":
        mine, theirs = self._both_sides(other)
        if max(r.sequence for r in mine) > min(r.sequence for r in theirs):
            return self
        raise CallOrderError(
            f"Expected {self.expression.describe()} to be called after "
            f"{other.describe()}, but every call to it came earlier.",
            first=self.expression.describe(),
            second=other.describe(),
        )
