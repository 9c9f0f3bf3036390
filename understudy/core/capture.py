"""Argument capture over a call ledger."""

from typing import Any

from .errors import CaptureError
from .models import CallRecord
from .ports import Double


class ArgCaptor:
    """Positional arguments of every recorded call to one member.

    Reads the ledger lazily, so calls made after the captor was created
    are visible too.
    """

    def __init__(self, double: Double, member: str):
        self.double = double
        self.member = member

    def calls(self) -> list[CallRecord]:
        return self.double.ledger.all_for(self.member)

    def all(self) -> list[tuple[Any, ...]]:
        return [record.args for record in self.calls()]

    def by_call_index(self, index: int) -> tuple[Any, ...]:
        """Arguments of the ``index``-th call (0-based; negatives count from the end)."""
        calls = self.calls()
        try:
            return calls[index].args
        except IndexError:
            raise CaptureError(self.member, index, len(calls)) from None

    def first(self) -> tuple[Any, ...]:
        return self.by_call_index(0)

    def second(self) -> tuple[Any, ...]:
        return self.by_call_index(1)

    def third(self) -> tuple[Any, ...]:
        return self.by_call_index(2)

    def before_last(self) -> tuple[Any, ...]:
        return self.by_call_index(-2)

    def last(self) -> tuple[Any, ...]:
        return self.by_call_index(-1)

    def __len__(self) -> int:
        return len(self.calls())
