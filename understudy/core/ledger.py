"""Append-only call ledger.

Every invocation that reaches a double is recorded here before any stub
runs, so the ledger also reflects calls that raised or were rejected.
"""

import itertools
import logging
import threading
from collections.abc import Mapping
from typing import Any, TYPE_CHECKING

from .models import CallRecord

if TYPE_CHECKING:
    from .matchers import ArgumentListMatcher

logger = logging.getLogger(__name__)

# One clock for the whole process: sequence numbers of different ledgers
# must be comparable for cross-double ordering checks.
_sequence = itertools.count(1)
_sequence_lock = threading.Lock()


class CallLedger:
    """Ordered log of the calls made against a single double."""

    def __init__(self, owner: str = "double"):
        self.owner = owner
        self._records: list[CallRecord] = []

    def record(
        self,
        member: str,
        args: tuple[Any, ...],
        kwargs: Mapping[str, Any] | None = None,
    ) -> int:
        """Append a record and return its sequence number."""
        with _sequence_lock:
            sequence = next(_sequence)
            self._records.append(
                CallRecord(
                    member=member,
                    args=tuple(args),
                    kwargs=dict(kwargs or {}),
                    sequence=sequence,
                )
            )
        return sequence

    def all(self) -> list[CallRecord]:
        """Every record, oldest first."""
        return list(self._records)

    def all_for(self, member: str) -> list[CallRecord]:
        """Records for one member, oldest first."""
        return [record for record in self._records if record.member == member]

    def matching(
        self, member: str, matcher: "ArgumentListMatcher"
    ) -> list[CallRecord]:
        """Records for one member whose arguments satisfy ``matcher``."""
        return [
            record
            for record in self._records
            if record.member == member
            and matcher.matches(record.args, record.kwargs)
        ]

    def count_for(self, member: str, matcher: "ArgumentListMatcher") -> int:
        """Number of records for ``member`` accepted by ``matcher``."""
        return len(self.matching(member, matcher))

    def clear(self) -> None:
        """Forget every record."""
        logger.debug(f"Clearing {len(self._records)} call(s) recorded for {self.owner}")
        self._records.clear()

    def __len__(self) -> int:
        return len(self._records)
