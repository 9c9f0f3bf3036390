"""Core engine of the understudy test-double library.

This package contains zero external dependencies and holds the
interception, stub-resolution and verification logic. The declaration
surface (``mock``, ``spy``, ``when``, ...) lives in ``understudy.api``.
"""

from .errors import (
    ArgumentError,
    CallCountError,
    CallOrderError,
    CaptureError,
    DoubleConstructionError,
    NoCallsError,
    UnderstudyError,
    UnknownMemberError,
    VerificationFailure,
)
from .models import (
    CallRecord,
    MemberDescriptor,
    MemberKind,
    MemberOverride,
    NoMatch,
    StubEntry,
)

__all__ = [
    "ArgumentError",
    "CallCountError",
    "CallOrderError",
    "CallRecord",
    "CaptureError",
    "DoubleConstructionError",
    "MemberDescriptor",
    "MemberKind",
    "MemberOverride",
    "NoCallsError",
    "NoMatch",
    "StubEntry",
    "UnderstudyError",
    "UnknownMemberError",
    "VerificationFailure",
]
