"""Error taxonomy for the understudy test-double engine.

Errors derive from both ``UnderstudyError`` and the builtin exception a
caller would naturally expect (``AttributeError`` for unknown members,
``AssertionError`` for verification failures), so test frameworks and
``hasattr`` keep working.
"""


class UnderstudyError(Exception):
    """Base class for every error raised by the engine itself."""


class UnknownMemberError(UnderstudyError, AttributeError):
    """A member was used that the double's type does not define."""

    def __init__(self, double_name: str, member: str):
        self.double_name = double_name
        self.member = member
        super().__init__(f"{double_name} has no member named {member!r}")


class DoubleConstructionError(UnderstudyError):
    """A real object could not be wrapped by a spy."""

    def __init__(self, target: str, member: str | None, reason: str):
        self.target = target
        self.member = member
        where = f"{target}.{member}" if member else target
        super().__init__(f"Cannot spy on {where}: {reason}")


class ArgumentError(UnderstudyError, TypeError):
    """The declaration surface was used with something it cannot accept."""


class CaptureError(UnderstudyError, IndexError):
    """No recorded call exists at the requested position."""

    def __init__(self, member: str, index: int, available: int):
        self.member = member
        self.index = index
        self.available = available
        super().__init__(
            f"No call #{index} recorded for {member}: "
            f"{available} call(s) were captured"
        )


class VerificationFailure(UnderstudyError, AssertionError):
    """Base class for failed verifications."""


class NoCallsError(VerificationFailure):
    """The verified expression was never called."""

    def __init__(self, message: str, member: str):
        self.member = member
        super().__init__(message)


class CallCountError(VerificationFailure):
    """The verified expression was called a different number of times."""

    def __init__(self, message: str, member: str, expected: str, actual: int):
        self.member = member
        self.expected = expected
        self.actual = actual
        super().__init__(message)


class CallOrderError(VerificationFailure):
    """Two expressions were called, but not in the expected order."""

    def __init__(self, message: str, first: str, second: str):
        self.first = first
        self.second = second
        super().__init__(message)


__all__ = [
    "ArgumentError",
    "CallCountError",
    "CallOrderError",
    "CaptureError",
    "DoubleConstructionError",
    "NoCallsError",
    "UnderstudyError",
    "UnknownMemberError",
    "VerificationFailure",
]
