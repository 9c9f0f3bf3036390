"""understudy: mocks and spies with stub resolution and call verification.

Create a synthetic stand-in with ``mock(SomeClass)`` or wrap a real object
with ``spy(obj)``, declare behavior with ``when(...)``, and check what
happened with ``verify(...)`` and ``capture(...)``.
"""

from understudy.api import (
    StubBuilder,
    capture,
    instance,
    mock,
    reset,
    reset_all,
    reset_calls,
    reset_stubs,
    spy,
    verify,
    when,
)
from understudy.core.errors import (
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
from understudy.core.matchers import (
    ANY,
    Matcher,
    _,
    any_function,
    any_number,
    any_string,
    anything,
    arg_that,
    between,
    instance_of,
    matches_regex,
    not_none,
    object_containing,
    strict_equal,
)

__version__ = "0.1.0"

__all__ = [
    "ANY",
    "ArgumentError",
    "CallCountError",
    "CallOrderError",
    "CaptureError",
    "DoubleConstructionError",
    "Matcher",
    "NoCallsError",
    "StubBuilder",
    "UnderstudyError",
    "UnknownMemberError",
    "VerificationFailure",
    "_",
    "any_function",
    "any_number",
    "any_string",
    "anything",
    "arg_that",
    "between",
    "capture",
    "instance",
    "instance_of",
    "matches_regex",
    "mock",
    "not_none",
    "object_containing",
    "reset",
    "reset_all",
    "reset_calls",
    "reset_stubs",
    "spy",
    "strict_equal",
    "verify",
    "when",
]
