"""Tests for member tables, synthetic instances and spy overrides."""

import logging
import types

import pytest

from understudy.core.actions import ReturnValue
from understudy.core.errors import (
    ArgumentError,
    DoubleConstructionError,
    UnknownMemberError,
)
from understudy.core.interception import (
    CallExpression,
    DoubleHandle,
    MemberReference,
    SyntheticDouble,
    WrappingDouble,
    build_member_table,
    double_of,
)
from understudy.core.matchers import ArgumentListMatcher
from understudy.core.models import MISSING, MemberKind, MemberOverride, StubEntry
from understudy.tests.fakes import Foo, Point, Real


# ============================================================================
# Member tables
# ============================================================================


def test_member_table_classifies_class_members() -> None:
    table = build_member_table(Foo)

    assert table["get_bar"].kind is MemberKind.METHOD
    assert table["version"].kind is MemberKind.METHOD
    assert table["create"].kind is MemberKind.METHOD
    assert table["twice_bar"].kind is MemberKind.PROPERTY
    assert table["fetch"].is_async
    assert not table["get_bar"].is_async
    assert table["dynamic_method"].kind is MemberKind.METHOD
    assert not any(name.startswith("__") for name in table)


def test_member_table_includes_dataclass_fields() -> None:
    table = build_member_table(Point)

    assert table["x"].kind is MemberKind.PROPERTY
    assert table["y"].kind is MemberKind.PROPERTY
    assert table["distance_to"].kind is MemberKind.METHOD


def test_member_table_reads_exemplar_attributes() -> None:
    exemplar = Foo()
    exemplar.added_later = 5
    exemplar.added_callable = len

    table = build_member_table(Foo, exemplar)

    assert table["added_later"].kind is MemberKind.PROPERTY
    assert table["added_callable"].kind is MemberKind.METHOD


def test_member_table_reads_attributes_assigned_in_method_bodies() -> None:
    class Base:
        def __init__(self):
            self.on_event = lambda event: event

    class Widget(Base):
        def __init__(self):
            super().__init__()
            self.size: int = 3

        def configure(this):
            this.render = lambda: "drawn"
            helper = types.SimpleNamespace()
            helper.ignored = 1

        @staticmethod
        def build(target):
            target.not_a_member = 1

    table = build_member_table(Widget)

    assert table["on_event"].kind is MemberKind.METHOD
    assert table["render"].kind is MemberKind.METHOD
    assert table["size"].kind is MemberKind.PROPERTY
    assert "ignored" not in table
    assert "not_a_member" not in table


def test_member_table_includes_user_defined_call() -> None:
    class Handler:
        def __call__(self, event):
            return event

    assert build_member_table(Handler)["__call__"].kind is MemberKind.METHOD
    assert "__call__" not in build_member_table(Foo)


# ============================================================================
# Synthetic doubles
# ============================================================================


def test_synthetic_instance_passes_isinstance_checks() -> None:
    double = SyntheticDouble(Foo)

    assert isinstance(double.instance(), Foo)
    assert double.instance() is double.instance()


def test_synthetic_instance_records_every_call() -> None:
    double = SyntheticDouble(Foo)
    foo = double.instance()

    foo.convert_number_to_string(1)
    foo.sum_two_numbers(1, b=2)
    _ = foo.twice_bar

    assert [r.describe() for r in double.ledger.all()] == [
        "convert_number_to_string(1)",
        "sum_two_numbers(1, b=2)",
        "twice_bar()",
    ]


def test_synthetic_unknown_member_raises() -> None:
    foo = SyntheticDouble(Foo).instance()

    with pytest.raises(UnknownMemberError, match="not_existing_method"):
        foo.not_existing_method()
    assert not hasattr(foo, "another_missing_member")


def test_synthetic_static_and_class_methods_bind_like_the_class() -> None:
    double = SyntheticDouble(Foo)
    mock_class = type(double.instance())

    mock_class.version()
    mock_class.create()
    double.instance().version()

    assert [r.describe() for r in double.ledger.all()] == [
        "version()",
        "create()",
        "version()",
    ]


def test_members_assigned_in_constructor_are_mocked_without_exemplar() -> None:
    double = SyntheticDouble(Foo)
    double.stubs.add(
        "dynamic_method",
        StubEntry(matcher=ArgumentListMatcher(("x",)), action=ReturnValue("y")),
    )

    assert double.instance().dynamic_method("x") == "y"
    assert DoubleHandle(double).dynamic_method("x").describe() == (
        "mock(Foo).dynamic_method('x')"
    )


def test_unmatched_call_on_stubbed_member_is_logged(caplog: pytest.LogCaptureFixture) -> None:
    double = SyntheticDouble(Foo)
    double.stubs.add(
        "convert_number_to_string",
        StubEntry(matcher=ArgumentListMatcher((1,)), action=ReturnValue("one")),
    )

    with caplog.at_level(logging.DEBUG, logger="understudy"):
        double.instance().convert_number_to_string(2)
        double.instance().get_bar()

    messages = [record.getMessage() for record in caplog.records]
    assert "No stub matched mock(Foo).convert_number_to_string(2), falling back" in messages
    assert not any("get_bar" in message for message in messages)


def test_permissive_double_fabricates_methods() -> None:
    double = SyntheticDouble()
    anything_goes = double.instance()

    assert anything_goes.whatever(1) is None
    assert double.members["whatever"].kind is MemberKind.METHOD
    assert [r.member for r in double.ledger.all()] == ["whatever"]


def test_synthetic_property_assignment_is_read_back() -> None:
    double = SyntheticDouble(Point)
    point = double.instance()

    point.x = 5

    assert point.x == 5
    assert point.y is None


def test_reset_clears_assigned_properties() -> None:
    double = SyntheticDouble(Point)
    double.instance().x = 5

    double.reset()

    assert double.instance().x is None


# ============================================================================
# Handles
# ============================================================================


def test_handle_builds_expressions_without_recording() -> None:
    double = SyntheticDouble(Foo)
    handle = DoubleHandle(double)

    reference = handle.convert_number_to_string
    expression = reference(10)
    prop = handle.twice_bar

    assert isinstance(reference, MemberReference)
    assert isinstance(expression, CallExpression)
    assert expression.describe() == "mock(Foo).convert_number_to_string(10)"
    assert isinstance(prop, CallExpression)
    assert prop.describe() == "mock(Foo).twice_bar"
    assert len(double.ledger) == 0


def test_handle_rejects_unknown_members_and_assignment() -> None:
    handle = DoubleHandle(SyntheticDouble(Foo))

    with pytest.raises(UnknownMemberError):
        handle.missing()
    with pytest.raises(ArgumentError):
        handle.get_bar = lambda: "nope"


def test_double_of_finds_double_behind_every_shape() -> None:
    double = SyntheticDouble(Foo)
    handle = DoubleHandle(double)

    assert double_of(handle) is double
    assert double_of(handle.get_bar) is double
    assert double_of(handle.get_bar()) is double
    assert double_of(double.instance()) is double

    with pytest.raises(ArgumentError):
        double_of(object())


# ============================================================================
# Member overrides
# ============================================================================


def test_override_of_missing_member_is_deleted_on_restore() -> None:
    target = types.SimpleNamespace()
    override = MemberOverride(owner=target, name="added", original=MISSING, replacement=1)

    override.apply()
    assert target.added == 1
    override.restore()

    assert "added" not in vars(target)


def test_override_of_existing_member_is_reassigned_on_restore() -> None:
    original = lambda: "original"  # noqa: E731
    target = types.SimpleNamespace(call=original)
    override = MemberOverride(owner=target, name="call", original=original, replacement=None)

    override.apply()
    override.restore()

    assert target.call is original


# ============================================================================
# Wrapping doubles
# ============================================================================


def test_wrapping_instance_swaps_in_subclass_and_restores() -> None:
    real = Real()
    double = WrappingDouble(real)

    assert type(real) is not Real
    assert isinstance(real, Real)
    assert type(real).__name__ == "Real"
    assert "bar" not in vars(real)

    double.reset()

    assert type(real) is Real
    assert vars(real) == {"b": 11}


def test_wrapping_leaves_data_attributes_alone() -> None:
    real = Real()
    double = WrappingDouble(real)

    assert real.b == 11
    assert "b" not in double.members


def test_wrapping_inherited_class_member_is_deleted_on_reset() -> None:
    class Base:
        def hello(self):
            return "hello"

    class Child(Base):
        pass

    double = WrappingDouble(Child)
    assert "hello" in vars(Child)

    double.reset()

    assert "hello" not in vars(Child)
    assert Child().hello() == "hello"


def test_wrapping_read_only_member_is_a_construction_error() -> None:
    class ReadOnly(type):
        def __setattr__(cls, name, value):
            raise AttributeError("read-only class")

    class Locked(metaclass=ReadOnly):
        def ping(self):
            return "pong"

    with pytest.raises(DoubleConstructionError, match="Locked.ping"):
        WrappingDouble(Locked)
    assert Locked().ping() == "pong"


def test_wrapping_function_keeps_function_members() -> None:
    def real_fn(value):
        return value * 2

    double = WrappingDouble(real_fn)
    wrapper = double.instance()

    assert vars(real_fn) == {}
    assert wrapper(4) == 8
    assert wrapper.__name__ == "real_fn"
    assert [r.describe() for r in double.ledger.all()] == ["__call__(4)"]


def test_wrapping_module_functions() -> None:
    module = types.ModuleType("fake_clock")

    def now():
        return 1

    module.now = now
    module.EPOCH = 0
    double = WrappingDouble(module)

    assert module.now() == 1
    assert module.now is not now
    assert "EPOCH" not in double.members

    double.reset()
    assert module.now is now


def test_calls_are_recorded_even_when_passthrough_raises() -> None:
    class Fragile:
        def explode(self):
            raise RuntimeError("boom")

    fragile = Fragile()
    double = WrappingDouble(fragile)

    with pytest.raises(RuntimeError, match="boom"):
        fragile.explode()

    assert [r.member for r in double.ledger.all()] == ["explode"]
    double.reset()
