"""Interception layer: synthetic doubles, wrapping doubles and handles.

A double is driven through two different objects:

- the *handle* returned by ``mock()``/``spy()``. Calling a member on it
  (``handle.foo(1)``) or reading a property (``handle.bar``) never runs
  anything; it builds a ``CallExpression`` that ``when``/``verify``/
  ``capture`` consume.
- the *instance* used by the code under test. For a mock this is a
  generated object whose members funnel into ``Double.invoke``; for a spy
  it is the real object, whose members have been overridden in place.

Spies keep an explicit list of ``MemberOverride`` records so that a reset
puts every touched owner back exactly as it was.
"""

import ast
import functools
import inspect
import logging
import textwrap
import types
from collections.abc import Callable, Iterator, Mapping
from typing import Any

from .actions import SettledAwaitable
from .errors import ArgumentError, DoubleConstructionError, UnknownMemberError
from .matchers import ArgumentListMatcher
from .models import MISSING, MemberDescriptor, MemberKind, MemberOverride
from .ports import Double

logger = logging.getLogger(__name__)

HANDLE_ATTRIBUTE = "_understudy_double"


def _is_dunder(name: str) -> bool:
    return name.startswith("__") and name.endswith("__")


def _is_builtin_class(klass: type) -> bool:
    return klass.__module__ == "builtins"


def _defining_class(cls: type, name: str) -> type | None:
    for klass in cls.__mro__:
        if name in vars(klass):
            return klass
    return None


def _class_members(cls: type) -> Iterator[tuple[str, Any]]:
    """Non-dunder members of ``cls`` not inherited from builtin types."""
    for name in dir(cls):
        if _is_dunder(name):
            continue
        owner = _defining_class(cls, name)
        if owner is None or _is_builtin_class(owner):
            continue
        yield name, inspect.getattr_static(cls, name)


def _annotated_names(klass: type) -> list[str]:
    try:
        return list(inspect.get_annotations(klass))
    except NameError:
        # forward references that cannot be evaluated contribute nothing
        return []


def _receiver_name(function: ast.FunctionDef | ast.AsyncFunctionDef) -> str | None:
    for decorator in function.decorator_list:
        if isinstance(decorator, ast.Name) and decorator.id in ("staticmethod", "classmethod"):
            return None
    positional = function.args.posonlyargs + function.args.args
    return positional[0].arg if positional else None


def _assigned_attributes(klass: type) -> Iterator[tuple[str, bool]]:
    """``self.<name> = ...`` targets in the method bodies of ``klass``.

    Yields the attribute name and whether the assigned value is a lambda.
    Classes without retrievable source contribute nothing.
    """
    try:
        tree = ast.parse(textwrap.dedent(inspect.getsource(klass)))
    except (OSError, TypeError, SyntaxError):
        return
    class_node = next((node for node in tree.body if isinstance(node, ast.ClassDef)), None)
    if class_node is None:
        return
    for function in class_node.body:
        if not isinstance(function, (ast.FunctionDef, ast.AsyncFunctionDef)):
            continue
        receiver = _receiver_name(function)
        if receiver is None:
            continue
        for node in ast.walk(function):
            if isinstance(node, ast.Assign):
                targets, value = node.targets, node.value
            elif isinstance(node, ast.AnnAssign) and node.value is not None:
                targets, value = [node.target], node.value
            else:
                continue
            for target in targets:
                if (
                    isinstance(target, ast.Attribute)
                    and isinstance(target.value, ast.Name)
                    and target.value.id == receiver
                ):
                    yield target.attr, isinstance(value, ast.Lambda)


def _describe_raw(name: str, raw: Any) -> MemberDescriptor:
    """Classify a raw class attribute as a method or a property."""
    if isinstance(raw, (staticmethod, classmethod)):
        return MemberDescriptor(
            name, MemberKind.METHOD, inspect.iscoroutinefunction(raw.__func__)
        )
    if isinstance(raw, (property, functools.cached_property)):
        return MemberDescriptor(name, MemberKind.PROPERTY)
    if inspect.isroutine(raw) or (callable(raw) and not isinstance(raw, type)):
        return MemberDescriptor(
            name, MemberKind.METHOD, inspect.iscoroutinefunction(raw)
        )
    return MemberDescriptor(name, MemberKind.PROPERTY)


def build_member_table(
    cls: type | None, exemplar: Any = None
) -> dict[str, MemberDescriptor]:
    """Member table for a synthetic double.

    Sources, in order: class attributes (methods, properties, class data),
    annotated fields of every non-builtin class in the MRO (dataclass fields
    included), the exemplar's own attributes, and attributes assigned on
    ``self`` in the method bodies of those classes.
    """
    table: dict[str, MemberDescriptor] = {}
    if cls is not None:
        for name, raw in _class_members(cls):
            table[name] = _describe_raw(name, raw)
        call_owner = _defining_class(cls, "__call__")
        if call_owner is not None and not _is_builtin_class(call_owner):
            table["__call__"] = _describe_raw(
                "__call__", inspect.getattr_static(cls, "__call__")
            )
        for klass in reversed(cls.__mro__):
            if _is_builtin_class(klass):
                continue
            for name in _annotated_names(klass):
                if not _is_dunder(name) and name not in table:
                    table[name] = MemberDescriptor(name, MemberKind.PROPERTY)
    if exemplar is not None and hasattr(exemplar, "__dict__"):
        for name, value in vars(exemplar).items():
            if _is_dunder(name) or name in table:
                continue
            kind = MemberKind.METHOD if callable(value) else MemberKind.PROPERTY
            table[name] = MemberDescriptor(name, kind, inspect.iscoroutinefunction(value))
    if cls is not None:
        for klass in reversed(cls.__mro__):
            if _is_builtin_class(klass):
                continue
            for name, is_lambda in _assigned_attributes(klass):
                if _is_dunder(name) or name in table:
                    continue
                kind = MemberKind.METHOD if is_lambda else MemberKind.PROPERTY
                table[name] = MemberDescriptor(name, kind)
    return table


# ============================================================================
# CALL EXPRESSIONS AND HANDLES
# ============================================================================


class CallExpression:
    """A member plus an argument matcher, captured from a handle."""

    def __init__(self, double: Double, member: str, matcher: ArgumentListMatcher):
        self.double = double
        self.member = member
        self.matcher = matcher

    def describe(self) -> str:
        if self.double.is_property(self.member):
            return f"{self.double.name}.{self.member}"
        return f"{self.double.name}.{self.member}({self.matcher.describe()})"

    def __repr__(self) -> str:
        return f"<CallExpression {self.describe()}>"


class MemberReference:
    """An uncalled method on a handle; calling it builds an expression."""

    def __init__(self, double: Double, member: str):
        self.double = double
        self.member = member

    def __call__(self, *args: Any, **kwargs: Any) -> CallExpression:
        return CallExpression(self.double, self.member, ArgumentListMatcher(args, kwargs))

    def __repr__(self) -> str:
        return f"<MemberReference {self.double.name}.{self.member}>"


class DoubleHandle:
    """What ``mock()`` and ``spy()`` return."""

    __slots__ = (HANDLE_ATTRIBUTE,)

    def __init__(self, double: Double):
        object.__setattr__(self, HANDLE_ATTRIBUTE, double)

    def __getattr__(self, name: str) -> CallExpression | MemberReference:
        if _is_dunder(name):
            raise AttributeError(name)
        double: Double = object.__getattribute__(self, HANDLE_ATTRIBUTE)
        descriptor = double.resolve_member(name)
        if descriptor.kind is MemberKind.PROPERTY:
            return CallExpression(double, name, ArgumentListMatcher())
        return MemberReference(double, name)

    def __call__(self, *args: Any, **kwargs: Any) -> CallExpression:
        double: Double = object.__getattribute__(self, HANDLE_ATTRIBUTE)
        double.resolve_member("__call__")
        return CallExpression(double, "__call__", ArgumentListMatcher(args, kwargs))

    def __setattr__(self, name: str, value: Any) -> None:
        raise ArgumentError(
            f"Cannot assign {name!r} on a double handle; "
            f"stub it with when() or assign on instance() instead"
        )

    def __repr__(self) -> str:
        double: Double = object.__getattribute__(self, HANDLE_ATTRIBUTE)
        return f"<DoubleHandle {double.name}>"


# ============================================================================
# REGISTRY
# ============================================================================


class DoubleRegistry:
    """Live doubles, so they can be found again and reset together."""

    def __init__(self) -> None:
        self._doubles: list[Double] = []

    def register(self, double: Double) -> None:
        if not any(known is double for known in self._doubles):
            self._doubles.append(double)

    def spy_for(self, target: Any) -> "WrappingDouble | None":
        for double in self._doubles:
            if isinstance(double, WrappingDouble) and double.target is target:
                return double
        return None

    def reset_all(self) -> int:
        """Reset every live double, newest first, and forget them."""
        count = len(self._doubles)
        for double in reversed(self._doubles):
            double.reset()
        self._doubles.clear()
        if count:
            logger.debug(f"Reset {count} double(s)")
        return count

    def __len__(self) -> int:
        return len(self._doubles)


double_registry = DoubleRegistry()


def double_of(candidate: Any) -> Double:
    """Find the double behind a handle, expression, instance or spied object.

    Raises:
        ArgumentError: If ``candidate`` is not connected to any double.
    """
    if isinstance(candidate, DoubleHandle):
        return object.__getattribute__(candidate, HANDLE_ATTRIBUTE)
    if isinstance(candidate, (CallExpression, MemberReference)):
        return candidate.double
    if isinstance(candidate, Double):
        return candidate
    owner = getattr(type(candidate), HANDLE_ATTRIBUTE, None)
    if isinstance(owner, Double):
        return owner
    spied = double_registry.spy_for(candidate)
    if spied is not None:
        return spied
    raise ArgumentError(f"{candidate!r} is not a mock, a spy or a call on one")


# ============================================================================
# SYNTHETIC DOUBLES
# ============================================================================


class SyntheticDouble(Double):
    """A double with no real backing; every member is fabricated.

    Without a spec every non-dunder name is accepted and fabricated as a
    method the first time it is used.
    """

    def __init__(self, spec: Any = None):
        if spec is None:
            self.spec_class: type | None = None
            name = "mock()"
        elif isinstance(spec, type):
            self.spec_class = spec
            name = f"mock({spec.__name__})"
        else:
            self.spec_class = type(spec)
            name = f"mock({self.spec_class.__name__})"
        super().__init__(name)
        self.permissive = spec is None
        self.members = build_member_table(
            self.spec_class, None if isinstance(spec, type) else spec
        )
        self._assigned: dict[str, Any] = {}
        self._instance: Any = None
        double_registry.register(self)

    def resolve_member(self, member: str) -> MemberDescriptor:
        descriptor = self.members.get(member)
        if descriptor is not None:
            return descriptor
        if self.permissive and not _is_dunder(member):
            descriptor = MemberDescriptor(member, MemberKind.METHOD)
            self.members[member] = descriptor
            return descriptor
        raise UnknownMemberError(self.name, member)

    def fallback(
        self,
        member: str,
        args: tuple[Any, ...],
        kwargs: Mapping[str, Any],
        passthrough: Callable[[], Any] | None,
    ) -> Any:
        descriptor = self.members.get(member)
        if descriptor is None:
            return None
        if descriptor.kind is MemberKind.PROPERTY:
            return self._assigned.get(member)
        if descriptor.is_async:
            return SettledAwaitable(None)
        return None

    def assign(self, member: str, value: Any) -> None:
        """Remember a value written to a property of the instance."""
        self._assigned[member] = value

    def reset(self) -> None:
        super().reset()
        self._assigned.clear()

    def instance(self) -> Any:
        if self._instance is None:
            self._instance = _build_synthetic_instance(self)
        return self._instance


def _synthetic_method(double: SyntheticDouble, name: str) -> Any:
    """Method for the generated class, bound the way the spec member is."""
    raw = (
        inspect.getattr_static(double.spec_class, name, None)
        if double.spec_class is not None
        else None
    )
    static = isinstance(raw, staticmethod)
    if static:

        def method(*args: Any, **kwargs: Any) -> Any:
            return double.invoke(name, args, kwargs)

    else:

        def method(receiver: Any, /, *args: Any, **kwargs: Any) -> Any:
            return double.invoke(name, args, kwargs)

    method.__name__ = name
    method.__qualname__ = f"{double.name}.{name}"
    if static:
        return staticmethod(method)
    if isinstance(raw, classmethod):
        return classmethod(method)
    return method


def _synthetic_property(double: SyntheticDouble, name: str) -> property:
    def fget(self: Any) -> Any:
        return double.invoke(name, (), {})

    def fset(self: Any, value: Any) -> None:
        double.assign(name, value)

    return property(fget, fset)


def _build_synthetic_instance(double: SyntheticDouble) -> Any:
    namespace: dict[str, Any] = {HANDLE_ATTRIBUTE: double}
    for descriptor in double.members.values():
        if descriptor.kind is MemberKind.PROPERTY:
            namespace[descriptor.name] = _synthetic_property(double, descriptor.name)
        else:
            namespace[descriptor.name] = _synthetic_method(double, descriptor.name)

    def __getattr__(self: Any, name: str) -> Any:
        if _is_dunder(name):
            raise AttributeError(name)
        descriptor = double.resolve_member(name)
        if descriptor.kind is MemberKind.PROPERTY:
            return double.invoke(name, (), {})

        def fabricated(*args: Any, **kwargs: Any) -> Any:
            return double.invoke(name, args, kwargs)

        fabricated.__name__ = name
        return fabricated

    def __repr__(self: Any) -> str:
        return f"<{double.name} instance id={id(self)}>"

    namespace["__getattr__"] = __getattr__
    namespace["__repr__"] = __repr__
    if double.spec_class is not None:
        # isinstance() falls back to __class__, so checks in code under test pass
        namespace["__class__"] = double.spec_class
        class_name = f"Mock{double.spec_class.__name__}"
    else:
        class_name = "Mock"
    return type(class_name, (), namespace)()


# ============================================================================
# WRAPPING DOUBLES
# ============================================================================


def _mark_async(replacement: Callable[..., Any], original: Any) -> Callable[..., Any]:
    if inspect.iscoroutinefunction(original):
        inspect.markcoroutinefunction(replacement)
    return replacement


def _class_member_replacement(
    double: Double, name: str, raw: Any, receiver: Any = MISSING, home: type | None = None
) -> Any:
    """Replacement for a class-level member, or None if it is not intercepted.

    Only functions, static/class methods and properties are intercepted.
    With a ``receiver`` only calls on that very object are recorded; other
    objects reach the original member directly. Class methods then run
    against ``home`` instead of the class they were looked up on.
    """

    def observed(obj: Any) -> bool:
        return receiver is MISSING or obj is receiver

    if isinstance(raw, property):

        def fget(obj: Any) -> Any:
            if not observed(obj):
                return raw.__get__(obj, type(obj))
            return double.invoke(name, (), {}, lambda: raw.__get__(obj, type(obj)))

        def fset(obj: Any, value: Any) -> None:
            raw.__set__(obj, value)

        def fdel(obj: Any) -> None:
            raw.__delete__(obj)

        return property(fget, fset, fdel, raw.__doc__)

    if isinstance(raw, staticmethod):
        func = raw.__func__

        @functools.wraps(func)
        def static_replacement(*args: Any, **kwargs: Any) -> Any:
            return double.invoke(name, args, kwargs, lambda: func(*args, **kwargs))

        return staticmethod(_mark_async(static_replacement, func))

    if isinstance(raw, classmethod):
        func = raw.__func__

        @functools.wraps(func)
        def class_replacement(klass: type, *args: Any, **kwargs: Any) -> Any:
            owner = klass if home is None else home
            return double.invoke(name, args, kwargs, lambda: func(owner, *args, **kwargs))

        return classmethod(_mark_async(class_replacement, func))

    if inspect.isfunction(raw):

        @functools.wraps(raw)
        def replacement(obj: Any, *args: Any, **kwargs: Any) -> Any:
            if not observed(obj):
                return raw(obj, *args, **kwargs)
            return double.invoke(name, args, kwargs, lambda: raw(obj, *args, **kwargs))

        return _mark_async(replacement, raw)

    return None


def _own_member_replacement(double: Double, name: str, value: Callable[..., Any]) -> Callable[..., Any]:
    """Replacement for a callable stored directly on the owner."""

    @functools.wraps(value)
    def replacement(*args: Any, **kwargs: Any) -> Any:
        return double.invoke(name, args, kwargs, lambda: value(*args, **kwargs))

    return _mark_async(replacement, value)


def _is_own_callable(name: str, value: Any) -> bool:
    return not _is_dunder(name) and callable(value) and not isinstance(value, type)


def _describe_target(target: Any) -> str:
    if inspect.ismodule(target) or inspect.isclass(target) or inspect.isroutine(target):
        return getattr(target, "__qualname__", None) or target.__name__
    return type(target).__name__


class WrappingDouble(Double):
    """A spy: the real object keeps working, every call is recorded.

    Members present at wrap time are discovered by walking the object's
    current attributes; members added afterwards are not observed.
    """

    def __init__(self, target: Any):
        super().__init__(f"spy({_describe_target(target)})")
        self.target = target
        self.overrides: list[MemberOverride] = []
        self.attached = False
        self._call_wrapper: Callable[..., Any] | None = None
        self.attach()

    @property
    def is_function(self) -> bool:
        return inspect.isroutine(self.target)

    def attach(self) -> None:
        """Build the member table and install every override."""
        if self.attached:
            return
        members, plan = self._plan()
        applied: list[MemberOverride] = []
        for override in plan:
            try:
                override.apply()
            except (AttributeError, TypeError) as e:
                for done in reversed(applied):
                    done.restore()
                raise DoubleConstructionError(
                    _describe_target(self.target), override.name, str(e)
                ) from e
            applied.append(override)
        self.members = members
        self.overrides = applied
        self.attached = True
        double_registry.register(self)
        logger.debug(
            f"Attached {self.name}: {len(members)} member(s), "
            f"{len(applied)} override(s)"
        )

    def detach(self) -> None:
        """Undo every override, newest first."""
        for override in reversed(self.overrides):
            override.restore()
        if self.overrides:
            logger.debug(f"Restored {len(self.overrides)} override(s) for {self.name}")
        self.overrides = []
        self.attached = False

    def reset(self) -> None:
        super().reset()
        self.detach()

    def _plan(self) -> tuple[dict[str, MemberDescriptor], list[MemberOverride]]:
        target = self.target
        members: dict[str, MemberDescriptor] = {}
        plan: list[MemberOverride] = []

        def own_override(owner: Any, name: str, value: Any) -> None:
            members[name] = MemberDescriptor(
                name, MemberKind.METHOD, inspect.iscoroutinefunction(value)
            )
            plan.append(
                MemberOverride(
                    owner=owner,
                    name=name,
                    original=value,
                    replacement=_own_member_replacement(self, name, value),
                )
            )

        if self.is_function:
            # Members of the function type itself (__get__, __call__, ...)
            # are never touched; calls go through instance().
            members["__call__"] = MemberDescriptor(
                "__call__", MemberKind.METHOD, inspect.iscoroutinefunction(target)
            )
            for name, value in list(getattr(target, "__dict__", {}).items()):
                if _is_own_callable(name, value):
                    own_override(target, name, value)
            return members, plan

        if inspect.ismodule(target):
            for name, value in list(vars(target).items()):
                if not _is_dunder(name) and inspect.isroutine(value):
                    own_override(target, name, value)
            return members, plan

        if inspect.isclass(target):
            for name, raw in _class_members(target):
                replacement = _class_member_replacement(self, name, raw)
                if replacement is None:
                    continue
                members[name] = _describe_raw(name, raw)
                plan.append(
                    MemberOverride(
                        owner=target,
                        name=name,
                        original=vars(target).get(name, MISSING),
                        replacement=replacement,
                    )
                )
            return members, plan

        own = getattr(target, "__dict__", {})
        for name, value in list(own.items()):
            if _is_own_callable(name, value):
                own_override(target, name, value)

        cls = type(target)
        replacements: dict[str, Any] = {}
        for name, raw in _class_members(cls):
            if name in own:
                continue
            replacement = _class_member_replacement(
                self, name, raw, receiver=target, home=cls
            )
            if replacement is None:
                continue
            members[name] = _describe_raw(name, raw)
            replacements[name] = replacement
        if replacements:
            plan.append(
                MemberOverride(
                    owner=target,
                    name="__class__",
                    original=cls,
                    replacement=self._spied_class(cls, replacements),
                )
            )
        return members, plan

    def _spied_class(self, cls: type, replacements: dict[str, Any]) -> type:
        """Per-instance subclass carrying the class-level replacements."""

        def body(namespace: dict[str, Any]) -> None:
            namespace.update(replacements)
            namespace["__slots__"] = ()
            namespace["__module__"] = cls.__module__
            namespace["__qualname__"] = cls.__qualname__

        try:
            return types.new_class(cls.__name__, (cls,), exec_body=body)
        except TypeError as e:
            raise DoubleConstructionError(
                _describe_target(self.target), None, f"cannot subclass {cls.__name__}: {e}"
            ) from e

    def resolve_member(self, member: str) -> MemberDescriptor:
        descriptor = self.members.get(member)
        if descriptor is None:
            raise UnknownMemberError(self.name, member)
        return descriptor

    def fallback(
        self,
        member: str,
        args: tuple[Any, ...],
        kwargs: Mapping[str, Any],
        passthrough: Callable[[], Any] | None,
    ) -> Any:
        if passthrough is None:
            return None
        return passthrough()

    def instance(self) -> Any:
        if not self.is_function:
            return self.target
        if self._call_wrapper is None:
            target = self.target

            @functools.wraps(target)
            def call_wrapper(*args: Any, **kwargs: Any) -> Any:
                return self.invoke("__call__", args, kwargs, lambda: target(*args, **kwargs))

            self._call_wrapper = _mark_async(call_wrapper, target)
        return self._call_wrapper
