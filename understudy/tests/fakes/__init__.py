"""Sample collaborators used as targets for mocks and spies.

- Foo: a service-like class covering sync, async, static and property members
- Real: a small concrete class for spying
- Counter: a class whose methods go through its own property setter
- Chained: a class whose method returns ``self``
- Point: a dataclass whose fields become property members
"""

from .samples import Chained, Counter, Foo, Point, Real

__all__ = [
    "Chained",
    "Counter",
    "Foo",
    "Point",
    "Real",
]
