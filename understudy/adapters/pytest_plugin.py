"""pytest integration for understudy.

Registered through the ``pytest11`` entry point, so installing the package
is enough:

- every live double (spies included) is reset after each test, unless
  ``UNDERSTUDY_AUTO_RESET=false``
- ``UNDERSTUDY_DEBUG=true`` turns on debug logging for the library
- the ``doubles`` fixture exposes the public API for tests that prefer
  fixtures over imports

Usage:
    def test_something(doubles):
        foo = doubles.mock(Foo)
        doubles.when(foo.bar()).then_return(3)
        assert doubles.instance(foo).bar() == 3
"""

import logging
from collections.abc import Iterator
from types import ModuleType

import pytest

import understudy
from understudy.api import reset_all
from understudy.config import configure_logging, get_settings

logger = logging.getLogger(__name__)


def pytest_configure(config: pytest.Config) -> None:
    settings = get_settings()
    if settings.debug:
        configure_logging("DEBUG", settings.log_format)
    elif settings.log_level != "WARNING":
        configure_logging(settings.log_level, settings.log_format)


@pytest.fixture(autouse=True)
def _understudy_auto_reset() -> Iterator[None]:
    """Put spied objects back and drop doubles once the test is done."""
    yield
    if get_settings().auto_reset:
        count = reset_all()
        if count:
            logger.debug(f"Auto-reset {count} double(s) after test")


@pytest.fixture
def doubles() -> Iterator[ModuleType]:
    """The ``understudy`` API, reset after the test whatever the settings."""
    yield understudy
    reset_all()
