"""Test suite for the understudy test-double library.

Organized into three categories:

1. core/: Unit tests for the engine pieces
   - Ledger, matchers, stub resolution, actions, interception, verification
   - No pytest plugin or configuration involved

2. top-level test_*.py: Behavior of the public API
   - Stubbing and verifying mocks, spying on real objects
   - Configuration loading and the pytest plugin

3. fakes/: Sample collaborators used as mock and spy targets
"""
