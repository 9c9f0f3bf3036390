"""Unit tests for the core engine.

These tests exercise the ledger, matchers, stub registry, interception
layer and verification engine directly, without the declaration surface
where possible.
"""
