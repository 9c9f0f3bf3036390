"""Integrations between understudy and external tools.

Adapter Organization:

- pytest_plugin: pytest fixtures and automatic reset of live doubles
"""
