"""
Test support utilities for dbspine tests.

Helpers that are not pytest fixtures but are shared across test modules.
"""
