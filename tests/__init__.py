# tests/__init__.py
"""
Test suite for the threaded chat store.

Test categories:
- unit/       : Unit tests for individual components
- integration/: Tests of the public chat operations against an in-process Redis
"""
