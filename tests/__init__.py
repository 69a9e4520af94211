"""
SchemaCanvas Test Suite.

This package contains:
- unit/: Unit tests (pure, in-memory)
- integration/: Multi-session collaboration tests over the in-memory hub
"""
