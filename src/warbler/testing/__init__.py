"""Test utilities for warbler applications::

    from warbler.testing import TestClient
"""

from warbler.testing.client import HTML_ACCEPT, TestClient

__all__ = ["HTML_ACCEPT", "TestClient"]
