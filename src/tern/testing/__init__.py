"""Test utilities for tern applications.

    from tern.testing import TestClient
"""

from tern.testing.client import TestClient

__all__ = ["TestClient"]
