"""Test utilities for roost servers.

    from roost.testing import TestClient
"""

from roost.testing.client import TestClient

__all__ = ["TestClient"]
