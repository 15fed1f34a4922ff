"""Routing: module prefix matching with root fall-through.

The router is built once when the server freezes and never changes.
"""

from roost.routing.router import ModuleRouter

__all__ = ["ModuleRouter"]
