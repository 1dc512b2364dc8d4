# src/verser/services/__init__.py
"""Business logic services for the Verser application."""

from .membership import MembershipStore
from .relay import RelayConnection, RelayHub, RelaySocket

__all__ = [
    "MembershipStore",
    "RelayConnection",
    "RelayHub",
    "RelaySocket",
]
