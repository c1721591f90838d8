"""Desired-state storage.

- ResourceData: typed field values and identifier of one object
- StateStore: YAML persistence of the last-applied projection
"""

from .resource_data import ResourceData, DEFAULT_IDENTITY
from .store import StateStore, StoredState, DEFAULT_STATE_DIR, compute_checksum

__all__ = [
    "ResourceData",
    "DEFAULT_IDENTITY",
    "StateStore",
    "StoredState",
    "DEFAULT_STATE_DIR",
    "compute_checksum",
]
