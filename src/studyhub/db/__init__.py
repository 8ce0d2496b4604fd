"""Local persistence.

Provides:
- LocalStore: one JSON collection file per entity type
- Per-user progress records and the device sync marker
"""

from studyhub.db.local_store import COLLECTIONS, DEFAULT_CHAT_ROOMS, LocalStore

__all__ = ["COLLECTIONS", "DEFAULT_CHAT_ROOMS", "LocalStore"]
