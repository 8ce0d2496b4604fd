"""Sync coordinator: best-effort push of profiles, pull of the catalog.

Triggers:
- sign-in, when the network is reachable (``on_login``)
- an offline -> online transition while a user is signed in
- explicit refresh (admin panel re-fetches the catalog)

Guarantees, deliberately limited:
- ``sync()`` never raises, never retries and never queues. Offline or a
  failed push returns a failed ``SyncOutcome`` and leaves local state as
  it was.
- The whole profile record is pushed every time (last write wins at the
  remote, no merge).
- The sync marker only moves forward, and only on success.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable

import structlog

from studyhub.core.entities import Material, SyncMarker
from studyhub.db.local_store import LocalStore
from studyhub.remote.mirror import RemoteMirrorClient, RemoteMirrorError
from studyhub.sync.connectivity import ConnectivityMonitor

logger = structlog.get_logger(__name__)

USERS_TABLE = "users"
MATERIALS_TABLE = "materials"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class SyncOutcome:
    """Result of one push attempt."""

    success: bool
    synced_at: str | None = None
    message: str = ""


@dataclass
class SyncStatus:
    """Ambient status for the sync indicator."""

    is_online: bool
    is_syncing: bool
    last_synced: str | None


class SyncCoordinator:
    """Reconciles the local store with the remote mirror."""

    def __init__(
        self,
        store: LocalStore,
        mirror: RemoteMirrorClient,
        connectivity: ConnectivityMonitor,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self.store = store
        self.mirror = mirror
        self.connectivity = connectivity
        self.clock = clock
        self.active_user_id: str | None = None
        self._in_flight = 0
        connectivity.add_listener(self.handle_connectivity_change)

    # -------------------------------------------------------------------------
    # Status
    # -------------------------------------------------------------------------

    @property
    def is_syncing(self) -> bool:
        return self._in_flight > 0

    def status(self) -> SyncStatus:
        return SyncStatus(
            is_online=self.connectivity.is_online,
            is_syncing=self.is_syncing,
            last_synced=self.store.get_sync_marker().last_synced,
        )

    # -------------------------------------------------------------------------
    # Push
    # -------------------------------------------------------------------------

    def _next_marker_time(self, previous: SyncMarker) -> datetime:
        now = self.clock()
        last = previous.last_synced_at
        if last is not None and now <= last:
            now = last + timedelta(microseconds=1)
        return now

    async def sync(self, user_id: str) -> SyncOutcome:
        """Push the user's local profile to the remote mirror.

        Returns:
            SyncOutcome; on success ``synced_at`` equals the new marker.
        """
        if not self.connectivity.is_online:
            logger.info("sync.skipped_offline", user_id=user_id)
            return SyncOutcome(success=False, message="Offline")

        account = self.store.get("users", user_id)
        if account is None:
            logger.warning("sync.unknown_user", user_id=user_id)
            return SyncOutcome(success=False, message=f"Unknown user: {user_id}")

        self._in_flight += 1
        try:
            await self.mirror.upsert(USERS_TABLE, account.to_dict())
        except RemoteMirrorError as e:
            logger.warning("sync.push_failed", user_id=user_id, error=str(e))
            return SyncOutcome(success=False, message=str(e))
        finally:
            self._in_flight -= 1

        synced_at = self._next_marker_time(self.store.get_sync_marker()).isoformat()
        self.store.set_sync_marker(SyncMarker(last_synced=synced_at))

        logger.info("sync.pushed", user_id=user_id, synced_at=synced_at)
        return SyncOutcome(success=True, synced_at=synced_at, message="Synced")

    # -------------------------------------------------------------------------
    # Pull
    # -------------------------------------------------------------------------

    async def fetch_global_materials(self) -> list[Material] | None:
        """Read the authoritative catalog from the remote mirror.

        Returns:
            The catalog, or None if it could not be refreshed. None is not
            "empty": callers keep using the local cache.
        """
        if not self.connectivity.is_online:
            return None

        try:
            rows = await self.mirror.select(
                MATERIALS_TABLE, order_by="uploaded_at", desc=True
            )
        except RemoteMirrorError as e:
            logger.warning("sync.catalog_pull_failed", error=str(e))
            return None

        materials = []
        for row in rows:
            try:
                materials.append(Material.from_dict(row))
            except (KeyError, ValueError, TypeError) as e:
                logger.warning("sync.catalog_row_skipped", row_id=row.get("id"), error=str(e))

        logger.info("sync.catalog_pulled", count=len(materials))
        return materials

    async def refresh_catalog(self) -> list[Material] | None:
        """Pull the catalog and replace the local cache when it succeeded."""
        materials = await self.fetch_global_materials()
        if materials is None:
            return None
        self.store.replace_all("materials", materials)
        return materials

    # -------------------------------------------------------------------------
    # Triggers
    # -------------------------------------------------------------------------

    async def on_login(self, user_id: str) -> SyncOutcome | None:
        """Start a session for the user and sync if reachable."""
        self.active_user_id = user_id
        if not self.connectivity.is_online:
            return None
        return await self.sync(user_id)

    def on_logout(self) -> None:
        self.active_user_id = None

    async def handle_connectivity_change(self, online: bool) -> None:
        if online and self.active_user_id is not None:
            logger.info("sync.back_online", user_id=self.active_user_id)
            await self.sync(self.active_user_id)
