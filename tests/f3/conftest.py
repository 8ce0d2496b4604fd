"""Fixtures for F3 tests - remote mirror and sync."""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from studyhub.remote.mirror import ObjectStorageClient, RemoteMirrorClient
from studyhub.sync.connectivity import ConnectivityMonitor
from studyhub.sync.coordinator import SyncCoordinator

START = datetime(2024, 3, 1, 10, 0, tzinfo=timezone.utc)


@pytest.fixture
def supabase_client():
    """Mock Supabase client; every table query succeeds with no rows."""
    client = MagicMock()
    client.table.return_value.select.return_value.order.return_value.execute.return_value.data = []
    return client


@pytest.fixture
def mirror(supabase_client):
    return RemoteMirrorClient(supabase_client, timeout_seconds=1.0)


@pytest.fixture
def object_storage(supabase_client):
    return ObjectStorageClient(supabase_client, bucket="materials", timeout_seconds=1.0)


@pytest.fixture
def connectivity():
    return ConnectivityMonitor(online=True)


@pytest.fixture
def clock():
    """Clock advancing one second per call."""
    state = {"now": START}

    def _now():
        state["now"] += timedelta(seconds=1)
        return state["now"]

    return _now


@pytest.fixture
def coordinator(store, mirror, connectivity, clock):
    return SyncCoordinator(store, mirror, connectivity, clock=clock)
