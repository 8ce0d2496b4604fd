"""Offline-first synchronization between the local store and the remote mirror."""

from studyhub.sync.connectivity import ConnectivityMonitor
from studyhub.sync.coordinator import SyncCoordinator, SyncOutcome, SyncStatus

__all__ = ["ConnectivityMonitor", "SyncCoordinator", "SyncOutcome", "SyncStatus"]
