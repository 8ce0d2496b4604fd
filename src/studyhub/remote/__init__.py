"""Remote mirror and object storage adapters."""

from studyhub.remote.mirror import (
    ObjectStorageClient,
    RemoteMirrorClient,
    RemoteMirrorError,
    RemoteRejectedError,
    RemoteUnavailableError,
    create_supabase_client,
)

__all__ = [
    "ObjectStorageClient",
    "RemoteMirrorClient",
    "RemoteMirrorError",
    "RemoteRejectedError",
    "RemoteUnavailableError",
    "create_supabase_client",
]
