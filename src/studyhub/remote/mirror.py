"""Remote mirror client over the Supabase SDK.

The remote mirror keeps cross-device copies of the material catalog and
user profiles. Only three table operations are needed (upsert, select,
delete) plus file upload / public URL for material files.

The SDK is synchronous; every call runs in a worker thread under an
explicit deadline (``RemoteConfig.timeout_seconds``) so a hung request
surfaces as ``RemoteUnavailableError`` instead of blocking forever.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable

import httpx
import structlog

from studyhub.config.app_config import RemoteConfig

logger = structlog.get_logger(__name__)


class RemoteMirrorError(Exception):
    """Error talking to the remote mirror."""

    pass


class RemoteUnavailableError(RemoteMirrorError):
    """Remote mirror unreachable, timed out or not configured."""

    pass


class RemoteRejectedError(RemoteMirrorError):
    """Remote mirror refused the request (auth, policy, validation)."""

    pass


def create_supabase_client(config: RemoteConfig):
    """Create a Supabase client from config, or None if not configured."""
    if not config.is_configured:
        logger.info("remote_mirror_not_configured", key_env=config.key_env)
        return None

    from supabase import create_client
    from supabase.lib.client_options import ClientOptions

    options = ClientOptions(
        postgrest_client_timeout=config.timeout_seconds,
        storage_client_timeout=int(config.timeout_seconds),
    )
    return create_client(config.url, config.get_key(), options=options)


def _is_network_error(exc: BaseException) -> bool:
    return isinstance(
        exc, (httpx.TimeoutException, httpx.TransportError, TimeoutError, OSError)
    )


class _SdkCaller:
    """Runs blocking SDK calls off the event loop under a deadline."""

    def __init__(self, client: Any | None, timeout_seconds: float):
        self.client = client
        self.timeout_seconds = timeout_seconds

    @property
    def is_configured(self) -> bool:
        return self.client is not None

    async def _call(self, operation: str, target: str, fn: Callable[[], Any]) -> Any:
        if self.client is None:
            raise RemoteUnavailableError("Remote mirror is not configured")

        try:
            return await asyncio.wait_for(
                asyncio.to_thread(fn), timeout=self.timeout_seconds
            )
        except asyncio.TimeoutError as e:
            logger.warning(
                "remote_mirror.timeout",
                operation=operation,
                target=target,
                timeout=self.timeout_seconds,
            )
            raise RemoteUnavailableError(
                f"{operation} on '{target}' timed out after {self.timeout_seconds}s"
            ) from e
        except Exception as e:
            if _is_network_error(e):
                logger.warning(
                    "remote_mirror.unreachable",
                    operation=operation,
                    target=target,
                    error=str(e),
                )
                raise RemoteUnavailableError(
                    f"Could not reach remote mirror for {operation} on '{target}': {e}"
                ) from e
            logger.error(
                "remote_mirror.rejected", operation=operation, target=target, error=str(e)
            )
            raise RemoteRejectedError(
                f"Remote mirror rejected {operation} on '{target}': {e}"
            ) from e


class RemoteMirrorClient(_SdkCaller):
    """Collection-style access to remote tables."""

    async def upsert(self, table: str, record: dict[str, Any]) -> None:
        """Insert or replace a record keyed by its ``id``."""
        await self._call(
            "upsert",
            table,
            lambda: self.client.table(table).upsert(record).execute(),
        )
        logger.debug("remote_mirror.upserted", table=table, id=record.get("id"))

    async def select(
        self, table: str, order_by: str | None = None, desc: bool = False
    ) -> list[dict[str, Any]]:
        """Fetch every record of a table."""

        def run():
            query = self.client.table(table).select("*")
            if order_by:
                query = query.order(order_by, desc=desc)
            return query.execute()

        response = await self._call("select", table, run)
        return list(response.data or [])

    async def delete(self, table: str, record_id: str) -> None:
        await self._call(
            "delete",
            table,
            lambda: self.client.table(table).delete().eq("id", record_id).execute(),
        )
        logger.debug("remote_mirror.deleted", table=table, id=record_id)


class ObjectStorageClient(_SdkCaller):
    """Binary object storage for material files."""

    def __init__(self, client: Any | None, bucket: str, timeout_seconds: float):
        super().__init__(client, timeout_seconds)
        self.bucket = bucket

    async def upload(
        self,
        path: str,
        data: bytes,
        content_type: str = "application/octet-stream",
    ) -> str:
        """Upload bytes and return the storage handle (the object path)."""
        await self._call(
            "upload",
            path,
            lambda: self.client.storage.from_(self.bucket).upload(
                path=path,
                file=data,
                file_options={"content-type": content_type},
            ),
        )
        logger.info("object_storage.uploaded", path=path, size=len(data))
        return path

    def public_url(self, handle: str) -> str:
        """Public URL of a stored object."""
        if self.client is None:
            raise RemoteUnavailableError("Remote mirror is not configured")
        return self.client.storage.from_(self.bucket).get_public_url(handle)

    async def remove(self, handle: str) -> None:
        await self._call(
            "remove",
            handle,
            lambda: self.client.storage.from_(self.bucket).remove([handle]),
        )
        logger.info("object_storage.removed", path=handle)
