"""Library: the material catalog and per-user library lists.

Catalog reads go to the local cache. Admin uploads and deletes write to
the remote mirror first, then to the cache, so a failed remote call
leaves the cache unchanged.
"""

from __future__ import annotations

import mimetypes
import time
from dataclasses import dataclass
from typing import Callable

import structlog

from studyhub.core.accounts import AccountNotFoundError
from studyhub.core.entities import (
    Category,
    EducationLevel,
    Material,
    UserAccount,
    new_id,
    utc_now,
)
from studyhub.db.local_store import LocalStore
from studyhub.remote.mirror import ObjectStorageClient, RemoteMirrorClient, RemoteMirrorError
from studyhub.sync.coordinator import MATERIALS_TABLE, SyncCoordinator
from studyhub.utils.text_utils import safe_file_name

logger = structlog.get_logger(__name__)


class MaterialNotFoundError(LookupError):
    """Raised when a material id does not exist in the local catalog."""

    def __init__(self, material_id: str):
        self.material_id = material_id
        super().__init__(f"Material not found: {material_id}")


@dataclass
class MaterialMetadata:
    """Admin-entered fields of a new material."""

    title: str
    level: EducationLevel
    grade: str
    subject: str
    category: Category


def _millis() -> int:
    return int(time.time() * 1000)


class LibraryService:
    def __init__(
        self,
        store: LocalStore,
        mirror: RemoteMirrorClient,
        storage: ObjectStorageClient,
        coordinator: SyncCoordinator,
        timestamp: Callable[[], int] = _millis,
    ):
        self.store = store
        self.mirror = mirror
        self.storage = storage
        self.coordinator = coordinator
        self.timestamp = timestamp

    # -------------------------------------------------------------------------
    # Catalog
    # -------------------------------------------------------------------------

    def list_materials(
        self,
        level: EducationLevel | None = None,
        grade: str | None = None,
        subject: str | None = None,
        category: Category | None = None,
        query: str | None = None,
    ) -> list[Material]:
        """Filter the local catalog, newest first."""
        materials = self.store.get_all("materials")
        if level is not None:
            materials = [m for m in materials if m.level == level]
        if grade:
            materials = [m for m in materials if m.grade == grade]
        if subject:
            materials = [m for m in materials if m.subject.lower() == subject.lower()]
        if category is not None:
            materials = [m for m in materials if m.category == category]
        if query:
            needle = query.lower()
            materials = [m for m in materials if needle in m.title.lower()]
        return sorted(materials, key=lambda m: m.uploaded_at, reverse=True)

    def get_material(self, material_id: str) -> Material:
        material = self.store.get("materials", material_id)
        if material is None:
            raise MaterialNotFoundError(material_id)
        return material

    def subjects(self) -> list[str]:
        return sorted({m.subject for m in self.store.get_all("materials")})

    async def refresh_catalog(self) -> list[Material] | None:
        """Re-pull the catalog; the cache is kept when the pull fails."""
        return await self.coordinator.refresh_catalog()

    # -------------------------------------------------------------------------
    # Per-user lists
    # -------------------------------------------------------------------------

    def _account(self, user_id: str) -> UserAccount:
        account = self.store.get("users", user_id)
        if account is None:
            raise AccountNotFoundError(user_id)
        return account

    def record_download(self, user_id: str, material_id: str) -> UserAccount:
        """Add a material to the user's downloads. Repeating it is a no-op."""
        self.get_material(material_id)
        account = self._account(user_id)
        if material_id not in account.downloaded_ids:
            account.downloaded_ids.add(material_id)
            self.store.upsert("users", account)
            logger.info("library.downloaded", user_id=user_id, material_id=material_id)
        return account

    def remove_download(self, user_id: str, material_id: str) -> UserAccount:
        account = self._account(user_id)
        if material_id in account.downloaded_ids:
            account.downloaded_ids.discard(material_id)
            self.store.upsert("users", account)
        return account

    def toggle_favorite(self, user_id: str, material_id: str) -> bool:
        """Flip favorite membership.

        Returns:
            True if the material is now a favorite.
        """
        account = self._account(user_id)
        if material_id in account.favorite_ids:
            account.favorite_ids.discard(material_id)
            is_favorite = False
        else:
            account.favorite_ids.add(material_id)
            is_favorite = True
        self.store.upsert("users", account)
        return is_favorite

    def downloads(self, user_id: str) -> list[Material]:
        """Downloaded materials still present in the catalog."""
        ids = self._account(user_id).downloaded_ids
        return [m for m in self.store.get_all("materials") if m.id in ids]

    def favorites(self, user_id: str) -> list[Material]:
        ids = self._account(user_id).favorite_ids
        return [m for m in self.store.get_all("materials") if m.id in ids]

    # -------------------------------------------------------------------------
    # Admin
    # -------------------------------------------------------------------------

    async def upload_material(
        self, data: bytes, file_name: str, metadata: MaterialMetadata
    ) -> Material:
        """Store the file, publish its metadata, and cache it locally.

        Raises:
            RemoteMirrorError: Upload or publish failed; nothing is cached
        """
        path = f"materials/{self.timestamp()}_{safe_file_name(file_name)}"
        content_type = mimetypes.guess_type(file_name)[0] or "application/octet-stream"

        handle = await self.storage.upload(path, data, content_type=content_type)
        material = Material(
            id=new_id(),
            title=metadata.title,
            level=metadata.level,
            grade=metadata.grade,
            subject=metadata.subject,
            category=metadata.category,
            file_location=self.storage.public_url(handle),
            file_name=file_name,
            uploaded_at=utc_now(),
        )
        await self.mirror.upsert(MATERIALS_TABLE, material.to_dict())
        self.store.upsert("materials", material, prepend=True)

        logger.info("library.material_uploaded", material_id=material.id, path=path)
        return material

    def _storage_handle(self, material: Material) -> str | None:
        marker = f"/{self.storage.bucket}/"
        location = material.file_location.split("?", 1)[0]
        if marker not in location:
            return None
        return location.split(marker, 1)[1]

    async def delete_material(self, material_id: str) -> None:
        """Delete a material remotely, then from the local cache.

        The stored file is removed best-effort. Progress records and
        library lists that reference the id are left as they are.
        """
        material = self.get_material(material_id)

        handle = self._storage_handle(material)
        if handle is not None:
            try:
                await self.storage.remove(handle)
            except RemoteMirrorError as e:
                logger.warning("library.file_remove_failed", path=handle, error=str(e))

        await self.mirror.delete(MATERIALS_TABLE, material_id)
        self.store.remove("materials", material_id)
        logger.info("library.material_deleted", material_id=material_id)
