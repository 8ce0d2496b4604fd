"""Local store: one JSON collection file per domain entity type.

Every collection lives in its own file under the state directory:

    data/state/study_hub_materials_v1.json
    {"$schema": "materials_v1", "items": [...]}

The version is part of the key. Bumping a collection's version starts a
fresh file; old files are left untouched and never migrated.

Reads never fail: a missing, unreadable or schema-mismatched file reads
as an empty collection. Writes replace the whole file atomically.

Progress is stored as a mapping ``user_id -> [progress records]`` because
every lookup is scoped to one user.
"""

from __future__ import annotations

import json
import os
import tempfile
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable

import structlog

from studyhub.core.entities import (
    Announcement,
    ChatRoom,
    CommunityMessage,
    Exam,
    ExamResult,
    Material,
    Message,
    Progress,
    SyncMarker,
    Testimonial,
    UserAccount,
)

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CollectionSpec:
    """Entity type and schema version of one collection."""

    name: str
    entity_type: type
    version: int = 1

    @property
    def schema(self) -> str:
        return f"{self.name}_v{self.version}"


COLLECTIONS: dict[str, CollectionSpec] = {
    spec.name: spec
    for spec in (
        CollectionSpec("materials", Material),
        CollectionSpec("users", UserAccount),
        CollectionSpec("announcements", Announcement),
        CollectionSpec("exams", Exam),
        CollectionSpec("exam_results", ExamResult),
        CollectionSpec("testimonials", Testimonial),
        CollectionSpec("chat_rooms", ChatRoom),
        CollectionSpec("community_messages", CommunityMessage),
        CollectionSpec("messages", Message),
    )
}

PROGRESS_SPEC = CollectionSpec("progress", Progress)
SYNC_MARKER_SPEC = CollectionSpec("sync_marker", SyncMarker)

DEFAULT_CHAT_ROOMS = [
    ChatRoom(
        id="general",
        title="General Study Room",
        description="Ask anything about school and studying.",
        icon="📚",
    ),
    ChatRoom(
        id="mathematics",
        title="Mathematics",
        description="Algebra, geometry and problem solving.",
        icon="🔢",
    ),
    ChatRoom(
        id="sciences",
        title="Sciences",
        description="Biology, chemistry and physics.",
        icon="🧪",
    ),
    ChatRoom(
        id="languages",
        title="Languages",
        description="English and Chichewa practice.",
        icon="🗣️",
    ),
]


class UnknownCollectionError(KeyError):
    """Raised for a collection name with no registered entity type."""


class LocalStore:
    """Synchronous, local-only persistence of the domain collections.

    Construct one instance at process start and pass it to every component
    that needs it.
    """

    def __init__(
        self,
        state_dir: Path,
        key_prefix: str = "study_hub",
        defaults: dict[str, list[Any]] | None = None,
    ):
        self.state_dir = Path(state_dir)
        self.key_prefix = key_prefix
        self._defaults = (
            {"chat_rooms": list(DEFAULT_CHAT_ROOMS)} if defaults is None else defaults
        )
        self._lock = threading.RLock()

    # -------------------------------------------------------------------------
    # Files
    # -------------------------------------------------------------------------

    def path_for(self, spec: CollectionSpec) -> Path:
        """File backing a collection key."""
        return self.state_dir / f"{self.key_prefix}_{spec.name}_v{spec.version}.json"

    def _read_items(self, spec: CollectionSpec, empty: Any) -> Any:
        path = self.path_for(spec)
        if not path.exists():
            return empty

        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("local_store.read_failed", path=str(path), error=str(e))
            return empty

        if not isinstance(data, dict) or data.get("$schema") != spec.schema:
            logger.warning(
                "local_store.invalid_schema",
                path=str(path),
                expected=spec.schema,
                got=data.get("$schema") if isinstance(data, dict) else None,
            )
            return empty

        return data.get("items", empty)

    def _write_items(self, spec: CollectionSpec, items: Any) -> None:
        self.state_dir.mkdir(parents=True, exist_ok=True)
        path = self.path_for(spec)
        payload = {"$schema": spec.schema, "items": items}

        # Write next to the target, then swap it in
        fd, tmp_name = tempfile.mkstemp(
            dir=self.state_dir, prefix=f".{path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2, ensure_ascii=False)
            os.replace(tmp_name, path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    @staticmethod
    def _spec(collection: str) -> CollectionSpec:
        try:
            return COLLECTIONS[collection]
        except KeyError:
            raise UnknownCollectionError(collection) from None

    def _load(self, spec: CollectionSpec) -> list[Any]:
        entities = []
        for raw in self._read_items(spec, []):
            try:
                entities.append(spec.entity_type.from_dict(raw))
            except (KeyError, ValueError, TypeError) as e:
                logger.warning(
                    "local_store.entity_skipped", collection=spec.name, error=str(e)
                )
        return entities

    def _save(self, spec: CollectionSpec, entities: Iterable[Any]) -> None:
        self._write_items(spec, [e.to_dict() for e in entities])

    # -------------------------------------------------------------------------
    # Generic collection operations
    # -------------------------------------------------------------------------

    def get_all(self, collection: str) -> list[Any]:
        """Return the entire collection (empty if absent).

        Collections with shipped defaults get any missing default
        entity inserted on access.
        """
        spec = self._spec(collection)
        with self._lock:
            if collection in self._defaults:
                self.seed(collection, self._defaults[collection])
            return self._load(spec)

    def get(self, collection: str, entity_id: str) -> Any | None:
        """Return one entity by id, or None."""
        for entity in self.get_all(collection):
            if entity.id == entity_id:
                return entity
        return None

    def upsert(self, collection: str, entity: Any, prepend: bool = False) -> None:
        """Replace the entity with the same id in place, else add it.

        New entities are appended, or put first when ``prepend`` is set.
        """
        spec = self._spec(collection)
        with self._lock:
            entities = self._load(spec)
            for i, existing in enumerate(entities):
                if existing.id == entity.id:
                    entities[i] = entity
                    break
            else:
                if prepend:
                    entities.insert(0, entity)
                else:
                    entities.append(entity)
            self._save(spec, entities)

        logger.debug("local_store.upserted", collection=collection, id=entity.id)

    def remove(self, collection: str, entity_id: str) -> bool:
        """Remove an entity by id. Removing a missing id is a no-op.

        Returns:
            True if an entity was removed.
        """
        spec = self._spec(collection)
        with self._lock:
            entities = self._load(spec)
            remaining = [e for e in entities if e.id != entity_id]
            removed = len(remaining) != len(entities)
            if removed:
                self._save(spec, remaining)

        if removed:
            logger.debug("local_store.removed", collection=collection, id=entity_id)
        return removed

    def replace_all(self, collection: str, entities: Iterable[Any]) -> None:
        """Overwrite a whole collection."""
        spec = self._spec(collection)
        entities = list(entities)
        with self._lock:
            self._save(spec, entities)
        logger.debug("local_store.replaced", collection=collection, count=len(entities))

    def seed(self, collection: str, defaults: Iterable[Any]) -> int:
        """Insert default entities whose id is missing.

        Entities already present are never overwritten.

        Returns:
            Number of defaults inserted.
        """
        spec = self._spec(collection)
        with self._lock:
            entities = self._load(spec)
            present = {e.id for e in entities}
            missing = [d for d in defaults if d.id not in present]
            if missing:
                entities.extend(missing)
                self._save(spec, entities)

        if missing:
            logger.info("local_store.seeded", collection=collection, count=len(missing))
        return len(missing)

    # -------------------------------------------------------------------------
    # Progress (namespaced by user)
    # -------------------------------------------------------------------------

    def _load_progress(self) -> dict[str, list[Progress]]:
        raw = self._read_items(PROGRESS_SPEC, {})
        if not isinstance(raw, dict):
            return {}
        all_progress: dict[str, list[Progress]] = {}
        for user_id, records in raw.items():
            if not isinstance(records, list):
                logger.warning("local_store.progress_skipped", user_id=user_id, error="not a list")
                continue
            parsed = []
            for record in records:
                try:
                    parsed.append(Progress.from_dict(record))
                except (KeyError, ValueError, TypeError) as e:
                    logger.warning("local_store.progress_skipped", user_id=user_id, error=str(e))
            all_progress[user_id] = parsed
        return all_progress

    def _save_progress(self, all_progress: dict[str, list[Progress]]) -> None:
        self._write_items(
            PROGRESS_SPEC,
            {
                user_id: [p.to_dict() for p in records]
                for user_id, records in all_progress.items()
            },
        )

    def get_all_progress(self) -> dict[str, list[Progress]]:
        with self._lock:
            return self._load_progress()

    def get_user_progress(self, user_id: str) -> list[Progress]:
        """All progress records of one user."""
        return self.get_all_progress().get(user_id, [])

    def get_progress(self, user_id: str, material_id: str) -> Progress | None:
        for progress in self.get_user_progress(user_id):
            if progress.material_id == material_id:
                return progress
        return None

    def update_progress(self, user_id: str, progress: Progress) -> None:
        """Replace the user's record for the material, else append it.

        Keeps exactly one record per (user, material).
        """
        with self._lock:
            all_progress = self._load_progress()
            records = all_progress.setdefault(user_id, [])
            for i, existing in enumerate(records):
                if existing.material_id == progress.material_id:
                    records[i] = progress
                    break
            else:
                records.append(progress)
            self._save_progress(all_progress)

        logger.debug(
            "local_store.progress_updated",
            user_id=user_id,
            material_id=progress.material_id,
            status=progress.status.value,
        )

    # -------------------------------------------------------------------------
    # Sync marker
    # -------------------------------------------------------------------------

    def get_sync_marker(self) -> SyncMarker:
        with self._lock:
            raw = self._read_items(SYNC_MARKER_SPEC, {})
        if not isinstance(raw, dict):
            return SyncMarker()
        return SyncMarker.from_dict(raw)

    def set_sync_marker(self, marker: SyncMarker) -> None:
        with self._lock:
            self._write_items(SYNC_MARKER_SPEC, marker.to_dict())
        logger.debug("local_store.sync_marker_set", last_synced=marker.last_synced)

    # -------------------------------------------------------------------------
    # Cross-collection
    # -------------------------------------------------------------------------

    def delete_user(self, user_id: str) -> bool:
        """Remove an account with its support messages and progress.

        Materials and other users' data are untouched.
        """
        with self._lock:
            removed = self.remove("users", user_id)

            spec = self._spec("messages")
            messages = self._load(spec)
            kept = [
                m for m in messages if m.sender_id != user_id and m.receiver_id != user_id
            ]
            if len(kept) != len(messages):
                self._save(spec, kept)

            all_progress = self._load_progress()
            if all_progress.pop(user_id, None) is not None:
                self._save_progress(all_progress)

        logger.info("local_store.user_deleted", user_id=user_id, found=removed)
        return removed
