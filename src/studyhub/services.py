"""Service wiring.

``build_services(config)`` constructs every component once, in dependency
order, and returns them in a single ``Services`` container. The web app and
the CLI receive the container explicitly; nothing is held at module level.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import structlog

from studyhub.config.app_config import AppConfig
from studyhub.core.accounts import AccountService
from studyhub.core.community import CommunityService
from studyhub.core.exam_center import ExamCenter
from studyhub.core.library import LibraryService
from studyhub.core.progress_tracker import ProgressTracker
from studyhub.core.study_assistant import StudyAssistant
from studyhub.db.local_store import LocalStore
from studyhub.llm.client import LLMClient, LLMConfig
from studyhub.remote.mirror import (
    ObjectStorageClient,
    RemoteMirrorClient,
    create_supabase_client,
)
from studyhub.sync.connectivity import ConnectivityMonitor
from studyhub.sync.coordinator import SyncCoordinator
from studyhub.viewer.renderer import DocumentLoader, FitzDocumentLoader
from studyhub.viewer.session import ViewerSessionManager

logger = structlog.get_logger(__name__)


@dataclass
class Services:
    config: AppConfig
    store: LocalStore
    connectivity: ConnectivityMonitor
    mirror: RemoteMirrorClient
    storage: ObjectStorageClient
    coordinator: SyncCoordinator
    tracker: ProgressTracker
    viewer: ViewerSessionManager
    accounts: AccountService
    library: LibraryService
    community: CommunityService
    assistant: StudyAssistant
    exams: ExamCenter

    async def shutdown(self) -> None:
        await self.viewer.close_all()


def build_services(
    config: AppConfig,
    remote_client=None,
    llm_client: LLMClient | None = None,
    loader: DocumentLoader | None = None,
) -> Services:
    """Build the service graph.

    Args:
        config: Application config
        remote_client: Supabase client override. Defaults to one built
            from ``config.remote`` (None when not configured).
        llm_client: LLM client override
        loader: Document loader override (defaults to PyMuPDF)
    """
    store = LocalStore(Path(config.storage.state_dir), key_prefix=config.storage.key_prefix)

    if remote_client is None:
        remote_client = create_supabase_client(config.remote)
    timeout = config.remote.timeout_seconds
    mirror = RemoteMirrorClient(remote_client, timeout_seconds=timeout)
    storage = ObjectStorageClient(remote_client, bucket=config.remote.bucket, timeout_seconds=timeout)

    connectivity = ConnectivityMonitor(online=True, probe_url=config.remote.url)
    coordinator = SyncCoordinator(store, mirror, connectivity)
    tracker = ProgressTracker(store)

    viewer = ViewerSessionManager(
        loader=loader or FitzDocumentLoader(timeout=timeout),
        tracker=tracker,
        yield_every=config.viewer.extraction_yield_every,
        render_scale=config.viewer.render_scale,
    )

    assistant = StudyAssistant(llm_client or LLMClient(LLMConfig.from_settings(config.llm)))

    services = Services(
        config=config,
        store=store,
        connectivity=connectivity,
        mirror=mirror,
        storage=storage,
        coordinator=coordinator,
        tracker=tracker,
        viewer=viewer,
        accounts=AccountService(
            store, admin_emails=config.accounts.admin_emails, coordinator=coordinator
        ),
        library=LibraryService(store, mirror, storage, coordinator),
        community=CommunityService(store),
        assistant=assistant,
        exams=ExamCenter(store, assistant),
    )

    logger.info(
        "services_built",
        state_dir=config.storage.state_dir,
        remote_configured=remote_client is not None,
        llm_provider=config.llm.provider,
    )
    return services
