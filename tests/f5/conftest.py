"""Fixtures for F5 tests - accounts, library, community and AI features."""

from unittest.mock import MagicMock

import pytest

from studyhub.core.accounts import AccountService
from studyhub.core.exam_center import ExamCenter
from studyhub.core.library import LibraryService
from studyhub.core.study_assistant import StudyAssistant
from studyhub.remote.mirror import ObjectStorageClient, RemoteMirrorClient
from studyhub.sync.connectivity import ConnectivityMonitor
from studyhub.sync.coordinator import SyncCoordinator

PUBLIC_BASE = "https://demo.supabase.co/storage/v1/object/public/materials/"


@pytest.fixture
def mock_llm_client():
    """LLM client whose ``generate`` is scripted per test."""
    client = MagicMock()
    client.generate.return_value = ""
    return client


@pytest.fixture
def assistant(mock_llm_client):
    return StudyAssistant(mock_llm_client)


@pytest.fixture
def exam_center(store, assistant):
    return ExamCenter(store, assistant)


@pytest.fixture
def supabase_client():
    client = MagicMock()
    client.table.return_value.select.return_value.order.return_value.execute.return_value.data = []
    client.storage.from_.return_value.get_public_url.side_effect = lambda path: PUBLIC_BASE + path
    return client


@pytest.fixture
def coordinator(store, supabase_client):
    mirror = RemoteMirrorClient(supabase_client, timeout_seconds=1.0)
    return SyncCoordinator(store, mirror, ConnectivityMonitor(online=True))


@pytest.fixture
def library(store, supabase_client, coordinator):
    return LibraryService(
        store,
        coordinator.mirror,
        ObjectStorageClient(supabase_client, bucket="materials", timeout_seconds=1.0),
        coordinator,
        timestamp=lambda: 1709287200000,
    )


@pytest.fixture
def accounts(store, coordinator):
    return AccountService(store, admin_emails=["admin@example.org"], coordinator=coordinator)
