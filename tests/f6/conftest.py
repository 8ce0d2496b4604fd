"""Fixtures for F6 tests - Web API and CLI.

The service graph is built with a mocked Supabase client, a mocked LLM
client and an in-memory document loader, all under tmp_path.
"""

import asyncio
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from studyhub.config.app_config import AppConfig, StorageConfig
from studyhub.core.entities import EducationLevel, ExamQuestion
from studyhub.services import build_services
from studyhub.viewer.renderer import DocumentLoadError, RenderTarget
from studyhub.web.api import create_app


class MemoryPage:
    def __init__(self, number: int):
        self.number = number

    async def get_text_content(self) -> str:
        return f"Text of page {self.number}"

    def render(self, target: RenderTarget, scale: float) -> asyncio.Task:
        return asyncio.create_task(self._render(target, scale))

    async def _render(self, target: RenderTarget, scale: float) -> RenderTarget:
        target.page_number = self.number
        target.scale = scale
        target.width, target.height = 10, 14
        target.image = f"page-{self.number}".encode()
        return target


class MemoryDocument:
    def __init__(self, page_count: int):
        self.page_count = page_count

    async def get_page(self, number: int) -> MemoryPage:
        return MemoryPage(number)

    def close(self) -> None:
        pass


class MemoryLoader:
    """Every locator is a 4-page document, except ones containing 'missing'."""

    async def load(self, locator):
        if "missing" in str(locator):
            raise DocumentLoadError(f"Document not found: {locator}")
        return MemoryDocument(4)


@pytest.fixture
def remote_client():
    client = MagicMock()
    client.table.return_value.select.return_value.order.return_value.execute.return_value.data = []
    return client


@pytest.fixture
def llm_client():
    return MagicMock()


@pytest.fixture
def services(tmp_path, remote_client, llm_client):
    config = AppConfig(storage=StorageConfig(state_dir=str(tmp_path / "state")))
    return build_services(
        config, remote_client=remote_client, llm_client=llm_client, loader=MemoryLoader()
    )


@pytest.fixture
def client(services):
    with TestClient(create_app(services)) as test_client:
        yield test_client


@pytest.fixture
def learner(services, make_account):
    account = make_account()
    services.store.upsert("users", account)
    return account


@pytest.fixture
def material(services, make_material):
    material = make_material()
    services.store.upsert("materials", material)
    return material


@pytest.fixture
def exam(services, admin_account):
    services.store.upsert("users", admin_account)
    return services.exams.create_exam(
        admin_account,
        "Form 2 Biology Test",
        EducationLevel.SECONDARY,
        "Form 2",
        "Biology",
        [
            ExamQuestion(
                id="1",
                question="Which organelle carries out photosynthesis?",
                options=["Nucleus", "Chloroplast", "Ribosome", "Vacuole"],
                correct_answer="Chloroplast",
            )
        ],
    )
