"""Tests for the remote mirror client (F3)."""

import time
from unittest.mock import MagicMock

import httpx
import pytest

from studyhub.config.app_config import RemoteConfig
from studyhub.remote.mirror import (
    ObjectStorageClient,
    RemoteMirrorClient,
    RemoteRejectedError,
    RemoteUnavailableError,
    create_supabase_client,
)


class TestTableOperations:
    @pytest.mark.asyncio
    async def test_upsert_sends_record(self, mirror, supabase_client):
        await mirror.upsert("users", {"id": "u1", "name": "A"})

        supabase_client.table.assert_called_with("users")
        supabase_client.table.return_value.upsert.assert_called_once_with({"id": "u1", "name": "A"})

    @pytest.mark.asyncio
    async def test_select_orders_rows(self, mirror, supabase_client):
        query = supabase_client.table.return_value.select.return_value
        query.order.return_value.execute.return_value.data = [{"id": "m1"}]

        rows = await mirror.select("materials", order_by="uploaded_at", desc=True)

        assert rows == [{"id": "m1"}]
        query.order.assert_called_once_with("uploaded_at", desc=True)

    @pytest.mark.asyncio
    async def test_delete_by_id(self, mirror, supabase_client):
        await mirror.delete("materials", "m1")

        supabase_client.table.return_value.delete.return_value.eq.assert_called_once_with("id", "m1")


class TestErrorClassification:
    @pytest.mark.asyncio
    async def test_unconfigured_is_unavailable(self):
        with pytest.raises(RemoteUnavailableError):
            await RemoteMirrorClient(None, timeout_seconds=1.0).upsert("users", {"id": "u1"})

    @pytest.mark.asyncio
    async def test_network_error_is_unavailable(self, mirror, supabase_client):
        supabase_client.table.return_value.upsert.return_value.execute.side_effect = (
            httpx.ConnectError("connection refused")
        )
        with pytest.raises(RemoteUnavailableError):
            await mirror.upsert("users", {"id": "u1"})

    @pytest.mark.asyncio
    async def test_api_error_is_rejected(self, mirror, supabase_client):
        supabase_client.table.return_value.upsert.return_value.execute.side_effect = (
            RuntimeError("new row violates row-level security policy")
        )
        with pytest.raises(RemoteRejectedError):
            await mirror.upsert("users", {"id": "u1"})

    @pytest.mark.asyncio
    async def test_hung_call_times_out(self, supabase_client):
        """A call that never answers surfaces as unavailable after the deadline."""
        supabase_client.table.return_value.upsert.return_value.execute.side_effect = (
            lambda: time.sleep(0.5)
        )
        mirror = RemoteMirrorClient(supabase_client, timeout_seconds=0.05)

        with pytest.raises(RemoteUnavailableError, match="timed out"):
            await mirror.upsert("users", {"id": "u1"})


class TestObjectStorage:
    @pytest.mark.asyncio
    async def test_upload_returns_path(self, object_storage, supabase_client):
        handle = await object_storage.upload("materials/1_a.pdf", b"%PDF", "application/pdf")

        assert handle == "materials/1_a.pdf"
        supabase_client.storage.from_.assert_called_with("materials")
        upload = supabase_client.storage.from_.return_value.upload
        assert upload.call_args.kwargs["path"] == "materials/1_a.pdf"
        assert upload.call_args.kwargs["file"] == b"%PDF"

    def test_public_url(self, object_storage, supabase_client):
        supabase_client.storage.from_.return_value.get_public_url.return_value = "https://cdn/x.pdf"
        assert object_storage.public_url("materials/x.pdf") == "https://cdn/x.pdf"

    def test_public_url_unconfigured(self):
        storage = ObjectStorageClient(None, bucket="materials", timeout_seconds=1.0)
        with pytest.raises(RemoteUnavailableError):
            storage.public_url("materials/x.pdf")


class TestCreateClient:
    def test_none_when_not_configured(self, monkeypatch):
        monkeypatch.delenv("STUDYHUB_REMOTE_KEY", raising=False)
        assert create_supabase_client(RemoteConfig(url="https://example.supabase.co")) is None
        assert create_supabase_client(RemoteConfig(url=None)) is None

    def test_passes_timeout(self, monkeypatch):
        monkeypatch.setenv("STUDYHUB_REMOTE_KEY", "anon-key")
        fake_create = MagicMock()
        monkeypatch.setattr("supabase.create_client", fake_create)

        create_supabase_client(RemoteConfig(url="https://example.supabase.co", timeout_seconds=7))

        args, kwargs = fake_create.call_args
        assert args == ("https://example.supabase.co", "anon-key")
        assert kwargs["options"].postgrest_client_timeout == 7
