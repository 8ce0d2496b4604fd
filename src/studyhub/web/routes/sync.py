"""Sync endpoints."""

from fastapi import APIRouter, Depends

from studyhub.services import Services
from studyhub.web.dependencies import get_services
from studyhub.web.schemas import ConnectivityUpdate, SyncResponse, SyncStatusResponse

router = APIRouter(prefix="/api/sync", tags=["sync"])


@router.get("/status", response_model=SyncStatusResponse)
async def sync_status(services: Services = Depends(get_services)) -> SyncStatusResponse:
    status = services.coordinator.status()
    return SyncStatusResponse(
        is_online=status.is_online,
        is_syncing=status.is_syncing,
        last_synced=status.last_synced,
    )


@router.post("/connectivity", response_model=SyncStatusResponse)
async def report_connectivity(
    update: ConnectivityUpdate, services: Services = Depends(get_services)
) -> SyncStatusResponse:
    """Report a client online/offline event.

    Going back online re-syncs the signed-in user before responding.
    """
    await services.connectivity.set_online(update.online)
    return await sync_status(services)


@router.post("/{user_id}", response_model=SyncResponse)
async def trigger_sync(user_id: str, services: Services = Depends(get_services)) -> SyncResponse:
    """Push the user's profile. Failures are reported, never raised."""
    outcome = await services.coordinator.sync(user_id)
    return SyncResponse(
        success=outcome.success,
        synced_at=outcome.synced_at,
        message=outcome.message,
    )
