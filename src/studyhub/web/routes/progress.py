"""Reading progress endpoints."""

from fastapi import APIRouter, Depends, HTTPException, status

from studyhub.core.progress_tracker import ProgressError
from studyhub.services import Services
from studyhub.web.dependencies import get_services, require_material
from studyhub.web.schemas import PositionUpdate, ProgressListResponse, ProgressResponse

router = APIRouter(prefix="/api/progress", tags=["progress"])


@router.get("/{user_id}", response_model=ProgressListResponse)
async def list_progress(
    user_id: str, services: Services = Depends(get_services)
) -> ProgressListResponse:
    records = services.tracker.list_for_user(user_id)
    return ProgressListResponse(
        user_id=user_id,
        progress=[ProgressResponse.from_progress(p) for p in records],
        count=len(records),
    )


@router.post("/{user_id}/{material_id}/open", response_model=ProgressResponse)
async def open_material(
    user_id: str, material_id: str, services: Services = Depends(get_services)
) -> ProgressResponse:
    """Record that the user opened a material."""
    require_material(services, material_id)
    return ProgressResponse.from_progress(services.tracker.open(user_id, material_id))


@router.put("/{user_id}/{material_id}/position", response_model=ProgressResponse)
async def update_position(
    user_id: str,
    material_id: str,
    update: PositionUpdate,
    services: Services = Depends(get_services),
) -> ProgressResponse:
    require_material(services, material_id)
    try:
        progress = services.tracker.update_position(user_id, material_id, update.percent)
    except ProgressError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    return ProgressResponse.from_progress(progress)


@router.post("/{user_id}/{material_id}/complete", response_model=ProgressResponse)
async def mark_complete(
    user_id: str, material_id: str, services: Services = Depends(get_services)
) -> ProgressResponse:
    require_material(services, material_id)
    return ProgressResponse.from_progress(services.tracker.mark_complete(user_id, material_id))
