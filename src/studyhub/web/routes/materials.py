"""Material catalog endpoints."""

import structlog
from fastapi import APIRouter, Depends, HTTPException, status

from studyhub.core.accounts import AccountNotFoundError
from studyhub.core.entities import Category, EducationLevel
from studyhub.core.library import MaterialNotFoundError
from studyhub.services import Services
from studyhub.web.dependencies import get_services, require_account, require_material
from studyhub.web.schemas import (
    CatalogRefreshResponse,
    FavoriteResponse,
    LibraryListsResponse,
    MaterialListResponse,
    MaterialResponse,
    UserMaterialRequest,
)

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/materials", tags=["materials"])


@router.get("", response_model=MaterialListResponse)
async def list_materials(
    level: EducationLevel | None = None,
    grade: str | None = None,
    subject: str | None = None,
    category: Category | None = None,
    q: str | None = None,
    services: Services = Depends(get_services),
) -> MaterialListResponse:
    """List the cached catalog, newest first."""
    materials = services.library.list_materials(
        level=level, grade=grade, subject=subject, category=category, query=q
    )
    return MaterialListResponse(
        materials=[MaterialResponse.from_material(m) for m in materials],
        count=len(materials),
    )


@router.post("/refresh", response_model=CatalogRefreshResponse)
async def refresh_catalog(services: Services = Depends(get_services)) -> CatalogRefreshResponse:
    """Re-pull the catalog from the remote mirror."""
    materials = await services.library.refresh_catalog()
    if materials is None:
        cached = services.library.list_materials()
        return CatalogRefreshResponse(refreshed=False, count=len(cached))
    return CatalogRefreshResponse(refreshed=True, count=len(materials))


@router.get("/{material_id}", response_model=MaterialResponse)
async def get_material(
    material_id: str, services: Services = Depends(get_services)
) -> MaterialResponse:
    return MaterialResponse.from_material(require_material(services, material_id))


@router.post("/{material_id}/download", response_model=LibraryListsResponse)
async def record_download(
    material_id: str,
    request: UserMaterialRequest,
    services: Services = Depends(get_services),
) -> LibraryListsResponse:
    """Add a material to the user's downloads."""
    try:
        account = services.library.record_download(request.user_id, material_id)
    except (AccountNotFoundError, MaterialNotFoundError) as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e

    return LibraryListsResponse(
        downloaded_ids=sorted(account.downloaded_ids),
        favorite_ids=sorted(account.favorite_ids),
    )


@router.post("/{material_id}/favorite", response_model=FavoriteResponse)
async def toggle_favorite(
    material_id: str,
    request: UserMaterialRequest,
    services: Services = Depends(get_services),
) -> FavoriteResponse:
    require_material(services, material_id)
    require_account(services, request.user_id)
    is_favorite = services.library.toggle_favorite(request.user_id, material_id)
    return FavoriteResponse(material_id=material_id, is_favorite=is_favorite)
