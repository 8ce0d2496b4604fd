"""Document viewer session endpoints."""

import base64

from fastapi import APIRouter, Depends, HTTPException, status

from studyhub.services import Services
from studyhub.viewer.renderer import RenderTarget
from studyhub.viewer.session import DocumentViewerSession, ViewerStateError
from studyhub.web.dependencies import get_services, require_material
from studyhub.web.schemas import (
    ContextResponse,
    NavigateRequest,
    PageTextResponse,
    ProgressResponse,
    RenderRequest,
    RenderResponse,
    ViewerOpenRequest,
    ViewerSessionResponse,
)

router = APIRouter(prefix="/api/viewer", tags=["viewer"])


def _to_response(session: DocumentViewerSession) -> ViewerSessionResponse:
    return ViewerSessionResponse(
        session_id=session.session_id,
        material_id=session.material.id,
        state=session.state.value,
        page_count=session.page_count,
        current_page=session.current_page,
        pages_extracted=len(session.page_texts),
        extraction_complete=session.extraction_complete,
        error=session.error,
    )


async def _get_session(services: Services, session_id: str) -> DocumentViewerSession:
    session = await services.viewer.get_session(session_id)
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Viewer session '{session_id}' not found",
        )
    return session


def _conflict(e: Exception) -> HTTPException:
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.post("", response_model=ViewerSessionResponse, status_code=status.HTTP_201_CREATED)
async def open_viewer(
    request: ViewerOpenRequest, services: Services = Depends(get_services)
) -> ViewerSessionResponse:
    """Open a material. A failed load still creates a (FAILED) session."""
    material = require_material(services, request.material_id)
    session = await services.viewer.open_session(material, request.user_id)
    return _to_response(session)


@router.get("/{session_id}", response_model=ViewerSessionResponse)
async def get_viewer(
    session_id: str, services: Services = Depends(get_services)
) -> ViewerSessionResponse:
    return _to_response(await _get_session(services, session_id))


@router.get("/{session_id}/pages/{page_number}/text", response_model=PageTextResponse)
async def page_text(
    session_id: str, page_number: int, services: Services = Depends(get_services)
) -> PageTextResponse:
    session = await _get_session(services, session_id)
    text = session.text_for_page(page_number)
    return PageTextResponse(page_number=page_number, text=text, extracted=text is not None)


@router.get("/{session_id}/context", response_model=ContextResponse)
async def context_text(
    session_id: str, max_pages: int = 5, services: Services = Depends(get_services)
) -> ContextResponse:
    """Extracted text of the first pages, as sent to quiz generation."""
    session = await _get_session(services, session_id)
    return ContextResponse(session_id=session_id, text=session.text_for_context(max_pages))


@router.post("/{session_id}/navigate", response_model=ProgressResponse)
async def navigate(
    session_id: str, request: NavigateRequest, services: Services = Depends(get_services)
) -> ProgressResponse:
    session = await _get_session(services, session_id)
    try:
        progress = session.go_to_page(request.page_number)
    except ViewerStateError as e:
        raise _conflict(e) from e
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    return ProgressResponse.from_progress(progress)


@router.post("/{session_id}/complete", response_model=ProgressResponse)
async def complete(
    session_id: str, services: Services = Depends(get_services)
) -> ProgressResponse:
    session = await _get_session(services, session_id)
    return ProgressResponse.from_progress(session.mark_complete())


@router.post("/{session_id}/render", response_model=RenderResponse)
async def render(
    session_id: str, request: RenderRequest, services: Services = Depends(get_services)
) -> RenderResponse:
    """Render a page into a target. A superseded render returns no image."""
    session = await _get_session(services, session_id)
    target = RenderTarget(id=request.target_id)
    try:
        rendered = await session.render_page(request.page_number, target, request.scale)
    except ViewerStateError as e:
        raise _conflict(e) from e
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

    if rendered is None or rendered.image is None:
        return RenderResponse(
            target_id=request.target_id, page_number=request.page_number, superseded=True
        )
    return RenderResponse(
        target_id=rendered.id,
        page_number=request.page_number,
        superseded=False,
        width=rendered.width,
        height=rendered.height,
        image_base64=base64.b64encode(rendered.image).decode("ascii"),
    )


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def close_viewer(session_id: str, services: Services = Depends(get_services)) -> None:
    if not await services.viewer.close_session(session_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Viewer session '{session_id}' not found",
        )
