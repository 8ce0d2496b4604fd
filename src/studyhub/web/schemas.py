"""Pydantic schemas for the Web API.

Serialization models for materials, progress, sync, viewer sessions
and exams.
"""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, Field

from studyhub.core.entities import (
    Category,
    EducationLevel,
    ExamResult,
    Material,
    Progress,
    ReadingStatus,
)

# =============================================================================
# MATERIAL SCHEMAS
# =============================================================================


class MaterialResponse(BaseModel):
    id: str
    title: str
    level: EducationLevel
    grade: str
    subject: str
    category: Category
    file_location: str
    file_name: str
    uploaded_at: str
    is_digital: bool = False

    @classmethod
    def from_material(cls, material: Material) -> MaterialResponse:
        return cls(
            id=material.id,
            title=material.title,
            level=material.level,
            grade=material.grade,
            subject=material.subject,
            category=material.category,
            file_location=material.file_location,
            file_name=material.file_name,
            uploaded_at=material.uploaded_at,
            is_digital=material.is_digital,
        )


class MaterialListResponse(BaseModel):
    materials: list[MaterialResponse]
    count: int


class CatalogRefreshResponse(BaseModel):
    refreshed: bool
    count: int


class UserMaterialRequest(BaseModel):
    """Request body naming the acting user."""

    user_id: str = Field(..., min_length=1)


class LibraryListsResponse(BaseModel):
    downloaded_ids: list[str]
    favorite_ids: list[str]


class FavoriteResponse(BaseModel):
    material_id: str
    is_favorite: bool


# =============================================================================
# PROGRESS SCHEMAS
# =============================================================================


class ProgressResponse(BaseModel):
    material_id: str
    status: ReadingStatus
    last_read: str
    progress_percent: int

    @classmethod
    def from_progress(cls, progress: Progress) -> ProgressResponse:
        return cls(
            material_id=progress.material_id,
            status=progress.status,
            last_read=progress.last_read,
            progress_percent=progress.progress_percent,
        )


class ProgressListResponse(BaseModel):
    user_id: str
    progress: list[ProgressResponse]
    count: int


class PositionUpdate(BaseModel):
    percent: int = Field(..., ge=0, le=100)


# =============================================================================
# SYNC SCHEMAS
# =============================================================================


class SyncResponse(BaseModel):
    success: bool
    synced_at: str | None = None
    message: str = ""


class SyncStatusResponse(BaseModel):
    is_online: bool
    is_syncing: bool
    last_synced: str | None = None


class ConnectivityUpdate(BaseModel):
    online: bool


# =============================================================================
# VIEWER SCHEMAS
# =============================================================================


class ViewerOpenRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    material_id: str = Field(..., min_length=1)


class ViewerSessionResponse(BaseModel):
    session_id: str
    material_id: str
    state: str
    page_count: int
    current_page: int
    pages_extracted: int
    extraction_complete: bool
    error: str | None = None


class PageTextResponse(BaseModel):
    page_number: int
    text: str | None
    extracted: bool


class NavigateRequest(BaseModel):
    page_number: int = Field(..., ge=1)


class RenderRequest(BaseModel):
    page_number: int = Field(..., ge=1)
    target_id: str = Field(default="main", min_length=1)
    scale: float | None = Field(default=None, gt=0, le=5)


class RenderResponse(BaseModel):
    target_id: str
    page_number: int
    superseded: bool
    width: int = 0
    height: int = 0
    image_base64: str | None = None


class ContextResponse(BaseModel):
    session_id: str
    text: str


# =============================================================================
# EXAM SCHEMAS
# =============================================================================


class ExamQuestionResponse(BaseModel):
    id: str
    question: str
    options: list[str]


class ExamResponse(BaseModel):
    id: str
    title: str
    level: EducationLevel
    grade: str
    subject: str
    questions: list[ExamQuestionResponse]
    created_at: str


class ExamListResponse(BaseModel):
    exams: list[ExamResponse]
    count: int


class ExamSubmitRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    answers: dict[str, str]


class QuestionFeedbackResponse(BaseModel):
    is_correct: bool
    tip: str
    correct_answer: str


class ExamResultResponse(BaseModel):
    id: str
    exam_id: str
    score: float
    passed: bool
    total_questions: int
    feedback: dict[str, QuestionFeedbackResponse]
    completed_at: str

    @classmethod
    def from_result(cls, result: ExamResult) -> ExamResultResponse:
        return cls(
            id=result.id,
            exam_id=result.exam_id,
            score=result.score,
            passed=result.passed,
            total_questions=result.total_questions,
            feedback={
                qid: QuestionFeedbackResponse(**fb.to_dict())
                for qid, fb in result.feedback.items()
            },
            completed_at=result.completed_at,
        )


# =============================================================================
# HEALTH
# =============================================================================


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    version: str = "0.1.0"
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    online: bool = True
