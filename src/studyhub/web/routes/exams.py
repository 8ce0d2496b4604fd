"""Exam center endpoints."""

import asyncio

import structlog
from fastapi import APIRouter, Depends, HTTPException, status

from studyhub.core.exam_center import ExamNotFoundError
from studyhub.core.entities import Exam
from studyhub.llm.client import LLMError
from studyhub.services import Services
from studyhub.web.dependencies import get_services, require_account
from studyhub.web.schemas import (
    ExamListResponse,
    ExamQuestionResponse,
    ExamResponse,
    ExamResultResponse,
    ExamSubmitRequest,
)

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/exams", tags=["exams"])


def _to_response(exam: Exam) -> ExamResponse:
    # Correct answers stay server-side
    return ExamResponse(
        id=exam.id,
        title=exam.title,
        level=exam.level,
        grade=exam.grade,
        subject=exam.subject,
        questions=[
            ExamQuestionResponse(id=q.id, question=q.question, options=q.options)
            for q in exam.questions
        ],
        created_at=exam.created_at,
    )


@router.get("", response_model=ExamListResponse)
async def list_exams(user_id: str, services: Services = Depends(get_services)) -> ExamListResponse:
    """Exams for the user's grade (all exams for admins)."""
    account = require_account(services, user_id)
    exams = services.exams.exams_for(account)
    return ExamListResponse(exams=[_to_response(e) for e in exams], count=len(exams))


@router.post("/{exam_id}/submit", response_model=ExamResultResponse)
async def submit_exam(
    exam_id: str, request: ExamSubmitRequest, services: Services = Depends(get_services)
) -> ExamResultResponse:
    account = require_account(services, request.user_id)
    try:
        result = await asyncio.to_thread(
            services.exams.submit, account, exam_id, request.answers
        )
    except ExamNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except LLMError as e:
        logger.warning("exam_marking_failed", exam_id=exam_id, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Exam marking is unavailable, please try again",
        ) from e
    return ExamResultResponse.from_result(result)
