"""Exam center: admin-created exams and learner attempts.

Exams and results are local collections. A submission is marked by the
study assistant; if the AI call fails the error propagates and no result
is stored.
"""

from __future__ import annotations

import structlog

from studyhub.core.entities import (
    EducationLevel,
    Exam,
    ExamQuestion,
    ExamResult,
    UserAccount,
    new_id,
)
from studyhub.core.study_assistant import StudyAssistant
from studyhub.db.local_store import LocalStore

logger = structlog.get_logger(__name__)


class ExamNotFoundError(LookupError):
    """Raised when an exam id does not exist."""

    def __init__(self, exam_id: str):
        self.exam_id = exam_id
        super().__init__(f"Exam not found: {exam_id}")


class ExamCenter:
    def __init__(self, store: LocalStore, assistant: StudyAssistant):
        self.store = store
        self.assistant = assistant

    def create_exam(
        self,
        admin: UserAccount,
        title: str,
        level: EducationLevel,
        grade: str,
        subject: str,
        questions: list[ExamQuestion],
    ) -> Exam:
        """Publish an exam. Only admins may create exams."""
        if not admin.is_admin:
            raise PermissionError("Only admins can create exams")
        if not questions:
            raise ValueError("An exam needs at least one question")

        exam = Exam(
            id=new_id(),
            title=title,
            level=level,
            grade=grade,
            subject=subject,
            questions=questions,
            created_by=admin.id,
        )
        self.store.upsert("exams", exam, prepend=True)
        logger.info("exam.created", exam_id=exam.id, grade=grade, questions=len(questions))
        return exam

    def get_exam(self, exam_id: str) -> Exam:
        exam = self.store.get("exams", exam_id)
        if exam is None:
            raise ExamNotFoundError(exam_id)
        return exam

    def exams_for(self, user: UserAccount) -> list[Exam]:
        """Exams for the user's grade; admins see every exam."""
        exams = self.store.get_all("exams")
        if user.is_admin:
            return exams
        return [e for e in exams if e.grade == user.current_grade]

    def delete_exam(self, exam_id: str) -> bool:
        return self.store.remove("exams", exam_id)

    def submit(self, user: UserAccount, exam_id: str, answers: dict[str, str]) -> ExamResult:
        """Mark an attempt and store the result.

        Raises:
            ExamNotFoundError: Unknown exam id
            LLMError: Marking failed; nothing is stored
        """
        exam = self.get_exam(exam_id)
        evaluation = self.assistant.evaluate_exam(exam.questions, answers)

        result = ExamResult(
            id=new_id(),
            exam_id=exam.id,
            user_id=user.id,
            score=evaluation.score,
            total_questions=len(exam.questions),
            answers=dict(answers),
            feedback=evaluation.feedback,
        )
        self.store.upsert("exam_results", result, prepend=True)
        logger.info(
            "exam.submitted",
            exam_id=exam.id,
            user_id=user.id,
            score=result.score,
            passed=result.passed,
        )
        return result

    def results_for(self, user_id: str) -> list[ExamResult]:
        return [r for r in self.store.get_all("exam_results") if r.user_id == user_id]
