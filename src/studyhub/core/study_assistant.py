"""AI study assistant.

Wraps the generative-AI text service for the learner-facing features:
page explanations, quizzes, exam generation and marking, comprehension
feedback and the "ask a teacher" chat.

Every call is one request/response. A failure raises ``LLMError`` once;
nothing is retried or cached.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Literal

import structlog

from studyhub.core.entities import ExamQuestion, QuestionFeedback
from studyhub.llm.client import LLMClient, LLMResponseError
from studyhub.prompts.registry import get_prompt
from studyhub.utils.text_utils import strip_think

logger = structlog.get_logger(__name__)

Language = Literal["English", "Chichewa"]

DEFAULT_EXAM_QUESTIONS = 12

# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

QUIZ_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "chapters": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "chapter_title": {"type": "string"},
                    "questions": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "properties": {
                                "id": {"type": "string"},
                                "type": {"type": "string", "enum": ["mcq", "comprehension"]},
                                "question": {"type": "string"},
                                "options": {"type": "array", "items": {"type": "string"}},
                                "correct_answer": {"type": "string"},
                                "explanation": {"type": "string"},
                            },
                            "required": ["id", "type", "question", "correct_answer", "explanation"],
                        },
                    },
                },
                "required": ["chapter_title", "questions"],
            },
        }
    },
    "required": ["chapters"],
}

EXAM_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "questions": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "id": {"type": "string"},
                    "question": {"type": "string"},
                    "options": {"type": "array", "items": {"type": "string"}},
                    "correct_answer": {"type": "string"},
                    "explanation": {"type": "string"},
                },
                "required": ["id", "question", "options", "correct_answer", "explanation"],
            },
        }
    },
    "required": ["questions"],
}

EXAM_EVALUATION_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "score": {"type": "number"},
        "feedback": {
            "type": "object",
            "additionalProperties": {
                "type": "object",
                "properties": {
                    "is_correct": {"type": "boolean"},
                    "tip": {"type": "string"},
                    "correct_answer": {"type": "string"},
                },
                "required": ["is_correct", "tip", "correct_answer"],
            },
        },
    },
    "required": ["score", "feedback"],
}

COMPREHENSION_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "score": {"type": "number"},
        "strengths": {"type": "array", "items": {"type": "string"}},
        "improvements": {"type": "array", "items": {"type": "string"}},
        "feedback_summary": {"type": "string"},
    },
    "required": ["score", "strengths", "improvements", "feedback_summary"],
}


# =============================================================================
# RESULT TYPES
# =============================================================================


@dataclass
class QuizQuestion:
    id: str
    type: Literal["mcq", "comprehension"]
    question: str
    correct_answer: str
    explanation: str = ""
    options: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "question": self.question,
            "options": list(self.options),
            "correct_answer": self.correct_answer,
            "explanation": self.explanation,
        }


@dataclass
class QuizChapter:
    chapter_title: str
    questions: list[QuizQuestion]

    def to_dict(self) -> dict[str, Any]:
        return {
            "chapter_title": self.chapter_title,
            "questions": [q.to_dict() for q in self.questions],
        }


@dataclass
class ExamEvaluation:
    """Marking of one exam attempt (score is a percentage)."""

    score: float
    feedback: dict[str, QuestionFeedback]


@dataclass
class ComprehensionEvaluation:
    score: float
    strengths: list[str]
    improvements: list[str]
    feedback_summary: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "strengths": list(self.strengths),
            "improvements": list(self.improvements),
            "feedback_summary": self.feedback_summary,
        }


def _require(result: dict[str, Any], key: str, kind: type) -> Any:
    value = result.get(key)
    if not isinstance(value, kind):
        raise LLMResponseError(f"AI response is missing '{key}'")
    return value


# =============================================================================
# ASSISTANT
# =============================================================================


class StudyAssistant:
    """Learner-facing AI features."""

    def __init__(self, client: LLMClient):
        self.client = client

    def explain_page(self, text: str, language: Language = "English") -> str:
        """Explain a page's key concepts in simple English or Chichewa."""
        if language == "English":
            key = "assistant/explain_page_english"
        elif language == "Chichewa":
            key = "assistant/explain_page_chichewa"
        else:
            raise ValueError(f"Unsupported language: {language}")

        answer = strip_think(self.client.generate(get_prompt(key, text=text)))
        logger.info("assistant.page_explained", language=language, chars=len(text))
        return answer or "No explanation available."

    def generate_quiz(
        self, title: str, subject: str, grade: str, context: str
    ) -> list[QuizChapter]:
        """Generate chapter quizzes (MCQ and comprehension) for a material."""
        prompt = get_prompt(
            "assistant/generate_quiz",
            title=title,
            subject=subject,
            grade=grade,
            context=context,
        )
        result = self.client.generate(prompt, response_schema=QUIZ_SCHEMA)

        chapters = []
        for raw_chapter in _require(result, "chapters", list):
            questions = [
                QuizQuestion(
                    id=str(q.get("id", i + 1)),
                    type="mcq" if q.get("type") == "mcq" else "comprehension",
                    question=q.get("question", ""),
                    options=list(q.get("options") or []),
                    correct_answer=q.get("correct_answer", ""),
                    explanation=q.get("explanation", ""),
                )
                for i, q in enumerate(raw_chapter.get("questions", []))
            ]
            chapters.append(
                QuizChapter(chapter_title=raw_chapter.get("chapter_title", ""), questions=questions)
            )

        logger.info("assistant.quiz_generated", title=title, chapters=len(chapters))
        return chapters

    def generate_exam(
        self,
        level: str,
        grade: str,
        subject: str,
        context: str,
        question_count: int = DEFAULT_EXAM_QUESTIONS,
    ) -> list[ExamQuestion]:
        """Generate multiple-choice exam questions."""
        prompt = get_prompt(
            "assistant/generate_exam",
            level=level,
            grade=grade,
            subject=subject,
            context=context,
            question_count=str(question_count),
        )
        result = self.client.generate(prompt, response_schema=EXAM_SCHEMA)
        questions = [ExamQuestion.from_dict(q) for q in _require(result, "questions", list)]

        logger.info("assistant.exam_generated", subject=subject, grade=grade, questions=len(questions))
        return questions

    def evaluate_exam(
        self, questions: list[ExamQuestion], answers: dict[str, str]
    ) -> ExamEvaluation:
        """Mark an exam attempt: percentage score plus per-question feedback."""
        prompt = get_prompt(
            "assistant/evaluate_exam",
            questions=json.dumps([q.to_dict() for q in questions], ensure_ascii=False),
            answers=json.dumps(answers, ensure_ascii=False),
        )
        result = self.client.generate(prompt, response_schema=EXAM_EVALUATION_SCHEMA, temperature=0.0)

        score = _require(result, "score", (int, float))
        feedback = {
            str(qid): QuestionFeedback.from_dict(item)
            for qid, item in _require(result, "feedback", dict).items()
        }
        return ExamEvaluation(score=float(max(0, min(100, score))), feedback=feedback)

    def evaluate_comprehension(
        self, question: str, answer: str, model_answer: str
    ) -> ComprehensionEvaluation:
        """Score a free-text answer against the model answer."""
        prompt = get_prompt(
            "assistant/evaluate_comprehension",
            question=question,
            answer=answer,
            model_answer=model_answer,
        )
        result = self.client.generate(prompt, response_schema=COMPREHENSION_SCHEMA, temperature=0.0)

        return ComprehensionEvaluation(
            score=float(_require(result, "score", (int, float))),
            strengths=list(result.get("strengths", [])),
            improvements=list(result.get("improvements", [])),
            feedback_summary=result.get("feedback_summary", ""),
        )

    def ask_teacher(self, question: str, grade: str, level: str) -> str:
        """Answer a learner's question as Markdown."""
        prompt = get_prompt(
            "assistant/ask_teacher",
            question=question,
            grade=grade or "an unknown grade",
            level=level or "unknown",
        )
        return strip_think(self.client.generate(prompt))
