"""Entity types stored in the local cache and mirrored remotely.

Each collection has one tagged dataclass with ``to_dict()`` for JSON
serialization and ``from_dict()`` for reconstruction. Missing optional
fields fall back to defaults so older files still load.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


def utc_now() -> str:
    """Current UTC time as ISO 8601 string."""
    return datetime.now(timezone.utc).isoformat()


def new_id() -> str:
    """Generate a short random entity id."""
    return uuid.uuid4().hex[:12]


# =============================================================================
# ENUMS
# =============================================================================


class EducationLevel(str, Enum):
    PRIMARY = "Primary"
    SECONDARY = "Secondary"


class Category(str, Enum):
    NOTES = "Notes"
    BOOKS = "Books"
    PAST_PAPERS = "Past Papers & Exams"


class ReadingStatus(str, Enum):
    NOT_STARTED = "Not Started"
    READING = "Reading"
    COMPLETED = "Completed"


class AppRole(str, Enum):
    USER = "user"
    ADMIN = "admin"


class AccountRole(str, Enum):
    STUDENT = "Student"
    TEACHER = "Teacher"
    PARENT = "Parent"
    GUARDIAN = "Guardian"


PRIMARY_GRADES = ["Standard 5", "Standard 6", "Standard 7", "Standard 8"]
SECONDARY_GRADES = ["Form 1", "Form 2", "Form 3", "Form 4"]


# =============================================================================
# CATALOG
# =============================================================================


@dataclass
class Material:
    """A catalogued study resource (book, notes, past paper)."""

    id: str
    title: str
    level: EducationLevel
    grade: str
    subject: str
    category: Category
    file_location: str
    file_name: str
    uploaded_at: str = ""
    is_digital: bool = False
    content: str | None = None

    def __post_init__(self):
        if not self.uploaded_at:
            self.uploaded_at = utc_now()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result = {
            "id": self.id,
            "title": self.title,
            "level": self.level.value,
            "grade": self.grade,
            "subject": self.subject,
            "category": self.category.value,
            "file_location": self.file_location,
            "file_name": self.file_name,
            "uploaded_at": self.uploaded_at,
            "is_digital": self.is_digital,
        }
        if self.content is not None:
            result["content"] = self.content
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Material:
        return cls(
            id=data["id"],
            title=data["title"],
            level=EducationLevel(data["level"]),
            grade=data["grade"],
            subject=data["subject"],
            category=Category(data["category"]),
            file_location=data.get("file_location", ""),
            file_name=data.get("file_name", ""),
            uploaded_at=data.get("uploaded_at", ""),
            is_digital=bool(data.get("is_digital", False)),
            content=data.get("content"),
        )


# =============================================================================
# ACCOUNTS
# =============================================================================


@dataclass
class UserAccount:
    """A signed-in user with profile fields and library lists.

    ``downloaded_ids`` and ``favorite_ids`` are sets: a material id can
    appear at most once in each.
    """

    id: str
    email: str
    name: str
    role: AppRole = AppRole.USER
    date_joined: str = ""
    last_login: str = ""
    downloaded_ids: set[str] = field(default_factory=set)
    favorite_ids: set[str] = field(default_factory=set)
    is_profile_complete: bool = False
    age: int | None = None
    account_role: AccountRole | None = None
    district: str = ""
    reason: str = ""
    school_name: str = ""
    current_grade: str = ""
    bio: str = ""
    profile_pic: str = ""
    terms_accepted: bool = False
    is_public: bool = False

    def __post_init__(self):
        now = utc_now()
        if not self.date_joined:
            self.date_joined = now
        if not self.last_login:
            self.last_login = now

    @property
    def is_admin(self) -> bool:
        return self.role == AppRole.ADMIN

    @property
    def first_name(self) -> str:
        return self.name.split(" ")[0] if self.name else "Learner"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "role": self.role.value,
            "date_joined": self.date_joined,
            "last_login": self.last_login,
            "downloaded_ids": sorted(self.downloaded_ids),
            "favorite_ids": sorted(self.favorite_ids),
            "is_profile_complete": self.is_profile_complete,
            "age": self.age,
            "account_role": self.account_role.value if self.account_role else None,
            "district": self.district,
            "reason": self.reason,
            "school_name": self.school_name,
            "current_grade": self.current_grade,
            "bio": self.bio,
            "profile_pic": self.profile_pic,
            "terms_accepted": self.terms_accepted,
            "is_public": self.is_public,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> UserAccount:
        account_role = data.get("account_role")
        return cls(
            id=data["id"],
            email=data.get("email", ""),
            name=data.get("name", ""),
            role=AppRole(data.get("role", AppRole.USER.value)),
            date_joined=data.get("date_joined", ""),
            last_login=data.get("last_login", ""),
            downloaded_ids=set(data.get("downloaded_ids", [])),
            favorite_ids=set(data.get("favorite_ids", [])),
            is_profile_complete=bool(data.get("is_profile_complete", False)),
            age=data.get("age"),
            account_role=AccountRole(account_role) if account_role else None,
            district=data.get("district", ""),
            reason=data.get("reason", ""),
            school_name=data.get("school_name", ""),
            current_grade=data.get("current_grade", ""),
            bio=data.get("bio", ""),
            profile_pic=data.get("profile_pic", ""),
            terms_accepted=bool(data.get("terms_accepted", False)),
            is_public=bool(data.get("is_public", False)),
        )


# =============================================================================
# PROGRESS & SYNC
# =============================================================================


@dataclass
class Progress:
    """A user's reading state against one material."""

    material_id: str
    status: ReadingStatus = ReadingStatus.NOT_STARTED
    last_read: str = ""
    progress_percent: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "material_id": self.material_id,
            "status": self.status.value,
            "last_read": self.last_read,
            "progress_percent": self.progress_percent,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Progress:
        return cls(
            material_id=data["material_id"],
            status=ReadingStatus(data.get("status", ReadingStatus.NOT_STARTED.value)),
            last_read=data.get("last_read", ""),
            progress_percent=int(data.get("progress_percent", 0)),
        )


@dataclass
class SyncMarker:
    """Device-wide record of the last successful push."""

    last_synced: str | None = None

    @property
    def last_synced_at(self) -> datetime | None:
        if not self.last_synced:
            return None
        return datetime.fromisoformat(self.last_synced)

    def to_dict(self) -> dict[str, Any]:
        return {"last_synced": self.last_synced}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SyncMarker:
        return cls(last_synced=data.get("last_synced"))


# =============================================================================
# COMMUNITY
# =============================================================================


@dataclass
class Announcement:
    id: str
    title: str
    content: str
    timestamp: str = ""
    priority: str = "normal"  # normal | important | urgent

    def __post_init__(self):
        if not self.timestamp:
            self.timestamp = utc_now()

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "timestamp": self.timestamp,
            "priority": self.priority,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Announcement:
        return cls(
            id=data["id"],
            title=data.get("title", ""),
            content=data.get("content", ""),
            timestamp=data.get("timestamp", ""),
            priority=data.get("priority", "normal"),
        )


@dataclass
class Testimonial:
    id: str
    user_id: str
    user_name: str
    content: str
    rating: int = 5
    user_role: str = "Member"
    timestamp: str = ""

    def __post_init__(self):
        if not self.timestamp:
            self.timestamp = utc_now()

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "user_name": self.user_name,
            "content": self.content,
            "rating": self.rating,
            "user_role": self.user_role,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Testimonial:
        return cls(
            id=data["id"],
            user_id=data.get("user_id", ""),
            user_name=data.get("user_name", ""),
            content=data.get("content", ""),
            rating=int(data.get("rating", 5)),
            user_role=data.get("user_role", "Member"),
            timestamp=data.get("timestamp", ""),
        )


@dataclass
class Message:
    """A support chat message between a user and the admin."""

    id: str
    sender_id: str
    receiver_id: str
    content: str
    is_admin: bool = False
    timestamp: str = ""

    def __post_init__(self):
        if not self.timestamp:
            self.timestamp = utc_now()

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "sender_id": self.sender_id,
            "receiver_id": self.receiver_id,
            "content": self.content,
            "is_admin": self.is_admin,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Message:
        return cls(
            id=data["id"],
            sender_id=data.get("sender_id", ""),
            receiver_id=data.get("receiver_id", ""),
            content=data.get("content", ""),
            is_admin=bool(data.get("is_admin", False)),
            timestamp=data.get("timestamp", ""),
        )


@dataclass
class ChatRoom:
    id: str
    title: str
    description: str = ""
    icon: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "icon": self.icon,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ChatRoom:
        return cls(
            id=data["id"],
            title=data.get("title", ""),
            description=data.get("description", ""),
            icon=data.get("icon", ""),
        )


@dataclass
class CommunityMessage:
    id: str
    room_id: str
    sender_id: str
    sender_name: str
    content: str
    sender_role: str = "Member"
    image_url: str | None = None
    audio_url: str | None = None
    is_official: bool = False
    timestamp: str = ""

    def __post_init__(self):
        if not self.timestamp:
            self.timestamp = utc_now()

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "room_id": self.room_id,
            "sender_id": self.sender_id,
            "sender_name": self.sender_name,
            "content": self.content,
            "sender_role": self.sender_role,
            "image_url": self.image_url,
            "audio_url": self.audio_url,
            "is_official": self.is_official,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CommunityMessage:
        return cls(
            id=data["id"],
            room_id=data["room_id"],
            sender_id=data.get("sender_id", ""),
            sender_name=data.get("sender_name", ""),
            content=data.get("content", ""),
            sender_role=data.get("sender_role", "Member"),
            image_url=data.get("image_url"),
            audio_url=data.get("audio_url"),
            is_official=bool(data.get("is_official", False)),
            timestamp=data.get("timestamp", ""),
        )


# =============================================================================
# EXAMS
# =============================================================================


@dataclass
class ExamQuestion:
    id: str
    question: str
    options: list[str]
    correct_answer: str
    explanation: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "question": self.question,
            "options": list(self.options),
            "correct_answer": self.correct_answer,
            "explanation": self.explanation,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ExamQuestion:
        return cls(
            id=str(data["id"]),
            question=data.get("question", ""),
            options=list(data.get("options", [])),
            correct_answer=data.get("correct_answer", ""),
            explanation=data.get("explanation", ""),
        )


@dataclass
class Exam:
    id: str
    title: str
    level: EducationLevel
    grade: str
    subject: str
    questions: list[ExamQuestion]
    created_by: str
    created_at: str = ""

    def __post_init__(self):
        if not self.created_at:
            self.created_at = utc_now()

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "level": self.level.value,
            "grade": self.grade,
            "subject": self.subject,
            "questions": [q.to_dict() for q in self.questions],
            "created_by": self.created_by,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Exam:
        return cls(
            id=data["id"],
            title=data.get("title", ""),
            level=EducationLevel(data["level"]),
            grade=data.get("grade", ""),
            subject=data.get("subject", ""),
            questions=[ExamQuestion.from_dict(q) for q in data.get("questions", [])],
            created_by=data.get("created_by", ""),
            created_at=data.get("created_at", ""),
        )


@dataclass
class QuestionFeedback:
    is_correct: bool
    tip: str
    correct_answer: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_correct": self.is_correct,
            "tip": self.tip,
            "correct_answer": self.correct_answer,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> QuestionFeedback:
        return cls(
            is_correct=bool(data.get("is_correct", False)),
            tip=data.get("tip", ""),
            correct_answer=data.get("correct_answer", ""),
        )


@dataclass
class ExamResult:
    id: str
    exam_id: str
    user_id: str
    score: float
    total_questions: int
    answers: dict[str, str] = field(default_factory=dict)
    feedback: dict[str, QuestionFeedback] = field(default_factory=dict)
    completed_at: str = ""

    def __post_init__(self):
        if not self.completed_at:
            self.completed_at = utc_now()

    @property
    def passed(self) -> bool:
        return self.score >= 50

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "exam_id": self.exam_id,
            "user_id": self.user_id,
            "score": self.score,
            "total_questions": self.total_questions,
            "answers": dict(self.answers),
            "feedback": {k: v.to_dict() for k, v in self.feedback.items()},
            "completed_at": self.completed_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ExamResult:
        return cls(
            id=data["id"],
            exam_id=data["exam_id"],
            user_id=data["user_id"],
            score=float(data.get("score", 0)),
            total_questions=int(data.get("total_questions", 0)),
            answers=dict(data.get("answers", {})),
            feedback={
                k: QuestionFeedback.from_dict(v)
                for k, v in data.get("feedback", {}).items()
            },
            completed_at=data.get("completed_at", ""),
        )
