from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Union
import uuid

RecordId = str

IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg", ".gif", ".bmp", ".tiff", ".webp")


@dataclass(frozen=True)
class Heading:
    text: str
    level: int  # 1, 2 or 3

    kind = "heading"


@dataclass(frozen=True)
class Paragraph:
    text: str  # may hold inline ![alt](url) references

    kind = "paragraph"


@dataclass(frozen=True)
class Bullet:
    text: str

    kind = "bullet"


@dataclass(frozen=True)
class CodeBlock:
    text: str  # verbatim lines between the fences

    kind = "code"


@dataclass(frozen=True)
class Image:
    url: str
    alt: str | None = None
    width: float | None = None  # None -> default display width

    kind = "image"


MarkdownBlock = Union[Heading, Paragraph, Bullet, CodeBlock, Image]


@dataclass(frozen=True)
class TextRun:
    text: str


@dataclass(frozen=True)
class InlineImage:
    url: str
    alt: str | None = None
    width: float | None = None
    source: str = ""  # matched text, width annotation included


Run = Union[TextRun, InlineImage]


class CompanyCategory(str, Enum):
    FOREIGN = "foreign"
    BIG_TECH = "big-tech"
    UNICORN_TRACK = "unicorn-track"
    PRE_UNICORN = "pre-unicorn"
    TRADITIONAL_LARGE = "traditional-large"
    TRADITIONAL_MID = "traditional-mid"
    EARLY_STARTUP = "early-startup"


class InterviewStatus(str, Enum):
    PASS = "pass"
    FAIL = "fail"
    PENDING = "pending"


def parse_uuid(value: str | None) -> str | None:
    """Return the canonical form of ``value`` if it is a UUID, else None."""
    if not value:
        return None
    try:
        return str(uuid.UUID(value))
    except ValueError:
        return None


@dataclass
class Application:
    id: RecordId
    company: str
    applied_at: datetime
    category: str = ""
    document_status: str = ""
    tech_interview_status: str = ""
    culture_interview_status: str = ""
    resume_id: str = ""
    content: str = ""
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    @property
    def resume_version_id(self) -> RecordId | None:
        # resume_id holds either a version UUID or a free-form label
        return parse_uuid(self.resume_id)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "company": self.company,
            "applied_at": self.applied_at.isoformat(),
            "category": self.category,
            "document_status": self.document_status,
            "tech_interview_status": self.tech_interview_status,
            "culture_interview_status": self.culture_interview_status,
            "resume_id": self.resume_id,
            "resume_version_id": self.resume_version_id,
            "content": self.content,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


@dataclass
class ResumeVersion:
    id: RecordId
    name: str
    created_at: datetime
    note: str = ""
    file_path: str = ""
    page_count: int = 0
    file_size: int = 0  # bytes

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "created_at": self.created_at.isoformat(),
            "note": self.note,
            "file_path": self.file_path,
            "page_count": self.page_count,
            "file_size": self.file_size,
        }
