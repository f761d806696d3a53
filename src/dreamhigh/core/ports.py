from collections.abc import Iterable
from datetime import datetime
from pathlib import Path
from typing import Protocol

from .model import Application, MarkdownBlock, RecordId, ResumeVersion, Run


class ParserStrategy(Protocol):
    """
    Turn markdown text into display blocks. Never raises, whatever the input.
    """

    def parse(self, text: str) -> list[MarkdownBlock]:
        pass

    def split_inline(self, text: str) -> list[Run]:
        pass

    def set_image_width(
        self, text: str, url: str, alt: str | None, new_width: float
    ) -> str:
        pass


class BlobStore(Protocol):
    """
    Application-owned file storage for images and PDFs.
    References are opaque strings; the store's own scheme, absolute paths
    and ~-relative paths must all resolve.
    """

    def put(self, data: bytes, owner_id: str, ext: str = "png") -> str:
        pass

    def put_file(self, path: Path, owner_id: str) -> str:
        pass

    def resolve(self, reference: str) -> Path:
        pass

    def get(self, reference: str) -> bytes:
        pass

    def put_pdf(self, source: Path, version_id: str) -> str:
        pass

    def delete_pdf(self, path: str) -> None:
        pass


class RecordStore(Protocol):
    """
    Durable storage for application entries and résumé versions.
    Listing is newest first; deletes are all-or-nothing per call.
    """

    def fetch_applications(self) -> list[Application]:
        pass

    def get_application(self, id: RecordId) -> Application | None:
        pass

    def create_application(
        self,
        company: str,
        applied_at: datetime,
        category: str = "",
        document_status: str = "",
        tech_interview_status: str = "",
        culture_interview_status: str = "",
        resume_id: str = "",
        content: str = "",
    ) -> Application:
        pass

    def update_application(self, id: RecordId, **fields: object) -> Application:
        pass

    def update_content(self, id: RecordId, content: str) -> Application:
        pass

    def update_resume_version(
        self, id: RecordId, version_id: RecordId | None
    ) -> Application:
        pass

    def upsert_application(self, app: Application) -> None:
        pass

    def delete_applications(self, ids: Iterable[RecordId]) -> int:
        pass

    def fetch_resume_versions(self) -> list[ResumeVersion]:
        pass

    def get_resume_version(self, id: RecordId) -> ResumeVersion | None:
        pass

    def create_resume_version(self, version: ResumeVersion) -> ResumeVersion:
        pass

    def update_resume_version_info(
        self, id: RecordId, name: str, note: str
    ) -> ResumeVersion:
        pass

    def delete_resume_versions(self, ids: Iterable[RecordId]) -> int:
        pass
