import logging
import uuid
from collections.abc import Callable, Iterable
from datetime import datetime
from pathlib import Path

from .errors import BlobNotFound, RecordNotFound
from .model import IMAGE_EXTENSIONS, Application, MarkdownBlock, RecordId, ResumeVersion
from .ports import BlobStore, ParserStrategy, RecordStore

logger = logging.getLogger(__name__)


class Tracker:
    """
    Ties the record store, the blob store and the markdown parser together.
    The application's content text is the only stored form of its note;
    blocks are re-derived from it on every read.
    """

    def __init__(
        self,
        records: RecordStore,
        blobs: BlobStore,
        parser: ParserStrategy,
        page_counter: Callable[[Path], int] = lambda _p: 0,
        min_width: float = 100,
        max_width: float = 1200,
    ):
        self.records = records
        self.blobs = blobs
        self.parser = parser
        self.page_counter = page_counter
        self.min_width = min_width
        self.max_width = max_width

    def application(self, app_id: RecordId) -> Application:
        app = self.records.get_application(app_id)
        if app is None:
            raise RecordNotFound("Application", app_id)
        return app

    def blocks(self, app_id: RecordId) -> list[MarkdownBlock]:
        return self.parser.parse(self.application(app_id).content)

    def save_content(self, app_id: RecordId, content: str) -> Application:
        return self.records.update_content(app_id, content)

    def insert_image(self, app_id: RecordId, path: Path) -> str:
        """Copy an image into the blob store and append it to the note."""
        app = self.application(app_id)
        path = Path(path)
        ref = self.blobs.put_file(path, app_id)
        image = f"![{path.name}]({ref})"
        content = image if not app.content else f"{app.content}\n\n{image}"
        self.records.update_content(app_id, content)
        return ref

    def import_image_paths(self, app_id: RecordId, new_content: str, old_content: str) -> str:
        """
        Replace bare local image paths typed into ``new_content`` with stored
        copies. Only lines that differ from ``old_content`` are considered.
        """
        old_lines = old_content.split("\n")
        lines = new_content.split("\n")
        for i, line in enumerate(lines):
            if i < len(old_lines) and old_lines[i] == line:
                continue
            trimmed = line.strip()
            if not trimmed.startswith(("/", "~")):
                continue
            if not trimmed.lower().endswith(IMAGE_EXTENSIONS):
                continue
            try:
                ref = self.blobs.put_file(Path(trimmed), app_id)
            except BlobNotFound:
                logger.warning("Image path %s does not exist; left as text", trimmed)
                continue
            lines[i] = line.replace(trimmed, f"![{Path(trimmed).name}]({ref})")
        return "\n".join(lines)

    def edit_content(self, app_id: RecordId, new_content: str) -> Application:
        """Save edited content, importing any newly typed image paths first."""
        old = self.application(app_id).content
        return self.save_content(app_id, self.import_image_paths(app_id, new_content, old))

    def set_image_width(
        self, app_id: RecordId, url: str, alt: str | None, width: float
    ) -> str:
        width = max(self.min_width, min(self.max_width, width))
        content = self.parser.set_image_width(
            self.application(app_id).content, url, alt, width
        )
        self.records.update_content(app_id, content)
        return content

    def add_resume(self, pdf_path: Path, name: str, note: str = "") -> ResumeVersion:
        pdf_path = Path(pdf_path).expanduser()
        if not pdf_path.is_file():
            raise BlobNotFound(str(pdf_path))
        version_id = str(uuid.uuid4())
        size = pdf_path.stat().st_size
        pages = self.page_counter(pdf_path)
        stored = self.blobs.put_pdf(pdf_path, version_id)
        return self.records.create_resume_version(
            ResumeVersion(
                id=version_id,
                name=name,
                created_at=datetime.now(),
                note=note,
                file_path=stored,
                page_count=pages,
                file_size=size,
            )
        )

    def delete_resumes(self, ids: Iterable[RecordId]) -> int:
        versions = [self.records.get_resume_version(i) for i in ids]
        found = [v for v in versions if v is not None]
        removed = self.records.delete_resume_versions(v.id for v in found)
        for v in found:
            if v.file_path:
                self.blobs.delete_pdf(v.file_path)
        return removed

    def resume_for(self, app: Application) -> ResumeVersion | None:
        if app.resume_version_id is None:
            return None
        return self.records.get_resume_version(app.resume_version_id)
