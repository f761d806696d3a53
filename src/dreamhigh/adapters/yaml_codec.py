import re, io
from datetime import datetime
from pathlib import Path
from typing import Any

import yaml

from ..core.model import Application

_FM = re.compile(r"^\s*---\s*\n(.*?)\n---\s*\n?", re.DOTALL)

_META_FIELDS = (
    "company",
    "category",
    "document_status",
    "tech_interview_status",
    "culture_interview_status",
    "resume_id",
)


class YamlFrontmatter:
    def decode(self, text: str) -> tuple[dict[str, Any], str]:
        m = _FM.match(text)
        if not m:
            return {}, text
        try:
            fm = yaml.safe_load(io.StringIO(m.group(1))) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid front matter: {e}") from e
        if not isinstance(fm, dict):
            raise ValueError("Front matter is not a mapping")
        body = text[m.end() :]
        return (fm, body)

    def encode(self, meta: dict[str, Any]) -> str:
        if not meta:
            return ""
        buf = io.StringIO()
        yaml.safe_dump(meta, buf, sort_keys=False, allow_unicode=True)
        return f"---\n{buf.getvalue()}---\n"


def _as_datetime(value: Any, fallback: datetime) -> datetime:
    # PyYAML already turns unquoted timestamps into datetime/date objects
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value:
        return datetime.fromisoformat(value)
    if value is not None and hasattr(value, "year"):
        return datetime(value.year, value.month, value.day)
    return fallback


class ApplicationCodec:
    """
    An application as a markdown file: the record fields in the front
    matter, the note content as the body.
    """

    def __init__(self, fm: YamlFrontmatter | None = None):
        self.fm = fm or YamlFrontmatter()

    def encode(self, app: Application) -> str:
        meta: dict[str, Any] = {"id": app.id}
        for key in _META_FIELDS:
            meta[key] = getattr(app, key)
        meta["applied_at"] = app.applied_at.isoformat()
        meta["created_at"] = app.created_at.isoformat()
        meta["updated_at"] = app.updated_at.isoformat()
        return self.fm.encode(meta) + app.content

    def decode(self, text: str, fallback_id: str) -> Application:
        meta, body = self.fm.decode(text)
        now = datetime.now()
        return Application(
            id=str(meta.get("id") or fallback_id),
            company=str(meta.get("company") or ""),
            applied_at=_as_datetime(meta.get("applied_at"), now),
            category=str(meta.get("category") or ""),
            document_status=str(meta.get("document_status") or ""),
            tech_interview_status=str(meta.get("tech_interview_status") or ""),
            culture_interview_status=str(meta.get("culture_interview_status") or ""),
            resume_id=str(meta.get("resume_id") or ""),
            content=body,
            created_at=_as_datetime(meta.get("created_at"), now),
            updated_at=_as_datetime(meta.get("updated_at"), now),
        )

    def write(self, app: Application, out_dir: Path) -> Path:
        out_dir.mkdir(parents=True, exist_ok=True)
        path = out_dir / f"{app.id}.md"
        path.write_text(self.encode(app), encoding="utf-8")
        return path

    def read(self, path: Path) -> Application:
        return self.decode(path.read_text(encoding="utf-8"), path.stem)
