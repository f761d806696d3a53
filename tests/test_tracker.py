"""Tests for the Tracker service."""

import tempfile
from datetime import datetime
from pathlib import Path

import pymupdf
import pytest

from dreamhigh.adapters.fs_blob_store import FsBlobStore
from dreamhigh.adapters.markdown_parser import MarkdownParser
from dreamhigh.adapters.pdf_info import pdf_page_count
from dreamhigh.adapters.sqlite_store import SQLiteRecordStore
from dreamhigh.core.errors import BlobNotFound, RecordNotFound
from dreamhigh.core.model import Image, Paragraph
from dreamhigh.core.tracker import Tracker


@pytest.fixture
def env():
    """Create a tracker over a temporary data directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        records = SQLiteRecordStore(db_path=root / "test.db")
        blobs = FsBlobStore(root / "images", root / "pdfs")
        tracker = Tracker(records, blobs, MarkdownParser(), page_counter=pdf_page_count)
        yield tracker, root


def _make_pdf(path: Path, pages: int) -> Path:
    doc = pymupdf.open()
    for _ in range(pages):
        doc.new_page()
    doc.save(str(path))
    doc.close()
    return path


def _app(tracker, content=""):
    return tracker.records.create_application(
        company="Acme", applied_at=datetime(2026, 3, 1), content=content
    )


def test_blocks_derived_from_content(env):
    tracker, _root = env
    app = _app(tracker, "# Notes\nfirst line")
    blocks = tracker.blocks(app.id)
    assert [b.kind for b in blocks] == ["heading", "paragraph"]


def test_missing_application(env):
    tracker, _root = env
    with pytest.raises(RecordNotFound):
        tracker.blocks("nope")


def test_insert_image_into_empty_note(env):
    """Test that the first image becomes the whole note."""
    tracker, root = env
    app = _app(tracker)
    src = root / "shot.png"
    src.write_bytes(b"png")

    ref = tracker.insert_image(app.id, src)

    content = tracker.application(app.id).content
    assert content == f"![shot.png]({ref})"
    assert tracker.blobs.get(ref) == b"png"
    assert tracker.blocks(app.id) == [Image(ref, "shot.png", None)]


def test_insert_image_appends_with_blank_line(env):
    tracker, root = env
    app = _app(tracker, "intro")
    src = root / "shot.png"
    src.write_bytes(b"png")
    ref = tracker.insert_image(app.id, src)
    assert tracker.application(app.id).content == f"intro\n\n![shot.png]({ref})"


def test_edit_content_imports_new_paths(env):
    """Test that a typed local image path is replaced by a stored copy."""
    tracker, root = env
    app = _app(tracker, "keep me")
    src = root / "photo.jpg"
    src.write_bytes(b"jpeg")

    saved = tracker.edit_content(app.id, f"keep me\n{src}")

    lines = saved.content.split("\n")
    assert lines[0] == "keep me"
    assert lines[1].startswith("![photo.jpg](dreamhigh://images/")
    blocks = tracker.blocks(app.id)
    assert isinstance(blocks[-1], Image)
    assert tracker.blobs.get(blocks[-1].url) == b"jpeg"


def test_edit_content_leaves_unchanged_lines(env):
    """Test that paths already present before the edit are not imported."""
    tracker, root = env
    src = root / "photo.png"
    src.write_bytes(b"x")
    app = _app(tracker, str(src))
    saved = tracker.edit_content(app.id, f"{src}\nmore")
    assert saved.content == f"{src}\nmore"
    assert not (root / "images").exists()


def test_edit_content_only_rewrites_changed_line(env):
    """Test that the same path elsewhere in the note is left alone."""
    tracker, root = env
    src = root / "a.png"
    src.write_bytes(b"x")
    old = f"![keep]({src})\n```\n{src}\n```"
    app = _app(tracker, old)

    saved = tracker.edit_content(app.id, f"{old}\n{src}")

    lines = saved.content.split("\n")
    assert lines[:4] == old.split("\n")
    assert lines[4].startswith("![a.png](dreamhigh://images/")


def test_edit_content_missing_path_stays_text(env):
    tracker, root = env
    app = _app(tracker)
    missing = root / "gone.png"
    saved = tracker.edit_content(app.id, str(missing))
    assert saved.content == str(missing)


def test_set_image_width_persists(env):
    tracker, _root = env
    url = "dreamhigh://images/a.png"
    app = _app(tracker, f"![a]({url})")
    content = tracker.set_image_width(app.id, url, "a", 450)
    assert content == f"![a]({url}){{width=450}}"
    assert tracker.blocks(app.id) == [Image(url, "a", 450)]


def test_set_image_width_clamps(env):
    """Test that widths outside the configured bounds are clamped."""
    tracker, _root = env
    url = "dreamhigh://images/a.png"
    app = _app(tracker, f"![a]({url})")
    assert tracker.set_image_width(app.id, url, "a", 20).endswith("{width=100}")
    assert tracker.set_image_width(app.id, url, "a", 9000).endswith("{width=1200}")


def test_set_image_width_inline_stays_paragraph(env):
    tracker, _root = env
    url = "dreamhigh://images/a.png"
    app = _app(tracker, f"Hello ![a]({url}) world")
    tracker.set_image_width(app.id, url, "a", 300)
    blocks = tracker.blocks(app.id)
    assert len(blocks) == 1
    assert isinstance(blocks[0], Paragraph)


def test_add_resume(env):
    """Test storing a résumé PDF with size and page count."""
    tracker, root = env
    pdf = _make_pdf(root / "cv.pdf", pages=3)

    version = tracker.add_resume(pdf, "backend", note="for Acme")

    assert version.page_count == 3
    assert version.file_size == pdf.stat().st_size
    assert Path(version.file_path).name == f"{version.id}.pdf"
    assert Path(version.file_path).exists()
    assert tracker.records.get_resume_version(version.id) == version


def test_add_resume_missing_file(env):
    tracker, root = env
    with pytest.raises(BlobNotFound):
        tracker.add_resume(root / "nope.pdf", "x")
    assert tracker.records.fetch_resume_versions() == []


def test_delete_resumes_removes_files(env):
    tracker, root = env
    version = tracker.add_resume(_make_pdf(root / "cv.pdf", pages=1), "v1")
    stored = Path(version.file_path)

    assert tracker.delete_resumes([version.id, "unknown"]) == 1
    assert not stored.exists()
    assert tracker.records.fetch_resume_versions() == []


def test_resume_for(env):
    tracker, root = env
    version = tracker.add_resume(_make_pdf(root / "cv.pdf", pages=1), "v1")
    app = _app(tracker)
    assert tracker.resume_for(app) is None

    linked = tracker.records.update_resume_version(app.id, version.id)
    assert tracker.resume_for(linked) == version
