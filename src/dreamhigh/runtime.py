"""Runtime wiring helper for CLI and API entry points."""

from dataclasses import dataclass
from pathlib import Path

from .adapters.fs_blob_store import FsBlobStore
from .adapters.markdown_parser import MarkdownParser
from .adapters.pdf_info import pdf_page_count
from .adapters.sqlite_store import SQLiteRecordStore
from .config import AppConfig, load_config
from .core.tracker import Tracker


@dataclass
class Runtime:
    """Container for all wired components."""
    tracker: Tracker
    records: SQLiteRecordStore
    blobs: FsBlobStore
    parser: MarkdownParser
    config: AppConfig


def build_runtime(
    data_dir: Path | None = None,
    config_path: Path | None = None,
) -> Runtime:
    """Build and wire all components for a data directory."""
    config = load_config(config_path=config_path, data_dir=data_dir)

    records = SQLiteRecordStore(db_path=config.storage.db)
    blobs = FsBlobStore(
        images_dir=config.storage.images,
        pdfs_dir=config.storage.pdfs,
        scheme=config.images.scheme,
    )
    parser = MarkdownParser(scheme=config.images.scheme)
    tracker = Tracker(
        records,
        blobs,
        parser,
        page_counter=pdf_page_count,
        min_width=config.images.min_width,
        max_width=config.images.max_width,
    )

    return Runtime(
        tracker=tracker,
        records=records,
        blobs=blobs,
        parser=parser,
        config=config,
    )
