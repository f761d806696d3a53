"""Configuration loader for dreamhigh.toml."""

from dataclasses import dataclass
from pathlib import Path
from typing import Any

try:
    import tomllib
except ImportError:
    import tomli as tomllib  # type: ignore

DEFAULT_DATA_DIR = Path("~/.dreamhigh")


@dataclass
class StorageConfig:
    """Where records, images and PDFs are kept."""
    root: Path
    db: Path
    images: Path
    pdfs: Path


@dataclass
class ImageConfig:
    """Image references and display width bounds."""
    scheme: str = "dreamhigh"
    default_width: int = 600
    min_width: int = 100
    max_width: int = 1200


@dataclass
class LogConfig:
    """Logging configuration."""
    level: str = "WARNING"


@dataclass
class AppConfig:
    """Complete dreamhigh configuration."""
    storage: StorageConfig
    images: ImageConfig
    log: LogConfig


def _read_first(candidates: list[Path]) -> dict[str, Any]:
    """Parse the first existing TOML file among ``candidates``."""
    for candidate in candidates:
        if candidate.is_file():
            with candidate.open("rb") as fh:
                return tomllib.load(fh)
    return {}


def load_config(config_path: Path | None = None, data_dir: Path | None = None) -> AppConfig:
    """
    Read dreamhigh.toml from ``config_path``, ./dreamhigh.toml or
    ``<data_dir>/dreamhigh.toml``, whichever exists first, and fill in
    defaults. ``data_dir`` also overrides ``storage.root``.

    Raises ValueError when the image width bounds are inverted.
    """
    candidates = [config_path] if config_path else []
    candidates.append(Path.cwd() / "dreamhigh.toml")
    if data_dir:
        candidates.append(Path(data_dir) / "dreamhigh.toml")
    toml_data = _read_first(candidates)

    storage_data = toml_data.get("storage", {})
    root = Path(data_dir or storage_data.get("root", DEFAULT_DATA_DIR)).expanduser()
    storage_config = StorageConfig(
        root=root,
        db=Path(storage_data.get("db", root / "dreamhigh.sqlite")).expanduser(),
        images=Path(storage_data.get("images", root / "images")).expanduser(),
        pdfs=Path(storage_data.get("pdfs", root / "pdfs")).expanduser(),
    )

    image_data = toml_data.get("images", {})
    image_config = ImageConfig(
        scheme=image_data.get("scheme", "dreamhigh"),
        default_width=image_data.get("default_width", 600),
        min_width=image_data.get("min_width", 100),
        max_width=image_data.get("max_width", 1200),
    )
    if image_config.min_width > image_config.max_width:
        raise ValueError(
            f"images.min_width ({image_config.min_width}) exceeds "
            f"images.max_width ({image_config.max_width})"
        )

    log_data = toml_data.get("log", {})
    log_config = LogConfig(level=str(log_data.get("level", "WARNING")).upper())

    return AppConfig(
        storage=storage_config,
        images=image_config,
        log=log_config,
    )
