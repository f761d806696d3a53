import logging
import shutil
import uuid
from pathlib import Path
from urllib.parse import unquote, urlparse

from ..core.errors import BlobNotFound, StoreFailure
from ..core.ports import BlobStore

logger = logging.getLogger(__name__)


class FsBlobStore(BlobStore):
    """
    Images live in ``images_dir`` and are handed out as
    ``<scheme>://images/<owner>-<uuid>.<ext>``; PDFs live in ``pdfs_dir``
    as ``<version_id>.pdf`` and are referenced by absolute path.
    """

    def __init__(self, images_dir: Path, pdfs_dir: Path, scheme: str = "dreamhigh"):
        self.images_dir = images_dir
        self.pdfs_dir = pdfs_dir
        self.scheme = scheme

    @property
    def image_prefix(self) -> str:
        return f"{self.scheme}://images/"

    def put(self, data: bytes, owner_id: str, ext: str = "png") -> str:
        name = f"{owner_id}-{uuid.uuid4()}.{ext.lstrip('.').lower()}"
        try:
            self.images_dir.mkdir(parents=True, exist_ok=True)
            (self.images_dir / name).write_bytes(data)
        except OSError as e:
            logger.error("Could not store image %s: %s", name, e)
            raise StoreFailure(f"Could not store image {name}: {e}") from e
        logger.debug("Stored image %s (%d bytes)", name, len(data))
        return self.image_prefix + name

    def put_file(self, path: Path, owner_id: str) -> str:
        src = Path(path).expanduser()
        try:
            data = src.read_bytes()
        except FileNotFoundError as e:
            raise BlobNotFound(str(path)) from e
        except OSError as e:
            raise StoreFailure(f"Could not read {src}: {e}") from e
        return self.put(data, owner_id, src.suffix or ".png")

    def resolve(self, reference: str) -> Path:
        if reference.startswith(self.image_prefix):
            name = reference[len(self.image_prefix) :]
            path = self.images_dir / name
            # scheme references never leave images_dir
            if not name or path.resolve().parent != self.images_dir.resolve():
                raise BlobNotFound(reference)
        elif reference.startswith("/"):
            path = Path(reference)
        elif reference.startswith("~"):
            path = Path(reference).expanduser()
        elif reference.startswith("file://"):
            path = Path(unquote(urlparse(reference).path))
        else:
            raise BlobNotFound(reference)
        if not path.is_file():
            raise BlobNotFound(reference)
        return path

    def get(self, reference: str) -> bytes:
        path = self.resolve(reference)
        try:
            return path.read_bytes()
        except OSError as e:
            logger.error("Could not read %s: %s", path, e)
            raise StoreFailure(f"Could not read {reference}: {e}") from e

    def put_pdf(self, source: Path, version_id: str) -> str:
        dest = self.pdfs_dir / f"{version_id}.pdf"
        try:
            self.pdfs_dir.mkdir(parents=True, exist_ok=True)
            if dest.exists():
                dest.unlink()
            shutil.copyfile(Path(source).expanduser(), dest)
        except FileNotFoundError as e:
            raise BlobNotFound(str(source)) from e
        except OSError as e:
            logger.error("Could not copy PDF %s: %s", source, e)
            raise StoreFailure(f"Could not copy PDF {source}: {e}") from e
        return str(dest.resolve())

    def delete_pdf(self, path: str) -> None:
        p = Path(path)
        try:
            p.unlink(missing_ok=True)
        except OSError as e:
            logger.error("Could not delete PDF %s: %s", p, e)
            raise StoreFailure(f"Could not delete PDF {p}: {e}") from e
        logger.debug("Deleted PDF %s", p)
