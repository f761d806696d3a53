"""SQLite-backed record store for applications and résumé versions."""

import logging
import sqlite3
import uuid
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from ..core.errors import RecordNotFound, StoreFailure
from ..core.model import Application, RecordId, ResumeVersion
from ..core.ports import RecordStore

logger = logging.getLogger(__name__)

SCHEMA_VERSION = "1"

APPLICATION_FIELDS = (
    "company",
    "applied_at",
    "category",
    "document_status",
    "tech_interview_status",
    "culture_interview_status",
    "resume_id",
    "content",
)


def _ts(value: datetime) -> str:
    # fixed width so that text ordering matches time ordering
    return value.isoformat(sep=" ", timespec="microseconds")


def _dt(value: str) -> datetime:
    return datetime.fromisoformat(value)


def _row_to_application(row: sqlite3.Row) -> Application:
    return Application(
        id=row["id"],
        company=row["company"],
        applied_at=_dt(row["applied_at"]),
        category=row["category"],
        document_status=row["document_status"],
        tech_interview_status=row["tech_interview_status"],
        culture_interview_status=row["culture_interview_status"],
        resume_id=row["resume_id"],
        content=row["content"],
        created_at=_dt(row["created_at"]),
        updated_at=_dt(row["updated_at"]),
    )


def _row_to_version(row: sqlite3.Row) -> ResumeVersion:
    return ResumeVersion(
        id=row["id"],
        name=row["name"],
        created_at=_dt(row["created_at"]),
        note=row["note"],
        file_path=row["file_path"],
        page_count=row["page_count"],
        file_size=row["file_size"],
    )


@dataclass
class SQLiteRecordStore(RecordStore):
    """
    Every write runs in one transaction. A failed write is rolled back and
    re-raised as StoreFailure, so readers never see partial changes.
    """

    db_path: Path
    _ready: bool = field(default=False, init=False, repr=False)

    def _conn(self) -> sqlite3.Connection:
        """Get a connection to the SQLite database."""
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA synchronous=NORMAL")
        return conn

    def _init_schema(self, conn: sqlite3.Connection) -> None:
        conn.execute("""
            CREATE TABLE IF NOT EXISTS meta (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL
            )
        """)
        conn.execute("""
            CREATE TABLE IF NOT EXISTS applications (
                id TEXT PRIMARY KEY,
                company TEXT NOT NULL DEFAULT '',
                applied_at TEXT NOT NULL,
                category TEXT NOT NULL DEFAULT '',
                document_status TEXT NOT NULL DEFAULT '',
                tech_interview_status TEXT NOT NULL DEFAULT '',
                culture_interview_status TEXT NOT NULL DEFAULT '',
                resume_id TEXT NOT NULL DEFAULT '',
                content TEXT NOT NULL DEFAULT '',
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
        """)
        conn.execute("""
            CREATE TABLE IF NOT EXISTS resume_versions (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL DEFAULT '',
                created_at TEXT NOT NULL,
                note TEXT NOT NULL DEFAULT '',
                file_path TEXT NOT NULL DEFAULT '',
                page_count INTEGER NOT NULL DEFAULT 0,
                file_size INTEGER NOT NULL DEFAULT 0
            )
        """)
        conn.execute(
            "CREATE INDEX IF NOT EXISTS applications_applied_idx ON applications(applied_at)"
        )
        conn.execute(
            "CREATE INDEX IF NOT EXISTS resume_versions_created_idx ON resume_versions(created_at)"
        )
        conn.execute(
            """
            INSERT INTO meta(key, value) VALUES('schema_version', ?)
            ON CONFLICT(key) DO UPDATE SET value=excluded.value
            """,
            (SCHEMA_VERSION,),
        )

    @contextmanager
    def _session(self, action: str) -> Iterator[sqlite3.Connection]:
        """Open a connection, commit on success, roll back and wrap errors."""
        try:
            if not self._ready:
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = self._conn()
        except (OSError, sqlite3.Error) as e:
            logger.error("Cannot open record store %s: %s", self.db_path, e)
            raise StoreFailure(f"Cannot open record store: {e}") from e
        try:
            with conn:
                if not self._ready:
                    self._init_schema(conn)
                yield conn
            self._ready = True
        except sqlite3.Error as e:
            logger.error("Record store failed to %s: %s", action, e)
            raise StoreFailure(f"Failed to {action}: {e}") from e
        finally:
            conn.close()

    def schema_version(self) -> str:
        with self._session("read schema version") as conn:
            row = conn.execute(
                "SELECT value FROM meta WHERE key = 'schema_version'"
            ).fetchone()
        return row[0] if row else ""

    # Applications

    def fetch_applications(self) -> list[Application]:
        with self._session("fetch applications") as conn:
            rows = conn.execute(
                "SELECT * FROM applications ORDER BY applied_at DESC, created_at DESC"
            ).fetchall()
        return [_row_to_application(r) for r in rows]

    def get_application(self, id: RecordId) -> Application | None:
        with self._session("fetch application") as conn:
            row = conn.execute(
                "SELECT * FROM applications WHERE id = ?", (id,)
            ).fetchone()
        return _row_to_application(row) if row else None

    def _require_application(self, id: RecordId) -> Application:
        app = self.get_application(id)
        if app is None:
            raise RecordNotFound("Application", id)
        return app

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
        now = datetime.now()
        app = Application(
            id=str(uuid.uuid4()),
            company=company,
            applied_at=applied_at,
            category=category,
            document_status=document_status,
            tech_interview_status=tech_interview_status,
            culture_interview_status=culture_interview_status,
            resume_id=resume_id,
            content=content,
            created_at=now,
            updated_at=now,
        )
        self.upsert_application(app)
        logger.info("Created application %s (%s)", app.id, company)
        return app

    def upsert_application(self, app: Application) -> None:
        with self._session("save application") as conn:
            conn.execute(
                """
                INSERT INTO applications(
                    id, company, applied_at, category, document_status,
                    tech_interview_status, culture_interview_status,
                    resume_id, content, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    company=excluded.company,
                    applied_at=excluded.applied_at,
                    category=excluded.category,
                    document_status=excluded.document_status,
                    tech_interview_status=excluded.tech_interview_status,
                    culture_interview_status=excluded.culture_interview_status,
                    resume_id=excluded.resume_id,
                    content=excluded.content,
                    updated_at=excluded.updated_at
                """,
                (
                    app.id,
                    app.company,
                    _ts(app.applied_at),
                    app.category,
                    app.document_status,
                    app.tech_interview_status,
                    app.culture_interview_status,
                    app.resume_id,
                    app.content,
                    _ts(app.created_at),
                    _ts(app.updated_at),
                ),
            )

    def update_application(self, id: RecordId, **fields: object) -> Application:
        unknown = set(fields) - set(APPLICATION_FIELDS)
        if unknown:
            raise ValueError(f"Unknown application fields: {', '.join(sorted(unknown))}")
        values = {
            k: _ts(v) if isinstance(v, datetime) else v for k, v in fields.items()
        }
        values["updated_at"] = _ts(datetime.now())
        assignments = ", ".join(f"{k} = ?" for k in values)
        with self._session("update application") as conn:
            cur = conn.execute(
                f"UPDATE applications SET {assignments} WHERE id = ?",
                (*values.values(), id),
            )
            found = cur.rowcount > 0
        if not found:
            raise RecordNotFound("Application", id)
        return self._require_application(id)

    def update_content(self, id: RecordId, content: str) -> Application:
        return self.update_application(id, content=content)

    def update_resume_version(
        self, id: RecordId, version_id: RecordId | None
    ) -> Application:
        return self.update_application(id, resume_id=version_id or "")

    def delete_applications(self, ids: Iterable[RecordId]) -> int:
        ids = list(ids)
        if not ids:
            return 0
        with self._session("delete applications") as conn:
            cur = conn.executemany("DELETE FROM applications WHERE id = ?", [(i,) for i in ids])
            removed = cur.rowcount
        logger.info("Deleted %d application(s)", removed)
        return removed

    # Résumé versions

    def fetch_resume_versions(self) -> list[ResumeVersion]:
        with self._session("fetch resume versions") as conn:
            rows = conn.execute(
                "SELECT * FROM resume_versions ORDER BY created_at DESC"
            ).fetchall()
        return [_row_to_version(r) for r in rows]

    def get_resume_version(self, id: RecordId) -> ResumeVersion | None:
        with self._session("fetch resume version") as conn:
            row = conn.execute(
                "SELECT * FROM resume_versions WHERE id = ?", (id,)
            ).fetchone()
        return _row_to_version(row) if row else None

    def create_resume_version(self, version: ResumeVersion) -> ResumeVersion:
        with self._session("create resume version") as conn:
            conn.execute(
                """
                INSERT INTO resume_versions(
                    id, name, created_at, note, file_path, page_count, file_size
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    version.id,
                    version.name,
                    _ts(version.created_at),
                    version.note,
                    version.file_path,
                    version.page_count,
                    version.file_size,
                ),
            )
        logger.info("Created resume version %s (%s)", version.id, version.name)
        return version

    def update_resume_version_info(
        self, id: RecordId, name: str, note: str
    ) -> ResumeVersion:
        with self._session("update resume version") as conn:
            cur = conn.execute(
                "UPDATE resume_versions SET name = ?, note = ? WHERE id = ?",
                (name, note, id),
            )
            found = cur.rowcount > 0
        if not found:
            raise RecordNotFound("Resume version", id)
        version = self.get_resume_version(id)
        if version is None:
            raise RecordNotFound("Resume version", id)
        return version

    def delete_resume_versions(self, ids: Iterable[RecordId]) -> int:
        ids = list(ids)
        if not ids:
            return 0
        with self._session("delete resume versions") as conn:
            cur = conn.executemany(
                "DELETE FROM resume_versions WHERE id = ?", [(i,) for i in ids]
            )
            removed = cur.rowcount
        logger.info("Deleted %d resume version(s)", removed)
        return removed
