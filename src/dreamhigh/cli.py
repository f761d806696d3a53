"""CLI for dreamhigh - a job-application and résumé-version tracker."""

import argparse
import json
import logging
import os
import platform
import subprocess
import sys
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Any

from . import __version__
from .adapters.pdf_info import format_file_size
from .adapters.yaml_codec import ApplicationCodec
from .core.errors import RecordNotFound
from .core.model import CompanyCategory, InterviewStatus
from .core.render import blocks_to_dicts, render_blocks
from .runtime import Runtime, build_runtime

logger = logging.getLogger(__name__)


def _parse_date(value: str) -> datetime:
    try:
        return datetime.fromisoformat(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"Invalid date: {value} (use YYYY-MM-DD)") from e


def _match_id(ids: list[str], prefix: str, kind: str) -> str:
    """Resolve a full id or a unique id prefix."""
    if prefix in ids:
        return prefix
    matches = [i for i in ids if i.startswith(prefix)]
    if len(matches) == 1:
        return matches[0]
    if len(matches) > 1:
        raise ValueError(f"Ambiguous {kind} id prefix: {prefix}")
    raise RecordNotFound(kind, prefix)


def _app_id(rt: Runtime, prefix: str) -> str:
    return _match_id([a.id for a in rt.records.fetch_applications()], prefix, "Application")


def _version_id(rt: Runtime, prefix: str) -> str:
    return _match_id([v.id for v in rt.records.fetch_resume_versions()], prefix, "Resume version")


def _open_editor(text: str) -> str:
    editor = os.environ.get("EDITOR", "vi")
    with tempfile.NamedTemporaryFile("w", suffix=".md", delete=False, encoding="utf-8") as f:
        f.write(text)
        path = Path(f.name)
    try:
        subprocess.run([editor, str(path)], check=True)
        return path.read_text(encoding="utf-8")
    finally:
        path.unlink()


# Applications


def cmd_apps_ls(args: argparse.Namespace, rt: Runtime) -> int:
    """List applications, most recent first."""
    apps = rt.records.fetch_applications()
    if args.json:
        print(json.dumps([a.to_dict() for a in apps], indent=2, ensure_ascii=False))
        return 0
    for a in apps:
        statuses = "/".join(
            s or "-"
            for s in (a.document_status, a.tech_interview_status, a.culture_interview_status)
        )
        print(f"{a.id[:8]}\t{a.applied_at:%Y-%m-%d}\t{a.company}\t{a.category or '-'}\t{statuses}")
    return 0


def cmd_apps_add(args: argparse.Namespace, rt: Runtime) -> int:
    """Create an application entry."""
    resume_id = ""
    if args.resume:
        resume_id = _version_id(rt, args.resume)
    app = rt.records.create_application(
        company=args.company,
        applied_at=args.applied_at or datetime.now(),
        category=args.category or "",
        document_status=args.doc_status or "",
        tech_interview_status=args.tech_status or "",
        culture_interview_status=args.culture_status or "",
        resume_id=resume_id,
    )
    if args.json:
        print(json.dumps(app.to_dict(), indent=2, ensure_ascii=False))
    elif not args.quiet:
        print(app.id)
    return 0


def cmd_apps_show(args: argparse.Namespace, rt: Runtime) -> int:
    """Show an application and its rendered note."""
    app = rt.tracker.application(_app_id(rt, args.id))
    if args.raw:
        print(app.content)
        return 0

    blocks = rt.parser.parse(app.content)
    if args.json:
        data = app.to_dict()
        data["blocks"] = blocks_to_dicts(blocks, rt.parser.split_inline)
        print(json.dumps(data, indent=2, ensure_ascii=False))
        return 0

    print(f"{app.company}  ({app.applied_at:%Y-%m-%d})")
    print(f"  category:  {app.category or '-'}")
    print(f"  document:  {app.document_status or '-'}")
    print(f"  technical: {app.tech_interview_status or '-'}")
    print(f"  culture:   {app.culture_interview_status or '-'}")
    version = rt.tracker.resume_for(app)
    if version is not None:
        print(f"  resume:    {version.name} ({version.page_count} pages, "
              f"{format_file_size(version.file_size)})")
    elif app.resume_id:
        print(f"  resume:    {app.resume_id}")
    if app.content:
        print()
        print(render_blocks(
            blocks,
            rt.blobs.resolve,
            rt.parser.split_inline,
            rt.config.images.default_width,
        ))
    return 0


def cmd_apps_edit(args: argparse.Namespace, rt: Runtime) -> int:
    """Update application fields."""
    app_id = _app_id(rt, args.id)
    fields: dict[str, Any] = {}
    if args.company is not None:
        fields["company"] = args.company
    if args.applied_at is not None:
        fields["applied_at"] = args.applied_at
    if args.category is not None:
        fields["category"] = args.category
    if args.doc_status is not None:
        fields["document_status"] = args.doc_status
    if args.tech_status is not None:
        fields["tech_interview_status"] = args.tech_status
    if args.culture_status is not None:
        fields["culture_interview_status"] = args.culture_status
    if not fields:
        print("Nothing to update", file=sys.stderr)
        return 1
    rt.records.update_application(app_id, **fields)
    if not args.quiet:
        print(f"Updated {app_id}")
    return 0


def cmd_apps_rm(args: argparse.Namespace, rt: Runtime) -> int:
    """Delete application entries."""
    ids = [_app_id(rt, i) for i in args.ids]
    if not args.yes:
        response = input(f"Delete {len(ids)} application(s)? [y/N] ")
        if response.lower() not in ("y", "yes"):
            print("Aborted")
            return 0
    removed = rt.records.delete_applications(ids)
    if not args.quiet:
        print(f"Deleted {removed} application(s)")
    return 0


def cmd_apps_content(args: argparse.Namespace, rt: Runtime) -> int:
    """Replace or edit the markdown note of an application."""
    app = rt.tracker.application(_app_id(rt, args.id))
    if args.set is not None:
        new = args.set
    elif args.file is not None:
        new = sys.stdin.read() if args.file == "-" else Path(args.file).read_text(encoding="utf-8")
    else:
        new = _open_editor(app.content)
    if new == app.content:
        if not args.quiet:
            print("No changes")
        return 0
    rt.tracker.edit_content(app.id, new)
    if not args.quiet:
        print(f"Saved {app.id}")
    return 0


def cmd_apps_image_add(args: argparse.Namespace, rt: Runtime) -> int:
    """Copy an image into storage and append it to the note."""
    app_id = _app_id(rt, args.id)
    ref = rt.tracker.insert_image(app_id, Path(args.path))
    print(ref)
    return 0


def cmd_apps_image_width(args: argparse.Namespace, rt: Runtime) -> int:
    """Set the display width of an embedded image."""
    app_id = _app_id(rt, args.id)
    content = rt.tracker.set_image_width(app_id, args.url, args.alt, args.width)
    if args.json:
        print(json.dumps({"id": app_id, "content": content}, ensure_ascii=False))
    elif not args.quiet:
        print(f"Updated {app_id}")
    return 0


def cmd_apps_link(args: argparse.Namespace, rt: Runtime) -> int:
    """Attach a résumé version to an application (or detach with --clear)."""
    if args.clear == bool(args.version):
        print("Give either a résumé version or --clear", file=sys.stderr)
        return 1
    app_id = _app_id(rt, args.id)
    version_id = None if args.clear else _version_id(rt, args.version)
    rt.records.update_resume_version(app_id, version_id)
    if not args.quiet:
        print(f"Linked {app_id} -> {version_id or '(none)'}")
    return 0


# Résumé versions


def cmd_resumes_ls(args: argparse.Namespace, rt: Runtime) -> int:
    """List résumé versions, newest first."""
    versions = rt.records.fetch_resume_versions()
    if args.json:
        print(json.dumps([v.to_dict() for v in versions], indent=2, ensure_ascii=False))
        return 0
    for v in versions:
        print(f"{v.id[:8]}\t{v.created_at:%Y-%m-%d}\t{v.name}\t"
              f"{v.page_count}p\t{format_file_size(v.file_size)}")
    return 0


def cmd_resumes_add(args: argparse.Namespace, rt: Runtime) -> int:
    """Store a PDF as a new résumé version."""
    pdf = Path(args.pdf)
    version = rt.tracker.add_resume(pdf, args.name or pdf.stem, args.note or "")
    if args.json:
        print(json.dumps(version.to_dict(), indent=2, ensure_ascii=False))
    elif not args.quiet:
        print(version.id)
    return 0


def cmd_resumes_edit(args: argparse.Namespace, rt: Runtime) -> int:
    """Rename a résumé version or change its note."""
    version_id = _version_id(rt, args.id)
    current = rt.records.get_resume_version(version_id)
    if current is None:
        raise RecordNotFound("Resume version", version_id)
    rt.records.update_resume_version_info(
        version_id,
        args.name if args.name is not None else current.name,
        args.note if args.note is not None else current.note,
    )
    if not args.quiet:
        print(f"Updated {version_id}")
    return 0


def cmd_resumes_rm(args: argparse.Namespace, rt: Runtime) -> int:
    """Delete résumé versions and their stored PDFs."""
    ids = [_version_id(rt, i) for i in args.ids]
    if not args.yes:
        response = input(f"Delete {len(ids)} resume version(s)? [y/N] ")
        if response.lower() not in ("y", "yes"):
            print("Aborted")
            return 0
    removed = rt.tracker.delete_resumes(ids)
    if not args.quiet:
        print(f"Deleted {removed} resume version(s)")
    return 0


# Export / import


def cmd_export(args: argparse.Namespace, rt: Runtime) -> int:
    """Write every application as <id>.md with YAML front matter."""
    codec = ApplicationCodec()
    out_dir = Path(args.outdir)
    apps = rt.records.fetch_applications()
    for app in apps:
        codec.write(app, out_dir)
    if not args.quiet:
        print(f"Exported {len(apps)} application(s) to {out_dir}")
    return 0


def cmd_import(args: argparse.Namespace, rt: Runtime) -> int:
    """Upsert applications from a directory of exported .md files."""
    codec = ApplicationCodec()
    src = Path(args.srcdir)
    count = 0
    failed = 0
    for path in sorted(src.glob("*.md")):
        try:
            app = codec.read(path)
        except (ValueError, OSError) as e:
            logger.warning("Skipping %s: %s", path, e)
            failed += 1
            continue
        rt.records.upsert_application(app)
        count += 1
    if not args.quiet:
        print(f"Imported {count} application(s)")
        if failed:
            print(f"Failed: {failed}")
    return 0 if not failed else 1


def cmd_serve(args: argparse.Namespace, rt: Runtime) -> int:
    """Start local JSON API server."""
    import uvicorn

    from .api.app import create_app, generate_token

    token_arg = getattr(args, 'token', 'auto')
    token = None

    if token_arg == 'auto':
        token = generate_token()
        print(f"Generated bearer token: {token}")
        print(f"Use in requests: Authorization: Bearer {token}")
    elif token_arg == 'none':
        print("Warning: Running without authentication. Only use in trusted environments.")
        token = None
    else:
        token = token_arg

    app = create_app(rt, token=token, enable_cors=args.cors)

    print(f"Starting server on http://{args.host}:{args.port}")
    uvicorn.run(app, host=args.host, port=args.port, log_level="warning")
    return 0


def _version_string() -> str:
    return (
        f"dreamhigh {__version__}\n"
        f"python {platform.python_version()}\n"
        f"platform {platform.system().lower()}-{platform.machine()}"
    )


def _add_app_fields(p: argparse.ArgumentParser, required_company: bool) -> None:
    statuses = [s.value for s in InterviewStatus]
    p.add_argument("--company", required=required_company, help="Company name")
    p.add_argument("--applied-at", dest="applied_at", type=_parse_date,
                   help="Application date (YYYY-MM-DD, default: now)")
    p.add_argument("--category", help=f"Company category (e.g. {', '.join(c.value for c in CompanyCategory)})")
    p.add_argument("--doc-status", dest="doc_status", choices=statuses, help="Document screening status")
    p.add_argument("--tech-status", dest="tech_status", choices=statuses, help="Technical interview status")
    p.add_argument("--culture-status", dest="culture_status", choices=statuses, help="Culture interview status")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dreamhigh", description="Track job applications and résumé versions"
    )
    parser.add_argument(
        "--version", action="version", version=_version_string()
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to config file (default: search cwd/dreamhigh.toml, <data-dir>/dreamhigh.toml)",
    )
    parser.add_argument(
        "--data-dir",
        dest="data_dir",
        type=Path,
        default=None,
        help="Data directory (overrides config)",
    )
    parser.add_argument(
        "-q", "--quiet", action="store_true", help="Minimize output"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Debug logging"
    )
    parser.add_argument(
        "--json", action="store_true", help="Machine-readable output"
    )

    subparsers = parser.add_subparsers(dest="cmd", required=True)

    # apps command
    parser_apps = subparsers.add_parser("apps", help="Manage application entries")
    apps_sub = parser_apps.add_subparsers(dest="apps_cmd", required=True)

    apps_sub.add_parser("ls", help="List applications")

    parser_apps_add = apps_sub.add_parser("add", help="Add an application")
    _add_app_fields(parser_apps_add, required_company=True)
    parser_apps_add.add_argument("--resume", help="Résumé version id (or prefix)")

    parser_apps_show = apps_sub.add_parser("show", help="Show an application")
    parser_apps_show.add_argument("id", help="Application id (or prefix)")
    parser_apps_show.add_argument("--raw", action="store_true", help="Print the raw markdown note")

    parser_apps_edit = apps_sub.add_parser("edit", help="Update application fields")
    parser_apps_edit.add_argument("id", help="Application id (or prefix)")
    _add_app_fields(parser_apps_edit, required_company=False)

    parser_apps_rm = apps_sub.add_parser("rm", help="Delete applications")
    parser_apps_rm.add_argument("ids", nargs="+", help="Application ids (or prefixes)")
    parser_apps_rm.add_argument("--yes", action="store_true", help="Skip confirmation")

    parser_apps_content = apps_sub.add_parser("content", help="Edit the markdown note ($EDITOR by default)")
    parser_apps_content.add_argument("id", help="Application id (or prefix)")
    content_src = parser_apps_content.add_mutually_exclusive_group()
    content_src.add_argument("--set", help="Replace the note with this text")
    content_src.add_argument("--file", help="Replace the note with a file's contents ('-' for stdin)")

    parser_apps_image = apps_sub.add_parser("image", help="Manage embedded images")
    image_sub = parser_apps_image.add_subparsers(dest="image_cmd", required=True)
    parser_image_add = image_sub.add_parser("add", help="Store an image and append it to the note")
    parser_image_add.add_argument("id", help="Application id (or prefix)")
    parser_image_add.add_argument("path", help="Image file")
    parser_image_width = image_sub.add_parser("width", help="Set an image's display width")
    parser_image_width.add_argument("id", help="Application id (or prefix)")
    parser_image_width.add_argument("url", help="Image reference as written in the note")
    parser_image_width.add_argument("width", type=float, help="Width (clamped to the configured bounds)")
    parser_image_width.add_argument("--alt", help="Alt text of the image")

    parser_apps_link = apps_sub.add_parser("link", help="Attach a résumé version")
    parser_apps_link.add_argument("id", help="Application id (or prefix)")
    parser_apps_link.add_argument("version", nargs="?", help="Résumé version id (or prefix)")
    parser_apps_link.add_argument("--clear", action="store_true", help="Detach the résumé version")

    # resumes command
    parser_resumes = subparsers.add_parser("resumes", help="Manage résumé versions")
    resumes_sub = parser_resumes.add_subparsers(dest="resumes_cmd", required=True)

    resumes_sub.add_parser("ls", help="List résumé versions")

    parser_resumes_add = resumes_sub.add_parser("add", help="Store a PDF as a new version")
    parser_resumes_add.add_argument("pdf", help="PDF file")
    parser_resumes_add.add_argument("--name", help="Version name (default: file name)")
    parser_resumes_add.add_argument("--note", help="Free-form note")

    parser_resumes_edit = resumes_sub.add_parser("edit", help="Rename or annotate a version")
    parser_resumes_edit.add_argument("id", help="Résumé version id (or prefix)")
    parser_resumes_edit.add_argument("--name", help="New name")
    parser_resumes_edit.add_argument("--note", help="New note")

    parser_resumes_rm = resumes_sub.add_parser("rm", help="Delete versions and their PDFs")
    parser_resumes_rm.add_argument("ids", nargs="+", help="Résumé version ids (or prefixes)")
    parser_resumes_rm.add_argument("--yes", action="store_true", help="Skip confirmation")

    # export / import commands
    parser_export = subparsers.add_parser("export", help="Export applications as markdown files")
    parser_export.add_argument("outdir", help="Output directory")
    parser_import = subparsers.add_parser("import", help="Import exported markdown files")
    parser_import.add_argument("srcdir", help="Directory of exported .md files")

    # serve command
    parser_serve = subparsers.add_parser("serve", help="Start local JSON API server")
    parser_serve.add_argument("--host", default="127.0.0.1", help="Bind address (default: 127.0.0.1)")
    parser_serve.add_argument("--port", type=int, default=8765, help="Port (default: 8765)")
    parser_serve.add_argument(
        "--token", default="auto",
        help="Bearer token: 'auto' to generate, 'none' to disable, or an explicit value",
    )
    parser_serve.add_argument("--cors", action="store_true", help="Enable CORS")

    return parser


def main() -> None:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args()

    try:
        rt = build_runtime(data_dir=args.data_dir, config_path=args.config)
        logging.basicConfig(
            level=logging.DEBUG if args.verbose else rt.config.log.level,
            format="%(levelname)s %(name)s: %(message)s",
            stream=sys.stderr,
        )
    except (ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    handlers = {
        "export": cmd_export,
        "import": cmd_import,
        "serve": cmd_serve,
    }

    if args.cmd == "apps":
        if args.apps_cmd == "image":
            image_handlers = {
                "add": cmd_apps_image_add,
                "width": cmd_apps_image_width,
            }
            handler = image_handlers.get(args.image_cmd)
        else:
            apps_handlers = {
                "ls": cmd_apps_ls,
                "add": cmd_apps_add,
                "show": cmd_apps_show,
                "edit": cmd_apps_edit,
                "rm": cmd_apps_rm,
                "content": cmd_apps_content,
                "link": cmd_apps_link,
            }
            handler = apps_handlers.get(args.apps_cmd)
    elif args.cmd == "resumes":
        resumes_handlers = {
            "ls": cmd_resumes_ls,
            "add": cmd_resumes_add,
            "edit": cmd_resumes_edit,
            "rm": cmd_resumes_rm,
        }
        handler = resumes_handlers.get(args.resumes_cmd)
    else:
        handler = handlers.get(args.cmd)

    if handler:
        try:
            exit_code = handler(args, rt)
            sys.exit(exit_code)
        except Exception as e:
            logger.debug("Command failed", exc_info=True)
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
    else:
        print(f"Unknown command: {args.cmd}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
