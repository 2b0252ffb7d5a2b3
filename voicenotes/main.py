"""
Command line entry point.

    voicenotes [run] [AUDIO]       transcribe, categorize, push to Notion, write LaTeX
    voicenotes provision           add missing properties to the Notion database
    voicenotes normalize [FILE]    print the Notion page properties for a record JSON
    voicenotes render [FILE]       write the LaTeX document for a record JSON

Secrets come from the environment or a .env file (OPENAI_API_KEY,
NOTION_API_KEY, NOTION_DATABASE_ID).
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import Path
from typing import Callable

from pydantic import ValidationError

from voicenotes.clients import NotionClient
from voicenotes.normalizers import get_default_normalizer
from voicenotes.pipeline import run_pipeline
from voicenotes.provisioner import provision
from voicenotes.render import compile_command, render, save_document
from voicenotes.settings import Settings
from voicenotes.setup_logging import setup_logging


COMMANDS = ("run", "provision", "normalize", "render")


def select_audio_file(input_fn: Callable[[str], str] = input) -> Path:
    """Ask for a path until an existing file is given; 'exit' quits."""
    while True:
        try:
            raw = input_fn("Please enter the full path to your audio file (or type 'exit' to quit): ")
        except EOFError:
            raise SystemExit(0)
        path = raw.strip().strip('"').strip("'")
        if path == "exit":
            raise SystemExit(0)
        if path and os.path.isfile(path):
            return Path(path)
        print("File does not exist. Please check the path and try again.", file=sys.stderr)


def _read_record(path: str | None) -> dict:
    """Record JSON from a file, or stdin when no file is given."""
    text = Path(path).read_text(encoding="utf-8") if path else sys.stdin.read()
    data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError("record JSON must be an object")
    return data


# --------------------------------------------------------------------
# Commands
# --------------------------------------------------------------------
def cmd_run(args, settings: Settings) -> int:
    audio = Path(args.audio) if args.audio else select_audio_file()
    if not audio.is_file():
        print(f"Input file not found: {audio}", file=sys.stderr)
        return 1
    if args.output:
        settings = settings.model_copy(update={"output_path": Path(args.output)})

    report = run_pipeline(
        audio, settings,
        push=not args.skip_notion,
        push_fallback=not args.no_push_fallback,
    )

    print("=== Run summary ===")
    for step in report.steps:
        status = "ok" if step.success else "FAILED"
        print(f"  {step.name:<11} {status}" + (f"  ({step.message})" if step.message else ""))
    if report.used_fallback:
        print("Warning: the placeholder record was used; the transcript was not categorized.")
    if report.document_path:
        print(f"You can compile the LaTeX file to PDF using: {compile_command(report.document_path)}")
    return 0


def cmd_provision(args, settings: Settings) -> int:
    missing = settings.missing_for("notion")
    if missing:
        print(f"Missing configuration: {', '.join(missing)}", file=sys.stderr)
        return 1
    client = NotionClient(settings.notion_api_key, settings.notion_database_id,
                          settings.notion_base_url, settings.timeout)
    res = provision(client)
    if not res.ok:
        print(f"Failed to ensure database properties: {res.error}", file=sys.stderr)
        return 1
    print(f"Title property: {res.title_field}")
    print("Added properties: " + (", ".join(res.created) if res.created else "none"))
    return 0


def cmd_normalize(args, settings: Settings) -> int:
    try:
        record = _read_record(args.file)
    except (OSError, ValueError) as e:
        print(f"Error reading input: {e}", file=sys.stderr)
        return 1
    normalizer = get_default_normalizer(settings.summary_policy)
    properties = normalizer.normalize_record(record, args.title_field)
    out = json.dumps(properties, indent=2, ensure_ascii=False)
    if args.output:
        Path(args.output).write_text(out + "\n", encoding="utf-8")
        print(f"Notion page properties saved to {args.output}")
    else:
        print(out)
    return 0


def cmd_render(args, settings: Settings) -> int:
    try:
        record = _read_record(args.file)
    except (OSError, ValueError) as e:
        print(f"Error reading input: {e}", file=sys.stderr)
        return 1
    path = save_document(render(record), args.output or settings.output_path)
    print(f"LaTeX output saved to {path}")
    print(f"You can compile the LaTeX file to PDF using: {compile_command(path)}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="voicenotes", description="Turn a voice recording into a Notion page and a LaTeX summary")
    parser.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING... (default: LOG_LEVEL or INFO)")
    sub = parser.add_subparsers(dest="command")

    p = sub.add_parser("run", help="full pipeline for one audio file")
    p.add_argument("audio", nargs="?", help="audio file (prompted for when omitted)")
    p.add_argument("--output", "-o", help="LaTeX output path (default: OUTPUT_PATH or transcription_analysis.tex)")
    p.add_argument("--skip-notion", action="store_true", help="don't write to Notion")
    p.add_argument("--no-push-fallback", action="store_true",
                   help="don't write to Notion when categorization fell back to the placeholder record")
    p.set_defaults(func=cmd_run)

    p = sub.add_parser("provision", help="add missing properties to the Notion database")
    p.set_defaults(func=cmd_provision)

    p = sub.add_parser("normalize", help="print Notion page properties for a record JSON file (or stdin)")
    p.add_argument("file", nargs="?")
    p.add_argument("--output", "-o")
    p.add_argument("--title-field", default="Name", help="name of the database's title property")
    p.set_defaults(func=cmd_normalize)

    p = sub.add_parser("render", help="write the LaTeX document for a record JSON file (or stdin)")
    p.add_argument("file", nargs="?")
    p.add_argument("--output", "-o")
    p.set_defaults(func=cmd_render)
    return parser


def main(argv: list[str] | None = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    # `voicenotes file.m4a` is shorthand for `voicenotes run file.m4a`
    i = 0
    while i < len(argv) and argv[i].startswith("-"):
        i += 2 if argv[i] == "--log-level" else 1
    if not {"-h", "--help"} & set(argv[:i]) and (i >= len(argv) or argv[i] not in COMMANDS):
        argv.insert(min(i, len(argv)), "run")

    args = build_parser().parse_args(argv)
    try:
        settings = Settings.from_env()
    except ValidationError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 1
    setup_logging(args.log_level or settings.log_level)
    return args.func(args, settings)


if __name__ == "__main__":
    sys.exit(main())
