"""
Sequential transcribe -> categorize -> push -> render run.

Every step runs to completion before the next one starts. A failed step
is logged and recorded, never retried, and never stops the run: later
steps carry on with whatever data exists (an empty transcript, the
placeholder record). The document is rendered even when the remote
write fails.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from voicenotes.categorize import categorize, fallback_record
from voicenotes.clients import NotionClient, OpenAIClient
from voicenotes.errors import VoiceNotesError
from voicenotes.normalizers import get_default_normalizer
from voicenotes.provisioner import push_record
from voicenotes.render import compile_command, render, save_document
from voicenotes.settings import EXPECTED_SCHEMA, Settings
from voicenotes.transcribe import transcribe
from voicenotes.types import CategorizedRecord

log = logging.getLogger(__name__)


@dataclass
class StepResult:
    """Outcome of one step. ``message`` explains failures or skips."""
    name: str
    success: bool
    message: Optional[str] = None


@dataclass
class RunReport:
    """Everything a run produced, step by step."""
    audio_path: Path
    transcript: str = ""
    record: CategorizedRecord = field(default_factory=dict)
    used_fallback: bool = False
    page: Optional[Dict[str, Any]] = None
    document_path: Optional[Path] = None
    steps: List[StepResult] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return all(s.success for s in self.steps)

    def step(self, name: str) -> Optional[StepResult]:
        return next((s for s in self.steps if s.name == name), None)

    def add(self, name: str, success: bool, message: Optional[str] = None) -> None:
        self.steps.append(StepResult(name=name, success=success, message=message))
        status = "success" if success else "failure"
        if message:
            log.log(logging.INFO if success else logging.ERROR, "step %r finished with %s: %s", name, status, message)
        else:
            log.info("step %r finished with %s", name, status)


def run_pipeline(
    audio_path: str | Path,
    settings: Settings,
    *,
    openai: Optional[OpenAIClient] = None,
    notion: Optional[NotionClient] = None,
    push: bool = True,
    push_fallback: bool = True,
) -> RunReport:
    """
    Run every step once for one audio file.

    Clients are built from ``settings`` unless given. ``push=False``
    skips the remote write; ``push_fallback=False`` skips it only when
    the placeholder record had to be used.
    """
    report = RunReport(audio_path=Path(audio_path))

    # 1) Transcribe
    missing = settings.missing_for("transcribe")
    if missing and openai is None:
        report.add("transcribe", False, f"missing configuration: {', '.join(missing)}")
    else:
        openai = openai or OpenAIClient(settings.openai_api_key, settings.openai_base_url, settings.timeout)
        try:
            report.transcript = transcribe(openai, report.audio_path, model=settings.transcribe_model)
            report.add("transcribe", True)
        except (VoiceNotesError, OSError) as e:
            report.add("transcribe", False, str(e))

    # 2) Categorize (falls back to the placeholder record, never fails the run)
    missing = settings.missing_for("categorize")
    if missing and openai is None:
        report.record, report.used_fallback = fallback_record(), True
        report.add("categorize", False, f"missing configuration: {', '.join(missing)}; using fallback record")
    else:
        openai = openai or OpenAIClient(settings.openai_api_key, settings.openai_base_url, settings.timeout)
        report.record, report.used_fallback = categorize(openai, report.transcript, model=settings.categorize_model)
        if report.used_fallback:
            log.warning("categorization fell back to the placeholder record")
            report.add("categorize", False, "using fallback record")
        else:
            report.add("categorize", True)

    # 3) Push to the remote store
    missing = settings.missing_for("notion")
    if not push:
        report.add("notion", True, "skipped")
    elif report.used_fallback and not push_fallback:
        report.add("notion", True, "skipped: placeholder record not pushed")
    elif missing and notion is None:
        report.add("notion", False, f"missing configuration: {', '.join(missing)}")
    else:
        notion = notion or NotionClient(
            settings.notion_api_key, settings.notion_database_id, settings.notion_base_url, settings.timeout
        )
        try:
            normalizer = get_default_normalizer(settings.summary_policy)
            report.page = push_record(notion, report.record, EXPECTED_SCHEMA, normalizer=normalizer)
            report.add("notion", True)
        except (VoiceNotesError, ValueError) as e:
            report.add("notion", False, str(e))

    # 4) Render the document
    try:
        report.document_path = save_document(render(report.record), settings.output_path)
        report.add("render", True, f"compile with: {compile_command(report.document_path)}")
    except (OSError, UnicodeError) as e:
        report.add("render", False, f"failed to save LaTeX output: {e}")

    return report
