# voicenotes/transcribe.py
import json
import logging
from pathlib import Path

from voicenotes.clients import OpenAIClient
from voicenotes.errors import ParseError
from voicenotes.settings import TRANSCRIBE_MODEL

log = logging.getLogger(__name__)


def transcript_text(raw: str) -> str:
    """Pull the `text` field out of a transcription response body."""
    try:
        body = json.loads(raw)
    except ValueError as e:
        raise ParseError(f"transcription response is not JSON: {e}") from e
    text = body.get("text") if isinstance(body, dict) else None
    if not isinstance(text, str):
        raise ParseError("transcription response has no 'text' field")
    return text


def transcribe(client: OpenAIClient, audio_path: str | Path, model: str = TRANSCRIBE_MODEL) -> str:
    """
    Transcribe one audio file.
    Transport and remote errors propagate; a malformed body is used verbatim as the transcript.
    """
    log.info("transcribing %s", audio_path)
    raw = client.transcribe(audio_path, model=model)
    try:
        text = transcript_text(raw)
    except ParseError as e:
        log.warning("%s; using raw response as transcript", e)
        return raw
    log.info("transcript: %d chars", len(text))
    log.debug("transcript text: %s", text)
    return text
