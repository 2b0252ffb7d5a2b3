# voicenotes/categorize.py
import json
import logging
import re
from typing import Dict, List, Tuple

from voicenotes.clients import OpenAIClient
from voicenotes.errors import ParseError, VoiceNotesError
from voicenotes.settings import CATEGORIZE_MODEL, SUMMARY_OPTIONS
from voicenotes.types import CategorizedRecord

log = logging.getLogger(__name__)

# ---------------------------------------------------------------------
# Prompt
# ---------------------------------------------------------------------

SYSTEM = (
    "You are an assistant that analyzes voice recordings and outputs categorized "
    "sections in JSON format for Notion database integration."
)

INSTRUCTIONS = (
    "Analyze the following transcription and categorize it into these sections: {sections}. "
    "Generate an AI title for the note. "
    "For Type, suggest a category like 'AI Transcription', 'Meeting Notes', etc. "
    "For Duration, provide a time format like '00:07:26'. "
    "Calculate the Duration (Seconds) as a number. "
    "Include an AI Cost estimate (a small dollar amount). "
    "Also include an Icon field with the value '\U0001F916'. "
    "Format all lists as arrays. "
    "Provide the output in clean JSON format with no markdown formatting."
    "\n\nTranscription: {transcript}"
)

# Substituted when the model's reply can't be used
FALLBACK_RECORD: CategorizedRecord = {
    "Summary": "This is a brief summary.",
    "Main Points": "Point A, Point B, Point C",
    "Action Items": "Follow up on item 1 and item 2",
    "Follow-up Questions": "What is the timeline?",
    "Stories": "A brief anecdote...",
    "References": "Reference details here",
    "Arguments": "The arguments are...",
    "Sentiment": "Positive",
}

_JSON_BLOCK = re.compile(r"```json\s*([\s\S]*?)\s*```")


def build_messages(transcript: str) -> List[Dict[str, str]]:
    """System + user messages for the chat completion call."""
    user = INSTRUCTIONS.format(sections=", ".join(SUMMARY_OPTIONS), transcript=transcript)
    return [
        {"role": "system", "content": SYSTEM},
        {"role": "user", "content": user},
    ]


def reply_content(body: dict) -> str:
    """choices[0].message.content, or ParseError."""
    try:
        content = body["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as e:
        raise ParseError(f"chat completion has no message content ({e!r})") from e
    if not isinstance(content, str):
        raise ParseError("chat completion message content is not text")
    return content


def extract_record(reply: str) -> CategorizedRecord:
    """
    Parse the model's reply into a record.
    A ```json fenced block wins if present; otherwise the whole reply must be JSON.
    """
    m = _JSON_BLOCK.search(reply)
    candidate = m.group(1) if m else reply
    try:
        data = json.loads(candidate)
    except ValueError as e:
        raise ParseError(f"categorized reply is not JSON: {e}") from e
    if not isinstance(data, dict):
        raise ParseError(f"categorized reply is a JSON {type(data).__name__}, expected an object")
    return data


def fallback_record() -> CategorizedRecord:
    return dict(FALLBACK_RECORD)


def categorize(client: OpenAIClient, transcript: str,
               model: str = CATEGORIZE_MODEL) -> Tuple[CategorizedRecord, bool]:
    """
    Ask the model to categorize a transcript.
    Returns (record, used_fallback). Never raises for provider or parse failures:
    they are logged and the placeholder record is returned instead.
    """
    try:
        body = client.chat(build_messages(transcript), model=model)
        reply = reply_content(body)
    except VoiceNotesError as e:
        log.error("categorization failed: %s; using fallback record", e)
        return fallback_record(), True

    log.debug("categorized reply: %s", reply)
    try:
        record = extract_record(reply)
    except ParseError as e:
        log.warning("%s; using fallback record", e)
        return fallback_record(), True

    log.info("categorized record with %d field(s): %s", len(record), ", ".join(record))
    return record, False
