# voicenotes/settings.py
import os
from pathlib import Path

from dotenv import load_dotenv
from typing import Literal

from pydantic import BaseModel

from voicenotes.types import PropertySchema

PROJECT_ROOT = Path(__file__).resolve().parents[1]

# Provider endpoints and models
OPENAI_BASE_URL = "https://api.openai.com/v1"
NOTION_BASE_URL = "https://api.notion.com/v1"
NOTION_VERSION = "2022-06-28"
TRANSCRIBE_MODEL = "whisper-1"
CATEGORIZE_MODEL = "gpt-4o"

DEFAULT_OUTPUT_PATH = "transcription_analysis.tex"
DEFAULT_TIMEOUT = 120.0

# Sections the categorizer is asked to produce
SUMMARY_OPTIONS = [
    "Summary",
    "Main Points",
    "Action Items",
    "References",
    "Follow-up Questions",
    "Stories",
    "Arguments",
    "Sentiment",
]

# Properties the target database must carry (the title property is discovered, not listed)
EXPECTED_SCHEMA: PropertySchema = {
    "Main Points": "rich_text",
    "Action Items": "rich_text",
    "Follow-up Questions": "rich_text",
    "Stories": "rich_text",
    "References": "rich_text",
    "Arguments": "rich_text",
    "Sentiment": "rich_text",
    "Type": "select",
    "Duration": "rich_text",
    "AI Cost": "number",
    "Duration (Seconds)": "number",
    "Date": "date",
    "Icon": "rich_text",
}

# What each step needs from the environment
_REQUIRED = {
    "transcribe": ("openai_api_key",),
    "categorize": ("openai_api_key",),
    "notion": ("notion_api_key", "notion_database_id"),
}


class Settings(BaseModel):
    openai_api_key: str | None = None
    notion_api_key: str | None = None
    notion_database_id: str | None = None
    openai_base_url: str = OPENAI_BASE_URL
    notion_base_url: str = NOTION_BASE_URL
    transcribe_model: str = TRANSCRIBE_MODEL
    categorize_model: str = CATEGORIZE_MODEL
    timeout: float = DEFAULT_TIMEOUT
    output_path: Path = Path(DEFAULT_OUTPUT_PATH)
    summary_policy: Literal["drop", "keep"] = "drop"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, dotenv: bool = True) -> "Settings":
        """
        Build settings from environment variables.
        A .env file in the working directory is loaded first unless dotenv=False.
        """
        if dotenv:
            load_dotenv()
        env = os.environ
        return cls(
            openai_api_key=env.get("OPENAI_API_KEY") or None,
            notion_api_key=env.get("NOTION_API_KEY") or None,
            notion_database_id=env.get("NOTION_DATABASE_ID") or None,
            openai_base_url=env.get("OPENAI_BASE_URL", OPENAI_BASE_URL).rstrip("/"),
            notion_base_url=env.get("NOTION_BASE_URL", NOTION_BASE_URL).rstrip("/"),
            transcribe_model=env.get("TRANSCRIBE_MODEL", TRANSCRIBE_MODEL),
            categorize_model=env.get("CATEGORIZE_MODEL", CATEGORIZE_MODEL),
            timeout=float(env.get("HTTP_TIMEOUT", DEFAULT_TIMEOUT)),
            output_path=Path(env.get("OUTPUT_PATH", DEFAULT_OUTPUT_PATH)),
            summary_policy=env.get("SUMMARY_POLICY", "drop").strip().lower(),
            log_level=env.get("LOG_LEVEL", "INFO"),
        )

    def missing_for(self, step: str) -> list[str]:
        """Names of the environment variables a step needs but doesn't have."""
        return [name.upper() for name in _REQUIRED.get(step, ()) if not getattr(self, name)]
