# voicenotes/clients/openai_api.py
import logging
from pathlib import Path
from typing import Any, Dict, List

import requests

from voicenotes.clients._http import decode, raise_for_error, send
from voicenotes.settings import CATEGORIZE_MODEL, DEFAULT_TIMEOUT, OPENAI_BASE_URL, TRANSCRIBE_MODEL

log = logging.getLogger(__name__)


class OpenAIClient:
    """
    Thin wrapper over the two endpoints the pipeline uses:
      POST /audio/transcriptions  (multipart upload)
      POST /chat/completions      (JSON body)
    """
    def __init__(self, api_key: str, base_url: str = OPENAI_BASE_URL,
                 timeout: float | None = DEFAULT_TIMEOUT, session: requests.Session | None = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"Authorization": f"Bearer {api_key}"})

    def transcribe(self, audio_path: str | Path, model: str = TRANSCRIBE_MODEL) -> str:
        """
        Upload an audio file and return the raw response body.
        The caller decides how to read it: a malformed body is still usable as text.
        """
        path = Path(audio_path)
        with path.open("rb") as fh:
            r = send(
                self.session, "POST", f"{self.base_url}/audio/transcriptions",
                what="transcription", timeout=self.timeout,
                files={"file": (path.name, fh)},
                data={"model": model},
            )
        try:
            body = r.json()
        except ValueError:
            # not a structured error either; the caller uses it as text
            if not r.ok:
                log.warning("transcription: HTTP %s with a non-JSON body", r.status_code)
            return r.text
        raise_for_error(body, r.status_code, what="transcription")
        return r.text

    def chat(self, messages: List[Dict[str, str]], model: str = CATEGORIZE_MODEL) -> Dict[str, Any]:
        r = send(
            self.session, "POST", f"{self.base_url}/chat/completions",
            what="chat completion", timeout=self.timeout,
            json={"model": model, "messages": messages},
        )
        return decode(r, what="chat completion")
