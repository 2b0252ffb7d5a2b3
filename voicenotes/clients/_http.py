# voicenotes/clients/_http.py
import logging
from typing import Any

import requests

from voicenotes.errors import ParseError, RemoteError, TransportError

log = logging.getLogger(__name__)


def send(session: requests.Session, method: str, url: str, *, what: str,
         timeout: float | None, **kwargs) -> requests.Response:
    """Issue one request; connection-level failures become TransportError. Never retried."""
    try:
        r = session.request(method, url, timeout=timeout, **kwargs)
    except requests.RequestException as e:
        log.error("%s failed: %s", what, e)
        raise TransportError(f"{what}: {e}") from e
    log.debug("%s -> %s %s", what, r.status_code, r.text[:500])
    return r


def decode(r: requests.Response, *, what: str) -> Any:
    """Parse a JSON body and raise RemoteError when it is an error payload."""
    try:
        body = r.json()
    except ValueError as e:
        if not r.ok:
            raise RemoteError(f"{what}: HTTP {r.status_code}", status=r.status_code) from e
        raise ParseError(f"{what}: response is not valid JSON") from e
    raise_for_error(body, r.status_code, what=what)
    return body


def raise_for_error(body: Any, status: int, *, what: str) -> None:
    """
    Recognize both error shapes we talk to:
      Notion:  {"object": "error", "status": 400, "code": "...", "message": "..."}
      OpenAI:  {"error": {"message": "...", "type": "...", "code": "..."}}
    Any other non-2xx status is an error too.
    """
    if isinstance(body, dict):
        if body.get("object") == "error":
            msg = body.get("message") or "unknown error"
            log.error("%s: remote error: %s", what, msg)
            raise RemoteError(msg, status=status, code=body.get("code"))
        err = body.get("error")
        if isinstance(err, dict):
            msg = err.get("message") or "unknown error"
            log.error("%s: remote error: %s", what, msg)
            raise RemoteError(msg, status=status, code=err.get("code") or err.get("type"))
    if not 200 <= status < 300:
        log.error("%s: HTTP %s", what, status)
        raise RemoteError(f"HTTP {status}", status=status)
