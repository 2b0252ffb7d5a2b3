# voicenotes/clients/notion_api.py
import logging
from typing import Any, Dict

import requests

from voicenotes.clients._http import decode, send
from voicenotes.errors import ParseError
from voicenotes.settings import DEFAULT_TIMEOUT, NOTION_BASE_URL, NOTION_VERSION
from voicenotes.types import NormalizedRecord

log = logging.getLogger(__name__)


class NotionClient:
    """Database-scoped client: read/patch one database's schema and add pages to it."""

    def __init__(self, api_key: str, database_id: str, base_url: str = NOTION_BASE_URL,
                 timeout: float | None = DEFAULT_TIMEOUT, session: requests.Session | None = None):
        self.database_id = database_id
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            "Authorization": f"Bearer {api_key}",
            "Notion-Version": NOTION_VERSION,
            "Content-Type": "application/json",
        })

    @property
    def database_url(self) -> str:
        return f"{self.base_url}/databases/{self.database_id}"

    def get_database(self) -> Dict[str, Any]:
        r = send(self.session, "GET", self.database_url,
                 what="database retrieval", timeout=self.timeout)
        return decode(r, what="database retrieval")

    def update_database(self, properties: Dict[str, Any]) -> Dict[str, Any]:
        """PATCH the database with new property definitions (one batched call)."""
        r = send(self.session, "PATCH", self.database_url,
                 what="database update", timeout=self.timeout,
                 json={"properties": properties})
        return decode(r, what="database update")

    def create_page(self, properties: NormalizedRecord) -> Dict[str, Any]:
        payload = {
            "parent": {"database_id": self.database_id},
            "properties": properties,
        }
        r = send(self.session, "POST", f"{self.base_url}/pages",
                 what="page create", timeout=self.timeout, json=payload)
        try:
            return decode(r, what="page create")
        except ParseError:
            # accepted but unreadable: the page exists, we just can't see its id
            log.warning("page create: unreadable response body: %s", r.text[:500])
            return {}
