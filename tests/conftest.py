# tests/conftest.py
import copy
import json

import pytest
import requests

from voicenotes.clients import NotionClient, OpenAIClient
from voicenotes.settings import Settings


# --- Minimal stand-ins for requests.Response / requests.Session ---
class FakeResponse:
    def __init__(self, status_code=200, body=None, text=None):
        self.status_code = status_code
        self._body = body
        if text is None:
            text = json.dumps(body) if body is not None else ""
        self.text = text

    @property
    def ok(self):
        return 200 <= self.status_code < 400

    def json(self):
        return json.loads(self.text)


class FakeSession:
    """
    Records every request and answers from a queue of responses.
    An exception instance in the queue is raised instead of returned.
    """
    def __init__(self, responses=()):
        self.headers = {}
        self.calls = []
        self.responses = list(responses)

    def request(self, method, url, **kwargs):
        if "files" in kwargs:
            # read the upload so tests can inspect it after the file is closed
            kwargs["files"] = {k: (name, fh.read()) for k, (name, fh) in kwargs["files"].items()}
        self.calls.append((method, url, kwargs))
        nxt = self.responses.pop(0)
        if isinstance(nxt, Exception):
            raise nxt
        return nxt


class FakeNotion(FakeSession):
    """
    In-memory Notion database behind the three endpoints the client uses.
    `errors` maps an HTTP method to an error payload returned once for it.
    """
    def __init__(self, properties=None, errors=None):
        super().__init__()
        self.properties = copy.deepcopy(properties if properties is not None else {"Name": {"type": "title", "title": {}}})
        self.errors = dict(errors or {})
        self.pages = []

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        if method in self.errors:
            err = self.errors.pop(method)
            if isinstance(err, Exception):
                raise err
            return FakeResponse(err.get("status", 400), err)
        if method == "GET" and "/databases/" in url:
            return FakeResponse(200, {"object": "database", "properties": copy.deepcopy(self.properties)})
        if method == "PATCH" and "/databases/" in url:
            for name, cfg in kwargs["json"]["properties"].items():
                self.properties[name] = cfg
            return FakeResponse(200, {"object": "database", "properties": copy.deepcopy(self.properties)})
        if method == "POST" and url.endswith("/pages"):
            self.pages.append(kwargs["json"])
            return FakeResponse(200, {"object": "page", "id": f"page-{len(self.pages)}"})
        return FakeResponse(404, {"object": "error", "status": 404, "code": "object_not_found", "message": "not found"})

    def count(self, method):
        return sum(1 for m, _, _ in self.calls if m == method)


def notion_error(message, status=400, code="validation_error"):
    return {"object": "error", "status": status, "code": code, "message": message}


def chat_body(content):
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


# --- Fixtures ---
@pytest.fixture
def settings(tmp_path):
    return Settings(
        openai_api_key="sk-test",
        notion_api_key="secret_test",
        notion_database_id="db123",
        output_path=tmp_path / "transcription_analysis.tex",
    )


@pytest.fixture
def audio_file(tmp_path):
    p = tmp_path / "memo.m4a"
    p.write_bytes(b"\x00\x01fake-audio")
    return p


@pytest.fixture
def fake_notion():
    return FakeNotion()


@pytest.fixture
def notion(fake_notion):
    return NotionClient("secret_test", "db123", session=fake_notion)


@pytest.fixture
def make_openai():
    def _make(*responses):
        session = FakeSession(responses)
        return OpenAIClient("sk-test", session=session), session
    return _make


@pytest.fixture
def full_schema_properties():
    """A database that already has every expected property, title named 'Name'."""
    from voicenotes.settings import EXPECTED_SCHEMA
    props = {"Name": {"type": "title", "title": {}}}
    for name, kind in EXPECTED_SCHEMA.items():
        props[name] = {"type": kind, kind: {}}
    return props


@pytest.fixture
def connection_error():
    return requests.ConnectionError("connection refused")
