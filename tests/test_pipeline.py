import json

from conftest import FakeNotion, FakeResponse, chat_body, notion_error
from voicenotes.clients import NotionClient
from voicenotes.pipeline import run_pipeline
from voicenotes.settings import Settings

RECORD = {
    "AI_Title": "Roadmap review",
    "Summary": "We reviewed the roadmap.",
    "Main Points": ["Scope", "Dates"],
    "Type": "Meeting Notes",
    "Duration": "00:07:26",
    "Duration (Seconds)": 446,
    "At Cost": "0.03",
    "Date": "null",
}


def _openai(make_openai, reply=None):
    reply = reply if reply is not None else "```json\n" + json.dumps(RECORD) + "\n```"
    return make_openai(
        FakeResponse(200, {"text": "we reviewed the roadmap"}),
        FakeResponse(200, chat_body(reply)),
    )


def test_full_run(settings, audio_file, make_openai, fake_notion, notion):
    openai, session = _openai(make_openai)
    report = run_pipeline(audio_file, settings, openai=openai, notion=notion)

    assert report.ok
    assert [s.name for s in report.steps] == ["transcribe", "categorize", "notion", "render"]
    assert report.transcript == "we reviewed the roadmap"
    assert report.record == RECORD
    assert not report.used_fallback
    assert report.page == {"object": "page", "id": "page-1"}

    # transcript went into the categorization prompt
    assert session.calls[1][2]["json"]["messages"][1]["content"].endswith("we reviewed the roadmap")

    props = fake_notion.pages[0]["properties"]
    assert props["Name"]["title"][0]["text"]["content"] == "Roadmap review"
    assert "Summary" not in props
    assert props["AI Cost"] == {"number": 0.03}
    assert props["Date"] == {"date": None}
    assert props["Main Points"]["rich_text"][0]["text"]["content"] == "Scope, Dates"

    doc = settings.output_path.read_text(encoding="utf-8")
    assert "\\title{We reviewed the roadmap.}" in doc
    assert report.document_path == settings.output_path


def test_transcription_failure_does_not_stop_run(settings, audio_file, make_openai, notion, connection_error):
    openai, _ = make_openai(connection_error, FakeResponse(200, chat_body(json.dumps(RECORD))))
    report = run_pipeline(audio_file, settings, openai=openai, notion=notion)
    assert not report.step("transcribe").success
    assert report.transcript == ""
    assert report.step("categorize").success
    assert report.step("notion").success
    assert report.step("render").success


def test_missing_title_skips_write_but_renders(settings, audio_file, make_openai):
    fake = FakeNotion({"Notes": {"type": "rich_text", "rich_text": {}}})
    openai, _ = _openai(make_openai)
    report = run_pipeline(audio_file, settings, openai=openai,
                          notion=NotionClient("secret_test", "db123", session=fake))
    assert not report.step("notion").success
    assert "no title field" in report.step("notion").message
    assert fake.count("POST") == 0
    assert report.step("render").success
    assert settings.output_path.exists()


def test_page_create_error_reported(settings, audio_file, make_openai):
    fake = FakeNotion(errors={"POST": notion_error("Type is expected to be select.")})
    openai, _ = _openai(make_openai)
    report = run_pipeline(audio_file, settings, openai=openai,
                          notion=NotionClient("secret_test", "db123", session=fake))
    assert not report.step("notion").success
    assert "Type is expected to be select." in report.step("notion").message
    assert report.step("render").success


def test_fallback_pushed_by_default(settings, audio_file, make_openai, fake_notion, notion):
    openai, _ = _openai(make_openai, reply="not json at all")
    report = run_pipeline(audio_file, settings, openai=openai, notion=notion)
    assert report.used_fallback
    assert not report.step("categorize").success
    assert len(fake_notion.pages) == 1
    title = fake_notion.pages[0]["properties"]["Name"]["title"][0]["text"]["content"]
    assert title == "This is a brief summary."
    assert "This is a brief summary." in settings.output_path.read_text(encoding="utf-8")


def test_fallback_not_pushed_when_disabled(settings, audio_file, make_openai, fake_notion, notion):
    openai, _ = _openai(make_openai, reply="not json at all")
    report = run_pipeline(audio_file, settings, openai=openai, notion=notion, push_fallback=False)
    assert fake_notion.pages == []
    assert report.step("notion").message.startswith("skipped")


def test_no_credentials_still_renders(tmp_path, audio_file):
    settings = Settings(output_path=tmp_path / "doc.tex")
    report = run_pipeline(audio_file, settings)
    assert [s.success for s in report.steps] == [False, False, False, True]
    assert "OPENAI_API_KEY" in report.step("transcribe").message
    assert "NOTION_API_KEY" in report.step("notion").message
    assert report.used_fallback
    assert (tmp_path / "doc.tex").read_text(encoding="utf-8").startswith("\\documentclass")


def test_summary_policy_keep(settings, audio_file, make_openai, fake_notion, notion):
    openai, _ = _openai(make_openai)
    report = run_pipeline(audio_file, settings.model_copy(update={"summary_policy": "keep"}),
                          openai=openai, notion=notion)
    assert report.ok
    props = fake_notion.pages[0]["properties"]
    assert props["Summary"]["rich_text"][0]["text"]["content"] == "We reviewed the roadmap."


def test_bad_summary_policy_fails_only_the_notion_step(settings, audio_file, make_openai, fake_notion, notion):
    openai, _ = _openai(make_openai)
    report = run_pipeline(audio_file, settings.model_copy(update={"summary_policy": "merge"}),
                          openai=openai, notion=notion)
    assert not report.step("notion").success
    assert "summary_policy" in report.step("notion").message
    assert fake_notion.pages == []
    assert report.step("render").success
    assert settings.output_path.exists()


def test_unencodable_text_still_rendered(settings, audio_file, make_openai):
    openai, _ = _openai(make_openai, reply='{"Summary": "bad \\ud800 text"}')
    report = run_pipeline(audio_file, settings, openai=openai, push=False)
    assert report.record == {"Summary": "bad \ud800 text"}
    assert report.step("render").success
    assert "\\title{bad ? text}" in settings.output_path.read_text(encoding="utf-8")
