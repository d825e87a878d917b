import asyncio

import pytest
from fastapi.testclient import TestClient

from pagefeed import __main__ as cli
from pagefeed import main as api
from pagefeed import runner
from pagefeed.config import config
from pagefeed.errors import NoCandidatesFound
from pagefeed.models.feed import RunReport, RunState
from pagefeed.pipeline import RunOutcome

from conftest import FIXED_TIME, SCENARIO_HTML, StaticPageSource


def ok_outcome():
    report = RunReport(state=RunState.DONE, normalized_count=2, feed_bytes=10)
    return RunOutcome(ok=True, report=report, feed_xml="<rss/>")


def failed_outcome():
    error = NoCandidatesFound(["div.article"])
    report = RunReport(state=RunState.ABORTED, error_type=error.error_type, error_message=error.message)
    return RunOutcome(ok=False, report=report, error=error)


def fake_run_once(outcome, calls):
    async def _run_once(**kwargs):
        calls.append(kwargs)
        return outcome
    return _run_once


# --- runner ------------------------------------------------------------------

def test_run_once_writes_feed(tmp_path, pipeline):
    output = tmp_path / "feed.xml"

    outcome = asyncio.run(runner.run_once(
        pipeline=pipeline,
        source=StaticPageSource(SCENARIO_HTML),
        output_path=str(output),
        debug_dir=str(tmp_path / "debug"),
        timestamp=FIXED_TIME,
    ))

    assert outcome.ok
    assert output.read_text(encoding="utf-8") == outcome.feed_xml
    assert not (tmp_path / "debug").exists()


def test_run_once_failure_captures_diagnostics(tmp_path, pipeline):
    output = tmp_path / "feed.xml"

    outcome = asyncio.run(runner.run_once(
        pipeline=pipeline,
        source=StaticPageSource("<html><body></body></html>"),
        output_path=str(output),
        debug_dir=str(tmp_path / "debug"),
    ))

    assert not outcome.ok
    assert not output.exists()
    assert (tmp_path / "debug" / "debug.html").exists()
    assert (tmp_path / "debug" / "debug.json").exists()


def test_build_source_by_render_mode():
    assert isinstance(runner.build_source("static", "https://x/"), runner.StaticDocumentSource)
    assert isinstance(runner.build_source("browser", "https://x/"), runner.BrowserDocumentSource)
    assert runner.build_source("static", "https://x/page").url == "https://x/page"


# --- command line ------------------------------------------------------------

def test_cli_exit_zero_on_success(monkeypatch):
    calls = []
    monkeypatch.setattr(cli, "run_once", fake_run_once(ok_outcome(), calls))

    code = cli.main(["--render-mode", "static", "--output", "out.xml", "--format", "atom", "--limit", "3"])

    assert code == 0
    assert calls[0]["output_path"] == "out.xml"
    assert calls[0]["pipeline"].extraction_layer.item_limit == 3
    assert calls[0]["pipeline"].feed_format.value == "atom"
    assert isinstance(calls[0]["source"], runner.StaticDocumentSource)


def test_cli_exit_one_on_failure(monkeypatch):
    monkeypatch.setattr(cli, "run_once", fake_run_once(failed_outcome(), []))

    assert cli.main(["--render-mode", "static"]) == 1


@pytest.mark.parametrize("limit", ["0", "-1"])
def test_cli_rejects_non_positive_limit(limit):
    with pytest.raises(SystemExit) as exc:
        cli.parse_args(["--limit", limit])

    assert exc.value.code == 2


# --- HTTP service ------------------------------------------------------------

def test_health():
    client = TestClient(api.app)

    response = client.get("/api/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_run_endpoint_success(monkeypatch):
    calls = []
    monkeypatch.setattr(api, "run_once", fake_run_once(ok_outcome(), calls))
    client = TestClient(api.app)

    response = client.post("/api/run", json={"render_mode": "static", "limit": 4})

    assert response.status_code == 200
    body = response.json()
    assert body["ok"] is True
    assert body["report"]["normalized_count"] == 2
    assert calls[0]["pipeline"].extraction_layer.item_limit == 4


def test_run_endpoint_failure_is_bad_gateway(monkeypatch):
    monkeypatch.setattr(api, "run_once", fake_run_once(failed_outcome(), []))
    client = TestClient(api.app)

    response = client.post("/api/run", json={"render_mode": "static"})

    assert response.status_code == 502
    assert response.json()["report"]["error_type"] == "no_candidates_found"


def test_run_endpoint_rejects_unknown_format():
    client = TestClient(api.app)

    response = client.post("/api/run", json={"format": "json-feed"})

    assert response.status_code == 400


def test_feed_endpoint(monkeypatch, tmp_path):
    feed = tmp_path / "feed.xml"
    monkeypatch.setattr(config, "OUTPUT_PATH", str(feed))
    client = TestClient(api.app)

    assert client.get("/feed.xml").status_code == 404

    feed.write_text("<rss version=\"2.0\"/>", encoding="utf-8")
    response = client.get("/feed.xml")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("application/rss+xml")
    assert response.text == "<rss version=\"2.0\"/>"


def test_feed_endpoint_media_type_follows_written_document(monkeypatch, tmp_path):
    feed = tmp_path / "feed.xml"
    feed.write_text("<feed xmlns=\"http://www.w3.org/2005/Atom\"/>", encoding="utf-8")
    monkeypatch.setattr(config, "OUTPUT_PATH", str(feed))
    monkeypatch.setattr(config, "FEED_FORMAT", "rss2")
    client = TestClient(api.app)

    response = client.get("/feed.xml")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("application/atom+xml")


def test_feed_media_type_falls_back_for_unparseable_content():
    assert api.feed_media_type(b"not xml <") == "application/xml"
    assert api.feed_media_type(b"<html/>") == "application/xml"
