import asyncio
import json
from unittest.mock import patch

import httpx
import pytest
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from pagefeed.adapters.browser import BROWSER_ARGS, BrowserDocumentSource
from pagefeed.adapters.diagnostics import DiagnosticsWriter, write_feed
from pagefeed.adapters.static_fetcher import StaticDocumentSource
from pagefeed.errors import DocumentUnavailable
from pagefeed.pipeline import RunOutcome
from pagefeed.models.feed import RunReport, RunState

from conftest import BASE_URL, SCENARIO_HTML


# --- static source -----------------------------------------------------------

def mocked_client(handler):
    real_client = httpx.AsyncClient

    def factory(**kwargs):
        return real_client(transport=httpx.MockTransport(handler), **kwargs)

    return patch("pagefeed.adapters.static_fetcher.httpx.AsyncClient", side_effect=factory)


def test_static_source_returns_page():
    seen = {}

    def handler(request):
        seen["ua"] = request.headers["user-agent"]
        return httpx.Response(200, text=SCENARIO_HTML)

    with mocked_client(handler):
        rendered = asyncio.run(StaticDocumentSource(BASE_URL, user_agent="TestAgent/1.0").load())

    assert rendered.html == SCENARIO_HTML
    assert rendered.url == BASE_URL
    assert rendered.screenshot is None
    assert seen["ua"] == "TestAgent/1.0"


def test_static_source_http_error_is_unavailable():
    with mocked_client(lambda request: httpx.Response(503, text="down")):
        with pytest.raises(DocumentUnavailable):
            asyncio.run(StaticDocumentSource(BASE_URL).load())


# --- browser source ----------------------------------------------------------

class FakePage:
    def __init__(self, goto_error=None, selector_error=None):
        self.url = BASE_URL
        self.goto_error = goto_error
        self.selector_error = selector_error
        self.calls = []

    async def goto(self, url, wait_until=None, timeout=None):
        self.calls.append(("goto", url, wait_until, timeout))
        if self.goto_error:
            raise self.goto_error

    async def wait_for_selector(self, selector, state=None, timeout=None):
        self.calls.append(("wait_for_selector", selector, timeout))
        if self.selector_error:
            raise self.selector_error

    async def wait_for_timeout(self, timeout):
        self.calls.append(("wait_for_timeout", timeout))

    async def content(self):
        return SCENARIO_HTML

    async def screenshot(self, full_page=False):
        return b"png-bytes"


class FakeBrowser:
    def __init__(self, page):
        self.page = page
        self.closed = False
        self.user_agent = None

    async def new_context(self, user_agent=None):
        self.user_agent = user_agent
        return self

    async def new_page(self):
        return self.page

    async def close(self):
        self.closed = True


class FakePlaywright:
    def __init__(self, browser):
        self.browser = browser
        self.chromium = self
        self.launch_args = None

    async def launch(self, headless=True, args=None):
        self.launch_args = args
        return self.browser

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False


def browser_source(**kwargs):
    return BrowserDocumentSource(
        BASE_URL,
        wait_selectors=["div.article", "article"],
        settle_delay=0.5,
        user_agent="TestAgent/1.0",
        **kwargs
    )


def test_browser_source_renders_page():
    fake_page = FakePage()
    fake = FakePlaywright(FakeBrowser(fake_page))

    with patch("pagefeed.adapters.browser.async_playwright", return_value=fake):
        rendered = asyncio.run(browser_source().load())

    assert rendered.html == SCENARIO_HTML
    assert rendered.screenshot == b"png-bytes"
    assert fake.launch_args == BROWSER_ARGS
    assert fake.browser.user_agent == "TestAgent/1.0"
    assert fake.browser.closed
    assert fake_page.calls[0] == ("goto", BASE_URL, "networkidle", 30000)
    assert ("wait_for_selector", "div.article, article", 15000) in fake_page.calls
    assert ("wait_for_timeout", 500) in fake_page.calls


def test_browser_source_tolerates_selector_timeout():
    fake_page = FakePage(selector_error=PlaywrightTimeoutError("no selector"))
    fake = FakePlaywright(FakeBrowser(fake_page))

    with patch("pagefeed.adapters.browser.async_playwright", return_value=fake):
        rendered = asyncio.run(browser_source(capture_screenshot=False).load())

    assert rendered.html == SCENARIO_HTML
    assert rendered.screenshot is None


def test_browser_navigation_timeout_is_unavailable():
    fake = FakePlaywright(FakeBrowser(FakePage(goto_error=PlaywrightTimeoutError("slow"))))

    with patch("pagefeed.adapters.browser.async_playwright", return_value=fake):
        with pytest.raises(DocumentUnavailable):
            asyncio.run(browser_source().load())

    assert fake.browser.closed


# --- diagnostics -------------------------------------------------------------

def test_diagnostics_capture_writes_snapshot(tmp_path):
    report = RunReport(state=RunState.ABORTED, error_type="no_candidates_found", candidate_count=0)
    outcome = RunOutcome(ok=False, report=report, markup="<html></html>", screenshot=b"png")

    written = DiagnosticsWriter(str(tmp_path / "debug")).capture(outcome)

    assert sorted(p.name for p in written) == ["debug.html", "debug.json", "debug.png"]
    summary = json.loads((tmp_path / "debug" / "debug.json").read_text(encoding="utf-8"))
    assert summary["error_type"] == "no_candidates_found"
    assert summary["state"] == "aborted"
    assert (tmp_path / "debug" / "debug.html").read_text(encoding="utf-8") == "<html></html>"


def test_diagnostics_without_markup_writes_summary_only(tmp_path):
    outcome = RunOutcome(ok=False, report=RunReport(state=RunState.ABORTED))

    written = DiagnosticsWriter(str(tmp_path)).capture(outcome)

    assert [p.name for p in written] == ["debug.json"]


def test_write_feed_creates_parent_directories(tmp_path):
    target = tmp_path / "public" / "feed.xml"

    write_feed(str(target), "<rss/>")

    assert target.read_text(encoding="utf-8") == "<rss/>"
