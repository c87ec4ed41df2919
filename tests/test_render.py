"""Tests for the Mermaid renderer's sandbox lifecycle."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from onenote_diagrams.diagram import render
from onenote_diagrams.diagram.errors import RenderFailure
from onenote_diagrams.diagram.render import MermaidRenderer, host_document

MARKUP = "graph TD; A-->B"


class FakeElement:
    def __init__(self, data):
        self.data = data
        self.screenshot_kwargs = None

    async def screenshot(self, **kwargs):
        self.screenshot_kwargs = kwargs
        return self.data


class FakePage:
    def __init__(self, element=None, set_content_error=None, wait_error=None):
        self.element = element
        self.set_content_error = set_content_error
        self.wait_error = wait_error
        self.content = None
        self.wait_args = None

    async def set_content(self, html):
        if self.set_content_error:
            raise self.set_content_error
        self.content = html

    async def wait_for_function(self, expression, timeout):
        self.wait_args = (expression, timeout)
        if self.wait_error:
            raise self.wait_error

    async def query_selector(self, selector):
        assert selector == ".mermaid"
        return self.element


class FakeSandbox:
    def __init__(self, page):
        self.page = page
        self.closed = 0

    async def new_page(self):
        return self.page

    async def close(self):
        self.closed += 1


def _renderer(sandbox, **kwargs):
    async def launcher():
        return sandbox

    return MermaidRenderer(launcher=launcher, mermaid_url="https://cdn.test/mermaid.js", **kwargs)


class TestHostDocument:
    def test_embeds_library_and_markup(self):
        html = host_document(MARKUP, "https://cdn.test/mermaid.js")
        assert '<script src="https://cdn.test/mermaid.js"></script>' in html
        assert "theme: 'neutral'" in html
        assert "securityLevel: 'loose'" in html
        assert '<div class="mermaid">' in html
        assert "graph TD; A--&gt;B" in html

    def test_markup_cannot_inject_tags(self):
        html = host_document('graph TD; A["</div><script>x()</script>"]-->B')
        assert "<script>x()" not in html


class TestMermaidRenderer:
    @pytest.mark.asyncio
    async def test_success_returns_jpeg_and_closes_once(self):
        element = FakeElement(b"\xff\xd8jpeg\xff\xd9")
        page = FakePage(element=element)
        sandbox = FakeSandbox(page)

        artifact = await _renderer(sandbox).render(MARKUP)

        assert artifact.data == b"\xff\xd8jpeg\xff\xd9"
        assert artifact.media_type == "image/jpeg"
        assert element.screenshot_kwargs == {"type": "jpeg", "quality": 80}
        assert page.wait_args == ('document.querySelector(".mermaid svg")', 5000)
        assert "graph TD; A--&gt;B" in page.content
        assert sandbox.closed == 1

    @pytest.mark.asyncio
    async def test_timeout_is_render_failure_and_closes_once(self):
        page = FakePage(element=FakeElement(b"x"), wait_error=PlaywrightTimeoutError("Timeout 5000ms exceeded."))
        sandbox = FakeSandbox(page)

        with pytest.raises(RenderFailure) as excinfo:
            await _renderer(sandbox).render(MARKUP)

        assert "did not render within 5s" in str(excinfo.value)
        assert excinfo.value.stage == "render"
        assert sandbox.closed == 1

    @pytest.mark.asyncio
    async def test_host_document_failure_closes_once(self):
        page = FakePage(set_content_error=RuntimeError("net::ERR_NAME_NOT_RESOLVED"))
        sandbox = FakeSandbox(page)

        with pytest.raises(RenderFailure) as excinfo:
            await _renderer(sandbox).render(MARKUP)

        assert "ERR_NAME_NOT_RESOLVED" in str(excinfo.value)
        assert isinstance(excinfo.value.__cause__, RuntimeError)
        assert sandbox.closed == 1

    @pytest.mark.asyncio
    async def test_empty_screenshot_is_failure(self):
        sandbox = FakeSandbox(FakePage(element=FakeElement(b"")))

        with pytest.raises(RenderFailure):
            await _renderer(sandbox).render(MARKUP)
        assert sandbox.closed == 1

    @pytest.mark.asyncio
    async def test_missing_element_is_failure(self):
        sandbox = FakeSandbox(FakePage(element=None))

        with pytest.raises(RenderFailure):
            await _renderer(sandbox).render(MARKUP)
        assert sandbox.closed == 1

    @pytest.mark.asyncio
    async def test_launch_failure_is_render_failure(self):
        async def launcher():
            raise RuntimeError("Executable doesn't exist")

        renderer = MermaidRenderer(launcher=launcher)
        with pytest.raises(RenderFailure) as excinfo:
            await renderer.render(MARKUP)
        assert "Executable doesn't exist" in str(excinfo.value)

    @pytest.mark.asyncio
    async def test_blank_markup_never_launches(self):
        launched = []

        async def launcher():
            launched.append(True)
            return FakeSandbox(FakePage())

        with pytest.raises(RenderFailure):
            await MermaidRenderer(launcher=launcher).render("   ")
        assert launched == []

    @pytest.mark.asyncio
    async def test_timeout_and_quality_are_configurable(self):
        element = FakeElement(b"jpeg")
        page = FakePage(element=element)
        sandbox = FakeSandbox(page)

        await _renderer(sandbox, timeout=1.5, quality=60).render(MARKUP)

        assert page.wait_args[1] == 1500
        assert element.screenshot_kwargs["quality"] == 60


class TestChromiumSandbox:
    @pytest.mark.asyncio
    async def test_close_stops_driver_even_if_browser_close_fails(self):
        browser = AsyncMock()
        browser.close.side_effect = RuntimeError("browser already gone")
        driver = AsyncMock()

        with pytest.raises(RuntimeError):
            await render.ChromiumSandbox(driver, browser).close()

        driver.stop.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_launch_failure_stops_driver(self, monkeypatch):
        driver = AsyncMock()
        driver.chromium.launch.side_effect = RuntimeError("Executable doesn't exist")
        context = MagicMock()
        context.start = AsyncMock(return_value=driver)
        monkeypatch.setattr(render, "async_playwright", lambda: context)

        with pytest.raises(RuntimeError):
            await render.launch_chromium()

        driver.stop.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_launch_uses_headless_chromium_args(self, monkeypatch):
        driver = AsyncMock()
        context = MagicMock()
        context.start = AsyncMock(return_value=driver)
        monkeypatch.setattr(render, "async_playwright", lambda: context)

        sandbox = await render.launch_chromium()

        driver.chromium.launch.assert_awaited_once_with(
            headless=True,
            args=["--no-sandbox", "--disable-setuid-sandbox"],
        )
        driver.stop.assert_not_awaited()
        await sandbox.close()
        driver.stop.assert_awaited_once()
