"""Render Mermaid markup to a JPEG in a headless Chromium sandbox."""

from __future__ import annotations

import html
import logging
from typing import Any, Awaitable, Callable, Protocol

from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright.async_api import async_playwright

from .. import config
from .errors import RenderFailure
from .models import JPEG_MEDIA_TYPE, RenderedArtifact

log = logging.getLogger(__name__)

DIAGRAM_SELECTOR = ".mermaid"
RENDERED_SVG_CHECK = 'document.querySelector(".mermaid svg")'


class DiagramRenderer(Protocol):
    async def render(self, markup: str) -> RenderedArtifact: ...


class Sandbox(Protocol):
    """An isolated browser the renderer opens pages in; closed after each render."""

    async def new_page(self) -> Any: ...

    async def close(self) -> None: ...


def host_document(markup: str, mermaid_url: str = config.MERMAID_JS_URL) -> str:
    """Minimal page that loads Mermaid and renders ``markup`` on load.

    Mermaid reads the div's text content, so the markup is HTML-escaped to
    survive characters such as ``<`` intact.
    """
    return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <script src="{html.escape(mermaid_url)}"></script>
  <script>
    mermaid.initialize({{
      startOnLoad: true,
      theme: 'neutral',
      securityLevel: 'loose'
    }});
  </script>
</head>
<body>
  <div class="mermaid">
{html.escape(markup, quote=False)}
  </div>
</body>
</html>
"""


class ChromiumSandbox:
    """A Playwright driver plus one headless Chromium browser."""

    def __init__(self, playwright, browser):
        self._playwright = playwright
        self._browser = browser

    async def new_page(self):
        return await self._browser.new_page()

    async def close(self) -> None:
        try:
            await self._browser.close()
        finally:
            await self._playwright.stop()


async def launch_chromium(args: list[str] | None = None) -> ChromiumSandbox:
    """Start Playwright and a headless Chromium; stop the driver if launch fails."""
    playwright = await async_playwright().start()
    try:
        browser = await playwright.chromium.launch(
            headless=True,
            args=config.CHROMIUM_ARGS if args is None else args,
        )
    except BaseException:
        await playwright.stop()
        raise
    return ChromiumSandbox(playwright, browser)


class MermaidRenderer:
    """Turns Mermaid markup into a JPEG screenshot of the rendered SVG.

    Each call gets its own sandbox from ``launcher``, so concurrent renders
    share nothing.
    """

    def __init__(
        self,
        *,
        timeout: float = config.RENDER_TIMEOUT,
        quality: int = config.JPEG_QUALITY,
        mermaid_url: str = config.MERMAID_JS_URL,
        launcher: Callable[[], Awaitable[Sandbox]] = launch_chromium,
    ):
        self.timeout = timeout
        self.quality = quality
        self.mermaid_url = mermaid_url
        self._launcher = launcher

    async def render(self, markup: str) -> RenderedArtifact:
        if not isinstance(markup, str) or not markup.strip():
            raise RenderFailure("Failed to convert Mermaid diagram to JPEG: markup is empty")

        try:
            sandbox = await self._launcher()
        except Exception as exc:
            raise RenderFailure(f"Failed to start the render sandbox: {exc}") from exc

        try:
            data = await self._capture(sandbox, markup)
        except RenderFailure:
            raise
        except PlaywrightTimeoutError as exc:
            raise RenderFailure(
                f"Mermaid diagram did not render within {self.timeout:g}s: {exc}"
            ) from exc
        except Exception as exc:
            raise RenderFailure(f"Failed to convert Mermaid diagram to JPEG: {exc}") from exc
        finally:
            await sandbox.close()

        log.info("Rendered diagram to %d bytes of %s", len(data), JPEG_MEDIA_TYPE)
        return RenderedArtifact(data, JPEG_MEDIA_TYPE)

    async def _capture(self, sandbox: Sandbox, markup: str) -> bytes:
        page = await sandbox.new_page()
        await page.set_content(host_document(markup, self.mermaid_url))
        log.debug("Host document loaded, waiting for %s", RENDERED_SVG_CHECK)

        await page.wait_for_function(RENDERED_SVG_CHECK, timeout=self.timeout * 1000)

        element = await page.query_selector(DIAGRAM_SELECTOR)
        if element is None:
            raise RenderFailure("Rendered diagram element disappeared before capture")
        data = await element.screenshot(type="jpeg", quality=self.quality)
        if not data:
            raise RenderFailure("Diagram screenshot came back empty")
        return data
