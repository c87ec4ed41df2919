"""OneNote page operations via Microsoft Graph API.

Uses raw HTTP because the SDK typed models don't support the HTML and
multipart bodies that OneNote page creation and updates require.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager

import httpx

from .. import auth, config
from ..diagram.models import MultipartBody, PlaceholderPage

log = logging.getLogger(__name__)


@asynccontextmanager
async def _http(client: httpx.AsyncClient | None):
    if client is not None:
        yield client
        return
    async with httpx.AsyncClient(timeout=config.HTTP_TIMEOUT) as owned:
        yield owned


async def _auth_headers() -> dict:
    # get_headers may refresh a token over the network; keep it off the event loop.
    return await asyncio.to_thread(auth.get_headers)


def _raise_for_status(resp: httpx.Response, what: str) -> None:
    if resp.is_error:
        log.error("%s failed with HTTP %d: %s", what, resp.status_code, resp.text)
    resp.raise_for_status()


async def create_page(
    section_id: str,
    html: str,
    *,
    http_client: httpx.AsyncClient | None = None,
) -> dict:
    """Create a page in a section from an HTML document."""
    url = f"{config.GRAPH_BASE}/me/onenote/sections/{section_id}/pages"
    headers = {**(await _auth_headers()), "Content-Type": "text/html"}

    async with _http(http_client) as client:
        resp = await client.post(url, content=html.encode("utf-8"), headers=headers)
        _raise_for_status(resp, f"Creating page in section {section_id}")
        return _page_to_dict(resp.json())


async def get_page(
    page_id: str,
    *,
    http_client: httpx.AsyncClient | None = None,
) -> dict:
    """Fetch a page's metadata."""
    url = f"{config.GRAPH_BASE}/me/onenote/pages/{page_id}"

    async with _http(http_client) as client:
        resp = await client.get(url, headers=await _auth_headers())
        resp.raise_for_status()
        return _page_to_dict(resp.json())


async def patch_page_content(
    page_id: str,
    content: bytes,
    content_type: str,
    *,
    http_client: httpx.AsyncClient | None = None,
) -> None:
    """Send a PATCH to a page's content endpoint.

    ``content`` is either a JSON command list or a multipart body whose
    ``Commands`` part holds it; ``content_type`` must match.
    """
    url = f"{config.GRAPH_BASE}/me/onenote/pages/{page_id}/content"
    headers = {**(await _auth_headers()), "Content-Type": content_type}

    async with _http(http_client) as client:
        resp = await client.patch(url, content=content, headers=headers)
        _raise_for_status(resp, f"Patching page {page_id}")


class GraphPageStore:
    """The remote document store the diagram publisher writes to."""

    def __init__(self, http_client: httpx.AsyncClient | None = None):
        self._http_client = http_client

    async def create_page(self, container_id: str, html: str) -> PlaceholderPage:
        page = await create_page(container_id, html, http_client=self._http_client)
        return PlaceholderPage(id=page["id"], title=page["title"])

    async def is_page_ready(self, page_id: str) -> bool:
        try:
            await get_page(page_id, http_client=self._http_client)
        except httpx.HTTPStatusError as exc:
            log.debug("Page %s not ready yet: HTTP %d", page_id, exc.response.status_code)
            return False
        except httpx.TransportError as exc:
            log.debug("Page %s readiness check failed: %s", page_id, exc)
            return False
        return True

    async def patch_page_content(self, page_id: str, body: MultipartBody) -> None:
        await patch_page_content(
            page_id,
            body.content,
            body.content_type,
            http_client=self._http_client,
        )


def _page_to_dict(page: dict) -> dict:
    """Normalize a page JSON response to a clean dict."""
    return {
        "id": page.get("id"),
        "title": page.get("title"),
        "createdDateTime": page.get("createdDateTime"),
        "lastModifiedDateTime": page.get("lastModifiedDateTime"),
        "selfUrl": page.get("self"),
        "contentUrl": page.get("contentUrl"),
    }
