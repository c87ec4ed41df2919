"""Publish a rendered diagram to a new OneNote page.

The page is created first with the title, description and Mermaid source,
then the JPEG is appended with a multipart PATCH once Graph serves the page.
"""

from __future__ import annotations

import asyncio
import enum
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Protocol

from .. import config
from ..html_convert import placeholder_page_html
from ..onenote.pages import GraphPageStore
from .errors import PatchFailure, PublishError, RenderFailure, StoreFailure
from .models import DiagramRequest, MultipartBody, PlaceholderPage, PublishResult
from .multipart import build_image_append_body
from .render import DiagramRenderer, MermaidRenderer

log = logging.getLogger(__name__)

MIN_POLL_DELAY = 0.25


class PageStore(Protocol):
    async def create_page(self, container_id: str, html: str) -> PlaceholderPage: ...

    async def is_page_ready(self, page_id: str) -> bool: ...

    async def patch_page_content(self, page_id: str, body: MultipartBody) -> None: ...


class Stage(enum.Enum):
    RENDER = "render"
    CREATE_PLACEHOLDER = "create_placeholder"
    SETTLE_WAIT = "settle_wait"
    BUILD_BODY = "build_body"
    PATCH = "patch"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class SettlePolicy:
    """Backoff for polling a new page until Graph will serve it."""

    initial_delay: float = config.SETTLE_INITIAL_DELAY
    max_delay: float = config.SETTLE_MAX_DELAY
    timeout: float = config.SETTLE_TIMEOUT


async def wait_until_ready(
    store: PageStore,
    page_id: str,
    policy: SettlePolicy,
    *,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> bool:
    """Poll ``store.is_page_ready`` with doubling delays until ready or timed out.

    Always sleeps before the first check, never for less than MIN_POLL_DELAY
    unless the deadline is closer. Returns False once ``policy.timeout`` has
    elapsed without the page becoming ready.
    """
    deadline = clock() + policy.timeout
    delay = max(policy.initial_delay, MIN_POLL_DELAY)
    attempt = 0
    while True:
        remaining = deadline - clock()
        await sleep(max(0.0, min(delay, remaining)))
        attempt += 1
        if await store.is_page_ready(page_id):
            log.debug("Page %s ready after %d check(s)", page_id, attempt)
            return True
        if clock() >= deadline:
            return False
        delay = min(delay * 2, policy.max_delay)


class DiagramPublisher:
    """Runs render, create, settle, build and patch for one diagram at a time.

    Holds no per-request state, so one publisher can serve concurrent calls.
    """

    def __init__(
        self,
        store: PageStore,
        renderer: DiagramRenderer,
        settle: SettlePolicy | None = None,
        *,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.store = store
        self.renderer = renderer
        self.settle = settle or SettlePolicy()
        self._sleep = sleep

    async def publish(self, request: DiagramRequest) -> PublishResult:
        try:
            return await self._run(request)
        except PublishError as exc:
            self._enter(Stage.FAILED, request)
            log.error("Publishing %r failed at %s: %s", request.title, exc.stage, exc.message)
            raise

    async def _run(self, request: DiagramRequest) -> PublishResult:
        self._enter(Stage.RENDER, request)
        try:
            artifact = await self.renderer.render(request.markup)
        except RenderFailure:
            raise
        except Exception as exc:
            raise RenderFailure(f"Failed to render diagram: {exc}") from exc
        log.info("Rendered %r: %d bytes", request.title, len(artifact))

        self._enter(Stage.CREATE_PLACEHOLDER, request)
        html = placeholder_page_html(request.title, request.markup, request.description)
        try:
            page = await self.store.create_page(request.container_id, html)
        except Exception as exc:
            raise StoreFailure(f"Failed to create page: {exc}") from exc
        log.info("Created placeholder page %s", page.id)

        self._enter(Stage.SETTLE_WAIT, request)
        try:
            ready = await wait_until_ready(self.store, page.id, self.settle, sleep=self._sleep)
        except Exception as exc:
            raise PatchFailure(
                f"Failed while waiting for page {page.id} to become available: {exc}",
                page_id=page.id,
            ) from exc
        if not ready:
            log.warning(
                "Page %s not readable after %gs, attempting the image patch anyway",
                page.id,
                self.settle.timeout,
            )

        self._enter(Stage.BUILD_BODY, request)
        try:
            body = build_image_append_body(artifact, alt=request.title)
        except ValueError as exc:
            raise PatchFailure(f"Failed to build image upload: {exc}", page_id=page.id) from exc
        log.info("Built %d byte multipart body, boundary %s", len(body.content), body.boundary)

        self._enter(Stage.PATCH, request)
        try:
            await self.store.patch_page_content(page.id, body)
        except Exception as exc:
            raise PatchFailure(
                f"Failed to attach diagram image to page {page.id}: {exc}",
                page_id=page.id,
            ) from exc

        self._enter(Stage.DONE, request)
        log.info("Diagram image appended to page %s", page.id)
        return PublishResult(id=page.id, title=page.title or request.title)

    @staticmethod
    def _enter(stage: Stage, request: DiagramRequest) -> None:
        log.debug("%r -> %s", request.title, stage.value)


async def publish_diagram(
    title: str,
    markup: str,
    container_id: str,
    description: str | None = None,
    *,
    store: PageStore | None = None,
    renderer: DiagramRenderer | None = None,
    settle: SettlePolicy | None = None,
) -> dict:
    """Render ``markup`` and save it to a new page in section ``container_id``.

    Returns ``{"id", "title"}`` of the new page. Raises InvalidDiagramRequest
    before doing anything if the arguments are malformed, and a PublishError
    subclass naming the failed stage otherwise. Not idempotent: calling again
    after a PatchFailure creates a second page.
    """
    request = DiagramRequest(
        title=title,
        markup=markup,
        container_id=container_id,
        description=description,
    )
    if store is None:
        config.validate()
        store = GraphPageStore()
    publisher = DiagramPublisher(store, renderer or MermaidRenderer(), settle)
    result = await publisher.publish(request)
    return result.to_dict()
