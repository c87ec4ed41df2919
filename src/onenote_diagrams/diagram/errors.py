"""Failures raised while publishing a diagram to OneNote."""

from __future__ import annotations


class InvalidDiagramRequest(ValueError):
    """A publish call was missing a required field or had the wrong type."""


class PublishError(Exception):
    """A publish attempt failed; ``stage`` names the step that failed."""

    stage = "publish"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"stage": self.stage, "error": self.message}


class RenderFailure(PublishError):
    """The diagram could not be rendered to an image."""

    stage = "render"


class StoreFailure(PublishError):
    """OneNote rejected the placeholder page."""

    stage = "create_placeholder"


class PatchFailure(PublishError):
    """The image could not be attached to the placeholder page.

    The placeholder is left in place without the image; ``page_id`` points
    at it so the caller can clean it up or report it.
    """

    stage = "patch"

    def __init__(self, message: str, page_id: str):
        super().__init__(message)
        self.page_id = page_id

    def to_dict(self) -> dict:
        return {**super().to_dict(), "pageId": self.page_id}
