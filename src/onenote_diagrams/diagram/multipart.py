"""Multipart PATCH bodies that append an image to a OneNote page.

OneNote's page-update endpoint takes ``multipart/form-data`` with a
``Commands`` part holding the JSON patch and one part per binary resource,
referenced from the patch HTML as ``name:<part>``.
"""

from __future__ import annotations

import secrets
import time

from ..html_convert import image_reference_html, make_patch_content
from .models import MultipartBody, RenderedArtifact

BOUNDARY_PREFIX = "PartBoundary"
COMMANDS_PART = "Commands"
IMAGE_PART = "diagramImage"


def new_boundary() -> str:
    """Time-derived boundary with a random suffix so same-tick calls differ."""
    return f"{BOUNDARY_PREFIX}{time.time_ns()}{secrets.token_hex(8)}"


def build_image_append_body(
    artifact: RenderedArtifact,
    alt: str,
    boundary: str | None = None,
) -> MultipartBody:
    """Build the ``Commands`` + image body for one rendered artifact.

    A generated boundary is drawn again if it happens to occur in the image
    bytes; an explicit one that does is rejected.
    """
    if boundary is None:
        boundary = new_boundary()
        while boundary.encode("ascii") in artifact.data:
            boundary = new_boundary()
    elif boundary.encode("ascii") in artifact.data:
        raise ValueError(f"boundary {boundary!r} occurs in the image data")

    commands = make_patch_content(
        "append",
        image_reference_html(IMAGE_PART, alt, artifact.media_type),
    )

    commands_part = (
        f"--{boundary}\r\n"
        f'Content-Disposition: form-data; name="{COMMANDS_PART}"\r\n'
        "Content-Type: application/json\r\n"
        "\r\n"
        f"{commands}\r\n"
    )
    image_part = (
        f"--{boundary}\r\n"
        f'Content-Disposition: form-data; name="{IMAGE_PART}"\r\n'
        f"Content-Type: {artifact.media_type}\r\n"
        "Content-Transfer-Encoding: binary\r\n"
        "\r\n"
    )
    closing = f"\r\n--{boundary}--\r\n"

    content = b"".join(
        [
            commands_part.encode("utf-8"),
            image_part.encode("utf-8"),
            artifact.data,
            closing.encode("utf-8"),
        ]
    )
    return MultipartBody(boundary=boundary, content=content)
