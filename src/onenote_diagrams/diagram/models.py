"""Values passed through the diagram publish pipeline."""

from __future__ import annotations

from dataclasses import dataclass

from .errors import InvalidDiagramRequest

JPEG_MEDIA_TYPE = "image/jpeg"


def _require_text(name: str, value) -> None:
    if not isinstance(value, str):
        raise InvalidDiagramRequest(f"{name} must be a string, got {type(value).__name__}")
    if not value.strip():
        raise InvalidDiagramRequest(f"{name} is required")


@dataclass(frozen=True)
class DiagramRequest:
    title: str
    markup: str
    container_id: str
    description: str | None = None

    def __post_init__(self) -> None:
        _require_text("title", self.title)
        _require_text("markup", self.markup)
        _require_text("container_id", self.container_id)
        if self.description is not None and not isinstance(self.description, str):
            raise InvalidDiagramRequest(
                f"description must be a string, got {type(self.description).__name__}"
            )


@dataclass(frozen=True)
class RenderedArtifact:
    data: bytes
    media_type: str = JPEG_MEDIA_TYPE

    def __post_init__(self) -> None:
        if not self.data:
            raise ValueError("rendered artifact is empty")

    def __len__(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class PlaceholderPage:
    id: str
    title: str


@dataclass(frozen=True)
class MultipartBody:
    boundary: str
    content: bytes

    @property
    def content_type(self) -> str:
        return f"multipart/form-data; boundary={self.boundary}"


@dataclass(frozen=True)
class PublishResult:
    id: str
    title: str

    def to_dict(self) -> dict:
        return {"id": self.id, "title": self.title}
