"""Tool response payloads: a closed union of text and inline image blocks."""

import base64
from pathlib import PurePosixPath
from typing import Annotated, Literal
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field

_MIME_BY_EXT = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".webp": "image/webp",
}
DEFAULT_MIME_TYPE = "image/png"


def mime_type_for(url: str) -> str:
    """Guess an image MIME type from the extension of a URL or path."""
    suffix = PurePosixPath(urlparse(url).path).suffix.lower()
    return _MIME_BY_EXT.get(suffix, DEFAULT_MIME_TYPE)


class TextBlock(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["text"] = "text"
    text: str


class ImageBlock(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["image"] = "image"
    data: str  # base64
    mime_type: str


ContentBlock = Annotated[TextBlock | ImageBlock, Field(discriminator="type")]


class ToolResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    content: tuple[ContentBlock, ...]
    is_error: bool = False

    @classmethod
    def ok(cls, text: str) -> "ToolResponse":
        return ResponseBuilder().text(text).build()

    @classmethod
    def error(cls, text: str) -> "ToolResponse":
        return ResponseBuilder().text(text).build(is_error=True)

    @property
    def text(self) -> str:
        """All text blocks joined, in order."""
        return "\n".join(block.text for block in self.content if isinstance(block, TextBlock))

    @property
    def images(self) -> list[ImageBlock]:
        return [block for block in self.content if isinstance(block, ImageBlock)]


class ResponseBuilder:
    """Accumulates content blocks for a single tool response."""

    def __init__(self) -> None:
        self._blocks: list[TextBlock | ImageBlock] = []

    def text(self, text: str) -> "ResponseBuilder":
        self._blocks.append(TextBlock(text=text))
        return self

    def image(self, data: bytes, mime_type: str) -> "ResponseBuilder":
        encoded = base64.b64encode(data).decode("ascii")
        self._blocks.append(ImageBlock(data=encoded, mime_type=mime_type))
        return self

    def build(self, is_error: bool = False) -> ToolResponse:
        return ToolResponse(content=tuple(self._blocks), is_error=is_error)
