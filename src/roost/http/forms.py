"""URL-encoded and multipart form body parsing.

Models behind ``/post/`` endpoints read submitted forms and uploads via
``await request.form()``. URL-encoded bodies use the stdlib; multipart
bodies are parsed with ``python-multipart``.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import parse_qsl

from python_multipart.multipart import MultipartParser, parse_options_header

from roost.http.structures import _MultiMap


@dataclass(frozen=True, slots=True)
class UploadFile:
    """A file received in a multipart body, held in memory."""

    filename: str
    content_type: str
    content: bytes = field(repr=False)

    @property
    def size(self) -> int:
        return len(self.content)


class FormData(_MultiMap):
    """Parsed form fields plus uploaded files by field name."""

    __slots__ = ("_files",)

    _files: dict[str, UploadFile]

    def __init__(
        self,
        pairs: list[tuple[str, str]] | None = None,
        files: dict[str, UploadFile] | None = None,
    ) -> None:
        super().__init__(pairs or ())
        object.__setattr__(self, "_files", files or {})

    @property
    def files(self) -> Mapping[str, UploadFile]:
        return self._files


async def parse_form_data(body: bytes, content_type: str) -> FormData:
    """Parse *body* according to *content_type*.

    Raises:
        ValueError: For a content type that isn't a form encoding, or a
            multipart body without a boundary.
    """
    media_type = content_type.split(";", 1)[0].strip().lower()
    if media_type == "application/x-www-form-urlencoded":
        return FormData(parse_qsl(body.decode("utf-8"), keep_blank_values=True))
    if media_type == "multipart/form-data":
        return _parse_multipart(body, content_type)
    msg = f"Unsupported form content type: {content_type!r}"
    raise ValueError(msg)


def _parse_multipart(body: bytes, content_type: str) -> FormData:
    _, options = parse_options_header(content_type)
    boundary = options.get(b"boundary")
    if not boundary:
        msg = "Multipart form data missing boundary parameter"
        raise ValueError(msg)

    pairs: list[tuple[str, str]] = []
    files: dict[str, UploadFile] = {}
    part: dict[str, Any] = {}
    header_name = b""

    def on_part_begin() -> None:
        part.clear()
        part["headers"] = {}
        part["data"] = bytearray()

    def on_header_field(data: bytes, start: int, end: int) -> None:
        nonlocal header_name
        header_name = data[start:end].lower()

    def on_header_value(data: bytes, start: int, end: int) -> None:
        part["headers"][header_name] = data[start:end]

    def on_part_data(data: bytes, start: int, end: int) -> None:
        part["data"].extend(data[start:end])

    def on_part_end() -> None:
        disposition = part["headers"].get(b"content-disposition", b"")
        _, params = parse_options_header(disposition)
        name = params.get(b"name")
        if name is None:
            return
        filename = params.get(b"filename")
        if filename is None:
            pairs.append((name.decode("utf-8"), part["data"].decode("utf-8", errors="replace")))
            return
        ctype = part["headers"].get(b"content-type", b"application/octet-stream")
        files[name.decode("utf-8")] = UploadFile(
            filename=filename.decode("utf-8"),
            content_type=ctype.decode("latin-1"),
            content=bytes(part["data"]),
        )

    parser = MultipartParser(
        boundary,
        {
            "on_part_begin": on_part_begin,
            "on_header_field": on_header_field,
            "on_header_value": on_header_value,
            "on_part_data": on_part_data,
            "on_part_end": on_part_end,
        },
    )
    parser.write(body)
    parser.finalize()
    return FormData(pairs, files)
