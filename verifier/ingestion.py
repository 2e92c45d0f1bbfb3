"""
Image ingestion adapter.

File picker, drag-and-drop and clipboard paste are equivalent sources of one
EvidenceImage. Each source is a small typed payload; `acquire` normalizes any
of them or raises IngestionError. Nothing here touches wizard state.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Protocol, Union

from .clipboard import ClipboardItem, SystemClipboard
from .errors import ClipboardUnavailable, IngestionError, IngestionFailure
from .models import EvidenceImage
from .utils import guess_mime_type, is_image_mime, mime_subtype

logger = logging.getLogger(__name__)


class ClipboardReader(Protocol):
    def read(self) -> List[ClipboardItem]:
        ...


@dataclass(frozen=True)
class FilePicker:
    data: bytes = field(repr=False)
    filename: str
    mime_type: Optional[str] = None

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "FilePicker":
        p = Path(path)
        return cls(data=p.read_bytes(), filename=p.name, mime_type=guess_mime_type(p.name))


@dataclass(frozen=True)
class DroppedFile:
    data: bytes = field(repr=False)
    filename: str
    mime_type: Optional[str] = None


@dataclass(frozen=True)
class DropEvent:
    files: List[DroppedFile]


@dataclass(frozen=True)
class ClipboardRead:
    reader: ClipboardReader = field(default_factory=SystemClipboard)


IngestionSource = Union[FilePicker, DropEvent, ClipboardRead]


def _resolve_mime(filename: str, mime_type: Optional[str]) -> Optional[str]:
    # Browsers and multipart clients sometimes send a generic type
    if mime_type and mime_type != "application/octet-stream":
        return mime_type
    return guess_mime_type(filename) or mime_type


def _from_file(data: bytes, filename: str, mime_type: Optional[str]) -> EvidenceImage:
    mime = _resolve_mime(filename, mime_type)
    if not is_image_mime(mime):
        raise IngestionError(IngestionFailure.NOT_AN_IMAGE, f"{filename} has type {mime}")
    if not data:
        raise IngestionError(IngestionFailure.NOT_AN_IMAGE, f"{filename} is empty")
    return EvidenceImage(data=data, mime_type=mime, filename=filename)


def _from_drop(event: DropEvent) -> EvidenceImage:
    for dropped in event.files:
        mime = _resolve_mime(dropped.filename, dropped.mime_type)
        if is_image_mime(mime) and dropped.data:
            return EvidenceImage(data=dropped.data, mime_type=mime, filename=dropped.filename)
    raise IngestionError(
        IngestionFailure.NOT_AN_IMAGE,
        f"none of {len(event.files)} dropped file(s) is an image",
    )


def _from_clipboard(source: ClipboardRead) -> EvidenceImage:
    try:
        items = source.reader.read()
        for item in items:
            for mime in item.types:
                if is_image_mime(mime):
                    data = item.get_type(mime)
                    if not data:
                        continue
                    return EvidenceImage(
                        data=data,
                        mime_type=mime,
                        filename=f"pasted-image.{mime_subtype(mime)}",
                    )
    except (PermissionError, ClipboardUnavailable) as e:
        raise IngestionError(IngestionFailure.PERMISSION_DENIED, str(e))
    raise IngestionError(IngestionFailure.NO_IMAGE_IN_CLIPBOARD)


def acquire(source: IngestionSource) -> EvidenceImage:
    """Normalize a user-supplied image into an EvidenceImage."""
    try:
        if isinstance(source, FilePicker):
            image = _from_file(source.data, source.filename, source.mime_type)
        elif isinstance(source, DropEvent):
            image = _from_drop(source)
        elif isinstance(source, ClipboardRead):
            image = _from_clipboard(source)
        else:
            raise TypeError(f"Unsupported ingestion source: {type(source).__name__}")
    except IngestionError as e:
        logger.info(f"[INGEST] rejected {type(source).__name__}: {e}")
        raise

    logger.info(f"[INGEST] accepted {image.filename} ({image.mime_type}, {image.size} bytes)")
    return image
