"""Tests for the image ingestion adapter."""

from unittest.mock import MagicMock

import pytest

from verifier.clipboard import ClipboardItem, SystemClipboard
from verifier.errors import ClipboardUnavailable, IngestionError, IngestionFailure
from verifier.ingestion import ClipboardRead, DropEvent, DroppedFile, FilePicker, acquire


class FakeClipboard:
    def __init__(self, items=None, error=None):
        self.items = items or []
        self.error = error

    def read(self):
        if self.error:
            raise self.error
        return self.items


def test_file_picker_accepts_image(png_bytes):
    image = acquire(FilePicker(data=png_bytes, filename="shot.png", mime_type="image/png"))
    assert image.mime_type == "image/png"
    assert image.filename == "shot.png"
    assert image.data == png_bytes


def test_file_picker_rejects_non_image():
    with pytest.raises(IngestionError) as exc:
        acquire(FilePicker(data=b"hello", filename="notes.txt", mime_type="text/plain"))
    assert exc.value.reason == IngestionFailure.NOT_AN_IMAGE


def test_file_picker_guesses_type_from_extension(png_bytes):
    assert acquire(FilePicker(data=png_bytes, filename="shot.PNG")).mime_type == "image/png"
    generic = FilePicker(data=png_bytes, filename="shot.jpg", mime_type="application/octet-stream")
    assert acquire(generic).mime_type == "image/jpeg"


def test_file_picker_rejects_empty_payload():
    with pytest.raises(IngestionError) as exc:
        acquire(FilePicker(data=b"", filename="shot.png", mime_type="image/png"))
    assert exc.value.reason == IngestionFailure.NOT_AN_IMAGE


def test_file_picker_from_path(tmp_path, png_bytes):
    path = tmp_path / "evidence.png"
    path.write_bytes(png_bytes)
    image = acquire(FilePicker.from_path(path))
    assert image.filename == "evidence.png"
    assert image.mime_type == "image/png"


def test_drop_picks_first_image_and_ignores_others(png_bytes):
    event = DropEvent(files=[
        DroppedFile(data=b"%PDF", filename="doc.pdf", mime_type="application/pdf"),
        DroppedFile(data=png_bytes, filename="first.png", mime_type="image/png"),
        DroppedFile(data=png_bytes, filename="second.webp", mime_type="image/webp"),
    ])
    assert acquire(event).filename == "first.png"


def test_drop_without_images_is_rejected():
    event = DropEvent(files=[DroppedFile(data=b"x", filename="a.txt", mime_type="text/plain")])
    with pytest.raises(IngestionError) as exc:
        acquire(event)
    assert exc.value.reason == IngestionFailure.NOT_AN_IMAGE


def test_clipboard_selects_first_image_representation(png_bytes):
    fetch = MagicMock(return_value=png_bytes)
    reader = FakeClipboard(items=[
        ClipboardItem(types=["text/plain"], fetch=fetch),
        ClipboardItem(types=["text/html", "image/png", "image/jpeg"], fetch=fetch),
    ])
    image = acquire(ClipboardRead(reader=reader))
    assert image.mime_type == "image/png"
    assert image.filename == "pasted-image.png"
    fetch.assert_called_once_with("image/png")


def test_clipboard_empty_image_is_no_image():
    reader = FakeClipboard(items=[ClipboardItem(types=["image/png"], fetch=lambda t: b"")])
    with pytest.raises(IngestionError) as exc:
        acquire(ClipboardRead(reader=reader))
    assert exc.value.reason == IngestionFailure.NO_IMAGE_IN_CLIPBOARD


def test_clipboard_skips_empty_representation(png_bytes):
    payloads = {"image/png": b"", "image/jpeg": png_bytes}
    reader = FakeClipboard(items=[
        ClipboardItem(types=["image/png", "image/jpeg"], fetch=payloads.get),
    ])
    image = acquire(ClipboardRead(reader=reader))
    assert image.mime_type == "image/jpeg"
    assert image.filename == "pasted-image.jpeg"
    assert image.data == png_bytes


def test_clipboard_without_image():
    reader = FakeClipboard(items=[ClipboardItem(types=["text/plain"], fetch=MagicMock())])
    with pytest.raises(IngestionError) as exc:
        acquire(ClipboardRead(reader=reader))
    assert exc.value.reason == IngestionFailure.NO_IMAGE_IN_CLIPBOARD


@pytest.mark.parametrize("error", [PermissionError("denied"), ClipboardUnavailable("no tool")])
def test_clipboard_access_denied(error):
    with pytest.raises(IngestionError) as exc:
        acquire(ClipboardRead(reader=FakeClipboard(error=error)))
    assert exc.value.reason == IngestionFailure.PERMISSION_DENIED


def test_system_clipboard_without_tools_is_denied():
    with pytest.raises(IngestionError) as exc:
        acquire(ClipboardRead(reader=SystemClipboard(backend="none")))
    assert exc.value.reason == IngestionFailure.PERMISSION_DENIED
