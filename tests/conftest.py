"""Shared fixtures: real PNG payloads and a scripted OCR engine."""

import io
import threading
from typing import Dict, List, Optional
from unittest.mock import MagicMock

import pytest
from PIL import Image

from verifier.extractor import TextExtractionService, TextExtractor
from verifier.models import EvidenceImage


def make_png(size=(64, 32), color=(255, 255, 255)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, "PNG")
    return buffer.getvalue()


class ScriptedEngine(TextExtractor):
    """Returns canned text per filename and records the order of calls."""

    name = "scripted"

    def __init__(self, texts: Dict[str, object], calls: Optional[List[str]] = None):
        self.texts = texts
        self.calls = calls if calls is not None else []
        self.gate: Optional[threading.Event] = None
        self.started = threading.Event()

    def recognize(self, image: EvidenceImage, language: str) -> str:
        self.calls.append(f"ocr:{image.filename}")
        self.started.set()
        if self.gate is not None:
            self.gate.wait(5)
        text = self.texts.get(image.filename, "")
        if isinstance(text, Exception):
            raise text
        return text


@pytest.fixture
def png_bytes():
    return make_png()


@pytest.fixture
def kill_image(png_bytes):
    return EvidenceImage(data=png_bytes, mime_type="image/png", filename="kills.png")


@pytest.fixture
def profile_image(png_bytes):
    return EvidenceImage(data=png_bytes, mime_type="image/png", filename="profile.png")


@pytest.fixture
def make_service():
    def _make(texts, calls=None):
        engine = ScriptedEngine(texts, calls)
        service = TextExtractionService(engine=engine, quality_gate=MagicMock())
        return service, engine
    return _make
