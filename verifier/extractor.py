import asyncio
import base64
import logging
from abc import ABC, abstractmethod
from typing import Optional

import cv2
import numpy as np
import pytesseract
from openai import OpenAI

from config import settings
from .imaging import decode_image, to_bgr_array
from .models import EvidenceImage
from .quality import ImageQualityGate

logger = logging.getLogger(__name__)


class TextExtractor(ABC):
    """
    Interface for OCR engines.
    Engines return raw recognized text and may raise on any failure.
    """

    name = "base"

    @abstractmethod
    def recognize(self, image: EvidenceImage, language: str) -> str:
        raise NotImplementedError


class TesseractExtractor(TextExtractor):
    """
    Tesseract OCR through pytesseract, with light OpenCV preprocessing
    """

    name = "tesseract"

    def __init__(self):
        self.config = settings.TESSERACT_CONFIG
        self.timeout = settings.OCR_TIMEOUT_S
        self.preprocess_enabled = settings.OCR_PREPROCESS

    def preprocess(self, img: np.ndarray) -> np.ndarray:
        """Grayscale, upscale small screenshots, binarize to dark text on light"""
        gray = cv2.cvtColor(img, cv2.COLOR_BGR2GRAY)
        h, w = gray.shape[:2]
        if w < 1000:
            gray = cv2.resize(gray, (w * 2, h * 2), interpolation=cv2.INTER_CUBIC)
        _, binary = cv2.threshold(gray, 0, 255, cv2.THRESH_BINARY + cv2.THRESH_OTSU)
        # Game HUDs are mostly light text on dark backgrounds
        if binary.mean() < 127:
            binary = cv2.bitwise_not(binary)
        return binary

    def recognize(self, image: EvidenceImage, language: str) -> str:
        pil_img = decode_image(image)
        source = self.preprocess(to_bgr_array(pil_img)) if self.preprocess_enabled else pil_img
        return pytesseract.image_to_string(
            source,
            lang=language,
            config=self.config,
            timeout=self.timeout,
        )


class OpenAIVisionExtractor(TextExtractor):
    """
    Transcribes screenshot text using OpenAI Vision API
    """

    name = "openai"

    PROMPT = """
You are an OCR system.

Transcribe ALL text visible in this screenshot exactly as shown.
- Keep numbers exactly as displayed, including separators
- Keep player names exactly as displayed, including case
- One visual line per output line
- DO NOT add commentary, labels or formatting

If no text is visible, return an empty response.
"""

    def __init__(self):
        if not settings.OPENAI_API_KEY:
            raise ValueError("OPENAI_API_KEY is required when OCR_ENGINE=openai")
        self.client = OpenAI(api_key=settings.OPENAI_API_KEY, timeout=settings.OCR_TIMEOUT_S)
        self.model = settings.OPENAI_MODEL

    def encode_image(self, image: EvidenceImage) -> str:
        """Encode image as base64 data URL"""
        b64 = base64.b64encode(image.data).decode("utf-8")
        return f"data:{image.mime_type};base64,{b64}"

    def recognize(self, image: EvidenceImage, language: str) -> str:
        response = self.client.chat.completions.create(
            model=self.model,
            messages=[
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": f"{self.PROMPT}\nLanguage: {language}"},
                        {
                            "type": "image_url",
                            "image_url": {
                                "url": self.encode_image(image)
                            }
                        }
                    ]
                }
            ],
            max_tokens=1000,
            temperature=0
        )
        return response.choices[0].message.content or ""


ENGINES = {
    TesseractExtractor.name: TesseractExtractor,
    OpenAIVisionExtractor.name: OpenAIVisionExtractor,
}


def get_extractor(engine: Optional[str] = None) -> TextExtractor:
    engine = (engine or settings.OCR_ENGINE).lower()
    if engine not in ENGINES:
        raise ValueError(f"Unknown OCR engine: {engine}")
    return ENGINES[engine]()


class TextExtractionService:
    """
    Async boundary around an OCR engine.

    extract_text never raises: engine errors, decode errors and timeouts
    all come back as "" and are logged as extraction failures together with
    the image quality signals.
    """

    def __init__(self, engine: Optional[TextExtractor] = None,
                 quality_gate: Optional[ImageQualityGate] = None):
        self.engine = engine or get_extractor()
        self.quality_gate = quality_gate or ImageQualityGate()
        self.language = settings.OCR_LANGUAGE

    async def extract_text(self, image: EvidenceImage, language: Optional[str] = None) -> str:
        language = language or self.language
        try:
            text = await asyncio.to_thread(self.engine.recognize, image, language)
        except Exception as e:
            logger.warning(
                f"[OCR] extraction failure on {image.filename} ({self.engine.name}): "
                f"{type(e).__name__}: {e}"
            )
            await self._log_quality(image)
            return ""

        text = text or ""
        if not text.strip():
            logger.warning(f"[OCR] empty text from {image.filename} ({self.engine.name})")
            await self._log_quality(image)
        else:
            logger.debug(f"[OCR] {image.filename}: {text!r}")
        return text

    async def _log_quality(self, image: EvidenceImage) -> None:
        try:
            quality = await asyncio.to_thread(self.quality_gate.evaluate, image)
        except Exception as e:
            logger.warning(f"[OCR] quality diagnostics unavailable for {image.filename}: {e}")
            return
        logger.warning(
            f"[OCR] quality for {image.filename}: score={quality['score']} "
            f"signals={quality['signals']}"
        )
