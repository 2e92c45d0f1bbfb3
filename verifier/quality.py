import cv2
import numpy as np
from typing import Tuple, List, Dict, Any
from config import settings

from .imaging import decode_image, to_bgr_array
from .models import EvidenceImage

class ImageQualityGate:
    """
    Evaluates screenshot quality for OCR diagnostics.
    Only used to explain an empty OCR result; it never decides a stage.
    """

    def __init__(self):
        self.min_width = settings.MIN_IMAGE_WIDTH
        self.min_height = settings.MIN_IMAGE_HEIGHT
        self.blur_threshold = settings.BLUR_THRESHOLD
        self.min_brightness = settings.MIN_BRIGHTNESS
        self.max_brightness = settings.MAX_BRIGHTNESS
        self.min_contrast = settings.MIN_CONTRAST

    def check_resolution(self, img: np.ndarray) -> Tuple[bool, str]:
        """Check if image meets minimum resolution requirements"""
        h, w = img.shape[:2]
        if w < self.min_width or h < self.min_height:
            return False, f"Low resolution ({w}x{h})"
        return True, None

    def check_blur(self, gray: np.ndarray) -> Tuple[bool, str]:
        """Check for image blur using Laplacian variance"""
        score = cv2.Laplacian(gray, cv2.CV_64F).var()
        if score < self.blur_threshold:
            return False, f"Blur detected (score={score:.1f})"
        return True, None

    def check_brightness(self, gray: np.ndarray) -> Tuple[bool, str]:
        """Check if image brightness is within acceptable range"""
        mean = gray.mean()
        if mean < self.min_brightness:
            return False, f"Too dark (mean={mean:.1f})"
        if mean > self.max_brightness:
            return False, f"Too bright (mean={mean:.1f})"
        return True, None

    def check_contrast(self, gray: np.ndarray) -> Tuple[bool, str]:
        """Check if image has sufficient contrast"""
        std = gray.std()
        if std < self.min_contrast:
            return False, f"Low contrast (std={std:.1f})"
        return True, None

    def check_text_likelihood(self, gray: np.ndarray) -> Tuple[bool, str]:
        """Estimate if image contains readable text using edge detection"""
        edges = cv2.Canny(gray, 100, 200)
        density = edges.mean()
        if density < 2.0:
            return False, "Low text likelihood"
        return True, None

    def evaluate_array(self, img: np.ndarray) -> Dict[str, Any]:
        """Run every check on a BGR array"""
        gray = cv2.cvtColor(img, cv2.COLOR_BGR2GRAY)
        results = [
            self.check_resolution(img),
            self.check_blur(gray),
            self.check_brightness(gray),
            self.check_contrast(gray),
            self.check_text_likelihood(gray),
        ]
        signals = [msg for ok, msg in results if not ok]
        score = (len(results) - len(signals)) / len(results)
        return {
            "readable": True,
            "score": round(score, 2),
            "signals": signals,
        }

    def evaluate(self, image: EvidenceImage) -> Dict[str, Any]:
        """
        Evaluate an evidence image.
        Returns dict with readable, score and signals.
        """
        try:
            img = to_bgr_array(decode_image(image))
        except Exception as e:
            return {
                "readable": False,
                "score": 0.0,
                "signals": [f"Image could not be decoded ({type(e).__name__})"],
            }
        return self.evaluate_array(img)
