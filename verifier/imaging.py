import io

import numpy as np
import pillow_heif
from PIL import Image

from .models import EvidenceImage

pillow_heif.register_heif_opener()


def decode_image(image: EvidenceImage) -> Image.Image:
    """
    Decodes an evidence blob (PNG / JPEG / WEBP / HEIC ...) into an RGB image.
    Raises whatever Pillow raises for undecodable data.
    """
    img = Image.open(io.BytesIO(image.data))
    img.load()
    if img.mode in ("RGBA", "LA", "P"):
        # Screenshots often carry alpha; flatten onto white so text stays dark-on-light
        img = img.convert("RGBA")
        background = Image.new("RGB", img.size, (255, 255, 255))
        background.paste(img, mask=img.split()[-1])
        return background
    return img.convert("RGB")


def to_bgr_array(img: Image.Image) -> np.ndarray:
    """PIL RGB image -> OpenCV BGR array"""
    return np.asarray(img)[:, :, ::-1].copy()


def to_png_bytes(img: Image.Image) -> bytes:
    buffer = io.BytesIO()
    img.save(buffer, "PNG")
    return buffer.getvalue()
