import mimetypes
import os
import re
from datetime import date
from typing import Optional

from config import IMAGE_MIME_PREFIX

def get_file_extension(filename: str) -> str:
    """Get file extension from filename"""
    return os.path.splitext(filename)[1].lower()

def guess_mime_type(filename: str) -> Optional[str]:
    """Guess MIME type from the filename extension"""
    ext = get_file_extension(filename)
    # mimetypes does not know HEIC on every platform
    if ext in (".heic", ".heif"):
        return f"image/{ext[1:]}"
    mime, _ = mimetypes.guess_type(filename)
    return mime

def is_image_mime(mime_type: Optional[str]) -> bool:
    """Check if MIME type denotes an image"""
    return bool(mime_type) and mime_type.lower().startswith(IMAGE_MIME_PREFIX)

def mime_subtype(mime_type: str) -> str:
    """'image/png' -> 'png'"""
    return mime_type.split("/", 1)[1].split(";", 1)[0].strip() or "bin"

def safe_filename_component(text: str) -> str:
    """Make user-supplied text usable inside a file name"""
    cleaned = re.sub(r"[\\/:*?\"<>|\x00-\x1f]+", "_", text.strip())
    return cleaned or "unknown"

def iso_date(day: Optional[date] = None) -> str:
    """YYYY-MM-DD for today (or the given day)"""
    return (day or date.today()).isoformat()
