"""
System clipboard access through the wl-clipboard / xclip command line tools.

Both tools are optional. When neither can be used the host is treated as
refusing clipboard access and ClipboardUnavailable is raised; callers map
that to their own failure (permission denied for paste, download fallback
for export).
"""

import logging
import os
import shutil
import subprocess
from dataclasses import dataclass
from typing import Callable, List, Optional

from .errors import ClipboardUnavailable

logger = logging.getLogger(__name__)

_TIMEOUT_S = 5


@dataclass
class ClipboardItem:
    """One clipboard entry with every representation it offers."""
    types: List[str]
    fetch: Callable[[str], bytes]

    def get_type(self, mime_type: str) -> bytes:
        return self.fetch(mime_type)


class SystemClipboard:

    def __init__(self, backend: Optional[str] = None):
        self.backend = backend or self._detect_backend()

    def _detect_backend(self) -> str:
        if os.environ.get("WAYLAND_DISPLAY") and shutil.which("wl-paste"):
            return "wayland"
        if os.environ.get("DISPLAY") and shutil.which("xclip"):
            return "x11"
        return "none"

    def _run(self, cmd: List[str]) -> subprocess.CompletedProcess:
        if self.backend == "none":
            raise ClipboardUnavailable("No clipboard tool available (need wl-clipboard or xclip)")
        try:
            return subprocess.run(
                cmd,
                capture_output=True,
                check=False,
                timeout=_TIMEOUT_S,
            )
        except FileNotFoundError:
            raise ClipboardUnavailable(f"{cmd[0]} not found on PATH")
        except subprocess.TimeoutExpired:
            raise ClipboardUnavailable(f"{cmd[0]} timed out")

    def list_types(self) -> List[str]:
        if self.backend == "wayland":
            cmd = ["wl-paste", "--list-types"]
        else:
            cmd = ["xclip", "-selection", "clipboard", "-t", "TARGETS", "-o"]
        proc = self._run(cmd)
        if proc.returncode != 0:
            # Both tools exit non-zero when the clipboard is empty
            return []
        return [t.strip() for t in proc.stdout.decode("utf-8", "ignore").splitlines() if t.strip()]

    def read_type(self, mime_type: str) -> bytes:
        if self.backend == "wayland":
            cmd = ["wl-paste", "--no-newline", "--type", mime_type]
        else:
            cmd = ["xclip", "-selection", "clipboard", "-t", mime_type, "-o"]
        proc = self._run(cmd)
        if proc.returncode != 0:
            raise ClipboardUnavailable(proc.stderr.decode("utf-8", "ignore")[-500:])
        return proc.stdout

    def read(self) -> List[ClipboardItem]:
        """Clipboard contents as items; desktop clipboards hold a single item."""
        types = self.list_types()
        if not types:
            return []
        return [ClipboardItem(types=types, fetch=self.read_type)]

    def write_image(self, png_bytes: bytes, mime_type: str = "image/png") -> None:
        if self.backend == "wayland":
            cmd = ["wl-copy", "--type", mime_type]
        else:
            cmd = ["xclip", "-selection", "clipboard", "-t", mime_type, "-i"]
        if self.backend == "none":
            raise ClipboardUnavailable("No clipboard tool available (need wl-clipboard or xclip)")
        # Both tools fork a child that serves the selection and keeps any
        # inherited pipe open, so output must not be captured here.
        try:
            proc = subprocess.Popen(
                cmd,
                stdin=subprocess.PIPE,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except FileNotFoundError:
            raise ClipboardUnavailable(f"{cmd[0]} not found on PATH")
        try:
            proc.communicate(png_bytes, timeout=_TIMEOUT_S)
        except subprocess.TimeoutExpired:
            proc.kill()
            proc.communicate()
            raise ClipboardUnavailable(f"{cmd[0]} timed out")
        if proc.returncode != 0:
            raise ClipboardUnavailable(f"{cmd[0]} exited with {proc.returncode}")
        logger.debug(f"[CLIPBOARD] wrote {len(png_bytes)} bytes as {mime_type}")
