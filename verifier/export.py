"""
Result export: render a verdict to PNG and deliver it.

Delivery is an ordered list of strategies, each tried once; the first one
that succeeds decides the outcome. The default chain is clipboard, then a
file download. Only a render failure or every strategy failing yields FAILED.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import List, Optional, Sequence

from PIL import Image, ImageDraw, ImageFont

from config import settings, STAGE_CONFIGS
from .clipboard import SystemClipboard
from .imaging import to_png_bytes
from .models import Stage, Verdict
from .utils import iso_date, safe_filename_component

logger = logging.getLogger(__name__)


class ExportOutcome(str, Enum):
    COPIED = "copied"
    DOWNLOADED = "downloaded"
    FAILED = "failed"


@dataclass(frozen=True)
class ExportResult:
    outcome: ExportOutcome
    path: Optional[str] = None
    detail: Optional[str] = None

    def to_dict(self):
        return {"outcome": self.outcome.value, "path": self.path, "detail": self.detail}


@dataclass(frozen=True)
class ViewRow:
    label: str
    detail: str
    passed: bool


@dataclass(frozen=True)
class VerdictView:
    """What the result screen shows, independent of how it is drawn."""
    claimed_identity: str
    overall_valid: bool
    rows: List[ViewRow]
    generated_at: datetime = field(default_factory=datetime.now)

    @classmethod
    def from_verdict(cls, verdict: Verdict) -> "VerdictView":
        kc = verdict.kill_count
        rows = [
            ViewRow(
                label=STAGE_CONFIGS[Stage.IDENTITY.value]["label"],
                detail=verdict.claimed_identity.strip() or "(empty)",
                passed=verdict.identity.valid,
            ),
            ViewRow(
                label=STAGE_CONFIGS[Stage.KILL_COUNT.value]["label"],
                detail=(
                    f"kills {kc.kill_count} (need {kc.min_kill_count}), "
                    f"name {'found' if kc.name_found else 'not found'}"
                ),
                passed=kc.valid,
            ),
            ViewRow(
                label=STAGE_CONFIGS[Stage.PROFILE.value]["label"],
                detail=f"name {'matches' if verdict.profile.name_match else 'does not match'}",
                passed=verdict.profile.valid,
            ),
        ]
        return cls(
            claimed_identity=verdict.claimed_identity,
            overall_valid=verdict.overall_valid,
            rows=rows,
            generated_at=verdict.created_at,
        )


class VerdictRenderer:
    """
    Draws a VerdictView with Pillow. Layout is in logical pixels and
    multiplied by the scale factor; the background is always opaque.
    """

    WIDTH = 520
    PADDING = 24
    ROW_HEIGHT = 52

    PASS_COLOR = (22, 163, 74)
    FAIL_COLOR = (220, 38, 38)
    TEXT_COLOR = (31, 41, 55)
    MUTED_COLOR = (107, 114, 128)

    def __init__(self, scale: Optional[int] = None, background: Optional[str] = None):
        self.scale = scale or settings.EXPORT_SCALE
        self.background = background or settings.EXPORT_BACKGROUND

    def _font(self, size: int, bold: bool = False):
        path = "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf" if bold \
            else "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf"
        try:
            return ImageFont.truetype(path, size * self.scale)
        except OSError:
            return ImageFont.load_default(size=size * self.scale)

    def render(self, view: VerdictView) -> Image.Image:
        s = self.scale
        height = self.PADDING * 2 + 96 + self.ROW_HEIGHT * len(view.rows) + 28
        img = Image.new("RGB", (self.WIDTH * s, height * s), self.background)
        draw = ImageDraw.Draw(img)

        title_font = self._font(20, bold=True)
        body_font = self._font(14)
        label_font = self._font(14, bold=True)
        small_font = self._font(11)

        x = self.PADDING * s
        y = self.PADDING * s

        status = "VERIFIED" if view.overall_valid else "NOT VERIFIED"
        status_color = self.PASS_COLOR if view.overall_valid else self.FAIL_COLOR
        draw.text((x, y), status, font=title_font, fill=status_color)
        y += 32 * s
        draw.text((x, y), f"Player: {view.claimed_identity}", font=body_font, fill=self.TEXT_COLOR)
        y += 40 * s

        for row in view.rows:
            color = self.PASS_COLOR if row.passed else self.FAIL_COLOR
            marker = 10 * s
            draw.ellipse([(x, y + 3 * s), (x + marker, y + 3 * s + marker)], fill=color)
            draw.text((x + 20 * s, y), row.label, font=label_font, fill=self.TEXT_COLOR)
            draw.text((x + 20 * s, y + 20 * s), row.detail, font=body_font, fill=self.MUTED_COLOR)
            y += self.ROW_HEIGHT * s

        draw.text(
            (x, y + 4 * s),
            f"Generated {view.generated_at.isoformat(sep=' ', timespec='seconds')}",
            font=small_font,
            fill=self.MUTED_COLOR,
        )
        return img

    def render_png(self, view: VerdictView) -> bytes:
        return to_png_bytes(self.render(view))


class ExportStrategy(ABC):
    outcome: ExportOutcome

    @abstractmethod
    def deliver(self, png: bytes, view: VerdictView) -> Optional[str]:
        """Deliver the image; return a location if one exists. Raise on failure."""
        raise NotImplementedError


class ClipboardStrategy(ExportStrategy):
    outcome = ExportOutcome.COPIED

    def __init__(self, clipboard: Optional[SystemClipboard] = None):
        self.clipboard = clipboard or SystemClipboard()

    def deliver(self, png: bytes, view: VerdictView) -> Optional[str]:
        self.clipboard.write_image(png, "image/png")
        return None


class DownloadStrategy(ExportStrategy):
    outcome = ExportOutcome.DOWNLOADED

    def __init__(self, export_dir: Optional[str] = None, prefix: Optional[str] = None):
        self.export_dir = Path(export_dir or settings.EXPORT_DIR)
        self.prefix = prefix or settings.EXPORT_FILE_PREFIX

    def filename_for(self, view: VerdictView, day: Optional[date] = None) -> str:
        """Named after the day of export, not the day of the verdict"""
        identity = safe_filename_component(view.claimed_identity)
        return f"{self.prefix}_{identity}_{iso_date(day)}.png"

    def deliver(self, png: bytes, view: VerdictView) -> Optional[str]:
        self.export_dir.mkdir(parents=True, exist_ok=True)
        path = self.export_dir / self.filename_for(view)
        path.write_bytes(png)
        return str(path)


class ResultExporter:

    def __init__(self,
                 renderer: Optional[VerdictRenderer] = None,
                 strategies: Optional[Sequence[ExportStrategy]] = None):
        self.renderer = renderer or VerdictRenderer()
        self.strategies = list(strategies) if strategies is not None \
            else [ClipboardStrategy(), DownloadStrategy()]
        self.is_capturing = False

    async def export(self, view: VerdictView) -> ExportResult:
        if self.is_capturing:
            return ExportResult(ExportOutcome.FAILED, detail="export already in progress")

        self.is_capturing = True
        try:
            return await self._export(view)
        finally:
            self.is_capturing = False

    async def _export(self, view: VerdictView) -> ExportResult:
        try:
            png = await asyncio.to_thread(self.renderer.render_png, view)
        except Exception as e:
            logger.error(f"[EXPORT] render failed: {type(e).__name__}: {e}")
            return ExportResult(ExportOutcome.FAILED, detail=f"render failed: {e}")

        errors = []
        for strategy in self.strategies:
            name = type(strategy).__name__
            try:
                path = await asyncio.to_thread(strategy.deliver, png, view)
            except Exception as e:
                logger.warning(f"[EXPORT] {name} failed: {type(e).__name__}: {e}")
                errors.append(f"{name}: {e}")
                continue
            logger.info(f"[EXPORT] {strategy.outcome.value} via {name}" + (f" -> {path}" if path else ""))
            return ExportResult(strategy.outcome, path=path)

        return ExportResult(ExportOutcome.FAILED, detail="; ".join(errors) or "no export strategy configured")
