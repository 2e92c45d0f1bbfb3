"""Tests for the wl-clipboard / xclip wrapper, using stand-in tools on PATH."""

import os
import stat
import time

import pytest

from verifier.clipboard import SystemClipboard
from verifier.errors import ClipboardUnavailable

pytestmark = pytest.mark.skipif(os.name == "nt", reason="needs a POSIX shell")


def _install_tool(directory, name, body):
    tool = directory / name
    tool.write_text("#!/bin/sh\n" + body)
    tool.chmod(tool.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return tool


@pytest.fixture
def fake_path(tmp_path, monkeypatch):
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    monkeypatch.setenv("PATH", f"{bin_dir}{os.pathsep}{os.environ.get('PATH', '')}")
    monkeypatch.setenv("CLIP_OUT", str(tmp_path / "clipboard.bin"))
    return bin_dir


def test_write_returns_while_selection_owner_keeps_running(fake_path, tmp_path):
    # xclip stays in the background to serve the selection after the parent exits
    _install_tool(fake_path, "xclip", 'cat > "$CLIP_OUT"\n( sleep 3 ) &\nexit 0\n')

    start = time.monotonic()
    SystemClipboard(backend="x11").write_image(b"\x89PNGdata")
    elapsed = time.monotonic() - start

    assert elapsed < 2
    assert (tmp_path / "clipboard.bin").read_bytes() == b"\x89PNGdata"


def test_wayland_write_uses_wl_copy(fake_path, tmp_path):
    _install_tool(fake_path, "wl-copy", 'cat > "$CLIP_OUT"\n( sleep 3 ) &\nexit 0\n')

    SystemClipboard(backend="wayland").write_image(b"\x89PNGwl")

    assert (tmp_path / "clipboard.bin").read_bytes() == b"\x89PNGwl"


def test_write_failure_is_unavailable(fake_path):
    _install_tool(fake_path, "xclip", "cat > /dev/null\nexit 1\n")

    with pytest.raises(ClipboardUnavailable):
        SystemClipboard(backend="x11").write_image(b"\x89PNGdata")


def test_missing_tool_is_unavailable(tmp_path, monkeypatch):
    monkeypatch.setenv("PATH", str(tmp_path))

    with pytest.raises(ClipboardUnavailable):
        SystemClipboard(backend="x11").write_image(b"\x89PNGdata")


def test_no_backend_refuses_write():
    with pytest.raises(ClipboardUnavailable):
        SystemClipboard(backend="none").write_image(b"\x89PNGdata")


def test_read_lists_offered_types(fake_path):
    _install_tool(
        fake_path, "xclip",
        'case "$*" in\n'
        '  *TARGETS*) printf "TARGETS\\nimage/png\\n" ;;\n'
        '  *) printf "PNGBYTES" ;;\n'
        'esac\n',
    )

    items = SystemClipboard(backend="x11").read()

    assert len(items) == 1
    assert items[0].types == ["TARGETS", "image/png"]
    assert items[0].get_type("image/png") == b"PNGBYTES"
