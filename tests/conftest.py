"""Shared pytest fixtures."""

from __future__ import annotations

import os
from pathlib import Path

import pytest
from loguru import logger

from cssconcat.config import ConcatConfig

SITE_URL = "https://example.com/"


def write_css(root: Path, rel: str, content: str = "", mtime: int | None = None) -> Path:
    """Create *rel* under *root* with *content*, optionally pinning its mtime."""
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content or f"/* {rel} */\n", encoding="utf-8")
    if mtime is not None:
        os.utime(path, (mtime, mtime))
    return path


@pytest.fixture
def site_root(tmp_path):
    """Document root with a theme and a plugin stylesheet."""
    root = tmp_path / "site"
    write_css(root, "wp-content/themes/base/style.css", "body{margin:0}\n", mtime=1_700_000_000)
    write_css(root, "wp-content/themes/base/print.css", "nav{display:none}\n", mtime=1_700_000_100)
    write_css(root, "wp-content/plugins/forms/forms.css", ".form{}\n", mtime=1_700_000_200)
    return root.resolve()


@pytest.fixture
def config(site_root):
    return ConcatConfig(site_url=SITE_URL, trusted_root=site_root)


@pytest.fixture
def log_messages():
    """Collect loguru messages emitted during the test."""
    messages: list[str] = []
    handler_id = logger.add(messages.append, level="DEBUG", format="{level}:{message}")
    yield messages
    logger.remove(handler_id)


@pytest.fixture
def css_file():
    """Return the write_css helper."""
    return write_css
