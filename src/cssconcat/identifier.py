"""Group identifiers — the cache key carried by a combined stylesheet URL.

Token format:
  "/a.css,/b/c.css"  →  base64  →  percent-escaped (one query parameter)

The token alone names the files, so the delivery side can re-derive the
file list without shared state. The freshness token is the newest member
mtime (whole seconds), read right before the URL is built.
"""

from __future__ import annotations

import base64
import binascii
import os
import urllib.parse
from collections.abc import Iterable, Sequence
from pathlib import Path

from cssconcat.models import Group, GroupIdentifier
from cssconcat.resolver import PathResolver

PATH_DELIMITER = ","


class GroupIntegrityError(OSError):
    """Raised when a member file of a Combined group cannot be stat'ed."""

    def __init__(self, path: Path | str, cause: OSError) -> None:
        super().__init__(f"Cannot read mtime of '{path}': {cause.strerror or cause}")
        self.path = str(path)
        self.cause = cause


def encode_path_list(paths: Sequence[str]) -> str:
    """Join *paths* in order and encode them as one URL-safe token."""
    joined = PATH_DELIMITER.join(paths).encode("utf-8")
    return urllib.parse.quote(base64.b64encode(joined).decode("ascii"), safe="")


def decode_path_list(token: str) -> list[str]:
    """Inverse of encode_path_list().

    Accepts the token either still percent-escaped or as already unquoted by
    a query-string parser.

    Raises:
        ValueError: If *token* is not valid base64 / UTF-8.
    """
    raw = urllib.parse.unquote(token)
    try:
        decoded = base64.b64decode(raw, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as exc:
        raise ValueError(f"Malformed path list token: {exc}") from exc
    return [p for p in decoded.split(PATH_DELIMITER) if p]


def freshness_token(paths: Iterable[Path]) -> int:
    """Return the newest mtime across *paths* in whole seconds.

    Raises:
        GroupIntegrityError: If any file is missing or unreadable.
        ValueError: If *paths* is empty.
    """
    newest: float | None = None
    for path in paths:
        try:
            mtime = os.stat(path).st_mtime
        except OSError as exc:
            raise GroupIntegrityError(path, exc) from exc
        newest = mtime if newest is None else max(newest, mtime)
    if newest is None:
        raise ValueError("Cannot compute freshness of an empty group.")
    return int(newest)


def identify(group: Group, resolver: PathResolver) -> GroupIdentifier:
    """Build the identifier for a Combined *group*.

    Raises:
        ValueError: For Singleton groups.
        GroupIntegrityError: If a member vanished since it was evaluated.
    """
    if not group.is_combined:
        raise ValueError(f"Group {group.index} is a singleton and has no identifier.")
    return GroupIdentifier(
        encoded_path_list=encode_path_list(group.paths),
        freshness_token=freshness_token(resolver.absolute(p) for p in group.paths),
    )
