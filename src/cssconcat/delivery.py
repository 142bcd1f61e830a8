"""Delivery-side helpers for combined stylesheet requests.

The HTTP controller itself belongs to the host framework; these functions
turn the three query parameters into response bytes and headers.

Request contract:
  load  percent-escaped base64 list of root-relative paths (required)
  m     freshness token, integer seconds since epoch (required)
  c     1 if transport compression is allowed, else 0 (required)

Security requirements:
- every path must be root-relative (leading "/"), free of ".." segments,
  carry the stylesheet extension, and resolve inside the trusted root;
- files are read, never executed or written;
- bytes are concatenated as-is, in listed order.
"""

from __future__ import annotations

import hashlib
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from email.utils import formatdate
from pathlib import Path

from cssconcat.identifier import decode_path_list

CONTENT_TYPE = "text/css; charset=UTF-8"
_MAX_AGE = 31_536_000  # one year; the m parameter busts caches on change


class DeliveryError(ValueError):
    """Raised for a request the endpoint must refuse."""

    def __init__(self, message: str, status_code: int = 400) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True)
class ConcatRequest:
    token: str
    paths: list[str]
    freshness: int
    allow_compression: bool


@dataclass
class ConcatPayload:
    body: bytes
    headers: dict[str, str] = field(default_factory=dict)
    allow_compression: bool = False


def _single(params: Mapping[str, str | Sequence[str]], name: str) -> str:
    value = params.get(name)
    if isinstance(value, (list, tuple)):
        value = value[0] if value else None
    if value is None or value == "":
        raise DeliveryError(f"Missing required parameter '{name}'.")
    return str(value)


def parse_request(params: Mapping[str, str | Sequence[str]]) -> ConcatRequest:
    """Validate the query parameters of a combined request.

    Accepts both ``{"m": "1"}`` and ``parse_qs``-style ``{"m": ["1"]}`` maps.
    """
    token = _single(params, "load")
    raw_mtime = _single(params, "m")
    flag = _single(params, "c")
    try:
        freshness = int(raw_mtime)
    except ValueError as exc:
        raise DeliveryError(f"Parameter 'm' must be an integer: {exc}") from exc
    if flag not in ("0", "1"):
        raise DeliveryError(f"Parameter 'c' must be 0 or 1, got '{flag}'.")

    try:
        paths = decode_path_list(token)
    except ValueError as exc:
        raise DeliveryError(str(exc)) from exc
    if not paths:
        raise DeliveryError("Parameter 'load' names no files.")

    return ConcatRequest(
        token=token, paths=paths, freshness=freshness, allow_compression=flag == "1"
    )


def safe_paths(paths: Sequence[str], trusted_root: Path, extension: str = ".css") -> list[Path]:
    """Map root-relative *paths* to files inside *trusted_root*.

    Raises:
        DeliveryError: 400 for an unsafe path, 404 for a missing file.
    """
    root = Path(trusted_root).resolve()
    resolved: list[Path] = []
    for raw in paths:
        if not raw.startswith("/") or raw.startswith("//"):
            raise DeliveryError(f"Path is not root-relative: '{raw}'.")
        if ".." in raw.split("/"):
            raise DeliveryError(f"Path traversal is not permitted: '{raw}'.")
        if not raw.endswith(extension):
            raise DeliveryError(f"Only {extension} files can be concatenated: '{raw}'.")

        candidate = (root / raw.lstrip("/")).resolve()
        try:
            candidate.relative_to(root)
        except ValueError:
            raise DeliveryError(f"Path resolves outside the trusted root: '{raw}'.")
        if not candidate.is_file():
            raise DeliveryError(f"File not found: '{raw}'.", status_code=404)
        resolved.append(candidate)
    return resolved


def build_payload(
    request: ConcatRequest, trusted_root: Path, extension: str = ".css"
) -> ConcatPayload:
    """Read and concatenate the requested files.

    Pure read: the same request always yields the same bytes and headers
    while the files are unchanged.
    """
    files = safe_paths(request.paths, trusted_root, extension)
    try:
        body = b"".join(f.read_bytes() for f in files)
    except OSError as exc:
        raise DeliveryError(f"Cannot read stylesheet: {exc}", status_code=500) from exc

    etag = hashlib.sha1(f"{request.token}:{request.freshness}".encode("utf-8")).hexdigest()
    headers = {
        "Content-Type": CONTENT_TYPE,
        "Content-Length": str(len(body)),
        "Cache-Control": f"public, max-age={_MAX_AGE}",
        "Last-Modified": formatdate(request.freshness, usegmt=True),
        "ETag": f'"{etag}"',
    }
    return ConcatPayload(body=body, headers=headers, allow_compression=request.allow_compression)
