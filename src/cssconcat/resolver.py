"""Path resolver — maps stylesheet URLs onto files under the trusted root.

Security model:
- A URL with a host is internal only if scheme, host and port match the
  site URL (default ports count as equal) and its path sits under the
  site's base path on a segment boundary (`/blogx/` is not under `/blog`).
- Host-less URLs (``/wp-content/x.css``, ``css/x.css``) are internal.
- The mapped file must exist and, after symlink resolution, stay inside the
  trusted root. Traversal (``/../../etc/passwd``) resolves outside and is
  reported as not within the root.

Nothing here raises for a bad URL: callers treat ``None`` as "serve as-is".
"""

from __future__ import annotations

import urllib.parse
from pathlib import Path

from cssconcat.models import ResolvedPath

_DEFAULT_PORTS = {"http": 80, "https": 443}


def _effective_port(parsed: urllib.parse.ParseResult, scheme: str) -> int | None:
    """Explicit port, else the scheme's default. Raises ValueError on a bad port."""
    return parsed.port or _DEFAULT_PORTS.get(scheme)


def _strip_base_path(path: str, base: str) -> str | None:
    """Return *path* without the site *base* path, or None if it is not under it."""
    base = base.rstrip("/")
    if not base:
        return path
    if path == base:
        return "/"
    if path.startswith(base + "/"):
        return path[len(base):]
    return None


class PathResolver:
    """Resolve source URLs against *site_url* and *trusted_root*."""

    def __init__(self, trusted_root: Path) -> None:
        self.trusted_root = Path(trusted_root).resolve()

    @staticmethod
    def is_internal_url(url: str, site_url: str) -> bool:
        """Return True if *url* is served from the same site as *site_url*."""
        parsed = urllib.parse.urlparse(url)
        site = urllib.parse.urlparse(site_url)

        if not parsed.hostname:
            return True
        if parsed.hostname != site.hostname:
            return False

        # protocol-relative URLs inherit the site's scheme
        scheme = (parsed.scheme or site.scheme).lower()
        if scheme != site.scheme.lower():
            return False
        try:
            if _effective_port(parsed, scheme) != _effective_port(site, scheme):
                return False
        except ValueError:
            return False
        return _strip_base_path(parsed.path, site.path) is not None

    def resolve(self, url: str, site_url: str) -> ResolvedPath | None:
        """Map *url* to a canonical file path.

        Returns:
            ResolvedPath, or None if the URL does not name an existing file.
        """
        url_path = urllib.parse.unquote(urllib.parse.urlparse(url).path)
        site_path = urllib.parse.urlparse(site_url).path
        stripped = _strip_base_path(url_path, site_path)
        if stripped is not None:
            url_path = stripped

        candidate = self.trusted_root / url_path.lstrip("/")
        try:
            resolved = candidate.resolve(strict=True)
        except (OSError, RuntimeError):
            return None
        if not resolved.is_file():
            return None

        try:
            resolved.relative_to(self.trusted_root)
            within = True
        except ValueError:
            within = False
        return ResolvedPath(canonical_path=str(resolved), within_trusted_root=within)

    def root_relative(self, resolved: ResolvedPath) -> str:
        """Return *resolved* as a ``/``-prefixed path relative to the trusted root."""
        rel = Path(resolved.canonical_path).relative_to(self.trusted_root)
        return "/" + rel.as_posix()

    def absolute(self, root_relative_path: str) -> Path:
        """Inverse of root_relative(); no containment check."""
        return self.trusted_root / root_relative_path.lstrip("/")
