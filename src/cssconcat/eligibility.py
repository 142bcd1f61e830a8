"""Eligibility filter — decides which stylesheets may be concatenated.

Each rule below is a hard veto; the first one that fires is recorded as the
reason. Rejection is a policy outcome, never an error: the resource is
simply served through its own ``<link>``.

  1. source path lacks the stylesheet extension marker
  2. resource is conditional (IE-style conditional comments)
  3. page is right-to-left and the resource has an RTL variant
  4. source is not same-origin with the site URL
  5. source does not resolve to a file inside the trusted root, or its
     canonical path cannot travel in a combined URL (missing extension
     suffix, contains the path delimiter)
  6. the do_concat hook excludes it
"""

from __future__ import annotations

import urllib.parse
from dataclasses import dataclass

from loguru import logger

from cssconcat.hooks import ConcatHooks
from cssconcat.identifier import PATH_DELIMITER
from cssconcat.models import StyleResource
from cssconcat.resolver import PathResolver


@dataclass(frozen=True)
class Verdict:
    eligible: bool
    reason: str = ""
    path: str | None = None  # root-relative canonical path when resolvable in-root


class EligibilityFilter:
    def __init__(
        self,
        resolver: PathResolver,
        hooks: ConcatHooks | None = None,
        extension: str = ".css",
    ) -> None:
        self.resolver = resolver
        self.hooks = hooks or ConcatHooks()
        self.extension = extension

    def evaluate(
        self,
        resource: StyleResource,
        site_url: str,
        text_direction: str = "ltr",
    ) -> Verdict:
        """Run every veto against *resource* and resolve its canonical path."""
        src = resource.source_url
        reason = self._veto(resource, src, text_direction, site_url)

        path: str | None = None
        if reason != "external":
            resolved = self.resolver.resolve(src, site_url)
            if resolved is None or not resolved.within_trusted_root:
                reason = reason or "unresolved"
            else:
                path = self.resolver.root_relative(resolved)
                if not self._addressable(path):
                    path = None
                    reason = reason or "not addressable"

        eligible = self.hooks.do_concat(not reason, resource.handle)
        if eligible and path is None:
            eligible = False
        elif not eligible and not reason:
            reason = "excluded by hook"
        elif eligible:
            reason = ""

        logger.debug(
            "{} {}{}",
            resource.handle,
            "eligible" if eligible else "ineligible",
            f" ({reason})" if reason else "",
        )
        return Verdict(eligible=eligible, reason=reason, path=path if eligible else None)

    def is_eligible(
        self, resource: StyleResource, site_url: str, text_direction: str = "ltr"
    ) -> bool:
        return self.evaluate(resource, site_url, text_direction).eligible

    def _addressable(self, path: str) -> bool:
        """True if the delivery side can decode and serve *path*."""
        return path.endswith(self.extension) and PATH_DELIMITER not in path

    def _veto(
        self, resource: StyleResource, src: str, text_direction: str, site_url: str
    ) -> str:
        """Return the first static veto that applies, or ``""``."""
        if self.extension not in urllib.parse.urlparse(src).path:
            return "no stylesheet extension"
        if resource.is_conditional or resource.extra_meta.get("conditional"):
            return "conditional"
        if text_direction == "rtl" and (resource.is_rtl or resource.extra_meta.get("rtl")):
            return "rtl variant"
        if not self.resolver.is_internal_url(src, site_url):
            return "external"
        return ""
