"""Extension points for host applications.

Each hook is a plain callable with a fixed signature; the default is the
identity. Hooks are injected per request — there is no global registry.

  site_url(base_url) -> base_url
      Override the site base URL used for same-origin checks. Called once
      per pass.
  source(src, handle) -> src
      Rewrite a resource's source URL before it is evaluated.
  do_concat(do_concat, handle) -> bool
      Final say on eligibility. Runs after every built-in veto. It can
      exclude any resource, but can only include one that resolved to a
      file inside the trusted root with a servable path (ending in the
      stylesheet extension, no "," in it).
  loader_tag(tag, handles, href, media) -> tag
      Rewrite the rendered ``<link>`` for a Combined group.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass

SiteUrlHook = Callable[[str], str]
SourceHook = Callable[[str, str], str]
DoConcatHook = Callable[[bool, str], bool]
LoaderTagHook = Callable[[str, Sequence[str], str, str], str]


def _site_url(base_url: str) -> str:
    return base_url


def _source(src: str, handle: str) -> str:
    return src


def _do_concat(do_concat: bool, handle: str) -> bool:
    return do_concat


def _loader_tag(tag: str, handles: Sequence[str], href: str, media: str) -> str:
    return tag


@dataclass(frozen=True)
class ConcatHooks:
    site_url: SiteUrlHook = _site_url
    source: SourceHook = _source
    do_concat: DoConcatHook = _do_concat
    loader_tag: LoaderTagHook = _loader_tag
