"""Markup emitter — renders planned groups as ``<link>`` / ``<style>`` tags.

Combined groups point at the delivery endpoint:
  {endpoint}?load={token}&m={freshness}&c={0|1}

Singleton groups go through the regular one-resource path: their own href,
conditional-comment wrapping, the RTL variant, then any inline block.
"""

from __future__ import annotations

import html
from dataclasses import dataclass, field

from loguru import logger

from cssconcat.hooks import ConcatHooks
from cssconcat.identifier import GroupIntegrityError, identify
from cssconcat.models import Group, GroupIdentifier, QueueError, StyleResource
from cssconcat.resolver import PathResolver


def _attr(value: str) -> str:
    return html.escape(value, quote=True)


def build_href(endpoint_url: str, ident: GroupIdentifier, allow_compression: bool) -> str:
    """Append the three delivery parameters to *endpoint_url*.

    ``encoded_path_list`` is already percent-escaped and is appended verbatim.
    """
    sep = "&" if "?" in endpoint_url else "?"
    return (
        f"{endpoint_url}{sep}load={ident.encoded_path_list}"
        f"&m={ident.freshness_token}&c={int(allow_compression)}"
    )


def inline_style(resource: StyleResource) -> str:
    if not resource.inline_after:
        return ""
    return (
        f"<style id='{_attr(resource.handle)}-inline-css' type='text/css'>\n"
        f"{resource.inline_after}\n"
        "</style>\n"
    )


def _link(rel: str, tag_id: str, title: str, href: str, media: str) -> str:
    title_attr = f"title='{_attr(title)}' " if title else ""
    return (
        f"<link rel='{rel}' id='{_attr(tag_id)}' {title_attr}href='{_attr(href)}' "
        f"type='text/css' media='{_attr(media)}' />\n"
    )


def _rtl_href(resource: StyleResource) -> str:
    rtl = resource.extra_meta.get("rtl", True)
    if isinstance(rtl, bool) or rtl == "replace":
        suffix = resource.extra_meta.get("suffix", "")
        return resource.source_url.replace(f"{suffix}.css", f"-rtl{suffix}.css")
    return str(rtl)


def render_single(resource: StyleResource, text_direction: str = "ltr") -> str:
    """Standard emission path for a resource served on its own."""
    inline = inline_style(resource)
    condition = resource.extra_meta.get("conditional") or (
        "IE" if resource.is_conditional else ""
    )
    pre, post = (f"<!--[if {condition}]>\n", "<![endif]-->\n") if condition else ("", "")

    if not resource.source_url:
        return f"{pre}{inline}{post}" if inline else ""

    rel = "alternate stylesheet" if resource.extra_meta.get("alt") else "stylesheet"
    title = str(resource.extra_meta.get("title", ""))
    media = resource.effective_media
    tag = _link(rel, f"{resource.handle}-css", title, resource.source_url, media)

    if text_direction == "rtl" and (resource.is_rtl or resource.extra_meta.get("rtl")):
        rtl_tag = _link(
            rel, f"{resource.handle}-rtl-css", title, _rtl_href(resource), media
        )
        tag = rtl_tag if resource.extra_meta.get("rtl") == "replace" else tag + rtl_tag

    return f"{pre}{tag}{inline}{post}"


@dataclass
class MarkupEmitter:
    resolver: PathResolver
    endpoint_url: str
    allow_compression: bool = False
    text_direction: str = "ltr"
    hooks: ConcatHooks = field(default_factory=ConcatHooks)
    demoted: list[str] = field(default_factory=list, init=False)

    def render(self, groups: list[Group]) -> tuple[list[str], list[str]]:
        """Render *groups* in order.

        Returns:
            (fragments, done_handles) — one fragment per emitted tag block and
            every emitted handle in emission order.

        Raises:
            QueueError: If a handle appears in more than one group.
        """
        fragments: list[str] = []
        done: list[str] = []

        for group in groups:
            if group.is_combined:
                fragment = self._render_combined(group)
            else:
                fragment = render_single(group.resources[0], self.text_direction)
            if fragment:
                fragments.append(fragment)
            for handle in group.members:
                if handle in done:
                    raise QueueError(f"Handle '{handle}' appears in more than one group.")
                done.append(handle)

        return fragments, done

    def _render_combined(self, group: Group) -> str:
        try:
            ident = identify(group, self.resolver)
        except GroupIntegrityError as exc:
            # A member vanished after evaluation: serve each one on its own.
            logger.warning(
                "Combined group {} ({}) demoted to singletons: {}",
                group.index,
                ", ".join(group.members),
                exc,
            )
            self.demoted.extend(group.members)
            return "".join(render_single(r, self.text_direction) for r in group.resources)

        href = build_href(self.endpoint_url, ident, self.allow_compression)
        tag = _link("stylesheet", f"{group.media}-css-{group.index}", "", href, group.media)
        tag = self.hooks.loader_tag(tag, list(group.members), href, group.media)
        return tag + "".join(inline_style(r) for r in group.resources)
