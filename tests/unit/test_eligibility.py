"""Tests for EligibilityFilter — each veto in isolation."""

from __future__ import annotations

import pytest

from cssconcat.eligibility import EligibilityFilter
from cssconcat.hooks import ConcatHooks
from cssconcat.models import StyleResource
from cssconcat.resolver import PathResolver

SITE = "https://example.com/"
THEME = "/wp-content/themes/base/style.css"


def _res(src: str = THEME, handle: str = "theme", **kwargs) -> StyleResource:
    return StyleResource(handle=handle, source_url=src, **kwargs)


@pytest.fixture
def flt(site_root):
    return EligibilityFilter(PathResolver(site_root))


# ------------------------------------------------------------------
# Eligible baseline
# ------------------------------------------------------------------


def test_local_stylesheet_is_eligible(flt):
    verdict = flt.evaluate(_res(), SITE)
    assert verdict.eligible
    assert verdict.reason == ""
    assert verdict.path == THEME


def test_absolute_same_origin_url_rewritten_to_root_relative(flt):
    verdict = flt.evaluate(_res("https://example.com/wp-content/themes/base/style.css?ver=1"), SITE)
    assert verdict.eligible
    assert verdict.path == THEME


def test_is_eligible_shortcut(flt):
    assert flt.is_eligible(_res(), SITE) is True


# ------------------------------------------------------------------
# Vetoes
# ------------------------------------------------------------------


def test_no_css_extension(flt, site_root, css_file):
    css_file(site_root, "dynamic/style.php")
    verdict = flt.evaluate(_res("/dynamic/style.php"), SITE)
    assert not verdict.eligible
    assert verdict.reason == "no stylesheet extension"
    assert verdict.path is None


def test_extension_must_end_the_canonical_path(flt, site_root, css_file):
    css_file(site_root, "dynamic/dyn.css.php")
    verdict = flt.evaluate(_res("/dynamic/dyn.css.php"), SITE)
    assert not verdict.eligible
    assert verdict.reason == "not addressable"
    assert verdict.path is None


def test_path_with_delimiter_not_addressable(flt, site_root, css_file):
    css_file(site_root, "wp-content/a,b.css")
    verdict = flt.evaluate(_res("/wp-content/a,b.css"), SITE)
    assert not verdict.eligible
    assert verdict.reason == "not addressable"


def test_conditional_flag(flt):
    assert flt.evaluate(_res(is_conditional=True), SITE).reason == "conditional"


def test_conditional_extra_meta(flt):
    verdict = flt.evaluate(_res(extra_meta={"conditional": "lt IE 9"}), SITE)
    assert not verdict.eligible
    assert verdict.reason == "conditional"


def test_rtl_variant_vetoed_on_rtl_page(flt):
    verdict = flt.evaluate(_res(is_rtl=True), SITE, text_direction="rtl")
    assert not verdict.eligible
    assert verdict.reason == "rtl variant"


def test_rtl_extra_meta_vetoed_on_rtl_page(flt):
    verdict = flt.evaluate(_res(extra_meta={"rtl": "replace"}), SITE, text_direction="rtl")
    assert not verdict.eligible


def test_rtl_variant_allowed_on_ltr_page(flt):
    assert flt.evaluate(_res(is_rtl=True), SITE, text_direction="ltr").eligible


def test_rtl_veto_wins_over_everything_else(flt):
    res = _res(is_rtl=True, media="print", extra_meta={"rtl": True})
    assert flt.is_eligible(res, SITE, "rtl") is False


def test_external_url(flt):
    verdict = flt.evaluate(_res("https://cdn.example.net/wp-content/themes/base/style.css"), SITE)
    assert not verdict.eligible
    assert verdict.reason == "external"


def test_missing_file(flt):
    verdict = flt.evaluate(_res("/wp-content/themes/base/gone.css"), SITE)
    assert not verdict.eligible
    assert verdict.reason == "unresolved"


def test_path_escaping_root(flt, site_root, css_file):
    css_file(site_root.parent, "private.css")
    verdict = flt.evaluate(_res("/../private.css"), SITE)
    assert not verdict.eligible
    assert verdict.reason == "unresolved"


def test_custom_extension(site_root, css_file):
    css_file(site_root, "styles/app.pcss")
    flt = EligibilityFilter(PathResolver(site_root), extension=".pcss")
    assert flt.is_eligible(_res("/styles/app.pcss"), SITE)
    assert not flt.is_eligible(_res(), SITE)


# ------------------------------------------------------------------
# do_concat hook
# ------------------------------------------------------------------


def test_hook_excludes_handle(site_root):
    hooks = ConcatHooks(do_concat=lambda ok, handle: ok and handle != "theme")
    flt = EligibilityFilter(PathResolver(site_root), hooks)

    verdict = flt.evaluate(_res(), SITE)
    assert not verdict.eligible
    assert verdict.reason == "excluded by hook"
    assert flt.is_eligible(_res(handle="other"), SITE)


def test_hook_can_include_conditional_file_inside_root(site_root):
    hooks = ConcatHooks(do_concat=lambda ok, handle: True)
    flt = EligibilityFilter(PathResolver(site_root), hooks)

    verdict = flt.evaluate(_res(is_conditional=True), SITE)
    assert verdict.eligible
    assert verdict.path == THEME


def test_hook_cannot_include_external_file(site_root):
    hooks = ConcatHooks(do_concat=lambda ok, handle: True)
    flt = EligibilityFilter(PathResolver(site_root), hooks)

    verdict = flt.evaluate(_res("https://cdn.example.net/x.css"), SITE)
    assert not verdict.eligible
    assert verdict.reason == "external"


@pytest.mark.parametrize(
    "rel", ["dynamic/style.php", "dynamic/dyn.css.php", "wp-content/a,b.css"]
)
def test_hook_cannot_include_unaddressable_file(site_root, css_file, rel):
    css_file(site_root, rel)
    hooks = ConcatHooks(do_concat=lambda ok, handle: True)
    flt = EligibilityFilter(PathResolver(site_root), hooks)

    verdict = flt.evaluate(_res("/" + rel), SITE)
    assert not verdict.eligible
    assert verdict.path is None


def test_hook_receives_builtin_decision(site_root):
    seen = []

    def spy(ok, handle):
        seen.append((ok, handle))
        return ok

    flt = EligibilityFilter(PathResolver(site_root), ConcatHooks(do_concat=spy))
    flt.evaluate(_res(), SITE)
    flt.evaluate(_res(handle="ext", src="https://cdn.example.net/x.css"), SITE)

    assert seen == [(True, "theme"), (False, "ext")]


def test_verdict_logged(flt, log_messages):
    flt.evaluate(_res(is_conditional=True), SITE)
    assert any("theme ineligible (conditional)" in m for m in log_messages)
