"""cssconcat configuration loader.

Priority (high → low):
  1. Keyword overrides      (passed by the caller to load_config())
  2. Environment variables  (CSSCONCAT_SITE_URL, CSSCONCAT_TRUSTED_ROOT,
                             CSSCONCAT_ALLOW_GZIP_COMPRESSION)
  3. Per-site cssconcat.yaml  (section ``concat:``)
  4. Hardcoded defaults

The planner never loads configuration itself: the host application calls
load_config() and injects the result.
All YAML reads use yaml.safe_load() — never yaml.load().
"""

from __future__ import annotations

import os
import warnings
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import yaml

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_CONFIG_NAME: str = "cssconcat.yaml"
_KNOWN_SECTIONS: frozenset[str] = frozenset(["concat"])
_TEXT_DIRECTIONS: frozenset[str] = frozenset(["ltr", "rtl"])
_TRUTHY: frozenset[str] = frozenset(["1", "true", "yes", "on"])


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(ValueError):
    """Raised when a config value is invalid."""


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass
class ConcatConfig:
    """Settings for one site (cssconcat.yaml: concat:).

    Attributes:
        site_url: Absolute base URL of the site; same-origin checks use it.
        trusted_root: Directory every concatenated file must resolve within.
        endpoint_url: URL of the delivery endpoint serving combined payloads.
        allow_gzip_compression: Sent to the endpoint as the ``c`` flag.
        text_direction: ``ltr`` or ``rtl`` for the page being rendered.
        stylesheet_extension: Marker a source path must contain to be merged.
    """

    site_url: str = "http://localhost/"
    trusted_root: Path = field(default_factory=Path.cwd)
    endpoint_url: str = "/_static/concat.css"
    allow_gzip_compression: bool = False
    text_direction: str = "ltr"
    stylesheet_extension: str = ".css"


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def _validate_site_url(url: str) -> None:
    if not url.startswith(("http://", "https://")):
        raise ConfigError(
            f"concat.site_url must be an absolute http(s) URL: '{url}'\n"
            "  Example:  site_url: https://example.com/"
        )


def _validate(cfg: ConcatConfig) -> None:
    _validate_site_url(cfg.site_url)
    if cfg.text_direction not in _TEXT_DIRECTIONS:
        raise ConfigError(
            f"concat.text_direction must be 'ltr' or 'rtl', got '{cfg.text_direction}'."
        )
    if not cfg.trusted_root.is_dir():
        raise ConfigError(
            f"concat.trusted_root is not a directory: '{cfg.trusted_root}'\n"
            "  Point it at the document root that holds your stylesheets."
        )
    if not cfg.stylesheet_extension:
        raise ConfigError("concat.stylesheet_extension must not be empty.")


def _warn_unknown_keys(data: dict[str, Any], source: Path) -> None:
    """Emit a UserWarning for unrecognised top-level keys."""
    for key in data:
        if key not in _KNOWN_SECTIONS:
            warnings.warn(
                f"Unknown config key '{key}' in '{source}' — ignored.",
                UserWarning,
                stacklevel=4,
            )


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in _TRUTHY
    return bool(value)


# ---------------------------------------------------------------------------
# Build
# ---------------------------------------------------------------------------


def _cfg_from_dict(data: dict[str, Any], base_dir: Path) -> ConcatConfig:
    """Build a *ConcatConfig* from a raw YAML dict."""
    cfg = ConcatConfig(trusted_root=base_dir)
    c = data.get("concat") or {}

    root = c.get("trusted_root")
    if root:
        # Relative roots are taken relative to the config file's directory
        root_path = Path(str(root)).expanduser()
        cfg.trusted_root = root_path if root_path.is_absolute() else base_dir / root_path

    cfg.site_url = str(c.get("site_url", cfg.site_url))
    cfg.endpoint_url = str(c.get("endpoint_url", cfg.endpoint_url))
    cfg.allow_gzip_compression = _as_bool(
        c.get("allow_gzip_compression", cfg.allow_gzip_compression)
    )
    cfg.text_direction = str(c.get("text_direction", cfg.text_direction)).lower()
    cfg.stylesheet_extension = str(c.get("stylesheet_extension", cfg.stylesheet_extension))
    return cfg


def _apply_env_overrides(cfg: ConcatConfig) -> ConcatConfig:
    """Apply CSSCONCAT_* environment variable overrides."""
    if url := os.environ.get("CSSCONCAT_SITE_URL"):
        cfg.site_url = url
    if root := os.environ.get("CSSCONCAT_TRUSTED_ROOT"):
        cfg.trusted_root = Path(root).expanduser()
    if (gzip := os.environ.get("CSSCONCAT_ALLOW_GZIP_COMPRESSION")) is not None:
        cfg.allow_gzip_compression = _as_bool(gzip)
    return cfg


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(site_dir: Path | None = None, **overrides: Any) -> ConcatConfig:
    """Load and return a merged *ConcatConfig*.

    Args:
        site_dir: Directory to search for *cssconcat.yaml*; also the default
            trusted root. Defaults to CWD.
        **overrides: Field values that win over every other layer.

    Returns:
        Validated *ConcatConfig* with the trusted root resolved.

    Raises:
        ConfigError: On an unknown override name or an invalid value.
    """
    base_dir = site_dir if site_dir is not None else Path.cwd()

    raw: dict[str, Any] = {}
    cfg_path = base_dir / _CONFIG_NAME
    if cfg_path.exists():
        raw = yaml.safe_load(cfg_path.read_text(encoding="utf-8")) or {}
        _warn_unknown_keys(raw, cfg_path)

    cfg = _cfg_from_dict(raw, base_dir)
    cfg = _apply_env_overrides(cfg)

    try:
        cfg = replace(cfg, **overrides)
    except TypeError as exc:
        raise ConfigError(f"Unknown config override: {exc}") from exc

    cfg.trusted_root = Path(cfg.trusted_root).resolve()
    _validate(cfg)
    return cfg
