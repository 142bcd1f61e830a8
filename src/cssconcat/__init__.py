"""cssconcat — batch registered stylesheets into combined requests."""

from cssconcat.config import ConcatConfig, ConfigError, load_config
from cssconcat.hooks import ConcatHooks
from cssconcat.models import (
    Group,
    GroupIdentifier,
    GroupKind,
    PlanResult,
    StyleQueue,
    StyleResource,
)
from cssconcat.planner import StyleConcatenator

__all__ = [
    "ConcatConfig",
    "ConcatHooks",
    "ConfigError",
    "Group",
    "GroupIdentifier",
    "GroupKind",
    "PlanResult",
    "StyleConcatenator",
    "StyleQueue",
    "StyleResource",
    "load_config",
]
