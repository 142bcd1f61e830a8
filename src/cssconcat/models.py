"""Domain models for the stylesheet concatenation planner."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


@dataclass(frozen=True)
class StyleResource:
    """One registered stylesheet, as supplied by the asset registry.

    Read-only to the planner. ``handle`` must be unique within a pass.
    """

    handle: str
    source_url: str
    media: str = "all"
    is_conditional: bool = False
    is_rtl: bool = False
    inline_after: str | None = None
    extra_meta: dict[str, Any] = field(default_factory=dict)

    @property
    def effective_media(self) -> str:
        return self.media or "all"


@dataclass(frozen=True)
class ResolvedPath:
    canonical_path: str  # absolute, symlinks resolved
    within_trusted_root: bool


class GroupKind(str, Enum):
    COMBINED = "combined"
    SINGLETON = "singleton"


@dataclass
class Group:
    """An ordered run of handles emitted as one ``<link>``.

    ``resources`` and, for Combined groups, ``paths`` (root-relative
    canonical paths) are parallel to ``members``.
    """

    index: int
    media: str
    kind: GroupKind
    members: list[str] = field(default_factory=list)
    paths: list[str] = field(default_factory=list)
    resources: list[StyleResource] = field(default_factory=list)

    @property
    def is_combined(self) -> bool:
        return self.kind is GroupKind.COMBINED

    def add(self, resource: StyleResource, path: str | None = None) -> None:
        if self.kind is GroupKind.SINGLETON and self.members:
            raise ValueError(f"Singleton group {self.index} already holds '{self.members[0]}'.")
        if self.kind is GroupKind.COMBINED:
            if path is None:
                raise ValueError(f"Combined member '{resource.handle}' needs a path.")
            self.paths.append(path)
        self.members.append(resource.handle)
        self.resources.append(resource)


@dataclass(frozen=True)
class GroupIdentifier:
    encoded_path_list: str
    freshness_token: int


class HandleState(str, Enum):
    QUEUED = "queued"
    EVALUATED = "evaluated"
    MERGED = "merged-into-group"
    SINGLETON = "singleton-emitted"
    DONE = "done"


class QueueError(RuntimeError):
    """Raised when a handle would be marked done twice in one pass."""


@dataclass
class StyleQueue:
    """Request-scoped snapshot of the registry queue.

    ``to_do`` is drained as the planner consumes it; ``done`` accumulates
    handles in emission order and is handed back to the registry.
    """

    to_do: list[StyleResource] = field(default_factory=list)
    done: list[str] = field(default_factory=list)

    def is_done(self, handle: str) -> bool:
        return handle in self.done

    def mark_done(self, handle: str) -> None:
        if handle in self.done:
            raise QueueError(f"Handle '{handle}' was already emitted in this pass.")
        self.done.append(handle)


@dataclass
class PlanResult:
    groups: list[Group] = field(default_factory=list)
    fragments: list[str] = field(default_factory=list)
    done_handles: list[str] = field(default_factory=list)
    states: dict[str, HandleState] = field(default_factory=dict)  # last state reached
    routes: dict[str, HandleState] = field(default_factory=dict)  # MERGED or SINGLETON

    @property
    def html(self) -> str:
        return "".join(self.fragments)
