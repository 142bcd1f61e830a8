"""Grouping engine — partitions the style queue into emit groups.

Single left-to-right scan over the queue:
  - eligible resources join the open run, one Combined group per media;
  - an ineligible resource closes the run and becomes a Singleton group.

A closed run is never reopened: ``[A(all), B(ineligible), C(all)]`` gives
three groups even though A and C share a media. Changing this would change
every combined URL clients have cached.
"""

from __future__ import annotations

import dataclasses

from loguru import logger

from cssconcat.eligibility import EligibilityFilter
from cssconcat.models import Group, GroupKind, HandleState, StyleQueue, StyleResource


class GroupingEngine:
    def __init__(
        self,
        eligibility: EligibilityFilter,
        site_url: str,
        text_direction: str = "ltr",
    ) -> None:
        self.eligibility = eligibility
        self.site_url = site_url
        self.text_direction = text_direction
        self.states: dict[str, HandleState] = {}

    def plan(self, queue: StyleQueue) -> list[Group]:
        """Drain ``queue.to_do`` into ordered groups.

        Handles already in ``queue.done`` are dropped without evaluation.
        When a handle is queued twice, only its last entry is planned.
        """
        last_seen = {res.handle: i for i, res in enumerate(queue.to_do)}
        groups: list[Group] = []
        run: dict[str, Group] | None = None

        position = 0
        while queue.to_do:
            resource = queue.to_do.pop(0)
            current = position
            position += 1

            if queue.is_done(resource.handle):
                continue
            if last_seen[resource.handle] != current:
                logger.warning(
                    "Duplicate style handle '{}'; keeping the last registration.",
                    resource.handle,
                )
                continue

            self.states[resource.handle] = HandleState.QUEUED
            resource = self._filtered(resource)
            verdict = self.eligibility.evaluate(
                resource, self.site_url, self.text_direction
            )
            self.states[resource.handle] = HandleState.EVALUATED

            if verdict.eligible:
                media = resource.effective_media
                if run is None:
                    run = {}
                group = run.get(media)
                if group is None:
                    group = Group(index=len(groups), media=media, kind=GroupKind.COMBINED)
                    run[media] = group
                    groups.append(group)
                group.add(resource, verdict.path)
                self.states[resource.handle] = HandleState.MERGED
            else:
                run = None
                group = Group(
                    index=len(groups), media=resource.effective_media, kind=GroupKind.SINGLETON
                )
                group.add(resource)
                groups.append(group)
                self.states[resource.handle] = HandleState.SINGLETON

        logger.debug(
            "Planned {} group(s): {}",
            len(groups),
            ", ".join(f"{g.kind.value}[{g.media}]x{len(g.members)}" for g in groups),
        )
        return groups

    def _filtered(self, resource: StyleResource) -> StyleResource:
        """Apply the source hook without touching the registry's object."""
        src = self.eligibility.hooks.source(resource.source_url, resource.handle)
        if src == resource.source_url:
            return resource
        return dataclasses.replace(resource, source_url=src)
