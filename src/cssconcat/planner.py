"""Per-request stylesheet concatenation.

The host builds one StyleConcatenator per page render, passes it the
registry's resolved queue, and gets back the markup plus the handles it
emitted. No state outlives the call.

    cfg = load_config(site_dir)
    result = StyleConcatenator(cfg).do_items(StyleQueue(to_do=resources))
    page.head += result.html
    registry.done.extend(result.done_handles)
"""

from __future__ import annotations

from cssconcat.config import ConcatConfig
from cssconcat.eligibility import EligibilityFilter
from cssconcat.grouping import GroupingEngine
from cssconcat.hooks import ConcatHooks
from cssconcat.markup import MarkupEmitter
from cssconcat.models import HandleState, PlanResult, StyleQueue, StyleResource
from cssconcat.resolver import PathResolver


class StyleConcatenator:
    def __init__(
        self,
        config: ConcatConfig,
        hooks: ConcatHooks | None = None,
        resolver: PathResolver | None = None,
    ) -> None:
        self.config = config
        self.hooks = hooks or ConcatHooks()
        self.resolver = resolver or PathResolver(config.trusted_root)

    def do_items(self, queue: StyleQueue | list[StyleResource]) -> PlanResult:
        """Plan and render *queue*, draining it.

        Args:
            queue: A StyleQueue (drained in place; ``done`` is extended) or a
                plain list of resources for a fresh pass.

        Returns:
            PlanResult with groups, markup fragments and emitted handles.
            ``routes`` records whether each planned handle was merged or
            emitted alone; ``states`` ends at DONE once the queue has it.
        """
        if not isinstance(queue, StyleQueue):
            queue = StyleQueue(to_do=list(queue))

        site_url = self.hooks.site_url(self.config.site_url)
        eligibility = EligibilityFilter(
            self.resolver, self.hooks, self.config.stylesheet_extension
        )
        engine = GroupingEngine(eligibility, site_url, self.config.text_direction)
        groups = engine.plan(queue)

        emitter = MarkupEmitter(
            resolver=self.resolver,
            endpoint_url=self.config.endpoint_url,
            allow_compression=self.config.allow_gzip_compression,
            text_direction=self.config.text_direction,
            hooks=self.hooks,
        )
        fragments, done = emitter.render(groups)

        routes = dict(engine.states)
        for handle in emitter.demoted:
            routes[handle] = HandleState.SINGLETON
        states = dict(routes)
        for handle in done:
            queue.mark_done(handle)
            states[handle] = HandleState.DONE

        return PlanResult(
            groups=groups, fragments=fragments, done_handles=done, states=states, routes=routes
        )
