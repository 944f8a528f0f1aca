"""Reconciliation loop: a repeating full scan plus debounced incremental
scans of newly inserted subtrees.

Everything runs on one asyncio event loop, so the timer callback, the
mutation callback and the engine never run concurrently. Both triggers
end in the same engine entry points; the tracker makes repeated scans of
stable content no-ops.
"""

import asyncio

from bs4 import Tag

from app.dom.page import MutationObserver, MutationRecord, Page
from app.logging.logger import Log
from app.transform.engine import ProcessingStats, TransformationEngine


class ReconciliationScheduler:
    """Timer- and mutation-driven scanning of one page."""

    def __init__(
        self,
        page: Page,
        engine: TransformationEngine,
        interval_ms: int = 100,
        debounce_ms: int = 50,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._page = page
        self._engine = engine
        self._interval = interval_ms / 1000
        self._debounce = debounce_ms / 1000
        self._loop = loop
        self._timer: asyncio.TimerHandle | None = None
        self._debounce_handle: asyncio.TimerHandle | None = None
        self._observer: MutationObserver | None = None
        self._pending_roots: list[Tag] = []
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> ProcessingStats | None:
        """Immediate full scan, then install the observer and the timer.

        Must be called from within the event loop.
        """
        if self._running:
            return None
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        self._running = True
        stats = self.tick()
        self._observer = self._page.observe(self._on_mutations)
        self._schedule_tick()
        Log.info(f"Started continuous processing every {int(self._interval * 1000)}ms")
        return stats

    def stop(self) -> None:
        """Cancel the timer, the pending incremental scan and the observer.

        Synchronous: no queued callback can touch the page after return.
        """
        self._running = False
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self._debounce_handle is not None:
            self._debounce_handle.cancel()
            self._debounce_handle = None
        if self._observer is not None:
            self._observer.disconnect()
            self._observer = None
        self._pending_roots.clear()
        Log.info("Stopped continuous processing")

    def tick(self) -> ProcessingStats:
        """One full reconciliation pass."""
        return self._engine.process_all(self._page)

    def flush_mutations(self) -> list[ProcessingStats]:
        """Incremental pass over every subtree added since the last flush."""
        if self._debounce_handle is not None:
            self._debounce_handle.cancel()
            self._debounce_handle = None
        roots, self._pending_roots = self._pending_roots, []
        results: list[ProcessingStats] = []
        for root in roots:
            if self._page.contains(root):
                results.append(self._engine.process_subtree(self._page, root))
        return results

    # ------------------------------------------------------------------
    # Event sources
    # ------------------------------------------------------------------

    def _schedule_tick(self) -> None:
        assert self._loop is not None
        self._timer = self._loop.call_later(self._interval, self._on_timer)

    def _on_timer(self) -> None:
        self._timer = None
        if not self._running:
            return
        try:
            self.tick()
        finally:
            if self._running:
                self._schedule_tick()

    def _on_mutations(self, records: list[MutationRecord]) -> None:
        if not self._running:
            return
        added = [
            node
            for record in records
            for node in record.added_nodes
            if isinstance(node, Tag)
        ]
        if not added:
            return
        self._pending_roots.extend(added)
        if self._debounce_handle is None and self._loop is not None:
            self._debounce_handle = self._loop.call_later(self._debounce, self.flush_mutations)
