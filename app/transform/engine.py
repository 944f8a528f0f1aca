"""Dispatches configured transformations over a page.

Processing flow for one pass:
1. For each transformation in declared order, for each selector in
   declared order, query matching elements in document order.
2. Skip elements the tracker reports as processed and unchanged.
3. Apply the type-specific processor and mark (element, name) processed.

``injectCSS`` is document-scoped and tracked against the root element.
Selector errors and processor errors are logged and counted; they never
escape a pass.
"""

import time
from dataclasses import dataclass
from typing import Callable

from bs4 import Tag

from app.config.models import RedactorConfig, Transformation, TransformationType
from app.dom.exceptions import SelectorError
from app.dom.page import Page, describe
from app.logging.logger import Log
from app.tracking.tracker import ElementTracker
from app.transform.exceptions import UnknownTransformationError
from app.transform.processors import (
    BaseProcessor,
    BlurProcessor,
    CustomerReplaceProcessor,
    FunctionReplaceProcessor,
    InjectCssProcessor,
    MaskLinksProcessor,
    PartialReplaceProcessor,
    ProcessorContext,
    ReplaceImageProcessor,
    ScrambleProcessor,
    SensitiveTextProcessor,
    StaticReplaceProcessor,
)

PROCESSORS: dict[TransformationType, type[BaseProcessor]] = {
    TransformationType.SCRAMBLE: ScrambleProcessor,
    TransformationType.STATIC_REPLACE: StaticReplaceProcessor,
    TransformationType.FUNCTION_REPLACE: FunctionReplaceProcessor,
    TransformationType.PARTIAL_REPLACE: PartialReplaceProcessor,
    TransformationType.CUSTOMER_REPLACE: CustomerReplaceProcessor,
    TransformationType.BLUR: BlurProcessor,
    TransformationType.REPLACE_IMAGE: ReplaceImageProcessor,
    TransformationType.MASK_LINKS: MaskLinksProcessor,
    TransformationType.SENSITIVE_TEXT: SensitiveTextProcessor,
    TransformationType.INJECT_CSS: InjectCssProcessor,
}


@dataclass
class ProcessingStats:
    cycle: int = 0
    found: int = 0
    processed: int = 0
    skipped: int = 0
    failed: int = 0
    duration_ms: float = 0.0


class TransformationEngine:
    """Applies every configured transformation to a page, idempotently."""

    def __init__(
        self,
        config: RedactorConfig,
        context: ProcessorContext,
        tracker: ElementTracker,
        orphan_cleanup_every: int = 50,
    ) -> None:
        self._config = config
        self._tracker = tracker
        self._orphan_cleanup_every = orphan_cleanup_every
        self._processors: dict[TransformationType, BaseProcessor] = {
            ttype: cls(context) for ttype, cls in PROCESSORS.items()
        }
        self._cycle = 0

    @property
    def cycle(self) -> int:
        return self._cycle

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def process_all(self, page: Page) -> ProcessingStats:
        """Full pass over the document."""
        self._cycle += 1
        stats = ProcessingStats(cycle=self._cycle)
        started = time.perf_counter()

        for transformation in self._config.transformations:
            if transformation.type is TransformationType.INJECT_CSS:
                self._process_document_scoped(page, transformation, stats)
                continue
            for selector in transformation.selectors:
                self._process_selector(
                    page, transformation, selector, lambda s: page.select(s), stats
                )

        stats.duration_ms = (time.perf_counter() - started) * 1000
        self._log_cycle(stats)

        if self._orphan_cleanup_every and self._cycle % self._orphan_cleanup_every == 0:
            self._tracker.cleanup_orphans(page)
        return stats

    def process_subtree(self, page: Page, root: Tag) -> ProcessingStats:
        """Incremental pass over *root* and its matching descendants."""
        stats = ProcessingStats(cycle=self._cycle)
        started = time.perf_counter()

        def _matches(selector: str) -> list[Tag]:
            found = page.select(selector, root=root)
            if page.matches(root, selector):
                found.insert(0, root)
            return found

        for transformation in self._config.transformations:
            if transformation.type is TransformationType.INJECT_CSS:
                continue
            for selector in transformation.selectors:
                self._process_selector(page, transformation, selector, _matches, stats)

        stats.duration_ms = (time.perf_counter() - started) * 1000
        Log.debug(
            f"Subtree <{describe(root)}>: found {stats.found}, processed {stats.processed}, "
            f"skipped {stats.skipped}, failed {stats.failed}"
        )
        return stats

    def process_element(
        self,
        page: Page,
        element: Tag,
        transformation: Transformation,
        stats: ProcessingStats | None = None,
    ) -> bool:
        """Apply one transformation to one element unless already done.

        Returns True if the processor ran successfully.
        """
        stats = stats or ProcessingStats(cycle=self._cycle)
        if self._tracker.has_been_processed(element, transformation.name):
            stats.skipped += 1
            return False
        try:
            processor = self._processors.get(transformation.type)
            if processor is None:
                raise UnknownTransformationError(
                    f"Unknown transformation type: {transformation.type} "
                    f"in transformation '{transformation.name}'"
                )
            Log.debug(f"Processing '{transformation.name}' ({transformation.type.value}) on {describe(element)}")
            processor.apply(page, element, transformation)
        except Exception as exc:
            stats.failed += 1
            Log.error(f"Error processing transformation '{transformation.name}': {exc}")
            return False
        self._tracker.mark_as_processed(element, transformation.name)
        stats.processed += 1
        return True

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _process_selector(
        self,
        page: Page,
        transformation: Transformation,
        selector: str,
        query: Callable[[str], list[Tag]],
        stats: ProcessingStats,
    ) -> None:
        try:
            elements = query(selector)
        except SelectorError as exc:
            stats.failed += 1
            Log.error(f"{exc} in transformation '{transformation.name}'")
            return
        stats.found += len(elements)
        for element in elements:
            self.process_element(page, element, transformation, stats)

    def _process_document_scoped(
        self,
        page: Page,
        transformation: Transformation,
        stats: ProcessingStats,
    ) -> None:
        stats.found += 1
        self.process_element(page, page.root, transformation, stats)

    def _log_cycle(self, stats: ProcessingStats) -> None:
        if stats.processed > 0 or stats.cycle <= 3 or stats.cycle % 10 == 0:
            Log.debug(
                f"Cycle #{stats.cycle}: found {stats.found}, processed {stats.processed}, "
                f"skipped {stats.skipped}, failed {stats.failed} "
                f"in {stats.duration_ms:.2f}ms"
            )
