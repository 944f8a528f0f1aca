"""Per-element processing state with content-change invalidation.

One map, keyed by element identity, owns every ElementProcessingState.
Entries hold a weak reference to their element so a collected element
drops its entry on its own; :meth:`ElementTracker.cleanup_orphans` covers
elements that are detached from the document but still referenced.
"""

from __future__ import annotations

import weakref
from dataclasses import dataclass, field

from bs4 import Tag

from app.dom.page import Page
from app.logging.logger import Log

_MASK_32 = 0xFFFFFFFF


def content_hash(text: str) -> int:
    """32-bit signed polynomial (x31) hash. Collisions are tolerated."""
    value = 0
    for ch in text:
        value = ((value << 5) - value + ord(ch)) & _MASK_32
    return value - (1 << 32) if value & 0x80000000 else value


def element_hash(element: Tag) -> int:
    return content_hash(element.get_text())


@dataclass
class ElementProcessingState:
    applied: set[str] = field(default_factory=set)
    content_hash: int = 0


@dataclass
class _Entry:
    ref: weakref.ref
    state: ElementProcessingState


class ElementTracker:
    """Tracks which transformations were applied to which element."""

    def __init__(self) -> None:
        self._entries: dict[int, _Entry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def has_been_processed(self, element: Tag, transformation_name: str) -> bool:
        """True iff applied before and the element's text is unchanged since.

        A changed hash clears the record for *transformation_name* only,
        forcing that transformation to run again.
        """
        state = self.state_for(element)
        if state is None or transformation_name not in state.applied:
            return False
        if element_hash(element) != state.content_hash:
            Log.debug(f"Content changed in <{element.name}>, will reprocess")
            state.applied.discard(transformation_name)
            return False
        return True

    def mark_as_processed(self, element: Tag, transformation_name: str) -> None:
        state = self.state_for(element)
        if state is None:
            state = ElementProcessingState()
            self._entries[id(element)] = _Entry(ref=self._make_ref(element), state=state)
        state.applied.add(transformation_name)
        state.content_hash = element_hash(element)

    def state_for(self, element: Tag) -> ElementProcessingState | None:
        entry = self._entries.get(id(element))
        if entry is None or entry.ref() is not element:
            return None
        return entry.state

    def reset(self) -> None:
        self._entries.clear()
        Log.debug("Cleared all processed element tracking and content hashes")

    def cleanup_orphans(self, page: Page) -> int:
        """Drop entries whose element is gone or detached from *page*."""
        # weakref callbacks may drop entries while this runs
        orphaned: list[int] = []
        for key, entry in list(self._entries.items()):
            element = entry.ref()
            if element is None or not page.contains(element):
                orphaned.append(key)
        for key in orphaned:
            self._entries.pop(key, None)
        if orphaned:
            Log.debug(f"Cleaned up {len(orphaned)} orphaned elements from tracking")
        return len(orphaned)

    def _make_ref(self, element: Tag) -> weakref.ref:
        key = id(element)

        def _drop(ref: weakref.ref) -> None:
            entry = self._entries.get(key)
            if entry is not None and entry.ref is ref:
                del self._entries[key]

        return weakref.ref(element, _drop)
