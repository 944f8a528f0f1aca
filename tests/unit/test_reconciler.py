import asyncio
from typing import Any, Callable
from unittest.mock import patch

import pytest

from app.redactor.redactor import Redactor

Make = Callable[..., Redactor]

SCRAMBLE = [{"name": "names", "type": "scramble", "selectors": [".name"]}]
HTML = "<html><head></head><body><main><p class='name'>Acme</p></main></body></html>"


def _make(make_redactor: Make, interval_ms: int, **kwargs: Any) -> Redactor:
    return make_redactor(HTML, SCRAMBLE, settings={"processInterval": interval_ms}, **kwargs)


class TestStart:
    @pytest.mark.asyncio
    async def test_immediate_scan(self, make_redactor: Make) -> None:
        redactor = _make(make_redactor, 10_000)
        scheduler = redactor.scheduler

        stats = scheduler.start()
        try:
            assert scheduler.running
            assert stats is not None
            assert stats.processed == 1
            assert scheduler.start() is None
        finally:
            scheduler.stop()
        assert not scheduler.running

    @pytest.mark.asyncio
    async def test_timer_rescans(self, make_redactor: Make) -> None:
        redactor = _make(make_redactor, 20)
        scheduler = redactor.scheduler
        page = redactor.page
        scheduler.start()
        try:
            # inserted without a mutation record: only the timer can find it
            late = page.new_tag("p", **{"class": "name"})
            late.string = "Initech"
            page.select_one("main").append(late)

            await asyncio.sleep(0.1)

            assert redactor.engine.cycle > 1
            assert redactor.tracker.has_been_processed(late, "names")
            assert late.get_text() != "Initech"
        finally:
            scheduler.stop()


class TestMutations:
    @pytest.mark.asyncio
    async def test_added_subtree_processed_after_debounce(self, make_redactor: Make) -> None:
        redactor = _make(make_redactor, 10_000)
        scheduler = redactor.scheduler
        page = redactor.page
        scheduler.start()
        try:
            (added,) = page.append_html(page.select_one("main"), "<div class='name'>Globex</div>")
            assert not redactor.tracker.has_been_processed(added, "names")

            await asyncio.sleep(0.05)

            assert redactor.tracker.has_been_processed(added, "names")
            assert redactor.engine.cycle == 1
        finally:
            scheduler.stop()

    @pytest.mark.asyncio
    async def test_batched_mutations_share_one_flush(self, make_redactor: Make) -> None:
        redactor = _make(make_redactor, 10_000)
        scheduler = redactor.scheduler
        page = redactor.page
        scheduler.start()
        try:
            with patch.object(scheduler, "flush_mutations", wraps=scheduler.flush_mutations) as flush:
                page.append_html(page.select_one("main"), "<p class='name'>One</p>")
                page.append_html(page.select_one("main"), "<p class='name'>Two</p>")
                await asyncio.sleep(0.05)
            assert flush.call_count == 1
            assert all(
                redactor.tracker.has_been_processed(p, "names") for p in page.select("p.name")
            )
        finally:
            scheduler.stop()

    @pytest.mark.asyncio
    async def test_text_only_mutation_ignored(self, make_redactor: Make) -> None:
        redactor = _make(make_redactor, 10_000)
        scheduler = redactor.scheduler
        page = redactor.page
        scheduler.start()
        try:
            with patch.object(redactor.engine, "process_subtree") as process_subtree:
                page.append_html(page.select_one("main"), "just text")
                await asyncio.sleep(0.05)
            process_subtree.assert_not_called()
        finally:
            scheduler.stop()

    @pytest.mark.asyncio
    async def test_detached_root_skipped(self, make_redactor: Make) -> None:
        redactor = _make(make_redactor, 10_000)
        scheduler = redactor.scheduler
        page = redactor.page
        scheduler.start()
        try:
            (added,) = page.append_html(page.select_one("main"), "<p class='name'>Gone</p>")
            page.remove(added)
            assert scheduler.flush_mutations() == []
        finally:
            scheduler.stop()


class TestStop:
    @pytest.mark.asyncio
    async def test_stop_cancels_everything(self, make_redactor: Make) -> None:
        redactor = _make(make_redactor, 20)
        scheduler = redactor.scheduler
        page = redactor.page
        scheduler.start()
        (added,) = page.append_html(page.select_one("main"), "<div class='name'>Globex</div>")

        scheduler.stop()
        cycle = redactor.engine.cycle
        await asyncio.sleep(0.1)

        assert redactor.engine.cycle == cycle
        assert not redactor.tracker.has_been_processed(added, "names")
        assert added.get_text() == "Globex"

    @pytest.mark.asyncio
    async def test_restart_after_stop(self, make_redactor: Make) -> None:
        redactor = _make(make_redactor, 10_000)
        scheduler = redactor.scheduler
        scheduler.start()
        scheduler.stop()

        stats = scheduler.start()
        try:
            assert stats is not None
            assert stats.skipped == 1
        finally:
            scheduler.stop()
