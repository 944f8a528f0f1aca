import asyncio
import random
from pathlib import Path

from app.assets.loader import AssetLoader
from app.config.loader import ConfigLoader
from app.config.models import RedactorConfig
from app.config.settings import Settings
from app.detection.capture import ValueCapture
from app.detection.customer import CustomerDetector, CustomerRecord, CustomerValueResolver
from app.dom.page import Page
from app.logging.logger import Log
from app.replacement.registry import ReplacementRegistry
from app.scheduler.reconciler import ReconciliationScheduler
from app.scramble.scrambler import Scrambler
from app.tracking.tracker import ElementTracker
from app.transform.engine import ProcessingStats, TransformationEngine
from app.transform.processors import ProcessorContext
from app.transform.styles import StyleInjector


class Redactor:
    """Engine context for one page: owns detection, tracking and the loop.

    Lifecycle: initialize (detect customer, capture values, build engine)
    -> start (hide, scan, watch, reveal) -> set_enabled toggles.
    """

    def __init__(
        self,
        page: Page,
        config: RedactorConfig,
        settings: Settings,
        *,
        assets: AssetLoader | None = None,
        rng: random.Random | None = None,
        enabled: bool | None = None,
    ) -> None:
        self.page = page
        self.config = config
        self._settings = settings
        self._assets = assets or AssetLoader(Path(settings.assets_root), settings.assets_base_url)
        self._rng = rng or random.Random()
        self._enabled = settings.enabled if enabled is None else enabled
        self._initialized = False
        self._reveal_handle: asyncio.TimerHandle | None = None

        self.tracker = ElementTracker()
        self.styles = StyleInjector(self._assets)
        self.customer: CustomerRecord | None = None
        self.captured: dict[str, str] = {}
        self.engine: TransformationEngine | None = None
        self.scheduler: ReconciliationScheduler | None = None

    @property
    def enabled(self) -> bool:
        return self._enabled

    def initialize(self) -> None:
        """Detect the customer once and build the engine. Idempotent."""
        if self._initialized:
            return
        self.customer = CustomerDetector().detect(
            self.page.url, self.config.url_patterns, self.config.customer_mapping
        )
        self.captured = ValueCapture(self.config.value_capture).capture(self.page)

        context = ProcessorContext(
            scrambler=Scrambler(self._rng),
            registry=ReplacementRegistry(self.config.replacement_pools, self._rng),
            customer=CustomerValueResolver(self.customer, self.config.customer_fallbacks, self._rng),
            assets=self._assets,
            styles=self.styles,
            captured=self.captured,
            rng=self._rng,
        )
        self.engine = TransformationEngine(
            self.config,
            context,
            self.tracker,
            orphan_cleanup_every=self._settings.orphan_cleanup_every,
        )
        self.scheduler = ReconciliationScheduler(
            self.page,
            self.engine,
            interval_ms=self.config.settings.process_interval_ms,
            debounce_ms=self._settings.mutation_debounce_ms,
        )
        self._initialized = True
        Log.info(
            f"Redactor initialized: {len(self.config.transformations)} transformations, "
            f"customer={self.customer.id if self.customer else None}"
        )

    def start(self) -> ProcessingStats | None:
        """Begin continuous reconciliation. Must run inside the event loop."""
        self.initialize()
        if not self._enabled:
            Log.info("Redactor disabled, not starting")
            return None
        return self._activate()

    def redact_once(self) -> ProcessingStats:
        """Single synchronous pass with no timer or observer."""
        self.initialize()
        assert self.engine is not None
        self._decorate()
        stats = self.engine.process_all(self.page)
        self.styles.reveal_content(self.page)
        return stats

    def set_enabled(self, enabled: bool) -> dict[str, bool]:
        """Toggle anonymization. Disabling stops everything before returning."""
        self.initialize()
        self._enabled = enabled
        if enabled:
            if _has_running_loop():
                self._activate()
            else:
                self.redact_once()
        else:
            self._deactivate()
        return {"success": True, "enabled": self._enabled}

    def get_status(self) -> dict[str, bool]:
        return {
            "enabled": self._enabled,
            "initialized": self._initialized,
            "hasConfig": bool(self.config.transformations),
        }

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _decorate(self) -> None:
        self.styles.hide_content(self.page, self.config.transformations)
        self.styles.inject_global(self.page, self.config.global_css)
        if self.config.settings.show_demo_indicator:
            self.styles.show_demo_indicator(self.page)

    def _activate(self) -> ProcessingStats | None:
        assert self.scheduler is not None
        self._decorate()
        stats = self.scheduler.start()
        loop = asyncio.get_running_loop()
        if self._reveal_handle is not None:
            self._reveal_handle.cancel()
        self._reveal_handle = loop.call_later(
            self._settings.reveal_delay_ms / 1000, self._reveal
        )
        return stats

    def _deactivate(self) -> None:
        if self.scheduler is not None:
            self.scheduler.stop()
        self._reveal()
        self.styles.hide_demo_indicator(self.page)
        # stale hashes must not survive a re-enable
        self.tracker.reset()

    def _reveal(self) -> None:
        if self._reveal_handle is not None:
            self._reveal_handle.cancel()
            self._reveal_handle = None
        self.styles.reveal_content(self.page)


def _has_running_loop() -> bool:
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return False
    return True


def build_redactor(
    settings: Settings,
    page: Page,
    config_source: str | None = None,
) -> Redactor:
    """Load the page configuration and build a Redactor for *page*."""
    config = ConfigLoader(settings).load(config_source)
    Log.configure(settings.log_level, debug=config.settings.debug)
    return Redactor(page, config, settings)
