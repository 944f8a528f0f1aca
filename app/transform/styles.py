"""Style-element injection: per-transformation CSS, global CSS, the
hide-until-processed stylesheet and the demo-mode indicator."""

from bs4 import Tag
from bs4.element import Stylesheet

from app.assets.exceptions import AssetLoadError
from app.assets.loader import AssetLoader
from app.config.models import CssRule, GlobalCss, Transformation, TransformationType
from app.dom.page import Page
from app.logging.logger import Log

STYLE_PREFIX = "redactor"
HIDE_STYLE_ID = "redactor-hide-style"
GLOBAL_STYLE_ID = "redactor-global-css"
DEMO_INDICATOR_ID = "redactor-demo-indicator"


def render_css(rules: tuple[CssRule, ...] | list[CssRule]) -> str:
    blocks: list[str] = []
    for rule in rules:
        if not rule.properties:
            continue
        body = "".join(f"  {prop}: {value};\n" for prop, value in rule.properties.items())
        blocks.append(f"{rule.selector} {{\n{body}}}\n")
    return "\n".join(blocks)


def _slug(value: str) -> str:
    return "".join(ch if ch.isalnum() else "-" for ch in value)


class StyleInjector:
    """Writes ``<style>`` elements into a page, at most once per id."""

    def __init__(self, assets: AssetLoader) -> None:
        self._assets = assets

    def inject_rules(self, page: Page, rules: tuple[CssRule, ...] | list[CssRule], style_id: str) -> bool:
        if page.get_by_id(style_id) is not None:
            Log.debug(f"CSS already injected for {style_id}, skipping")
            return False
        css_text = render_css(rules)
        if not css_text:
            return False
        self._append_style(page, style_id, css_text)
        Log.debug(f"Injected {len(rules)} CSS rules for {style_id}")
        return True

    def inject_files(self, page: Page, files: tuple[str, ...] | list[str], owner: str) -> int:
        """Inject each stylesheet file; unreadable files are logged and skipped."""
        injected = 0
        for css_file in files:
            style_id = f"{STYLE_PREFIX}-{owner}-{_slug(css_file)}"
            if page.get_by_id(style_id) is not None:
                continue
            try:
                css_text = self._assets.read_text(css_file)
            except AssetLoadError as exc:
                Log.error(f"Error loading CSS file {css_file}: {exc}")
                continue
            style = self._append_style(page, style_id, css_text)
            style["data-css-file"] = css_file
            injected += 1
            Log.debug(f"Injected CSS file: {css_file}")
        return injected

    def inject_global(self, page: Page, global_css: GlobalCss) -> None:
        if not global_css.enabled:
            return
        if global_css.rules:
            self.inject_rules(page, global_css.rules, GLOBAL_STYLE_ID)
        if global_css.files:
            self.inject_files(page, global_css.files, "global")

    def hide_content(self, page: Page, transformations: tuple[Transformation, ...]) -> None:
        """Hide every configured selector until the first pass has run."""
        if page.get_by_id(HIDE_STYLE_ID) is not None:
            return
        lines: list[str] = []
        for transformation in transformations:
            for selector in transformation.selectors:
                if transformation.type is TransformationType.BLUR:
                    lines.append(f"{selector} {{ opacity: 0 !important; transition: opacity 0.3s ease; }}")
                else:
                    lines.append(f"{selector} {{ visibility: hidden !important; }}")
        if lines:
            self._append_style(page, HIDE_STYLE_ID, "\n".join(lines))
            Log.debug("Content hidden with CSS")

    def reveal_content(self, page: Page) -> None:
        hide_style = page.get_by_id(HIDE_STYLE_ID)
        if hide_style is not None:
            hide_style.decompose()
            Log.debug("Content revealed")

    def show_demo_indicator(self, page: Page) -> None:
        if page.get_by_id(DEMO_INDICATOR_ID) is not None:
            return
        indicator = page.new_tag(
            "div",
            id=DEMO_INDICATOR_ID,
            title="Sensitive content on this page is being anonymized",
        )
        indicator["class"] = ["redactor-demo-mode"]
        indicator.string = "DEMO MODE"
        (page.body or page.root).append(indicator)
        Log.debug("Demo mode indicator shown")

    def hide_demo_indicator(self, page: Page) -> None:
        indicator = page.get_by_id(DEMO_INDICATOR_ID)
        if indicator is not None:
            indicator.decompose()
            Log.debug("Demo mode indicator hidden")

    @staticmethod
    def _append_style(page: Page, style_id: str, css_text: str) -> Tag:
        style = page.new_tag("style", id=style_id)
        style["data-redactor"] = "true"
        style.string = Stylesheet(css_text)
        (page.head or page.root).append(style)
        return style
