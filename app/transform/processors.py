"""Type-specific processors. Each one alters a single matched element.

Processors raise on failure; the engine isolates errors per element so
one broken rule never stops the rest of a pass.
"""

from __future__ import annotations

import random
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable

from bs4 import NavigableString, Tag

from app.assets.loader import AssetLoader
from app.config.models import CssRule, Transformation
from app.detection.customer import CustomerValueResolver
from app.dom.page import Page
from app.logging.logger import Log
from app.replacement.registry import ReplacementRegistry
from app.scramble.scrambler import ScrambleOptions, Scrambler
from app.transform.styles import STYLE_PREFIX, StyleInjector

REDACTED = "[REDACTED]"
ORIGINAL_SRC_ATTR = "data-redactor-original-src"
ORIGINAL_HREF_ATTR = "data-redactor-original-href"
_PLACEHOLDER_RE = re.compile(r"\{(\w+)\}")
_CUSTOMER_PLACEHOLDERS = {"customerName": "name", "customerDomain": "domain", "customerId": "id"}


@dataclass
class ProcessorContext:
    """Everything a processor may consult; built once per page."""

    scrambler: Scrambler
    registry: ReplacementRegistry
    customer: CustomerValueResolver
    assets: AssetLoader
    styles: StyleInjector
    captured: dict[str, str] = field(default_factory=dict)
    rng: random.Random = field(default_factory=random.Random)


@dataclass
class _Replacement:
    search: str
    replace: str | Callable[[re.Match[str]], str]
    is_regex: bool
    description: str


def text_nodes(element: Tag) -> list[NavigableString]:
    """Plain text nodes under *element*, skipping comments, scripts and styles."""
    return [node for node in element.descendants if type(node) is NavigableString]


def direct_text_nodes(element: Tag) -> list[NavigableString]:
    return [node for node in element.children if type(node) is NavigableString]


def set_style(element: Tag, **properties: str) -> None:
    """Merge CSS declarations into the inline ``style`` attribute."""
    declarations: dict[str, str] = {}
    for declaration in str(element.get("style", "")).split(";"):
        if ":" in declaration:
            prop, value = declaration.split(":", 1)
            declarations[prop.strip()] = value.strip()
    for prop, value in properties.items():
        declarations[prop.replace("_", "-")] = value
    element["style"] = "; ".join(f"{prop}: {value}" for prop, value in declarations.items()) + ";"


def _has_text(element: Tag) -> bool:
    return bool(element.get_text().strip())


class BaseProcessor(ABC):
    """Contract for all transformation processors."""

    def __init__(self, context: ProcessorContext) -> None:
        self._ctx = context

    @abstractmethod
    def apply(self, page: Page, element: Tag, transformation: Transformation) -> None:
        """Alter *element* in place.

        Raises:
            Exception: any failure; the engine logs it and leaves the
                element unmarked so it is retried on a later change.
        """


class ScrambleProcessor(BaseProcessor):
    """Scramble direct text children only; nested tags stay untouched."""

    def apply(self, page: Page, element: Tag, transformation: Transformation) -> None:
        if not _has_text(element):
            return
        options = ScrambleOptions.from_mapping(transformation.options)
        for node in direct_text_nodes(element):
            original = str(node)
            if original.strip():
                node.replace_with(self._ctx.scrambler.scramble(original, options))


class StaticReplaceProcessor(BaseProcessor):
    def apply(self, page: Page, element: Tag, transformation: Transformation) -> None:
        if not _has_text(element):
            return
        replacements = transformation.options.get("replacements") or []
        if replacements:
            element.string = self._ctx.rng.choice(replacements)


class FunctionReplaceProcessor(BaseProcessor):
    def apply(self, page: Page, element: Tag, transformation: Transformation) -> None:
        if not _has_text(element):
            return
        options = transformation.options
        element.string = self._ctx.registry.invoke(
            options["functionName"], options.get("functionArgs") or {}
        )


class CustomerReplaceProcessor(BaseProcessor):
    """Replace the whole text with the customer's stand-in name or domain."""

    def apply(self, page: Page, element: Tag, transformation: Transformation) -> None:
        if not _has_text(element):
            return
        options = transformation.options
        fallback = options.get("fallback", "Unknown")
        replace_with = options.get("replaceWith")
        if replace_with == "customerName":
            replacement = self._ctx.customer.value("name") or fallback
        elif replace_with == "customerDomain":
            replacement = self._ctx.customer.value("domain") or fallback
        else:
            replacement = fallback
        element.string = replacement


class PartialReplaceProcessor(BaseProcessor):
    """Substring replacement inside every text node, keeping the markup.

    Replacement order: customer identity, related words (only when
    ``relatedWordsMode`` is set), then the configured search/replace pairs.
    """

    def apply(self, page: Page, element: Tag, transformation: Transformation) -> None:
        if not _has_text(element):
            return
        options = transformation.options
        replacements = self._customer_replacements(options)
        replacements.extend(self._configured_replacements(options))
        if not replacements:
            Log.debug(f"No replacements for '{transformation.name}'")
            return
        if replace_text_in_element(element, replacements, bool(options.get("caseSensitive", False))):
            Log.debug(f"Applied text replacements for '{transformation.name}'")

    def _customer_replacements(self, options: dict[str, Any]) -> list[_Replacement]:
        resolver = self._ctx.customer
        replacements = [
            _Replacement(search, replace, False, "customer identity")
            for search, replace in resolver.search_terms()
        ]
        customer = resolver.customer
        mode = options.get("relatedWordsMode")
        if customer is None or not mode:
            return replacements
        for word in customer.related_words:
            if mode == "scramble":
                scramble_options = ScrambleOptions.from_mapping(options.get("relatedWordsScrambleOptions"))
                replacement = self._ctx.scrambler.scramble(word, scramble_options)
            elif mode == "fixed":
                replacement = options.get("relatedWordsReplacement") or REDACTED
            else:
                # "smart" is reserved; it currently behaves like "fixed"
                replacement = REDACTED
            replacements.append(_Replacement(word, replacement, False, f"related word ({mode})"))
        return replacements

    def _configured_replacements(self, options: dict[str, Any]) -> list[_Replacement]:
        use_regex = bool(options.get("useRegex", False))
        replacements: list[_Replacement] = []
        for search, replace in (options.get("replacements") or {}).items():
            if search.startswith("{") and search.endswith("}"):
                captured = self._ctx.captured.get(search[1:-1])
                if not captured:
                    continue
                search, is_regex = captured, False
            else:
                is_regex = use_regex
            replacements.append(
                _Replacement(search, self.resolve_placeholders(replace), is_regex, "configured")
            )
        return replacements

    def resolve_placeholders(self, value: str) -> str:
        """Expand ``{customerName}``-style, captured-value and generator placeholders.

        Unresolvable placeholders are left as written.
        """

        def _expand(match: re.Match[str]) -> str:
            key = match.group(1)
            if key in _CUSTOMER_PLACEHOLDERS:
                resolved = self._ctx.customer.value(_CUSTOMER_PLACEHOLDERS[key])
                return resolved if resolved is not None else match.group(0)
            if key in self._ctx.captured:
                return self._ctx.captured[key]
            if self._ctx.registry.has(key):
                return self._ctx.registry.invoke(key)
            return match.group(0)

        return _PLACEHOLDER_RE.sub(_expand, value)


def replace_text_in_element(
    element: Tag,
    replacements: list[_Replacement],
    case_sensitive: bool = False,
) -> bool:
    """Apply *replacements* to each text node of *element*. True if anything changed.

    Literal searches are escaped; regex searches use ``re`` template syntax
    (``\\1``, ``\\g<name>``) in the replacement.
    """
    flags = 0 if case_sensitive else re.IGNORECASE
    compiled: list[tuple[re.Pattern[str], Any, _Replacement]] = []
    for item in replacements:
        if not item.search:
            continue
        pattern = re.compile(item.search if item.is_regex else re.escape(item.search), flags)
        if item.is_regex or callable(item.replace):
            compiled.append((pattern, item.replace, item))
        else:
            compiled.append((pattern, lambda _m, value=item.replace: value, item))

    changed = False
    for node in text_nodes(element):
        original = str(node)
        text = original
        for pattern, replace, item in compiled:
            new_text = pattern.sub(replace, text)
            if new_text != text:
                Log.debug(f"Text replacement ({item.description}): '{item.search}'")
                text = new_text
        if text != original:
            node.replace_with(text)
            changed = True
    return changed


class BlurProcessor(BaseProcessor):
    """Blur an image; the slight upscale hides the soft unblurred border."""

    def apply(self, page: Page, element: Tag, transformation: Transformation) -> None:
        if element.name != "img":
            return
        blur_amount = transformation.options.get("blurAmount", "8px")
        set_style(element, filter=f"blur({blur_amount})", transform="scale(1.02)")


class ReplaceImageProcessor(BaseProcessor):
    def apply(self, page: Page, element: Tag, transformation: Transformation) -> None:
        if element.name != "img":
            return
        options = transformation.options
        if not element.has_attr(ORIGINAL_SRC_ATTR) and element.has_attr("src"):
            element[ORIGINAL_SRC_ATTR] = element["src"]
        if options.get("preserveDimensions", True):
            dimensions = {
                prop: f"{element[prop]}px"
                for prop in ("width", "height")
                if str(element.get(prop, "")).isdigit()
            }
            if dimensions:
                set_style(element, **dimensions)
        if element.has_attr("srcset"):
            del element["srcset"]
        element["src"] = self._ctx.assets.url_for(options["replacementImage"])


class MaskLinksProcessor(BaseProcessor):
    """Neutral ``href``; a click still navigates to the stored real URL."""

    def apply(self, page: Page, element: Tag, transformation: Transformation) -> None:
        if not element.has_attr("href"):
            return
        options = transformation.options
        if not element.has_attr(ORIGINAL_HREF_ATTR):
            element[ORIGINAL_HREF_ATTR] = element["href"]
        element["href"] = options.get("maskUrl", "#")
        if options.get("preserveNavigation", True):
            element["onclick"] = (
                "window.location.href=this.getAttribute('"
                f"{ORIGINAL_HREF_ATTR}'); return false;"
            )
        link_text = options.get("linkText")
        if link_text:
            element.string = link_text


class SensitiveTextProcessor(BaseProcessor):
    """Customer substitution followed by scrambling over the whole text."""

    def apply(self, page: Page, element: Tag, transformation: Transformation) -> None:
        if not _has_text(element):
            return
        options = transformation.options
        for tag in options.get("skipElementsContaining") or []:
            if page.select_one(tag, root=element) is not None:
                Log.debug(f"Skipping element containing <{tag}>")
                return

        text = element.get_text()
        resolver = self._ctx.customer
        customer = resolver.customer
        if customer is not None:
            substitutions = [
                (customer.name, resolver.value("name")),
                (customer.domain, resolver.value("domain")),
                (customer.id, resolver.value("name")),
            ]
            for search, replacement in substitutions:
                if search and replacement:
                    text = re.sub(re.escape(search), lambda _m, value=replacement: value, text, flags=re.IGNORECASE)

        if options.get("scrambleAfterReplace", True):
            scramble_options = ScrambleOptions(
                preserve_case=bool(options.get("preserveCase", True)),
                preserve_punctuation=bool(options.get("preservePunctuation", True)),
                preserve_spaces=bool(options.get("preserveSpaces", True)),
                preserve_length=bool(options.get("preserveLength", True)),
            )
            text = self._ctx.scrambler.scramble(text, scramble_options)
        element.string = text


class InjectCssProcessor(BaseProcessor):
    """Document-scoped: ``element`` is the document root."""

    def apply(self, page: Page, element: Tag, transformation: Transformation) -> None:
        options = transformation.options
        rules = [
            CssRule(selector=rule["selector"], properties=dict(rule.get("properties", {})))
            for rule in options.get("cssRules") or []
        ]
        if rules:
            self._ctx.styles.inject_rules(page, rules, f"{STYLE_PREFIX}-{transformation.name}")
        files = options.get("cssFiles") or []
        if files:
            self._ctx.styles.inject_files(page, files, transformation.name)
