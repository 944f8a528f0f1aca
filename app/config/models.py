from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class TransformationType(str, Enum):
    SCRAMBLE = "scramble"
    STATIC_REPLACE = "staticReplace"
    FUNCTION_REPLACE = "functionReplace"
    PARTIAL_REPLACE = "partialReplace"
    CUSTOMER_REPLACE = "customerReplace"
    BLUR = "blur"
    REPLACE_IMAGE = "replaceImage"
    MASK_LINKS = "maskLinks"
    SENSITIVE_TEXT = "sensitiveText"
    INJECT_CSS = "injectCSS"


@dataclass(frozen=True)
class Transformation:
    """A named, typed, selector-scoped rule."""

    name: str
    type: TransformationType
    selectors: tuple[str, ...] = ()
    options: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class UrlPattern:
    """Regex used for customer detection; ``customer_id_group`` is the capture index."""

    name: str
    pattern: str
    customer_id_group: int = 1


@dataclass(frozen=True)
class CustomerDetails:
    customer_name: str | None = None
    customer_domain: str | None = None
    related_words: tuple[str, ...] = ()


@dataclass(frozen=True)
class CustomerGroup:
    name: str
    customers: dict[str, CustomerDetails] = field(default_factory=dict)


@dataclass(frozen=True)
class RuntimeSettings:
    """The ``settings`` block of the page configuration."""

    process_interval_ms: int = 100
    max_retries: int = 10
    debug: bool = False
    show_demo_indicator: bool = False


@dataclass(frozen=True)
class CssRule:
    selector: str
    properties: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class GlobalCss:
    enabled: bool = False
    rules: tuple[CssRule, ...] = ()
    files: tuple[str, ...] = ()


@dataclass(frozen=True)
class ValueCaptureConfig:
    """Extra captured values: capture key -> CSS selector / XPath / URL regex."""

    selectors: dict[str, str] = field(default_factory=dict)
    xpath: dict[str, str] = field(default_factory=dict)
    url_regex: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class CustomerFallbacks:
    """Values used when a customer is missing or only partially known."""

    fallback_names: tuple[str, ...] = ()
    fallback_domains: tuple[str, ...] = ()
    name_replacement: str | None = None
    domain_replacement: str | None = None


@dataclass(frozen=True)
class RedactorConfig:
    """Validated page configuration. Created once, never mutated."""

    transformations: tuple[Transformation, ...] = ()
    url_patterns: tuple[UrlPattern, ...] = ()
    customer_mapping: dict[str, CustomerGroup] = field(default_factory=dict)
    settings: RuntimeSettings = field(default_factory=RuntimeSettings)
    global_css: GlobalCss = field(default_factory=GlobalCss)
    value_capture: ValueCaptureConfig = field(default_factory=ValueCaptureConfig)
    replacement_pools: dict[str, dict[str, Any]] = field(default_factory=dict)
    customer_fallbacks: CustomerFallbacks = field(default_factory=CustomerFallbacks)

    @classmethod
    def minimal(cls) -> "RedactorConfig":
        """Empty configuration used when loading gives up."""
        return cls()
