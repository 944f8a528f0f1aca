"""Validates raw page-configuration JSON and builds a RedactorConfig.

Unknown replacement-function names are rejected here rather than at call
time, so a typo in ``functionName`` fails loudly on load. An unknown
transformation ``type`` only drops that one transformation.
"""

from typing import Any, Collection

from app.config.exceptions import ConfigValidationError
from app.config.models import (
    CssRule,
    CustomerDetails,
    CustomerFallbacks,
    CustomerGroup,
    GlobalCss,
    RedactorConfig,
    RuntimeSettings,
    Transformation,
    TransformationType,
    UrlPattern,
    ValueCaptureConfig,
)
from app.logging.logger import Log
from app.replacement.registry import ReplacementRegistry

_VALID_TYPES = {t.value: t for t in TransformationType}
_RELATED_WORDS_MODES = frozenset({"fixed", "scramble", "smart"})


def validate_and_build(
    data: Any,
    function_names: Collection[str] | None = None,
) -> RedactorConfig:
    """Validate raw parsed JSON and build a RedactorConfig.

    Raises:
        ConfigValidationError: on any validation failure.
    """
    if not isinstance(data, dict):
        raise ConfigValidationError("Configuration must be a JSON object")
    known = set(function_names) if function_names is not None else set(
        ReplacementRegistry.builtin_names()
    )
    return RedactorConfig(
        transformations=_build_transformations(data.get("transformations", []), known),
        url_patterns=_build_url_patterns(data.get("urlPatterns", {})),
        customer_mapping=_build_customer_mapping(data.get("customerMapping", {})),
        settings=_build_settings(data.get("settings", {})),
        global_css=_build_global_css(data.get("globalCSS")),
        value_capture=_build_value_capture(data.get("valueCapture")),
        replacement_pools=_build_replacement_pools(data.get("replacementPools", {}), known),
        customer_fallbacks=_build_customer_fallbacks(
            data.get("staticReplacements"), data.get("customerSpecific")
        ),
    )


# ----------------------------------------------------------------------
# Transformations
# ----------------------------------------------------------------------


def _build_transformations(raw: Any, known: set[str]) -> tuple[Transformation, ...]:
    if not isinstance(raw, list):
        raise ConfigValidationError("'transformations' must be a list")
    seen: set[str] = set()
    result: list[Transformation] = []
    for index, item in enumerate(raw):
        transformation = _build_transformation(item, index, known)
        if transformation is None:
            continue
        if transformation.name in seen:
            raise ConfigValidationError(
                f"Duplicate transformation name: {transformation.name}"
            )
        seen.add(transformation.name)
        result.append(transformation)
    return tuple(result)


def _build_transformation(raw: Any, index: int, known: set[str]) -> Transformation | None:
    """Build one transformation; None for an unknown type, which is logged and dropped."""
    if not isinstance(raw, dict):
        raise ConfigValidationError(f"Transformation at index {index} must be an object")
    name = raw.get("name")
    if not name or not isinstance(name, str):
        raise ConfigValidationError(
            f"Transformation at index {index}: 'name' must be a non-empty string"
        )
    type_name = raw.get("type")
    ttype = _VALID_TYPES.get(type_name) if isinstance(type_name, str) else None
    if ttype is None:
        Log.error(
            f"Unknown transformation type {type_name!r} in transformation '{name}', "
            f"skipping it. Valid types: {sorted(_VALID_TYPES)}"
        )
        return None
    options = raw.get("options", {})
    if not isinstance(options, dict):
        raise ConfigValidationError(f"Transformation '{name}': 'options' must be an object")

    selectors: tuple[str, ...] = ()
    if ttype is not TransformationType.INJECT_CSS:
        selectors = _string_tuple(raw.get("selectors"), f"Transformation '{name}': 'selectors'")
        if not selectors:
            raise ConfigValidationError(
                f"Transformation '{name}': 'selectors' must be a non-empty list"
            )

    _validate_options(name, ttype, options, known)
    return Transformation(name=name, type=ttype, selectors=selectors, options=dict(options))


def _validate_options(
    name: str,
    ttype: TransformationType,
    options: dict[str, Any],
    known: set[str],
) -> None:
    where = f"Transformation '{name}'"
    if ttype is TransformationType.FUNCTION_REPLACE:
        function_name = options.get("functionName")
        if not function_name or not isinstance(function_name, str):
            raise ConfigValidationError(f"{where}: 'functionName' must be a non-empty string")
        if function_name not in known:
            raise ConfigValidationError(
                f"{where}: unknown replacement function '{function_name}'. "
                f"Choose from: {sorted(known)}"
            )
        if not isinstance(options.get("functionArgs", {}), dict):
            raise ConfigValidationError(f"{where}: 'functionArgs' must be an object")
    elif ttype is TransformationType.STATIC_REPLACE:
        _string_tuple(options.get("replacements", []), f"{where}: 'replacements'")
    elif ttype is TransformationType.PARTIAL_REPLACE:
        _string_dict(options.get("replacements", {}), f"{where}: 'replacements'")
        mode = options.get("relatedWordsMode")
        if mode is not None and mode not in _RELATED_WORDS_MODES:
            raise ConfigValidationError(
                f"{where}: 'relatedWordsMode' must be one of {sorted(_RELATED_WORDS_MODES)}"
            )
    elif ttype is TransformationType.SENSITIVE_TEXT:
        _string_tuple(options.get("skipElementsContaining", []), f"{where}: 'skipElementsContaining'")
    elif ttype is TransformationType.REPLACE_IMAGE:
        image = options.get("replacementImage")
        if not image or not isinstance(image, str):
            raise ConfigValidationError(f"{where}: 'replacementImage' must be a non-empty string")
    elif ttype is TransformationType.INJECT_CSS:
        _build_css_rules(options.get("cssRules", []), f"{where}: 'cssRules'")
        _string_tuple(options.get("cssFiles", []), f"{where}: 'cssFiles'")


# ----------------------------------------------------------------------
# Customer detection
# ----------------------------------------------------------------------


def _build_url_patterns(raw: Any) -> tuple[UrlPattern, ...]:
    if not isinstance(raw, dict):
        raise ConfigValidationError("'urlPatterns' must be an object")
    patterns: list[UrlPattern] = []
    for name, item in raw.items():
        if not isinstance(item, dict):
            raise ConfigValidationError(f"URL pattern '{name}' must be an object")
        pattern = item.get("pattern")
        if not pattern or not isinstance(pattern, str):
            raise ConfigValidationError(f"URL pattern '{name}': 'pattern' must be a non-empty string")
        group = item.get("customerIdGroup", 1)
        if isinstance(group, bool) or not isinstance(group, int) or group < 0:
            raise ConfigValidationError(
                f"URL pattern '{name}': 'customerIdGroup' must be a non-negative integer"
            )
        patterns.append(UrlPattern(name=name, pattern=pattern, customer_id_group=group))
    return tuple(patterns)


def _build_customer_mapping(raw: Any) -> dict[str, CustomerGroup]:
    if not isinstance(raw, dict):
        raise ConfigValidationError("'customerMapping' must be an object")
    mapping: dict[str, CustomerGroup] = {}
    for group_id, group in raw.items():
        if not isinstance(group, dict):
            raise ConfigValidationError(f"Customer group '{group_id}' must be an object")
        customers_raw = group.get("customers", {})
        if not isinstance(customers_raw, dict):
            raise ConfigValidationError(f"Customer group '{group_id}': 'customers' must be an object")
        customers: dict[str, CustomerDetails] = {}
        for customer_id, details in customers_raw.items():
            where = f"Customer '{customer_id}' in group '{group_id}'"
            if not isinstance(details, dict):
                raise ConfigValidationError(f"{where} must be an object")
            customers[str(customer_id)] = CustomerDetails(
                customer_name=_optional_str(details.get("customerName"), f"{where}: 'customerName'"),
                customer_domain=_optional_str(details.get("customerDomain"), f"{where}: 'customerDomain'"),
                related_words=_string_tuple(details.get("relatedWords", []), f"{where}: 'relatedWords'"),
            )
        mapping[str(group_id)] = CustomerGroup(
            name=str(group.get("name") or f"Group {group_id}"),
            customers=customers,
        )
    return mapping


def _build_customer_fallbacks(static: Any, specific: Any) -> CustomerFallbacks:
    static = static or {}
    specific = specific or {}
    if not isinstance(static, dict) or not isinstance(specific, dict):
        raise ConfigValidationError("'staticReplacements' and 'customerSpecific' must be objects")
    return CustomerFallbacks(
        fallback_names=_string_tuple(
            static.get("fallbackCustomerNames", []), "'staticReplacements.fallbackCustomerNames'"
        ),
        fallback_domains=_string_tuple(
            static.get("fallbackCustomerDomains", []), "'staticReplacements.fallbackCustomerDomains'"
        ),
        name_replacement=_optional_str(
            specific.get("customerNameReplacement"), "'customerSpecific.customerNameReplacement'"
        ),
        domain_replacement=_optional_str(
            specific.get("customerDomainReplacement"), "'customerSpecific.customerDomainReplacement'"
        ),
    )


# ----------------------------------------------------------------------
# Settings, CSS, capture, pools
# ----------------------------------------------------------------------


def _build_settings(raw: Any) -> RuntimeSettings:
    if not isinstance(raw, dict):
        raise ConfigValidationError("'settings' must be an object")
    interval = raw.get("processInterval", 100)
    if isinstance(interval, bool) or not isinstance(interval, int) or interval <= 0:
        raise ConfigValidationError("'settings.processInterval' must be a positive integer")
    max_retries = raw.get("maxRetries", 10)
    if isinstance(max_retries, bool) or not isinstance(max_retries, int) or max_retries < 0:
        raise ConfigValidationError("'settings.maxRetries' must be a non-negative integer")
    return RuntimeSettings(
        process_interval_ms=interval,
        max_retries=max_retries,
        debug=bool(raw.get("debug", False)),
        show_demo_indicator=bool(raw.get("showDemoIndicator", False)),
    )


def _build_global_css(raw: Any) -> GlobalCss:
    if raw is None:
        return GlobalCss()
    if not isinstance(raw, dict):
        raise ConfigValidationError("'globalCSS' must be an object")
    return GlobalCss(
        enabled=bool(raw.get("enabled", False)),
        rules=_build_css_rules(raw.get("rules", []), "'globalCSS.rules'"),
        files=_string_tuple(raw.get("files", []), "'globalCSS.files'"),
    )


def _build_css_rules(raw: Any, where: str) -> tuple[CssRule, ...]:
    if not isinstance(raw, list):
        raise ConfigValidationError(f"{where} must be a list")
    rules: list[CssRule] = []
    for index, item in enumerate(raw):
        if not isinstance(item, dict):
            raise ConfigValidationError(f"{where}[{index}] must be an object")
        selector = item.get("selector")
        if not selector or not isinstance(selector, str):
            raise ConfigValidationError(f"{where}[{index}]: 'selector' must be a non-empty string")
        properties = _string_dict(item.get("properties", {}), f"{where}[{index}]: 'properties'")
        rules.append(CssRule(selector=selector, properties=properties))
    return tuple(rules)


def _build_value_capture(raw: Any) -> ValueCaptureConfig:
    if raw is None:
        return ValueCaptureConfig()
    if not isinstance(raw, dict):
        raise ConfigValidationError("'valueCapture' must be an object")
    return ValueCaptureConfig(
        selectors=_string_dict(raw.get("selectors", {}), "'valueCapture.selectors'"),
        xpath=_string_dict(raw.get("xpath", {}), "'valueCapture.xpath'"),
        url_regex=_string_dict(raw.get("urlRegex", {}), "'valueCapture.urlRegex'"),
    )


def _build_replacement_pools(raw: Any, known: set[str]) -> dict[str, dict[str, Any]]:
    if not isinstance(raw, dict):
        raise ConfigValidationError("'replacementPools' must be an object")
    pools: dict[str, dict[str, Any]] = {}
    for name, pool in raw.items():
        if name not in known:
            raise ConfigValidationError(f"'replacementPools': unknown replacement function '{name}'")
        if not isinstance(pool, dict):
            raise ConfigValidationError(f"'replacementPools.{name}' must be an object")
        pools[name] = dict(pool)
    return pools


# ----------------------------------------------------------------------
# Primitive helpers
# ----------------------------------------------------------------------


def _string_tuple(raw: Any, where: str) -> tuple[str, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, list) or not all(isinstance(item, str) and item for item in raw):
        raise ConfigValidationError(f"{where} must be a list of non-empty strings")
    return tuple(raw)


def _string_dict(raw: Any, where: str) -> dict[str, str]:
    if not isinstance(raw, dict) or not all(
        isinstance(key, str) and isinstance(value, str) for key, value in raw.items()
    ):
        raise ConfigValidationError(f"{where} must be an object of strings")
    return dict(raw)


def _optional_str(raw: Any, where: str) -> str | None:
    if raw is None:
        return None
    if not isinstance(raw, str):
        raise ConfigValidationError(f"{where} must be a string or null")
    return raw
