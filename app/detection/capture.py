"""Captured values: URL components plus configured DOM lookups.

Keys produced from the URL: hostname, domain, protocol, port, fullUrl,
subdirectory/firstPath, lastPath, fullPath and ``param_<name>`` per query
parameter. ``valueCapture`` adds keys from CSS selectors, XPath
expressions and URL regexes (group 1).
"""

import re
from typing import Any
from urllib.parse import parse_qsl, urlsplit

from lxml import etree
from lxml import html as lxml_html

from app.config.models import ValueCaptureConfig
from app.dom.exceptions import SelectorError
from app.dom.page import Page
from app.logging.logger import Log


class ValueCapture:
    """Builds the read-only CapturedValues mapping for one page."""

    def __init__(self, config: ValueCaptureConfig | None = None) -> None:
        self._config = config or ValueCaptureConfig()

    def capture(self, page: Page) -> dict[str, str]:
        values = self.capture_url(page.url)
        values.update(self._capture_selectors(page))
        values.update(self._capture_xpath(page))
        values.update(self._capture_url_regex(page.url))
        Log.debug(f"Captured values: {sorted(values)}")
        return values

    @staticmethod
    def capture_url(url: str) -> dict[str, str]:
        if not url:
            return {}
        parts = urlsplit(url)
        hostname = parts.hostname or ""
        values = {
            "hostname": hostname,
            "domain": hostname[4:] if hostname.startswith("www.") else hostname,
            "protocol": parts.scheme,
            "port": str(parts.port) if parts.port else "",
            "fullUrl": url,
        }
        path_parts = [part for part in parts.path.split("/") if part]
        if path_parts:
            values["subdirectory"] = path_parts[0]
            values["firstPath"] = path_parts[0]
            values["lastPath"] = path_parts[-1]
            values["fullPath"] = parts.path
        for key, value in parse_qsl(parts.query, keep_blank_values=True):
            values[f"param_{key}"] = value
        return values

    def _capture_selectors(self, page: Page) -> dict[str, str]:
        values: dict[str, str] = {}
        for key, selector in self._config.selectors.items():
            try:
                element = page.select_one(selector)
            except SelectorError as exc:
                Log.warning(f"Error evaluating capture selector for '{key}': {exc}")
                continue
            if element is not None:
                text = element.get_text().strip()
                if text:
                    values[key] = text
        return values

    def _capture_xpath(self, page: Page) -> dict[str, str]:
        if not self._config.xpath:
            return {}
        try:
            document = lxml_html.fromstring(page.to_html())
        except (etree.ParserError, ValueError) as exc:
            Log.warning(f"Cannot build XPath document: {exc}")
            return {}
        values: dict[str, str] = {}
        for key, expression in self._config.xpath.items():
            try:
                result = document.xpath(expression)
            except etree.XPathError as exc:
                Log.warning(f"Error evaluating XPath '{expression}': {exc}")
                continue
            text = _xpath_string(result)
            if text:
                values[key] = text
        return values

    def _capture_url_regex(self, url: str) -> dict[str, str]:
        values: dict[str, str] = {}
        for key, pattern in self._config.url_regex.items():
            try:
                match = re.search(pattern, url)
            except re.error as exc:
                Log.warning(f"Error evaluating URL regex '{pattern}': {exc}")
                continue
            if match and match.groups() and match.group(1):
                values[key] = match.group(1).strip()
        return values


def _xpath_string(result: Any) -> str:
    if isinstance(result, list):
        if not result:
            return ""
        result = result[0]
    if hasattr(result, "text_content"):
        return result.text_content().strip()
    if isinstance(result, str):
        return result.strip()
    return ""
