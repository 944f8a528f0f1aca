import random
import re
from dataclasses import dataclass

from app.config.models import CustomerFallbacks, CustomerGroup, UrlPattern
from app.logging.logger import Log

DEFAULT_CUSTOMER_NAME = "Customer X"
DEFAULT_CUSTOMER_DOMAIN = "customerx.com"


@dataclass(frozen=True)
class CustomerRecord:
    """Customer identity resolved from the page URL. Immutable once detected."""

    id: str
    name: str | None = None
    domain: str | None = None
    related_words: tuple[str, ...] = ()
    group: str = ""
    group_name: str = ""
    pattern: str = ""

    @property
    def is_known(self) -> bool:
        return self.name is not None or self.domain is not None


class CustomerDetector:
    """Resolves a customer from the URL using ordered regex patterns."""

    def detect(
        self,
        url: str,
        url_patterns: tuple[UrlPattern, ...] | list[UrlPattern],
        customer_mapping: dict[str, CustomerGroup],
    ) -> CustomerRecord | None:
        """Return the customer for the first matching pattern, or None.

        An id found in the URL but missing from the mapping still counts as
        detected: the record is partial (no name/domain).
        """
        Log.debug(f"Customer detection for {url} with {len(url_patterns)} patterns")
        for url_pattern in url_patterns:
            customer_id = self._match(url, url_pattern)
            if not customer_id:
                Log.debug(f"Pattern '{url_pattern.name}' did not match")
                continue

            group = str(url_pattern.customer_id_group)
            group_mapping = customer_mapping.get(group)
            details = group_mapping.customers.get(customer_id) if group_mapping else None
            if group_mapping is not None and details is not None:
                customer = CustomerRecord(
                    id=customer_id,
                    name=details.customer_name,
                    domain=details.customer_domain,
                    related_words=details.related_words,
                    group=group,
                    group_name=group_mapping.name,
                    pattern=url_pattern.name,
                )
                Log.info(f"Known customer detected via '{url_pattern.name}': {customer_id}")
                return customer

            Log.info(
                f"Customer id '{customer_id}' detected via '{url_pattern.name}' "
                f"but not found in group '{group}'"
            )
            return CustomerRecord(
                id=customer_id,
                group=group,
                group_name=group_mapping.name if group_mapping else f"Group {group}",
                pattern=url_pattern.name,
            )

        Log.info("No customer detected from URL, fallback values will be used")
        return None

    @staticmethod
    def _match(url: str, url_pattern: UrlPattern) -> str | None:
        try:
            match = re.search(url_pattern.pattern, url)
        except re.error as exc:
            Log.error(f"Error processing URL pattern '{url_pattern.name}': {exc}")
            return None
        if match is None:
            return None
        try:
            return match.group(url_pattern.customer_id_group) or None
        except IndexError:
            Log.error(
                f"URL pattern '{url_pattern.name}' has no group "
                f"{url_pattern.customer_id_group}"
            )
            return None


class CustomerValueResolver:
    """Anonymized stand-in values for the detected customer.

    The same stand-in is returned for the lifetime of the resolver so that
    every occurrence on a page reads consistently.
    """

    def __init__(
        self,
        customer: CustomerRecord | None,
        fallbacks: CustomerFallbacks,
        rng: random.Random | None = None,
    ) -> None:
        self.customer = customer
        self._fallbacks = fallbacks
        self._rng = rng or random.Random()
        self._cache: dict[str, str] = {}

    def value(self, kind: str) -> str | None:
        """Stand-in for ``name``, ``domain`` or ``id``; None for unknown kinds."""
        if kind == "name":
            return self._cached("name", self._fallbacks.name_replacement,
                                self._fallbacks.fallback_names, DEFAULT_CUSTOMER_NAME)
        if kind == "domain":
            return self._cached("domain", self._fallbacks.domain_replacement,
                                self._fallbacks.fallback_domains, DEFAULT_CUSTOMER_DOMAIN)
        if kind == "id":
            return self.customer.id if self.customer else None
        return None

    def search_terms(self) -> list[tuple[str, str]]:
        """(search, replacement) pairs for the detected customer's identity.

        The id maps to the domain stand-in unless it equals the domain.
        """
        if self.customer is None:
            return []
        terms: list[tuple[str, str]] = []
        if self.customer.name:
            terms.append((self.customer.name, self.value("name") or DEFAULT_CUSTOMER_NAME))
        if self.customer.domain:
            terms.append((self.customer.domain, self.value("domain") or DEFAULT_CUSTOMER_DOMAIN))
        if self.customer.id and self.customer.id != self.customer.domain:
            terms.append((self.customer.id, self.value("domain") or DEFAULT_CUSTOMER_DOMAIN))
        return terms

    def _cached(
        self,
        key: str,
        configured: str | None,
        pool: tuple[str, ...],
        default: str,
    ) -> str:
        if key not in self._cache:
            if configured:
                self._cache[key] = configured
            elif pool:
                self._cache[key] = self._rng.choice(pool)
            else:
                self._cache[key] = default
        return self._cache[key]
