import random

from app.config.models import CustomerDetails, CustomerFallbacks, CustomerGroup, UrlPattern
from app.detection.customer import (
    CustomerDetector,
    CustomerRecord,
    CustomerValueResolver,
)

URL = "https://app.example.com/customer/42/dashboard"


def _mapping() -> dict[str, CustomerGroup]:
    return {
        "1": CustomerGroup(
            name="Enterprise",
            customers={
                "42": CustomerDetails(
                    customer_name="Acme Corp",
                    customer_domain="acme.com",
                    related_words=("Roadrunner",),
                )
            },
        )
    }


class TestDetect:
    def test_partial_record_without_mapping(self) -> None:
        patterns = [UrlPattern(name="path", pattern=r"/customer/(\d+)/", customer_id_group=1)]
        customer = CustomerDetector().detect(URL, patterns, {})
        assert customer is not None
        assert customer.id == "42"
        assert customer.name is None
        assert customer.domain is None
        assert customer.group == "1"
        assert customer.group_name == "Group 1"
        assert not customer.is_known

    def test_full_record_from_mapping(self) -> None:
        patterns = [UrlPattern(name="path", pattern=r"/customer/(\d+)/", customer_id_group=1)]
        customer = CustomerDetector().detect(URL, patterns, _mapping())
        assert customer == CustomerRecord(
            id="42",
            name="Acme Corp",
            domain="acme.com",
            related_words=("Roadrunner",),
            group="1",
            group_name="Enterprise",
            pattern="path",
        )

    def test_first_matching_pattern_wins(self) -> None:
        patterns = [
            UrlPattern(name="host", pattern=r"https://(\w+)\.example", customer_id_group=1),
            UrlPattern(name="path", pattern=r"/customer/(\d+)/", customer_id_group=1),
        ]
        customer = CustomerDetector().detect(URL, patterns, _mapping())
        assert customer is not None
        assert customer.id == "app"
        assert customer.pattern == "host"

    def test_empty_group_falls_through(self) -> None:
        patterns = [
            UrlPattern(name="empty", pattern=r"/customer/(x*)42", customer_id_group=1),
            UrlPattern(name="path", pattern=r"/customer/(\d+)/", customer_id_group=1),
        ]
        customer = CustomerDetector().detect(URL, patterns, {})
        assert customer is not None
        assert customer.pattern == "path"

    def test_group_index_names_the_namespace(self) -> None:
        patterns = [
            UrlPattern(name="two", pattern=r"/(customer)/(\d+)/", customer_id_group=2),
        ]
        customer = CustomerDetector().detect(URL, patterns, _mapping())
        assert customer is not None
        assert customer.group == "2"
        assert customer.name is None

    def test_no_match_returns_none(self) -> None:
        patterns = [UrlPattern(name="path", pattern=r"/account/(\d+)/", customer_id_group=1)]
        assert CustomerDetector().detect(URL, patterns, _mapping()) is None

    def test_invalid_pattern_is_skipped(self) -> None:
        patterns = [
            UrlPattern(name="broken", pattern=r"/customer/(\d+", customer_id_group=1),
            UrlPattern(name="path", pattern=r"/customer/(\d+)/", customer_id_group=1),
        ]
        customer = CustomerDetector().detect(URL, patterns, {})
        assert customer is not None
        assert customer.pattern == "path"

    def test_missing_group_index_is_no_match(self) -> None:
        patterns = [UrlPattern(name="path", pattern=r"/customer/\d+/", customer_id_group=3)]
        assert CustomerDetector().detect(URL, patterns, {}) is None


class TestCustomerValueResolver:
    def _customer(self) -> CustomerRecord:
        return CustomerRecord(id="42", name="Acme Corp", domain="acme.com")

    def test_configured_replacements(self) -> None:
        resolver = CustomerValueResolver(
            self._customer(),
            CustomerFallbacks(name_replacement="Globex", domain_replacement="globex.test"),
        )
        assert resolver.value("name") == "Globex"
        assert resolver.value("domain") == "globex.test"
        assert resolver.value("id") == "42"
        assert resolver.value("other") is None

    def test_fallback_pool_pick_is_stable(self) -> None:
        resolver = CustomerValueResolver(
            None,
            CustomerFallbacks(fallback_names=("Initech", "Umbrella", "Hooli")),
            rng=random.Random(2),
        )
        first = resolver.value("name")
        assert first in ("Initech", "Umbrella", "Hooli")
        assert all(resolver.value("name") == first for _ in range(5))

    def test_defaults(self) -> None:
        resolver = CustomerValueResolver(None, CustomerFallbacks())
        assert resolver.value("name") == "Customer X"
        assert resolver.value("domain") == "customerx.com"
        assert resolver.value("id") is None

    def test_search_terms(self) -> None:
        resolver = CustomerValueResolver(
            self._customer(),
            CustomerFallbacks(name_replacement="Globex", domain_replacement="globex.test"),
        )
        assert resolver.search_terms() == [
            ("Acme Corp", "Globex"),
            ("acme.com", "globex.test"),
            ("42", "globex.test"),
        ]

    def test_search_terms_skip_id_equal_to_domain(self) -> None:
        customer = CustomerRecord(id="acme.com", domain="acme.com")
        resolver = CustomerValueResolver(customer, CustomerFallbacks())
        assert [search for search, _ in resolver.search_terms()] == ["acme.com"]

    def test_no_customer_no_search_terms(self) -> None:
        assert CustomerValueResolver(None, CustomerFallbacks()).search_terms() == []
