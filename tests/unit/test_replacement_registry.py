import random
import re
from unittest.mock import patch

from app.replacement.generators import RandomEmailGenerator
from app.replacement.registry import FUNCTION_ERROR, UNKNOWN_FUNCTION, ReplacementRegistry


def _registry(pools: dict[str, dict[str, object]] | None = None) -> ReplacementRegistry:
    return ReplacementRegistry(pools, rng=random.Random(11))


class TestBuiltins:
    def test_builtin_names(self) -> None:
        assert ReplacementRegistry.builtin_names() == {
            "generateRandomAuthorName",
            "generateRandomCompany",
            "generateRandomEmail",
            "generateRandomPhoneNumber",
            "generateLoremText",
        }

    def test_author_name_from_pools(self) -> None:
        result = _registry().invoke(
            "generateRandomAuthorName",
            {"firstNames": ["Ada"], "lastNames": ["Lovelace"]},
        )
        assert result == "Ada Lovelace"

    def test_author_name_without_pools(self) -> None:
        assert _registry().invoke("generateRandomAuthorName") == "Anonymous Author"

    def test_company_has_three_parts(self) -> None:
        result = _registry().invoke("generateRandomCompany")
        assert len(result.split(" ")) == 3

    def test_email_shape(self) -> None:
        result = _registry().invoke("generateRandomEmail", {"domains": ["demo.test"]})
        assert result.endswith("@demo.test")

    def test_phone_number_fills_mask(self) -> None:
        result = _registry().invoke("generateRandomPhoneNumber", {"format": "+1 ###-##"})
        assert re.fullmatch(r"\+1 \d{3}-\d{2}", result)

    def test_default_phone_mask(self) -> None:
        result = _registry().invoke("generateRandomPhoneNumber")
        assert re.fullmatch(r"\(\d{3}\) \d{3}-\d{4}", result)

    def test_lorem_sentences(self) -> None:
        result = _registry().invoke("generateLoremText", {"words": 3, "sentences": 2})
        sentences = result.split(". ")
        assert len(sentences) == 2
        assert result.endswith(".")
        assert all(sentence[0].isupper() for sentence in sentences)


class TestPools:
    def test_configured_pool_is_used(self) -> None:
        registry = _registry({"generateRandomEmail": {"usernames": ["sales"]}})
        assert registry.invoke("generateRandomEmail").startswith("sales@")

    def test_call_args_override_pool(self) -> None:
        registry = _registry({"generateRandomEmail": {"usernames": ["sales"]}})
        result = registry.invoke("generateRandomEmail", {"usernames": ["ops"]})
        assert result.startswith("ops@")


class TestErrors:
    def test_unknown_name_returns_sentinel(self) -> None:
        assert _registry().invoke("generateNothing") == UNKNOWN_FUNCTION

    def test_generator_failure_returns_sentinel(self) -> None:
        with patch.object(RandomEmailGenerator, "generate", side_effect=RuntimeError("boom")):
            assert _registry().invoke("generateRandomEmail") == FUNCTION_ERROR

    def test_has(self) -> None:
        registry = _registry()
        assert registry.has("generateLoremText")
        assert not registry.has("generateNothing")
