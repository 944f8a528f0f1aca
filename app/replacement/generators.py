"""Built-in generators. Pools are data: every default below can be
overridden per call or through ``replacementPools`` in the page config."""

import random
from typing import Any, Mapping

from app.replacement.base import BaseGenerator

DEFAULT_COMPANY_PREFIXES = ["Global", "Dynamic", "Prime", "Elite", "Advanced"]
DEFAULT_COMPANY_TYPES = ["Media", "Tech", "Digital", "Systems", "Networks"]
DEFAULT_COMPANY_SUFFIXES = ["Corp", "Inc", "LLC", "Solutions", "Industries"]

DEFAULT_EMAIL_USERNAMES = ["contact", "info", "hello", "support", "team", "admin"]
DEFAULT_EMAIL_DOMAINS = ["example.com", "demo-site.com", "sample.org", "test.net"]

DEFAULT_PHONE_FORMAT = "(###) ###-####"

DEFAULT_LOREM_WORDS = [
    "lorem", "ipsum", "dolor", "sit", "amet", "consectetur", "adipiscing", "elit",
    "sed", "do", "eiusmod", "tempor", "incididunt", "ut", "labore", "et", "dolore",
    "magna", "aliqua", "enim", "ad", "minim", "veniam", "quis", "nostrud",
]


class RandomAuthorNameGenerator(BaseGenerator):
    name = "generateRandomAuthorName"

    def generate(self, args: Mapping[str, Any], rng: random.Random) -> str:
        first_names = list(args.get("firstNames") or [])
        last_names = list(args.get("lastNames") or [])
        if not first_names or not last_names:
            return "Anonymous Author"
        return f"{rng.choice(first_names)} {rng.choice(last_names)}"


class RandomCompanyGenerator(BaseGenerator):
    name = "generateRandomCompany"

    def generate(self, args: Mapping[str, Any], rng: random.Random) -> str:
        prefix = rng.choice(list(args.get("prefixes") or DEFAULT_COMPANY_PREFIXES))
        kind = rng.choice(list(args.get("types") or DEFAULT_COMPANY_TYPES))
        suffix = rng.choice(list(args.get("suffixes") or DEFAULT_COMPANY_SUFFIXES))
        return f"{prefix} {kind} {suffix}"


class RandomEmailGenerator(BaseGenerator):
    name = "generateRandomEmail"

    def generate(self, args: Mapping[str, Any], rng: random.Random) -> str:
        username = rng.choice(list(args.get("usernames") or DEFAULT_EMAIL_USERNAMES))
        domain = rng.choice(list(args.get("domains") or DEFAULT_EMAIL_DOMAINS))
        return f"{username}@{domain}"


class RandomPhoneNumberGenerator(BaseGenerator):
    """Fill every ``#`` of the mask with a random digit."""

    name = "generateRandomPhoneNumber"

    def generate(self, args: Mapping[str, Any], rng: random.Random) -> str:
        mask = str(args.get("format") or DEFAULT_PHONE_FORMAT)
        return "".join(str(rng.randint(0, 9)) if ch == "#" else ch for ch in mask)


class LoremTextGenerator(BaseGenerator):
    name = "generateLoremText"

    def generate(self, args: Mapping[str, Any], rng: random.Random) -> str:
        word_count = int(args.get("words", 10))
        sentence_count = int(args.get("sentences", 1))
        word_list = list(args.get("wordList") or DEFAULT_LOREM_WORDS)

        sentences: list[str] = []
        for _ in range(sentence_count):
            words = [rng.choice(word_list) for _ in range(word_count)]
            if words:
                words[0] = words[0][:1].upper() + words[0][1:]
            sentences.append(" ".join(words) + ".")
        return " ".join(sentences)


BUILTIN_GENERATORS: tuple[type[BaseGenerator], ...] = (
    RandomAuthorNameGenerator,
    RandomCompanyGenerator,
    RandomEmailGenerator,
    RandomPhoneNumberGenerator,
    LoremTextGenerator,
)
