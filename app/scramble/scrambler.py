"""Character- and word-level text scrambling.

Two modes:
1. Character mode (default): every letter/digit is replaced in place,
   spaces and punctuation optionally kept.
2. Word mode (``preserve_ends``): each word keeps its first and last
   character, the interior is replaced; words of two characters or less
   are never touched. Word order may be shuffled (``preserve_position``).

Both modes finish with length adjustment (``preserve_length=False``) and
max-word-length chunking so a scrambled value can never turn into one
unbroken token wider than the original layout allowed.
"""

from __future__ import annotations

import random
import re
import string
import unicodedata
from dataclasses import dataclass
from typing import Any, ClassVar, Mapping

from app.logging.logger import Log

_VOWELS = "aeiou"
_CONSONANTS = "bcdfghjklmnpqrstvwxyz"
_WHITESPACE_RUN_RE = re.compile(r"\s+")


def _is_letter(ch: str) -> bool:
    """Any alphabetic character; accented letters are replaced with ASCII ones."""
    return ch.isalpha()


def _is_vowel(ch: str) -> bool:
    return unicodedata.normalize("NFD", ch)[0].lower() in _VOWELS


def _is_word_char(ch: str) -> bool:
    return ch.isalnum() or ch == "_"


def _is_punctuation(ch: str) -> bool:
    return not ch.isspace() and not _is_word_char(ch)


@dataclass(frozen=True)
class ScrambleOptions:
    """Preservation rules for a scramble run."""

    preserve_case: bool = True
    preserve_punctuation: bool = True
    preserve_spaces: bool = True
    preserve_length: bool = True
    preserve_ends: bool = False
    preserve_position: bool = True
    preserve_vowels: bool = False
    max_word_length: int = 0

    _KEYS: ClassVar[dict[str, str]] = {
        "preserveCase": "preserve_case",
        "preservePunctuation": "preserve_punctuation",
        "preserveSpaces": "preserve_spaces",
        "preserveLength": "preserve_length",
        "preserveEnds": "preserve_ends",
        "preservePosition": "preserve_position",
        "preserveVowels": "preserve_vowels",
        "maxWordLength": "max_word_length",
    }

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any] | None) -> ScrambleOptions:
        """Build options from a camelCase configuration mapping.

        Unknown keys are ignored so a transformation's full option block
        can be passed straight through.
        """
        if not raw:
            return cls()
        kwargs: dict[str, Any] = {}
        for key, attr in cls._KEYS.items():
            if key in raw:
                value = raw[key]
                kwargs[attr] = int(value) if attr == "max_word_length" else bool(value)
        return cls(**kwargs)


@dataclass
class _Token:
    kind: str  # "word", "space" or "punctuation"
    content: str


class Scrambler:
    """Randomized text obfuscation that keeps the shape of the input."""

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def scramble(self, text: Any, options: ScrambleOptions | None = None) -> Any:
        """Scramble *text* according to *options*.

        Empty or non-string input is returned unchanged.
        """
        if not text or not isinstance(text, str):
            return text
        opts = options or ScrambleOptions()

        if opts.preserve_ends:
            result = self._scramble_words(text, opts)
        else:
            result = self._scramble_chars(text, opts)

        if not opts.preserve_length:
            result = self._adjust_length(result, len(text))

        return self.enforce_max_word_length(result, opts, text)

    def scramble_word(self, word: str, options: ScrambleOptions | None = None) -> str:
        """Keep the first and last character, replace the interior."""
        if not word or len(word) <= 2:
            return word
        opts = options or ScrambleOptions()
        middle = "".join(self._scramble_char_in_word(ch, opts) for ch in word[1:-1])
        return word[0] + middle + word[-1]

    def enforce_max_word_length(
        self,
        text: str,
        options: ScrambleOptions | None = None,
        original_text: str = "",
    ) -> str:
        """Split any space-separated word longer than the limit into chunks.

        A limit of 0 means auto: ``max(8, longest word of the original)``.
        """
        opts = options or ScrambleOptions()
        max_len = opts.max_word_length
        if max_len <= 0:
            words = (original_text or text).split()
            if words:
                longest = max(len(word) for word in words)
                max_len = max(8, longest)
            else:
                max_len = 20

        if not text or len(text) <= max_len:
            return text

        chunked: list[str] = []
        for word in text.split(" "):
            if len(word) <= max_len:
                chunked.append(word)
                continue
            chunked.append(
                " ".join(word[i : i + max_len] for i in range(0, len(word), max_len))
            )
        return " ".join(chunked)

    # ------------------------------------------------------------------
    # Character mode
    # ------------------------------------------------------------------

    def _scramble_chars(self, text: str, opts: ScrambleOptions) -> str:
        out: list[str] = []
        for ch in text:
            if ch.isspace():
                out.append(ch if opts.preserve_spaces else self._random_letter())
            elif _is_punctuation(ch):
                out.append(ch if opts.preserve_punctuation else self._random_letter())
            elif _is_letter(ch):
                out.append(self._replace_letter(ch, opts))
            elif ch in string.digits:
                out.append(self._rng.choice(string.digits))
            else:
                out.append(ch)
        result = "".join(out)

        if not opts.preserve_spaces and len(result) > 10:
            word_count = len(_WHITESPACE_RUN_RE.findall(text)) + 1
            result = self._reinsert_spaces(result, max(1, int(word_count * 0.3)))
        return result

    # ------------------------------------------------------------------
    # Word mode
    # ------------------------------------------------------------------

    def _scramble_words(self, text: str, opts: ScrambleOptions) -> str:
        tokens = self._tokenize(text)

        word_indexes = [i for i, token in enumerate(tokens) if token.kind == "word"]
        scrambled_words = [self.scramble_word(tokens[i].content, opts) for i in word_indexes]
        if not opts.preserve_position and len(scrambled_words) > 1:
            # random.shuffle is an in-place Fisher-Yates permutation
            self._rng.shuffle(scrambled_words)

        parts = [token.content for token in tokens]
        for index, word in zip(word_indexes, scrambled_words):
            parts[index] = word
        for i, token in enumerate(tokens):
            if token.kind == "space" and not opts.preserve_spaces:
                parts[i] = "".join(self._random_letter() for _ in token.content)
            elif token.kind == "punctuation" and not opts.preserve_punctuation:
                parts[i] = "".join(self._random_letter() for _ in token.content)
        result = "".join(parts)

        if not opts.preserve_spaces and len(result) > 10:
            space_tokens = sum(1 for token in tokens if token.kind == "space")
            result = self._reinsert_spaces(result, max(1, int(space_tokens * 0.4)))
        return result

    @staticmethod
    def _tokenize(text: str) -> list[_Token]:
        """Split into maximal runs of word chars, whitespace and punctuation."""
        tokens: list[_Token] = []
        for ch in text:
            if ch.isspace():
                kind = "space"
            elif _is_punctuation(ch):
                kind = "punctuation"
            else:
                kind = "word"
            if tokens and tokens[-1].kind == kind:
                tokens[-1].content += ch
            else:
                tokens.append(_Token(kind, ch))
        return tokens

    def _scramble_char_in_word(self, ch: str, opts: ScrambleOptions) -> str:
        if _is_letter(ch):
            return self._replace_letter(ch, opts)
        if ch in string.digits:
            return self._rng.choice(string.digits)
        return ch

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _replace_letter(self, ch: str, opts: ScrambleOptions) -> str:
        if opts.preserve_vowels:
            pool = _VOWELS if _is_vowel(ch) else _CONSONANTS
        else:
            pool = string.ascii_lowercase
        replacement = self._rng.choice(pool)
        if opts.preserve_case:
            return replacement.upper() if ch.isupper() else replacement
        return self._random_case(replacement)

    def _random_letter(self) -> str:
        return self._random_case(self._rng.choice(string.ascii_lowercase))

    def _random_case(self, ch: str) -> str:
        return ch.upper() if self._rng.random() < 0.5 else ch.lower()

    def _reinsert_spaces(self, text: str, count: int) -> str:
        # never at the very start or end
        for _ in range(count):
            pos = self._rng.randint(1, max(1, len(text) - 2))
            text = text[:pos] + " " + text[pos:]
        return text

    def _adjust_length(self, text: str, original_length: int) -> str:
        target = int(original_length * (0.1 + self._rng.random() * 1.4))
        if len(text) > target:
            return text[:target]
        padding = "".join(self._random_letter() for _ in range(target - len(text)))
        if padding:
            Log.debug(f"Padded scrambled text by {len(padding)} chars")
        return text + padding
