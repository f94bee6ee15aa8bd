"""Wordlist-backed input source."""

from __future__ import annotations

import re
import sys
from collections.abc import Iterable, Iterator
from typing import BinaryIO

from .models import Config

_EXT_RE = re.compile("%ext%", re.IGNORECASE)


def strip_comments(text: str) -> str | None:
    """Return the word without a trailing " #" comment, or None for a comment line."""
    if text.lstrip(" ").startswith("#"):
        return None
    index = text.find(" #")
    if index == -1:
        return text
    return text[:index]


def _lines(stream: BinaryIO) -> Iterator[str]:
    for raw in stream:
        raw = raw.removesuffix(b"\n").removesuffix(b"\r")
        yield raw.decode("utf-8", errors="surrogateescape")


def _encode(text: str) -> bytes:
    return text.encode("utf-8", errors="surrogateescape")


class WordlistInput:
    """Serves the words of a wordlist file (or stdin for "-") one by one."""

    def __init__(self, keyword: str, value: str, config: Config) -> None:
        self.keyword = keyword
        self.config = config
        self.active = True
        self.position = 0
        self.data: list[bytes] = []
        if value == "-":
            self.data = list(self._words(_lines(sys.stdin.buffer)))
        else:
            with open(value, "rb") as stream:
                self.data = list(self._words(_lines(stream)))

    def _plain_word(self, text: str) -> str | None:
        if self.config.ignore_wordlist_comments:
            return strip_comments(text)
        return text

    def _words(self, lines: Iterable[str]) -> Iterator[bytes]:
        extensions = self.config.extensions
        for text in lines:
            if self.config.dir_search_compat and extensions:
                if _EXT_RE.search(text):
                    for ext in extensions:
                        yield _encode(_EXT_RE.sub(lambda _m, e=ext: e, text))
                    continue
                word = self._plain_word(text)
                if word is not None:
                    yield _encode(word)
            else:
                word = self._plain_word(text)
                if word is None:
                    continue
                yield _encode(word)
                if self.keyword == "FUZZ":
                    for ext in extensions:
                        yield _encode(word + ext)

    def has_next(self) -> bool:
        """Tell whether words remain at the current position."""
        return self.position < len(self.data)

    def increment_position(self) -> None:
        self.position += 1

    def reset_position(self) -> None:
        self.position = 0

    def value(self) -> bytes:
        """Return the word at the current position."""
        return self.data[self.position]

    def total(self) -> int:
        return len(self.data)

    def enable(self) -> None:
        self.active = True

    def disable(self) -> None:
        self.active = False