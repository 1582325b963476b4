"""Lexer for literal ffmpeg option strings.

Splits a string such as ``-c:v libx264 -crf 20 -ss -0.5`` into key and
value tokens. A word starting with ``-`` and a letter opens a new key.
Every other word is part of the value of the current key, which keeps
its original spacing (``-metadata title=My Movie``). Negative numbers
and a lone ``-`` are values, never keys.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum, auto

from ffrun.exceptions import OptionSyntaxError

_WORD_RE = re.compile(r"\S+")


class TokenType(Enum):
    """Token types produced by the option lexer."""

    KEY = auto()  # -c:v -> "c:v"
    VALUE = auto()  # libx264, -0.5, title=My Movie
    EOF = auto()


@dataclass(frozen=True)
class Token:
    """A single token produced by the lexer."""

    type: TokenType
    value: str
    position: int  # character offset in source


def _is_key(word: str) -> bool:
    return len(word) > 1 and word[0] == "-" and word[1].isalpha()


def _is_value(word: str) -> bool:
    if word[0] != "-":
        return True
    return word == "-" or word[1].isdigit() or word[1] == "."


def tokenize(source: str) -> list[Token]:
    """Tokenize a literal option string.

    Args:
        source: The option string to tokenize.

    Returns:
        List of tokens, always ending with an EOF token. Consecutive value
        words are merged into one VALUE token.

    Raises:
        OptionSyntaxError: If a value appears before any key, or a word
            looks like an option but has no valid key name.
    """
    tokens: list[Token] = []
    value_start: int | None = None
    value_end = 0

    def flush_value() -> None:
        nonlocal value_start
        if value_start is not None:
            tokens.append(
                Token(TokenType.VALUE, source[value_start:value_end], value_start)
            )
            value_start = None

    for match in _WORD_RE.finditer(source):
        word = match.group(0)
        if _is_key(word):
            flush_value()
            tokens.append(Token(TokenType.KEY, word[1:], match.start()))
            continue

        if not _is_value(word):
            raise OptionSyntaxError(
                f"Invalid option name: '{word}'",
                source=source,
                position=match.start(),
            )
        if not tokens and value_start is None:
            raise OptionSyntaxError(
                f"Value '{word}' does not follow an option",
                source=source,
                position=match.start(),
            )
        if value_start is None:
            value_start = match.start()
        value_end = match.end()

    flush_value()
    tokens.append(Token(TokenType.EOF, "", len(source)))
    return tokens
