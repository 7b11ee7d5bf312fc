"""Argument string tokenization."""

from typing import Iterable, List, Optional

QUOTES = ("'", '"')


def tokenize(raw: str) -> List[str]:
    """Split a raw argument string into words.

    Whitespace outside quotes separates words. A single or double quote opens
    a quoted run that only the same character closes; the quotes themselves
    are dropped. An unmatched quote runs to the end of the string.
    """
    tokens: List[str] = []
    word: List[str] = []
    quote: Optional[str] = None

    for char in raw:
        if quote is not None:
            if char == quote:
                quote = None
            else:
                word.append(char)
        elif char in QUOTES:
            quote = char
        elif char.isspace():
            if word:
                tokens.append("".join(word))
                word = []
        else:
            word.append(char)

    if word:
        tokens.append("".join(word))

    return tokens


def build_argv(executable: str, raw: str = "", explicit: Optional[Iterable[str]] = None) -> List[str]:
    """Build ``[executable] + tokenize(raw) + explicit``."""
    argv = [executable]
    argv.extend(tokenize(raw or ""))
    if explicit:
        argv.extend(explicit)
    return argv
