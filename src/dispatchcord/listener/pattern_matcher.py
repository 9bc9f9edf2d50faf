"""
Phrase matching for pattern listeners.

Listener patterns are regex fragments matched against a normalized copy of the
message as whole words or phrases. A pattern may also name one of the
:data:`COMMON_EXPRESSIONS` (optionally wrapped in braces, e.g. ``"{yes}"``) to
reuse a shared alternation.
"""

import re
from functools import lru_cache
from typing import Pattern, Sequence, Union

Words = Union[str, Sequence[str]]

COMMON_EXPRESSIONS = {
    "me": r"i('m|m|'ve|'ll|ll|mma)*",
    "action": r"(want|wanna|gonna|going to|will)",
    "yes": r"(y|yes|ye|yeah|yep|indeed|correct|mhm|sure|ok|okay|alright|alrighty|why not)",
    "no": r"(no|na|nah|not really|nope)",
    "be": r"(i'm|am|was|will be|are|were|is|be)",
}

PUNCTUATION_PATTERN = re.compile(r"[.,/#!$%^&*;:{}=\-_`~()?]")
WHITESPACE_RUN_PATTERN = re.compile(r"\s{2,}")


def normalize_content(text: str) -> str:
    """Strip punctuation, collapse runs of whitespace and lowercase ``text``."""
    text = PUNCTUATION_PATTERN.sub("", text or "")
    return WHITESPACE_RUN_PATTERN.sub(" ", text).lower()


def expand_common_expression(token: str) -> str:
    """Return the shared expression ``token`` names, or ``token`` unchanged."""
    name = token.replace("{", "").replace("}", "").strip() if token else ""
    return COMMON_EXPRESSIONS.get(name, token)


@lru_cache(maxsize=512)
def compile_word_pattern(token: str) -> Pattern[str]:
    """Compile ``token`` into a whole-word/phrase matcher."""
    w = expand_common_expression(token)
    return re.compile(rf"(\s+{w}\s+|\s+{w}$|^{w}\s+|^{w}$)")


def string_match(content: str, words: Words) -> bool:
    """Return True if ``content`` contains ``words`` as whole words.

    A list of patterns matches only when every one of them does.

    Example:
        >>> string_match("yes please", "yes")
        True
        >>> string_match("yesterday", "yes")
        False
        >>> string_match("I wanna go, yeah!", ["{action}", "{yes}"])
        True
    """
    normalized = normalize_content(content)
    if isinstance(words, str):
        return compile_word_pattern(words).search(normalized) is not None
    return all(compile_word_pattern(token).search(normalized) is not None for token in words)
