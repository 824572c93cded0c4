"""
Banned-vocabulary sanitization for generated listing copy.

Banned advertising terms are not deleted: each occurrence is wrapped in a
visible placeholder so the reader can see that an expression was adjusted.
Sentences containing hedge phrases are dropped whole.
"""

import functools
import re
from typing import Iterable, Optional, Pattern, Tuple

from absl import logging

from mansion_writer import vocabulary as vocabulary_lib
from mansion_writer.scoping import split_sentences

PLACEHOLDER_PREFIX = "※"
PLACEHOLDER_SUFFIX = "（表現調整）"


def placeholder(term: str) -> str:
    return f"{PLACEHOLDER_PREFIX}{term}{PLACEHOLDER_SUFFIX}"


@functools.lru_cache(maxsize=8)
def _banned_pattern(terms: Tuple[str, ...]) -> Optional[Pattern[str]]:
    if not terms:
        return None
    # Longest first so "最高級" is matched before "最高".
    ordered = sorted(set(terms), key=len, reverse=True)
    return re.compile("|".join(re.escape(t) for t in ordered))


def mark_banned_terms(text: str, banned_words: Optional[Iterable[str]] = None) -> str:
    """
    Wrap every banned term in ``text`` with the adjustment placeholder.

    All terms are replaced in a single pass, so a placeholder is never wrapped
    again and overlapping terms resolve to the longest match.

    Args:
        text: Text to sanitize
        banned_words: Terms to mark; defaults to the packaged vocabulary

    Returns:
        Sanitized text, stripped of surrounding whitespace
    """
    if not text:
        return ""
    if banned_words is None:
        banned_words = vocabulary_lib.get_vocabulary().banned_words
    pattern = _banned_pattern(tuple(banned_words))
    if pattern is None:
        return text.strip()
    sanitized, count = pattern.subn(lambda m: placeholder(m.group(0)), text)
    if count:
        logging.info("Marked %d banned term(s) in generated text", count)
    return sanitized.strip()


def contains_hedge_phrase(text: str, hedge_phrases: Optional[Iterable[str]] = None) -> bool:
    if hedge_phrases is None:
        hedge_phrases = vocabulary_lib.get_vocabulary().hedge_phrases
    return any(p in text for p in hedge_phrases)


def drop_hedge_sentences(text: str, hedge_phrases: Optional[Iterable[str]] = None) -> str:
    """Remove every sentence that contains a hedge phrase."""
    if hedge_phrases is None:
        hedge_phrases = vocabulary_lib.get_vocabulary().hedge_phrases
    phrases = tuple(hedge_phrases)
    kept = [s for s in split_sentences(text) if not contains_hedge_phrase(s, phrases)]
    return "".join(kept).strip()
