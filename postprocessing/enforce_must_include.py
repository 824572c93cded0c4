from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from absl import logging

from mansion_writer import data
from mansion_writer import vocabulary as vocabulary_lib

ADDENDUM_HEADER = "【情報の明示（抽出値）】"


def is_fact_mentioned(text: str, key: str, value: str) -> bool:
    """A fact counts as mentioned as bare value, ``key：value`` or ``key:value``."""
    return value in text or f"{key}：{value}" in text or f"{key}:{value}" in text


def missing_required_facts(
    text: str,
    facts: Mapping[str, str],
    required_keys: Sequence[str],
    scope: data.Scope,
    vocab: Optional[vocabulary_lib.Vocabulary] = None,
) -> List[Tuple[str, str]]:
    vocab = vocab or vocabulary_lib.get_vocabulary()
    missing: List[Tuple[str, str]] = []
    seen: Dict[str, bool] = {}
    for key in required_keys:
        if key in seen:
            continue
        seen[key] = True
        if scope is data.Scope.BUILDING and vocab.is_unit_only(key):
            continue
        value = (facts.get(key) or "").strip()
        if not value:
            continue
        if not is_fact_mentioned(text, key, value):
            missing.append((key, value))
    return missing


def enforce_must_include(
    text: str,
    facts: Mapping[str, str],
    required_keys: Sequence[str],
    scope: data.Scope,
    vocab: Optional[vocabulary_lib.Vocabulary] = None,
) -> str:
    """
    Append an itemized addendum for required facts the text does not mention.

    Unit-only keys are not required at building scope, and keys without a
    known value are skipped.

    Args:
        text: Generated text
        facts: Scoped fact set
        required_keys: Keys the caller wants in the output
        scope: Presentation scope
        vocab: Vocabulary; defaults to the packaged one

    Returns:
        ``text`` unchanged, or ``text`` followed by the addendum
    """
    if not required_keys:
        return text
    missing = missing_required_facts(text, facts, required_keys, scope, vocab)
    if not missing:
        return text
    logging.info("Appending %d required fact(s) missing from generated text", len(missing))
    lines = "\n".join(f"・{key}：{value}" for key, value in missing)
    return f"{text}\n\n{ADDENDUM_HEADER}\n{lines}"
