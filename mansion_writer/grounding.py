# Copyright 2025 Google LLC.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Grounding validation of evidence-tagged model output.

A generated sentence is kept only if:

  - it claims at least one evidence key and every claimed key is permitted;
  - the literal value of at least one claimed key occurs verbatim in it;
  - it contains no hedge phrase.

Failing sentences are dropped, never corrected. When nothing survives, a
GroundingError is raised and the caller falls back to the disclosure output.
"""

from collections.abc import Collection, Iterator, Mapping, Sequence
import dataclasses
from typing import Any

from absl import logging

from mansion_writer import data
from mansion_writer import exceptions
from mansion_writer import prompting
from postprocessing import salvage_first_json
from postprocessing import sanitize_banned


@dataclasses.dataclass(frozen=True)
class GroundedText:
  """Sections that survived validation, in output order."""

  sections: tuple[data.GroundedSection, ...]

  @property
  def text(self) -> str:
    return "\n\n".join(s.text for s in self.sections)

  @property
  def sentence_count(self) -> int:
    return sum(len(s.sentences) for s in self.sections)


def has_permitted_keys(
    sentence: data.EvidenceSentence, permitted_keys: Collection[str]
) -> bool:
  """True iff the sentence claims keys and all of them are permitted."""
  return bool(sentence.keys) and all(
      isinstance(k, str) and k in permitted_keys for k in sentence.keys
  )


def is_value_grounded(
    sentence: data.EvidenceSentence, fact_values: Mapping[str, str]
) -> bool:
  """True iff some claimed key's literal value occurs in the sentence text."""
  for key in sentence.keys:
    value = fact_values.get(key) if isinstance(key, str) else None
    if value and value in sentence.text:
      return True
  return False


def _parse_sentence(raw: Any) -> data.EvidenceSentence | None:
  if not isinstance(raw, dict):
    return None
  text = raw.get("text")
  keys = raw.get("keys")
  if not isinstance(text, str) or not isinstance(keys, list):
    return None
  text = text.strip()
  if not text:
    return None
  return data.EvidenceSentence(text=text, keys=tuple(keys))


def parse_sections(
    payload: Mapping[str, Any],
) -> Iterator[tuple[str, list[data.EvidenceSentence]]]:
  """Yields (section name, sentences) from a structured payload.

  Malformed sections and sentences are skipped.
  """
  sections = payload.get(prompting.SECTIONS_KEY)
  if not isinstance(sections, list):
    return
  for section in sections:
    if not isinstance(section, dict):
      continue
    raw_sentences = section.get("sentences")
    if not isinstance(raw_sentences, list):
      continue
    name = section.get("name")
    sentences = [s for s in map(_parse_sentence, raw_sentences) if s]
    yield (name if isinstance(name, str) else "", sentences)


def accept_sentence(
    sentence: data.EvidenceSentence,
    permitted_keys: Collection[str],
    fact_values: Mapping[str, str],
    hedge_phrases: Sequence[str] | None = None,
) -> bool:
  if not has_permitted_keys(sentence, permitted_keys):
    logging.debug("Dropping sentence with unpermitted keys %s: %r",
                  sentence.keys, sentence.text)
    return False
  if not is_value_grounded(sentence, fact_values):
    logging.debug("Dropping ungrounded sentence: %r", sentence.text)
    return False
  if sanitize_banned.contains_hedge_phrase(sentence.text, hedge_phrases):
    logging.debug("Dropping hedging sentence: %r", sentence.text)
    return False
  return True


def validate_payload(
    payload: Mapping[str, Any],
    permitted_keys: Collection[str],
    fact_values: Mapping[str, str],
    hedge_phrases: Sequence[str] | None = None,
) -> GroundedText:
  """Validates an already decoded structured payload.

  Raises:
    GroundingError: If no sentence survives.
  """
  permitted = frozenset(k for k in permitted_keys if fact_values.get(k))
  sections = []
  dropped = 0
  for name, sentences in parse_sections(payload):
    kept = tuple(s for s in sentences
                 if accept_sentence(s, permitted, fact_values, hedge_phrases))
    dropped += len(sentences) - len(kept)
    if kept:
      sections.append(data.GroundedSection(name=name, sentences=kept))
  if not sections:
    raise exceptions.GroundingError(
        f"No generated sentence survived grounding ({dropped} dropped)"
    )
  if dropped:
    logging.info("Grounding dropped %d sentence(s)", dropped)
  return GroundedText(sections=tuple(sections))


def validate_output(
    raw_output: str,
    permitted_keys: Collection[str],
    fact_values: Mapping[str, str],
    hedge_phrases: Sequence[str] | None = None,
) -> GroundedText:
  """Validates raw model output in the structured shape.

  Text around the first balanced JSON object is ignored.

  Args:
    raw_output: Raw text returned by the text-generation service.
    permitted_keys: Keys the model was allowed to cite.
    fact_values: Key -> literal fact value.
    hedge_phrases: Phrases that disqualify a sentence; defaults to the
      packaged vocabulary.

  Returns:
    The surviving sections.

  Raises:
    GroundingError: If the output cannot be parsed or nothing survives.
  """
  payload = salvage_first_json.salvage_first_json(raw_output)
  if payload is None:
    raise exceptions.GroundingError("Model output holds no JSON object")
  return validate_payload(payload, permitted_keys, fact_values, hedge_phrases)
