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

"""Scope filtering of fact sets and generated text.

At building scope, unit-only facts are removed from the fact set and sentences
mentioning unit-only keywords are removed from text. Unit scope is the
identity.
"""

from collections.abc import Mapping
import re

from mansion_writer import data
from mansion_writer import vocabulary as vocabulary_lib

# Split after sentence-ending punctuation or a newline, keeping the delimiter.
_SENTENCE_BOUNDARY = re.compile(r"(?<=[。！？!?\n])")


def split_sentences(text: str) -> list[str]:
  """Splits text into sentences, each keeping its trailing delimiter."""
  return [s for s in _SENTENCE_BOUNDARY.split(text) if s]


def scope_facts(
    facts: Mapping[str, str],
    scope: data.Scope,
    vocab: vocabulary_lib.Vocabulary | None = None,
) -> data.FactSet:
  vocab = vocab or vocabulary_lib.get_vocabulary()
  if scope is data.Scope.UNIT:
    return dict(facts)
  return {k: v for k, v in facts.items() if not vocab.is_unit_only(k)}


def filter_unit_sentences(
    text: str,
    scope: data.Scope,
    vocab: vocabulary_lib.Vocabulary | None = None,
) -> list[str]:
  """Returns the sentences of text that may be shown at the given scope."""
  sentences = split_sentences(text)
  if scope is data.Scope.UNIT:
    return sentences
  vocab = vocab or vocabulary_lib.get_vocabulary()
  return [
      s for s in sentences
      if not any(kw in s for kw in vocab.unit_only_keywords)
  ]


def scope_text(
    text: str,
    scope: data.Scope,
    vocab: vocabulary_lib.Vocabulary | None = None,
) -> str:
  """Drops sentences that mention unit-only keywords at building scope.

  If every sentence would be dropped, the first original sentence is returned
  instead of an empty string.

  Args:
    text: Text to filter.
    scope: Presentation scope.
    vocab: Vocabulary; defaults to the packaged one.

  Returns:
    Filtered text.
  """
  if scope is data.Scope.UNIT:
    return text
  filtered = "".join(filter_unit_sentences(text, scope, vocab)).strip()
  if filtered:
    return filtered
  sentences = split_sentences(text)
  return sentences[0].strip() if sentences else ""
