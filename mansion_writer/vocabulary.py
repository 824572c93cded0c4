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

"""Closed vocabulary of listing fact keys.

The vocabulary is read from the packaged ``vocabulary.yaml`` on first use and
cached as an immutable value:

  - Fact keys, each classified as general or unit-only.
  - Alias table mapping labels seen in listing markup to canonical keys.
  - Pattern table used by the free-text fallback extraction.
  - Unit-only keywords, banned advertising terms and hedge phrases used to
    filter generated sentences.

Example:
  >>> vocab = vocabulary.get_vocabulary()
  >>> vocab.canonical_key("最寄り駅")
  '最寄駅'
"""

from collections.abc import Mapping
import dataclasses
import functools
from pathlib import Path
import types

import regex
import yaml

_VOCABULARY_FILE = Path(__file__).with_name("vocabulary.yaml")


@dataclasses.dataclass(frozen=True)
class Vocabulary:
  """Read-only fact vocabulary.

  Attributes:
    general_keys: Keys meaningful at both unit and building scope, in display
      order.
    unit_only_keys: Keys describing a single dwelling unit.
    aliases: Label (whitespace removed) -> canonical key. Every canonical key
      maps to itself.
    patterns: Canonical key -> compiled free-text pattern.
    unit_only_keywords: Words marking a sentence as unit-specific.
    banned_words: Terms prohibited in advertising copy.
    hedge_phrases: Boilerplate generalizations rejected in generated text.
  """

  general_keys: tuple[str, ...]
  unit_only_keys: frozenset[str]
  aliases: Mapping[str, str]
  patterns: Mapping[str, regex.Pattern]
  unit_only_keywords: tuple[str, ...]
  banned_words: tuple[str, ...]
  hedge_phrases: tuple[str, ...]
  _unit_only_order: tuple[str, ...] = dataclasses.field(
      default=(), repr=False
  )

  @property
  def all_keys(self) -> tuple[str, ...]:
    """All canonical keys, general keys first."""
    return self.general_keys + self._unit_only_order

  def is_known_key(self, key: str) -> bool:
    return key in self.unit_only_keys or key in self.general_keys

  def is_unit_only(self, key: str) -> bool:
    return key in self.unit_only_keys

  def canonical_key(self, label: str) -> str | None:
    """Resolves an observed label to its canonical key.

    Args:
      label: Label text as it appears in markup or operator input.

    Returns:
      The canonical key, or None when the label is not recognized.
    """
    if not label:
      return None
    return self.aliases.get("".join(label.split()))


def _as_str_list(raw, field: str) -> list[str]:
  if raw is None:
    return []
  if not isinstance(raw, list):
    raise ValueError(f"Vocabulary field '{field}' must be a list")
  return [str(item).strip() for item in raw if str(item).strip()]


def parse_vocabulary(raw: Mapping) -> Vocabulary:
  """Builds a Vocabulary from its YAML mapping form.

  Args:
    raw: Parsed YAML document.

  Returns:
    Immutable Vocabulary.

  Raises:
    ValueError: If a key is classified twice or an alias / pattern refers to
      an unknown key.
  """
  general = _as_str_list(raw.get("general"), "general")
  unit_only = _as_str_list(raw.get("unit_only"), "unit_only")
  overlap = set(general) & set(unit_only)
  if overlap:
    raise ValueError(f"Keys classified as both general and unit-only: {overlap}")
  known = set(general) | set(unit_only)

  aliases = {key: key for key in known}
  for label, key in (raw.get("aliases") or {}).items():
    if key not in known:
      raise ValueError(f"Alias '{label}' refers to unknown key '{key}'")
    aliases["".join(str(label).split())] = key

  patterns = {}
  for key, pattern in (raw.get("patterns") or {}).items():
    if key not in known:
      raise ValueError(f"Pattern refers to unknown key '{key}'")
    patterns[key] = regex.compile(pattern)

  return Vocabulary(
      general_keys=tuple(general),
      unit_only_keys=frozenset(unit_only),
      aliases=types.MappingProxyType(aliases),
      patterns=types.MappingProxyType(patterns),
      unit_only_keywords=tuple(
          _as_str_list(raw.get("unit_only_keywords"), "unit_only_keywords")
      ),
      banned_words=tuple(_as_str_list(raw.get("banned_words"), "banned_words")),
      hedge_phrases=tuple(
          _as_str_list(raw.get("hedge_phrases"), "hedge_phrases")
      ),
      _unit_only_order=tuple(unit_only),
  )


@functools.lru_cache(maxsize=1)
def get_vocabulary() -> Vocabulary:
  """Returns the packaged vocabulary, loading it on first call."""
  with _VOCABULARY_FILE.open(encoding="utf-8") as f:
    return parse_vocabulary(yaml.safe_load(f))
