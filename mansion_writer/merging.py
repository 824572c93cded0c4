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

"""Merging of per-source fact sets and operator-supplied facts."""

from collections.abc import Iterable, Mapping
import re

from absl import logging

from mansion_writer import data
from mansion_writer import vocabulary as vocabulary_lib

PROPERTY_NAME_KEY = "物件名"

_MANUAL_LINE = re.compile(r"^\s*([^:：]+?)\s*[:：]\s*(.+?)\s*$")


def merge_facts(base: Mapping[str, str],
                addition: Mapping[str, str]) -> data.FactSet:
  """Merges two fact sets, keeping the longer value on collision.

  Values are compared after trimming; on equal length the base value is kept.
  Empty values never enter the result.

  Args:
    base: Facts merged so far.
    addition: Facts from the next source.

  Returns:
    A new fact set.
  """
  merged = {k: v.strip() for k, v in base.items() if v and v.strip()}
  for key, value in addition.items():
    candidate = (value or "").strip()
    if not candidate:
      continue
    current = merged.get(key)
    if current is None or len(candidate) > len(current):
      merged[key] = candidate
  return merged


def merge_all(fact_sets: Iterable[Mapping[str, str]]) -> data.FactSet:
  """Folds fact sets left to right with merge_facts."""
  merged: data.FactSet = {}
  for facts in fact_sets:
    merged = merge_facts(merged, facts)
  return merged


def parse_manual_facts(
    text: str | None,
    vocab: vocabulary_lib.Vocabulary | None = None,
) -> data.FactSet:
  """Parses operator-entered ``label: value`` lines.

  Labels are resolved through the alias table; unrecognized labels are
  dropped. A later line for the same key replaces an earlier one.
  """
  if not text:
    return {}
  vocab = vocab or vocabulary_lib.get_vocabulary()
  facts: data.FactSet = {}
  for line in text.splitlines():
    match = _MANUAL_LINE.match(line)
    if not match:
      continue
    label, value = match.group(1), match.group(2)
    key = vocab.canonical_key(label)
    if key is None:
      logging.warning("Ignoring manual fact with unknown label %r", label)
      continue
    facts[key] = value
  return facts


def apply_property_name(facts: Mapping[str, str],
                        property_name: str | None) -> data.FactSet:
  """Sets the operator-supplied property name, overriding any extracted one."""
  result = dict(facts)
  if property_name and property_name.strip():
    result[PROPERTY_NAME_KEY] = property_name.strip()
  return result
