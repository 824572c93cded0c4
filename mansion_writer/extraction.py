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

"""Library for extracting listing facts from raw markup.

Extraction runs a chain of strategies over one parsed document. Each strategy
is a pure function ``(soup, vocabulary) -> partial fact set``; strategies are
applied in priority order and the first non-empty value found for a key wins:

  1. Structured data (``application/ld+json`` blocks).
  2. Inline microdata (``itemprop`` attributes).
  3. Label/value pairs from tables, definition lists and spec-like blocks.
  4. Free-text patterns over the whole document text.
"""

from collections.abc import Callable, Iterator, Mapping, Sequence
import dataclasses
import json
import re
from typing import Any

from absl import logging
import bs4

from mansion_writer import data
from mansion_writer import vocabulary as vocabulary_lib

MAX_LABEL_LENGTH = 20

# schema.org field -> fact key, for fields read as plain strings.
_STRUCTURED_FIELDS: tuple[tuple[str, str], ...] = (
    ("name", "物件名"),
    ("description", "設備"),
    ("floorCount", "階数"),
    ("numberOfUnits", "総戸数"),
    ("numberOfRooms", "総戸数"),
    ("yearBuilt", "築年"),
    ("buildingType", "構造"),
)

_ADDRESS_PARTS = ("postalCode", "addressRegion", "addressLocality",
                  "streetAddress")

_MICRODATA_FIELDS: Mapping[str, str] = {
    "name": "物件名",
    "address": "所在地",
    "addressLocality": "所在地",
    "streetAddress": "所在地",
    "numberOfRooms": "総戸数",
    "numberOfUnits": "総戸数",
    "floorCount": "階数",
    "description": "設備",
    "yearBuilt": "築年",
}

_TABULAR_CONTAINERS = "table, dl, .spec, .table, .detail, .property, .summary"

_WHITESPACE = re.compile(r"\s+")

Strategy = Callable[[bs4.BeautifulSoup, vocabulary_lib.Vocabulary],
                    data.FactSet]


@dataclasses.dataclass
class ExtractResult:
  """Facts extracted from one document.

  Attributes:
    facts: Partial fact set.
    title: Page title, for logging only.
    description: Page description, for logging only.
  """

  facts: data.FactSet = dataclasses.field(default_factory=dict)
  title: str | None = None
  description: str | None = None


def _collapse(text: str) -> str:
  return _WHITESPACE.sub(" ", text).strip()


def _set_first(facts: data.FactSet, key: str, value: Any) -> None:
  if key in facts or value is None or isinstance(value, (dict, list)):
    return
  text = _collapse(str(value))
  if text:
    facts[key] = text


def _iter_ld_objects(node: Any) -> Iterator[dict]:
  if isinstance(node, list):
    for item in node:
      yield from _iter_ld_objects(item)
  elif isinstance(node, dict):
    yield node
    if "@graph" in node:
      yield from _iter_ld_objects(node["@graph"])


def _format_address(address: Any) -> str | None:
  if isinstance(address, str):
    return address
  if isinstance(address, dict):
    parts = [str(address[p]).strip() for p in _ADDRESS_PARTS
             if address.get(p)]
    return "".join(parts) or None
  return None


def structured_data_facts(
    soup: bs4.BeautifulSoup, vocab: vocabulary_lib.Vocabulary
) -> data.FactSet:
  """Reads schema.org objects embedded as JSON-LD."""
  del vocab  # Field map is fixed.
  facts: data.FactSet = {}
  for script in soup.find_all("script", attrs={"type": "application/ld+json"}):
    try:
      payload = json.loads(script.string or script.get_text() or "")
    except json.JSONDecodeError as e:
      logging.debug("Skipping invalid JSON-LD block: %s", e)
      continue
    for obj in _iter_ld_objects(payload):
      for field, key in _STRUCTURED_FIELDS:
        value = obj.get(field)
        if isinstance(value, (str, int, float)) and not isinstance(value, bool):
          _set_first(facts, key, value)
      _set_first(facts, "所在地", _format_address(obj.get("address")))
  return facts


def microdata_facts(
    soup: bs4.BeautifulSoup, vocab: vocabulary_lib.Vocabulary
) -> data.FactSet:
  """Reads elements annotated with ``itemprop``."""
  del vocab
  facts: data.FactSet = {}
  for el in soup.find_all(attrs={"itemprop": True}):
    prop = (el.get("itemprop") or "").strip()
    key = _MICRODATA_FIELDS.get(prop)
    if key is None:
      continue
    value = el.get("content") or el.get_text(" ")
    _set_first(facts, key, value)
  return facts


def _next_sibling_tag(el: bs4.Tag, name: str) -> bs4.Tag | None:
  sibling = el.find_next_sibling()
  if sibling is not None and sibling.name == name:
    return sibling
  return None


def _label_value_pairs(soup: bs4.BeautifulSoup) -> Iterator[tuple[str, str]]:
  seen: set[int] = set()
  for container in soup.select(_TABULAR_CONTAINERS):
    for el in container.find_all(["tr", "th", "dt"]):
      if id(el) in seen:
        continue
      seen.add(id(el))
      if el.name == "th":
        value_el = _next_sibling_tag(el, "td")
        if value_el is not None:
          yield el.get_text(), value_el.get_text(" ")
      elif el.name == "dt":
        value_el = _next_sibling_tag(el, "dd")
        if value_el is not None:
          yield el.get_text(), value_el.get_text(" ")
      elif el.find("th", recursive=False) is None:
        cells = el.find_all("td", recursive=False)
        if len(cells) >= 2:
          yield cells[0].get_text(), cells[1].get_text(" ")


def tabular_facts(
    soup: bs4.BeautifulSoup, vocab: vocabulary_lib.Vocabulary
) -> data.FactSet:
  """Reads label/value pairs from tables and definition lists.

  A label is accepted only if it is at most MAX_LABEL_LENGTH characters with
  whitespace removed and resolves through the alias table. The first value
  found for a key wins.
  """
  facts: data.FactSet = {}
  for raw_label, raw_value in _label_value_pairs(soup):
    label = "".join(raw_label.split())
    if not label or len(label) > MAX_LABEL_LENGTH:
      continue
    key = vocab.canonical_key(label)
    if key is None:
      continue
    _set_first(facts, key, raw_value)
  return facts


def document_text(soup: bs4.BeautifulSoup) -> str:
  root = soup.body or soup
  return _collapse(root.get_text(" "))


def free_text_facts(
    soup: bs4.BeautifulSoup, vocab: vocabulary_lib.Vocabulary
) -> data.FactSet:
  """Matches the pattern table against the whitespace-collapsed text."""
  text = document_text(soup)
  facts: data.FactSet = {}
  for key, pattern in vocab.patterns.items():
    match = pattern.search(text)
    if match and match.group(1):
      _set_first(facts, key, match.group(1))
  return facts


DEFAULT_STRATEGIES: tuple[Strategy, ...] = (
    structured_data_facts,
    microdata_facts,
    tabular_facts,
    free_text_facts,
)


def _meta_content(soup: bs4.BeautifulSoup, **attrs) -> str | None:
  tag = soup.find("meta", attrs=attrs)
  if tag is None:
    return None
  content = tag.get("content")
  return content.strip() if content else None


def _title_and_description(
    soup: bs4.BeautifulSoup,
) -> tuple[str | None, str | None]:
  title = _meta_content(soup, property="og:title")
  if not title and soup.title is not None:
    title = soup.title.get_text().strip() or None
  description = (_meta_content(soup, property="og:description")
                 or _meta_content(soup, name="description"))
  return title, description


def combine_first_wins(partials: Sequence[data.FactSet]) -> data.FactSet:
  """Combines partial fact sets; earlier sets take priority per key."""
  facts: data.FactSet = {}
  for partial in partials:
    for key, value in partial.items():
      if key not in facts and value and value.strip():
        facts[key] = value.strip()
  return facts


def extract_facts(
    markup: str,
    strategies: Sequence[Strategy] = DEFAULT_STRATEGIES,
    vocab: vocabulary_lib.Vocabulary | None = None,
) -> ExtractResult:
  """Extracts a partial fact set from one document.

  Never raises on malformed input: a document that cannot be parsed yields an
  empty result.

  Args:
    markup: HTML markup or plain text.
    strategies: Strategies in priority order.
    vocab: Vocabulary; defaults to the packaged one.

  Returns:
    ExtractResult with the combined facts.
  """
  vocab = vocab or vocabulary_lib.get_vocabulary()
  if not markup or not markup.strip():
    return ExtractResult()
  try:
    soup = bs4.BeautifulSoup(markup, "html.parser")
    facts = combine_first_wins([s(soup, vocab) for s in strategies])
    title, description = _title_and_description(soup)
  except Exception as e:  # pylint: disable=broad-exception-caught
    logging.warning("Failed to extract facts from document: %s", e)
    return ExtractResult()
  facts = {k: v for k, v in facts.items() if vocab.is_known_key(k)}
  logging.debug("Extracted %d facts (title=%r)", len(facts), title)
  return ExtractResult(facts=facts, title=title, description=description)
