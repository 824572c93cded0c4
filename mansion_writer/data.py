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

"""Classes used to represent generation requests, sentences and results."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
import dataclasses
import enum
import re
from typing import Any

from mansion_writer import exceptions

FactSet = dict[str, str]

MAX_SOURCES = 3
MIN_LENGTH = 300
MAX_LENGTH = 1200

_URL_PATTERN = re.compile(r"^https?://\S+$", re.IGNORECASE)


class Scope(enum.Enum):
  """Presentation scope: a single dwelling unit or the whole building."""

  UNIT = "部屋"
  BUILDING = "棟"


class Tone(enum.Enum):
  FORMAL = "上品・落ち着き"
  NEUTRAL = "一般的"
  FRIENDLY = "親しみやすい"


class OutputShape(enum.Enum):
  """Output shape requested from the text-generation service.

  STRUCTURED carries per-sentence evidence keys and is verified sentence by
  sentence. FREE_TEXT is the legacy prose shape without per-sentence
  verification.
  """

  STRUCTURED = "structured"
  FREE_TEXT = "free_text"


def _parse_enum(enum_cls: type[enum.Enum], raw: Any, field: str):
  if isinstance(raw, enum_cls):
    return raw
  if isinstance(raw, str):
    text = raw.strip()
    for member in enum_cls:
      if text == member.value or text.upper() == member.name:
        return member
  allowed = ", ".join(m.value for m in enum_cls)
  raise exceptions.RequestValidationError(
      f"'{field}' must be one of: {allowed} (got {raw!r})"
  )


def is_url(source: str) -> bool:
  return bool(_URL_PATTERN.match(source))


@dataclasses.dataclass(frozen=True)
class EvidenceSentence:
  """A generated sentence with the fact keys claimed to support it.

  Attributes:
    text: Sentence text.
    keys: Fact keys the generator claims the sentence is based on.
  """

  text: str
  keys: tuple[str, ...]


@dataclasses.dataclass(frozen=True)
class GroundedSection:
  name: str
  sentences: tuple[EvidenceSentence, ...]

  @property
  def text(self) -> str:
    return "".join(s.text for s in self.sentences)


@dataclasses.dataclass
class GenerationRequest:
  """A validated request to write one listing description.

  Attributes:
    sources: URLs or pasted markup/text, at most MAX_SOURCES.
    tone: Writing tone.
    length: Target length in characters.
    scope: Presentation scope.
    property_name: Operator-supplied property name; overrides extraction.
    extra_text: Operator-supplied ``label: value`` lines.
    must_include_keys: Fact keys that must appear in the final text.
    output_shape: Output shape requested from the text service.
  """

  sources: list[str]
  tone: Tone
  length: int
  scope: Scope = Scope.UNIT
  property_name: str | None = None
  extra_text: str | None = None
  must_include_keys: list[str] = dataclasses.field(default_factory=list)
  output_shape: OutputShape = OutputShape.STRUCTURED

  @classmethod
  def from_payload(cls, payload: Mapping[str, Any]) -> GenerationRequest:
    """Validates a JSON request body.

    Accepts ``sources`` (list) or the legacy single ``source`` string; blank
    sources are dropped. More than MAX_SOURCES entries is rejected.

    Args:
      payload: Decoded JSON body.

    Returns:
      The validated request.

    Raises:
      RequestValidationError: If required fields are missing or invalid.
    """
    if not isinstance(payload, Mapping):
      raise exceptions.RequestValidationError("Request body must be an object")

    raw_sources = payload.get("sources")
    if raw_sources is None:
      raw_sources = []
    if not isinstance(raw_sources, Sequence) or isinstance(raw_sources, str):
      raise exceptions.RequestValidationError("'sources' must be a list")
    if len(raw_sources) > MAX_SOURCES:
      raise exceptions.RequestValidationError(
          f"'sources' accepts at most {MAX_SOURCES} entries"
      )
    single = payload.get("source")
    if single is not None and not isinstance(single, str):
      raise exceptions.RequestValidationError("'source' must be a string")
    candidates = list(raw_sources) or ([single] if single else [])
    sources = []
    for s in candidates:
      if not isinstance(s, str):
        raise exceptions.RequestValidationError("Each source must be a string")
      if s.strip():
        sources.append(s.strip())
    if not sources:
      raise exceptions.RequestValidationError(
          "Either 'sources' or 'source' must be provided"
      )

    if "tone" not in payload:
      raise exceptions.RequestValidationError("'tone' is required")
    tone = _parse_enum(Tone, payload["tone"], "tone")

    length = payload.get("length")
    if isinstance(length, bool) or not isinstance(length, int):
      raise exceptions.RequestValidationError("'length' must be an integer")
    if not MIN_LENGTH <= length <= MAX_LENGTH:
      raise exceptions.RequestValidationError(
          f"'length' must be between {MIN_LENGTH} and {MAX_LENGTH}"
      )

    scope = _parse_enum(Scope, payload.get("scope", Scope.UNIT), "scope")
    shape = _parse_enum(
        OutputShape,
        payload.get("outputShape", OutputShape.STRUCTURED),
        "outputShape",
    )

    must = payload.get("mustIncludeKeys") or []
    if not isinstance(must, Sequence) or isinstance(must, str):
      raise exceptions.RequestValidationError("'mustIncludeKeys' must be a list")
    if not all(isinstance(k, str) for k in must):
      raise exceptions.RequestValidationError(
          "'mustIncludeKeys' must contain strings"
      )

    property_name = payload.get("propertyName")
    extra_text = payload.get("extraText")
    for field, value in (("propertyName", property_name),
                         ("extraText", extra_text)):
      if value is not None and not isinstance(value, str):
        raise exceptions.RequestValidationError(f"'{field}' must be a string")

    return cls(
        sources=sources,
        tone=tone,
        length=length,
        scope=scope,
        property_name=property_name,
        extra_text=extra_text,
        must_include_keys=[k.strip() for k in must if k.strip()],
        output_shape=shape,
    )


@dataclasses.dataclass(frozen=True)
class GenerationResult:
  """Final description and the fact set that was available to the writer.

  Attributes:
    text: Sanitized description, or the disclosure text.
    facts: Scoped fact set used for generation.
    disclosed: True when generation was withheld and the disclosure returned.
  """

  text: str
  facts: FactSet
  disclosed: bool = False

  def to_json(self) -> dict[str, Any]:
    return {"text": self.text, "facts": dict(self.facts)}
