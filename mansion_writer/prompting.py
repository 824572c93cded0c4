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

"""Builds instructions and output schemas for the text-generation service.

The structured shape asks the model for named sections of sentences, each
sentence tagged with the fact keys it is based on, so that every sentence can
be checked by the grounding validator.
"""

from collections.abc import Mapping, Sequence
import dataclasses
from typing import Any, Final

from mansion_writer import data
from mansion_writer import vocabulary as vocabulary_lib

SECTIONS_KEY: Final = "sections"
SECTION_NAMES: Final[tuple[str, ...]] = (
    "introduction",
    "access",
    "building-overview",
    "surroundings",
    "closing",
)

SYSTEM_INSTRUCTIONS: Final = (
    "不動産の表示に関する公正競争規約を順守すること。与えられた事実以外を書かない。"
    "一般論・推測・感想は禁止。指定された出力形式に厳密に従うこと。"
)

STRUCTURED_OUTPUT_SCHEMA: Final[dict[str, Any]] = {
    "name": "factual_mansion_write",
    "strict": True,
    "schema": {
        "type": "object",
        "additionalProperties": False,
        "properties": {
            SECTIONS_KEY: {
                "type": "array",
                "items": {
                    "type": "object",
                    "additionalProperties": False,
                    "properties": {
                        "name": {"type": "string", "enum": list(SECTION_NAMES)},
                        "sentences": {
                            "type": "array",
                            "items": {
                                "type": "object",
                                "additionalProperties": False,
                                "properties": {
                                    "text": {"type": "string"},
                                    "keys": {
                                        "type": "array",
                                        "items": {"type": "string"},
                                        "minItems": 1,
                                    },
                                },
                                "required": ["text", "keys"],
                            },
                        },
                    },
                    "required": ["name", "sentences"],
                },
            },
        },
        "required": [SECTIONS_KEY],
    },
}

_UNIT_SCOPE_RULE = (
    "- 専有部（間取り・専有面積・所在階・方角・室内のリフォーム/設備 等）も、"
    "事実があれば自然に記述してよい"
)
_BUILDING_SCOPE_RULE = (
    "- 建物全体（共用部・管理・規模・立地・周辺環境）にフォーカスし、"
    "専有部の情報（間取り・専有面積・所在階・方角・室内のリフォーム/設備 等）は記述しない"
)


@dataclasses.dataclass(frozen=True)
class GenerationPrompt:
  """Everything sent to the text-generation service for one request.

  Attributes:
    instructions: System-level instructions.
    prompt: User prompt with the fact list and writing rules.
    json_schema: Output schema for the structured shape, None for free text.
    permitted_keys: Keys the generated text may rely on.
  """

  instructions: str
  prompt: str
  json_schema: dict[str, Any] | None
  permitted_keys: tuple[str, ...]


def permitted_keys(facts: Mapping[str, str]) -> tuple[str, ...]:
  return tuple(k for k, v in facts.items() if isinstance(v, str) and v.strip())


def facts_to_lines(facts: Mapping[str, str]) -> str:
  return "\n".join(
      f"{k}: {v.strip()}" for k, v in facts.items()
      if isinstance(v, str) and v.strip()
  )


def _must_include_instruction(
    facts: Mapping[str, str], must_include_keys: Sequence[str]
) -> str:
  if not must_include_keys:
    return "- （必須指定なし）抽出できた事実は可能な限り自然に本文へ反映する"
  lines = [f"  - {k}: {facts[k].strip()}" for k in must_include_keys
           if facts.get(k, "").strip()]
  return ("- 次の“必須含有項目（該当があれば）”は本文に自然に含めること\n"
          + ("\n".join(lines) or "  - （該当なし）"))


def build_generation_prompt(
    facts: Mapping[str, str],
    scope: data.Scope,
    tone: data.Tone,
    length: int,
    must_include_keys: Sequence[str] = (),
    output_shape: data.OutputShape = data.OutputShape.STRUCTURED,
    vocab: vocabulary_lib.Vocabulary | None = None,
) -> GenerationPrompt:
  """Builds the instruction payload for one generation request.

  Args:
    facts: Scoped fact set; its non-empty keys are the permitted keys.
    scope: Presentation scope.
    tone: Writing tone.
    length: Target length in characters.
    must_include_keys: Keys that must be mentioned when known.
    output_shape: Structured (verifiable) or legacy free text.
    vocab: Vocabulary; defaults to the packaged one.

  Returns:
    The GenerationPrompt.
  """
  vocab = vocab or vocabulary_lib.get_vocabulary()
  allowed = permitted_keys(facts)
  scope_rule = (_BUILDING_SCOPE_RULE if scope is data.Scope.BUILDING
                else _UNIT_SCOPE_RULE)

  if output_shape is data.OutputShape.STRUCTURED:
    task = ("以下の「事実リスト」に含まれる情報【のみ】で、"
            f"{'/'.join(SECTION_NAMES)} の文章素材を作成。")
    sentence_rules = [
        '- 各文は根拠となる"keys"に必ず1件以上の【許可キー】を付与（キー以外は不可）',
        "- 各文に含める事実値は、事実リストの表記を【そのまま】用いる",
        "- セクションに相当事実が少なければそのセクションは省略可",
    ]
    output_rule = "出力は**指定スキーマのJSONのみ**。コードフェンスや前置き・後置きは付けない。"
    schema = STRUCTURED_OUTPUT_SCHEMA
  else:
    task = "以下の「事実リスト」に含まれる情報【のみ】で、物件紹介文を1段落で作成。"
    sentence_rules = [
        "- 事実値は、事実リストの表記を【そのまま】用いる",
    ]
    output_rule = "出力は本文のみ。見出しや前置き・後置きは付けない。"
    schema = None

  prompt = "\n".join([
      "あなたは日本の不動産仲介サイト向けライターです。",
      task,
      "厳格ルール：",
      *sentence_rules,
      "- 許可キーに無い情報・一般論・推測・感想は書かない。該当事実が無い文は作らない",
      f"- 文体は{tone.value}、目安 {length}字",
      scope_rule,
      _must_include_instruction(facts, must_include_keys),
      "",
      f"許可キー: {', '.join(allowed)}",
      "",
      f"禁止語（本文では使わない）: {'、'.join(vocab.banned_words)}",
      "",
      "事実リスト（値は本文に原文どおり記載すること）:",
      facts_to_lines(facts),
      "",
      output_rule,
  ])
  return GenerationPrompt(
      instructions=SYSTEM_INSTRUCTIONS,
      prompt=prompt,
      json_schema=schema,
      permitted_keys=allowed,
  )
