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

"""Minimum-evidence gate and the disclosure-only output."""

from collections.abc import Mapping

from mansion_writer import data

MIN_FACTS_FOR_GENERATION = 3

DISCLOSURE_HEADER = "【生成停止：情報が不足しています】"
ADDENDUM_BULLET = "・"

_BUILDING_ADVICE = (
    "（棟スコープでは専有部の情報は扱いません。建物名／所在地／築年／構造／総戸数／"
    "階数／最寄駅／徒歩分／管理体制 などをページに記載してください）"
)
_UNIT_ADVICE = (
    "（部屋スコープでは間取り／専有面積／所在階／方角／リフォーム／室内設備 などが"
    "あると生成精度が上がります）"
)


def count_facts(facts: Mapping[str, str]) -> int:
  return sum(1 for v in facts.values() if isinstance(v, str) and v.strip())


def has_enough_evidence(
    facts: Mapping[str, str], threshold: int = MIN_FACTS_FOR_GENERATION
) -> bool:
  return count_facts(facts) >= threshold


def format_fact_lines(facts: Mapping[str, str]) -> list[str]:
  return [
      f"{ADDENDUM_BULLET}{k}：{v.strip()}" for k, v in facts.items()
      if isinstance(v, str) and v.strip()
  ]


def disclosure_text(facts: Mapping[str, str], scope: data.Scope) -> str:
  """Builds the fixed-format output returned when generation is withheld.

  Lists every known fact and scope-specific guidance on which facts would
  allow generation. Tone and length play no part.
  """
  lines = format_fact_lines(facts) or [f"{ADDENDUM_BULLET}（抽出できませんでした）"]
  advice = _BUILDING_ADVICE if scope is data.Scope.BUILDING else _UNIT_ADVICE
  return "\n".join([
      DISCLOSURE_HEADER,
      "ページから抽出できた事実のみを表示します（推測は行いません）。",
      "",
      "【抽出できた事実】",
      *lines,
      "",
      "【お願い】",
      advice,
  ])
