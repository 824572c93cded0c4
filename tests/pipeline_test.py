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

"""End-to-end tests for description writing with a scripted model."""

import json
import textwrap

from absl.testing import absltest

from mansion_writer import data
from mansion_writer import evidence
from mansion_writer import exceptions
from mansion_writer import inference
from mansion_writer import pipeline
from mansion_writer import prompting

_FACTS = {
    "物件名": "パークハイツ目黒",
    "所在地": "東京都目黒区目黒1-2-3",
    "築年": "1991年3月",
    "最寄駅": "目黒駅",
    "徒歩分": "7分",
    "間取り": "3LDK",
    "専有面積": "72.5㎡",
}

_INTRO = ("パークハイツ目黒は1991年3月築のマンションです。", ["物件名", "築年"])
_ACCESS = ("目黒駅から徒歩7分です。", ["最寄駅", "徒歩分"])
_UNIT = ("間取りは3LDKです。", ["間取り"])


class _ScriptedModel(inference.BaseLanguageModel):
  """Returns a fixed output and records every call."""

  def __init__(self, output="", error=None):
    self.output = output
    self.error = error
    self.calls = []

  def infer(self, prompt, *, instructions=None, json_schema=None):
    self.calls.append(
        dict(prompt=prompt, instructions=instructions, json_schema=json_schema)
    )
    if self.error is not None:
      raise self.error
    return inference.ScoredOutput(score=1.0, output=self.output)


def _structured(*sections):
  return json.dumps({"sections": [
      {"name": name, "sentences": [{"text": t, "keys": k} for t, k in sents]}
      for name, sents in sections
  ]}, ensure_ascii=False)


def _request(**kwargs):
  kwargs.setdefault("sources", ["https://example.com/listing/1"])
  kwargs.setdefault("tone", data.Tone.NEUTRAL)
  kwargs.setdefault("length", 500)
  return data.GenerationRequest(**kwargs)


class WriteDescriptionTest(absltest.TestCase):

  def test_writes_grounded_sections(self):
    model = _ScriptedModel(_structured(
        ("introduction", [_INTRO]),
        ("access", [_ACCESS]),
        ("building-overview", [_UNIT]),
    ))
    result = pipeline.write_description(_FACTS, _request(), model)

    self.assertFalse(result.disclosed)
    self.assertEqual(
        result.text,
        "パークハイツ目黒は1991年3月築のマンションです。\n\n"
        "目黒駅から徒歩7分です。\n\n間取りは3LDKです。",
    )
    self.assertEqual(result.facts, _FACTS)
    self.assertLen(model.calls, 1)
    self.assertIs(model.calls[0]["json_schema"],
                  prompting.STRUCTURED_OUTPUT_SCHEMA)
    self.assertEqual(model.calls[0]["instructions"],
                     prompting.SYSTEM_INSTRUCTIONS)

  def test_thin_evidence_is_disclosed_without_generation(self):
    model = _ScriptedModel("unused")
    facts = {"所在地": "東京都目黒区目黒1-2-3", "築年": "1991年3月"}
    result = pipeline.write_description(facts, _request(), model)

    self.assertTrue(result.disclosed)
    self.assertEmpty(model.calls)
    self.assertTrue(result.text.startswith(evidence.DISCLOSURE_HEADER))
    self.assertIn("・所在地：東京都目黒区目黒1-2-3", result.text)
    self.assertIn("・築年：1991年3月", result.text)

  def test_unit_only_facts_do_not_count_at_building_scope(self):
    model = _ScriptedModel("unused")
    facts = {"所在地": "東京都目黒区目黒1-2-3", "間取り": "3LDK",
             "専有面積": "72.5㎡"}
    result = pipeline.write_description(
        facts, _request(scope=data.Scope.BUILDING), model
    )
    self.assertTrue(result.disclosed)
    self.assertEmpty(model.calls)
    self.assertEqual(result.facts, {"所在地": "東京都目黒区目黒1-2-3"})
    self.assertIn("棟スコープ", result.text)
    self.assertNotIn("3LDK", result.text)

  def test_building_scope_removes_unit_sentences(self):
    model = _ScriptedModel(_structured(
        ("introduction", [_INTRO]),
        ("access", [_ACCESS]),
        ("building-overview", [_UNIT]),
    ))
    result = pipeline.write_description(
        _FACTS, _request(scope=data.Scope.BUILDING), model
    )
    self.assertEqual(
        result.text,
        "パークハイツ目黒は1991年3月築のマンションです。\n\n目黒駅から徒歩7分です。",
    )
    self.assertNotIn("間取り", result.facts)
    self.assertNotIn("専有面積", result.facts)
    self.assertNotIn("3LDK", model.calls[0]["prompt"])

  def test_approximate_values_are_dropped(self):
    model = _ScriptedModel(_structured(
        ("introduction", [("1990年頃に竣工したマンションです。", ["築年"]),
                          _ACCESS]),
    ))
    result = pipeline.write_description(_FACTS, _request(), model)
    self.assertEqual(result.text, "目黒駅から徒歩7分です。")

  def test_nothing_grounded_is_disclosed(self):
    model = _ScriptedModel(_structured(
        ("introduction", [("築30年超の落ち着いた建物です。", ["築年"])]),
    ))
    result = pipeline.write_description(_FACTS, _request(), model)
    self.assertTrue(result.disclosed)
    self.assertLen(model.calls, 1)
    self.assertTrue(result.text.startswith(evidence.DISCLOSURE_HEADER))

  def test_unparseable_output_is_disclosed(self):
    model = _ScriptedModel("申し訳ありませんが作成できません。")
    result = pipeline.write_description(_FACTS, _request(), model)
    self.assertTrue(result.disclosed)

  def test_required_facts_are_appended_and_banned_terms_marked(self):
    model = _ScriptedModel(_structured(
        ("access", [("交通至便、目黒駅から徒歩7分です。", ["最寄駅", "徒歩分"])]),
    ))
    request = _request(
        scope=data.Scope.BUILDING,
        must_include_keys=["築年年月", "築年", "間取り", "最寄り駅"],
    )
    result = pipeline.write_description(_FACTS, request, model)
    self.assertEqual(
        result.text,
        "交通※至便（表現調整）、目黒駅から徒歩7分です。\n\n"
        "【情報の明示（抽出値）】\n・築年：1991年3月",
    )
    self.assertIn("  - 築年: 1991年3月", model.calls[0]["prompt"])

  def test_free_text_output(self):
    model = _ScriptedModel(
        "パークハイツ目黒は駅至近です。周辺は静かと考えられます。目黒駅から徒歩7分です。"
    )
    result = pipeline.write_description(
        _FACTS, _request(output_shape=data.OutputShape.FREE_TEXT), model
    )
    self.assertIsNone(model.calls[0]["json_schema"])
    self.assertEqual(
        result.text,
        "パークハイツ目黒は駅※至近（表現調整）です。目黒駅から徒歩7分です。",
    )

  def test_free_text_building_scope_filters_unit_sentences(self):
    model = _ScriptedModel("目黒駅から徒歩7分です。間取りは3LDKです。")
    result = pipeline.write_description(
        _FACTS,
        _request(scope=data.Scope.BUILDING,
                 output_shape=data.OutputShape.FREE_TEXT),
        model,
    )
    self.assertEqual(result.text, "目黒駅から徒歩7分です。")

  def test_building_scope_with_only_unit_sentence_is_disclosed(self):
    model = _ScriptedModel(_structured(("building-overview", [_UNIT])))
    result = pipeline.write_description(
        _FACTS, _request(scope=data.Scope.BUILDING), model
    )
    self.assertTrue(result.disclosed)
    self.assertTrue(result.text.startswith(evidence.DISCLOSURE_HEADER))
    self.assertNotIn("3LDK", result.text)

  def test_building_scope_general_sentence_with_unit_words_is_disclosed(self):
    model = _ScriptedModel(_structured(("introduction", [
        ("東京都目黒区目黒1-2-3の3LDK住戸で、間取りにゆとりがあります。", ["所在地"]),
    ])))
    result = pipeline.write_description(
        _FACTS, _request(scope=data.Scope.BUILDING), model
    )
    self.assertTrue(result.disclosed)
    self.assertTrue(result.text.startswith(evidence.DISCLOSURE_HEADER))
    self.assertNotIn("3LDK", result.text)

  def test_free_text_building_scope_with_only_unit_sentence_is_disclosed(self):
    model = _ScriptedModel("間取りは3LDK、専有面積72.5㎡です。")
    result = pipeline.write_description(
        _FACTS,
        _request(scope=data.Scope.BUILDING,
                 output_shape=data.OutputShape.FREE_TEXT),
        model,
    )
    self.assertTrue(result.disclosed)
    self.assertTrue(result.text.startswith(evidence.DISCLOSURE_HEADER))
    self.assertNotIn("72.5㎡", result.text)

  def test_free_text_with_only_hedges_is_disclosed(self):
    model = _ScriptedModel("便利な立地と言えるでしょう。")
    result = pipeline.write_description(
        _FACTS, _request(output_shape=data.OutputShape.FREE_TEXT), model
    )
    self.assertTrue(result.disclosed)

  def test_disclosure_is_sanitized(self):
    model = _ScriptedModel("unused")
    result = pipeline.write_description(
        {"物件名": "最高ハイツ"}, _request(), model
    )
    self.assertIn("・物件名：※最高（表現調整）ハイツ", result.text)

  def test_service_errors_propagate(self):
    model = _ScriptedModel(error=exceptions.InferenceRuntimeError("down"))
    with self.assertRaises(exceptions.InferenceRuntimeError):
      pipeline.write_description(_FACTS, _request(), model)


class ResolveRequiredKeysTest(absltest.TestCase):

  def test_aliases_resolve_and_unknown_keys_drop(self):
    self.assertEqual(
        pipeline.resolve_required_keys(["最寄り駅", "謎", "最寄駅", "住所"]),
        ["最寄駅", "所在地"],
    )


_LISTING_PAGE = textwrap.dedent("""\
    <html><head><title>パークハイツ目黒</title></head><body>
    <table>
      <tr><th>物件名</th><td>パークハイツ目黒</td></tr>
      <tr><th>所在地</th><td>東京都目黒区目黒1-2-3</td></tr>
      <tr><th>築年月</th><td>1991年3月</td></tr>
      <tr><th>交通</th><td>目黒駅</td></tr>
      <tr><th>徒歩</th><td>7分</td></tr>
      <tr><th>間取り</th><td>3LDK</td></tr>
    </table>
    </body></html>
    """)

_AGENT_PAGE = textwrap.dedent("""\
    <html><body>
    <dl><dt>住所</dt><dd>東京都目黒区目黒1丁目2番3号</dd></dl>
    <p>管理形態：全部委託</p>
    </body></html>
    """)


class GenerateTest(absltest.TestCase):

  def test_merges_sources_manual_facts_and_name(self):
    pages = {
        "https://a.example/1": _LISTING_PAGE,
        "https://b.example/2": _AGENT_PAGE,
    }
    fetched = []

    def fetcher(url, timeout):
      fetched.append((url, timeout))
      if url not in pages:
        raise exceptions.RetrievalError("404", url=url)
      return pages[url]

    request = _request(
        sources=["https://a.example/1", "https://gone.example/3",
                 "https://b.example/2"],
        property_name="パークハイツ目黒 南棟",
        extra_text="専有面積：72.5㎡\n謎の項目：123",
    )
    model = _ScriptedModel(_structured(("access", [_ACCESS])))
    result = pipeline.generate(request, model, fetcher=fetcher, timeout=2.0)

    self.assertCountEqual(
        fetched,
        [("https://a.example/1", 2.0), ("https://gone.example/3", 2.0),
         ("https://b.example/2", 2.0)],
    )
    self.assertEqual(result.facts, {
        "物件名": "パークハイツ目黒 南棟",
        "所在地": "東京都目黒区目黒1丁目2番3号",
        "築年": "1991年3月",
        "最寄駅": "目黒駅",
        "徒歩分": "7分",
        "間取り": "3LDK",
        "管理体制": "全部委託",
        "専有面積": "72.5㎡",
    })
    self.assertEqual(result.text, "目黒駅から徒歩7分です。")

  def test_all_sources_failing_is_disclosed(self):
    def fetcher(url, timeout):
      raise exceptions.RetrievalError("timeout", url=url)

    model = _ScriptedModel("unused")
    result = pipeline.generate(_request(), model, fetcher=fetcher)
    self.assertTrue(result.disclosed)
    self.assertEqual(result.facts, {})
    self.assertEmpty(model.calls)


if __name__ == "__main__":
  absltest.main()
