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

"""Tests for the HTTP surface."""

import json

from absl.testing import absltest

from mansion_writer import config
from mansion_writer import exceptions
from mansion_writer import inference
from web import app as app_lib

_PAGE = (
    "<table><tr><th>所在地</th><td>東京都目黒区目黒1-2-3</td></tr>"
    "<tr><th>築年月</th><td>1991年3月</td></tr>"
    "<tr><th>交通</th><td>目黒駅</td></tr></table>"
)
_PAYLOAD = {"sources": ["https://example.com/1"], "tone": "一般的",
            "length": 400}


class _Model(inference.BaseLanguageModel):

  def __init__(self, output="", error=None):
    self.output = output
    self.error = error

  def infer(self, prompt, *, instructions=None, json_schema=None):
    if self.error is not None:
      raise self.error
    return inference.ScoredOutput(score=1.0, output=self.output)


def _fetcher(url, timeout):
  del url, timeout
  return _PAGE


class GenerateEndpointTest(absltest.TestCase):

  def _client(self, model=None):
    app = app_lib.create_app(language_model=model, settings=config.Settings(),
                             fetcher=_fetcher)
    return app.test_client()

  def test_healthz(self):
    response = self._client(_Model()).get("/healthz")
    self.assertEqual(response.status_code, 200)
    self.assertEqual(response.get_json(), {"status": "ok"})

  def test_generates_description(self):
    output = json.dumps({"sections": [{"name": "access", "sentences": [
        {"text": "最寄りは目黒駅です。", "keys": ["最寄駅"]}]}]},
                        ensure_ascii=False)
    response = self._client(_Model(output)).post("/api/generate",
                                                 json=_PAYLOAD)
    self.assertEqual(response.status_code, 200)
    self.assertEqual(response.get_json(), {
        "text": "最寄りは目黒駅です。",
        "facts": {"所在地": "東京都目黒区目黒1-2-3", "築年": "1991年3月",
                  "最寄駅": "目黒駅"},
    })

  def test_requires_json_body(self):
    response = self._client(_Model()).post(
        "/api/generate", data="sources=x", content_type="text/plain"
    )
    self.assertEqual(response.status_code, 400)

  def test_invalid_request(self):
    response = self._client(_Model()).post(
        "/api/generate", json=dict(_PAYLOAD, length=50)
    )
    self.assertEqual(response.status_code, 400)
    self.assertIn("length", response.get_json()["error"])

  def test_service_failure_is_bad_gateway(self):
    model = _Model(error=exceptions.InferenceRuntimeError("upstream down"))
    response = self._client(model).post("/api/generate", json=_PAYLOAD)
    self.assertEqual(response.status_code, 502)
    self.assertIn("upstream down", response.get_json()["error"])

  def test_missing_api_key_is_server_error(self):
    response = self._client().post("/api/generate", json=_PAYLOAD)
    self.assertEqual(response.status_code, 500)
    self.assertEqual(response.get_json(), {"error": "API key not provided."})


if __name__ == "__main__":
  absltest.main()
