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

"""Runtime settings read from the environment (and an optional .env file)."""

from collections.abc import Mapping
import dataclasses
import os

from absl import logging
from dotenv import load_dotenv

from mansion_writer import inference

DEFAULT_FETCH_TIMEOUT = 10.0
DEFAULT_TEMPERATURE = 0.2


def _float_env(env: Mapping[str, str], name: str, default: float) -> float:
  raw = env.get(name)
  if raw is None or not raw.strip():
    return default
  try:
    return float(raw)
  except ValueError:
    logging.warning("Invalid %s=%r; using %s", name, raw, default)
    return default


@dataclasses.dataclass(frozen=True)
class Settings:
  openai_api_key: str | None = None
  openai_base_url: str | None = None
  model_id: str = inference.DEFAULT_MODEL_ID
  temperature: float = DEFAULT_TEMPERATURE
  fetch_timeout: float = DEFAULT_FETCH_TIMEOUT
  log_level: str = "info"

  @classmethod
  def from_env(
      cls, env: Mapping[str, str] | None = None, dotenv: bool = True
  ) -> "Settings":
    """Reads settings, loading .env into os.environ first when asked."""
    if env is None:
      if dotenv:
        load_dotenv()
      env = os.environ
    timeout = _float_env(env, "MANSION_WRITER_FETCH_TIMEOUT",
                         DEFAULT_FETCH_TIMEOUT)
    if timeout <= 0:
      logging.warning("Fetch timeout must be positive; using %s",
                      DEFAULT_FETCH_TIMEOUT)
      timeout = DEFAULT_FETCH_TIMEOUT
    return cls(
        openai_api_key=env.get("OPENAI_API_KEY") or None,
        openai_base_url=env.get("OPENAI_BASE_URL") or None,
        model_id=env.get("MANSION_WRITER_MODEL") or inference.DEFAULT_MODEL_ID,
        temperature=_float_env(env, "MANSION_WRITER_TEMPERATURE",
                               DEFAULT_TEMPERATURE),
        fetch_timeout=timeout,
        log_level=(env.get("MANSION_WRITER_LOG_LEVEL") or "info").lower(),
    )

  def create_language_model(self) -> inference.OpenAILanguageModel:
    return inference.OpenAILanguageModel(
        model_id=self.model_id,
        api_key=self.openai_api_key,
        base_url=self.openai_base_url,
        temperature=self.temperature,
    )
