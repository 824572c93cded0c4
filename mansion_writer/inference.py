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

"""Language model interface used to write listing copy."""

import abc
import dataclasses
from typing import Any

from absl import logging
import openai

from mansion_writer import exceptions

DEFAULT_MODEL_ID = "gpt-4.1-mini"


@dataclasses.dataclass(frozen=True)
class ScoredOutput:
  """Scored output."""

  score: float | None = None
  output: str | None = None

  def __str__(self) -> str:
    if self.output is None:
      return f"Score: {self.score:.2f}\nOutput: None"
    return f"Score: {self.score:.2f}\nOutput:\n{self.output}"


class BaseLanguageModel(abc.ABC):
  """An abstract inference class for the text-generation service."""

  @abc.abstractmethod
  def infer(
      self,
      prompt: str,
      *,
      instructions: str | None = None,
      json_schema: dict[str, Any] | None = None,
  ) -> ScoredOutput:
    """Generates text for one prompt.

    Args:
      prompt: User prompt.
      instructions: System instructions.
      json_schema: Output schema; when given the service must return a
        schema-conforming JSON payload, otherwise free text.

    Returns:
      The generated output.

    Raises:
      InferenceRuntimeError: If the service call fails.
    """


class OpenAILanguageModel(BaseLanguageModel):
  """Language model inference using an OpenAI-compatible chat API."""

  def __init__(
      self,
      model_id: str = DEFAULT_MODEL_ID,
      api_key: str | None = None,
      base_url: str | None = None,
      temperature: float = 0.0,
      timeout: float | None = None,
  ) -> None:
    """Initialize the OpenAI language model.

    Args:
      model_id: The model ID to use.
      api_key: API key for the service.
      base_url: Base URL for OpenAI-compatible endpoints (e.g. OpenRouter).
      temperature: Sampling temperature.
      timeout: Request timeout in seconds.

    Raises:
      InferenceConfigError: If the API key or model ID is missing.
    """
    if not api_key:
      raise exceptions.InferenceConfigError("API key not provided.")
    if not model_id:
      raise exceptions.InferenceConfigError("Model ID not provided.")
    self.model_id = model_id
    self.temperature = temperature
    self._client = openai.OpenAI(
        api_key=api_key, base_url=base_url, timeout=timeout
    )

  def infer(
      self,
      prompt: str,
      *,
      instructions: str | None = None,
      json_schema: dict[str, Any] | None = None,
  ) -> ScoredOutput:
    messages = []
    if instructions:
      messages.append({"role": "system", "content": instructions})
    messages.append({"role": "user", "content": prompt})

    api_params: dict[str, Any] = {
        "model": self.model_id,
        "messages": messages,
        "temperature": self.temperature,
        "n": 1,
    }
    if json_schema is not None:
      api_params["response_format"] = {
          "type": "json_schema",
          "json_schema": json_schema,
      }

    try:
      response = self._client.chat.completions.create(**api_params)
    except openai.OpenAIError as e:
      raise exceptions.InferenceRuntimeError(
          f"OpenAI API error: {e}", original=e, provider="openai"
      ) from e

    try:
      output = response.choices[0].message.content
    except (AttributeError, IndexError) as e:
      raise exceptions.InferenceRuntimeError(
          "OpenAI API returned no choices", original=e, provider="openai"
      ) from e
    logging.debug("Model %s returned %d chars", self.model_id, len(output or ""))
    return ScoredOutput(score=1.0, output=(output or "").strip())
