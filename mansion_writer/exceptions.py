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

"""Public exceptions API for Mansion Writer.

Request validation and text-service failures surface to the caller. Retrieval
and grounding failures are absorbed by the pipeline.
"""

from __future__ import annotations

__all__ = [
    "MansionWriterError",
    "RequestValidationError",
    "RetrievalError",
    "InferenceError",
    "InferenceConfigError",
    "InferenceRuntimeError",
    "GroundingError",
]


class MansionWriterError(Exception):
  """Base exception for all Mansion Writer errors."""


class RequestValidationError(MansionWriterError):
  """The inbound request is missing fields or holds out-of-range values."""


class RetrievalError(MansionWriterError):
  """A source document could not be retrieved."""

  def __init__(self, message: str, url: str | None = None):
    super().__init__(message)
    self.url = url


class InferenceError(MansionWriterError):
  """Base class for text-generation service errors."""


class InferenceConfigError(InferenceError):
  """The text-generation client is misconfigured (missing key or model)."""


class InferenceRuntimeError(InferenceError):
  """The text-generation service call failed."""

  def __init__(
      self,
      message: str,
      *,
      original: BaseException | None = None,
      provider: str | None = None,
  ):
    super().__init__(message)
    self.original = original
    self.provider = provider


class GroundingError(MansionWriterError):
  """No generated sentence survived grounding validation."""
