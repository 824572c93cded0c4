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

"""Mansion Writer: fact-grounded listing descriptions.

Example:
  >>> import mansion_writer as mw
  >>> request = mw.data.GenerationRequest.from_payload({
  ...     "sources": ["https://example.com/listing/1"],
  ...     "tone": "一般的",
  ...     "length": 500,
  ... })
  >>> result = mw.generate(request, mw.config.Settings.from_env()
  ...                      .create_language_model())
"""

from __future__ import annotations

from mansion_writer import config
from mansion_writer import data
from mansion_writer import exceptions
from mansion_writer import pipeline

generate = pipeline.generate

__all__ = [
    "config",
    "data",
    "exceptions",
    "generate",
    "pipeline",
]
