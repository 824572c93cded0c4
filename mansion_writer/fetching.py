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

"""Retrieval of listing sources.

URL sources are fetched concurrently, each bounded by a timeout. A failed
retrieval contributes an empty fact set; it never fails the request. Sources
that are not URLs are treated as pasted markup or text.
"""

from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor

from absl import logging
import requests

from mansion_writer import data
from mansion_writer import exceptions
from mansion_writer import extraction

FETCH_TIMEOUT_SECONDS = 10.0

_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (compatible; MansionWriter-PropertyScraper/1.0)"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
}

Fetcher = Callable[[str, float], str]


def fetch_source(url: str, timeout: float = FETCH_TIMEOUT_SECONDS) -> str:
  """Fetches one URL.

  Args:
    url: Page URL.
    timeout: Seconds before the request is abandoned.

  Returns:
    Response body as text.

  Raises:
    RetrievalError: On timeout, transport error or non-success status.
  """
  try:
    response = requests.get(url, headers=_HEADERS, timeout=timeout)
    response.raise_for_status()
  except requests.RequestException as e:
    raise exceptions.RetrievalError(f"Fetch failed: {e}", url=url) from e
  if not response.encoding or response.encoding.lower() == "iso-8859-1":
    response.encoding = response.apparent_encoding
  return response.text


def _facts_for_source(
    source: str, fetcher: Fetcher, timeout: float
) -> data.FactSet:
  if not data.is_url(source):
    return extraction.extract_facts(source).facts
  try:
    markup = fetcher(source, timeout)
  except exceptions.RetrievalError as e:
    logging.warning("Skipping source %s: %s", source, e)
    return {}
  result = extraction.extract_facts(markup)
  logging.info("Extracted %d facts from %s (title=%r)",
               len(result.facts), source, result.title)
  return result.facts


def collect_source_facts(
    sources: Sequence[str],
    fetcher: Fetcher = fetch_source,
    timeout: float = FETCH_TIMEOUT_SECONDS,
) -> list[data.FactSet]:
  """Extracts a partial fact set from every source.

  Results are returned in source order regardless of completion order.
  """
  if not sources:
    return []
  with ThreadPoolExecutor(max_workers=len(sources)) as ex:
    futures = [ex.submit(_facts_for_source, s, fetcher, timeout)
               for s in sources]
    return [f.result() for f in futures]
