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

"""End-to-end description writing.

sources -> extract -> merge -> scope -> evidence gate -> generate -> ground ->
drop hedges -> scope text -> completeness -> sanitize.
"""

from collections.abc import Mapping, Sequence

from absl import logging

from mansion_writer import data
from mansion_writer import evidence
from mansion_writer import exceptions
from mansion_writer import fetching
from mansion_writer import grounding
from mansion_writer import inference
from mansion_writer import merging
from mansion_writer import prompting
from mansion_writer import scoping
from mansion_writer import vocabulary as vocabulary_lib
from postprocessing import enforce_must_include
from postprocessing import sanitize_banned


def gather_facts(
    request: data.GenerationRequest,
    fetcher: fetching.Fetcher = fetching.fetch_source,
    timeout: float = fetching.FETCH_TIMEOUT_SECONDS,
) -> data.FactSet:
  """Merges facts from all sources, then manual facts, then the name."""
  per_source = fetching.collect_source_facts(
      request.sources, fetcher=fetcher, timeout=timeout
  )
  merged = merging.merge_all(per_source)
  merged = merging.merge_facts(
      merged, merging.parse_manual_facts(request.extra_text)
  )
  merged = merging.apply_property_name(merged, request.property_name)
  logging.info("Merged %d facts from %d source(s)", len(merged),
               len(request.sources))
  return merged


def resolve_required_keys(
    keys: Sequence[str], vocab: vocabulary_lib.Vocabulary | None = None
) -> list[str]:
  vocab = vocab or vocabulary_lib.get_vocabulary()
  resolved = []
  for key in keys:
    canonical = vocab.canonical_key(key)
    if canonical is None:
      logging.warning("Ignoring unknown must-include key %r", key)
    elif canonical not in resolved:
      resolved.append(canonical)
  return resolved


def finalize_text(
    text: str,
    facts: Mapping[str, str],
    required_keys: Sequence[str],
    scope: data.Scope,
) -> str:
  """Applies the post-generation passes to validated or free text.

  Returns an empty string when no sentence may be shown at the scope.
  """
  text = sanitize_banned.drop_hedge_sentences(text)
  text = "".join(scoping.filter_unit_sentences(text, scope)).strip()
  if not text:
    return ""
  text = enforce_must_include.enforce_must_include(
      text, facts, required_keys, scope
  )
  return sanitize_banned.mark_banned_terms(text)


def _disclose(facts: data.FactSet, scope: data.Scope) -> data.GenerationResult:
  return data.GenerationResult(
      text=sanitize_banned.mark_banned_terms(
          evidence.disclosure_text(facts, scope)
      ),
      facts=facts,
      disclosed=True,
  )


def write_description(
    facts: Mapping[str, str],
    request: data.GenerationRequest,
    language_model: inference.BaseLanguageModel,
) -> data.GenerationResult:
  """Runs scope filtering, the evidence gate and generation on merged facts.

  Args:
    facts: Merged fact set.
    request: The validated request.
    language_model: Text-generation service.

  Returns:
    The generated description, or the disclosure when evidence is too thin or
    nothing survives grounding.

  Raises:
    InferenceError: If the text-generation service fails.
  """
  scoped = scoping.scope_facts(facts, request.scope)
  if not evidence.has_enough_evidence(scoped):
    logging.info("Only %d facts known; withholding generation",
                 evidence.count_facts(scoped))
    return _disclose(scoped, request.scope)

  required = resolve_required_keys(request.must_include_keys)
  gen_prompt = prompting.build_generation_prompt(
      scoped,
      scope=request.scope,
      tone=request.tone,
      length=request.length,
      must_include_keys=required,
      output_shape=request.output_shape,
  )
  result = language_model.infer(
      gen_prompt.prompt,
      instructions=gen_prompt.instructions,
      json_schema=gen_prompt.json_schema,
  )
  raw = result.output or ""

  if request.output_shape is data.OutputShape.STRUCTURED:
    try:
      grounded = grounding.validate_output(
          raw, gen_prompt.permitted_keys, scoped
      )
    except exceptions.GroundingError as e:
      logging.warning("Grounding failed, returning disclosure: %s", e)
      return _disclose(scoped, request.scope)
    text = grounded.text
  else:
    text = raw

  final = finalize_text(text, scoped, required, request.scope)
  if not final:
    logging.warning("Nothing left after post-processing; returning disclosure")
    return _disclose(scoped, request.scope)
  return data.GenerationResult(text=final, facts=scoped)


def generate(
    request: data.GenerationRequest,
    language_model: inference.BaseLanguageModel,
    fetcher: fetching.Fetcher = fetching.fetch_source,
    timeout: float = fetching.FETCH_TIMEOUT_SECONDS,
) -> data.GenerationResult:
  """Writes a listing description for one request."""
  facts = gather_facts(request, fetcher=fetcher, timeout=timeout)
  return write_description(facts, request, language_model)
