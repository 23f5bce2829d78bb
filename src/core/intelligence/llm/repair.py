# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Two-layer repair of malformed structured model output.

Layer 1 fixes syntax locally with json_repair (missing quotes, trailing
commas, truncated objects, markdown fences). Layer 2 asks a fast model to
rewrite the text into the expected shape. Both layers verify their output
parses as JSON before returning it; neither raises on failure.

Example:
    >>> repair_json_syntax('```json\\n{title: "Foo",}\\n```')
    '{"title": "Foo"}'
"""

import json
import logging
from typing import Optional, TypeVar

from json_repair import repair_json
from pydantic import BaseModel, ValidationError

from src.core.intelligence.llm.client import LLMClient
from src.core.intelligence.llm.errors import LLMError
from src.core.intelligence.llm.router import ModelConfig, ModelRouter, TaskType

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

NULL_OUTPUT_ERROR = "Output was null - could not parse structured output"

REPAIR_SYSTEM_PROMPT = """You are a JSON repair assistant. The expected output should be: {schema_description}
Fix the malformed JSON and return ONLY valid JSON, nothing else. Do not include markdown code blocks.
The error was: {error}"""

REPAIR_USER_PROMPT = "Fix this malformed JSON:\n\n{text}"


def strip_code_fences(text: str) -> str:
    """Remove a surrounding markdown code fence from model output.

    Args:
        text: Raw model output.

    Returns:
        The trimmed text without a leading ```json / ``` and trailing ```.
    """
    cleaned = text.strip()
    if cleaned.startswith("```json"):
        cleaned = cleaned[7:]
    elif cleaned.startswith("```"):
        cleaned = cleaned[3:]
    if cleaned.endswith("```"):
        cleaned = cleaned[:-3]
    return cleaned.strip()


def repair_json_syntax(text: str) -> Optional[str]:
    """Fix JSON syntax errors without a model call.

    Args:
        text: Possibly malformed JSON text.

    Returns:
        Valid JSON text, or None if the text could not be repaired.
    """
    cleaned = strip_code_fences(text)
    if not cleaned:
        return None

    repaired = repair_json(cleaned)
    if not isinstance(repaired, str):
        repaired = json.dumps(repaired)

    try:
        json.loads(repaired)
    except (json.JSONDecodeError, TypeError) as e:
        logger.debug("json_repair could not fix the JSON: %s", e)
        return None

    # json_repair returns an empty string literal when it finds no JSON at all
    if repaired.strip() == '""' and cleaned != '""':
        logger.debug("json_repair found no JSON in the text")
        return None

    logger.info("Successfully repaired JSON with json_repair")
    return repaired


async def repair_json_with_llm(
    client: LLMClient,
    text: str,
    schema_description: str,
    error: str,
    model_config: Optional[ModelConfig] = None,
) -> Optional[str]:
    """Ask a model to rewrite malformed JSON into the expected shape.

    Args:
        client: LLM client used for the repair call.
        text: The malformed output.
        schema_description: Human-readable description of the expected shape.
        error: The validation or parse error observed.
        model_config: Generation parameters. Defaults to the repair preset.

    Returns:
        Valid JSON text, or None if the model call or its output failed.
    """
    config = model_config or ModelRouter().select_model(TaskType.REPAIR)
    logger.info("Attempting LLM repair for: %s", schema_description)

    try:
        response = await client.complete(
            prompt=REPAIR_USER_PROMPT.format(text=text),
            system_prompt=REPAIR_SYSTEM_PROMPT.format(
                schema_description=schema_description,
                error=error,
            ),
            **config.completion_params(),
        )
        cleaned = strip_code_fences(response.content)
        json.loads(cleaned)
    except (LLMError, ValueError) as e:
        logger.warning("LLM repair failed for %s: %s", schema_description, e)
        return None

    logger.info("Successfully repaired JSON with LLM for: %s", schema_description)
    return cleaned


def _validate(schema: type[ModelT], text: str) -> ModelT:
    return schema.model_validate(json.loads(text))


async def repair_and_parse(
    text: Optional[str],
    schema: type[ModelT],
    schema_description: str,
    client: LLMClient,
    model_config: Optional[ModelConfig] = None,
) -> Optional[ModelT]:
    """Repair raw model output and validate it against a schema.

    Tries the local syntax repair first, then the model-based repair.

    Args:
        text: Raw output that failed to parse.
        schema: Pydantic model describing the expected shape.
        schema_description: Human-readable description for the repair prompt.
        client: LLM client for the model-based layer.
        model_config: Generation parameters for the model-based layer.

    Returns:
        The validated object, or None if both layers failed.
    """
    if not text:
        return None

    logger.info("Attempting to repair raw text output")
    error = NULL_OUTPUT_ERROR

    syntax_repaired = repair_json_syntax(text)
    if syntax_repaired is not None:
        try:
            parsed = _validate(schema, syntax_repaired)
        except ValidationError as e:
            logger.debug("json_repair output did not match schema: %s", e)
            error = str(e)
        else:
            logger.info("Successfully repaired with json_repair")
            return parsed

    llm_repaired = await repair_json_with_llm(
        client,
        text,
        schema_description,
        error,
        model_config=model_config,
    )
    if llm_repaired is None:
        return None

    try:
        parsed = _validate(schema, llm_repaired)
    except ValidationError as e:
        logger.warning("LLM repair output did not match schema: %s", e)
        return None

    logger.info("Successfully repaired with LLM")
    return parsed
