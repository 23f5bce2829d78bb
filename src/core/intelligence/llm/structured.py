# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Schema-constrained generation with repair and safe defaults.

Example:
    >>> class Title(BaseModel):
    ...     title: str
    >>> result = await generate_structured(
    ...     client,
    ...     prompt="Suggest a title for this article: ...",
    ...     schema=Title,
    ...     schema_description='{"title": string}',
    ...     default=Title(title="Untitled"),
    ...     task=TaskType.TITLE,
    ... )
"""

import logging
from typing import Optional, TypeVar

from pydantic import BaseModel, ValidationError

from src.core.intelligence.llm.client import LLMClient
from src.core.intelligence.llm.errors import (
    InvalidResponseError,
    ProviderEmptyOutputError,
    ProviderMalformedOutputError,
    UnknownAIError,
)
from src.core.intelligence.llm.repair import repair_and_parse, strip_code_fences
from src.core.intelligence.llm.retry import RetryPolicy, with_error_handling
from src.core.intelligence.llm.router import ModelRouter, TaskType

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


async def generate_structured(
    client: LLMClient,
    prompt: str,
    schema: type[ModelT],
    schema_description: str,
    default: Optional[ModelT] = None,
    task: TaskType | str = TaskType.METADATA,
    system_prompt: Optional[str] = None,
    router: Optional[ModelRouter] = None,
    policy: Optional[RetryPolicy] = None,
) -> ModelT:
    """Generate an object matching a schema, recovering from bad output.

    The call runs under the retry policy with the schema passed as the
    response format. Only empty output and provider failures are retried.
    Output that does not validate goes straight through the two-layer
    repair pipeline in the same attempt; if that fails too, the default is
    returned.

    Args:
        client: LLM client.
        prompt: User prompt.
        schema: Pydantic model describing the expected output.
        schema_description: Human-readable shape used by the repair prompt.
        default: Value returned when output cannot be recovered. Without
            one, unrecoverable output raises InvalidResponseError.
        task: Task preset used to pick model parameters.
        system_prompt: Optional system prompt.
        router: Model router. A default router is created if None.
        policy: Retry policy. Defaults to settings.

    Returns:
        The validated object or the default.

    Raises:
        InvalidResponseError: If output was unrecoverable and no default given.
        AIServiceError: If the provider call itself fails terminally.
    """
    router = router or ModelRouter()
    config = router.select_model(task)
    label = task.value if isinstance(task, TaskType) else task

    async def _attempt() -> Optional[ModelT]:
        response = await client.complete(
            prompt=prompt,
            system_prompt=system_prompt,
            response_format=schema,
            **config.completion_params(),
        )
        try:
            return schema.model_validate_json(strip_code_fences(response.content))
        except ValidationError as e:
            logger.info("Structured output for %s did not match schema: %s", label, e)

        # Repair the returned text rather than regenerating.
        return await repair_and_parse(
            response.content,
            schema,
            schema_description,
            client,
            model_config=router.select_model(TaskType.REPAIR),
        )

    try:
        result = await with_error_handling(_attempt, f"{label} generation", policy=policy)
    except UnknownAIError as e:
        if not isinstance(e.original_error, ProviderEmptyOutputError):
            raise
        failure: Exception = e
    else:
        if result is not None:
            return result
        failure = ProviderMalformedOutputError(f"Structured output for {label} could not be repaired")

    if default is None:
        raise InvalidResponseError(
            f"Could not parse structured output for {label}",
            original_error=failure,
        ) from failure

    logger.warning("Could not parse structured output for %s, using default: %s", label, failure)
    return default
