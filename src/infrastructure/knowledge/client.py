# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Open Notebook API client.

Async HTTP client for the Open Notebook knowledge service. It implements
the KnowledgeService protocol consumed by the research tools:

- Search (vector or text) with result normalization
- Q&A with model names resolved to the service's model ids
- Chat sessions for multi-turn exploration
- Full notebook context

Model names are resolved against GET /api/models. The model list is
cached for a few minutes; when a refresh fails the stale list is used.

Example:
    client = OpenNotebookClient(
        base_url="http://localhost:5055",
        password="secret",
    )

    response = await client.search("pricing strategy", limit=5)
    answer = await client.ask("What did we publish about pricing?")
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

import aiohttp

from src.core.config.settings import KnowledgeSettings
from src.core.tools.services import (
    AskResponse,
    ChatResponse,
    ChatSession,
    ChatTurn,
    NotebookContext,
    SearchHit,
    SearchResponse,
    SearchType,
)
from src.infrastructure.knowledge.exceptions import (
    KnowledgeAPIError,
    KnowledgeServiceError,
)

logger = logging.getLogger(__name__)

MODEL_ID_PREFIX = "model:"


@dataclass(frozen=True)
class KnowledgeModel:
    """A model registered in the knowledge service."""

    id: str
    name: str
    provider: Optional[str] = None


def normalize_search_hit(raw: dict[str, Any]) -> SearchHit:
    """Convert one raw search result into a SearchHit.

    The API is inconsistent about field names: the display name may come
    as source_name or title, the score as score or relevance.
    """
    score = raw.get("score")
    if score is None:
        score = raw.get("relevance")
    return SearchHit(
        id=raw.get("id") or None,
        content=raw.get("content") or "",
        source_name=raw.get("source_name") or raw.get("title") or "Unknown",
        score=float(score or 0),
        metadata=dict(raw.get("metadata") or {}),
    )


def _parse_model(raw: dict[str, Any]) -> KnowledgeModel:
    model_id = str(raw.get("id") or "")
    name = raw.get("name") or raw.get("model_name") or raw.get("display_name") or model_id
    provider = raw.get("provider")
    return KnowledgeModel(
        id=model_id,
        name=str(name),
        provider=str(provider) if provider else None,
    )


class OpenNotebookClient:
    """Async HTTP client for the Open Notebook API.

    Attributes:
        base_url: Base URL of the API server.
        default_model: Model name used for Q&A stages with no override.
        models_cache_ttl: Seconds a fetched model list stays valid.
        timeout: Request timeout.
    """

    def __init__(
        self,
        base_url: str,
        password: Optional[str] = None,
        default_model: str = "gemini-2.5-flash",
        models_cache_ttl: float = 300.0,
        timeout: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the client.

        Args:
            base_url: Base URL of the API server.
            password: Bearer token for the Authorization header.
            default_model: Model name used for Q&A stages with no override.
            models_cache_ttl: Seconds a fetched model list stays valid.
            timeout: Request timeout in seconds.
            clock: Monotonic clock used for cache expiry.
        """
        self.base_url = base_url.rstrip("/")
        self.default_model = default_model
        self.models_cache_ttl = models_cache_ttl
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self._password = password
        self._clock = clock
        self._models_cache: Optional[list[KnowledgeModel]] = None
        self._models_cache_time = 0.0
        self._models_lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, settings: KnowledgeSettings) -> "OpenNotebookClient":
        """Create a client from knowledge settings."""
        password = settings.password.get_secret_value() if settings.password else None
        return cls(
            base_url=settings.url,
            password=password,
            default_model=settings.default_model,
            models_cache_ttl=settings.models_cache_ttl,
            timeout=settings.request_timeout,
        )

    def _get_headers(self) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if self._password:
            headers["Authorization"] = f"Bearer {self._password}"
        return headers

    async def _request(
        self,
        endpoint: str,
        method: str = "GET",
        body: Optional[dict[str, Any]] = None,
    ) -> Any:
        """Send one request and return the decoded JSON body.

        Raises:
            KnowledgeAPIError: If the API returns an error status.
            KnowledgeServiceError: If the API cannot be reached.
        """
        url = f"{self.base_url}{endpoint}"
        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.request(
                    method,
                    url,
                    json=body,
                    headers=self._get_headers(),
                ) as response:
                    if response.status >= 400:
                        text = await response.text()
                        raise KnowledgeAPIError(status_code=response.status, response_body=text)
                    return await response.json()
        except KnowledgeAPIError as e:
            logger.error("Open Notebook request failed: %s %s", endpoint, e)
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error("Open Notebook request failed: %s %s", endpoint, e)
            raise KnowledgeServiceError(
                message=f"Failed to connect to Open Notebook API: {e}",
                details={"endpoint": endpoint, "error_type": type(e).__name__},
            ) from e

    async def search(
        self,
        query: str,
        search_type: SearchType = "vector",
        limit: int = 5,
        minimum_score: float = 0.3,
        notebook_id: Optional[str] = None,
    ) -> SearchResponse:
        """Search sources and notes.

        Args:
            query: Search text.
            search_type: "vector" for semantic, "text" for keyword.
            limit: Maximum number of results.
            minimum_score: Minimum relevance score.
            notebook_id: Restrict the search to one notebook.

        Returns:
            Normalized search response.
        """
        body: dict[str, Any] = {
            "query": query,
            "type": search_type,
            "limit": limit,
            "search_sources": True,
            "search_notes": True,
            "minimum_score": minimum_score,
        }
        if notebook_id:
            body["notebook_id"] = notebook_id

        logger.info("Searching knowledge base: %r (type=%s, limit=%d)", query[:50], search_type, limit)

        data = await self._request("/api/search", "POST", body)
        results = [normalize_search_hit(raw) for raw in data.get("results") or []]

        logger.debug(
            "Search returned %d results (total_count=%s)",
            len(results),
            data.get("total_count"),
        )

        return SearchResponse(
            results=results,
            total_count=int(data.get("total_count", len(results))),
            search_type=data.get("search_type", search_type),
        )

    async def get_models(self) -> list[KnowledgeModel]:
        """Get the service's models, cached for models_cache_ttl seconds.

        A failed refresh returns the stale list, or an empty list when
        nothing was fetched yet.
        """
        async with self._models_lock:
            now = self._clock()
            if (
                self._models_cache is not None
                and now - self._models_cache_time < self.models_cache_ttl
            ):
                return self._models_cache

            logger.info("Fetching models from Open Notebook API")
            try:
                raw_models = await self._request("/api/models")
            except KnowledgeServiceError as e:
                logger.error("Failed to fetch models from Open Notebook: %s", e)
                return self._models_cache or []

            models = [_parse_model(raw) for raw in raw_models or []]
            self._models_cache = models
            self._models_cache_time = now
            logger.info("Fetched %d models", len(models))
            return models

    async def resolve_model_id(self, model_name: str) -> Optional[str]:
        """Look up a model id by name.

        Tries, in order: id match, exact name (case-insensitive), a model
        name containing the search term, and the search term containing a
        model name.

        Args:
            model_name: Model name or id, with or without the "model:" prefix.

        Returns:
            The model id, or None if no model matches.
        """
        search_name = model_name.removeprefix(MODEL_ID_PREFIX)
        models = await self.get_models()
        if not models:
            logger.warning("No models available from Open Notebook API")
            return None

        lower_name = search_name.lower()
        matchers: list[tuple[str, Callable[[KnowledgeModel], bool]]] = [
            ("id", lambda m: m.id in (model_name, f"{MODEL_ID_PREFIX}{search_name}")),
            ("exact name", lambda m: m.name.lower() == lower_name),
            ("partial", lambda m: lower_name in m.name.lower()),
            ("reverse partial", lambda m: bool(m.name) and m.name.lower() in lower_name),
        ]
        for kind, matches in matchers:
            match = next((m for m in models if matches(m)), None)
            if match is not None:
                logger.debug("Model %r resolved to %r (%s match)", model_name, match.id, kind)
                return match.id

        logger.warning(
            "Model %r not found. Available: %s",
            model_name,
            ", ".join(f"{m.name}({m.id})" for m in models),
        )
        return None

    async def resolve_model_id_with_fallback(self, model_name: str) -> str:
        """Resolve a model id, falling back to the first available model.

        With no models at all, returns the name with the "model:" prefix.
        """
        resolved = await self.resolve_model_id(model_name)
        if resolved:
            return resolved

        models = await self.get_models()
        if models:
            logger.warning("Using fallback model: %s (%s)", models[0].name, models[0].id)
            return models[0].id

        logger.error("No models available from API, using original: model:%s", model_name)
        return f"{MODEL_ID_PREFIX}{model_name}"

    async def ask(
        self,
        question: str,
        strategy_model: Optional[str] = None,
        answer_model: Optional[str] = None,
        final_answer_model: Optional[str] = None,
    ) -> AskResponse:
        """Ask a question and get a synthesized answer.

        Args:
            question: Question text.
            strategy_model: Model name for the search strategy stage.
            answer_model: Model name for per-source answers.
            final_answer_model: Model name for the final synthesis.

        Returns:
            The answer and the question it answers.
        """
        logger.info("Asking knowledge base: %r", question[:50])

        strategy, answer, final = await asyncio.gather(
            self.resolve_model_id_with_fallback(strategy_model or self.default_model),
            self.resolve_model_id_with_fallback(answer_model or self.default_model),
            self.resolve_model_id_with_fallback(final_answer_model or self.default_model),
        )
        logger.debug("Ask models: strategy=%s, answer=%s, final=%s", strategy, answer, final)

        data = await self._request(
            "/api/search/ask/simple",
            "POST",
            {
                "question": question,
                "strategy_model": strategy,
                "answer_model": answer,
                "final_answer_model": final,
            },
        )
        return AskResponse(
            answer=data.get("answer") or "",
            question=data.get("question") or question,
        )

    async def create_chat_session(
        self,
        notebook_id: str,
        title: Optional[str] = None,
        model_override: Optional[str] = None,
    ) -> ChatSession:
        """Create a chat session in a notebook."""
        data = await self._request(
            "/api/chat/sessions",
            "POST",
            {"notebook_id": notebook_id, "title": title, "model_override": model_override},
        )
        return ChatSession(
            id=str(data["id"]),
            notebook_id=data.get("notebook_id") or notebook_id,
            title=data.get("title"),
        )

    async def execute_chat(
        self,
        session_id: str,
        message: str,
        model_override: Optional[str] = None,
    ) -> ChatResponse:
        """Send a message in a chat session.

        Returns:
            The session's messages after the reply.
        """
        logger.info("Executing chat in session: %s", session_id)
        data = await self._request(
            "/api/chat/execute",
            "POST",
            {
                "session_id": session_id,
                "message": message,
                "context": {},
                "model_override": model_override,
            },
        )
        return ChatResponse(
            session_id=data.get("session_id") or session_id,
            messages=[
                ChatTurn(role=m.get("role", "assistant"), content=m.get("content") or "")
                for m in data.get("messages") or []
            ],
        )

    async def build_context(self, notebook_id: str) -> NotebookContext:
        """Build the full context of a notebook."""
        data = await self._request(
            f"/api/notebooks/{notebook_id}/context",
            "POST",
            {"notebook_id": notebook_id},
        )
        return NotebookContext(
            context=data.get("context") or {},
            token_count=int(data.get("token_count") or 0),
            char_count=int(data.get("char_count") or 0),
        )

    async def health_check(self) -> bool:
        """Check whether the service answers."""
        try:
            await self._request("/api/config")
        except KnowledgeServiceError:
            return False
        return True
