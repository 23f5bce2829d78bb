# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Task-based model selection.

Each generation task (agent loop, output repair, title generation, ...) has
a preset: model, temperature, output token limit and an optional thinking
level. Presets can be overridden per deployment from config/llm/models.yaml:

    tasks:
      agent:
        model: gemini/gemini-2.5-pro
        temperature: 0.4
        thinking_level: high

Example:
    >>> from src.core.intelligence.llm import ModelRouter
    >>> router = ModelRouter()
    >>> config = router.select_model("agent")
    >>> config.thinking_budget
    8192
"""

import logging
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path
from typing import Any, Optional

import yaml

from src.core.config.settings import LLMSettings, get_settings

logger = logging.getLogger(__name__)

FLASH_MODEL = "gemini/gemini-2.5-flash"
PRO_MODEL = "gemini/gemini-2.5-pro"


class ThinkingLevel(str, Enum):
    """Reasoning effort requested from models that support it."""

    MINIMAL = "minimal"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


THINKING_BUDGETS: dict[ThinkingLevel, int] = {
    ThinkingLevel.MINIMAL: 1024,
    ThinkingLevel.LOW: 4096,
    ThinkingLevel.MEDIUM: 8192,
    ThinkingLevel.HIGH: 16384,
}

DEFAULT_THINKING_BUDGET = 4096


class TaskType(str, Enum):
    """Generation tasks with their own model presets."""

    AGENT = "agent"
    RESEARCH = "research"
    REPAIR = "repair"
    REFINE = "refine"
    TITLE = "title"
    SUBJECT = "subject"
    EXCERPT = "excerpt"
    PREVIEW_TEXT = "preview_text"
    METADATA = "metadata"
    POST_DETAILS = "post_details"
    ARTICLE_CONTENT = "article_content"
    IMAGE = "image"
    BULK_CONTENT = "bulk_content"


@dataclass(frozen=True)
class ModelConfig:
    """Generation parameters for one task.

    Attributes:
        model: Model name in LiteLLM format.
        temperature: Sampling temperature.
        max_tokens: Maximum output tokens.
        thinking_level: Optional reasoning effort.
    """

    model: str
    temperature: float = 0.7
    max_tokens: int = 8192
    thinking_level: Optional[ThinkingLevel] = None

    @property
    def thinking_budget(self) -> Optional[int]:
        """Token budget for the thinking level, if one is set."""
        if self.thinking_level is None:
            return None
        return THINKING_BUDGETS.get(self.thinking_level, DEFAULT_THINKING_BUDGET)

    def completion_params(self) -> dict[str, Any]:
        """Keyword arguments for LLMClient calls."""
        params: dict[str, Any] = {
            "model": self.model,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }
        if self.thinking_budget is not None:
            params["thinking"] = {"type": "enabled", "budget_tokens": self.thinking_budget}
        return params

    @classmethod
    def from_dict(cls, data: dict[str, Any], base: Optional["ModelConfig"] = None) -> "ModelConfig":
        """Create ModelConfig from dictionary, filling gaps from a base preset.

        Args:
            data: Dictionary with model configuration.
            base: Preset whose values are used for missing keys.

        Returns:
            ModelConfig instance.

        Raises:
            ValueError: If no model is given and there is no base preset.
        """
        level = data.get("thinking_level")
        if base is None:
            if "model" not in data:
                raise ValueError("Model config requires 'model'")
            base = cls(model=data["model"])

        return replace(
            base,
            model=data.get("model", base.model),
            temperature=float(data.get("temperature", base.temperature)),
            max_tokens=int(data.get("max_tokens", base.max_tokens)),
            thinking_level=ThinkingLevel(level) if level else base.thinking_level,
        )


DEFAULT_TASK_CONFIGS: dict[TaskType, ModelConfig] = {
    # Fast operations
    TaskType.REPAIR: ModelConfig(FLASH_MODEL, temperature=0.0, max_tokens=2048),
    TaskType.REFINE: ModelConfig(FLASH_MODEL, temperature=0.7, max_tokens=8192),
    TaskType.TITLE: ModelConfig(FLASH_MODEL, temperature=0.5, max_tokens=512),
    TaskType.SUBJECT: ModelConfig(FLASH_MODEL, temperature=0.5, max_tokens=512),
    TaskType.EXCERPT: ModelConfig(FLASH_MODEL, temperature=0.6, max_tokens=512),
    TaskType.PREVIEW_TEXT: ModelConfig(FLASH_MODEL, temperature=0.6, max_tokens=256),
    TaskType.METADATA: ModelConfig(FLASH_MODEL, temperature=0.6, max_tokens=1024),
    TaskType.POST_DETAILS: ModelConfig(FLASH_MODEL, temperature=0.8, max_tokens=1024),
    TaskType.ARTICLE_CONTENT: ModelConfig(FLASH_MODEL, temperature=0.7, max_tokens=8192),
    TaskType.IMAGE: ModelConfig(FLASH_MODEL, temperature=0.7, max_tokens=1024),
    # Complex reasoning
    TaskType.RESEARCH: ModelConfig(
        PRO_MODEL, temperature=0.7, max_tokens=4096, thinking_level=ThinkingLevel.LOW
    ),
    TaskType.BULK_CONTENT: ModelConfig(PRO_MODEL, temperature=0.7, max_tokens=8192),
    TaskType.AGENT: ModelConfig(
        PRO_MODEL, temperature=0.7, max_tokens=4096, thinking_level=ThinkingLevel.MEDIUM
    ),
}


class ModelRouter:
    """Resolves a task name to its generation parameters.

    Attributes:
        configs: Task presets after YAML overrides.

    Example:
        >>> router = ModelRouter()
        >>> router.select_model("title").temperature
        0.5
    """

    def __init__(
        self,
        config_dir: Optional[Path] = None,
        llm_settings: Optional[LLMSettings] = None,
    ):
        """Initialize the model router.

        Args:
            config_dir: Directory containing models.yaml. Falls back to settings.
            llm_settings: LLM settings for the default model.
        """
        self._settings = llm_settings or get_settings().llm
        self._config_dir = config_dir or self._settings.config_dir
        self._configs: dict[TaskType, ModelConfig] = dict(DEFAULT_TASK_CONFIGS)

        self._load_configuration()

    def _load_configuration(self) -> None:
        """Apply task overrides from models.yaml if it exists."""
        models_path = self._config_dir / "models.yaml"
        if not models_path.exists():
            return

        try:
            with open(models_path) as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.warning("Failed to load %s, using defaults: %s", models_path, e)
            return

        overrides = data.get("tasks") or {}
        for name, override in overrides.items():
            try:
                task = TaskType(name)
            except ValueError:
                logger.warning("Unknown task in %s: %s", models_path, name)
                continue
            self._configs[task] = ModelConfig.from_dict(override, base=self._configs[task])

        logger.info("Loaded %d task overrides from %s", len(overrides), models_path)

    @property
    def configs(self) -> dict[TaskType, ModelConfig]:
        """Get all task presets."""
        return self._configs

    def select_model(self, task: TaskType | str) -> ModelConfig:
        """Get the preset for a task.

        Unknown tasks get the default model with default parameters.

        Args:
            task: Task type or its name.

        Returns:
            ModelConfig for the task.
        """
        try:
            return self._configs[TaskType(task)]
        except ValueError:
            return ModelConfig(model=self._settings.default_model)

    def __repr__(self) -> str:
        return f"ModelRouter(tasks={len(self._configs)})"
