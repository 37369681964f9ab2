from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional


class Provider(str, Enum):
    OPENAI = "openai"
    ANTHROPIC = "anthropic"


CODE_SYSTEM_PROMPT = (
    "You are a code assistant. Output strictly code with no explanations, "
    "comments, or other text unless specifically requested."
)


@dataclass(frozen=True)
class ModelConfig:
    provider: Provider
    model_id: str
    system_prompt: Optional[str] = None


MODEL_TIERS: Dict[str, ModelConfig] = {
    "ultra-light": ModelConfig(Provider.OPENAI, "gpt-4.1-nano"),
    "light": ModelConfig(Provider.OPENAI, "gpt-4.1-mini"),
    "medium": ModelConfig(Provider.OPENAI, "gpt-4.1"),
    "heavy": ModelConfig(Provider.OPENAI, "o4-mini"),
    "reasoning:medium": ModelConfig(Provider.OPENAI, "o4-mini"),
    "reasoning:heavy": ModelConfig(Provider.OPENAI, "o3-mini"),
    "code:medium": ModelConfig(Provider.ANTHROPIC, "claude-sonnet-4-20250514", CODE_SYSTEM_PROMPT),
    "code:heavy": ModelConfig(Provider.ANTHROPIC, "claude-opus-4-20250514", CODE_SYSTEM_PROMPT),
}

FALLBACK_MODEL = ModelConfig(Provider.OPENAI, "gpt-4.1-nano")


def get_model_config(tier: str) -> ModelConfig:
    return MODEL_TIERS.get(tier, FALLBACK_MODEL)


def get_system_prompt(tier: str) -> str:
    return get_model_config(tier).system_prompt or ""
