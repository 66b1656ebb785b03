"""
LLM provider access through LiteLLM

Resolves which model to call from the AI section of the settings row
(`general.ai.enabledModels`, `apiKey`) and wraps `litellm.completion`.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import litellm

from ..config import config
from ..exceptions import AIProviderError

logger = logging.getLogger(__name__)

# Drop parameters a provider does not accept instead of failing the call
litellm.drop_params = True


@dataclass(frozen=True)
class AIModel:
    """An entry of the model catalogue the admin can enable"""
    key: str
    provider: str
    name: str

    @property
    def litellm_model(self) -> str:
        return f"{LITELLM_PROVIDER_PREFIX[self.provider]}/{self.key}"


LITELLM_PROVIDER_PREFIX = {
    "openai": "openai",
    "anthropic": "anthropic",
    "google": "gemini",
    "mistralai": "mistral",
}

# Ordered: the first enabled entry wins
AI_MODEL_LIST: List[AIModel] = [
    AIModel("gpt-4o", "openai", "GPT-4o"),
    AIModel("gpt-4o-mini", "openai", "GPT-4o mini"),
    AIModel("gpt-4-turbo", "openai", "GPT-4 Turbo"),
    AIModel("claude-3-5-sonnet-latest", "anthropic", "Claude 3.5 Sonnet"),
    AIModel("claude-3-5-haiku-latest", "anthropic", "Claude 3.5 Haiku"),
    AIModel("gemini-1.5-pro", "google", "Gemini 1.5 Pro"),
    AIModel("gemini-1.5-flash", "google", "Gemini 1.5 Flash"),
    AIModel("mistral-large-latest", "mistralai", "Mistral Large"),
    AIModel("mistral-small-latest", "mistralai", "Mistral Small"),
]

AI_MODELS_BY_KEY = {model.key: model for model in AI_MODEL_LIST}


@dataclass
class AIProviderConfig:
    """Everything needed to call the model for one request"""
    model: str
    api_key: Optional[str] = None
    api_base: Optional[str] = None
    system_prompt: str = ""


def resolve_provider_config(ai_settings: Optional[Dict[str, Any]]) -> AIProviderConfig:
    """
    Pick the model to use from the AI settings

    The first catalogue model listed in `enabledModels` is used. Without one,
    AI_DEFAULT_MODEL (any LiteLLM model string) is used.

    Raises:
        AIProviderError: when no model can be selected
    """
    ai_settings = ai_settings or {}
    enabled = ai_settings.get("enabledModels") or []

    selected = next((m for m in AI_MODEL_LIST if m.key in enabled), None)
    if selected is not None:
        model = selected.litellm_model
    elif config.AI_DEFAULT_MODEL:
        model = config.AI_DEFAULT_MODEL
    else:
        raise AIProviderError("No AI model selected")

    return AIProviderConfig(
        model=model,
        api_key=ai_settings.get("apiKey") or config.AI_API_KEY or None,
        api_base=ai_settings.get("apiBase") or config.AI_API_BASE or None,
        system_prompt=ai_settings.get("systemPrompt") or "",
    )


class LLMClient:
    """Thin wrapper over litellm.completion returning the message text"""

    def __init__(self, provider_config: AIProviderConfig, timeout: Optional[int] = None):
        self.provider_config = provider_config
        self.timeout = timeout or config.AI_REQUEST_TIMEOUT

    def complete(self, prompt: str, temperature: float, system: Optional[str] = None) -> str:
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        kwargs = {
            "model": self.provider_config.model,
            "messages": messages,
            "temperature": temperature,
            "timeout": self.timeout,
        }
        if self.provider_config.api_key:
            kwargs["api_key"] = self.provider_config.api_key
        if self.provider_config.api_base:
            kwargs["api_base"] = self.provider_config.api_base

        try:
            response = litellm.completion(**kwargs)
        except Exception as e:
            logger.error(f"LLM call to {self.provider_config.model} failed: {type(e).__name__}: {e}")
            raise AIProviderError("The AI provider request failed") from e

        try:
            content = response["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise AIProviderError("The AI provider returned an unexpected response") from e

        return (content or "").strip()
