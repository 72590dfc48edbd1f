# src/llm/client_factory.py - v3
"""Factory: instantiate LLM clients from provider name.

Called when the pipeline is assembled to build the image-preferred and
text backends. A provider without an API key yields no client, and the
stage that needs it is skipped.
"""

from __future__ import annotations

import importlib
import logging

from reelfinder.config.settings import Settings
from reelfinder.llm.base_client import BaseLLMClient

logger = logging.getLogger(__name__)

# Registry of provider name -> adapter class path (lazy import).
_PROVIDER_REGISTRY: dict[str, str] = {
    "anthropic": "reelfinder.llm.adapters.anthropic_adapter.AnthropicAdapter",
    "openai": "reelfinder.llm.adapters.openai_adapter.OpenAIAdapter",
}

_API_KEY_FIELDS: dict[str, str] = {
    "anthropic": "anthropic_api_key",
    "openai": "openai_api_key",
}


class UnsupportedProviderError(ValueError):
    """Raised when a provider is not registered."""


def create_llm_client(
    provider: str,
    model: str,
    settings: Settings | None = None,
    **kwargs: object,
) -> BaseLLMClient:
    """Instantiate the correct adapter from provider name.

    Args:
        provider: Provider identifier (anthropic, openai).
        model: Model name.
        settings: Application settings (for API keys).
        **kwargs: Additional adapter arguments.

    Returns:
        Configured BaseLLMClient instance.

    Raises:
        UnsupportedProviderError: If provider is not registered.
    """
    if provider not in _PROVIDER_REGISTRY:
        raise UnsupportedProviderError(
            f"Unsupported LLM provider: {provider!r}. "
            f"Available: {', '.join(sorted(_PROVIDER_REGISTRY))}"
        )

    adapter_cls = _import_class(_PROVIDER_REGISTRY[provider])

    init_kwargs = dict(kwargs)
    init_kwargs["model"] = model
    if settings is not None:
        init_kwargs.setdefault("api_key", api_key_for(provider, settings))

    logger.debug("Creating LLM client: provider=%s, model=%s", provider, model)
    return adapter_cls(**init_kwargs)


def api_key_for(provider: str, settings: Settings) -> str:
    """API key configured for a registered provider ("" if none)."""
    field = _API_KEY_FIELDS.get(provider)
    return getattr(settings, field, "") if field else ""


def create_optional_client(
    provider: str, model: str, settings: Settings
) -> BaseLLMClient | None:
    """Like create_llm_client, but None when the provider has no API key."""
    if not api_key_for(provider, settings):
        logger.info("No API key for LLM provider %s; backend disabled", provider)
        return None
    return create_llm_client(provider, model, settings)


def _import_class(class_path: str) -> type:
    """Dynamically import a class from its fully qualified path."""
    module_path, class_name = class_path.rsplit(".", 1)
    module = importlib.import_module(module_path)
    return getattr(module, class_name)
