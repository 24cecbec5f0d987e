"""Chat model initialisation, the single place to swap providers.

``openai_base_url`` points the client at any OpenAI-compatible endpoint
(for example a local vLLM server) instead of the OpenAI cloud API.
"""

from __future__ import annotations

import logging

from langchain_openai import ChatOpenAI

from letters_rag.core.config import Settings

logger = logging.getLogger(__name__)


def get_chat_model(settings: Settings) -> ChatOpenAI:
    """Return the configured chat model.

    Raises ``ConfigurationError`` when neither an API key nor ``openai_base_url`` is set.
    """
    kwargs: dict = {
        "model": settings.llm_model,
        "temperature": settings.llm_temperature,
        "api_key": settings.client_api_key(),
        "timeout": settings.request_timeout,
        "max_retries": 0,
    }
    if settings.openai_base_url:
        logger.info("Using OpenAI-compatible endpoint: %s", settings.openai_base_url)
        kwargs["base_url"] = settings.openai_base_url
    return ChatOpenAI(**kwargs)


__all__ = ["get_chat_model"]
