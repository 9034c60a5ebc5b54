"""
Language-model provider adapters
"""

import logging
from typing import Dict, Iterable, List, Optional, Type

import httpx

from ..models import ProviderConfig
from .base import ProviderAdapter, RequestCheck
from .gemini import GeminiAdapter
from .openai_compat import OpenAICompatibleAdapter

logger = logging.getLogger(__name__)

ADAPTER_TYPES: Dict[str, Type[ProviderAdapter]] = {
    "deepseek": OpenAICompatibleAdapter,
    "openai": OpenAICompatibleAdapter,
    "gemini": GeminiAdapter,
}


def build_adapters(
    configs: Iterable[ProviderConfig],
    client: Optional[httpx.AsyncClient] = None,
) -> List[ProviderAdapter]:
    """Instantiate adapters in the given (failover) order"""

    adapters = []
    for config in configs:
        adapter_type = ADAPTER_TYPES.get(config.name)
        if adapter_type is None:
            logger.warning(f"No adapter registered for provider '{config.name}', skipping")
            continue
        adapters.append(adapter_type(config, client=client))
        logger.info(f"Configured provider {config.name} ({config.model})")
    return adapters


__all__ = [
    "ADAPTER_TYPES",
    "GeminiAdapter",
    "OpenAICompatibleAdapter",
    "ProviderAdapter",
    "RequestCheck",
    "build_adapters",
]
