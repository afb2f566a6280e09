# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

"""
Discoverers for backends exposing the OpenAI-style ``GET /models`` listing
with bearer authentication.
"""

from typing import List, Optional

import httpx

from ..types import ProviderKind
from .discoverer_interface import DEFAULT_TIMEOUT, ProviderDiscoverer


class OpenAICompatibleDiscoverer(ProviderDiscoverer):
    """Lists models with ``Authorization: Bearer <key>``."""

    models_path: str = "/models"

    async def get_models(self, api_key: Optional[str], client: httpx.AsyncClient) -> List[str]:
        response = await client.get(
            f"{self.base_url}{self.models_path}",
            headers={"Authorization": f"Bearer {api_key}"},
            timeout=DEFAULT_TIMEOUT,
        )
        response.raise_for_status()
        return [model["id"] for model in response.json().get("data", [])]


class OpenAIDiscoverer(OpenAICompatibleDiscoverer):
    kind = ProviderKind.OPENAI
    base_url = "https://api.openai.com/v1"


class GroqDiscoverer(OpenAICompatibleDiscoverer):
    kind = ProviderKind.GROQ
    base_url = "https://api.groq.com/openai/v1"
    default_requests_per_minute = 30
    default_requests_per_day = 14400
    default_tokens_per_minute = 6000


class OpenRouterDiscoverer(OpenAICompatibleDiscoverer):
    kind = ProviderKind.OPENROUTER
    base_url = "https://openrouter.ai/api/v1"
    default_requests_per_minute = 20
    default_requests_per_day = 200


class TogetherDiscoverer(OpenAICompatibleDiscoverer):
    kind = ProviderKind.TOGETHER
    base_url = "https://api.together.xyz/v1"

    async def get_models(self, api_key: Optional[str], client: httpx.AsyncClient) -> List[str]:
        # Together returns a bare list rather than {"data": [...]}
        response = await client.get(
            f"{self.base_url}{self.models_path}",
            headers={"Authorization": f"Bearer {api_key}"},
            timeout=DEFAULT_TIMEOUT,
        )
        response.raise_for_status()
        payload = response.json()
        models = payload.get("data", []) if isinstance(payload, dict) else payload
        return [model["id"] for model in models]


class MistralDiscoverer(OpenAICompatibleDiscoverer):
    kind = ProviderKind.MISTRAL
    base_url = "https://api.mistral.ai/v1"


class DeepSeekDiscoverer(OpenAICompatibleDiscoverer):
    kind = ProviderKind.DEEPSEEK
    base_url = "https://api.deepseek.com"


class CerebrasDiscoverer(OpenAICompatibleDiscoverer):
    kind = ProviderKind.CEREBRAS
    base_url = "https://api.cerebras.ai/v1"
    default_requests_per_minute = 30
    default_requests_per_day = 14400
    default_tokens_per_day = 1000000


class SambaNovaDiscoverer(OpenAICompatibleDiscoverer):
    kind = ProviderKind.SAMBANOVA
    base_url = "https://api.sambanova.ai/v1"
    default_requests_per_minute = 20


class FireworksDiscoverer(OpenAICompatibleDiscoverer):
    kind = ProviderKind.FIREWORKS
    base_url = "https://api.fireworks.ai/inference/v1"


class PerplexityDiscoverer(OpenAICompatibleDiscoverer):
    kind = ProviderKind.PERPLEXITY
    base_url = "https://api.perplexity.ai"
