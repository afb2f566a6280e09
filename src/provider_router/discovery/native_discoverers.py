# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

"""
Discoverers for backends with their own model-listing endpoints.
"""

from typing import List, Optional

import httpx

from ..types import ProviderKind
from .discoverer_interface import DEFAULT_TIMEOUT, ProviderDiscoverer


class AnthropicDiscoverer(ProviderDiscoverer):
    kind = ProviderKind.ANTHROPIC
    base_url = "https://api.anthropic.com/v1"
    api_version = "2023-06-01"

    async def get_models(self, api_key: Optional[str], client: httpx.AsyncClient) -> List[str]:
        response = await client.get(
            f"{self.base_url}/models",
            headers={"x-api-key": api_key, "anthropic-version": self.api_version},
            timeout=DEFAULT_TIMEOUT,
        )
        response.raise_for_status()
        return [model["id"] for model in response.json().get("data", [])]


class GoogleDiscoverer(ProviderDiscoverer):
    kind = ProviderKind.GOOGLE
    base_url = "https://generativelanguage.googleapis.com/v1beta"
    default_requests_per_minute = 15
    default_requests_per_day = 1500
    default_tokens_per_minute = 1000000

    async def get_models(self, api_key: Optional[str], client: httpx.AsyncClient) -> List[str]:
        response = await client.get(
            f"{self.base_url}/models",
            headers={"x-goog-api-key": api_key},
            timeout=DEFAULT_TIMEOUT,
        )
        response.raise_for_status()
        return [
            model["name"].replace("models/", "")
            for model in response.json().get("models", [])
        ]


class CohereDiscoverer(ProviderDiscoverer):
    kind = ProviderKind.COHERE
    base_url = "https://api.cohere.com/v1"
    default_requests_per_minute = 20
    default_requests_per_day = 1000

    async def get_models(self, api_key: Optional[str], client: httpx.AsyncClient) -> List[str]:
        response = await client.get(
            f"{self.base_url}/models",
            headers={"Authorization": f"Bearer {api_key}"},
            timeout=DEFAULT_TIMEOUT,
        )
        response.raise_for_status()
        return [model["name"] for model in response.json().get("models", [])]


class ElevenLabsDiscoverer(ProviderDiscoverer):
    kind = ProviderKind.ELEVENLABS
    base_url = "https://api.elevenlabs.io/v1"

    async def get_models(self, api_key: Optional[str], client: httpx.AsyncClient) -> List[str]:
        response = await client.get(
            f"{self.base_url}/models",
            headers={"xi-api-key": api_key},
            timeout=DEFAULT_TIMEOUT,
        )
        response.raise_for_status()
        return [model["model_id"] for model in response.json()]


class OllamaDiscoverer(ProviderDiscoverer):
    """Local Ollama server; needs no credential."""

    kind = ProviderKind.LOCAL
    base_url = "http://localhost:11434"
    requires_credential = False

    async def get_models(self, api_key: Optional[str], client: httpx.AsyncClient) -> List[str]:
        response = await client.get(f"{self.base_url}/api/tags", timeout=DEFAULT_TIMEOUT)
        response.raise_for_status()
        return [model["name"] for model in response.json().get("models", [])]
