# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

from typing import Dict, List, Type, Union

from ..types import ProviderKind
from .discoverer_interface import ProviderDiscoverer
from .native_discoverers import (
    AnthropicDiscoverer,
    CohereDiscoverer,
    ElevenLabsDiscoverer,
    GoogleDiscoverer,
    OllamaDiscoverer,
)
from .openai_compatible import (
    CerebrasDiscoverer,
    DeepSeekDiscoverer,
    FireworksDiscoverer,
    GroqDiscoverer,
    MistralDiscoverer,
    OpenAICompatibleDiscoverer,
    OpenAIDiscoverer,
    OpenRouterDiscoverer,
    PerplexityDiscoverer,
    SambaNovaDiscoverer,
    TogetherDiscoverer,
)
from .auto import collect_credentials, discover_all

DISCOVERERS: Dict[ProviderKind, Type[ProviderDiscoverer]] = {
    cls.kind: cls
    for cls in (
        OpenAIDiscoverer,
        AnthropicDiscoverer,
        GoogleDiscoverer,
        GroqDiscoverer,
        OpenRouterDiscoverer,
        TogetherDiscoverer,
        MistralDiscoverer,
        DeepSeekDiscoverer,
        CerebrasDiscoverer,
        SambaNovaDiscoverer,
        FireworksDiscoverer,
        PerplexityDiscoverer,
        CohereDiscoverer,
        ElevenLabsDiscoverer,
        OllamaDiscoverer,
    )
}


def get_discoverer(kind: Union[ProviderKind, str]) -> Type[ProviderDiscoverer]:
    """
    Returns the discoverer class for a given provider kind.
    """
    try:
        kind = ProviderKind(kind)
    except ValueError:
        raise ValueError(f"Unknown provider: {kind}") from None
    discoverer = DISCOVERERS.get(kind)
    if not discoverer:
        raise ValueError(f"Unknown provider: {kind.value}")
    return discoverer


def get_available_providers() -> List[str]:
    """
    Returns a list of provider kinds that can be discovered.
    """
    return [kind.value for kind in DISCOVERERS]


__all__ = [
    "DISCOVERERS",
    "ProviderDiscoverer",
    "OpenAICompatibleDiscoverer",
    "OllamaDiscoverer",
    "collect_credentials",
    "discover_all",
    "get_discoverer",
    "get_available_providers",
]
