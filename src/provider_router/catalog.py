# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

"""
Static catalog of known models and the provider families that offer them.

The catalog is seed knowledge, independent of live discovery: it tells a
discoverer which capabilities an account of a given kind should expose, and
classifies a model as rare (single-source) before any provider registers.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

import litellm

from .types import CapabilityKind, ProviderKind

lib_logger = logging.getLogger("provider_router")


@dataclass(frozen=True)
class CatalogEntry:
    id: str
    name: str
    kind: CapabilityKind
    context_size: int
    providers: Tuple[ProviderKind, ...]

    @property
    def is_rare(self) -> bool:
        return len(self.providers) == 1


P = ProviderKind
LLM = CapabilityKind.LLM

# Static preference orders used by ``Catalog.best_kind``
STRATEGY_ORDERS: Dict[str, Tuple[ProviderKind, ...]] = {
    "free": (P.GROQ, P.GOOGLE, P.OPENROUTER, P.CEREBRAS, P.SAMBANOVA),
    "fast": (P.GROQ, P.CEREBRAS, P.FIREWORKS, P.TOGETHER),
    "cheap": (P.DEEPSEEK, P.TOGETHER, P.OPENROUTER, P.GROQ),
}


def _entry(model_id, name, kind, context, *providers) -> CatalogEntry:
    return CatalogEntry(model_id, name, kind, context, tuple(providers))


DEFAULT_ENTRIES: Tuple[CatalogEntry, ...] = (
    # Claude (Anthropic) - also on OpenRouter, AWS Bedrock
    _entry("claude-opus-4", "Claude Opus 4", LLM, 200000, P.ANTHROPIC, P.OPENROUTER, P.AWS_BEDROCK),
    _entry("claude-sonnet-4", "Claude Sonnet 4", LLM, 200000, P.ANTHROPIC, P.OPENROUTER, P.AWS_BEDROCK, P.GOOGLE_VERTEX),
    _entry("claude-haiku-3.5", "Claude Haiku 3.5", LLM, 200000, P.ANTHROPIC, P.OPENROUTER, P.AWS_BEDROCK),
    # GPT (OpenAI) - also on Azure, OpenRouter
    _entry("gpt-4o", "GPT-4o", LLM, 128000, P.OPENAI, P.OPENROUTER, P.AZURE),
    _entry("gpt-4o-mini", "GPT-4o Mini", LLM, 128000, P.OPENAI, P.OPENROUTER, P.AZURE),
    _entry("gpt-4-turbo", "GPT-4 Turbo", LLM, 128000, P.OPENAI, P.OPENROUTER, P.AZURE),
    _entry("o1", "o1 (Reasoning)", LLM, 200000, P.OPENAI),
    _entry("o1-mini", "o1-mini", LLM, 128000, P.OPENAI),
    _entry("o3-mini", "o3-mini", LLM, 200000, P.OPENAI),
    # Gemini (Google) - also on OpenRouter
    _entry("gemini-2.5-pro", "Gemini 2.5 Pro", LLM, 2000000, P.GOOGLE, P.OPENROUTER),
    _entry("gemini-2.5-flash", "Gemini 2.5 Flash", LLM, 1000000, P.GOOGLE, P.OPENROUTER),
    _entry("gemini-2.0-flash-thinking", "Gemini 2.0 Flash Thinking", LLM, 1000000, P.GOOGLE),
    # Llama (Meta)
    _entry("llama-3.3-70b", "Llama 3.3 70B", LLM, 128000, P.GROQ, P.TOGETHER, P.FIREWORKS, P.CEREBRAS, P.SAMBANOVA, P.OPENROUTER),
    _entry("llama-3.1-405b", "Llama 3.1 405B", LLM, 128000, P.TOGETHER, P.FIREWORKS, P.OPENROUTER),
    _entry("llama-3.1-70b", "Llama 3.1 70B", LLM, 128000, P.GROQ, P.TOGETHER, P.FIREWORKS, P.CEREBRAS, P.OPENROUTER),
    _entry("llama-3.1-8b", "Llama 3.1 8B", LLM, 128000, P.GROQ, P.TOGETHER, P.FIREWORKS, P.CEREBRAS, P.SAMBANOVA, P.OPENROUTER, P.LOCAL),
    # Mistral
    _entry("mistral-large", "Mistral Large", LLM, 128000, P.MISTRAL, P.OPENROUTER),
    _entry("mistral-medium", "Mistral Medium", LLM, 32000, P.MISTRAL, P.OPENROUTER),
    _entry("mixtral-8x22b", "Mixtral 8x22B", LLM, 65000, P.MISTRAL, P.TOGETHER, P.GROQ, P.OPENROUTER),
    _entry("codestral", "Codestral", LLM, 32000, P.MISTRAL),
    # DeepSeek
    _entry("deepseek-chat", "DeepSeek Chat", LLM, 64000, P.DEEPSEEK, P.OPENROUTER),
    _entry("deepseek-coder", "DeepSeek Coder", LLM, 64000, P.DEEPSEEK, P.OPENROUTER),
    _entry("deepseek-r1", "DeepSeek R1 (Reasoning)", LLM, 64000, P.DEEPSEEK, P.TOGETHER, P.OPENROUTER),
    # Qwen
    _entry("qwen-2.5-72b", "Qwen 2.5 72B", LLM, 128000, P.TOGETHER, P.FIREWORKS, P.OPENROUTER),
    _entry("qwen-coder-32b", "Qwen Coder 32B", LLM, 32000, P.TOGETHER, P.OPENROUTER),
    # Speech-to-text
    _entry("whisper-large-v3", "Whisper Large v3", CapabilityKind.STT, 0, P.GROQ, P.OPENAI),
    _entry("whisper-large-v3-turbo", "Whisper Large v3 Turbo", CapabilityKind.STT, 0, P.GROQ),
    # Speech synthesis
    _entry("tts-1", "OpenAI TTS-1", CapabilityKind.TTS, 0, P.OPENAI),
    _entry("tts-1-hd", "OpenAI TTS-1 HD", CapabilityKind.TTS, 0, P.OPENAI),
    _entry("elevenlabs", "ElevenLabs", CapabilityKind.TTS, 0, P.ELEVENLABS),
    # Embeddings
    _entry("text-embedding-3-large", "OpenAI Embedding Large", CapabilityKind.EMBEDDING, 0, P.OPENAI),
    _entry("text-embedding-3-small", "OpenAI Embedding Small", CapabilityKind.EMBEDDING, 0, P.OPENAI),
    _entry("voyage-3", "Voyage 3", CapabilityKind.EMBEDDING, 0, P.VOYAGE),
    # Image generation
    _entry("dall-e-3", "DALL-E 3", CapabilityKind.IMAGE, 0, P.OPENAI),
    _entry("imagen-3", "Imagen 3", CapabilityKind.IMAGE, 0, P.GOOGLE),
    _entry("flux-1-pro", "Flux 1 Pro", CapabilityKind.IMAGE, 0, P.TOGETHER, P.REPLICATE),
)


class Catalog:
    """Lookup over the known models."""

    def __init__(self, entries: Optional[Iterable[CatalogEntry]] = None):
        self._entries: Dict[str, CatalogEntry] = {}
        for entry in DEFAULT_ENTRIES if entries is None else entries:
            if entry.id in self._entries:
                lib_logger.warning(f"Duplicate catalog entry '{entry.id}', keeping the first")
                continue
            self._entries[entry.id] = entry

    def get(self, model_id: str) -> Optional[CatalogEntry]:
        return self._entries.get(model_id)

    def ids(self) -> List[str]:
        return list(self._entries)

    def __contains__(self, model_id: object) -> bool:
        return model_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def is_rare(self, model_id: str) -> bool:
        entry = self._entries.get(model_id)
        return entry is not None and entry.is_rare

    def rare_models(self) -> Dict[str, ProviderKind]:
        """Models only one provider kind offers, mapped to that kind."""
        return {
            model_id: entry.providers[0]
            for model_id, entry in self._entries.items()
            if entry.is_rare
        }

    def common_models(self) -> Dict[str, List[ProviderKind]]:
        """Models offered by several provider kinds."""
        return {
            model_id: list(entry.providers)
            for model_id, entry in self._entries.items()
            if len(entry.providers) > 1
        }

    def provider_rare_models(self) -> Dict[ProviderKind, List[str]]:
        """Rare models grouped by the kind that exclusively offers them."""
        result: Dict[ProviderKind, List[str]] = {}
        for model_id, kind in self.rare_models().items():
            result.setdefault(kind, []).append(model_id)
        return result

    def models_for_kind(self, kind: ProviderKind) -> List[CatalogEntry]:
        return [entry for entry in self._entries.values() if kind in entry.providers]

    def best_kind(self, model_id: str, strategy: str = "") -> Optional[ProviderKind]:
        """
        Static best provider kind for a model under a strategy
        ("free", "fast" or "cheap"); the first listed kind otherwise.
        """
        entry = self._entries.get(model_id)
        if entry is None:
            return None
        if entry.is_rare:
            return entry.providers[0]
        for preferred in STRATEGY_ORDERS.get(strategy, ()):
            if preferred in entry.providers:
                return preferred
        return entry.providers[0]

    def pricing(self, model_id: str) -> Tuple[float, float]:
        """
        Input/output cost per 1M tokens from litellm's model cost map.

        Returns (0.0, 0.0) for models litellm does not price.
        """
        info = litellm.model_cost.get(model_id)
        if not info:
            return 0.0, 0.0
        input_cost = info.get("input_cost_per_token") or 0.0
        output_cost = info.get("output_cost_per_token") or 0.0
        return input_cost * 1_000_000, output_cost * 1_000_000
