# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

"""
Type definitions for the provider router.

This module contains the enums and dataclasses shared by the registry,
availability index, ranking engine and usage tracker.
"""

import copy
import time
from dataclasses import asdict, dataclass, field, replace
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Optional

if TYPE_CHECKING:
    from .error_handler import ClassifiedError


DEFAULT_QUOTA_WINDOW = 86400


# =============================================================================
# ENUMS
# =============================================================================


class ProviderKind(str, Enum):
    """Backend family a provider account belongs to."""

    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GOOGLE = "google"
    GROQ = "groq"
    OPENROUTER = "openrouter"
    TOGETHER = "together"
    MISTRAL = "mistral"
    DEEPSEEK = "deepseek"
    CEREBRAS = "cerebras"
    SAMBANOVA = "sambanova"
    FIREWORKS = "fireworks"
    PERPLEXITY = "perplexity"
    COHERE = "cohere"
    VOYAGE = "voyage"
    ELEVENLABS = "elevenlabs"
    REPLICATE = "replicate"
    AZURE = "azure"
    AWS_BEDROCK = "aws-bedrock"
    GOOGLE_VERTEX = "google-vertex"
    LOCAL = "local"


class ProviderStatus(str, Enum):
    """Health status of a provider."""

    ACTIVE = "active"
    RATE_LIMITED = "rate_limited"
    QUOTA_EXHAUSTED = "quota_exhausted"
    ERROR = "error"
    DISABLED = "disabled"


class CapabilityKind(str, Enum):
    """What kind of work a capability performs."""

    LLM = "llm"  # Generative text
    STT = "stt"  # Speech-to-text
    TTS = "tts"  # Speech synthesis
    EMBEDDING = "embedding"
    IMAGE = "image"


# =============================================================================
# CAPABILITY & QUOTA
# =============================================================================


@dataclass
class Capability:
    """
    A named unit of work a provider can perform (a "model").

    The same id may be advertised by several providers, each with its own
    record. Costs are per 1M units.
    """

    id: str
    name: str = ""
    kind: CapabilityKind = CapabilityKind.LLM
    context_size: int = 0
    input_cost: float = 0.0
    output_cost: float = 0.0
    is_rare: bool = False  # Derived by the availability index

    @property
    def unit_cost(self) -> float:
        return self.input_cost + self.output_cost


@dataclass
class Quota:
    """
    Rate/volume ceiling of a provider and its consumption in the current window.

    A ceiling of 0 means "not declared" (unlimited). ``reset_time`` is the
    epoch timestamp at which the counters are due to be zeroed; None means the
    window never resets on its own.
    """

    requests_per_minute: int = 0
    requests_per_day: int = 0
    tokens_per_minute: int = 0
    tokens_per_day: int = 0
    used_requests: int = 0
    used_tokens: int = 0
    reset_time: Optional[float] = None
    window_seconds: int = DEFAULT_QUOTA_WINDOW

    def remaining_ratio(self) -> float:
        """Fraction of the daily request ceiling still available."""
        if self.requests_per_day <= 0:
            return 1.0  # unlimited
        return (self.requests_per_day - self.used_requests) / self.requests_per_day

    @property
    def remaining_requests(self) -> Optional[int]:
        if self.requests_per_day <= 0:
            return None
        return max(0, self.requests_per_day - self.used_requests)

    @property
    def remaining_tokens(self) -> Optional[int]:
        if self.tokens_per_day <= 0:
            return None
        return max(0, self.tokens_per_day - self.used_tokens)

    @property
    def is_exhausted(self) -> bool:
        return self.requests_per_day > 0 and self.used_requests >= self.requests_per_day

    def is_expired(self, now: float) -> bool:
        return self.reset_time is not None and now >= self.reset_time

    def effective(self, now: float) -> "Quota":
        """
        The quota as it reads at ``now``.

        Pure: an expired window is reported with zeroed counters, the stored
        counters are only zeroed by ``reset`` under the write lock.
        """
        if not self.is_expired(now):
            return self
        return replace(self, used_requests=0, used_tokens=0)

    def reset(self, now: float) -> None:
        """Zero the counters and move ``reset_time`` past ``now``."""
        self.used_requests = 0
        self.used_tokens = 0
        if self.reset_time is None or self.window_seconds <= 0:
            return
        elapsed = now - self.reset_time
        windows = int(elapsed // self.window_seconds) + 1
        self.reset_time += windows * self.window_seconds


# =============================================================================
# PROVIDER
# =============================================================================


@dataclass
class Provider:
    """
    One backend account.

    Created by discovery (or manual registration), mutated in place by the
    usage tracker, and never deleted; a fresh discovery pass may replace the
    record wholesale.
    """

    name: str
    kind: ProviderKind
    base_url: str = ""
    credential: Optional[str] = field(default=None, repr=False)
    capabilities: List[Capability] = field(default_factory=list)
    quota: Quota = field(default_factory=Quota)
    status: ProviderStatus = ProviderStatus.ACTIVE
    last_used: float = 0.0
    consecutive_errors: int = 0
    total_errors: int = 0
    latency: float = 0.0  # Rolling average, seconds
    status_until: Optional[float] = None  # When a timed status lapses

    def capability(self, capability_id: str) -> Optional[Capability]:
        for capability in self.capabilities:
            if capability.id == capability_id:
                return capability
        return None

    def has_capability(self, capability_id: str) -> bool:
        return self.capability(capability_id) is not None

    def capability_ids(self) -> List[str]:
        return [c.id for c in self.capabilities]

    def effective_status(self, now: Optional[float] = None) -> ProviderStatus:
        """
        Status as it reads at ``now`` without mutating the record.

        Timed statuses lapse back to active once ``status_until`` has passed,
        and quota exhaustion lapses once the quota window has expired.
        """
        now = time.time() if now is None else now
        status = self.status
        if status in (ProviderStatus.ACTIVE, ProviderStatus.DISABLED):
            return status
        if status == ProviderStatus.QUOTA_EXHAUSTED and self.quota.is_expired(now):
            return ProviderStatus.ACTIVE
        if self.status_until is not None and now >= self.status_until:
            return ProviderStatus.ACTIVE
        return status

    def snapshot(self) -> "Provider":
        """Deep copy for callers that must not see later mutations."""
        return copy.deepcopy(self)


# =============================================================================
# INDEX & POOL TYPES
# =============================================================================


@dataclass
class AvailabilityEntry:
    """A (provider, capability) pairing in the availability index."""

    provider: Provider
    capability: Capability
    is_exclusive: bool = False  # Only this provider offers the capability
    priority: int = 0  # Position after ranking, lower = use first

    @property
    def provider_name(self) -> str:
        return self.provider.name


@dataclass
class QuotaPool:
    """
    Aggregate view over all providers sharing a capability.

    Reporting only: admission is always decided against a single provider's
    own quota, never against the pool.
    """

    capability_id: str
    total_requests: int = 0
    total_tokens: int = 0
    available_requests: int = 0
    available_tokens: int = 0
    providers: List[str] = field(default_factory=list)


# =============================================================================
# USAGE TYPES
# =============================================================================


@dataclass(frozen=True)
class UsageRecord:
    """Immutable fact about one dispatched request."""

    timestamp: float
    provider: str
    capability: str
    units: int
    latency: float
    success: bool
    error_type: Optional[str] = None


@dataclass
class Outcome:
    """
    Result of a request, reported back by the caller after transport.

    Callers must report every dispatched request, including timeouts and
    cancellations (as ``success=False``), or recency and error statistics
    drift.
    """

    provider: str
    capability: str
    units: int = 0
    latency: float = 0.0
    success: bool = True
    error: Optional["ClassifiedError"] = None

    @classmethod
    def from_exception(
        cls,
        provider: str,
        capability: str,
        error: BaseException,
        units: int = 0,
        latency: float = 0.0,
    ) -> "Outcome":
        """Build a failed outcome from a transport exception."""
        from .error_handler import classify_error

        return cls(
            provider=provider,
            capability=capability,
            units=units,
            latency=latency,
            success=False,
            error=classify_error(error),
        )


@dataclass
class AdmissionResult:
    """Result of an admissibility check, with the reason when blocked."""

    allowed: bool
    reason: Optional[str] = None
    blocked_until: Optional[float] = None

    @classmethod
    def ok(cls) -> "AdmissionResult":
        return cls(allowed=True)

    @classmethod
    def blocked(
        cls, reason: str, blocked_until: Optional[float] = None
    ) -> "AdmissionResult":
        return cls(allowed=False, reason=reason, blocked_until=blocked_until)

    def __bool__(self) -> bool:
        return self.allowed


# =============================================================================
# STATS TYPES
# =============================================================================


@dataclass
class ProviderStats:
    status: str
    quota_used: int
    quota_total: int
    tokens_used: int
    tokens_total: int
    avg_latency: float
    error_count: int
    consecutive_errors: int
    capability_count: int
    has_rare_capabilities: bool
    last_used: float


@dataclass
class RouterStats:
    """Snapshot returned by ``SmartRouter.stats``."""

    total_providers: int = 0
    total_capabilities: int = 0
    rare_capabilities: int = 0
    history_size: int = 0
    provider_stats: Dict[str, ProviderStats] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
