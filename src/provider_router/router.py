# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

"""
SmartRouter facade.

This is the main public API of the package. One instance owns the registry,
availability index, quota pools and usage history, all guarded by a single
reader/writer lock:

- ``route``, ``route_many``, ``stats`` and the other reads share the lock
- ``register``, ``rebuild``, ``record`` and status changes take it exclusively

Nothing blocks on I/O while holding the lock; discovery runs before
``register_many`` and transport runs between ``route`` and ``record``.

Usage:
    router = SmartRouter(RouterConfig(prefer_fast=True))
    await router.auto_discover()

    provider = router.route("llama-3.3-70b", estimated_units=2000)
    try:
        response = await call_backend(provider, ...)
    except Exception as e:
        router.record_outcome(Outcome.from_exception(provider.name, "llama-3.3-70b", e))
        raise
    router.record(provider.name, "llama-3.3-70b", units=used, latency=elapsed)
"""

import logging
import time
from dataclasses import replace
from typing import Dict, Iterable, List, Mapping, Optional, Set, Union

import httpx

from .admission import AdmissionChecker
from .availability import AvailabilityIndex
from .catalog import Catalog
from .config import RouterConfig
from .error_handler import ClassifiedError, classify_error
from .errors import (
    CapabilityUnknownError,
    DiscoveryFailedError,
    NoAdmissibleProviderError,
)
from .failure_logger import setup_failure_logger
from .quota_pool import QuotaPoolAggregator
from .ranking import RankingEngine
from .registry import ProviderRegistry
from .rwlock import ReadWriteLock
from .tracking import UsageTracker
from .types import (
    AvailabilityEntry,
    Outcome,
    Provider,
    ProviderStats,
    ProviderStatus,
    QuotaPool,
    RouterStats,
    UsageRecord,
)

lib_logger = logging.getLogger("provider_router")


class SmartRouter:
    """
    Chooses the best provider for a capability request and learns from the
    reported outcomes.

    ``route`` returns the live Provider record; treat it as read-only and
    report back through ``record``. Snapshot methods return copies.
    """

    def __init__(
        self,
        config: Optional[RouterConfig] = None,
        catalog: Optional[Catalog] = None,
    ):
        """
        Initialize the router.

        Args:
            config: Router configuration, validated here (fails fast)
            catalog: Model catalog used by discovery
        """
        self._config = (config or RouterConfig()).validate()
        self._catalog = catalog or Catalog()
        self._lock = ReadWriteLock()

        self._registry = ProviderRegistry()
        self._index = AvailabilityIndex()
        self._pools = QuotaPoolAggregator()
        self._admission = AdmissionChecker(self._config, self._index)
        self._ranking = RankingEngine(self._config, self._index)
        self._tracker = UsageTracker(self._config, self._registry)

        if self._config.failure_log_dir:
            setup_failure_logger(self._config.failure_log_dir)

    @property
    def config(self) -> RouterConfig:
        return self._config

    @property
    def catalog(self) -> Catalog:
        return self._catalog

    # =========================================================================
    # REGISTRATION
    # =========================================================================

    def register(self, provider: Provider) -> None:
        """Insert or replace a provider, then rebuild index and pools."""
        self.register_many([provider])

    def register_many(self, providers: Iterable[Provider]) -> None:
        """Register several providers with a single rebuild."""
        providers = list(providers)
        now = time.time()
        with self._lock.write_locked():
            for provider in providers:
                self._prepare(provider, now)
                self._registry.register(provider)
            self._rebuild(now)

    def rebuild(self) -> None:
        """Rebuild the availability index and quota pools from the registry."""
        with self._lock.write_locked():
            self._rebuild(time.time())

    def _prepare(self, provider: Provider, now: float) -> None:
        quota = provider.quota
        if quota.reset_time is None:
            # Lazy reset needs a deadline to compare against
            quota.window_seconds = self._config.quota_window
            quota.reset_time = now + quota.window_seconds

    def _rebuild(self, now: float) -> None:
        self._index.rebuild(self._registry.values())
        self._pools.rebuild(self._index, now)
        lib_logger.info(
            f"Router rebuilt: {len(self._registry)} providers, "
            f"{len(self._index)} capabilities, "
            f"{len(self._index.rare_capabilities())} rare, {len(self._pools)} pooled"
        )

    # =========================================================================
    # STATUS MANAGEMENT
    # =========================================================================

    def get(self, name: str) -> Provider:
        """Live record for ``name``; raises ProviderNotFoundError."""
        with self._lock.read_locked():
            return self._registry.get(name)

    def set_status(
        self,
        name: str,
        status: ProviderStatus,
        until: Optional[float] = None,
    ) -> None:
        with self._lock.write_locked():
            self._registry.set_status(name, status, until=until)

    def reset_provider(self, name: str) -> None:
        """
        Manually re-enable a provider stuck in ``error`` (or any other
        status) and clear its consecutive error count.
        """
        with self._lock.write_locked():
            provider = self._registry.set_status(name, ProviderStatus.ACTIVE)
            provider.consecutive_errors = 0
            lib_logger.info(f"Provider {name} manually reset")

    def reset_quota_windows(self, force: bool = False) -> int:
        """
        Zero quota counters of providers whose window expired (all of them
        with ``force``). Returns how many were reset.
        """
        now = time.time()
        count = 0
        with self._lock.write_locked():
            for provider in self._registry.values():
                # reset() leaves reset_time alone while the window is current
                if force or provider.quota.is_expired(now):
                    self._tracker.reset_window(provider, now)
                    count += 1
        return count

    # =========================================================================
    # ROUTING
    # =========================================================================

    def route(
        self,
        capability_id: str,
        estimated_units: int = 0,
        exclude: Optional[Set[str]] = None,
    ) -> Provider:
        """
        Select the best admissible provider for a capability.

        Args:
            capability_id: Capability (model) being requested
            estimated_units: Expected token/unit consumption
            exclude: Provider names the caller already tried

        Returns:
            The chosen provider

        Raises:
            CapabilityUnknownError: no provider offers the capability
            NoAdmissibleProviderError: all providers offering it are blocked
        """
        with self._lock.read_locked():
            chosen = self._admissible(capability_id, estimated_units, exclude, limit=1)
        return chosen[0]

    def route_many(
        self,
        capability_id: str,
        estimated_units: int = 0,
        limit: Optional[int] = None,
        exclude: Optional[Set[str]] = None,
    ) -> List[Provider]:
        """
        All admissible providers in rank order, as a fallback chain.

        Only the first is returned when ``fallback_enabled`` is off.
        Raises the same errors as ``route``.
        """
        if not self._config.fallback_enabled:
            limit = 1
        with self._lock.read_locked():
            return self._admissible(capability_id, estimated_units, exclude, limit)

    def _admissible(
        self,
        capability_id: str,
        estimated_units: int,
        exclude: Optional[Set[str]],
        limit: Optional[int],
    ) -> List[Provider]:
        now = time.time()
        entries = self._index.entries_for(capability_id)
        if not entries:
            raise CapabilityUnknownError(capability_id)

        exclude = exclude or set()
        reasons: Dict[str, str] = {}
        chosen: List[Provider] = []
        for entry in self._ranking.rank(entries, now):
            provider = entry.provider
            if provider.name in exclude:
                reasons[provider.name] = "excluded by caller"
                continue
            result = self._admission.check(provider, capability_id, estimated_units, now)
            if not result.allowed:
                reasons[provider.name] = result.reason or "blocked"
                continue
            chosen.append(provider)
            if limit is not None and len(chosen) >= limit:
                break

        if not chosen:
            lib_logger.debug(
                f"No admissible provider for {capability_id} "
                f"(all {len(entries)} blocked)"
            )
            raise NoAdmissibleProviderError(capability_id, reasons)

        lib_logger.debug(
            f"Routed {capability_id} to {chosen[0].name} "
            f"(from {len(entries)} candidates)"
        )
        return chosen

    # =========================================================================
    # USAGE FEEDBACK
    # =========================================================================

    def record(
        self,
        provider_name: str,
        capability_id: str,
        units: int = 0,
        latency: float = 0.0,
        success: bool = True,
        error: Optional[Union[ClassifiedError, BaseException]] = None,
    ) -> UsageRecord:
        """
        Report the outcome of a request dispatched to ``provider_name``.

        Must be called for every routed request, with ``success=False`` on
        timeout or cancellation too.
        """
        if error is not None and not isinstance(error, ClassifiedError):
            error = classify_error(error)
        return self.record_outcome(
            Outcome(
                provider=provider_name,
                capability=capability_id,
                units=units,
                latency=latency,
                success=success,
                error=error,
            )
        )

    def record_outcome(self, outcome: Outcome) -> UsageRecord:
        with self._lock.write_locked():
            return self._tracker.record(outcome, time.time())

    # =========================================================================
    # INTROSPECTION
    # =========================================================================

    def stats(self) -> RouterStats:
        """Per-provider status, quota, latency and error counts."""
        with self._lock.read_locked():
            now = time.time()
            stats = RouterStats(
                total_providers=len(self._registry),
                total_capabilities=len(self._index),
                rare_capabilities=len(self._index.rare_capabilities()),
                history_size=len(self._tracker),
            )
            for provider in self._registry.values():
                quota = provider.quota.effective(now)
                stats.provider_stats[provider.name] = ProviderStats(
                    status=provider.effective_status(now).value,
                    quota_used=quota.used_requests,
                    quota_total=quota.requests_per_day,
                    tokens_used=quota.used_tokens,
                    tokens_total=quota.tokens_per_day,
                    avg_latency=provider.latency,
                    error_count=provider.total_errors,
                    consecutive_errors=provider.consecutive_errors,
                    capability_count=len(provider.capabilities),
                    has_rare_capabilities=self._index.provider_has_rare(provider.name),
                    last_used=provider.last_used,
                )
            return stats

    def list_providers(self) -> List[Provider]:
        with self._lock.read_locked():
            return [provider.snapshot() for provider in self._registry.values()]

    def quota_pools(self) -> List[QuotaPool]:
        with self._lock.read_locked():
            return self._pools.snapshot(time.time())

    def quota_pool(self, capability_id: str) -> Optional[QuotaPool]:
        with self._lock.read_locked():
            return self._pools.get(capability_id, time.time())

    def rare_capabilities(self) -> Dict[str, str]:
        """Rare capability id -> the one provider offering it."""
        with self._lock.read_locked():
            return self._index.rare_capabilities()

    def entries_for(self, capability_id: str) -> List[AvailabilityEntry]:
        """
        Ranked availability entries for a capability, admissible or not.

        Entries carry provider snapshots, not the live records.
        """
        with self._lock.read_locked():
            ranked = self._ranking.rank(self._index.entries_for(capability_id))
            entries = []
            for entry in ranked:
                provider = entry.provider.snapshot()
                entries.append(
                    replace(
                        entry,
                        provider=provider,
                        capability=provider.capability(entry.capability.id),
                    )
                )
            return entries

    def history(self, limit: Optional[int] = None) -> List[UsageRecord]:
        with self._lock.read_locked():
            return self._tracker.history(limit)

    # =========================================================================
    # DISCOVERY
    # =========================================================================

    async def auto_discover(
        self,
        env: Optional[Mapping[str, str]] = None,
        client: Optional[httpx.AsyncClient] = None,
        include_local: bool = False,
    ) -> List[DiscoveryFailedError]:
        """
        Discover provider accounts from ``*_API_KEY`` variables and register
        them. Discovery runs without holding the lock.

        Args:
            env: Mapping to read keys from; when None, ``.env`` is loaded
                 into os.environ first and os.environ is used
            client: Shared HTTP client for the handshakes
            include_local: Also probe a local Ollama server

        Returns:
            The discovery failures (not retried)
        """
        from .discovery import collect_credentials, discover_all

        credentials = collect_credentials(env)
        providers, failures = await discover_all(
            credentials,
            client=client,
            catalog=self._catalog,
            include_local=include_local,
        )
        if providers:
            self.register_many(providers)
        lib_logger.info(
            f"Auto-discovery finished: {len(providers)} providers registered, "
            f"{len(failures)} failed"
        )
        return failures
