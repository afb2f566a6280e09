# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

"""
Usage feedback tracker.

Folds the outcome of each dispatched request back into the provider record
(recency, quota counters, rolling latency, error counters, status) and keeps
a bounded history of usage records. Callers hold the router's write lock.
"""

import logging
import time
from collections import deque
from typing import Deque, List, Optional

from .config import RouterConfig
from .failure_logger import log_failure
from .registry import ProviderRegistry
from .types import Outcome, Provider, ProviderStatus, UsageRecord

lib_logger = logging.getLogger("provider_router")


class UsageTracker:
    """
    Records outcomes and keeps the last ``history_size`` usage records.

    History is a strict ring: once full, each new record evicts exactly the
    oldest one.
    """

    def __init__(self, config: RouterConfig, registry: ProviderRegistry):
        self._config = config
        self._registry = registry
        self._history: Deque[UsageRecord] = deque(maxlen=config.history_size)

    def record(self, outcome: Outcome, now: Optional[float] = None) -> UsageRecord:
        """
        Apply an outcome to its provider and append it to history.

        Outcomes for providers that are not registered are still kept in
        history but change nothing else.
        """
        now = time.time() if now is None else now
        error_type = outcome.error.error_type if outcome.error else None
        if not outcome.success and error_type is None:
            error_type = "unknown"

        provider = self._registry.find(outcome.provider)
        if provider is None:
            lib_logger.warning(
                f"Usage reported for unknown provider '{outcome.provider}', "
                "recording history only"
            )
        else:
            self._apply(provider, outcome, now)

        if not outcome.success:
            log_failure(
                provider=outcome.provider,
                capability=outcome.capability,
                error_type=error_type,
                error=outcome.error.original_exception if outcome.error else None,
                credential=provider.credential if provider else None,
                consecutive_errors=provider.consecutive_errors if provider else 0,
            )

        record = UsageRecord(
            timestamp=now,
            provider=outcome.provider,
            capability=outcome.capability,
            units=outcome.units,
            latency=outcome.latency,
            success=outcome.success,
            error_type=error_type,
        )
        self._history.append(record)
        return record

    def _apply(self, provider: Provider, outcome: Outcome, now: float) -> None:
        quota = provider.quota
        if quota.is_expired(now):
            self.reset_window(provider, now)
        if provider.effective_status(now) != provider.status:
            # A timed status lapsed since the last write
            self._registry.set_status(provider.name, ProviderStatus.ACTIVE)

        provider.last_used = now
        quota.used_requests += 1
        quota.used_tokens += max(0, outcome.units)

        if outcome.success:
            # Halve towards each new sample; the first sample seeds it
            if provider.latency == 0:
                provider.latency = outcome.latency
            else:
                provider.latency = (provider.latency + outcome.latency) / 2
            provider.consecutive_errors = 0
        else:
            self._apply_failure(provider, outcome, now)

        if quota.is_exhausted and provider.status == ProviderStatus.ACTIVE:
            lib_logger.info(
                f"Provider {provider.name} exhausted its daily requests "
                f"({quota.used_requests}/{quota.requests_per_day})"
            )
            self._registry.set_status(
                provider.name, ProviderStatus.QUOTA_EXHAUSTED, until=quota.reset_time
            )

    def _apply_failure(self, provider: Provider, outcome: Outcome, now: float) -> None:
        provider.consecutive_errors += 1
        provider.total_errors += 1

        status = provider.effective_status(now)
        if status == ProviderStatus.DISABLED:
            # Only an explicit set_status/reset_provider re-enables it
            return

        if provider.consecutive_errors > self._config.max_consecutive_errors:
            if status == ProviderStatus.ERROR and provider.status_until is None:
                return
            until = None
            if self._config.error_cooldown is not None:
                until = now + self._config.error_cooldown
            lib_logger.warning(
                f"Provider {provider.name} failed {provider.consecutive_errors} "
                f"times in a row, marking as error"
                + (f" for {self._config.error_cooldown:.0f}s" if until else "")
            )
            self._registry.set_status(provider.name, ProviderStatus.ERROR, until=until)
            return

        if status not in (ProviderStatus.ACTIVE, ProviderStatus.RATE_LIMITED):
            return
        if outcome.error is not None and outcome.error.is_rate_limit:
            cooldown = outcome.error.retry_after
            if cooldown is None:
                cooldown = self._config.rate_limit_cooldown
            lib_logger.info(f"Provider {provider.name} rate limited for {cooldown:.0f}s")
            self._registry.set_status(
                provider.name, ProviderStatus.RATE_LIMITED, until=now + cooldown
            )

    def reset_window(self, provider: Provider, now: float) -> None:
        """Zero an expired quota window and lift quota exhaustion."""
        provider.quota.reset(now)
        if provider.status == ProviderStatus.QUOTA_EXHAUSTED:
            self._registry.set_status(provider.name, ProviderStatus.ACTIVE)
        lib_logger.debug(f"Quota window reset for {provider.name}")

    def history(self, limit: Optional[int] = None) -> List[UsageRecord]:
        records = list(self._history)
        if limit is not None:
            records = records[-limit:] if limit > 0 else []
        return records

    def __len__(self) -> int:
        return len(self._history)
