# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

"""
Admissibility checker.

Decides whether a provider can take a request right now, against its own
status and quota only. Providers that are the sole source of a rare
capability keep a reserve of their daily requests for that traffic.
"""

import time
from typing import Optional

from .availability import AvailabilityIndex
from .config import RouterConfig
from .types import AdmissionResult, Provider, ProviderStatus


class AdmissionChecker:
    """
    Checks status, daily ceilings, latency ceiling and rare-capability reserve.

    Pure: reads the provider through ``effective`` views and never mutates it.
    """

    def __init__(self, config: RouterConfig, index: AvailabilityIndex):
        self._config = config
        self._index = index

    def reserve_threshold(self, provider: Provider, now: Optional[float] = None) -> Optional[int]:
        """
        Used-request count from which non-rare traffic is refused, or None
        when the provider keeps no reserve.
        """
        quota = provider.quota
        if quota.requests_per_day <= 0 or not self._index.provider_has_rare(provider.name):
            return None
        reserve = int(quota.requests_per_day * self._config.reserve_fraction)
        return quota.requests_per_day - reserve

    def check(
        self,
        provider: Provider,
        capability_id: str,
        estimated_units: int = 0,
        now: Optional[float] = None,
    ) -> AdmissionResult:
        """
        Check whether ``provider`` may serve ``capability_id``.

        Args:
            provider: Candidate provider
            capability_id: Capability being requested
            estimated_units: Expected token/unit consumption
            now: Evaluation time (defaults to time.time())

        Returns:
            AdmissionResult with the blocking reason when not allowed
        """
        now = time.time() if now is None else now

        status = provider.effective_status(now)
        if status != ProviderStatus.ACTIVE:
            return AdmissionResult.blocked(
                f"status {status.value}", blocked_until=provider.status_until
            )

        quota = provider.quota.effective(now)
        if quota.requests_per_day > 0 and quota.used_requests >= quota.requests_per_day:
            return AdmissionResult.blocked(
                f"daily requests exhausted ({quota.used_requests}/{quota.requests_per_day})",
                blocked_until=quota.reset_time,
            )

        if quota.tokens_per_day > 0 and quota.used_tokens + estimated_units > quota.tokens_per_day:
            return AdmissionResult.blocked(
                f"daily tokens exceeded ({quota.used_tokens}+{estimated_units}"
                f"/{quota.tokens_per_day})",
                blocked_until=quota.reset_time,
            )

        max_latency = self._config.max_latency
        if max_latency is not None and provider.latency > max_latency:
            return AdmissionResult.blocked(
                f"latency {provider.latency:.2f}s above {max_latency:.2f}s"
            )

        # Rare-capability traffic may dip into the reserve, nothing else may
        if not self._is_exclusive_for(provider, capability_id):
            threshold = self.reserve_threshold(provider, now)
            if threshold is not None and quota.used_requests >= threshold:
                return AdmissionResult.blocked(
                    f"reserved for rare capabilities ({quota.used_requests}/{threshold})",
                    blocked_until=quota.reset_time,
                )

        return AdmissionResult.ok()

    def admissible(
        self,
        provider: Provider,
        capability_id: str,
        estimated_units: int = 0,
        now: Optional[float] = None,
    ) -> bool:
        return self.check(provider, capability_id, estimated_units, now).allowed

    def _is_exclusive_for(self, provider: Provider, capability_id: str) -> bool:
        return self._index.exclusive_provider(capability_id) == provider.name
