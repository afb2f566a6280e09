# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

"""
Quota pool aggregator.

Pools are a reporting artifact for capabilities shared by two or more
providers. They never gate a routing decision: admission is always checked
against one provider's own quota.
"""

import time
from typing import Dict, List, Optional

from .availability import AvailabilityIndex
from .types import Provider, QuotaPool


def _build_pool(capability_id: str, providers: List[Provider], now: float) -> QuotaPool:
    pool = QuotaPool(capability_id=capability_id)
    for provider in providers:
        quota = provider.quota.effective(now)
        pool.total_requests += quota.requests_per_day
        pool.total_tokens += quota.tokens_per_day
        pool.available_requests += quota.remaining_requests or 0
        pool.available_tokens += quota.remaining_tokens or 0
        pool.providers.append(provider.name)
    return pool


class QuotaPoolAggregator:
    """
    Capability id -> QuotaPool, rebuilt wholesale with the index.

    Ceilings are fixed at rebuild time; available counts are recomputed from
    the live provider counters on every ``snapshot``.
    """

    def __init__(self):
        self._members: Dict[str, List[Provider]] = {}
        self._pools: Dict[str, QuotaPool] = {}

    def rebuild(self, index: AvailabilityIndex, now: Optional[float] = None) -> None:
        now = time.time() if now is None else now
        members: Dict[str, List[Provider]] = {}
        for capability_id, availabilities in index.items():
            if len(availabilities) < 2:
                continue
            members[capability_id] = [avail.provider for avail in availabilities]
        self._members = members
        self._pools = {
            capability_id: _build_pool(capability_id, providers, now)
            for capability_id, providers in members.items()
        }

    def get(self, capability_id: str, now: Optional[float] = None) -> Optional[QuotaPool]:
        providers = self._members.get(capability_id)
        if providers is None:
            return None
        return _build_pool(capability_id, providers, time.time() if now is None else now)

    def snapshot(self, now: Optional[float] = None) -> List[QuotaPool]:
        """Fresh pools reflecting current usage."""
        now = time.time() if now is None else now
        return [
            _build_pool(capability_id, providers, now)
            for capability_id, providers in self._members.items()
        ]

    def pools(self) -> List[QuotaPool]:
        """Pools as computed at the last rebuild."""
        return list(self._pools.values())

    def __contains__(self, capability_id: object) -> bool:
        return capability_id in self._members

    def __len__(self) -> int:
        return len(self._members)
