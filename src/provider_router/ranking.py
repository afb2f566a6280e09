# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

"""
Ranking engine for provider selection.

Orders the candidate providers for one capability request. The comparator
applies its rules in strict precedence; a later rule is only consulted when
every earlier one ties, and the last rule (provider name) never ties, so the
order is total and independent of input order.
"""

import functools
import logging
import time
from dataclasses import replace
from typing import List, Optional

from .availability import AvailabilityIndex
from .catalog import STRATEGY_ORDERS
from .config import RouterConfig
from .types import AvailabilityEntry

lib_logger = logging.getLogger("provider_router")

_FREE_ORDER = STRATEGY_ORDERS["free"]


def _cmp(a, b) -> int:
    return (a > b) - (a < b)


class RankingEngine:
    """
    Multi-criteria ordering of availability entries.

    Rules:
    1. Providers that are the sole source of another rare capability go
       below providers without such a burden.
    2. The exclusive entry for the requested capability goes first.
    3. Higher remaining daily-request ratio first.
    4. Lower rolling latency first (prefer_fast).
    5. Lower unit cost first (prefer_cheap).
    6. Free-tier provider kinds first (prefer_free).
    7. Least recently used first.
    8. Provider name.
    """

    def __init__(self, config: RouterConfig, index: AvailabilityIndex):
        self._config = config
        self._index = index

    def rank(
        self,
        entries: List[AvailabilityEntry],
        now: Optional[float] = None,
    ) -> List[AvailabilityEntry]:
        """
        Return ranked copies of ``entries`` with ``priority`` set to their
        position. The index's own entries are left untouched.
        """
        now = time.time() if now is None else now
        compare = functools.partial(self.compare, now=now)
        ranked = sorted(entries, key=functools.cmp_to_key(compare))
        result = [replace(entry, priority=position) for position, entry in enumerate(ranked)]

        if lib_logger.isEnabledFor(logging.DEBUG) and result:
            order = ", ".join(entry.provider.name for entry in result)
            lib_logger.debug(f"Ranked providers for {result[0].capability.id}: {order}")
        return result

    def compare(self, a: AvailabilityEntry, b: AvailabilityEntry, now: float) -> int:
        """Negative when ``a`` should be tried before ``b``."""
        pa, pb = a.provider, b.provider

        # Rule 1: keep capacity free on sole sources of something else
        a_has_rare = self._index.provider_has_rare(pa.name)
        b_has_rare = self._index.provider_has_rare(pb.name)
        if a_has_rare and not a.is_exclusive and not b_has_rare:
            return 1
        if b_has_rare and not b.is_exclusive and not a_has_rare:
            return -1

        # Rule 2: the exclusive entry for this capability wins
        if a.is_exclusive != b.is_exclusive:
            return -1 if a.is_exclusive else 1

        # Rule 3: more remaining quota first
        ratio = _cmp(
            pb.quota.effective(now).remaining_ratio(),
            pa.quota.effective(now).remaining_ratio(),
        )
        if ratio:
            return ratio

        # Rule 4
        if self._config.prefer_fast:
            latency = _cmp(pa.latency, pb.latency)
            if latency:
                return latency

        # Rule 5
        if self._config.prefer_cheap:
            cost = _cmp(a.capability.unit_cost, b.capability.unit_cost)
            if cost:
                return cost

        # Rule 6
        if self._config.prefer_free:
            free = _cmp(self._free_rank(a), self._free_rank(b))
            if free:
                return free

        # Rule 7: load balancing
        recency = _cmp(pa.last_used, pb.last_used)
        if recency:
            return recency

        return _cmp(pa.name, pb.name)

    @staticmethod
    def _free_rank(entry: AvailabilityEntry) -> int:
        try:
            return _FREE_ORDER.index(entry.provider.kind)
        except ValueError:
            return len(_FREE_ORDER)
