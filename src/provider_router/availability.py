# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

"""
Availability index.

For each capability id, the providers currently offering it, in registration
order. A capability with exactly one entry is rare and that entry is marked
exclusive.
"""

import logging
from typing import Dict, Iterable, List, Optional, Set

from .types import AvailabilityEntry, Provider

lib_logger = logging.getLogger("provider_router")


class AvailabilityIndex:
    """Capability id -> availability entries."""

    def __init__(self):
        self._entries: Dict[str, List[AvailabilityEntry]] = {}
        self._rare: Dict[str, str] = {}  # capability id -> exclusive provider
        self._rare_holders: Set[str] = set()

    def rebuild(self, providers: Iterable[Provider]) -> None:
        """Rebuild the whole index from the given providers."""
        entries: Dict[str, List[AvailabilityEntry]] = {}
        for provider in providers:
            for capability in provider.capabilities:
                # Flags are derived, clear whatever a previous rebuild left
                capability.is_rare = False
                entries.setdefault(capability.id, []).append(
                    AvailabilityEntry(provider=provider, capability=capability)
                )

        rare: Dict[str, str] = {}
        for capability_id, availabilities in entries.items():
            if len(availabilities) == 1:
                only = availabilities[0]
                only.is_exclusive = True
                only.capability.is_rare = True
                rare[capability_id] = only.provider.name

        self._entries = entries
        self._rare = rare
        self._rare_holders = set(rare.values())
        lib_logger.debug(
            f"Availability index rebuilt: {len(entries)} capabilities, "
            f"{len(rare)} rare"
        )

    def entries_for(self, capability_id: str) -> List[AvailabilityEntry]:
        """Entries for a capability; empty when no provider offers it."""
        return list(self._entries.get(capability_id, ()))

    def capability_ids(self) -> List[str]:
        return list(self._entries)

    def items(self):
        return self._entries.items()

    def rare_capabilities(self) -> Dict[str, str]:
        return dict(self._rare)

    def exclusive_provider(self, capability_id: str) -> Optional[str]:
        return self._rare.get(capability_id)

    def providers_with_rare(self) -> Set[str]:
        return set(self._rare.values())

    def provider_has_rare(self, provider_name: str) -> bool:
        return provider_name in self._rare_holders

    def rare_capabilities_of(self, provider_name: str) -> List[str]:
        return [cid for cid, name in self._rare.items() if name == provider_name]

    def is_rare(self, capability_id: str) -> bool:
        return capability_id in self._rare

    def __contains__(self, capability_id: object) -> bool:
        return capability_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)
