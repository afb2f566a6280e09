# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

"""
Provider registry.

Holds the live provider records keyed by name. The registry does no locking
of its own; SmartRouter owns the lock and is the only writer, so quota fields
are never read-modify-written from outside its write path.
"""

import logging
from typing import Dict, Iterator, List, Optional

from .errors import ProviderNotFoundError, mask_credential
from .types import Provider, ProviderStatus

lib_logger = logging.getLogger("provider_router")


class ProviderRegistry:
    """Provider records in registration order."""

    def __init__(self):
        self._providers: Dict[str, Provider] = {}

    def register(self, provider: Provider) -> Optional[Provider]:
        """
        Insert or replace a provider by name.

        Returns:
            The record that was replaced, or None
        """
        previous = self._providers.get(provider.name)
        if previous is not None:
            lib_logger.info(f"Replacing provider record: {provider.name}")
        self._providers[provider.name] = provider
        lib_logger.info(
            f"Registered provider {provider.name} ({provider.kind.value}, "
            f"key {mask_credential(provider.credential)}, "
            f"{len(provider.capabilities)} capabilities)"
        )
        return previous

    def get(self, name: str) -> Provider:
        try:
            return self._providers[name]
        except KeyError:
            raise ProviderNotFoundError(name) from None

    def find(self, name: str) -> Optional[Provider]:
        return self._providers.get(name)

    def set_status(
        self,
        name: str,
        status: ProviderStatus,
        until: Optional[float] = None,
    ) -> Provider:
        provider = self.get(name)
        if provider.status != status:
            lib_logger.info(
                f"Provider {name} status {provider.status.value} -> {status.value}"
            )
        provider.status = status
        provider.status_until = until
        return provider

    def names(self) -> List[str]:
        return list(self._providers)

    def values(self) -> List[Provider]:
        return list(self._providers.values())

    def __iter__(self) -> Iterator[Provider]:
        return iter(self.values())

    def __contains__(self, name: object) -> bool:
        return name in self._providers

    def __len__(self) -> int:
        return len(self._providers)
