# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

"""
Routing error taxonomy.

Failures are always raised to the caller; the router never retries on its
own. Retrying across providers means reporting the failure via ``record``
and calling ``route`` again.
"""

from typing import Dict, Optional


def mask_credential(credential: Optional[str]) -> str:
    """Show only the last four characters of a credential."""
    if not credential:
        return "<none>"
    if len(credential) <= 4:
        return "****"
    return f"...{credential[-4:]}"


class RoutingError(Exception):
    """Base class for all routing failures."""


class ConfigurationError(RoutingError, ValueError):
    """Invalid router configuration, raised at construction time."""


class CapabilityUnknownError(RoutingError):
    """
    No registered provider has ever advertised the capability.

    Permanent until a new discovery pass registers a provider offering it.
    """

    def __init__(self, capability_id: str):
        self.capability_id = capability_id
        super().__init__(f"capability not found: {capability_id}")


class NoAdmissibleProviderError(RoutingError):
    """
    Every provider offering the capability is currently inadmissible.

    Transient: expected to clear after a quota window resets, a cooldown
    lapses, or a disabled provider is re-enabled.
    """

    def __init__(self, capability_id: str, reasons: Optional[Dict[str, str]] = None):
        self.capability_id = capability_id
        self.reasons = dict(reasons or {})
        detail = ""
        if self.reasons:
            detail = " (" + "; ".join(
                f"{name}: {reason}" for name, reason in self.reasons.items()
            ) + ")"
        super().__init__(f"no available provider for capability: {capability_id}{detail}")


class ProviderNotFoundError(RoutingError, KeyError):
    """No provider is registered under the given name."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(name)

    def __str__(self) -> str:
        return f"provider not found: {self.name}"


class DiscoveryFailedError(RoutingError):
    """
    A discoverer could not produce a provider for a credential.

    Not retried by the router; the provider is simply absent.
    """

    def __init__(self, kind: str, reason: str, credential: Optional[str] = None):
        self.kind = kind
        self.reason = reason
        self.credential_hint = mask_credential(credential) if credential else None
        hint = f" [key {self.credential_hint}]" if self.credential_hint else ""
        super().__init__(f"discovery failed for {kind}{hint}: {reason}")
