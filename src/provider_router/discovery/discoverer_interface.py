# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

from abc import ABC, abstractmethod
import logging
import re
from typing import List, Optional

import httpx

from ..catalog import Catalog, CatalogEntry
from ..errors import DiscoveryFailedError
from ..types import Capability, Provider, ProviderKind, Quota

lib_logger = logging.getLogger("provider_router")

DEFAULT_TIMEOUT = 15.0


class ProviderDiscoverer(ABC):
    """
    Turns one credential of a backend family into a Provider record.

    ``get_models`` performs the account handshake; a rejected credential or
    an unreachable endpoint raises DiscoveryFailedError from ``discover``.
    Capabilities come from the catalog entries for the family that the
    account lists, so the same model has the same id on every backend.
    """

    kind: ProviderKind
    base_url: str = ""
    requires_credential: bool = True

    # Free-tier style defaults; 0 = not declared
    default_requests_per_minute: int = 0
    default_requests_per_day: int = 0
    default_tokens_per_minute: int = 0
    default_tokens_per_day: int = 0

    def __init__(
        self,
        catalog: Optional[Catalog] = None,
        base_url: Optional[str] = None,
        include_uncatalogued: bool = False,
    ):
        self.catalog = catalog or Catalog()
        if base_url:
            self.base_url = base_url.rstrip("/")
        self.include_uncatalogued = include_uncatalogued

    @property
    def env_var(self) -> str:
        return f"{self.kind.value.upper().replace('-', '_')}_API_KEY"

    @abstractmethod
    async def get_models(self, api_key: Optional[str], client: httpx.AsyncClient) -> List[str]:
        """
        Fetches the list of available model names from the provider's API.

        Args:
            api_key: The API key required for authentication.
            client: An httpx.AsyncClient instance for making requests.

        Returns:
            A list of model name strings.
        """
        pass

    def default_quota(self) -> Quota:
        return Quota(
            requests_per_minute=self.default_requests_per_minute,
            requests_per_day=self.default_requests_per_day,
            tokens_per_minute=self.default_tokens_per_minute,
            tokens_per_day=self.default_tokens_per_day,
        )

    @staticmethod
    def model_key(model_id: str) -> str:
        """
        Comparable form of a model id: last path segment, lowercased, without
        separators. ``meta-llama/Llama-3.3-70B-Instruct`` -> ``llama3370binstruct``.
        """
        tail = str(model_id).rsplit("/", 1)[-1].lower()
        return re.sub(r"[-._:\s]", "", tail)

    def catalog_entries(self, listed: List[str]) -> List[CatalogEntry]:
        """
        Catalog entries for this kind that the account actually lists.

        A listed id matches an entry when it starts with the entry id (so
        dated or suffixed variants count). When nothing matches, the listing
        uses a naming scheme the catalog does not share and every entry for
        the kind is kept.
        """
        entries = self.catalog.models_for_kind(self.kind)
        keys = [self.model_key(model_id) for model_id in listed if model_id]
        if not keys:
            return entries
        matched = [
            entry for entry in entries
            if any(key.startswith(self.model_key(entry.id)) for key in keys)
        ]
        if not matched:
            lib_logger.debug(
                f"No listed {self.kind.value} model matches the catalog, "
                f"keeping all {len(entries)} entries"
            )
            return entries
        return matched

    def build_capabilities(self, listed: List[str]) -> List[Capability]:
        capabilities = []
        for entry in self.catalog_entries(listed):
            input_cost, output_cost = self.catalog.pricing(entry.id)
            capabilities.append(
                Capability(
                    id=entry.id,
                    name=entry.name,
                    kind=entry.kind,
                    context_size=entry.context_size,
                    input_cost=input_cost,
                    output_cost=output_cost,
                )
            )

        if self.include_uncatalogued:
            known = {c.id for c in capabilities}
            for model_id in listed:
                if model_id and model_id not in known and model_id not in self.catalog:
                    input_cost, output_cost = self.catalog.pricing(model_id)
                    capabilities.append(
                        Capability(
                            id=model_id,
                            name=model_id,
                            input_cost=input_cost,
                            output_cost=output_cost,
                        )
                    )
                    known.add(model_id)
        return capabilities

    async def discover(
        self,
        credential: Optional[str],
        client: httpx.AsyncClient,
        name: Optional[str] = None,
    ) -> Provider:
        """
        Handshake with the backend and build the provider record.

        Raises:
            DiscoveryFailedError: missing credential, HTTP error status, or
                network failure
        """
        kind = self.kind.value
        if self.requires_credential and not credential:
            raise DiscoveryFailedError(kind, "no credential")

        try:
            listed = await self.get_models(credential, client)
        except httpx.HTTPStatusError as e:
            raise DiscoveryFailedError(
                kind, f"HTTP {e.response.status_code} from {e.request.url.host}", credential
            ) from e
        except httpx.HTTPError as e:
            raise DiscoveryFailedError(kind, f"{type(e).__name__}: {e}", credential) from e
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise DiscoveryFailedError(kind, f"unexpected model list: {e}", credential) from e

        provider = Provider(
            name=name or kind,
            kind=self.kind,
            base_url=self.base_url,
            credential=credential,
            capabilities=self.build_capabilities(listed),
            quota=self.default_quota(),
        )
        lib_logger.debug(
            f"Discovered {provider.name}: {len(listed)} models listed, "
            f"{len(provider.capabilities)} capabilities"
        )
        return provider
