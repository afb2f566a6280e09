# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

"""
Credential collection and concurrent discovery.

Keys are read from ``<KIND>_API_KEY`` and ``<KIND>_API_KEY_<N>`` variables.
Each key becomes one provider, named after its kind (``openai``,
``openai_2``, ...). Failed discoveries are reported, never retried.
"""

import asyncio
import logging
import os
from typing import Dict, List, Mapping, Optional, Tuple

import httpx
from dotenv import load_dotenv

from ..catalog import Catalog
from ..errors import DiscoveryFailedError
from ..types import Provider, ProviderKind
from .discoverer_interface import DEFAULT_TIMEOUT
from .native_discoverers import OllamaDiscoverer

lib_logger = logging.getLogger("provider_router")

IGNORED_KEYS = {"PROXY_API_KEY"}


def _kind_from_prefix(prefix: str) -> Optional[ProviderKind]:
    try:
        return ProviderKind(prefix.lower().replace("_", "-"))
    except ValueError:
        return None


def collect_credentials(
    env: Optional[Mapping[str, str]] = None,
) -> Dict[ProviderKind, List[str]]:
    """
    Group API keys from the environment by provider kind.

    When ``env`` is None, a ``.env`` file is loaded into os.environ first.
    """
    from . import DISCOVERERS

    if env is None:
        load_dotenv()
        env = os.environ

    credentials: Dict[ProviderKind, List[str]] = {}
    for key in sorted(env):
        value = (env.get(key) or "").strip()
        if not value or key in IGNORED_KEYS:
            continue
        if not (key.endswith("_API_KEY") or "_API_KEY_" in key):
            continue
        kind = _kind_from_prefix(key.split("_API_KEY")[0])
        if kind is None or kind not in DISCOVERERS:
            lib_logger.debug(f"Skipping {key}: no discoverer for this provider")
            continue
        keys = credentials.setdefault(kind, [])
        if value not in keys:
            keys.append(value)
    return credentials


def provider_name(kind: ProviderKind, position: int) -> str:
    return kind.value if position == 0 else f"{kind.value}_{position + 1}"


async def discover_all(
    credentials: Mapping[ProviderKind, List[str]],
    client: Optional[httpx.AsyncClient] = None,
    catalog: Optional[Catalog] = None,
    include_local: bool = False,
) -> Tuple[List[Provider], List[DiscoveryFailedError]]:
    """
    Discover every credential concurrently.

    Returns:
        (providers, failures), providers in credential order
    """
    from . import get_discoverer

    if client is None:
        async with httpx.AsyncClient(timeout=DEFAULT_TIMEOUT) as own_client:
            return await discover_all(credentials, own_client, catalog, include_local)

    catalog = catalog or Catalog()
    jobs = []
    for kind, keys in credentials.items():
        discoverer = get_discoverer(kind)(catalog=catalog)
        for position, key in enumerate(keys):
            jobs.append(discoverer.discover(key, client, name=provider_name(kind, position)))
    if include_local:
        jobs.append(OllamaDiscoverer(catalog=catalog).discover(None, client))

    results = await asyncio.gather(*jobs, return_exceptions=True)

    providers: List[Provider] = []
    failures: List[DiscoveryFailedError] = []
    for result in results:
        if isinstance(result, DiscoveryFailedError):
            lib_logger.warning(str(result))
            failures.append(result)
        elif isinstance(result, BaseException):
            raise result
        else:
            providers.append(result)
    return providers, failures
