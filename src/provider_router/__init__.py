import logging

lib_logger = logging.getLogger("provider_router")
lib_logger.propagate = False
if not lib_logger.handlers:
    lib_logger.addHandler(logging.NullHandler())

from .catalog import Catalog, CatalogEntry
from .config import RouterConfig, load_router_config
from .error_handler import ClassifiedError, classify_error
from .errors import (
    CapabilityUnknownError,
    ConfigurationError,
    DiscoveryFailedError,
    NoAdmissibleProviderError,
    ProviderNotFoundError,
    RoutingError,
)
from .router import SmartRouter
from .types import (
    AvailabilityEntry,
    Capability,
    CapabilityKind,
    Outcome,
    Provider,
    ProviderKind,
    ProviderStats,
    ProviderStatus,
    Quota,
    QuotaPool,
    RouterStats,
    UsageRecord,
)

__all__ = [
    "SmartRouter",
    "RouterConfig",
    "load_router_config",
    "Catalog",
    "CatalogEntry",
    "ClassifiedError",
    "classify_error",
    # Errors
    "RoutingError",
    "CapabilityUnknownError",
    "NoAdmissibleProviderError",
    "DiscoveryFailedError",
    "ProviderNotFoundError",
    "ConfigurationError",
    # Types
    "AvailabilityEntry",
    "Capability",
    "CapabilityKind",
    "Outcome",
    "Provider",
    "ProviderKind",
    "ProviderStats",
    "ProviderStatus",
    "Quota",
    "QuotaPool",
    "RouterStats",
    "UsageRecord",
]
