import os
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

# Keep litellm on its bundled cost map instead of fetching one at import
os.environ.setdefault("LITELLM_LOCAL_MODEL_COST_MAP", "True")

from provider_router import (
    Capability,
    Provider,
    ProviderKind,
    Quota,
    RouterConfig,
    SmartRouter,
)


def make_provider(
    name: str,
    capabilities,
    requests_per_day: int = 0,
    used_requests: int = 0,
    tokens_per_day: int = 0,
    used_tokens: int = 0,
    kind: ProviderKind = ProviderKind.OPENAI,
    latency: float = 0.0,
    last_used: float = 0.0,
) -> Provider:
    caps = [
        c if isinstance(c, Capability) else Capability(id=c, name=c)
        for c in capabilities
    ]
    return Provider(
        name=name,
        kind=kind,
        credential=f"sk-test-{name}-0000",
        capabilities=caps,
        quota=Quota(
            requests_per_day=requests_per_day,
            used_requests=used_requests,
            tokens_per_day=tokens_per_day,
            used_tokens=used_tokens,
        ),
        latency=latency,
        last_used=last_used,
    )


@pytest.fixture
def provider_factory():
    return make_provider


@pytest.fixture
def router() -> SmartRouter:
    return SmartRouter(RouterConfig())
