import time

import pytest

from provider_router import (
    CapabilityUnknownError,
    NoAdmissibleProviderError,
    ProviderStatus,
    RouterConfig,
    SmartRouter,
)


def test_higher_remaining_ratio_wins(router: SmartRouter, provider_factory) -> None:
    p1 = provider_factory("p1", ["chat-small"], requests_per_day=100, used_requests=90)
    p2 = provider_factory("p2", ["chat-small"], requests_per_day=50, used_requests=10)
    router.register_many([p1, p2])

    assert router.route("chat-small", 1).name == "p2"


def test_exclusive_provider_serves_its_own_rare_capability(provider_factory) -> None:
    router = SmartRouter(RouterConfig(prefer_fast=True, prefer_cheap=True))
    p1 = provider_factory("p1", ["chat-small"], latency=0.1)
    p3 = provider_factory("p3", ["vision-rare", "chat-small"], latency=5.0)
    router.register_many([p1, p3])

    assert router.rare_capabilities() == {"vision-rare": "p3"}
    assert router.route("vision-rare", 1).name == "p3"


def test_rare_holder_ranked_below_unburdened_provider(router, provider_factory) -> None:
    # p3 has more quota left but is the only source of vision-rare
    p1 = provider_factory("p1", ["chat-small"], requests_per_day=100, used_requests=50)
    p3 = provider_factory("p3", ["vision-rare", "chat-small"], requests_per_day=100)
    router.register_many([p1, p3])

    assert router.route("chat-small", 1).name == "p1"
    assert [p.name for p in router.route_many("chat-small")] == ["p1", "p3"]


def test_unknown_capability_is_not_an_admission_failure(router, provider_factory) -> None:
    router.register(provider_factory("p1", ["chat-small"]))

    with pytest.raises(CapabilityUnknownError) as exc_info:
        router.route("does-not-exist", 1)

    assert not isinstance(exc_info.value, NoAdmissibleProviderError)
    assert exc_info.value.capability_id == "does-not-exist"


def test_no_admissible_provider_lists_reasons(router, provider_factory) -> None:
    router.register_many(
        [
            provider_factory("p1", ["chat-small"], requests_per_day=10, used_requests=10),
            provider_factory("p2", ["chat-small"]),
        ]
    )
    router.set_status("p2", ProviderStatus.DISABLED)

    with pytest.raises(NoAdmissibleProviderError) as exc_info:
        router.route("chat-small", 1)

    reasons = exc_info.value.reasons
    assert "daily requests exhausted" in reasons["p1"]
    assert reasons["p2"] == "status disabled"


def test_single_source_ignores_preferences(provider_factory) -> None:
    router = SmartRouter(RouterConfig(prefer_fast=True, prefer_cheap=True))
    router.register_many(
        [
            provider_factory("fast", ["chat-small"], latency=0.01),
            provider_factory("slow", ["only-here"], latency=9.0),
        ]
    )

    assert router.route("only-here").name == "slow"


def test_reserve_walls_off_non_rare_traffic(provider_factory) -> None:
    router = SmartRouter(RouterConfig(reserve_fraction=0.1))
    holder = provider_factory("holder", ["rare-x", "common"], requests_per_day=100, used_requests=89)
    other = provider_factory("other", ["common"])
    router.register_many([holder, other])
    router.set_status("other", ProviderStatus.DISABLED)

    # 89 used: one more common request still fits under the 90 threshold
    assert router.route("common", 1).name == "holder"

    router.record("holder", "common", units=10, latency=0.2)
    with pytest.raises(NoAdmissibleProviderError) as exc_info:
        router.route("common", 1)
    assert "reserved for rare capabilities" in exc_info.value.reasons["holder"]

    # The reserve stays open for the rare capability itself
    assert router.route("rare-x", 1).name == "holder"


def test_reserve_not_applied_to_providers_without_rare_capabilities(router, provider_factory) -> None:
    p1 = provider_factory("p1", ["common"], requests_per_day=100, used_requests=99)
    p2 = provider_factory("p2", ["common"], requests_per_day=100, used_requests=99)
    router.register_many([p1, p2])

    assert router.route("common", 1).name in ("p1", "p2")


def test_token_ceiling_uses_estimate(router, provider_factory) -> None:
    router.register(
        provider_factory("p1", ["chat-small"], tokens_per_day=1000, used_tokens=900)
    )

    assert router.route("chat-small", 100).name == "p1"
    with pytest.raises(NoAdmissibleProviderError):
        router.route("chat-small", 101)


def test_unlimited_quota_is_admissible(router, provider_factory) -> None:
    router.register(provider_factory("local", ["llama-3.1-8b"], used_requests=50000))

    assert router.route("llama-3.1-8b").name == "local"


def test_exclude_skips_already_tried(router, provider_factory) -> None:
    router.register_many(
        [
            provider_factory("p1", ["chat-small"], last_used=1.0),
            provider_factory("p2", ["chat-small"], last_used=2.0),
        ]
    )

    assert router.route("chat-small").name == "p1"
    assert router.route("chat-small", exclude={"p1"}).name == "p2"
    with pytest.raises(NoAdmissibleProviderError) as exc_info:
        router.route("chat-small", exclude={"p1", "p2"})
    assert exc_info.value.reasons["p1"] == "excluded by caller"


def test_route_many_respects_fallback_setting(provider_factory) -> None:
    providers = [provider_factory(f"p{i}", ["chat-small"], last_used=float(i)) for i in range(3)]

    router = SmartRouter(RouterConfig())
    router.register_many(providers)
    assert [p.name for p in router.route_many("chat-small")] == ["p0", "p1", "p2"]
    assert [p.name for p in router.route_many("chat-small", limit=2)] == ["p0", "p1"]

    no_fallback = SmartRouter(RouterConfig(fallback_enabled=False))
    no_fallback.register_many(
        [provider_factory(f"p{i}", ["chat-small"], last_used=float(i)) for i in range(3)]
    )
    assert [p.name for p in no_fallback.route_many("chat-small")] == ["p0"]


def test_route_does_not_mutate_state(router, provider_factory) -> None:
    router.register_many(
        [
            provider_factory("p1", ["chat-small"], requests_per_day=10, used_requests=3),
            provider_factory("p2", ["chat-small"], requests_per_day=10, used_requests=5),
        ]
    )
    before = router.stats()

    for _ in range(5):
        router.route("chat-small", 10)

    assert router.stats() == before
    assert router.history() == []


def test_max_latency_blocks_slow_providers(provider_factory) -> None:
    router = SmartRouter(RouterConfig(max_latency=1.0))
    router.register_many(
        [
            provider_factory("slow", ["chat-small"], latency=3.0, last_used=0.0),
            provider_factory("fast", ["chat-small"], latency=0.5, last_used=5.0),
        ]
    )

    assert router.route("chat-small").name == "fast"


def test_expired_window_reads_as_reset(router, provider_factory) -> None:
    provider = provider_factory("p1", ["chat-small"], requests_per_day=5, used_requests=5)
    provider.quota.reset_time = time.time() - 1
    router.register(provider)

    assert router.route("chat-small").name == "p1"
    # route only reads; the stored counters are untouched
    assert provider.quota.used_requests == 5


def test_registration_assigns_reset_time(router, provider_factory) -> None:
    provider = provider_factory("p1", ["chat-small"])
    assert provider.quota.reset_time is None

    before = time.time()
    router.register(provider)

    assert provider.quota.reset_time >= before + router.config.quota_window - 1


def test_quota_pools_are_reporting_only(router, provider_factory) -> None:
    router.register_many(
        [
            provider_factory("p1", ["chat-small", "solo"], requests_per_day=100, used_requests=100, tokens_per_day=5000),
            provider_factory("p2", ["chat-small"], requests_per_day=50, used_requests=10),
        ]
    )
    router.set_status("p2", ProviderStatus.DISABLED)

    pool = router.quota_pool("chat-small")
    assert pool.total_requests == 150
    assert pool.total_tokens == 5000
    assert pool.available_requests == 40
    assert pool.providers == ["p1", "p2"]
    assert router.quota_pool("solo") is None

    # Capacity left in the pool does not make anyone admissible
    with pytest.raises(NoAdmissibleProviderError):
        router.route("chat-small", 1)


def test_pool_availability_follows_usage(router, provider_factory) -> None:
    router.register_many(
        [
            provider_factory("p1", ["chat-small"], requests_per_day=10),
            provider_factory("p2", ["chat-small"], requests_per_day=10),
        ]
    )

    router.record("p1", "chat-small", units=1, latency=0.1)

    pools = {pool.capability_id: pool for pool in router.quota_pools()}
    assert pools["chat-small"].available_requests == 19


def test_reregistration_replaces_record_and_rare_flags(router, provider_factory) -> None:
    router.register(provider_factory("p1", ["x"]))
    assert router.rare_capabilities() == {"x": "p1"}

    router.register(provider_factory("p2", ["x"]))
    assert router.rare_capabilities() == {}
    assert all(not entry.is_exclusive for entry in router.entries_for("x"))
    assert all(not entry.capability.is_rare for entry in router.entries_for("x"))

    replacement = provider_factory("p1", ["y"])
    router.register(replacement)
    assert router.get("p1") is replacement
    assert router.rare_capabilities() == {"x": "p2", "y": "p1"}


def test_entries_for_returns_snapshots(router, provider_factory) -> None:
    router.register_many(
        [
            provider_factory("p1", ["chat-small", "solo"], requests_per_day=10),
            provider_factory("p2", ["chat-small"], requests_per_day=10),
        ]
    )

    entries = router.entries_for("chat-small")
    entries[0].provider.quota.used_requests = 10
    entries[0].provider.status = ProviderStatus.DISABLED
    entries[0].capability.is_rare = True

    live = router.get(entries[0].provider.name)
    assert live.quota.used_requests == 0
    assert live.status == ProviderStatus.ACTIVE
    assert not live.capability("chat-small").is_rare
    assert entries[0].capability is entries[0].provider.capability("chat-small")
    assert [e.priority for e in entries] == [0, 1]
