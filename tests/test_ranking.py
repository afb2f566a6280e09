import itertools

import pytest

from provider_router import Capability, ProviderKind, RouterConfig
from provider_router.availability import AvailabilityIndex
from provider_router.ranking import RankingEngine


def _rank(config, providers, capability_id, now=1000.0):
    index = AvailabilityIndex()
    index.rebuild(providers)
    engine = RankingEngine(config, index)
    return [entry.provider.name for entry in engine.rank(index.entries_for(capability_id), now)]


def test_least_recently_used_first(provider_factory) -> None:
    providers = [
        provider_factory("a", ["m"], last_used=30.0),
        provider_factory("b", ["m"], last_used=10.0),
        provider_factory("c", ["m"], last_used=20.0),
    ]

    assert _rank(RouterConfig(), providers, "m") == ["b", "c", "a"]


def test_remaining_ratio_beats_recency(provider_factory) -> None:
    providers = [
        provider_factory("busy", ["m"], requests_per_day=10, used_requests=8, last_used=0.0),
        provider_factory("idle", ["m"], requests_per_day=10, used_requests=1, last_used=500.0),
    ]

    assert _rank(RouterConfig(), providers, "m") == ["idle", "busy"]


def test_prefer_fast_orders_by_latency(provider_factory) -> None:
    providers = [
        provider_factory("slow", ["m"], latency=2.0, last_used=0.0),
        provider_factory("fast", ["m"], latency=0.3, last_used=50.0),
    ]

    assert _rank(RouterConfig(), providers, "m") == ["slow", "fast"]
    assert _rank(RouterConfig(prefer_fast=True), providers, "m") == ["fast", "slow"]


def test_prefer_cheap_orders_by_unit_cost(provider_factory) -> None:
    providers = [
        provider_factory("pricey", [Capability(id="m", input_cost=3.0, output_cost=15.0)]),
        provider_factory("cheap", [Capability(id="m", input_cost=0.1, output_cost=0.2)], last_used=9.0),
    ]

    assert _rank(RouterConfig(prefer_cheap=True), providers, "m") == ["cheap", "pricey"]


def test_prefer_fast_outranks_prefer_cheap(provider_factory) -> None:
    providers = [
        provider_factory("fast", [Capability(id="m", input_cost=5.0)], latency=0.1),
        provider_factory("cheap", [Capability(id="m", input_cost=0.0)], latency=1.0),
    ]

    config = RouterConfig(prefer_fast=True, prefer_cheap=True)
    assert _rank(config, providers, "m") == ["fast", "cheap"]


def test_prefer_free_uses_free_tier_kinds(provider_factory) -> None:
    providers = [
        provider_factory("paid", ["m"], kind=ProviderKind.OPENAI),
        provider_factory("google", ["m"], kind=ProviderKind.GOOGLE, last_used=5.0),
        provider_factory("groq", ["m"], kind=ProviderKind.GROQ, last_used=9.0),
    ]

    assert _rank(RouterConfig(), providers, "m") == ["paid", "google", "groq"]
    assert _rank(RouterConfig(prefer_free=True), providers, "m") == ["groq", "google", "paid"]


def test_exclusive_entry_first_for_rare_capability(provider_factory) -> None:
    providers = [provider_factory("only", ["rare-one", "m"], requests_per_day=10, used_requests=9)]

    assert _rank(RouterConfig(prefer_fast=True), providers, "rare-one") == ["only"]


def test_rare_burden_outranks_quota_ratio(provider_factory) -> None:
    providers = [
        provider_factory("holder", ["rare-one", "m"], requests_per_day=100),
        provider_factory("plain", ["m"], requests_per_day=100, used_requests=95, last_used=99.0),
    ]

    assert _rank(RouterConfig(prefer_fast=True), providers, "m") == ["plain", "holder"]


def test_two_burdened_providers_fall_through_to_later_rules(provider_factory) -> None:
    providers = [
        provider_factory("h1", ["rare-one", "m"], requests_per_day=10, used_requests=5),
        provider_factory("h2", ["rare-two", "m"], requests_per_day=10, used_requests=2),
    ]

    assert _rank(RouterConfig(), providers, "m") == ["h2", "h1"]


def test_expired_window_ranks_as_full(provider_factory) -> None:
    stale = provider_factory("stale", ["m"], requests_per_day=10, used_requests=10)
    stale.quota.reset_time = 500.0
    fresh = provider_factory("fresh", ["m"], requests_per_day=10, used_requests=1)
    fresh.quota.reset_time = 5000.0

    assert _rank(RouterConfig(), [fresh, stale], "m", now=1000.0) == ["stale", "fresh"]


@pytest.mark.parametrize("config", [RouterConfig(), RouterConfig(prefer_fast=True, prefer_cheap=True, prefer_free=True)])
def test_order_is_independent_of_registration_order(provider_factory, config) -> None:
    def build():
        return [
            provider_factory("delta", ["m"]),
            provider_factory("alpha", ["m"]),
            provider_factory("charlie", ["m"], requests_per_day=10, used_requests=3),
            provider_factory("bravo", ["m"]),
        ]

    expected = _rank(config, build(), "m")
    assert expected == ["alpha", "bravo", "delta", "charlie"]
    for permutation in itertools.permutations(build()):
        assert _rank(config, list(permutation), "m") == expected


def test_rank_sets_priority_on_copies(provider_factory) -> None:
    providers = [
        provider_factory("b", ["m"], last_used=2.0),
        provider_factory("a", ["m"], last_used=1.0),
    ]
    index = AvailabilityIndex()
    index.rebuild(providers)
    engine = RankingEngine(RouterConfig(), index)

    ranked = engine.rank(index.entries_for("m"), now=10.0)

    assert [(e.provider.name, e.priority) for e in ranked] == [("a", 0), ("b", 1)]
    assert all(e.priority == 0 for e in index.entries_for("m"))
