"""
Tests for node metrics and network aggregates
"""

import asyncio

import pytest

from pnode_monitor.analytics import (
    NODE_METRICS_CACHE_KEY, compute_node_metrics, consensus_version, storage_pressure, top_nodes,
)
from pnode_monitor.models import NodeMetrics
from pnode_monitor.utils import normalize_pod

from conftest import BRAZIL, SEEDS, make_pod

PRIMARY = SEEDS[0]


@pytest.fixture
def network_pods(network, geo_resolver):
    """
    a: online, full uptime, empty disk        -> 100   premium
    b: online, half uptime, 90% full          -> 48    basic
    c: offline, no uptime, 50% full           -> 15    basic
    d: online, full uptime, 81% full          -> 75.7  standard
    plus a duplicate pod for a
    """
    geo_resolver.locations = {"200.1.1.1": BRAZIL}
    pods = [
        make_pod("a", address="200.1.1.1:9001", uptime=86400, storage_used=0, storage_committed=100, version="0.7"),
        make_pod("b", address="3.3.3.3:9001", uptime=43200, storage_used=90, storage_committed=100, version="0.8"),
        make_pod("c", address="4.4.4.4:9001", uptime=0, last_seen=0, storage_used=50, storage_committed=100, version="0.8"),
        make_pod("d", address="5.5.5.5:9001", uptime=86400, storage_used=81, storage_committed=100, version="0.7"),
        make_pod("a", address="200.1.1.1:9001", uptime=86400, storage_used=0, storage_committed=100, version="0.7"),
    ]
    network.pods_with_stats[PRIMARY] = pods
    return pods


def _metric(pubkey, score=50.0, utilization=0.0, uptime=100.0):
    return NodeMetrics(pubkey=pubkey, health_score=score, uptime_24h=uptime,
                       storage_utilization=utilization, tier="basic")


class TestPureAggregates:
    def test_storage_pressure(self):
        metrics = [_metric(str(i), utilization=u) for i, u in enumerate([90, 50, 81, 10])]
        pressure = storage_pressure(metrics)
        assert pressure.high_pressure_nodes == 2
        assert pressure.total_nodes == 4
        assert pressure.percent == 50

    def test_storage_pressure_exactly_80_is_not_high(self):
        assert storage_pressure([_metric("a", utilization=80)]).high_pressure_nodes == 0

    def test_storage_pressure_empty(self):
        assert storage_pressure([]).percent == 0

    def test_consensus_version_tie_first_seen_wins(self):
        nodes = [normalize_pod(make_pod(k, version=v))
                 for k, v in [("1", "b"), ("2", "a"), ("3", "a"), ("4", "b")]]
        assert consensus_version(nodes) == "b"

    def test_consensus_version_majority(self):
        nodes = [normalize_pod(make_pod(k, version=v))
                 for k, v in [("1", "b"), ("2", "a"), ("3", "a")]]
        assert consensus_version(nodes) == "a"

    def test_consensus_version_empty(self):
        assert consensus_version([]) == "unknown"

    def test_top_nodes_limit_and_projection(self):
        metrics = [_metric(f"n{i}", score=float(i)) for i in range(15)]
        top = top_nodes(metrics)
        assert len(top) == 10
        assert [t.pubkey for t in top[:3]] == ["n14", "n13", "n12"]
        assert top[0].to_dict() == {"pubkey": "n14", "healthScore": 14.0, "uptime24h": 100.0}
        # input order is untouched
        assert metrics[0].pubkey == "n0"

    def test_compute_skips_pods_without_node(self):
        nodes = [normalize_pod(make_pod("a"))]
        metrics = compute_node_metrics([make_pod("a"), make_pod("ghost"), make_pod(None)], nodes)
        assert [m.pubkey for m in metrics] == ["a"]


class TestAnalyticsService:
    def test_node_metrics(self, analytics_service, network_pods):
        metrics = asyncio.run(analytics_service.get_node_metrics())
        by_key = {m.pubkey: m for m in metrics}

        assert len(metrics) == 4
        assert by_key["a"].health_score == pytest.approx(100)
        assert by_key["a"].tier == "premium"
        assert by_key["b"].health_score == pytest.approx(48)
        assert by_key["b"].storage_utilization == 90
        assert by_key["b"].uptime_24h == 50
        assert by_key["c"].health_score == pytest.approx(15)
        assert by_key["d"].health_score == pytest.approx(75.7)
        assert by_key["d"].tier == "standard"

    def test_node_metrics_are_cached(self, analytics_service, network_pods, network, caches):
        first = asyncio.run(analytics_service.get_node_metrics())
        network.pods_with_stats[PRIMARY] = []
        assert asyncio.run(analytics_service.get_node_metrics()) is first
        assert caches.analytics.get(NODE_METRICS_CACHE_KEY) is first

    def test_summary(self, analytics_service, network_pods):
        summary = asyncio.run(analytics_service.get_analytics_summary())

        assert summary.total_pnodes == 4
        assert summary.online_pnodes == 3
        assert summary.online_percentage == 75
        assert summary.network_health == "unstable"
        assert summary.total_pods == 5
        assert summary.active_pods == 4
        assert summary.average_uptime == 83.33
        assert summary.total_storage_used == 221
        assert summary.total_storage_capacity == 500
        assert summary.total_storage_used_tb == pytest.approx(221 / 1024 ** 4)
        assert summary.consensus_version == "0.7"

    def test_summary_of_empty_network(self, analytics_service):
        summary = asyncio.run(analytics_service.get_analytics_summary())
        assert summary.total_pnodes == 0
        assert summary.online_percentage == 0
        assert summary.average_uptime == 0
        assert summary.consensus_version == "unknown"
        assert summary.network_health == "unstable"

    def test_summary_json_keys(self, analytics_service, network_pods):
        data = asyncio.run(analytics_service.get_analytics_summary()).to_dict()
        for key in ("totalPNodes", "onlinePNodes", "onlinePercentage", "totalPods", "activePods",
                    "averageUptime", "totalStorageUsedTB", "totalStorageCapacityTB",
                    "networkHealth", "consensusVersion"):
            assert key in data

    def test_extended_summary(self, analytics_service, network_pods):
        summary = asyncio.run(analytics_service.get_extended_summary())

        assert summary.total_pnodes == 4
        assert summary.online_percentage == 75
        assert summary.average_uptime_24h == 62.5
        assert summary.average_health_score == pytest.approx(59.67, abs=0.01)
        assert summary.storage_pressure_percent == 50
        assert summary.network_health == "unstable"

    def test_extended_summary_empty(self, analytics_service):
        summary = asyncio.run(analytics_service.get_extended_summary())
        assert summary.total_pnodes == 0
        assert summary.network_health == "unstable"

    def test_top_nodes_do_not_reorder_cache(self, analytics_service, network_pods):
        metrics = asyncio.run(analytics_service.get_node_metrics())
        order = [m.pubkey for m in metrics]

        top = asyncio.run(analytics_service.get_top_nodes())

        assert [t.pubkey for t in top] == ["a", "d", "b", "c"]
        assert [m.pubkey for m in metrics] == order

    def test_storage_pressure(self, analytics_service, network_pods):
        pressure = asyncio.run(analytics_service.get_storage_pressure())
        assert (pressure.high_pressure_nodes, pressure.total_nodes, pressure.percent) == (2, 4, 50)

    def test_version_distribution(self, analytics_service, network_pods):
        versions = asyncio.run(analytics_service.get_version_distribution())
        assert [(v.version, v.count) for v in versions] == [("0.7", 2), ("0.8", 2)]

    def test_storage_analytics(self, analytics_service, network_pods):
        rows = asyncio.run(analytics_service.get_storage_analytics())
        assert [(r.pubkey, r.utilization_percent) for r in rows] == [
            ("a", 0), ("b", 90), ("c", 50), ("d", 81)
        ]

    def test_geo_summary_counts_enriched_nodes(self, analytics_service, network_pods):
        summary = asyncio.run(analytics_service.get_geo_summary())
        assert summary.countries == [{"country": "Brazil", "count": 1}]
        assert summary.regions == [{"region": "Sao Paulo", "count": 1}]

    def test_map_nodes(self, analytics_service, network_pods):
        map_nodes = asyncio.run(analytics_service.get_map_nodes())
        assert len(map_nodes) == 1
        assert map_nodes[0].pubkey == "a"
        assert map_nodes[0].health_score == pytest.approx(100)

    def test_malformed_pods_do_not_break_aggregates(self, analytics_service, network):
        network.pods_with_stats[PRIMARY] = [
            make_pod("a", storage_used=10, storage_committed=100),
            make_pod("b", last_seen="garbage"),
            make_pod("c", storage_committed="lots"),
            "not-a-pod",
        ]

        summary = asyncio.run(analytics_service.get_analytics_summary())
        metrics = asyncio.run(analytics_service.get_node_metrics())

        assert summary.total_pnodes == 1
        assert summary.total_pods == 1
        assert summary.active_pods == 1
        assert summary.total_storage_capacity == 100
        assert [m.pubkey for m in metrics] == ["a"]
        assert metrics[0].storage_utilization == 10
