#!/usr/bin/env python3
"""
Network Analytics
Per-node health metrics and network-wide aggregates over the current snapshot
"""

import time
import logging
from collections import Counter
from typing import Any, Callable, Dict, List

from .cache import CacheRegistry
from .config import Settings
from .discovery import PNodeService
from .models import (
    AnalyticsSummary, ExtendedSummary, GeoSummary, MapNode, NodeMetrics, PNode,
    StorageAnalytics, StoragePressure, TopNode, VersionDistribution,
)
from .utils import (
    BYTES_PER_TB, calculate_health_score, calculate_network_health, calculate_uptime_24h,
    calculate_utilization, get_node_tier, online_cutoff, percentage,
)

logger = logging.getLogger(__name__)

NODE_METRICS_CACHE_KEY = "computed_node_metrics"
HIGH_PRESSURE_UTILIZATION = 80
TOP_NODES_LIMIT = 10


def compute_node_metrics(pods: List[Dict[str, Any]], nodes: List[PNode]) -> List[NodeMetrics]:
    """
    Derive NodeMetrics for every raw pod that matches a discovered node

    Storage figures come from the pod, the online flag from the node.
    Each pubkey is scored once, from its first pod.
    """
    nodes_by_pubkey = {node.pubkey: node for node in nodes}
    metrics = []
    scored = set()

    for pod in pods:
        pubkey = pod.get("pubkey")
        node = nodes_by_pubkey.get(pubkey) if pubkey else None
        if node is None or pubkey in scored:
            continue
        scored.add(pubkey)

        uptime_24h = calculate_uptime_24h(pod.get("uptime") or 0)
        storage_utilization = calculate_utilization(pod.get("storage_used") or 0,
                                                    pod.get("storage_committed") or 0)
        health_score = calculate_health_score(uptime_24h, storage_utilization, node.is_online)

        metrics.append(NodeMetrics(
            pubkey=pubkey,
            health_score=health_score,
            uptime_24h=uptime_24h,
            storage_utilization=storage_utilization,
            tier=get_node_tier(health_score)
        ))

    return metrics


def consensus_version(nodes: List[PNode]) -> str:
    """Most common version; on a tie the version seen first wins"""
    tally: Dict[str, int] = {}
    for node in nodes:
        version = node.version or "unknown"
        tally[version] = tally.get(version, 0) + 1

    winner, max_count = "unknown", 0
    for version, count in tally.items():
        if count > max_count:
            winner, max_count = version, count
    return winner


def storage_pressure(metrics: List[NodeMetrics]) -> StoragePressure:
    high = sum(1 for m in metrics if m.storage_utilization > HIGH_PRESSURE_UTILIZATION)
    return StoragePressure(
        high_pressure_nodes=high,
        total_nodes=len(metrics),
        percent=percentage(high, len(metrics))
    )


def top_nodes(metrics: List[NodeMetrics], limit: int = TOP_NODES_LIMIT) -> List[TopNode]:
    ranked = sorted(metrics, key=lambda m: m.health_score, reverse=True)
    return [
        TopNode(pubkey=m.pubkey, health_score=m.health_score, uptime_24h=m.uptime_24h)
        for m in ranked[:limit]
    ]


def _mean(values: List[float]) -> float:
    if not values:
        return 0
    return round(sum(values) / len(values), 2)


class AnalyticsService:
    """Aggregates over the discovery snapshot, with metrics cached in the analytics store"""

    def __init__(self, settings: Settings, caches: CacheRegistry, pnode_service: PNodeService,
                 clock: Callable[[], float] = time.time):
        self.settings = settings
        self.caches = caches
        self.pnodes = pnode_service
        self.clock = clock

    async def get_node_metrics(self) -> List[NodeMetrics]:
        cached = self.caches.analytics.get(NODE_METRICS_CACHE_KEY)
        if cached is not None:
            return cached

        pods = await self.pnodes.get_raw_pods_for_analytics()
        nodes = await self.pnodes.get_all_pnodes()

        metrics = compute_node_metrics(pods, nodes)
        self.caches.analytics.set(NODE_METRICS_CACHE_KEY, metrics, self.settings.analytics_cache_ttl)
        logger.debug(f"Computed metrics for {len(metrics)} nodes")
        return metrics

    async def get_analytics_summary(self) -> AnalyticsSummary:
        nodes = await self.pnodes.get_all_pnodes()
        raw_pods = await self.pnodes.get_raw_pods_for_analytics()

        cutoff = online_cutoff(self.settings.online_threshold_seconds, self.clock())
        active_pods = sum(1 for pod in raw_pods if (pod.get("last_seen_timestamp") or 0) >= cutoff)

        online_nodes = [node for node in nodes if node.is_online]
        online_percentage = percentage(len(online_nodes), len(nodes))
        average_uptime = _mean([node.uptime for node in online_nodes if node.uptime > 0])

        total_storage_used = sum(node.storage_used or 0 for node in nodes)
        total_storage_capacity = sum(
            pod.get("storage_committed") for pod in raw_pods
            if (pod.get("storage_committed") or 0) > 0
        )

        return AnalyticsSummary(
            total_pnodes=len(nodes),
            online_pnodes=len(online_nodes),
            online_percentage=online_percentage,
            total_pods=len(raw_pods),
            active_pods=active_pods,
            average_uptime=average_uptime,
            total_storage_used=total_storage_used,
            total_storage_capacity=total_storage_capacity,
            total_storage_used_tb=total_storage_used / BYTES_PER_TB,
            total_storage_capacity_tb=total_storage_capacity / BYTES_PER_TB,
            network_health=calculate_network_health(online_percentage),
            consensus_version=consensus_version(nodes)
        )

    async def get_extended_summary(self) -> ExtendedSummary:
        metrics = await self.get_node_metrics()
        nodes = await self.pnodes.get_all_pnodes()

        total = len(metrics)
        if total == 0:
            return ExtendedSummary(
                total_pnodes=0,
                online_percentage=0,
                average_uptime_24h=0,
                average_health_score=0,
                storage_pressure_percent=0,
                network_health="unstable"
            )

        online_percentage = percentage(sum(1 for node in nodes if node.is_online), total)
        return ExtendedSummary(
            total_pnodes=total,
            online_percentage=online_percentage,
            average_uptime_24h=_mean([m.uptime_24h for m in metrics]),
            average_health_score=_mean([m.health_score for m in metrics]),
            storage_pressure_percent=storage_pressure(metrics).percent,
            network_health=calculate_network_health(online_percentage)
        )

    async def get_top_nodes(self, limit: int = TOP_NODES_LIMIT) -> List[TopNode]:
        return top_nodes(await self.get_node_metrics(), limit)

    async def get_storage_pressure(self) -> StoragePressure:
        return storage_pressure(await self.get_node_metrics())

    async def get_version_distribution(self) -> List[VersionDistribution]:
        nodes = await self.pnodes.get_all_pnodes()
        tally = Counter(node.version or "unknown" for node in nodes)
        # sorted() is stable, so equal counts keep first-seen order
        return [
            VersionDistribution(version=version, count=count)
            for version, count in sorted(tally.items(), key=lambda item: item[1], reverse=True)
        ]

    async def get_storage_analytics(self) -> List[StorageAnalytics]:
        nodes = await self.pnodes.get_all_pnodes()
        return [
            StorageAnalytics(
                pubkey=node.pubkey,
                storage_used=node.storage_used,
                storage_total=node.storage_total,
                utilization_percent=calculate_utilization(node.storage_used, node.storage_total)
            )
            for node in nodes
        ]

    async def get_geo_summary(self) -> GeoSummary:
        nodes = [node for node in await self.pnodes.get_all_pnodes() if node.is_geo_enriched]
        countries = Counter(node.country for node in nodes)
        regions = Counter(node.region for node in nodes)
        return GeoSummary(
            countries=[{"country": c, "count": n} for c, n in countries.most_common()],
            regions=[{"region": r, "count": n} for r, n in regions.most_common()]
        )

    async def get_map_nodes(self) -> List[MapNode]:
        nodes = await self.pnodes.get_all_pnodes()
        metrics_by_pubkey = {m.pubkey: m for m in await self.get_node_metrics()}

        map_nodes = []
        for node in nodes:
            if node.lat is None or node.lng is None:
                continue
            metrics = metrics_by_pubkey.get(node.pubkey)
            map_nodes.append(MapNode(
                pubkey=node.pubkey,
                lat=node.lat,
                lng=node.lng,
                country=node.country,
                region=node.region,
                status=node.status,
                health_score=metrics.health_score if metrics else 0,
                uptime_24h=metrics.uptime_24h if metrics else node.uptime,
                storage_utilization=metrics.storage_utilization if metrics else 0,
                version=node.version,
                last_seen=node.last_seen
            ))
        return map_nodes
