#!/usr/bin/env python3
"""
pNode Discovery
Enumerates pNodes through the gossip seeds, normalizes and deduplicates them,
enriches them with geo data and keeps the result in the node-list cache
"""

import sys
import time
import logging
from dataclasses import replace
from typing import Any, Dict, List, Optional

from .cache import CacheRegistry
from .config import Settings
from .enrichment import GeoEnricher
from .geo import extract_ip
from .models import PNode, NodeStats
from .prpc_client import ClientFactory, make_client_factory
from .utils import normalize_pod


def setup_logging(level=logging.INFO):
    """Set up logging configuration to stderr only"""
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(levelname)s - %(message)s',
        stream=sys.stderr
    )


logger = logging.getLogger(__name__)

PNODES_CACHE_KEY = "pnodes"
RAW_PODS_CACHE_KEY = "pods_raw_analytics"
NODE_STATS_CACHE_PREFIX = "node_stats_"
RAW_POD_NUMERIC_FIELDS = ("last_seen_timestamp", "storage_committed", "storage_used", "uptime")


class PNodeService:
    """Discovery, caching and per-node stats for the pNode network"""

    def __init__(self, settings: Settings, caches: CacheRegistry, enricher: GeoEnricher,
                 client_factory: Optional[ClientFactory] = None):
        self.settings = settings
        self.caches = caches
        self.enricher = enricher
        self.client_factory = client_factory or make_client_factory(settings.prpc_port)
        self.primary_client = self.client_factory(settings.primary_seed, settings.primary_timeout)

    def _normalize_pods(self, pods: List[Dict[str, Any]], source: str) -> List[PNode]:
        """Normalize pods one by one; a bad record is skipped, not fatal"""
        now = time.time()
        nodes = []
        for pod in pods:
            try:
                node = normalize_pod(pod, self.settings.online_threshold_seconds, now)
            except Exception as e:
                logger.warning(f"Skipping malformed pod from {source}: {e}")
                continue
            if node.pubkey:
                nodes.append(node)
        return nodes

    def _clean_raw_pods(self, pods: List[Any], source: str) -> List[Dict[str, Any]]:
        """Drop raw pods that the analytics aggregates could not read"""
        cleaned = []
        for pod in pods:
            if not isinstance(pod, dict):
                logger.warning(f"Skipping non-object pod from {source}: {pod!r}")
                continue
            pubkey = pod.get("pubkey")
            bad_fields = [
                field for field in RAW_POD_NUMERIC_FIELDS
                if pod.get(field) is not None and not isinstance(pod[field], (int, float))
            ]
            if pubkey is not None and not isinstance(pubkey, str):
                bad_fields.append("pubkey")
            if bad_fields:
                logger.warning(f"Skipping malformed pod from {source}: bad {', '.join(bad_fields)}")
                continue
            cleaned.append(pod)
        return cleaned

    async def _fetch_primary_pods(self) -> List[Dict[str, Any]]:
        """get-pods-with-stats on the primary endpoint, falling back to get-pods"""
        try:
            return await self.primary_client.get_pods_with_stats()
        except Exception as e:
            logger.info(f"get-pods-with-stats failed on primary seed, falling back to get-pods: {e}")
            return await self.primary_client.get_pods()

    async def _fetch_seed_pods(self, seed: str) -> List[Dict[str, Any]]:
        client = self.client_factory(seed, self.settings.fallback_timeout)
        return await client.get_pods()

    async def discover(self) -> List[PNode]:
        """
        Run one discovery cycle

        Returns:
            Normalized nodes from the first endpoint that yields any, or [] if none does
        """
        try:
            pods = await self._fetch_primary_pods()
            nodes = self._normalize_pods(pods, self.settings.primary_seed)
            if nodes:
                return nodes
            logger.warning(f"Primary seed {self.settings.primary_seed} returned no usable pods")
        except Exception as e:
            logger.warning(f"Primary seed {self.settings.primary_seed} failed: {e}")

        for seed in self.settings.fallback_seeds:
            try:
                pods = await self._fetch_seed_pods(seed)
            except Exception as e:
                logger.debug(f"Fallback seed {seed} failed: {e}")
                continue

            nodes = self._normalize_pods(pods, seed)
            if nodes:
                logger.info(f"Discovered {len(nodes)} nodes via fallback seed {seed}")
                return nodes

        logger.error("All seeds exhausted, no pNodes discovered")
        return []

    @staticmethod
    def deduplicate(nodes: List[PNode]) -> List[PNode]:
        """Keep the first node seen for each pubkey"""
        seen: Dict[str, PNode] = {}
        for node in nodes:
            if node.pubkey and node.pubkey not in seen:
                seen[node.pubkey] = node
        return list(seen.values())

    async def get_all_pnodes(self) -> List[PNode]:
        """Get all pNodes, using the node-list cache when it is fresh"""
        cached = self.caches.nodes.get(PNODES_CACHE_KEY)
        if cached is not None:
            logger.debug(f"Using cached pNodes ({len(cached)} nodes)")
            return cached

        logger.info("Discovering pNodes via gossip (cache miss)")
        nodes = await self.discover()
        logger.info(f"Found {len(nodes)} nodes from gossip")

        unique_nodes = self.deduplicate(nodes)
        online = sum(1 for node in unique_nodes if node.is_online)
        logger.info(f"Deduplicated to {len(unique_nodes)} unique nodes "
                    f"(online: {online}, offline: {len(unique_nodes) - online})")

        enriched = await self.enricher.enrich_many(unique_nodes, self.settings.enrichment_concurrency)
        logger.info("Geographic enrichment complete")

        ttl = self.settings.node_list_ttl
        self.caches.nodes.set(PNODES_CACHE_KEY, enriched, ttl)
        logger.info(f"Cached {len(enriched)} nodes (TTL: {ttl}s)")
        return enriched

    async def get_pnode_by_pubkey(self, pubkey: str) -> Optional[PNode]:
        for node in await self.get_all_pnodes():
            if node.pubkey == pubkey:
                return node
        return None

    async def get_pnode_by_id(self, node_id: str) -> Optional[PNode]:
        for node in await self.get_all_pnodes():
            if node.id == node_id:
                return node
        return None

    async def refresh_pnodes(self) -> List[PNode]:
        """Drop the cached node list and rediscover immediately"""
        self.caches.nodes.delete(PNODES_CACHE_KEY)
        return await self.get_all_pnodes()

    async def get_node_stats(self, pubkey: str) -> Optional[NodeStats]:
        """Live stats straight from an online node; None on any failure"""
        cache_key = f"{NODE_STATS_CACHE_PREFIX}{pubkey}"
        cached = self.caches.stats.get(cache_key)
        if cached is not None:
            return cached

        try:
            node = await self.get_pnode_by_pubkey(pubkey)
            if node is None or not node.is_online:
                return None

            node_ip = extract_ip(node.address or node.ip)
            if not node_ip:
                return None

            client = self.client_factory(node_ip, self.settings.stats_timeout)
            raw_stats = await client.get_stats()
            if not raw_stats:
                return None

            stats = NodeStats(
                ram_used=int(raw_stats.get("ram_used") or 0),
                ram_total=int(raw_stats.get("ram_total") or 0),
                storage_used=int(raw_stats.get("storage_used") or 0),
                storage_committed=int(raw_stats.get("storage_committed") or 0)
            )
        except Exception as e:
            logger.debug(f"Stats unavailable for {pubkey}: {e}")
            return None

        self.caches.stats.set(cache_key, stats, self.settings.stats_cache_ttl)
        return stats

    async def get_pnode_with_stats(self, pubkey: str) -> Optional[PNode]:
        """Node by pubkey with RAM fields filled in when live stats are available"""
        node = await self.get_pnode_by_pubkey(pubkey)
        if node is None:
            return None

        stats = await self.get_node_stats(pubkey)
        if stats is None:
            return node
        return replace(node, ram_used=stats.ram_used, ram_total=stats.ram_total)

    async def get_raw_pods_for_analytics(self) -> List[Dict[str, Any]]:
        """Raw pod records, cached in the analytics store"""
        cached = self.caches.analytics.get(RAW_PODS_CACHE_KEY)
        if cached is not None:
            return cached

        try:
            pods = self._clean_raw_pods(await self._fetch_primary_pods(), self.settings.primary_seed)
        except Exception as e:
            logger.warning(f"Primary seed failed for raw pods: {e}")
            pods = await self._fetch_raw_pods_from_seeds()
            if not pods:
                return []

        self.caches.analytics.set(RAW_PODS_CACHE_KEY, pods, self.settings.analytics_cache_ttl)
        return pods

    async def _fetch_raw_pods_from_seeds(self) -> List[Dict[str, Any]]:
        for seed in self.settings.fallback_seeds:
            try:
                pods = self._clean_raw_pods(await self._fetch_seed_pods(seed), seed)
            except Exception as e:
                logger.debug(f"Fallback seed {seed} failed for raw pods: {e}")
                continue
            if pods:
                return pods
        return []
