#!/usr/bin/env python3
"""
Geo Enrichment
Applies the geo resolver to discovered nodes in bounded batches
"""

import asyncio
import logging
from dataclasses import replace
from typing import List

from .exceptions import ValidationError
from .geo import GeoResolver
from .models import PNode

logger = logging.getLogger(__name__)


class GeoEnricher:
    """Fills region/country/city/lat/lng on nodes that do not have them yet"""

    def __init__(self, resolver: GeoResolver, timeout: float = 3.0):
        self.resolver = resolver
        self.timeout = timeout

    async def enrich_one(self, node: PNode) -> PNode:
        """Return node with geo data, or node itself if already enriched or unresolvable"""
        if node.is_geo_enriched:
            return node

        geo = await self.resolver.resolve_node_geo(node.address or node.ip, self.timeout)
        if geo is None:
            return node

        return replace(
            node,
            region=geo.region,
            country=geo.country,
            city=geo.city,
            lat=geo.lat,
            lng=geo.lng
        )

    async def enrich_many(self, nodes: List[PNode], concurrency: int = 10) -> List[PNode]:
        """
        Enrich nodes batch by batch

        Args:
            nodes: Nodes to enrich
            concurrency: Batch size, i.e. the peak number of concurrent lookups

        Returns:
            Enriched nodes in input order
        """
        if concurrency < 1:
            raise ValidationError(f"concurrency must be >= 1, got {concurrency}")

        enriched: List[PNode] = []
        for start in range(0, len(nodes), concurrency):
            batch = nodes[start:start + concurrency]
            enriched.extend(await asyncio.gather(*(self.enrich_one(node) for node in batch)))

        resolved = sum(1 for node in enriched if node.is_geo_enriched)
        logger.debug(f"Geo enrichment: {resolved}/{len(enriched)} nodes located")
        return enriched
