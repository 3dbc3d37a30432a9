"""
Process-wide service wiring: one set of caches and services per process
"""

import logging
from typing import Optional

from .analytics import AnalyticsService
from .cache import CacheRegistry
from .config import Settings, get_settings
from .discovery import PNodeService
from .enrichment import GeoEnricher
from .geo import GeoResolver
from .prpc_client import ClientFactory

logger = logging.getLogger(__name__)


class MonitorContext:
    """Holds the cache stores and the services built on them"""

    def __init__(self, settings: Settings, caches: CacheRegistry, pnodes: PNodeService,
                 analytics: AnalyticsService):
        self.settings = settings
        self.caches = caches
        self.pnodes = pnodes
        self.analytics = analytics

    @classmethod
    def create(cls, settings: Optional[Settings] = None,
               client_factory: Optional[ClientFactory] = None,
               geo_resolver: Optional[GeoResolver] = None) -> "MonitorContext":
        settings = settings or get_settings()
        caches = CacheRegistry.from_settings(settings)

        resolver = geo_resolver or GeoResolver(caches.geo, settings.geo_api_url,
                                               cache_ttl=settings.geo_cache_ttl,
                                               timeout=settings.geo_timeout)
        enricher = GeoEnricher(resolver, timeout=settings.node_geo_timeout)
        pnodes = PNodeService(settings, caches, enricher, client_factory)
        analytics = AnalyticsService(settings, caches, pnodes)

        logger.info(f"Monitor context ready (primary seed: {settings.primary_seed}, "
                    f"node list TTL: {settings.node_list_ttl}s)")
        return cls(settings, caches, pnodes, analytics)

    def close(self) -> None:
        self.caches.flush_all()


_context: Optional[MonitorContext] = None


def get_context() -> MonitorContext:
    """Get the process-wide context, creating it on first use"""
    global _context
    if _context is None:
        _context = MonitorContext.create()
    return _context


def reset_context() -> None:
    global _context
    if _context is not None:
        _context.close()
    _context = None
