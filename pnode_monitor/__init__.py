"""
pnode-monitor: pNode network discovery, caching and analytics
"""

from .analytics import AnalyticsService
from .cache import CacheRegistry, CacheStore
from .config import Settings, get_settings
from .context import MonitorContext, get_context
from .discovery import PNodeService, setup_logging
from .enrichment import GeoEnricher
from .geo import GeoResolver, extract_ip
from .models import PNode, NodeStats, NodeMetrics, GeoLocation, AnalyticsSummary
from .prpc_client import PrpcClient
from .exceptions import *


__version__ = "1.0.0"
__author__ = "pnode-monitor contributors"

__all__ = [
    "AnalyticsService",
    "CacheRegistry",
    "CacheStore",
    "Settings",
    "get_settings",
    "MonitorContext",
    "get_context",
    "PNodeService",
    "setup_logging",
    "GeoEnricher",
    "GeoResolver",
    "extract_ip",
    "PNode",
    "NodeStats",
    "NodeMetrics",
    "GeoLocation",
    "AnalyticsSummary",
    "PrpcClient",
    "PnodeMonitorException",
    "RpcError",
    "NetworkError",
    "ValidationError"
]
