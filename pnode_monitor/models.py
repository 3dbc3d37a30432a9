#!/usr/bin/env python3
"""
pNode Data Models
Data structures for discovered nodes and the analytics derived from them
"""

from dataclasses import dataclass, fields
from datetime import datetime
from typing import Dict, List, Optional, Any


UNKNOWN_LOCATION = "Unknown"

STATUS_ONLINE = "online"
STATUS_OFFLINE = "offline"

# JSON keys that do not follow the plain snake_case -> camelCase rule
_KEY_OVERRIDES = {
    "storage_used_gb": "storageUsedGB",
    "storage_capacity_gb": "storageCapacityGB",
    "total_storage_used_tb": "totalStorageUsedTB",
    "total_storage_capacity_tb": "totalStorageCapacityTB",
    "total_pnodes": "totalPNodes",
    "online_pnodes": "onlinePNodes",
    "uptime_24h": "uptime24h",
    "average_uptime_24h": "averageUptime24h",
}


def _camel(name: str) -> str:
    if name in _KEY_OVERRIDES:
        return _KEY_OVERRIDES[name]
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def _json_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, list):
        return [_json_value(item) for item in value]
    if hasattr(value, "to_dict"):
        return value.to_dict()
    return value


class JsonMixin:
    """camelCase JSON projection shared by all models"""

    def to_dict(self) -> Dict[str, Any]:
        data = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None:
                continue
            data[_camel(f.name)] = _json_value(value)
        return data


@dataclass
class GeoLocation(JsonMixin):
    """Coarse location resolved for an IP address"""
    lat: float
    lng: float
    country: str
    region: str
    city: Optional[str] = None


@dataclass
class PNode(JsonMixin):
    """Canonical pNode record built from one raw pod"""
    pubkey: str
    id: str
    status: str
    address: str
    ip: str
    last_seen: datetime
    uptime_seconds: float
    uptime: float
    version: str
    storage_used: int
    storage_total: int
    storage_committed: int
    storage_used_gb: float
    storage_capacity_gb: float
    uptime_percentage: float
    region: str = UNKNOWN_LOCATION
    country: str = UNKNOWN_LOCATION
    city: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    ram_used: Optional[int] = None
    ram_total: Optional[int] = None

    @property
    def is_online(self) -> bool:
        return self.status == STATUS_ONLINE

    @property
    def is_geo_enriched(self) -> bool:
        return self.region != UNKNOWN_LOCATION and self.country != UNKNOWN_LOCATION


@dataclass
class NodeStats(JsonMixin):
    """Live stats reported by a single pNode"""
    ram_used: int = 0
    ram_total: int = 0
    storage_used: int = 0
    storage_committed: int = 0

    def to_dict(self) -> Dict[str, Any]:
        # get-stats uses snake_case on the wire and the UI reads it as-is
        return {
            "ram_used": self.ram_used,
            "ram_total": self.ram_total,
            "storage_used": self.storage_used,
            "storage_committed": self.storage_committed,
        }


@dataclass
class NodeMetrics(JsonMixin):
    pubkey: str
    health_score: float
    uptime_24h: float
    storage_utilization: float
    tier: str


@dataclass
class TopNode(JsonMixin):
    pubkey: str
    health_score: float
    uptime_24h: float


@dataclass
class AnalyticsSummary(JsonMixin):
    """Network-wide aggregates over the current snapshot"""
    total_pnodes: int
    online_pnodes: int
    online_percentage: float
    total_pods: int
    active_pods: int
    average_uptime: float
    total_storage_used: int
    total_storage_capacity: int
    total_storage_used_tb: float
    total_storage_capacity_tb: float
    network_health: str
    consensus_version: str


@dataclass
class ExtendedSummary(JsonMixin):
    total_pnodes: int
    online_percentage: float
    average_uptime_24h: float
    average_health_score: float
    storage_pressure_percent: float
    network_health: str


@dataclass
class StoragePressure(JsonMixin):
    high_pressure_nodes: int
    total_nodes: int
    percent: float


@dataclass
class StorageAnalytics(JsonMixin):
    pubkey: str
    storage_used: int
    storage_total: int
    utilization_percent: float


@dataclass
class VersionDistribution(JsonMixin):
    version: str
    count: int


@dataclass
class GeoSummary(JsonMixin):
    countries: List[Dict[str, Any]]
    regions: List[Dict[str, Any]]


@dataclass
class MapNode(JsonMixin):
    """Enriched node projected for map display"""
    pubkey: str
    lat: float
    lng: float
    country: str
    region: str
    status: str
    health_score: float
    uptime_24h: float
    storage_utilization: float
    version: str
    last_seen: datetime


@dataclass
class UptimeDataPoint(JsonMixin):
    timestamp: datetime
    uptime: float
