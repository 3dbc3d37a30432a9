#!/usr/bin/env python3
"""
Utility Functions
Normalization of raw pods and the derived metrics built on top of them
"""

import math
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .models import PNode, STATUS_ONLINE, STATUS_OFFLINE

SECONDS_IN_24H = 86400
BYTES_PER_GB = 1024 ** 3
BYTES_PER_TB = 1024 ** 4

UPTIME_WEIGHT = 0.5
STORAGE_WEIGHT = 0.3
ONLINE_WEIGHT = 0.2

PREMIUM_THRESHOLD = 85
STANDARD_THRESHOLD = 70


def generate_node_id(pubkey: str) -> str:
    """Short display ID derived from the pubkey"""
    if not pubkey:
        return "node-unknown"
    return f"node-{pubkey[:8]}"


def calculate_uptime_24h(uptime_seconds: float) -> float:
    """Uptime as a percentage of the last 24h, capped at 100"""
    return min(uptime_seconds / SECONDS_IN_24H * 100, 100)


def calculate_utilization(used: float, total: float) -> float:
    """Storage utilization percentage rounded to 2 decimals"""
    if not total:
        return 0
    return round(used / total * 100, 2)


def calculate_health_score(uptime_24h: float, storage_utilization: float, is_online: bool) -> float:
    """Weighted blend: 50% uptime, 30% storage headroom, 20% online flag"""
    uptime_score = uptime_24h * UPTIME_WEIGHT
    storage_score = (100 - storage_utilization) * STORAGE_WEIGHT
    online_score = 100 * ONLINE_WEIGHT if is_online else 0
    return uptime_score + storage_score + online_score


def get_node_tier(health_score: float) -> str:
    if health_score >= PREMIUM_THRESHOLD:
        return "premium"
    if health_score >= STANDARD_THRESHOLD:
        return "standard"
    return "basic"


def calculate_network_health(online_percentage: float) -> str:
    if online_percentage >= 95:
        return "healthy"
    if online_percentage >= 85:
        return "degraded"
    return "unstable"


def percentage(part: float, whole: float) -> float:
    """part/whole as a percentage rounded to 2 decimals, 0 when whole is 0"""
    if not whole:
        return 0
    return round(part / whole * 100, 2)


def online_cutoff(threshold_seconds: int, now: Optional[float] = None) -> int:
    """Epoch second at or after which a last-seen timestamp counts as online"""
    if now is None:
        now = time.time()
    return math.floor(now) - threshold_seconds


def normalize_pod(pod: Dict[str, Any], online_threshold_seconds: int = 300,
                  now: Optional[float] = None) -> PNode:
    """
    Build a canonical PNode from a raw pod record

    Args:
        pod: Raw pod as returned by get-pods / get-pods-with-stats
        online_threshold_seconds: Max age of last_seen_timestamp for an online node
        now: Current epoch seconds (default: time.time())

    Returns:
        PNode with status and uptime derived; geo fields left Unknown
    """
    pubkey = pod.get("pubkey") or ""
    address = pod.get("address") or ""
    last_seen_ts = pod.get("last_seen_timestamp") or 0

    is_online = last_seen_ts >= online_cutoff(online_threshold_seconds, now)
    uptime = calculate_uptime_24h(pod.get("uptime") or 0)

    storage_used = pod.get("storage_used") or 0
    storage_committed = pod.get("storage_committed") or 0

    return PNode(
        pubkey=pubkey,
        id=generate_node_id(pubkey),
        status=STATUS_ONLINE if is_online else STATUS_OFFLINE,
        address=address,
        ip=address.split(":")[0],
        last_seen=datetime.fromtimestamp(last_seen_ts, tz=timezone.utc),
        uptime_seconds=pod.get("uptime") or 0,
        uptime=uptime,
        version=pod.get("version") or "unknown",
        storage_used=storage_used,
        storage_total=storage_committed,
        storage_committed=storage_committed,
        storage_used_gb=round(storage_used / BYTES_PER_GB, 2),
        storage_capacity_gb=round(storage_committed / BYTES_PER_GB, 2),
        uptime_percentage=uptime
    )


def format_bytes(num_bytes: float) -> str:
    if num_bytes == 0:
        return "0 B"
    sizes = ["B", "KB", "MB", "GB", "TB", "PB"]
    i = min(int(math.floor(math.log(num_bytes, 1024))), len(sizes) - 1)
    return f"{num_bytes / 1024 ** i:.2f} {sizes[i]}"


def format_relative_time(moment: datetime, now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    seconds = int((now - moment).total_seconds())
    minutes = seconds // 60
    hours = minutes // 60
    days = hours // 24

    if days > 0:
        return f"{days}d ago"
    if hours > 0:
        return f"{hours}h ago"
    if minutes > 0:
        return f"{minutes}m ago"
    return f"{seconds}s ago"
