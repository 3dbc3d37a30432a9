#!/usr/bin/env python3
"""
Geo Resolver
Maps node IP addresses to a coarse location through ip-api.com.
Lookups are best-effort: every failure mode yields None.
"""

import re
import asyncio
import logging
from typing import Any, Dict, Optional

import requests

from .cache import CacheStore
from .exceptions import NetworkError
from .models import GeoLocation, UNKNOWN_LOCATION

logger = logging.getLogger(__name__)

GEO_CACHE_KEY_PREFIX = "geo:"
GEO_CACHE_TTL_SECONDS = 86400
GEO_FIELDS = "status,message,country,regionName,city,lat,lon"

# Format check only; octet ranges are left to the lookup service
IPV4_PATTERN = re.compile(r"^(\d{1,3}\.){3}\d{1,3}$")


def extract_ip(address: Optional[str]) -> Optional[str]:
    """Extract the IPv4 part of "ip:port" or a bare IP, None if it is not one"""
    if not address:
        return None

    ip = address.split(":")[0].strip()
    if not IPV4_PATTERN.match(ip):
        return None
    return ip


def _to_float(value: Any) -> float:
    if isinstance(value, str):
        return float(value)
    return value


class GeoResolver:
    """Resolves IPs to GeoLocation with a long-lived cache in front of the service"""

    def __init__(self, cache: CacheStore, api_url: str = "http://ip-api.com/json",
                 session: Optional[requests.Session] = None,
                 cache_ttl: float = GEO_CACHE_TTL_SECONDS, timeout: float = 5.0):
        self.cache = cache
        self.api_url = api_url.rstrip("/")
        self.cache_ttl = cache_ttl
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({'Accept': 'application/json'})

    def _lookup(self, ip: str, timeout: float) -> Dict[str, Any]:
        try:
            response = self.session.get(
                f"{self.api_url}/{ip}",
                params={"fields": GEO_FIELDS},
                timeout=timeout
            )
        except requests.RequestException as e:
            raise NetworkError(ip, "geo lookup", str(e))
        if not response.ok:
            raise NetworkError(ip, "geo lookup", f"HTTP {response.status_code}")
        return response.json()

    def _parse(self, data: Optional[Dict[str, Any]]) -> Optional[GeoLocation]:
        if not isinstance(data, dict):
            return None
        if data.get("status") == "fail" or not data.get("lat") or not data.get("lon") or not data.get("country"):
            return None

        return GeoLocation(
            lat=_to_float(data["lat"]),
            lng=_to_float(data["lon"]),
            country=data["country"],
            region=data.get("regionName") or UNKNOWN_LOCATION,
            city=data.get("city") or None
        )

    async def resolve_ip(self, ip: str, timeout: Optional[float] = None) -> Optional[GeoLocation]:
        """Resolve an IP, returning None on any failure or missing data"""
        timeout = timeout or self.timeout
        cache_key = f"{GEO_CACHE_KEY_PREFIX}{ip}"
        cached = self.cache.get(cache_key)
        if cached:
            return cached

        try:
            data = await asyncio.wait_for(asyncio.to_thread(self._lookup, ip, timeout), timeout=timeout)
            geo = self._parse(data)
        except asyncio.TimeoutError:
            logger.debug(f"Geo lookup for {ip} timed out after {timeout}s")
            return None
        except (NetworkError, ValueError, TypeError) as e:
            logger.debug(f"Geo lookup for {ip} failed: {e}")
            return None

        if geo is None:
            return None

        self.cache.set(cache_key, geo, self.cache_ttl)
        return geo

    async def resolve_node_geo(self, address: Optional[str], timeout: float = 3.0) -> Optional[GeoLocation]:
        """Resolve a node address ("ip:port" or IP); invalid addresses skip the lookup"""
        ip = extract_ip(address)
        if not ip:
            return None
        return await self.resolve_ip(ip, timeout)
