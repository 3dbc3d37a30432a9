"""
Shared fixtures: fake pRPC clients, fake geo lookups and a controllable clock
"""

import time
import asyncio

import pytest

from pnode_monitor.cache import CacheRegistry
from pnode_monitor.config import Settings
from pnode_monitor.context import MonitorContext
from pnode_monitor.analytics import AnalyticsService
from pnode_monitor.discovery import PNodeService
from pnode_monitor.enrichment import GeoEnricher
from pnode_monitor.models import GeoLocation

SEEDS = ["10.0.0.1", "10.0.0.2", "10.0.0.3"]


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakePrpcNetwork:
    """
    Scripted responses per host. Each value is a list/dict to return or an
    exception instance to raise.
    """

    def __init__(self):
        self.pods_with_stats = {}
        self.pods = {}
        self.stats = {}
        self.calls = []
        self.created = []

    def factory(self, host, timeout):
        self.created.append((host, timeout))
        return FakePrpcClient(self, host)


class FakePrpcClient:
    def __init__(self, network: FakePrpcNetwork, host: str):
        self.network = network
        self.host = host

    def _answer(self, table, method):
        self.network.calls.append((self.host, method))
        if self.host not in table:
            raise ConnectionError(f"{self.host} unreachable")
        value = table[self.host]
        if isinstance(value, Exception):
            raise value
        return value

    async def get_pods(self):
        return self._answer(self.network.pods, "get-pods")

    async def get_pods_with_stats(self):
        return self._answer(self.network.pods_with_stats, "get-pods-with-stats")

    async def get_stats(self):
        return self._answer(self.network.stats, "get-stats")


class FakeGeoResolver:
    """Resolves addresses from a fixed table and records concurrency"""

    def __init__(self, locations=None, delay: float = 0):
        self.locations = locations or {}
        self.delay = delay
        self.lookups = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def resolve_node_geo(self, address, timeout=3.0):
        self.lookups.append(address)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            ip = (address or "").split(":")[0]
            return self.locations.get(ip)
        finally:
            self.in_flight -= 1


BRAZIL = GeoLocation(lat=-23.55, lng=-46.63, country="Brazil", region="Sao Paulo", city="Sao Paulo")


def make_pod(pubkey, address="1.2.3.4:9001", last_seen=None, uptime=86400,
             storage_used=0, storage_committed=0, version="0.7.0"):
    pod = {
        "address": address,
        "last_seen_timestamp": int(time.time()) if last_seen is None else last_seen,
        "uptime": uptime,
        "storage_used": storage_used,
        "storage_committed": storage_committed,
        "version": version,
    }
    if pubkey is not None:
        pod["pubkey"] = pubkey
    return pod


@pytest.fixture
def settings():
    return Settings(seed_ips=SEEDS, node_env="development")


@pytest.fixture
def network():
    return FakePrpcNetwork()


@pytest.fixture
def geo_resolver():
    return FakeGeoResolver()


@pytest.fixture
def caches(settings):
    return CacheRegistry.from_settings(settings)


@pytest.fixture
def pnode_service(settings, caches, network, geo_resolver):
    return PNodeService(settings, caches, GeoEnricher(geo_resolver), network.factory)


@pytest.fixture
def analytics_service(settings, caches, pnode_service):
    return AnalyticsService(settings, caches, pnode_service)


@pytest.fixture
def monitor(settings, caches, pnode_service, analytics_service):
    return MonitorContext(settings, caches, pnode_service, analytics_service)
