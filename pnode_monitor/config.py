"""
Runtime configuration for pnode-monitor
Values are read from the environment (or a .env file) by pydantic-settings
"""

from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_SEED_IPS = [
    "173.212.220.65",
    "161.97.97.41",
    "192.190.136.36",
    "192.190.136.38",
    "207.244.255.1",
    "192.190.136.28",
    "192.190.136.29",
    "173.212.203.145",
]


class Settings(BaseSettings):
    PROJECT_NAME: str = "pNode Monitor"

    # A pod counts as online when it was seen within this window
    online_threshold_seconds: int = 300
    node_env: str = "development"

    # First entry is the primary endpoint, the rest are fallback seeds
    seed_ips: List[str] = DEFAULT_SEED_IPS
    prpc_port: int = 6000
    primary_timeout: float = 10.0
    fallback_timeout: float = 5.0
    stats_timeout: float = 8.0

    geo_api_url: str = "http://ip-api.com/json"
    geo_timeout: float = 5.0
    node_geo_timeout: float = 3.0
    enrichment_concurrency: int = 20

    node_cache_ttl: int = 30
    production_node_cache_ttl: int = 10
    stats_cache_ttl: int = 120
    analytics_cache_ttl: int = 60
    geo_cache_ttl: int = 86400

    api_host: str = "0.0.0.0"
    api_port: int = 3000

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def is_production(self) -> bool:
        return self.node_env.lower() == "production"

    @property
    def node_list_ttl(self) -> int:
        """TTL for the discovered node list, shorter in production"""
        if self.is_production:
            return self.production_node_cache_ttl
        return self.node_cache_ttl

    @property
    def primary_seed(self) -> str:
        return self.seed_ips[0] if self.seed_ips else ""

    @property
    def fallback_seeds(self) -> List[str]:
        return list(self.seed_ips[1:])


@lru_cache()
def get_settings() -> Settings:
    """Get the process-wide settings instance"""
    return Settings()
