"""Cache settings using pydantic-settings."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Cache configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="MEMOCACHE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    debug: bool = False

    # Byte budget per cache manager, measured by the storage backend.
    cache_max_size_bytes: int = 10 * 1024 * 1024  # 10 MiB

    # TTL applied to entries stored without an explicit per-key TTL.
    cache_default_ttl_seconds: float = 300.0

    cache_eviction_policy: str = "lru"  # lru | lfu | fifo

    # Per-namespace TTL overrides, e.g. {"http": 60, "db": 900}
    cache_namespace_ttl_seconds: dict[str, float] = {}

    def get_ttl_seconds(self, namespace: str) -> float:
        """Get the default TTL for a namespace, falling back to the global default."""
        return self.cache_namespace_ttl_seconds.get(namespace, self.cache_default_ttl_seconds)


settings = Settings()
