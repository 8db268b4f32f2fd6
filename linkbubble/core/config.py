"""
configuration for linkbubble.
all settings in one place, easily tunable.
"""

import os
import time
from dataclasses import dataclass, field
from typing import Callable, Optional


# seconds since epoch; swapped out in tests
Clock = Callable[[], float]


def system_clock() -> float:
    return time.time()


@dataclass
class ProviderConfig:
    """remote page api settings."""
    base_url: str = "https://scrapbox.io"
    timeout: float = 30.0
    follow_rename: bool = True
    user_agent: str = "linkbubble/0.1"


@dataclass
class SchedulerConfig:
    """per-source task pacing."""
    interval: float = 0.25  # seconds between task starts


@dataclass
class CacheConfig:
    """response cache settings."""
    max_age: int = 60  # seconds a cached response counts as fresh


@dataclass
class CircuitBreakerConfig:
    """configuration for circuit breaker."""
    failure_threshold: int = 5       # failures before opening
    recovery_timeout: float = 60.0   # seconds before one trial fetch


@dataclass
class BubbleConfig:
    """master configuration for linkbubble."""
    provider: ProviderConfig = field(default_factory=ProviderConfig)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    circuit: CircuitBreakerConfig = field(default_factory=CircuitBreakerConfig)

    # how many titles prefetch_many refreshes at once
    bulk_concurrency: int = 3

    @classmethod
    def default(cls) -> 'BubbleConfig':
        """return default configuration."""
        return cls()

    @classmethod
    def from_env(cls, environ: Optional[dict] = None) -> 'BubbleConfig':
        """default config overridden by LINKBUBBLE_* environment variables."""
        env = os.environ if environ is None else environ
        config = cls()
        if env.get("LINKBUBBLE_BASE_URL"):
            config.provider.base_url = env["LINKBUBBLE_BASE_URL"].rstrip("/")
        if env.get("LINKBUBBLE_INTERVAL"):
            config.scheduler.interval = float(env["LINKBUBBLE_INTERVAL"])
        if env.get("LINKBUBBLE_MAX_AGE"):
            config.cache.max_age = int(env["LINKBUBBLE_MAX_AGE"])
        return config
