"""
resilience utilities - circuit breaker and logging setup.
keeps a failing source from being hammered by repeated hovers.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .config import CircuitBreakerConfig, Clock, system_clock


# setup logging
logger = logging.getLogger("linkbubble")


class CircuitState(Enum):
    """circuit breaker states."""
    CLOSED = "closed"      # normal operation
    OPEN = "open"          # failing, reject calls
    HALF_OPEN = "half_open"  # timeout over, next result decides


@dataclass
class CircuitBreaker:
    """
    guards the live fetches of one source.

    opens after `failure_threshold` failures in a row. once
    `recovery_timeout` seconds have passed, fetches are let through
    again: the next success closes the circuit, the next failure
    reopens it for another full timeout.
    """
    name: str
    config: CircuitBreakerConfig = field(default_factory=CircuitBreakerConfig)
    clock: Clock = system_clock

    state: CircuitState = CircuitState.CLOSED
    failures: int = 0
    opened_at: Optional[float] = None

    def can_execute(self) -> bool:
        if self.state != CircuitState.OPEN:
            return True
        if self.clock() - self.opened_at < self.config.recovery_timeout:
            return False
        logger.info(f"[circuit:{self.name}] timeout over, letting fetches through")
        self.state = CircuitState.HALF_OPEN
        return True

    def record_success(self):
        if self.state == CircuitState.HALF_OPEN:
            logger.info(f"[circuit:{self.name}] recovered, closing")
        self.reset()

    def record_failure(self, error: Exception):
        self.failures += 1
        if self.state == CircuitState.HALF_OPEN or self.failures >= self.config.failure_threshold:
            logger.warning(f"[circuit:{self.name}] opening after {self.failures} failures: {error}")
            self.state = CircuitState.OPEN
            self.opened_at = self.clock()

    def reset(self):
        self.state = CircuitState.CLOSED
        self.failures = 0
        self.opened_at = None


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[str] = None
):
    """
    setup linkbubble logging.
    call once at startup.
    """
    formatter = logging.Formatter(
        "%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    # console handler
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    console_handler.setLevel(level)

    # configure linkbubble logger
    logger.setLevel(level)
    logger.addHandler(console_handler)

    # file handler if specified
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        file_handler.setLevel(level)
        logger.addHandler(file_handler)

    return logger
