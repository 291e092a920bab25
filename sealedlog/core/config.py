"""
sealedlog configuration.

LedgerConfig: tuning for bulk encrypt/decrypt over a ledger.
StoreConfig:  where the store component keeps its key-value database.

Both are frozen dataclasses with defaults. from_env() overlays
SEALEDLOG_* environment variables; a malformed value is a ConfigError.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

from sealedlog.core.exceptions import ConfigError

ENV_PARALLEL_THRESHOLD = "SEALEDLOG_PARALLEL_THRESHOLD"
ENV_MAX_WORKERS        = "SEALEDLOG_MAX_WORKERS"
ENV_STORE_PATH         = "SEALEDLOG_STORE_PATH"

DEFAULT_STORE_FILENAME = "sealedlog-store.db"


def _default_workers() -> int:
    return min(os.cpu_count() or 4, 8)


def _env_int(env: Mapping[str, str], name: str, minimum: int) -> Optional[int]:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return None
    try:
        value = int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer", {"value": raw})
    if value < minimum:
        raise ConfigError(f"{name} must be >= {minimum}", {"value": value})
    return value


@dataclass(frozen=True)
class LedgerConfig:
    # Below this many entries, thread startup costs more than it saves.
    parallel_threshold:               int = 2_000
    max_workers:                      int = field(default_factory=_default_workers)
    # Batches per worker × worker count = total batches.
    batch_size_per_worker_multiplier: int = 4

    def __post_init__(self):
        if self.parallel_threshold < 1:
            raise ConfigError(
                "parallel_threshold must be >= 1",
                {"value": self.parallel_threshold},
            )
        if self.max_workers < 1:
            raise ConfigError(
                "max_workers must be >= 1", {"value": self.max_workers}
            )
        if self.batch_size_per_worker_multiplier < 1:
            raise ConfigError(
                "batch_size_per_worker_multiplier must be >= 1",
                {"value": self.batch_size_per_worker_multiplier},
            )

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "LedgerConfig":
        env = os.environ if env is None else env
        kwargs = {}
        threshold = _env_int(env, ENV_PARALLEL_THRESHOLD, 1)
        if threshold is not None:
            kwargs["parallel_threshold"] = threshold
        workers = _env_int(env, ENV_MAX_WORKERS, 1)
        if workers is not None:
            kwargs["max_workers"] = workers
        return cls(**kwargs)


@dataclass(frozen=True)
class StoreConfig:
    path: Path = field(default_factory=lambda: Path.cwd() / DEFAULT_STORE_FILENAME)

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "StoreConfig":
        env = os.environ if env is None else env
        raw = env.get(ENV_STORE_PATH)
        if raw:
            return cls(path=Path(raw))
        return cls()
