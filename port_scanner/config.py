from __future__ import annotations

from dataclasses import dataclass

DEFAULT_CONCURRENCY = 100
DEFAULT_TIMEOUT_MS = 1000
DEFAULT_BANNER_TIMEOUT_MS = 2000


@dataclass(frozen=True)
class ScanConfig:
    concurrency: int = DEFAULT_CONCURRENCY
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    banner_timeout_ms: int = DEFAULT_BANNER_TIMEOUT_MS
    grab_banners: bool = True
    # log a progress line every N finished ports (0 = off)
    progress_every: int = 0

    def __post_init__(self) -> None:
        if self.concurrency < 1:
            raise ValueError(f"concurrency must be >= 1, got {self.concurrency}")
        if self.timeout_ms <= 0:
            raise ValueError(f"timeout must be > 0 ms, got {self.timeout_ms}")
        if self.banner_timeout_ms <= 0:
            raise ValueError(f"banner timeout must be > 0 ms, got {self.banner_timeout_ms}")
        if self.progress_every < 0:
            raise ValueError(f"progress_every must be >= 0, got {self.progress_every}")

    @property
    def timeout_s(self) -> float:
        return self.timeout_ms / 1000.0

    @property
    def banner_timeout_s(self) -> float:
        return self.banner_timeout_ms / 1000.0
