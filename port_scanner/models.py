from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class PortStatus(str, Enum):
    OPEN = "open"
    CLOSED = "closed"
    FILTERED = "filtered"


@dataclass(frozen=True)
class ProbeOutcome:
    port: int
    status: PortStatus
    service_name: Optional[str] = None
    banner: Optional[str] = None
    latency_ms: int = 0
    error_detail: Optional[str] = None

    def __post_init__(self) -> None:
        if self.latency_ms < 0:
            raise ValueError(f"latency_ms must be >= 0, got {self.latency_ms}")
        if self.banner and self.status is not PortStatus.OPEN:
            raise ValueError(f"port {self.port}: banner on a {self.status.value} port")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "port": self.port,
            "status": self.status.value,
            "service": self.service_name,
            "banner": self.banner,
            "latency_ms": self.latency_ms,
            "error": self.error_detail,
        }


@dataclass(frozen=True)
class ScanSummary:
    """
    Aggregated scan result. `results` is ordered by port.
    """

    target: str
    total_ports: int
    open_count: int
    closed_count: int
    filtered_count: int
    duration: float
    results: Tuple[ProbeOutcome, ...]

    def open_ports(self) -> Tuple[ProbeOutcome, ...]:
        return tuple(r for r in self.results if r.status is PortStatus.OPEN)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "target": self.target,
            "total_ports": self.total_ports,
            "open_ports": self.open_count,
            "closed_ports": self.closed_count,
            "filtered_ports": self.filtered_count,
            "duration_s": round(self.duration, 4),
            "results": [r.to_dict() for r in self.results],
        }
