from __future__ import annotations

from collections import Counter
from typing import Iterable

from .models import PortStatus, ProbeOutcome, ScanSummary


def summarize(target: str, outcomes: Iterable[ProbeOutcome], duration: float) -> ScanSummary:
    """
    Sort outcomes by port and count them per status.

    Ports are unique within a scan, so the order of `outcomes` does not
    affect the result.
    """
    results = sorted(outcomes, key=lambda r: r.port)

    for prev, cur in zip(results, results[1:]):
        if prev.port == cur.port:
            raise ValueError(f"Duplicate outcome for port {cur.port}")

    counts = Counter(r.status for r in results)
    return ScanSummary(
        target=target,
        total_ports=len(results),
        open_count=counts[PortStatus.OPEN],
        closed_count=counts[PortStatus.CLOSED],
        filtered_count=counts[PortStatus.FILTERED],
        duration=duration,
        results=tuple(results),
    )
