from __future__ import annotations

import logging
import queue
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Iterable, List, Optional, Union

from .config import ScanConfig
from .models import PortStatus, ProbeOutcome, ScanSummary
from .ports import normalize_ports, parse_ports
from .probe import probe_port
from .summary import summarize
from .targets import resolve_target

log = logging.getLogger(__name__)

CANCELLED = "scan cancelled"

# How long the collector waits on the sink before re-checking the workers.
_POLL_S = 0.1


def _worker(
    address: str,
    jobs: "queue.Queue[int]",
    sink: "queue.Queue[ProbeOutcome]",
    config: ScanConfig,
    stop: threading.Event,
) -> None:
    while True:
        try:
            port = jobs.get_nowait()
        except queue.Empty:
            return

        if stop.is_set():
            outcome = ProbeOutcome(port=port, status=PortStatus.FILTERED, error_detail=CANCELLED)
        else:
            outcome = probe_port(
                address,
                port,
                timeout_s=config.timeout_s,
                banner_timeout_s=config.banner_timeout_s,
                grab_banners=config.grab_banners,
            )
        sink.put(outcome)


def scan_ports(
    address: str,
    ports: List[int],
    config: Optional[ScanConfig] = None,
    stop: Optional[threading.Event] = None,
) -> List[ProbeOutcome]:
    """
    Probe every port in `ports` with at most `config.concurrency` probes
    in flight. Returns one outcome per port, in completion order.

    Setting `stop` makes the workers record the ports they have not probed
    yet as filtered/cancelled instead of connecting.
    """
    config = config or ScanConfig()
    stop = stop or threading.Event()
    total = len(ports)
    if total == 0:
        return []

    jobs: "queue.Queue[int]" = queue.Queue()
    for p in ports:
        jobs.put(p)
    sink: "queue.Queue[ProbeOutcome]" = queue.Queue(maxsize=total)

    workers = min(config.concurrency, total)
    log.debug("Scanning %s: %d ports with %d workers", address, total, workers)

    results: List[ProbeOutcome] = []
    open_count = 0
    start_all = time.perf_counter()

    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="probe") as pool:
        futures: List[Future] = [
            pool.submit(_worker, address, jobs, sink, config, stop) for _ in range(workers)
        ]

        try:
            while len(results) < total:
                try:
                    r = sink.get(timeout=_POLL_S)
                except queue.Empty:
                    # a finished worker has already put everything it produced
                    if all(f.done() for f in futures) and sink.empty():
                        break
                    continue

                results.append(r)
                if r.status is PortStatus.OPEN:
                    open_count += 1
                log.debug("Port %d: %s (%dms)", r.port, r.status.value, r.latency_ms)

                scanned = len(results)
                if config.progress_every > 0 and (scanned % config.progress_every == 0 or scanned == total):
                    elapsed = time.perf_counter() - start_all
                    rate = scanned / elapsed if elapsed > 0 else 0.0
                    log.info("Scanned %d/%d | open=%d | %.0f ports/s", scanned, total, open_count, rate)
        except KeyboardInterrupt:
            stop.set()
            raise

    # re-raise anything a worker died with
    for f in futures:
        f.result()

    if len(results) != total:
        raise RuntimeError(f"Scan of {address} produced {len(results)} outcomes for {total} ports")
    return results


def scan(
    target: str,
    ports: Union[str, Iterable[int]],
    config: Optional[ScanConfig] = None,
    address: Optional[str] = None,
    stop: Optional[threading.Event] = None,
) -> ScanSummary:
    """
    Scan `target` and return the aggregated summary.

    `ports` is a port spec ("22,80,1-1024,common") or a collection of ints.
    Port validation happens before the target is resolved or contacted.
    """
    if isinstance(ports, str):
        port_list = parse_ports(ports)
    else:
        port_list = normalize_ports(ports)
    config = config or ScanConfig()

    start = time.perf_counter()
    if address is None:
        address = resolve_target(target)

    log.info("Starting scan of %s (%s) for %d ports", target, address, len(port_list))
    log.debug("Concurrency: %d, timeout: %dms", config.concurrency, config.timeout_ms)

    outcomes = scan_ports(address, port_list, config=config, stop=stop)
    summary = summarize(target, outcomes, time.perf_counter() - start)

    log.info(
        "Scan of %s completed in %.2fs: %d open, %d closed, %d filtered",
        target,
        summary.duration,
        summary.open_count,
        summary.closed_count,
        summary.filtered_count,
    )
    return summary
