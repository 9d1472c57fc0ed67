from __future__ import annotations

import csv
import io
import json
import os
from datetime import datetime
from typing import List

from .models import PortStatus, ProbeOutcome, ScanSummary

FORMATS = ("text", "json", "csv")

_EXTENSIONS = {"text": "txt", "json": "json", "csv": "csv"}

CSV_HEADER = ["port", "status", "service", "banner", "latency_ms", "error"]


def _selected(summary: ScanSummary, open_only: bool) -> List[ProbeOutcome]:
    return [r for r in summary.results if r.status is PortStatus.OPEN or not open_only]


def format_open_port(r: ProbeOutcome) -> str:
    line = f"  {r.port}/tcp {r.service_name or 'unknown'}"
    if r.banner:
        line += f" ({r.banner})"
    return line


def render_text(summary: ScanSummary) -> str:
    lines = [
        "Port Scan Results",
        "=================",
        "",
        f"Target: {summary.target}",
        f"Duration: {summary.duration:.2f}s",
        f"Total Ports: {summary.total_ports}",
        f"Open Ports: {summary.open_count}",
        f"Closed Ports: {summary.closed_count}",
        f"Filtered: {summary.filtered_count}",
        "",
        "Open Ports:",
    ]
    open_ports = summary.open_ports()
    if open_ports:
        lines.extend(format_open_port(r) for r in open_ports)
    else:
        lines.append("  No open ports found")
    return "\n".join(lines) + "\n"


def render_json(summary: ScanSummary, open_only: bool = False) -> str:
    payload = summary.to_dict()
    payload["results"] = [r.to_dict() for r in _selected(summary, open_only)]
    return json.dumps(payload, indent=2) + "\n"


def render_csv(summary: ScanSummary, open_only: bool = False) -> str:
    buf = io.StringIO()
    w = csv.writer(buf, lineterminator="\n")
    w.writerow(CSV_HEADER)
    for r in _selected(summary, open_only):
        w.writerow([
            r.port,
            r.status.value,
            r.service_name or "",
            r.banner or "",
            r.latency_ms,
            r.error_detail or "",
        ])
    return buf.getvalue()


def render(summary: ScanSummary, fmt: str = "text", open_only: bool = False) -> str:
    if fmt == "text":
        return render_text(summary)
    if fmt == "json":
        return render_json(summary, open_only=open_only)
    if fmt == "csv":
        return render_csv(summary, open_only=open_only)
    raise ValueError(f"Unsupported format: {fmt}")


def save_results(
    summary: ScanSummary,
    fmt: str,
    out_dir: str = "PortScans",
    open_only: bool = False,
) -> str:
    content = render(summary, fmt, open_only=open_only)

    os.makedirs(out_dir, exist_ok=True)
    ts = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
    path = os.path.join(out_dir, f"{ts}_port_scan.{_EXTENSIONS[fmt]}")
    with open(path, "w", newline="", encoding="utf-8") as f:
        f.write(content)
    return path
