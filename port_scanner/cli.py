from __future__ import annotations

import argparse
import logging
import sys

from .config import DEFAULT_BANNER_TIMEOUT_MS, DEFAULT_CONCURRENCY, DEFAULT_TIMEOUT_MS, ScanConfig
from .output import FORMATS, render, save_results
from .ports import parse_ports
from .scanner import scan
from .targets import TargetError, resolve_target

EPILOG = """\
port examples:
  -p 80,443,8080        specific ports
  -p 1-1000             port range
  -p common             common ports
  -p 22,80,443,1-1024   mixed
"""


def setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler()],
    )


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="port-scanner",
        description="Scan TCP ports on a target host.",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p.add_argument("-t", "--target", required=True, help="IPv4 address or hostname")
    p.add_argument("-p", "--ports", default="common", help="Port spec: 1-1024, 22,80,443, common or mixed (default: common)")
    p.add_argument("-c", "--concurrency", type=int, default=DEFAULT_CONCURRENCY,
                   help=f"Concurrent connections (default: {DEFAULT_CONCURRENCY})")
    p.add_argument("--timeout", type=int, default=DEFAULT_TIMEOUT_MS,
                   help=f"Connect timeout in ms (default: {DEFAULT_TIMEOUT_MS})")
    p.add_argument("--banner-timeout", type=int, default=DEFAULT_BANNER_TIMEOUT_MS,
                   help=f"Banner read timeout in ms (default: {DEFAULT_BANNER_TIMEOUT_MS})")
    p.add_argument("--no-banner", action="store_true", help="Skip banner grabbing")
    p.add_argument("-o", "--format", choices=FORMATS, default="text", help="Output format (default: text)")
    p.add_argument("--open-only", action="store_true", help="Only list open ports in json/csv output")
    p.add_argument("--out-dir", help="Also save results to a timestamped file in this directory")
    p.add_argument("--progress-every", type=int, default=0, help="Log progress every N ports (default: off)")
    p.add_argument("-v", "--verbose", action="store_true", help="Log every port as it finishes")
    return p


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(args.verbose)

    # all input validation happens before the first connection
    try:
        ports = parse_ports(args.ports)
        config = ScanConfig(
            concurrency=args.concurrency,
            timeout_ms=args.timeout,
            banner_timeout_ms=args.banner_timeout,
            grab_banners=not args.no_banner,
            progress_every=args.progress_every,
        )
        address = resolve_target(args.target)
    except TargetError as e:
        parser.error(str(e))
    except ValueError as e:
        parser.error(f"invalid argument: {e}")

    try:
        summary = scan(args.target, ports, config=config, address=address)
    except KeyboardInterrupt:
        logging.warning("Scan interrupted")
        return 130

    sys.stdout.write(render(summary, args.format, open_only=args.open_only))

    if args.out_dir:
        path = save_results(summary, fmt=args.format, out_dir=args.out_dir, open_only=args.open_only)
        logging.info("Saved results to %s", path)

    return 0


if __name__ == "__main__":
    sys.exit(main())
