from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Iterable

from .constants import (
    DEFAULT_BENCH_SIZE,
    DEFAULT_CHUNK_SIZE,
    DEFAULT_DUPLICATE_RATE,
    DEFAULT_LOSS_RATE,
    DEFAULT_WORKERS,
    EXIT_ERROR,
    EXIT_INCOMPLETE,
    EXIT_MISMATCH,
    EXIT_OK,
)
from .errors import InvalidConfiguration
from .fragment import Fragment
from .simulate import SimulationResult, read_source, run_simulation

log = logging.getLogger(__name__)


def _show(payload: bytes) -> str:
    return payload.decode("utf-8", errors="replace")


def _print_fragments(title: str, prefix: str, fragments: Iterable[Fragment]) -> None:
    print(title)
    for f in fragments:
        print(f"  {prefix}Packet #{f.sequence_index}: '{_show(f.payload)}'")
    print()


def _simulate(data: bytes, args: argparse.Namespace) -> SimulationResult:
    return run_simulation(
        data,
        chunk_size=args.chunk_size,
        loss_rate=args.loss_rate,
        duplicate_rate=args.duplicate_rate,
        reorder=args.reorder,
        seed=args.seed,
        workers=args.workers,
        provisional=args.provisional,
    )


def _summary(result: SimulationResult) -> dict:
    return {
        "fragments": len(result.fragments),
        "arrivals": len(result.delivery.arrivals),
        "dropped": list(result.delivery.dropped),
        "duplicated": list(result.delivery.duplicated),
        "missing": list(result.missing),
        "complete": result.complete,
        "matches": result.matches,
        "seconds": result.duration_s,
    }


def cmd_send(args: argparse.Namespace) -> int:
    path = args.file
    if path is None:
        try:
            path = input("Enter path to text file to send: ")
        except EOFError:
            return EXIT_OK

    try:
        message = read_source(path)
    except OSError as e:
        print(f"Error: could not open file: {path} ({e.strerror or e})", file=sys.stderr)
        return EXIT_ERROR

    if not message:
        print("File is empty. Nothing to send.")
        return EXIT_OK

    try:
        result = _simulate(message, args)
    except InvalidConfiguration as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR

    if args.json:
        print(json.dumps({"role": "send", "file": path, **_summary(result)}, indent=2))
    else:
        _print_fragments(f"Created {len(result.fragments)} packets:", "", result.fragments)
        _print_fragments("Sending packets in unordered sequence:", "Sent ", result.delivery.sent)
        _print_fragments("Receiving packets (arrival order shown):", "Received ", result.delivery.arrivals)
        print("Reconstructing message from received packets...")

    if not result.complete:
        for idx in result.missing:
            print(f"Missing packet #{idx} -- message incomplete", file=sys.stderr)
        return EXIT_INCOMPLETE

    if not args.json:
        print("\nOriginal message (showing visible whitespace as-is):")
        print(_show(message) + "\n")
        print("Reconstructed message:")
        print(_show(result.reconstructed or b"") + "\n")

    if not result.matches:
        print("Warning: reconstructed message differs from original.", file=sys.stderr)
        return EXIT_MISMATCH
    if not args.json:
        print("Success: reconstructed message matches original.")
    return EXIT_OK


def cmd_bench(args: argparse.Namespace) -> int:
    payload = bytes(i % 251 for i in range(args.size_bytes))
    try:
        result = _simulate(payload, args)
    except InvalidConfiguration as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR

    summary = _summary(result)
    summary["dropped"] = len(result.delivery.dropped)
    summary["duplicated"] = len(result.delivery.duplicated)
    summary["missing"] = len(result.missing)
    summary["fragments_per_s"] = len(result.delivery.arrivals) / max(0.001, result.duration_s)
    payload_out = {"role": "bench", "bytes": args.size_bytes, **summary}
    print(json.dumps(payload_out, indent=2) if args.json else payload_out)
    if result.matches:
        return EXIT_OK
    return EXIT_MISMATCH if result.complete else EXIT_INCOMPLETE


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="pktsim",
        description="Fragment a byte stream, deliver it out of order, and reassemble it.",
    )
    p.add_argument("--log-level", default="WARNING", choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])
    sub = p.add_subparsers(dest="cmd", required=True)

    def add_common(x: argparse.ArgumentParser) -> None:
        x.add_argument("--chunk-size", type=int, default=DEFAULT_CHUNK_SIZE)
        x.add_argument("--loss-rate", type=float, default=DEFAULT_LOSS_RATE, help="probability a fragment is dropped")
        x.add_argument("--duplicate-rate", type=float, default=DEFAULT_DUPLICATE_RATE, help="probability a fragment arrives twice")
        x.add_argument("--no-reorder", dest="reorder", action="store_false", help="deliver in original order")
        x.add_argument("--seed", type=int, default=None, help="seed for reproducible delivery")
        x.add_argument("--workers", type=int, default=DEFAULT_WORKERS, help="threads ingesting concurrently")
        x.add_argument("--provisional", action="store_true", help="do not tell the reassembler the fragment count")
        x.add_argument("--json", action="store_true")

    send = sub.add_parser("send", help="send a file through the simulated transport")
    add_common(send)
    send.add_argument("file", nargs="?", default=None)
    send.set_defaults(func=cmd_send)

    bench = sub.add_parser("bench", help="reassemble a synthetic payload and report timing")
    add_common(bench)
    bench.add_argument("--size-bytes", type=int, default=DEFAULT_BENCH_SIZE)
    bench.set_defaults(func=cmd_bench)

    return p


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(asctime)s [%(levelname)s] %(message)s")
    log.debug("command=%s", args.cmd)
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
