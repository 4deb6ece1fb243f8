#!/usr/bin/env python3
"""Benchmark: encoded size and round-trip latency of the three LLSD encodings.

Each run builds a fresh value tree (nested maps of numpy-generated reals,
integers, strings and a binary blob), formats it in binary, notation and XML,
parses it back and checks the result against the original.

Prerequisites
-------------
$ pip install -e .[bench]

Usage
-----
$ python benchmarks/bench_formats.py --runs 200 --width 10 --depth 3
"""
from __future__ import annotations

import argparse
import io
import time
from statistics import quantiles

import numpy as np
from rich import box
from rich.console import Console
from rich.table import Table
from tqdm import tqdm

from llsdwire import PARSE_FAILURE, Format, Value, format_value, parse_value

# ---------------------------------------------------------------------------
# Payloads
# ---------------------------------------------------------------------------


def build_tree(rng: np.random.Generator, width: int, depth: int, blob_size: int) -> Value:
    """Build a ``width``-ary map ``depth`` levels deep with mixed leaves."""
    node = Value.map()
    for i in range(width):
        key = f"k{i:03d}"
        if depth > 1:
            node[key] = build_tree(rng, width, depth - 1, blob_size)
        elif i % 4 == 0:
            node[key] = Value.real(float(rng.random()))
        elif i % 4 == 1:
            node[key] = Value.integer(int(rng.integers(-(2**31), 2**31 - 1)))
        elif i % 4 == 2:
            node[key] = Value.string(f"value-{rng.integers(0, 1_000_000)}")
        else:
            node[key] = Value.binary(rng.bytes(blob_size))
    return node


# ---------------------------------------------------------------------------
# Benchmark loop
# ---------------------------------------------------------------------------


def bench_format(fmt: Format, runs: int, width: int, depth: int, blob_size: int, seed: int) -> dict:
    """Time format+parse round trips for one encoding."""
    rng = np.random.default_rng(seed)
    encode_times: list[float] = []
    decode_times: list[float] = []
    sizes: list[int] = []
    errors = 0

    for _ in tqdm(range(runs), desc=fmt.name.lower()):
        tree = build_tree(rng, width, depth, blob_size)

        sink = io.BytesIO()
        t0 = time.perf_counter()
        written = format_value(tree, fmt, sink)
        t1 = time.perf_counter()
        value, count = parse_value(sink.getvalue(), fmt)
        t2 = time.perf_counter()

        encode_times.append(t1 - t0)
        decode_times.append(t2 - t1)
        sizes.append(written)
        if count == PARSE_FAILURE or value != tree:
            errors += 1

    return {"encode": encode_times, "decode": decode_times, "sizes": sizes, "errors": errors, "runs": runs}


# ---------------------------------------------------------------------------
# Reporting
# ---------------------------------------------------------------------------


def summarise(results: dict) -> dict[str, float]:
    """Reduce raw timings to p50/p99 (microseconds), mean size and success rate."""
    enc_us = [t * 1e6 for t in results["encode"]]
    dec_us = [t * 1e6 for t in results["decode"]]
    if len(enc_us) < 2:
        enc_us, dec_us = enc_us * 2, dec_us * 2
    enc_q = quantiles(enc_us, n=100)
    dec_q = quantiles(dec_us, n=100)
    return {
        "size": float(np.mean(results["sizes"])),
        "enc_p50": enc_q[49],
        "enc_p99": enc_q[98],
        "dec_p50": dec_q[49],
        "dec_p99": dec_q[98],
        "success_rate": (results["runs"] - results["errors"]) / results["runs"] * 100,
    }


def print_table(summaries: dict[str, dict[str, float]]) -> None:
    console = Console()
    table = Table(title="LLSD encoding comparison", box=box.SIMPLE_HEAVY)
    table.add_column("Format")
    table.add_column("Mean size (bytes, ↓)")
    table.add_column("Encode p50 (us, ↓)")
    table.add_column("Encode p99 (us, ↓)")
    table.add_column("Decode p50 (us, ↓)")
    table.add_column("Decode p99 (us, ↓)")
    table.add_column("Round trips OK (%)")

    for name, s in summaries.items():
        color = "green" if s["success_rate"] == 100.0 else "red"
        table.add_row(
            name,
            f"{s['size']:.0f}",
            f"{s['enc_p50']:.1f}",
            f"{s['enc_p99']:.1f}",
            f"{s['dec_p50']:.1f}",
            f"{s['dec_p99']:.1f}",
            f"[{color}]{s['success_rate']:.1f}%[/{color}]",
        )

    console.print(table)


def main():
    """Main benchmark function."""
    parser = argparse.ArgumentParser(description="Benchmark LLSD binary vs notation vs XML")
    parser.add_argument("--runs", type=int, default=100, help="Number of round trips per format")
    parser.add_argument("--width", type=int, default=10, help="Map entries per level")
    parser.add_argument("--depth", type=int, default=2, help="Map nesting depth")
    parser.add_argument("--blob-size", type=int, default=64, help="Bytes per binary leaf")
    parser.add_argument("--seed", type=int, default=0, help="Random seed")
    args = parser.parse_args()

    print(f"Benchmarking {args.runs} runs, width={args.width}, depth={args.depth}")

    summaries = {}
    for fmt in (Format.BINARY, Format.NOTATION, Format.XML):
        results = bench_format(fmt, args.runs, args.width, args.depth, args.blob_size, args.seed)
        summaries[fmt.name.lower()] = summarise(results)

    print_table(summaries)


if __name__ == "__main__":
    main()
