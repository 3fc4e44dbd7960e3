#!/usr/bin/env python3
"""
rpconvert

Convert an "RP" sampling-profiler trace into a Gecko processed profile
(JSON) that opens in the Firefox Profiler.

Usage examples
  # default output next to the input: client.trace.gecko_profile.json
  rpconvert client.trace

  # gzip-compressed:
  rpconvert client.trace -c -o client.json.gz

  # traces whose marker blocks carry their own clock prefix:
  rpconvert client.trace --marker-clock stream

  # only list the trace metadata:
  rpconvert client.trace --info

Open in the Firefox Profiler
  - https://profiler.firefox.com -> "Load a profile from file"
"""

from __future__ import annotations

import argparse
import gzip
import io
import json
import os
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, List, Optional

from . import decode_trace, read_trace_header
from .config import MARKER_CLOCKS, ConverterConfig, load_config
from .errors import TraceError

OUTPUT_SUFFIX = ".gecko_profile.json"

# -----------------------------
# Output
# -----------------------------

def open_output(path: Path, compress: bool) -> io.TextIOBase:
  if compress or str(path).endswith(".gz"):
    return gzip.open(path, "wt", encoding="utf-8")
  return open(path, "w", encoding="utf-8")

def write_document(doc: Dict[str, Any], path: Path, compress: bool) -> None:
  # a failed write leaves nothing at `path`
  tmp_path = path.with_name(path.name + ".tmp")
  out_f = open_output(tmp_path, compress or str(path).endswith(".gz"))
  try:
    try:
      json.dump(doc, out_f, separators=(",", ":"), ensure_ascii=False)
      out_f.write("\n")
    finally:
      out_f.close()
    os.replace(tmp_path, path)
  except BaseException:
    tmp_path.unlink(missing_ok=True)
    raise

def default_output(in_path: Path, compress: bool) -> Path:
  suffix = OUTPUT_SUFFIX + (".gz" if compress else "")
  return in_path.with_name(in_path.name + suffix)

def format_metadata(metadata: Dict[str, Any]) -> List[str]:
  return [f"{k}: {v}" for k, v in metadata.items()]

# -----------------------------
# main
# -----------------------------

def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
  ap = argparse.ArgumentParser(description="Convert RP profiler traces to Gecko profile JSON (Firefox Profiler).")
  ap.add_argument("input", help="Input trace file.")
  ap.add_argument("-o", "--output", default=None, help=f"Output profile (.json or .json.gz). Default: <input>{OUTPUT_SUFFIX}")
  ap.add_argument("-c", "--compress", action="store_true", help="Gzip-compress output (.json.gz).")
  ap.add_argument("--config", default=None, help="TOML file with converter settings.")
  ap.add_argument("--product", default=None, help="Product name written to meta.product.")
  ap.add_argument("--main-thread", default=None, help="Thread shown as the main thread (renamed to GeckoMain).")
  ap.add_argument("--include-offheap", action="store_true", default=None,
                  help="Count off-heap usage in the memory track (default: heap only).")
  ap.add_argument("--marker-clock", default=None, choices=list(MARKER_CLOCKS),
                  help="tick: markers timed by the tick delta; stream: each marker block starts with its own delta (native agent traces).")
  ap.add_argument("--start-time", type=float, default=None,
                  help="Profile start time in epoch milliseconds. Default: input file mtime.")
  ap.add_argument("--info", action="store_true", help="Print the trace metadata and exit.")
  ap.add_argument("-v", "--verbose", action="store_true", help="Print per-thread table sizes to stderr.")
  return ap.parse_args(argv)

def build_config(args: argparse.Namespace) -> ConverterConfig:
  cfg = load_config(args.config) if args.config else ConverterConfig()
  overrides: Dict[str, Any] = {}
  if args.product is not None:
    overrides["product"] = args.product
  if args.main_thread is not None:
    overrides["main_thread"] = args.main_thread
  if args.include_offheap is not None:
    overrides["include_offheap"] = args.include_offheap
  if args.marker_clock is not None:
    overrides["marker_clock"] = args.marker_clock
  return replace(cfg, **overrides)

def main(argv: Optional[List[str]] = None) -> int:
  args = parse_args(argv)
  in_path = Path(args.input)
  if not in_path.exists():
    print(f"error: input not found: {in_path}", file=sys.stderr)
    return 2

  try:
    cfg = build_config(args)
  except (OSError, ValueError) as e:
    print(f"error: bad config: {e}", file=sys.stderr)
    return 2

  try:
    data = in_path.read_bytes()
  except OSError as e:
    print(f"error: cannot read {in_path}: {e}", file=sys.stderr)
    return 2

  try:
    if args.info:
      header = read_trace_header(data)
      for line in format_metadata(header.metadata):
        print(line)
      return 0
    decoded = decode_trace(data, cfg)
  except TraceError as e:
    print(f"error: {in_path}: {e}", file=sys.stderr)
    return 1

  if not decoded.threads:
    print("warning: trace declares no threads; the profile will be empty", file=sys.stderr)
  elif decoded.header.sample_count == 0:
    print("warning: trace contains 0 samples", file=sys.stderr)
  if args.verbose:
    for t in decoded.threads:
      print(t.summary(), file=sys.stderr)

  start_time = args.start_time
  if start_time is None:
    start_time = in_path.stat().st_mtime * 1000
  doc = decoded.document(cfg, start_time)

  out_path = Path(args.output) if args.output else default_output(in_path, args.compress)
  try:
    write_document(doc, out_path, args.compress)
  except OSError as e:
    print(f"error: cannot write {out_path}: {e}", file=sys.stderr)
    return 1

  print(str(out_path))
  return 0

def run() -> None:
  raise SystemExit(main())

if __name__ == "__main__":
  run()
