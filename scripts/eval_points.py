#!/usr/bin/env python3
from __future__ import annotations

import argparse
import csv
import json
import os
import sys
from glob import glob
from typing import List, Tuple

# Make viewer-backend importable
THIS_DIR = os.path.dirname(__file__)
BACKEND_DIR = os.path.abspath(os.path.join(THIS_DIR, "..", "viewer-backend"))
if BACKEND_DIR not in sys.path:
    sys.path.insert(0, BACKEND_DIR)

from geo.config import load_mapper_config  # type: ignore
from geo.mapper import heuristic_columns, resolve_columns  # type: ignore
from qc.coverage import coverage_report  # type: ignore
from sheets.sheet_io import SheetFetchError, parse_csv  # type: ignore
from suggest.providers import build_provider_from_env  # type: ignore


def _collect_files(data_dir: str, pattern: str, limit: int | None) -> List[str]:
    pats = [p.strip() for p in pattern.split(",") if p.strip()]
    files: List[str] = []
    for p in pats:
        files.extend(glob(os.path.join(data_dir, p)))
    files = sorted(set(files))
    if limit is not None:
        files = files[:limit]
    return files


def evaluate_files(files: List[str], fmt: str = "pretty", use_llm: bool = True) -> Tuple[List[dict], dict]:
    """Run column mapping + point building over local CSV exports.

    Reports, per file, the heuristic mapping, the oracle-backed mapping (when a
    provider is configured) and how many rows each would plot.
    """
    provider = build_provider_from_env() if use_llm else None
    config = load_mapper_config()
    results: List[dict] = []
    agg = {
        "files": 0,
        "skipped": 0,
        "rows": 0,
        "plotted": 0,
        "oracle_used": 0,
        "oracle_disagreed": 0,
    }

    for path in files:
        with open(path, encoding="utf-8-sig") as f:
            text = f.read()
        try:
            headers, rows = parse_csv(text)
        except SheetFetchError as e:
            agg["skipped"] += 1
            results.append({"file": path, "skipped": str(e)})
            continue
        heuristic = heuristic_columns(headers, config)
        chosen, source = resolve_columns(headers, rows, provider=provider, config=config)
        cov = coverage_report(rows, chosen, headers=headers)
        heuristic_cov = coverage_report(rows, heuristic, headers=headers)

        agg["files"] += 1
        agg["rows"] += cov.total
        agg["plotted"] += cov.plotted
        if source == "oracle":
            agg["oracle_used"] += 1
            if chosen != heuristic:
                agg["oracle_disagreed"] += 1

        results.append({
            "file": path,
            "source": source,
            "mapping": chosen.model_dump(),
            "heuristic_mapping": heuristic.model_dump(),
            "coverage": cov.as_dict(),
            "heuristic_plotted": heuristic_cov.plotted,
        })

    if fmt == "pretty":
        for r in results:
            if "skipped" in r:
                print(f"\n=== {os.path.basename(r['file'])} skipped: {r['skipped']} ===")
                continue
            m = r["mapping"]
            c = r["coverage"]
            print(f"\n=== {os.path.basename(r['file'])} (source={r['source']}) ===")
            print(f"- lat={m['lat_column']!r} lng={m['lng_column']!r}")
            print(
                f"- plotted {c['plotted']}/{c['total']}"
                f" (empty={c['empty']} unparsable={c['unparsable']}"
                f" out_of_range={c['out_of_range']} null_island={c['null_island']}"
                f" unmapped={c['unmapped']})"
            )
            if r["mapping"] != r["heuristic_mapping"]:
                h = r["heuristic_mapping"]
                print(f"- heuristic would pick lat={h['lat_column']!r} lng={h['lng_column']!r} -> {r['heuristic_plotted']} points")
        print("\n--- aggregate ---")
        print(json.dumps(agg, indent=2))
    return results, agg


def main():
    ap = argparse.ArgumentParser(description="Evaluate coordinate column detection and point coverage on CSV exports.")
    ap.add_argument("--data-dir", default=os.path.join(os.getcwd(), "data"), help="Folder containing CSV exports")
    ap.add_argument("--pattern", default="*.csv,*.CSV", help="Glob(s) for files, comma-separated")
    ap.add_argument("--limit", type=int, default=20, help="Max number of files")
    ap.add_argument("--format", choices=["pretty", "json", "csv"], default="pretty")
    ap.add_argument("--output", help="Optional path to write JSON/CSV output")
    ap.add_argument("--no-llm", action="store_true", help="Skip the column oracle even if configured")
    args = ap.parse_args()

    files = _collect_files(args.data_dir, args.pattern, args.limit)
    if not files:
        print("No files matched. Adjust --data-dir/--pattern.")
        sys.exit(1)

    results, agg = evaluate_files(files, fmt="pretty" if args.format == "pretty" else "json", use_llm=not args.no_llm)

    if args.output:
        if args.format == "json":
            payload = {"aggregate": agg, "results": results}
            with open(args.output, "w") as f:
                json.dump(payload, f, indent=2)
            print(f"Wrote JSON to {args.output}")
        elif args.format == "csv":
            with open(args.output, "w", newline="") as f:
                w = csv.writer(f)
                w.writerow(["file", "source", "lat_column", "lng_column", "total", "plotted"])
                for r in results:
                    if "skipped" in r:
                        w.writerow([r["file"], "skipped", "", "", 0, 0])
                        continue
                    w.writerow([
                        r["file"], r["source"], r["mapping"]["lat_column"], r["mapping"]["lng_column"],
                        r["coverage"]["total"], r["coverage"]["plotted"],
                    ])
            print(f"Wrote CSV to {args.output}")


if __name__ == "__main__":
    main()
