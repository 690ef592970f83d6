#!/usr/bin/env python3
"""
Catalogue Maintenance for Protocell
===================================

Opens the on-disk catalogue named by an engine config, loads every persisted
blueprint, purges invalid and duplicate molecule entries, and prints a
summary. Optionally writes an export snapshot.

Run with: python run_catalogue_maintenance.py --config engine.yaml --export snapshot.json
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

from protocell.catalogue import Catalogue
from protocell.utils import EngineConfig, setup_logging


def print_header(text: str):
    print()
    print("=" * 70)
    print(text)
    print("=" * 70)
    print()


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Load, clean and export a Protocell catalogue")
    parser.add_argument("--config", type=Path, help="Engine config (.json, .yaml or .yml)")
    parser.add_argument("--store", type=Path, help="Store directory, overrides the config")
    parser.add_argument("--export", type=Path, help="Write a JSON snapshot here")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    parser.add_argument("--json-logs", action="store_true", help="Log JSON lines")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging(
        level=logging.DEBUG if args.verbose else logging.INFO,
        json_format=args.json_logs,
    )

    config = EngineConfig.load(args.config) if args.config else EngineConfig()
    if args.store:
        config.catalogue.store_path = str(args.store)
    if not config.catalogue.store_path:
        print("No store configured; pass --store or set catalogue.store_path")
        return 2

    # Cleanup runs explicitly below so its report can be printed
    catalogue = Catalogue.from_config(config.catalogue.update(cleanup_on_load=False))

    print_header(f"PROTOCELL CATALOGUE: {config.name}")
    print(f"Store: {Path(config.catalogue.store_path).absolute()}")
    loaded = catalogue.load()
    print(f"Loaded {loaded} persisted blueprints")

    report = catalogue.cleanup()
    print(f"Removed {len(report.invalid)} invalid and {len(report.duplicates)} duplicate molecules")
    for fingerprint in report.invalid:
        print(f"  invalid:   {fingerprint}")
    for fingerprint in report.duplicates:
        print(f"  duplicate: {fingerprint}")

    print()
    print(f"{'Collection':<22} {'Entries':<8}")
    print("-" * 32)
    for name, count in catalogue.stats().items():
        print(f"{name:<22} {count:<8}")

    if catalogue.store is None:
        print()
        print("WARNING: the store failed during this run; changes were kept in memory only.")

    if args.export:
        args.export.parent.mkdir(parents=True, exist_ok=True)
        args.export.write_text(catalogue.export())
        print(f"\nSnapshot saved to: {args.export.absolute()}")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
