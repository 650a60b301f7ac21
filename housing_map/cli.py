"""
Developer-friendly CLI for building maps and preparing data locally.

Examples:
    python -m housing_map.cli build-map --dataset vacate --borough BK --out vacate_bk.html
    python -m housing_map.cli build-map --dataset permits --district 303 --no-heat
    python -m housing_map.cli stats --dataset permits --top 10
    python -m housing_map.cli clean-geojson data/districts.geojson,data/construction_data.geojson
    python -m housing_map.cli to-ndjson data/construction_data.cleaned.geojson --chunk 10000
"""

from __future__ import annotations

import argparse
import json
import logging

from .jobs.map_job import DATASETS, MapJob
from .settings import map_settings
from .stats import top_categories
from .storage.files import DEFAULT_CHUNK_SIZE, clean_geojson_file, write_ndjson_chunks


def _job(args: argparse.Namespace) -> MapJob:
    if args.dataset not in DATASETS:
        raise SystemExit(f"Dataset '{args.dataset}' not found (choose from {', '.join(DATASETS)})")
    return MapJob(args.dataset, settings=map_settings)


def run_build_map(args: argparse.Namespace) -> None:
    session = _job(args).run(
        borough=args.borough,
        district=args.district,
        cluster=not args.no_cluster,
        heat=not args.no_heat,
        cap=args.cap,
        source=args.source,
        districts_location=args.districts,
        use_districts=not args.no_districts,
        output=args.out,
        dry_run=args.dry_run,
    )
    stats = session.state.stats
    print(f"Visible records: {stats.total} (loaded {len(session.records)})")
    if args.district and not session.districts_available:
        print("District boundaries unavailable; district filter ignored.")


def run_stats(args: argparse.Namespace) -> None:
    session = _job(args).run(
        borough=args.borough,
        district=args.district,
        cap=args.cap,
        source=args.source,
        districts_location=args.districts,
        use_districts=bool(args.district),
        dry_run=True,
    )
    stats = session.state.stats
    summary = {
        "total": stats.total,
        "active": stats.active,
        "top": {
            category: top_categories(counts, args.top)
            for category, counts in stats.by_category.items()
        },
    }
    print(json.dumps(summary, indent=2))


def run_clean(args: argparse.Namespace) -> None:
    inputs = [s.strip() for s in args.inputs.split(",") if s.strip()]
    if not inputs:
        inputs = [str(map_settings.data_dir / "districts.geojson"), str(map_settings.data_dir / "construction_data.geojson")]
    for input_path in inputs:
        out_path = clean_geojson_file(input_path)
        if out_path:
            print(f"Cleaned: {out_path}")


def run_to_ndjson(args: argparse.Namespace) -> None:
    out_dir = args.out_dir or map_settings.ndjson_location
    try:
        written = write_ndjson_chunks(args.input, out_dir, chunk_size=args.chunk, prefix=args.prefix)
    except (FileNotFoundError, ValueError) as exc:
        raise SystemExit(str(exc))
    print(f"Wrote {len(written)} chunk file(s) to {out_dir}")


def show_config(args: argparse.Namespace) -> None:
    """Pretty-print settings for sanity checks."""
    print(json.dumps(map_settings.as_dict(), indent=2))


def _add_dataset_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--dataset", default="permits", help=f"Dataset to load ({', '.join(DATASETS)})")
    parser.add_argument("--borough", help="Borough short code (MN, BK, BX, QN, SI) or full name")
    parser.add_argument("--district", help="District id to show (see the boundary file)")
    parser.add_argument("--cap", type=int, help="Max records to load (default from settings)")
    parser.add_argument("--source", help="Override NDJSON directory/base URL or vacate API URL")
    parser.add_argument("--districts", help="Override district boundary path or URL")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="NYC housing map CLI")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    build_parser = subparsers.add_parser("build-map", help="Load a dataset and write an HTML map")
    _add_dataset_args(build_parser)
    build_parser.add_argument("--no-cluster", action="store_true", help="Draw individual markers instead of clusters")
    build_parser.add_argument("--no-heat", action="store_true", help="Leave the heatmap layer off")
    build_parser.add_argument("--no-districts", action="store_true", help="Skip district boundaries")
    build_parser.add_argument("--out", help="Output HTML path (default from settings)")
    build_parser.add_argument("--dry-run", action="store_true", help="Load and filter but skip writing HTML")
    build_parser.set_defaults(func=run_build_map)

    stats_parser = subparsers.add_parser("stats", help="Print category counts for a dataset")
    _add_dataset_args(stats_parser)
    stats_parser.add_argument("--top", type=int, default=5, help="Entries per category (default: 5)")
    stats_parser.set_defaults(func=run_stats)

    clean_parser = subparsers.add_parser("clean-geojson", help="Replace NaN/Infinity and trailing commas")
    clean_parser.add_argument("inputs", nargs="?", default="", help="Comma-separated GeoJSON paths")
    clean_parser.set_defaults(func=run_clean)

    nd_parser = subparsers.add_parser("to-ndjson", help="Split a FeatureCollection into NDJSON chunk files")
    nd_parser.add_argument("input", help="Input GeoJSON FeatureCollection")
    nd_parser.add_argument("--chunk", type=int, default=DEFAULT_CHUNK_SIZE, help="Features per file")
    nd_parser.add_argument("--out-dir", dest="out_dir", help="Output directory (default from settings)")
    nd_parser.add_argument("--prefix", default=map_settings.ndjson_prefix, help="Chunk file name prefix")
    nd_parser.set_defaults(func=run_to_ndjson)

    subparsers.add_parser("show-config", help="Print the loaded settings").set_defaults(func=show_config)
    return parser


def main(argv: list[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    args.func(args)


if __name__ == "__main__":
    main()
