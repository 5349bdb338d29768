"""
stormrank Command Line Interface (CLI)
======================================

Run it like:

    python -m stormrank.cli                       (download + cache the source)
    python -m stormrank.cli --csv StormData.csv.bz2 --charts out/ --report out/report.docx

It loads the dataset once, prints the top event classes by casualties and
by economic damage, and optionally writes charts, a DOCX report and
CSV/JSON exports. The source file is never modified.
"""

from __future__ import annotations
import argparse
import os
import sys
from typing import List, Optional
from .config import PipelineConfig, DEFAULT_SOURCE_URL
from .log import configure_logging
from .pipeline import StormRanker
from .report import METRIC_LABELS, format_value


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="stormrank", description="Rank storm event classes by casualties and damage.")
    src = ap.add_mutually_exclusive_group()
    src.add_argument("--csv", help="Path to a local Storm Data CSV (.csv, .csv.bz2, .csv.gz)")
    src.add_argument("--url", default=DEFAULT_SOURCE_URL, help="Source URL to download (cached)")
    ap.add_argument("--cache-dir", default="", help="Download cache directory (default: $STORMRANK_CACHE_DIR or ~/.cache/stormrank)")
    ap.add_argument("--cache-ttl-hours", type=float, default=None, help="Re-download when the cached file is older than this")
    ap.add_argument("--rules", help="CSV rule table with columns pattern,event_class (default: built-in NWS table)")
    ap.add_argument("--top-n", type=int, default=5)
    ap.add_argument("--lenient-scale-codes", action="store_true",
                    help="Decode unrecognized damage scale codes as 10^0 (with a warning) instead of failing")
    ap.add_argument("--charts", metavar="DIR", help="Write top-N bar charts (PNG) into DIR")
    ap.add_argument("--report", metavar="OUT.docx", help="Write a DOCX report")
    ap.add_argument("--export-csv", metavar="OUT.csv", help="Write the full per-class table as CSV")
    ap.add_argument("--export-json", metavar="OUT.json", help="Write rankings and per-class table as JSON")
    ap.add_argument("--show-other", type=int, default=0, metavar="N",
                    help="Print the N most frequent labels that fell into 'Other'")
    ap.add_argument("-v", "--verbose", action="store_true")
    return ap


def config_from_args(args: argparse.Namespace) -> PipelineConfig:
    return PipelineConfig(
        source_url=args.url,
        csv_path=args.csv,
        cache_dir=args.cache_dir,
        cache_ttl_hours=args.cache_ttl_hours,
        rules_path=args.rules,
        top_n=args.top_n,
        strict_scale_codes=not args.lenient_scale_codes,
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the stormrank CLI.

    1) Load dataset (local file or cached download)
    2) Normalize + aggregate
    3) Print both rankings and write requested outputs
    """
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)

    try:
        config = config_from_args(args)
        ranker = StormRanker.from_config(config)
        rankings = ranker.rankings(config.top_n)

        for metric, ranking in rankings.items():
            title, _ = METRIC_LABELS[metric]
            print(f"Top {config.top_n} by {title}:")
            _print_ranking(metric, ranking)
            print()

        if args.show_other:
            print("Most frequent labels classified as Other:")
            for label, n in ranker.other_labels(args.show_other):
                print(f"  {n:>8,}  {label}")

        if args.charts:
            from .report import save_charts
            for path in save_charts(rankings, args.charts, top_n=config.top_n).values():
                print(f"Chart written to {path}")

        if args.report:
            from .report import generate_docx_report, ReportConfig, DatasetCitation
            cfg = ReportConfig(
                citation=DatasetCitation(file_name=os.path.basename(ranker.source) if ranker.source else None),
                top_n=config.top_n,
            )
            generate_docx_report(rankings, args.report, stats=ranker.stats, config=cfg)
            print(f"Report written to {args.report}")

        if args.export_csv:
            ranker.export_csv(args.export_csv)
            print(f"Exported CSV to {args.export_csv}")

        if args.export_json:
            ranker.export_json(args.export_json, top_n=config.top_n)
            print(f"Exported JSON to {args.export_json}")
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


def _print_ranking(metric: str, ranking) -> None:
    if not ranking:
        print("  (no records)")
        return
    for i, (event_class, value) in enumerate(ranking, start=1):
        print(f"  {i}. {event_class:<28} {format_value(metric, value)}")


if __name__ == "__main__":
    sys.exit(main())
