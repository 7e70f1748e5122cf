from __future__ import annotations

import argparse
import logging
import os
import sys
from dataclasses import replace
from pathlib import Path

from .batch import run_batch
from .errors import ConfigurationError
from .report import build_report, save_report
from .settings import DEFAULT_MIN_SIZE, ConvertSettings, default_workers, parse_min_size, validate_settings


logger = logging.getLogger("webpify")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="webpify",
        description="webpify is a tool used to create webp images from jpegs and png files",
    )
    p.add_argument("-d", "--dir", default="", help="the directory to crawl")
    p.add_argument("-q", "--quality", type=int, default=0, help="the quality for the webp images")
    p.add_argument("-r", "--replace", action="store_true", help="replace existing webp files")
    p.add_argument("--prepend", default="", help="prepend string to the beginning of file name")
    p.add_argument("--append", default="", help="append string to the end of file name")
    p.add_argument(
        "--min-size",
        default=DEFAULT_MIN_SIZE,
        help=f"smallest file size that will have a webp image created (default: {DEFAULT_MIN_SIZE})",
    )
    p.add_argument(
        "--dry-run",
        action="store_true",
        help="whether to handle this as a dry run and only print target files",
    )
    p.add_argument(
        "-w", "--workers",
        type=int,
        default=default_workers(),
        help="the number of worker threads to spawn. Defaults to number of CPUs.",
    )

    # Encoder backend
    p.add_argument(
        "--encoder",
        choices=["cwebp", "pillow"],
        default="cwebp",
        help="encoder backend (default: cwebp)",
    )
    p.add_argument("--cwebp", default="cwebp", help="path to the cwebp binary (or in $PATH)")

    # Reporting
    p.add_argument("--report", type=Path, default=None, help="write a JSON (or .csv) report to this path")
    p.add_argument("-v", "--verbose", action="store_true", help="verbose logging (debug)")
    return p


def configure_logging(verbose: bool = False) -> None:
    # log to standard output
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(message)s",
        datefmt="%Y/%m/%d %H:%M:%S",
        stream=sys.stdout,
    )


def _absolute_dir(target: str) -> Path:
    return Path(os.path.abspath(target))


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(args.verbose)

    try:
        min_size = parse_min_size(args.min_size)
    except ConfigurationError:
        logger.error("!!ERROR: %s is not a valid file size", args.min_size)
        return 1

    target = args.dir.strip()

    settings = ConvertSettings(
        target_dir=Path(target) if target else None,
        quality=int(args.quality),
        encoder=args.encoder,
        cwebp_path=str(args.cwebp),
        replace=bool(args.replace),
        dry_run=bool(args.dry_run),
        min_size=min_size,
        prepend=str(args.prepend),
        append=str(args.append),
        workers=int(args.workers),
    )

    try:
        validate_settings(settings)
    except ConfigurationError as e:
        print(f"\n{e}\n")
        parser.print_help()
        return 1

    try:
        target_dir = _absolute_dir(target)
    except (OSError, ValueError):
        print("dir is not valid!")
        return 2

    settings = replace(settings, target_dir=target_dir)

    print("CRAWLING:\t", target_dir)
    print("QUALITY:\t", settings.quality)
    print("WORKERS:\t", settings.workers)
    print("MIN FILE SIZE:\t", settings.min_size)
    if settings.dry_run:
        print("*** THIS IS A DRY RUN ***")

    try:
        results, summary = run_batch(settings)
    except KeyboardInterrupt:
        logger.warning("Interrupted: in-flight conversions finished, pending files were skipped")
        return 130

    # Print summary
    print("\n=== Batch Summary ===")
    print("Total found:", summary.total_files)
    print("Converted  :", summary.converted)
    print("Existing   :", summary.existing)
    print("Skipped    :", summary.skipped)
    print("Discarded  :", summary.discarded)
    print("Failed     :", summary.failed)
    print(f"Saved      : {summary.saved_bytes} bytes ({summary.saved_percent:.1f}%)")

    if args.report is not None:
        report = build_report(results, summary)
        save_report(report, args.report)
        print("\nReport written:", args.report)

    return 0
