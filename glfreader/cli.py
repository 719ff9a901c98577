"""Command-line interface for glfreader."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

import pytz
import yaml

from glfreader.config import load_config
from glfreader.document import GlfDocument
from glfreader.errors import GlfError
from glfreader.imaging import IntensityMap
from glfreader.scanner import DirectoryScanner

_SUFFIXES = {"png": ".png", "jpeg": ".jpg", "bmp": ".bmp", "tiff": ".tif"}


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="glfreader",
        description="Read Tritech Gemini GLF sonar files and export their images.",
    )
    parser.add_argument("-v", "--verbose", action="count", default=0,
                        help="Log progress (-vv for debug output)")
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("-c", "--config", default=None,
                        help="Path to a YAML decoder config file")
    sub = parser.add_subparsers(dest="command")

    # --- info ---
    info_p = sub.add_parser("info", parents=[common], help="List the records in a GLF file")
    info_p.add_argument("file", help="GLF file to inspect")
    info_p.add_argument("--json", dest="output_json", action="store_true",
                        help="Output as JSON")
    info_p.add_argument("--tz", default=None,
                        help="Timezone for displayed times (default: from config)")

    # --- extract ---
    ex_p = sub.add_parser("extract", parents=[common], help="Write record images to disk")
    ex_p.add_argument("file", help="GLF file to read")
    ex_p.add_argument("-o", "--output", default=".", help="Output directory")
    ex_p.add_argument("-i", "--index", type=int, nargs="*", dest="indices",
                      help="Record indices to extract (default: all)")
    ex_p.add_argument("--device", type=int, default=None,
                      help="Only extract records from this sonar id")
    ex_p.add_argument("--format", choices=sorted(_SUFFIXES), default="png",
                      help="Image format (default: png)")
    ex_p.add_argument("--palette", default=None,
                      help="Palette name from the config (default: from config)")
    ex_p.add_argument("--skip-corrupt", action="store_true",
                      help="Skip records that fail to decode instead of stopping")

    # --- scan ---
    scan_p = sub.add_parser("scan", parents=[common], help="Summarise every GLF file under a path")
    scan_p.add_argument("path", help="File or directory to scan")
    scan_p.add_argument("-r", "--recursive", action="store_true", default=True,
                        help="Recurse into subdirectories (default: True)")
    scan_p.add_argument("--no-recursive", dest="recursive", action="store_false")
    scan_p.add_argument("--json", dest="output_json", action="store_true",
                        help="Output results as JSON")

    return parser


def _load_config(path: str | None):
    """Load the decoder config, reporting failures on stderr."""
    try:
        return load_config(path)
    except (OSError, ValueError, yaml.YAMLError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return None


def _header_to_dict(i: int, header, tz: str) -> dict:
    return {
        "index": i,
        "time": header.timestamp(tz).isoformat(),
        "device_id": header.device_id,
        "image_version": header.image_version,
        "beams": header.width,
        "range_lines": header.height,
        "range_start": header.range_start,
        "range_end": header.range_end,
        "bearing_resolution": header.bearing_resolution,
        "percent_gain": header.percent_gain,
        "sos_at_xd": header.sos_at_xd,
        "compression": header.compression.name,
        "data_size": header.data_size,
    }


def cmd_info(args) -> int:
    """Execute the ``info`` subcommand."""
    config = _load_config(args.config)
    if config is None:
        return 1
    tz = args.tz or config.timezone
    try:
        pytz.timezone(tz)
    except pytz.UnknownTimeZoneError:
        print(f"Error: unknown timezone {tz!r}", file=sys.stderr)
        return 1
    try:
        doc = GlfDocument.open_file(args.file, config=config)
    except (GlfError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    records = [_header_to_dict(i, h, tz) for i, h in enumerate(doc.headers)]
    if args.output_json:
        d = {
            "path": args.file,
            "kind": doc.container.kind,
            "members": list(doc.container.member_names),
            "versions": list(doc.container.versions),
            "record_count": doc.record_count(),
            "status_count": len(doc.status_records),
            "device_ids": doc.device_ids(),
            "records": records,
        }
        print(json.dumps(d, indent=2))
        return 0

    print(f"File:           {args.file}")
    print(f"Container:      {doc.container.kind}")
    if doc.container.member_names:
        print(f"Members:        {', '.join(doc.container.member_names)}")
    print(f"Image records:  {doc.record_count()}")
    print(f"Status records: {len(doc.status_records)}")
    print(f"Sonar ids:      {', '.join(str(d) for d in doc.device_ids()) or '-'}")
    if records:
        print(f"{'index':>5}  {'time':<32} {'sonar':>5}  {'beams':>5} x {'lines':<5} "
              f"{'gain':>4}  compression")
        for r in records:
            print(f"{r['index']:>5}  {r['time']:<32} {r['device_id']:>5}  "
                  f"{r['beams']:>5} x {r['range_lines']:<5} {r['percent_gain']:>4}  "
                  f"{r['compression']}")
    return 0


def cmd_extract(args) -> int:
    """Execute the ``extract`` subcommand."""
    config = _load_config(args.config)
    if config is None:
        return 1
    try:
        doc = GlfDocument.open_file(args.file, config=config)
        intensity = IntensityMap.from_config(config, palette=args.palette)
    except (GlfError, OSError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    indices = args.indices if args.indices else range(doc.record_count())
    out_dir = Path(args.output)
    out_dir.mkdir(parents=True, exist_ok=True)
    stem = Path(args.file).stem
    suffix = _SUFFIXES[args.format]

    written = 0
    failed = 0
    for i in indices:
        try:
            if args.device is not None and doc.header(i).device_id != args.device:
                continue
            image = doc.extract_image(i, intensity=intensity)
            image.save(out_dir / f"{stem}_{i:05d}{suffix}", format=args.format.upper())
        except GlfError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            if not args.skip_corrupt:
                return 1
            failed += 1
            continue
        written += 1

    print(f"Wrote {written} image(s) to {out_dir}" + (f", skipped {failed}" if failed else ""))
    return 0


def _print_report(report) -> None:
    """Pretty-print a FileReport to stdout."""
    print(f"\n{'='*60}")
    print(f"File: {report.path}")
    print(f"Size: {report.size} bytes")
    if report.kind:
        print(f"Container: {report.kind} | Images: {report.record_count} | "
              f"Status: {report.status_count}")
        if report.device_ids:
            print(f"Sonar ids: {', '.join(str(d) for d in report.device_ids)}")
        if report.first_time:
            print(f"Span: {report.first_time} .. {report.last_time}")
    for e in report.errors:
        print(f"  ERROR: {e}")


def cmd_scan(args) -> int:
    """Execute the ``scan`` subcommand."""
    config = _load_config(args.config)
    if config is None:
        return 1
    scanner = DirectoryScanner(config=config)

    target = Path(args.path)
    if target.is_file():
        reports = [scanner.scan_file(target)]
    elif target.is_dir():
        reports = scanner.scan_directory(target, recursive=args.recursive)
    else:
        print(f"Error: {args.path} is not a valid file or directory", file=sys.stderr)
        return 1

    if args.output_json:
        print(json.dumps([r.to_dict() for r in reports], indent=2))
    else:
        for r in reports:
            _print_report(r)

    return 0


def main(argv: list[str] | None = None) -> int:
    """Entry point for the CLI."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG if args.verbose > 1 else logging.INFO,
            format="%(levelname)s %(name)s: %(message)s",
        )

    if args.command is None:
        parser.print_help()
        return 0

    dispatch = {
        "info": cmd_info,
        "extract": cmd_extract,
        "scan": cmd_scan,
    }
    handler = dispatch.get(args.command)
    if handler is None:
        parser.print_help()
        return 1
    return handler(args)


if __name__ == "__main__":
    sys.exit(main())
